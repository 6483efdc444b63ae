"""JWT session cookies for pantry accounts."""

from __future__ import annotations

import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Literal

import jwt
from flask import Response, current_app

TokenType = Literal["access", "refresh"]
SameSite = Literal["Lax", "Strict", "None"]

DEFAULT_ACCESS_TOKEN_TTL = timedelta(minutes=15)
DEFAULT_REFRESH_TOKEN_TTL = timedelta(days=30)
DEFAULT_ACCESS_COOKIE_NAME = "pantry_access"
DEFAULT_REFRESH_COOKIE_NAME = "pantry_refresh"
DEFAULT_JWT_ALGORITHM = "HS256"

_FALSE_STRINGS = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class AuthSettings:
    """Signing secret plus cookie attributes for pantry sessions."""

    secret: str
    access_token_ttl: timedelta = DEFAULT_ACCESS_TOKEN_TTL
    refresh_token_ttl: timedelta = DEFAULT_REFRESH_TOKEN_TTL
    access_cookie_name: str = DEFAULT_ACCESS_COOKIE_NAME
    refresh_cookie_name: str = DEFAULT_REFRESH_COOKIE_NAME
    cookie_path: str = "/"
    cookie_samesite: SameSite = "Lax"
    cookie_secure: bool = True
    cookie_httponly: bool = True
    algorithm: str = DEFAULT_JWT_ALGORITHM

    @classmethod
    def load(cls, app=None) -> "AuthSettings":
        """Read ``AUTH_SECRET``/``AUTH_COOKIE_SECURE`` from Flask, then env."""

        app = app or _try_get_current_app()
        config = app.config if app else {}

        secret = config.get("AUTH_SECRET") or os.environ.get(
            "PANTRY_AUTH_SECRET"
        )
        if not secret:
            raise RuntimeError("PANTRY_AUTH_SECRET is not configured")

        cookie_secure = config.get("AUTH_COOKIE_SECURE")
        if cookie_secure is None:
            raw = (os.environ.get("PANTRY_AUTH_COOKIE_SECURE") or "").strip()
            cookie_secure = not raw or raw.lower() not in _FALSE_STRINGS

        return cls(secret=secret, cookie_secure=bool(cookie_secure))

    def cookie_name(self, token_type: TokenType) -> str:
        if token_type == "access":
            return self.access_cookie_name
        return self.refresh_cookie_name

    def ttl(self, token_type: TokenType) -> timedelta:
        if token_type == "access":
            return self.access_token_ttl
        return self.refresh_token_ttl


@dataclass(frozen=True)
class SessionTokens:
    """Access and refresh JWTs minted together for one sign-in."""

    access_token: str
    refresh_token: str
    access_expires_at: datetime
    refresh_expires_at: datetime
    session_id: str

    def token(self, token_type: TokenType) -> str:
        if token_type == "access":
            return self.access_token
        return self.refresh_token

    def expires_at(self, token_type: TokenType) -> datetime:
        if token_type == "access":
            return self.access_expires_at
        return self.refresh_expires_at


def issue_session_tokens(
    user_id: uuid.UUID | str,
    settings: AuthSettings | None = None,
    session_id: str | None = None,
) -> SessionTokens:
    """Mint an access/refresh pair for ``user_id``.

    Both tokens carry the same ``sid`` claim so a refresh can be traced back
    to the sign-in that created it.
    """

    settings = settings or AuthSettings.load()
    issued_at = datetime.now(timezone.utc)
    sid = session_id or uuid.uuid4().hex

    access_expires_at = issued_at + settings.access_token_ttl
    refresh_expires_at = issued_at + settings.refresh_token_ttl

    return SessionTokens(
        access_token=_encode(
            settings, user_id, "access", sid, issued_at, access_expires_at
        ),
        refresh_token=_encode(
            settings, user_id, "refresh", sid, issued_at, refresh_expires_at
        ),
        access_expires_at=access_expires_at,
        refresh_expires_at=refresh_expires_at,
        session_id=sid,
    )


def decode_token(
    token: str,
    settings: AuthSettings | None = None,
    expected_type: TokenType | None = None,
) -> dict[str, Any]:
    """Verify a JWT and return its claims.

    Raises ``jwt.InvalidTokenError`` subclasses for bad signatures or expiry,
    and ``ValueError`` when the token is of the wrong type.
    """

    settings = settings or AuthSettings.load()
    claims = jwt.decode(token, settings.secret, algorithms=[settings.algorithm])
    if expected_type and claims.get("type") != expected_type:
        raise ValueError(
            f"unexpected token type {claims.get('type')!r}; "
            f"expected {expected_type!r}"
        )
    return claims


def set_session_cookies(
    response: Response,
    tokens: SessionTokens,
    settings: AuthSettings | None = None,
) -> None:
    """Store both tokens on ``response`` as HttpOnly cookies."""

    settings = settings or AuthSettings.load()
    token_type: TokenType
    for token_type in ("access", "refresh"):
        response.set_cookie(
            settings.cookie_name(token_type),
            tokens.token(token_type),
            max_age=int(settings.ttl(token_type).total_seconds()),
            expires=tokens.expires_at(token_type),
            path=settings.cookie_path,
            secure=settings.cookie_secure,
            httponly=settings.cookie_httponly,
            samesite=settings.cookie_samesite,
        )


def clear_session_cookies(
    response: Response, settings: AuthSettings | None = None
) -> None:
    """Expire both session cookies (sign-out)."""

    settings = settings or AuthSettings.load()
    for name in (settings.access_cookie_name, settings.refresh_cookie_name):
        response.delete_cookie(
            name,
            path=settings.cookie_path,
            samesite=settings.cookie_samesite,
            secure=settings.cookie_secure,
            httponly=settings.cookie_httponly,
        )


def _encode(
    settings: AuthSettings,
    user_id: uuid.UUID | str,
    token_type: TokenType,
    session_id: str,
    issued_at: datetime,
    expires_at: datetime,
) -> str:
    claims = {
        "sub": str(user_id),
        "type": token_type,
        "sid": session_id,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(claims, settings.secret, algorithm=settings.algorithm)


def _try_get_current_app():
    try:
        return current_app._get_current_object()
    except RuntimeError:
        return None
