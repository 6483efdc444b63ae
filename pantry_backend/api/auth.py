"""Sign-up, sign-in and sign-out endpoints plus the session middleware."""

from __future__ import annotations

import uuid

import jwt
from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from pantry_backend.api.deps import get_sessionmaker
from pantry_backend.models import User
from pantry_backend.services.auth_tokens import (
    AuthSettings,
    TokenType,
    clear_session_cookies,
    decode_token,
    issue_session_tokens,
    set_session_cookies,
)
from pantry_backend.services.users import (
    InvalidCredentialsError,
    UserExistsError,
    authenticate_user,
    create_user,
)

_SKIP_PATH_PREFIXES = ("/api/auth",)
# Recipe and vision proxies are public.
_SKIP_PATHS = {"/healthz", "/api/healthz", "/api/recipe", "/api/vision"}
bp = Blueprint("auth", __name__, url_prefix="/api/auth")


class AuthFailure(Exception):
    """Carries the JSON error response for a rejected request."""

    def __init__(self, message: str, status: int) -> None:
        super().__init__(message)
        self.status = status

    def response(self):
        return jsonify(error=str(self)), self.status


def attach_user_from_access_cookie():
    """Load the signed-in user from the access cookie and attach it to ``g``."""

    path = request.path or ""
    # Unknown routes and wrong methods are reported by Flask itself.
    if request.routing_exception is not None:
        return None
    if not _should_enforce_auth(path):
        return None

    try:
        settings, session_factory = _auth_dependencies()
        user = _load_user_from_cookie(settings, session_factory, "access")
    except AuthFailure as failure:
        return failure.response()

    g.user = user
    g.user_id = user.id
    return None


def _should_enforce_auth(path: str) -> bool:
    if not path.startswith("/api"):
        return False
    if path in _SKIP_PATHS:
        return False
    return not any(path.startswith(prefix) for prefix in _SKIP_PATH_PREFIXES)


@bp.post("/signup")
def signup():
    """Create an account and sign it in."""

    payload = request.get_json(silent=True) or {}

    try:
        settings, session_factory = _auth_dependencies()
    except AuthFailure as failure:
        return failure.response()

    try:
        with session_factory() as session:
            user = create_user(
                session,
                email=payload.get("email"),
                password=payload.get("password"),
                name=payload.get("name"),
            )
            session.commit()
    except ValueError as exc:
        return jsonify(error=str(exc)), 400
    except UserExistsError as exc:
        return jsonify(error=str(exc)), 409
    except SQLAlchemyError:
        current_app.logger.exception("failed to create user")
        return jsonify(error="database failure while creating user"), 500

    current_app.logger.info("user signed up", extra={"user_id": str(user.id)})
    return _signed_in_response(user, settings), 201


@bp.post("/login")
def login():
    """Check credentials and start a new session."""

    payload = request.get_json(silent=True) or {}

    try:
        settings, session_factory = _auth_dependencies()
    except AuthFailure as failure:
        return failure.response()

    try:
        with session_factory() as session:
            user = authenticate_user(
                session,
                email=payload.get("email"),
                password=payload.get("password"),
            )
            session.commit()
    except ValueError as exc:
        return jsonify(error=str(exc)), 400
    except InvalidCredentialsError as exc:
        return jsonify(error=str(exc)), 401
    except SQLAlchemyError:
        current_app.logger.exception("failed to authenticate user")
        return jsonify(error="database failure during login"), 500

    return _signed_in_response(user, settings)


@bp.post("/refresh")
def refresh_tokens():
    """Exchange a valid refresh cookie for a fresh token pair."""

    try:
        settings, session_factory = _auth_dependencies()
        user = _load_user_from_cookie(settings, session_factory, "refresh")
    except AuthFailure as failure:
        return failure.response()

    return _signed_in_response(user, settings)


@bp.post("/logout")
def logout():
    """Sign out by expiring both session cookies."""

    try:
        settings = _load_settings()
    except AuthFailure as failure:
        return failure.response()

    response = jsonify(status="ok")
    clear_session_cookies(response, settings=settings)
    return response


@bp.get("/me")
def get_me():
    """Return the signed-in user's profile."""

    try:
        settings, session_factory = _auth_dependencies()
        user = _load_user_from_cookie(settings, session_factory, "access")
    except AuthFailure as failure:
        return failure.response()

    return jsonify(user=serialize_user(user))


def _signed_in_response(user: User, settings: AuthSettings):
    tokens = issue_session_tokens(user.id, settings=settings)
    response = jsonify(user=serialize_user(user))
    set_session_cookies(response, tokens, settings=settings)
    return response


def _load_settings() -> AuthSettings:
    try:
        return AuthSettings.load()
    except RuntimeError as exc:
        raise AuthFailure(str(exc), 503) from exc


def _auth_dependencies():
    settings = _load_settings()
    try:
        session_factory = get_sessionmaker()
    except RuntimeError as exc:
        raise AuthFailure(str(exc), 503) from exc
    return settings, session_factory


def _load_user_from_cookie(
    settings: AuthSettings, session_factory, token_type: TokenType
) -> User:
    token = request.cookies.get(settings.cookie_name(token_type))
    if not token:
        raise AuthFailure("unauthorized", 401)

    try:
        claims = decode_token(token, settings=settings, expected_type=token_type)
    except jwt.ExpiredSignatureError as exc:
        raise AuthFailure("token expired", 401) from exc
    except (jwt.InvalidTokenError, ValueError) as exc:
        current_app.logger.warning("invalid %s token: %s", token_type, exc)
        raise AuthFailure("unauthorized", 401) from exc

    try:
        user_id = uuid.UUID(str(claims.get("sub")))
    except (TypeError, ValueError) as exc:
        raise AuthFailure("unauthorized", 401) from exc

    try:
        with session_factory() as session:
            user = session.get(User, user_id)
    except SQLAlchemyError as exc:
        current_app.logger.exception("failed to load user for request")
        raise AuthFailure("failed to load user", 500) from exc

    if user is None:
        raise AuthFailure("unauthorized", 401)
    return user


def serialize_user(user: User) -> dict[str, str | None]:
    last_login = (
        user.last_login_at.isoformat() if user.last_login_at else None
    )
    return {
        "id": str(user.id),
        "email": user.email,
        "name": user.name,
        "last_login_at": last_login,
    }
