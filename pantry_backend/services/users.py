"""Account creation and password sign-in."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from pantry_backend.models import User


class UserExistsError(RuntimeError):
    """Raised when signing up with an email that already has an account."""


class InvalidCredentialsError(RuntimeError):
    """Raised when the email/password pair does not match an account."""


def normalize_email(value) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip().lower()
    return value or None


def find_user_by_email(session: Session, email: str) -> User | None:
    return session.scalar(select(User).where(func.lower(User.email) == email))


def create_user(
    session: Session,
    *,
    email,
    password,
    name: str | None = None,
) -> User:
    """Register a new account and flush it so it has an id."""

    normalized = normalize_email(email)
    if not normalized or not isinstance(password, str) or not password:
        raise ValueError("email and password are required")

    if find_user_by_email(session, normalized) is not None:
        raise UserExistsError("user already exists")

    user = User(
        email=normalized,
        password_hash=generate_password_hash(password),
        name=name,
    )
    session.add(user)
    session.flush()
    return user


def authenticate_user(session: Session, *, email, password) -> User:
    """Return the account for valid credentials and stamp ``last_login_at``."""

    normalized = normalize_email(email)
    if not normalized or not isinstance(password, str) or not password:
        raise ValueError("email and password are required")

    user = find_user_by_email(session, normalized)
    if user is None or not check_password_hash(user.password_hash, password):
        raise InvalidCredentialsError("invalid credentials")

    user.last_login_at = datetime.now(timezone.utc)
    session.flush()
    return user
