"""Shared API dependencies and helpers."""

from flask import current_app, jsonify
from openai import APIStatusError
from sqlalchemy.orm import Session, sessionmaker

from pantry_backend.services.llm import TextLLMClient, VisionLLMClient


def get_sessionmaker() -> sessionmaker:
    """Return the configured SQLAlchemy session factory."""

    session_factory: sessionmaker | None = current_app.extensions.get(
        "db_sessionmaker"
    )
    if session_factory is None:
        raise RuntimeError("database session factory is not configured")
    return session_factory


def get_db_session() -> Session:
    """Return a database session scoped to the current request context."""

    return get_sessionmaker()()


def get_vision_llm_client() -> VisionLLMClient:
    client: VisionLLMClient | None = current_app.extensions.get(
        "vision_llm_client"
    )
    if client is None:
        raise RuntimeError("vision LLM client is not configured")
    return client


def get_text_llm_client() -> TextLLMClient:
    client: TextLLMClient | None = current_app.extensions.get("text_llm_client")
    if client is None:
        raise RuntimeError("text LLM client is not configured")
    return client


def llm_error_response(exc: Exception, message: str):
    """Log ``exc`` and relay it as ``{error}``.

    OpenAI status errors keep the upstream status code; everything else is a
    500.
    """

    current_app.logger.exception(message)
    if isinstance(exc, APIStatusError):
        return jsonify(error=exc.message), exc.status_code
    return jsonify(error=str(exc)), 500
