"""Shared fixtures for the API and service tests."""

from __future__ import annotations

import base64

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pantry_backend import create_app
from pantry_backend.models import Base
from pantry_backend.services.llm import LLMResult

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
PNG_DATA_URI = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode(
    "ascii"
)


def build_sessionmaker() -> sessionmaker:
    """Return a session factory bound to a fresh in-memory SQLite database."""

    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


class StubTextClient:
    def __init__(self, reply: str = "Scrambled eggs", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    def run_prompt(self, *, prompt: str) -> LLMResult:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return LLMResult(raw_text=self.reply)


class StubVisionClient:
    def __init__(self, reply: str = "Apples,3", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.calls: list[tuple[str, str]] = []

    def analyze_image(self, *, image_url: str, prompt: str) -> LLMResult:
        self.calls.append((image_url, prompt))
        if self.error is not None:
            raise self.error
        return LLMResult(raw_text=self.reply)


def build_test_app(*, text_client=None, vision_client=None, with_database=True):
    app = create_app()
    app.config.update(
        TESTING=True,
        AUTH_SECRET="test-secret",
        AUTH_COOKIE_SECURE=False,
    )
    for key in ("db_engine", "db_sessionmaker", "text_llm_client", "vision_llm_client"):
        app.extensions.pop(key, None)

    if with_database:
        app.extensions["db_sessionmaker"] = build_sessionmaker()
    if text_client is not None:
        app.extensions["text_llm_client"] = text_client
    if vision_client is not None:
        app.extensions["vision_llm_client"] = vision_client
    return app


def sign_up(client, email: str = "cook@example.com", password: str = "hunter22"):
    response = client.post(
        "/api/auth/signup", json={"email": email, "password": password}
    )
    assert response.status_code == 201, response.get_json()
    return response
