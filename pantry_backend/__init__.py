import logging
import os

from flask import Flask, jsonify
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from pantry_backend.api import init_app as init_api
from pantry_backend.config import (
    DEFAULT_RECIPE_MAX_OUTPUT_TOKENS,
    DEFAULT_RECIPE_MODEL,
    DEFAULT_VISION_MAX_OUTPUT_TOKENS,
    DEFAULT_VISION_MODEL,
)
from pantry_backend.models import get_database_url
from pantry_backend.services.llm import (
    LLMSettings,
    init_text_llm_client,
    init_vision_llm_client,
)


def create_app() -> Flask:
    """Application factory for the pantry backend."""
    app = Flask(__name__)

    app.config["AUTH_SECRET"] = os.environ.get("PANTRY_AUTH_SECRET")

    _configure_logging(app)
    _init_database(app)
    _init_llm_clients(app)

    @app.get("/healthz")
    def healthcheck():
        return jsonify(status="ok")

    @app.get("/api/healthz")
    def api_healthcheck():
        return jsonify(status="ok")

    init_api(app)

    return app


def _configure_logging(app: Flask) -> None:
    """Ensure application and root loggers emit INFO-level logs."""

    logging.basicConfig(level=logging.INFO)
    logging.getLogger().setLevel(logging.INFO)
    app.logger.setLevel(logging.INFO)


def _init_database(app: Flask) -> None:
    """Configure the SQLAlchemy session factory for request handlers."""

    try:
        database_url = get_database_url()
    except RuntimeError:
        app.logger.warning(
            "DATABASE_URL not set; inventory and accounts disabled"
        )
        return

    engine = create_engine(database_url, pool_pre_ping=True)
    SessionLocal = sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )
    app.extensions["db_engine"] = engine
    app.extensions["db_sessionmaker"] = SessionLocal


def _init_llm_clients(app: Flask) -> None:
    """Create the vision and recipe clients when an API key is available."""

    llm_api_key = os.environ.get("PANTRY_LLM_API_KEY") or os.environ.get(
        "OPENAI_API_KEY"
    )
    if not llm_api_key:
        app.logger.warning(
            "PANTRY_LLM_API_KEY/OPENAI_API_KEY not set; recipe and vision endpoints disabled"
        )
        return

    vision_model = os.environ.get("PANTRY_VISION_MODEL", DEFAULT_VISION_MODEL)
    recipe_model = os.environ.get("PANTRY_RECIPE_MODEL", DEFAULT_RECIPE_MODEL)

    app.extensions["vision_llm_client"] = init_vision_llm_client(
        LLMSettings(
            api_key=llm_api_key,
            model=vision_model,
            max_output_tokens=DEFAULT_VISION_MAX_OUTPUT_TOKENS,
        )
    )
    app.extensions["text_llm_client"] = init_text_llm_client(
        LLMSettings(
            api_key=llm_api_key,
            model=recipe_model,
            max_output_tokens=DEFAULT_RECIPE_MAX_OUTPUT_TOKENS,
        )
    )
    app.logger.info(
        "LLM clients configured",
        extra={"vision_model": vision_model, "recipe_model": recipe_model},
    )


app = create_app()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=8000)
