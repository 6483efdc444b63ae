"""Client helpers for the hosted text and vision models."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from openai import APIConnectionError, APITimeoutError, OpenAI
from openai.types.responses import Response

logger = logging.getLogger(__name__)


@dataclass
class LLMSettings:
    """Configuration required to talk to one model."""

    api_key: str
    model: str
    max_output_tokens: Optional[int] = None
    system_prompt: Optional[str] = None


@dataclass(slots=True)
class LLMResult:
    """Text returned by the model."""

    raw_text: str


class LLMEmptyResponseError(RuntimeError):
    """Raised when the model answers with no text at all."""


class _ResponsesClient:
    """Shared plumbing around the OpenAI Responses API."""

    def __init__(self, settings: LLMSettings, client: OpenAI | None = None) -> None:
        self._settings = settings
        self._client = client or OpenAI(api_key=settings.api_key)

    @property
    def model(self) -> str:
        return self._settings.model

    def _create(self, user_content: list[dict[str, Any]]) -> LLMResult:
        messages: list[dict[str, Any]] = []
        if self._settings.system_prompt:
            messages.append(
                {
                    "role": "system",
                    "content": [
                        {
                            "type": "input_text",
                            "text": self._settings.system_prompt,
                        }
                    ],
                }
            )
        messages.append({"role": "user", "content": user_content})

        params: dict[str, Any] = {
            "model": self._settings.model,
            "input": messages,
        }
        if self._settings.max_output_tokens:
            params["max_output_tokens"] = self._settings.max_output_tokens

        try:
            response: Response = self._client.responses.create(**params)
        except APITimeoutError as e:
            logger.error("OpenAI / HTTP timeout: %r", e)
            raise
        except APIConnectionError as e:
            logger.error("OpenAI / HTTP network error: %r", e)
            raise
        except Exception:
            logger.exception("OpenAI response error")
            raise

        output_text = (response.output_text or "").strip()
        if not output_text:
            raise LLMEmptyResponseError("No response from OpenAI")
        return LLMResult(raw_text=output_text)


class VisionLLMClient(_ResponsesClient):
    """Send an image plus an instruction to a vision-capable model."""

    def analyze_image(self, *, image_url: str, prompt: str) -> LLMResult:
        """``image_url`` is usually a ``data:`` URI carrying base64 bytes."""

        if not image_url:
            raise ValueError("image_url is empty")
        if not (prompt or "").strip():
            raise ValueError("prompt is required")

        return self._create(
            [
                {"type": "input_text", "text": prompt.strip()},
                {"type": "input_image", "image_url": image_url},
            ]
        )


class TextLLMClient(_ResponsesClient):
    """Minimal client for text-only prompts."""

    def run_prompt(self, *, prompt: str) -> LLMResult:
        user_text = (prompt or "").strip()
        if not user_text:
            raise ValueError("prompt is required")

        return self._create([{"type": "input_text", "text": user_text}])


def init_vision_llm_client(settings: LLMSettings) -> VisionLLMClient:
    """Create a ``VisionLLMClient`` instance from the provided settings."""

    return VisionLLMClient(settings)


def init_text_llm_client(settings: LLMSettings) -> TextLLMClient:
    """Create a ``TextLLMClient`` instance from the provided settings."""

    return TextLLMClient(settings)
