"""Photo-based item recognition: image intake, model call and result parsing."""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import asdict, dataclass

from werkzeug.datastructures import FileStorage

from pantry_backend.config import VISION_PROMPT
from pantry_backend.services.inventory import MAX_QUANTITY
from pantry_backend.services.llm import VisionLLMClient
from pantry_backend.services.normalization import normalize_item_type

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 20 * 1024 * 1024
ALLOWED_IMAGE_TYPES = ("image/png", "image/jpeg", "image/gif", "image/webp")
UNSUPPORTED_FORMAT_MESSAGE = (
    "Unsupported image format. Please upload a PNG, JPEG, GIF, or WEBP image."
)
IMAGE_TOO_LARGE_MESSAGE = (
    "Image size exceeds 20 MB. Please upload a smaller image."
)

_MIME_ALIASES = {"image/jpg": "image/jpeg", "image/pjpeg": "image/jpeg"}


class InvalidImageError(ValueError):
    """Raised when an image payload is missing, malformed or unsupported."""


@dataclass(slots=True)
class EncodedImage:
    """A validated image ready to be sent to the vision model."""

    mime_type: str
    data_uri: str
    size_bytes: int


@dataclass(slots=True)
class VisionSuggestion:
    """An item type and count read from a photo."""

    type: str
    quantity: int

    def as_dict(self) -> dict[str, object]:
        return asdict(self)


def sniff_image_type(image_bytes: bytes) -> str | None:
    """Identify the image format from its magic bytes."""

    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return None


def _encode(image_bytes: bytes, mime_type: str | None) -> EncodedImage:
    if not image_bytes:
        raise InvalidImageError("image is empty")

    mime = _MIME_ALIASES.get(mime_type or "", mime_type) or sniff_image_type(
        image_bytes
    )
    if mime not in ALLOWED_IMAGE_TYPES:
        raise InvalidImageError(UNSUPPORTED_FORMAT_MESSAGE)
    if len(image_bytes) > MAX_IMAGE_BYTES:
        raise InvalidImageError(IMAGE_TOO_LARGE_MESSAGE)

    encoded = base64.b64encode(image_bytes).decode("ascii")
    return EncodedImage(
        mime_type=mime,
        data_uri=f"data:{mime};base64,{encoded}",
        size_bytes=len(image_bytes),
    )


def decode_image_payload(base64_image: object) -> EncodedImage:
    """Validate a ``data:`` URI or bare base64 string from a JSON body."""

    if not isinstance(base64_image, str) or not base64_image.strip():
        raise InvalidImageError("base64_image is required")

    payload = base64_image.strip()
    mime_type: str | None = None
    if payload.startswith("data:"):
        header, _, payload = payload.partition(",")
        params = header[len("data:") :].split(";")
        if "base64" not in params[1:]:
            raise InvalidImageError("base64_image must be base64 encoded")
        mime_type = params[0].strip().lower() or None

    try:
        image_bytes = base64.b64decode("".join(payload.split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidImageError("base64_image is not valid base64") from exc

    return _encode(image_bytes, mime_type)


def encode_image_upload(image_file: FileStorage) -> EncodedImage:
    """Validate a multipart upload and turn it into a data URI."""

    if image_file.filename == "":
        raise InvalidImageError("empty filename")

    image_bytes = image_file.read()
    if not image_bytes:
        raise InvalidImageError("uploaded file was empty")

    mime_type = (image_file.mimetype or "").lower()
    if mime_type in ("", "application/octet-stream"):
        mime_type = None
    return _encode(image_bytes, mime_type)


def analyze_pantry_image(client: VisionLLMClient, image: EncodedImage) -> str:
    """Ask the vision model for a ``type,quantity`` description of ``image``."""

    logger.info(
        "requesting vision analysis",
        extra={"mime_type": image.mime_type, "size_bytes": image.size_bytes},
    )
    result = client.analyze_image(image_url=image.data_uri, prompt=VISION_PROMPT)
    return result.raw_text


def _parse_count(value: str) -> int | None:
    candidate = value.strip().rstrip(".").strip()
    if not candidate:
        return None
    try:
        quantity = int(candidate)
    except ValueError:
        try:
            quantity = int(float(candidate))
        except (ValueError, OverflowError):
            return None
    if quantity < 0 or quantity > MAX_QUANTITY:
        return None
    return quantity


def parse_vision_result(text: str | None) -> VisionSuggestion | None:
    """Split ``"type,quantity"`` model output into a suggestion.

    The last comma separates the count so types may contain commas. Returns
    ``None`` when either half is missing or the count is not a number.
    """

    stripped = (text or "").strip()
    if not stripped:
        return None

    raw_type, separator, raw_quantity = stripped.splitlines()[0].rpartition(",")
    if not separator:
        return None

    item_type = normalize_item_type(raw_type)
    quantity = _parse_count(raw_quantity)
    if not item_type or quantity is None:
        return None
    return VisionSuggestion(type=item_type, quantity=quantity)
