"""Public proxy endpoints for recipe generation and photo recognition."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from pantry_backend.api.deps import (
    get_text_llm_client,
    get_vision_llm_client,
    llm_error_response,
)
from pantry_backend.services.recipes import generate_recipe
from pantry_backend.services.vision import (
    EncodedImage,
    analyze_pantry_image,
    decode_image_payload,
    encode_image_upload,
    parse_vision_result,
)

bp = Blueprint("ai", __name__, url_prefix="/api")


def read_request_image() -> EncodedImage:
    """Accept either a multipart ``image`` file or ``{"base64_image": ...}``."""

    if "image" in request.files:
        return encode_image_upload(request.files["image"])
    payload = request.get_json(silent=True) or {}
    return decode_image_payload(payload.get("base64_image"))


@bp.post("/recipe")
def recipe():
    """Generate a recipe from the ``pantry_items`` in the request body."""

    try:
        client = get_text_llm_client()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    payload = request.get_json(silent=True) or {}
    try:
        recipes = generate_recipe(client, payload.get("pantry_items"))
    except Exception as exc:  # surfaced to the caller as {error}
        return llm_error_response(exc, "Error in POST /api/recipe")

    return jsonify(recipes=recipes)


@bp.post("/vision")
def vision():
    """Describe the pictured item as ``type,quantity``."""

    try:
        client = get_vision_llm_client()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    try:
        image = read_request_image()
        result = analyze_pantry_image(client, image)
    except Exception as exc:  # surfaced to the caller as {error}
        return llm_error_response(exc, "Error in POST /api/vision")

    response_payload: dict[str, object] = {"result": result}
    suggestion = parse_vision_result(result)
    if suggestion is not None:
        response_payload["suggestion"] = suggestion.as_dict()
    return jsonify(response_payload)
