"""Turn a pantry snapshot into a recipe suggestion."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from pantry_backend.config import RECIPE_PROMPT_TEMPLATE
from pantry_backend.services.llm import TextLLMClient

PANTRY_ITEMS_REQUIRED = (
    "pantry_items is required and should be a non-empty array"
)


def _format_field(value: Any) -> str:
    return "" if value is None else str(value)


def format_pantry_items(items: Sequence[Mapping[str, Any]]) -> str:
    """Render items as ``type,quantity`` pairs separated by ``"; "``."""

    return "; ".join(
        f"{_format_field(item.get('type'))},{_format_field(item.get('quantity'))}"
        for item in items
    )


def build_recipe_prompt(items: Sequence[Mapping[str, Any]]) -> str:
    return RECIPE_PROMPT_TEMPLATE.format(pantry_items=format_pantry_items(items))


def validate_pantry_items(items: object) -> list[Mapping[str, Any]]:
    if not isinstance(items, list) or not items:
        raise ValueError(PANTRY_ITEMS_REQUIRED)
    if not all(isinstance(item, Mapping) for item in items):
        raise ValueError("each pantry item must be an object")
    return items


def generate_recipe(client: TextLLMClient, items: object) -> str:
    """Ask the text model for one recipe using some of ``items``."""

    pantry_items = validate_pantry_items(items)
    result = client.run_prompt(prompt=build_recipe_prompt(pantry_items))
    return result.raw_text
