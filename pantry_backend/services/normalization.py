"""Canonical spelling for item types suggested by the vision model."""

from __future__ import annotations

import re
from typing import cast

import inflect
from inflect import Word

_NON_ALNUM_SPACE = re.compile(r"[^a-z0-9 ]+")
_COLLAPSE_SPACES = re.compile(r"\s+")
_INFLECT_ENGINE = inflect.engine()


def normalize_item_type(raw_type: str) -> str:
    """Lowercase, strip punctuation and singularize the trailing noun.

    ``"Green-Apples!"`` becomes ``"green apple"``.
    """

    cleaned = raw_type.lower().replace("_", " ").replace("-", " ")
    cleaned = _NON_ALNUM_SPACE.sub("", cleaned)
    cleaned = _COLLAPSE_SPACES.sub(" ", cleaned).strip()
    if not cleaned:
        return cleaned

    *head, last = cleaned.split(" ")
    singular = _INFLECT_ENGINE.singular_noun(cast(Word, last)) or last
    return " ".join([*head, str(singular)])
