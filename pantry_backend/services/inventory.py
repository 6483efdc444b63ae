"""Helpers for reading and mutating a user's pantry items."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, TypedDict

from sqlalchemy import select
from sqlalchemy.orm import Session

from pantry_backend.models import PantryItem

INVALID_DATE_MESSAGE = "Invalid date value"
# Column limits: ``quantity`` is a 32-bit INTEGER, ``type`` a VARCHAR(255).
MAX_QUANTITY = 2**31 - 1
MAX_TYPE_LENGTH = 255


class InventoryItem(TypedDict):
    """JSON-safe view of a pantry row."""

    itemId: str
    date: str
    type: str
    quantity: int


class InvalidItemError(ValueError):
    """Raised when an item's type, quantity or date cannot be accepted."""


class ItemNotFoundError(LookupError):
    """Raised when the user has no item with the requested id."""


@dataclass(slots=True)
class AddItemResult:
    """Outcome of :func:`add_item_to_inventory`."""

    item: PantryItem
    merged: bool


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_item_date(value: object) -> datetime:
    """Coerce ``value`` into an aware UTC datetime.

    ``None`` means "now". Strings must be ISO-8601; a trailing ``Z`` is
    accepted. Anything else raises :class:`InvalidItemError`.
    """

    if value is None:
        return _now()
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, str) and value.strip():
        candidate = value.strip()
        if candidate.endswith(("Z", "z")):
            candidate = candidate[:-1] + "+00:00"
        try:
            return _as_utc(datetime.fromisoformat(candidate))
        except ValueError:
            pass
    raise InvalidItemError(INVALID_DATE_MESSAGE)


def clean_item_type(value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidItemError("type is required")
    cleaned = value.strip()
    if len(cleaned) > MAX_TYPE_LENGTH:
        raise InvalidItemError(
            f"type must be at most {MAX_TYPE_LENGTH} characters"
        )
    return cleaned


def clean_quantity(value: object) -> int:
    """Return ``value`` as a non-negative int.

    Integral floats and numeric strings are accepted; booleans are not.
    """

    quantity: int | None = None
    if isinstance(value, bool):
        quantity = None
    elif isinstance(value, int):
        quantity = value
    elif isinstance(value, float) and value.is_integer():
        quantity = int(value)
    elif isinstance(value, str):
        try:
            quantity = int(value.strip())
        except ValueError:
            quantity = None

    if quantity is None:
        raise InvalidItemError("quantity must be an integer")
    if quantity < 0:
        raise InvalidItemError("quantity must not be negative")
    if quantity > MAX_QUANTITY:
        raise InvalidItemError(f"quantity must not exceed {MAX_QUANTITY}")
    return quantity


def serialize_item(item: PantryItem) -> InventoryItem:
    return {
        "itemId": str(item.id),
        "date": _as_utc(item.date).isoformat(),
        "type": item.type,
        "quantity": int(item.quantity),
    }


def get_user_inventory(
    session: Session, user_id: uuid.UUID
) -> list[InventoryItem]:
    """Return every pantry item owned by ``user_id``, oldest first."""

    rows = session.execute(
        select(PantryItem)
        .where(PantryItem.user_id == user_id)
        .order_by(PantryItem.date.asc(), PantryItem.id.asc())
    ).scalars()
    return [serialize_item(row) for row in rows]


def filter_items(
    items: Iterable[InventoryItem], search_term: str | None
) -> list[InventoryItem]:
    """Case-insensitive substring search over item types."""

    needle = (search_term or "").strip().lower()
    if not needle:
        return list(items)
    return [item for item in items if needle in (item["type"] or "").lower()]


def _find_item(
    session: Session, user_id: uuid.UUID, item_id: uuid.UUID
) -> PantryItem:
    item = session.execute(
        select(PantryItem).where(
            PantryItem.id == item_id, PantryItem.user_id == user_id
        )
    ).scalar_one_or_none()
    if item is None:
        raise ItemNotFoundError(f"item {item_id} not found")
    return item


def add_item_to_inventory(
    session: Session,
    user_id: uuid.UUID,
    date: object,
    type: object,
    quantity: object,
) -> AddItemResult:
    """Insert a pantry item, or top up the existing row with the same type.

    The lookup and the write are two statements, so two concurrent adds of a
    new type can still produce two rows.
    """

    item_date = parse_item_date(date)
    item_type = clean_item_type(type)
    item_quantity = clean_quantity(quantity)

    existing = (
        session.execute(
            select(PantryItem)
            .where(PantryItem.user_id == user_id, PantryItem.type == item_type)
            .order_by(PantryItem.date.asc(), PantryItem.id.asc())
            .limit(1)
        )
        .scalars()
        .first()
    )

    if existing is not None:
        total = int(existing.quantity) + item_quantity
        if total > MAX_QUANTITY:
            raise InvalidItemError(
                f"quantity of {item_type} would exceed {MAX_QUANTITY}"
            )
        existing.quantity = total
        existing.updated_at = _now()
        session.flush()
        return AddItemResult(item=existing, merged=True)

    item = PantryItem(
        user_id=user_id,
        date=item_date,
        type=item_type,
        quantity=item_quantity,
    )
    session.add(item)
    session.flush()
    return AddItemResult(item=item, merged=False)


def remove_item_from_inventory(
    session: Session, user_id: uuid.UUID, item_id: uuid.UUID
) -> None:
    item = _find_item(session, user_id, item_id)
    session.delete(item)
    session.flush()


def edit_item_in_inventory(
    session: Session,
    user_id: uuid.UUID,
    item_id: uuid.UUID,
    type: object,
    quantity: object,
) -> PantryItem:
    """Overwrite an item's type and quantity. Edits never merge rows."""

    new_type = clean_item_type(type)
    new_quantity = clean_quantity(quantity)

    item = _find_item(session, user_id, item_id)
    item.type = new_type
    item.quantity = new_quantity
    item.updated_at = _now()
    session.flush()
    return item
