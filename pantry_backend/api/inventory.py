"""Pantry inventory endpoints for the signed-in user.

Every mutation answers with the refreshed inventory under ``items`` so a
client can redraw its list without a second round trip.
"""

from __future__ import annotations

import uuid

from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from pantry_backend.api.ai import read_request_image
from pantry_backend.api.deps import (
    get_db_session,
    get_text_llm_client,
    get_vision_llm_client,
)
from pantry_backend.services.inventory import (
    InvalidItemError,
    ItemNotFoundError,
    add_item_to_inventory,
    edit_item_in_inventory,
    filter_items,
    get_user_inventory,
    parse_item_date,
    remove_item_from_inventory,
    serialize_item,
)
from pantry_backend.services.recipes import generate_recipe
from pantry_backend.services.vision import (
    InvalidImageError,
    analyze_pantry_image,
    parse_vision_result,
)

bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@bp.get("")
def list_items():
    """Return the user's items, optionally filtered by ``?search=``."""

    try:
        session = get_db_session()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    user_id = g.user_id

    try:
        items = get_user_inventory(session, user_id)
    except SQLAlchemyError:
        current_app.logger.exception(
            "failed to load inventory", extra={"user_id": str(user_id)}
        )
        return jsonify(error="failed to load inventory"), 500
    finally:
        session.close()

    return jsonify(items=filter_items(items, request.args.get("search")))


@bp.post("")
def add_item():
    """Add stock; an existing row with the same type absorbs the quantity."""

    payload = request.get_json(silent=True) or {}

    try:
        session = get_db_session()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    user_id = g.user_id

    try:
        result = add_item_to_inventory(
            session,
            user_id,
            payload.get("date"),
            payload.get("type"),
            payload.get("quantity"),
        )
        session.commit()
        item = serialize_item(result.item)
        items = get_user_inventory(session, user_id)
    except InvalidItemError as exc:
        session.rollback()
        return jsonify(error=str(exc)), 400
    except SQLAlchemyError:
        session.rollback()
        current_app.logger.exception(
            "failed to add inventory item", extra={"user_id": str(user_id)}
        )
        return jsonify(error="failed to add item"), 500
    finally:
        session.close()

    return (
        jsonify(item=item, merged=result.merged, items=items),
        200 if result.merged else 201,
    )


@bp.put("/<uuid:item_id>")
def edit_item(item_id: uuid.UUID):
    """Overwrite an item's type and quantity."""

    payload = request.get_json(silent=True) or {}

    try:
        session = get_db_session()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    user_id = g.user_id

    try:
        updated = edit_item_in_inventory(
            session,
            user_id,
            item_id,
            payload.get("type"),
            payload.get("quantity"),
        )
        session.commit()
        item = serialize_item(updated)
        items = get_user_inventory(session, user_id)
    except InvalidItemError as exc:
        session.rollback()
        return jsonify(error=str(exc)), 400
    except ItemNotFoundError:
        session.rollback()
        return jsonify(error="item not found"), 404
    except SQLAlchemyError:
        session.rollback()
        current_app.logger.exception(
            "failed to update inventory item",
            extra={"user_id": str(user_id), "item_id": str(item_id)},
        )
        return jsonify(error="failed to update item"), 500
    finally:
        session.close()

    return jsonify(item=item, items=items)


@bp.delete("/<uuid:item_id>")
def delete_item(item_id: uuid.UUID):
    try:
        session = get_db_session()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    user_id = g.user_id

    try:
        remove_item_from_inventory(session, user_id, item_id)
        session.commit()
        items = get_user_inventory(session, user_id)
    except ItemNotFoundError:
        session.rollback()
        return jsonify(error="item not found"), 404
    except SQLAlchemyError:
        session.rollback()
        current_app.logger.exception(
            "failed to remove inventory item",
            extra={"user_id": str(user_id), "item_id": str(item_id)},
        )
        return jsonify(error="failed to remove item"), 500
    finally:
        session.close()

    return jsonify(status="ok", items=items)


@bp.post("/photo")
def add_item_from_photo():
    """Recognize the pictured item and add it to the pantry."""

    payload = request.get_json(silent=True) or {}

    try:
        session = get_db_session()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    user_id = g.user_id

    try:
        try:
            llm_client = get_vision_llm_client()
        except RuntimeError as exc:
            return jsonify(error=str(exc)), 503

        try:
            item_date = parse_item_date(payload.get("date"))
            image = read_request_image()
        except (InvalidItemError, InvalidImageError) as exc:
            return jsonify(error=str(exc)), 400

        try:
            raw_result = analyze_pantry_image(llm_client, image)
        except Exception:
            current_app.logger.exception(
                "vision LLM invocation failed", extra={"user_id": str(user_id)}
            )
            return jsonify(error="failed to query vision model"), 502

        suggestion = parse_vision_result(raw_result)
        if suggestion is None:
            current_app.logger.warning(
                "unparseable vision result", extra={"result": raw_result[:200]}
            )
            return (
                jsonify(
                    error="could not read an item type and quantity from the image",
                    result=raw_result,
                ),
                502,
            )

        try:
            result = add_item_to_inventory(
                session, user_id, item_date, suggestion.type, suggestion.quantity
            )
            session.commit()
            item = serialize_item(result.item)
            items = get_user_inventory(session, user_id)
        except InvalidItemError as exc:
            session.rollback()
            return jsonify(error=str(exc)), 400
        except SQLAlchemyError:
            session.rollback()
            current_app.logger.exception(
                "failed to add recognized item", extra={"user_id": str(user_id)}
            )
            return jsonify(error="failed to add item"), 500
    finally:
        session.close()

    return (
        jsonify(
            item=item,
            merged=result.merged,
            result=raw_result,
            items=items,
        ),
        200 if result.merged else 201,
    )


@bp.post("/recipe")
def recipe_from_inventory():
    """Suggest a recipe from everything currently in the user's pantry."""

    try:
        session = get_db_session()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    user_id = g.user_id

    try:
        items = get_user_inventory(session, user_id)
    except SQLAlchemyError:
        current_app.logger.exception("failed to load pantry inventory")
        return jsonify(error="failed to load pantry inventory"), 500
    finally:
        session.close()

    if not items:
        return jsonify(error="pantry is empty", items=[]), 404

    try:
        llm_client = get_text_llm_client()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    try:
        recipes = generate_recipe(llm_client, items)
    except Exception:
        current_app.logger.exception("recipe LLM invocation failed")
        return jsonify(error="failed to query recipe model"), 502

    return jsonify(recipes=recipes, items=items)
