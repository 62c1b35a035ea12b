# Overview: Flask API routes for orders; parses input and returns JSON responses.

"""
Order routes.

MULTI-TENANT: Every route is scoped to g.user_id (set by @require_auth).

Listing order: status (PENDING, IN_PROGRESS, COMPLETED, CANCELLED), then
priority descending, then due date ascending (no due date last), then
newest first.
"""
from flask import Blueprint, request, g, current_app

from ..models import Order
from ..services import order_service
from ..services.ownership_service import OwnershipError
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    validate_line_items,
    enforce_rules_order,
    parse_order_status,
    ValidationError,
    ConflictError,
)
from ..decorators import require_auth

ORDER_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "priority", "due_date"},
    required_on_create={"name"},
    blank_to_null={"due_date"},
)

ORDER_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"status", "priority", "due_date"},
    blank_to_null={"due_date"},
)

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.get("")
@require_auth
def list_orders():
    """
    Query params:
    - status: str (optional) - only orders in this status
    """
    status = request.args.get("status")
    try:
        if status is not None:
            status = parse_order_status(status)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        return {"orders": order_service.list_orders(user_id=g.user_id, status=status)}
    except Exception:
        current_app.logger.exception("Failed to fetch orders")
        return {"error": "Failed to fetch orders"}, 500


@orders_bp.get("/summary")
@require_auth
def order_summary():
    """Dashboard counts: open orders by priority band plus per-status totals."""
    try:
        return {"summary": order_service.get_order_summary(user_id=g.user_id)}
    except Exception:
        current_app.logger.exception("Failed to summarize orders")
        return {"error": "Failed to summarize orders"}, 500


@orders_bp.post("")
@require_auth
def create_order():
    """
    Body: {"name", "priority"?, "due_date"?, "order_items": [{"material_id", "quantity_needed"}]}
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Order, payload=payload, policy=ORDER_CREATE_POLICY, partial=False)
        enforce_rules_order(patch)
        items = validate_line_items(
            payload.get("order_items"),
            id_key="material_id",
            qty_key="quantity_needed",
            required=True,
            label="order_items",
        )
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = order_service.create_order(
            name=patch["name"],
            items=items,
            user_id=g.user_id,
            priority=patch.get("priority"),
            due_date=patch.get("due_date"),
        )
    except OwnershipError:
        return {"error": "One or more materials not found"}, 400
    except Exception:
        current_app.logger.exception("Failed to create order")
        return {"error": "Failed to create order"}, 500

    return {"order": created}, 201


@orders_bp.patch("/<int:order_id>")
@require_auth
def update_order(order_id: int):
    """Body: any of {"status", "priority", "due_date"}."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Order, payload=payload, policy=ORDER_UPDATE_POLICY, partial=True)
        enforce_rules_order(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        updated = order_service.update_order(order_id=order_id, patch=patch, user_id=g.user_id)
    except OwnershipError:
        return {"error": "Order not found"}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to update order")
        return {"error": "Failed to update order"}, 500

    return {"order": updated}


@orders_bp.delete("/<int:order_id>")
@require_auth
def delete_order(order_id: int):
    try:
        order_service.delete_order(order_id=order_id, user_id=g.user_id)
    except OwnershipError:
        return {"error": "Order not found"}, 404
    except Exception:
        current_app.logger.exception("Failed to delete order")
        return {"error": "Failed to delete order"}, 500

    return {"success": True}
