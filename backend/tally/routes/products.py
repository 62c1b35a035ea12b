# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product catalog routes.

MULTI-TENANT: Every route is scoped to g.user_id (set by @require_auth).
Referenced materials and designs must belong to the caller.

Each listed product carries can_make / max_quantity computed from current
on-hand stock.
"""
from flask import Blueprint, request, g, current_app

from ..models import Order, Product
from ..services import product_service
from ..services.ownership_service import OwnershipError
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    validate_line_items,
    enforce_rules_order,
    enforce_rules_product,
    coerce_int,
    ValidationError,
)
from ..decorators import require_auth

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "price_cents", "sku", "category"},
    required_on_create={"name"},
    blank_to_null={"description", "sku", "category"},
)

PRODUCT_ORDER_POLICY = ModelValidationPolicy(
    writable_fields={"priority", "due_date"},
    blank_to_null={"due_date"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products():
    """
    Query params:
    - category: str (optional) - only products in this category
    """
    try:
        products = product_service.list_products(
            user_id=g.user_id,
            category=request.args.get("category"),
        )
    except Exception:
        current_app.logger.exception("Failed to fetch products")
        return {"error": "Failed to fetch products"}, 500
    return {"products": products}


@products_bp.get("/<int:product_id>")
@require_auth
def get_product(product_id: int):
    try:
        product = product_service.get_product(product_id=product_id, user_id=g.user_id)
    except OwnershipError:
        return {"error": "Product not found"}, 404
    except Exception:
        current_app.logger.exception("Failed to fetch product")
        return {"error": "Failed to fetch product"}, 500
    return {"product": product}


@products_bp.post("")
@require_auth
def create_product():
    """
    Body: product fields plus
    - materials: [{"material_id", "quantity_required", "notes"?}]
    - designs: [{"design_id", "placement"?, "size_info"?, "notes"?}]
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        materials = validate_line_items(
            payload.get("materials"),
            id_key="material_id",
            qty_key="quantity_required",
            required=False,
            label="materials",
        )
        designs = validate_line_items(
            payload.get("designs"),
            id_key="design_id",
            qty_key="",
            required=False,
            label="designs",
        )
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = product_service.create_product(
            patch=patch,
            materials=materials,
            designs=designs,
            user_id=g.user_id,
        )
    except OwnershipError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to create product")
        return {"error": "Failed to create product"}, 500

    return {"product": created}, 201


@products_bp.patch("/<int:product_id>")
@require_auth
def update_product(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        updated = product_service.update_product(product_id=product_id, patch=patch, user_id=g.user_id)
    except OwnershipError:
        return {"error": "Product not found"}, 404
    except Exception:
        current_app.logger.exception("Failed to update product")
        return {"error": "Failed to update product"}, 500

    return {"product": updated}


@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product(product_id: int):
    """Soft delete (is_active=False)."""
    try:
        product_service.delete_product(product_id=product_id, user_id=g.user_id)
    except OwnershipError:
        return {"error": "Product not found"}, 404
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return {"error": "Failed to delete product"}, 500

    return {"success": True}


@products_bp.post("/<int:product_id>/order")
@require_auth
def order_product(product_id: int):
    """
    Create an order for N units of a product.

    Body: {"quantity": int >= 1, "order_name"?, "priority"?, "due_date"?}
    """
    payload = request.get_json(silent=True) or {}

    try:
        if payload.get("quantity") in (None, ""):
            raise ValidationError("Valid quantity is required")
        quantity = coerce_int("quantity", payload["quantity"])
        if quantity < 1:
            raise ValidationError("Valid quantity is required")
        patch = validate_payload(model=Order, payload=payload, policy=PRODUCT_ORDER_POLICY, partial=True)
        enforce_rules_order(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    order_name = (payload.get("order_name") or "").strip() or None

    try:
        order = product_service.order_from_product(
            product_id=product_id,
            quantity=quantity,
            user_id=g.user_id,
            order_name=order_name,
            priority=patch.get("priority"),
            due_date=patch.get("due_date"),
        )
    except OwnershipError:
        return {"error": "Product not found"}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to create order from product")
        return {"error": "Failed to create order"}, 500

    return {"order": order}, 201
