# Overview: Flask API routes for materials; parses input and returns JSON responses.

"""
Material routes.

MULTI-TENANT: Every route is scoped to g.user_id (set by @require_auth).
Materials belonging to another user answer 404.
"""
from flask import Blueprint, request, g, current_app

from ..models import Material
from ..services import material_service
from ..services.ownership_service import OwnershipError
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_material,
    ValidationError,
    ConflictError,
)
from ..decorators import require_auth

MATERIAL_POLICY = ModelValidationPolicy(
    writable_fields={"name", "color", "size", "quantity", "pack_size"},
    required_on_create={"name"},
    blank_to_null={"color", "size"},
)

materials_bp = Blueprint("materials", __name__, url_prefix="/api/materials")


@materials_bp.get("")
@require_auth
def list_materials():
    """All of the caller's materials ordered by name, color, size."""
    try:
        return {"materials": material_service.list_materials(user_id=g.user_id)}
    except Exception:
        current_app.logger.exception("Failed to fetch materials")
        return {"error": "Failed to fetch materials"}, 500


@materials_bp.post("")
@require_auth
def create_material():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Material, payload=payload, policy=MATERIAL_POLICY, partial=False)
        enforce_rules_material(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = material_service.create_material(patch=patch, user_id=g.user_id)
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to create material")
        return {"error": "Failed to create material"}, 500

    return {"material": created}, 201


@materials_bp.patch("/<int:material_id>")
@require_auth
def adjust_material(material_id: int):
    """
    Adjust on-hand stock by an integer delta.

    Body: {"delta": int}. Resulting quantity is floored at zero.
    """
    payload = request.get_json(silent=True) or {}

    try:
        updated = material_service.adjust_quantity(
            material_id=material_id,
            delta=payload.get("delta"),
            user_id=g.user_id,
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except OwnershipError:
        return {"error": "Material not found"}, 404
    except Exception:
        current_app.logger.exception("Failed to update material")
        return {"error": "Failed to update material"}, 500

    return {"material": updated}


@materials_bp.get("/requirements")
@require_auth
def material_requirements():
    """
    Materials with total_required, status and shortage derived from open orders.
    """
    try:
        return {"materials": material_service.get_material_requirements(user_id=g.user_id)}
    except Exception:
        current_app.logger.exception("Failed to fetch material requirements")
        return {"error": "Failed to fetch material requirements"}, 500
