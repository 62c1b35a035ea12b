# Overview: Flask API routes for designs; parses multipart input and returns JSON responses.

from flask import Blueprint, request, g, current_app

from ..services import design_service
from ..validation import ValidationError
from ..decorators import require_auth

designs_bp = Blueprint("designs", __name__, url_prefix="/api/designs")


@designs_bp.get("")
@require_auth
def list_designs():
    try:
        return {"designs": design_service.list_designs(user_id=g.user_id)}
    except Exception:
        current_app.logger.exception("Failed to fetch designs")
        return {"error": "Failed to fetch designs"}, 500


@designs_bp.post("")
@require_auth
def create_design():
    """
    multipart/form-data: file (required), name (required), description, tags (comma-separated)
    """
    try:
        design = design_service.create_design(
            name=request.form.get("name"),
            file=request.files.get("file"),
            description=request.form.get("description"),
            tags=request.form.get("tags"),
            user_id=g.user_id,
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to create design")
        return {"error": "Failed to create design"}, 500

    return {"design": design}, 201
