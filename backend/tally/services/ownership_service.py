"""
Ownership Service: per-user tenant validation helpers.

Every Material, Order, Product and Design belongs to exactly one user.
IDs arriving from client input must be checked against the caller before
they are read, written or linked. A row owned by someone else is reported
exactly like a missing row so its existence is never revealed.

USAGE:
    from tally.services.ownership_service import require_owned

    material = require_owned(Material, material_id, g.user_id)
"""

from flask import current_app

from ..extensions import db


class OwnershipError(Exception):
    """Raised when an entity is missing or belongs to another user."""
    pass


def _entity_label(model) -> str:
    return model.__name__


def require_owned(model, entity_id: int, user_id: int, *, active_only: bool = False):
    """
    Load one entity and confirm it belongs to user_id.

    Raises OwnershipError("<Model> not found") otherwise.
    """
    query = db.session.query(model).filter(model.id == entity_id)
    if active_only and hasattr(model, "is_active"):
        query = query.filter(model.is_active.is_(True))
    entity = query.first()

    if entity is None or entity.user_id != user_id:
        if entity is not None:
            current_app.logger.warning(
                "Cross-user access denied: user=%s %s=%s owner=%s",
                user_id, _entity_label(model), entity_id, entity.user_id,
            )
        raise OwnershipError(f"{_entity_label(model)} not found")

    return entity


def require_all_owned(model, entity_ids: list[int], user_id: int, *, active_only: bool = False) -> dict:
    """
    Batch variant of require_owned.

    Returns {id: entity} for every requested id, or raises
    OwnershipError("One or more <model>s not found").
    """
    if not entity_ids:
        return {}

    query = db.session.query(model).filter(
        model.id.in_(entity_ids),
        model.user_id == user_id,
    )
    if active_only and hasattr(model, "is_active"):
        query = query.filter(model.is_active.is_(True))
    found = {entity.id: entity for entity in query.all()}

    if set(entity_ids) - set(found):
        raise OwnershipError(f"One or more {_entity_label(model).lower()}s not found")

    return found
