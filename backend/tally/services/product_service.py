# Overview: Service-layer operations for products; catalog CRUD, buildability and ordering from a product.

"""
Products Service

All operations are scoped to a single owner (user_id).

BUILDABILITY: list_products annotates each active product with can_make and
max_quantity, computed from raw on-hand stock by the availability engine.
Open-order demand is deliberately not netted out here.
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy.orm import selectinload

from ..extensions import db
from ..models import Design, Material, Product, ProductDesign, ProductMaterial
from ..validation import ValidationError
from .availability import ComponentSnapshot, compute_buildability, scale_bill_of_materials
from .order_service import create_order
from .ownership_service import require_owned, require_all_owned

PRODUCT_MUTABLE_FIELDS = {"name", "description", "price_cents", "sku", "category"}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def components_of(product: Product) -> list[ComponentSnapshot]:
    return [
        ComponentSnapshot(
            material_id=pm.material_id,
            quantity_on_hand=pm.material.quantity,
            quantity_required=pm.quantity_required,
        )
        for pm in product.product_materials
    ]


def product_with_availability(product: Product) -> dict:
    data = product.to_dict()
    data.update(compute_buildability(components_of(product)).to_dict())
    return data


def list_products(*, user_id: int, category: str | None = None) -> list[dict]:
    """Active products ordered by category then name, with buildability."""
    query = (
        db.session.query(Product)
        .filter(Product.user_id == user_id, Product.is_active.is_(True))
        .options(
            selectinload(Product.product_materials).selectinload(ProductMaterial.material),
            selectinload(Product.product_designs).selectinload(ProductDesign.design),
        )
        .order_by(
            Product.category.is_(None),
            Product.category.asc(),
            Product.name.asc(),
            Product.id.asc(),
        )
    )
    if category is not None:
        query = query.filter(Product.category == category)

    return [product_with_availability(p) for p in query.all()]


def get_product(*, product_id: int, user_id: int) -> dict:
    product = require_owned(Product, product_id, user_id, active_only=True)
    return product_with_availability(product)


def create_product(
    *,
    patch: dict,
    materials: list[dict],
    designs: list[dict],
    user_id: int,
) -> dict:
    """
    Create product with its bill of materials and design placements.

    Args:
        materials: validated rows of {"material_id", "quantity_required", "notes"?}
        designs: validated rows of {"design_id", "placement"?, "size_info"?, "notes"?}

    Raises:
        OwnershipError: a referenced material/design is missing or not the caller's
    """
    require_all_owned(Material, [m["material_id"] for m in materials], user_id)
    require_all_owned(Design, [d["design_id"] for d in designs], user_id, active_only=True)

    p = Product(user_id=user_id)
    apply_product_patch(p, patch)

    for row in materials:
        p.product_materials.append(ProductMaterial(
            material_id=row["material_id"],
            quantity_required=row["quantity_required"],
            notes=row.get("notes"),
        ))
    for row in designs:
        p.product_designs.append(ProductDesign(
            design_id=row["design_id"],
            placement=row.get("placement"),
            size_info=row.get("size_info"),
            notes=row.get("notes"),
        ))

    db.session.add(p)
    db.session.commit()
    current_app.logger.info("Created product id=%s name=%r", p.id, p.name)
    return product_with_availability(p)


def update_product(*, product_id: int, patch: dict, user_id: int) -> dict:
    p = require_owned(Product, product_id, user_id, active_only=True)
    apply_product_patch(p, patch)
    db.session.commit()
    return product_with_availability(p)


def delete_product(*, product_id: int, user_id: int) -> None:
    """Soft-delete: keeps the row so past references stay intact."""
    p = require_owned(Product, product_id, user_id, active_only=True)
    p.is_active = False
    db.session.commit()


def order_from_product(
    *,
    product_id: int,
    quantity: int,
    user_id: int,
    order_name: str | None = None,
    priority: int | None = 0,
    due_date=None,
) -> dict:
    """
    Create an order whose lines are the product's bill of materials times quantity.

    Raises:
        OwnershipError: product missing or owned by another user
        ValidationError: quantity < 1 or product has no materials
    """
    if quantity < 1:
        raise ValidationError("Valid quantity is required")

    p = require_owned(Product, product_id, user_id, active_only=True)
    components = components_of(p)
    if not components:
        raise ValidationError("Product has no materials defined")

    items = [
        {"material_id": material_id, "quantity_needed": needed}
        for material_id, needed in scale_bill_of_materials(components, quantity)
    ]
    return create_order(
        name=order_name or f"{p.name} ({quantity} units)",
        items=items,
        user_id=user_id,
        priority=priority,
        due_date=due_date,
    )
