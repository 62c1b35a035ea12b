from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Product(db.Model):
    """
    Reusable template for a sellable item.

    Composed of ProductMaterial rows (bill of materials, per one unit) and
    ProductDesign rows (artwork placement, not used for availability).
    Products are soft-deleted via is_active.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_user_active", "user_id", "is_active"),
        db.Index("ix_products_user_category_name", "user_id", "category", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Authoritative storage in cents
    price_cents = db.Column(db.Integer, nullable=True)

    sku = db.Column(db.String(64), nullable=True)
    category = db.Column(db.String(120), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    product_materials = db.relationship(
        "ProductMaterial",
        backref="product",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="ProductMaterial.id",
    )
    product_designs = db.relationship(
        "ProductDesign",
        backref="product",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="ProductDesign.id",
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price_cents": self.price_cents,
            "sku": self.sku,
            "category": self.category,
            "is_active": self.is_active,
            "product_materials": [pm.to_dict() for pm in self.product_materials],
            "product_designs": [pd.to_dict() for pd in self.product_designs],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ProductMaterial(db.Model):
    __tablename__ = "product_materials"
    __table_args__ = (
        db.CheckConstraint("quantity_required >= 1", name="ck_product_materials_quantity_pos"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    material_id = db.Column(db.Integer, db.ForeignKey("materials.id"), nullable=False, index=True)

    # Units of the material consumed by one unit of product
    quantity_required = db.Column(db.Integer, nullable=False, default=1)
    notes = db.Column(db.String(255), nullable=True)

    material = db.relationship("Material")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "material_id": self.material_id,
            "quantity_required": self.quantity_required,
            "notes": self.notes,
            "material": self.material.to_dict(),
        }


class ProductDesign(db.Model):
    __tablename__ = "product_designs"
    __table_args__ = (
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    design_id = db.Column(db.Integer, db.ForeignKey("designs.id"), nullable=False, index=True)

    placement = db.Column(db.String(64), nullable=True)
    size_info = db.Column(db.String(64), nullable=True)
    notes = db.Column(db.String(255), nullable=True)

    design = db.relationship("Design", backref=db.backref("product_designs", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "design_id": self.design_id,
            "placement": self.placement,
            "size_info": self.size_info,
            "notes": self.notes,
            "design": self.design.to_dict(),
        }
