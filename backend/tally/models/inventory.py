from __future__ import annotations

import json

from ..extensions import db
from ..time_utils import to_utc_z


class Material(db.Model):
    """
    A stocked blank (e.g. Gildan T-Shirt / Black / M) owned by one user.

    QUANTITY RULES:
    - quantity is on-hand stock and never goes below zero
    - pack_size is the restock pack size; informational only
    - quantity changes only through explicit adjustments, never as a side
      effect of order status changes
    """
    __tablename__ = "materials"
    __table_args__ = (
        db.Index("ix_materials_user_name", "user_id", "name", "color", "size"),
        db.CheckConstraint("quantity >= 0", name="ck_materials_quantity_nonneg"),
        db.CheckConstraint("pack_size >= 1", name="ck_materials_pack_size_pos"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    color = db.Column(db.String(64), nullable=True)
    size = db.Column(db.String(32), nullable=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    pack_size = db.Column(db.Integer, nullable=False, default=24)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    user = db.relationship("User", backref=db.backref("materials", lazy=True))

    def __repr__(self) -> str:
        return f"<Material id={self.id} name={self.name!r} color={self.color!r} size={self.size!r} qty={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "size": self.size,
            "quantity": self.quantity,
            "pack_size": self.pack_size,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Design(db.Model):
    """Artwork that can be placed on products. Only file metadata is stored."""
    __tablename__ = "designs"
    __table_args__ = (
        db.Index("ix_designs_user_active", "user_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    file_url = db.Column(db.String(512), nullable=True)
    file_name = db.Column(db.String(255), nullable=True)
    file_size = db.Column(db.Integer, nullable=True)
    mime_type = db.Column(db.String(128), nullable=True)

    # JSON-encoded list of strings
    tags = db.Column(db.Text, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    @property
    def tag_list(self) -> list[str]:
        if not self.tags:
            return []
        return json.loads(self.tags)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "file_url": self.file_url,
            "file_name": self.file_name,
            "file_size": self.file_size,
            "mime_type": self.mime_type,
            "tags": self.tag_list,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
