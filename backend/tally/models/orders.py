from __future__ import annotations

from ..extensions import db
from ..services.availability import OrderStatus, order_item_shortage
from ..time_utils import to_utc_z


class Order(db.Model):
    """
    A named unit of customer demand.

    LIFECYCLE: PENDING -> IN_PROGRESS -> COMPLETED, CANCELLED from any open
    state. Only PENDING/IN_PROGRESS orders count toward material demand.

    PRIORITY: 0 normal, 1 high, 2 urgent, NULL means no priority.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_user_status", "user_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)

    status = db.Column(
        db.String(16),
        nullable=False,
        default=OrderStatus.PENDING.value,
        index=True,
    )
    priority = db.Column(db.Integer, nullable=True)
    due_date = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    order_items = db.relationship(
        "OrderItem",
        backref="order",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    @property
    def status_enum(self) -> OrderStatus:
        return OrderStatus(self.status)

    def __repr__(self) -> str:
        return f"<Order id={self.id} name={self.name!r} status={self.status}>"

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "priority": self.priority,
            "due_date": to_utc_z(self.due_date) if self.due_date else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            items = [item.to_dict() for item in self.order_items]
            data["order_items"] = items
            data["shortage_items"] = sum(1 for item in items if item["shortage"] > 0)
            data["has_shortages"] = data["shortage_items"] > 0
        return data


class OrderItem(db.Model):
    __tablename__ = "order_items"
    __table_args__ = (
        db.CheckConstraint("quantity_needed >= 1", name="ck_order_items_quantity_pos"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(
        db.Integer,
        db.ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    material_id = db.Column(db.Integer, db.ForeignKey("materials.id"), nullable=False, index=True)

    quantity_needed = db.Column(db.Integer, nullable=False)

    material = db.relationship("Material", backref=db.backref("order_items", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "material_id": self.material_id,
            "quantity_needed": self.quantity_needed,
            # Per-line shortfall against raw stock, ignoring other orders
            "shortage": order_item_shortage(self.quantity_needed, self.material.quantity),
            "material": self.material.to_dict(),
        }
