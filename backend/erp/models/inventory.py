from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow

MOVEMENT_IN = "IN"
MOVEMENT_OUT = "OUT"

MOVEMENT_TYPES = (MOVEMENT_IN, MOVEMENT_OUT)


class StockMovement(db.Model):
    """
    Append-only audit record of one stock change.

    - quantity is always positive; direction comes from type.
    - reference_id links back to the originating sale/purchase (None for
      manual adjustments); reference_type says which table it points at.
    - Rows are never updated or deleted.
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_stock_movements_quantity_positive"),
        db.Index("ix_stock_movements_product_created", "product_id", "created_at"),
        db.Index("ix_stock_movements_reference", "reference_type", "reference_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    type = db.Column(db.String(8), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(255), nullable=False)

    reference_type = db.Column(db.String(16), nullable=True)
    reference_id = db.Column(db.Integer, nullable=True)

    # Stock counter right after this movement was applied
    balance_after = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    product = db.relationship("Product", backref=db.backref("movements", lazy=True))
    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "product_sku": self.product.sku if self.product else None,
            "user_id": self.user_id,
            "user_name": self.user.name if self.user else None,
            "type": self.type,
            "quantity": self.quantity,
            "reason": self.reason,
            "reference_type": self.reference_type,
            "reference_id": self.reference_id,
            "balance_after": self.balance_after,
            "created_at": to_utc_z(self.created_at),
        }
