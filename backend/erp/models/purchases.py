from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow

PURCHASE_STATUS_PENDING = "PENDING"
PURCHASE_STATUS_COMPLETED = "COMPLETED"
PURCHASE_STATUS_CANCELLED = "CANCELLED"


class Purchase(db.Model):
    """
    Purchase (incoming invoice) header.

    Every item increments stock through an IN movement written in the same
    transaction as the header (purchase_service.create_purchase).
    """
    __tablename__ = "purchases"
    __table_args__ = (
        db.Index("ix_purchases_partner_created", "partner_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    partner_id = db.Column(db.Integer, db.ForeignKey("partners.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    invoice_number = db.Column(db.String(64), nullable=True)
    invoice_series = db.Column(db.String(16), nullable=True)
    invoice_key = db.Column(db.String(64), nullable=True, index=True)
    issue_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    total_cents = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(16), nullable=False, default=PURCHASE_STATUS_COMPLETED, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    partner = db.relationship("Partner")
    user = db.relationship("User")
    items = db.relationship(
        "PurchaseItem",
        back_populates="purchase",
        order_by="PurchaseItem.position",
        lazy=True,
    )

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "partner_id": self.partner_id,
            "partner_name": self.partner.name if self.partner else None,
            "user_id": self.user_id,
            "invoice_number": self.invoice_number,
            "invoice_series": self.invoice_series,
            "invoice_key": self.invoice_key,
            "issue_date": to_utc_z(self.issue_date),
            "total_cents": self.total_cents,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class PurchaseItem(db.Model):
    __tablename__ = "purchase_items"
    __table_args__ = (
        db.UniqueConstraint("purchase_id", "position", name="uq_purchase_items_purchase_position"),
        db.CheckConstraint("quantity > 0", name="ck_purchase_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    purchase_id = db.Column(db.Integer, db.ForeignKey("purchases.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    position = db.Column(db.Integer, nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)

    purchase = db.relationship("Purchase", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "purchase_id": self.purchase_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "position": self.position,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "total_cents": self.total_cents,
        }
