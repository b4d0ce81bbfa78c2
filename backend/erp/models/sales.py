from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow

SALE_STATUS_PENDING = "PENDING"
SALE_STATUS_COMPLETED = "COMPLETED"
SALE_STATUS_CANCELLED = "CANCELLED"

SALE_STATUSES = (SALE_STATUS_PENDING, SALE_STATUS_COMPLETED, SALE_STATUS_CANCELLED)

PAYMENT_CASH = "CASH"
PAYMENT_CREDIT_CARD = "CREDIT_CARD"
PAYMENT_DEBIT_CARD = "DEBIT_CARD"
PAYMENT_PIX = "PIX"

PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_CREDIT_CARD, PAYMENT_DEBIT_CARD, PAYMENT_PIX)


class Sale(db.Model):
    """
    Sale document header.

    total_cents is fixed at creation and equals the sum of its items'
    total_cents. Header, items and the matching OUT movements are written
    in one transaction by sales_service.create_sale.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    partner_id = db.Column(db.Integer, db.ForeignKey("partners.id"), nullable=True, index=True)

    payment_method = db.Column(db.String(16), nullable=False, default=PAYMENT_CASH)
    total_cents = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(16), nullable=False, default=SALE_STATUS_COMPLETED, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    user = db.relationship("User")
    partner = db.relationship("Partner")
    items = db.relationship(
        "SaleItem",
        back_populates="sale",
        order_by="SaleItem.position",
        lazy=True,
    )

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": self.user.name if self.user else None,
            "partner_id": self.partner_id,
            "partner_name": self.partner.name if self.partner else None,
            "payment_method": self.payment_method,
            "total_cents": self.total_cents,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    __tablename__ = "sale_items"
    __table_args__ = (
        db.UniqueConstraint("sale_id", "position", name="uq_sale_items_sale_position"),
        db.CheckConstraint("quantity > 0", name="ck_sale_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    # 1-based order of the line as submitted
    position = db.Column(db.Integer, nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)

    sale = db.relationship("Sale", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "position": self.position,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "total_cents": self.total_cents,
        }
