from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

PARTNER_CLIENT = "CLIENT"
PARTNER_SUPPLIER = "SUPPLIER"

PARTNER_TYPES = (PARTNER_CLIENT, PARTNER_SUPPLIER)

ADDRESS_FIELDS = ("zip_code", "street", "number", "complement", "neighborhood", "city", "state")


class Partner(db.Model):
    """Clients and suppliers. CPF/CNPJ lives in document."""
    __tablename__ = "partners"
    __table_args__ = (
        db.Index("ix_partners_type_name", "type", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(16), nullable=False, default=PARTNER_CLIENT)

    name = db.Column(db.String(255), nullable=False)
    fantasy_name = db.Column(db.String(255), nullable=True)
    document = db.Column(db.String(32), nullable=True, index=True)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    mobile = db.Column(db.String(32), nullable=True)

    # State / municipal registrations
    ie = db.Column(db.String(32), nullable=True)
    im = db.Column(db.String(32), nullable=True)

    zip_code = db.Column(db.String(16), nullable=True)
    street = db.Column(db.String(255), nullable=True)
    number = db.Column(db.String(16), nullable=True)
    complement = db.Column(db.String(128), nullable=True)
    neighborhood = db.Column(db.String(128), nullable=True)
    city = db.Column(db.String(128), nullable=True)
    state = db.Column(db.String(2), nullable=True)

    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "fantasy_name": self.fantasy_name,
            "document": self.document,
            "email": self.email,
            "phone": self.phone,
            "mobile": self.mobile,
            "ie": self.ie,
            "im": self.im,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        for field in ADDRESS_FIELDS:
            data[field] = getattr(self, field)
        return data
