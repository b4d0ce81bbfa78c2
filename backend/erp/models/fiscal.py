from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow

INVOICE_TYPE_NFE = "NFE"
INVOICE_TYPE_NFCE = "NFCE"
INVOICE_TYPE_NFSE = "NFSE"

INVOICE_TYPES = (INVOICE_TYPE_NFE, INVOICE_TYPE_NFCE, INVOICE_TYPE_NFSE)

INVOICE_STATUS_DRAFT = "DRAFT"
INVOICE_STATUS_PENDING = "PENDING"
INVOICE_STATUS_AUTHORIZED = "AUTHORIZED"
INVOICE_STATUS_REJECTED = "REJECTED"
INVOICE_STATUS_CANCELLED = "CANCELLED"

INVOICE_STATUSES = (
    INVOICE_STATUS_DRAFT,
    INVOICE_STATUS_PENDING,
    INVOICE_STATUS_AUTHORIZED,
    INVOICE_STATUS_REJECTED,
    INVOICE_STATUS_CANCELLED,
)

TAX_REGIMES = ("SIMPLES_NACIONAL", "LUCRO_PRESUMIDO", "LUCRO_REAL")
NFE_ENVIRONMENTS = ("PRODUCAO", "HOMOLOGACAO")


class Invoice(db.Model):
    """
    Fiscal invoice record (NF-e, NFC-e, NFS-e).

    (number, series) identifies the document. key, protocol and
    authorized_at are only filled by an authority response, which this
    backend never receives: transmission just moves DRAFT to PENDING.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.UniqueConstraint("number", "series", name="uq_invoices_number_series"),
        db.Index("ix_invoices_status_type", "status", "type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    number = db.Column(db.String(20), nullable=False)
    series = db.Column(db.String(5), nullable=False, default="1")
    type = db.Column(db.String(8), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=INVOICE_STATUS_DRAFT)

    partner_id = db.Column(db.Integer, db.ForeignKey("partners.id"), nullable=False, index=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True, index=True)

    amount_cents = db.Column(db.Integer, nullable=False)

    key = db.Column(db.String(44), nullable=True)
    protocol = db.Column(db.String(64), nullable=True)

    issue_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    authorized_at = db.Column(db.DateTime(timezone=True), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    partner = db.relationship("Partner")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "number": self.number,
            "series": self.series,
            "type": self.type,
            "status": self.status,
            "partner_id": self.partner_id,
            "partner_name": self.partner.name if self.partner else None,
            "sale_id": self.sale_id,
            "amount_cents": self.amount_cents,
            "key": self.key,
            "protocol": self.protocol,
            "issue_date": to_utc_z(self.issue_date),
            "authorized_at": to_utc_z(self.authorized_at),
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class CompanySettings(db.Model):
    """Issuer data for fiscal documents. At most one row exists."""
    __tablename__ = "company_settings"

    id = db.Column(db.Integer, primary_key=True)

    legal_name = db.Column(db.String(255), nullable=False)
    trade_name = db.Column(db.String(255), nullable=True)
    cnpj = db.Column(db.String(14), nullable=False)
    ie = db.Column(db.String(32), nullable=True)
    im = db.Column(db.String(32), nullable=True)

    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=False)
    website = db.Column(db.String(255), nullable=True)

    zip_code = db.Column(db.String(16), nullable=False)
    street = db.Column(db.String(255), nullable=False)
    number = db.Column(db.String(16), nullable=False)
    complement = db.Column(db.String(128), nullable=True)
    neighborhood = db.Column(db.String(128), nullable=False)
    city = db.Column(db.String(128), nullable=False)
    state = db.Column(db.String(2), nullable=False)

    tax_regime = db.Column(db.String(32), nullable=False)
    cnae = db.Column(db.String(16), nullable=True)
    nfe_environment = db.Column(db.String(16), nullable=False, default="HOMOLOGACAO")
    nfe_series = db.Column(db.String(5), nullable=False, default="1")
    nfe_next_number = db.Column(db.Integer, nullable=False, default=1)
    logo_url = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        data = {
            c.key: getattr(self, c.key)
            for c in self.__table__.columns
            if c.key not in ("created_at", "updated_at")
        }
        data["created_at"] = to_utc_z(self.created_at)
        data["updated_at"] = to_utc_z(self.updated_at)
        return data
