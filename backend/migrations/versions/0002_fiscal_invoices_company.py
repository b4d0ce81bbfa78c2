"""fiscal invoices and company settings

Revision ID: 0002_fiscal_invoices_company
Revises: 0001_initial_schema
Create Date: 2026-10-19 12:00:00.000000

- invoices: NF-e / NFC-e / NFS-e records, unique per (number, series)
- company_settings: single issuer row
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0002_fiscal_invoices_company'
down_revision = '0001_initial_schema'
branch_labels = None
depends_on = None


def _timestamp(name):
    return sa.Column(name, sa.DateTime(timezone=True), nullable=False,
                     server_default=sa.text('CURRENT_TIMESTAMP'))


def upgrade():
    op.create_table(
        'invoices',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('number', sa.String(length=20), nullable=False),
        sa.Column('series', sa.String(length=5), nullable=False, server_default='1'),
        sa.Column('type', sa.String(length=8), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='DRAFT'),
        sa.Column('partner_id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=True),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('key', sa.String(length=44), nullable=True),
        sa.Column('protocol', sa.String(length=64), nullable=True),
        _timestamp('issue_date'),
        sa.Column('authorized_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.ForeignKeyConstraint(['partner_id'], ['partners.id'], ),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('number', 'series', name='uq_invoices_number_series'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_invoices_partner_id', 'invoices', ['partner_id'])
    op.create_index('ix_invoices_sale_id', 'invoices', ['sale_id'])
    op.create_index('ix_invoices_status_type', 'invoices', ['status', 'type'])

    op.create_table(
        'company_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('legal_name', sa.String(length=255), nullable=False),
        sa.Column('trade_name', sa.String(length=255), nullable=True),
        sa.Column('cnpj', sa.String(length=14), nullable=False),
        sa.Column('ie', sa.String(length=32), nullable=True),
        sa.Column('im', sa.String(length=32), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=False),
        sa.Column('website', sa.String(length=255), nullable=True),
        sa.Column('zip_code', sa.String(length=16), nullable=False),
        sa.Column('street', sa.String(length=255), nullable=False),
        sa.Column('number', sa.String(length=16), nullable=False),
        sa.Column('complement', sa.String(length=128), nullable=True),
        sa.Column('neighborhood', sa.String(length=128), nullable=False),
        sa.Column('city', sa.String(length=128), nullable=False),
        sa.Column('state', sa.String(length=2), nullable=False),
        sa.Column('tax_regime', sa.String(length=32), nullable=False),
        sa.Column('cnae', sa.String(length=16), nullable=True),
        sa.Column('nfe_environment', sa.String(length=16), nullable=False, server_default='HOMOLOGACAO'),
        sa.Column('nfe_series', sa.String(length=5), nullable=False, server_default='1'),
        sa.Column('nfe_next_number', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('logo_url', sa.String(length=512), nullable=True),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade():
    op.drop_table('company_settings')
    op.drop_table('invoices')
