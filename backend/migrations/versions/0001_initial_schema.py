"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the complete ERP schema:
- users, categories, partners, products
- stock_movements: append-only stock ledger
- sales / sale_items, purchases / purchase_items
- chart_of_accounts, accounts_payable, accounts_receivable
- financial_transactions
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamp(name):
    return sa.Column(name, sa.DateTime(timezone=True), nullable=False,
                     server_default=sa.text('CURRENT_TIMESTAMP'))


def upgrade():
    # ============================================================================
    # users
    # ============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='USER'),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        _timestamp('created_at'),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_users_email', 'users', ['email'])

    # ============================================================================
    # categories / partners
    # ============================================================================
    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_categories_name'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'partners',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False, server_default='CLIENT'),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('fantasy_name', sa.String(length=255), nullable=True),
        sa.Column('document', sa.String(length=32), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('mobile', sa.String(length=32), nullable=True),
        sa.Column('ie', sa.String(length=32), nullable=True),
        sa.Column('im', sa.String(length=32), nullable=True),
        sa.Column('zip_code', sa.String(length=16), nullable=True),
        sa.Column('street', sa.String(length=255), nullable=True),
        sa.Column('number', sa.String(length=16), nullable=True),
        sa.Column('complement', sa.String(length=128), nullable=True),
        sa.Column('neighborhood', sa.String(length=128), nullable=True),
        sa.Column('city', sa.String(length=128), nullable=True),
        sa.Column('state', sa.String(length=2), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_partners_document', 'partners', ['document'])
    op.create_index('ix_partners_type_name', 'partners', ['type', 'name'])

    # ============================================================================
    # products: stock is a counter owned by the stock ledger
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('cost_price_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('category_id', sa.Integer(), nullable=True),
        sa.Column('image_url', sa.String(length=512), nullable=True),
        sa.Column('ncm', sa.String(length=8), nullable=True),
        sa.Column('cest', sa.String(length=16), nullable=True),
        sa.Column('cfop', sa.String(length=4), nullable=True),
        sa.Column('origin', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('icms_rate_bps', sa.Integer(), nullable=True),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sku', name='uq_products_sku'),
        sa.CheckConstraint('stock >= 0', name='ck_products_stock_non_negative'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_products_category_id', 'products', ['category_id'])
    op.create_index('ix_products_name', 'products', ['name'])

    # ============================================================================
    # stock_movements: append-only audit trail, one row per stock change
    # ============================================================================
    op.create_table(
        'stock_movements',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('type', sa.String(length=8), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(length=255), nullable=False),
        sa.Column('reference_type', sa.String(length=16), nullable=True),
        sa.Column('reference_id', sa.Integer(), nullable=True),
        sa.Column('balance_after', sa.Integer(), nullable=True),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity > 0', name='ck_stock_movements_quantity_positive'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_stock_movements_product_id', 'stock_movements', ['product_id'])
    op.create_index('ix_stock_movements_user_id', 'stock_movements', ['user_id'])
    op.create_index('ix_stock_movements_type', 'stock_movements', ['type'])
    op.create_index('ix_stock_movements_product_created', 'stock_movements', ['product_id', 'created_at'])
    op.create_index('ix_stock_movements_reference', 'stock_movements', ['reference_type', 'reference_id'])

    # ============================================================================
    # sales / sale_items
    # ============================================================================
    op.create_table(
        'sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('partner_id', sa.Integer(), nullable=True),
        sa.Column('payment_method', sa.String(length=16), nullable=False, server_default='CASH'),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='COMPLETED'),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['partner_id'], ['partners.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_sales_user_id', 'sales', ['user_id'])
    op.create_index('ix_sales_partner_id', 'sales', ['partner_id'])
    op.create_index('ix_sales_status', 'sales', ['status'])
    op.create_index('ix_sales_status_created', 'sales', ['status', 'created_at'])

    op.create_table(
        'sale_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id'], ),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sale_id', 'position', name='uq_sale_items_sale_position'),
        sa.CheckConstraint('quantity > 0', name='ck_sale_items_quantity_positive'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_sale_items_sale_id', 'sale_items', ['sale_id'])
    op.create_index('ix_sale_items_product_id', 'sale_items', ['product_id'])

    # ============================================================================
    # purchases / purchase_items
    # ============================================================================
    op.create_table(
        'purchases',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('partner_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('invoice_number', sa.String(length=64), nullable=True),
        sa.Column('invoice_series', sa.String(length=16), nullable=True),
        sa.Column('invoice_key', sa.String(length=64), nullable=True),
        sa.Column('issue_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='COMPLETED'),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['partner_id'], ['partners.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_purchases_user_id', 'purchases', ['user_id'])
    op.create_index('ix_purchases_invoice_key', 'purchases', ['invoice_key'])
    op.create_index('ix_purchases_status', 'purchases', ['status'])
    op.create_index('ix_purchases_partner_created', 'purchases', ['partner_id', 'created_at'])

    op.create_table(
        'purchase_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('purchase_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['purchase_id'], ['purchases.id'], ),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('purchase_id', 'position', name='uq_purchase_items_purchase_position'),
        sa.CheckConstraint('quantity > 0', name='ck_purchase_items_quantity_positive'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_purchase_items_purchase_id', 'purchase_items', ['purchase_id'])
    op.create_index('ix_purchase_items_product_id', 'purchase_items', ['product_id'])

    # ============================================================================
    # chart_of_accounts
    # ============================================================================
    op.create_table(
        'chart_of_accounts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('nature', sa.String(length=8), nullable=False),
        sa.Column('parent_id', sa.Integer(), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default='1'),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['parent_id'], ['chart_of_accounts.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code', name='uq_chart_of_accounts_code'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_chart_of_accounts_parent_id', 'chart_of_accounts', ['parent_id'])

    # ============================================================================
    # accounts_payable / accounts_receivable
    # Stored status: PENDING, PAID, CANCELLED (OVERDUE is derived at read time)
    # ============================================================================
    for table, doc_column, doc_table in (
        ('accounts_payable', 'purchase_id', 'purchases'),
        ('accounts_receivable', 'sale_id', 'sales'),
    ):
        op.create_table(
            table,
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('description', sa.String(length=255), nullable=False),
            sa.Column('amount_cents', sa.Integer(), nullable=False),
            sa.Column('issue_date', sa.DateTime(timezone=True), nullable=False),
            sa.Column('due_date', sa.DateTime(timezone=True), nullable=False),
            sa.Column('payment_method', sa.String(length=16), nullable=True),
            sa.Column('notes', sa.Text(), nullable=True),
            sa.Column('status', sa.String(length=16), nullable=False, server_default='PENDING'),
            sa.Column('paid_amount_cents', sa.Integer(), nullable=True),
            sa.Column('paid_payment_method', sa.String(length=16), nullable=True),
            sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
            _timestamp('created_at'),
            _timestamp('updated_at'),
            sa.Column('partner_id', sa.Integer(), nullable=False),
            sa.Column('account_id', sa.Integer(), nullable=True),
            sa.Column(doc_column, sa.Integer(), nullable=True),
            sa.ForeignKeyConstraint(['partner_id'], ['partners.id'], ),
            sa.ForeignKeyConstraint(['account_id'], ['chart_of_accounts.id'], ),
            sa.ForeignKeyConstraint([doc_column], [f'{doc_table}.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.CheckConstraint('amount_cents > 0', name=f'ck_{table}_amount_positive'),
            sqlite_autoincrement=True
        )
        op.create_index(f'ix_{table}_status', table, ['status'])
        op.create_index(f'ix_{table}_partner_id', table, ['partner_id'])
        op.create_index(f'ix_{table}_{doc_column}', table, [doc_column])
        op.create_index(f'ix_{table}_status_due', table, ['status', 'due_date'])

    # ============================================================================
    # financial_transactions: income/expense cash book
    # ============================================================================
    op.create_table(
        'financial_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='PENDING'),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('category', sa.String(length=128), nullable=False),
        sa.Column('partner_id', sa.Integer(), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['partner_id'], ['partners.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_financial_transactions_partner_id', 'financial_transactions', ['partner_id'])
    op.create_index('ix_financial_transactions_user_id', 'financial_transactions', ['user_id'])
    op.create_index('ix_financial_transactions_type_due', 'financial_transactions', ['type', 'due_date'])


def downgrade():
    op.drop_table('financial_transactions')
    op.drop_table('accounts_receivable')
    op.drop_table('accounts_payable')
    op.drop_table('chart_of_accounts')
    op.drop_table('purchase_items')
    op.drop_table('purchases')
    op.drop_table('sale_items')
    op.drop_table('sales')
    op.drop_table('stock_movements')
    op.drop_table('products')
    op.drop_table('partners')
    op.drop_table('categories')
    op.drop_table('users')
