from .auth import User
from .catalog import Category, Product
from .inventory import StockMovement
from .partners import Partner
from .sales import Sale, SaleItem
from .purchases import Purchase, PurchaseItem
from .finance import (
    ChartOfAccount,
    AccountsPayable,
    AccountsReceivable,
    FinancialTransaction,
)
from .fiscal import CompanySettings, Invoice

__all__ = [
    'User',
    'Category', 'Product',
    'StockMovement',
    'Partner',
    'Sale', 'SaleItem',
    'Purchase', 'PurchaseItem',
    'ChartOfAccount', 'AccountsPayable', 'AccountsReceivable', 'FinancialTransaction',
    'Invoice', 'CompanySettings',
]
