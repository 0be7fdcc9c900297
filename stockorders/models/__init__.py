"""Models package - exports all SQLAlchemy models."""
# Tenancy
from stockorders.models.tenant import Tenant

# Catalog
from stockorders.models.category import Category
from stockorders.models.product import Product

# Orders
from stockorders.models.order import Order, OrderStatus
from stockorders.models.order_item import OrderItem
from stockorders.models.invoice_sequence import InvoiceSequence

# Audit ledger
from stockorders.models.stock_history import StockHistoryEntry, ChangeType, classify_change

from stockorders.models.immutability import register_immutability_listeners

register_immutability_listeners()

__all__ = [
    'Tenant',
    'Category', 'Product',
    'Order', 'OrderStatus', 'OrderItem', 'InvoiceSequence',
    'StockHistoryEntry', 'ChangeType', 'classify_change',
]
