"""Models package - exports all SQLAlchemy models."""
# Catalog / inventory
from app.models.menu_item import MenuItem
from app.models.stock_item import StockItem
from app.models.ingredient import Ingredient

# Promotions
from app.models.promo import Promo, PromoType, PROMO_TYPES
from app.models.recurrence_rule import RecurrenceRule, DAYS_OF_WEEK, normalize_day_of_week, parse_hhmm

# Orders
from app.models.order import Order, OrderStatus
from app.models.order_item import OrderItem
from app.models.ledger_types import QuantityEntry, AppliedPromo, parse_instant

__all__ = [
    # Catalog / inventory
    'MenuItem', 'StockItem', 'Ingredient',
    # Promotions
    'Promo', 'PromoType', 'PROMO_TYPES',
    'RecurrenceRule', 'DAYS_OF_WEEK', 'normalize_day_of_week', 'parse_hhmm',
    # Orders
    'Order', 'OrderStatus', 'OrderItem', 'QuantityEntry', 'AppliedPromo', 'parse_instant',
]
