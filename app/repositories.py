"""
Per-entity repositories over an injected SQLAlchemy session.

Each repository exposes ``get_by_id`` / ``save`` / ``delete`` plus the few
queries the services need. Rows are locked with ``with_for_update()``
where the backend supports it (PostgreSQL); SQLite ignores the clause.
"""
from typing import Dict, Iterable, List, Optional
from sqlalchemy.orm import Session
from app.exceptions import NotFoundError
from app.models import (
    MenuItem, StockItem, Ingredient, Promo, RecurrenceRule, Order, OrderItem
)


class Repository:
    """Generic CRUD for one model class."""

    model = None
    label = 'Resource'

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, entity_id: int, for_update: bool = False):
        query = self.session.query(self.model).filter(self.model.id == entity_id)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def get_or_404(self, entity_id: int, for_update: bool = False):
        entity = self.get_by_id(entity_id, for_update=for_update)
        if entity is None:
            raise NotFoundError(f'{self.label} #{entity_id} not found')
        return entity

    def list_all(self) -> list:
        return self.session.query(self.model).order_by(self.model.id).all()

    def save(self, entity):
        self.session.add(entity)
        self.session.flush()
        return entity

    def delete(self, entity) -> None:
        self.session.delete(entity)
        self.session.flush()


class MenuItemRepository(Repository):
    model = MenuItem
    label = 'Menu item'


class StockItemRepository(Repository):
    model = StockItem
    label = 'Stock item'

    def lock_many(self, stock_item_ids: Iterable[int]) -> Dict[int, StockItem]:
        """
        Lock the given rows FOR UPDATE (ordered by id) and return them fresh.

        Pending changes are flushed first so reloading never discards them.
        """
        ids = sorted(set(stock_item_ids))
        if not ids:
            return {}
        self.session.flush()
        rows = (
            self.session.query(StockItem)
            .filter(StockItem.id.in_(ids))
            .order_by(StockItem.id)
            .with_for_update()
            .populate_existing()
            .all()
        )
        return {row.id: row for row in rows}

    def list_low_stock(self) -> List[StockItem]:
        return (
            self.session.query(StockItem)
            .filter(StockItem.is_active.is_(True), StockItem.stock < StockItem.min_stock)
            .order_by(StockItem.name)
            .all()
        )


class IngredientRepository(Repository):
    model = Ingredient
    label = 'Ingredient'

    def list_for_menu_item(self, menu_item_id: int) -> List[Ingredient]:
        return (
            self.session.query(Ingredient)
            .filter(Ingredient.menu_item_id == menu_item_id)
            .order_by(Ingredient.id)
            .all()
        )

    def count_for_stock_item(self, stock_item_id: int) -> int:
        return (
            self.session.query(Ingredient)
            .filter(Ingredient.stock_item_id == stock_item_id)
            .count()
        )


class PromoRepository(Repository):
    model = Promo
    label = 'Promo'

    def list_for_menu_item(self, menu_item_id: int) -> List[Promo]:
        """Promos of a menu item, oldest first (evaluation order)."""
        return (
            self.session.query(Promo)
            .filter(Promo.menu_item_id == menu_item_id)
            .order_by(Promo.id)
            .all()
        )


class RecurrenceRuleRepository(Repository):
    model = RecurrenceRule
    label = 'Recurrence rule'

    def list_for_promo(self, promo_id: int) -> List[RecurrenceRule]:
        return (
            self.session.query(RecurrenceRule)
            .filter(RecurrenceRule.promo_id == promo_id)
            .order_by(RecurrenceRule.id)
            .all()
        )


class OrderRepository(Repository):
    model = Order
    label = 'Order'

    def list_by_status(self, status: Optional[str] = None) -> List[Order]:
        query = self.session.query(Order)
        if status:
            query = query.filter(Order.status == status)
        return query.order_by(Order.id.desc()).all()


class OrderItemRepository(Repository):
    model = OrderItem
    label = 'Order item'

    def find_line(self, order_id: int, menu_item_id: int, for_update: bool = False) -> Optional[OrderItem]:
        query = self.session.query(OrderItem).filter(
            OrderItem.order_id == order_id,
            OrderItem.menu_item_id == menu_item_id
        )
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def list_by_order(self, order_id: int) -> List[OrderItem]:
        return (
            self.session.query(OrderItem)
            .filter(OrderItem.order_id == order_id)
            .order_by(OrderItem.id)
            .all()
        )
