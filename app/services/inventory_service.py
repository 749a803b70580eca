"""
Inventory ledger - stock reservations for menu item quantity changes.

A reservation moves every ingredient's stock by ``quantity_used * delta``:
positive deltas consume stock, negative deltas give it back. All ingredients
are checked before any row is touched, so a rejected reservation leaves
stock exactly as it was.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Tuple
from sqlalchemy.orm import Session
from app.exceptions import InactiveIngredientError, InsufficientStockError
from app.models import StockItem
from app.repositories import IngredientRepository, StockItemRepository
from app.utils.number_format import quantize_stock
from app.blueprints.metrics import stock_reservations_total

logger = logging.getLogger(__name__)


@dataclass
class ReservationResult:
    """Outcome of a successful reservation."""
    menu_item_id: int
    delta: int
    # (stock_item, signed stock change) per touched stock item
    movements: List[Tuple[StockItem, Decimal]] = field(default_factory=list)
    # Stock items left under their minStock (informational only)
    low_stock: List[StockItem] = field(default_factory=list)


class InventoryLedger:
    """Stock checks and reservations over an injected session."""

    def __init__(self, session: Session, warn_low_stock: bool = True):
        self.session = session
        self.warn_low_stock = warn_low_stock
        self.ingredients = IngredientRepository(session)
        self.stock_items = StockItemRepository(session)

    def _requirements(self, menu_item_id: int, delta: int) -> Dict[int, Decimal]:
        """Signed stock requirement per stock item id (ingredients sharing a stock item are summed)."""
        required: Dict[int, Decimal] = {}
        for ingredient in self.ingredients.list_for_menu_item(menu_item_id):
            amount = Decimal(ingredient.quantity_used) * delta
            required[ingredient.stock_item_id] = required.get(ingredient.stock_item_id, Decimal('0')) + amount
        return required

    def check(self, menu_item_id: int, delta: int) -> Dict[int, Tuple[StockItem, Decimal]]:
        """
        Lock the stock rows used by ``menu_item_id`` and validate ``delta``.

        Returns {stock_item_id: (stock_item, required)} when every ingredient
        passes.

        Raises:
            InactiveIngredientError: a consumed stock item is disabled.
            InsufficientStockError: at least one stock item would go negative.
                Every short stock item is reported.
        """
        required = self._requirements(menu_item_id, delta)
        locked = self.stock_items.lock_many(required.keys())

        plan = {}
        inactive = []
        shortages = []
        for stock_item_id, amount in required.items():
            stock_item = locked[stock_item_id]
            plan[stock_item_id] = (stock_item, amount)
            if delta <= 0:
                # Returning stock is never blocked
                continue
            if not stock_item.is_active:
                inactive.append(stock_item)
            elif Decimal(stock_item.stock) - amount < 0:
                shortages.append((stock_item, amount))

        if inactive:
            stock_reservations_total.labels(outcome='inactive_ingredient').inc()
            logger.warning(
                f"[STOCK] Menu item #{menu_item_id} x{delta} rejected: inactive "
                f"{[item.name for item in inactive]}"
            )
            raise InactiveIngredientError(inactive)
        if shortages:
            stock_reservations_total.labels(outcome='insufficient_stock').inc()
            logger.warning(
                f"[STOCK] Menu item #{menu_item_id} x{delta} rejected: short "
                f"{[(item.name, str(amount)) for item, amount in shortages]}"
            )
            raise InsufficientStockError(shortages)
        return plan

    def reserve(self, menu_item_id: int, delta: int) -> ReservationResult:
        """
        Apply ``delta`` units of ``menu_item_id`` to stock, all or nothing.

        The caller owns the transaction (commit / rollback).
        """
        plan = self.check(menu_item_id, delta)
        result = ReservationResult(menu_item_id=menu_item_id, delta=delta)

        for stock_item, amount in plan.values():
            stock_item.stock = quantize_stock(Decimal(stock_item.stock) - amount)
            result.movements.append((stock_item, -amount))
            if stock_item.is_low:
                result.low_stock.append(stock_item)
        self.session.flush()

        outcome = 'reserved' if delta > 0 else 'released'
        stock_reservations_total.labels(outcome=outcome).inc()
        logger.info(
            f"[STOCK] Menu item #{menu_item_id} x{delta} {outcome} "
            f"({len(result.movements)} stock items)"
        )
        if self.warn_low_stock:
            for stock_item in result.low_stock:
                logger.warning(
                    f"[STOCK] Low stock: {stock_item.name} at {stock_item.stock} "
                    f"(min {stock_item.min_stock})"
                )
        return result

    def release(self, menu_item_id: int, quantity: int) -> ReservationResult:
        """Give back the stock consumed by ``quantity`` units."""
        return self.reserve(menu_item_id, -quantity)
