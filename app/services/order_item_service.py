"""
Order item service - quantity changes on open orders.

Every mutation follows the same transactional sequence under the order's
lock:

1. Lock the order (in-process lock + SELECT ... FOR UPDATE)
2. Validate the delta against the line (no negative quantities)
3. Reserve / release stock for the delta (all or nothing)
4. Append the delta to the line's history and recompute promos
5. Re-sum the order totals
6. Commit (any error rolls the whole sequence back)
"""
import logging
from datetime import datetime, tzinfo
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session
from app.exceptions import BusinessLogicError, ValidationError
from app.models import Order, OrderItem, parse_instant
from app.repositories import MenuItemRepository, OrderItemRepository, OrderRepository, PromoRepository
from app.services.inventory_service import InventoryLedger
from app.services.order_locks import order_lock
from app.utils.formatters import get_timezone, now_local, to_local
from app.blueprints.metrics import promo_applications_total

logger = logging.getLogger(__name__)


def resolve_timestamp(value, tz: Optional[tzinfo] = None) -> datetime:
    """
    Turn a request timestamp into an aware datetime in the restaurant zone.

    None means "now"; naive values are taken as local wall-clock time. The
    zone defaults to UTC.

    Raises:
        ValidationError: if the value is not ISO-8601.
    """
    tz = tz or get_timezone(None)
    if value in (None, ''):
        return datetime.now(tz)
    try:
        instant = parse_instant(value)
    except ValueError:
        raise ValidationError(f'Invalid timestamp "{value}". Expected ISO-8601')
    if instant.tzinfo is None:
        return instant.replace(tzinfo=tz)
    return instant.astimezone(tz)


def _resolve_now(now: Optional[datetime], tz: Optional[tzinfo]) -> datetime:
    return to_local(now, tz) if now is not None else now_local(tz)


def _load_open_order(session: Session, order_id: int) -> Order:
    order = OrderRepository(session).get_or_404(order_id, for_update=True)
    if not order.is_open:
        raise BusinessLogicError(f'Order #{order.id} is {order.status} and cannot be modified')
    return order


def _apply_delta(
    session: Session,
    item: OrderItem,
    delta: int,
    timestamp: datetime,
    now: datetime,
    tz: Optional[tzinfo],
    warn_low_stock: bool
) -> None:
    """Reserve stock for ``delta`` and append it to the line ledger."""
    item.validate_delta(delta)
    InventoryLedger(session, warn_low_stock=warn_low_stock).reserve(item.menu_item_id, delta)

    promos = PromoRepository(session).list_for_menu_item(item.menu_item_id)
    applied = item.add_quantity(delta, timestamp, promos, now, tz)
    if applied is not None:
        promo_applications_total.labels(promo_type=applied.type).inc()
        logger.info(
            f"[PROMO] Line #{item.id or 'new'} on order #{item.order_id}: "
            f"'{applied.promo_name}' {applied.quantity} eligible units, discount {applied.discount_applied}"
        )


def add_menu_item_to_order(
    session: Session,
    order_id: int,
    menu_item_id: int,
    quantity: int,
    comments: Optional[str] = None,
    timestamp=None,
    tz: Optional[tzinfo] = None,
    now: Optional[datetime] = None,
    lock_timeout: Optional[float] = None,
    warn_low_stock: bool = True
) -> Tuple[OrderItem, Order]:
    """
    Add ``quantity`` units of a menu item to an open order.

    The first time a menu item is added a line is created at quantity 0 and
    the units are appended to it; later additions reuse the same line.

    Raises:
        NotFoundError: unknown order or menu item.
        BusinessLogicError: order not open or menu item disabled.
        ValidationError: quantity not positive.
        InactiveIngredientError / InsufficientStockError: stock check failed.
        OrderBusyError: the order is locked by another request.
    """
    if quantity <= 0:
        raise ValidationError('quantity must be greater than 0')
    instant = resolve_timestamp(timestamp, tz)
    local_now = _resolve_now(now, tz)

    with order_lock(order_id, lock_timeout):
        try:
            order = _load_open_order(session, order_id)
            menu_item = MenuItemRepository(session).get_or_404(menu_item_id)
            if not menu_item.is_active:
                raise BusinessLogicError(f'Menu item "{menu_item.name}" is not active')

            item = OrderItemRepository(session).find_line(order.id, menu_item.id, for_update=True)
            if item is None:
                item = OrderItem(
                    menu_item_id=menu_item.id,
                    quantity=0,
                    unit_price=menu_item.price,
                    quantity_history=[],
                    applied_promos=[],
                )
                order.items.append(item)
            if comments:
                item.comments = comments

            _apply_delta(session, item, quantity, instant, local_now, tz, warn_low_stock)
            order.recompute_totals()
            session.commit()

            logger.info(
                f"[ORDER] Order #{order.id}: +{quantity} x menu item #{menu_item.id} "
                f"(line #{item.id}, now {item.quantity})"
            )
            return item, order
        except Exception:
            session.rollback()
            raise


def change_quantity(
    session: Session,
    order_item_id: int,
    delta: int,
    timestamp=None,
    comments: Optional[str] = None,
    tz: Optional[tzinfo] = None,
    now: Optional[datetime] = None,
    lock_timeout: Optional[float] = None,
    warn_low_stock: bool = True
) -> Tuple[OrderItem, Order]:
    """
    Apply a signed ``delta`` to an existing line.

    Positive deltas consume stock, negative ones give it back. A delta that
    would take the line below zero is rejected before anything changes.
    """
    instant = resolve_timestamp(timestamp, tz)
    local_now = _resolve_now(now, tz)

    # The order id is needed to pick the lock
    item = OrderItemRepository(session).get_or_404(order_item_id)
    order_id = item.order_id
    session.rollback()

    with order_lock(order_id, lock_timeout):
        try:
            order = _load_open_order(session, order_id)
            item = OrderItemRepository(session).get_or_404(order_item_id, for_update=True)
            if comments is not None:
                item.comments = comments

            _apply_delta(session, item, delta, instant, local_now, tz, warn_low_stock)
            order.recompute_totals()
            session.commit()

            logger.info(
                f"[ORDER] Order #{order.id}: line #{item.id} {delta:+d} (now {item.quantity})"
            )
            return item, order
        except Exception:
            session.rollback()
            raise


def remove_order_item(
    session: Session,
    order_item_id: int,
    lock_timeout: Optional[float] = None,
    warn_low_stock: bool = True
) -> Order:
    """Delete a line and return the stock consumed by its current quantity."""
    item = OrderItemRepository(session).get_or_404(order_item_id)
    order_id = item.order_id
    session.rollback()

    with order_lock(order_id, lock_timeout):
        try:
            order = _load_open_order(session, order_id)
            item = OrderItemRepository(session).get_or_404(order_item_id, for_update=True)

            returned = item.quantity or 0
            if returned:
                InventoryLedger(session, warn_low_stock=warn_low_stock).release(item.menu_item_id, returned)
            order.items.remove(item)
            order.recompute_totals()
            session.commit()

            logger.info(f"[ORDER] Order #{order.id}: removed line #{order_item_id} ({returned} units returned)")
            return order
        except Exception:
            session.rollback()
            raise


def get_order_item(session: Session, order_item_id: int) -> OrderItem:
    return OrderItemRepository(session).get_or_404(order_item_id)


def list_order_items(session: Session, order_id: int) -> List[OrderItem]:
    OrderRepository(session).get_or_404(order_id)
    return OrderItemRepository(session).list_by_order(order_id)
