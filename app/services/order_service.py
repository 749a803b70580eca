"""Order service - order lifecycle (create, charge, tip, cancel)."""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.orm import Session
from app.exceptions import BusinessLogicError
from app.models import Order, OrderStatus
from app.repositories import OrderRepository
from app.services.inventory_service import InventoryLedger
from app.services.order_locks import order_lock
from app.utils.number_format import quantize_money
from app.blueprints.metrics import order_cancellations_total

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ('cash', 'card', 'transfer', 'other')


def create_order(session: Session, customer: Optional[str] = None) -> Order:
    try:
        order = OrderRepository(session).save(Order(
            customer=customer,
            status=OrderStatus.ACTIVE.value,
            subtotal=Decimal('0'),
            discount_total=Decimal('0'),
            total=Decimal('0'),
            tip=Decimal('0'),
        ))
        session.commit()
        logger.info(f"[ORDER] Created order #{order.id}")
        return order
    except Exception:
        session.rollback()
        raise


def get_order(session: Session, order_id: int) -> Order:
    return OrderRepository(session).get_or_404(order_id)


def list_orders(session: Session, status: Optional[str] = None) -> List[Order]:
    return OrderRepository(session).list_by_status(status)


def cancel_order(
    session: Session,
    order_id: int,
    cancel_reason: Optional[str] = None,
    lock_timeout: Optional[float] = None
) -> Order:
    """
    Cancel an open order: give back the stock of every line, delete the
    lines and mark the order cancelled.

    Cancelling an order that is already cancelled changes nothing and
    returns it as is. Paid orders cannot be cancelled.
    """
    with order_lock(order_id, lock_timeout):
        try:
            order = OrderRepository(session).get_or_404(order_id, for_update=True)

            if order.status == OrderStatus.CANCELLED.value:
                logger.info(f"[ORDER] Order #{order.id} already cancelled, nothing to do")
                session.rollback()
                return order
            if order.status == OrderStatus.PAID.value:
                raise BusinessLogicError(f'Order #{order.id} is already paid and cannot be cancelled')

            ledger = InventoryLedger(session)
            returned_lines = 0
            for item in list(order.items):
                if item.quantity:
                    ledger.release(item.menu_item_id, item.quantity)
                returned_lines += 1
            order.items.clear()

            order.status = OrderStatus.CANCELLED.value
            order.cancelled_at = datetime.now(timezone.utc)
            order.cancel_reason = cancel_reason
            order.recompute_totals()
            session.commit()

            order_cancellations_total.inc()
            logger.info(
                f"[ORDER] Order #{order.id} cancelled ({returned_lines} lines returned to stock)"
                + (f": {cancel_reason}" if cancel_reason else '')
            )
            return order
        except Exception:
            session.rollback()
            raise


def charge_order(
    session: Session,
    order_id: int,
    tip: Optional[Decimal] = None,
    payment_method: Optional[str] = None,
    lock_timeout: Optional[float] = None
) -> Order:
    """Mark an open order as paid."""
    if payment_method is not None and payment_method.lower() not in PAYMENT_METHODS:
        raise BusinessLogicError(f'Invalid payment method "{payment_method}". Expected one of: {", ".join(PAYMENT_METHODS)}')

    with order_lock(order_id, lock_timeout):
        try:
            order = OrderRepository(session).get_or_404(order_id, for_update=True)
            if not order.is_open:
                raise BusinessLogicError(f'Order #{order.id} is {order.status} and cannot be charged')
            if not order.items:
                raise BusinessLogicError(f'Order #{order.id} has no items')

            if tip is not None:
                order.tip = quantize_money(tip)
            order.payment_method = payment_method.lower() if payment_method else None
            order.recompute_totals()
            order.status = OrderStatus.PAID.value
            session.commit()

            logger.info(f"[ORDER] Order #{order.id} charged: total {order.total}, tip {order.tip}")
            return order
        except Exception:
            session.rollback()
            raise


def set_tip(session: Session, order_id: int, tip: Decimal, lock_timeout: Optional[float] = None) -> Order:
    with order_lock(order_id, lock_timeout):
        try:
            order = OrderRepository(session).get_or_404(order_id, for_update=True)
            if order.status == OrderStatus.CANCELLED.value:
                raise BusinessLogicError(f'Order #{order.id} is cancelled')
            order.tip = quantize_money(tip)
            session.commit()
            return order
        except Exception:
            session.rollback()
            raise
