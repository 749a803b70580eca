"""
Per-order mutual exclusion.

All mutations of one order (line item changes, removal, cancellation,
charge) run under that order's lock, so two requests cannot both read stale
stock or quantities and overwrite each other. Acquisition is bounded: a
request that cannot get the lock within the timeout fails with
OrderBusyError instead of queueing.

Registry entries live only while some request holds or waits for the lock,
so ids that never resolve to an order do not accumulate.

This serialises requests inside one process. Across processes the services
also lock the order, order item and stock rows with SELECT ... FOR UPDATE.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Dict, List

from app.exceptions import OrderBusyError

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT = 5.0

_registry_lock = threading.Lock()
# order id -> [lock, number of holders and waiters]
_order_locks: Dict[int, List] = {}


def _checkout(order_id: int) -> threading.RLock:
    with _registry_lock:
        entry = _order_locks.get(order_id)
        if entry is None:
            entry = [threading.RLock(), 0]
            _order_locks[order_id] = entry
        entry[1] += 1
        return entry[0]


def _checkin(order_id: int) -> None:
    with _registry_lock:
        entry = _order_locks.get(order_id)
        if entry is None:
            return
        entry[1] -= 1
        if entry[1] <= 0:
            del _order_locks[order_id]


@contextmanager
def order_lock(order_id: int, timeout: float = None):
    """Hold the mutation lock of ``order_id`` for the duration of the block."""
    order_id = int(order_id)
    wait = DEFAULT_LOCK_TIMEOUT if timeout is None else timeout
    lock = _checkout(order_id)
    try:
        if not lock.acquire(timeout=wait):
            logger.warning(f"[ORDER] Lock for order #{order_id} not acquired after {wait}s")
            raise OrderBusyError(order_id)
        try:
            yield
        finally:
            lock.release()
    finally:
        _checkin(order_id)


def active_lock_count() -> int:
    """Number of orders currently held or awaited."""
    with _registry_lock:
        return len(_order_locks)
