"""Custom exceptions for the POS engine."""


class PosError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['error'] = self.message
        rv['status'] = 'error'
        return rv


class BusinessLogicError(PosError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)


class ValidationError(BusinessLogicError):
    """Raised for malformed input or an invalid promo definition."""
    def __init__(self, message, payload=None):
        super().__init__(message, 400, payload)


class NegativeQuantityError(ValidationError):
    """Raised when a delta would drive a line item's quantity below zero."""
    def __init__(self, current_quantity, delta):
        self.current_quantity = current_quantity
        self.delta = delta
        message = (
            f"Cannot apply a delta of {delta} to a line holding {current_quantity} units"
        )
        super().__init__(message, payload={'quantity': current_quantity, 'delta': delta})


class NotFoundError(PosError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


def _fmt_qty(value):
    return f"{int(value)}" if value % 1 == 0 else f"{value:.3f}".rstrip('0').rstrip('.')


class InsufficientStockError(BusinessLogicError):
    """Raised when a reservation would drive one or more stock items negative.

    ``shortages`` is a list of ``(stock_item, required)`` pairs; every short
    ingredient is reported, not only the first one.
    """
    def __init__(self, shortages):
        self.shortages = list(shortages)
        names = ', '.join(
            f"{item.name} (required {_fmt_qty(required)}, available {_fmt_qty(item.stock)})"
            for item, required in self.shortages
        )
        payload = {
            'notEnoughStock': [
                dict(item.to_dict(), required=float(required))
                for item, required in self.shortages
            ]
        }
        super().__init__(f"Not enough stock: {names}", status_code=400, payload=payload)


class InactiveIngredientError(BusinessLogicError):
    """Raised when a menu item uses a disabled stock item."""
    def __init__(self, stock_items):
        self.stock_items = list(stock_items)
        names = ', '.join(item.name for item in self.stock_items)
        payload = {'notActiveItems': [item.to_dict() for item in self.stock_items]}
        super().__init__(f"Inactive ingredients: {names}", status_code=400, payload=payload)


class OrderBusyError(PosError):
    """Raised when another mutation holds the order for longer than the lock timeout."""
    def __init__(self, order_id):
        self.order_id = order_id
        super().__init__(
            f"Order #{order_id} is being modified by another request, try again",
            409,
            {'orderId': order_id}
        )
