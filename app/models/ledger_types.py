"""
Typed value objects for the order item event log.

``quantityHistory`` and ``appliedPromos`` are persisted as JSON-encoded text.
The conversion happens once, in ``JSONEncodedList``; business logic only ever
sees ``QuantityEntry`` / ``AppliedPromo`` instances.
"""
import json
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.types import Text, TypeDecorator


def parse_instant(value) -> datetime:
    """Parse an ISO-8601 string (a trailing ``Z`` is accepted) into a datetime."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value:
        raise ValueError(f"Invalid timestamp: {value!r}")
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    return datetime.fromisoformat(text)


def format_instant(value: datetime) -> str:
    return value.isoformat()


@dataclass(frozen=True)
class QuantityEntry:
    """One signed quantity change applied to a line item."""
    quantity: int
    timestamp: datetime

    def to_json(self) -> dict:
        return {'quantity': self.quantity, 'timestamp': format_instant(self.timestamp)}

    @classmethod
    def from_json(cls, data: dict) -> 'QuantityEntry':
        return cls(quantity=int(data['quantity']), timestamp=parse_instant(data['timestamp']))


@dataclass(frozen=True)
class AppliedPromo:
    """Snapshot of one promo evaluation that produced a discount."""
    promo_id: int
    promo_name: Optional[str]
    quantity: int
    discount_applied: Decimal
    timestamp: datetime
    type: str

    def to_json(self) -> dict:
        return {
            'promoId': self.promo_id,
            'promoName': self.promo_name,
            'quantity': self.quantity,
            'discountApplied': float(self.discount_applied),
            'timestamp': format_instant(self.timestamp),
            'type': self.type,
        }

    @classmethod
    def from_json(cls, data: dict) -> 'AppliedPromo':
        return cls(
            promo_id=data['promoId'],
            promo_name=data.get('promoName'),
            quantity=int(data['quantity']),
            discount_applied=Decimal(str(data['discountApplied'])),
            timestamp=parse_instant(data['timestamp']),
            type=data['type'],
        )


class JSONEncodedList(TypeDecorator):
    """Stores a list of value objects as a JSON array in a TEXT column."""

    impl = Text
    cache_ok = True

    def __init__(self, item_type, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.item_type = item_type

    def process_bind_param(self, value, dialect):
        if value is None:
            return '[]'
        return json.dumps([item.to_json() for item in value])

    def process_result_value(self, value, dialect):
        if not value:
            return []
        return [self.item_type.from_json(item) for item in json.loads(value)]
