"""
Order Item model - the per-line ledger.

Every quantity change is appended to ``quantity_history`` and never edited.
Discounts are derived from that log: for each promo valid "now", the deltas
whose own timestamp fell inside the promo window are summed (eligible
quantity) and priced. Each positive evaluation is appended to
``applied_promos``; the last one appended during a recalculation is the line's
discount.
"""
from datetime import datetime, tzinfo
from decimal import Decimal
from typing import Iterable, Optional
from sqlalchemy import Column, BigInteger, Integer, String, Numeric, Text, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base, IdType
from app.exceptions import NegativeQuantityError, ValidationError
from app.models.ledger_types import QuantityEntry, AppliedPromo, JSONEncodedList
from app.utils.formatters import money_json, to_local
from app.utils.number_format import quantize_money


class OrderItem(Base):
    """One line of an order: one menu item plus its mutation history."""

    __tablename__ = 'order_item'

    id = Column(IdType, primary_key=True, autoincrement=True)
    order_id = Column(BigInteger, ForeignKey('pos_order.id', ondelete='CASCADE'), nullable=False, index=True)
    menu_item_id = Column(BigInteger, ForeignKey('menu_item.id'), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=0)
    unit_price = Column(Numeric(10, 2), nullable=False)
    subtotal = Column(Numeric(10, 2), nullable=False, default=0)
    discount_applied = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False, default=0)
    promo_id = Column(BigInteger, nullable=True)
    promo_name = Column(String, nullable=True)
    comments = Column(Text, nullable=True)
    quantity_history = Column(JSONEncodedList(QuantityEntry), nullable=False, default=list)
    applied_promos = Column(JSONEncodedList(AppliedPromo), nullable=False, default=list)

    # Relationships
    order = relationship('Order', back_populates='items')
    menu_item = relationship('MenuItem')

    # -- event log -----------------------------------------------------------

    def history_in_order(self) -> list:
        """History sorted chronologically (stable for equal timestamps)."""
        return sorted(self.quantity_history or [], key=lambda entry: entry.timestamp)

    def replay_quantity(self) -> int:
        """Sum of every delta, clamped at zero. Always equals ``quantity``."""
        return max(sum(entry.quantity for entry in self.history_in_order()), 0)

    def eligible_quantity(self, promo, tz: Optional[tzinfo] = None) -> int:
        """
        Net units added while ``promo`` was valid, bounded by the current quantity.
        """
        eligible = sum(
            entry.quantity
            for entry in self.history_in_order()
            if promo.is_valid_at(to_local(entry.timestamp, tz))
        )
        return min(max(eligible, 0), self.quantity or 0)

    def validate_delta(self, delta: int):
        """Reject a zero delta or one that would take the line below zero."""
        if delta == 0:
            raise ValidationError('Quantity delta must be non-zero')
        current = self.quantity or 0
        if current + delta < 0:
            raise NegativeQuantityError(current, delta)

    def add_quantity(
        self,
        delta: int,
        timestamp: datetime,
        promos: Iterable,
        now: datetime,
        tz: Optional[tzinfo] = None
    ) -> Optional[AppliedPromo]:
        """
        Append ``delta`` at ``timestamp`` and recalculate the line.

        ``promos`` are the candidates for this menu item; only those active at
        ``now`` (naive local time) are evaluated.

        Raises:
            ValidationError: if ``delta`` is zero.
            NegativeQuantityError: if the line would drop below zero. Nothing
                is modified in that case.
        """
        self.validate_delta(delta)
        current = self.quantity or 0
        self.quantity_history = list(self.quantity_history or []) + [
            QuantityEntry(quantity=delta, timestamp=timestamp)
        ]
        self.quantity = current + delta
        current_promos = [promo for promo in promos if promo.is_currently_active(now)]
        return self.recalculate(current_promos, timestamp, tz)

    def recalculate(self, promos: Iterable, timestamp: datetime, tz: Optional[tzinfo] = None) -> Optional[AppliedPromo]:
        """
        Recompute subtotal, discount and total against ``promos``.

        Returns the authoritative AppliedPromo, or None when no promo applies.
        """
        unit_price = Decimal(self.unit_price)
        self.subtotal = quantize_money(unit_price * (self.quantity or 0))

        applied = list(self.applied_promos or [])
        latest = None
        for promo in promos:
            eligible = self.eligible_quantity(promo, tz)
            discount = promo.calculate_discount(eligible, unit_price * eligible, unit_price)
            if discount > 0:
                latest = AppliedPromo(
                    promo_id=promo.id,
                    promo_name=promo.name,
                    quantity=eligible,
                    discount_applied=discount,
                    timestamp=timestamp,
                    type=promo.type,
                )
                applied.append(latest)
            else:
                # Promo no longer applies to this line
                applied = [entry for entry in applied if entry.promo_id != promo.id]
        self.applied_promos = applied

        # Last write wins: a single promo discounts the line
        if latest is not None:
            self.discount_applied = min(latest.discount_applied, self.subtotal)
            self.promo_id = latest.promo_id
            self.promo_name = latest.promo_name
        else:
            self.discount_applied = Decimal('0.00')
            self.promo_id = None
            self.promo_name = None

        self.total = max(self.subtotal - self.discount_applied, Decimal('0.00'))
        return latest

    def to_dict(self):
        return {
            'id': self.id,
            'orderId': self.order_id,
            'menuItemId': self.menu_item_id,
            'quantity': self.quantity,
            'unitPrice': money_json(self.unit_price),
            'subtotal': money_json(self.subtotal),
            'discountApplied': money_json(self.discount_applied),
            'total': money_json(self.total),
            'promoId': self.promo_id,
            'promoName': self.promo_name,
            'comments': self.comments,
            'quantityHistory': [entry.to_json() for entry in (self.quantity_history or [])],
            'appliedPromos': [entry.to_json() for entry in (self.applied_promos or [])],
        }

    def __repr__(self):
        return f"<OrderItem(id={self.id}, order_id={self.order_id}, quantity={self.quantity})>"

