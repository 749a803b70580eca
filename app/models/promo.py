"""Promo model."""
import enum
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, BigInteger, String, Boolean, Numeric, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base, IdType
from app.utils.formatters import money_json, datetime_json
from app.utils.number_format import quantize_money


class PromoType(str, enum.Enum):
    """Promo discount type."""
    PERCENTAGE_DISCOUNT = 'percentage_discount'
    PRICE_DISCOUNT = 'price_discount'
    BUY_X_GET_Y = 'buy_x_get_y'


PROMO_TYPES = tuple(t.value for t in PromoType)


class Promo(Base):
    """
    Discount definition for one menu item.

    Validity is the intersection of the absolute bounds (start_date/end_date,
    inclusive, local time) and either ``always`` or at least one matching
    recurrence rule. Without ``always`` and without rules a promo never applies.
    """

    __tablename__ = 'promo'

    id = Column(IdType, primary_key=True, autoincrement=True)
    menu_item_id = Column(BigInteger, ForeignKey('menu_item.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String, nullable=False)
    type = Column(String(30), nullable=False)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    percentage = Column(Numeric(5, 2), nullable=True)
    discount = Column(Numeric(10, 2), nullable=True)
    buy_quantity = Column(Integer, nullable=True)
    pay_quantity = Column(Integer, nullable=True)
    always = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    # Relationships
    menu_item = relationship('MenuItem', back_populates='promos')
    recurrence_rules = relationship(
        'RecurrenceRule',
        back_populates='promo',
        cascade='all, delete-orphan',
        order_by='RecurrenceRule.id'
    )

    def is_valid_at(self, instant: datetime) -> bool:
        """Whether the promo window covers the naive local ``instant``."""
        if self.start_date is not None and instant < self.start_date:
            return False
        if self.end_date is not None and instant > self.end_date:
            return False
        if self.always:
            return True
        return any(rule.is_within(instant) for rule in self.recurrence_rules)

    def is_currently_active(self, now: datetime) -> bool:
        """Enabled and valid at ``now`` (naive local time)."""
        return bool(self.is_active) and self.is_valid_at(now)

    def calculate_discount(self, quantity: int, subtotal: Decimal, unit_price: Decimal) -> Decimal:
        """
        Discount for ``quantity`` units. Never negative; capping at the line
        subtotal is the caller's job.
        """
        if quantity <= 0:
            return Decimal('0.00')

        promo_type = PromoType(self.type)
        if promo_type is PromoType.PERCENTAGE_DISCOUNT:
            amount = Decimal(subtotal) * Decimal(self.percentage or 0) / Decimal(100)
        elif promo_type is PromoType.PRICE_DISCOUNT:
            amount = Decimal(self.discount or 0) * quantity
        else:
            # Incomplete cycles earn nothing
            cycles = quantity // self.buy_quantity
            free_units = cycles * (self.buy_quantity - self.pay_quantity)
            amount = Decimal(unit_price) * free_units

        return max(quantize_money(amount), Decimal('0.00'))

    def validation_errors(self) -> list:
        """Return a list of human readable problems with this definition."""
        errors = []
        if not self.name or not str(self.name).strip():
            errors.append('name is required')
        if self.type not in PROMO_TYPES:
            errors.append(f'type must be one of: {", ".join(PROMO_TYPES)}')
            return errors

        if self.type == PromoType.PERCENTAGE_DISCOUNT.value:
            if self.percentage is None:
                errors.append('percentage is required for percentage_discount promos')
            elif not (Decimal(0) <= Decimal(self.percentage) <= Decimal(100)):
                errors.append('percentage must be between 0 and 100')
        elif self.type == PromoType.PRICE_DISCOUNT.value:
            if self.discount is None:
                errors.append('discount is required for price_discount promos')
            elif Decimal(self.discount) < 0:
                errors.append('discount cannot be negative')
        else:
            if self.buy_quantity is None or self.pay_quantity is None:
                errors.append('buy_quantity and pay_quantity are required for buy_x_get_y promos')
            elif self.buy_quantity <= 0 or self.pay_quantity < 0:
                errors.append('buy_quantity must be positive and pay_quantity non-negative')
            elif self.buy_quantity <= self.pay_quantity:
                errors.append('buy_quantity must be greater than pay_quantity')

        if self.start_date and self.end_date and self.end_date < self.start_date:
            errors.append('endDate cannot be before startDate')
        return errors

    def to_dict(self, include_rules: bool = True):
        data = {
            'id': self.id,
            'menuItemId': self.menu_item_id,
            'name': self.name,
            'type': self.type,
            'startDate': datetime_json(self.start_date),
            'endDate': datetime_json(self.end_date),
            'percentage': float(self.percentage) if self.percentage is not None else None,
            'discount': money_json(self.discount) if self.discount is not None else None,
            'buy_quantity': self.buy_quantity,
            'pay_quantity': self.pay_quantity,
            'always': bool(self.always),
            'isActive': bool(self.is_active),
        }
        if include_rules:
            data['recurrenceRules'] = [rule.to_dict() for rule in self.recurrence_rules]
        return data

    def __repr__(self):
        return f"<Promo(id={self.id}, name='{self.name}', type='{self.type}')>"

