"""Order model."""
import enum
from decimal import Decimal
from sqlalchemy import Column, String, Numeric, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, IdType
from app.utils.formatters import money_json, datetime_json
from app.utils.number_format import quantize_money


class OrderStatus(str, enum.Enum):
    """Order lifecycle status."""
    ACTIVE = 'active'
    PAID = 'paid'
    CANCELLED = 'cancelled'


class Order(Base):
    """Customer ticket. Totals are the sum of its line items."""

    __tablename__ = 'pos_order'

    id = Column(IdType, primary_key=True, autoincrement=True)
    customer = Column(String, nullable=True)
    status = Column(String(20), nullable=False, default=OrderStatus.ACTIVE.value)
    subtotal = Column(Numeric(10, 2), nullable=False, default=0)
    discount_total = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False, default=0)
    tip = Column(Numeric(10, 2), nullable=False, default=0)
    payment_method = Column(String(30), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancel_reason = Column(Text, nullable=True)

    # Relationships
    items = relationship(
        'OrderItem',
        back_populates='order',
        cascade='all, delete-orphan',
        order_by='OrderItem.id'
    )

    @property
    def is_open(self) -> bool:
        return self.status == OrderStatus.ACTIVE.value

    def recompute_totals(self):
        """Re-sum subtotal/discount/total from the line items."""
        subtotal = sum((Decimal(item.subtotal or 0) for item in self.items), Decimal('0'))
        discount = sum((Decimal(item.discount_applied or 0) for item in self.items), Decimal('0'))
        self.subtotal = quantize_money(subtotal)
        self.discount_total = quantize_money(discount)
        self.total = quantize_money(max(subtotal - discount, Decimal('0')))

    def to_dict(self, include_items: bool = False):
        data = {
            'id': self.id,
            'customer': self.customer,
            'status': self.status,
            'subtotal': money_json(self.subtotal),
            'discountTotal': money_json(self.discount_total),
            'total': money_json(self.total),
            'tip': money_json(self.tip),
            'paymentMethod': self.payment_method,
            'createdAt': datetime_json(self.created_at),
            'cancelledAt': datetime_json(self.cancelled_at),
            'cancelReason': self.cancel_reason,
        }
        if include_items:
            data['orderItems'] = [item.to_dict() for item in self.items]
        return data

    def __repr__(self):
        return f"<Order(id={self.id}, status='{self.status}', total={self.total})>"
