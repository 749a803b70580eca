"""Stock Item model."""
from sqlalchemy import Column, String, Boolean, Numeric, DateTime
from sqlalchemy.sql import func
from app.database import Base, IdType
from app.utils.formatters import money_json, qty_json


class StockItem(Base):
    """Raw ingredient on hand (flour, cheese, bottles...)."""

    __tablename__ = 'stock_item'

    id = Column(IdType, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    unit = Column(String(20), nullable=True)
    stock = Column(Numeric(12, 3), nullable=False, default=0)
    min_stock = Column(Numeric(12, 3), nullable=False, default=0, server_default='0')
    is_active = Column(Boolean, nullable=False, default=True)
    cost = Column(Numeric(10, 2), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    @property
    def is_low(self):
        """Below the advisory threshold (never blocks a reservation)."""
        return self.min_stock is not None and self.stock < self.min_stock

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'unit': self.unit,
            'stock': qty_json(self.stock),
            'minStock': qty_json(self.min_stock),
            'isActive': bool(self.is_active),
            'cost': money_json(self.cost) if self.cost is not None else None,
        }

    def __repr__(self):
        return f"<StockItem(id={self.id}, name='{self.name}', stock={self.stock})>"
