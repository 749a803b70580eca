"""Menu Item model."""
from sqlalchemy import Column, String, Boolean, Numeric, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, IdType
from app.utils.formatters import money_json


class MenuItem(Base):
    """Menu item sold on an order (price and recipe)."""

    __tablename__ = 'menu_item'

    id = Column(IdType, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    ingredients = relationship('Ingredient', back_populates='menu_item', cascade='all, delete-orphan')
    promos = relationship('Promo', back_populates='menu_item', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'price': money_json(self.price),
            'isActive': bool(self.is_active),
        }

    def __repr__(self):
        return f"<MenuItem(id={self.id}, name='{self.name}', price={self.price})>"
