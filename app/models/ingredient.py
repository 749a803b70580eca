"""Ingredient model."""
from sqlalchemy import Column, Numeric, ForeignKey, BigInteger
from sqlalchemy.orm import relationship
from app.database import Base, IdType
from app.utils.formatters import qty_json


class Ingredient(Base):
    """Binds a menu item to the stock item it consumes."""

    __tablename__ = 'ingredient'

    id = Column(IdType, primary_key=True, autoincrement=True)
    menu_item_id = Column(BigInteger, ForeignKey('menu_item.id', ondelete='CASCADE'), nullable=False, index=True)
    stock_item_id = Column(BigInteger, ForeignKey('stock_item.id'), nullable=False, index=True)
    # Consumption per one unit of the menu item sold
    quantity_used = Column(Numeric(12, 3), nullable=False)

    # Relationships
    menu_item = relationship('MenuItem', back_populates='ingredients')
    stock_item = relationship('StockItem')

    def to_dict(self, include_stock_item=False):
        data = {
            'id': self.id,
            'menuItemId': self.menu_item_id,
            'stockItemId': self.stock_item_id,
            'quantityUsed': qty_json(self.quantity_used),
        }
        if include_stock_item and self.stock_item is not None:
            data['stockItem'] = self.stock_item.to_dict()
        return data

    def __repr__(self):
        return (
            f"<Ingredient(id={self.id}, menu_item_id={self.menu_item_id}, "
            f"stock_item_id={self.stock_item_id}, quantity_used={self.quantity_used})>"
        )
