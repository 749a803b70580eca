"""Stock service - stock item maintenance and menu item recipes."""
import logging
from typing import Any, Dict, List, Tuple
from sqlalchemy.orm import Session
from app.exceptions import BusinessLogicError, ValidationError
from app.models import Ingredient, MenuItem, StockItem
from app.repositories import IngredientRepository, MenuItemRepository, StockItemRepository
from app.utils.number_format import parse_bool, parse_decimal, quantize_money, quantize_stock

logger = logging.getLogger(__name__)


def _text(value, field: str):
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f'"{field}" must be a string')
    return value.strip() or None


# JSON field -> (attribute, parser)
_STOCK_FIELDS = {
    'name': ('name', lambda v: _text(v, 'name')),
    'unit': ('unit', lambda v: _text(v, 'unit')),
    'stock': ('stock', lambda v: quantize_stock(parse_decimal(v, 'stock'))),
    'minStock': ('min_stock', lambda v: quantize_stock(parse_decimal(v, 'minStock'))),
    'isActive': ('is_active', lambda v: parse_bool(v, 'isActive')),
    'cost': ('cost', lambda v: None if v is None else quantize_money(parse_decimal(v, 'cost'))),
}


def _apply_stock_fields(stock_item: StockItem, data: Dict[str, Any]) -> None:
    try:
        for key, (attr, parser) in _STOCK_FIELDS.items():
            if key in data:
                setattr(stock_item, attr, parser(data[key]))
    except ValueError as e:
        raise ValidationError(str(e))

    if not stock_item.name:
        raise ValidationError('"name" is required')


def list_stock_items(session: Session) -> List[StockItem]:
    return StockItemRepository(session).list_all()


def get_stock_item(session: Session, stock_item_id: int) -> StockItem:
    return StockItemRepository(session).get_or_404(stock_item_id)


def create_stock_item(session: Session, data: Dict[str, Any]) -> StockItem:
    """
    Create a stock item.

    Raises:
        ValidationError: missing name or malformed numbers/flags.
    """
    try:
        stock_item = StockItem(stock=quantize_stock(0), min_stock=quantize_stock(0), is_active=True)
        _apply_stock_fields(stock_item, data)
        StockItemRepository(session).save(stock_item)
        session.commit()
        logger.info(f"[STOCK] Created stock item #{stock_item.id} '{stock_item.name}' ({stock_item.stock})")
        return stock_item
    except Exception:
        session.rollback()
        raise


def update_stock_item(session: Session, stock_item_id: int, data: Dict[str, Any]) -> StockItem:
    """
    Update a stock item in place (restock, threshold, activation...).

    The row is locked so a manual stock count does not interleave with an
    order reservation.
    """
    try:
        stock_item = StockItemRepository(session).get_or_404(stock_item_id, for_update=True)
        previous = stock_item.stock
        _apply_stock_fields(stock_item, data)
        session.commit()

        if 'stock' in data:
            logger.info(f"[STOCK] Stock item #{stock_item.id} set from {previous} to {stock_item.stock}")
        if 'isActive' in data and not stock_item.is_active:
            logger.warning(f"[STOCK] Stock item #{stock_item.id} '{stock_item.name}' deactivated")
        return stock_item
    except Exception:
        session.rollback()
        raise


def delete_stock_item(session: Session, stock_item_id: int) -> None:
    """Delete a stock item that no recipe uses."""
    try:
        repo = StockItemRepository(session)
        stock_item = repo.get_or_404(stock_item_id)
        used_by = IngredientRepository(session).count_for_stock_item(stock_item.id)
        if used_by:
            raise BusinessLogicError(
                f"Stock item '{stock_item.name}' is used by {used_by} recipe ingredient(s); deactivate it instead"
            )
        repo.delete(stock_item)
        session.commit()
        logger.info(f"[STOCK] Deleted stock item #{stock_item_id}")
    except Exception:
        session.rollback()
        raise


def menu_item_recipe(session: Session, menu_item_id: int) -> Tuple[MenuItem, List[Ingredient]]:
    """A menu item with the ingredients (and their stock items) it consumes."""
    menu_item = MenuItemRepository(session).get_or_404(menu_item_id)
    return menu_item, IngredientRepository(session).list_for_menu_item(menu_item.id)
