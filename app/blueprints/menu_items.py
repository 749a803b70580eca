"""Menu items blueprint - recipe lookups."""
from flask import Blueprint, jsonify
from app.database import get_session
from app.services import stock_service

menu_items_bp = Blueprint('menu_items', __name__, url_prefix='/menu-items')


@menu_items_bp.route('/<int:menu_item_id>/ingredients', methods=['GET'])
def menu_item_ingredients(menu_item_id):
    """Menu item with the stock items one unit of it consumes."""
    menu_item, ingredients = stock_service.menu_item_recipe(get_session(), menu_item_id)
    data = menu_item.to_dict()
    data['ingredients'] = [ingredient.to_dict(include_stock_item=True) for ingredient in ingredients]
    return jsonify({'menuItem': data})
