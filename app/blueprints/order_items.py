"""Order items blueprint - quantity changes on open orders."""
from flask import Blueprint, jsonify, current_app
from app.database import get_session
from app.services import order_item_service
from app.utils.request_helpers import (
    json_body, require_int, restaurant_timezone, lock_timeout, warn_low_stock
)

order_items_bp = Blueprint('order_items', __name__, url_prefix='/order-items')

# Errors are rendered by the global PosError handler


@order_items_bp.route('', methods=['POST'])
def create_order_item():
    """
    Add a menu item to an order.

    Body: {menuItemId, orderId, quantity, comments?, timestamp?}
    Adding a menu item that is already on the order adds to its line.
    """
    data = json_body()
    menu_item_id = require_int(data, 'menuItemId')
    order_id = require_int(data, 'orderId')
    quantity = require_int(data, 'quantity')

    item, order = order_item_service.add_menu_item_to_order(
        get_session(),
        order_id,
        menu_item_id,
        quantity,
        comments=data.get('comments'),
        timestamp=data.get('timestamp'),
        tz=restaurant_timezone(),
        lock_timeout=lock_timeout(),
        warn_low_stock=warn_low_stock()
    )
    return jsonify({'orderItem': item.to_dict(), 'order': order.to_dict()}), 201


@order_items_bp.route('/<int:order_item_id>', methods=['GET'])
def get_order_item(order_item_id):
    item = order_item_service.get_order_item(get_session(), order_item_id)
    return jsonify({'orderItem': item.to_dict()})


@order_items_bp.route('/<int:order_item_id>/quantity', methods=['PUT'])
def update_quantity(order_item_id):
    """Apply a signed delta. Body: {quantity, timestamp?, comments?}"""
    data = json_body()
    delta = require_int(data, 'quantity', allow_negative=True)

    item, order = order_item_service.change_quantity(
        get_session(),
        order_item_id,
        delta,
        timestamp=data.get('timestamp'),
        comments=data.get('comments'),
        tz=restaurant_timezone(),
        lock_timeout=lock_timeout(),
        warn_low_stock=warn_low_stock()
    )
    return jsonify({'orderItem': item.to_dict(), 'order': order.to_dict()})


@order_items_bp.route('/<int:order_item_id>', methods=['DELETE'])
def delete_order_item(order_item_id):
    order = order_item_service.remove_order_item(
        get_session(),
        order_item_id,
        lock_timeout=lock_timeout(),
        warn_low_stock=warn_low_stock()
    )
    current_app.logger.info(f"[ORDER] Line #{order_item_id} deleted from order #{order.id}")
    return jsonify({'order': order.to_dict()})
