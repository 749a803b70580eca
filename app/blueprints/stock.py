"""Stock blueprint - stock item maintenance and low stock view."""
from flask import Blueprint, jsonify
from app.database import get_session
from app.repositories import StockItemRepository
from app.services import stock_service
from app.utils.request_helpers import json_body

stock_bp = Blueprint('stock', __name__, url_prefix='/stock-items')


@stock_bp.route('', methods=['GET'])
def list_stock_items():
    items = stock_service.list_stock_items(get_session())
    return jsonify({'stockItems': [item.to_dict() for item in items]})


@stock_bp.route('', methods=['POST'])
def create_stock_item():
    """Body: {name, unit?, stock?, minStock?, isActive?, cost?}"""
    item = stock_service.create_stock_item(get_session(), json_body())
    return jsonify({'stockItem': item.to_dict()}), 201


@stock_bp.route('/low-stock', methods=['GET'])
def low_stock():
    """Active stock items under their minimum stock."""
    items = StockItemRepository(get_session()).list_low_stock()
    return jsonify({'stockItems': [item.to_dict() for item in items]})


@stock_bp.route('/<int:stock_item_id>', methods=['GET'])
def get_stock_item(stock_item_id):
    item = stock_service.get_stock_item(get_session(), stock_item_id)
    return jsonify({'stockItem': item.to_dict()})


@stock_bp.route('/<int:stock_item_id>', methods=['PUT'])
def update_stock_item(stock_item_id):
    """Partial update. Setting isActive to false blocks new reservations."""
    item = stock_service.update_stock_item(get_session(), stock_item_id, json_body())
    return jsonify({'stockItem': item.to_dict()})


@stock_bp.route('/<int:stock_item_id>', methods=['DELETE'])
def delete_stock_item(stock_item_id):
    stock_service.delete_stock_item(get_session(), stock_item_id)
    return jsonify({'status': 'ok', 'deleted': stock_item_id})
