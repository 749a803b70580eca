"""Orders blueprint - order lifecycle and totals."""
from flask import Blueprint, jsonify, request
from app.database import get_session
from app.exceptions import ValidationError
from app.models import OrderStatus
from app.services import order_item_service, order_service
from app.utils.request_helpers import json_body, optional_decimal, lock_timeout

orders_bp = Blueprint('orders', __name__, url_prefix='/orders')


@orders_bp.route('', methods=['POST'])
def create_order():
    data = json_body()
    order = order_service.create_order(get_session(), customer=data.get('customer'))
    return jsonify({'order': order.to_dict(include_items=True)}), 201


@orders_bp.route('', methods=['GET'])
def list_orders():
    """List orders, newest first. Optional ?status=active|paid|cancelled"""
    status = request.args.get('status') or None
    if status and status not in [s.value for s in OrderStatus]:
        raise ValidationError(f'Unknown status "{status}"')
    orders = order_service.list_orders(get_session(), status)
    return jsonify({'orders': [order.to_dict() for order in orders]})


@orders_bp.route('/active', methods=['GET'])
def list_active_orders():
    orders = order_service.list_orders(get_session(), OrderStatus.ACTIVE.value)
    return jsonify({'orders': [order.to_dict(include_items=True) for order in orders]})


@orders_bp.route('/<int:order_id>', methods=['GET'])
def get_order(order_id):
    order = order_service.get_order(get_session(), order_id)
    return jsonify({'order': order.to_dict(include_items=True)})


@orders_bp.route('/<int:order_id>/order-items', methods=['GET'])
def list_order_items(order_id):
    items = order_item_service.list_order_items(get_session(), order_id)
    return jsonify({'orderItems': [item.to_dict() for item in items]})


@orders_bp.route('/<int:order_id>/cancel', methods=['PUT'])
def cancel_order(order_id):
    """Cancel an order and return all its stock. Body: {cancelReason}"""
    data = json_body()
    order = order_service.cancel_order(
        get_session(),
        order_id,
        cancel_reason=data.get('cancelReason'),
        lock_timeout=lock_timeout()
    )
    return jsonify({'order': order.to_dict()})


@orders_bp.route('/<int:order_id>/charge', methods=['PUT'])
def charge_order(order_id):
    data = json_body()
    order = order_service.charge_order(
        get_session(),
        order_id,
        tip=optional_decimal(data, 'tip'),
        payment_method=data.get('paymentMethod'),
        lock_timeout=lock_timeout()
    )
    return jsonify({'order': order.to_dict(include_items=True)})


@orders_bp.route('/<int:order_id>/tip', methods=['PATCH'])
def update_tip(order_id):
    data = json_body()
    tip = optional_decimal(data, 'tip')
    if tip is None:
        raise ValidationError('"tip" is required')
    order = order_service.set_tip(get_session(), order_id, tip, lock_timeout=lock_timeout())
    return jsonify({'order': order.to_dict()})
