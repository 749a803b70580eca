"""Promos blueprint - promo definitions and recurrence rules."""
from flask import Blueprint, jsonify
from app.database import get_session
from app.services import promo_service
from app.utils.formatters import now_local
from app.utils.request_helpers import json_body, restaurant_timezone

promos_bp = Blueprint('promos', __name__, url_prefix='/promos')


@promos_bp.route('', methods=['GET'])
def list_promos():
    promos = promo_service.list_promos(get_session())
    return jsonify({'promos': [promo.to_dict() for promo in promos]})


@promos_bp.route('', methods=['POST'])
def create_promo():
    """
    Create a promo.

    Body: {menuItemId, name, type, percentage?, discount?, buy_quantity?,
    pay_quantity?, startDate?, endDate?, always?, isActive?, recurrenceRules?}
    """
    promo = promo_service.create_promo(get_session(), json_body(), tz=restaurant_timezone())
    return jsonify({'promo': promo.to_dict()}), 201


@promos_bp.route('/<int:promo_id>', methods=['GET'])
def get_promo(promo_id):
    promo = promo_service.get_promo(get_session(), promo_id)
    return jsonify({'promo': promo.to_dict()})


@promos_bp.route('/<int:promo_id>', methods=['PUT'])
def update_promo(promo_id):
    promo = promo_service.update_promo(get_session(), promo_id, json_body(), tz=restaurant_timezone())
    return jsonify({'promo': promo.to_dict()})


@promos_bp.route('/<int:promo_id>', methods=['DELETE'])
def delete_promo(promo_id):
    promo_service.delete_promo(get_session(), promo_id)
    return jsonify({'status': 'ok', 'deleted': promo_id})


@promos_bp.route('/<int:promo_id>/recurrence-rules', methods=['GET'])
def list_recurrence_rules(promo_id):
    rules = promo_service.list_recurrence_rules(get_session(), promo_id)
    return jsonify({'recurrenceRules': [rule.to_dict() for rule in rules]})


@promos_bp.route('/<int:promo_id>/recurrence-rules', methods=['POST'])
def add_recurrence_rule(promo_id):
    """Body: {dayOfWeek, startTime, endTime}"""
    rule = promo_service.add_recurrence_rule(get_session(), promo_id, json_body())
    return jsonify({'recurrenceRule': rule.to_dict()}), 201


@promos_bp.route('/recurrence-rules/<int:rule_id>', methods=['PUT'])
def update_recurrence_rule(rule_id):
    rule = promo_service.update_recurrence_rule(get_session(), rule_id, json_body())
    return jsonify({'recurrenceRule': rule.to_dict()})


@promos_bp.route('/recurrence-rules/<int:rule_id>', methods=['DELETE'])
def delete_recurrence_rule(rule_id):
    promo_service.delete_recurrence_rule(get_session(), rule_id)
    return jsonify({'status': 'ok', 'deleted': rule_id})


@promos_bp.route('/menu-item/<int:menu_item_id>/active', methods=['GET'])
def active_promos(menu_item_id):
    """Promos of a menu item valid right now (restaurant local time)."""
    now = now_local(restaurant_timezone())
    promos = promo_service.active_promos_for_menu_item(get_session(), menu_item_id, now)
    return jsonify({'promos': [promo.to_dict() for promo in promos]})
