"""Promo service - promo definitions and their recurrence rules."""
import logging
from datetime import datetime, tzinfo
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from app.exceptions import ValidationError
from app.models import Promo, RecurrenceRule, normalize_day_of_week, parse_hhmm, parse_instant
from app.repositories import MenuItemRepository, PromoRepository, RecurrenceRuleRepository
from app.utils.formatters import to_local
from app.utils.number_format import parse_bool, parse_decimal, parse_int

logger = logging.getLogger(__name__)

# JSON field -> (attribute, parser)
_PROMO_FIELDS = {
    'name': ('name', lambda v: str(v).strip() if v is not None else None),
    'type': ('type', lambda v: v),
    'percentage': ('percentage', lambda v: None if v is None else parse_decimal(v, 'percentage')),
    'discount': ('discount', lambda v: None if v is None else parse_decimal(v, 'discount')),
    'buy_quantity': ('buy_quantity', lambda v: None if v is None else parse_int(v, 'buy_quantity')),
    'pay_quantity': ('pay_quantity', lambda v: None if v is None else parse_int(v, 'pay_quantity')),
    'always': ('always', lambda v: parse_bool(v, 'always')),
    'isActive': ('is_active', lambda v: parse_bool(v, 'isActive')),
}


def _parse_bound(value, field: str, tz: Optional[tzinfo] = None) -> Optional[datetime]:
    if value in (None, ''):
        return None
    try:
        # Bounds are stored as naive local time
        return to_local(parse_instant(value), tz)
    except ValueError:
        raise ValueError(f'"{field}" must be an ISO-8601 date/time')


def _apply_promo_fields(promo: Promo, data: Dict[str, Any], tz: Optional[tzinfo] = None) -> None:
    try:
        if 'startDate' in data:
            promo.start_date = _parse_bound(data['startDate'], 'startDate', tz)
        if 'endDate' in data:
            promo.end_date = _parse_bound(data['endDate'], 'endDate', tz)
        for key, (attr, parser) in _PROMO_FIELDS.items():
            if key in data:
                setattr(promo, attr, parser(data[key]))
    except ValueError as e:
        raise ValidationError(str(e))

    errors = promo.validation_errors()
    if errors:
        raise ValidationError('Invalid promo: ' + '; '.join(errors), payload={'errors': errors})


def _apply_rule_fields(rule: RecurrenceRule, data: Dict[str, Any]) -> None:
    try:
        if 'dayOfWeek' in data:
            rule.day_of_week = normalize_day_of_week(data['dayOfWeek'])
        if 'startTime' in data:
            rule.start_time = parse_hhmm(data['startTime']).strftime('%H:%M')
        if 'endTime' in data:
            rule.end_time = parse_hhmm(data['endTime']).strftime('%H:%M')
    except ValueError as e:
        raise ValidationError(str(e))

    missing = [name for name, value in (
        ('dayOfWeek', rule.day_of_week),
        ('startTime', rule.start_time),
        ('endTime', rule.end_time),
    ) if not value]
    if missing:
        raise ValidationError(f'Missing recurrence rule fields: {", ".join(missing)}')


def list_promos(session: Session) -> List[Promo]:
    return PromoRepository(session).list_all()


def get_promo(session: Session, promo_id: int) -> Promo:
    return PromoRepository(session).get_or_404(promo_id)


def create_promo(session: Session, data: Dict[str, Any], tz: Optional[tzinfo] = None) -> Promo:
    """
    Create a promo (optionally with ``recurrenceRules``) from a JSON payload.

    Raises:
        NotFoundError: unknown menuItemId.
        ValidationError: malformed definition (e.g. buy_quantity <= pay_quantity).
    """
    try:
        menu_item_id = parse_int(data.get('menuItemId'), 'menuItemId')
    except ValueError as e:
        raise ValidationError(str(e))

    try:
        menu_item = MenuItemRepository(session).get_or_404(menu_item_id)
        promo = Promo(menu_item_id=menu_item.id, always=False, is_active=True)
        _apply_promo_fields(promo, data, tz)

        for rule_data in data.get('recurrenceRules') or []:
            rule = RecurrenceRule()
            _apply_rule_fields(rule, rule_data)
            promo.recurrence_rules.append(rule)

        PromoRepository(session).save(promo)
        session.commit()
        logger.info(f"[PROMO] Created promo #{promo.id} '{promo.name}' ({promo.type}) for menu item #{menu_item.id}")
        return promo
    except Exception:
        session.rollback()
        raise


def update_promo(session: Session, promo_id: int, data: Dict[str, Any], tz: Optional[tzinfo] = None) -> Promo:
    try:
        promo = PromoRepository(session).get_or_404(promo_id)
        _apply_promo_fields(promo, data, tz)
        session.commit()
        logger.info(f"[PROMO] Updated promo #{promo.id}")
        return promo
    except Exception:
        session.rollback()
        raise


def delete_promo(session: Session, promo_id: int) -> None:
    """Delete a promo; its recurrence rules go with it."""
    try:
        repo = PromoRepository(session)
        promo = repo.get_or_404(promo_id)
        repo.delete(promo)
        session.commit()
        logger.info(f"[PROMO] Deleted promo #{promo_id}")
    except Exception:
        session.rollback()
        raise


def list_recurrence_rules(session: Session, promo_id: int) -> List[RecurrenceRule]:
    PromoRepository(session).get_or_404(promo_id)
    return RecurrenceRuleRepository(session).list_for_promo(promo_id)


def add_recurrence_rule(session: Session, promo_id: int, data: Dict[str, Any]) -> RecurrenceRule:
    try:
        promo = PromoRepository(session).get_or_404(promo_id)
        rule = RecurrenceRule(promo_id=promo.id)
        _apply_rule_fields(rule, data)
        RecurrenceRuleRepository(session).save(rule)
        session.commit()
        return rule
    except Exception:
        session.rollback()
        raise


def update_recurrence_rule(session: Session, rule_id: int, data: Dict[str, Any]) -> RecurrenceRule:
    try:
        rule = RecurrenceRuleRepository(session).get_or_404(rule_id)
        _apply_rule_fields(rule, data)
        session.commit()
        return rule
    except Exception:
        session.rollback()
        raise


def delete_recurrence_rule(session: Session, rule_id: int) -> None:
    try:
        repo = RecurrenceRuleRepository(session)
        repo.delete(repo.get_or_404(rule_id))
        session.commit()
    except Exception:
        session.rollback()
        raise


def active_promos_for_menu_item(session: Session, menu_item_id: int, now: datetime) -> List[Promo]:
    """Promos of a menu item that are enabled and valid at ``now`` (naive local time)."""
    MenuItemRepository(session).get_or_404(menu_item_id)
    return [
        promo for promo in PromoRepository(session).list_for_menu_item(menu_item_id)
        if promo.is_currently_active(now)
    ]
