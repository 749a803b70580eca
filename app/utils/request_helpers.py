"""Request parsing helpers for the JSON blueprints."""
from flask import current_app, request
from app.exceptions import ValidationError
from app.utils.formatters import get_timezone
from app.utils.number_format import parse_decimal, parse_int


def json_body() -> dict:
    """Parsed JSON object of the current request."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def require_int(data: dict, field: str, allow_negative: bool = False) -> int:
    """Read a mandatory integer field, raising ValidationError when it is bad."""
    if data.get(field) is None:
        raise ValidationError(f'"{field}" is required')
    try:
        return parse_int(data[field], field, allow_negative=allow_negative)
    except ValueError as e:
        raise ValidationError(str(e))


def optional_decimal(data: dict, field: str):
    if data.get(field) is None:
        return None
    try:
        return parse_decimal(data[field], field)
    except ValueError as e:
        raise ValidationError(str(e))


def restaurant_timezone():
    return get_timezone(current_app.config.get('POS_TIMEZONE'))


def lock_timeout():
    return current_app.config.get('ORDER_LOCK_TIMEOUT')


def warn_low_stock() -> bool:
    return current_app.config.get('LOW_STOCK_LOG_ENABLED', True)
