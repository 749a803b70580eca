"""
Formatting helpers shared by models and blueprints.

Includes JSON-friendly number conversion and local time resolution for
promo evaluation.
"""
from datetime import datetime, tzinfo
from decimal import Decimal
from typing import Optional, Union
from zoneinfo import ZoneInfo


def money_json(value: Union[Decimal, int, float, None]) -> float:
    """Decimal amount as a JSON number (None -> 0.0)."""
    if value is None:
        return 0.0
    return float(Decimal(value).quantize(Decimal('0.01')))


def qty_json(value: Union[Decimal, int, float, None]) -> float:
    """Stock quantity as a JSON number (None -> 0.0)."""
    if value is None:
        return 0.0
    return float(value)


def datetime_json(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def get_timezone(name: Optional[str]) -> tzinfo:
    """Resolve an IANA time zone name (defaults to UTC)."""
    return ZoneInfo(name or 'UTC')


def to_local(instant: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """
    Resolve an instant to naive local wall-clock time.

    Aware datetimes are converted to ``tz``; naive ones are assumed to be
    local time already and returned untouched.
    """
    if instant.tzinfo is None:
        return instant
    return instant.astimezone(tz or ZoneInfo('UTC')).replace(tzinfo=None)


def now_local(tz: Optional[tzinfo] = None) -> datetime:
    """Current naive local time in ``tz``."""
    return datetime.now(tz or ZoneInfo('UTC')).replace(tzinfo=None)
