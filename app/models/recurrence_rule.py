"""Recurrence Rule model - weekly time windows that gate a promo."""
from datetime import datetime, time, timedelta
from sqlalchemy import Column, BigInteger, String, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base, IdType

DAYS_OF_WEEK = ('Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday')


def normalize_day_of_week(value: str) -> str:
    """
    Normalize an English day name ("friday", " FRIDAY ") to its capitalised form.

    Raises:
        ValueError: if the value is not one of the seven day names.
    """
    if not isinstance(value, str):
        raise ValueError('dayOfWeek must be an English day name')
    day = value.strip().capitalize()
    if day not in DAYS_OF_WEEK:
        raise ValueError(f'Invalid dayOfWeek "{value}". Expected one of: {", ".join(DAYS_OF_WEEK)}')
    return day


def parse_hhmm(value: str) -> time:
    """
    Parse a 24h ``HH:MM`` string.

    Raises:
        ValueError: if the value is not a valid time of day.
    """
    try:
        return datetime.strptime(value.strip(), '%H:%M').time()
    except (AttributeError, ValueError):
        raise ValueError(f'Invalid time "{value}". Expected HH:MM (24h)')


class RecurrenceRule(Base):
    """
    One weekday + time-of-day window.

    When ``end_time <= start_time`` the window crosses midnight and ends on the
    following calendar day, e.g. Friday 22:00-02:00 covers Friday 22:00 up to
    Saturday 02:00.
    """

    __tablename__ = 'recurrence_rule'

    id = Column(IdType, primary_key=True, autoincrement=True)
    promo_id = Column(BigInteger, ForeignKey('promo.id', ondelete='CASCADE'), nullable=False, index=True)
    day_of_week = Column(String(10), nullable=False)
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM

    # Relationships
    promo = relationship('Promo', back_populates='recurrence_rules')

    @property
    def crosses_midnight(self) -> bool:
        return parse_hhmm(self.end_time) <= parse_hhmm(self.start_time)

    def _window_starting_on(self, day):
        start = datetime.combine(day, parse_hhmm(self.start_time))
        end = datetime.combine(day, parse_hhmm(self.end_time))
        if end <= start:
            end += timedelta(days=1)
        return start, end

    def is_within(self, instant: datetime) -> bool:
        """
        True if the naive local ``instant`` falls inside this window.

        The window opened on the previous day is checked as well, so the
        after-midnight tail of a crossing window still matches.
        """
        rule_day = DAYS_OF_WEEK.index(normalize_day_of_week(self.day_of_week))

        if instant.weekday() == rule_day:
            start, end = self._window_starting_on(instant.date())
            if start <= instant <= end:
                return True

        if self.crosses_midnight and instant.weekday() == (rule_day + 1) % 7:
            start, end = self._window_starting_on(instant.date() - timedelta(days=1))
            return start <= instant <= end

        return False

    def to_dict(self):
        return {
            'id': self.id,
            'promoId': self.promo_id,
            'dayOfWeek': self.day_of_week,
            'startTime': self.start_time,
            'endTime': self.end_time,
        }

    def __repr__(self):
        return (
            f"<RecurrenceRule(id={self.id}, day_of_week='{self.day_of_week}', "
            f"{self.start_time}-{self.end_time})>"
        )
