"""
Unit tests for promo validity and discount math.
"""

import pytest
from datetime import datetime
from decimal import Decimal
from app.models import Promo, RecurrenceRule


def _promo(**kwargs):
    defaults = dict(name='Promo', type='percentage_discount', percentage=Decimal('10'), always=True, is_active=True)
    defaults.update(kwargs)
    return Promo(**defaults)


class TestPromoValidity:
    """Tests for Promo.is_valid_at."""

    def test_always_promo_is_valid(self):
        assert _promo().is_valid_at(datetime(2024, 3, 15, 12, 0)) is True

    def test_before_start_date(self):
        promo = _promo(start_date=datetime(2024, 3, 10))
        assert promo.is_valid_at(datetime(2024, 3, 9, 23, 59)) is False
        assert promo.is_valid_at(datetime(2024, 3, 10)) is True

    def test_after_end_date(self):
        promo = _promo(end_date=datetime(2024, 3, 20))
        assert promo.is_valid_at(datetime(2024, 3, 20)) is True
        assert promo.is_valid_at(datetime(2024, 3, 20, 0, 1)) is False

    def test_not_always_without_rules_never_applies(self):
        promo = _promo(always=False)
        assert promo.is_valid_at(datetime(2024, 3, 15, 12, 0)) is False

    def test_rules_are_or_combined(self):
        promo = _promo(always=False)
        promo.recurrence_rules.append(RecurrenceRule(day_of_week='Monday', start_time='12:00', end_time='14:00'))
        promo.recurrence_rules.append(RecurrenceRule(day_of_week='Friday', start_time='18:00', end_time='20:00'))

        assert promo.is_valid_at(datetime(2024, 3, 18, 13, 0)) is True
        assert promo.is_valid_at(datetime(2024, 3, 15, 19, 0)) is True
        assert promo.is_valid_at(datetime(2024, 3, 15, 13, 0)) is False

    def test_bounds_apply_to_recurring_promos(self):
        promo = _promo(always=False, end_date=datetime(2024, 3, 1))
        promo.recurrence_rules.append(RecurrenceRule(day_of_week='Friday', start_time='18:00', end_time='20:00'))
        assert promo.is_valid_at(datetime(2024, 3, 15, 19, 0)) is False

    def test_disabled_promo_is_not_currently_active(self):
        promo = _promo(is_active=False)
        assert promo.is_valid_at(datetime(2024, 3, 15, 12, 0)) is True
        assert promo.is_currently_active(datetime(2024, 3, 15, 12, 0)) is False


class TestDiscountCalculation:
    """Tests for Promo.calculate_discount."""

    def test_percentage(self):
        promo = _promo(percentage=Decimal('50'))
        assert promo.calculate_discount(2, Decimal('200.00'), Decimal('100.00')) == Decimal('100.00')

    def test_percentage_rounds_half_up(self):
        promo = _promo(percentage=Decimal('15'))
        # 15% of 0.30 = 0.045
        assert promo.calculate_discount(1, Decimal('0.30'), Decimal('0.30')) == Decimal('0.05')

    def test_price_discount_is_per_unit(self):
        promo = _promo(type='price_discount', percentage=None, discount=Decimal('2.50'))
        assert promo.calculate_discount(4, Decimal('40.00'), Decimal('10.00')) == Decimal('10.00')

    def test_buy_three_pay_two(self):
        promo = _promo(type='buy_x_get_y', percentage=None, buy_quantity=3, pay_quantity=2)
        assert promo.calculate_discount(5, Decimal('50.00'), Decimal('10.00')) == Decimal('10.00')

    def test_buy_x_get_y_incomplete_cycle_earns_nothing(self):
        promo = _promo(type='buy_x_get_y', percentage=None, buy_quantity=3, pay_quantity=2)
        assert promo.calculate_discount(2, Decimal('20.00'), Decimal('10.00')) == Decimal('0.00')

    def test_buy_x_get_y_multiple_cycles(self):
        promo = _promo(type='buy_x_get_y', percentage=None, buy_quantity=2, pay_quantity=1)
        assert promo.calculate_discount(7, Decimal('70.00'), Decimal('10.00')) == Decimal('30.00')

    def test_zero_quantity(self):
        assert _promo().calculate_discount(0, Decimal('0'), Decimal('10')) == Decimal('0.00')


class TestPromoDefinition:
    """Tests for Promo.validation_errors."""

    def test_valid_definition(self):
        assert _promo().validation_errors() == []

    def test_unknown_type(self):
        assert _promo(type='free_lunch').validation_errors()

    def test_percentage_out_of_range(self):
        assert _promo(percentage=Decimal('120')).validation_errors()

    def test_percentage_required(self):
        assert _promo(percentage=None).validation_errors()

    def test_price_discount_required(self):
        assert _promo(type='price_discount', percentage=None).validation_errors()

    @pytest.mark.parametrize('buy,pay', [(2, 2), (2, 3), (0, 0), (None, 1)])
    def test_buy_must_exceed_pay(self, buy, pay):
        promo = _promo(type='buy_x_get_y', percentage=None, buy_quantity=buy, pay_quantity=pay)
        assert promo.validation_errors()

    def test_end_before_start(self):
        promo = _promo(start_date=datetime(2024, 3, 10), end_date=datetime(2024, 3, 1))
        assert 'endDate cannot be before startDate' in promo.validation_errors()
