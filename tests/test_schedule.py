"""Tests for installment due-date stepping."""

from datetime import date

from agencyledger.utils.schedule import (
    last_day_of_month,
    next_quincenal_date,
    quincenal_date,
    month_end_after,
)


def test_last_day_of_month():
    """Test month ends including leap years."""
    assert last_day_of_month(date(2026, 4, 10)) == date(2026, 4, 30)
    assert last_day_of_month(date(2028, 2, 1)) == date(2028, 2, 29)
    assert last_day_of_month(date(2026, 2, 1)) == date(2026, 2, 28)


def test_quincenal_before_fifteenth_goes_to_fifteenth():
    """Test day 10 steps to the 15th."""
    assert next_quincenal_date(date(2026, 6, 10)) == date(2026, 6, 15)


def test_quincenal_mid_month_goes_to_month_end():
    """Test day 20 of a 30-day month steps to the 30th."""
    assert next_quincenal_date(date(2026, 6, 20)) == date(2026, 6, 30)


def test_quincenal_on_fifteenth_goes_to_month_end():
    """Test the 15th itself steps to month end."""
    assert next_quincenal_date(date(2026, 6, 15)) == date(2026, 6, 30)


def test_quincenal_month_end_goes_to_next_fifteenth():
    """Test day 30 of a 30-day month steps to the 15th of the next month."""
    assert next_quincenal_date(date(2026, 6, 30)) == date(2026, 7, 15)


def test_quincenal_crosses_year_end():
    """Test December 31 steps to January 15."""
    assert next_quincenal_date(date(2026, 12, 31)) == date(2027, 1, 15)


def test_quincenal_date_applies_steps():
    """Test that repeated steps alternate 15th and month end."""
    start = date(2026, 1, 5)
    assert [quincenal_date(start, n) for n in range(1, 6)] == [
        date(2026, 1, 15),
        date(2026, 1, 31),
        date(2026, 2, 15),
        date(2026, 2, 28),
        date(2026, 3, 15),
    ]
    assert quincenal_date(start, 0) == start


def test_month_end_after():
    """Test monthly stepping lands on month ends."""
    start = date(2026, 1, 31)
    assert month_end_after(start, 0) == date(2026, 1, 31)
    assert month_end_after(start, 1) == date(2026, 2, 28)
    assert month_end_after(start, 3) == date(2026, 4, 30)
    assert month_end_after(date(2026, 11, 3), 2) == date(2027, 1, 31)
