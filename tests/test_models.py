"""Unit tests for the schedule data models."""
import pytest

from event_cache.models import ClockTime
from factories import DAY_1, DAY_2, make_category, make_event


class TestClockTime:
    """Test cases for ClockTime."""

    def test_rejects_out_of_range_hour(self):
        with pytest.raises(ValueError):
            ClockTime(24, 0)

    def test_rejects_out_of_range_minute(self):
        with pytest.raises(ValueError):
            ClockTime(10, 60)

    def test_minutes_and_str(self):
        time_of_day = ClockTime(8, 5)
        assert time_of_day.minutes == 485
        assert str(time_of_day) == '08:05'


class TestIdentity:
    """Equality is decided by pk alone."""

    def test_events_with_same_pk_are_equal(self):
        first = make_event(pk=7, day=DAY_1, title='Old title')
        second = make_event(pk=7, day=DAY_2, title='New title')

        assert first == second
        assert hash(first) == hash(second)
        assert not first.same_fields(second)

    def test_events_with_different_pk_differ(self):
        assert make_event(pk=1) != make_event(pk=2)

    def test_categories_compare_by_pk(self):
        assert make_category(pk=3, name='A') == make_category(pk=3, name='B')
        assert make_category(pk=3) != make_category(pk=4)

    def test_event_pk_must_be_positive(self):
        with pytest.raises(ValueError):
            make_event(pk=0)
