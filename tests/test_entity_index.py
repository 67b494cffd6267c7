"""Unit tests for EntityIndex."""
import logging

import pytest

from event_cache.entity_index import EntityIndex
from factories import DAY_1, DAY_2, DAY_3, OUTSIDE_DAY, make_event


@pytest.fixture
def index():
    return EntityIndex([DAY_1, DAY_2, DAY_3], sort_key=lambda e: e.start_time)


class TestEntityIndex:
    """Test cases for EntityIndex."""

    def test_buckets_exist_for_every_day(self, index):
        assert index.days == [DAY_1, DAY_2, DAY_3]
        assert index.sorted(DAY_3) == []

    def test_upsert_and_get(self, index):
        event = make_event(pk=1, day=DAY_1)

        assert index.upsert(event) is True
        assert index.contains(1)
        assert index.get(1) is event
        assert index.sorted(DAY_1) == [event]

    def test_upsert_rejects_unknown_day(self, index, caplog):
        with caplog.at_level(logging.WARNING):
            stored = index.upsert(make_event(pk=1, day=OUTSIDE_DAY))

        assert stored is False
        assert not index.contains(1)
        assert len(index) == 0
        assert any('not a program day' in r.message for r in caplog.records)

    def test_rejected_upsert_keeps_previous_copy(self, index):
        original = make_event(pk=1, day=DAY_1)
        index.upsert(original)

        index.upsert(make_event(pk=1, day=OUTSIDE_DAY))

        assert index.get(1) is original

    def test_upsert_relocates_changed_day(self, index):
        index.upsert(make_event(pk=7, day=DAY_1))
        moved = make_event(pk=7, day=DAY_2, title='Moved')

        index.upsert(moved)

        assert index.sorted(DAY_1) == []
        assert index.sorted(DAY_2) == [moved]
        assert index.get(7).title == 'Moved'
        assert index.day_of(7) == DAY_2
        assert len(index) == 1

    def test_upsert_replaces_in_same_day(self, index):
        index.upsert(make_event(pk=3, day=DAY_2, title='Old'))
        index.upsert(make_event(pk=3, day=DAY_2, title='New'))

        stored = index.sorted(DAY_2)
        assert len(stored) == 1
        assert stored[0].title == 'New'

    def test_remove(self, index):
        index.upsert(make_event(pk=1, day=DAY_3))

        assert index.remove(1) is True
        assert index.remove(1) is False
        assert not index.contains(1)
        assert index.get(1) is None
        assert index.sorted(DAY_3) == []

    def test_sorted_uses_sort_key(self, index):
        late = make_event(pk=1, start=(15, 0))
        early = make_event(pk=2, start=(9, 0))
        index.upsert(late)
        index.upsert(early)

        assert index.sorted(DAY_1) == [early, late]

    def test_sorted_unknown_day_is_empty(self, index):
        assert index.sorted(OUTSIDE_DAY) == []

    def test_clear_keeps_buckets(self, index):
        index.upsert(make_event(pk=1))
        index.clear()

        assert len(index) == 0
        assert index.days == [DAY_1, DAY_2, DAY_3]
        assert index.upsert(make_event(pk=1)) is True
