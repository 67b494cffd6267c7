"""Shared fixtures for schedule cache tests."""
import pytest

from event_cache.program import ProgramSchedule
from event_cache.schedule_cache import ScheduleCache
from factories import DAY_1, DAY_2, DAY_3
from storage.record_store import InMemoryRecordStore
from storage.schedule_repository import ScheduleRepository


@pytest.fixture
def program():
    return ProgramSchedule(days=(DAY_1, DAY_2, DAY_3), start_hour=7, end_hour=2)


@pytest.fixture
def record_store():
    return InMemoryRecordStore()


@pytest.fixture
def repository(record_store):
    return ScheduleRepository(record_store)


@pytest.fixture
def cache(program, repository):
    schedule_cache = ScheduleCache(program, repository)
    schedule_cache.initialize()
    return schedule_cache
