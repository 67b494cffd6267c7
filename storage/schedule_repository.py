"""Persisted layout of the schedule cache on top of a record store."""
import logging
from typing import Iterable, List

from event_cache import codec
from event_cache.models import Category, Event
from storage.record_store import RecordStore

logger = logging.getLogger(__name__)

EVENTS_KEY = 'events'
CATEGORIES_KEY = 'categories'
SELECTED_KEY = 'added_pks'
VERSION_KEY = 'version'
HAS_RUN_KEY = 'has_run_before'


class ScheduleRepository:
    """
    Reads and writes the five persisted keys of the schedule cache.

    Events and categories are stored as codec text records, the selection
    as a flat list of pks, the version and first-run flag as single-element
    lists.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    def load_events(self) -> List[Event]:
        return codec.decode_events(self.store.get(EVENTS_KEY) or [])

    def load_categories(self) -> List[Category]:
        return codec.decode_categories(self.store.get(CATEGORIES_KEY) or [])

    def load_selected_ids(self) -> List[int]:
        """Selected pks, skipping entries that are not integers."""
        selected = []
        for value in self.store.get(SELECTED_KEY) or []:
            try:
                selected.append(int(value))
            except ValueError:
                logger.warning(f"Skipping saved selection entry: {value!r}")
        return selected

    def load_version(self) -> int:
        """Last committed feed version; 0 when nothing was ever synced."""
        values = self.store.get(VERSION_KEY)
        if not values:
            return 0
        try:
            return int(values[0])
        except ValueError:
            logger.warning(f"Saved version is not an integer: {values[0]!r}")
            return 0

    def save_snapshot(
        self,
        events: Iterable[Event],
        categories: Iterable[Category],
        selected_ids: Iterable[int]
    ) -> None:
        """Write events, categories and selection together."""
        self.store.set_many({
            EVENTS_KEY: [codec.encode_event(event) for event in events],
            CATEGORIES_KEY: [codec.encode_category(category) for category in categories],
            SELECTED_KEY: [str(pk) for pk in selected_ids],
        })

    def save_selected_ids(self, selected_ids: Iterable[int]) -> None:
        self.store.set(SELECTED_KEY, [str(pk) for pk in selected_ids])

    def save_version(self, version: int) -> None:
        self.store.set(VERSION_KEY, [str(version)])

    def has_run_before(self) -> bool:
        values = self.store.get(HAS_RUN_KEY)
        return bool(values) and values[0] == 'true'

    def mark_run(self) -> None:
        self.store.set(HAS_RUN_KEY, ['true'])
