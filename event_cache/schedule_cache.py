"""Long-lived owner of the event and category stores."""
import logging
import threading
from datetime import date
from typing import Iterable, List, Optional

from event_cache.category_store import CategoryStore
from event_cache.event_store import EventStore
from event_cache.models import Category, Event
from event_cache.program import ProgramSchedule
from storage.schedule_repository import ScheduleRepository

logger = logging.getLogger(__name__)


class ScheduleCache:
    """
    In-memory schedule backed by a repository.

    Created once by the composition root and handed to every consumer.
    All mutations and reads take ``lock``, so a sync round applied from a
    worker thread never interleaves with a select or deselect.
    """

    def __init__(self, program: ProgramSchedule, repository: ScheduleRepository):
        self.program = program
        self.repository = repository
        self.ordering = program.ordering()
        self.events = EventStore(program.days, self.ordering)
        self.categories = CategoryStore()
        self.lock = threading.RLock()
        self.version = 0
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        """
        Load persisted records into memory.

        Events and categories are loaded before the saved selection is
        resolved against them. Calling this twice is a no-op.
        """
        with self.lock:
            if self._initialized:
                return
            events = self.repository.load_events()
            stored = sum(1 for event in events if self.events.upsert(event))
            for category in self.repository.load_categories():
                self.categories.upsert(category)
            self.version = self.repository.load_version()
            self.reselect(self.repository.load_selected_ids())
            self._initialized = True
            logger.info(
                f"Loaded {stored} events, {len(self.categories)} categories, "
                f"{len(self.events.selected)} selected at version {self.version}"
            )

    def teardown(self) -> None:
        """Persist the current state and empty the in-memory stores."""
        with self.lock:
            if not self._initialized:
                return
            self.persist()
            self.events.clear()
            self.categories.clear()
            self._initialized = False

    def reselect(self, pks: Iterable[int]) -> List[int]:
        """
        Select every pk that resolves to a loaded event.

        Returns:
            The pks that did not resolve and were dropped
        """
        dropped = []
        with self.lock:
            for pk in pks:
                if self.events.is_known(pk):
                    self.events.select(pk)
                else:
                    dropped.append(pk)
        if dropped:
            logger.info(f"Dropped selection of unknown events: {dropped}")
        return dropped

    def select(self, pk: int) -> Event:
        """Select a loaded event and save the selection. Raises EventNotFoundError."""
        with self.lock:
            event = self.events.select(pk)
            self.repository.save_selected_ids(self.events.selected_identities())
        return event

    def deselect(self, pk: int) -> bool:
        with self.lock:
            removed = self.events.deselect(pk)
            if removed:
                self.repository.save_selected_ids(self.events.selected_identities())
        return removed

    def persist(self) -> None:
        """Write events, categories and selection to the repository."""
        with self.lock:
            self.repository.save_snapshot(
                self.events.all_events(),
                self.categories.all(),
                self.events.selected_identities()
            )

    def commit_version(self, version: int) -> None:
        with self.lock:
            self.repository.save_version(version)
            self.version = version

    def sorted_for_day(
        self,
        day: date,
        college_id: Optional[int] = None,
        type_id: Optional[int] = None
    ) -> List[Event]:
        with self.lock:
            return self.events.sorted_for_day(day, college_id=college_id, type_id=type_id)

    def sorted_selected_for_day(self, day: date) -> List[Event]:
        with self.lock:
            return self.events.sorted_selected_for_day(day)

    def is_selected(self, pk: int) -> bool:
        with self.lock:
            return self.events.is_selected(pk)

    def sorted_colleges(self) -> List[Category]:
        with self.lock:
            return self.categories.sorted_colleges()

    def sorted_types(self) -> List[Category]:
        with self.lock:
            return self.categories.sorted_types()
