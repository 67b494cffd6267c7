"""All-events index and the user's selection overlay."""
import logging
from datetime import date
from typing import Iterable, List, Optional

from event_cache.entity_index import EntityIndex
from event_cache.errors import EventNotFoundError
from event_cache.models import Event
from event_cache.ordering import OrderingPolicy

logger = logging.getLogger(__name__)


class EventStore:
    """
    Holds every loaded event plus the subset the user selected.

    Both indexes share the same program days. A selected entry always
    mirrors the current value in ``all`` and sits in the same day bucket.
    """

    def __init__(self, days: Iterable[date], ordering: OrderingPolicy):
        days = list(days)
        self.ordering = ordering
        self.all: EntityIndex[Event] = EntityIndex(
            days, sort_key=ordering.sort_key, name='all-events'
        )
        self.selected: EntityIndex[Event] = EntityIndex(
            days, sort_key=ordering.sort_key, name='selected-events'
        )

    @property
    def days(self) -> List[date]:
        return self.all.days

    def upsert(self, event: Event) -> bool:
        """
        Add or replace an event.

        If the event was selected before the update it stays selected, and
        its selected entry moves along with it when its day changed.

        Returns:
            True if stored, False if its day is not a program day
        """
        was_selected = self.selected.contains(event.pk)
        if not self.all.upsert(event):
            return False
        if was_selected:
            self.selected.upsert(event)
        return True

    def remove(self, pk: int) -> bool:
        """Forget an event entirely. Absent identities are ignored."""
        self.selected.remove(pk)
        return self.all.remove(pk)

    def select(self, pk: int) -> Event:
        """
        Add a loaded event to the selection.

        Raises:
            EventNotFoundError: If no event with this pk is loaded
        """
        event = self.all.get(pk)
        if event is None:
            raise EventNotFoundError(pk)
        self.selected.upsert(event)
        return event

    def deselect(self, pk: int) -> bool:
        return self.selected.remove(pk)

    def is_selected(self, pk: int) -> bool:
        return self.selected.contains(pk)

    def is_known(self, pk: int) -> bool:
        return self.all.contains(pk)

    def get(self, pk: int) -> Optional[Event]:
        return self.all.get(pk)

    def sorted_for_day(
        self,
        day: date,
        college_id: Optional[int] = None,
        type_id: Optional[int] = None
    ) -> List[Event]:
        """
        Events of a day in schedule order, optionally narrowed by category.

        Args:
            day: Program day
            college_id: Only keep events in this college category
            type_id: Only keep events in this type category

        Returns:
            Ordered list of events, empty if the day has none
        """
        events = self.all.sorted(day)
        if college_id is not None:
            events = [e for e in events if e.college_category_id == college_id]
        if type_id is not None:
            events = [e for e in events if e.type_category_id == type_id]
        return events

    def sorted_selected_for_day(self, day: date) -> List[Event]:
        return self.selected.sorted(day)

    def selected_identities(self) -> List[int]:
        return sorted(self.selected.identities())

    def all_events(self) -> List[Event]:
        return self.all.values()

    def clear(self) -> None:
        self.selected.clear()
        self.all.clear()
