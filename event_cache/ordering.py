"""Chronological ordering of events that may start after midnight."""
from typing import Iterable, List

from event_cache.models import Event


class OrderingPolicy:
    """
    Orders events by day, then by start time within the day.

    A program day runs from ``start_hour`` in the morning until
    ``end_hour`` the following night. Events starting at or before
    ``end_hour`` belong to the late session of their nominal day and sort
    after events starting at or after ``start_hour``.
    """

    def __init__(self, start_hour: int, end_hour: int):
        """
        Args:
            start_hour: First hour of the early-morning band (inclusive)
            end_hour: Last hour of the late-night band (inclusive)

        Raises:
            ValueError: If the bands overlap or an hour is out of range
        """
        if not (0 <= end_hour <= 23 and 0 <= start_hour <= 23):
            raise ValueError("hours must be within 0-23")
        if end_hour >= start_hour:
            raise ValueError(
                f"end_hour ({end_hour}) must be earlier than start_hour ({start_hour})"
            )
        self.start_hour = start_hour
        self.end_hour = end_hour

    def is_late_night(self, event: Event) -> bool:
        return event.start_time.hour <= self.end_hour

    def sort_key(self, event: Event) -> tuple:
        """
        Key placing late-night starts after the rest of their day.

        Hours in the late-night band are shifted by a full day, so a 00:30
        start compares as 24:30. Identity breaks remaining ties.
        """
        minutes = event.start_time.minutes
        if self.is_late_night(event):
            minutes += 24 * 60
        return (event.date, minutes, event.pk)

    def compare(self, a: Event, b: Event) -> int:
        """Return -1, 0 or 1 as ``a`` sorts before, with, or after ``b``."""
        key_a = self.sort_key(a)
        key_b = self.sort_key(b)
        if key_a < key_b:
            return -1
        if key_a > key_b:
            return 1
        return 0

    def precedes(self, a: Event, b: Event) -> bool:
        return self.compare(a, b) < 0

    def sorted(self, events: Iterable[Event]) -> List[Event]:
        return sorted(events, key=self.sort_key)
