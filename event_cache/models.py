"""Data models for the schedule cache."""
from dataclasses import astuple, dataclass, field
from datetime import date
from typing import List, Optional


@dataclass(frozen=True, order=True)
class ClockTime:
    """Wall-clock time of day with minute resolution."""
    hour: int
    minute: int

    def __post_init__(self):
        if not 0 <= self.hour <= 23:
            raise ValueError(f"hour out of range: {self.hour}")
        if not 0 <= self.minute <= 59:
            raise ValueError(f"minute out of range: {self.minute}")

    @property
    def minutes(self) -> int:
        """Minutes since midnight."""
        return self.hour * 60 + self.minute

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True, eq=False)
class Event:
    """
    A single program event.

    ``date`` is the day the event begins. Events may run past midnight, so
    ``end_time`` is not guaranteed to be later than ``start_time``.
    Two events are equal when their ``pk`` values are equal.
    """
    pk: int
    title: str
    caption: str
    description: str
    additional_info: str
    college_category_id: int
    type_category_id: int
    start_time: ClockTime
    end_time: ClockTime
    date: date
    place_id: str
    full: bool
    image_pk: int

    def __post_init__(self):
        if self.pk <= 0:
            raise ValueError(f"event pk must be positive: {self.pk}")

    def same_fields(self, other: "Event") -> bool:
        """Field-by-field comparison, unlike ``==`` which compares identity."""
        return astuple(self) == astuple(other)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Event):
            return NotImplemented
        return self.pk == other.pk

    def __hash__(self) -> int:
        return hash(self.pk)


@dataclass(frozen=True, eq=False)
class Category:
    """A college or type category events are filed under."""
    pk: int
    name: str
    description: str
    is_college: bool

    def __post_init__(self):
        if self.pk <= 0:
            raise ValueError(f"category pk must be positive: {self.pk}")

    def same_fields(self, other: "Category") -> bool:
        return astuple(self) == astuple(other)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Category):
            return NotImplemented
        return self.pk == other.pk

    def __hash__(self) -> int:
        return hash(self.pk)


@dataclass
class FeedUpdate:
    """Changes reported by the remote feed since a given version."""
    new_version: int
    changed_categories: List[Category] = field(default_factory=list)
    deleted_category_ids: List[int] = field(default_factory=list)
    changed_events: List[Event] = field(default_factory=list)
    deleted_event_ids: List[int] = field(default_factory=list)


@dataclass
class SyncResult:
    """Result of one sync round."""
    completed: bool
    version: int
    categories_changed: int = 0
    categories_deleted: int = 0
    events_changed: int = 0
    events_deleted: int = 0
    events_rejected: int = 0
    changed_selected: List[Event] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    error_type: Optional[str] = None