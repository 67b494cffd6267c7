"""Two-level index of entities bucketed by day and keyed by identity."""
import logging
from datetime import date
from typing import Callable, Dict, Generic, Iterable, List, Optional, TypeVar

logger = logging.getLogger(__name__)

E = TypeVar('E')


class EntityIndex(Generic[E]):
    """
    Day bucket -> identity -> entity.

    Identity, not the day key, decides where an entity lives: upserting an
    entity whose day changed moves it to the new bucket and leaves no copy
    behind in the old one. A side map from identity to day keeps lookups
    constant-time and is updated together with the buckets on every mutation.
    """

    def __init__(
        self,
        days: Iterable[date],
        identity: Callable[[E], int] = lambda entity: entity.pk,
        day_key: Callable[[E], date] = lambda entity: entity.date,
        sort_key: Optional[Callable[[E], object]] = None,
        name: str = 'index'
    ):
        self._buckets: Dict[date, Dict[int, E]] = {day: {} for day in days}
        self._locations: Dict[int, date] = {}
        self._identity = identity
        self._day_key = day_key
        self._sort_key = sort_key or identity
        self.name = name

    @property
    def days(self) -> List[date]:
        return list(self._buckets)

    def upsert(self, entity: E) -> bool:
        """
        Insert an entity, replacing any stored entity with the same identity.

        Args:
            entity: Entity to store

        Returns:
            True if stored, False if its day is not a known bucket
        """
        day = self._day_key(entity)
        pk = self._identity(entity)
        if day not in self._buckets:
            logger.warning(
                f"{self.name}: rejected {pk}, {day} is not a program day"
            )
            return False

        old_day = self._locations.get(pk)
        if old_day is not None:
            del self._buckets[old_day][pk]
            if old_day != day:
                logger.debug(f"{self.name}: moved {pk} from {old_day} to {day}")

        self._buckets[day][pk] = entity
        self._locations[pk] = day
        return True

    def remove(self, pk: int) -> bool:
        """Remove the entity with this identity. Returns whether one was removed."""
        day = self._locations.pop(pk, None)
        if day is None:
            return False
        del self._buckets[day][pk]
        return True

    def contains(self, pk: int) -> bool:
        return pk in self._locations

    def get(self, pk: int) -> Optional[E]:
        day = self._locations.get(pk)
        if day is None:
            return None
        return self._buckets[day][pk]

    def day_of(self, pk: int) -> Optional[date]:
        """Bucket currently holding this identity, if any."""
        return self._locations.get(pk)

    def sorted(self, day: date) -> List[E]:
        """Entities stored under ``day`` in sort order; empty for unknown days."""
        bucket = self._buckets.get(day)
        if not bucket:
            return []
        return sorted(bucket.values(), key=self._sort_key)

    def values(self) -> List[E]:
        return [entity for bucket in self._buckets.values() for entity in bucket.values()]

    def identities(self) -> List[int]:
        return list(self._locations)

    def clear(self) -> None:
        """Empty every bucket. The buckets themselves are kept."""
        for bucket in self._buckets.values():
            bucket.clear()
        self._locations.clear()

    def __len__(self) -> int:
        return len(self._locations)

    def __contains__(self, pk: int) -> bool:
        return self.contains(pk)
