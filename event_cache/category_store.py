"""College and type category partitions."""
import logging
from typing import Dict, List, Optional

from event_cache.models import Category

logger = logging.getLogger(__name__)


class CategoryStore:
    """Two flat maps of categories keyed by pk, split by ``is_college``."""

    def __init__(self):
        self._colleges: Dict[int, Category] = {}
        self._types: Dict[int, Category] = {}

    def upsert(self, category: Category, previous_is_college: Optional[bool] = None) -> None:
        """
        Store a category in the partition named by its ``is_college`` flag.

        The other partition is not searched. If the flag of an existing
        category flipped, the caller has to pass the old flag as
        ``previous_is_college`` for the stale entry to be removed; otherwise
        it stays behind in the old partition.

        Args:
            category: Category to store
            previous_is_college: Flag the stored copy had, if known
        """
        if previous_is_college is not None and previous_is_college != category.is_college:
            stale = self._partition(previous_is_college).pop(category.pk, None)
            if stale is not None:
                logger.info(
                    f"Category {category.pk} moved from "
                    f"{self._label(previous_is_college)} to {self._label(category.is_college)}"
                )
        self._partition(category.is_college)[category.pk] = category

    def remove(self, pk: int) -> bool:
        """Remove the category from whichever partition holds it."""
        removed_college = self._colleges.pop(pk, None)
        removed_type = self._types.pop(pk, None)
        return removed_college is not None or removed_type is not None

    def get(self, pk: int) -> Optional[Category]:
        return self._colleges.get(pk) or self._types.get(pk)

    def contains(self, pk: int) -> bool:
        return pk in self._colleges or pk in self._types

    def sorted_colleges(self) -> List[Category]:
        return sorted(self._colleges.values(), key=lambda c: c.name)

    def sorted_types(self) -> List[Category]:
        return sorted(self._types.values(), key=lambda c: c.name)

    def all(self) -> List[Category]:
        return list(self._colleges.values()) + list(self._types.values())

    def clear(self) -> None:
        self._colleges.clear()
        self._types.clear()

    def __len__(self) -> int:
        return len(self._colleges) + len(self._types)

    def _partition(self, is_college: bool) -> Dict[int, Category]:
        return self._colleges if is_college else self._types

    @staticmethod
    def _label(is_college: bool) -> str:
        return 'colleges' if is_college else 'types'
