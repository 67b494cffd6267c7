"""Program days and display-hour settings."""
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Tuple

from event_cache.ordering import OrderingPolicy


@dataclass(frozen=True)
class ProgramSchedule:
    """The fixed set of days the program runs on, plus the display hours."""
    days: Tuple[date, ...]
    start_hour: int = 7
    end_hour: int = 2

    def __post_init__(self):
        if not self.days:
            raise ValueError("a program needs at least one day")
        if len(set(self.days)) != len(self.days):
            raise ValueError("program days must be unique")
        object.__setattr__(self, 'days', tuple(sorted(self.days)))

    @classmethod
    def for_month(
        cls,
        year: int,
        month: int,
        days: Iterable[int],
        start_hour: int = 7,
        end_hour: int = 2
    ) -> "ProgramSchedule":
        """
        Build a schedule from day-of-month numbers in a single month.

        Args:
            year: Calendar year of the program
            month: Calendar month of the program
            days: Day-of-month numbers the program runs on
            start_hour: First hour shown for a program day
            end_hour: Last hour (after midnight) shown for a program day

        Returns:
            ProgramSchedule covering the given days
        """
        return cls(
            days=tuple(date(year, month, day) for day in days),
            start_hour=start_hour,
            end_hour=end_hour
        )

    def ordering(self) -> OrderingPolicy:
        return OrderingPolicy(start_hour=self.start_hour, end_hour=self.end_hour)

    def initial_day(self, today: date) -> date:
        """Day to display first: today if it is a program day, else the first day."""
        if today in self.days:
            return today
        return self.days[0]

    @staticmethod
    def readable_date(day: date) -> str:
        """Format a day as e.g. "Saturday, Aug 18"."""
        return f"{day.strftime('%A, %b')} {day.day}"
