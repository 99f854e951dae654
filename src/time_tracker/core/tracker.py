"""Core time tracking engine."""

import logging
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from time_tracker.core.config import MONTH_WINDOW_CALENDAR, MONTH_WINDOW_COMPAT
from time_tracker.core.errors import InvalidDuration, ParseError
from time_tracker.core.models import RateKind, TimeEntry, ns_to_duration
from time_tracker.core.parsing import parse_duration, parse_number
from time_tracker.core.storage import StorageManager

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Current wall-clock time in UTC."""
    return datetime.now(timezone.utc)


def add_months(value: datetime, months: int) -> datetime:
    """Add calendar months, rolling day-of-month overflow into the next month.

    January 31 plus one month is March 3 (March 2 in leap years).
    """
    index = value.month - 1 + months
    first = value.replace(year=value.year + index // 12, month=index % 12 + 1, day=1)
    return first + timedelta(days=value.day - 1)


class TimeTracker:
    """Records time entries, stores rates and computes monthly totals."""

    def __init__(
        self,
        storage: Optional[StorageManager] = None,
        month_window: str = MONTH_WINDOW_COMPAT,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize time tracker.

        Args:
            storage: Storage manager instance. Creates default if None.
            month_window: ``compat`` or ``calendar`` reporting window
            clock: Source of the current time
        """
        if month_window not in (MONTH_WINDOW_COMPAT, MONTH_WINDOW_CALENDAR):
            raise ValueError(f"Unknown month window: {month_window}")
        self.storage = storage or StorageManager()
        self.month_window_mode = month_window
        self.clock = clock

    def initialize(self) -> None:
        """Create the database schema."""
        self.storage.initialize()

    def add(self, duration_text: str, description_words: Sequence[str] = ()) -> TimeEntry:
        """Record a finished interval that ended now.

        Args:
            duration_text: Duration such as ``1.5h``, ``20m`` or ``45s``
            description_words: Words joined with single spaces

        Returns:
            Stored entry

        Raises:
            InvalidDuration: If the duration cannot be parsed
            StorageError: If the entry cannot be stored
        """
        duration = parse_duration(duration_text)
        try:
            start = self.clock() - duration
        except OverflowError as e:
            raise InvalidDuration(f"Duration reaches before year 1: {duration_text}") from e
        entry = TimeEntry(
            start=start,
            duration=duration,
            description=" ".join(description_words),
        )
        entry = self.storage.save_entry(entry)
        logger.info(f"Added entry {entry.id} ({duration})")
        return entry

    def set_tax(self, rate_text: str) -> float:
        """Overwrite the tax rate (a fraction, e.g. 0.15)."""
        return self.storage.set_rate(RateKind.TAX, parse_number(rate_text))

    def set_wage(self, rate_text: str) -> float:
        """Overwrite the wage rate (currency per hour)."""
        return self.storage.set_rate(RateKind.WAGE, parse_number(rate_text))

    def rates(self) -> dict[RateKind, float]:
        """Current wage and tax rates."""
        return {kind: self.storage.get_rate(kind) for kind in RateKind}

    def month_window(self, month: int, year: int) -> tuple[datetime, datetime]:
        """Reporting window for a month.

        In ``compat`` mode the window starts at midnight UTC on day zero of
        the month, which is the last day of the previous month, and ends one
        calendar month later. Both bounds are exclusive. Months outside
        1..12 roll into neighbouring years.

        In ``calendar`` mode the window is the calendar month itself,
        ``[first day, first day of next month)``.

        Raises:
            ParseError: If the year is outside the supported range
        """
        try:
            first = add_months(datetime(year, 1, 1, tzinfo=timezone.utc), month - 1)
            if self.month_window_mode == MONTH_WINDOW_CALENDAR:
                return first, add_months(first, 1)
            start = first - timedelta(days=1)
            return start, add_months(start, 1)
        except (ValueError, OverflowError) as e:
            raise ParseError(f"Month {month} of year {year} is out of range") from e

    def _window(self, month: int, year: int) -> tuple[datetime, datetime, bool]:
        start, end = self.month_window(month, year)
        return start, end, self.month_window_mode == MONTH_WINDOW_CALENDAR

    def total(self, month: int, year: int) -> timedelta:
        """Total tracked time in the month window."""
        start, end, inclusive = self._window(month, year)
        return ns_to_duration(self.storage.sum_duration(start, end, inclusive_start=inclusive))

    def total_money(self, month: int, year: int) -> float:
        """Tracked hours in the month window times wage times (1 - tax)."""
        start, end, inclusive = self._window(month, year)
        return self.storage.sum_money(start, end, inclusive_start=inclusive)

    def entries(self, month: int, year: int) -> list[TimeEntry]:
        """Entries in the month window, oldest first."""
        start, end, inclusive = self._window(month, year)
        return self.storage.load_entries(start, end, inclusive_start=inclusive)
