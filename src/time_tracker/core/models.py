"""Core data models for time tracking."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"

NANOSECONDS_PER_MICROSECOND = 1000


def to_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Encode a datetime for storage.

    The fixed-width UTC text keeps SQLite string comparison in
    chronological order.
    """
    return to_utc(value).replace(tzinfo=None).isoformat(sep=" ", timespec="microseconds")


def parse_timestamp(value: str) -> datetime:
    """Decode a stored timestamp into an aware UTC datetime."""
    return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def duration_to_ns(value: timedelta) -> int:
    """Convert a timedelta to integer nanoseconds."""
    return (value // timedelta(microseconds=1)) * NANOSECONDS_PER_MICROSECOND


def ns_to_duration(value: int) -> timedelta:
    """Convert integer nanoseconds to a timedelta (microsecond precision)."""
    return timedelta(microseconds=int(value) // NANOSECONDS_PER_MICROSECOND)


class RateKind(str, Enum):
    """The two singleton rates. The value is the backing table name."""

    TAX = "tax"
    WAGE = "wage"


@dataclass(frozen=True)
class TimeEntry:
    """One recorded work interval.

    Attributes:
        start: When the interval started (UTC)
        duration: Elapsed time
        description: Free-text label, may be empty
        id: Identifier assigned by the store (None until saved)
    """

    start: datetime
    duration: timedelta
    description: str = ""
    id: Optional[int] = None

    @property
    def end(self) -> datetime:
        """When the interval ended."""
        return self.start + self.duration

    @property
    def duration_ns(self) -> int:
        """Duration as stored, in nanoseconds."""
        return duration_to_ns(self.duration)

    def to_row(self) -> dict[str, Any]:
        """Convert to the column mapping used by the store."""
        return {
            "start": format_timestamp(self.start),
            "duration": self.duration_ns,
            "description": self.description,
        }

    @classmethod
    def from_row(cls, row: Any) -> "TimeEntry":
        """Create TimeEntry from a database row."""
        return cls(
            id=int(row["id"]),
            start=parse_timestamp(row["start"]),
            duration=ns_to_duration(row["duration"]),
            description=row["description"] or "",
        )
