"""SQLite storage manager for time entries and rates."""

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from types import TracebackType
from typing import Any, Optional

from time_tracker.core.errors import SetupError, StorageError
from time_tracker.core.models import RateKind, TimeEntry, format_timestamp

logger = logging.getLogger(__name__)

DEFAULT_DB_NAME = "db.db"

NANOSECONDS_PER_HOUR = 3_600_000_000_000.0

SCHEMA = """
create table if not exists time_entries (
    id integer primary key autoincrement,
    start datetime,
    duration integer,
    description text
);
create table if not exists tax (
    rate real
);
create table if not exists wage (
    rate real
);
"""


def default_data_dir() -> Path:
    """Return ~/.config/time_tracker.

    Raises:
        SetupError: If the home directory cannot be resolved
    """
    try:
        home = Path.home()
    except (KeyError, RuntimeError) as e:
        raise SetupError(f"Could not resolve home directory: {e}") from e
    return home / ".config" / "time_tracker"


class StorageManager:
    """Manages the SQLite store holding time entries and the two rates.

    The connection is opened on first use so that ``initialize`` can create
    the data directory before SQLite touches the file.
    """

    def __init__(self, data_dir: Optional[Path] = None, db_name: str = DEFAULT_DB_NAME):
        """Initialize storage manager.

        Args:
            data_dir: Custom data directory. Defaults to ~/.config/time_tracker
            db_name: Database file name inside the data directory
        """
        if data_dir is None:
            data_dir = default_data_dir()

        self.data_dir = data_dir
        self.db_path = self.data_dir / db_name
        self._connection: Optional[sqlite3.Connection] = None

    @property
    def connection(self) -> sqlite3.Connection:
        """Open connection to the database, created on first access."""
        if self._connection is None:
            try:
                self._connection = sqlite3.connect(str(self.db_path))
            except sqlite3.Error as e:
                raise StorageError(f"Could not open {self.db_path}: {e}") from e
            self._connection.row_factory = sqlite3.Row
            logger.debug(f"Opened database {self.db_path}")
        return self._connection

    def close(self) -> None:
        """Close the connection if it is open."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            logger.debug(f"Closed database {self.db_path}")

    def __enter__(self) -> "StorageManager":
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()

    def _execute(self, query: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        """Run a single write statement and commit it.

        Raises:
            StorageError: On any SQLite failure or a value SQLite cannot bind
        """
        try:
            with self.connection:
                return self.connection.execute(query, params)
        except (sqlite3.Error, OverflowError) as e:
            raise StorageError(str(e)) from e

    def _fetch(self, query: str, params: tuple[Any, ...] = ()) -> list[sqlite3.Row]:
        """Run a read query and return all rows.

        Raises:
            StorageError: On any SQLite failure
        """
        try:
            return self.connection.execute(query, params).fetchall()
        except sqlite3.Error as e:
            raise StorageError(str(e)) from e

    def initialize(self) -> Path:
        """Create the data directory and the schema.

        Safe to call on an existing store: tables are only created when
        missing and rate rows are only seeded when a rate table is empty.

        Returns:
            Path to the database file

        Raises:
            StorageError: If the directory or schema cannot be created
        """
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Could not create {self.data_dir}: {e}") from e

        try:
            with self.connection:
                self.connection.executescript(SCHEMA)
                for kind in RateKind:
                    (count,) = self.connection.execute(
                        f"select count(*) from {kind.value}"
                    ).fetchone()
                    if count == 0:
                        self.connection.execute(f"insert into {kind.value} (rate) values (0)")
                        logger.info(f"Seeded {kind.value} rate with 0")
        except sqlite3.Error as e:
            raise StorageError(str(e)) from e

        logger.info(f"Database initialized at {self.db_path}")
        return self.db_path

    # Entry operations

    def save_entry(self, entry: TimeEntry) -> TimeEntry:
        """Insert a new entry.

        Args:
            entry: Entry to save (its id is ignored)

        Returns:
            The entry with the id assigned by the database
        """
        row = entry.to_row()
        cursor = self._execute(
            "insert into time_entries (duration, start, description) values (?, ?, ?)",
            (row["duration"], row["start"], row["description"]),
        )
        logger.debug(f"Inserted entry {cursor.lastrowid} starting {row['start']}")
        return TimeEntry(
            id=cursor.lastrowid,
            start=entry.start,
            duration=entry.duration,
            description=entry.description,
        )

    def load_entries(self, start: datetime, end: datetime, inclusive_start: bool = False) -> list[TimeEntry]:
        """Load entries starting inside the window, oldest first.

        Args:
            start: Window start (exclusive unless inclusive_start)
            end: Window end (always exclusive)
            inclusive_start: Include entries starting exactly at ``start``
        """
        op = ">=" if inclusive_start else ">"
        rows = self._fetch(
            "select id, start, duration, description from time_entries "
            f"where start {op} ? and start < ? order by start, id",
            (format_timestamp(start), format_timestamp(end)),
        )
        return [TimeEntry.from_row(row) for row in rows]

    def sum_duration(self, start: datetime, end: datetime, inclusive_start: bool = False) -> int:
        """Sum of entry durations in nanoseconds within the window.

        Returns:
            Total nanoseconds, 0 if no entry matches
        """
        op = ">=" if inclusive_start else ">"
        rows = self._fetch(
            "select coalesce(sum(duration), 0) from time_entries "
            f"where start {op} ? and start < ?",
            (format_timestamp(start), format_timestamp(end)),
        )
        return int(rows[0][0])

    def sum_money(self, start: datetime, end: datetime, inclusive_start: bool = False) -> float:
        """Tracked hours in the window times wage times (1 - tax).

        Uses the rates current at query time.
        """
        op = ">=" if inclusive_start else ">"
        rows = self._fetch(
            f"""
            select
                (coalesce(sum(duration), 0) / {NANOSECONDS_PER_HOUR})
                * coalesce((select rate from wage limit 1), 0)
                * (1 - coalesce((select rate from tax limit 1), 0))
            from time_entries
            where start {op} ? and start < ?
            """,
            (format_timestamp(start), format_timestamp(end)),
        )
        return float(rows[0][0])

    # Rate operations

    def get_rate(self, kind: RateKind) -> float:
        """Get the current rate, 0 if the table is empty."""
        kind = RateKind(kind)
        rows = self._fetch(f"select rate from {kind.value} limit 1")
        return float(rows[0]["rate"]) if rows else 0.0

    def set_rate(self, kind: RateKind, rate: float) -> float:
        """Overwrite the single row of a rate table.

        Raises:
            StorageError: If the table does not hold exactly one row
        """
        kind = RateKind(kind)
        count = self._fetch(f"select count(*) from {kind.value}")[0][0]
        if count != 1:
            raise StorageError(
                f"Expected exactly one {kind.value} rate row, found {count}. "
                f"Run 'init' to repair the database."
            )

        self._execute(f"update {kind.value} set rate = ?", (rate,))
        logger.info(f"Set {kind.value} rate to {rate}")
        return rate
