"""Core functionality for time tracking."""

from time_tracker.core.models import RateKind, TimeEntry
from time_tracker.core.storage import StorageManager
from time_tracker.core.tracker import TimeTracker

__all__ = ["TimeEntry", "RateKind", "StorageManager", "TimeTracker"]
