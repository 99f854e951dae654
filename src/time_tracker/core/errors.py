"""Exceptions raised by the time tracker core."""


class TrackerError(Exception):
    """Base class for all errors reported to the user."""


class ArgumentCountError(TrackerError):
    """Wrong number of positional arguments for a command."""

    def __init__(self, expected: str, got: int):
        super().__init__(f"Invalid number of arguments: expected {expected}, got {got}")
        self.expected = expected
        self.got = got


class ParseError(TrackerError):
    """User input could not be parsed."""


class InvalidDuration(ParseError):
    """Duration string is not a number followed by h, m or s."""


class InvalidNumber(ParseError):
    """Argument is not a valid number."""


class StorageError(TrackerError):
    """Failure reported by the SQLite store."""


class SetupError(TrackerError):
    """Program could not be set up (home directory, configuration)."""
