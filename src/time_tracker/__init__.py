"""Time Tracker - record work intervals and turn them into monthly totals."""

__version__ = "0.1.0"
