"""Date/time helpers.

Always operate on timezone-aware UTC datetimes, and format durations the same
way everywhere a song or queue length is shown.
"""

from __future__ import annotations

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return a timezone-aware datetime in UTC."""
    return datetime.now(UTC)


def format_duration(seconds: float | None) -> str:
    """Format a duration as MM:SS or HH:MM:SS; unknown or zero renders as ``Live``."""
    if not seconds:
        return "Live"

    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"
