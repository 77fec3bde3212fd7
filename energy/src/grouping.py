"""
Calendar-month accounting buckets.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-008)

TODO:
- None
"""

from datetime import UTC, datetime, timedelta, tzinfo
from typing import NamedTuple

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


class GroupKey(NamedTuple):
    """(year, month) of an instant in local time; orders chronologically."""

    year: int
    month: int

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def group_key(timestamp_ns: int, tz: tzinfo | None = None) -> GroupKey:
    """Map an epoch-nanosecond instant to its local calendar month.

    Args:
        timestamp_ns: Nanoseconds since the Unix epoch.
        tz: Zone to evaluate the calendar in. ``None`` uses the host's
            local time zone.

    Returns:
        The :class:`GroupKey` of the month containing the instant.
    """
    instant = _EPOCH + timedelta(microseconds=timestamp_ns // 1000)
    local = instant.astimezone(tz)
    return GroupKey(local.year, local.month)
