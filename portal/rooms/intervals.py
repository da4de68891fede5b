"""Half-open time intervals ``[start, end)`` and the overlap predicate.

Boundary-touching intervals (``a.end == b.start``) do not overlap, so a
09:00–10:00 booking and a 10:00–11:00 booking can coexist.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo


class InvalidInterval(ValueError):
    """Raised when an interval's start is not strictly before its end."""

    def __init__(self, start: datetime, end: datetime) -> None:
        self.start = start
        self.end = end
        super().__init__(
            f"Interval start {start.isoformat()} must be before end {end.isoformat()}."
        )


def ensure_aware(value: datetime, tz: tzinfo = timezone.utc) -> datetime:
    """Attach *tz* to a naive datetime; aware values pass through unchanged."""
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value


@dataclass(frozen=True)
class Interval:
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise InvalidInterval(self.start, self.end)

    @classmethod
    def from_stored(cls, start: datetime, end: datetime) -> Interval:
        """Build from persisted instants; naive values are read as UTC."""
        return cls(ensure_aware(start), ensure_aware(end))


def overlaps(a: Interval, b: Interval) -> bool:
    """True unless one interval ends at or before the other starts."""
    return not (a.end <= b.start or a.start >= b.end)
