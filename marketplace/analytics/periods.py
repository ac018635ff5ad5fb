"""
Reporting windows.

All reporting runs on closed ``[start, end]`` intervals of naive UTC
datetimes, the same convention the models store. Growth is always measured
against the window of identical length that ends where the current one
starts.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

DEFAULT_WINDOW_DAYS = 30


def to_utc_naive(value: datetime) -> datetime:
    """Normalize an aware datetime to naive UTC; naive values are taken as UTC."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def utc_day(value: datetime) -> date:
    """UTC calendar date of a timestamp, used for day buckets."""
    return to_utc_naive(value).date()


@dataclass(frozen=True)
class ReportingWindow:
    """Closed reporting interval"""
    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def previous(self) -> "ReportingWindow":
        """The preceding window of equal length, ending at ``start``."""
        return ReportingWindow(start=self.start - self.duration, end=self.start)

    def contains(self, moment: datetime) -> bool:
        return self.start <= to_utc_naive(moment) <= self.end


def resolve_window(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    now: Optional[datetime] = None,
    default_days: int = DEFAULT_WINDOW_DAYS,
) -> ReportingWindow:
    """
    Resolve optional bounds into a reporting window.

    Args:
        start: Inclusive lower bound; defaults to ``end - default_days``
        end: Inclusive upper bound; defaults to ``now``
        now: Reference instant, UTC now when omitted
        default_days: Length of the trailing default window

    Returns:
        ReportingWindow with naive UTC bounds
    """
    reference = to_utc_naive(now) if now is not None else datetime.utcnow()
    resolved_end = to_utc_naive(end) if end is not None else reference
    if start is not None:
        resolved_start = to_utc_naive(start)
    elif end is not None:
        resolved_start = resolved_end - timedelta(days=default_days)
    else:
        resolved_start = reference - timedelta(days=default_days)
    return ReportingWindow(start=resolved_start, end=resolved_end)


def start_of_day(moment: datetime) -> datetime:
    """Midnight UTC of the day containing ``moment``."""
    return datetime.combine(utc_day(moment), time.min)
