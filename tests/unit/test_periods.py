"""
Unit Tests - Reporting Windows
"""
from datetime import datetime, timedelta, timezone

from marketplace.analytics.periods import (
    ReportingWindow,
    resolve_window,
    start_of_day,
    to_utc_naive,
    utc_day,
)

NOW = datetime(2025, 6, 15, 12, 0, 0)


class TestResolveWindow:
    """Tests for resolve_window"""

    def test_defaults_to_trailing_thirty_days(self):
        window = resolve_window(now=NOW)

        assert window.end == NOW
        assert window.start == NOW - timedelta(days=30)

    def test_previous_window_ends_where_current_starts(self):
        window = resolve_window(now=NOW)
        previous = window.previous()

        assert previous.end == window.start
        assert previous.duration == window.duration
        assert previous.start == NOW - timedelta(days=60)

    def test_explicit_bounds_are_kept(self):
        start = datetime(2025, 1, 1)
        end = datetime(2025, 1, 11)

        window = resolve_window(start, end, now=NOW)

        assert window == ReportingWindow(start=start, end=end)
        assert window.previous() == ReportingWindow(start=datetime(2024, 12, 22), end=start)

    def test_only_end_spans_default_days_before_it(self):
        end = datetime(2025, 3, 1)

        window = resolve_window(end=end, now=NOW)

        assert window.start == end - timedelta(days=30)
        assert window.end == end

    def test_only_start_runs_until_now(self):
        start = datetime(2025, 6, 1)

        window = resolve_window(start=start, now=NOW)

        assert window.start == start
        assert window.end == NOW

    def test_custom_default_length(self):
        window = resolve_window(now=NOW, default_days=7)

        assert window.duration == timedelta(days=7)

    def test_aware_bounds_become_naive_utc(self):
        tz = timezone(timedelta(hours=2))
        start = datetime(2025, 6, 1, 2, 0, tzinfo=tz)

        window = resolve_window(start=start, now=NOW)

        assert window.start == datetime(2025, 6, 1, 0, 0)
        assert window.start.tzinfo is None


class TestReportingWindow:
    """Tests for ReportingWindow"""

    def test_contains_is_closed_on_both_ends(self):
        window = ReportingWindow(start=datetime(2025, 1, 1), end=datetime(2025, 1, 2))

        assert window.contains(datetime(2025, 1, 1))
        assert window.contains(datetime(2025, 1, 2))
        assert not window.contains(datetime(2025, 1, 2, 0, 0, 1))

    def test_contains_normalizes_aware_moments(self):
        window = ReportingWindow(start=datetime(2025, 1, 1), end=datetime(2025, 1, 2))

        assert window.contains(datetime(2025, 1, 1, 22, 30, tzinfo=timezone(timedelta(hours=-1))))
        assert not window.contains(datetime(2025, 1, 1, 23, 30, tzinfo=timezone(timedelta(hours=-1))))


class TestDayHelpers:
    """Tests for UTC day bucketing"""

    def test_utc_day_of_aware_timestamp(self):
        late_evening_west = datetime(2025, 1, 1, 22, 0, tzinfo=timezone(timedelta(hours=-5)))

        assert utc_day(late_evening_west).isoformat() == "2025-01-02"

    def test_naive_values_are_taken_as_utc(self):
        moment = datetime(2025, 1, 1, 23, 59)

        assert to_utc_naive(moment) is moment
        assert utc_day(moment).isoformat() == "2025-01-01"

    def test_start_of_day(self):
        assert start_of_day(NOW) == datetime(2025, 6, 15)
