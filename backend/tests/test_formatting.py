"""Tests for timestamp and state display formatting."""

import math
from datetime import datetime, timedelta, timezone

import pytest

from app.config import settings
from app.schemas.resource import ProcessingState
from app.viewer.formatting import (
    DASH,
    parse_timestamp,
    pretty,
    state_badge,
    state_label,
    time_ago,
    timestamp_sort_key,
)

NOW = datetime(2025, 9, 1, 12, 0, tzinfo=timezone.utc)


def _ago(**delta) -> str:
    return (NOW - timedelta(**delta)).isoformat()


class TestPretty:
    """Tests for pretty function."""

    def test_formats_absolute_time(self):
        assert pretty("2025-08-30T15:00:00.000Z") == "Aug 30, 2025, 3:00:00 PM"

    def test_morning_and_midnight(self):
        assert pretty("2025-08-31T09:05:07Z") == "Aug 31, 2025, 9:05:07 AM"
        assert pretty("2025-01-02T00:00:00Z") == "Jan 2, 2025, 12:00:00 AM"

    def test_uses_display_timezone(self, monkeypatch):
        monkeypatch.setattr(settings, "display_timezone", "America/Toronto")
        assert pretty("2025-08-30T15:00:00.000Z") == "Aug 30, 2025, 11:00:00 AM"

    def test_unknown_timezone_falls_back_to_utc(self, monkeypatch):
        monkeypatch.setattr(settings, "display_timezone", "Mars/Olympus_Mons")
        assert pretty("2025-08-30T15:00:00.000Z") == "Aug 30, 2025, 3:00:00 PM"

    @pytest.mark.parametrize("value", [None, "", "yesterday", "2025-13-45T99:00:00Z", 12345])
    def test_unparseable_degrades_to_dash(self, value):
        assert pretty(value) == DASH


class TestTimeAgo:
    """Tests for time_ago function."""

    @pytest.mark.parametrize(
        "delta, expected",
        [
            ({"seconds": 0}, "0 seconds ago"),
            ({"seconds": 1}, "1 second ago"),
            ({"seconds": 45}, "45 seconds ago"),
            ({"minutes": 1}, "1 minute ago"),
            ({"minutes": 5}, "5 minutes ago"),
            ({"minutes": 90}, "2 hours ago"),
            ({"hours": 23}, "23 hours ago"),
            ({"days": 1}, "1 day ago"),
            ({"days": 29}, "29 days ago"),
            ({"days": 45}, "2 months ago"),
            ({"days": 360}, "1 year ago"),
            ({"days": 800}, "2 years ago"),
        ],
    )
    def test_past_distances(self, delta, expected):
        assert time_ago(_ago(**delta), now=NOW) == expected

    def test_future_uses_in_prefix(self):
        future = (NOW + timedelta(hours=2)).isoformat()
        assert time_ago(future, now=NOW) == "in 2 hours"

    def test_unparseable_degrades_to_dash(self):
        assert time_ago("not a date", now=NOW) == DASH
        assert time_ago(None, now=NOW) == DASH

    def test_defaults_to_current_time(self):
        recent = (datetime.now(timezone.utc) - timedelta(minutes=3)).isoformat()
        assert time_ago(recent) == "3 minutes ago"


class TestTimestampParsing:
    """Tests for parse_timestamp and timestamp_sort_key."""

    def test_parses_zulu_text(self):
        assert parse_timestamp("2025-08-30T15:00:00.000Z") == datetime(2025, 8, 30, 15, tzinfo=timezone.utc)

    def test_offsetless_text_read_in_display_timezone(self):
        assert parse_timestamp("2025-08-30T15:00:00").tzinfo is not None

    def test_sort_key_orders_instants(self):
        assert timestamp_sort_key("2025-08-30T15:00:00Z") < timestamp_sort_key("2025-08-31T15:00:00Z")

    def test_unparseable_sort_key_is_earliest(self):
        assert timestamp_sort_key("garbage") == -math.inf
        assert timestamp_sort_key(None) < timestamp_sort_key("1970-01-01T00:00:00Z")


class TestStateDisplay:
    """Tests for state_label and state_badge."""

    def test_not_started_label(self):
        assert state_label("PROCESSING_STATE_NOT_STARTED") == "NOT STARTED"

    def test_label_accepts_enum(self):
        assert state_label(ProcessingState.PROCESSING_STATE_COMPLETED) == "COMPLETED"

    def test_unknown_state_label(self):
        assert state_label("PROCESSING_STATE_QUEUED_FOR_REVIEW") == "QUEUED FOR REVIEW"
        assert state_label(None) == "UNSPECIFIED"

    @pytest.mark.parametrize(
        "state, variant",
        [
            ("PROCESSING_STATE_COMPLETED", "default"),
            ("PROCESSING_STATE_PROCESSING", "destructive"),
            ("PROCESSING_STATE_FAILED", "destructive"),
            ("PROCESSING_STATE_NOT_STARTED", "secondary"),
            ("PROCESSING_STATE_UNSPECIFIED", "secondary"),
            ("SOMETHING_NEW", "secondary"),
        ],
    )
    def test_badge_variant(self, state, variant):
        assert state_badge(state) == variant
