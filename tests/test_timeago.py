"""
Tests for timeago module.
"""
import pytest
from datetime import datetime, timezone, timedelta

from tnfeeds.timeago import format_time_ago, sort_by_time_ago, time_ago_seconds

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class TestFormatTimeAgo:
    """Tests for format_time_ago."""

    @pytest.mark.parametrize("delta,expected", [
        (timedelta(seconds=0), "0 seconds ago"),
        (timedelta(seconds=45), "45 seconds ago"),
        (timedelta(seconds=60), "1 minute ago"),
        (timedelta(minutes=5), "5 minutes ago"),
        (timedelta(hours=1), "1 hour ago"),
        (timedelta(hours=4, minutes=59), "4 hours ago"),
        (timedelta(days=1), "1 day ago"),
        (timedelta(days=29), "29 days ago"),
        (timedelta(days=30), "1 month ago"),
        (timedelta(days=200), "6 months ago"),
        (timedelta(days=365), "1 year ago"),
        (timedelta(days=800), "2 years ago"),
    ])
    def test_buckets(self, delta, expected):
        """Test each bucket and its singular form."""
        assert format_time_ago(NOW - delta, NOW) == expected

    def test_naive_datetime_is_utc(self):
        """Test that naive timestamps are treated as UTC."""
        assert format_time_ago(datetime(2024, 6, 1, 10, 0), NOW) == "2 hours ago"

    def test_future_dates_clamped(self):
        """Test that future timestamps don't produce negative ages."""
        assert format_time_ago(NOW + timedelta(minutes=10), NOW) == "0 seconds ago"


class TestTimeAgoSeconds:
    """Tests for time_ago_seconds."""

    @pytest.mark.parametrize("text,expected", [
        ("4 hours ago", 4 * 3600),
        ("1 hour ago", 3600),
        ("30 seconds ago", 30),
        ("2 minutes ago", 120),
        ("3 days ago", 3 * 86400),
        ("1 month ago", 2592000),
        ("2 years ago", 2 * 31536000),
        ("12 Hours Ago", 12 * 3600),
    ])
    def test_parses_buckets(self, text, expected):
        """Test bucket and magnitude conversion."""
        assert time_ago_seconds(text) == expected

    @pytest.mark.parametrize("text", ["", "recently", "2024-01-01T00:00:00Z", None])
    def test_unrecognised(self, text):
        """Test that non time-ago strings yield None."""
        assert time_ago_seconds(text) is None

    def test_round_trips_formatted_values(self):
        """Test that formatted strings parse back to their bucket."""
        text = format_time_ago(NOW - timedelta(hours=5), NOW)
        assert time_ago_seconds(text) == 5 * 3600


class TestSortByTimeAgo:
    """Tests for sort_by_time_ago."""

    def test_smallest_age_first(self):
        """Test that records sort by approximate seconds ago, ascending."""
        records = [
            {"id": "a", "pubDate": "2 days ago"},
            {"id": "b", "pubDate": "50 minutes ago"},
            {"id": "c", "pubDate": "1 month ago"},
            {"id": "d", "pubDate": "3 hours ago"},
        ]
        assert [r["id"] for r in sort_by_time_ago(records)] == ["b", "d", "a", "c"]

    def test_bucket_beats_magnitude(self):
        """Test that 59 minutes sorts before 1 hour despite the larger number."""
        records = [{"id": "hour", "pubDate": "1 hour ago"}, {"id": "min", "pubDate": "59 minutes ago"}]
        assert [r["id"] for r in sort_by_time_ago(records)] == ["min", "hour"]

    def test_unreadable_sort_last(self):
        """Test that unrecognised values go to the end."""
        records = [{"id": "x", "pubDate": "sometime"}, {"id": "y", "pubDate": "1 day ago"}, {"id": "z"}]
        assert [r["id"] for r in sort_by_time_ago(records)] == ["y", "x", "z"]

    def test_custom_key(self):
        """Test sorting on another field."""
        records = [{"formattedDate": "2 hours ago"}, {"formattedDate": "1 minute ago"}]
        result = sort_by_time_ago(records, key="formattedDate")
        assert result[0]["formattedDate"] == "1 minute ago"

    def test_does_not_mutate_input(self):
        """Test that a new list is returned."""
        records = [{"pubDate": "2 hours ago"}, {"pubDate": "1 hour ago"}]
        sort_by_time_ago(records)
        assert records[0]["pubDate"] == "2 hours ago"
