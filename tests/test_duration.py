"""
Tests for format_duration — two most significant units, singular/plural.
Run: pytest tests/test_duration.py -v
"""
from datetime import timedelta

from time_since_deploy.duration import format_duration, split_duration


class TestFormatDuration:

    def test_keeps_two_most_significant_units(self):
        assert format_duration(timedelta(days=3, hours=2, minutes=5)) == "3 days 2 hours"

    def test_singular_units(self):
        assert format_duration(timedelta(days=1, hours=1)) == "1 day 1 hour"

    def test_skips_zero_units(self):
        # hours are zero, so minutes is the second component
        assert format_duration(timedelta(days=2, minutes=7, seconds=3)) == "2 days 7 minutes"

    def test_weeks_and_years(self):
        assert format_duration(timedelta(days=10)) == "1 week 3 days"
        assert format_duration(timedelta(days=365 + 14, hours=5)) == "1 year 2 weeks"

    def test_sub_second(self):
        assert format_duration(timedelta(milliseconds=250)) == "250 milliseconds"

    def test_zero(self):
        assert format_duration(timedelta(0)) == "0 seconds"

    def test_negative(self):
        assert format_duration(timedelta(hours=-3)) == "-3 hours"

    def test_no_limit(self):
        delta = timedelta(days=3, hours=2, minutes=5)
        assert format_duration(delta, limit=None) == "3 days 2 hours 5 minutes"

    def test_split_duration(self):
        assert split_duration(timedelta(hours=1, seconds=30)) == [(1, "hour"), (30, "seconds")]
