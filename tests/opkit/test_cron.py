"""Tests for cron summaries used in the manifest."""

from datetime import datetime

import pytest

from opkit.core.cron import is_valid_cron, next_run, summarize_cron


class TestSummarizeCron:
    """Test summarize_cron()."""

    @pytest.mark.parametrize("expression,summary", [
        ("* * * * *", "Every minute"),
        ("*/15 * * * *", "Every 15 minutes"),
        ("0 * * * *", "Every hour, on the hour"),
        ("5 * * * *", "Every hour at minute 5"),
        ("0 */6 * * *", "Every 6 hours at minute 0"),
        ("30 9 * * *", "Every day at 09:30"),
        ("0 8 * * 1", "Every Monday at 08:00"),
        ("0 9 * * 1-5", "Every Monday through Friday at 09:00"),
        ("0 0 1 * *", "On day 1 of every month at 00:00"),
        ("0 0 1 1 *", "On day 1 of January at 00:00"),
        ("@daily", "Every day at 00:00"),
        ("@hourly", "Every hour, on the hour"),
    ])
    def test_summaries(self, expression, summary):
        assert summarize_cron(expression) == summary

    @pytest.mark.parametrize("expression", [
        "not a cron",
        "61 * * * *",
        "* * *",
        "",
    ])
    def test_malformed_degrades_to_raw_expression(self, expression):
        """Test that malformed expressions never raise."""
        assert summarize_cron(expression) == expression


class TestIsValidCron:
    """Test is_valid_cron()."""

    def test_valid(self):
        assert is_valid_cron("0 * * * *")
        assert is_valid_cron("@weekly")

    def test_invalid(self):
        assert not is_valid_cron("every hour")
        assert not is_valid_cron("   ")


class TestNextRun:
    """Test next_run()."""

    def test_next_hour(self):
        after = datetime(2026, 1, 1, 10, 15)

        assert next_run("0 * * * *", after) == datetime(2026, 1, 1, 11, 0)

    def test_alias(self):
        after = datetime(2026, 1, 1, 10, 15)

        assert next_run("@daily", after) == datetime(2026, 1, 2, 0, 0)

    def test_malformed_is_none(self):
        assert next_run("bogus", datetime(2026, 1, 1)) is None
