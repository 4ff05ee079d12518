"""Tests for goal period windows."""

from datetime import date

import pytest

from bookclub.core.goals import goal_window
from bookclub.utils.errors import APIError


class TestGoalWindow:
    """Tests for goal_window."""

    def test_daily(self):
        """A daily window is the current day."""
        today = date(2024, 3, 13)
        assert goal_window("daily", today) == (today, today)

    def test_weekly_runs_sunday_to_saturday(self):
        """A weekly window runs Sunday to Saturday."""
        # 2024-03-13 is a Wednesday
        assert goal_window("weekly", date(2024, 3, 13)) == (date(2024, 3, 10), date(2024, 3, 16))

    def test_weekly_on_sunday(self):
        """On a Sunday the week starts that day."""
        assert goal_window("weekly", date(2024, 3, 10)) == (date(2024, 3, 10), date(2024, 3, 16))

    def test_weekly_on_saturday(self):
        """On a Saturday the week ends that day."""
        assert goal_window("weekly", date(2024, 3, 16)) == (date(2024, 3, 10), date(2024, 3, 16))

    def test_monthly_leap_february(self):
        """February in a leap year ends on the 29th."""
        assert goal_window("monthly", date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_yearly(self):
        """A yearly window is the calendar year."""
        assert goal_window("yearly", date(2024, 7, 4)) == (date(2024, 1, 1), date(2024, 12, 31))

    def test_invalid_period(self):
        """An unknown period is a 400 listing the valid periods."""
        with pytest.raises(APIError) as exc_info:
            goal_window("hourly", date(2024, 1, 1))
        assert exc_info.value.status_code == 400
        assert exc_info.value.details["valid_periods"] == ["daily", "weekly", "monthly", "yearly"]
