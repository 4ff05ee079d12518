"""Tests for reading streak bookkeeping."""

from datetime import date, timedelta

import pytest

from bookclub.core import notifications
from bookclub.core.streaks import get_streak, log_reading
from bookclub.db import users_repository as users_repo

START = date(2024, 5, 1)


@pytest.fixture
def user_id():
    return users_repo.insert_user("streaker@example.com", "streaker", "hash").id


class TestLogReading:
    """Tests for log_reading."""

    def test_first_log(self, user_id):
        """The first log starts a one-day streak."""
        result = log_reading(user_id, today=START)
        streak = result["streak"]
        assert result["is_new_day"] is True
        assert (streak.current_streak, streak.longest_streak, streak.total_reading_days) == (1, 1, 1)
        assert streak.streak_started_at == "2024-05-01"

    def test_same_day_is_idempotent(self, user_id):
        """Logging twice in a day counts once."""
        log_reading(user_id, today=START)
        result = log_reading(user_id, today=START)
        assert result["is_new_day"] is False
        assert result["streak"].total_reading_days == 1

    def test_consecutive_days_extend(self, user_id):
        """Consecutive days extend the streak."""
        log_reading(user_id, today=START)
        streak = log_reading(user_id, today=START + timedelta(days=1))["streak"]
        assert streak.current_streak == 2

    def test_gap_resets_but_keeps_longest(self, user_id):
        """A missed day resets the streak but keeps the longest."""
        for offset in range(3):
            log_reading(user_id, today=START + timedelta(days=offset))
        streak = log_reading(user_id, today=START + timedelta(days=5))["streak"]
        assert streak.current_streak == 1
        assert streak.longest_streak == 3
        assert streak.total_reading_days == 4
        assert streak.streak_started_at == "2024-05-06"

    def test_seventh_day_is_a_milestone(self, user_id):
        """Day seven is a milestone with an achievement and a notification."""
        for offset in range(6):
            result = log_reading(user_id, today=START + timedelta(days=offset))
            assert "milestone" not in result
        result = log_reading(user_id, today=START + timedelta(days=6))

        assert result["milestone"] is True
        assert result["message"] == "7-day streak!"
        assert [a.id for a in result["new_achievements"]] == ["WEEK_WARRIOR"]
        titles = [n.title for n in notifications.list_for_user(user_id)["notifications"]]
        assert "Streak milestone" in titles


class TestGetStreak:
    """Tests for get_streak."""

    def test_new_user_has_empty_streak(self, user_id):
        """A new user starts with no streak."""
        streak = get_streak(user_id, today=START)
        assert streak.current_streak == 0
        assert streak.last_reading_date is None

    def test_yesterday_keeps_streak(self, user_id):
        """A log yesterday keeps the streak current."""
        log_reading(user_id, today=START)
        assert get_streak(user_id, today=START + timedelta(days=1)).current_streak == 1

    def test_older_log_resets_current(self, user_id):
        """A log older than yesterday resets the current streak."""
        log_reading(user_id, today=START)
        streak = get_streak(user_id, today=START + timedelta(days=2))
        assert streak.current_streak == 0
        assert streak.longest_streak == 1
