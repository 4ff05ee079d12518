"""Tests for the achievement catalog and awards."""


def _check(client, headers, trigger_type, value):
    return client.post(
        "/api/achievements/check", json={"triggerType": trigger_type, "value": value}, headers=headers
    )


class TestCatalog:
    """Tests for GET /api/achievements/catalog."""

    def test_anonymous_catalog(self, client):
        """The catalog is public and marks nothing as earned."""
        data = client.get("/api/achievements/catalog").json()
        assert data["count"] == 10
        assert "earned" not in data["achievements"][0]

    def test_catalog_sorted_by_category_then_tier(self, client):
        """Achievements are ordered by category, then by tier."""
        items = client.get("/api/achievements/catalog").json()["achievements"]
        goals = [a["id"] for a in items if a["category"] == "goals"]
        assert goals == ["FIRST_GOAL", "GOAL_SETTER", "GOAL_MASTER"]
        categories = [a["category"] for a in items]
        assert categories == sorted(categories)

    def test_catalog_marks_earned(self, client, auth):
        """A logged-in user sees which achievements they have earned."""
        _, headers = auth
        _check(client, headers, "streak_days", 7)
        items = client.get("/api/achievements/catalog", headers=headers).json()["achievements"]
        earned = {a["id"] for a in items if a["earned"]}
        assert earned == {"WEEK_WARRIOR"}


class TestCheck:
    """Tests for POST /api/achievements/check."""

    def test_awards_every_met_threshold(self, client, auth):
        """Every achievement whose threshold is met is awarded at once."""
        _, headers = auth
        data = _check(client, headers, "streak_days", 30).json()
        assert [a["id"] for a in data["new_achievements"]] == ["WEEK_WARRIOR", "MONTH_MASTER"]

    def test_does_not_award_twice(self, client, auth):
        """An achievement already earned is not awarded again."""
        _, headers = auth
        _check(client, headers, "streak_days", 7)
        assert _check(client, headers, "streak_days", 8).json()["new_achievements"] == []

    def test_below_threshold(self, client, auth):
        """A value under every threshold awards nothing."""
        _, headers = auth
        assert _check(client, headers, "reviews_written", 0).json()["new_achievements"] == []

    def test_trigger_type_required(self, client, auth):
        """A check without trigger_type is a 400."""
        _, headers = auth
        response = client.post("/api/achievements/check", json={"value": 3}, headers=headers)
        assert response.status_code == 400


class TestMyAchievements:
    """Tests for earned achievements and the displayed flag."""

    def test_points_and_new_count(self, client, auth):
        """Earned achievements report total points and how many are new."""
        _, headers = auth
        _check(client, headers, "streak_days", 7)
        _check(client, headers, "reviews_written", 1)
        data = client.get("/api/achievements/my-achievements", headers=headers).json()
        assert data["total_points"] == 60
        assert data["new_achievements_count"] == 2

    def test_mark_displayed(self, client, auth):
        """Marking an achievement displayed clears its new flag."""
        _, headers = auth
        _check(client, headers, "streak_days", 7)
        response = client.post("/api/achievements/WEEK_WARRIOR/mark-displayed", headers=headers)
        assert response.status_code == 200
        data = client.get("/api/achievements/my-achievements", headers=headers).json()
        assert data["new_achievements_count"] == 0
        assert data["achievements"][0]["displayed"] is True

    def test_mark_unearned(self, client, auth):
        """Marking an achievement the user has not earned is a 404."""
        _, headers = auth
        response = client.post("/api/achievements/YEAR_LEGEND/mark-displayed", headers=headers)
        assert response.status_code == 404
