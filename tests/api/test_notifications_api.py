"""Tests for the notification inbox."""

from bookclub.core.notifications import notify


class TestNotifications:
    """Tests for /api/notifications."""

    def test_empty_inbox(self, client, auth):
        """A new user has no notifications."""
        _, headers = auth
        data = client.get("/api/notifications", headers=headers).json()
        assert data == {"notifications": [], "unread_count": 0}

    def test_achievement_creates_notification(self, client, auth):
        """Earning an achievement adds an unread notification."""
        _, headers = auth
        client.post("/api/achievements/check", json={"triggerType": "reviews_written", "value": 1}, headers=headers)
        data = client.get("/api/notifications", headers=headers).json()
        assert data["unread_count"] == 1
        assert data["notifications"][0]["type"] == "achievement"

    def test_mark_read(self, client, auth):
        """Marking a notification read lowers the unread count."""
        user, headers = auth
        notification = notify(user["id"], "streak", "Streak milestone", "7 days!")
        response = client.post(f"/api/notifications/{notification.id}/read", headers=headers)
        assert response.status_code == 200
        data = client.get("/api/notifications", params={"unread_only": True}, headers=headers).json()
        assert data["notifications"] == []
        assert data["unread_count"] == 0

    def test_cannot_mark_other_users_notification(self, client, register):
        """Another user's notification is a 404."""
        alice, _ = register("alice")
        _, bob = register("bob")
        notification = notify(alice["id"], "goal", "Goal progress", "Halfway")
        response = client.post(f"/api/notifications/{notification.id}/read", headers=bob)
        assert response.status_code == 404
