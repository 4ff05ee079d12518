"""Tests for spaces: chat rooms with optional video."""


def _create(client, headers, **overrides):
    body = {"name": "Sci-fi corner", "description": "Spaceships welcome"}
    body.update(overrides)
    response = client.post("/api/spaces", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["space"]


class TestCreateAndList:
    """Tests for creating and listing spaces."""

    def test_create_permanent_space(self, client, auth):
        """A permanent space has no expiry and its creator as first member."""
        user, headers = auth
        space = _create(client, headers)
        assert space["type"] == "permanent"
        assert space["expires_at"] is None
        assert space["creator_id"] == user["id"]
        assert space["member_count"] == 1

    def test_temporary_space_gets_expiry(self, client, auth):
        """A temporary space gets an expiry time."""
        _, headers = auth
        space = _create(client, headers, type="temporary")
        assert space["expires_at"] is not None

    def test_name_required(self, client, auth):
        """A space without a name is a 400."""
        _, headers = auth
        response = client.post("/api/spaces", json={"name": "  "}, headers=headers)
        assert response.status_code == 400

    def test_invalid_type(self, client, auth):
        """An unknown space type is a 400."""
        _, headers = auth
        response = client.post("/api/spaces", json={"name": "x", "type": "forever"}, headers=headers)
        assert response.status_code == 400

    def test_list_excludes_private_and_expired(self, client, auth):
        """Private and expired spaces are not listed."""
        _, headers = auth
        _create(client, headers, name="Open")
        _create(client, headers, name="Hidden", visibility="private")
        _create(client, headers, name="Old", type="temporary", expiresAt="2000-01-01T00:00:00+00:00")
        names = [s["name"] for s in client.get("/api/spaces").json()["spaces"]]
        assert names == ["Open"]

    def test_list_filters_by_type(self, client, auth):
        """Listing can be filtered by type."""
        _, headers = auth
        _create(client, headers, name="Open")
        _create(client, headers, name="Pop-up", type="temporary")
        names = [s["name"] for s in client.get("/api/spaces", params={"type": "temporary"}).json()["spaces"]]
        assert names == ["Pop-up"]

    def test_detail_includes_members(self, client, auth):
        """Space detail includes its members."""
        _, headers = auth
        space = _create(client, headers)
        detail = client.get(f"/api/spaces/{space['id']}").json()
        assert detail["members"][0]["role"] == "admin"
        assert detail["messages"] == []


class TestMembership:
    """Tests for join, leave and messages."""

    def test_join_and_leave(self, client, register):
        """Users can join and leave a space."""
        _, alice = register("alice")
        _, bob = register("bob")
        space = _create(client, alice)
        assert client.post(f"/api/spaces/{space['id']}/join", headers=bob).status_code == 200
        assert client.post(f"/api/spaces/{space['id']}/join", headers=bob).status_code == 400
        assert client.post(f"/api/spaces/{space['id']}/leave", headers=bob).status_code == 200
        assert client.post(f"/api/spaces/{space['id']}/leave", headers=bob).status_code == 400

    def test_cannot_join_private_space(self, client, register):
        """Joining a private space is a 403."""
        _, alice = register("alice")
        _, bob = register("bob")
        space = _create(client, alice, visibility="private")
        response = client.post(f"/api/spaces/{space['id']}/join", headers=bob)
        assert response.status_code == 403

    def test_members_can_post(self, client, auth):
        """Members can post messages."""
        _, headers = auth
        space = _create(client, headers)
        response = client.post(
            f"/api/spaces/{space['id']}/messages", json={"content": "Hello, readers"}, headers=headers
        )
        assert response.status_code == 201
        assert response.json()["message"]["content"] == "Hello, readers"

    def test_non_members_cannot_post(self, client, register):
        """Non-members posting get a 403."""
        _, alice = register("alice")
        _, bob = register("bob")
        space = _create(client, alice)
        response = client.post(
            f"/api/spaces/{space['id']}/messages", json={"content": "Hi"}, headers=bob
        )
        assert response.status_code == 403


class TestVideoAndDelete:
    """Tests for video toggling and deletion."""

    def test_toggle_video_assigns_room(self, client, auth):
        """Enabling video assigns a room id."""
        _, headers = auth
        space = _create(client, headers)
        data = client.patch(f"/api/spaces/{space['id']}/video", headers=headers).json()["space"]
        assert data["video_enabled"] is True
        assert data["video_room_id"] == f"video-{space['id']}"

        data = client.patch(
            f"/api/spaces/{space['id']}/video", json={"enabled": False}, headers=headers
        ).json()["space"]
        assert data["video_enabled"] is False
        assert data["video_room_id"] == f"video-{space['id']}"

    def test_only_admin_toggles_video(self, client, register):
        """Only the admin can toggle video."""
        _, alice = register("alice")
        _, bob = register("bob")
        space = _create(client, alice)
        client.post(f"/api/spaces/{space['id']}/join", headers=bob)
        assert client.patch(f"/api/spaces/{space['id']}/video", headers=bob).status_code == 403

    def test_delete_deactivates(self, client, auth):
        """A deleted space is no longer found."""
        _, headers = auth
        space = _create(client, headers)
        assert client.delete(f"/api/spaces/{space['id']}", headers=headers).status_code == 200
        assert client.get(f"/api/spaces/{space['id']}").status_code == 404

    def test_member_cannot_delete(self, client, register):
        """A member who is not admin cannot delete the space."""
        _, alice = register("alice")
        _, bob = register("bob")
        space = _create(client, alice)
        client.post(f"/api/spaces/{space['id']}/join", headers=bob)
        assert client.delete(f"/api/spaces/{space['id']}", headers=bob).status_code == 403
