"""Tests for forums, posts, replies and likes."""


def _forum(client, headers, title="Classics club"):
    response = client.post(
        "/api/forums", json={"title": title, "category": "classics"}, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()["forum"]


def _post(client, headers, forum_id, content="Who finished Middlemarch?"):
    return client.post(f"/api/forums/{forum_id}/posts", json={"content": content}, headers=headers)


class TestForums:
    """Tests for creating, listing and joining forums."""

    def test_create_makes_creator_member(self, client, auth):
        """The creator of a forum is its first member."""
        _, headers = auth
        forum = _forum(client, headers)
        assert forum["category"] == "classics"
        assert forum["member_count"] == 1

    def test_title_required(self, client, auth):
        """A forum without a title is a 400."""
        _, headers = auth
        assert client.post("/api/forums", json={}, headers=headers).status_code == 400

    def test_list(self, client, auth):
        """Forums are listed publicly."""
        _, headers = auth
        _forum(client, headers)
        assert client.get("/api/forums").json()["count"] == 1

    def test_unknown_forum(self, client):
        """An unknown forum id is a 404."""
        assert client.get("/api/forums/missing").status_code == 404

    def test_join_twice(self, client, register):
        """Joining a forum twice is a 400."""
        _, alice = register("alice")
        _, bob = register("bob")
        forum = _forum(client, alice)
        assert client.post(f"/api/forums/{forum['id']}/join", headers=bob).status_code == 200
        assert client.post(f"/api/forums/{forum['id']}/join", headers=bob).status_code == 400


class TestPosts:
    """Tests for posts and replies."""

    def test_member_posts(self, client, auth):
        """Members can post in a forum."""
        _, headers = auth
        forum = _forum(client, headers)
        response = _post(client, headers, forum["id"])
        assert response.status_code == 201
        assert response.json()["post"]["content"] == "Who finished Middlemarch?"

    def test_non_member_cannot_post(self, client, register):
        """Non-members posting get a 403."""
        _, alice = register("alice")
        _, bob = register("bob")
        forum = _forum(client, alice)
        assert _post(client, bob, forum["id"]).status_code == 403

    def test_reply_and_detail(self, client, register):
        """Replies show under their post in the forum detail."""
        _, alice = register("alice")
        _, bob = register("bob")
        forum = _forum(client, alice)
        post = _post(client, alice, forum["id"]).json()["post"]
        response = client.post(
            f"/api/forums/{forum['id']}/posts/{post['id']}/replies",
            json={"content": "Halfway there"},
            headers=bob,
        )
        assert response.status_code == 201

        detail = client.get(f"/api/forums/{forum['id']}").json()
        assert detail["forum"]["post_count"] == 1
        replies = detail["posts"][0]["replies"]
        assert [r["content"] for r in replies] == ["Halfway there"]
        assert replies[0]["username"] == "bob"

    def test_reply_to_post_in_other_forum(self, client, auth):
        """Replying to a post through the wrong forum is a 404."""
        _, headers = auth
        first = _forum(client, headers, "First")
        second = _forum(client, headers, "Second")
        post = _post(client, headers, first["id"]).json()["post"]
        response = client.post(
            f"/api/forums/{second['id']}/posts/{post['id']}/replies",
            json={"content": "Wrong place"},
            headers=headers,
        )
        assert response.status_code == 404

    def test_like_toggles(self, client, auth):
        """Liking a post twice removes the like."""
        _, headers = auth
        forum = _forum(client, headers)
        post = _post(client, headers, forum["id"]).json()["post"]
        url = f"/api/forums/{forum['id']}/posts/{post['id']}/like"
        assert client.post(url, headers=headers).json() == {"liked": True, "likes": 1}
        assert client.post(url, headers=headers).json() == {"liked": False, "likes": 0}

    def test_empty_post(self, client, auth):
        """An empty post is a 400."""
        _, headers = auth
        forum = _forum(client, headers)
        assert _post(client, headers, forum["id"], content="").status_code == 400
