"""Tests for community challenges and leaderboards."""

from datetime import date, timedelta

from bookclub.core.challenges import seed_sample_challenges


def _create(client, headers, **overrides):
    today = date.today()
    body = {
        "title": "Winter Reads",
        "description": "Read 4 books this winter",
        "challengeType": "books_read",
        "targetValue": 4,
        "startDate": (today - timedelta(days=1)).isoformat(),
        "endDate": (today + timedelta(days=60)).isoformat(),
        "difficulty": "easy",
        "rewardPoints": 200,
    }
    body.update(overrides)
    return client.post("/api/challenges", json=body, headers=headers)


class TestCreateChallenge:
    """Tests for POST /api/challenges."""

    def test_create_active_challenge(self, client, auth):
        """A challenge starting today is active."""
        user, headers = auth
        response = _create(client, headers)
        assert response.status_code == 201
        challenge = response.json()["challenge"]
        assert challenge["status"] == "active"
        assert challenge["reward_points"] == 200
        assert challenge["created_by"] == user["id"]

    def test_future_start_is_upcoming(self, client, auth):
        """A challenge starting later is upcoming."""
        _, headers = auth
        start = (date.today() + timedelta(days=30)).isoformat()
        challenge = _create(client, headers, startDate=start).json()["challenge"]
        assert challenge["status"] == "upcoming"

    def test_missing_fields_listed(self, client, auth):
        """The 400 for missing fields names each one."""
        _, headers = auth
        response = client.post("/api/challenges", json={"title": "Only a title"}, headers=headers)
        assert response.status_code == 400
        assert "description" in response.json()["missing"]

    def test_invalid_difficulty(self, client, auth):
        """An unknown difficulty is a 400."""
        _, headers = auth
        assert _create(client, headers, difficulty="legendary").status_code == 400

    def test_bad_date(self, client, auth):
        """Dates not in YYYY-MM-DD form are a 400."""
        _, headers = auth
        response = _create(client, headers, startDate="next week")
        assert response.status_code == 400
        assert response.json()["detail"] == "Dates must be in YYYY-MM-DD format"


class TestListChallenges:
    """Tests for GET /api/challenges."""

    def test_list_active_sample_challenges(self, client):
        """The seeded sample challenges are listed as active."""
        seed_sample_challenges()
        data = client.get("/api/challenges").json()
        assert data["count"] == 3
        assert "is_participating" not in data["challenges"][0]

    def test_list_filters_by_difficulty(self, client):
        """Listing can be filtered by difficulty."""
        seed_sample_challenges()
        data = client.get("/api/challenges", params={"difficulty": "hard"}).json()
        assert [c["id"] for c in data["challenges"]] == ["page-turner-marathon"]

    def test_list_annotates_participation(self, client, auth):
        """Listed challenges show whether the user has joined."""
        _, headers = auth
        seed_sample_challenges()
        client.post("/api/challenges/classics-club/join", headers=headers)
        data = client.get("/api/challenges", headers=headers).json()
        mine = {c["id"]: c["is_participating"] for c in data["challenges"]}
        assert mine["classics-club"] is True
        assert mine["summer-reading-sprint"] is False

    def test_upcoming_status_filter(self, client, auth):
        """The status filter returns upcoming challenges."""
        _, headers = auth
        _create(client, headers, startDate=(date.today() + timedelta(days=30)).isoformat())
        assert client.get("/api/challenges", params={"status": "upcoming"}).json()["count"] == 1


class TestParticipation:
    """Tests for join, leave, progress and the leaderboard."""

    def test_join_twice_conflicts(self, client, auth):
        """Joining a challenge twice is a 409."""
        _, headers = auth
        challenge_id = _create(client, headers).json()["challenge"]["id"]
        assert client.post(f"/api/challenges/{challenge_id}/join", headers=headers).status_code == 200
        assert client.post(f"/api/challenges/{challenge_id}/join", headers=headers).status_code == 409
        detail = client.get(f"/api/challenges/{challenge_id}").json()
        assert detail["challenge"]["participant_count"] == 1

    def test_leave_without_joining(self, client, auth):
        """Leaving a challenge the user never joined is a 404."""
        _, headers = auth
        challenge_id = _create(client, headers).json()["challenge"]["id"]
        assert client.post(f"/api/challenges/{challenge_id}/leave", headers=headers).status_code == 404

    def test_progress_awards_proportional_points(self, client, auth):
        """Progress earns points in proportion to the target."""
        _, headers = auth
        challenge_id = _create(client, headers).json()["challenge"]["id"]
        client.post(f"/api/challenges/{challenge_id}/join", headers=headers)
        participation = client.put(
            f"/api/challenges/{challenge_id}/progress", json={"progress": 3}, headers=headers
        ).json()["participation"]
        assert participation["points_earned"] == 150
        assert participation["completed"] is False
        assert participation["rank"] == 1

    def test_completion(self, client, auth):
        """Reaching the target completes the challenge with full points."""
        _, headers = auth
        challenge_id = _create(client, headers).json()["challenge"]["id"]
        client.post(f"/api/challenges/{challenge_id}/join", headers=headers)
        participation = client.put(
            f"/api/challenges/{challenge_id}/progress", json={"progress": 4}, headers=headers
        ).json()["participation"]
        assert participation["completed"] is True
        assert participation["points_earned"] == 200
        assert participation["completed_at"] is not None

    def test_leaderboard_ranks_by_progress(self, client, register):
        """The leaderboard ranks participants by progress."""
        _, alice = register("alice")
        _, bob = register("bob")
        challenge_id = _create(client, alice).json()["challenge"]["id"]
        for headers, progress in ((alice, 1), (bob, 3)):
            client.post(f"/api/challenges/{challenge_id}/join", headers=headers)
            client.put(f"/api/challenges/{challenge_id}/progress", json={"progress": progress}, headers=headers)

        detail = client.get(f"/api/challenges/{challenge_id}", headers=alice).json()
        assert [(row["username"], row["rank"]) for row in detail["leaderboard"]] == [("bob", 1), ("alice", 2)]
        assert detail["my_participation"]["rank"] == 2

    def test_progress_without_joining(self, client, auth):
        """Progress on a challenge the user has not joined is a 404."""
        _, headers = auth
        challenge_id = _create(client, headers).json()["challenge"]["id"]
        response = client.put(
            f"/api/challenges/{challenge_id}/progress", json={"progress": 1}, headers=headers
        )
        assert response.status_code == 404

    def test_unknown_challenge(self, client):
        """An unknown challenge id is a 404."""
        assert client.get("/api/challenges/missing").status_code == 404
