"""Community challenges, participation and leaderboards."""

from __future__ import annotations

import math
import sqlite3
from datetime import date, timedelta
from typing import Any

import structlog

from bookclub.config.constants import (
    CHALLENGE_LIST_DEFAULT_LIMIT,
    CHALLENGE_LIST_MAX_LIMIT,
    DEFAULT_REWARD_POINTS,
    LEADERBOARD_SIZE,
)
from bookclub.core.streaks import today_utc
from bookclub.db import challenges_repository as challenges_repo
from bookclub.db.challenges_repository import ChallengeRecord, ParticipantRecord
from bookclub.db.database import utc_now
from bookclub.utils.errors import APIError

logger = structlog.get_logger(__name__)

DIFFICULTIES = ("easy", "medium", "hard")

REQUIRED_FIELDS = ("title", "description", "challenge_type", "target_value", "start_date", "end_date")


def _get_challenge(challenge_id: str) -> ChallengeRecord:
    challenge = challenges_repo.get_challenge(challenge_id)
    if challenge is None:
        raise APIError.not_found("Challenge not found")
    return challenge


def list_challenges(
    user_id: str | None = None,
    status: str = "active",
    difficulty: str | None = None,
    limit: int = CHALLENGE_LIST_DEFAULT_LIMIT,
) -> list[dict[str, Any]]:
    """Challenges by status, annotated with the caller's participation."""
    limit = max(1, min(limit, CHALLENGE_LIST_MAX_LIMIT))
    challenges = challenges_repo.list_challenges(status=status, difficulty=difficulty, limit=limit)
    participations = (
        challenges_repo.get_user_participations(user_id, [c.id for c in challenges])
        if user_id
        else {}
    )

    results = []
    for challenge in challenges:
        entry: dict[str, Any] = dict(vars(challenge))
        if user_id:
            mine = participations.get(challenge.id)
            entry["is_participating"] = mine is not None
            entry["my_progress"] = mine.progress if mine else 0
        results.append(entry)
    return results


def get_challenge_detail(challenge_id: str, user_id: str | None = None) -> dict[str, Any]:
    challenge = _get_challenge(challenge_id)
    leaderboard = [
        {
            "user_id": p.user_id,
            "username": p.username,
            "progress": p.progress,
            "points_earned": p.points_earned,
            "completed": p.completed,
            "rank": index + 1,
        }
        for index, p in enumerate(challenges_repo.list_participants(challenge_id, LEADERBOARD_SIZE))
    ]
    my_participation = (
        challenges_repo.get_participant(challenge_id, user_id) if user_id else None
    )
    return {
        "challenge": challenge,
        "leaderboard": leaderboard,
        "my_participation": my_participation,
    }


def join_challenge(user_id: str, challenge_id: str) -> ParticipantRecord:
    _get_challenge(challenge_id)
    if challenges_repo.get_participant(challenge_id, user_id) is not None:
        raise APIError.conflict("Already participating in this challenge")
    try:
        participant = challenges_repo.insert_participant(challenge_id, user_id)
    except sqlite3.IntegrityError as e:
        raise APIError.conflict("Already participating in this challenge") from e

    logger.info("challenge_joined", user_id=user_id, challenge_id=challenge_id)
    return participant


def leave_challenge(user_id: str, challenge_id: str) -> None:
    if not challenges_repo.delete_participant(challenge_id, user_id):
        raise APIError.not_found("Not participating in this challenge")
    logger.info("challenge_left", user_id=user_id, challenge_id=challenge_id)


def create_challenge(user_id: str, data: dict[str, Any], today: date | None = None) -> ChallengeRecord:
    """Create a challenge; it is upcoming when it starts after today.

    Raises:
        APIError: 400 when a required field is missing or invalid
    """
    missing = [name for name in REQUIRED_FIELDS if data.get(name) in (None, "")]
    if missing:
        raise APIError.bad_request("Missing required fields", missing=missing)

    target_value = data["target_value"]
    if not isinstance(target_value, int) or isinstance(target_value, bool) or target_value <= 0:
        raise APIError.bad_request("target_value must be a positive integer")

    difficulty = data.get("difficulty") or "medium"
    if difficulty not in DIFFICULTIES:
        raise APIError.bad_request("Invalid difficulty", valid=list(DIFFICULTIES))

    try:
        start = date.fromisoformat(str(data["start_date"])[:10])
        date.fromisoformat(str(data["end_date"])[:10])
    except ValueError as e:
        raise APIError.bad_request("Dates must be in YYYY-MM-DD format") from e

    status = "upcoming" if start > (today or today_utc()) else "active"
    reward_points = data.get("reward_points")
    challenge = challenges_repo.insert_challenge(
        title=data["title"],
        description=data["description"],
        challenge_type=data["challenge_type"],
        target_value=target_value,
        start_date=str(data["start_date"]),
        end_date=str(data["end_date"]),
        difficulty=difficulty,
        status=status,
        reward_points=DEFAULT_REWARD_POINTS if reward_points is None else reward_points,
        created_by=user_id,
    )
    logger.info("challenge_created", challenge_id=challenge.id, status=status)
    return challenge


def points_for(progress: int, target: int, reward_points: int) -> int:
    if progress >= target:
        return reward_points
    if target <= 0:
        return 0
    return math.floor(progress / target * reward_points)


def recompute_ranks(challenge_id: str) -> None:
    for index, participant in enumerate(challenges_repo.list_participants(challenge_id)):
        challenges_repo.set_participant_rank(participant.id, index + 1)


def update_progress(user_id: str, challenge_id: str, progress: Any) -> ParticipantRecord:
    """Record progress, award points and refresh the leaderboard ranks."""
    if not isinstance(progress, int) or isinstance(progress, bool) or progress < 0:
        raise APIError.bad_request("progress must be a non-negative integer")

    challenge = _get_challenge(challenge_id)
    participant = challenges_repo.get_participant(challenge_id, user_id)
    if participant is None:
        raise APIError.not_found("Not participating in this challenge")

    completed = progress >= challenge.target_value
    completed_at = participant.completed_at
    if completed and not participant.completed:
        completed_at = utc_now()
        logger.info("challenge_completed", user_id=user_id, challenge_id=challenge_id)

    challenges_repo.update_participant_progress(
        participant.id,
        progress,
        points_for(progress, challenge.target_value, challenge.reward_points),
        completed,
        completed_at,
    )
    recompute_ranks(challenge_id)
    return challenges_repo.get_participant(challenge_id, user_id)


SAMPLE_CHALLENGES: list[dict[str, Any]] = [
    {
        "challenge_id": "summer-reading-sprint",
        "title": "Summer Reading Sprint",
        "description": "Read 5 books before the season ends",
        "challenge_type": "books_read",
        "target_value": 5,
        "difficulty": "easy",
        "reward_points": 100,
        "days": 90,
    },
    {
        "challenge_id": "page-turner-marathon",
        "title": "Page Turner Marathon",
        "description": "Read 3000 pages this month",
        "challenge_type": "pages_read",
        "target_value": 3000,
        "difficulty": "hard",
        "reward_points": 300,
        "days": 30,
    },
    {
        "challenge_id": "classics-club",
        "title": "Classics Club",
        "description": "Finish 3 classic novels",
        "challenge_type": "books_read",
        "target_value": 3,
        "difficulty": "medium",
        "reward_points": 150,
        "days": 60,
    },
]


def seed_sample_challenges(today: date | None = None) -> int:
    """Insert the sample challenges that do not exist yet."""
    today = today or today_utc()
    created = 0
    for sample in SAMPLE_CHALLENGES:
        if challenges_repo.get_challenge(sample["challenge_id"]) is not None:
            continue
        challenges_repo.insert_challenge(
            title=sample["title"],
            description=sample["description"],
            challenge_type=sample["challenge_type"],
            target_value=sample["target_value"],
            start_date=today.isoformat(),
            end_date=(today + timedelta(days=sample["days"])).isoformat(),
            difficulty=sample["difficulty"],
            reward_points=sample["reward_points"],
            challenge_id=sample["challenge_id"],
        )
        created += 1
    logger.info("sample_challenges_seeded", created=created)
    return created
