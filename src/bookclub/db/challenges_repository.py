"""Repository functions for community challenges and their participants."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Any

import structlog

from bookclub.db.database import get_db, new_id, utc_now
from bookclub.utils.retry import db_retry

logger = structlog.get_logger(__name__)


@dataclass
class ChallengeRecord:
    """Community challenge record from database."""

    id: str
    title: str
    description: str
    challenge_type: str
    target_value: int
    start_date: str
    end_date: str
    difficulty: str
    status: str
    reward_points: int
    participant_count: int
    created_by: str | None
    created_at: str


@dataclass
class ParticipantRecord:
    """A user's participation in a challenge."""

    id: str
    challenge_id: str
    user_id: str
    progress: int
    rank: int | None
    points_earned: int
    completed: bool
    completed_at: str | None
    joined_at: str
    username: str = ""


@db_retry
def insert_challenge(
    title: str,
    description: str,
    challenge_type: str,
    target_value: int,
    start_date: str,
    end_date: str,
    difficulty: str = "medium",
    status: str = "active",
    reward_points: int = 100,
    created_by: str | None = None,
    challenge_id: str | None = None,
) -> ChallengeRecord:
    """Insert a challenge.

    Args:
        challenge_id: Fixed ID for seeded challenges, generated otherwise
    """
    challenge = ChallengeRecord(
        id=challenge_id or new_id(),
        title=title,
        description=description,
        challenge_type=challenge_type,
        target_value=target_value,
        start_date=start_date,
        end_date=end_date,
        difficulty=difficulty,
        status=status,
        reward_points=reward_points,
        participant_count=0,
        created_by=created_by,
        created_at=utc_now(),
    )
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO community_challenges (
                id, title, description, challenge_type, target_value, start_date,
                end_date, difficulty, status, reward_points, participant_count,
                created_by, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?, ?)
            """,
            (
                challenge.id,
                title,
                description,
                challenge_type,
                target_value,
                start_date,
                end_date,
                difficulty,
                status,
                reward_points,
                created_by,
                challenge.created_at,
            ),
        )

    logger.debug("challenges.inserted", challenge_id=challenge.id)
    return challenge


@db_retry
def get_challenge(challenge_id: str) -> ChallengeRecord | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM community_challenges WHERE id = ?", (challenge_id,)
        ).fetchone()
    return _row_to_challenge(row) if row else None


@db_retry
def list_challenges(
    status: str = "active",
    difficulty: str | None = None,
    limit: int = 20,
) -> list[ChallengeRecord]:
    """Challenges with the given status, latest start first."""
    query = "SELECT * FROM community_challenges WHERE status = ?"
    params: list[Any] = [status]
    if difficulty:
        query += " AND difficulty = ?"
        params.append(difficulty)
    query += " ORDER BY start_date DESC LIMIT ?"
    params.append(limit)

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_challenge(row) for row in rows]


@db_retry
def insert_participant(challenge_id: str, user_id: str) -> ParticipantRecord:
    """Add a participant and bump the challenge's participant count.

    Raises:
        sqlite3.IntegrityError: If the user already participates
    """
    participant = ParticipantRecord(
        id=new_id(),
        challenge_id=challenge_id,
        user_id=user_id,
        progress=0,
        rank=None,
        points_earned=0,
        completed=False,
        completed_at=None,
        joined_at=utc_now(),
    )
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO challenge_participants (id, challenge_id, user_id, joined_at)
            VALUES (?, ?, ?, ?)
            """,
            (participant.id, challenge_id, user_id, participant.joined_at),
        )
        conn.execute(
            "UPDATE community_challenges SET participant_count = participant_count + 1 WHERE id = ?",
            (challenge_id,),
        )
    return participant


@db_retry
def delete_participant(challenge_id: str, user_id: str) -> bool:
    """Remove a participant and decrement the participant count."""
    with get_db() as conn:
        cursor = conn.execute(
            "DELETE FROM challenge_participants WHERE challenge_id = ? AND user_id = ?",
            (challenge_id, user_id),
        )
        if cursor.rowcount == 0:
            return False
        conn.execute(
            """
            UPDATE community_challenges
            SET participant_count = MAX(participant_count - 1, 0)
            WHERE id = ?
            """,
            (challenge_id,),
        )
    return True


@db_retry
def get_participant(challenge_id: str, user_id: str) -> ParticipantRecord | None:
    with get_db() as conn:
        row = conn.execute(
            """
            SELECT p.*, u.username AS username FROM challenge_participants p
            JOIN users u ON u.id = p.user_id
            WHERE p.challenge_id = ? AND p.user_id = ?
            """,
            (challenge_id, user_id),
        ).fetchone()
    return _row_to_participant(row) if row else None


@db_retry
def get_user_participations(user_id: str, challenge_ids: list[str]) -> dict[str, ParticipantRecord]:
    """The user's participation rows for the given challenges, keyed by challenge."""
    if not challenge_ids:
        return {}
    placeholders = ",".join("?" for _ in challenge_ids)
    with get_db() as conn:
        rows = conn.execute(
            f"""
            SELECT p.*, u.username AS username FROM challenge_participants p
            JOIN users u ON u.id = p.user_id
            WHERE p.user_id = ? AND p.challenge_id IN ({placeholders})
            """,
            (user_id, *challenge_ids),
        ).fetchall()
    return {row["challenge_id"]: _row_to_participant(row) for row in rows}


@db_retry
def list_participants(challenge_id: str, limit: int | None = None) -> list[ParticipantRecord]:
    """Participants sorted by progress, highest first."""
    query = """
        SELECT p.*, u.username AS username FROM challenge_participants p
        JOIN users u ON u.id = p.user_id
        WHERE p.challenge_id = ?
        ORDER BY p.progress DESC, p.joined_at ASC
    """
    params: list[Any] = [challenge_id]
    if limit is not None:
        query += " LIMIT ?"
        params.append(limit)
    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_participant(row) for row in rows]


@db_retry
def update_participant_progress(
    participant_id: str,
    progress: int,
    points_earned: int,
    completed: bool,
    completed_at: str | None,
) -> None:
    with get_db() as conn:
        conn.execute(
            """
            UPDATE challenge_participants
            SET progress = ?, points_earned = ?, completed = ?, completed_at = ?
            WHERE id = ?
            """,
            (progress, points_earned, int(completed), completed_at, participant_id),
        )


@db_retry
def set_participant_rank(participant_id: str, rank: int) -> None:
    with get_db() as conn:
        conn.execute(
            "UPDATE challenge_participants SET rank = ? WHERE id = ?",
            (rank, participant_id),
        )


@db_retry
def count_challenges() -> int:
    with get_db() as conn:
        return conn.execute("SELECT COUNT(*) FROM community_challenges").fetchone()[0]


def _row_to_challenge(row: sqlite3.Row) -> ChallengeRecord:
    """Convert database row to ChallengeRecord."""
    return ChallengeRecord(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        challenge_type=row["challenge_type"],
        target_value=row["target_value"],
        start_date=row["start_date"],
        end_date=row["end_date"],
        difficulty=row["difficulty"],
        status=row["status"],
        reward_points=row["reward_points"],
        participant_count=row["participant_count"],
        created_by=row["created_by"],
        created_at=row["created_at"],
    )


def _row_to_participant(row: sqlite3.Row) -> ParticipantRecord:
    """Convert database row to ParticipantRecord."""
    return ParticipantRecord(
        id=row["id"],
        challenge_id=row["challenge_id"],
        user_id=row["user_id"],
        progress=row["progress"],
        rank=row["rank"],
        points_earned=row["points_earned"],
        completed=bool(row["completed"]),
        completed_at=row["completed_at"],
        joined_at=row["joined_at"],
        username=row["username"],
    )
