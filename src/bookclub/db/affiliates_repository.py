"""Repository functions for affiliate click tracking."""

from __future__ import annotations

import structlog

from bookclub.db.database import get_db, new_id, utc_now
from bookclub.utils.retry import db_retry

logger = structlog.get_logger(__name__)


@db_retry
def insert_click(
    book_id: str,
    platform: str,
    affiliate_url: str,
    commission: float,
    user_id: str | None = None,
    isbn: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> str:
    """Store a click and return its ID."""
    click_id = new_id()
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO affiliate_clicks (
                id, user_id, book_id, isbn, platform, affiliate_url,
                commission, ip_address, user_agent, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                click_id,
                user_id,
                book_id,
                isbn,
                platform,
                affiliate_url,
                commission,
                ip_address,
                user_agent,
                utc_now(),
            ),
        )

    logger.debug("affiliates.click_inserted", click_id=click_id, platform=platform)
    return click_id


@db_retry
def click_totals() -> tuple[int, float]:
    """Return (total clicks, total estimated commission) across all users."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT COUNT(*) AS clicks, COALESCE(SUM(commission), 0) AS commission FROM affiliate_clicks"
        ).fetchone()
    return row["clicks"], row["commission"]


@db_retry
def clicks_by_platform() -> dict[str, int]:
    with get_db() as conn:
        rows = conn.execute(
            "SELECT platform, COUNT(*) AS cnt FROM affiliate_clicks GROUP BY platform"
        ).fetchall()
    return {row["platform"]: row["cnt"] for row in rows}


@db_retry
def top_books(limit: int = 10) -> list[dict]:
    """Most clicked books with their titles."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT c.book_id, b.title, COUNT(*) AS clicks
            FROM affiliate_clicks c
            JOIN books b ON b.id = c.book_id
            GROUP BY c.book_id, b.title
            ORDER BY clicks DESC
            LIMIT ?
            """,
            (limit,),
        ).fetchall()
    return [{"book_id": row["book_id"], "title": row["title"], "clicks": row["clicks"]} for row in rows]
