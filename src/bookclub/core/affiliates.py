"""Affiliate purchase links and click tracking."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable
from urllib.parse import quote

import structlog

from bookclub.config.app_config import AffiliateConfig, load_app_config
from bookclub.core.books import get_book
from bookclub.db import affiliates_repository as affiliates_repo
from bookclub.db.books_repository import BookRecord
from bookclub.utils.errors import APIError
from bookclub.utils.text_utils import slugify

logger = structlog.get_logger(__name__)

# Estimated average sale used to value a click
AVERAGE_SALE_USD = 15.0


@dataclass(frozen=True)
class Platform:
    name: str
    commission_rate: float
    build_url: Callable[[BookRecord, AffiliateConfig], str]

    @property
    def display_name(self) -> str:
        return " ".join(part.capitalize() for part in self.name.split("-"))


PLATFORMS: dict[str, Platform] = {
    "amazon": Platform(
        "amazon",
        0.04,
        lambda book, cfg: f"https://www.amazon.com/dp/{quote(book.isbn)}?tag={cfg.amazon_tag}",
    ),
    "bookshop": Platform(
        "bookshop",
        0.10,
        lambda book, cfg: f"https://bookshop.org/a/{cfg.bookshop_id}/book/{quote(book.isbn)}",
    ),
    "barnes-noble": Platform(
        "barnes-noble",
        0.05,
        lambda book, cfg: (
            f"https://www.barnesandnoble.com/w/{slugify(book.title)}/{quote(book.isbn)}"
            f"?aid={cfg.barnes_noble_id}"
        ),
    ),
}


def _get_platform(platform: str | None) -> Platform:
    if platform not in PLATFORMS:
        raise APIError.bad_request("Invalid platform", valid_platforms=list(PLATFORMS))
    return PLATFORMS[platform]


def build_link(book_id: str, platform: str) -> dict[str, Any]:
    """Affiliate URL for a book on one platform.

    Raises:
        APIError: 404 for an unknown book, 400 without ISBN or for a bad platform
    """
    book = get_book(book_id)
    target = _get_platform(platform)
    if not book.isbn:
        raise APIError.bad_request("Book has no ISBN")
    url = target.build_url(book, load_app_config().affiliates)
    return {"url": url, "platform": platform, "book_id": book_id}


def list_platforms(book_id: str) -> list[dict[str, Any]]:
    book = get_book(book_id)
    config = load_app_config().affiliates
    return [
        {
            "platform": name,
            "display_name": target.display_name,
            "available": bool(book.isbn),
            "url": target.build_url(book, config) if book.isbn else None,
            "commission_rate": target.commission_rate,
        }
        for name, target in PLATFORMS.items()
    ]


def track_click(
    book_id: str | None,
    platform: str | None,
    user_id: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> dict[str, Any]:
    if not book_id or not platform:
        raise APIError.bad_request("Book ID and platform are required")
    target = _get_platform(platform)
    book = get_book(book_id)

    url = target.build_url(book, load_app_config().affiliates) if book.isbn else ""
    commission = round(AVERAGE_SALE_USD * target.commission_rate, 2)
    click_id = affiliates_repo.insert_click(
        book_id,
        platform,
        url,
        commission,
        user_id=user_id,
        isbn=book.isbn,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    logger.info("affiliate_click_tracked", book_id=book_id, platform=platform)
    return {"click_id": click_id, "commission": commission}


def get_stats() -> dict[str, Any]:
    total_clicks, total_commission = affiliates_repo.click_totals()
    return {
        "total_clicks": total_clicks,
        "clicks_by_platform": affiliates_repo.clicks_by_platform(),
        "total_commission": round(total_commission, 2),
        "top_books": affiliates_repo.top_books(limit=10),
    }
