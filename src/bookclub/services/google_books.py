"""Google Books volumes API client."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from bookclub.config.app_config import GoogleBooksConfig, load_app_config

logger = structlog.get_logger(__name__)


class GoogleBooksError(Exception):
    """Upstream search failed (network error or non-2xx status)."""


def map_volume(item: dict[str, Any]) -> dict[str, Any]:
    """Map a Google Books volume to the catalog's book fields.

    ISBN_13 is preferred over ISBN_10.
    """
    info = item.get("volumeInfo", {})
    identifiers = {
        ident.get("type"): ident.get("identifier")
        for ident in info.get("industryIdentifiers", [])
    }
    return {
        "google_books_id": item.get("id"),
        "title": info.get("title", "Untitled"),
        "authors": info.get("authors", []),
        "description": info.get("description", ""),
        "isbn": identifiers.get("ISBN_13") or identifiers.get("ISBN_10"),
        "categories": info.get("categories", []),
        "cover_image": info.get("imageLinks", {}).get("thumbnail"),
        "page_count": info.get("pageCount"),
        "published_date": info.get("publishedDate"),
    }


class GoogleBooksClient:
    """Async search against the volumes endpoint."""

    def __init__(
        self,
        config: GoogleBooksConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            config: API settings (from app config if not provided)
            transport: Custom httpx transport, e.g. httpx.MockTransport in tests
        """
        self.config = config or load_app_config().google_books
        self._transport = transport

    async def search(self, query: str) -> list[dict[str, Any]]:
        """Search volumes and return mapped books.

        Raises:
            GoogleBooksError: If the request fails
        """
        params: dict[str, Any] = {"q": query, "maxResults": self.config.max_results}
        api_key = self.config.get_api_key()
        if api_key:
            params["key"] = api_key

        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout, transport=self._transport
            ) as client:
                response = await client.get(self.config.base_url, params=params)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning("google_books_status_error", status=e.response.status_code, query=query)
            raise GoogleBooksError(f"Google Books returned {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("google_books_request_failed", error=str(e), query=query)
            raise GoogleBooksError(f"Google Books request failed: {e}") from e

        items = data.get("items", [])
        logger.info("google_books_search", query=query, results=len(items))
        return [map_volume(item) for item in items]
