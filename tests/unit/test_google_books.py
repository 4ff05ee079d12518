"""Tests for the Google Books client."""

import httpx
import pytest

from bookclub.config.app_config import GoogleBooksConfig
from bookclub.services.google_books import GoogleBooksClient, GoogleBooksError, map_volume

VOLUME = {
    "id": "vol-1",
    "volumeInfo": {
        "title": "Dune",
        "authors": ["Frank Herbert"],
        "industryIdentifiers": [
            {"type": "ISBN_10", "identifier": "0441172717"},
            {"type": "ISBN_13", "identifier": "9780441172719"},
        ],
        "categories": ["Fiction"],
        "imageLinks": {"thumbnail": "http://books.example/dune.jpg"},
        "pageCount": 688,
        "publishedDate": "1965",
    },
}


class TestMapVolume:
    """Tests for map_volume."""

    def test_full_volume(self):
        """A complete volume maps to every book field."""
        book = map_volume(VOLUME)
        assert book["google_books_id"] == "vol-1"
        assert book["isbn"] == "9780441172719"
        assert book["cover_image"] == "http://books.example/dune.jpg"
        assert book["page_count"] == 688

    def test_isbn_10_fallback(self):
        """ISBN-10 is used when there is no ISBN-13."""
        item = {"id": "v", "volumeInfo": {"industryIdentifiers": [{"type": "ISBN_10", "identifier": "123"}]}}
        assert map_volume(item)["isbn"] == "123"

    def test_sparse_volume(self):
        """Missing volume fields get defaults."""
        book = map_volume({"id": "v"})
        assert book["title"] == "Untitled"
        assert book["authors"] == []
        assert book["isbn"] is None
        assert book["cover_image"] is None


class TestGoogleBooksClient:
    """Tests for GoogleBooksClient.search with a mock transport."""

    def _client(self, handler) -> GoogleBooksClient:
        return GoogleBooksClient(GoogleBooksConfig(max_results=5), transport=httpx.MockTransport(handler))

    @pytest.mark.asyncio
    async def test_search(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={"items": [VOLUME]})

        results = await self._client(handler).search("dune")

        assert [book["title"] for book in results] == ["Dune"]
        assert seen["params"] == {"q": "dune", "maxResults": "5"}

    @pytest.mark.asyncio
    async def test_api_key_is_sent(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_BOOKS_API_KEY", "gb-key")
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["key"] = request.url.params.get("key")
            return httpx.Response(200, json={})

        assert await self._client(handler).search("dune") == []
        assert seen["key"] == "gb-key"

    @pytest.mark.asyncio
    async def test_error_status(self):
        client = self._client(lambda request: httpx.Response(500, json={"error": "boom"}))
        with pytest.raises(GoogleBooksError, match="returned 500"):
            await client.search("dune")

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        with pytest.raises(GoogleBooksError, match="request failed"):
            await self._client(handler).search("dune")

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        client = self._client(lambda request: httpx.Response(200, content=b"<html>"))
        with pytest.raises(GoogleBooksError):
            await client.search("dune")
