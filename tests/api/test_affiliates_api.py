"""Tests for affiliate links and click tracking."""


class TestLinks:
    """Tests for link building."""

    def test_amazon_link(self, client, book):
        """Amazon links are built from the ISBN."""
        response = client.get(f"/api/affiliates/book/{book.id}/link/amazon")
        assert response.status_code == 200
        assert response.json()["url"] == "https://www.amazon.com/dp/9780441478125?tag=bookclub-20"

    def test_barnes_noble_link_uses_title_slug(self, client, book):
        """Barnes & Noble links include a slug of the title."""
        url = client.get(f"/api/affiliates/book/{book.id}/link/barnes-noble").json()["url"]
        assert url == (
            "https://www.barnesandnoble.com/w/the-left-hand-of-darkness/9780441478125?aid=bookclub"
        )

    def test_unknown_platform(self, client, book):
        """An unsupported platform is a 400."""
        response = client.get(f"/api/affiliates/book/{book.id}/link/ebay")
        assert response.status_code == 400
        assert response.json()["valid_platforms"] == ["amazon", "bookshop", "barnes-noble"]

    def test_book_without_isbn(self, client, make_book):
        """A link for a book without an ISBN is a 400."""
        book = make_book("No ISBN")
        response = client.get(f"/api/affiliates/book/{book.id}/link/amazon")
        assert response.status_code == 400
        assert response.json()["detail"] == "Book has no ISBN"

    def test_platforms(self, client, book):
        """All supported platforms are listed for a book."""
        data = client.get(f"/api/affiliates/book/{book.id}/platforms").json()
        platforms = {p["platform"]: p for p in data["platforms"]}
        assert platforms["bookshop"]["commission_rate"] == 0.10
        assert platforms["barnes-noble"]["display_name"] == "Barnes Noble"
        assert all(p["available"] for p in platforms.values())

    def test_platforms_unavailable_without_isbn(self, client, make_book):
        """Platforms are marked unavailable when the book has no ISBN."""
        book = make_book("No ISBN")
        data = client.get(f"/api/affiliates/book/{book.id}/platforms").json()
        assert not any(p["available"] for p in data["platforms"])


class TestClicks:
    """Tests for click tracking and stats."""

    def test_anonymous_click(self, client, book):
        """Clicks can be tracked without logging in."""
        response = client.post(
            "/api/affiliates/track-click", json={"bookId": book.id, "platform": "amazon"}
        )
        assert response.status_code == 200
        assert response.json()["commission"] == 0.6

    def test_click_requires_fields(self, client):
        """Tracking a click needs both book and platform."""
        response = client.post("/api/affiliates/track-click", json={"platform": "amazon"})
        assert response.status_code == 400

    def test_stats(self, client, auth, book):
        """Stats total the clicks per platform and per book, with commission."""
        _, headers = auth
        client.post("/api/affiliates/track-click", json={"bookId": book.id, "platform": "amazon"})
        client.post(
            "/api/affiliates/track-click", json={"bookId": book.id, "platform": "bookshop"}, headers=headers
        )
        stats = client.get("/api/affiliates/stats", headers=headers).json()
        assert stats["total_clicks"] == 2
        assert stats["clicks_by_platform"] == {"amazon": 1, "bookshop": 1}
        assert stats["total_commission"] == 2.1
        assert stats["top_books"] == [{"book_id": book.id, "title": book.title, "clicks": 2}]

    def test_stats_require_auth(self, client):
        """Click stats need a logged-in user."""
        assert client.get("/api/affiliates/stats").status_code == 401
