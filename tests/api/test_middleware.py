"""Tests for request ids, security headers, rate limits and error bodies."""

from unittest.mock import patch

from fastapi.testclient import TestClient

from bookclub.config.app_config import AppConfig, RateLimitConfig, RateLimitRule, ServerConfig
from bookclub.config.constants import PRODUCTION_ERROR_MESSAGE
from bookclub.web.api import create_app


class TestRequestContext:
    """Tests for the request id and response headers."""

    def test_request_id_is_generated(self, client):
        """Each response carries a generated request id."""
        response = client.get("/health")
        assert len(response.headers["x-request-id"]) == 32

    def test_request_id_is_echoed(self, client):
        """A client-supplied request id is echoed back."""
        response = client.get("/api/books", headers={"X-Request-ID": "trace-123"})
        assert response.headers["x-request-id"] == "trace-123"

    def test_error_body_carries_request_id(self, client):
        """Error bodies include the request id."""
        response = client.get("/api/books/missing", headers={"X-Request-ID": "trace-404"})
        assert response.status_code == 404
        assert response.json()["request_id"] == "trace-404"
        assert response.json()["error"] == "not_found"

    def test_security_headers(self, client):
        """Responses carry the security headers."""
        headers = client.get("/health").headers
        assert headers["x-content-type-options"] == "nosniff"
        assert headers["x-frame-options"] == "DENY"
        assert "strict-transport-security" not in headers

    def test_hsts_in_production(self):
        """HSTS is only sent in production."""
        config = AppConfig(server=ServerConfig(environment="production"))
        with TestClient(create_app(config)) as client:
            response = client.get("/health")
        assert response.headers["strict-transport-security"].startswith("max-age=31536000")


class TestGeneralRateLimit:
    """Tests for the per-IP limiter on /api routes."""

    def _limited_app(self):
        config = AppConfig(rate_limits=RateLimitConfig(rules={"general": RateLimitRule(2, 60)}))
        return create_app(config)

    def test_exceeding_limit_returns_429(self):
        """Past the general limit, requests get a 429 with Retry-After."""
        with TestClient(self._limited_app()) as client:
            assert client.get("/api/books").status_code == 200
            assert client.get("/api/books").status_code == 200
            response = client.get("/api/books")
        assert response.status_code == 429
        assert response.json()["error"] == "rate_limit_exceeded"
        assert int(response.headers["retry-after"]) >= 1

    def test_health_is_not_limited(self):
        """The health endpoint is outside the general limit."""
        with TestClient(self._limited_app()) as client:
            statuses = [client.get("/health").status_code for _ in range(4)]
        assert statuses == [200, 200, 200, 200]

    def test_clients_are_limited_separately(self):
        """Each client IP has its own budget."""
        with TestClient(self._limited_app()) as client:
            for _ in range(2):
                client.get("/api/books", headers={"X-Forwarded-For": "10.0.0.1"})
            response = client.get("/api/books", headers={"X-Forwarded-For": "10.0.0.2"})
        assert response.status_code == 200

    def test_disabled_limits(self):
        """With rate limits disabled, nothing is limited."""
        config = AppConfig(
            rate_limits=RateLimitConfig(enabled=False, rules={"general": RateLimitRule(1, 60)})
        )
        with TestClient(create_app(config)) as client:
            statuses = [client.get("/api/books").status_code for _ in range(3)]
        assert statuses == [200, 200, 200]


class TestErrorHandling:
    """Tests for validation and unexpected errors."""

    def test_validation_error_lists_fields(self, client, auth):
        """Validation errors are a 400 listing each field."""
        _, headers = auth
        response = client.post(
            "/api/books", json={"title": "Dune", "pageCount": "many"}, headers=headers
        )
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["errors"][0]["field"] == "pageCount"

    def test_malformed_json(self, client, auth):
        """A malformed JSON body is a 400."""
        _, headers = auth
        response = client.post(
            "/api/books",
            content=b"{not json",
            headers={**headers, "Content-Type": "application/json"},
        )
        assert response.status_code == 400

    def test_unexpected_error_in_development(self):
        """In development, an unexpected error shows its type and message."""
        with TestClient(create_app(), raise_server_exceptions=False) as client:
            with patch("bookclub.core.books.list_books", side_effect=RuntimeError("boom")):
                response = client.get("/api/books")
        assert response.status_code == 500
        assert response.json()["error"] == "internal_error"
        assert response.json()["details"] == "RuntimeError: boom"

    def test_unexpected_error_in_production_hides_details(self):
        """In production, an unexpected error hides its details."""
        config = AppConfig(server=ServerConfig(environment="production"))
        with TestClient(create_app(config), raise_server_exceptions=False) as client:
            with patch("bookclub.core.books.list_books", side_effect=RuntimeError("boom")):
                response = client.get("/api/books")
        assert response.status_code == 500
        assert response.json()["detail"] == PRODUCTION_ERROR_MESSAGE
        assert "details" not in response.json()
