"""Tests for the health endpoint."""

import sqlite3
from unittest.mock import patch

from bookclub import __version__


class TestHealthEndpoint:
    """Tests for GET /health."""

    def test_health_returns_ok(self, client):
        """Health endpoint returns status ok with a connected database."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["services"]["database"] == "connected"

    def test_health_returns_version(self, client):
        """Health reports the package version."""
        response = client.get("/health")
        assert response.json()["version"] == __version__

    def test_health_returns_timestamp(self, client):
        """Health endpoint returns an ISO timestamp."""
        data = client.get("/health").json()
        assert "T" in data["timestamp"]

    def test_health_reports_unconfigured_services(self, client):
        """Without credentials AI and payments are reported as not configured."""
        services = client.get("/health").json()["services"]
        assert services["ai"] == "not_configured"
        assert services["payments"] == "not_configured"

    def test_health_reports_configured_ai(self, client, mock_llm):
        """Health reports the AI as configured when a client is set."""
        services = client.get("/health").json()["services"]
        assert services["ai"] == "configured"

    def test_health_unhealthy_when_database_fails(self, client):
        """A failing database check gives 503 and status unhealthy."""
        with patch(
            "bookclub.web.routes.health.check_connection",
            side_effect=sqlite3.OperationalError("disk I/O error"),
        ):
            response = client.get("/health")
        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["services"]["database"] == "disconnected"

    def test_health_reports_environment(self, client):
        """Health reports the configured environment."""
        assert client.get("/health").json()["environment"] == "development"
