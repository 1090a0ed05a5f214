"""Tests for the HTTP surface."""

import sqlite3
from urllib.parse import parse_qs

import httpx
import pytest
from fastapi.testclient import TestClient

from athlete_sessions.api import create_app
from athlete_sessions.context import AppContext

TOKEN_RESPONSE = {
    "token_type": "Bearer",
    "expires_at": 1893499200,
    "expires_in": 21600,
    "refresh_token": "refresh-1",
    "access_token": "access-1",
    "athlete": {"id": 134815, "username": "marianne_t"},
}


def _strava(request: httpx.Request) -> httpx.Response:
    code = parse_qs(request.content.decode())["code"][0]
    if code == "good-code":
        return httpx.Response(200, json=TOKEN_RESPONSE)
    return httpx.Response(400, json={"message": "Bad Request"})


def _rows(database_path, table: str) -> int:
    connection = sqlite3.connect(database_path)
    try:
        return connection.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
    finally:
        connection.close()


@pytest.fixture
def client(settings):
    http = httpx.AsyncClient(transport=httpx.MockTransport(_strava))
    context = AppContext.create(settings, http=http)

    with TestClient(create_app(context=context)) as client:
        yield client


class TestHealthcheck:
    def test_healthcheck(self, client):
        response = client.get("/api/v1/healthcheck")

        assert response.status_code == 200
        assert response.text == "healthy\n"


class TestLogin:
    """Tests for POST /api/v1/login."""

    def test_login_with_code(self, client, database_path):
        response = client.post(
            "/api/v1/login", json={"authorization_code": "good-code"}
        )

        assert response.status_code == 200
        assert response.json() == {"status": "authenticated"}
        header = response.headers["set-cookie"]
        assert header.startswith("session=")
        assert "HttpOnly" in header
        assert "samesite=none" in header.lower()
        assert _rows(database_path, "account") == 1
        assert _rows(database_path, "session") == 1

    def test_returning_session_keeps_cookie(self, client):
        first = client.post("/api/v1/login", json={"authorization_code": "good-code"})
        session_id = first.cookies["session"]

        response = client.post("/api/v1/login")

        assert response.status_code == 200
        assert response.cookies["session"] == session_id

    def test_no_credentials(self, client, database_path):
        response = client.post("/api/v1/login", json={})

        assert response.status_code == 400
        assert "set-cookie" not in response.headers
        assert _rows(database_path, "account") == 0
        assert _rows(database_path, "session") == 0

    def test_no_body(self, client):
        response = client.post("/api/v1/login")

        assert response.status_code == 400

    def test_malformed_cookie(self, client):
        client.cookies.set("session", "not-a-uuid")

        response = client.post("/api/v1/login")

        assert response.status_code == 400
        assert "set-cookie" not in response.headers

    def test_rejected_code(self, client, database_path):
        response = client.post(
            "/api/v1/login", json={"authorization_code": "expired-code"}
        )

        assert response.status_code == 401
        assert response.json() == {"detail": "Login failed"}
        assert "set-cookie" not in response.headers
        assert _rows(database_path, "session") == 0


class TestLogout:
    """Tests for POST /api/v1/logout."""

    def test_logout_without_cookie(self, client):
        response = client.post("/api/v1/logout")

        assert response.status_code == 200
        assert response.json() == {"status": "logged_out"}
        assert "Max-Age=0" in response.headers["set-cookie"]

    def test_logout_unknown_session(self, client):
        client.cookies.set("session", "4f1c1f0e-8f1e-4d7b-9f3a-2b7f0d9c6a11")

        response = client.post("/api/v1/logout")

        assert response.status_code == 200
        assert "Max-Age=0" in response.headers["set-cookie"]

    def test_logout_after_login(self, client, database_path):
        client.post("/api/v1/login", json={"authorization_code": "good-code"})

        response = client.post("/api/v1/logout")

        assert response.status_code == 200
        assert _rows(database_path, "session") == 0
        assert _rows(database_path, "account") == 1


class TestStoreUnavailable:
    def test_login_reports_unavailable(self, settings, tmp_path):
        settings = settings.model_copy(
            update={
                "database_url": f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'x.db'}",
                "database_create_tables": False,
            }
        )
        http = httpx.AsyncClient(transport=httpx.MockTransport(_strava))
        context = AppContext.create(settings, http=http)

        with TestClient(create_app(context=context)) as client:
            response = client.post(
                "/api/v1/login", json={"authorization_code": "good-code"}
            )

        assert response.status_code == 503
        assert "set-cookie" not in response.headers
