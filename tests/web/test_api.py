"""HTTP-level tests for the auth, presence and admin endpoints."""

import pytest
from fastapi.testclient import TestClient

from coursehub.web.openapi import SESSION_COOKIE_NAME
from coursehub.web.server import create_fastapi_app


@pytest.fixture
def fastapi_app(app):
    return create_fastapi_app(app)


@pytest.fixture
def client(fastapi_app):
    with TestClient(fastapi_app) as client:
        yield client


@pytest.fixture
def admin_client(fastapi_app, client):
    """Second cookie jar on the already started app, logged in as admin."""
    admin = TestClient(fastapi_app)
    response = admin.post("/api/login", json={"username": "admin", "password": "admin-pass"})
    assert response.status_code == 200
    return admin


def register(client, username="alice", password="secret123", account_id="S-1001"):
    return client.post("/api/register", json={"username": username, "password": password, "account_id": account_id})


def current_session_status(fastapi_app, cookie_value: str) -> int:
    """Status of /api/session/current for a raw session cookie, from a fresh cookie jar."""
    other = TestClient(fastapi_app)
    response = other.get("/api/session/current", headers={"Cookie": f"{SESSION_COOKIE_NAME}={cookie_value}"})
    return response.status_code


class TestAuthEndpoints:
    """Tests for login, registration and logout over HTTP."""

    def test_register(self, client):
        """Test that registration returns the subject without credentials."""
        response = register(client)
        assert response.status_code == 201
        subject = response.json()["subject"]
        assert subject["username"] == "alice"
        assert subject["role"] == "user"
        assert "password_hash" not in subject

    def test_register_duplicate(self, client):
        """Test that a taken username is a 400 duplicate_identity error."""
        register(client)
        response = register(client, password="anything1", account_id="S-2")
        assert response.status_code == 400
        assert response.json()["type"] == "duplicate_identity"

    def test_register_weak_password(self, client):
        """Test that a password policy violation is a 400 validation error."""
        response = register(client, password="abc")
        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"

    @pytest.mark.parametrize("username", ["", "   "])
    def test_register_blank_username(self, client, username):
        """Test that an empty or whitespace username is a 400 validation error."""
        response = register(client, username=username)
        assert response.status_code == 400
        assert response.json() == {"message": "Username is required", "type": "validation_error"}

    def test_register_missing_field(self, client):
        """Test that a body without account_id is a 400, not a 422."""
        response = client.post("/api/register", json={"username": "alice", "password": "secret123"})
        assert response.status_code == 400
        body = response.json()
        assert body["type"] == "validation_error"
        assert "account_id" in body["message"]

    def test_register_without_body(self, client):
        """Test that a missing JSON body is a 400 validation error."""
        response = client.post("/api/register")
        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"

    def test_login_sets_http_only_cookie(self, client):
        """Test that login stores the session in an HTTP-only cookie living as long as the session."""
        register(client)
        response = client.post("/api/login", json={"username": "alice", "password": "secret123"})
        assert response.status_code == 200
        assert response.json()["subject"]["username"] == "alice"
        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith(f"{SESSION_COOKIE_NAME}=")
        assert "httponly" in set_cookie.lower()
        assert "max-age=86400" in set_cookie.lower()

    def test_login_failures_identical(self, client):
        """Test that unknown user and wrong password produce the same response."""
        register(client)
        unknown = client.post("/api/login", json={"username": "nobody", "password": "x"})
        wrong = client.post("/api/login", json={"username": "alice", "password": "wrong"})
        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json() == wrong.json()

    def test_relogin_revokes_replaced_session(self, fastapi_app, client):
        """Test that logging in again on the same cookie ends the previous session."""
        register(client)
        client.post("/api/login", json={"username": "alice", "password": "secret123"})
        first_cookie = client.cookies.get(SESSION_COOKIE_NAME)
        assert current_session_status(fastapi_app, first_cookie) == 200

        client.post("/api/login", json={"username": "alice", "password": "secret123"})
        second_cookie = client.cookies.get(SESSION_COOKIE_NAME)

        assert second_cookie != first_cookie
        assert current_session_status(fastapi_app, first_cookie) == 401
        assert current_session_status(fastapi_app, second_cookie) == 200

    def test_failed_relogin_keeps_session(self, client):
        """Test that a failed login does not end the session already held."""
        register(client)
        client.post("/api/login", json={"username": "alice", "password": "secret123"})
        assert client.post("/api/login", json={"username": "alice", "password": "wrong"}).status_code == 401
        assert client.get("/api/session/current").status_code == 200

    def test_current_session_lifecycle(self, client):
        """Test that the current session exists only between login and logout."""
        assert client.get("/api/session/current").status_code == 401

        register(client)
        client.post("/api/login", json={"username": "alice", "password": "secret123"})
        response = client.get("/api/session/current")
        assert response.status_code == 200
        assert response.json()["subject"]["account_id"] == "S-1001"

        assert client.post("/api/logout").status_code == 200
        assert client.get("/api/session/current").status_code == 401

    def test_logout_without_session(self, client):
        """Test that logout always succeeds."""
        assert client.post("/api/logout").status_code == 200

    def test_forged_cookie_rejected(self, fastapi_app):
        """Test that an unsigned cookie value is not accepted."""
        assert current_session_status(fastapi_app, "not-a-signed-value") == 401


class TestPresenceEndpoints:
    """Tests for heartbeat and the active user list over HTTP."""

    @pytest.fixture(autouse=True)
    def login(self, client):
        register(client)
        client.post("/api/login", json={"username": "alice", "password": "secret123"})

    def test_heartbeat(self, client):
        """Test that a heartbeat returns the updated entry."""
        response = client.post("/api/presence/heartbeat", json={"location": "/dashboard"})
        assert response.status_code == 200
        assert response.json()["entry"]["current_location"] == "/dashboard"

    def test_heartbeat_without_body_keeps_location(self, client):
        """Test that a heartbeat without a location keeps the last one."""
        client.post("/api/presence/heartbeat", json={"location": "/grades"})
        response = client.post("/api/presence/heartbeat")
        assert response.status_code == 200
        assert response.json()["entry"]["current_location"] == "/grades"

    def test_heartbeat_requires_session(self, client):
        """Test that heartbeats without a session are rejected."""
        client.post("/api/logout")
        assert client.post("/api/presence/heartbeat", json={}).status_code == 401

    def test_active_is_admin_only(self, client):
        """Test that regular users cannot list active users."""
        response = client.get("/api/presence/active")
        assert response.status_code == 403
        assert response.json()["type"] == "access_denied"

    def test_admin_sees_active_users(self, client, admin_client):
        """Test that admins see every user with a recent heartbeat."""
        client.post("/api/presence/heartbeat", json={"location": "/dashboard"})

        response = admin_client.get("/api/presence/active", params={"thresholdMs": 900000})
        assert response.status_code == 200
        entries = sorted(response.json(), key=lambda e: e["user"]["username"])
        assert [e["user"]["username"] for e in entries] == ["admin", "alice"]
        assert entries[1]["current_location"] == "/dashboard"

    def test_huge_threshold_returns_everyone(self, admin_client):
        """Test that a window reaching past the earliest date includes every entry."""
        response = admin_client.get("/api/presence/active", params={"thresholdMs": 100_000_000_000_000})
        assert response.status_code == 200
        assert sorted(e["user"]["username"] for e in response.json()) == ["admin", "alice"]

    def test_negative_threshold_rejected(self, admin_client):
        """Test that a negative threshold is a 400 validation error."""
        response = admin_client.get("/api/presence/active", params={"thresholdMs": -1})
        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"


class TestPageVisitEndpoints:
    """Tests for page visit recording and statistics over HTTP."""

    @pytest.fixture(autouse=True)
    def login(self, client):
        register(client)
        client.post("/api/login", json={"username": "alice", "password": "secret123"})

    def test_record_and_rank(self, client, admin_client):
        """Test that recorded visits show up for the user and in admin stats."""
        for page in ["/materials", "/materials", "/awards"]:
            assert client.post("/api/page-visits", json={"page": page}).status_code == 201

        mine = client.get("/api/page-visits/me").json()
        assert [v["page"] for v in mine] == ["/materials", "/materials", "/awards"]

        assert client.get("/api/page-visits/stats").status_code == 403
        stats = admin_client.get("/api/page-visits/stats", params={"limit": 1}).json()
        assert stats == [{"page": "/materials", "count": 2}]

    @pytest.mark.parametrize("body", [{"page": ""}, {"page": "  "}, {}])
    def test_page_required(self, client, body):
        """Test that an empty or missing page is a 400 validation error."""
        response = client.post("/api/page-visits", json=body)
        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"


class TestAdminEndpoints:
    """Tests for admin-only user listing and the profile endpoint."""

    def test_list_users(self, client, admin_client):
        """Test that only admins can list users."""
        register(client)
        assert client.get("/api/users").status_code == 401

        response = admin_client.get("/api/users")
        assert response.status_code == 200
        assert sorted(u["username"] for u in response.json()) == ["admin", "alice"]

    def test_user_deletion_not_exposed(self, admin_client):
        """Test that accounts cannot be deleted over HTTP."""
        assert admin_client.delete("/api/users/admin").status_code == 404
        assert [u["username"] for u in admin_client.get("/api/users").json()] == ["admin"]

    def test_change_password(self, client):
        """Test that the new password works after a change."""
        register(client)
        client.post("/api/login", json={"username": "alice", "password": "secret123"})
        response = client.post(
            "/api/profile/change-password", json={"old_password": "secret123", "new_password": "newsecret1"}
        )
        assert response.status_code == 204
        assert client.post("/api/login", json={"username": "alice", "password": "newsecret1"}).status_code == 200


def test_health(client):
    """Test that the health check needs no session."""
    assert client.get("/health").json() == {"status": "healthy"}
