"""End-to-end tests for the login session endpoints."""

from collections.abc import Callable, Iterator
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from sessionmanager.app import App
from sessionmanager.web.server import create_fastapi_app

TIMED_OUT = {"errors": "Request timed out, please try again"}
NOT_FOUND = {"errors": "Something went wrong."}
DENIED = {"errors": "You do not have permission to delete this record."}


@pytest.fixture
def fastapi_app(config) -> Iterator[FastAPI]:
    fastapi_app = create_fastapi_app(App(config), config)
    # Runs the lifespan: starts services and creates the admin user
    with TestClient(fastapi_app):
        yield fastapi_app


@pytest.fixture
def browser(fastapi_app) -> Callable[..., TestClient]:
    """Factory for clients with their own cookie jar, like separate browsers."""

    def _browser(user_agent: str = "testclient") -> TestClient:
        return TestClient(fastapi_app, headers={"user-agent": user_agent})

    return _browser


def login(client: TestClient, username: str, password: str, remember_me: bool = False) -> str:
    response = client.post("/api/v1/auth/login", json={"username": username, "password": password, "remember_me": remember_me})
    assert response.status_code == 200, response.text
    return response.json()["security_id"]


def list_sessions(client: TestClient) -> list[dict]:
    response = client.get("/admin/loginsession")
    assert response.status_code == 200, response.text
    return response.json()


def current_session_id(client: TestClient) -> str:
    return next(s["id"] for s in list_sessions(client) if s["is_current"])


def remove(client: TestClient, login_session_id: str, security_id: str | None):
    headers = {"X-SecurityID": security_id} if security_id is not None else {}
    return client.delete(f"/admin/loginsession/remove/{login_session_id}", headers=headers)


@pytest.fixture
def users(browser):
    """Creates alice and bob through the admin user."""
    admin = browser()
    security_id = login(admin, "admin", "admin-pass")
    for username in ("alice", "bob"):
        response = admin.post(
            "/api/v1/users",
            json={"username": username, "password": f"{username}-pass"},
            headers={"X-SecurityID": security_id},
        )
        assert response.status_code == 201, response.text
    return admin, security_id


class TestRemoveLoginSession:
    def test_owner_removes_own_session(self, users, browser):
        laptop, phone = browser("laptop"), browser("phone")
        security_id = login(laptop, "alice", "alice-pass")
        login(phone, "alice", "alice-pass")
        phone_session_id = current_session_id(phone)

        response = remove(laptop, phone_session_id, security_id)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        assert response.json() == {"success": True}
        assert phone_session_id not in [s["id"] for s in list_sessions(laptop)]
        # The revoked browser is logged out
        assert phone.get("/api/v1/profile").status_code == 401

    def test_other_user_cannot_remove_session(self, users, browser):
        alice, bob = browser(), browser()
        login(alice, "alice", "alice-pass")
        alice_session_id = current_session_id(alice)
        bob_security_id = login(bob, "bob", "bob-pass")

        response = remove(bob, alice_session_id, bob_security_id)

        assert response.status_code == 400
        assert response.json() == DENIED
        assert alice_session_id in [s["id"] for s in list_sessions(alice)]

    def test_security_admin_removes_any_session(self, users, browser):
        admin, admin_security_id = users
        alice = browser()
        login(alice, "alice", "alice-pass")
        alice_session_id = current_session_id(alice)

        response = remove(admin, alice_session_id, admin_security_id)

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert alice.get("/admin/loginsession").status_code == 401

    @pytest.mark.parametrize("security_id", [None, "", "stale-token"])
    def test_stale_or_missing_token(self, users, browser, security_id):
        alice = browser()
        login(alice, "alice", "alice-pass")
        alice_session_id = current_session_id(alice)

        response = remove(alice, alice_session_id, security_id)

        assert response.status_code == 400
        assert response.json() == TIMED_OUT
        assert alice_session_id in [s["id"] for s in list_sessions(alice)]

    def test_token_is_checked_before_existence(self, users, browser):
        alice = browser()
        login(alice, "alice", "alice-pass")

        response = remove(alice, str(uuid4()), "stale-token")

        assert response.json() == TIMED_OUT

    def test_token_from_query_parameter(self, users, browser):
        alice = browser()
        security_id = login(alice, "alice", "alice-pass")
        alice_session_id = current_session_id(alice)

        response = alice.delete(f"/admin/loginsession/remove/{alice_session_id}", params={"SecurityID": security_id})

        assert response.json() == {"success": True}

    @pytest.mark.parametrize("login_session_id", ["not-a-uuid", "00000000-0000-0000-0000-000000000000"])
    def test_unknown_session(self, users, browser, login_session_id):
        alice = browser()
        security_id = login(alice, "alice", "alice-pass")

        response = remove(alice, login_session_id, security_id)

        assert response.status_code == 400
        assert response.json() == NOT_FOUND

    def test_removing_twice(self, users, browser):
        laptop, phone = browser("laptop"), browser("phone")
        security_id = login(laptop, "alice", "alice-pass")
        login(phone, "alice", "alice-pass")
        phone_session_id = current_session_id(phone)

        assert remove(laptop, phone_session_id, security_id).json() == {"success": True}
        assert remove(laptop, phone_session_id, security_id).json() == NOT_FOUND

    def test_anonymous_caller_is_denied(self, users, browser):
        alice, anonymous = browser(), browser()
        login(alice, "alice", "alice-pass")
        alice_session_id = current_session_id(alice)
        security_id = anonymous.get("/api/v1/auth/security-id").json()["security_id"]

        response = remove(anonymous, alice_session_id, security_id)

        assert response.status_code == 400
        assert response.json() == DENIED


class TestListLoginSessions:
    def test_lists_active_sessions_with_current_flag(self, users, browser):
        firefox = browser("Mozilla/5.0 (X11; Ubuntu; Linux x86_64; rv:120.0) Gecko/20100101 Firefox/120.0")
        other = browser("other")
        login(other, "alice", "alice-pass")
        login(firefox, "alice", "alice-pass")

        sessions = list_sessions(firefox)

        assert len(sessions) == 2
        # Most recently used first
        assert sessions[0]["is_current"] is True
        assert sessions[0]["friendly_user_agent"].startswith("Firefox on Ubuntu")
        assert sessions[0]["ip_address"] == "testclient"
        assert sessions[1]["is_current"] is False

    def test_remembered_login_reuses_session(self, users, browser):
        first, second = browser(), browser()
        login(first, "alice", "alice-pass", remember_me=True)
        login(second, "alice", "alice-pass", remember_me=True)

        sessions = list_sessions(second)

        assert len(sessions) == 1
        assert sessions[0]["persistent"] is True

    def test_requires_login(self, fastapi_app, browser):
        response = browser().get("/admin/loginsession")
        assert response.status_code == 401
        assert response.json()["type"] == "authentication_error"

    def test_security_admin_lists_member_sessions(self, users, browser):
        admin, _ = users
        alice = browser()
        login(alice, "alice", "alice-pass")

        response = admin.get("/admin/loginsession/member/alice")

        assert response.status_code == 200
        assert [s["id"] for s in response.json()] == [current_session_id(alice)]

    def test_member_sessions_filtered_by_ip(self, users, browser):
        admin, _ = users
        login(browser(), "alice", "alice-pass")

        assert len(admin.get("/admin/loginsession/member/alice", params={"ip_address": "testclient"}).json()) == 1
        assert admin.get("/admin/loginsession/member/alice", params={"ip_address": "10.1.1.1"}).json() == []

    def test_other_member_sessions_are_hidden(self, users, browser):
        alice, bob = browser(), browser()
        login(alice, "alice", "alice-pass")
        login(bob, "bob", "bob-pass")

        assert bob.get("/admin/loginsession/member/alice").json() == []


class TestUserLifecycle:
    def test_logout_removes_session(self, users, browser):
        laptop, phone = browser("laptop"), browser("phone")
        login(laptop, "alice", "alice-pass")
        phone_security_id = login(phone, "alice", "alice-pass")

        assert phone.post("/api/v1/auth/logout", headers={"X-SecurityID": phone_security_id}).status_code == 204

        assert len(list_sessions(laptop)) == 1
        assert phone.get("/api/v1/profile").status_code == 401

    def test_logout_requires_security_token(self, users, browser):
        alice = browser()
        login(alice, "alice", "alice-pass")

        response = alice.post("/api/v1/auth/logout")

        assert response.status_code == 400
        assert response.json()["type"] == "security_token_error"
        assert alice.get("/api/v1/profile").status_code == 200

    def test_deleting_user_logs_them_out(self, users, browser):
        admin, security_id = users
        alice = browser()
        login(alice, "alice", "alice-pass")

        response = admin.delete("/api/v1/users/alice", headers={"X-SecurityID": security_id})

        assert response.status_code == 204
        assert alice.get("/api/v1/profile").status_code == 401

    def test_user_management_requires_security_admin(self, users, browser):
        bob = browser()
        security_id = login(bob, "bob", "bob-pass")

        response = bob.post(
            "/api/v1/users", json={"username": "mallory", "password": "pass"}, headers={"X-SecurityID": security_id}
        )

        assert response.status_code == 403

    def test_wrong_password(self, fastapi_app, browser):
        response = browser().post("/api/v1/auth/login", json={"username": "admin", "password": "nope"})
        assert response.status_code == 401

    def test_long_password_login_is_unauthorized(self, fastapi_app, browser):
        response = browser().post("/api/v1/auth/login", json={"username": "admin", "password": "x" * 100})
        assert response.status_code == 401
        assert response.json()["type"] == "authentication_error"

    def test_create_user_with_long_password(self, users):
        admin, security_id = users

        response = admin.post(
            "/api/v1/users", json={"username": "dave", "password": "x" * 100}, headers={"X-SecurityID": security_id}
        )

        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"


class TestSessionCookie:
    def login_cookie(self, config) -> str:
        fastapi_app = create_fastapi_app(App(config), config)
        with TestClient(fastapi_app) as client:
            response = client.post("/api/v1/auth/login", json={"username": "admin", "password": "admin-pass"})
        assert response.status_code == 200, response.text
        return response.headers["set-cookie"]

    def test_max_age_follows_session_timeout(self, config):
        cookie = self.login_cookie(config.model_copy(update={"session_timeout": 600}))
        assert "Max-Age=600;" in cookie

    def test_default_max_age(self, config):
        assert "Max-Age=1209600;" in self.login_cookie(config)
