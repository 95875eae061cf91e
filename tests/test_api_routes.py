"""
tests/test_api_routes.py -- Integration tests for the auth API routes.

These tests exercise the full stack: FastAPI routing -> dependency injection ->
AuthService -> AccountStore -> response model serialization -> error envelope.

Coverage:
  - Register: 201 shape, no hash in body, validation errors, duplicate conflicts
  - Login: 200 shape, identical error for wrong password and unknown email
  - Check: header missing, token missing, invalid, valid
  - Session: protected route returns verified claims
  - End-to-end alice scenario
  - Error mapping: unknown conflict column -> 409, store exception -> opaque 500

Fixtures used (from conftest.py):
  - api_client: TestClient with an isolated in-memory store (module-scoped,
    so each test uses its own usernames/emails).
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from auth.models import Conflict
from auth.tokens import TokenSigner


def _register(client: TestClient, username: str, email: str, password: str = "secret1"):
    return client.post(
        "/api/v1/auth/register",
        json={"username": username, "email": email, "password": password},
    )


def _error_code(resp) -> str:
    return resp.json()["error"]["code"]


class TestRegisterRoute:
    def test_register_created(self, api_client: TestClient) -> None:
        """POST /register returns 201 with registeredUser {username, email, token}."""
        resp = _register(api_client, "reg_ok", "reg_ok@example.com")
        assert resp.status_code == 201, resp.text
        user = resp.json()["registeredUser"]
        assert set(user) == {"username", "email", "token"}
        assert user["username"] == "reg_ok"
        assert user["email"] == "reg_ok@example.com"
        assert resp.headers["cache-control"] == "no-store"

    def test_register_body_has_no_hash(self, api_client: TestClient) -> None:
        resp = _register(api_client, "reg_nohash", "reg_nohash@example.com")
        assert resp.status_code == 201
        assert "hashed_password" not in resp.text
        assert "$2b$" not in resp.text

    def test_register_missing_fields(self, api_client: TestClient) -> None:
        resp = api_client.post("/api/v1/auth/register", json={"username": "x", "email": "x@example.com"})
        assert resp.status_code == 400
        assert _error_code(resp) == "MissingFields"

    def test_register_empty_body(self, api_client: TestClient) -> None:
        resp = api_client.post("/api/v1/auth/register")
        assert resp.status_code == 400
        assert _error_code(resp) == "MissingFields"

    def test_register_short_password(self, api_client: TestClient) -> None:
        resp = _register(api_client, "reg_short", "reg_short@example.com", password="12345")
        assert resp.status_code == 400
        assert _error_code(resp) == "PasswordTooShort"

    def test_register_six_character_password(self, api_client: TestClient) -> None:
        resp = _register(api_client, "reg_six", "reg_six@example.com", password="123456")
        assert resp.status_code == 201

    def test_register_invalid_email(self, api_client: TestClient) -> None:
        resp = _register(api_client, "reg_bad_email", "not an email")
        assert resp.status_code == 400
        assert _error_code(resp) == "InvalidEmailFormat"

    def test_register_duplicate_username(self, api_client: TestClient) -> None:
        assert _register(api_client, "reg_dupe_user", "reg_dupe_user@example.com").status_code == 201
        resp = _register(api_client, "reg_dupe_user", "reg_dupe_user2@example.com")
        assert resp.status_code == 409
        assert _error_code(resp) == "UsernameInUse"

    def test_register_duplicate_email(self, api_client: TestClient) -> None:
        assert _register(api_client, "reg_dupe_mail", "reg_dupe_mail@example.com").status_code == 201
        resp = _register(api_client, "reg_dupe_mail2", "reg_dupe_mail@example.com", password="different1")
        assert resp.status_code == 409
        assert _error_code(resp) == "EmailInUse"
        # The first account still logs in with its original password.
        login = api_client.post(
            "/api/v1/auth/login",
            json={"email": "reg_dupe_mail@example.com", "password": "secret1"},
        )
        assert login.status_code == 200
        assert login.json()["loggedUser"]["username"] == "reg_dupe_mail"

    def test_register_wrong_type_is_validation_error(self, api_client: TestClient) -> None:
        resp = api_client.post(
            "/api/v1/auth/register",
            json={"username": ["x"], "email": "x@example.com", "password": "secret1"},
        )
        assert resp.status_code == 422
        assert _error_code(resp) == "validation_error"


class TestLoginRoute:
    def test_login_ok(self, api_client: TestClient) -> None:
        _register(api_client, "login_ok", "login_ok@example.com")
        resp = api_client.post("/api/v1/auth/login", json={"email": "login_ok@example.com", "password": "secret1"})
        assert resp.status_code == 200, resp.text
        user = resp.json()["loggedUser"]
        assert set(user) == {"username", "email", "token"}
        assert user["username"] == "login_ok"
        assert resp.headers["cache-control"] == "no-store"

    def test_login_missing_fields(self, api_client: TestClient) -> None:
        resp = api_client.post("/api/v1/auth/login", json={"email": "login_ok@example.com"})
        assert resp.status_code == 400
        assert _error_code(resp) == "MissingFields"

    def test_login_wrong_password_matches_unknown_email(self, api_client: TestClient) -> None:
        """Enumeration resistance: identical status and identical body."""
        _register(api_client, "login_enum", "login_enum@example.com")
        wrong = api_client.post("/api/v1/auth/login", json={"email": "login_enum@example.com", "password": "wrong"})
        unknown = api_client.post("/api/v1/auth/login", json={"email": "ghost@example.com", "password": "wrong"})
        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json()
        assert _error_code(wrong) == "InvalidEmailOrPassword"


class TestCheckRoute:
    def test_missing_header(self, api_client: TestClient) -> None:
        resp = api_client.get("/api/v1/auth/check")
        assert resp.status_code == 401
        assert _error_code(resp) == "MissingAuthHeader"

    def test_missing_token(self, api_client: TestClient) -> None:
        resp = api_client.get("/api/v1/auth/check", headers={"Authorization": "Bearer"})
        assert resp.status_code == 401
        assert _error_code(resp) == "MissingToken"

    def test_invalid_token(self, api_client: TestClient) -> None:
        resp = api_client.get("/api/v1/auth/check", headers={"Authorization": "Bearer garbage"})
        assert resp.status_code == 401
        assert _error_code(resp) == "InvalidOrExpiredToken"

    def test_expired_token(self, api_client: TestClient) -> None:
        service = api_client.app.state.auth_service
        stale = service.signer.issue("check_exp@example.com", now=datetime.now(timezone.utc) - timedelta(days=8))
        resp = api_client.get("/api/v1/auth/check", headers={"Authorization": f"Bearer {stale}"})
        assert resp.status_code == 401
        assert _error_code(resp) == "InvalidOrExpiredToken"

    def test_token_signed_with_other_key(self, api_client: TestClient) -> None:
        forged = TokenSigner("an-attacker-controlled-key-of-enough-length", 3600).issue("x@example.com")
        resp = api_client.get("/api/v1/auth/check", headers={"Authorization": f"Bearer {forged}"})
        assert resp.status_code == 401
        assert _error_code(resp) == "InvalidOrExpiredToken"

    def test_valid_token(self, api_client: TestClient) -> None:
        token = _register(api_client, "check_ok", "check_ok@example.com").json()["registeredUser"]["token"]
        resp = api_client.get("/api/v1/auth/check", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        assert resp.json() == {"ok": True}


class TestSessionRoute:
    def test_session_requires_token(self, api_client: TestClient) -> None:
        resp = api_client.get("/api/v1/auth/session")
        assert resp.status_code == 401
        assert _error_code(resp) == "MissingAuthHeader"

    def test_session_returns_claims(self, api_client: TestClient) -> None:
        token = _register(api_client, "session_ok", "session_ok@example.com").json()["registeredUser"]["token"]
        resp = api_client.get("/api/v1/auth/session", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["email"] == "session_ok@example.com"
        assert data["expires_at"]


class TestAliceScenario:
    def test_register_login_verify(self, api_client: TestClient) -> None:
        """Register alice, fail a login two ways identically, then verify the registration token."""
        reg = api_client.post(
            "/api/v1/auth/register",
            json={"username": "alice", "email": "alice@example.com", "password": "secret1"},
        )
        assert reg.status_code == 201
        body = reg.json()["registeredUser"]
        assert body["token"]
        assert "hashed_password" not in body

        wrong = api_client.post("/api/v1/auth/login", json={"email": "alice@example.com", "password": "wrong"})
        nobody = api_client.post("/api/v1/auth/login", json={"email": "nobody@example.com", "password": "wrong"})
        assert wrong.status_code == nobody.status_code
        assert wrong.json() == nobody.json()

        check = api_client.get("/api/v1/auth/check", headers={"Authorization": f"Bearer {body['token']}"})
        assert check.status_code == 200
        assert check.json() == {"ok": True}


class TestErrorMapping:
    """Store outcomes forced through the full HTTP stack."""

    def test_unrecognized_conflict_is_409_conflict_in_use(self, api_client: TestClient, monkeypatch) -> None:
        """A uniqueness violation on an unknown column still yields 409 with ConflictInUse."""
        store = api_client.app.state.auth_service.store
        monkeypatch.setattr(store, "create_account", lambda account: Conflict(field="phone"))
        resp = _register(api_client, "map_conflict", "map_conflict@example.com")
        assert resp.status_code == 409
        assert _error_code(resp) == "ConflictInUse"

    def test_store_exception_is_500_without_details(self, api_client: TestClient, monkeypatch) -> None:
        """An unexpected store exception becomes 500 InternalError and leaks nothing."""

        def broken_lookup(email: str):
            raise RuntimeError("connection refused: db-internal-detail")

        store = api_client.app.state.auth_service.store
        monkeypatch.setattr(store, "get_by_email", broken_lookup)
        # app.state is already wired by api_client; no lifespan needed here.
        client = TestClient(api_client.app, base_url="http://localhost", raise_server_exceptions=False)
        resp = client.post("/api/v1/auth/login", json={"email": "map_500@example.com", "password": "secret1"})
        assert resp.status_code == 500
        assert _error_code(resp) == "InternalError"
        assert "db-internal-detail" not in resp.text
        assert "RuntimeError" not in resp.text
