"""
End-to-end tests for the account lifecycle over HTTP.

Runs the real application (lifespan included) against the in-memory
store, so the whole stack is exercised without a database.
"""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from accountguard.api.main import create_app
from accountguard.config.settings import Settings
from accountguard.security.bearer import BearerTokenIssuer

JANE = {"name": "Jane", "email": "jane@x.com", "password": "Secret123"}


def make_settings(**overrides: object) -> Settings:
    values = dict(
        storage_backend="memory",
        bcrypt_cost=4,
        rate_limit_enabled=False,
        jwt_secret="flow-test-signing-secret-with-32-bytes+",
        _env_file=None,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def client() -> Iterator[TestClient]:
    with TestClient(create_app(make_settings())) as test_client:
        yield test_client


def pending_token(client: TestClient, email: str, field: str = "verification_token") -> str:
    account = client.app.state.repository.get_by_email(email)
    return getattr(account, field)


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class TestHealth:
    """Tests for /health."""

    def test_health_with_memory_store(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestRegistrationFlow:
    """Register, verify, log in, read profile, log out."""

    def test_full_flow(self, client: TestClient) -> None:
        registered = client.post("/auth/register", json=JANE)
        assert registered.status_code == 201
        assert registered.json()["requiresVerification"] is True

        blocked = client.post("/auth/login", json={"email": "jane@x.com", "password": "Secret123"})
        assert blocked.status_code == 403
        assert blocked.json()["code"] == "EmailNotVerified"

        token = pending_token(client, "jane@x.com")
        assert client.post("/auth/verify-email", json={"token": token}).status_code == 200
        # Repeating the same link still succeeds
        assert client.post("/auth/verify-email", json={"token": token}).status_code == 200

        login = client.post("/auth/login", json={"email": "JANE@x.com", "password": "Secret123"})
        assert login.status_code == 200
        body = login.json()
        assert body["tokenType"] == "bearer"
        assert body["expiresIn"] == 86400
        assert body["user"]["isVerified"] is True

        me = client.get("/auth/me", headers=bearer(body["token"]))
        assert me.status_code == 200
        assert me.json()["email"] == "jane@x.com"
        assert me.json()["name"] == "Jane"

        logout = client.post("/auth/logout", headers=bearer(body["token"]))
        assert logout.status_code == 200

    def test_duplicate_registration(self, client: TestClient) -> None:
        client.post("/auth/register", json=JANE)

        response = client.post("/auth/register", json={**JANE, "email": "Jane@X.com"})

        assert response.status_code == 400
        assert response.json()["code"] == "DuplicateEmail"

    def test_resend_invalidates_previous_link(self, client: TestClient) -> None:
        client.post("/auth/register", json=JANE)
        first = pending_token(client, "jane@x.com")

        client.post("/auth/resend-verification", json={"email": "jane@x.com"})

        response = client.post("/auth/verify-email", json={"token": first})
        assert response.status_code == 400
        assert response.json()["code"] == "InvalidToken"
        second = pending_token(client, "jane@x.com")
        assert client.post("/auth/verify-email", json={"token": second}).status_code == 200


class TestLockoutFlow:
    """Repeated failures lock the account; a reset unlocks it."""

    def test_lockout_then_reset(self, client: TestClient) -> None:
        client.post("/auth/register", json=JANE)
        client.post("/auth/verify-email", json={"token": pending_token(client, "jane@x.com")})

        for _ in range(5):
            failed = client.post("/auth/login", json={"email": "jane@x.com", "password": "Wrong1234"})
            assert failed.status_code == 401

        locked = client.post("/auth/login", json={"email": "jane@x.com", "password": "Secret123"})
        assert locked.status_code == 423
        assert locked.json()["retryAfterMinutes"] == 30
        assert locked.headers["Retry-After"] == "1800"

        forgot = client.post("/auth/forgot-password", json={"email": "jane@x.com"})
        assert forgot.status_code == 200
        reset_token = pending_token(client, "jane@x.com", "reset_token")

        reset = client.post(
            "/auth/reset-password", json={"token": reset_token, "newPassword": "Brandnew42"}
        )
        assert reset.status_code == 200

        old = client.post("/auth/login", json={"email": "jane@x.com", "password": "Secret123"})
        assert old.status_code == 401
        new = client.post("/auth/login", json={"email": "jane@x.com", "password": "Brandnew42"})
        assert new.status_code == 200

        reused = client.post(
            "/auth/reset-password", json={"token": reset_token, "newPassword": "Another42"}
        )
        assert reused.status_code == 400
        assert reused.json()["code"] == "InvalidToken"


class TestAntiEnumeration:
    """Responses never reveal whether an email is registered."""

    def test_forgot_password_bodies_match(self, client: TestClient) -> None:
        client.post("/auth/register", json=JANE)

        known = client.post("/auth/forgot-password", json={"email": "jane@x.com"})
        unknown = client.post("/auth/forgot-password", json={"email": "nobody@x.com"})

        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()

    def test_login_failures_match(self, client: TestClient) -> None:
        client.post("/auth/register", json=JANE)
        client.post("/auth/verify-email", json={"token": pending_token(client, "jane@x.com")})

        wrong = client.post("/auth/login", json={"email": "jane@x.com", "password": "Wrong1234"})
        unknown = client.post("/auth/login", json={"email": "nobody@x.com", "password": "Wrong1234"})

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json()


class TestChangePasswordFlow:
    """Change password with a bearer token."""

    def test_change_password(self, client: TestClient) -> None:
        client.post("/auth/register", json=JANE)
        client.post("/auth/verify-email", json={"token": pending_token(client, "jane@x.com")})
        token = client.post(
            "/auth/login", json={"email": "jane@x.com", "password": "Secret123"}
        ).json()["token"]

        same = client.post(
            "/auth/change-password",
            headers=bearer(token),
            json={"currentPassword": "Secret123", "newPassword": "Secret123"},
        )
        assert same.status_code == 400
        assert same.json()["code"] == "ValidationFailed"

        changed = client.post(
            "/auth/change-password",
            headers=bearer(token),
            json={"currentPassword": "Secret123", "newPassword": "Brandnew42"},
        )
        assert changed.status_code == 200

        # The bearer token stays valid until it expires
        assert client.get("/auth/me", headers=bearer(token)).status_code == 200
        assert (
            client.post(
                "/auth/login", json={"email": "jane@x.com", "password": "Brandnew42"}
            ).status_code
            == 200
        )

    def test_token_from_other_secret_rejected(self, client: TestClient) -> None:
        forged = BearerTokenIssuer("some-other-secret-with-at-least-32-bytes").issue(
            "acc-1", "jane@x.com"
        )
        response = client.get("/auth/me", headers=bearer(forged.token))
        assert response.status_code == 401


class TestVerificationOptional:
    """With verification not required, unverified accounts can log in."""

    def test_login_without_verifying(self) -> None:
        app = create_app(make_settings(require_email_verification=False))
        with TestClient(app) as client:
            registered = client.post("/auth/register", json=JANE)
            assert registered.json()["message"] == "Registration successful"

            login = client.post("/auth/login", json={"email": "jane@x.com", "password": "Secret123"})

            assert login.status_code == 200
            assert login.json()["user"]["isVerified"] is False
