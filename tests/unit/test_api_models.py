"""
Unit tests for API request/response models.

Tests Pydantic model validation and the camelCase wire format.
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from accountguard.api.models import (
    ChangePasswordRequest,
    EmailRequest,
    LoginResponse,
    LoginUser,
    ProfileResponse,
    RegisterRequest,
    ResetPasswordRequest,
    VerifyEmailRequest,
)
from accountguard.domain.account import Account

TOKEN = "ab" * 32


class TestRegisterRequest:
    """Tests for RegisterRequest model."""

    def test_valid_register_request(self) -> None:
        request = RegisterRequest(name="Jane Doe", email="jane@x.com", password="Secret123")
        assert request.name == "Jane Doe"
        assert request.email == "jane@x.com"

    def test_name_is_stripped(self) -> None:
        request = RegisterRequest(name="  Jane ", email="jane@x.com", password="Secret123")
        assert request.name == "Jane"

    @pytest.mark.parametrize("name", ["J", "   J  ", "Jane2", "Jane-Doe", "", "x" * 256])
    def test_invalid_names_rejected(self, name: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            RegisterRequest(name=name, email="jane@x.com", password="Secret123")
        assert "name" in str(exc_info.value)

    def test_invalid_email_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            RegisterRequest(name="Jane", email="not-an-email", password="Secret123")
        assert "email" in str(exc_info.value)

    @pytest.mark.parametrize(
        ("password", "message"),
        [
            ("Ab1", "at least 6 characters"),
            ("abcdefgh", "at least one number"),
            ("12345678", "at least one letter"),
            ("a1" * 37, "at most 72 bytes"),
        ],
    )
    def test_weak_passwords_rejected(self, password: str, message: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            RegisterRequest(name="Jane", email="jane@x.com", password=password)
        assert message in str(exc_info.value)

    def test_missing_field_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(name="Jane", email="jane@x.com")


class TestTokenRequests:
    """Tests for token-bearing request models."""

    def test_valid_verify_request(self) -> None:
        assert VerifyEmailRequest(token=TOKEN).token == TOKEN

    @pytest.mark.parametrize("token", ["", "abc", "AB" * 32, "zz" * 32, "ab" * 33])
    def test_malformed_tokens_rejected(self, token: str) -> None:
        with pytest.raises(ValidationError):
            VerifyEmailRequest(token=token)

    def test_reset_request_reads_camel_case(self) -> None:
        request = ResetPasswordRequest.model_validate({"token": TOKEN, "newPassword": "Brandnew42"})
        assert request.new_password == "Brandnew42"

    def test_reset_request_checks_strength(self) -> None:
        with pytest.raises(ValidationError):
            ResetPasswordRequest.model_validate({"token": TOKEN, "newPassword": "nodigits"})


class TestChangePasswordRequest:
    """Tests for ChangePasswordRequest model."""

    def test_valid_request(self) -> None:
        request = ChangePasswordRequest.model_validate(
            {"currentPassword": "Secret123", "newPassword": "Brandnew42"}
        )
        assert request.current_password == "Secret123"

    def test_same_password_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            ChangePasswordRequest.model_validate(
                {"currentPassword": "Secret123", "newPassword": "Secret123"}
            )
        assert "cannot be the same" in str(exc_info.value)

    def test_empty_current_password_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ChangePasswordRequest.model_validate({"currentPassword": "", "newPassword": "Brandnew42"})


class TestEmailRequest:
    """Tests for EmailRequest model."""

    def test_overlong_email_rejected(self) -> None:
        with pytest.raises(ValidationError):
            EmailRequest(email=("a" * 60 + ".") * 4 + "@x.com")


class TestResponses:
    """Tests for response serialization."""

    @pytest.fixture
    def account(self) -> Account:
        now = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)
        return Account(
            id="acc-1",
            name="Jane",
            email="jane@x.com",
            password_hash="$2b$04$hash",
            is_verified=True,
            verification_token=None,
            verification_token_expires_at=None,
            verified_token_hash=None,
            reset_token=None,
            reset_token_expires_at=None,
            login_attempts=0,
            lockout_until=None,
            created_at=now,
            updated_at=now,
        )

    def test_login_response_is_camel_case(self, account: Account) -> None:
        response = LoginResponse(token="jwt", expires_in=86400, user=LoginUser.from_domain(account))

        assert response.model_dump(by_alias=True) == {
            "message": "Login successful",
            "token": "jwt",
            "tokenType": "bearer",
            "expiresIn": 86400,
            "user": {"id": "acc-1", "name": "Jane", "email": "jane@x.com", "isVerified": True},
        }

    def test_profile_never_exposes_secrets(self, account: Account) -> None:
        dumped = ProfileResponse.from_domain(account).model_dump(by_alias=True)

        assert set(dumped) == {"id", "name", "email", "isVerified", "createdAt", "updatedAt"}
