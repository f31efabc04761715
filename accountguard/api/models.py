"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Field names are snake_case in Python and camelCase on the wire.
"""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from accountguard.domain.account import Account

NAME_PATTERN = re.compile(r"^[A-Za-z\s]+$")
TOKEN_PATTERN = r"^[0-9a-f]{64}$"

# bcrypt only looks at the first 72 bytes of a password.
MAX_PASSWORD_BYTES = 72
MAX_EMAIL_LENGTH = 255


def _check_password_strength(value: str) -> str:
    if not re.search(r"\d", value):
        raise ValueError("Password must contain at least one number")
    if not re.search(r"[A-Za-z]", value):
        raise ValueError("Password must contain at least one letter")
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


def _check_email_length(value: str) -> str:
    if len(value) > MAX_EMAIL_LENGTH:
        raise ValueError(f"Email must be less than {MAX_EMAIL_LENGTH} characters")
    return value


class CamelModel(BaseModel):
    """Base model using camelCase aliases on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(CamelModel):
    """Request model for account registration."""

    name: str = Field(..., min_length=2, max_length=255, description="Display name (letters and spaces)")
    email: EmailStr
    password: str = Field(..., min_length=6, description="Password (min 6 chars, a letter and a number)")

    @field_validator("name")
    @classmethod
    def name_is_letters(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise ValueError("Name must be between 2 and 255 characters")
        if not NAME_PATTERN.match(value):
            raise ValueError("Name can only contain letters and spaces")
        return value

    @field_validator("email")
    @classmethod
    def email_length(cls, value: str) -> str:
        return _check_email_length(value)

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        return _check_password_strength(value)


class EmailRequest(CamelModel):
    """Request model carrying only an email (resend verification, forgot password)."""

    email: EmailStr

    @field_validator("email")
    @classmethod
    def email_length(cls, value: str) -> str:
        return _check_email_length(value)


class VerifyEmailRequest(CamelModel):
    """Request model for email verification."""

    token: str = Field(..., pattern=TOKEN_PATTERN, description="64-character hex verification token")


class LoginRequest(CamelModel):
    """Request model for login."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=255)


class ResetPasswordRequest(CamelModel):
    """Request model for completing a password reset."""

    token: str = Field(..., pattern=TOKEN_PATTERN, description="64-character hex reset token")
    new_password: str = Field(..., min_length=6)

    @field_validator("new_password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        return _check_password_strength(value)


class ChangePasswordRequest(CamelModel):
    """Request model for changing the password of the authenticated account."""

    current_password: str = Field(..., min_length=1, max_length=255)
    new_password: str = Field(..., min_length=6)

    @field_validator("new_password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        return _check_password_strength(value)

    @model_validator(mode="after")
    def new_password_differs(self) -> "ChangePasswordRequest":
        if self.new_password == self.current_password:
            raise ValueError("New password cannot be the same as current password")
        return self


class UserSummary(CamelModel):
    """Public account fields returned after registration."""

    id: str
    name: str
    email: str

    @classmethod
    def from_domain(cls, account: Account) -> "UserSummary":
        return cls(id=account.id, name=account.name, email=account.email)


class LoginUser(UserSummary):
    """Public account fields returned after login."""

    is_verified: bool

    @classmethod
    def from_domain(cls, account: Account) -> "LoginUser":
        return cls(
            id=account.id,
            name=account.name,
            email=account.email,
            is_verified=account.is_verified,
        )


class RegisterResponse(CamelModel):
    """Response model for successful registration."""

    message: str
    requires_verification: bool
    user: UserSummary


class LoginResponse(CamelModel):
    """Response model for successful login."""

    message: str = "Login successful"
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: LoginUser


class ProfileResponse(CamelModel):
    """Profile of the authenticated account."""

    id: str
    name: str
    email: str
    is_verified: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, account: Account) -> "ProfileResponse":
        return cls(
            id=account.id,
            name=account.name,
            email=account.email,
            is_verified=account.is_verified,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )


class MessageResponse(CamelModel):
    """Response model carrying only a human-readable message."""

    message: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
    code: str
