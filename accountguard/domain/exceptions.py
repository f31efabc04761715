"""
Domain exceptions - Semantic error types for the account lifecycle.

Each exception carries a stable ``code`` (the error kind reported to API
clients) and the HTTP ``status_code`` the API layer maps it to. Messages
never reveal whether a credential check failed on the email or on the
password.
"""


class AccountError(Exception):
    """Base class for account domain errors."""

    code = "Internal"
    status_code = 500
    message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class DuplicateEmail(AccountError):
    """An account with this (case-folded) email already exists."""

    code = "DuplicateEmail"
    status_code = 400
    message = "An account with this email already exists"


class InvalidCredentials(AccountError):
    """Unknown email or wrong password - intentionally indistinguishable."""

    code = "InvalidCredentials"
    status_code = 401
    message = "Invalid credentials"


class AccountLocked(AccountError):
    """Login suspended after too many consecutive failures."""

    code = "AccountLocked"
    status_code = 423

    def __init__(self, remaining_minutes: int) -> None:
        self.remaining_minutes = remaining_minutes
        super().__init__(
            f"Account is temporarily locked. Try again in {remaining_minutes} minute(s)"
        )


class EmailNotVerified(AccountError):
    """Password was correct but the email address is not verified yet."""

    code = "EmailNotVerified"
    status_code = 403
    message = "Please verify your email address before logging in"


class InvalidToken(AccountError):
    """Verification or reset token does not match any account."""

    code = "InvalidToken"
    status_code = 400
    message = "Invalid token"


class ExpiredToken(AccountError):
    """Verification or reset token is past its expiry."""

    code = "ExpiredToken"
    status_code = 400
    message = "Token has expired"


class AccountNotFound(AccountError):
    """Account referenced by an authenticated identity no longer exists."""

    code = "NotFound"
    status_code = 404
    message = "User not found"


class BearerTokenInvalid(AccountError):
    """Bearer token is missing, malformed, or has a bad signature."""

    code = "InvalidToken"
    status_code = 401
    message = "Invalid token"


class BearerTokenExpired(AccountError):
    """Bearer token is past its ``exp`` claim."""

    code = "TokenExpired"
    status_code = 401
    message = "Token has expired"
