"""
Domain layer - Pure business logic with zero framework imports.

This package contains the account security state machine. It defines its
own port interfaces for infrastructure abstraction, so persistence and
email delivery are supplied by adapters.
"""

from .account import Account, AccountState
from .exceptions import (
    AccountError,
    AccountLocked,
    AccountNotFound,
    BearerTokenExpired,
    BearerTokenInvalid,
    DuplicateEmail,
    EmailNotVerified,
    ExpiredToken,
    InvalidCredentials,
    InvalidToken,
)
from .lifecycle import AccountLifecycleService, LoginResult, RegistrationResult, SecurityPolicy
from .ports import AccountRepository, EmailSender

__all__ = [
    "Account",
    "AccountError",
    "AccountLifecycleService",
    "AccountLocked",
    "AccountNotFound",
    "AccountRepository",
    "AccountState",
    "BearerTokenExpired",
    "BearerTokenInvalid",
    "DuplicateEmail",
    "EmailNotVerified",
    "EmailSender",
    "ExpiredToken",
    "InvalidCredentials",
    "InvalidToken",
    "LoginResult",
    "RegistrationResult",
    "SecurityPolicy",
]
