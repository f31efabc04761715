"""
Account lifecycle service - Account security state machine.

This module contains the core business logic for registration, email
verification, login with lockout, password reset and password change.

Derived States (independent axes, computed from stored fields)
==============================================================

- UNVERIFIED / VERIFIED: is_verified; flips to VERIFIED once, never back
- VERIFICATION_PENDING: a verification token is outstanding
- PASSWORD_RESET_PENDING: a reset token is outstanding
- LOCKED: lockout_until is in the future

Transitions:
    register            -> UNVERIFIED + VERIFICATION_PENDING
    verify_email        -> VERIFIED (token cleared)
    resend_verification -> VERIFICATION_PENDING (token rotated)
    login failure x N   -> LOCKED for the lockout duration
    login success       -> attempts reset, not LOCKED
    forgot_password     -> PASSWORD_RESET_PENDING
    reset/change        -> new password, attempts reset, not LOCKED

The service holds no state between calls. Every operation re-reads the
account, and every multi-field mutation is one repository call, which
the repository applies as a single atomic update.

Notifications are best-effort: a failure to hand off an email is logged
and never fails an operation whose mutation already committed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from accountguard.security.opaque import DEFAULT_TOKEN_BYTES, generate_token, hash_token

from .account import Account
from .exceptions import (
    AccountLocked,
    AccountNotFound,
    DuplicateEmail,
    EmailNotVerified,
    ExpiredToken,
    InvalidCredentials,
    InvalidToken,
)
from .ports import AccountRepository, EmailSender

if TYPE_CHECKING:
    from accountguard.security.bearer import BearerTokenIssuer
    from accountguard.security.passwords import CredentialHasher

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SecurityPolicy:
    """Tunable rules of the state machine."""

    require_email_verification: bool = True
    lockout_threshold: int = 5
    lockout_duration: timedelta = timedelta(minutes=30)
    verification_token_ttl: timedelta = timedelta(hours=24)
    reset_token_ttl: timedelta = timedelta(hours=1)
    token_bytes: int = DEFAULT_TOKEN_BYTES


@dataclass(frozen=True)
class RegistrationResult:
    account: Account
    requires_verification: bool


@dataclass(frozen=True)
class LoginResult:
    token: str
    expires_in: int
    account: Account


@dataclass
class AccountLifecycleService:
    """
    Domain service orchestrating the account security state machine.

    Combines the repository, credential hasher, token generator and
    bearer token issuer. Emails go through ``notifier``, which is
    expected to return quickly (see BackgroundNotifier).
    """

    repository: AccountRepository
    notifier: EmailSender
    hasher: CredentialHasher
    issuer: BearerTokenIssuer
    policy: SecurityPolicy = field(default_factory=SecurityPolicy)
    clock: Callable[[], datetime] = utcnow

    def register(self, name: str, email: str, password: str) -> RegistrationResult:
        """
        Create an unverified account and send its verification email.

        Args:
            name: Display name
            email: Email address (will be normalized)
            password: Plaintext password (will be hashed)

        Returns:
            RegistrationResult with the created account

        Raises:
            DuplicateEmail: If the normalized email is already registered
        """
        normalized_email = self._normalize_email(email)
        if self.repository.get_by_email(normalized_email) is not None:
            raise DuplicateEmail()

        token = generate_token(self.policy.token_bytes)
        expires_at = self.clock() + self.policy.verification_token_ttl
        password_hash = self.hasher.hash(password)

        account = self.repository.create_account(
            name=name.strip(),
            email=normalized_email,
            password_hash=password_hash,
            verification_token=token,
            verification_token_expires_at=expires_at,
        )
        # Lost a race with a concurrent registration for the same email
        if account is None:
            raise DuplicateEmail()

        logger.info("Registered account %s", account.id)
        self._notify(self.notifier.send_verification_email, account.email, account.name, token)
        return RegistrationResult(
            account=account,
            requires_verification=self.policy.require_email_verification,
        )

    def verify_email(self, token: str) -> Account:
        """
        Mark the account owning ``token`` as verified.

        Idempotent: repeating a verification with the token that already
        verified the account succeeds without mutating anything.

        Raises:
            InvalidToken: No account matches the token
            ExpiredToken: Token is past its expiry; the account stays
                unverified and the token stays in place
        """
        now = self.clock()
        account = self.repository.get_by_verification_token(token)
        if account is None:
            return self._already_verified_with(token)

        if account.is_verified:
            return account

        expires_at = account.verification_token_expires_at
        if expires_at is None or expires_at <= now:
            raise ExpiredToken()

        updated = self.repository.mark_verified(account.id, token, hash_token(token), now=now)
        if updated is None:
            # Verified, rotated or expired since the lookup above
            current = self.repository.get_by_verification_token(token)
            if current is not None and not current.is_verified:
                raise ExpiredToken()
            return self._already_verified_with(token)

        logger.info("Verified email for account %s", updated.id)
        return updated

    def resend_verification(self, email: str) -> None:
        """
        Rotate the verification token and resend it.

        Always returns normally, whether or not the account exists or is
        already verified, so callers cannot enumerate accounts.
        """
        account = self.repository.get_by_email(self._normalize_email(email))
        if account is None or account.is_verified:
            return

        token = generate_token(self.policy.token_bytes)
        expires_at = self.clock() + self.policy.verification_token_ttl
        updated = self.repository.set_verification_token(account.id, token, expires_at)
        if updated is None:
            return

        self._notify(self.notifier.send_verification_email, updated.email, updated.name, token)

    def login(self, email: str, password: str) -> LoginResult:
        """
        Authenticate credentials and issue a bearer token.

        Raises:
            InvalidCredentials: Unknown email or wrong password
            AccountLocked: Lockout window still running
            EmailNotVerified: Password correct but email unverified and
                the policy requires verification
        """
        now = self.clock()
        account = self.repository.get_by_email(self._normalize_email(email))
        if account is None:
            self.hasher.burn(password)
            raise InvalidCredentials()

        if account.is_locked(now):
            raise AccountLocked(account.lockout_remaining_minutes(now))

        if not self.hasher.verify(password, account.password_hash):
            updated = self.repository.record_failed_login(
                account.id,
                now=now,
                threshold=self.policy.lockout_threshold,
                lockout_until=now + self.policy.lockout_duration,
            )
            if updated is not None and updated.is_locked(now):
                logger.warning(
                    "Account %s locked after %d failed login attempts",
                    account.id,
                    updated.login_attempts,
                )
            raise InvalidCredentials()

        if self.policy.require_email_verification and not account.is_verified:
            raise EmailNotVerified()

        updated = self.repository.record_successful_login(account.id)
        if updated is None:
            raise InvalidCredentials()

        issued = self.issuer.issue(updated.id, updated.email)
        return LoginResult(token=issued.token, expires_in=issued.expires_in, account=updated)

    def forgot_password(self, email: str) -> None:
        """
        Issue a password reset token and email it.

        Always returns normally regardless of whether the account exists.
        """
        account = self.repository.get_by_email(self._normalize_email(email))
        if account is None:
            return

        token = generate_token(self.policy.token_bytes)
        expires_at = self.clock() + self.policy.reset_token_ttl
        updated = self.repository.set_reset_token(account.id, token, expires_at)
        if updated is None:
            return

        logger.info("Password reset requested for account %s", updated.id)
        self._notify(self.notifier.send_password_reset_email, updated.email, updated.name, token)

    def reset_password(self, token: str, new_password: str) -> None:
        """
        Replace the password of the account owning a reset token.

        A successful reset also clears the failed-attempt counter and any
        lockout.

        Raises:
            InvalidToken: No account matches the token
            ExpiredToken: Token is past its expiry
        """
        now = self.clock()
        account = self.repository.get_by_reset_token(token)
        if account is None:
            raise InvalidToken()

        expires_at = account.reset_token_expires_at
        if expires_at is None or expires_at <= now:
            raise ExpiredToken()

        password_hash = self.hasher.hash(new_password)
        updated = self.repository.consume_reset_token(token, password_hash, now=now)
        if updated is None:
            # Spent, replaced or expired since the lookup above
            if self.repository.get_by_reset_token(token) is None:
                raise InvalidToken()
            raise ExpiredToken()

        logger.info("Password reset for account %s", updated.id)
        self._notify(self.notifier.send_password_change_confirmation, updated.email, updated.name)

    def change_password(self, account_id: str, current_password: str, new_password: str) -> None:
        """
        Change the password of an authenticated account.

        Raises:
            AccountNotFound: The account no longer exists
            InvalidCredentials: ``current_password`` does not match
        """
        account = self.repository.get_by_id(account_id)
        if account is None:
            raise AccountNotFound()

        if not self.hasher.verify(current_password, account.password_hash):
            raise InvalidCredentials("Current password is incorrect")

        # None here means the row was deleted after the lookup
        updated = self.repository.replace_password(account.id, self.hasher.hash(new_password))
        if updated is None:
            raise AccountNotFound()

        logger.info("Password changed for account %s", updated.id)
        self._notify(self.notifier.send_password_change_confirmation, updated.email, updated.name)

    def get_account(self, account_id: str) -> Account:
        """Return the current account, or raise AccountNotFound."""
        account = self.repository.get_by_id(account_id)
        if account is None:
            raise AccountNotFound()
        return account

    def _already_verified_with(self, token: str) -> Account:
        """Return the account this exact token verified, or raise InvalidToken."""
        verified = self.repository.get_by_verified_token_hash(hash_token(token))
        if verified is None or not verified.is_verified:
            raise InvalidToken()
        return verified

    def _notify(self, send: Callable[..., None], *args: str) -> None:
        """Hand an email to the notifier; failures are logged, never raised."""
        try:
            send(*args)
        except Exception:
            logger.exception("Failed to dispatch %s", getattr(send, "__name__", "notification"))

    def _normalize_email(self, email: str) -> str:
        """
        Normalize email address for consistent storage and lookup.

        Applies: strip whitespace + lowercase
        """
        return email.strip().lower()
