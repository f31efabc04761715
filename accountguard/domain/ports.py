"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from datetime import datetime
from typing import Protocol

from .account import Account


class AccountRepository(Protocol):
    """
    Port interface for account persistence.

    Every mutating method is a single atomic statement per account row.
    Mutations return the updated Account, or None when the row is gone
    or the update's guard condition did not hold. None is never an
    error in itself; callers re-read to tell the cases apart.
    """

    def create_account(
        self,
        name: str,
        email: str,
        password_hash: str,
        verification_token: str,
        verification_token_expires_at: datetime,
    ) -> Account | None:
        """
        Insert a new unverified account.

        Args:
            name: Display name
            email: Normalized email address
            password_hash: bcrypt hash from the credential hasher
            verification_token: 64-char hex verification token
            verification_token_expires_at: Expiry of the verification token

        Returns:
            The created Account, or None if the email is already taken
        """
        ...

    def get_by_id(self, account_id: str) -> Account | None: ...

    def get_by_email(self, email: str) -> Account | None: ...

    def get_by_verification_token(self, token: str) -> Account | None: ...

    def get_by_verified_token_hash(self, token_hash: str) -> Account | None:
        """Find an already verified account by the hash of the token that verified it."""
        ...

    def get_by_reset_token(self, token: str) -> Account | None: ...

    def mark_verified(
        self,
        account_id: str,
        token: str,
        verified_token_hash: str,
        *,
        now: datetime,
    ) -> Account | None:
        """
        Set is_verified, clear the verification token and expiry.

        Guarded on is_verified = false, on the outstanding token still
        being ``token`` and on it not having expired at ``now``. A
        concurrent verification, a rotation by resend, or an expiry
        since the caller's lookup all return None without mutating.
        """
        ...

    def set_verification_token(
        self, account_id: str, token: str, expires_at: datetime
    ) -> Account | None:
        """Replace the outstanding verification token of an unverified account."""
        ...

    def set_reset_token(self, account_id: str, token: str, expires_at: datetime) -> Account | None:
        """Replace the outstanding password reset token."""
        ...

    def record_failed_login(
        self,
        account_id: str,
        *,
        now: datetime,
        threshold: int,
        lockout_until: datetime,
    ) -> Account | None:
        """
        Atomically count a failed login and lock when the threshold is reached.

        In one conditional update:
        - attempts restart at 1 when a previous lockout has lapsed,
          otherwise increment by 1
        - lockout_until is set when the new count >= threshold
        - nothing changes if the account is currently locked

        Returns:
            Updated Account, or None if the account is locked or missing
        """
        ...

    def record_successful_login(self, account_id: str) -> Account | None:
        """Reset login_attempts to 0 and clear lockout_until."""
        ...

    def consume_reset_token(
        self, token: str, password_hash: str, *, now: datetime
    ) -> Account | None:
        """
        Spend a password reset token: store the new hash in the same update.

        Guarded on the row still holding ``token`` unexpired at ``now``,
        so two concurrent resets with one token cannot both succeed.
        Clears the reset token and expiry, resets login_attempts and
        clears lockout_until.

        Returns:
            Updated Account, or None if no account holds the token
            unexpired (never issued, already spent, replaced, or expired)
        """
        ...

    def replace_password(self, account_id: str, password_hash: str) -> Account | None:
        """
        Store a new password hash for an authenticated account.

        Same cleanup as consume_reset_token, with no token guard.

        Returns:
            Updated Account, or None only if the account no longer exists
        """
        ...


class EmailSender(Protocol):
    """Port interface for account notification emails."""

    def send_verification_email(self, email: str, name: str, token: str) -> None:
        """Send the email verification link."""
        ...

    def send_password_reset_email(self, email: str, name: str, token: str) -> None:
        """Send the password reset link."""
        ...

    def send_password_change_confirmation(self, email: str, name: str) -> None:
        """Notify the owner that their password changed."""
        ...
