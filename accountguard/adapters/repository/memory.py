"""In-memory AccountRepository for local demos and tests."""

from __future__ import annotations

import threading
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone

from accountguard.domain.account import Account


class InMemoryAccountRepository:
    """
    Dictionary-backed account store.

    A single lock serialises every read-modify-write, which gives each
    mutation the same single-row atomicity the SQL statements provide.
    Accounts are copied on the way in and out so callers never share
    mutable rows with the store.
    """

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}
        self._lock = threading.Lock()

    def ping(self) -> None:
        return None

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _find(self, **criteria: object) -> Account | None:
        with self._lock:
            for account in self._accounts.values():
                if all(getattr(account, key) == value for key, value in criteria.items()):
                    return replace(account)
        return None

    def _update(
        self,
        account_id: str,
        guard: Callable[[Account], bool] | None = None,
        **changes: object,
    ) -> Account | None:
        with self._lock:
            account = self._accounts.get(account_id)
            if account is None or (guard is not None and not guard(account)):
                return None
            updated = replace(account, updated_at=self._now(), **changes)
            self._accounts[account_id] = updated
            return replace(updated)

    def create_account(
        self,
        name: str,
        email: str,
        password_hash: str,
        verification_token: str,
        verification_token_expires_at: datetime,
    ) -> Account | None:
        now = self._now()
        with self._lock:
            if any(existing.email == email for existing in self._accounts.values()):
                return None
            account = Account(
                id=str(uuid.uuid4()),
                name=name,
                email=email,
                password_hash=password_hash,
                is_verified=False,
                verification_token=verification_token,
                verification_token_expires_at=verification_token_expires_at,
                verified_token_hash=None,
                reset_token=None,
                reset_token_expires_at=None,
                login_attempts=0,
                lockout_until=None,
                created_at=now,
                updated_at=now,
            )
            self._accounts[account.id] = account
            return replace(account)

    def get_by_id(self, account_id: str) -> Account | None:
        with self._lock:
            account = self._accounts.get(account_id)
            return replace(account) if account is not None else None

    def get_by_email(self, email: str) -> Account | None:
        return self._find(email=email)

    def get_by_verification_token(self, token: str) -> Account | None:
        return self._find(verification_token=token)

    def get_by_verified_token_hash(self, token_hash: str) -> Account | None:
        return self._find(verified_token_hash=token_hash)

    def get_by_reset_token(self, token: str) -> Account | None:
        return self._find(reset_token=token)

    def mark_verified(
        self,
        account_id: str,
        token: str,
        verified_token_hash: str,
        *,
        now: datetime,
    ) -> Account | None:
        def outstanding(account: Account) -> bool:
            return (
                not account.is_verified
                and account.verification_token == token
                and account.verification_token_expires_at is not None
                and account.verification_token_expires_at > now
            )

        return self._update(
            account_id,
            guard=outstanding,
            is_verified=True,
            verification_token=None,
            verification_token_expires_at=None,
            verified_token_hash=verified_token_hash,
        )

    def set_verification_token(
        self, account_id: str, token: str, expires_at: datetime
    ) -> Account | None:
        return self._update(
            account_id,
            guard=lambda account: not account.is_verified,
            verification_token=token,
            verification_token_expires_at=expires_at,
        )

    def set_reset_token(self, account_id: str, token: str, expires_at: datetime) -> Account | None:
        return self._update(account_id, reset_token=token, reset_token_expires_at=expires_at)

    def record_failed_login(
        self,
        account_id: str,
        *,
        now: datetime,
        threshold: int,
        lockout_until: datetime,
    ) -> Account | None:
        with self._lock:
            account = self._accounts.get(account_id)
            if account is None or account.is_locked(now):
                return None
            lapsed = account.lockout_until is not None
            attempts = 1 if lapsed else account.login_attempts + 1
            updated = replace(
                account,
                login_attempts=attempts,
                lockout_until=lockout_until if attempts >= threshold else None,
                updated_at=self._now(),
            )
            self._accounts[account_id] = updated
            return replace(updated)

    def record_successful_login(self, account_id: str) -> Account | None:
        return self._update(account_id, login_attempts=0, lockout_until=None)

    def consume_reset_token(
        self, token: str, password_hash: str, *, now: datetime
    ) -> Account | None:
        with self._lock:
            account = next(
                (row for row in self._accounts.values() if row.reset_token == token), None
            )
            expires_at = account.reset_token_expires_at if account is not None else None
            if expires_at is None or expires_at <= now:
                return None
            updated = replace(
                account,
                password_hash=password_hash,
                reset_token=None,
                reset_token_expires_at=None,
                login_attempts=0,
                lockout_until=None,
                updated_at=self._now(),
            )
            self._accounts[account.id] = updated
            return replace(updated)

    def replace_password(self, account_id: str, password_hash: str) -> Account | None:
        return self._update(
            account_id,
            password_hash=password_hash,
            reset_token=None,
            reset_token_expires_at=None,
            login_attempts=0,
            lockout_until=None,
        )
