"""Account aggregate and its derived security states."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class AccountState(str, Enum):
    """
    Conceptual account states, derived from stored fields.

    These are independent axes rather than a single enum column: a
    VERIFIED account can be LOCKED and PASSWORD_RESET_PENDING at the
    same time.
    """

    UNVERIFIED = "UNVERIFIED"
    VERIFIED = "VERIFIED"
    VERIFICATION_PENDING = "VERIFICATION_PENDING"
    PASSWORD_RESET_PENDING = "PASSWORD_RESET_PENDING"
    LOCKED = "LOCKED"


@dataclass(slots=True)
class Account:
    """Row projection of the ``accounts`` table."""

    id: str
    name: str
    email: str
    password_hash: str
    is_verified: bool
    verification_token: str | None
    verification_token_expires_at: datetime | None
    verified_token_hash: str | None
    reset_token: str | None
    reset_token_expires_at: datetime | None
    login_attempts: int
    lockout_until: datetime | None
    created_at: datetime
    updated_at: datetime

    def is_locked(self, now: datetime) -> bool:
        return self.lockout_until is not None and self.lockout_until > now

    def lockout_remaining_minutes(self, now: datetime) -> int:
        """Whole minutes left on the lockout, rounded up; 0 when not locked."""
        if not self.is_locked(now):
            return 0
        seconds = (self.lockout_until - now).total_seconds()
        return max(1, math.ceil(seconds / 60))

    def states(self, now: datetime) -> set[AccountState]:
        states = {AccountState.VERIFIED if self.is_verified else AccountState.UNVERIFIED}
        if self.verification_token is not None:
            states.add(AccountState.VERIFICATION_PENDING)
        if self.reset_token is not None:
            states.add(AccountState.PASSWORD_RESET_PENDING)
        if self.is_locked(now):
            states.add(AccountState.LOCKED)
        return states
