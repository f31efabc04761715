"""Utilities for issuing and validating session JWTs."""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import jwt

from accountguard.domain.exceptions import BearerTokenExpired, BearerTokenInvalid


@dataclass(frozen=True, slots=True)
class IssuedToken:
    """Signed bearer token and its lifetime in seconds."""

    token: str
    expires_in: int


@dataclass(frozen=True, slots=True)
class BearerClaims:
    """Identity claims recovered from a verified bearer token."""

    account_id: str
    email: str
    issued_at: datetime
    expires_at: datetime


class BearerTokenIssuer:
    """Signs and verifies stateless HS256 session tokens.

    There is no revocation list: logout is a client-side discard.
    """

    def __init__(
        self,
        secret: str,
        *,
        ttl_seconds: int = 86400,
        issuer: str = "accountguard",
        algorithm: str = "HS256",
    ) -> None:
        self._secret = secret
        self._ttl_seconds = ttl_seconds
        self._issuer = issuer
        self._algorithm = algorithm

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def issue(self, account_id: str, email: str) -> IssuedToken:
        """Create a signed token for the account.

        Parameters
        ----------
        account_id:
            Account identifier embedded in the ``sub`` claim.
        email:
            Normalised email address embedded in the ``email`` claim.

        Returns
        -------
        IssuedToken
            The encoded JWT and its TTL in seconds.
        """
        now = int(time.time())
        payload: dict[str, Any] = {
            "iss": self._issuer,
            "sub": account_id,
            "email": email,
            "iat": now,
            "exp": now + self._ttl_seconds,
        }
        token = jwt.encode(payload, self._secret, algorithm=self._algorithm)
        return IssuedToken(token=token, expires_in=self._ttl_seconds)

    def verify(self, token: str) -> BearerClaims:
        """Decode and verify a token issued by :meth:`issue`.

        Raises
        ------
        BearerTokenExpired
            When the ``exp`` claim has passed.
        BearerTokenInvalid
            On a bad signature, wrong issuer, malformed token or missing claims.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                issuer=self._issuer,
                options={"require": ["sub", "email", "iat", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise BearerTokenExpired() from None
        except jwt.PyJWTError:
            raise BearerTokenInvalid() from None

        return BearerClaims(
            account_id=str(payload["sub"]),
            email=str(payload["email"]),
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
