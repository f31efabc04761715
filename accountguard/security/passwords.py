"""
Credential hashing - bcrypt with an embedded salt and cost factor.

bcrypt output carries its own salt and work factor ("$2b$10$..."), so
verification needs nothing but the stored hash. ``burn`` exists so a
login for an unknown email costs the same as a wrong password and
response time does not reveal whether the account exists.
"""

import bcrypt

DEFAULT_ROUNDS = 10


class CredentialHasher:
    """One-way password hashing with a configurable bcrypt work factor."""

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self._rounds = rounds
        # Computed once so the first unknown-email login is not measurably slower.
        self._dummy_hash = self.hash("accountguard_timing_dummy")

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash(self, plaintext: str) -> str:
        """Return a bcrypt hash of ``plaintext``."""
        return bcrypt.hashpw(plaintext.encode("utf-8"), bcrypt.gensalt(rounds=self._rounds)).decode()

    def verify(self, plaintext: str, hashed: str) -> bool:
        """Return True if ``plaintext`` matches ``hashed``; malformed hashes never match."""
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            return False

    def burn(self, plaintext: str) -> None:
        """Spend one verification's worth of work against a dummy hash."""
        self.verify(plaintext, self._dummy_hash)
