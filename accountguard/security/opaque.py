"""Opaque single-use tokens for email verification and password reset."""

import hashlib
import secrets

DEFAULT_TOKEN_BYTES = 32


def generate_token(byte_length: int = DEFAULT_TOKEN_BYTES) -> str:
    """Return ``2 * byte_length`` hex characters drawn from the OS CSPRNG.

    32 bytes gives a 64-character token with 256 bits of entropy.
    """
    return secrets.token_hex(byte_length)


def hash_token(token: str) -> str:
    """Return the SHA-256 hex digest for an opaque token string."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
