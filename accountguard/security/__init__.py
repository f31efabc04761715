"""Security primitives: opaque tokens, password hashing, bearer tokens."""

from .bearer import BearerClaims, BearerTokenIssuer, IssuedToken
from .opaque import generate_token, hash_token
from .passwords import CredentialHasher

__all__ = [
    "BearerClaims",
    "BearerTokenIssuer",
    "CredentialHasher",
    "IssuedToken",
    "generate_token",
    "hash_token",
]
