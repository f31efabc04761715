"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from datetime import timedelta

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from accountguard.config.settings import Settings
from accountguard.domain.exceptions import BearerTokenInvalid
from accountguard.domain.lifecycle import AccountLifecycleService, SecurityPolicy
from accountguard.domain.ports import AccountRepository, EmailSender
from accountguard.security.bearer import BearerClaims, BearerTokenIssuer
from accountguard.security.passwords import CredentialHasher


def build_policy(settings: Settings) -> SecurityPolicy:
    """Translate settings into the state machine's policy."""
    return SecurityPolicy(
        require_email_verification=settings.require_email_verification,
        lockout_threshold=settings.lockout_threshold,
        lockout_duration=timedelta(seconds=settings.lockout_duration_seconds),
        verification_token_ttl=timedelta(seconds=settings.verification_token_ttl_seconds),
        reset_token_ttl=timedelta(seconds=settings.reset_token_ttl_seconds),
        token_bytes=settings.token_bytes,
    )


def build_hasher(settings: Settings) -> CredentialHasher:
    return CredentialHasher(rounds=settings.bcrypt_cost)


def build_issuer(settings: Settings) -> BearerTokenIssuer:
    return BearerTokenIssuer(
        settings.jwt_secret,
        ttl_seconds=settings.jwt_ttl_seconds,
        issuer=settings.jwt_issuer,
    )


def get_hasher(request: Request) -> CredentialHasher:
    """Get the credential hasher built at app creation (its dummy hash is computed once)."""
    return request.app.state.hasher


def get_issuer(request: Request) -> BearerTokenIssuer:
    """Get the bearer token issuer built at app creation."""
    return request.app.state.issuer


def get_policy(request: Request) -> SecurityPolicy:
    """Get the security policy built at app creation."""
    return request.app.state.policy


def get_repository(request: Request) -> AccountRepository:
    """
    Get the account repository from app state.

    The repository (and the pool behind it) is created during app
    lifespan startup and stored in app.state.
    """
    return request.app.state.repository


def get_notifier(request: Request) -> EmailSender:
    """Get the background notifier from app state."""
    return request.app.state.notifier


def get_account_service(
    request: Request,
    hasher: CredentialHasher = Depends(get_hasher),
    issuer: BearerTokenIssuer = Depends(get_issuer),
) -> AccountLifecycleService:
    """
    Create the account lifecycle service with injected dependencies.

    Wires together the repository, notifier, hasher and issuer.
    """
    return AccountLifecycleService(
        repository=get_repository(request),
        notifier=get_notifier(request),
        hasher=hasher,
        issuer=issuer,
        policy=get_policy(request),
    )


# Bearer security scheme for OpenAPI documentation; missing headers are
# reported by get_current_claims so the error body keeps its usual shape.
http_bearer = HTTPBearer(auto_error=False)


def get_current_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
    issuer: BearerTokenIssuer = Depends(get_issuer),
) -> BearerClaims:
    """
    Verify the ``Authorization: Bearer <token>`` header.

    Raises:
        BearerTokenInvalid: Header missing, not a bearer token, or bad token
        BearerTokenExpired: Token past its expiry
    """
    if credentials is None:
        raise BearerTokenInvalid("Not authorized to access this route")
    return issuer.verify(credentials.credentials)
