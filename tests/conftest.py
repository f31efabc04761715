"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable clock for expiry and lockout windows
- An in-memory account repository
- A fast credential hasher and a bearer token issuer
- The account lifecycle service wired from the above
- Request rate limiting switched off unless a test turns it on
"""

from collections.abc import Callable, Iterator
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from accountguard.adapters.repository.memory import InMemoryAccountRepository
from accountguard.api.limiter import limiter
from accountguard.domain.lifecycle import AccountLifecycleService, SecurityPolicy
from accountguard.security.bearer import BearerTokenIssuer
from accountguard.security.passwords import CredentialHasher

TEST_JWT_SECRET = "test-signing-secret-with-at-least-32-bytes"


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def repository() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def notifier() -> Mock:
    return Mock()


@pytest.fixture(scope="session")
def hasher() -> CredentialHasher:
    """bcrypt at its minimum cost keeps the suite fast."""
    return CredentialHasher(rounds=4)


@pytest.fixture(scope="session")
def jwt_secret() -> str:
    return TEST_JWT_SECRET


@pytest.fixture(scope="session")
def issuer(jwt_secret: str) -> BearerTokenIssuer:
    return BearerTokenIssuer(jwt_secret, ttl_seconds=3600, issuer="accountguard-test")


@pytest.fixture
def make_service(
    repository: InMemoryAccountRepository,
    notifier: Mock,
    hasher: CredentialHasher,
    issuer: BearerTokenIssuer,
    clock: FrozenClock,
) -> Callable[..., AccountLifecycleService]:
    """Factory for services sharing the same store, with policy overrides."""

    def factory(**policy_overrides: object) -> AccountLifecycleService:
        return AccountLifecycleService(
            repository=repository,
            notifier=notifier,
            hasher=hasher,
            issuer=issuer,
            policy=SecurityPolicy(**policy_overrides),
            clock=clock,
        )

    return factory


@pytest.fixture
def service(make_service: Callable[..., AccountLifecycleService]) -> AccountLifecycleService:
    return make_service()


@pytest.fixture(autouse=True)
def _rate_limits_off() -> Iterator[None]:
    """Tests start with empty counters and limits disabled."""
    limiter.enabled = False
    limiter.reset()
    yield
    limiter.enabled = False
    limiter.reset()
