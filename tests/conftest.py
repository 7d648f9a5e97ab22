"""
Pytest fixtures for auth service tests.
"""

from datetime import datetime, timedelta, timezone

import pytest

from authsvc.config import Settings
from authsvc.kernel.identity.identity_service import AuthService
from authsvc.kernel.identity.memory_store import InMemoryAccountStore
from authsvc.kernel.identity.password import PasswordHasher
from authsvc.kernel.identity.tokens import TokenCodec


TEST_SECRET = "test-secret-key-for-testing-only"

# Lowest bcrypt cost; keeps the suite fast
TEST_ROUNDS = 4


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings for a throwaway SQLite database."""
    return Settings(
        _env_file=None,
        jwt_secret=TEST_SECRET,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'auth.db'}",
        bcrypt_rounds=TEST_ROUNDS,
        token_ttl_minutes=60,
        store_timeout_seconds=5.0,
    )


@pytest.fixture
def token_secret() -> str:
    return TEST_SECRET


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=TEST_ROUNDS)


@pytest.fixture
def codec(clock: FrozenClock) -> TokenCodec:
    """Token codec on the frozen clock."""
    return TokenCodec(secret=TEST_SECRET, ttl=timedelta(minutes=60), clock=clock)


@pytest.fixture
def memory_store() -> InMemoryAccountStore:
    return InMemoryAccountStore()


@pytest.fixture
def auth_service(
    memory_store: InMemoryAccountStore,
    codec: TokenCodec,
    hasher: PasswordHasher,
) -> AuthService:
    """Auth service over an empty in-memory store."""
    return AuthService(store=memory_store, codec=codec, hasher=hasher, store_timeout=2.0)
