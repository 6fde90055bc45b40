"""Pytest configuration for yieldlens tests."""

import asyncio
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from yieldlens.core.database import init_db
from yieldlens.services.ratelimit.rate_limiter import RateLimiter


class FakeClock:
    """Manually advanced clock; ``sleep`` advances it instead of waiting."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rate_limiter(clock: FakeClock) -> RateLimiter:
    """Rate limiter that never really sleeps."""
    return RateLimiter(clock=clock, sleep=clock.sleep)


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database with all tables."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def settings():
    return SimpleNamespace(
        database_url="sqlite://",
        etherscan_api_key=None,
        enable_scheduler=False,
        cache_default_ttl_seconds=600,
        cache_max_entries=1000,
        cache_cleanup_interval_seconds=300,
        cache_eviction_policy="fifo",
        adapter_timeout_seconds=30.0,
        auto_create_tables=False,
        log_level="INFO",
        cors_origins=[],
    )
