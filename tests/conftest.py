"""
Pytest Configuration and Fixtures
=================================

Shared fixtures for the breathing backend tests.

Fixtures:
    - clock: controllable UTC clock
    - local_store: JSON-file store in a temp directory
    - sql_store: SQLAlchemy store on in-memory SQLite
    - store: parametrized over both backends
    - make_lifecycle: factory for SessionLifecycleService
"""

import os
import tempfile
from contextlib import asynccontextmanager
from datetime import datetime, timedelta

# Settings are read at import time; pin them before any app import
_TMP = tempfile.mkdtemp(prefix="breathpace-tests-")
os.environ["ENVIRONMENT"] = "development"
os.environ["STORE_BACKEND"] = "local"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["LOCAL_STORE_PATH"] = os.path.join(_TMP, "store.json")
os.environ["LOCAL_USER_ID"] = "local"
os.environ["LOG_DIR"] = os.path.join(_TMP, "logs")
os.environ["LOG_LEVEL"] = "WARNING"

import pytest

from app.core.breathing_defaults import BREATHING_MODE_DEFAULTS
from app.database.base import Base
from app.database.connection import build_engine, build_sessionmaker
from app.models import *  # noqa: F401,F403
from app.services.parameter_adaptation_service import (
    ParameterAdaptationService,
    WindowedAdaptationStrategy,
)
from app.services.progress_analytics_service import ProgressAnalyticsService
from app.services.session_lifecycle_service import SessionLifecycleService, UserLockRegistry
from app.stores import LocalBreathingStore, SqlBreathingStore

USER_ID = "local"
OTHER_USER_ID = "someone-else"


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests for individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Tests that go through the HTTP surface"
    )


# ============================================================================
# Clock
# ============================================================================

class FakeClock:
    """Callable clock returning a settable naive UTC datetime."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 10, 19, 12, 0, 0))


# ============================================================================
# Store Fixtures
# ============================================================================

@pytest.fixture
def local_store(tmp_path):
    return LocalBreathingStore(tmp_path / "breathing_store.json", USER_ID)


@asynccontextmanager
async def open_sql_store():
    engine = build_engine("sqlite+aiosqlite://")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = build_sessionmaker(engine)
    try:
        async with session_factory() as session:
            yield SqlBreathingStore(session)
    finally:
        await engine.dispose()


@pytest.fixture
async def sql_store():
    async with open_sql_store() as store:
        yield store


@pytest.fixture(params=["local", "sql"])
async def store(request, tmp_path):
    """Both backends; every contract test runs twice."""
    if request.param == "local":
        yield LocalBreathingStore(tmp_path / "breathing_store.json", USER_ID)
        return
    async with open_sql_store() as sql:
        yield sql


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def make_lifecycle(clock):
    """Build a lifecycle service over a given store."""

    def _make(store, strategy=None, **kwargs):
        return SessionLifecycleService(
            store=store,
            defaults=BREATHING_MODE_DEFAULTS,
            adaptation=ParameterAdaptationService(store, strategy or WindowedAdaptationStrategy()),
            analytics=ProgressAnalyticsService(store, clock=clock),
            clock=clock,
            locks=UserLockRegistry(),
            **kwargs
        )

    return _make
