"""
Breathing Service Wiring

Chooses the backing store from settings and builds the lifecycle service for
each request. The local store is a single shared instance; the database store
wraps one AsyncSession per request.
"""
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import Depends

from app.core.breathing_defaults import BREATHING_MODE_DEFAULTS
from app.core.config import settings
from app.core.logger import get_logger
from app.database.connection import get_db
from app.services.parameter_adaptation_service import ParameterAdaptationService, resolve_strategy
from app.services.progress_analytics_service import ProgressAnalyticsService
from app.services.session_lifecycle_service import SessionLifecycleService
from app.stores import BreathingStore, LocalBreathingStore, SqlBreathingStore

logger = get_logger("breathing_instance")

# get_db as an async context manager for non-dependency callers
db_session = asynccontextmanager(get_db)

# Global local store instance (local backend only)
local_store: Optional[LocalBreathingStore] = None


def get_local_store() -> LocalBreathingStore:
    global local_store
    if local_store is None:
        local_store = LocalBreathingStore(Path(settings.LOCAL_STORE_PATH), settings.LOCAL_USER_ID)
    return local_store


def initialize_store():
    """Log the active backend and prepare the local store. Call once on startup."""
    strategy = resolve_strategy(settings.ADAPTATION_STRATEGY, settings.STORE_BACKEND)
    if settings.USES_LOCAL_STORE:
        store = get_local_store()
        logger.info(f"✅ Local breathing store at {store.path} (user '{store.user_id}', strategy {strategy.name.value})")
    else:
        logger.info(f"✅ Database breathing store (strategy {strategy.name.value})")


async def get_breathing_store():
    """FastAPI dependency yielding the configured store."""
    if settings.USES_LOCAL_STORE:
        yield get_local_store()
        return

    async with db_session() as session:
        yield SqlBreathingStore(session)


def build_lifecycle_service(store: BreathingStore) -> SessionLifecycleService:
    strategy = resolve_strategy(settings.ADAPTATION_STRATEGY, settings.STORE_BACKEND)
    return SessionLifecycleService(
        store=store,
        defaults=BREATHING_MODE_DEFAULTS,
        adaptation=ParameterAdaptationService(store, strategy),
        analytics=ProgressAnalyticsService(store),
        refresh_analytics_on_read=settings.ANALYTICS_REFRESH_ON_READ,
        derive_metrics_from_rating=settings.DERIVE_METRICS_FROM_RATING,
    )


async def get_lifecycle_service(store: BreathingStore = Depends(get_breathing_store)) -> SessionLifecycleService:
    return build_lifecycle_service(store)
