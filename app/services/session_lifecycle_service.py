"""
Session Lifecycle Service

Entry point for everything a client does with a breathing session: fetching
timings, starting a session, completing it and rating it. Completion and
rating are persisted first; adaptation and analytics run afterwards and their
failures are reported without undoing the session write.
"""
import asyncio
import weakref
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from app.core.breathing_defaults import ModeDefaults
from app.core.logger import get_logger
from app.enums import BreathingMode, ComfortRating
from app.exceptions.errors import InvalidArgumentError, NotFoundError
from app.services.parameter_adaptation_service import ParameterAdaptationService
from app.services.progress_analytics_service import ProgressAnalyticsService
from app.stores.base import (
    AnalyticsRecord,
    BreathingStore,
    MetricInput,
    MetricRecord,
    ParameterRecord,
    SessionRecord,
)

logger = get_logger("session_lifecycle_service")

DEFAULT_HISTORY_LIMIT = 50
MAX_HISTORY_LIMIT = 200
RECENT_METRICS_LIMIT = 10

# Offline fallback: a plausible sample per rating when the client sends no measurements
DERIVED_METRICS: Dict[ComfortRating, MetricInput] = {
    ComfortRating.LIGHTER: MetricInput(
        max_breath_hold_seconds=35, average_inhale_depth=0.8,
        average_exhale_control=0.78, comfort_level=0.75,
    ),
    ComfortRating.NEUTRAL: MetricInput(
        max_breath_hold_seconds=30, average_inhale_depth=0.7,
        average_exhale_control=0.7, comfort_level=0.65,
    ),
    ComfortRating.HEAVY: MetricInput(
        max_breath_hold_seconds=25, average_inhale_depth=0.6,
        average_exhale_control=0.6, comfort_level=0.55,
    ),
}


class UserLockRegistry:
    """One asyncio.Lock per user id. Serializes mutations inside this process only.

    Locks are held weakly; an entry disappears once no caller holds or awaits it.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)


user_locks = UserLockRegistry()


@dataclass
class SessionUpdateResult:
    session: SessionRecord
    parameters: Optional[ParameterRecord] = None
    analytics: Optional[AnalyticsRecord] = None
    warnings: List[str] = field(default_factory=list)


def parse_mode(mode) -> BreathingMode:
    try:
        return BreathingMode(mode)
    except ValueError:
        raise NotFoundError(f"Mode not found: {mode}")


def parse_rating(rating) -> ComfortRating:
    try:
        return ComfortRating(rating)
    except ValueError:
        raise InvalidArgumentError(
            f"Invalid comfort rating: {rating}. Expected one of: "
            + ", ".join(r.value for r in ComfortRating)
        )


def validate_metric(metric: MetricInput) -> MetricInput:
    for name in ("average_inhale_depth", "average_exhale_control", "comfort_level"):
        value = getattr(metric, name)
        if value is not None and not 0.0 <= value <= 1.0:
            raise InvalidArgumentError(f"{name} must be between 0 and 1")
    for name in ("max_breath_hold_seconds", "respiratory_rate"):
        value = getattr(metric, name)
        if value is not None and value < 0:
            raise InvalidArgumentError(f"{name} must not be negative")
    return metric


class SessionLifecycleService:
    def __init__(
        self,
        store: BreathingStore,
        defaults: Mapping[BreathingMode, ModeDefaults],
        adaptation: ParameterAdaptationService,
        analytics: ProgressAnalyticsService,
        clock: Callable[[], datetime] = datetime.utcnow,
        locks: UserLockRegistry = user_locks,
        refresh_analytics_on_read: bool = False,
        derive_metrics_from_rating: bool = False,
    ):
        self.store = store
        self.defaults = defaults
        self.adaptation = adaptation
        self.analytics = analytics
        self.clock = clock
        self.locks = locks
        self.refresh_analytics_on_read = refresh_analytics_on_read
        self.derive_metrics_from_rating = derive_metrics_from_rating

    async def get_parameters(self, user_id: str, mode) -> ParameterRecord:
        """Return the user's timings for a mode, seeding them from the defaults on first use."""
        breathing_mode = parse_mode(mode)

        params = await self.store.get_parameters(user_id, breathing_mode)
        if params is not None:
            return params

        default = self.defaults[breathing_mode]
        params = await self.store.create_parameters(ParameterRecord(
            user_id=user_id,
            mode=breathing_mode,
            inhale_seconds=default.inhale_seconds,
            exhale_seconds=default.exhale_seconds,
            pause_seconds=default.pause_seconds,
            total_duration_seconds=default.total_duration_seconds,
        ))
        logger.info(f"Seeded {breathing_mode.value} parameters for user {user_id}")
        return params

    async def create_session(self, user_id: str, mode, custom_duration_seconds: Optional[float] = None) -> int:
        breathing_mode = parse_mode(mode)

        custom = int(custom_duration_seconds) if custom_duration_seconds is not None else 0
        if custom > 0:
            duration = custom
        else:
            # Read-only: a user without a row gets the mode default without seeding one
            params = await self.store.get_parameters(user_id, breathing_mode)
            if params is not None:
                duration = params.total_duration_seconds
            else:
                duration = self.defaults[breathing_mode].total_duration_seconds

        session = await self.store.create_session(user_id, breathing_mode, duration, self.clock())
        logger.info(f"Created {breathing_mode.value} session {session.id} ({duration}s) for user {user_id}")
        return session.id

    async def complete_session(self, session_id: int, user_id: str) -> SessionUpdateResult:
        return await self.update_session(session_id, user_id, completed=True)

    async def rate_session(
        self, session_id: int, user_id: str, rating, metrics: Optional[MetricInput] = None
    ) -> SessionUpdateResult:
        return await self.update_session(session_id, user_id, comfort_rating=rating, lung_capacity=metrics)

    async def update_session(
        self,
        session_id: int,
        user_id: str,
        completed: Optional[bool] = None,
        comfort_rating=None,
        lung_capacity: Optional[MetricInput] = None,
    ) -> SessionUpdateResult:
        """Apply any mix of completion, rating and metrics, then run the follow-ups."""
        if completed is None and comfort_rating is None and lung_capacity is None:
            raise InvalidArgumentError("No updates provided")

        rating = parse_rating(comfort_rating) if comfort_rating is not None else None
        metric = validate_metric(lung_capacity) if lung_capacity is not None else None
        if metric is None and rating is not None and self.derive_metrics_from_rating:
            metric = DERIVED_METRICS[rating]

        async with self.locks.lock_for(user_id):
            session = await self.store.update_session(
                user_id,
                session_id,
                now=self.clock(),
                completed=completed,
                comfort_rating=rating,
                metric=metric,
            )
            if session is None:
                raise NotFoundError("Session not found")

            result = SessionUpdateResult(session=session)

            if rating is not None:
                try:
                    result.parameters = await self.adaptation.adapt(user_id, session.mode, rating)
                except Exception as e:
                    logger.error(f"❌ Parameter adaptation failed for session {session_id}: {e}")
                    result.warnings.append("Parameter adaptation failed")

            if completed:
                try:
                    result.analytics = await self.analytics.recompute(user_id)
                except Exception as e:
                    logger.error(f"❌ Analytics update failed for session {session_id}: {e}")
                    result.warnings.append("Progress analytics update failed")

        return result

    async def list_sessions(self, user_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> List[SessionRecord]:
        limit = max(1, min(int(limit), MAX_HISTORY_LIMIT))
        return await self.store.list_sessions(user_id, limit)

    async def get_analytics(self, user_id: str) -> Tuple[AnalyticsRecord, List[MetricRecord]]:
        if self.refresh_analytics_on_read:
            async with self.locks.lock_for(user_id):
                analytics = await self.analytics.recompute(user_id)
        else:
            analytics = await self.analytics.get_or_initialize(user_id)

        recent_metrics = await self.store.list_recent_metrics(user_id, RECENT_METRICS_LIMIT)
        return analytics, recent_metrics
