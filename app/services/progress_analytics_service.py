"""
Progress Analytics Service

Rebuilds a user's progress summary from the full session and metric history
on every call. Session counts are small, so nothing is tracked incrementally.
"""
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, List, Optional

from app.core.logger import get_logger
from app.enums import DifficultyLevel
from app.stores.base import AnalyticsRecord, BreathingStore, MetricRecord

logger = get_logger("progress_analytics_service")

CAPACITY_METRIC_WINDOW = 10

# Neutral values used until the user has reported any metrics
DEFAULT_INHALE_DEPTH = 0.5
DEFAULT_EXHALE_CONTROL = 0.5
DEFAULT_HOLD_SECONDS = 10.0

INHALE_WEIGHT = 30
EXHALE_WEIGHT = 30
HOLD_WEIGHT = 40
HOLD_REFERENCE_SECONDS = 60.0

# (level, minimum capacity, minimum streak), checked top down
DIFFICULTY_THRESHOLDS = (
    (DifficultyLevel.ADVANCED, 75.0, 14),
    (DifficultyLevel.INTERMEDIATE, 60.0, 7),
)


def _average(values: Iterable[Optional[float]], default: float) -> float:
    present = [v for v in values if v is not None]
    return sum(present) / len(present) if present else default


def compute_lung_capacity(metrics: List[MetricRecord]) -> float:
    """Score 0-100 from inhale depth, exhale control and breath-hold time."""
    avg_inhale = _average((m.average_inhale_depth for m in metrics), DEFAULT_INHALE_DEPTH)
    avg_exhale = _average((m.average_exhale_control for m in metrics), DEFAULT_EXHALE_CONTROL)
    avg_hold = _average((m.max_breath_hold_seconds for m in metrics), DEFAULT_HOLD_SECONDS)

    hold_ratio = min(avg_hold / HOLD_REFERENCE_SECONDS, 1.0)
    score = avg_inhale * INHALE_WEIGHT + avg_exhale * EXHALE_WEIGHT + hold_ratio * HOLD_WEIGHT
    return round(max(0.0, min(100.0, score)), 2)


def compute_improvement(baseline: Optional[float], current: float) -> float:
    if not baseline or baseline <= 0:
        return 0.0
    return round((current - baseline) / baseline * 100, 2)


def compute_streak(session_dates: Iterable[date], today: date) -> int:
    """Consecutive days with a completed session, counting back from today."""
    days = set(session_dates)
    streak = 0
    expected = today
    while expected in days:
        streak += 1
        expected -= timedelta(days=1)
    return streak


def classify_difficulty(capacity: float, streak: int) -> DifficultyLevel:
    for level, min_capacity, min_streak in DIFFICULTY_THRESHOLDS:
        if capacity >= min_capacity and streak >= min_streak:
            return level
    return DifficultyLevel.BEGINNER


class ProgressAnalyticsService:
    """Sole writer of the per-user progress analytics record."""

    def __init__(self, store: BreathingStore, clock: Callable[[], datetime] = datetime.utcnow):
        self.store = store
        self.clock = clock

    async def get_or_initialize(self, user_id: str) -> AnalyticsRecord:
        analytics = await self.store.get_analytics(user_id)
        if analytics is None:
            analytics = await self.store.save_analytics(AnalyticsRecord(user_id=user_id))
            logger.info(f"Initialized progress analytics for user {user_id}")
        return analytics

    async def recompute(self, user_id: str) -> AnalyticsRecord:
        previous = await self.store.get_analytics(user_id)
        completed = await self.store.list_completed_sessions(user_id)
        metrics = await self.store.list_recent_metrics(user_id, CAPACITY_METRIC_WINDOW)

        total_minutes = sum(s.duration_seconds for s in completed) // 60

        current = compute_lung_capacity(metrics)
        baseline = previous.baseline_lung_capacity if previous else None
        if baseline is None:
            baseline = current

        session_dates = [s.created_at.date() for s in completed]
        streak = compute_streak(session_dates, self.clock().date())
        best_streak = max(previous.best_streak if previous else 0, streak)

        record = AnalyticsRecord(
            user_id=user_id,
            baseline_lung_capacity=baseline,
            current_lung_capacity=current,
            capacity_improvement_percent=compute_improvement(baseline, current),
            total_training_minutes=total_minutes,
            consecutive_days_streak=streak,
            best_streak=best_streak,
            difficulty_level=classify_difficulty(current, streak),
            last_session_date=max(session_dates) if session_dates else None,
        )
        saved = await self.store.save_analytics(record)

        logger.info(
            f"Recomputed analytics for user {user_id}: capacity={current} "
            f"streak={streak} best={best_streak} level={saved.difficulty_level.value}"
        )
        return saved
