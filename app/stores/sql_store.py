"""
Durable breathing store on async SQLAlchemy.
"""
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.logger import get_logger
from app.enums import BreathingMode, ComfortRating, DifficultyLevel
from app.exceptions.errors import StoreUnavailableError
from app.models import (
    BreathingParameters,
    BreathingSession,
    LungCapacityMetric,
    UserProgressAnalytics,
)
from app.stores.base import (
    AnalyticsRecord,
    BreathingStore,
    MetricInput,
    MetricRecord,
    ParameterRecord,
    SessionRecord,
)

logger = get_logger("sql_store")


def _to_parameter_record(row: BreathingParameters) -> ParameterRecord:
    return ParameterRecord(
        user_id=row.user_id,
        mode=BreathingMode(row.mode),
        inhale_seconds=row.inhale_seconds,
        exhale_seconds=row.exhale_seconds,
        pause_seconds=row.pause_seconds,
        total_duration_seconds=row.total_duration_seconds,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_session_record(row: BreathingSession) -> SessionRecord:
    return SessionRecord(
        id=row.id,
        user_id=row.user_id,
        mode=BreathingMode(row.mode),
        duration_seconds=row.duration_seconds,
        created_at=row.created_at,
        completed=bool(row.completed),
        comfort_rating=ComfortRating(row.comfort_rating) if row.comfort_rating else None,
        updated_at=row.updated_at,
    )


def _to_metric_record(row: LungCapacityMetric) -> MetricRecord:
    return MetricRecord(
        id=row.id,
        user_id=row.user_id,
        session_id=row.session_id,
        created_at=row.created_at,
        max_breath_hold_seconds=row.max_breath_hold_seconds,
        average_inhale_depth=row.average_inhale_depth,
        average_exhale_control=row.average_exhale_control,
        respiratory_rate=row.respiratory_rate,
        comfort_level=row.comfort_level,
    )


def _to_analytics_record(row: UserProgressAnalytics) -> AnalyticsRecord:
    return AnalyticsRecord(
        user_id=row.user_id,
        baseline_lung_capacity=row.baseline_lung_capacity,
        current_lung_capacity=row.current_lung_capacity,
        capacity_improvement_percent=row.capacity_improvement_percent or 0.0,
        total_training_minutes=row.total_training_minutes or 0,
        consecutive_days_streak=row.consecutive_days_streak or 0,
        best_streak=row.best_streak or 0,
        difficulty_level=DifficultyLevel(row.difficulty_level or DifficultyLevel.BEGINNER.value),
        last_session_date=row.last_session_date,
        updated_at=row.updated_at,
    )


class SqlBreathingStore(BreathingStore):
    """Store bound to one AsyncSession; every write commits on its own."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def _guard(self, operation: str):
        try:
            yield
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"❌ Database error during {operation}: {e}")
            raise StoreUnavailableError(f"Database unavailable during {operation}") from e

    async def _get_parameter_row(self, user_id: str, mode: BreathingMode) -> Optional[BreathingParameters]:
        result = await self.db.execute(
            select(BreathingParameters)
            .where(BreathingParameters.user_id == user_id)
            .where(BreathingParameters.mode == mode.value)
        )
        return result.scalar_one_or_none()

    async def _get_session_row(self, user_id: str, session_id: int) -> Optional[BreathingSession]:
        result = await self.db.execute(
            select(BreathingSession)
            .where(BreathingSession.id == session_id)
            .where(BreathingSession.user_id == user_id)
        )
        return result.scalar_one_or_none()

    # Parameters

    async def get_parameters(self, user_id: str, mode: BreathingMode) -> Optional[ParameterRecord]:
        async with self._guard("get_parameters"):
            row = await self._get_parameter_row(user_id, mode)
            return _to_parameter_record(row) if row else None

    async def create_parameters(self, record: ParameterRecord) -> ParameterRecord:
        row = BreathingParameters(
            user_id=record.user_id,
            mode=record.mode.value,
            inhale_seconds=record.inhale_seconds,
            exhale_seconds=record.exhale_seconds,
            pause_seconds=record.pause_seconds,
            total_duration_seconds=record.total_duration_seconds,
        )
        try:
            self.db.add(row)
            await self.db.commit()
            await self.db.refresh(row)
            return _to_parameter_record(row)
        except IntegrityError:
            # Another request seeded the same (user, mode) first
            await self.db.rollback()
            existing = await self.get_parameters(record.user_id, record.mode)
            if existing is None:
                raise StoreUnavailableError("Could not create breathing parameters")
            return existing
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"❌ Database error during create_parameters: {e}")
            raise StoreUnavailableError("Database unavailable during create_parameters") from e

    async def update_parameters(self, record: ParameterRecord) -> ParameterRecord:
        async with self._guard("update_parameters"):
            row = await self._get_parameter_row(record.user_id, record.mode)
            if row is None:
                raise StoreUnavailableError("Breathing parameters disappeared during update")
            row.inhale_seconds = record.inhale_seconds
            row.exhale_seconds = record.exhale_seconds
            row.pause_seconds = record.pause_seconds
            row.total_duration_seconds = record.total_duration_seconds
            row.updated_at = datetime.utcnow()
            await self.db.commit()
            await self.db.refresh(row)
            return _to_parameter_record(row)

    # Sessions

    async def create_session(
        self, user_id: str, mode: BreathingMode, duration_seconds: int, created_at: datetime
    ) -> SessionRecord:
        async with self._guard("create_session"):
            row = BreathingSession(
                user_id=user_id,
                mode=mode.value,
                duration_seconds=duration_seconds,
                completed=False,
                created_at=created_at,
                updated_at=created_at,
            )
            self.db.add(row)
            await self.db.commit()
            await self.db.refresh(row)
            return _to_session_record(row)

    async def get_session(self, user_id: str, session_id: int) -> Optional[SessionRecord]:
        async with self._guard("get_session"):
            row = await self._get_session_row(user_id, session_id)
            return _to_session_record(row) if row else None

    async def update_session(
        self,
        user_id: str,
        session_id: int,
        now: datetime,
        completed: Optional[bool] = None,
        comfort_rating: Optional[ComfortRating] = None,
        metric: Optional[MetricInput] = None,
    ) -> Optional[SessionRecord]:
        async with self._guard("update_session"):
            row = await self._get_session_row(user_id, session_id)
            if row is None:
                return None

            if completed:
                row.completed = True
            if comfort_rating is not None:
                row.comfort_rating = comfort_rating.value
            row.updated_at = now

            if metric is not None:
                self.db.add(LungCapacityMetric(
                    user_id=user_id,
                    session_id=session_id,
                    max_breath_hold_seconds=metric.max_breath_hold_seconds,
                    average_inhale_depth=metric.average_inhale_depth,
                    average_exhale_control=metric.average_exhale_control,
                    respiratory_rate=metric.respiratory_rate,
                    comfort_level=metric.comfort_level,
                    created_at=now,
                ))

            await self.db.commit()
            await self.db.refresh(row)
            return _to_session_record(row)

    async def list_sessions(self, user_id: str, limit: int) -> List[SessionRecord]:
        async with self._guard("list_sessions"):
            result = await self.db.execute(
                select(BreathingSession)
                .where(BreathingSession.user_id == user_id)
                .order_by(desc(BreathingSession.created_at), desc(BreathingSession.id))
                .limit(limit)
            )
            return [_to_session_record(row) for row in result.scalars().all()]

    async def list_rated_sessions(self, user_id: str, mode: BreathingMode, limit: int) -> List[SessionRecord]:
        async with self._guard("list_rated_sessions"):
            result = await self.db.execute(
                select(BreathingSession)
                .where(BreathingSession.user_id == user_id)
                .where(BreathingSession.mode == mode.value)
                .where(BreathingSession.comfort_rating.isnot(None))
                .order_by(desc(BreathingSession.created_at), desc(BreathingSession.id))
                .limit(limit)
            )
            return [_to_session_record(row) for row in result.scalars().all()]

    async def list_completed_sessions(self, user_id: str) -> List[SessionRecord]:
        async with self._guard("list_completed_sessions"):
            result = await self.db.execute(
                select(BreathingSession)
                .where(BreathingSession.user_id == user_id)
                .where(BreathingSession.completed.is_(True))
                .order_by(desc(BreathingSession.created_at), desc(BreathingSession.id))
            )
            return [_to_session_record(row) for row in result.scalars().all()]

    # Metrics

    async def list_recent_metrics(self, user_id: str, limit: int) -> List[MetricRecord]:
        async with self._guard("list_recent_metrics"):
            result = await self.db.execute(
                select(LungCapacityMetric)
                .where(LungCapacityMetric.user_id == user_id)
                .order_by(desc(LungCapacityMetric.created_at), desc(LungCapacityMetric.id))
                .limit(limit)
            )
            return [_to_metric_record(row) for row in result.scalars().all()]

    # Analytics

    async def get_analytics(self, user_id: str) -> Optional[AnalyticsRecord]:
        async with self._guard("get_analytics"):
            result = await self.db.execute(
                select(UserProgressAnalytics).where(UserProgressAnalytics.user_id == user_id)
            )
            row = result.scalar_one_or_none()
            return _to_analytics_record(row) if row else None

    async def save_analytics(self, record: AnalyticsRecord) -> AnalyticsRecord:
        async with self._guard("save_analytics"):
            result = await self.db.execute(
                select(UserProgressAnalytics).where(UserProgressAnalytics.user_id == record.user_id)
            )
            row = result.scalar_one_or_none()
            if row is None:
                row = UserProgressAnalytics(user_id=record.user_id)
                self.db.add(row)

            if row.baseline_lung_capacity is None:
                row.baseline_lung_capacity = record.baseline_lung_capacity
            row.current_lung_capacity = record.current_lung_capacity
            row.capacity_improvement_percent = record.capacity_improvement_percent
            row.total_training_minutes = record.total_training_minutes
            row.consecutive_days_streak = record.consecutive_days_streak
            row.best_streak = record.best_streak
            row.difficulty_level = record.difficulty_level.value
            row.last_session_date = record.last_session_date
            row.updated_at = datetime.utcnow()

            await self.db.commit()
            await self.db.refresh(row)
            return _to_analytics_record(row)
