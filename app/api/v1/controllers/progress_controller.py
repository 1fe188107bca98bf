"""
Progress Controller
"""
from fastapi import HTTPException, status
from typing import Dict

from app.exceptions.errors import ApplicationException
from app.services.session_lifecycle_service import SessionLifecycleService
from app.schemas.progress_schemas import (
    ProgressAnalyticsResponse, ProgressAnalyticsSummary, LungCapacityMetricSummary
)
from app.core.logger import get_logger

logger = get_logger("progress_controller")


class ProgressController:
    """Controller for user progress analytics."""

    @staticmethod
    async def get_analytics(user_id: str, service: SessionLifecycleService) -> Dict:
        """Latest analytics summary plus the 10 most recent lung capacity samples."""

        try:
            analytics, recent_metrics = await service.get_analytics(user_id)

            return ProgressAnalyticsResponse(
                analytics=ProgressAnalyticsSummary(
                    baseline_lung_capacity=analytics.baseline_lung_capacity,
                    current_lung_capacity=analytics.current_lung_capacity,
                    capacity_improvement_percent=analytics.capacity_improvement_percent,
                    total_training_minutes=analytics.total_training_minutes,
                    consecutive_days_streak=analytics.consecutive_days_streak,
                    best_streak=analytics.best_streak,
                    difficulty_level=analytics.difficulty_level.value,
                    last_session_date=analytics.last_session_date
                ),
                recentMetrics=[
                    LungCapacityMetricSummary(
                        session_id=m.session_id,
                        max_breath_hold_seconds=m.max_breath_hold_seconds,
                        average_inhale_depth=m.average_inhale_depth,
                        average_exhale_control=m.average_exhale_control,
                        respiratory_rate=m.respiratory_rate,
                        comfort_level=m.comfort_level,
                        created_at=m.created_at
                    )
                    for m in recent_metrics
                ]
            ).dict()

        except (HTTPException, ApplicationException):
            raise
        except Exception as e:
            logger.error(f"❌ Error getting progress analytics: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to load progress analytics"
            )
