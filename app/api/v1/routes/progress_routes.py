"""
Progress Routes
"""
from fastapi import APIRouter, Depends

from app.middlewares.clerk_auth import get_authenticated_user_id
from app.api.v1.controllers.progress_controller import ProgressController
from app.schemas.progress_schemas import ProgressAnalyticsResponse
from app.services.session_lifecycle_service import SessionLifecycleService
from app.utils.breathing_instance import get_lifecycle_service

router = APIRouter(prefix="/progress", tags=["Progress"])


@router.get(
    "/analytics",
    summary="Get Progress Analytics",
    description="Lung capacity score, training minutes, streaks and difficulty tier.",
    response_model=ProgressAnalyticsResponse
)
async def get_analytics(
    user_id: str = Depends(get_authenticated_user_id),
    service: SessionLifecycleService = Depends(get_lifecycle_service)
):
    """
    Returns:
    - analytics: baseline/current lung capacity, improvement %, total minutes,
      current and best streak, difficulty level
    - recentMetrics: the 10 most recent lung capacity samples
    """
    return await ProgressController.get_analytics(user_id, service)
