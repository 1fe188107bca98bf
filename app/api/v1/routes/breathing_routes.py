"""
Breathing Routes
"""
from fastapi import APIRouter, Depends, Query

from app.middlewares.clerk_auth import get_authenticated_user_id
from app.api.v1.controllers.breathing_controller import BreathingController
from app.schemas.breathing_schemas import (
    BreathingParametersResponse, CreateSessionRequest, CreateSessionResponse,
    UpdateSessionRequest, UpdateSessionResponse
)
from app.services.session_lifecycle_service import SessionLifecycleService
from app.utils.breathing_instance import get_lifecycle_service

router = APIRouter(prefix="/breathing", tags=["Breathing"])


@router.get(
    "/parameters/{mode}",
    summary="Get Breathing Parameters",
    description="Get the user's inhale/exhale/pause timings for a mode, seeded from the mode defaults on first use.",
    response_model=BreathingParametersResponse
)
async def get_parameters(
    mode: str,
    user_id: str = Depends(get_authenticated_user_id),
    service: SessionLifecycleService = Depends(get_lifecycle_service)
):
    """
    Modes:
    - daily: 4s in / 6s out, 6 minutes
    - reset: 4s in / 8s out / 2s pause, 1 minute
    - silent: 4s in / 6s out, 6 minutes

    Returns 404 for any other mode.
    """
    return await BreathingController.get_parameters(user_id, mode, service)


@router.post(
    "/sessions",
    summary="Start Breathing Session",
    response_model=CreateSessionResponse
)
async def create_session(
    payload: CreateSessionRequest,
    user_id: str = Depends(get_authenticated_user_id),
    service: SessionLifecycleService = Depends(get_lifecycle_service)
):
    """Create a session using `custom_duration` when positive, else the mode's current duration."""
    return await BreathingController.create_session(user_id, payload, service)


@router.get(
    "/sessions",
    summary="Get Session History"
)
async def list_sessions(
    limit: int = Query(50, ge=1, le=200),
    user_id: str = Depends(get_authenticated_user_id),
    service: SessionLifecycleService = Depends(get_lifecycle_service)
):
    """Most recent sessions first."""
    return await BreathingController.list_sessions(user_id, limit, service)


@router.patch(
    "/sessions/{session_id}",
    summary="Update Breathing Session",
    response_model=UpdateSessionResponse
)
async def update_session(
    session_id: int,
    payload: UpdateSessionRequest,
    user_id: str = Depends(get_authenticated_user_id),
    service: SessionLifecycleService = Depends(get_lifecycle_service)
):
    """
    Mark a session complete and/or rate it.

    - `completed`: recomputes progress analytics
    - `comfort_rating`: adapts the mode's timings
    - `lung_capacity_data`: stored as a metric sample for the session

    At least one field is required. Follow-up failures are listed in `warnings`
    and do not undo the session update.
    """
    return await BreathingController.update_session(user_id, session_id, payload, service)
