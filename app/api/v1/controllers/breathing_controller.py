"""
Breathing Controller
"""
from fastapi import HTTPException, status
from typing import Dict, List

from app.exceptions.errors import ApplicationException
from app.services.session_lifecycle_service import SessionLifecycleService
from app.stores.base import MetricInput
from app.schemas.breathing_schemas import (
    BreathingParametersResponse, CreateSessionRequest, CreateSessionResponse,
    UpdateSessionRequest, UpdateSessionResponse, SessionSummary
)
from app.core.logger import get_logger

logger = get_logger("breathing_controller")


class BreathingController:
    """Controller for breathing parameters and session lifecycle."""

    @staticmethod
    async def get_parameters(user_id: str, mode: str, service: SessionLifecycleService) -> Dict:
        """Get (and lazily seed) the user's parameters for a mode."""

        try:
            params = await service.get_parameters(user_id, mode)
            return BreathingParametersResponse(
                mode=params.mode.value,
                inhale_seconds=params.inhale_seconds,
                exhale_seconds=params.exhale_seconds,
                pause_seconds=params.pause_seconds,
                total_duration_seconds=params.total_duration_seconds,
                updated_at=params.updated_at
            ).dict()

        except (HTTPException, ApplicationException):
            raise
        except Exception as e:
            logger.error(f"❌ Error getting parameters for mode {mode}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to load breathing parameters"
            )

    @staticmethod
    async def create_session(
        user_id: str, payload: CreateSessionRequest, service: SessionLifecycleService
    ) -> Dict:
        """Start a new session bound to the current parameters."""

        try:
            session_id = await service.create_session(user_id, payload.mode, payload.custom_duration)
            return CreateSessionResponse(id=session_id).dict()

        except (HTTPException, ApplicationException):
            raise
        except Exception as e:
            logger.error(f"❌ Error creating session: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create session"
            )

    @staticmethod
    async def list_sessions(user_id: str, limit: int, service: SessionLifecycleService) -> List[Dict]:
        """Session history, newest first."""

        try:
            sessions = await service.list_sessions(user_id, limit)
            return [
                SessionSummary(
                    id=s.id,
                    mode=s.mode.value,
                    duration_seconds=s.duration_seconds,
                    completed=s.completed,
                    comfort_rating=s.comfort_rating.value if s.comfort_rating else None,
                    created_at=s.created_at
                ).dict()
                for s in sessions
            ]

        except (HTTPException, ApplicationException):
            raise
        except Exception as e:
            logger.error(f"❌ Error listing sessions: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to load session history"
            )

    @staticmethod
    async def update_session(
        user_id: str,
        session_id: int,
        payload: UpdateSessionRequest,
        service: SessionLifecycleService
    ) -> Dict:
        """Complete and/or rate a session."""

        try:
            metric = None
            if payload.lung_capacity_data is not None:
                metric = MetricInput(**payload.lung_capacity_data.dict())

            result = await service.update_session(
                session_id,
                user_id,
                completed=payload.completed,
                comfort_rating=payload.comfort_rating,
                lung_capacity=metric
            )

            if result.warnings:
                logger.warning(f"Session {session_id} updated with warnings: {result.warnings}")

            return UpdateSessionResponse(success=True, warnings=result.warnings).dict()

        except (HTTPException, ApplicationException):
            raise
        except Exception as e:
            logger.error(f"❌ Error updating session {session_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to update session"
            )
