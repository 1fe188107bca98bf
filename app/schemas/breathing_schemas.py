"""
Breathing API Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class BreathingParametersResponse(BaseModel):
    """Timings for one breathing mode"""
    mode: str
    inhale_seconds: float
    exhale_seconds: float
    pause_seconds: float
    total_duration_seconds: int
    updated_at: Optional[datetime] = None


class CreateSessionRequest(BaseModel):
    """Start a breathing session"""
    mode: str = Field(..., description="Breathing mode: daily, reset or silent")
    custom_duration: Optional[float] = Field(
        None,
        description="Session length in seconds, truncated to whole seconds; values under one second fall back to the mode's duration"
    )


class CreateSessionResponse(BaseModel):
    id: int


class LungCapacityData(BaseModel):
    """Lung capacity measurements captured during a session"""
    max_breath_hold_seconds: Optional[float] = Field(None, ge=0)
    average_inhale_depth: Optional[float] = Field(None, ge=0, le=1)
    average_exhale_control: Optional[float] = Field(None, ge=0, le=1)
    respiratory_rate: Optional[float] = Field(None, ge=0, description="Breaths per minute")
    comfort_level: Optional[float] = Field(None, ge=0, le=1)


class UpdateSessionRequest(BaseModel):
    """Mark a session complete and/or rate it"""
    completed: Optional[bool] = None
    comfort_rating: Optional[str] = Field(None, description="lighter, neutral or heavy")
    lung_capacity_data: Optional[LungCapacityData] = None


class UpdateSessionResponse(BaseModel):
    success: bool
    warnings: List[str] = []


class SessionSummary(BaseModel):
    """Session history entry"""
    id: int
    mode: str
    duration_seconds: int
    completed: bool
    comfort_rating: Optional[str]
    created_at: datetime
