"""
Progress API Schemas
"""
from pydantic import BaseModel
from typing import Optional, List
from datetime import date, datetime


class ProgressAnalyticsSummary(BaseModel):
    """Rolling progress summary"""
    baseline_lung_capacity: Optional[float]
    current_lung_capacity: Optional[float]
    capacity_improvement_percent: float  # percentage
    total_training_minutes: int
    consecutive_days_streak: int
    best_streak: int
    difficulty_level: str  # beginner, intermediate, advanced
    last_session_date: Optional[date]


class LungCapacityMetricSummary(BaseModel):
    """Recent lung capacity sample"""
    session_id: int
    max_breath_hold_seconds: Optional[float]
    average_inhale_depth: Optional[float]
    average_exhale_control: Optional[float]
    respiratory_rate: Optional[float]
    comfort_level: Optional[float]
    created_at: datetime


class ProgressAnalyticsResponse(BaseModel):
    """Analytics plus the last 10 metric samples"""
    analytics: ProgressAnalyticsSummary
    recentMetrics: List[LungCapacityMetricSummary]
