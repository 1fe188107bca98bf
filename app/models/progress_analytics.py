from sqlalchemy import Column, String, DateTime, Date, Integer, Float
from datetime import datetime
from app.database.base import Base
import cuid


class UserProgressAnalytics(Base):
    """
    Rolling progress summary, one row per user.
    Rebuilt on every recompute; baseline_lung_capacity is written once.
    """
    __tablename__ = "user_progress_analytics"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    user_id = Column(String(255), nullable=False, unique=True, index=True)

    baseline_lung_capacity = Column(Float, nullable=True)
    current_lung_capacity = Column(Float, nullable=True)
    capacity_improvement_percent = Column(Float, nullable=False, default=0.0)

    total_training_minutes = Column(Integer, nullable=False, default=0)
    consecutive_days_streak = Column(Integer, nullable=False, default=0)
    best_streak = Column(Integer, nullable=False, default=0)
    last_session_date = Column(Date, nullable=True)
    difficulty_level = Column(String(20), nullable=False, default="beginner")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
