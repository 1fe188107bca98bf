from sqlalchemy import Column, String, ForeignKey, DateTime, Integer, Float, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from app.database.base import Base
import cuid


class LungCapacityMetric(Base):
    """
    Lung capacity sample reported for a session. Append-only.
    Ratios are in [0, 1]; hold time in seconds.
    """
    __tablename__ = "lung_capacity_metrics"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    user_id = Column(String(255), nullable=False, index=True)
    session_id = Column(Integer, ForeignKey("breathing_sessions.id"), nullable=False, index=True)

    max_breath_hold_seconds = Column(Float, nullable=True)
    average_inhale_depth = Column(Float, nullable=True)
    average_exhale_control = Column(Float, nullable=True)
    respiratory_rate = Column(Float, nullable=True)  # breaths/min
    comfort_level = Column(Float, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    session = relationship("BreathingSession", back_populates="metrics")

    __table_args__ = (
        Index("ix_lung_metric_user_created", "user_id", "created_at"),
    )
