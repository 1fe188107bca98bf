from sqlalchemy import Column, String, DateTime, Integer, Boolean, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from app.database.base import Base


class BreathingSession(Base):
    """
    One attempt at a breathing exercise.
    `completed` and `comfort_rating` are independent flags set after creation.
    """
    __tablename__ = "breathing_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), nullable=False, index=True)
    mode = Column(String(20), nullable=False)
    duration_seconds = Column(Integer, nullable=False)

    completed = Column(Boolean, nullable=False, default=False)
    comfort_rating = Column(String(20), nullable=True)  # 'lighter'|'neutral'|'heavy'

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    metrics = relationship("LungCapacityMetric", back_populates="session")

    __table_args__ = (
        Index("ix_breathing_session_user_created", "user_id", "created_at"),
        Index("ix_breathing_session_user_mode", "user_id", "mode"),
    )
