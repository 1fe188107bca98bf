from sqlalchemy import Column, String, DateTime, Integer, Float, UniqueConstraint
from datetime import datetime
from app.database.base import Base
import cuid


class BreathingParameters(Base):
    """
    Per-user timing for one breathing mode.
    Seeded from the mode defaults on first request, rewritten only by adaptation.
    """
    __tablename__ = "breathing_parameters"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    user_id = Column(String(255), nullable=False, index=True)
    mode = Column(String(20), nullable=False)  # 'daily'|'reset'|'silent'

    # Phase timings in seconds
    inhale_seconds = Column(Float, nullable=False)
    exhale_seconds = Column(Float, nullable=False)
    pause_seconds = Column(Float, nullable=False, default=0.0)
    total_duration_seconds = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "mode", name="uq_breathing_params_user_mode"),
    )
