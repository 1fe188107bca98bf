"""
Breathing store contract.

The lifecycle, adaptation and analytics services talk to persistence only
through `BreathingStore`. Two implementations exist: `SqlBreathingStore`
(durable, keyed by real user id) and `LocalBreathingStore` (JSON file for a
single offline user). Records crossing the interface are plain dataclasses so
neither side leaks ORM objects or file layout.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional

from app.enums import BreathingMode, ComfortRating, DifficultyLevel


@dataclass
class ParameterRecord:
    user_id: str
    mode: BreathingMode
    inhale_seconds: float
    exhale_seconds: float
    pause_seconds: float
    total_duration_seconds: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def timings(self):
        return (self.inhale_seconds, self.exhale_seconds, self.pause_seconds)


@dataclass
class SessionRecord:
    id: int
    user_id: str
    mode: BreathingMode
    duration_seconds: int
    created_at: datetime
    completed: bool = False
    comfort_rating: Optional[ComfortRating] = None
    updated_at: Optional[datetime] = None


@dataclass
class MetricInput:
    """Raw lung capacity measurements as reported by the client."""
    max_breath_hold_seconds: Optional[float] = None
    average_inhale_depth: Optional[float] = None
    average_exhale_control: Optional[float] = None
    respiratory_rate: Optional[float] = None
    comfort_level: Optional[float] = None


@dataclass
class MetricRecord:
    id: str
    user_id: str
    session_id: int
    created_at: datetime
    max_breath_hold_seconds: Optional[float] = None
    average_inhale_depth: Optional[float] = None
    average_exhale_control: Optional[float] = None
    respiratory_rate: Optional[float] = None
    comfort_level: Optional[float] = None


@dataclass
class AnalyticsRecord:
    user_id: str
    baseline_lung_capacity: Optional[float] = None
    current_lung_capacity: Optional[float] = None
    capacity_improvement_percent: float = 0.0
    total_training_minutes: int = 0
    consecutive_days_streak: int = 0
    best_streak: int = 0
    difficulty_level: DifficultyLevel = DifficultyLevel.BEGINNER
    last_session_date: Optional[date] = None
    updated_at: Optional[datetime] = None


class BreathingStore(ABC):
    """Persistence operations shared by both backends.

    List methods return newest records first. Writes are atomic per call.
    Implementations raise `StoreUnavailableError` when the backend fails.
    """

    # Parameters

    @abstractmethod
    async def get_parameters(self, user_id: str, mode: BreathingMode) -> Optional[ParameterRecord]:
        ...

    @abstractmethod
    async def create_parameters(self, record: ParameterRecord) -> ParameterRecord:
        """Insert the row, or return the existing one if it was created concurrently."""

    @abstractmethod
    async def update_parameters(self, record: ParameterRecord) -> ParameterRecord:
        ...

    # Sessions

    @abstractmethod
    async def create_session(
        self, user_id: str, mode: BreathingMode, duration_seconds: int, created_at: datetime
    ) -> SessionRecord:
        ...

    @abstractmethod
    async def get_session(self, user_id: str, session_id: int) -> Optional[SessionRecord]:
        """Return the session only if it belongs to `user_id`."""

    @abstractmethod
    async def update_session(
        self,
        user_id: str,
        session_id: int,
        now: datetime,
        completed: Optional[bool] = None,
        comfort_rating: Optional[ComfortRating] = None,
        metric: Optional[MetricInput] = None,
    ) -> Optional[SessionRecord]:
        """Apply flags and append an optional metric in one write.

        `completed=True` marks the session complete; `False` and `None` leave
        it untouched. Returns None when the session is not the user's.
        """

    @abstractmethod
    async def list_sessions(self, user_id: str, limit: int) -> List[SessionRecord]:
        ...

    @abstractmethod
    async def list_rated_sessions(self, user_id: str, mode: BreathingMode, limit: int) -> List[SessionRecord]:
        ...

    @abstractmethod
    async def list_completed_sessions(self, user_id: str) -> List[SessionRecord]:
        ...

    # Metrics

    @abstractmethod
    async def list_recent_metrics(self, user_id: str, limit: int) -> List[MetricRecord]:
        ...

    # Analytics

    @abstractmethod
    async def get_analytics(self, user_id: str) -> Optional[AnalyticsRecord]:
        ...

    @abstractmethod
    async def save_analytics(self, record: AnalyticsRecord) -> AnalyticsRecord:
        """Upsert the record. An existing non-null baseline is never replaced."""
