"""
Offline breathing store backed by a JSON file.

Holds the data of exactly one user. Reads for any other user id see an empty
store; writes for another user are rejected.
"""
import json
from dataclasses import asdict
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import cuid

from app.core.logger import get_logger
from app.enums import BreathingMode, ComfortRating, DifficultyLevel
from app.exceptions.errors import NotFoundError, StoreUnavailableError
from app.stores.base import (
    AnalyticsRecord,
    BreathingStore,
    MetricInput,
    MetricRecord,
    ParameterRecord,
    SessionRecord,
)

logger = get_logger("local_store")

STORE_VERSION = 1


def _empty_state() -> Dict[str, Any]:
    return {
        "version": STORE_VERSION,
        "next_session_id": 1,
        "parameters": {},
        "sessions": [],
        "metrics": [],
        "analytics": None,
    }


def _dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parameter_from_json(user_id: str, data: Dict[str, Any]) -> ParameterRecord:
    return ParameterRecord(
        user_id=user_id,
        mode=BreathingMode(data["mode"]),
        inhale_seconds=float(data["inhale_seconds"]),
        exhale_seconds=float(data["exhale_seconds"]),
        pause_seconds=float(data["pause_seconds"]),
        total_duration_seconds=int(data["total_duration_seconds"]),
        created_at=_dt(data.get("created_at")),
        updated_at=_dt(data.get("updated_at")),
    )


def _parameter_to_json(record: ParameterRecord) -> Dict[str, Any]:
    return {
        "mode": record.mode.value,
        "inhale_seconds": record.inhale_seconds,
        "exhale_seconds": record.exhale_seconds,
        "pause_seconds": record.pause_seconds,
        "total_duration_seconds": record.total_duration_seconds,
        "created_at": _iso(record.created_at),
        "updated_at": _iso(record.updated_at),
    }


def _session_from_json(user_id: str, data: Dict[str, Any]) -> SessionRecord:
    rating = data.get("comfort_rating")
    return SessionRecord(
        id=int(data["id"]),
        user_id=user_id,
        mode=BreathingMode(data["mode"]),
        duration_seconds=int(data["duration_seconds"]),
        created_at=_dt(data["created_at"]),
        completed=bool(data.get("completed", False)),
        comfort_rating=ComfortRating(rating) if rating else None,
        updated_at=_dt(data.get("updated_at")),
    )


def _metric_from_json(user_id: str, data: Dict[str, Any]) -> MetricRecord:
    return MetricRecord(
        id=data["id"],
        user_id=user_id,
        session_id=int(data["session_id"]),
        created_at=_dt(data["created_at"]),
        max_breath_hold_seconds=data.get("max_breath_hold_seconds"),
        average_inhale_depth=data.get("average_inhale_depth"),
        average_exhale_control=data.get("average_exhale_control"),
        respiratory_rate=data.get("respiratory_rate"),
        comfort_level=data.get("comfort_level"),
    )


def _analytics_from_json(user_id: str, data: Dict[str, Any]) -> AnalyticsRecord:
    last = data.get("last_session_date")
    return AnalyticsRecord(
        user_id=user_id,
        baseline_lung_capacity=data.get("baseline_lung_capacity"),
        current_lung_capacity=data.get("current_lung_capacity"),
        capacity_improvement_percent=data.get("capacity_improvement_percent", 0.0),
        total_training_minutes=data.get("total_training_minutes", 0),
        consecutive_days_streak=data.get("consecutive_days_streak", 0),
        best_streak=data.get("best_streak", 0),
        difficulty_level=DifficultyLevel(data.get("difficulty_level", DifficultyLevel.BEGINNER.value)),
        last_session_date=date.fromisoformat(last) if last else None,
        updated_at=_dt(data.get("updated_at")),
    )


class LocalBreathingStore(BreathingStore):
    def __init__(self, path: Path, user_id: str):
        self.path = Path(path)
        self.user_id = user_id

    def _owns(self, user_id: str) -> bool:
        return user_id == self.user_id

    def _require_owner(self, user_id: str) -> None:
        if not self._owns(user_id):
            raise NotFoundError("User not known to the local store")

    def load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return _empty_state()
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"❌ Could not read local store {self.path}: {e}")
            raise StoreUnavailableError("Local breathing store is unreadable") from e
        if not isinstance(data, dict):
            raise StoreUnavailableError("Local breathing store is corrupt")
        state = _empty_state()
        state.update(data)
        return state

    def save(self, state: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(".tmp")
            with tmp.open("w", encoding="utf-8") as f:
                json.dump(state, f, ensure_ascii=False, indent=2)
            tmp.replace(self.path)
        except OSError as e:
            logger.error(f"❌ Could not write local store {self.path}: {e}")
            raise StoreUnavailableError("Local breathing store is not writable") from e

    # Parameters

    async def get_parameters(self, user_id: str, mode: BreathingMode) -> Optional[ParameterRecord]:
        if not self._owns(user_id):
            return None
        data = self.load()["parameters"].get(mode.value)
        return _parameter_from_json(user_id, data) if data else None

    async def create_parameters(self, record: ParameterRecord) -> ParameterRecord:
        self._require_owner(record.user_id)
        state = self.load()
        existing = state["parameters"].get(record.mode.value)
        if existing:
            return _parameter_from_json(record.user_id, existing)

        now = datetime.utcnow()
        record.created_at = record.created_at or now
        record.updated_at = record.updated_at or now
        state["parameters"][record.mode.value] = _parameter_to_json(record)
        self.save(state)
        return record

    async def update_parameters(self, record: ParameterRecord) -> ParameterRecord:
        self._require_owner(record.user_id)
        state = self.load()
        if record.mode.value not in state["parameters"]:
            raise StoreUnavailableError("Breathing parameters disappeared during update")
        record.updated_at = datetime.utcnow()
        state["parameters"][record.mode.value] = _parameter_to_json(record)
        self.save(state)
        return record

    # Sessions

    async def create_session(
        self, user_id: str, mode: BreathingMode, duration_seconds: int, created_at: datetime
    ) -> SessionRecord:
        self._require_owner(user_id)
        state = self.load()
        session_id = int(state["next_session_id"])
        state["next_session_id"] = session_id + 1
        state["sessions"].append({
            "id": session_id,
            "mode": mode.value,
            "duration_seconds": duration_seconds,
            "created_at": _iso(created_at),
            "completed": False,
            "comfort_rating": None,
            "updated_at": _iso(created_at),
        })
        self.save(state)
        return SessionRecord(
            id=session_id,
            user_id=user_id,
            mode=mode,
            duration_seconds=duration_seconds,
            created_at=created_at,
            updated_at=created_at,
        )

    async def get_session(self, user_id: str, session_id: int) -> Optional[SessionRecord]:
        if not self._owns(user_id):
            return None
        for data in self.load()["sessions"]:
            if data["id"] == session_id:
                return _session_from_json(user_id, data)
        return None

    async def update_session(
        self,
        user_id: str,
        session_id: int,
        now: datetime,
        completed: Optional[bool] = None,
        comfort_rating: Optional[ComfortRating] = None,
        metric: Optional[MetricInput] = None,
    ) -> Optional[SessionRecord]:
        if not self._owns(user_id):
            return None
        state = self.load()
        target = next((s for s in state["sessions"] if s["id"] == session_id), None)
        if target is None:
            return None

        if completed:
            target["completed"] = True
        if comfort_rating is not None:
            target["comfort_rating"] = comfort_rating.value
        target["updated_at"] = _iso(now)

        if metric is not None:
            state["metrics"].append({
                "id": cuid.cuid(),
                "session_id": session_id,
                "created_at": _iso(now),
                **asdict(metric),
            })

        self.save(state)
        return _session_from_json(user_id, target)

    def _sessions_newest_first(self, user_id: str) -> List[SessionRecord]:
        sessions = [_session_from_json(user_id, s) for s in self.load()["sessions"]]
        return sorted(sessions, key=lambda s: (s.created_at, s.id), reverse=True)

    async def list_sessions(self, user_id: str, limit: int) -> List[SessionRecord]:
        if not self._owns(user_id):
            return []
        return self._sessions_newest_first(user_id)[:limit]

    async def list_rated_sessions(self, user_id: str, mode: BreathingMode, limit: int) -> List[SessionRecord]:
        if not self._owns(user_id):
            return []
        rated = [
            s for s in self._sessions_newest_first(user_id)
            if s.mode == mode and s.comfort_rating is not None
        ]
        return rated[:limit]

    async def list_completed_sessions(self, user_id: str) -> List[SessionRecord]:
        if not self._owns(user_id):
            return []
        return [s for s in self._sessions_newest_first(user_id) if s.completed]

    # Metrics

    async def list_recent_metrics(self, user_id: str, limit: int) -> List[MetricRecord]:
        if not self._owns(user_id):
            return []
        metrics = [_metric_from_json(user_id, m) for m in self.load()["metrics"]]
        # Stored in insertion order; reverse first so ties keep newest on top
        metrics.reverse()
        metrics.sort(key=lambda m: m.created_at, reverse=True)
        return metrics[:limit]

    # Analytics

    async def get_analytics(self, user_id: str) -> Optional[AnalyticsRecord]:
        if not self._owns(user_id):
            return None
        data = self.load()["analytics"]
        return _analytics_from_json(user_id, data) if data else None

    async def save_analytics(self, record: AnalyticsRecord) -> AnalyticsRecord:
        self._require_owner(record.user_id)
        state = self.load()
        previous = state["analytics"] or {}
        baseline = previous.get("baseline_lung_capacity")
        if baseline is None:
            baseline = record.baseline_lung_capacity

        record.baseline_lung_capacity = baseline
        record.updated_at = datetime.utcnow()
        state["analytics"] = {
            "baseline_lung_capacity": baseline,
            "current_lung_capacity": record.current_lung_capacity,
            "capacity_improvement_percent": record.capacity_improvement_percent,
            "total_training_minutes": record.total_training_minutes,
            "consecutive_days_streak": record.consecutive_days_streak,
            "best_streak": record.best_streak,
            "difficulty_level": record.difficulty_level.value,
            "last_session_date": record.last_session_date.isoformat() if record.last_session_date else None,
            "updated_at": _iso(record.updated_at),
        }
        self.save(state)
        return record
