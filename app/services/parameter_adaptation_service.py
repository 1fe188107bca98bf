"""
Parameter Adaptation Service

Rewrites a user's breathing timings for one mode after a comfort rating. The
rule table is fixed; a strategy only decides which branches fire.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple

from app.core.logger import get_logger
from app.enums import AdaptationStrategyName, BreathingMode, ComfortRating, StoreBackend
from app.stores.base import BreathingStore, ParameterRecord

logger = get_logger("parameter_adaptation_service")


@dataclass(frozen=True)
class Adjustment:
    """Step applied to one timing field; `bound` is a cap when stepping up, a floor when stepping down."""
    field: str
    delta: float
    bound: float


_DAILY_EASE_UP = (
    Adjustment("inhale_seconds", 0.3, 7.0),
    Adjustment("exhale_seconds", 0.3, 9.0),
)
_DAILY_BACK_OFF = (
    Adjustment("exhale_seconds", -0.3, 4.0),
    Adjustment("inhale_seconds", -0.2, 3.5),
)

EASE_UP_RULES: Dict[BreathingMode, Tuple[Adjustment, ...]] = {
    BreathingMode.DAILY: _DAILY_EASE_UP,
    BreathingMode.SILENT: _DAILY_EASE_UP,
    BreathingMode.RESET: (
        Adjustment("pause_seconds", 0.15, 3.0),
        Adjustment("inhale_seconds", 0.2, 5.0),
    ),
}

BACK_OFF_RULES: Dict[BreathingMode, Tuple[Adjustment, ...]] = {
    BreathingMode.DAILY: _DAILY_BACK_OFF,
    BreathingMode.SILENT: _DAILY_BACK_OFF,
    BreathingMode.RESET: (
        Adjustment("pause_seconds", -0.15, 0.5),
    ),
}


@dataclass(frozen=True)
class AdaptationDecision:
    ease_up: bool
    back_off: bool
    reason: str = ""


class AdaptationStrategy(ABC):
    name: AdaptationStrategyName

    @abstractmethod
    async def decide(
        self, store: BreathingStore, user_id: str, mode: BreathingMode, latest_rating: ComfortRating
    ) -> AdaptationDecision:
        ...


class WindowedAdaptationStrategy(AdaptationStrategy):
    """Looks at the last few ratings for the mode and the user's recent metrics."""

    name = AdaptationStrategyName.WINDOWED

    RATING_WINDOW = 5
    METRIC_WINDOW = 5
    LIGHTER_THRESHOLD = 3
    HEAVY_THRESHOLD = 2
    METRIC_THRESHOLD = 0.7

    async def decide(
        self, store: BreathingStore, user_id: str, mode: BreathingMode, latest_rating: ComfortRating
    ) -> AdaptationDecision:
        recent = await store.list_rated_sessions(user_id, mode, self.RATING_WINDOW)
        lighter_count = sum(1 for s in recent if s.comfort_rating == ComfortRating.LIGHTER)
        heavy_count = sum(1 for s in recent if s.comfort_rating == ComfortRating.HEAVY)

        metrics = await store.list_recent_metrics(user_id, self.METRIC_WINDOW)
        avg_depth = _mean_or_zero([m.average_inhale_depth for m in metrics])
        avg_control = _mean_or_zero([m.average_exhale_control for m in metrics])

        ease_up = (
            lighter_count >= self.LIGHTER_THRESHOLD
            and latest_rating == ComfortRating.LIGHTER
            and avg_depth > self.METRIC_THRESHOLD
            and avg_control > self.METRIC_THRESHOLD
        )
        back_off = heavy_count >= self.HEAVY_THRESHOLD or latest_rating == ComfortRating.HEAVY

        return AdaptationDecision(
            ease_up=ease_up,
            back_off=back_off,
            reason=(
                f"lighter={lighter_count} heavy={heavy_count} "
                f"depth={avg_depth:.2f} control={avg_control:.2f}"
            ),
        )


class SingleRatingAdaptationStrategy(AdaptationStrategy):
    """Reacts to the latest rating alone. Used when no history is trusted."""

    name = AdaptationStrategyName.SINGLE_RATING

    async def decide(
        self, store: BreathingStore, user_id: str, mode: BreathingMode, latest_rating: ComfortRating
    ) -> AdaptationDecision:
        return AdaptationDecision(
            ease_up=latest_rating == ComfortRating.LIGHTER,
            back_off=latest_rating == ComfortRating.HEAVY,
            reason=f"latest={latest_rating.value}",
        )


def resolve_strategy(name: str, backend: str) -> AdaptationStrategy:
    """Pick the strategy for a configured name; `auto` follows the backend."""
    try:
        strategy_name = AdaptationStrategyName(name)
    except ValueError:
        raise ValueError(f"Unknown adaptation strategy: {name}")

    if strategy_name == AdaptationStrategyName.AUTO:
        if StoreBackend(backend) == StoreBackend.LOCAL:
            strategy_name = AdaptationStrategyName.SINGLE_RATING
        else:
            strategy_name = AdaptationStrategyName.WINDOWED

    if strategy_name == AdaptationStrategyName.SINGLE_RATING:
        return SingleRatingAdaptationStrategy()
    return WindowedAdaptationStrategy()


def apply_rules(params: ParameterRecord, decision: AdaptationDecision) -> ParameterRecord:
    """Return a copy of `params` with the fired rules applied and clamped."""
    values = {
        "inhale_seconds": params.inhale_seconds,
        "exhale_seconds": params.exhale_seconds,
        "pause_seconds": params.pause_seconds,
    }
    caps: Dict[str, float] = {}
    floors: Dict[str, float] = {}

    if decision.ease_up:
        for adj in EASE_UP_RULES[params.mode]:
            values[adj.field] += adj.delta
            caps[adj.field] = min(caps.get(adj.field, adj.bound), adj.bound)

    if decision.back_off:
        for adj in BACK_OFF_RULES[params.mode]:
            values[adj.field] += adj.delta
            floors[adj.field] = max(floors.get(adj.field, adj.bound), adj.bound)

    # Clamp after all steps so ease-up and back-off in one call net out first
    for field in set(caps) | set(floors):
        value = values[field]
        if field in caps:
            value = min(value, caps[field])
        if field in floors:
            value = max(value, floors[field])
        values[field] = round(value, 2)

    return replace(params, **values)


def _mean_or_zero(values) -> float:
    present = [v for v in values if v is not None]
    return sum(present) / len(present) if present else 0.0


class ParameterAdaptationService:
    """Applies the rule table for one (user, mode) after a rating."""

    def __init__(self, store: BreathingStore, strategy: AdaptationStrategy):
        self.store = store
        self.strategy = strategy

    async def adapt(
        self, user_id: str, mode: BreathingMode, latest_rating: ComfortRating
    ) -> Optional[ParameterRecord]:
        """Returns the rewritten parameters, or None when nothing was written."""
        params = await self.store.get_parameters(user_id, mode)
        if params is None:
            logger.debug(f"No {mode.value} parameters for user {user_id}; skipping adaptation")
            return None

        decision = await self.strategy.decide(self.store, user_id, mode, latest_rating)
        if not decision.ease_up and not decision.back_off:
            logger.debug(f"No adaptation for {user_id}/{mode.value} ({decision.reason})")
            return None

        adapted = apply_rules(params, decision)
        if adapted.timings() == params.timings():
            logger.debug(f"Adaptation for {user_id}/{mode.value} hit its bounds; nothing to write")
            return None

        updated = await self.store.update_parameters(adapted)
        logger.info(
            f"Adapted {mode.value} for user {user_id} via {self.strategy.name.value} "
            f"(ease_up={decision.ease_up}, back_off={decision.back_off}, {decision.reason}): "
            f"{params.timings()} -> {updated.timings()}"
        )
        return updated
