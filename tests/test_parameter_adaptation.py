"""
Parameter Adaptation Tests
==========================

Rule table, clamping, strategies and the adaptation service.
"""

import pytest
from datetime import datetime, timedelta

from app.enums import AdaptationStrategyName, BreathingMode, ComfortRating
from app.services.parameter_adaptation_service import (
    AdaptationDecision,
    ParameterAdaptationService,
    SingleRatingAdaptationStrategy,
    WindowedAdaptationStrategy,
    apply_rules,
    resolve_strategy,
)
from app.stores import MetricInput, ParameterRecord

USER_ID = "local"
NOW = datetime(2026, 10, 19, 12, 0, 0)

EASE_UP = AdaptationDecision(ease_up=True, back_off=False)
BACK_OFF = AdaptationDecision(ease_up=False, back_off=True)
BOTH = AdaptationDecision(ease_up=True, back_off=True)


def _params(mode, inhale=4.0, exhale=6.0, pause=0.0):
    return ParameterRecord(
        user_id=USER_ID,
        mode=mode,
        inhale_seconds=inhale,
        exhale_seconds=exhale,
        pause_seconds=pause,
        total_duration_seconds=360,
    )


@pytest.mark.unit
class TestApplyRules:
    """Pure rule table behaviour."""

    def test_daily_ease_up_steps(self):
        adapted = apply_rules(_params(BreathingMode.DAILY), EASE_UP)
        assert adapted.timings() == (4.3, 6.3, 0.0)

    def test_daily_back_off_steps(self):
        adapted = apply_rules(_params(BreathingMode.DAILY), BACK_OFF)
        assert adapted.timings() == (3.8, 5.7, 0.0)

    def test_silent_follows_daily_rules(self):
        assert apply_rules(_params(BreathingMode.SILENT), EASE_UP).timings() == (4.3, 6.3, 0.0)

    def test_reset_ease_up_touches_pause_and_inhale(self):
        adapted = apply_rules(_params(BreathingMode.RESET, exhale=8.0, pause=2.0), EASE_UP)
        assert adapted.timings() == (4.2, 8.0, 2.15)

    def test_reset_back_off_only_touches_pause(self):
        adapted = apply_rules(_params(BreathingMode.RESET, exhale=8.0, pause=2.0), BACK_OFF)
        assert adapted.timings() == (4.0, 8.0, 1.85)

    def test_repeated_ease_up_never_exceeds_caps(self):
        params = _params(BreathingMode.DAILY)
        for _ in range(30):
            params = apply_rules(params, EASE_UP)
            assert params.inhale_seconds <= 7.0
            assert params.exhale_seconds <= 9.0
        assert params.timings() == (7.0, 9.0, 0.0)

    def test_repeated_back_off_never_drops_below_floors(self):
        params = _params(BreathingMode.DAILY)
        for _ in range(30):
            params = apply_rules(params, BACK_OFF)
            assert params.inhale_seconds >= 3.5
            assert params.exhale_seconds >= 4.0
        assert params.timings() == (3.5, 4.0, 0.0)

    def test_reset_bounds(self):
        params = _params(BreathingMode.RESET, exhale=8.0, pause=2.0)
        for _ in range(30):
            params = apply_rules(params, EASE_UP)
        assert (params.inhale_seconds, params.pause_seconds) == (5.0, 3.0)

        for _ in range(30):
            params = apply_rules(params, BACK_OFF)
        assert params.pause_seconds == 0.5

    def test_both_branches_clamp_after_netting(self):
        # 7.0 + 0.3 - 0.2 = 7.1, clamped back to the 7.0 cap
        adapted = apply_rules(_params(BreathingMode.DAILY, inhale=7.0, exhale=9.0), BOTH)
        assert adapted.inhale_seconds == 7.0
        assert adapted.exhale_seconds == 9.0

    def test_no_decision_changes_nothing(self):
        params = _params(BreathingMode.DAILY)
        adapted = apply_rules(params, AdaptationDecision(ease_up=False, back_off=False))
        assert adapted.timings() == params.timings()


@pytest.mark.unit
class TestResolveStrategy:

    def test_auto_follows_backend(self):
        assert resolve_strategy("auto", "database").name == AdaptationStrategyName.WINDOWED
        assert resolve_strategy("auto", "local").name == AdaptationStrategyName.SINGLE_RATING

    def test_explicit_names(self):
        assert resolve_strategy("windowed", "local").name == AdaptationStrategyName.WINDOWED
        assert resolve_strategy("single_rating", "database").name == AdaptationStrategyName.SINGLE_RATING

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            resolve_strategy("learned", "database")


async def _rated_session(store, mode, rating, when, metric=None):
    session = await store.create_session(USER_ID, mode, 60, when)
    await store.update_session(USER_ID, session.id, now=when, comfort_rating=rating, metric=metric)
    return session


class TestWindowedStrategy:
    """History-based trigger decisions."""

    @pytest.mark.asyncio
    async def test_ease_up_needs_three_lighter_and_good_metrics(self, store):
        strategy = WindowedAdaptationStrategy()
        good = MetricInput(average_inhale_depth=0.8, average_exhale_control=0.8)

        for i in range(2):
            await _rated_session(store, BreathingMode.DAILY, ComfortRating.LIGHTER, NOW + timedelta(minutes=i), good)
        decision = await strategy.decide(store, USER_ID, BreathingMode.DAILY, ComfortRating.LIGHTER)
        assert decision.ease_up is False

        await _rated_session(store, BreathingMode.DAILY, ComfortRating.LIGHTER, NOW + timedelta(minutes=5), good)
        decision = await strategy.decide(store, USER_ID, BreathingMode.DAILY, ComfortRating.LIGHTER)
        assert decision.ease_up is True
        assert decision.back_off is False

    @pytest.mark.asyncio
    async def test_ease_up_blocked_without_metrics(self, store):
        strategy = WindowedAdaptationStrategy()
        for i in range(3):
            await _rated_session(store, BreathingMode.DAILY, ComfortRating.LIGHTER, NOW + timedelta(minutes=i))

        decision = await strategy.decide(store, USER_ID, BreathingMode.DAILY, ComfortRating.LIGHTER)
        assert decision.ease_up is False

    @pytest.mark.asyncio
    async def test_back_off_on_two_heavy_in_window(self, store):
        strategy = WindowedAdaptationStrategy()
        await _rated_session(store, BreathingMode.DAILY, ComfortRating.HEAVY, NOW)
        await _rated_session(store, BreathingMode.DAILY, ComfortRating.HEAVY, NOW + timedelta(minutes=1))
        await _rated_session(store, BreathingMode.DAILY, ComfortRating.NEUTRAL, NOW + timedelta(minutes=2))

        decision = await strategy.decide(store, USER_ID, BreathingMode.DAILY, ComfortRating.NEUTRAL)
        assert decision.back_off is True

    @pytest.mark.asyncio
    async def test_window_is_per_mode(self, store):
        strategy = WindowedAdaptationStrategy()
        await _rated_session(store, BreathingMode.RESET, ComfortRating.HEAVY, NOW)
        await _rated_session(store, BreathingMode.RESET, ComfortRating.HEAVY, NOW + timedelta(minutes=1))

        decision = await strategy.decide(store, USER_ID, BreathingMode.DAILY, ComfortRating.NEUTRAL)
        assert decision.back_off is False


class TestSingleRatingStrategy:

    @pytest.mark.asyncio
    async def test_reacts_to_latest_rating_only(self, local_store):
        strategy = SingleRatingAdaptationStrategy()

        lighter = await strategy.decide(local_store, USER_ID, BreathingMode.DAILY, ComfortRating.LIGHTER)
        neutral = await strategy.decide(local_store, USER_ID, BreathingMode.DAILY, ComfortRating.NEUTRAL)
        heavy = await strategy.decide(local_store, USER_ID, BreathingMode.DAILY, ComfortRating.HEAVY)

        assert (lighter.ease_up, lighter.back_off) == (True, False)
        assert (neutral.ease_up, neutral.back_off) == (False, False)
        assert (heavy.ease_up, heavy.back_off) == (False, True)


class TestAdaptationService:
    """Reads parameters, asks the strategy, writes only on change."""

    @pytest.mark.asyncio
    async def test_without_parameters_is_a_no_op(self, store):
        service = ParameterAdaptationService(store, SingleRatingAdaptationStrategy())
        assert await service.adapt(USER_ID, BreathingMode.DAILY, ComfortRating.HEAVY) is None
        assert await store.get_parameters(USER_ID, BreathingMode.DAILY) is None

    @pytest.mark.asyncio
    async def test_writes_adapted_parameters(self, store):
        await store.create_parameters(_params(BreathingMode.DAILY))
        service = ParameterAdaptationService(store, SingleRatingAdaptationStrategy())

        updated = await service.adapt(USER_ID, BreathingMode.DAILY, ComfortRating.HEAVY)

        assert updated.timings() == (3.8, 5.7, 0.0)
        assert (await store.get_parameters(USER_ID, BreathingMode.DAILY)).timings() == (3.8, 5.7, 0.0)

    @pytest.mark.asyncio
    async def test_no_write_when_already_at_bound(self, store):
        await store.create_parameters(_params(BreathingMode.DAILY, inhale=3.5, exhale=4.0))
        before = await store.get_parameters(USER_ID, BreathingMode.DAILY)
        service = ParameterAdaptationService(store, SingleRatingAdaptationStrategy())

        assert await service.adapt(USER_ID, BreathingMode.DAILY, ComfortRating.HEAVY) is None

        after = await store.get_parameters(USER_ID, BreathingMode.DAILY)
        assert after.updated_at == before.updated_at

    @pytest.mark.asyncio
    async def test_neutral_rating_writes_nothing(self, store):
        await store.create_parameters(_params(BreathingMode.DAILY))
        service = ParameterAdaptationService(store, SingleRatingAdaptationStrategy())

        assert await service.adapt(USER_ID, BreathingMode.DAILY, ComfortRating.NEUTRAL) is None
