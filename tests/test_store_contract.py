"""
Breathing Store Contract Tests
==============================

Every test runs against both the SQL store and the local JSON store.
"""

import pytest
from datetime import datetime, timedelta

from app.enums import BreathingMode, ComfortRating, DifficultyLevel
from app.stores import AnalyticsRecord, MetricInput, ParameterRecord

USER_ID = "local"
OTHER_USER_ID = "someone-else"
NOW = datetime(2026, 10, 19, 12, 0, 0)


def _params(mode=BreathingMode.DAILY, inhale=4.0, exhale=6.0, pause=0.0, total=360):
    return ParameterRecord(
        user_id=USER_ID,
        mode=mode,
        inhale_seconds=inhale,
        exhale_seconds=exhale,
        pause_seconds=pause,
        total_duration_seconds=total,
    )


class TestParameters:
    """Parameter rows per (user, mode)."""

    @pytest.mark.asyncio
    async def test_missing_parameters_return_none(self, store):
        assert await store.get_parameters(USER_ID, BreathingMode.DAILY) is None

    @pytest.mark.asyncio
    async def test_create_then_get(self, store):
        await store.create_parameters(_params())
        params = await store.get_parameters(USER_ID, BreathingMode.DAILY)

        assert params.timings() == (4.0, 6.0, 0.0)
        assert params.total_duration_seconds == 360
        assert await store.get_parameters(USER_ID, BreathingMode.RESET) is None

    @pytest.mark.asyncio
    async def test_create_twice_keeps_first_row(self, store):
        await store.create_parameters(_params(inhale=4.0))
        second = await store.create_parameters(_params(inhale=5.5))

        assert second.inhale_seconds == 4.0

    @pytest.mark.asyncio
    async def test_update_rewrites_timings(self, store):
        created = await store.create_parameters(_params())
        created.inhale_seconds = 4.3
        created.exhale_seconds = 6.3
        await store.update_parameters(created)

        params = await store.get_parameters(USER_ID, BreathingMode.DAILY)
        assert params.timings() == (4.3, 6.3, 0.0)

    @pytest.mark.asyncio
    async def test_update_rewrites_total_duration(self, store):
        created = await store.create_parameters(_params())
        created.total_duration_seconds = 500

        returned = await store.update_parameters(created)

        assert returned.total_duration_seconds == 500
        params = await store.get_parameters(USER_ID, BreathingMode.DAILY)
        assert params.total_duration_seconds == 500


class TestSessions:
    """Session log, flags and ownership."""

    @pytest.mark.asyncio
    async def test_session_ids_increase(self, store):
        first = await store.create_session(USER_ID, BreathingMode.DAILY, 360, NOW)
        second = await store.create_session(USER_ID, BreathingMode.RESET, 60, NOW + timedelta(minutes=1))

        assert second.id > first.id
        assert first.completed is False
        assert first.comfort_rating is None

    @pytest.mark.asyncio
    async def test_get_session_checks_owner(self, store):
        session = await store.create_session(USER_ID, BreathingMode.DAILY, 360, NOW)

        assert (await store.get_session(USER_ID, session.id)).duration_seconds == 360
        assert await store.get_session(OTHER_USER_ID, session.id) is None
        assert await store.get_session(USER_ID, session.id + 100) is None

    @pytest.mark.asyncio
    async def test_update_unknown_session_returns_none(self, store):
        result = await store.update_session(USER_ID, 12345, now=NOW, completed=True)
        assert result is None

    @pytest.mark.asyncio
    async def test_update_sets_flags_and_appends_metric(self, store):
        session = await store.create_session(USER_ID, BreathingMode.DAILY, 360, NOW)

        updated = await store.update_session(
            USER_ID,
            session.id,
            now=NOW,
            completed=True,
            comfort_rating=ComfortRating.LIGHTER,
            metric=MetricInput(max_breath_hold_seconds=30, average_inhale_depth=0.8),
        )

        assert updated.completed is True
        assert updated.comfort_rating == ComfortRating.LIGHTER

        metrics = await store.list_recent_metrics(USER_ID, 10)
        assert len(metrics) == 1
        assert metrics[0].session_id == session.id
        assert metrics[0].average_inhale_depth == 0.8
        assert metrics[0].average_exhale_control is None

    @pytest.mark.asyncio
    async def test_completed_is_never_cleared(self, store):
        session = await store.create_session(USER_ID, BreathingMode.DAILY, 360, NOW)
        await store.update_session(USER_ID, session.id, now=NOW, completed=True)
        updated = await store.update_session(USER_ID, session.id, now=NOW, completed=False)

        assert updated.completed is True

    @pytest.mark.asyncio
    async def test_rerating_overwrites(self, store):
        session = await store.create_session(USER_ID, BreathingMode.DAILY, 360, NOW)
        await store.update_session(USER_ID, session.id, now=NOW, comfort_rating=ComfortRating.HEAVY)
        updated = await store.update_session(USER_ID, session.id, now=NOW, comfort_rating=ComfortRating.NEUTRAL)

        assert updated.comfort_rating == ComfortRating.NEUTRAL
        assert updated.completed is False

    @pytest.mark.asyncio
    async def test_listings_are_newest_first_and_filtered(self, store):
        daily_old = await store.create_session(USER_ID, BreathingMode.DAILY, 360, NOW - timedelta(days=2))
        reset = await store.create_session(USER_ID, BreathingMode.RESET, 60, NOW - timedelta(days=1))
        daily_new = await store.create_session(USER_ID, BreathingMode.DAILY, 300, NOW)

        await store.update_session(USER_ID, daily_old.id, now=NOW, comfort_rating=ComfortRating.LIGHTER, completed=True)
        await store.update_session(USER_ID, reset.id, now=NOW, comfort_rating=ComfortRating.HEAVY)
        await store.update_session(USER_ID, daily_new.id, now=NOW, completed=True)

        assert [s.id for s in await store.list_sessions(USER_ID, 50)] == [daily_new.id, reset.id, daily_old.id]
        assert [s.id for s in await store.list_sessions(USER_ID, 1)] == [daily_new.id]

        rated_daily = await store.list_rated_sessions(USER_ID, BreathingMode.DAILY, 5)
        assert [s.id for s in rated_daily] == [daily_old.id]

        completed = await store.list_completed_sessions(USER_ID)
        assert [s.id for s in completed] == [daily_new.id, daily_old.id]

        assert await store.list_sessions(OTHER_USER_ID, 50) == []


class TestAnalytics:
    """Per-user analytics record."""

    @pytest.mark.asyncio
    async def test_fresh_user_has_no_record(self, store):
        assert await store.get_analytics(USER_ID) is None

    @pytest.mark.asyncio
    async def test_save_and_read_back(self, store):
        await store.save_analytics(AnalyticsRecord(
            user_id=USER_ID,
            baseline_lung_capacity=42.0,
            current_lung_capacity=50.0,
            capacity_improvement_percent=19.05,
            total_training_minutes=12,
            consecutive_days_streak=3,
            best_streak=5,
            difficulty_level=DifficultyLevel.INTERMEDIATE,
            last_session_date=NOW.date(),
        ))

        analytics = await store.get_analytics(USER_ID)
        assert analytics.current_lung_capacity == 50.0
        assert analytics.best_streak == 5
        assert analytics.difficulty_level == DifficultyLevel.INTERMEDIATE
        assert analytics.last_session_date == NOW.date()

    @pytest.mark.asyncio
    async def test_baseline_is_written_once(self, store):
        await store.save_analytics(AnalyticsRecord(user_id=USER_ID))
        await store.save_analytics(AnalyticsRecord(user_id=USER_ID, baseline_lung_capacity=40.0, current_lung_capacity=40.0))
        await store.save_analytics(AnalyticsRecord(user_id=USER_ID, baseline_lung_capacity=70.0, current_lung_capacity=70.0))

        analytics = await store.get_analytics(USER_ID)
        assert analytics.baseline_lung_capacity == 40.0
        assert analytics.current_lung_capacity == 70.0
