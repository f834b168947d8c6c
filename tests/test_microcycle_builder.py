"""
Tests for weekly volume, distance allocation and week scheduling.
"""

from datetime import timedelta

import pytest

from conftest import PLAN_START
from runplan.services.plan_framework.constants import (
    RECOVERY_WEEK_PATTERN,
    Phase,
    WorkoutType,
)
from runplan.services.plan_framework.microcycle_builder import MicrocycleBuilder, fit_to_time
from runplan.services.plan_framework.models import TrainingPreferences
from runplan.services.plan_framework.phase_scheduler import BlockSpec
from runplan.services.plan_framework.workout_library import get_template


@pytest.fixture
def builder(config_service):
    return MicrocycleBuilder(config=config_service)


@pytest.fixture
def base_spec():
    return BlockSpec(index=0, phase=Phase.BASE, start_date=PLAN_START, weeks=5, first_week_number=1)


class TestVolume:
    """Test weekly volume rules."""

    @pytest.mark.parametrize("week,expected", [(0, False), (2, False), (3, True), (4, False), (7, True)])
    def test_recovery_weeks(self, builder, week, expected):
        """Every fourth week of a block is a recovery week."""
        assert builder.is_recovery_week(week) is expected

    def test_progression_factors(self, builder):
        """Each phase has its own progression curve."""
        assert builder.progression_factor(Phase.BASE, 0, 0.05) == pytest.approx(1.0)
        assert builder.progression_factor(Phase.BUILD, 2, 0.05) == pytest.approx(1.28)
        assert builder.progression_factor(Phase.PEAK, 1, 0.05) == pytest.approx(1.325)
        assert builder.progression_factor(Phase.RECOVERY, 3, 0.05) == pytest.approx(0.6)

    def test_taper_factor_floor(self, builder):
        """Taper volume drops 20% a week but never below 30%."""
        assert builder.progression_factor(Phase.TAPER, 0, 0.05) == pytest.approx(1.0)
        assert builder.progression_factor(Phase.TAPER, 2, 0.05) == pytest.approx(0.6)
        assert builder.progression_factor(Phase.TAPER, 5, 0.05) == pytest.approx(0.3)

    def test_volume_capped_against_previous_week(self, builder):
        """Growth is capped at 20% over the previous non-recovery week."""
        assert builder.weekly_volume(30, 1.5, previous_volume=30) == pytest.approx(36)
        assert builder.weekly_volume(30, 1.1, previous_volume=30) == pytest.approx(33)

    def test_recovery_week_volume(self, builder):
        """Recovery weeks run at 70% of the capped volume."""
        assert builder.weekly_volume(30, 1.5, previous_volume=30, is_recovery=True) == pytest.approx(25.2)

    def test_beginner_progression_rate(self, builder, beginner_fitness):
        """Training age of one year progresses at the beginner rate."""
        assert builder.progression_rate(beginner_fitness) == pytest.approx(0.05)


class TestDistance:
    """Test per-workout distance allocation."""

    def test_estimate_from_threshold_pace(self, builder):
        """An hour at 65% covers about 8.9 km at a 5:00 threshold."""
        assert builder.estimate_distance(get_template("EASY_AEROBIC")) == pytest.approx(60 / (5.0 * 88 / 65))

    def test_even_share_limits_distance(self, builder):
        """A workout never takes more than an even share of what is left."""
        assert builder.allocate_distance(get_template("EASY_AEROBIC"), 30, 4) == pytest.approx(7.5)

    def test_duration_limits_distance(self, builder):
        """A workout never covers more than its duration allows."""
        assert builder.allocate_distance(get_template("EASY_AEROBIC"), 100, 2) == pytest.approx(8.9)

    def test_never_exceeds_remaining(self, builder):
        """Rounding never pushes past the remaining volume."""
        for remaining in (0.04, 0.25, 0.96, 3.33):
            assert builder.allocate_distance(get_template("LONG_RUN"), remaining, 1) <= remaining

    def test_nothing_left(self, builder):
        """No volume or no workouts left means zero distance."""
        assert builder.allocate_distance(get_template("EASY_AEROBIC"), 0, 3) == 0.0
        assert builder.allocate_distance(get_template("EASY_AEROBIC"), 10, 0) == 0.0


class TestBuildBlock:
    """Test a full block."""

    def test_weeks_and_recovery(self, builder, base_spec, beginner_fitness):
        """A five-week base block has its recovery week fourth."""
        block, _ = builder.build_block(base_spec, beginner_fitness)
        assert block.id == "block-1"
        assert [m.week_number for m in block.microcycles] == [1, 2, 3, 4, 5]
        assert [m.is_recovery_week for m in block.microcycles] == [False, False, False, True, False]
        assert block.microcycles[3].pattern == RECOVERY_WEEK_PATTERN

    def test_planned_volumes(self, builder, base_spec, beginner_fitness):
        """Volume grows at 5% a week from the athlete's mileage."""
        block, last_volume = builder.build_block(base_spec, beginner_fitness)
        volumes = [m.planned_volume for m in block.microcycles]
        assert volumes[:3] == [pytest.approx(30), pytest.approx(31.5), pytest.approx(33)]
        assert volumes[3] == pytest.approx(34.5 * 0.7, abs=0.06)
        assert volumes[4] == pytest.approx(36)
        assert last_volume == pytest.approx(36)

    def test_cap_carries_across_blocks(self, builder, beginner_fitness):
        """A block's first week is capped by the previous block."""
        spec = BlockSpec(index=1, phase=Phase.BUILD, start_date=PLAN_START, weeks=2, first_week_number=6)
        block, _ = builder.build_block(spec, beginner_fitness, previous_volume=20)
        assert block.microcycles[0].planned_volume == pytest.approx(24)

    def test_workouts_inside_their_week(self, builder, base_spec, beginner_fitness):
        """Every workout is dated within its own week."""
        block, _ = builder.build_block(base_spec, beginner_fitness)
        for index, microcycle in enumerate(block.microcycles):
            week_start = PLAN_START + timedelta(weeks=index)
            assert len(microcycle.workouts) == 6
            for workout in microcycle.workouts:
                assert week_start <= workout.date < week_start + timedelta(days=7)

    def test_distance_within_volume(self, builder, base_spec, beginner_fitness):
        """A week never overshoots its planned volume."""
        block, _ = builder.build_block(base_spec, beginner_fitness)
        for microcycle in block.microcycles:
            assert microcycle.total_distance <= microcycle.planned_volume + 0.05

    def test_recovery_week_is_easy(self, builder, base_spec, beginner_fitness):
        """Recovery weeks hold only easy and recovery runs."""
        block, _ = builder.build_block(base_spec, beginner_fitness)
        types = {w.type for w in block.microcycles[3].workouts}
        assert types <= {WorkoutType.EASY, WorkoutType.RECOVERY}
        assert block.microcycles[3].recovery_ratio == pytest.approx(1.0)

    def test_workout_ids(self, builder, base_spec, beginner_fitness):
        """Ids combine the week number and pattern position."""
        block, _ = builder.build_block(base_spec, beginner_fitness)
        ids = [w.id for w in block.microcycles[0].workouts]
        assert ids[0] == "workout-1-1"
        assert len(set(w.id for w in block.workouts)) == len(block.workouts)

    def test_available_days(self, builder, base_spec, beginner_fitness):
        """Workouts land only on the athlete's days."""
        preferences = TrainingPreferences(available_days=[1, 3])
        block, _ = builder.build_block(base_spec, beginner_fitness, preferences=preferences)
        for index, microcycle in enumerate(block.microcycles):
            week_start = PLAN_START + timedelta(weeks=index)
            assert {(w.date - week_start).days for w in microcycle.workouts} <= {1, 3}

    def test_totals_match_workouts(self, builder, base_spec, beginner_fitness):
        """Week totals are sums over the week's workouts."""
        block, _ = builder.build_block(base_spec, beginner_fitness)
        for microcycle in block.microcycles:
            assert microcycle.total_load == sum(w.workout.estimated_tss for w in microcycle.workouts)


class TestTimeLimits:
    """Test per-day time limits."""

    def test_fit_to_time(self):
        """Segments and TSS shrink in proportion."""
        shortened = fit_to_time(get_template("EASY_AEROBIC"), 45)
        assert shortened.total_duration == 45
        assert shortened.estimated_tss == 38

    def test_fit_keeps_structure(self):
        """Every segment of a structured workout shrinks."""
        tempo = get_template("TEMPO_CONTINUOUS")
        shortened = fit_to_time(tempo, 40)
        assert len(shortened.segments) == len(tempo.segments)
        assert shortened.total_duration <= 40
        assert shortened.total_duration == pytest.approx(40, abs=0.3)
        assert [s.intensity for s in shortened.segments] == [s.intensity for s in tempo.segments]

    def test_short_workout_unchanged(self):
        """Workouts within the limit are returned as they are."""
        easy = get_template("EASY_AEROBIC")
        assert fit_to_time(easy, 90) is easy

    def test_every_day_limited(self, builder, base_spec, beginner_fitness):
        """No workout runs past its day's limit."""
        unlimited, _ = builder.build_block(base_spec, beginner_fitness)
        assert any(w.target_metrics.duration > 45 for w in unlimited.workouts)

        preferences = TrainingPreferences(time_constraints={0: 45, 2: 45, 4: 45, 6: 45})
        block, _ = builder.build_block(base_spec, beginner_fitness, preferences=preferences)
        for workout in block.workouts:
            assert workout.target_metrics.duration <= 45
            assert workout.workout.total_duration <= 45
            assert workout.target_metrics.tss == workout.workout.estimated_tss

    def test_only_limited_day_changes(self, builder, base_spec, beginner_fitness):
        """Days without a limit keep their full workouts."""
        unlimited, _ = builder.build_block(base_spec, beginner_fitness)
        preferences = TrainingPreferences(time_constraints={6: 30})
        block, _ = builder.build_block(base_spec, beginner_fitness, preferences=preferences)

        for before, after in zip(unlimited.workouts, block.workouts):
            assert after.id == before.id
            if after.date.weekday() == 6:
                assert after.target_metrics.duration <= 30
                assert after.target_metrics.distance <= before.target_metrics.distance
            else:
                assert after.workout.total_duration == before.workout.total_duration

    def test_invalid_limits_ignored(self, builder, base_spec, beginner_fitness):
        """Non-positive limits and unknown days are not limits."""
        unlimited, _ = builder.build_block(base_spec, beginner_fitness)
        preferences = TrainingPreferences(time_constraints={0: 0, 2: -10, 9: 20})
        block, _ = builder.build_block(base_spec, beginner_fitness, preferences=preferences)
        assert [w.workout.total_duration for w in block.workouts] == [
            w.workout.total_duration for w in unlimited.workouts
        ]
