"""
Tests for ModificationApplier.
"""

from datetime import timedelta

import pytest

from conftest import PLAN_START
from runplan.core.exceptions import InvalidModificationError
from runplan.services.adaptation.modification_applier import ModificationApplier
from runplan.services.adaptation.models import (
    ModificationType,
    PlanModification,
    Priority,
    SuggestedChanges,
)
from runplan.services.plan_framework.constants import WorkoutType

NOW = PLAN_START + timedelta(days=3)


@pytest.fixture
def applier():
    return ModificationApplier()


def modification(kind, priority=Priority.MEDIUM, workout_ids=None, workout_types=None, **changes):
    return PlanModification(
        type=kind,
        reason="test",
        priority=priority,
        suggested_changes=SuggestedChanges(**changes),
        workout_ids=workout_ids or [],
        workout_types=workout_types or [],
    )


class TestCopyOnWrite:
    """Test that applying never changes the past or the input."""

    def test_input_plan_unchanged(self, applier, marathon_plan):
        """The original plan is left as it was."""
        before = marathon_plan.to_dict()
        applier.apply(marathon_plan, [modification(ModificationType.REDUCE_VOLUME, volume_reduction=50)], now=NOW)
        assert marathon_plan.to_dict() == before

    def test_past_workouts_frozen(self, applier, marathon_plan):
        """Workouts on or before today keep every field."""
        revised = applier.apply(
            marathon_plan, [modification(ModificationType.REDUCE_VOLUME, volume_reduction=50)], now=NOW,
        )
        for before, after in zip(marathon_plan.workouts, revised.workouts):
            if before.date <= NOW:
                assert after is before
            else:
                assert after.target_metrics.distance == round(before.target_metrics.distance * 0.5, 1)

    def test_no_modifications(self, applier, marathon_plan):
        """An empty list gives an equivalent plan."""
        revised = applier.apply(marathon_plan, [], now=NOW)
        assert revised.to_dict() == marathon_plan.to_dict()


class TestRebuild:
    """Test recomputed totals."""

    def test_week_totals(self, applier, marathon_plan):
        """Weekly totals follow the revised workouts."""
        revised = applier.apply(
            marathon_plan, [modification(ModificationType.REDUCE_VOLUME, volume_reduction=30)], now=NOW,
        )
        for micro in revised.microcycles:
            assert micro.total_load == sum(w.workout.estimated_tss for w in micro.workouts)
            assert micro.total_distance == round(sum(w.target_metrics.distance for w in micro.workouts), 1)
        assert revised.summary.total_distance < marathon_plan.summary.total_distance

    def test_residual_weeks_kept(self, applier, marathon_plan):
        """The summary keeps the undistributed weeks."""
        revised = applier.apply(
            marathon_plan, [modification(ModificationType.REDUCE_VOLUME, volume_reduction=30)], now=NOW,
        )
        assert revised.summary.residual_weeks == marathon_plan.summary.residual_weeks == 2

    def test_untouched_weeks_reused(self, applier, marathon_plan):
        """Only weeks with a changed workout are rebuilt."""
        change = modification(ModificationType.REDUCE_VOLUME, workout_ids=["workout-1-4"], volume_reduction=50)
        revised = applier.apply(marathon_plan, [change], now=NOW)
        original = marathon_plan.microcycles
        assert revised.microcycles[0] is not original[0]
        for before, after in zip(original[1:], revised.microcycles[1:]):
            assert after is before


class TestValidation:
    """Test rejected values."""

    @pytest.mark.parametrize("kind,changes,code", [
        (ModificationType.REDUCE_VOLUME, {"volume_reduction": 150}, "INVALID_MODIFICATION_VOLUME_REDUCTION"),
        (ModificationType.REDUCE_INTENSITY, {"intensity_reduction": -5}, "INVALID_MODIFICATION_INTENSITY_REDUCTION"),
        (ModificationType.ADD_RECOVERY, {"additional_recovery_days": -1}, "INVALID_MODIFICATION_ADDITIONAL_RECOVERY_DAYS"),
        (ModificationType.DELAY_PROGRESSION, {"delay_days": -7}, "INVALID_MODIFICATION_DELAY_DAYS"),
    ])
    def test_out_of_range(self, applier, marathon_plan, kind, changes, code):
        """Percentages must be 0-100 and counts non-negative."""
        with pytest.raises(InvalidModificationError) as excinfo:
            applier.apply(marathon_plan, [modification(kind, **changes)], now=NOW)
        assert excinfo.value.error_code == code


class TestOperations:
    """Test each modification type."""

    def test_reduce_volume_by_id(self, applier, marathon_plan):
        """Named workouts are the only ones reduced."""
        change = modification(ModificationType.REDUCE_VOLUME, workout_ids=["workout-1-4"], volume_reduction=50)
        revised = applier.apply(marathon_plan, [change], now=NOW)
        for before, after in zip(marathon_plan.workouts, revised.workouts):
            if before.id == "workout-1-4":
                assert after.target_metrics.duration == round(before.target_metrics.duration * 0.5)
                assert after.target_metrics.tss == after.workout.estimated_tss
            else:
                assert after is before

    def test_reduce_volume_by_type(self, applier, marathon_plan):
        """Typed modifications only touch that type."""
        change = modification(ModificationType.REDUCE_VOLUME, workout_types=[WorkoutType.LONG_RUN])
        revised = applier.apply(marathon_plan, [change], now=NOW)
        changed = [a for b, a in zip(marathon_plan.workouts, revised.workouts) if a is not b]
        assert changed
        assert {w.type for w in changed} == {WorkoutType.LONG_RUN}

    def test_reduce_intensity_hard_only(self, applier, marathon_plan):
        """Without names only hard workouts get easier."""
        revised = applier.apply(marathon_plan, [modification(ModificationType.REDUCE_INTENSITY)], now=NOW)
        for before, after in zip(marathon_plan.workouts, revised.workouts):
            if before.date > NOW and before.target_metrics.intensity > 80:
                assert after.target_metrics.intensity == round(before.target_metrics.intensity * 0.8)
                assert after.workout.estimated_tss <= before.workout.estimated_tss
            else:
                assert after is before

    def test_reduce_intensity_named_needs_hard_segment(self, applier, marathon_plan):
        """Named workouts with nothing above intensity 80 are left as planned."""
        change = modification(ModificationType.REDUCE_INTENSITY, workout_types=[WorkoutType.EASY, WorkoutType.TEMPO])
        revised = applier.apply(marathon_plan, [change], now=NOW)
        changed = []
        for before, after in zip(marathon_plan.workouts, revised.workouts):
            hard = any(s.intensity > 80 for s in before.workout.segments)
            if before.date > NOW and before.type == WorkoutType.TEMPO and hard:
                assert after.target_metrics.intensity < before.target_metrics.intensity
                assert after.target_metrics.tss == after.workout.estimated_tss
                changed.append(after)
            else:
                assert after is before
        assert changed

    def test_add_recovery(self, applier, marathon_plan):
        """The earliest hard future workouts become recovery runs."""
        expected = [
            w.id for w in sorted(marathon_plan.workouts, key=lambda w: w.date)
            if w.date > NOW and w.target_metrics.intensity > 75
        ][:2]
        revised = applier.apply(
            marathon_plan, [modification(ModificationType.ADD_RECOVERY, additional_recovery_days=2)], now=NOW,
        )
        converted = [w for w in revised.workouts if w.name == "Recovery Run (Modified)"]
        assert sorted(w.id for w in converted) == sorted(expected)
        for workout in converted:
            assert workout.type == WorkoutType.RECOVERY
            assert workout.target_metrics.duration == 30
            assert workout.target_metrics.intensity == 50
            assert workout.target_metrics.distance <= marathon_plan.get_workout(workout.id).target_metrics.distance

    def test_substitute(self, applier, marathon_plan):
        """Targeted future workouts change type."""
        change = modification(
            ModificationType.SUBSTITUTE_WORKOUT,
            workout_types=[WorkoutType.TEMPO],
            substitute_workout_type=WorkoutType.EASY,
        )
        revised = applier.apply(marathon_plan, [change], now=NOW)
        future = [w for w in revised.workouts if w.date > NOW]
        assert all(w.type != WorkoutType.TEMPO for w in future)
        assert all(w.workout.type == w.type for w in revised.workouts)

    def test_delay(self, applier, marathon_plan):
        """Delayed workouts move later but stay in their week."""
        now = PLAN_START - timedelta(days=1)
        change = modification(ModificationType.DELAY_PROGRESSION, delay_days=7)
        revised = applier.apply(marathon_plan, [change], now=now)
        for before, after in zip(marathon_plan.workouts, revised.workouts):
            assert after.date == before.date + timedelta(days=7)
            assert after.id == before.id
        for before, after in zip(marathon_plan.microcycles, revised.microcycles):
            assert [w.id for w in after.workouts] == [w.id for w in before.workouts]

    def test_severe_injury_rests_a_week(self, applier, marathon_plan):
        """A full volume cut removes the next seven days of training."""
        now = PLAN_START + timedelta(days=1)
        change = modification(ModificationType.INJURY_PROTOCOL, priority=Priority.HIGH, volume_reduction=100)
        revised = applier.apply(marathon_plan, [change], now=now)
        horizon = now + timedelta(days=7)
        removed = [w for w in marathon_plan.workouts if now < w.date <= horizon]
        assert removed
        assert len(revised.workouts) == len(marathon_plan.workouts) - len(removed)
        assert not any(now < w.date <= horizon for w in revised.workouts)
        assert any(w.date <= now for w in revised.workouts)

    def test_minor_injury_converts_workouts(self, applier, marathon_plan):
        """A partial cut turns up to a week of hard sessions into recovery runs."""
        change = modification(ModificationType.INJURY_PROTOCOL, volume_reduction=50)
        revised = applier.apply(marathon_plan, [change], now=NOW)
        converted = [w for w in revised.workouts if w.name == "Recovery Run (Modified)"]
        assert len(converted) == 7
        assert len(revised.workouts) == len(marathon_plan.workouts)

    def test_priority_order(self, applier, marathon_plan):
        """High priority runs first, so later reductions apply to its result."""
        modifications = [
            modification(ModificationType.REDUCE_VOLUME, priority=Priority.LOW, volume_reduction=50),
            modification(ModificationType.ADD_RECOVERY, priority=Priority.HIGH, additional_recovery_days=1),
        ]
        revised = applier.apply(marathon_plan, modifications, now=NOW)
        converted = [w for w in revised.workouts if w.name == "Recovery Run (Modified)"]
        assert len(converted) == 1
        assert converted[0].target_metrics.duration == 15
