"""
Tests for recovery scoring, substitution and return-to-running protocols.
"""

from dataclasses import replace
from datetime import timedelta

import pytest

from conftest import PLAN_START, make_completed
from runplan.core.exceptions import InvalidModificationError
from runplan.services.adaptation.models import RecoveryMetrics, RecoveryState
from runplan.services.adaptation.recovery import (
    assess_recovery_status,
    calculate_overall_recovery,
    classify_recovery,
    create_recovery_protocol,
    create_smart_substitution,
    recovery_score_for,
    substitute_type,
)
from runplan.services.plan_framework.constants import WorkoutType


def check_in(**kwargs):
    return RecoveryMetrics(date=PLAN_START, **kwargs)


class TestRecoveryScore:
    """Test the check-in recovery score."""

    def test_neutral(self):
        """An empty check-in scores the base 70."""
        assert calculate_overall_recovery(check_in()) == 70

    @pytest.mark.parametrize("kwargs,expected", [
        ({"sleep_quality": 8}, 82),
        ({"muscle_soreness": 9}, 54),
        ({"energy_level": 3}, 62),
        ({"hrv": 65}, 80),
        ({"hrv": 55}, 75),
        ({"hrv": 30}, 60),
        ({"resting_hr": 45}, 80),
        ({"resting_hr": 55}, 75),
        ({"resting_hr": 65}, 70),
        ({"resting_hr": 75}, 60),
    ])
    def test_components(self, kwargs, expected):
        """Each input moves the score by its own rule."""
        assert calculate_overall_recovery(check_in(**kwargs)) == expected

    def test_clamped(self):
        """Scores stay within 0-100."""
        great = check_in(sleep_quality=10, energy_level=10, muscle_soreness=1, hrv=80, resting_hr=40)
        awful = check_in(sleep_quality=1, energy_level=1, muscle_soreness=10, hrv=20, resting_hr=90)
        assert calculate_overall_recovery(great) == 100
        assert calculate_overall_recovery(awful) == 0

    def test_reported_score_wins(self):
        """A reported score overrides the computed one."""
        assert recovery_score_for(check_in(sleep_quality=10, recovery_score=42)) == 42
        assert recovery_score_for(None) is None

    @pytest.mark.parametrize("score,state", [
        (80, RecoveryState.RECOVERED),
        (79, RecoveryState.ADEQUATE),
        (60, RecoveryState.ADEQUATE),
        (59, RecoveryState.FATIGUED),
        (40, RecoveryState.FATIGUED),
        (39, RecoveryState.OVERREACHED),
    ])
    def test_classify(self, score, state):
        """States start at 80, 60 and 40."""
        assert classify_recovery(score) == state


class TestRecoveryStatus:
    """Test recovery status and recommendations."""

    def test_poor_check_in(self):
        """A poor check-in is overreached with targeted advice."""
        status = assess_recovery_status([], check_in(sleep_quality=3, muscle_soreness=9, hrv=30))
        assert status.score == 36
        assert status.status == RecoveryState.OVERREACHED
        assert status.recommendations[0] == "Take 2-3 days of complete rest"
        assert "Improve sleep hygiene - aim for consistent bedtime" in status.recommendations
        assert "Consider foam rolling and dynamic stretching" in status.recommendations
        assert "HRV is low - reduce stress and training load" in status.recommendations

    def test_recovered_has_no_advice(self):
        """A good check-in needs no recommendations."""
        status = assess_recovery_status([], check_in(sleep_quality=8, energy_level=8))
        assert status.status == RecoveryState.RECOVERED
        assert status.recommendations == []

    def test_history_fallback(self):
        """Without a check-in the score comes from recent hard sessions."""
        now = PLAN_START + timedelta(days=7)
        completed = [make_completed(now - timedelta(days=d), effort=8) for d in range(3)]
        status = assess_recovery_status(completed, now=now)
        assert status.score == 55
        assert status.status == RecoveryState.FATIGUED


class TestSubstitution:
    """Test smart substitution."""

    def test_substitute_type(self, config_service):
        """Replacement types come from the rules."""
        assert substitute_type(WorkoutType.VO2MAX, "fatigue", config_service) == WorkoutType.TEMPO
        assert substitute_type(WorkoutType.LONG_RUN, "injury", config_service) == WorkoutType.CROSS_TRAINING
        assert substitute_type(WorkoutType.TEMPO, "boredom", config_service) == WorkoutType.EASY

    def test_keeps_id_date_and_distance(self, marathon_plan, config_service):
        """A substituted tempo run becomes an easy run on the same day."""
        tempo = marathon_plan.get_workout("workout-1-4")
        assert tempo.type == WorkoutType.TEMPO

        substituted = create_smart_substitution(tempo, "fatigue", config_service)
        assert substituted.id == tempo.id
        assert substituted.date == tempo.date
        assert substituted.type == WorkoutType.EASY
        assert substituted.workout.type == WorkoutType.EASY
        assert substituted.name == "Easy Aerobic Run (Substituted due to fatigue)"
        assert substituted.target_metrics.distance == tempo.target_metrics.distance
        assert substituted.target_metrics.tss == substituted.workout.estimated_tss

    def test_long_template_scaled_to_short_session(self, marathon_plan, config_service):
        """A 65-minute template shrinks to fit a 30-minute slot."""
        intervals = marathon_plan.get_workout("workout-6-2")
        assert intervals.type == WorkoutType.VO2MAX
        short = replace(intervals, target_metrics=replace(intervals.target_metrics, duration=30))

        substituted = create_smart_substitution(short, "weather", config_service)
        assert substituted.type == WorkoutType.THRESHOLD
        assert substituted.target_metrics.duration == pytest.approx(30, abs=2)

    def test_unknown_reason(self, marathon_plan):
        """Unknown reasons are rejected."""
        with pytest.raises(InvalidModificationError) as excinfo:
            create_smart_substitution(marathon_plan.workouts[0], "boredom")
        assert excinfo.value.error_code == "INVALID_MODIFICATION_REASON"


class TestRecoveryProtocols:
    """Test staged return protocols."""

    def test_moderate_knee_injury(self, config_service):
        """A moderate knee injury gets lower-leg advice and medical clearance."""
        protocol = create_recovery_protocol("injury", "moderate", "Left knee", config_service)
        assert [p.name for p in protocol.phases] == ["Rest Phase", "Return to Running", "Base Rebuild"]
        assert protocol.total_days == 28
        assert protocol.phases[1].workouts == [WorkoutType.RECOVERY, WorkoutType.EASY]
        assert "Consider pool running or cycling for cardio maintenance" in protocol.guidelines
        assert "Seek professional medical evaluation" not in protocol.guidelines
        assert "Medical clearance obtained" in protocol.return_criteria
        assert protocol.return_criteria[-1] == "Sleep quality normalized"

    def test_mild_injury(self, config_service):
        """Mild injuries need no medical clearance."""
        protocol = create_recovery_protocol("injury", "mild", "hamstring", config_service)
        assert protocol.total_days == 14
        assert "Medical clearance obtained" not in protocol.return_criteria
        assert "Consider pool running or cycling for cardio maintenance" not in protocol.guidelines

    def test_severe_injury(self, config_service):
        """Severe injuries start with a medical phase."""
        protocol = create_recovery_protocol("injury", "severe", config=config_service)
        assert protocol.phases[0].workouts == []
        assert "Seek professional medical evaluation" in protocol.guidelines

    def test_illness(self, config_service):
        """Severe illness follows the moderate illness protocol."""
        moderate = create_recovery_protocol("illness", "moderate", config=config_service)
        severe = create_recovery_protocol("illness", "severe", config=config_service)
        assert [p.name for p in severe.phases] == [p.name for p in moderate.phases]
        assert "Wait 24-48 hours after last fever before any exercise" in severe.guidelines
        assert "Fever-free for 24-48 hours" in severe.return_criteria

    @pytest.mark.parametrize("condition,severity,code", [
        ("sprain", "mild", "INVALID_MODIFICATION_CONDITION"),
        ("injury", "catastrophic", "INVALID_MODIFICATION_SEVERITY"),
    ])
    def test_invalid_input(self, condition, severity, code):
        """Unknown conditions and severities are rejected."""
        with pytest.raises(InvalidModificationError) as excinfo:
            create_recovery_protocol(condition, severity)
        assert excinfo.value.error_code == code
