"""
Recovery Service

Recovery scoring from daily check-ins, recovery status with
recommendations, smart workout substitution and staged return-to-running
protocols after injury or illness.

Usage:
    from runplan.services.adaptation.recovery import (
        assess_recovery_status,
        create_recovery_protocol,
    )

    status = assess_recovery_status(completed, metrics, now=date.today())
    protocol = create_recovery_protocol("injury", "moderate", affected_area="left knee")
"""

import logging
from dataclasses import replace
from datetime import date
from typing import List, Optional, Sequence

from runplan.core.exceptions import InvalidModificationError
from runplan.services.fitness_model import calculate_recovery_score
from runplan.services.plan_framework.config import ConfigService
from runplan.services.plan_framework.constants import WORKOUT_NAMES, WorkoutType
from runplan.services.plan_framework.models import PlannedWorkout, TargetMetrics
from runplan.services.plan_framework.workout_library import get_template

from .constants import (
    HIGH_SORENESS_RECOMMENDATION,
    LOW_HRV_RECOMMENDATION,
    POOR_SLEEP_RECOMMENDATION,
    RECOVERY_BASE_SCORE,
    RECOVERY_SCALE_MIDPOINT,
    RECOVERY_SCALE_WEIGHT,
    RECOVERY_STATE_RECOMMENDATIONS,
    RECOVERY_STATES,
)
from .models import (
    CompletedWorkout,
    RecoveryMetrics,
    RecoveryPhase,
    RecoveryProtocol,
    RecoveryState,
    RecoveryStatus,
)

logger = logging.getLogger(__name__)

SUBSTITUTION_REASONS = ("fatigue", "injury", "illness", "time_constraint", "weather")
CONDITIONS = ("injury", "illness")
SEVERITIES = ("mild", "moderate", "severe")
LOWER_LEG_AREAS = ("knee", "ankle")

SUBSTITUTION_TEMPLATES = {
    WorkoutType.RECOVERY: "RECOVERY_JOG",
    WorkoutType.EASY: "EASY_AEROBIC",
    WorkoutType.STEADY: "EASY_AEROBIC",
    WorkoutType.TEMPO: "TEMPO_CONTINUOUS",
    WorkoutType.THRESHOLD: "LACTATE_THRESHOLD_2X20",
    WorkoutType.VO2MAX: "VO2MAX_4X4",
    WorkoutType.SPEED: "SPEED_200M_REPS",
    WorkoutType.HILL_REPEATS: "HILL_REPEATS_6X2",
    WorkoutType.FARTLEK: "FARTLEK_VARIED",
    WorkoutType.PROGRESSION: "PROGRESSION_3_STAGE",
    WorkoutType.LONG_RUN: "LONG_RUN",
    WorkoutType.RACE_PACE: "TEMPO_CONTINUOUS",
    WorkoutType.TIME_TRIAL: "THRESHOLD_PROGRESSION",
    WorkoutType.CROSS_TRAINING: "EASY_AEROBIC",
    WorkoutType.STRENGTH: "RECOVERY_JOG",
}

# Short target sessions get long templates scaled down
SHORT_SESSION_MINUTES = 45
LONG_TEMPLATE_MINUTES = 60

HRV_BANDS = ((60, 10), (50, 5))  # (above, points)
LOW_HRV = 40
RESTING_HR_BANDS = ((50, 10), (60, 5))  # (below, points)
HIGH_RESTING_HR = 70
POOR_SLEEP_QUALITY = 6
HIGH_SORENESS = 7


def calculate_overall_recovery(metrics: RecoveryMetrics) -> float:
    """
    Recovery score 0-100 from a daily check-in.

    Base 70. Sleep quality and energy add (x - 5) * 4, soreness subtracts
    it. HRV and resting heart rate add or subtract up to 10 each.
    """
    score = RECOVERY_BASE_SCORE

    if metrics.sleep_quality:
        score += (metrics.sleep_quality - RECOVERY_SCALE_MIDPOINT) * RECOVERY_SCALE_WEIGHT
    if metrics.muscle_soreness:
        score -= (metrics.muscle_soreness - RECOVERY_SCALE_MIDPOINT) * RECOVERY_SCALE_WEIGHT
    if metrics.energy_level:
        score += (metrics.energy_level - RECOVERY_SCALE_MIDPOINT) * RECOVERY_SCALE_WEIGHT

    if metrics.hrv:
        if metrics.hrv < LOW_HRV:
            score -= 10
        else:
            score += next((pts for above, pts in HRV_BANDS if metrics.hrv > above), 0)

    if metrics.resting_hr:
        if metrics.resting_hr > HIGH_RESTING_HR:
            score -= 10
        else:
            score += next((pts for below, pts in RESTING_HR_BANDS if metrics.resting_hr < below), 0)

    return max(0, min(100, score))


def recovery_score_for(metrics: Optional[RecoveryMetrics]) -> Optional[float]:
    """Reported score if set, else computed from the check-in; None without one."""
    if metrics is None:
        return None
    if metrics.recovery_score is not None:
        return metrics.recovery_score
    return calculate_overall_recovery(metrics)


def classify_recovery(score: float) -> RecoveryState:
    for minimum, state in RECOVERY_STATES:
        if score >= minimum:
            return state
    return RecoveryState.OVERREACHED


def assess_recovery_status(
    completed: Sequence[CompletedWorkout],
    metrics: Optional[RecoveryMetrics] = None,
    now: Optional[date] = None,
) -> RecoveryStatus:
    """
    Recovery status from training history and an optional check-in.

    With a check-in the score comes from it. Without one it falls back to
    the history-based score from the fitness model.
    """
    score = recovery_score_for(metrics)
    if score is None:
        score = calculate_recovery_score([w.to_run_record() for w in completed], now=now)

    status = classify_recovery(score)
    recommendations: List[str] = list(RECOVERY_STATE_RECOMMENDATIONS.get(status, []))

    if metrics is not None:
        if metrics.sleep_quality and metrics.sleep_quality < POOR_SLEEP_QUALITY:
            recommendations.append(POOR_SLEEP_RECOMMENDATION)
        if metrics.muscle_soreness and metrics.muscle_soreness > HIGH_SORENESS:
            recommendations.append(HIGH_SORENESS_RECOMMENDATION)
        if metrics.hrv and metrics.hrv < LOW_HRV:
            recommendations.append(LOW_HRV_RECOMMENDATION)

    return RecoveryStatus(score=score, status=status, recommendations=recommendations)


# ============ Substitution ============

def substitute_type(
    workout_type: WorkoutType,
    reason: str,
    config: Optional[ConfigService] = None,
) -> WorkoutType:
    """Replacement type for a reason; easy when no rule covers it."""
    config = config or ConfigService()
    replacement = config.get_substitution(reason, workout_type.value)
    if replacement is None:
        return WorkoutType.EASY
    try:
        return WorkoutType(replacement)
    except ValueError:
        logger.warning(f"Unknown substitution type '{replacement}' for {reason}; using easy")
        return WorkoutType.EASY


def create_smart_substitution(
    planned: PlannedWorkout,
    reason: str,
    config: Optional[ConfigService] = None,
) -> PlannedWorkout:
    """
    Swap a planned workout for one better suited to the athlete's state.

    The replacement keeps the date and id. Long templates are scaled down
    to fit short planned sessions.

    Raises:
        InvalidModificationError: Unknown substitution reason
    """
    if reason not in SUBSTITUTION_REASONS:
        raise InvalidModificationError(f"Unknown substitution reason: {reason}", field="reason")

    new_type = substitute_type(planned.type, reason, config)
    template = get_template(SUBSTITUTION_TEMPLATES[new_type])

    target_duration = planned.target_metrics.duration
    total = template.total_duration
    if target_duration < SHORT_SESSION_MINUTES and total > LONG_TEMPLATE_MINUTES:
        scale = target_duration / total
        template = replace(
            template,
            segments=[replace(s, duration=round(s.duration * scale)) for s in template.segments],
        )

    workout = replace(template, type=new_type)
    logger.info(f"Substituted {planned.type.value} with {new_type.value} on {planned.date} ({reason})")

    return replace(
        planned,
        type=new_type,
        name=f"{WORKOUT_NAMES[new_type]} (Substituted due to {reason})",
        description=f"Original {planned.type.value} workout modified due to {reason}",
        workout=workout,
        target_metrics=TargetMetrics(
            duration=workout.total_duration,
            distance=planned.target_metrics.distance,
            tss=workout.estimated_tss,
            load=workout.estimated_tss,
            intensity=round(workout.mean_intensity),
        ),
    )


# ============ Protocols ============

def create_recovery_protocol(
    condition: str,
    severity: str,
    affected_area: Optional[str] = None,
    config: Optional[ConfigService] = None,
) -> RecoveryProtocol:
    """
    Staged return plan for an injury or illness.

    Raises:
        InvalidModificationError: Unknown condition or severity
    """
    if condition not in CONDITIONS:
        raise InvalidModificationError(f"Unknown condition: {condition}", field="condition")
    if severity not in SEVERITIES:
        raise InvalidModificationError(f"Unknown severity: {severity}", field="severity")

    config = config or ConfigService()
    phases = [_phase(p) for p in config.get_recovery_protocol(condition, severity)]

    guidelines = list(config.get(f"adaptation_rules.guidelines.{condition}.always", []))
    criteria = list(config.get(f"adaptation_rules.return_criteria.{condition}.always", []))

    if condition == "injury":
        area = (affected_area or "").lower()
        if any(part in area for part in LOWER_LEG_AREAS):
            guidelines += config.get("adaptation_rules.guidelines.injury.lower_leg", [])
        if severity == "severe":
            guidelines += config.get("adaptation_rules.guidelines.injury.severe", [])
        if severity != "mild":
            criteria += config.get("adaptation_rules.return_criteria.injury.not_mild", [])
    elif severity != "mild":
        guidelines += config.get("adaptation_rules.guidelines.illness.not_mild", [])

    criteria += config.get("adaptation_rules.return_criteria.common", [])

    return RecoveryProtocol(
        condition=condition,
        severity=severity,
        phases=phases,
        guidelines=guidelines,
        return_criteria=criteria,
    )


def _phase(raw: dict) -> RecoveryPhase:
    return RecoveryPhase(
        name=raw["name"],
        duration=int(raw["duration"]),
        workouts=[WorkoutType(w) for w in raw.get("workouts", [])],
        volume_percent=raw.get("volume_percent", 0),
        intensity_limit=raw.get("intensity_limit", 0),
        focus=raw.get("focus", ""),
    )
