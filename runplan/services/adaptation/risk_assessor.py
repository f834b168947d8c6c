"""
Risk Assessor

Detects fatigue and overreaching from completed training:
- Training load (acute:chronic ratio)
- Acute fatigue over the last 3 days
- Chronic underperformance streaks
- Consecutive days of TSS overload
- Projected risk from the upcoming week of the plan

Usage:
    assessor = RiskAssessor()
    risk = assessor.assess(completed, recovery=metrics, now=date.today())

    if risk.fatigue_level != FatigueLevel.LOW:
        upcoming = assessor.adjust_for_fatigue(plan.workouts, risk.fatigue_level, now)
"""

import logging
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

from runplan.services.fitness_model import analyze_weekly_patterns, calculate_recovery_score
from runplan.services.plan_framework.constants import WorkoutType
from runplan.services.plan_framework.models import PlannedWorkout
from runplan.services.training_load import (
    TrainingLoad,
    TrainingLoadCalculator,
    calculate_injury_risk,
)

from .adjustments import scale_for_fatigue
from .constants import (
    ACUTE_FATIGUE_CAP,
    ACUTE_FATIGUE_WINDOW_DAYS,
    CHRONIC_FATIGUE_COMPLETION,
    CHRONIC_FATIGUE_DAYS,
    CHRONIC_FATIGUE_EFFORT,
    DEFAULT_PERCEIVED_EFFORT,
    DEFAULT_PLANNED_TSS,
    EMERGING_FATIGUE_DAYS,
    FATIGUE_ADJUSTMENTS,
    FATIGUE_NOTE_WORDS,
    FATIGUE_NOTES_PENALTY,
    FATIGUE_WARNINGS,
    HARD_EFFORT,
    HARD_EFFORT_RISK,
    HIGH_ACUTE_FATIGUE,
    HIGH_RISK_ACWR,
    MITIGATION_HIGH_ACWR,
    MITIGATION_HIGH_RISK,
    MITIGATION_LOW_RECOVERY,
    MITIGATION_MILEAGE_JUMP,
    MIN_RECOVERY_SCORE,
    MODERATE_ACUTE_FATIGUE,
    OVERREACHING_TSS_THRESHOLD,
    POOR_COMPLETION_PENALTY,
    POOR_COMPLETION_RATE,
    PROJECTION_TSS_DIVISOR,
    PROJECTION_WINDOW_DAYS,
    RISK_LEVEL_THRESHOLDS,
    SAFE_ACWR_LOWER,
    SAFE_ACWR_UPPER,
    SEVERE_TSS_OVERLOAD_DAYS,
    TSS_OVERLOAD_DAYS,
)
from .models import (
    ChronicFatigue,
    CompletedWorkout,
    FatigueLevel,
    OverreachingAssessment,
    RecoveryMetrics,
    RiskAssessment,
    RiskLevel,
    TSSOverload,
)
from .recovery import recovery_score_for

logger = logging.getLogger(__name__)

MILEAGE_JUMP_PCT = 10


def completed_tss(workout: CompletedWorkout) -> int:
    """Effort-based TSS: minutes x (effort/10)^2 x 100 / 60."""
    effort = workout.perceived_effort if workout.perceived_effort is not None else DEFAULT_PERCEIVED_EFFORT
    return round((workout.actual_duration or 0) * (effort / 10) ** 2 * 100 / 60)


def _longest_consecutive(days: Sequence[date]) -> int:
    """Longest run of consecutive calendar days."""
    longest = 0
    current = 0
    previous: Optional[date] = None
    for day in sorted(set(days)):
        if previous is not None and day - previous == timedelta(days=1):
            current += 1
        else:
            current = 1
        longest = max(longest, current)
        previous = day
    return longest


class RiskAssessor:
    """
    Assess fatigue and overreaching risk.
    """

    def __init__(self, load_calculator: Optional[TrainingLoadCalculator] = None):
        self.load_calculator = load_calculator or TrainingLoadCalculator()

    # ============ Components ============

    def training_load(self, completed: Sequence[CompletedWorkout], now: date) -> TrainingLoad:
        return self.load_calculator.calculate_training_load([w.to_run_record() for w in completed], now)

    @staticmethod
    def acute_fatigue(completed: Sequence[CompletedWorkout], now: date) -> float:
        """
        Fatigue score 0-100 from workouts in the last 3 days.

        Each workout adds effort x 2 and TSS / 10, plus penalties for a
        poor completion rate and for notes that mention fatigue.
        """
        window_start = now - timedelta(days=ACUTE_FATIGUE_WINDOW_DAYS)
        score = 0.0
        for w in completed:
            if not window_start < w.date <= now:
                continue
            effort = w.perceived_effort if w.perceived_effort is not None else DEFAULT_PERCEIVED_EFFORT
            score += effort * 2
            score += completed_tss(w) / 10
            if w.completion_rate < POOR_COMPLETION_RATE:
                score += POOR_COMPLETION_PENALTY
            notes = (w.notes or "").lower()
            if any(word in notes for word in FATIGUE_NOTE_WORDS):
                score += FATIGUE_NOTES_PENALTY
        return min(ACUTE_FATIGUE_CAP, score)

    @staticmethod
    def chronic_fatigue(completed: Sequence[CompletedWorkout]) -> ChronicFatigue:
        """Longest streak of days with a hard effort that fell short of plan."""
        struggling = [
            w.date for w in completed
            if (w.perceived_effort or 0) >= CHRONIC_FATIGUE_EFFORT
            and w.completion_rate < CHRONIC_FATIGUE_COMPLETION
        ]
        days = _longest_consecutive(struggling)

        if days >= CHRONIC_FATIGUE_DAYS:
            pattern = "persistent_underperformance"
        elif days >= EMERGING_FATIGUE_DAYS:
            pattern = "emerging_fatigue"
        else:
            pattern = "none"

        return ChronicFatigue(detected=days >= EMERGING_FATIGUE_DAYS, days=days, pattern=pattern)

    @staticmethod
    def daily_tss(completed: Sequence[CompletedWorkout]) -> Dict[date, float]:
        totals: Dict[date, float] = {}
        for w in completed:
            totals[w.date] = totals.get(w.date, 0) + completed_tss(w)
        return totals

    def tss_overload(self, completed: Sequence[CompletedWorkout]) -> TSSOverload:
        daily = self.daily_tss(completed)
        overloaded = [d for d, tss in daily.items() if tss > OVERREACHING_TSS_THRESHOLD]
        consecutive = _longest_consecutive(overloaded)
        return TSSOverload(
            detected=consecutive >= TSS_OVERLOAD_DAYS,
            consecutive=consecutive,
            max_daily_tss=max(daily.values(), default=0),
        )

    @staticmethod
    def fatigue_level(
        acute: float,
        chronic: ChronicFatigue,
        overload: TSSOverload,
        load: TrainingLoad,
    ) -> FatigueLevel:
        if chronic.days >= CHRONIC_FATIGUE_DAYS or overload.consecutive >= SEVERE_TSS_OVERLOAD_DAYS:
            return FatigueLevel.SEVERE
        if acute > HIGH_ACUTE_FATIGUE or load.ratio > HIGH_RISK_ACWR:
            return FatigueLevel.HIGH
        if acute > MODERATE_ACUTE_FATIGUE or load.ratio > SAFE_ACWR_UPPER:
            return FatigueLevel.MODERATE
        return FatigueLevel.LOW

    # ============ Assessments ============

    def assess(
        self,
        completed: Sequence[CompletedWorkout],
        recovery: Optional[RecoveryMetrics] = None,
        now: Optional[date] = None,
    ) -> RiskAssessment:
        """Combine load, acute and chronic fatigue into a fatigue level with warnings."""
        if now is None:
            now = date.today()

        load = self.training_load(completed, now)
        acute = self.acute_fatigue(completed, now)
        chronic = self.chronic_fatigue(completed)
        overload = self.tss_overload(completed)
        level = self.fatigue_level(acute, chronic, overload, load)

        warnings: List[str] = []
        if level in FATIGUE_WARNINGS:
            warnings.append(FATIGUE_WARNINGS[level])
        if chronic.detected:
            warnings.append(f"Chronic fatigue pattern: {chronic.pattern} ({chronic.days} days)")
        if overload.detected:
            warnings.append(f"TSS overload on {overload.consecutive} consecutive days")

        score = recovery_score_for(recovery)
        if score is not None and score < MIN_RECOVERY_SCORE:
            warnings.append(f"Low recovery score ({score:.0f})")

        if level != FatigueLevel.LOW:
            logger.info(f"Fatigue level {level.value}: acute={acute:.0f} ratio={load.ratio}")

        return RiskAssessment(
            training_load=load,
            acute_fatigue=acute,
            chronic_fatigue=chronic,
            tss_overload=overload,
            fatigue_level=level,
            warnings=warnings,
        )

    def assess_overreaching(
        self,
        completed: Sequence[CompletedWorkout],
        planned: Sequence[PlannedWorkout],
        now: Optional[date] = None,
        recovery: Optional[RecoveryMetrics] = None,
    ) -> OverreachingAssessment:
        """
        Current and projected injury risk with mitigation strategies.

        Projected risk adds the next week's planned TSS to the current
        acute:chronic ratio.
        """
        if now is None:
            now = date.today()

        runs = [w.to_run_record() for w in completed]
        load = self.load_calculator.calculate_training_load(runs, now)

        week_ago = now - timedelta(days=7)
        recent_mileage = sum(r.distance for r in runs if week_ago < r.date <= now)
        average = analyze_weekly_patterns(runs).avg_weekly_mileage
        weekly_increase = (recent_mileage - average) / average * 100 if average > 0 else 0.0

        recovery_score = recovery_score_for(recovery)
        if recovery_score is None:
            recovery_score = calculate_recovery_score(runs, now=now)

        current_risk = calculate_injury_risk(load, weekly_increase, recovery_score)
        projected_risk = self.project_risk(completed, planned, load.ratio, now)
        risk_level = self.risk_level(current_risk, projected_risk)

        strategies: List[str] = []
        if risk_level in (RiskLevel.CRITICAL, RiskLevel.HIGH):
            strategies += MITIGATION_HIGH_RISK
        if load.ratio > SAFE_ACWR_UPPER:
            strategies += MITIGATION_HIGH_ACWR
        if weekly_increase > MILEAGE_JUMP_PCT:
            strategies += MITIGATION_MILEAGE_JUMP
        if recovery_score < MIN_RECOVERY_SCORE:
            strategies += MITIGATION_LOW_RECOVERY

        return OverreachingAssessment(
            risk_level=risk_level,
            acute_chronic_ratio=load.ratio,
            weekly_load_increase=round(weekly_increase, 1),
            current_risk=current_risk,
            projected_risk=projected_risk,
            mitigation_strategies=strategies,
        )

    @staticmethod
    def project_risk(
        completed: Sequence[CompletedWorkout],
        planned: Sequence[PlannedWorkout],
        current_ratio: float,
        now: date,
    ) -> int:
        horizon = now + timedelta(days=PROJECTION_WINDOW_DAYS)
        planned_tss = sum(
            w.workout.estimated_tss or DEFAULT_PLANNED_TSS
            for w in planned if now < w.date < horizon
        )
        projected_ratio = current_ratio + planned_tss / PROJECTION_TSS_DIVISOR

        risk = 0
        if projected_ratio > HIGH_RISK_ACWR:
            risk += 40
        elif projected_ratio > SAFE_ACWR_UPPER:
            risk += 25
        elif projected_ratio < SAFE_ACWR_LOWER:
            risk += 20

        week_ago = now - timedelta(days=7)
        hard_sessions = sum(
            1 for w in completed
            if week_ago < w.date <= now and (w.perceived_effort or 0) >= HARD_EFFORT
        )
        risk += hard_sessions * HARD_EFFORT_RISK
        return min(100, risk)

    @staticmethod
    def risk_level(current_risk: int, projected_risk: int) -> RiskLevel:
        for level, current_min, projected_min in RISK_LEVEL_THRESHOLDS:
            if current_risk >= current_min or projected_risk >= projected_min:
                return RiskLevel(level)
        return RiskLevel.LOW

    # ============ Adjustments ============

    @staticmethod
    def adjust_for_fatigue(
        workouts: Sequence[PlannedWorkout],
        level: FatigueLevel,
        now: Optional[date] = None,
    ) -> List[PlannedWorkout]:
        """Scale future, non-recovery workouts by the fatigue level's factors."""
        if now is None:
            now = date.today()

        volume_factor, intensity_factor = FATIGUE_ADJUSTMENTS[level]
        if volume_factor == 1.0 and intensity_factor == 1.0:
            return list(workouts)

        return [
            scale_for_fatigue(w, volume_factor, intensity_factor)
            if not w.is_frozen(now) and w.type != WorkoutType.RECOVERY else w
            for w in workouts
        ]
