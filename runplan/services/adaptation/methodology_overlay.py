"""
Methodology Modification Overlay

Adds methodology-specific modifications on top of the general ones.
Each methodology has adaptation patterns (config/adaptation_rules.yaml)
whose trigger conditions are evaluated against a metric context built
from recent training. Also tracks how an athlete responds to applied
modifications.

Metric context keys:
    vdot_change             VDOT from recent races and 9+ efforts minus the plan's VDOT
    easy_percentage         Share of training time in easy workouts
    moderate_percentage     Share in tempo/steady workouts
    hard_percentage         Share in threshold/vo2max/speed workouts
    threshold_volume        Share in threshold and tempo workouts
    recovery_score          From the latest check-in
    aerobic_efficiency      Share of easy workouts that felt easy
    performance_stagnation  Days since the best effort-adjusted pace

Usage:
    overlay = MethodologyModificationOverlay()

    context = build_metric_context(progress, plan, recovery=metrics, now=today)
    modifications = overlay.suggest(plan, progress, base_modifications, context)
    insights = overlay.insights(plan, progress, context=context, athlete_id="athlete-1")
"""

import logging
from dataclasses import replace
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from runplan.core.cache import MethodologyCache
from runplan.services.fitness_model import performance_vdot
from runplan.services.plan_framework.config import ConfigService
from runplan.services.plan_framework.constants import Methodology, WorkoutType
from runplan.services.plan_framework.models import IntensityDistribution, TrainingPlan
from runplan.services.plan_framework.philosophies import PhilosophyFactory

from .constants import (
    AEROBIC_EFFORT_CEILING,
    AVOIDED_EFFECTIVENESS,
    BASE_MODIFICATION_CONFIDENCE,
    BASE_MODIFICATION_PRINCIPLE,
    EFFECTIVENESS_ALPHA,
    EFFECTIVENESS_TREND_KEYS,
    EFFECTIVENESS_WEIGHTS,
    ESTABLISHED_PROFILE_RESPONSES,
    INSIGHT_MIN_WORKOUTS,
    INTENSITY_TARGET_TOLERANCE,
    MEDIUM_LONG_DISTANCE,
    MIN_WORKOUTS_FOR_TREND,
    PREFERRED_EFFECTIVENESS,
    PRIORITY_ORDER,
    RECOMMENDATION_CUSTOM,
    RECOMMENDATION_DANIELS_INTENSITY,
    RECOMMENDATION_DANIELS_VDOT,
    RECOMMENDATION_LYDIARD_BASE,
    RECOMMENDATION_LYDIARD_TIME,
    RECOMMENDATION_MORE_DATA,
    RECOMMENDATION_PFITZINGER_MEDIUM_LONG,
    RECOMMENDATION_PFITZINGER_THRESHOLD,
    RECOMMENDATIONS_HUDSON,
    THRESHOLD_VOLUME_LIMIT,
)
from .models import (
    AdaptationResponse,
    CompletedWorkout,
    MethodologyInsights,
    ModificationType,
    OutcomeMetrics,
    PlanModification,
    Priority,
    ProgressSnapshot,
    RecoveryMetrics,
    ResponseProfile,
    SuggestedChanges,
)
from .progress_analyzer import performance_improvement, relative_pace, week_start
from .recovery import recovery_score_for

logger = logging.getLogger(__name__)

VDOT_DECLINE = -3

EASY_TYPES = {WorkoutType.RECOVERY, WorkoutType.EASY, WorkoutType.LONG_RUN}
MODERATE_TYPES = {WorkoutType.TEMPO, WorkoutType.STEADY}
HARD_TYPES = {WorkoutType.THRESHOLD, WorkoutType.VO2MAX, WorkoutType.SPEED}
THRESHOLD_TYPES = {WorkoutType.THRESHOLD, WorkoutType.TEMPO}

OPERATORS = {
    "lt": lambda actual, value: actual < value,
    "gt": lambda actual, value: actual > value,
}


# ============ Metric context ============

def duration_distribution(completed: Sequence[CompletedWorkout]) -> IntensityDistribution:
    """
    Share of training time by workout type, as rounded percentages.

    Workouts without a known type count as easy.
    """
    total = sum(w.actual_duration or 0 for w in completed)
    if total == 0:
        return IntensityDistribution()

    easy = moderate = hard = 0.0
    for w in completed:
        duration = w.actual_duration or 0
        workout_type = w.resolved_type
        if workout_type in MODERATE_TYPES:
            moderate += duration
        elif workout_type in HARD_TYPES:
            hard += duration
        else:
            easy += duration

    return IntensityDistribution(
        easy=round(easy / total * 100),
        moderate=round(moderate / total * 100),
        hard=round(hard / total * 100),
    )


def threshold_percentage(completed: Sequence[CompletedWorkout]) -> float:
    total = sum(w.actual_duration or 0 for w in completed)
    if total == 0:
        return 0.0
    threshold = sum(w.actual_duration or 0 for w in completed if w.resolved_type in THRESHOLD_TYPES)
    return threshold / total * 100


def aerobic_efficiency(completed: Sequence[CompletedWorkout]) -> Optional[float]:
    """Share of easy workouts with a reported effort that actually felt easy."""
    easy = [w for w in completed if w.resolved_type in EASY_TYPES and w.perceived_effort is not None]
    if not easy:
        return None
    relaxed = sum(1 for w in easy if w.perceived_effort <= AEROBIC_EFFORT_CEILING)
    return relaxed / len(easy) * 100


def performance_stagnation(completed: Sequence[CompletedWorkout], now: date) -> Optional[float]:
    """Days since the best effort-adjusted pace; None with too little pace data."""
    paced = [(relative_pace(w), w.date) for w in completed]
    paced = [(pace, day) for pace, day in paced if pace is not None]
    if len(paced) < MIN_WORKOUTS_FOR_TREND:
        return None
    # Latest date wins ties
    _, best_day = min(paced, key=lambda p: (p[0], -p[1].toordinal()))
    return (now - best_day).days


def build_metric_context(
    progress: ProgressSnapshot,
    plan: TrainingPlan,
    recovery: Optional[RecoveryMetrics] = None,
    now: Optional[date] = None,
) -> Dict[str, float]:
    """Metrics the adaptation patterns are evaluated against. Unknown metrics are left out."""
    if now is None:
        now = progress.date or date.today()

    completed = progress.completed_workouts
    distribution = duration_distribution(completed)
    context: Dict[str, float] = {
        "easy_percentage": distribution.easy,
        "moderate_percentage": distribution.moderate,
        "hard_percentage": distribution.hard,
        "threshold_volume": threshold_percentage(completed),
    }

    planned_fitness = plan.config.current_fitness
    recent_vdot = performance_vdot([w.to_run_record() for w in completed])
    if planned_fitness is not None and recent_vdot is not None:
        context["vdot_change"] = recent_vdot - planned_fitness.vdot

    score = recovery_score_for(recovery)
    if score is not None:
        context["recovery_score"] = score

    efficiency = aerobic_efficiency(completed)
    if efficiency is not None:
        context["aerobic_efficiency"] = efficiency

    stagnation = performance_stagnation(completed, now)
    if stagnation is not None:
        context["performance_stagnation"] = stagnation

    return context


def condition_met(condition: Dict[str, Any], context: Dict[str, float]) -> bool:
    actual = context.get(condition["metric"])
    if actual is None:
        return False
    compare = OPERATORS.get(condition.get("operator"))
    if compare is None:
        logger.warning(f"Unknown operator '{condition.get('operator')}' in adaptation pattern")
        return False
    return compare(actual, condition["value"])


def pattern_triggered(pattern: Dict[str, Any], context: Dict[str, float]) -> bool:
    """All conditions must hold; a pattern without conditions never fires."""
    conditions = pattern.get("conditions") or []
    return bool(conditions) and all(condition_met(c, context) for c in conditions)


def pattern_modification(pattern: Dict[str, Any]) -> PlanModification:
    response = pattern["response"]
    substitute = response.get("substitute_workout_type")
    return PlanModification(
        type=ModificationType(response["type"]),
        reason=response.get("reason", pattern.get("name", "")),
        priority=Priority(response.get("priority", "medium")),
        suggested_changes=SuggestedChanges(
            volume_reduction=response.get("volume_reduction"),
            intensity_reduction=response.get("intensity_reduction"),
            substitute_workout_type=WorkoutType(substitute) if substitute else None,
            additional_recovery_days=response.get("additional_recovery_days"),
            delay_days=response.get("delay_days"),
        ),
        workout_types=[WorkoutType(t) for t in response.get("workout_types", [])],
        methodology_specific=pattern.get("methodology_specific", True),
        philosophy_principle=pattern.get("principle"),
        confidence=pattern.get("confidence"),
    )


def as_general_modification(modification: PlanModification) -> PlanModification:
    return replace(
        modification,
        methodology_specific=False,
        philosophy_principle=BASE_MODIFICATION_PRINCIPLE,
        confidence=BASE_MODIFICATION_CONFIDENCE,
    )


# ============ Response profiles ============

class ResponseProfileTracker:
    """
    Learn which modifications work for an athlete under a methodology.

    Profiles live in memory, keyed by athlete and methodology.
    """

    def __init__(self):
        self._profiles: Dict[str, ResponseProfile] = {}

    @staticmethod
    def _key(athlete_id: str, methodology: str) -> str:
        return f"{athlete_id}:{methodology}"

    def profile(self, athlete_id: str, methodology: str) -> Optional[ResponseProfile]:
        return self._profiles.get(self._key(athlete_id, methodology))

    def status(self, athlete_id: str, methodology: str) -> str:
        profile = self.profile(athlete_id, methodology)
        responses = len(profile.response_history) if profile else 0
        if responses == 0:
            return "new"
        if responses < ESTABLISHED_PROFILE_RESPONSES:
            return "learning"
        return "established"

    @staticmethod
    def effectiveness(outcome: OutcomeMetrics) -> int:
        return round(
            outcome.performance_change * EFFECTIVENESS_WEIGHTS["performance"]
            + outcome.adherence_change * EFFECTIVENESS_WEIGHTS["adherence"]
            + outcome.recovery_change * EFFECTIVENESS_WEIGHTS["recovery"]
            + outcome.satisfaction_change * EFFECTIVENESS_WEIGHTS["satisfaction"]
        )

    def record(
        self,
        athlete_id: str,
        methodology: str,
        modification: PlanModification,
        outcome: OutcomeMetrics,
        applied_date: Optional[date] = None,
    ) -> AdaptationResponse:
        """Record the outcome of an applied modification and update the profile."""
        applied_date = applied_date or date.today()
        key = self._key(athlete_id, methodology)
        profile = self._profiles.setdefault(key, ResponseProfile(athlete_id=athlete_id, methodology=methodology))

        response = AdaptationResponse(
            applied_date=applied_date,
            modification=modification,
            outcome=outcome,
            effectiveness=self.effectiveness(outcome),
            notes=f"Applied {modification.type.value} modification based on {modification.philosophy_principle}",
        )
        profile.response_history.append(response)

        trend_key = EFFECTIVENESS_TREND_KEYS.get(modification.type.value)
        if trend_key is not None:
            previous = profile.effectiveness_trends[trend_key]
            profile.effectiveness_trends[trend_key] = (
                previous * (1 - EFFECTIVENESS_ALPHA) + response.effectiveness * EFFECTIVENESS_ALPHA
            )

        if response.effectiveness > PREFERRED_EFFECTIVENESS:
            self._remember(profile.preferred_modifications, modification)
        elif response.effectiveness < AVOIDED_EFFECTIVENESS:
            self._remember(profile.avoided_modifications, modification)

        profile.last_updated = applied_date
        return response

    @staticmethod
    def _remember(modifications: List[PlanModification], modification: PlanModification):
        exists = any(
            m.type == modification.type and m.philosophy_principle == modification.philosophy_principle
            for m in modifications
        )
        if not exists:
            modifications.append(modification)


# ============ Overlay ============

class MethodologyModificationOverlay:
    """
    Merge methodology-specific modifications with general ones.
    """

    def __init__(
        self,
        config: Optional[ConfigService] = None,
        cache: Optional[MethodologyCache] = None,
        tracker: Optional[ResponseProfileTracker] = None,
    ):
        self.config = config or ConfigService()
        self.philosophies = PhilosophyFactory(cache=cache)
        self.tracker = tracker or ResponseProfileTracker()

    def triggered_patterns(self, methodology: Methodology, context: Dict[str, float]) -> List[Dict[str, Any]]:
        patterns = self.config.get_methodology_patterns(methodology.value)
        return [p for p in patterns if pattern_triggered(p, context)]

    def suggest(
        self,
        plan: TrainingPlan,
        progress: ProgressSnapshot,
        base_modifications: Sequence[PlanModification],
        context: Optional[Dict[str, float]] = None,
    ) -> List[PlanModification]:
        """General modifications plus those of every triggered pattern, prioritized."""
        general = [as_general_modification(m) for m in base_modifications]

        methodology = plan.config.methodology
        if methodology is None:
            return self.prioritize(general)

        if context is None:
            context = build_metric_context(progress, plan)

        triggered = self.triggered_patterns(methodology, context)
        if triggered:
            logger.info(
                f"{methodology.value} patterns triggered: {', '.join(p['id'] for p in triggered)}"
            )

        return self.prioritize(general + [pattern_modification(p) for p in triggered])

    @staticmethod
    def prioritize(modifications: Sequence[PlanModification]) -> List[PlanModification]:
        """Methodology-specific first, then confidence (highest first), then priority."""
        return sorted(
            modifications,
            key=lambda m: (
                not m.methodology_specific,
                -(m.confidence or 0),
                PRIORITY_ORDER[m.priority],
            ),
        )

    # ============ Insights ============

    def insights(
        self,
        plan: TrainingPlan,
        progress: ProgressSnapshot,
        context: Optional[Dict[str, float]] = None,
        athlete_id: Optional[str] = None,
    ) -> MethodologyInsights:
        compliance = round(min(1.0, progress.adherence_rate) * 100)
        methodology = plan.config.methodology
        if methodology is None:
            return MethodologyInsights(
                methodology="none",
                philosophy_alignment=0,
                adaptation_recommendations=[],
                response_profile_status="no_methodology",
                key_metrics={},
                compliance_score=compliance,
            )

        if context is None:
            context = build_metric_context(progress, plan)

        completed = progress.completed_workouts
        target = self.philosophies.create(methodology).intensity_distribution
        actual = duration_distribution(completed)

        status = self.tracker.status(athlete_id, methodology.value) if athlete_id else "new"

        return MethodologyInsights(
            methodology=methodology.value,
            philosophy_alignment=self.philosophy_alignment(target, actual, has_history=bool(completed)),
            adaptation_recommendations=self.recommendations(methodology, completed, target, context),
            response_profile_status=status,
            key_metrics=self.key_metrics(methodology, progress, target, context),
            compliance_score=compliance,
        )

    @staticmethod
    def philosophy_alignment(
        target: IntensityDistribution,
        actual: IntensityDistribution,
        has_history: bool = True,
    ) -> int:
        if not has_history:
            return 100
        deviation = (
            abs(target.easy - actual.easy)
            + abs(target.moderate - actual.moderate)
            + abs(target.hard - actual.hard)
        )
        return round(max(0, 100 - deviation / 3))

    @staticmethod
    def recommendations(
        methodology: Methodology,
        completed: Sequence[CompletedWorkout],
        target: IntensityDistribution,
        context: Dict[str, float],
    ) -> List[str]:
        if len(completed) < INSIGHT_MIN_WORKOUTS:
            return [RECOMMENDATION_MORE_DATA]

        actual = duration_distribution(completed)
        recommendations: List[str] = []

        if methodology == Methodology.DANIELS:
            if actual.hard > target.hard + INTENSITY_TARGET_TOLERANCE:
                recommendations.append(RECOMMENDATION_DANIELS_INTENSITY)
            if context.get("vdot_change", 0) < VDOT_DECLINE:
                recommendations.append(RECOMMENDATION_DANIELS_VDOT)
        elif methodology == Methodology.LYDIARD:
            if actual.easy < target.easy - INTENSITY_TARGET_TOLERANCE:
                recommendations.append(RECOMMENDATION_LYDIARD_BASE)
            recommendations.append(RECOMMENDATION_LYDIARD_TIME)
        elif methodology == Methodology.PFITZINGER:
            if context.get("threshold_volume", 0) > THRESHOLD_VOLUME_LIMIT:
                recommendations.append(RECOMMENDATION_PFITZINGER_THRESHOLD)
            recommendations.append(RECOMMENDATION_PFITZINGER_MEDIUM_LONG)
        elif methodology == Methodology.HUDSON:
            recommendations.extend(RECOMMENDATIONS_HUDSON)
        else:
            recommendations.append(RECOMMENDATION_CUSTOM)

        return recommendations

    @staticmethod
    def key_metrics(
        methodology: Methodology,
        progress: ProgressSnapshot,
        target: IntensityDistribution,
        context: Dict[str, float],
    ) -> Dict[str, float]:
        """The numbers each methodology watches most closely."""
        completed = progress.completed_workouts

        if methodology == Methodology.DANIELS:
            paces = [p for p in (relative_pace(w) for w in completed) if p is not None]
            consistency = 100.0
            if len(paces) > 1:
                mean = sum(paces) / len(paces)
                spread = (sum((p - mean) ** 2 for p in paces) / len(paces)) ** 0.5
                consistency = max(0.0, 100 - spread / mean * 100)
            return {
                "intensity_balance": max(0.0, 100 - abs(target.easy - context.get("easy_percentage", 0))),
                "pace_consistency": round(consistency, 1),
            }

        if methodology == Methodology.LYDIARD:
            with_plan = [w for w in completed if w.planned_duration]
            on_time = sum(1 for w in with_plan if w.completion_rate >= 0.9)
            return {
                "aerobic_volume": context.get("easy_percentage", 0),
                "time_based_compliance": round(on_time / len(with_plan) * 100, 1) if with_plan else 100.0,
            }

        if methodology == Methodology.PFITZINGER:
            weeks = {week_start(w.date) for w in completed}
            long_weeks = {week_start(w.date) for w in completed if (w.actual_distance or 0) >= MEDIUM_LONG_DISTANCE}
            return {
                "threshold_progression": round(context.get("threshold_volume", 0), 1),
                "medium_long_frequency": round(len(long_weeks) / len(weeks) * 100, 1) if weeks else 0.0,
            }

        if methodology == Methodology.HUDSON:
            rates = [w.completion_rate for w in completed]
            return {
                "adaptation_rate": round(performance_improvement(completed), 1),
                "individual_response": round(sum(rates) / len(rates) * 100, 1) if rates else 100.0,
            }

        return {}
