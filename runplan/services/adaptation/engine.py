"""
Adaptation Engine

Runs one adaptation cycle over a plan:
analyze progress -> assess risk and recovery -> suggest modifications ->
add methodology-specific ones -> apply.

Usage:
    engine = AdaptationEngine()

    result = engine.adapt(plan, completed, recovery=metrics, now=date.today())
    if result.adapted:
        plan = result.plan
"""

import logging
from datetime import date
from typing import Optional, Sequence

from runplan.core.cache import MethodologyCache
from runplan.services.plan_framework.config import ConfigService
from runplan.services.plan_framework.models import TrainingPlan

from .methodology_overlay import (
    MethodologyModificationOverlay,
    ResponseProfileTracker,
    build_metric_context,
)
from .modification_applier import ModificationApplier
from .modification_planner import ModificationPlanner
from .models import AdaptationResult, CompletedWorkout, RecoveryMetrics
from .progress_analyzer import ProgressAnalyzer
from .recovery import assess_recovery_status
from .risk_assessor import RiskAssessor

logger = logging.getLogger(__name__)


class AdaptationEngine:
    """
    Adapt a training plan to what the athlete actually did.
    """

    def __init__(
        self,
        config: Optional[ConfigService] = None,
        cache: Optional[MethodologyCache] = None,
        tracker: Optional[ResponseProfileTracker] = None,
    ):
        self.config = config or ConfigService()
        self.analyzer = ProgressAnalyzer()
        self.assessor = RiskAssessor()
        self.planner = ModificationPlanner()
        self.overlay = MethodologyModificationOverlay(config=self.config, cache=cache, tracker=tracker)
        self.applier = ModificationApplier()

    @property
    def tracker(self) -> ResponseProfileTracker:
        return self.overlay.tracker

    def adapt(
        self,
        plan: TrainingPlan,
        completed: Sequence[CompletedWorkout],
        recovery: Optional[RecoveryMetrics] = None,
        now: Optional[date] = None,
        athlete_id: Optional[str] = None,
    ) -> AdaptationResult:
        """
        Run one adaptation cycle.

        The input plan is never mutated. When nothing needs to change the
        result carries the same plan and no modifications.
        """
        if now is None:
            now = date.today()

        planned = plan.workouts
        progress = self.analyzer.analyze(completed, planned, now)
        risk = self.assessor.assess(completed, recovery, now)
        overreaching = self.assessor.assess_overreaching(completed, planned, now, recovery)
        recovery_status = assess_recovery_status(completed, recovery, now)

        needs_adaptation = self.planner.needs_adaptation(progress, risk.training_load, recovery)
        base = self.planner.suggest(progress, risk.training_load, recovery)

        context = build_metric_context(progress, plan, recovery, now)
        modifications = self.overlay.suggest(plan, progress, base, context)
        insights = self.overlay.insights(plan, progress, context=context, athlete_id=athlete_id)

        revised = self.applier.apply(plan, modifications, now) if modifications else plan

        logger.info(
            f"Adapted plan {plan.id}: {len(modifications)} modification(s), "
            f"fatigue={risk.fatigue_level.value} risk={overreaching.risk_level.value} "
            f"recovery={recovery_status.status.value}"
        )

        return AdaptationResult(
            plan=revised,
            modifications=modifications,
            progress=progress,
            risk=risk,
            overreaching=overreaching,
            recovery=recovery_status,
            insights=insights,
            needs_adaptation=needs_adaptation,
        )
