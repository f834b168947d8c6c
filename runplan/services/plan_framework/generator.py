"""
Plan Generator

Main orchestrator for plan generation.
Coordinates scheduler, philosophy and microcycle builder to produce
complete training plans.

Usage:
    generator = PlanGenerator()

    plan = generator.generate(TrainingPlanConfig(
        goal=TrainingGoal.MARATHON,
        start_date=date(2025, 1, 6),
        target_date=date(2025, 4, 28),
        current_fitness=FitnessAssessment(weekly_mileage=40),
        methodology=Methodology.DANIELS,
    ))

    # From run history
    plan = generator.generate_from_runs(runs, TrainingGoal.HALF_MARATHON, race_day)
"""

import logging
from datetime import date
from typing import Dict, List, Optional, Sequence

from runplan.core.cache import MethodologyCache
from runplan.core.config import settings

from .config import ConfigService
from .constants import (
    KEY_WORKOUT_TYPES,
    SUMMARY_INTENSITY_BANDS,
    Methodology,
    TrainingGoal,
    WorkoutType,
)
from .microcycle_builder import MicrocycleBuilder
from .models import (
    FitnessAssessment,
    IntensityDistribution,
    PhaseSummary,
    PlannedWorkout,
    PlanSummary,
    RunRecord,
    TrainingBlock,
    TrainingPlan,
    TrainingPlanConfig,
    TrainingPreferences,
)
from .phase_scheduler import PhaseScheduler
from .philosophies import PhilosophyFactory, TrainingPhilosophy

logger = logging.getLogger(__name__)


class PlanGenerator:
    """
    Assemble periodized plans.
    """

    def __init__(
        self,
        config_service: Optional[ConfigService] = None,
        cache: Optional[MethodologyCache] = None,
        scheduler: Optional[PhaseScheduler] = None,
    ):
        self.config_service = config_service or ConfigService()
        self.philosophies = PhilosophyFactory(cache=cache)
        self.scheduler = scheduler or PhaseScheduler()

    def philosophy_for(self, config: TrainingPlanConfig) -> TrainingPhilosophy:
        if config.methodology is None:
            return TrainingPhilosophy.standard()
        return self.philosophies.create(config.methodology)

    def generate(self, config: TrainingPlanConfig) -> TrainingPlan:
        """
        Generate a plan.

        Total weeks come from start to end (or target) date, or the
        configured default when neither is set.
        """
        fitness = config.current_fitness or FitnessAssessment()
        total_weeks = config.total_weeks(settings.DEFAULT_PLAN_WEEKS)
        philosophy = self.philosophy_for(config)

        logger.info(
            f"Generating plan: {config.goal.value} {total_weeks}w "
            f"methodology={philosophy.methodology.value if config.methodology else 'standard'}"
        )

        distribution = self.scheduler.distribute(total_weeks)
        specs = self.scheduler.block_specs(distribution, config.start_date)

        builder = MicrocycleBuilder(philosophy=philosophy, config=self.config_service)
        blocks: List[TrainingBlock] = []
        previous_volume: Optional[float] = None
        for spec in specs:
            block, previous_volume = builder.build_block(
                spec,
                fitness,
                preferences=config.preferences,
                previous_volume=previous_volume,
            )
            blocks.append(block)

        summary = self.create_summary(blocks, residual_weeks=distribution.residual_weeks)
        plan = TrainingPlan(
            id=plan_id(config),
            config=config,
            blocks=blocks,
            summary=summary,
        )

        logger.info(
            f"Generated plan {plan.id}: {summary.total_workouts} workouts, "
            f"{summary.total_distance}km over {summary.total_weeks} weeks"
        )
        return plan

    def generate_from_runs(
        self,
        runs: Sequence[RunRecord],
        goal: TrainingGoal,
        target_date: date,
        start_date: Optional[date] = None,
        methodology: Optional[Methodology] = None,
    ) -> TrainingPlan:
        """Assess fitness from history and generate a plan around the athlete's usual days."""
        from runplan.services.fitness_model import analyze_weekly_patterns, assess_fitness

        start_date = start_date or date.today()
        fitness = assess_fitness(runs, now=start_date)
        patterns = analyze_weekly_patterns(runs)

        # Weekdays -> offsets from the plan's start date
        available_days = sorted({(d - start_date.weekday()) % 7 for d in patterns.optimal_days})

        config = TrainingPlanConfig(
            name=f"{goal.value} Training Plan",
            goal=goal,
            start_date=start_date,
            target_date=target_date,
            end_date=target_date,
            current_fitness=fitness,
            preferences=TrainingPreferences(available_days=available_days),
            methodology=methodology,
        )
        return self.generate(config)

    def create_summary(self, blocks: List[TrainingBlock], residual_weeks: int = 0) -> PlanSummary:
        return create_summary(blocks, residual_weeks=residual_weeks)


def create_summary(blocks: List[TrainingBlock], residual_weeks: int = 0) -> PlanSummary:
    """Totals and per-phase breakdown. Always recomputed from workouts."""
    workouts = [w for b in blocks for w in b.workouts]
    weekly_distances = [m.total_distance for b in blocks for m in b.microcycles]

    phases = [
        PhaseSummary(
            phase=block.phase,
            weeks=block.weeks,
            focus=list(block.focus_areas),
            volume_progression=[m.total_distance for m in block.microcycles],
            intensity_distribution=summarize_intensity(block.workouts),
        )
        for block in blocks
    ]

    total_distance = sum(w.target_metrics.distance or 0 for w in workouts)
    return PlanSummary(
        total_weeks=sum(b.weeks for b in blocks),
        total_workouts=len(workouts),
        total_distance=round(total_distance, 1),
        total_time=sum(w.target_metrics.duration for w in workouts),
        peak_weekly_distance=max(weekly_distances, default=0.0),
        average_weekly_distance=(
            round(sum(weekly_distances) / len(weekly_distances), 1) if weekly_distances else 0.0
        ),
        key_workouts=sum(1 for w in workouts if w.type in KEY_WORKOUT_TYPES),
        recovery_days=sum(1 for w in workouts if w.type == WorkoutType.RECOVERY),
        phases=phases,
        residual_weeks=residual_weeks,
    )


def summarize_intensity(workouts: List[PlannedWorkout]) -> IntensityDistribution:
    """Share of workouts per intensity band, as rounded percentages."""
    if not workouts:
        return IntensityDistribution()

    counts: Dict[str, int] = {"easy": 0, "moderate": 0, "hard": 0, "very_hard": 0}
    for workout in workouts:
        intensity = workout.target_metrics.intensity
        if intensity < SUMMARY_INTENSITY_BANDS["easy"]:
            counts["easy"] += 1
        elif intensity < SUMMARY_INTENSITY_BANDS["moderate"]:
            counts["moderate"] += 1
        elif intensity < SUMMARY_INTENSITY_BANDS["hard"]:
            counts["hard"] += 1
        else:
            counts["very_hard"] += 1

    total = len(workouts)
    return IntensityDistribution(**{k: round(v / total * 100) for k, v in counts.items()})


def plan_id(config: TrainingPlanConfig) -> str:
    return f"plan-{config.goal.value}-{config.start_date.isoformat()}"
