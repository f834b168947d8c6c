"""
Progress Analyzer

Compares what the athlete did with what was planned:
- Adherence to past-due workouts
- Performance trend from effort-adjusted pace
- Weekly volume trend
- Intensity distribution by perceived effort

Usage:
    analyzer = ProgressAnalyzer()
    progress = analyzer.analyze(completed, plan.workouts, now=date.today())

    if progress.performance_trend == "declining":
        ...
"""

import logging
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

from runplan.services.fitness_model import assess_fitness
from runplan.services.plan_framework.models import IntensityDistribution, PlannedWorkout

from .constants import (
    DEFAULT_PERCEIVED_EFFORT,
    EFFORT_BANDS,
    MIN_WORKOUTS_FOR_TREND,
    TREND_THRESHOLD_PCT,
    VOLUME_TREND_BAND,
    VOLUME_TREND_MIN_WEEKS,
)
from .models import CompletedWorkout, ProgressSnapshot, VolumeProgress

logger = logging.getLogger(__name__)


def relative_pace(workout: CompletedWorkout) -> Optional[float]:
    """
    Pace normalised by effort: (min/km) / (effort / 10).

    Lower is better. None unless duration, distance and effort are known.
    """
    if not (workout.actual_duration and workout.actual_distance and workout.perceived_effort):
        return None
    return (workout.actual_duration / workout.actual_distance) / (workout.perceived_effort / 10)


def mean_relative_pace(workouts: Sequence[CompletedWorkout]) -> float:
    paces = [p for p in (relative_pace(w) for w in workouts) if p is not None]
    return sum(paces) / len(paces) if paces else 0.0


def performance_improvement(completed: Sequence[CompletedWorkout]) -> float:
    """
    Percent improvement of the recent half over the older half.

    0 when there are too few workouts or either half lacks pace data.
    """
    if len(completed) < MIN_WORKOUTS_FOR_TREND:
        return 0.0

    ordered = sorted(completed, key=lambda w: w.date)
    midpoint = len(ordered) // 2
    older = mean_relative_pace(ordered[:midpoint])
    recent = mean_relative_pace(ordered[midpoint:])
    if older == 0 or recent == 0:
        return 0.0
    return (older - recent) / older * 100


def effort_band(effort: Optional[float]) -> str:
    effort = effort if effort is not None else DEFAULT_PERCEIVED_EFFORT
    for upper, band in EFFORT_BANDS:
        if effort <= upper:
            return band
    return "very_hard"


def week_start(day: date) -> date:
    return day - timedelta(days=day.weekday())


class ProgressAnalyzer:
    """
    Analyze completed training against the plan.
    """

    def analyze(
        self,
        completed: Sequence[CompletedWorkout],
        planned: Sequence[PlannedWorkout],
        now: Optional[date] = None,
    ) -> ProgressSnapshot:
        if now is None:
            now = date.today()

        due = [w for w in planned if w.date <= now]
        snapshot = ProgressSnapshot(
            adherence_rate=self.calculate_adherence(completed, planned, now),
            performance_trend=self.performance_trend(completed),
            volume_progress=self.volume_progress(completed),
            intensity_distribution=self.intensity_distribution(completed),
            current_fitness=assess_fitness([w.to_run_record() for w in completed], now=now),
            completed_count=len(completed),
            planned_count=len(due),
            completed_workouts=list(completed),
            date=now,
        )

        logger.debug(
            f"Progress: adherence={snapshot.adherence_rate:.2f} "
            f"trend={snapshot.performance_trend} volume={snapshot.volume_progress.trend}"
        )
        return snapshot

    @staticmethod
    def calculate_adherence(
        completed: Sequence[CompletedWorkout],
        planned: Sequence[PlannedWorkout],
        now: date,
    ) -> float:
        """Completed over past-due planned workouts; 1 when nothing is due."""
        due = sum(1 for w in planned if w.date <= now)
        if due == 0:
            return 1.0
        return len(completed) / due

    @staticmethod
    def performance_trend(completed: Sequence[CompletedWorkout]) -> str:
        improvement = performance_improvement(completed)
        if improvement > TREND_THRESHOLD_PCT:
            return "improving"
        if improvement < -TREND_THRESHOLD_PCT:
            return "declining"
        return "maintaining"

    @staticmethod
    def weekly_distances(completed: Sequence[CompletedWorkout]) -> List[float]:
        """Distance per Monday-start week, in date order."""
        weeks: Dict[date, float] = {}
        for w in completed:
            key = week_start(w.date)
            weeks[key] = weeks.get(key, 0) + (w.actual_distance or 0)
        return [weeks[k] for k in sorted(weeks)]

    def volume_progress(self, completed: Sequence[CompletedWorkout]) -> VolumeProgress:
        weekly = self.weekly_distances(completed)
        if not weekly:
            return VolumeProgress(weekly_average=0.0, trend="stable")

        average = sum(weekly) / len(weekly)
        trend = "stable"
        if len(weekly) >= VOLUME_TREND_MIN_WEEKS:
            third = len(weekly) // 3
            first = sum(weekly[:third]) / third
            last = sum(weekly[-third:]) / third
            if last > first * (1 + VOLUME_TREND_BAND):
                trend = "increasing"
            elif last < first * (1 - VOLUME_TREND_BAND):
                trend = "decreasing"

        return VolumeProgress(weekly_average=round(average, 1), trend=trend)

    @staticmethod
    def intensity_distribution(completed: Sequence[CompletedWorkout]) -> IntensityDistribution:
        """Share of workouts per perceived-effort band, as percentages."""
        if not completed:
            return IntensityDistribution()

        counts = {"easy": 0, "moderate": 0, "hard": 0, "very_hard": 0}
        for w in completed:
            counts[effort_band(w.perceived_effort)] += 1

        total = len(completed)
        return IntensityDistribution(**{k: round(v / total * 100) for k, v in counts.items()})
