"""
Fitness Model

Pure functions that turn run history into fitness numbers:
- VDOT (Daniels' oxygen cost and time-limit formulas)
- Critical speed (2-parameter distance/time model)
- Lactate threshold speed
- Running economy
- Recovery score
- Weekly training patterns

Nothing here keeps state. Functions that look at "recent" runs take an
explicit ``now`` (defaulting to today) so results are reproducible.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

from .plan_framework.constants import DEFAULT_FITNESS
from .plan_framework.models import FitnessAssessment, RunRecord, calculate_overall_score
from .training_load import TrainingLoad, TrainingLoadCalculator, calculate_injury_risk

logger = logging.getLogger(__name__)

DEFAULT_VDOT = 35
DEFAULT_CRITICAL_SPEED = 10.0  # km/h
DEFAULT_RUNNING_ECONOMY = 200
MIN_PERFORMANCE_DISTANCE = 3.0  # km
PERFORMANCE_EFFORT = 9  # Perceived effort treated as a race effort
LONG_RUN_DISTANCE = 15.0  # km

# Assumed heart rate bounds for economy estimates
ASSUMED_RESTING_HR = 60
ASSUMED_MAX_HR = 190


@dataclass
class WeeklyPatterns:
    avg_weekly_mileage: float
    max_weekly_mileage: float
    avg_runs_per_week: float
    consistency_score: float
    optimal_days: List[int] = field(default_factory=list)  # Weekdays, Monday = 0
    typical_long_run_day: Optional[int] = None


@dataclass
class FitnessMetrics:
    vdot: float
    critical_speed: float
    running_economy: float
    lactate_threshold: float
    training_load: TrainingLoad
    injury_risk: int
    recovery_score: float


# ============ VDOT ============

def daniels_vdot(distance_km: float, duration_min: float) -> Optional[float]:
    """
    VDOT for a single performance.

    vo2 = -4.6 + 0.182258 v + 0.000104 v^2        (v in m/min)
    %max = 0.8 + 0.1894393 e^(-0.012778 t) + 0.2989558 e^(-0.1932605 t)
    """
    if distance_km <= 0 or duration_min <= 0:
        return None

    velocity = distance_km * 1000 / duration_min
    vo2 = -4.6 + 0.182258 * velocity + 0.000104 * velocity ** 2
    percent_max = (
        0.8
        + 0.1894393 * math.exp(-0.012778 * duration_min)
        + 0.2989558 * math.exp(-0.1932605 * duration_min)
    )
    return vo2 / percent_max


def _qualifying(runs: Sequence[RunRecord]) -> List[RunRecord]:
    return [r for r in runs if r.distance >= MIN_PERFORMANCE_DISTANCE and r.duration > 0]


def _is_performance(run: RunRecord) -> bool:
    return run.is_race or (run.effort_level or 0) >= PERFORMANCE_EFFORT


def _fastest_vdot(candidates: Sequence[RunRecord]) -> Optional[float]:
    if not candidates:
        return None
    best = min(candidates, key=lambda r: r.avg_pace or r.duration / r.distance)
    vdot = daniels_vdot(best.distance, best.duration)
    return round(vdot) if vdot is not None else None


def estimate_vdot(runs: Sequence[RunRecord]) -> Optional[float]:
    """
    VDOT from the fastest qualifying run, or None when nothing qualifies.

    Races and near-maximal efforts (9+) are preferred; otherwise any run of
    3 km or more with a pace is used.
    """
    qualifying = _qualifying(runs)
    performances = [r for r in qualifying if _is_performance(r)]
    return _fastest_vdot(performances or [r for r in qualifying if r.avg_pace])


def performance_vdot(runs: Sequence[RunRecord]) -> Optional[float]:
    """
    VDOT from races and near-maximal efforts only.

    Training runs sit below race pace and never count. None when there
    is no such run.
    """
    return _fastest_vdot([r for r in _qualifying(runs) if _is_performance(r)])


def calculate_vdot(runs: Sequence[RunRecord]) -> float:
    """VDOT with a beginner default."""
    vdot = estimate_vdot(runs)
    return vdot if vdot is not None else DEFAULT_VDOT


# ============ Speeds ============

def calculate_critical_speed(runs: Sequence[RunRecord]) -> float:
    """
    Critical speed in km/h from the shortest and longest hard efforts.

    Needs two runs of 3 km or more at effort 8+.
    """
    trials = sorted(
        (r for r in runs if r.distance >= MIN_PERFORMANCE_DISTANCE and (r.effort_level or 0) >= 8),
        key=lambda r: r.distance,
    )
    if len(trials) < 2:
        return DEFAULT_CRITICAL_SPEED

    d1, t1 = trials[0].distance * 1000, trials[0].duration * 60
    d2, t2 = trials[-1].distance * 1000, trials[-1].duration * 60
    if t2 == t1:
        return DEFAULT_CRITICAL_SPEED

    return (d2 - d1) / (t2 - t1) * 3.6


def calculate_lactate_threshold(vdot: float) -> float:
    """Threshold speed in km/h; threshold sits near 88% of VO2max."""
    return vdot * 0.88 / 3.5


def estimate_running_economy(runs: Sequence[RunRecord]) -> float:
    """
    Oxygen cost (ml/kg/km) from easy runs with heart rate and pace.

    Lower is better.
    """
    economy_runs = [
        r for r in runs
        if r.avg_heart_rate and r.avg_pace and r.duration > 20
        and r.effort_level and r.effort_level <= 6
    ]
    if not economy_runs:
        return DEFAULT_RUNNING_ECONOMY

    economies = []
    for run in economy_runs:
        hr_reserve = (run.avg_heart_rate - ASSUMED_RESTING_HR) / (ASSUMED_MAX_HR - ASSUMED_RESTING_HR)
        estimated_vo2 = hr_reserve * 50
        economies.append(estimated_vo2 / (60 / run.avg_pace))

    return round(sum(economies) / len(economies))


# ============ Recovery ============

def calculate_recovery_score(
    runs: Sequence[RunRecord],
    resting_hr: Optional[float] = None,
    hrv: Optional[float] = None,
    now: Optional[date] = None,
) -> float:
    """
    Recovery score 0-100.

    Starts at 70 and loses 5 per hard run (effort 7+) in the last 7 days.
    """
    if now is None:
        now = date.today()

    score = 70
    week_ago = now - timedelta(days=7)
    hard_runs = [r for r in runs if week_ago < r.date <= now and (r.effort_level or 0) >= 7]
    score -= len(hard_runs) * 5

    if hrv:
        if hrv > 60:
            score += 10
        elif hrv < 40:
            score -= 10

    if resting_hr:
        if resting_hr < 50:
            score += 10
        elif resting_hr > 65:
            score -= 10

    return max(0, min(100, score))


# ============ Patterns ============

def _week_start(day: date) -> date:
    return day - timedelta(days=day.weekday())


def analyze_weekly_patterns(runs: Sequence[RunRecord]) -> WeeklyPatterns:
    """Weekly volume, frequency and preferred days (Monday-start weeks)."""
    if not runs:
        return WeeklyPatterns(
            avg_weekly_mileage=0,
            max_weekly_mileage=0,
            avg_runs_per_week=0,
            consistency_score=0,
        )

    weeks: Dict[date, List[RunRecord]] = {}
    for run in runs:
        weeks.setdefault(_week_start(run.date), []).append(run)

    weekly_distances = [sum(r.distance for r in week) for week in weeks.values()]
    avg_runs_per_week = len(runs) / len(weeks)

    day_frequency = [0] * 7
    long_run_days = [0] * 7
    for run in runs:
        day_frequency[run.date.weekday()] += 1
        if run.distance > LONG_RUN_DISTANCE:
            long_run_days[run.date.weekday()] += 1

    by_frequency = sorted(range(7), key=lambda d: (-day_frequency[d], d))
    optimal_days = sorted(by_frequency[:max(1, round(avg_runs_per_week))])

    typical_long_run_day = None
    if any(long_run_days):
        typical_long_run_day = long_run_days.index(max(long_run_days))

    # Share of weeks in the history span that had any running
    first, last = min(weeks), max(weeks)
    span_weeks = (last - first).days // 7 + 1
    consistency = round(len(weeks) / span_weeks * 100)

    return WeeklyPatterns(
        avg_weekly_mileage=round(sum(weekly_distances) / len(weekly_distances)),
        max_weekly_mileage=round(max(weekly_distances)),
        avg_runs_per_week=round(avg_runs_per_week, 1),
        consistency_score=min(100, consistency),
        optimal_days=optimal_days,
        typical_long_run_day=typical_long_run_day,
    )


# ============ Aggregates ============

def calculate_fitness_metrics(runs: Sequence[RunRecord], now: Optional[date] = None) -> FitnessMetrics:
    """All fitness metrics, with training load at the athlete's own threshold pace."""
    if now is None:
        now = date.today()

    vdot = calculate_vdot(runs)
    lactate_threshold = calculate_lactate_threshold(vdot)
    threshold_pace = 60 / lactate_threshold  # min/km

    training_load = TrainingLoadCalculator(threshold_pace).calculate_training_load(runs, now)
    recovery_score = calculate_recovery_score(runs, now=now)

    patterns = analyze_weekly_patterns(runs)
    week_ago = now - timedelta(days=7)
    recent_mileage = sum(r.distance for r in runs if week_ago < r.date <= now)
    weekly_increase = 0.0
    if patterns.avg_weekly_mileage > 0:
        weekly_increase = (recent_mileage - patterns.avg_weekly_mileage) / patterns.avg_weekly_mileage * 100

    return FitnessMetrics(
        vdot=vdot,
        critical_speed=calculate_critical_speed(runs),
        running_economy=estimate_running_economy(runs),
        lactate_threshold=lactate_threshold,
        training_load=training_load,
        injury_risk=calculate_injury_risk(training_load, weekly_increase, recovery_score),
        recovery_score=recovery_score,
    )


def default_fitness() -> FitnessAssessment:
    return FitnessAssessment(
        vdot=DEFAULT_FITNESS["vdot"],
        weekly_mileage=DEFAULT_FITNESS["weekly_mileage"],
        longest_recent_run=DEFAULT_FITNESS["longest_recent_run"],
        training_age=DEFAULT_FITNESS["training_age"],
    )


def assess_fitness(
    runs: Sequence[RunRecord],
    now: Optional[date] = None,
    training_age: Optional[float] = None,
) -> FitnessAssessment:
    """
    Fitness assessment from run history.

    Falls back to the default assessment when there is no history.
    """
    if not runs:
        logger.warning("No run history; using default fitness assessment")
        return default_fitness()

    metrics = calculate_fitness_metrics(runs, now)
    patterns = analyze_weekly_patterns(runs)
    age = training_age if training_age is not None else DEFAULT_FITNESS["training_age"]

    return FitnessAssessment(
        vdot=metrics.vdot,
        critical_speed=metrics.critical_speed,
        lactate_threshold=metrics.lactate_threshold,
        weekly_mileage=patterns.avg_weekly_mileage or DEFAULT_FITNESS["weekly_mileage"],
        longest_recent_run=max(r.distance for r in runs),
        training_age=age,
        recovery_rate=metrics.recovery_score,
        overall_score=calculate_overall_score(
            vdot=metrics.vdot,
            weekly_mileage=patterns.avg_weekly_mileage,
            training_age=age,
            recovery_rate=metrics.recovery_score,
        ),
    )
