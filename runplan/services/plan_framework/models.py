"""
Plan Domain Models

Value objects for a generated plan. A TrainingPlan owns its blocks,
microcycles and workouts as a tree; nothing outside the plan holds
references into it.

Instances are treated as immutable. Anything that changes a plan
(adaptation, fatigue adjustment) builds new objects with
dataclasses.replace and returns a new plan.
"""

from dataclasses import dataclass, field, replace, asdict
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from .constants import (
    DEFAULT_FITNESS,
    DEFAULT_RECOVERY_RATE,
    EASY_WORKOUT_TYPES,
    OVERALL_SCORE_WEIGHTS,
    ExperienceLevel,
    Methodology,
    Periodization,
    Phase,
    TrainingGoal,
    WorkoutType,
)


# ============ Workouts ============

@dataclass
class WorkoutSegment:
    """One block of effort inside a workout."""
    duration: float  # Minutes
    intensity: float  # % of max effort
    description: str = ""
    zone: str = ""


@dataclass
class Workout:
    """Workout structure, usually instantiated from a library template."""
    type: WorkoutType
    segments: List[WorkoutSegment]
    adaptation_target: str
    estimated_tss: float
    recovery_time: float  # Hours
    template_id: Optional[str] = None
    primary_zone: str = ""

    @property
    def total_duration(self) -> float:
        return sum(s.duration for s in self.segments)

    @property
    def mean_intensity(self) -> float:
        """Unweighted mean of segment intensities."""
        if not self.segments:
            return 0.0
        return sum(s.intensity for s in self.segments) / len(self.segments)

    @property
    def segment_load(self) -> float:
        """Duration-weighted squared intensity, proportional to TSS."""
        return sum(s.duration * (s.intensity / 100) ** 2 for s in self.segments)


@dataclass
class TargetMetrics:
    """What the athlete is asked to hit."""
    duration: float
    distance: float
    tss: float
    load: float
    intensity: float


@dataclass
class PlannedWorkout:
    """A workout placed on a calendar date."""
    id: str
    date: date
    type: WorkoutType
    name: str
    description: str
    workout: Workout
    target_metrics: TargetMetrics

    def is_frozen(self, now: date) -> bool:
        """Workouts on or before ``now`` have happened and must not change."""
        return self.date <= now


# ============ Structure ============

@dataclass
class WeeklyMicrocycle:
    """One week of training."""
    week_number: int
    pattern: str
    workouts: List[PlannedWorkout]
    total_load: float = 0.0
    total_distance: float = 0.0
    recovery_ratio: float = 0.0
    is_recovery_week: bool = False
    planned_volume: float = 0.0

    def rebuild(self, workouts: Optional[List[PlannedWorkout]] = None) -> "WeeklyMicrocycle":
        """
        Return a copy with totals recomputed from its workouts.

        Totals are never carried over from a previous state.
        """
        workouts = list(self.workouts if workouts is None else workouts)
        count = len(workouts)
        easy_count = sum(1 for w in workouts if w.type in EASY_WORKOUT_TYPES)
        return replace(
            self,
            workouts=workouts,
            total_load=sum(w.workout.estimated_tss for w in workouts),
            total_distance=round(sum(w.target_metrics.distance or 0 for w in workouts), 1),
            recovery_ratio=easy_count / count if count else 0.0,
        )


@dataclass
class TrainingBlock:
    """A contiguous run of weeks sharing one phase."""
    id: str
    phase: Phase
    start_date: date
    end_date: date  # Exclusive; equals the next block's start_date
    weeks: int
    focus_areas: List[str]
    microcycles: List[WeeklyMicrocycle] = field(default_factory=list)

    @property
    def workouts(self) -> List[PlannedWorkout]:
        return [w for m in self.microcycles for w in m.workouts]

    def contains(self, day: date) -> bool:
        return self.start_date <= day < self.end_date


# ============ Athlete Inputs ============

@dataclass
class RunRecord:
    """One run from the athlete's history."""
    date: date
    distance: float  # km
    duration: float  # Minutes
    avg_pace: Optional[float] = None  # min/km
    avg_heart_rate: Optional[float] = None
    effort_level: Optional[float] = None  # 1-10
    is_race: bool = False
    notes: str = ""


@dataclass
class FitnessAssessment:
    """Scalar fitness snapshot. Immutable for the life of a plan."""
    vdot: float = DEFAULT_FITNESS["vdot"]
    weekly_mileage: float = DEFAULT_FITNESS["weekly_mileage"]  # km/week
    longest_recent_run: float = DEFAULT_FITNESS["longest_recent_run"]  # km
    training_age: float = DEFAULT_FITNESS["training_age"]  # Years
    critical_speed: Optional[float] = None  # km/h
    lactate_threshold: Optional[float] = None  # km/h
    recovery_rate: Optional[float] = None  # 0-100
    overall_score: Optional[float] = None

    def __post_init__(self):
        if self.overall_score is None:
            self.overall_score = calculate_overall_score(
                vdot=self.vdot,
                weekly_mileage=self.weekly_mileage,
                training_age=self.training_age,
                recovery_rate=self.recovery_rate,
            )

    @property
    def experience_level(self) -> ExperienceLevel:
        age = self.training_age or 0
        if age > 2:
            return ExperienceLevel.ADVANCED
        if age > 1:
            return ExperienceLevel.INTERMEDIATE
        return ExperienceLevel.BEGINNER


def calculate_overall_score(
    vdot: Optional[float] = None,
    weekly_mileage: Optional[float] = None,
    training_age: Optional[float] = None,
    recovery_rate: Optional[float] = None,
) -> float:
    """
    Weighted 0-100 fitness score.

    VDOT 40%, volume 25%, experience 20%, recovery 15%.
    """
    vdot_score = min((vdot or DEFAULT_FITNESS["vdot"]) / 80 * 100, 100)
    volume_score = min((weekly_mileage or DEFAULT_FITNESS["weekly_mileage"]) / 100 * 100, 100)
    experience_score = min((training_age or DEFAULT_FITNESS["training_age"]) / 10 * 100, 100)
    recovery_score = recovery_rate or DEFAULT_RECOVERY_RATE

    return round(
        vdot_score * OVERALL_SCORE_WEIGHTS["vdot"]
        + volume_score * OVERALL_SCORE_WEIGHTS["volume"]
        + experience_score * OVERALL_SCORE_WEIGHTS["experience"]
        + recovery_score * OVERALL_SCORE_WEIGHTS["recovery"]
    )


@dataclass
class TrainingPreferences:
    available_days: List[int] = field(default_factory=list)  # 0-6, offsets from week start
    preferred_intensity: str = "moderate"  # low / moderate / high
    cross_training: bool = False
    strength_training: bool = False
    time_constraints: Dict[int, int] = field(default_factory=dict)  # day -> max minutes


@dataclass
class EnvironmentalFactors:
    altitude: Optional[float] = None  # Meters
    typical_temperature: Optional[float] = None  # Celsius
    humidity: Optional[float] = None  # %
    terrain: str = "mixed"  # flat / hilly / mixed / trail


@dataclass
class IntensityDistribution:
    """Percentages per effort band."""
    easy: float = 0.0
    moderate: float = 0.0
    hard: float = 0.0
    very_hard: float = 0.0


@dataclass
class TrainingPlanConfig:
    """Goal inputs. Never mutated after generation."""
    goal: TrainingGoal
    start_date: date
    target_date: Optional[date] = None
    end_date: Optional[date] = None
    current_fitness: Optional[FitnessAssessment] = None
    preferences: Optional[TrainingPreferences] = None
    environment: Optional[EnvironmentalFactors] = None
    methodology: Optional[Methodology] = None
    intensity_distribution: Optional[IntensityDistribution] = None
    periodization: Optional[Periodization] = None
    name: Optional[str] = None

    def total_weeks(self, default_weeks: int = 16) -> int:
        """Whole weeks from start to end (or target); at least 1."""
        finish = self.end_date or self.target_date
        if finish is None:
            return max(1, default_weeks)
        return max(1, (finish - self.start_date).days // 7)


# ============ Plan ============

@dataclass
class PhaseSummary:
    phase: Phase
    weeks: int
    focus: List[str]
    volume_progression: List[float]
    intensity_distribution: IntensityDistribution


@dataclass
class PlanSummary:
    total_weeks: int
    total_workouts: int
    total_distance: float
    total_time: float
    peak_weekly_distance: float
    average_weekly_distance: float
    key_workouts: int
    recovery_days: int
    phases: List[PhaseSummary] = field(default_factory=list)
    residual_weeks: int = 0


@dataclass
class TrainingPlan:
    """Complete generated plan."""
    id: str
    config: TrainingPlanConfig
    blocks: List[TrainingBlock]
    summary: PlanSummary

    @property
    def microcycles(self) -> List[WeeklyMicrocycle]:
        return [m for b in self.blocks for m in b.microcycles]

    @property
    def workouts(self) -> List[PlannedWorkout]:
        return [w for b in self.blocks for w in b.workouts]

    @property
    def weekly_volumes(self) -> List[float]:
        return [m.total_distance for m in self.microcycles]

    @property
    def start_date(self) -> Optional[date]:
        return self.blocks[0].start_date if self.blocks else None

    @property
    def end_date(self) -> Optional[date]:
        return self.blocks[-1].end_date if self.blocks else None

    def get_week(self, week_number: int) -> List[PlannedWorkout]:
        """Get all workouts for a specific week."""
        for m in self.microcycles:
            if m.week_number == week_number:
                return list(m.workouts)
        return []

    def get_workout(self, workout_id: str) -> Optional[PlannedWorkout]:
        for w in self.workouts:
            if w.id == workout_id:
                return w
        return None

    def block_for(self, day: date) -> Optional[TrainingBlock]:
        """
        Block whose date range covers ``day``.

        Membership is derived from dates, so a workout shifted past its
        block's end_date resolves to the following block. Dates after the
        last block resolve to the last block.
        """
        if not self.blocks:
            return None
        for block in self.blocks:
            if block.contains(day):
                return block
        if day >= self.blocks[-1].end_date:
            return self.blocks[-1]
        return None

    def workouts_by_block(self) -> Dict[str, List[PlannedWorkout]]:
        """Group workouts by the block their current date falls in."""
        grouped: Dict[str, List[PlannedWorkout]] = {b.id: [] for b in self.blocks}
        for w in self.workouts:
            block = self.block_for(w.date)
            if block is not None:
                grouped[block.id].append(w)
        return grouped

    def to_dict(self) -> Dict[str, Any]:
        """Convert to plain dict (enums as values, dates as ISO strings)."""
        return _plain(asdict(self))


def _plain(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    return value
