"""
Adaptation Domain Models

Inputs (completed workouts, recovery check-ins), derived analyses
(progress, risk, recovery) and the transient modifications that carry
a revision from the planner to the applier.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional

from runplan.services.plan_framework.constants import WorkoutType
from runplan.services.plan_framework.models import (
    FitnessAssessment,
    IntensityDistribution,
    PlannedWorkout,
    RunRecord,
    TrainingPlan,
)
from runplan.services.training_load import TrainingLoad


class InjuryStatus(str, Enum):
    HEALTHY = "healthy"
    MINOR = "minor"
    INJURED = "injured"
    SEVERE = "severe"


class IllnessStatus(str, Enum):
    HEALTHY = "healthy"
    SICK = "sick"


class ModificationType(str, Enum):
    REDUCE_VOLUME = "reduce_volume"
    REDUCE_INTENSITY = "reduce_intensity"
    ADD_RECOVERY = "add_recovery"
    SUBSTITUTE_WORKOUT = "substitute_workout"
    DELAY_PROGRESSION = "delay_progression"
    INJURY_PROTOCOL = "injury_protocol"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class FatigueLevel(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    SEVERE = "severe"


class RiskLevel(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"


class RecoveryState(str, Enum):
    RECOVERED = "recovered"
    ADEQUATE = "adequate"
    FATIGUED = "fatigued"
    OVERREACHED = "overreached"


# ============ Inputs ============

@dataclass
class CompletedWorkout:
    """What the athlete actually did."""
    workout_id: str
    date: date
    actual_distance: Optional[float] = None  # km
    actual_duration: Optional[float] = None  # Minutes
    planned_duration: Optional[float] = None  # Minutes
    perceived_effort: Optional[float] = None  # 1-10
    avg_heart_rate: Optional[float] = None
    notes: str = ""
    workout_type: Optional[WorkoutType] = None
    planned_type: Optional[WorkoutType] = None  # Type of the workout it fulfilled

    @classmethod
    def fulfilling(cls, planned: PlannedWorkout, **actuals) -> "CompletedWorkout":
        """Completion of a planned workout. Only its id, date, type and duration are copied."""
        return cls(
            workout_id=planned.id,
            date=planned.date,
            planned_duration=planned.target_metrics.duration,
            planned_type=planned.type,
            **actuals,
        )

    @property
    def completion_rate(self) -> float:
        """Actual over planned duration; 1 when either is unknown."""
        if self.actual_duration and self.planned_duration:
            return self.actual_duration / self.planned_duration
        return 1.0

    @property
    def resolved_type(self) -> Optional[WorkoutType]:
        """Reported type, else the planned type."""
        if self.workout_type is not None:
            return self.workout_type
        return self.planned_type

    def to_run_record(self) -> RunRecord:
        pace = None
        if self.actual_duration and self.actual_distance:
            pace = self.actual_duration / self.actual_distance
        return RunRecord(
            date=self.date,
            distance=self.actual_distance or 0,
            duration=self.actual_duration or 0,
            avg_pace=pace,
            avg_heart_rate=self.avg_heart_rate,
            effort_level=self.perceived_effort,
            notes=self.notes or "",
        )


@dataclass
class RecoveryMetrics:
    """Daily recovery check-in. Scales are 1-10 unless noted."""
    date: date
    resting_hr: Optional[float] = None  # bpm
    hrv: Optional[float] = None  # ms
    sleep_quality: Optional[float] = None
    sleep_hours: Optional[float] = None
    muscle_soreness: Optional[float] = None
    energy_level: Optional[float] = None
    stress_level: Optional[float] = None
    motivation: Optional[float] = None
    injury_status: InjuryStatus = InjuryStatus.HEALTHY
    illness_status: IllnessStatus = IllnessStatus.HEALTHY
    recovery_score: Optional[float] = None  # 0-100, overrides the computed score


# ============ Progress ============

@dataclass
class VolumeProgress:
    weekly_average: float
    trend: str  # increasing / stable / decreasing


@dataclass
class ProgressSnapshot:
    adherence_rate: float
    performance_trend: str  # improving / maintaining / declining
    volume_progress: VolumeProgress
    intensity_distribution: IntensityDistribution
    current_fitness: FitnessAssessment
    completed_count: int
    planned_count: int
    completed_workouts: List[CompletedWorkout] = field(default_factory=list)
    date: Optional[date] = None


# ============ Risk ============

@dataclass
class ChronicFatigue:
    detected: bool
    days: int
    pattern: str  # none / emerging_fatigue / persistent_underperformance


@dataclass
class TSSOverload:
    detected: bool
    consecutive: int
    max_daily_tss: float


@dataclass
class RiskAssessment:
    training_load: TrainingLoad
    acute_fatigue: float
    chronic_fatigue: ChronicFatigue
    tss_overload: TSSOverload
    fatigue_level: FatigueLevel
    warnings: List[str] = field(default_factory=list)


@dataclass
class OverreachingAssessment:
    risk_level: RiskLevel
    acute_chronic_ratio: float
    weekly_load_increase: float
    current_risk: int
    projected_risk: int
    mitigation_strategies: List[str] = field(default_factory=list)


@dataclass
class RecoveryStatus:
    score: float
    status: RecoveryState
    recommendations: List[str] = field(default_factory=list)


@dataclass
class RecoveryPhase:
    name: str
    duration: int  # Days
    workouts: List[WorkoutType]
    volume_percent: float
    intensity_limit: float
    focus: str


@dataclass
class RecoveryProtocol:
    condition: str  # injury / illness
    severity: str  # mild / moderate / severe
    phases: List[RecoveryPhase]
    guidelines: List[str]
    return_criteria: List[str]

    @property
    def total_days(self) -> int:
        return sum(p.duration for p in self.phases)


# ============ Modifications ============

@dataclass
class SuggestedChanges:
    volume_reduction: Optional[float] = None  # %
    intensity_reduction: Optional[float] = None  # %
    substitute_workout_type: Optional[WorkoutType] = None
    additional_recovery_days: Optional[int] = None
    delay_days: Optional[int] = None


@dataclass
class PlanModification:
    """A suggested change, consumed by the applier."""
    type: ModificationType
    reason: str
    priority: Priority
    suggested_changes: SuggestedChanges = field(default_factory=SuggestedChanges)
    workout_ids: List[str] = field(default_factory=list)
    workout_types: List[WorkoutType] = field(default_factory=list)
    methodology_specific: bool = False
    philosophy_principle: Optional[str] = None
    confidence: Optional[float] = None


# ============ Methodology overlay ============

@dataclass
class MethodologyInsights:
    methodology: str
    philosophy_alignment: int
    adaptation_recommendations: List[str]
    response_profile_status: str  # new / learning / established
    key_metrics: Dict[str, float]
    compliance_score: int


@dataclass
class OutcomeMetrics:
    """Change scores after a modification was applied, each 0-100."""
    performance_change: float
    adherence_change: float
    recovery_change: float
    satisfaction_change: float


@dataclass
class AdaptationResponse:
    applied_date: date
    modification: PlanModification
    outcome: OutcomeMetrics
    effectiveness: int
    notes: str = ""


@dataclass
class ResponseProfile:
    """How one athlete has responded to modifications under one methodology."""
    athlete_id: str
    methodology: str
    response_history: List[AdaptationResponse] = field(default_factory=list)
    preferred_modifications: List[PlanModification] = field(default_factory=list)
    avoided_modifications: List[PlanModification] = field(default_factory=list)
    effectiveness_trends: Dict[str, float] = field(default_factory=lambda: {
        "volume_changes": 50.0,
        "intensity_changes": 50.0,
        "recovery_changes": 50.0,
        "workout_type_changes": 50.0,
    })
    last_updated: Optional[date] = None


# ============ Engine ============

@dataclass
class AdaptationResult:
    """Outcome of one adaptation cycle."""
    plan: TrainingPlan
    modifications: List[PlanModification]
    progress: ProgressSnapshot
    risk: RiskAssessment
    overreaching: OverreachingAssessment
    recovery: RecoveryStatus
    insights: MethodologyInsights
    needs_adaptation: bool

    @property
    def adapted(self) -> bool:
        return bool(self.modifications)
