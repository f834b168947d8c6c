"""
Constants for plan generation.

These are DEFAULTS that can be overridden by plan_rules.yaml.
They exist here for type safety and documentation.
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple


class Phase(str, Enum):
    """Training phases, in plan order."""
    BASE = "base"
    BUILD = "build"
    PEAK = "peak"
    TAPER = "taper"
    RECOVERY = "recovery"


class WorkoutType(str, Enum):
    """Workout types a plan can contain."""
    RECOVERY = "recovery"
    EASY = "easy"
    STEADY = "steady"
    TEMPO = "tempo"
    THRESHOLD = "threshold"
    VO2MAX = "vo2max"
    SPEED = "speed"
    HILL_REPEATS = "hill_repeats"
    FARTLEK = "fartlek"
    PROGRESSION = "progression"
    LONG_RUN = "long_run"
    RACE_PACE = "race_pace"
    TIME_TRIAL = "time_trial"
    CROSS_TRAINING = "cross_training"
    STRENGTH = "strength"


class TrainingGoal(str, Enum):
    """Athlete goals."""
    FIRST_5K = "first_5k"
    IMPROVE_5K = "improve_5k"
    FIRST_10K = "first_10k"
    HALF_MARATHON = "half_marathon"
    MARATHON = "marathon"
    ULTRA = "ultra"
    GENERAL_FITNESS = "general_fitness"


class Methodology(str, Enum):
    """Coaching systems with their own intensity distribution and emphasis."""
    DANIELS = "daniels"
    LYDIARD = "lydiard"
    PFITZINGER = "pfitzinger"
    HUDSON = "hudson"
    CUSTOM = "custom"


class ExperienceLevel(str, Enum):
    """Progression class derived from training age."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class Periodization(str, Enum):
    """Periodization model requested in the plan config."""
    LINEAR = "linear"
    BLOCK = "block"
    UNDULATING = "undulating"
    REVERSE = "reverse"


# ============ Phase Distribution ============

# (max_total_weeks, {phase: percent}); last entry has no upper bound.
# Integer percentages with floor division; leftover weeks are reported, not allocated.
PHASE_DISTRIBUTIONS: List[Tuple[Optional[int], Dict[Phase, int]]] = [
    (8, {
        Phase.BASE: 40,
        Phase.BUILD: 40,
        Phase.TAPER: 20,
    }),
    (16, {
        Phase.BASE: 35,
        Phase.BUILD: 35,
        Phase.PEAK: 20,
        Phase.TAPER: 10,
    }),
    (None, {
        Phase.BASE: 30,
        Phase.BUILD: 30,
        Phase.PEAK: 25,
        Phase.TAPER: 10,
        Phase.RECOVERY: 5,
    }),
]

PHASE_ORDER: List[Phase] = [
    Phase.BASE,
    Phase.BUILD,
    Phase.PEAK,
    Phase.TAPER,
    Phase.RECOVERY,
]

PHASE_FOCUS_AREAS: Dict[Phase, List[str]] = {
    Phase.BASE: ["Aerobic capacity", "Running economy", "Injury prevention"],
    Phase.BUILD: ["Lactate threshold", "VO2max development", "Race pace familiarity"],
    Phase.PEAK: ["Race-specific fitness", "Speed endurance", "Mental preparation"],
    Phase.TAPER: ["Recovery", "Maintenance", "Race readiness"],
    Phase.RECOVERY: ["Active recovery", "Reflection", "Planning"],
}


# ============ Volume Progression ============

PROGRESSION_RATES: Dict[ExperienceLevel, float] = {
    ExperienceLevel.BEGINNER: 0.05,
    ExperienceLevel.INTERMEDIATE: 0.08,
    ExperienceLevel.ADVANCED: 0.10,
}
MAX_WEEKLY_PROGRESSION = 0.20     # Hard cap, week over week

RECOVERY_WEEK_INTERVAL = 4        # Every 4th week inside a block
RECOVERY_WEEK_VOLUME_FACTOR = 0.7
TAPER_WEEKLY_REDUCTION = 0.2
TAPER_MIN_FACTOR = 0.3
RECOVERY_PHASE_FACTOR = 0.6

# (offset, per-week multiplier on the progression rate)
PHASE_PROGRESSION: Dict[Phase, Tuple[float, float]] = {
    Phase.BASE: (1.0, 1.0),
    Phase.BUILD: (1.2, 0.8),
    Phase.PEAK: (1.3, 0.5),
}


# ============ Weekly Patterns ============

RECOVERY_WEEK_PATTERN = "Easy-Recovery-Easy-Recovery-Rest-Easy-Recovery"

WEEKLY_PATTERNS: Dict[Phase, List[str]] = {
    Phase.BASE: [
        "Easy-Steady-Easy-Tempo-Rest-Long-Recovery",
        "Easy-Hills-Recovery-Steady-Rest-Long-Easy",
    ],
    Phase.BUILD: [
        "Easy-Intervals-Recovery-Tempo-Rest-Long-Recovery",
        "Easy-Threshold-Recovery-Hills-Rest-Progression-Recovery",
    ],
    Phase.PEAK: [
        "Easy-VO2max-Recovery-RacePace-Rest-Long-Recovery",
        "Easy-Speed-Recovery-Threshold-Rest-TimeTrial-Recovery",
    ],
    Phase.TAPER: [
        "Easy-Tempo-Recovery-Easy-Rest-MediumLong-Recovery",
        "Easy-Strides-Recovery-Easy-Rest-Easy-Rest",
    ],
    Phase.RECOVERY: [
        "Easy-Recovery-Rest-Easy-Rest-Easy-Recovery",
    ],
}

REST_TOKEN = "Rest"

PATTERN_TOKEN_TYPES: Dict[str, WorkoutType] = {
    "Easy": WorkoutType.EASY,
    "Recovery": WorkoutType.RECOVERY,
    "Steady": WorkoutType.STEADY,
    "Tempo": WorkoutType.TEMPO,
    "Threshold": WorkoutType.THRESHOLD,
    "Intervals": WorkoutType.VO2MAX,
    "VO2max": WorkoutType.VO2MAX,
    "Hills": WorkoutType.HILL_REPEATS,
    "Long": WorkoutType.LONG_RUN,
    "Progression": WorkoutType.PROGRESSION,
    "Speed": WorkoutType.SPEED,
    "Strides": WorkoutType.SPEED,
    "RacePace": WorkoutType.RACE_PACE,
    "TimeTrial": WorkoutType.TIME_TRIAL,
    "MediumLong": WorkoutType.EASY,
}

DEFAULT_AVAILABLE_DAYS: List[int] = [0, 2, 4, 6]  # Offsets from week start
DAYS_PER_WEEK = 7


# ============ Distance Estimation ============

THRESHOLD_PACE_MIN_PER_KM = 5.0
THRESHOLD_INTENSITY = 88           # % effort that runs at threshold pace


# ============ Fitness Defaults ============

DEFAULT_FITNESS = {
    "weekly_mileage": 30.0,
    "longest_recent_run": 10.0,
    "vdot": 40.0,
    "training_age": 1.0,
}
DEFAULT_RECOVERY_RATE = 75.0

OVERALL_SCORE_WEIGHTS = {
    "vdot": 0.40,
    "volume": 0.25,
    "experience": 0.20,
    "recovery": 0.15,
}


# ============ Summary ============

KEY_WORKOUT_TYPES = {WorkoutType.THRESHOLD, WorkoutType.VO2MAX, WorkoutType.RACE_PACE}
EASY_WORKOUT_TYPES = {WorkoutType.EASY, WorkoutType.RECOVERY}

# Upper bounds (exclusive) on target intensity for summary bands
SUMMARY_INTENSITY_BANDS = {
    "easy": 75,
    "moderate": 88,
    "hard": 95,
}

WORKOUT_NAMES: Dict[WorkoutType, str] = {
    WorkoutType.RECOVERY: "Recovery Run",
    WorkoutType.EASY: "Easy Aerobic Run",
    WorkoutType.STEADY: "Steady State Run",
    WorkoutType.TEMPO: "Tempo Run",
    WorkoutType.THRESHOLD: "Lactate Threshold Workout",
    WorkoutType.VO2MAX: "VO2max Intervals",
    WorkoutType.SPEED: "Speed Development",
    WorkoutType.HILL_REPEATS: "Hill Repeats",
    WorkoutType.FARTLEK: "Fartlek Run",
    WorkoutType.PROGRESSION: "Progression Run",
    WorkoutType.LONG_RUN: "Long Run",
    WorkoutType.RACE_PACE: "Race Pace Practice",
    WorkoutType.TIME_TRIAL: "Time Trial",
    WorkoutType.CROSS_TRAINING: "Cross Training",
    WorkoutType.STRENGTH: "Strength Training",
}
