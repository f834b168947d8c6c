"""
Constants for plan adaptation.

Thresholds for progress, risk and recovery analysis, and the fixed
text of recommendations.
"""

from typing import Dict, Tuple

from .models import FatigueLevel, Priority, RecoveryState


# ============ Workload ============

SAFE_ACWR_LOWER = 0.8
SAFE_ACWR_UPPER = 1.3
HIGH_RISK_ACWR = 1.5

MIN_RECOVERY_SCORE = 60
MIN_ADHERENCE = 0.7


# ============ Progress ============

MIN_WORKOUTS_FOR_TREND = 5
TREND_THRESHOLD_PCT = 2.0
VOLUME_TREND_MIN_WEEKS = 3
VOLUME_TREND_BAND = 0.10
DEFAULT_PERCEIVED_EFFORT = 5

# Upper bounds (inclusive) on perceived effort per band
EFFORT_BANDS: Tuple[Tuple[float, str], ...] = (
    (3, "easy"),
    (6, "moderate"),
    (8, "hard"),
)


# ============ Fatigue ============

ACUTE_FATIGUE_WINDOW_DAYS = 3
ACUTE_FATIGUE_CAP = 100
POOR_COMPLETION_RATE = 0.9
POOR_COMPLETION_PENALTY = 10
FATIGUE_NOTES_PENALTY = 15
FATIGUE_NOTE_WORDS = ("tired", "fatigue")

CHRONIC_FATIGUE_EFFORT = 7
CHRONIC_FATIGUE_COMPLETION = 0.85
CHRONIC_FATIGUE_DAYS = 5
EMERGING_FATIGUE_DAYS = 3

OVERREACHING_TSS_THRESHOLD = 150  # Daily TSS
TSS_OVERLOAD_DAYS = 2
SEVERE_TSS_OVERLOAD_DAYS = 3

HIGH_ACUTE_FATIGUE = 70
MODERATE_ACUTE_FATIGUE = 50

# (volume factor, intensity factor)
FATIGUE_ADJUSTMENTS: Dict[FatigueLevel, Tuple[float, float]] = {
    FatigueLevel.LOW: (1.0, 1.0),
    FatigueLevel.MODERATE: (0.9, 0.95),
    FatigueLevel.HIGH: (0.7, 0.85),
    FatigueLevel.SEVERE: (0.5, 0.7),
}

FATIGUE_WARNINGS: Dict[FatigueLevel, str] = {
    FatigueLevel.SEVERE: "Severe fatigue detected - immediate rest recommended",
    FatigueLevel.HIGH: "High fatigue levels - reduce training intensity",
    FatigueLevel.MODERATE: "Moderate fatigue - monitor closely",
}


# ============ Overreaching ============

PROJECTION_WINDOW_DAYS = 7
PROJECTION_TSS_DIVISOR = 350
DEFAULT_PLANNED_TSS = 50
HARD_EFFORT = 8
HARD_EFFORT_RISK = 10

# (current risk, projected risk) thresholds, checked in order
RISK_LEVEL_THRESHOLDS = (
    ("critical", 80, 90),
    ("high", 60, 70),
    ("moderate", 40, 50),
)

MITIGATION_HIGH_RISK = [
    "Immediately reduce training volume by 30-40%",
    "Replace high-intensity workouts with easy recovery runs",
    "Schedule professional assessment if pain persists",
]
MITIGATION_HIGH_ACWR = [
    "Gradually reduce training load over 2 weeks",
    "Focus on maintaining fitness rather than building",
]
MITIGATION_MILEAGE_JUMP = [
    "Limit weekly mileage increases to 10%",
    "Add recovery weeks every 3-4 weeks",
]
MITIGATION_LOW_RECOVERY = [
    "Prioritize sleep and nutrition",
    "Consider cross-training activities",
    "Monitor morning heart rate variability",
]


# ============ Recovery ============

RECOVERY_BASE_SCORE = 70
RECOVERY_SCALE_MIDPOINT = 5
RECOVERY_SCALE_WEIGHT = 4

# (minimum score, state), checked in order
RECOVERY_STATES: Tuple[Tuple[float, RecoveryState], ...] = (
    (80, RecoveryState.RECOVERED),
    (60, RecoveryState.ADEQUATE),
    (40, RecoveryState.FATIGUED),
)

RECOVERY_STATE_RECOMMENDATIONS = {
    RecoveryState.OVERREACHED: [
        "Take 2-3 days of complete rest",
        "Focus on sleep quality (8+ hours)",
        "Consider massage or light stretching",
    ],
    RecoveryState.FATIGUED: [
        "Reduce training intensity by 30%",
        "Add an extra recovery day this week",
        "Prioritize hydration and nutrition",
    ],
}
POOR_SLEEP_RECOMMENDATION = "Improve sleep hygiene - aim for consistent bedtime"
HIGH_SORENESS_RECOMMENDATION = "Consider foam rolling and dynamic stretching"
LOW_HRV_RECOMMENDATION = "HRV is low - reduce stress and training load"


# ============ Applier ============

PRIORITY_ORDER: Dict[Priority, int] = {
    Priority.HIGH: 0,
    Priority.MEDIUM: 1,
    Priority.LOW: 2,
}

DEFAULT_VOLUME_REDUCTION = 20
DEFAULT_INTENSITY_REDUCTION = 20
DEFAULT_RECOVERY_DAYS = 2
DEFAULT_DELAY_DAYS = 7
INJURY_PROTOCOL_RECOVERY_DAYS = 7
INJURY_REST_WINDOW_DAYS = 7

HARD_INTENSITY = 80  # Target/segment intensity affected by intensity reductions
RECOVERY_CONVERSION_INTENSITY = 75  # Workouts above this can become recovery runs

RECOVERY_STUB_DURATION = 30
RECOVERY_STUB_INTENSITY = 50
RECOVERY_STUB_NAME = "Recovery Run (Modified)"
RECOVERY_STUB_DESCRIPTION = "Easy recovery run - plan adjusted for fatigue"
RECOVERY_STUB_SEGMENT = "Very easy recovery pace"


# ============ Methodology overlay ============

BASE_MODIFICATION_CONFIDENCE = 70
BASE_MODIFICATION_PRINCIPLE = "General training principles"

INSIGHT_MIN_WORKOUTS = 5
INTENSITY_TARGET_TOLERANCE = 5
THRESHOLD_VOLUME_LIMIT = 15
AEROBIC_EFFORT_CEILING = 5  # Easy runs at or under this effort count as efficient
MEDIUM_LONG_DISTANCE = 15.0  # km

ESTABLISHED_PROFILE_RESPONSES = 5
EFFECTIVENESS_WEIGHTS = {
    "performance": 0.4,
    "adherence": 0.3,
    "recovery": 0.2,
    "satisfaction": 0.1,
}
EFFECTIVENESS_ALPHA = 0.3
PREFERRED_EFFECTIVENESS = 75
AVOIDED_EFFECTIVENESS = 40

# Effectiveness trend updated by each modification type
EFFECTIVENESS_TREND_KEYS = {
    "reduce_volume": "volume_changes",
    "reduce_intensity": "intensity_changes",
    "add_recovery": "recovery_changes",
    "substitute_workout": "workout_type_changes",
}

RECOMMENDATION_MORE_DATA = "Complete more workouts to generate methodology-specific recommendations"
RECOMMENDATION_DANIELS_INTENSITY = "Reduce hard training intensity to maintain 80/20 distribution"
RECOMMENDATION_DANIELS_VDOT = "Consider pace adjustment due to VDOT decline"
RECOMMENDATION_LYDIARD_BASE = "Increase aerobic base development with more easy running"
RECOMMENDATION_LYDIARD_TIME = "Focus on time-based training rather than pace-specific work"
RECOMMENDATION_PFITZINGER_THRESHOLD = "Reduce lactate threshold volume to prevent overload"
RECOMMENDATION_PFITZINGER_MEDIUM_LONG = "Incorporate medium-long runs with tempo segments"
RECOMMENDATIONS_HUDSON = [
    "Monitor individual response and adjust training based on feedback",
    "Assess current adaptation and modify plan accordingly",
]
RECOMMENDATION_CUSTOM = "Monitor training balance and adjust based on personal response"
