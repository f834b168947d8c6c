"""
Workout Library

Static workout templates the microcycle builder instantiates.

Each template is a list of segments (minutes, % effort, description) plus
the adaptation it targets, its TSS and the recovery it needs. Templates
are shared; callers get a copy and never mutate the library.

Usage:
    workout = get_template("TEMPO_CONTINUOUS")
    ids = templates_for_type(WorkoutType.VO2MAX)  # ["VO2MAX_4X4", "VO2MAX_5X3"]
"""

import copy
from typing import Dict, List, Optional, Sequence, Tuple

from runplan.core.exceptions import TemplateNotFoundError

from .constants import WorkoutType
from .models import Workout, WorkoutSegment


# ============ Zones ============

# (exclusive upper bound, zone name); anything above the last bound is neuromuscular
INTENSITY_ZONES: List[Tuple[float, str]] = [
    (60, "recovery"),
    (70, "easy"),
    (80, "steady"),
    (87, "tempo"),
    (92, "threshold"),
    (97, "vo2max"),
]
TOP_ZONE = "neuromuscular"

BASE_RECOVERY_HOURS: Dict[WorkoutType, int] = {
    WorkoutType.RECOVERY: 8,
    WorkoutType.EASY: 12,
    WorkoutType.STEADY: 18,
    WorkoutType.TEMPO: 24,
    WorkoutType.THRESHOLD: 36,
    WorkoutType.VO2MAX: 48,
    WorkoutType.SPEED: 36,
    WorkoutType.HILL_REPEATS: 36,
    WorkoutType.FARTLEK: 24,
    WorkoutType.PROGRESSION: 24,
    WorkoutType.LONG_RUN: 24,
    WorkoutType.RACE_PACE: 36,
    WorkoutType.TIME_TRIAL: 48,
    WorkoutType.CROSS_TRAINING: 12,
    WorkoutType.STRENGTH: 24,
}


def intensity_zone(intensity: float) -> str:
    """Zone name for an effort percentage."""
    for upper, name in INTENSITY_ZONES:
        if intensity < upper:
            return name
    return TOP_ZONE


def calculate_tss(duration: float, intensity: float) -> int:
    """TSS = minutes x (intensity/100)^2 x 100 / 60, rounded."""
    return round(duration * (intensity / 100) ** 2 * 100 / 60)


def _segments(*parts: Tuple[float, float, str]) -> List[WorkoutSegment]:
    return [
        WorkoutSegment(duration=d, intensity=i, description=desc, zone=intensity_zone(i))
        for d, i, desc in parts
    ]


def _repeats(
    reps: int,
    work: Tuple[float, float, str],
    rest: Tuple[float, float, str],
) -> List[Tuple[float, float, str]]:
    """Interval set with recovery between (not after) repetitions."""
    parts = []
    for rep in range(reps):
        parts.append(work)
        if rep < reps - 1:
            parts.append(rest)
    return parts


def _template(
    template_id: str,
    workout_type: WorkoutType,
    parts: Sequence[Tuple[float, float, str]],
    adaptation_target: str,
    estimated_tss: int,
    recovery_time: int,
) -> Workout:
    segments = _segments(*parts)
    peak = max(s.intensity for s in segments)
    return Workout(
        type=workout_type,
        segments=segments,
        adaptation_target=adaptation_target,
        estimated_tss=estimated_tss,
        recovery_time=recovery_time,
        template_id=template_id,
        primary_zone=intensity_zone(peak),
    )


WARM_UP = (10, 65, "Warm-up")
LONG_WARM_UP = (15, 65, "Warm-up")
COOL_DOWN = (10, 60, "Cool-down")


WORKOUT_TEMPLATES: Dict[str, Workout] = {
    t.template_id: t
    for t in [
        _template(
            "RECOVERY_JOG", WorkoutType.RECOVERY,
            [(30, 50, "Very easy jog, focus on form")],
            "Active recovery and blood flow", 20, 8,
        ),
        _template(
            "EASY_AEROBIC", WorkoutType.EASY,
            [(60, 65, "Conversational pace, nose breathing")],
            "Aerobic base, fat oxidation, capillarization", 50, 12,
        ),
        _template(
            "LONG_RUN", WorkoutType.LONG_RUN,
            [(120, 65, "Steady aerobic effort, maintain form")],
            "Aerobic endurance, glycogen storage, mental resilience", 120, 24,
        ),
        _template(
            "TEMPO_CONTINUOUS", WorkoutType.TEMPO,
            [WARM_UP, (30, 84, "Steady tempo effort"), COOL_DOWN],
            "Lactate clearance, aerobic power", 65, 24,
        ),
        _template(
            "LACTATE_THRESHOLD_2X20", WorkoutType.THRESHOLD,
            [
                WARM_UP,
                (20, 88, "Threshold pace"),
                (5, 60, "Recovery"),
                (20, 88, "Threshold pace"),
                COOL_DOWN,
            ],
            "Lactate threshold improvement", 90, 36,
        ),
        _template(
            "THRESHOLD_PROGRESSION", WorkoutType.THRESHOLD,
            [
                WARM_UP,
                (10, 80, "Build"),
                (10, 85, "Tempo"),
                (10, 90, "Threshold"),
                COOL_DOWN,
            ],
            "Progressive lactate tolerance", 75, 24,
        ),
        _template(
            "VO2MAX_4X4", WorkoutType.VO2MAX,
            [LONG_WARM_UP]
            + _repeats(4, (4, 95, "VO2max interval"), (3, 60, "Recovery"))
            + [COOL_DOWN],
            "VO2max improvement, aerobic power", 100, 48,
        ),
        _template(
            "VO2MAX_5X3", WorkoutType.VO2MAX,
            [LONG_WARM_UP]
            + _repeats(5, (3, 96, "VO2max interval"), (2, 60, "Recovery"))
            + [COOL_DOWN],
            "VO2max and running economy", 95, 48,
        ),
        _template(
            "SPEED_200M_REPS", WorkoutType.SPEED,
            [LONG_WARM_UP]
            + _repeats(6, (0.5, 98, "200m rep"), (2, 50, "Walk recovery"))
            + [COOL_DOWN],
            "Neuromuscular power, running economy", 70, 36,
        ),
        _template(
            "HILL_REPEATS_6X2", WorkoutType.HILL_REPEATS,
            [(15, 65, "Warm-up to hills")]
            + _repeats(6, (2, 92, "Hill repeat"), (3, 50, "Jog down"))
            + [COOL_DOWN],
            "Power, strength, VO2max", 85, 36,
        ),
        _template(
            "FARTLEK_VARIED", WorkoutType.FARTLEK,
            [
                WARM_UP,
                (2, 90, "Hard surge"),
                (3, 65, "Easy recovery"),
                (1, 95, "Sprint"),
                (4, 65, "Easy recovery"),
                (3, 85, "Tempo surge"),
                (2, 65, "Easy recovery"),
                (0.5, 98, "Sprint"),
                (4.5, 65, "Easy recovery"),
                COOL_DOWN,
            ],
            "Speed variation, mental adaptation", 65, 24,
        ),
        _template(
            "PROGRESSION_3_STAGE", WorkoutType.PROGRESSION,
            [
                (20, 65, "Easy start"),
                (20, 78, "Steady pace"),
                (20, 85, "Tempo finish"),
                (5, 60, "Cool-down"),
            ],
            "Pacing, fatigue resistance", 75, 24,
        ),
    ]
}

# Template used when a type has no template of its own
TYPE_FALLBACK_TEMPLATES: Dict[WorkoutType, str] = {
    WorkoutType.STEADY: "EASY_AEROBIC",
    WorkoutType.RACE_PACE: "TEMPO_CONTINUOUS",
    WorkoutType.TIME_TRIAL: "THRESHOLD_PROGRESSION",
    WorkoutType.CROSS_TRAINING: "EASY_AEROBIC",
    WorkoutType.STRENGTH: "RECOVERY_JOG",
}
DEFAULT_TEMPLATE_ID = "EASY_AEROBIC"


def get_template(template_id: str) -> Workout:
    """
    Copy of a library template.

    Raises:
        TemplateNotFoundError: Unknown template id
    """
    template = WORKOUT_TEMPLATES.get(template_id)
    if template is None:
        raise TemplateNotFoundError(template_id)
    return copy.deepcopy(template)


def templates_for_type(workout_type: WorkoutType) -> List[str]:
    """Template ids whose type matches, in library order."""
    return [tid for tid, t in WORKOUT_TEMPLATES.items() if t.type == workout_type]


def fallback_template_id(workout_type: WorkoutType) -> str:
    return TYPE_FALLBACK_TEMPLATES.get(workout_type, DEFAULT_TEMPLATE_ID)


def calculate_recovery_time(workout_type: WorkoutType, duration: float, intensity: float) -> int:
    """Hours of recovery, scaled from the type's base by intensity and duration."""
    base = BASE_RECOVERY_HOURS.get(workout_type, 24)
    return round(base * (intensity / 80) * (duration / 60))


def create_custom_workout(
    workout_type: WorkoutType,
    duration: float,
    primary_intensity: float,
    segments: Optional[List[WorkoutSegment]] = None,
) -> Workout:
    """Single-effort workout built outside the template library."""
    zone = intensity_zone(primary_intensity)
    return Workout(
        type=workout_type,
        segments=segments or [
            WorkoutSegment(
                duration=duration,
                intensity=primary_intensity,
                description=f"Custom {workout_type.value} workout",
                zone=zone,
            )
        ],
        adaptation_target=f"Custom {workout_type.value} adaptations",
        estimated_tss=calculate_tss(duration, primary_intensity),
        recovery_time=calculate_recovery_time(workout_type, duration, primary_intensity),
        primary_zone=zone,
    )
