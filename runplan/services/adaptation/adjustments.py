"""
Copy-on-write transforms of a single planned workout.

Every transform returns a new PlannedWorkout and keeps
target_metrics.tss equal to workout.estimated_tss.
"""

from dataclasses import replace
from typing import Optional

from runplan.services.plan_framework.constants import WorkoutType
from runplan.services.plan_framework.models import (
    PlannedWorkout,
    TargetMetrics,
    Workout,
    WorkoutSegment,
)
from runplan.services.plan_framework.workout_library import (
    calculate_recovery_time,
    calculate_tss,
    intensity_zone,
)

from .constants import (
    RECOVERY_STUB_DESCRIPTION,
    RECOVERY_STUB_DURATION,
    RECOVERY_STUB_INTENSITY,
    RECOVERY_STUB_NAME,
    RECOVERY_STUB_SEGMENT,
)


def _rescaled_tss(tss: float, before: Workout, after: Workout) -> float:
    """TSS scaled by the change in segment load."""
    if before.segment_load <= 0:
        return tss
    return round(tss * after.segment_load / before.segment_load)


def scale_volume(planned: PlannedWorkout, factor: float) -> PlannedWorkout:
    """Scale distance, duration and TSS."""
    metrics = planned.target_metrics
    tss = round(planned.workout.estimated_tss * factor)
    workout = replace(
        planned.workout,
        segments=[replace(s, duration=s.duration * factor) for s in planned.workout.segments],
        estimated_tss=tss,
    )
    return replace(
        planned,
        workout=workout,
        target_metrics=replace(
            metrics,
            distance=round(metrics.distance * factor, 1),
            duration=round(metrics.duration * factor),
            tss=tss,
            load=tss,
        ),
    )


def scale_intensity(
    planned: PlannedWorkout,
    factor: float,
    above: Optional[float] = None,
) -> PlannedWorkout:
    """
    Scale target and segment intensity.

    With ``above`` only segments harder than it change, so warm-ups and
    cool-downs keep their intensity. A workout with no such segment is
    returned unchanged.
    """
    before = planned.workout
    if above is not None and not any(s.intensity > above for s in before.segments):
        return planned

    segments = [
        replace(s, intensity=round(s.intensity * factor), zone=intensity_zone(round(s.intensity * factor)))
        if above is None or s.intensity > above else s
        for s in before.segments
    ]
    after = replace(before, segments=segments)
    tss = _rescaled_tss(before.estimated_tss, before, after)
    after = replace(after, estimated_tss=tss)

    metrics = planned.target_metrics
    return replace(
        planned,
        workout=after,
        target_metrics=replace(metrics, intensity=round(metrics.intensity * factor), tss=tss, load=tss),
    )


def scale_for_fatigue(planned: PlannedWorkout, volume_factor: float, intensity_factor: float) -> PlannedWorkout:
    """Scale duration, distance and intensity together, segment by segment."""
    before = planned.workout
    segments = [
        replace(
            s,
            duration=round(s.duration * volume_factor),
            intensity=round(s.intensity * intensity_factor),
            zone=intensity_zone(round(s.intensity * intensity_factor)),
        )
        for s in before.segments
    ]
    after = replace(before, segments=segments)
    tss = _rescaled_tss(before.estimated_tss, before, after)
    after = replace(after, estimated_tss=tss)

    metrics = planned.target_metrics
    return replace(
        planned,
        workout=after,
        target_metrics=replace(
            metrics,
            duration=round(metrics.duration * volume_factor),
            distance=round(metrics.distance * volume_factor, 1),
            intensity=round(metrics.intensity * intensity_factor),
            tss=tss,
            load=tss,
        ),
    )


def recovery_stub(planned: PlannedWorkout) -> PlannedWorkout:
    """Replace a workout with a short, very easy recovery run on the same date."""
    tss = calculate_tss(RECOVERY_STUB_DURATION, RECOVERY_STUB_INTENSITY)
    zone = intensity_zone(RECOVERY_STUB_INTENSITY)
    workout = Workout(
        type=WorkoutType.RECOVERY,
        segments=[
            WorkoutSegment(
                duration=RECOVERY_STUB_DURATION,
                intensity=RECOVERY_STUB_INTENSITY,
                description=RECOVERY_STUB_SEGMENT,
                zone=zone,
            )
        ],
        adaptation_target="Active recovery",
        estimated_tss=tss,
        recovery_time=calculate_recovery_time(
            WorkoutType.RECOVERY, RECOVERY_STUB_DURATION, RECOVERY_STUB_INTENSITY
        ),
        primary_zone=zone,
    )
    # Distance shrinks with duration, never grows
    metrics = planned.target_metrics
    distance = metrics.distance
    if metrics.duration > RECOVERY_STUB_DURATION:
        distance = round(distance * RECOVERY_STUB_DURATION / metrics.duration, 1)

    return replace(
        planned,
        type=WorkoutType.RECOVERY,
        name=RECOVERY_STUB_NAME,
        description=RECOVERY_STUB_DESCRIPTION,
        workout=workout,
        target_metrics=TargetMetrics(
            duration=RECOVERY_STUB_DURATION,
            distance=distance,
            tss=tss,
            load=tss,
            intensity=RECOVERY_STUB_INTENSITY,
        ),
    )


def retype(planned: PlannedWorkout, workout_type: WorkoutType) -> PlannedWorkout:
    """Change the type in both places it is recorded."""
    return replace(planned, type=workout_type, workout=replace(planned.workout, type=workout_type))
