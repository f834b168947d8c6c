"""
Microcycle Builder

Turns a block spec into weeks of scheduled workouts.

For week index w inside a block:
- every 4th week (w+1 divisible by 4) is a recovery week at 70% volume
- volume = base weekly mileage x phase progression factor, capped at
  120% of the previous non-recovery week anywhere in the plan
- the weekly pattern and each workout template come from the philosophy
- distance per workout is the lesser of what the workout's duration
  covers at its estimated pace and an even share of what is left
- a workout longer than the day's time limit is shortened to fit, and
  its distance is allocated from the shortened workout

Usage:
    builder = MicrocycleBuilder(philosophy=TrainingPhilosophy.standard())
    block, last_volume = builder.build_block(spec, fitness)
"""

import logging
import math
from dataclasses import replace
from datetime import timedelta
from typing import Dict, List, Optional, Tuple

from runplan.core.config import settings

from .config import ConfigService
from .constants import (
    DAYS_PER_WEEK,
    MAX_WEEKLY_PROGRESSION,
    PATTERN_TOKEN_TYPES,
    PHASE_PROGRESSION,
    RECOVERY_PHASE_FACTOR,
    RECOVERY_WEEK_PATTERN,
    REST_TOKEN,
    TAPER_MIN_FACTOR,
    TAPER_WEEKLY_REDUCTION,
    THRESHOLD_INTENSITY,
    WEEKLY_PATTERNS,
    WORKOUT_NAMES,
    Phase,
    WorkoutType,
)
from .models import (
    FitnessAssessment,
    PlannedWorkout,
    TargetMetrics,
    TrainingBlock,
    TrainingPreferences,
    WeeklyMicrocycle,
    Workout,
)
from .phase_scheduler import BlockSpec
from .philosophies import TrainingPhilosophy
from .workout_library import get_template

logger = logging.getLogger(__name__)


class MicrocycleBuilder:
    """
    Build the weekly microcycles of one block.
    """

    def __init__(
        self,
        philosophy: Optional[TrainingPhilosophy] = None,
        config: Optional[ConfigService] = None,
        threshold_pace: Optional[float] = None,
    ):
        self.philosophy = philosophy or TrainingPhilosophy.standard()
        self.config = config or ConfigService()
        self.threshold_pace = threshold_pace or settings.THRESHOLD_PACE_MIN_PER_KM

        rules = self.config.get_recovery_week_rules()
        self.recovery_interval = int(rules.get("interval", 4))
        self.recovery_volume_factor = float(rules.get("volume_factor", 0.7))
        self.max_progression = float(
            self.config.get("plan_rules.max_weekly_progression", MAX_WEEKLY_PROGRESSION)
        )

    # ============ Volume ============

    def is_recovery_week(self, week_in_phase: int) -> bool:
        return (week_in_phase + 1) % self.recovery_interval == 0

    def progression_rate(self, fitness: FitnessAssessment) -> float:
        return self.config.get_progression_rate(fitness.experience_level.value)

    @staticmethod
    def progression_factor(phase: Phase, week_in_phase: int, rate: float) -> float:
        """Volume multiplier on base weekly mileage for a week of a phase."""
        if phase == Phase.TAPER:
            return max(TAPER_MIN_FACTOR, 1.0 - TAPER_WEEKLY_REDUCTION * week_in_phase)
        if phase == Phase.RECOVERY:
            return RECOVERY_PHASE_FACTOR

        offset, scale = PHASE_PROGRESSION[phase]
        return offset + week_in_phase * rate * scale

    def weekly_volume(
        self,
        base_volume: float,
        factor: float,
        previous_volume: Optional[float] = None,
        is_recovery: bool = False,
    ) -> float:
        """
        Target km for a week.

        ``previous_volume`` is the last non-recovery week's volume in the
        plan so far; growth past it is capped.
        """
        volume = base_volume * factor
        if previous_volume is not None:
            volume = min(volume, previous_volume * (1 + self.max_progression))
        if is_recovery:
            volume *= self.recovery_volume_factor
        return volume

    # ============ Distance ============

    def estimate_distance(self, workout: Workout) -> float:
        """Km covered by the workout's duration at a pace scaled from threshold."""
        intensity = workout.mean_intensity
        if intensity <= 0:
            return 0.0
        pace = self.threshold_pace / (intensity / THRESHOLD_INTENSITY)
        return workout.total_duration / pace

    def allocate_distance(self, workout: Workout, remaining: float, workouts_left: int) -> float:
        """
        Distance for the next workout of the week, rounded to 0.1 km.

        Never exceeds ``remaining`` so a week never overshoots its volume.
        """
        if remaining <= 0 or workouts_left <= 0:
            return 0.0

        distance = round(min(self.estimate_distance(workout), remaining / workouts_left), 1)
        if distance > remaining:
            distance = math.floor(remaining * 10) / 10
        return max(distance, 0.0)

    # ============ Blocks ============

    def build_block(
        self,
        spec: BlockSpec,
        fitness: FitnessAssessment,
        preferences: Optional[TrainingPreferences] = None,
        previous_volume: Optional[float] = None,
    ) -> Tuple[TrainingBlock, Optional[float]]:
        """
        Build every week of a block.

        Returns:
            The block, and the last non-recovery weekly volume for the
            next block to cap against.
        """
        rate = self.progression_rate(fitness)
        available_days = self._available_days(preferences)
        time_limits = self._time_limits(preferences)
        microcycles: List[WeeklyMicrocycle] = []

        for week_in_phase in range(spec.weeks):
            is_recovery = self.is_recovery_week(week_in_phase)
            factor = self.progression_factor(spec.phase, week_in_phase, rate)
            volume = self.weekly_volume(fitness.weekly_mileage, factor, previous_volume, is_recovery)
            if not is_recovery:
                previous_volume = volume

            microcycles.append(self.build_week(
                spec=spec,
                week_in_phase=week_in_phase,
                volume=volume,
                is_recovery=is_recovery,
                available_days=available_days,
                time_limits=time_limits,
            ))

        block = TrainingBlock(
            id=spec.id,
            phase=spec.phase,
            start_date=spec.start_date,
            end_date=spec.end_date,
            weeks=spec.weeks,
            focus_areas=list(spec.focus_areas),
            microcycles=microcycles,
        )
        logger.debug(f"Built {block.id} ({block.phase.value}, {block.weeks} weeks)")
        return block, previous_volume

    def build_week(
        self,
        spec: BlockSpec,
        week_in_phase: int,
        volume: float,
        is_recovery: bool,
        available_days: List[int],
        time_limits: Optional[Dict[int, float]] = None,
    ) -> WeeklyMicrocycle:
        """
        Schedule one week's workouts from its pattern.

        ``time_limits`` maps a day offset to the most minutes available
        that day.
        """
        time_limits = time_limits or {}
        week_number = spec.first_week_number + week_in_phase
        week_start = spec.start_date + timedelta(weeks=week_in_phase)

        if is_recovery:
            pattern = RECOVERY_WEEK_PATTERN
        else:
            pattern = self.philosophy.select_pattern(spec.phase, week_in_phase, WEEKLY_PATTERNS[spec.phase])

        tokens = pattern.split("-")
        workouts_total = sum(1 for t in tokens if t != REST_TOKEN)

        workouts: List[PlannedWorkout] = []
        remaining = volume
        day_index = 0

        for token_index, token in enumerate(tokens):
            if token == REST_TOKEN:
                continue

            # Next available day, scanning the week cyclically
            for _ in range(DAYS_PER_WEEK):
                if day_index % DAYS_PER_WEEK in available_days:
                    break
                day_index += 1

            day = day_index % DAYS_PER_WEEK
            workout = self._workout_for(token, spec.phase, week_in_phase)
            limit = time_limits.get(day)
            if limit is not None and workout.total_duration > limit:
                logger.warning(
                    f"Week {week_number}: {workout.type.value} shortened from "
                    f"{workout.total_duration:g} to {limit:g} minutes to fit the day"
                )
                workout = fit_to_time(workout, limit)
            distance = self.allocate_distance(workout, remaining, workouts_total - len(workouts))
            remaining -= distance

            workouts.append(PlannedWorkout(
                id=f"workout-{week_number}-{token_index + 1}",
                date=week_start + timedelta(days=day),
                type=workout.type,
                name=workout_name(workout.type, spec.phase),
                description=workout_description(workout),
                workout=workout,
                target_metrics=TargetMetrics(
                    duration=workout.total_duration,
                    distance=distance,
                    tss=workout.estimated_tss,
                    load=workout.estimated_tss,
                    intensity=workout.mean_intensity,
                ),
            ))
            day_index += 1

        microcycle = WeeklyMicrocycle(
            week_number=week_number,
            pattern=pattern,
            workouts=workouts,
            is_recovery_week=is_recovery,
            planned_volume=round(volume, 1),
        )
        return microcycle.rebuild()

    def _workout_for(self, token: str, phase: Phase, week_in_phase: int) -> Workout:
        workout_type = PATTERN_TOKEN_TYPES.get(token)
        if workout_type is None:
            logger.warning(f"Unknown pattern token '{token}', using easy")
            workout_type = WorkoutType.EASY

        template_id = self.philosophy.select_workout(workout_type, phase, week_in_phase)
        return self.philosophy.customize_workout(get_template(template_id), phase, week_in_phase)

    def _available_days(self, preferences: Optional[TrainingPreferences]) -> List[int]:
        days = []
        if preferences and preferences.available_days:
            days = [d for d in preferences.available_days if 0 <= d < DAYS_PER_WEEK]
        return sorted(set(days)) or self.config.get_default_available_days()

    @staticmethod
    def _time_limits(preferences: Optional[TrainingPreferences]) -> Dict[int, float]:
        """Positive per-day limits only; anything else means no limit."""
        if not preferences or not preferences.time_constraints:
            return {}
        return {
            int(day): minutes
            for day, minutes in preferences.time_constraints.items()
            if 0 <= int(day) < DAYS_PER_WEEK and minutes and minutes > 0
        }


def fit_to_time(workout: Workout, max_minutes: float) -> Workout:
    """
    Shorten every segment in proportion so the workout fits ``max_minutes``.

    Segment durations round down to 0.1 min, so the total never exceeds
    the limit. TSS scales with the duration.
    """
    total = workout.total_duration
    if total <= max_minutes or total <= 0:
        return workout
    factor = max_minutes / total
    return replace(
        workout,
        segments=[replace(s, duration=math.floor(s.duration * factor * 10) / 10) for s in workout.segments],
        estimated_tss=round(workout.estimated_tss * factor),
    )


def workout_name(workout_type: WorkoutType, phase: Phase) -> str:
    return f"{phase.value.capitalize()} Phase: {WORKOUT_NAMES.get(workout_type, workout_type.value)}"


def workout_description(workout: Workout) -> str:
    segments = ", ".join(f"{s.duration:g}min {s.description}" for s in workout.segments)
    return f"{workout.adaptation_target}. Workout: {segments}"
