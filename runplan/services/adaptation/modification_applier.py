"""
Modification Applier

Applies suggested modifications to a plan and returns a new plan.
Workouts dated on or before ``now`` are never touched, and the input
plan is never mutated.

Usage:
    applier = ModificationApplier()
    revised = applier.apply(plan, modifications, now=date.today())
"""

import logging
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional, Sequence

from runplan.core.exceptions import InvalidModificationError
from runplan.services.plan_framework.constants import WorkoutType
from runplan.services.plan_framework.generator import create_summary
from runplan.services.plan_framework.models import PlannedWorkout, TrainingPlan

from .adjustments import recovery_stub, retype, scale_intensity, scale_volume
from .constants import (
    DEFAULT_DELAY_DAYS,
    DEFAULT_INTENSITY_REDUCTION,
    DEFAULT_RECOVERY_DAYS,
    DEFAULT_VOLUME_REDUCTION,
    HARD_INTENSITY,
    INJURY_PROTOCOL_RECOVERY_DAYS,
    INJURY_REST_WINDOW_DAYS,
    PRIORITY_ORDER,
    RECOVERY_CONVERSION_INTENSITY,
)
from .models import ModificationType, PlanModification

logger = logging.getLogger(__name__)


@dataclass
class _Slot:
    """Where a workout lives in the plan tree."""
    block: int
    week: int
    workout: PlannedWorkout


def _percent(value: Optional[float], default: float, field: str) -> float:
    value = default if value is None else value
    if not 0 <= value <= 100:
        raise InvalidModificationError(f"{field} must be between 0 and 100, got {value}", field=field)
    return value


def _count(value: Optional[int], default: int, field: str) -> int:
    value = default if value is None else value
    if value < 0:
        raise InvalidModificationError(f"{field} must not be negative, got {value}", field=field)
    return value


def _is_targeted(modification: PlanModification, workout: PlannedWorkout) -> bool:
    """Workouts named by id or type; every workout when neither is given."""
    if not modification.workout_ids and not modification.workout_types:
        return True
    return workout.id in modification.workout_ids or workout.type in modification.workout_types


class ModificationApplier:
    """
    Apply plan modifications copy-on-write.
    """

    def __init__(self):
        self._handlers: Dict[ModificationType, Callable[[List[_Slot], PlanModification, date], List[_Slot]]] = {
            ModificationType.REDUCE_VOLUME: self._reduce_volume,
            ModificationType.REDUCE_INTENSITY: self._reduce_intensity,
            ModificationType.ADD_RECOVERY: self._add_recovery,
            ModificationType.SUBSTITUTE_WORKOUT: self._substitute_workout,
            ModificationType.DELAY_PROGRESSION: self._delay_progression,
            ModificationType.INJURY_PROTOCOL: self._injury_protocol,
        }

    def apply(
        self,
        plan: TrainingPlan,
        modifications: Sequence[PlanModification],
        now: Optional[date] = None,
    ) -> TrainingPlan:
        """
        Apply modifications highest priority first and return the revised plan.

        Modifications of equal priority keep their given order. Applying the
        same list twice compounds its effect.
        """
        if now is None:
            now = date.today()

        slots = [
            _Slot(block=bi, week=wi, workout=w)
            for bi, block in enumerate(plan.blocks)
            for wi, micro in enumerate(block.microcycles)
            for w in micro.workouts
        ]

        for modification in sorted(modifications, key=lambda m: PRIORITY_ORDER[m.priority]):
            logger.info(f"Applying {modification.type.value} ({modification.priority.value}): {modification.reason}")
            slots = self._handlers[modification.type](slots, modification, now)

        return self._rebuild(plan, slots)

    # ============ Operations ============

    def _map_future(
        self,
        slots: List[_Slot],
        now: date,
        fn: Callable[[PlannedWorkout], Optional[PlannedWorkout]],
    ) -> List[_Slot]:
        """Apply ``fn`` to future workouts; ``fn`` returns None to leave one as is."""
        result = []
        for slot in slots:
            if not slot.workout.is_frozen(now):
                changed = fn(slot.workout)
                if changed is not None:
                    slot = replace(slot, workout=changed)
            result.append(slot)
        return result

    def _reduce_volume(self, slots: List[_Slot], modification: PlanModification, now: date) -> List[_Slot]:
        reduction = _percent(
            modification.suggested_changes.volume_reduction, DEFAULT_VOLUME_REDUCTION, "volume_reduction"
        )
        factor = 1 - reduction / 100
        return self._map_future(
            slots, now,
            lambda w: scale_volume(w, factor) if _is_targeted(modification, w) else None,
        )

    def _reduce_intensity(self, slots: List[_Slot], modification: PlanModification, now: date) -> List[_Slot]:
        reduction = _percent(
            modification.suggested_changes.intensity_reduction, DEFAULT_INTENSITY_REDUCTION, "intensity_reduction"
        )
        factor = 1 - reduction / 100
        named = bool(modification.workout_ids or modification.workout_types)

        def reduce(w: PlannedWorkout) -> Optional[PlannedWorkout]:
            if named:
                if not _is_targeted(modification, w):
                    return None
            elif w.target_metrics.intensity <= HARD_INTENSITY:
                return None
            return scale_intensity(w, factor, above=HARD_INTENSITY)

        return self._map_future(slots, now, reduce)

    def _add_recovery(self, slots: List[_Slot], modification: PlanModification, now: date) -> List[_Slot]:
        days = _count(
            modification.suggested_changes.additional_recovery_days, DEFAULT_RECOVERY_DAYS, "additional_recovery_days"
        )
        return self._convert_to_recovery(slots, days, now)

    @staticmethod
    def _convert_to_recovery(slots: List[_Slot], count: int, now: date) -> List[_Slot]:
        """Turn the first ``count`` hard future workouts, in date order, into recovery runs."""
        candidates = sorted(
            (
                i for i, slot in enumerate(slots)
                if not slot.workout.is_frozen(now)
                and slot.workout.target_metrics.intensity > RECOVERY_CONVERSION_INTENSITY
            ),
            key=lambda i: slots[i].workout.date,
        )[:count]

        result = list(slots)
        for i in candidates:
            result[i] = replace(result[i], workout=recovery_stub(result[i].workout))
        return result

    def _substitute_workout(self, slots: List[_Slot], modification: PlanModification, now: date) -> List[_Slot]:
        new_type = modification.suggested_changes.substitute_workout_type or WorkoutType.EASY
        return self._map_future(
            slots, now,
            lambda w: retype(w, new_type) if _is_targeted(modification, w) else None,
        )

    def _delay_progression(self, slots: List[_Slot], modification: PlanModification, now: date) -> List[_Slot]:
        days = _count(modification.suggested_changes.delay_days, DEFAULT_DELAY_DAYS, "delay_days")
        shift = timedelta(days=days)
        return self._map_future(slots, now, lambda w: replace(w, date=w.date + shift))

    def _injury_protocol(self, slots: List[_Slot], modification: PlanModification, now: date) -> List[_Slot]:
        if (modification.suggested_changes.volume_reduction or 0) >= 100:
            horizon = now + timedelta(days=INJURY_REST_WINDOW_DAYS)
            kept = [s for s in slots if not now < s.workout.date <= horizon]
            logger.info(f"Injury protocol: removed {len(slots) - len(kept)} workout(s) through {horizon}")
            return kept
        return self._convert_to_recovery(slots, INJURY_PROTOCOL_RECOVERY_DAYS, now)

    # ============ Rebuild ============

    @staticmethod
    def _rebuild(plan: TrainingPlan, slots: List[_Slot]) -> TrainingPlan:
        """Regroup workouts into their weeks and recompute every total that changed."""
        grouped: Dict[tuple, List[PlannedWorkout]] = {}
        for slot in slots:
            grouped.setdefault((slot.block, slot.week), []).append(slot.workout)

        blocks = []
        for bi, block in enumerate(plan.blocks):
            microcycles = []
            for wi, micro in enumerate(block.microcycles):
                workouts = grouped.get((bi, wi), [])
                unchanged = len(workouts) == len(micro.workouts) and all(
                    a is b for a, b in zip(workouts, micro.workouts)
                )
                microcycles.append(micro if unchanged else micro.rebuild(workouts))
            blocks.append(replace(block, microcycles=microcycles))

        return replace(
            plan,
            blocks=blocks,
            summary=create_summary(blocks, residual_weeks=plan.summary.residual_weeks),
        )
