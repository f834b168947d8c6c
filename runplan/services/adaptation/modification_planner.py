"""
Modification Planner

Turns progress, training load and recovery into suggested plan
modifications. Every rule is evaluated on its own; all that apply fire.

Usage:
    planner = ModificationPlanner()

    if planner.needs_adaptation(progress, load, metrics):
        modifications = planner.suggest(progress, load, metrics)
"""

import logging
from typing import List, Optional

from runplan.services.plan_framework.constants import WorkoutType
from runplan.services.training_load import TrainingLoad

from .constants import (
    HIGH_RISK_ACWR,
    MIN_ADHERENCE,
    MIN_RECOVERY_SCORE,
    SAFE_ACWR_LOWER,
    SAFE_ACWR_UPPER,
)
from .models import (
    IllnessStatus,
    InjuryStatus,
    ModificationType,
    PlanModification,
    Priority,
    ProgressSnapshot,
    RecoveryMetrics,
    SuggestedChanges,
)
from .recovery import recovery_score_for

logger = logging.getLogger(__name__)


class ModificationPlanner:
    """
    Suggest plan modifications from the athlete's current state.
    """

    def suggest(
        self,
        progress: ProgressSnapshot,
        training_load: TrainingLoad,
        recovery: Optional[RecoveryMetrics] = None,
    ) -> List[PlanModification]:
        modifications: List[PlanModification] = []

        if training_load.ratio > HIGH_RISK_ACWR:
            modifications.append(PlanModification(
                type=ModificationType.REDUCE_VOLUME,
                reason="Acute:chronic workload ratio too high - injury risk",
                priority=Priority.HIGH,
                suggested_changes=SuggestedChanges(volume_reduction=30),
            ))
        elif training_load.ratio > SAFE_ACWR_UPPER:
            modifications.append(PlanModification(
                type=ModificationType.REDUCE_INTENSITY,
                reason="Training load approaching high risk zone",
                priority=Priority.MEDIUM,
                suggested_changes=SuggestedChanges(intensity_reduction=20),
            ))

        if recovery is not None:
            score = recovery_score_for(recovery)
            if score < MIN_RECOVERY_SCORE:
                modifications.append(PlanModification(
                    type=ModificationType.ADD_RECOVERY,
                    reason="Low recovery score - need additional rest",
                    priority=Priority.HIGH,
                    suggested_changes=SuggestedChanges(
                        additional_recovery_days=2,
                        intensity_reduction=30,
                    ),
                ))

            if recovery.injury_status != InjuryStatus.HEALTHY:
                severe = recovery.injury_status == InjuryStatus.SEVERE
                modifications.append(PlanModification(
                    type=ModificationType.INJURY_PROTOCOL,
                    reason=f"Injury reported ({recovery.injury_status.value})",
                    priority=Priority.HIGH,
                    suggested_changes=SuggestedChanges(
                        volume_reduction=100 if severe else 50,
                        substitute_workout_type=WorkoutType.RECOVERY,
                    ),
                ))
            elif recovery.illness_status == IllnessStatus.SICK:
                modifications.append(PlanModification(
                    type=ModificationType.INJURY_PROTOCOL,
                    reason="Illness reported",
                    priority=Priority.HIGH,
                    suggested_changes=SuggestedChanges(
                        volume_reduction=50,
                        substitute_workout_type=WorkoutType.RECOVERY,
                    ),
                ))

        if progress.adherence_rate < MIN_ADHERENCE:
            modifications.append(PlanModification(
                type=ModificationType.REDUCE_VOLUME,
                reason="Low adherence - plan may be too ambitious",
                priority=Priority.MEDIUM,
                suggested_changes=SuggestedChanges(volume_reduction=20, delay_days=7),
            ))

        if progress.performance_trend == "declining":
            modifications.append(PlanModification(
                type=ModificationType.DELAY_PROGRESSION,
                reason="Performance declining - need more adaptation time",
                priority=Priority.MEDIUM,
                suggested_changes=SuggestedChanges(delay_days=7, intensity_reduction=15),
            ))

        if modifications:
            logger.info(
                f"Suggested {len(modifications)} modification(s): "
                f"{', '.join(m.type.value for m in modifications)}"
            )
        return modifications

    @staticmethod
    def needs_adaptation(
        progress: ProgressSnapshot,
        training_load: TrainingLoad,
        recovery: Optional[RecoveryMetrics] = None,
    ) -> bool:
        if not SAFE_ACWR_LOWER <= training_load.ratio <= SAFE_ACWR_UPPER:
            return True

        if recovery is not None:
            if recovery_score_for(recovery) < MIN_RECOVERY_SCORE:
                return True
            if recovery.injury_status != InjuryStatus.HEALTHY:
                return True
            if recovery.illness_status == IllnessStatus.SICK:
                return True

        if progress.adherence_rate < MIN_ADHERENCE:
            return True

        return progress.performance_trend == "declining"
