# Plan Adaptation
#
# Revises a generated plan from completed training and recovery check-ins.
#
# Architecture:
# - ProgressAnalyzer compares completed with planned workouts
# - RiskAssessor scores fatigue and overreaching risk
# - ModificationPlanner turns state into general modifications
# - MethodologyModificationOverlay adds methodology-specific ones
# - ModificationApplier produces the revised plan (copy-on-write)
# - AdaptationEngine runs the whole cycle
# - Config-driven business rules (adaptation_rules.yaml)

from .engine import AdaptationEngine
from .methodology_overlay import (
    MethodologyModificationOverlay,
    ResponseProfileTracker,
    build_metric_context,
)
from .modification_applier import ModificationApplier
from .modification_planner import ModificationPlanner
from .models import (
    AdaptationResult,
    CompletedWorkout,
    FatigueLevel,
    IllnessStatus,
    InjuryStatus,
    ModificationType,
    OutcomeMetrics,
    PlanModification,
    Priority,
    ProgressSnapshot,
    RecoveryMetrics,
    SuggestedChanges,
)
from .progress_analyzer import ProgressAnalyzer
from .recovery import (
    assess_recovery_status,
    calculate_overall_recovery,
    create_recovery_protocol,
    create_smart_substitution,
)
from .risk_assessor import RiskAssessor

__all__ = [
    # Engine
    'AdaptationEngine',

    # Components
    'ProgressAnalyzer',
    'RiskAssessor',
    'ModificationPlanner',
    'MethodologyModificationOverlay',
    'ResponseProfileTracker',
    'ModificationApplier',
    'build_metric_context',

    # Recovery
    'assess_recovery_status',
    'calculate_overall_recovery',
    'create_recovery_protocol',
    'create_smart_substitution',

    # Models
    'AdaptationResult',
    'CompletedWorkout',
    'FatigueLevel',
    'IllnessStatus',
    'InjuryStatus',
    'ModificationType',
    'OutcomeMetrics',
    'PlanModification',
    'Priority',
    'ProgressSnapshot',
    'RecoveryMetrics',
    'SuggestedChanges',
]
