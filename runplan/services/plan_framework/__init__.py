# Plan Generation Framework
#
# Turns a goal and a fitness snapshot into a periodized plan.
#
# Architecture:
# - PhaseScheduler splits weeks across phases
# - TrainingPhilosophy picks patterns and templates per methodology
# - MicrocycleBuilder schedules workouts and distances week by week
# - PlanGenerator assembles blocks and the summary
# - Config-driven business rules (plan_rules.yaml)

from .config import ConfigService
from .constants import Methodology, Phase, TrainingGoal, WorkoutType
from .generator import PlanGenerator
from .microcycle_builder import MicrocycleBuilder
from .models import (
    FitnessAssessment,
    PlannedWorkout,
    RunRecord,
    TrainingBlock,
    TrainingPlan,
    TrainingPlanConfig,
    TrainingPreferences,
    WeeklyMicrocycle,
)
from .phase_scheduler import PhaseDistribution, PhaseScheduler
from .philosophies import PhilosophyFactory, TrainingPhilosophy

__all__ = [
    # Core services
    'ConfigService',

    # Generator components
    'PhaseScheduler',
    'PhaseDistribution',
    'TrainingPhilosophy',
    'PhilosophyFactory',
    'MicrocycleBuilder',

    # Main generator
    'PlanGenerator',

    # Models
    'FitnessAssessment',
    'PlannedWorkout',
    'RunRecord',
    'TrainingBlock',
    'TrainingPlan',
    'TrainingPlanConfig',
    'TrainingPreferences',
    'WeeklyMicrocycle',

    # Constants
    'Methodology',
    'Phase',
    'TrainingGoal',
    'WorkoutType',
]
