"""
Pytest configuration and fixtures

Every test builds its own ConfigService and MethodologyCache so nothing
is shared between tests.
"""
import pytest
import sys
import os
from datetime import date, timedelta

# Add the project root to the path so we can import runplan
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from runplan.core.cache import MethodologyCache
from runplan.services.adaptation.models import CompletedWorkout
from runplan.services.plan_framework.config import ConfigService
from runplan.services.plan_framework.constants import TrainingGoal
from runplan.services.plan_framework.generator import PlanGenerator
from runplan.services.plan_framework.models import (
    FitnessAssessment,
    RunRecord,
    TrainingPlanConfig,
)


# Monday
PLAN_START = date(2025, 1, 6)


@pytest.fixture
def config_service():
    return ConfigService()


@pytest.fixture
def cache():
    return MethodologyCache()


@pytest.fixture
def generator(config_service, cache):
    return PlanGenerator(config_service=config_service, cache=cache)


@pytest.fixture
def beginner_fitness():
    return FitnessAssessment(vdot=40, weekly_mileage=30, longest_recent_run=10, training_age=1)


@pytest.fixture
def marathon_config(beginner_fitness):
    """16-week marathon for a beginner, standard methodology."""
    return TrainingPlanConfig(
        goal=TrainingGoal.MARATHON,
        start_date=PLAN_START,
        target_date=PLAN_START + timedelta(weeks=16),
        end_date=PLAN_START + timedelta(weeks=16),
        current_fitness=beginner_fitness,
    )


@pytest.fixture
def marathon_plan(generator, marathon_config):
    return generator.generate(marathon_config)


def make_completed(
    day,
    effort=5,
    duration=45,
    distance=8.0,
    planned_duration=None,
    notes="",
    workout_type=None,
    workout_id=None,
):
    """CompletedWorkout with sensible defaults."""
    return CompletedWorkout(
        workout_id=workout_id or f"done-{day.isoformat()}",
        date=day,
        actual_distance=distance,
        actual_duration=duration,
        planned_duration=planned_duration,
        perceived_effort=effort,
        notes=notes,
        workout_type=workout_type,
    )


def make_run(day, distance=8.0, duration=45.0, effort=5, is_race=False, heart_rate=None):
    """RunRecord with pace derived from distance and duration."""
    return RunRecord(
        date=day,
        distance=distance,
        duration=duration,
        avg_pace=duration / distance if distance else None,
        avg_heart_rate=heart_rate,
        effort_level=effort,
        is_race=is_race,
    )
