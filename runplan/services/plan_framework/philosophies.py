"""
Training Philosophies

A coaching methodology is data: an intensity distribution, workout
priorities, emphasis multipliers and a handful of template preferences.
One TrainingPhilosophy class interprets any MethodologyProfile, so adding
a methodology means adding a profile, not a subclass.

Usage:
    factory = PhilosophyFactory(cache=MethodologyCache())
    philosophy = factory.create(Methodology.DANIELS)

    template_id = philosophy.select_workout(WorkoutType.THRESHOLD, Phase.BUILD, 0)
    workout = philosophy.customize_workout(get_template(template_id), Phase.BUILD, 0)
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence, Tuple, Union

from runplan.core.cache import MethodologyCache
from runplan.core.exceptions import UnknownMethodologyError

from .constants import Methodology, Phase, WorkoutType
from .models import IntensityDistribution, Workout
from .workout_library import fallback_template_id, intensity_zone, templates_for_type

logger = logging.getLogger(__name__)

T = WorkoutType

INTENSITY_FLOOR = 40
INTENSITY_CEILING = 100

PHASE_INTENSITY_ADJUSTMENTS: Dict[Phase, float] = {
    Phase.BASE: 0.95,
    Phase.BUILD: 1.0,
    Phase.PEAK: 1.05,
    Phase.TAPER: 0.90,
    Phase.RECOVERY: 0.85,
}


@dataclass(frozen=True)
class TemplateOverride:
    """
    Preferred template for a workout type.

    Matches when the type is equal, the phase is in ``phases`` (or phases is
    empty) and the week index is at most ``max_week`` (when set).
    """
    workout_type: WorkoutType
    template_id: str
    phases: Tuple[Phase, ...] = ()
    max_week: Optional[int] = None

    def matches(self, workout_type: WorkoutType, phase: Phase, week_in_phase: int) -> bool:
        if workout_type != self.workout_type:
            return False
        if self.phases and phase not in self.phases:
            return False
        if self.max_week is not None and week_in_phase > self.max_week:
            return False
        return True


@dataclass(frozen=True)
class MethodologyProfile:
    """Everything that distinguishes one methodology from another."""
    methodology: Methodology
    name: str
    intensity_distribution: IntensityDistribution
    workout_priorities: Tuple[WorkoutType, ...]
    recovery_emphasis: float
    workout_emphasis: Dict[WorkoutType, float] = field(default_factory=dict)
    phase_distributions: Dict[Phase, IntensityDistribution] = field(default_factory=dict)
    phase_intensity_adjustments: Dict[Phase, float] = field(default_factory=dict)
    template_overrides: Tuple[TemplateOverride, ...] = ()
    preferred_patterns: Dict[Phase, int] = field(default_factory=dict)


def _dist(easy: float, moderate: float, hard: float) -> IntensityDistribution:
    return IntensityDistribution(easy=easy, moderate=moderate, hard=hard)


def _emphasis(*values: float) -> Dict[WorkoutType, float]:
    """Emphasis table in WorkoutType declaration order."""
    return dict(zip(WorkoutType, values))


def _phases(*dists: Tuple[float, float, float]) -> Dict[Phase, IntensityDistribution]:
    """Per-phase distributions in base, build, peak, taper, recovery order."""
    order = [Phase.BASE, Phase.BUILD, Phase.PEAK, Phase.TAPER, Phase.RECOVERY]
    return {phase: _dist(*d) for phase, d in zip(order, dists)}


METHODOLOGY_PROFILES: Dict[Methodology, MethodologyProfile] = {
    Methodology.DANIELS: MethodologyProfile(
        methodology=Methodology.DANIELS,
        name="Daniels Running Formula",
        intensity_distribution=_dist(80, 10, 10),
        workout_priorities=(T.TEMPO, T.VO2MAX, T.THRESHOLD, T.EASY, T.LONG_RUN),
        recovery_emphasis=0.7,
        workout_emphasis=_emphasis(
            1.0, 1.2, 1.1, 1.5, 1.4, 1.3, 1.1, 1.2, 1.2, 1.2, 1.2, 1.3, 1.1, 0.8, 0.9),
        phase_distributions=_phases(
            (85, 10, 5), (80, 15, 5), (75, 15, 10), (80, 15, 5), (95, 5, 0)),
        phase_intensity_adjustments=PHASE_INTENSITY_ADJUSTMENTS,
        template_overrides=(
            TemplateOverride(T.TEMPO, "EASY_AEROBIC", phases=(Phase.BASE,), max_week=1),
            TemplateOverride(T.THRESHOLD, "LACTATE_THRESHOLD_2X20", phases=(Phase.BUILD,)),
            TemplateOverride(T.VO2MAX, "VO2MAX_5X3", phases=(Phase.PEAK,)),
        ),
        preferred_patterns={Phase.BUILD: 0},
    ),
    Methodology.LYDIARD: MethodologyProfile(
        methodology=Methodology.LYDIARD,
        name="Lydiard Aerobic Base",
        intensity_distribution=_dist(85, 10, 5),
        workout_priorities=(T.EASY, T.STEADY, T.LONG_RUN, T.HILL_REPEATS, T.TEMPO),
        recovery_emphasis=0.9,
        workout_emphasis=_emphasis(
            1.0, 1.5, 1.3, 1.1, 1.0, 0.8, 0.9, 1.3, 1.0, 1.2, 1.4, 1.0, 0.9, 0.7, 0.8),
        phase_distributions=_phases(
            (90, 8, 2), (85, 12, 3), (80, 15, 5), (85, 12, 3), (100, 0, 0)),
        phase_intensity_adjustments=PHASE_INTENSITY_ADJUSTMENTS,
        template_overrides=(
            TemplateOverride(T.VO2MAX, "HILL_REPEATS_6X2", phases=(Phase.BASE, Phase.BUILD)),
            TemplateOverride(T.SPEED, "HILL_REPEATS_6X2", phases=(Phase.BASE, Phase.BUILD)),
            TemplateOverride(T.THRESHOLD, "TEMPO_CONTINUOUS", phases=(Phase.BASE,)),
            TemplateOverride(T.THRESHOLD, "THRESHOLD_PROGRESSION"),
        ),
        preferred_patterns={Phase.BASE: 1},
    ),
    Methodology.PFITZINGER: MethodologyProfile(
        methodology=Methodology.PFITZINGER,
        name="Pfitzinger Lactate Threshold",
        intensity_distribution=_dist(75, 15, 10),
        workout_priorities=(T.THRESHOLD, T.LONG_RUN, T.TEMPO, T.VO2MAX, T.EASY),
        recovery_emphasis=0.8,
        workout_emphasis=_emphasis(
            1.0, 1.3, 1.2, 1.2, 1.5, 1.1, 1.0, 1.1, 1.0, 1.2, 1.3, 1.4, 1.2, 0.8, 0.9),
        phase_distributions=_phases(
            (75, 20, 5), (70, 25, 5), (70, 20, 10), (75, 20, 5), (90, 10, 0)),
        phase_intensity_adjustments=PHASE_INTENSITY_ADJUSTMENTS,
        template_overrides=(
            TemplateOverride(T.THRESHOLD, "LACTATE_THRESHOLD_2X20"),
        ),
        preferred_patterns={Phase.BUILD: 1},
    ),
    Methodology.HUDSON: MethodologyProfile(
        methodology=Methodology.HUDSON,
        name="Hudson Adaptive Running",
        intensity_distribution=_dist(70, 20, 10),
        workout_priorities=(T.TEMPO, T.FARTLEK, T.LONG_RUN, T.VO2MAX, T.EASY),
        recovery_emphasis=0.75,
        workout_emphasis=_emphasis(
            1.0, 1.2, 1.1, 1.4, 1.2, 1.1, 1.0, 1.1, 1.3, 1.2, 1.2, 1.2, 1.1, 0.9, 1.0),
        phase_distributions=_phases(
            (80, 15, 5), (75, 20, 5), (70, 20, 10), (80, 15, 5), (90, 10, 0)),
        phase_intensity_adjustments=PHASE_INTENSITY_ADJUSTMENTS,
        template_overrides=(
            TemplateOverride(T.TEMPO, "FARTLEK_VARIED", phases=(Phase.BASE,)),
        ),
    ),
    Methodology.CUSTOM: MethodologyProfile(
        methodology=Methodology.CUSTOM,
        name="Custom",
        intensity_distribution=_dist(75, 15, 10),
        workout_priorities=(T.EASY, T.TEMPO, T.LONG_RUN, T.VO2MAX, T.THRESHOLD),
        recovery_emphasis=0.8,
        workout_emphasis=_emphasis(
            1.0, 1.2, 1.1, 1.2, 1.2, 1.1, 1.0, 1.1, 1.2, 1.1, 1.2, 1.2, 1.1, 0.8, 0.9),
        phase_distributions=_phases(
            (80, 15, 5), (75, 20, 5), (70, 20, 10), (80, 15, 5), (90, 10, 0)),
        phase_intensity_adjustments=PHASE_INTENSITY_ADJUSTMENTS,
    ),
}

STANDARD_PROFILE = MethodologyProfile(
    methodology=Methodology.CUSTOM,
    name="Standard",
    intensity_distribution=_dist(80, 15, 5),
    workout_priorities=(T.EASY, T.LONG_RUN, T.TEMPO, T.THRESHOLD, T.VO2MAX),
    recovery_emphasis=1.0,
)


class TrainingPhilosophy:
    """
    Selects and customizes workouts according to a methodology profile.
    """

    def __init__(self, profile: MethodologyProfile):
        self.profile = profile

    @classmethod
    def standard(cls) -> "TrainingPhilosophy":
        """Neutral selector: library order, no customization."""
        return cls(STANDARD_PROFILE)

    @property
    def methodology(self) -> Methodology:
        return self.profile.methodology

    @property
    def name(self) -> str:
        return self.profile.name

    @property
    def intensity_distribution(self) -> IntensityDistribution:
        return self.profile.intensity_distribution

    @property
    def workout_priorities(self) -> List[WorkoutType]:
        return list(self.profile.workout_priorities)

    @property
    def recovery_emphasis(self) -> float:
        return self.profile.recovery_emphasis

    def get_phase_intensity_distribution(self, phase: Phase) -> IntensityDistribution:
        return self.profile.phase_distributions.get(phase, self.profile.intensity_distribution)

    def get_workout_emphasis(self, workout_type: WorkoutType) -> float:
        return self.profile.workout_emphasis.get(workout_type, 1.0)

    def select_pattern(self, phase: Phase, week_in_phase: int, patterns: Sequence[str]) -> str:
        """Weekly pattern for a non-recovery week."""
        preferred = self.profile.preferred_patterns.get(phase)
        if preferred is not None and preferred < len(patterns):
            return patterns[preferred]
        return patterns[week_in_phase % len(patterns)]

    def select_workout(self, workout_type: WorkoutType, phase: Phase, week_in_phase: int) -> str:
        """Template id for a workout type; never fails."""
        for override in self.profile.template_overrides:
            if override.matches(workout_type, phase, week_in_phase):
                return override.template_id

        candidates = templates_for_type(workout_type)
        if not candidates:
            return fallback_template_id(workout_type)
        return candidates[week_in_phase % len(candidates)]

    def customize_workout(self, template: Workout, phase: Phase, week_in_phase: int) -> Workout:
        """
        Apply the phase intensity adjustment and methodology emphasis.

        Segment intensities are scaled by phase only and clamped to 40-100.
        Emphasis scales TSS; recovery emphasis scales recovery time.
        """
        adjustment = self.profile.phase_intensity_adjustments.get(phase, 1.0)
        emphasis = self.get_workout_emphasis(template.type)

        segments = []
        for segment in template.segments:
            intensity = max(INTENSITY_FLOOR, min(INTENSITY_CEILING, round(segment.intensity * adjustment)))
            segments.append(replace(segment, intensity=intensity, zone=intensity_zone(intensity)))

        return replace(
            template,
            segments=segments,
            estimated_tss=round(template.estimated_tss * emphasis),
            recovery_time=round(template.recovery_time * self.recovery_emphasis),
        )


class PhilosophyFactory:
    """
    Builds philosophies for the supported methodologies.

    Instances are memoized in the injected MethodologyCache.
    """

    def __init__(self, cache: Optional[MethodologyCache] = None):
        self.cache = cache if cache is not None else MethodologyCache()

    def create(self, methodology: Union[Methodology, str]) -> TrainingPhilosophy:
        """
        Raises:
            UnknownMethodologyError: methodology outside the supported set
        """
        try:
            methodology = Methodology(methodology)
        except ValueError:
            raise UnknownMethodologyError(str(methodology))

        key = f"philosophy:{methodology.value}"
        philosophy = self.cache.get(key)
        if philosophy is None:
            philosophy = TrainingPhilosophy(METHODOLOGY_PROFILES[methodology])
            self.cache.set(key, philosophy)
            logger.debug(f"Created philosophy for {methodology.value}")
        return philosophy

    @staticmethod
    def available() -> List[Methodology]:
        return list(METHODOLOGY_PROFILES)
