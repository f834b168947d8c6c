"""
Tests for training philosophies and the philosophy factory.
"""

import pytest

from runplan.core.cache import MethodologyCache
from runplan.core.exceptions import UnknownMethodologyError
from runplan.services.plan_framework.constants import WEEKLY_PATTERNS, Methodology, Phase, WorkoutType
from runplan.services.plan_framework.philosophies import PhilosophyFactory, TrainingPhilosophy
from runplan.services.plan_framework.workout_library import get_template


@pytest.fixture
def factory(cache):
    return PhilosophyFactory(cache=cache)


class TestPhilosophyFactory:
    """Test methodology lookup and caching."""

    def test_creates_every_methodology(self, factory):
        """All supported methodologies build."""
        for methodology in PhilosophyFactory.available():
            assert factory.create(methodology).methodology == methodology

    def test_accepts_string(self, factory):
        """Plain strings are converted to the enum."""
        assert factory.create("lydiard").methodology == Methodology.LYDIARD

    def test_unknown_methodology_raises(self, factory):
        """Unknown names raise UnknownMethodologyError."""
        with pytest.raises(UnknownMethodologyError):
            factory.create("couch-to-5k")

    def test_instances_are_cached(self, factory, cache):
        """The second create is served from the cache."""
        first = factory.create(Methodology.DANIELS)
        second = factory.create(Methodology.DANIELS)
        assert first is second
        assert "philosophy:daniels" in cache

    def test_fresh_cache_builds_new_instance(self):
        """Separate caches do not share instances."""
        a = PhilosophyFactory(cache=MethodologyCache()).create(Methodology.HUDSON)
        b = PhilosophyFactory(cache=MethodologyCache()).create(Methodology.HUDSON)
        assert a is not b


class TestWorkoutSelection:
    """Test template and pattern selection."""

    def test_daniels_threshold_in_build(self, factory):
        """Daniels uses 2x20 threshold work in build."""
        philosophy = factory.create(Methodology.DANIELS)
        assert philosophy.select_workout(WorkoutType.THRESHOLD, Phase.BUILD, 0) == "LACTATE_THRESHOLD_2X20"

    def test_override_respects_max_week(self, factory):
        """Daniels eases into tempo only in the first base weeks."""
        philosophy = factory.create(Methodology.DANIELS)
        assert philosophy.select_workout(WorkoutType.TEMPO, Phase.BASE, 0) == "EASY_AEROBIC"
        assert philosophy.select_workout(WorkoutType.TEMPO, Phase.BASE, 2) == "TEMPO_CONTINUOUS"

    def test_lydiard_hills_instead_of_intervals(self, factory):
        """Lydiard replaces early VO2max work with hills."""
        philosophy = factory.create(Methodology.LYDIARD)
        assert philosophy.select_workout(WorkoutType.VO2MAX, Phase.BASE, 0) == "HILL_REPEATS_6X2"
        assert philosophy.select_workout(WorkoutType.VO2MAX, Phase.PEAK, 0) == "VO2MAX_4X4"

    def test_standard_rotates_templates(self):
        """Without overrides templates rotate by week."""
        philosophy = TrainingPhilosophy.standard()
        assert philosophy.select_workout(WorkoutType.VO2MAX, Phase.BUILD, 0) == "VO2MAX_4X4"
        assert philosophy.select_workout(WorkoutType.VO2MAX, Phase.BUILD, 1) == "VO2MAX_5X3"

    def test_type_without_template_falls_back(self):
        """Steady runs use the easy aerobic template."""
        assert TrainingPhilosophy.standard().select_workout(WorkoutType.STEADY, Phase.BASE, 0) == "EASY_AEROBIC"

    def test_preferred_pattern(self, factory):
        """Daniels always uses the first build pattern."""
        philosophy = factory.create(Methodology.DANIELS)
        patterns = WEEKLY_PATTERNS[Phase.BUILD]
        assert philosophy.select_pattern(Phase.BUILD, 1, patterns) == patterns[0]

    def test_standard_pattern_rotation(self):
        """The standard philosophy alternates patterns by week."""
        patterns = WEEKLY_PATTERNS[Phase.BASE]
        philosophy = TrainingPhilosophy.standard()
        assert philosophy.select_pattern(Phase.BASE, 0, patterns) == patterns[0]
        assert philosophy.select_pattern(Phase.BASE, 1, patterns) == patterns[1]


class TestCustomization:
    """Test workout customization."""

    def test_standard_is_identity(self):
        """The standard philosophy leaves templates unchanged."""
        template = get_template("TEMPO_CONTINUOUS")
        customized = TrainingPhilosophy.standard().customize_workout(template, Phase.BUILD, 0)
        assert [s.intensity for s in customized.segments] == [s.intensity for s in template.segments]
        assert customized.estimated_tss == template.estimated_tss
        assert customized.recovery_time == template.recovery_time

    def test_phase_adjusts_intensity(self, factory):
        """Base phase eases segment intensity by 5%."""
        philosophy = factory.create(Methodology.DANIELS)
        customized = philosophy.customize_workout(get_template("TEMPO_CONTINUOUS"), Phase.BASE, 2)
        assert [s.intensity for s in customized.segments] == [62, 80, 57]
        assert customized.segments[1].zone == "tempo"

    def test_emphasis_scales_tss_not_intensity(self, factory):
        """Emphasis changes stress, never effort."""
        philosophy = factory.create(Methodology.DANIELS)
        template = get_template("TEMPO_CONTINUOUS")
        customized = philosophy.customize_workout(template, Phase.BUILD, 2)
        assert [s.intensity for s in customized.segments] == [s.intensity for s in template.segments]
        assert customized.estimated_tss == pytest.approx(template.estimated_tss * 1.5, abs=1)

    def test_intensity_clamped(self, factory):
        """Peak-phase boosts never exceed 100%."""
        philosophy = factory.create(Methodology.DANIELS)
        customized = philosophy.customize_workout(get_template("SPEED_200M_REPS"), Phase.PEAK, 0)
        assert max(s.intensity for s in customized.segments) == 100

    def test_recovery_emphasis(self, factory):
        """Daniels shortens recovery time by its emphasis."""
        philosophy = factory.create(Methodology.DANIELS)
        customized = philosophy.customize_workout(get_template("TEMPO_CONTINUOUS"), Phase.BUILD, 2)
        assert customized.recovery_time == round(24 * 0.7)

    def test_intensity_distribution(self, factory):
        """Daniels follows an 80/10/10 split."""
        distribution = factory.create(Methodology.DANIELS).intensity_distribution
        assert (distribution.easy, distribution.moderate, distribution.hard) == (80, 10, 10)

    def test_phase_intensity_distribution(self, factory):
        """Each phase has its own split; without one the overall split applies."""
        daniels = factory.create(Methodology.DANIELS)
        base = daniels.get_phase_intensity_distribution(Phase.BASE)
        recovery = daniels.get_phase_intensity_distribution(Phase.RECOVERY)
        assert (base.easy, base.moderate, base.hard) == (85, 10, 5)
        assert (recovery.easy, recovery.moderate, recovery.hard) == (95, 5, 0)

        standard = TrainingPhilosophy.standard()
        assert standard.get_phase_intensity_distribution(Phase.PEAK) == standard.intensity_distribution
