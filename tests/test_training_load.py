"""
Tests for TrainingLoadCalculator and injury risk.
"""

import math
from datetime import timedelta

import pytest

from conftest import PLAN_START, make_run
from runplan.services.training_load import (
    LoadZone,
    TrainingLoad,
    TrainingLoadCalculator,
    calculate_injury_risk,
    classify_load_zone,
)


@pytest.fixture
def calculator():
    return TrainingLoadCalculator(threshold_pace=5.0)


def load(ratio):
    return TrainingLoad(acute=50, chronic=50, ratio=ratio, trend="stable", recommendation="")


class TestRunTSS:
    """Test TSS for individual runs."""

    def test_hour_at_threshold(self, calculator):
        """An hour at threshold pace is 100 TSS."""
        assert calculator.calculate_run_tss(make_run(PLAN_START, distance=12, duration=60)) == 100

    def test_slower_pace_scores_less(self, calculator):
        """An hour at 6:00/km scores (5/6)^2 of an hour at threshold."""
        assert calculator.calculate_run_tss(make_run(PLAN_START, distance=10, duration=60)) == 69

    def test_no_pace_scores_zero(self, calculator):
        """Runs without pace have no TSS."""
        assert calculator.calculate_run_tss(make_run(PLAN_START, distance=0, duration=30)) == 0

    def test_daily_totals(self, calculator):
        """Runs on the same day are summed."""
        runs = [
            make_run(PLAN_START, distance=12, duration=60),
            make_run(PLAN_START, distance=12, duration=60),
            make_run(PLAN_START + timedelta(days=1), distance=12, duration=60),
        ]
        totals = calculator.daily_tss(runs)
        assert totals == {PLAN_START: 200, PLAN_START + timedelta(days=1): 100}


class TestLoadHistory:
    """Test the daily exponentially weighted load."""

    def test_single_day(self, calculator):
        """One day of load moves acute faster than chronic."""
        history = calculator.load_history({PLAN_START: 100}, now=PLAN_START)
        assert len(history) == 1
        assert history[0].acute == pytest.approx(100 * (1 - math.exp(-1 / 7)))
        assert history[0].chronic == pytest.approx(100 * (1 - math.exp(-1 / 28)))

    def test_rest_days_decay(self, calculator):
        """Load decays through days without training."""
        history = calculator.load_history({PLAN_START: 100}, now=PLAN_START + timedelta(days=3))
        assert len(history) == 4
        assert history[-1].tss == 0
        assert history[-1].acute == pytest.approx(history[0].acute * math.exp(-3 / 7))

    def test_future_days_ignored(self, calculator):
        """Training after the evaluation date does not count."""
        assert calculator.load_history({PLAN_START + timedelta(days=1): 100}, now=PLAN_START) == []

    def test_empty_history_summary(self, calculator):
        """No training means zero load and a neutral ratio."""
        summary = calculator.calculate_training_load([], now=PLAN_START)
        assert (summary.acute, summary.chronic, summary.ratio, summary.trend) == (0, 0, 1.0, "stable")
        assert summary.zone == LoadZone.OPTIMAL

    def test_daily_tss_entry_point(self, calculator):
        """Pre-totalled TSS gives the same result as the runs."""
        runs = [make_run(PLAN_START + timedelta(days=d), distance=12, duration=60) for d in range(10)]
        now = PLAN_START + timedelta(days=9)
        assert calculator.calculate_from_daily_tss(calculator.daily_tss(runs), now) == \
            calculator.calculate_training_load(runs, now)


class TestTrend:
    """Test the week-over-week acute trend."""

    def test_short_history_is_stable(self, calculator):
        """A week or less of history has no trend."""
        daily = {PLAN_START + timedelta(days=d): 100 for d in range(5)}
        assert calculator.calculate_from_daily_tss(daily, PLAN_START + timedelta(days=4)).trend == "stable"

    def test_increasing(self, calculator):
        """A jump in daily load shows as increasing."""
        daily = {PLAN_START + timedelta(days=d): (20 if d < 10 else 100) for d in range(21)}
        assert calculator.calculate_from_daily_tss(daily, PLAN_START + timedelta(days=20)).trend == "increasing"

    def test_decreasing(self, calculator):
        """Rest after steady training shows as decreasing."""
        daily = {PLAN_START + timedelta(days=d): 100 for d in range(20)}
        now = PLAN_START + timedelta(days=29)
        summary = calculator.calculate_from_daily_tss(daily, now)
        assert summary.trend == "decreasing"
        assert summary.ratio < 1.0


class TestZonesAndRisk:
    """Test ratio zones and the injury risk score."""

    @pytest.mark.parametrize("ratio,zone", [
        (0.5, LoadZone.UNDERTRAINING),
        (0.8, LoadZone.OPTIMAL),
        (1.3, LoadZone.OPTIMAL),
        (1.4, LoadZone.HIGH),
        (1.6, LoadZone.VERY_HIGH),
    ])
    def test_classify(self, ratio, zone):
        """Zones follow the 0.8 / 1.3 / 1.5 bounds."""
        assert classify_load_zone(ratio) == zone

    def test_minimum_risk(self):
        """Optimal load, flat mileage and full recovery give the floor."""
        assert calculate_injury_risk(load(1.0), 0, 100) == 10

    def test_maximum_risk(self):
        """Risk is capped at 100."""
        assert calculate_injury_risk(load(1.8), 40, 0) == 100

    def test_mileage_increase_bands(self):
        """Mileage jumps add 10, 20 or 30 points."""
        assert calculate_injury_risk(load(1.0), 6, 100) == 20
        assert calculate_injury_risk(load(1.0), 15, 100) == 30
        assert calculate_injury_risk(load(1.0), 25, 100) == 40

    def test_undertraining_adds_risk(self):
        """Low ratios are riskier than optimal ones."""
        assert calculate_injury_risk(load(0.5), 0, 100) == 20
