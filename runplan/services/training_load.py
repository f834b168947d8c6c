"""
Training Load Calculator

Calculates training stress metrics:
- TSS (Training Stress Score) per run
- Acute load - fatigue (7-day exponential decay)
- Chronic load - fitness (28-day exponential decay)
- Acute:Chronic workload ratio and its zone

These metrics help understand:
- Is the athlete building fitness?
- Are they ramping up faster than their body can absorb?
- What is the injury risk this week?

Load is accumulated per calendar day, from the first day with training
through the evaluation date, so rest days decay the load.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional

from runplan.core.config import settings

from .plan_framework.models import RunRecord

logger = logging.getLogger(__name__)


class LoadZone(str, Enum):
    """Acute:Chronic ratio zones."""
    UNDERTRAINING = "undertraining"
    OPTIMAL = "optimal"
    HIGH = "high"
    VERY_HIGH = "very_high"


LOAD_RECOMMENDATIONS: Dict[LoadZone, str] = {
    LoadZone.UNDERTRAINING: "Training load is low. Consider increasing volume gradually.",
    LoadZone.OPTIMAL: "Training load is in optimal range for adaptation.",
    LoadZone.HIGH: "Training load is high. Monitor fatigue carefully.",
    LoadZone.VERY_HIGH: "Training load is very high. Risk of overtraining. Consider recovery.",
}


@dataclass
class DailyLoad:
    """Load state at the end of one day."""
    date: date
    tss: float
    acute: float
    chronic: float

    @property
    def ratio(self) -> float:
        return self.acute / self.chronic if self.chronic > 0 else 1.0


@dataclass
class TrainingLoad:
    """Current load summary."""
    acute: int
    chronic: int
    ratio: float
    trend: str  # increasing / stable / decreasing
    recommendation: str

    @property
    def zone(self) -> LoadZone:
        return classify_load_zone(self.ratio)


def classify_load_zone(ratio: float) -> LoadZone:
    if ratio < 0.8:
        return LoadZone.UNDERTRAINING
    if ratio > 1.5:
        return LoadZone.VERY_HIGH
    if ratio > 1.3:
        return LoadZone.HIGH
    return LoadZone.OPTIMAL


def calculate_injury_risk(
    training_load: TrainingLoad,
    weekly_mileage_increase: float,
    recovery_score: float,
) -> int:
    """
    Injury risk score 0-100.

    Workload ratio contributes up to 40 points, week-over-week mileage
    increase (%) up to 30, and lack of recovery up to 30.
    """
    risk = 0

    ratio = training_load.ratio
    if ratio < 0.8:
        risk += 20  # Undertraining
    elif ratio > 1.5:
        risk += 40
    elif ratio > 1.3:
        risk += 25
    else:
        risk += 10

    if weekly_mileage_increase > 20:
        risk += 30
    elif weekly_mileage_increase > 10:
        risk += 20
    elif weekly_mileage_increase > 5:
        risk += 10

    risk += round((100 - recovery_score) * 0.3)

    return min(100, risk)


class TrainingLoadCalculator:
    """
    Calculate training load metrics from run history.
    """

    # Exponential decay per day
    ACUTE_DECAY = math.exp(-1 / 7)
    CHRONIC_DECAY = math.exp(-1 / 28)

    # Days compared for the trend
    TREND_WINDOW_DAYS = 7
    TREND_THRESHOLD = 0.10

    def __init__(self, threshold_pace: Optional[float] = None):
        """
        Args:
            threshold_pace: Threshold pace in min/km (defaults to settings)
        """
        self.threshold_pace = threshold_pace or settings.THRESHOLD_PACE_MIN_PER_KM

    def calculate_run_tss(self, run: RunRecord) -> int:
        """
        Pace-based TSS.

        TSS = minutes x (threshold pace / run pace)^2 x 100 / 60.
        Runs without a pace score 0.
        """
        if not run.avg_pace:
            return 0
        intensity_factor = self.threshold_pace / run.avg_pace
        return round(run.duration * intensity_factor ** 2 * 100 / 60)

    def daily_tss(self, runs: Iterable[RunRecord]) -> Dict[date, float]:
        totals: Dict[date, float] = {}
        for run in runs:
            totals[run.date] = totals.get(run.date, 0) + self.calculate_run_tss(run)
        return totals

    def load_history(self, daily_tss: Dict[date, float], now: Optional[date] = None) -> List[DailyLoad]:
        """
        Day-by-day acute and chronic load from the first training day to ``now``.

        Days after ``now`` are ignored.
        """
        if now is None:
            now = date.today()

        days = [d for d in daily_tss if d <= now]
        if not days:
            return []

        history: List[DailyLoad] = []
        acute = 0.0
        chronic = 0.0
        current = min(days)

        while current <= now:
            tss = daily_tss.get(current, 0)
            acute = acute * self.ACUTE_DECAY + tss * (1 - self.ACUTE_DECAY)
            chronic = chronic * self.CHRONIC_DECAY + tss * (1 - self.CHRONIC_DECAY)
            history.append(DailyLoad(date=current, tss=tss, acute=acute, chronic=chronic))
            current += timedelta(days=1)

        return history

    def calculate_training_load(self, runs: Iterable[RunRecord], now: Optional[date] = None) -> TrainingLoad:
        """Current load from run history."""
        return self.summarize(self.load_history(self.daily_tss(runs), now))

    def calculate_from_daily_tss(self, daily_tss: Dict[date, float], now: Optional[date] = None) -> TrainingLoad:
        """Current load from TSS already totalled per day."""
        return self.summarize(self.load_history(daily_tss, now))

    def summarize(self, history: List[DailyLoad]) -> TrainingLoad:
        if not history:
            return TrainingLoad(
                acute=0,
                chronic=0,
                ratio=1.0,
                trend="stable",
                recommendation=LOAD_RECOMMENDATIONS[LoadZone.OPTIMAL],
            )

        current = history[-1]
        ratio = current.ratio

        return TrainingLoad(
            acute=round(current.acute),
            chronic=round(current.chronic),
            ratio=round(ratio, 2),
            trend=self._calculate_trend(history),
            recommendation=LOAD_RECOMMENDATIONS[classify_load_zone(ratio)],
        )

    def _calculate_trend(self, history: List[DailyLoad]) -> str:
        """Compare acute load now with a week earlier."""
        if len(history) <= self.TREND_WINDOW_DAYS:
            return "stable"

        current = history[-1].acute
        week_ago = history[-1 - self.TREND_WINDOW_DAYS].acute

        if current > week_ago * (1 + self.TREND_THRESHOLD):
            return "increasing"
        if current < week_ago * (1 - self.TREND_THRESHOLD):
            return "decreasing"
        return "stable"
