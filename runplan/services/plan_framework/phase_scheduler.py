"""
Phase Scheduler

Splits a plan's weeks across training phases.

Three regimes by plan length, integer percentages with floor division:
    <= 8 weeks   base 40, build 40, taper 20
    <= 16 weeks  base 35, build 35, peak 20, taper 10
    > 16 weeks   base 30, build 30, peak 25, taper 10, recovery 5

Weeks lost to flooring are not reassigned; they are reported as
residual_weeks.

Usage:
    scheduler = PhaseScheduler()
    distribution = scheduler.distribute(16)  # 5/5/3/1, residual 2
    specs = scheduler.block_specs(distribution, start_date)
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List

from .constants import PHASE_DISTRIBUTIONS, PHASE_FOCUS_AREAS, PHASE_ORDER, Phase

logger = logging.getLogger(__name__)


@dataclass
class PhaseDistribution:
    """Weeks per phase, in plan order. Zero-week phases stay in the mapping."""
    total_weeks: int
    weeks: Dict[Phase, int] = field(default_factory=dict)
    residual_weeks: int = 0

    @property
    def allocated_weeks(self) -> int:
        return sum(self.weeks.values())

    def active_phases(self) -> List[Phase]:
        """Phases with at least one week, in plan order."""
        return [p for p in PHASE_ORDER if self.weeks.get(p, 0) > 0]


@dataclass
class BlockSpec:
    """Dates and phase for one block, before any workouts exist."""
    index: int
    phase: Phase
    start_date: date
    weeks: int
    first_week_number: int  # Plan-global, 1-based
    focus_areas: List[str] = field(default_factory=list)

    @property
    def id(self) -> str:
        return f"block-{self.index + 1}"

    @property
    def end_date(self) -> date:
        return self.start_date + timedelta(weeks=self.weeks)


class PhaseScheduler:
    """Allocate plan weeks to phases and lay blocks out on the calendar."""

    def distribute(self, total_weeks: int) -> PhaseDistribution:
        """
        Weeks per phase for a plan of ``total_weeks``.

        Never raises; inputs below 1 give an all-zero distribution.
        """
        if total_weeks is None or total_weeks < 1:
            return PhaseDistribution(
                total_weeks=max(0, total_weeks or 0),
                weeks={p: 0 for p in PHASE_ORDER},
            )

        percentages = self._percentages_for(total_weeks)
        weeks = {p: total_weeks * percentages.get(p, 0) // 100 for p in PHASE_ORDER}
        residual = total_weeks - sum(weeks.values())

        if residual:
            logger.debug(f"{residual} of {total_weeks} weeks left unallocated")

        return PhaseDistribution(total_weeks=total_weeks, weeks=weeks, residual_weeks=residual)

    @staticmethod
    def _percentages_for(total_weeks: int) -> Dict[Phase, int]:
        for max_weeks, percentages in PHASE_DISTRIBUTIONS:
            if max_weeks is None or total_weeks <= max_weeks:
                return percentages
        return PHASE_DISTRIBUTIONS[-1][1]

    def block_specs(self, distribution: PhaseDistribution, start_date: date) -> List[BlockSpec]:
        """Contiguous blocks, one per active phase."""
        specs: List[BlockSpec] = []
        current = start_date
        week_number = 1

        for phase in distribution.active_phases():
            spec = BlockSpec(
                index=len(specs),
                phase=phase,
                start_date=current,
                weeks=distribution.weeks[phase],
                first_week_number=week_number,
                focus_areas=list(PHASE_FOCUS_AREAS[phase]),
            )
            specs.append(spec)
            current = spec.end_date
            week_number += spec.weeks

        return specs
