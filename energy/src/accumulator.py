"""
Energy accumulator: folds reconciled intervals into run totals.

Holds the grand total, one partial sum per calendar month and the run
counters. Energy is only ever stored in joules; kWh and cost are derived
views computed on read.

CHANGELOG:
- 2026-10-19: Count skipped documents and intervals for the report (STORY-012)
- 2026-10-19: Initial creation (STORY-011)

TODO:
- None
"""

from dataclasses import dataclass, field
from datetime import tzinfo

from energy.src.grouping import GroupKey, group_key
from energy.src.reconciler import Inconsistent, StepOutcome

JOULES_PER_KWH: float = 3_600_000.0
# Fixed electricity price per kWh, in the local currency.
TARIFF_PER_KWH: float = 7.79


@dataclass(slots=True)
class Totals:
    """Elapsed time and energy accumulated over some span."""

    elapsed_s: float = 0.0
    energy_j: float = 0.0

    def add(self, elapsed_s: float, energy_j: float) -> None:
        self.elapsed_s += elapsed_s
        self.energy_j += energy_j

    @property
    def energy_kwh(self) -> float:
        return self.energy_j / JOULES_PER_KWH

    @property
    def cost(self) -> float:
        return self.energy_kwh * TARIFF_PER_KWH


@dataclass
class Result:
    """Accumulated state of one run.

    Attributes:
        tz: Zone used to assign intervals to months (``None``: host local).
        total: Grand total over every accounted interval.
        buckets: Per-month totals, keyed by :class:`GroupKey`.
        rollover_count: Detected device reboots.
        tainted: Set once any interval could not be reconciled.
        documents: Documents read, valid or not.
        skipped: Documents rejected before reconciliation.
        intervals: Intervals that contributed to the totals.
        inconsistent: Intervals that were discarded.
    """

    tz: tzinfo | None = None
    total: Totals = field(default_factory=Totals)
    buckets: dict[GroupKey, Totals] = field(default_factory=dict)
    rollover_count: int = 0
    tainted: bool = False
    documents: int = 0
    skipped: int = 0
    intervals: int = 0
    inconsistent: int = 0

    def apply(self, outcome: StepOutcome) -> None:
        """Fold one reconciled interval into the totals.

        Args:
            outcome: Result of :func:`energy.src.reconciler.reconcile`.
                Accepted and recovered intervals are added to the grand
                total and to the month of their anchor time; an
                inconsistent interval only taints the run.
        """
        if outcome.rollover:
            self.rollover_count += 1

        if isinstance(outcome, Inconsistent):
            self.tainted = True
            self.inconsistent += 1
            return

        key = group_key(outcome.anchor_ns, self.tz)
        bucket = self.buckets.setdefault(key, Totals())
        bucket.add(outcome.elapsed_s, outcome.energy_j)
        self.total.add(outcome.elapsed_s, outcome.energy_j)
        self.intervals += 1

    def sorted_buckets(self) -> list[tuple[GroupKey, Totals]]:
        """Buckets in ascending (year, month) order."""
        return sorted(self.buckets.items())
