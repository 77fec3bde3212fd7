"""
Step reconciler: classify the interval between two measurements.

Given the previous and the latest measurement, decide which elapsed-time
basis can be trusted and integrate input power over it. Wall-clock time,
the device's lifetime uptime counter and its current-session uptime
counter are compared in a fixed order:

1. Wall clock and lifetime uptime agree within ``WALL_TOTAL_TOLERANCE_S``:
   trapezoidal integration over the wall-clock delta.
2. Lifetime and session uptime agree within ``TOTAL_CURRENT_TOLERANCE_S``:
   the device did not reboot, only the wall clock jumped. The wall-clock
   delta is still used as the integration basis.
3. The wall-clock gap exceeds the current session uptime: the device
   rebooted in between. If the lifetime counter grew by at least the
   session length it is trusted as the elapsed time, otherwise only the
   post-reboot session is accounted, at the latest power reading.
4. Anything else cannot be explained and taints the run.

Rollovers and inconsistent intervals are logged with both measurements
and all deltas attached as structured context.

CHANGELOG:
- 2026-10-19: Trust lifetime uptime across reboots when it is consistent (STORY-010)
- 2026-10-19: Initial creation (STORY-009)

TODO:
- None
"""

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import NamedTuple

from energy.src.measurement import Measurement

logger = logging.getLogger(__name__)

# Wall-clock vs lifetime uptime agreement, absorbs reporting jitter.
WALL_TOTAL_TOLERANCE_S: float = 2.0
# Lifetime vs session uptime agreement, i.e. "no reboot happened".
TOTAL_CURRENT_TOLERANCE_S: float = 1.0

_NS_PER_S = 1_000_000_000


class Branch(StrEnum):
    """Which reconciliation rule classified an interval."""

    WALL_MATCHES_TOTAL = "wall_matches_total"
    CLOCK_DRIFT = "clock_drift"
    ROLLOVER = "rollover"
    ROLLOVER_TOTAL_INVALID = "rollover_total_invalid"
    INCONSISTENT = "inconsistent"


class StepDeltas(NamedTuple):
    """Differences between two consecutive measurements, in seconds."""

    wall: float
    uptime_total: float
    uptime_current: float
    uptime_now: float

    @classmethod
    def between(cls, prev: Measurement, last: Measurement) -> "StepDeltas":
        return cls(
            wall=(last.timestamp_ns - prev.timestamp_ns) / _NS_PER_S,
            uptime_total=last.uptime_total - prev.uptime_total,
            uptime_current=last.uptime_current - prev.uptime_current,
            uptime_now=last.uptime_current,
        )


@dataclass(frozen=True, slots=True)
class Accepted:
    """Trustworthy interval, bucketed by the previous measurement's time.

    ``rollover`` is True when a reboot was detected but the lifetime
    uptime counter could be used to bridge it.
    """

    elapsed_s: float
    energy_j: float
    anchor_ns: int
    branch: Branch
    rollover: bool = False


@dataclass(frozen=True, slots=True)
class RolloverRecovered:
    """Reboot with an unreliable lifetime counter.

    Only the post-reboot session is accounted, bucketed by the latest
    measurement's time.
    """

    elapsed_s: float
    energy_j: float
    anchor_ns: int
    branch: Branch = Branch.ROLLOVER_TOTAL_INVALID
    rollover: bool = True


@dataclass(frozen=True, slots=True)
class Inconsistent:
    """Interval that no rule can explain; contributes nothing."""

    deltas: StepDeltas
    branch: Branch = Branch.INCONSISTENT
    rollover: bool = False


StepOutcome = Accepted | RolloverRecovered | Inconsistent


def trapezoid(prev_power_w: float, last_power_w: float, elapsed_s: float) -> float:
    """Energy in joules under a linear power ramp over *elapsed_s*."""
    return (prev_power_w + last_power_w) * elapsed_s / 2


def reconcile(prev: Measurement, last: Measurement) -> StepOutcome:
    """Classify the interval from *prev* to *last* and compute its energy.

    Args:
        prev: The preceding valid measurement.
        last: The measurement that closes the interval.

    Returns:
        :class:`Accepted`, :class:`RolloverRecovered` or
        :class:`Inconsistent`. Callers own the rollover counter and
        the taint flag.
    """
    d = StepDeltas.between(prev, last)
    uptime_total_invalid = d.uptime_total < d.uptime_now

    if abs(d.wall - d.uptime_total) < WALL_TOTAL_TOLERANCE_S:
        return Accepted(
            elapsed_s=d.wall,
            energy_j=trapezoid(prev.power_input, last.power_input, d.wall),
            anchor_ns=prev.timestamp_ns,
            branch=Branch.WALL_MATCHES_TOTAL,
        )

    if abs(d.uptime_total - d.uptime_current) < TOTAL_CURRENT_TOLERANCE_S:
        logger.debug(
            "Wall clock drifted %.3fs against device uptime",
            d.wall - d.uptime_total,
            extra={"context": _context(prev, last, d, Branch.CLOCK_DRIFT)},
        )
        return Accepted(
            elapsed_s=d.wall,
            energy_j=trapezoid(prev.power_input, last.power_input, d.wall),
            anchor_ns=prev.timestamp_ns,
            branch=Branch.CLOCK_DRIFT,
        )

    if d.wall > d.uptime_now:
        if uptime_total_invalid:
            logger.warning(
                "Rollover detected, total uptime grew only %.3fs; "
                "accounting %.3fs of the new session",
                d.uptime_total,
                d.uptime_now,
                extra={
                    "context": _context(prev, last, d, Branch.ROLLOVER_TOTAL_INVALID)
                },
            )
            return RolloverRecovered(
                elapsed_s=d.uptime_now,
                energy_j=last.power_input * d.uptime_now,
                anchor_ns=last.timestamp_ns,
            )

        logger.warning(
            "Rollover detected, using total uptime delta %.3fs instead of "
            "wall clock delta %.3fs",
            d.uptime_total,
            d.wall,
            extra={"context": _context(prev, last, d, Branch.ROLLOVER)},
        )
        return Accepted(
            elapsed_s=d.uptime_total,
            energy_j=trapezoid(prev.power_input, last.power_input, d.uptime_total),
            anchor_ns=prev.timestamp_ns,
            branch=Branch.ROLLOVER,
            rollover=True,
        )

    logger.error(
        "Inconsistent interval, no rule explains wall delta %.3fs "
        "with total uptime delta %.3fs and current uptime %.3fs",
        d.wall,
        d.uptime_total,
        d.uptime_now,
        extra={"context": _context(prev, last, d, Branch.INCONSISTENT)},
    )
    return Inconsistent(deltas=d)


def _context(
    prev: Measurement, last: Measurement, d: StepDeltas, branch: Branch
) -> dict:
    return {
        "branch": str(branch),
        "prev": prev.as_context(),
        "last": last.as_context(),
        "delta_wall_s": d.wall,
        "delta_uptime_total_s": d.uptime_total,
        "delta_uptime_current_s": d.uptime_current,
        "uptime_now_s": d.uptime_now,
    }
