"""
Sequential fold of telemetry documents into a :class:`Result`.

Each document is extracted into a measurement, reconciled against the
previous valid measurement and applied to the accumulator. Skipped
documents are logged and, depending on ``skip_resets_previous``, either
leave the previous measurement in place or clear it.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-012)

TODO:
- None
"""

import logging
from collections.abc import Iterable
from typing import Any

from energy.src.accumulator import Result
from energy.src.config import EnergySettings
from energy.src.measurement import Measurement, Skipped, extract_measurement
from energy.src.reconciler import reconcile

logger = logging.getLogger(__name__)


def run(documents: Iterable[Any | Skipped], settings: EnergySettings) -> Result:
    """Account every interval of *documents* for the configured device.

    Args:
        documents: Decoded documents in time order, as produced by
            :func:`energy.src.stream.iter_documents`. Already-rejected
            fragments may be passed as :class:`Skipped` values.
        settings: Device selection, time zone and skip policy.

    Returns:
        The accumulated :class:`Result`.
    """
    result = Result(tz=settings.tz)
    prev: Measurement | None = None

    for index, doc in enumerate(documents):
        result.documents += 1
        if isinstance(doc, Skipped):
            outcome = doc
        else:
            outcome = extract_measurement(doc, settings.device_description)

        if isinstance(outcome, Skipped):
            result.skipped += 1
            logger.warning(
                "Skipping document %d (%s): %s",
                index,
                outcome.reason,
                outcome.detail,
                extra={"context": {"reason": str(outcome.reason), "raw": outcome.raw}},
            )
            if settings.skip_resets_previous:
                prev = None
            continue

        if prev is not None:
            result.apply(reconcile(prev, outcome))
        prev = outcome

    logger.info(
        "Processed %d documents (%d skipped), %d intervals accounted, "
        "%d inconsistent, %d rollovers",
        result.documents,
        result.skipped,
        result.intervals,
        result.inconsistent,
        result.rollover_count,
    )
    return result
