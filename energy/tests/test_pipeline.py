"""
Unit tests for the document-to-result fold.

Tests verify:
- Adjacent valid measurements are reconciled and accumulated.
- Skipped documents are invisible gaps by default, or reset the series
  when SKIP_RESETS_PREVIOUS is set.
- A synthetic multi-month series with reboots and one inconsistent
  interval keeps bucket sums equal to the grand total.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-012)

TODO:
- None
"""

import logging
import random
from collections.abc import Callable

import pytest
from energy.src.config import EnergySettings
from energy.src.grouping import GroupKey
from energy.src.measurement import SkipReason, Skipped
from energy.src.pipeline import run
from energy.src.reconciler import trapezoid

MakeDocument = Callable[..., dict]


@pytest.fixture()
def settings() -> EnergySettings:
    return EnergySettings(timezone="UTC")


class TestRunBasics:
    """Valid documents are folded pairwise."""

    def test_empty_input(self, settings: EnergySettings) -> None:
        result = run([], settings)

        assert result.documents == 0
        assert result.total.energy_j == 0.0
        assert result.buckets == {}

    def test_single_document_accounts_nothing(
        self, settings: EnergySettings, make_document: MakeDocument
    ) -> None:
        result = run([make_document(0, 100.0, 100.0, 500.0)], settings)

        assert result.documents == 1
        assert result.intervals == 0
        assert result.total.elapsed_s == 0.0

    def test_all_accepted_run(
        self, settings: EnergySettings, make_document: MakeDocument
    ) -> None:
        """N accepted intervals sum their elapsed times and energies."""
        powers = [500.0, 600.0, 550.0, 420.0]
        docs = [
            make_document(60 * i, 100.0 + 60 * i, 100.0 + 60 * i, p)
            for i, p in enumerate(powers)
        ]

        result = run(docs, settings)

        expected = sum(trapezoid(a, b, 60.0) for a, b in zip(powers, powers[1:]))
        assert result.intervals == 3
        assert result.total.elapsed_s == pytest.approx(180.0)
        assert result.total.energy_j == pytest.approx(expected)
        assert result.tainted is False

    def test_other_device_selected(self, make_document: MakeDocument) -> None:
        docs = [
            make_document(0, 100.0, 100.0, 500.0, description="Corsair RM850i"),
            make_document(60, 160.0, 160.0, 600.0, description="Corsair RM850i"),
        ]
        settings = EnergySettings(timezone="UTC", device_description="Corsair RM850i")

        assert run(docs, settings).total.energy_j == pytest.approx(33000.0)


class TestSkippedDocuments:
    """Skipped documents are logged and handled per the gap policy."""

    def _docs(self, make_document: MakeDocument) -> list:
        broken = make_document(60, 160.0, 160.0, 9999.0)
        broken["data"][1]["status"][4]["unit"] = "kW"
        return [
            make_document(0, 100.0, 100.0, 500.0),
            broken,
            make_document(120, 220.0, 220.0, 700.0),
        ]

    def test_skip_is_invisible_gap_by_default(
        self, settings: EnergySettings, make_document: MakeDocument
    ) -> None:
        result = run(self._docs(make_document), settings)

        assert result.skipped == 1
        assert result.intervals == 1
        assert result.total.elapsed_s == pytest.approx(120.0)
        assert result.total.energy_j == pytest.approx(trapezoid(500.0, 700.0, 120.0))

    def test_skip_resets_previous(self, make_document: MakeDocument) -> None:
        settings = EnergySettings(timezone="UTC", skip_resets_previous=True)

        result = run(self._docs(make_document), settings)

        assert result.skipped == 1
        assert result.intervals == 0
        assert result.total.energy_j == 0.0

    def test_pre_skipped_fragments_counted(
        self, settings: EnergySettings, make_document: MakeDocument
    ) -> None:
        docs = [
            make_document(0, 100.0, 100.0, 500.0),
            Skipped(SkipReason.INVALID_JSON, "Expecting value", "{oops"),
            make_document(60, 160.0, 160.0, 600.0),
        ]

        result = run(docs, settings)

        assert result.documents == 3
        assert result.skipped == 1
        assert result.total.energy_j == pytest.approx(33000.0)

    def test_skip_logged_with_raw_document(
        self,
        settings: EnergySettings,
        make_document: MakeDocument,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="energy.src.pipeline"):
            run(self._docs(make_document), settings)

        skips = [r for r in caplog.records if r.name == "energy.src.pipeline"]
        assert len(skips) == 1
        assert skips[0].context["reason"] == "wrong_unit"
        assert '"kW"' in skips[0].context["raw"]


class TestRolloverAndTaint:
    """Reboots are counted, inconsistent intervals taint the run."""

    def test_rollover_counted(
        self, settings: EnergySettings, make_document: MakeDocument
    ) -> None:
        docs = [
            make_document(0, 50000.0, 90000.0, 400.0),
            make_document(120, 30.0, 90020.0, 250.0),
        ]

        result = run(docs, settings)

        assert result.rollover_count == 1
        assert result.total.elapsed_s == pytest.approx(30.0)
        assert result.total.energy_j == pytest.approx(7500.0)

    def test_inconsistent_interval_excluded(
        self, settings: EnergySettings, make_document: MakeDocument
    ) -> None:
        docs = [
            make_document(0, 100.0, 1000.0, 300.0),
            make_document(10, 50.0, 1200.0, 300.0),
            make_document(70, 110.0, 1260.0, 300.0),
        ]

        result = run(docs, settings)

        assert result.tainted is True
        assert result.inconsistent == 1
        assert result.intervals == 1
        assert result.total.elapsed_s == pytest.approx(60.0)


class TestSyntheticSeries:
    """Bucket sums match the grand total across months, reboots and taint."""

    def test_bucket_sums_equal_total(
        self, settings: EnergySettings, make_document: MakeDocument
    ) -> None:
        rng = random.Random(1234)
        step = 300.0
        current, total = 40000.0, 800000.0
        docs = [make_document(0, current, total, 350.0)]

        # Starts 2023-05-31T00:00Z and runs well into June.
        for i in range(1, 600):
            power = rng.uniform(100.0, 500.0)
            jitter = rng.uniform(-0.5, 0.5)
            if i == 200:
                # Reboot with a consistent lifetime counter.
                current, total = 40.0, total + 40.0
            elif i == 300:
                # Counters jump in a way nothing explains.
                current, total = current + 1000.0, total + 3000.0
            elif i == 400:
                # Power loss: lifetime counter lags the new session.
                current, total = 30.0, total + 10.0
            else:
                current, total = current + step + jitter, total + step + jitter
            docs.append(make_document(i * step, current, total, power))

        result = run(docs, settings)

        assert result.rollover_count == 2
        assert result.inconsistent == 1
        assert result.tainted is True
        assert result.intervals == 598
        assert set(result.buckets) == {GroupKey(2023, 5), GroupKey(2023, 6)}

        buckets = [totals for _, totals in result.sorted_buckets()]
        assert sum(b.elapsed_s for b in buckets) == pytest.approx(result.total.elapsed_s)
        assert sum(b.energy_j for b in buckets) == pytest.approx(result.total.energy_j)
