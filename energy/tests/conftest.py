"""
Shared test fixtures for the energy report tests.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-001)

TODO:
- None
"""

import logging
from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta

import pytest
from energy.src.measurement import Measurement

# All EnergySettings environment variable names, used for cleanup.
_ALL_ENERGY_ENV_VARS = (
    "DEVICE_DESCRIPTION",
    "TIMEZONE",
    "SKIP_RESETS_PREVIOUS",
    "LOG_LEVEL",
    "LOG_JSON",
)

DEVICE = "Corsair HX1000i"
BASE_TS = datetime(2023, 5, 31, 0, 0, 0, tzinfo=UTC)
BASE_NS = int(BASE_TS.timestamp()) * 1_000_000_000


@pytest.fixture(autouse=True)
def _clean_energy_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Remove all energy env vars and isolate from .env files before each test.

    Changes working directory to tmp_path so no .env file is accidentally
    loaded by Pydantic BaseSettings.
    """
    for var in _ALL_ENERGY_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    """Undo setup_logging() so later tests keep pytest's log capture."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


@pytest.fixture()
def make_document() -> Callable[..., dict]:
    """Factory for telemetry documents ``offset_s`` seconds after BASE_TS.

    The accounted device is surrounded by another device and carries
    textual and unrelated status items, as real snapshots do.
    """

    def _make(
        offset_s: float,
        uptime_current: float,
        uptime_total: float,
        power_input: float,
        *,
        description: str = DEVICE,
    ) -> dict:
        return {
            "timestamp": (BASE_TS + timedelta(seconds=offset_s)).isoformat(),
            "data": [
                {
                    "description": "NZXT Kraken X63",
                    "status": [{"key": "Liquid temperature", "value": 31.2, "unit": "°C"}],
                },
                {
                    "description": description,
                    "status": [
                        {"key": "Current uptime", "value": uptime_current, "unit": "s"},
                        {"key": "Total uptime", "value": uptime_total, "unit": "s"},
                        {"key": "OCP mode", "value": "Single rail", "unit": ""},
                        {"key": "Total power output", "value": power_input * 0.9, "unit": "W"},
                        {"key": "Estimated input power", "value": power_input, "unit": "W"},
                    ],
                },
            ],
        }

    return _make


@pytest.fixture()
def make_measurement() -> Callable[..., Measurement]:
    """Factory for measurements ``offset_s`` seconds after BASE_TS."""

    def _make(
        offset_s: float,
        uptime_current: float,
        uptime_total: float,
        power_input: float,
    ) -> Measurement:
        return Measurement(
            timestamp_ns=BASE_NS + round(offset_s * 1_000_000_000),
            uptime_current=uptime_current,
            uptime_total=uptime_total,
            power_input=power_input,
        )

    return _make
