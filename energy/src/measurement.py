"""
Measurement extraction from liquidctl-style PSU telemetry documents.

Pure function that turns one decoded JSON document into a validated
:class:`Measurement` for the configured device, or a :class:`Skipped`
value naming why the document cannot be used. No side effects and no
I/O: the driving loop decides what to log and whether to continue.

A document looks like::

    {
      "timestamp": "2023-05-31T00:13:57,906371842+03:00",
      "data": [
        {"description": "Corsair HX1000i",
         "status": [{"key": "Current uptime", "value": 5400.0, "unit": "s"}, ...]}
      ]
    }

CHANGELOG:
- 2026-10-19: Reject documents with zero or several matching devices (STORY-007)
- 2026-10-19: Initial creation (STORY-003)

TODO:
- None
"""

import json
import math
import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_NS_PER_S = 1_000_000_000

# 2023-05-31T00:13:57,906371842+03:00 (dot or comma, up to nanoseconds).
_TIMESTAMP_RE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})T(?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:[.,](?P<fraction>\d{1,9}))?"
    r"(?P<offset>[+-]\d{2}:?\d{2})$"
)

# Status key -> (Measurement field, expected unit).
_REQUIRED_ITEMS: dict[str, tuple[str, str]] = {
    "Current uptime": ("uptime_current", "s"),
    "Total uptime": ("uptime_total", "s"),
    "Estimated input power": ("power_input", "W"),
}


class SkipReason(StrEnum):
    """Why a document did not yield a measurement."""

    INVALID_JSON = "invalid_json"
    BAD_SHAPE = "bad_shape"
    BAD_TIMESTAMP = "bad_timestamp"
    DEVICE_NOT_FOUND = "device_not_found"
    DEVICE_AMBIGUOUS = "device_ambiguous"
    WRONG_UNIT = "wrong_unit"
    BAD_VALUE = "bad_value"
    MISSING_FIELD = "missing_field"


@dataclass(frozen=True, slots=True)
class Skipped:
    """A document that was rejected before reaching the reconciler.

    Attributes:
        reason: Machine-readable rejection category.
        detail: Human-readable explanation.
        raw: The offending document text, for operator review.
    """

    reason: SkipReason
    detail: str
    raw: str


# ---------------------------------------------------------------------------
# Document schema
# ---------------------------------------------------------------------------


class StatusItem(BaseModel):
    """One ``{"key", "value", "unit"}`` entry of a device status list.

    ``value`` is left untyped: devices also report textual items (fan
    mode, OCP mode) that are ignored unless their key is required.
    """

    key: str
    value: Any = None
    unit: str = ""


class DeviceStatus(BaseModel):
    """One device entry of a telemetry document."""

    description: str
    status: list[StatusItem]


class TelemetryDocument(BaseModel):
    """A timestamped snapshot of every device's status list."""

    timestamp: str
    data: list[DeviceStatus]


class Measurement(BaseModel):
    """One validated telemetry sample for the accounted device.

    Attributes:
        timestamp_ns: Absolute instant as integer nanoseconds since the
            Unix epoch (UTC offset already applied).
        uptime_current: Seconds since the device's last reset.
        uptime_total: Lifetime seconds accumulated across reboots.
        power_input: Estimated input power draw in watts.
    """

    model_config = ConfigDict(frozen=True)

    timestamp_ns: int
    uptime_current: float
    uptime_total: float
    power_input: float

    @property
    def timestamp(self) -> datetime:
        """UTC datetime for :attr:`timestamp_ns` (truncated to microseconds)."""
        return _EPOCH + timedelta(microseconds=self.timestamp_ns // 1000)

    def as_context(self) -> dict[str, Any]:
        """Flat dict of this measurement for structured diagnostics."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "timestamp_ns": self.timestamp_ns,
            "uptime_current": self.uptime_current,
            "uptime_total": self.uptime_total,
            "power_input": self.power_input,
        }


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_timestamp(value: str) -> int:
    """Parse an ISO-8601 timestamp with a numeric UTC offset.

    Fractional seconds may use ``.`` or ``,`` and carry up to nine
    digits; all of them are kept.

    Args:
        value: Timestamp text, e.g. ``"2023-05-31T00:13:57,906371842+03:00"``.

    Returns:
        Integer nanoseconds since the Unix epoch.

    Raises:
        ValueError: If the text does not match the grammar, lacks an
            offset, or names an impossible date or time.
    """
    match = _TIMESTAMP_RE.match(value)
    if match is None:
        raise ValueError(f"Unparseable timestamp: {value!r}")

    offset = match["offset"]
    if ":" not in offset:
        offset = f"{offset[:3]}:{offset[3:]}"
    whole = datetime.fromisoformat(f"{match['date']}T{match['time']}{offset}")

    seconds = (whole - _EPOCH) // timedelta(seconds=1)
    fraction = int((match["fraction"] or "").ljust(9, "0"))
    return seconds * _NS_PER_S + fraction


def extract_measurement(doc: Any, device_description: str) -> Measurement | Skipped:
    """Extract the configured device's measurement from a decoded document.

    Args:
        doc: A decoded JSON value (normally a dict).
        device_description: ``description`` of the device entry to use.

    Returns:
        A :class:`Measurement` when every required item is present,
        numeric and in the expected unit; otherwise a :class:`Skipped`.
    """
    raw = json.dumps(doc, default=str)

    try:
        document = TelemetryDocument.model_validate(doc)
    except ValidationError as exc:
        return Skipped(SkipReason.BAD_SHAPE, _summarize(exc), raw)

    try:
        timestamp_ns = parse_timestamp(document.timestamp)
    except ValueError as exc:
        return Skipped(SkipReason.BAD_TIMESTAMP, str(exc), raw)

    devices = [d for d in document.data if d.description == device_description]
    if not devices:
        return Skipped(
            SkipReason.DEVICE_NOT_FOUND,
            f"No device with description {device_description!r}",
            raw,
        )
    if len(devices) > 1:
        return Skipped(
            SkipReason.DEVICE_AMBIGUOUS,
            f"{len(devices)} devices with description {device_description!r}",
            raw,
        )

    fields: dict[str, float] = {}
    for item in devices[0].status:
        target = _REQUIRED_ITEMS.get(item.key)
        if target is None:
            continue
        field_name, unit = target
        if item.unit != unit:
            return Skipped(
                SkipReason.WRONG_UNIT,
                f"Bad item: {item.model_dump_json()}, expected unit: {unit!r}",
                raw,
            )
        if not _is_finite_number(item.value):
            return Skipped(
                SkipReason.BAD_VALUE,
                f"Bad item: {item.model_dump_json()}, expected a finite number",
                raw,
            )
        fields[field_name] = float(item.value)

    missing = [key for key, (name, _) in _REQUIRED_ITEMS.items() if name not in fields]
    if missing:
        return Skipped(
            SkipReason.MISSING_FIELD,
            f"Device status is missing required item(s): {', '.join(missing)}",
            raw,
        )

    return Measurement(timestamp_ns=timestamp_ns, **fields)


def _is_finite_number(value: Any) -> bool:
    """True for int/float values (not bool) that are neither NaN nor infinite."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    return math.isfinite(value)


def _summarize(exc: ValidationError) -> str:
    """One-line summary of a pydantic validation error."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error["loc"]) or "<root>"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)
