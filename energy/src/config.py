"""
Energy report configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
Every value has a default, so the tool runs without any environment set;
overrides come from environment variables or a ``.env`` file.

CHANGELOG:
- 2026-10-19: Add SKIP_RESETS_PREVIOUS gap policy (STORY-006)
- 2026-10-19: Initial creation (STORY-001)

TODO:
- None
"""

import logging
from datetime import tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings

# Device entry selected from each telemetry document by its description.
DEFAULT_DEVICE_DESCRIPTION = "Corsair HX1000i"

_VALID_LOG_LEVELS: frozenset[str] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR"})


class EnergySettings(BaseSettings):
    """Energy report configuration.

    Attributes:
        device_description: ``description`` of the device entry to account
            for. Documents without exactly one matching entry are skipped.
        timezone: IANA zone name used for calendar-month buckets. Empty
            means the host's local time zone.
        skip_resets_previous: When True, a skipped document clears the
            previous measurement so the next valid one starts a fresh
            series. When False, skipped documents are invisible gaps.
        log_level: Root logging level name.
        log_json: Emit diagnostics as JSON lines instead of plain text.
    """

    device_description: str = DEFAULT_DEVICE_DESCRIPTION
    timezone: str = ""
    skip_resets_previous: bool = False
    log_level: str = "INFO"
    log_json: bool = True

    @field_validator("device_description")
    @classmethod
    def device_description_must_not_be_blank(cls, v: str) -> str:
        """Validate the device description has visible characters."""
        if not v.strip():
            raise ValueError("DEVICE_DESCRIPTION must not be blank")
        return v

    @field_validator("timezone")
    @classmethod
    def timezone_must_be_known(cls, v: str) -> str:
        """Validate that a non-empty TIMEZONE names a known IANA zone."""
        if v:
            try:
                ZoneInfo(v)
            except (ZoneInfoNotFoundError, ValueError) as exc:
                raise ValueError(f"TIMEZONE {v!r} is not a known time zone") from exc
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_valid(cls, v: str) -> str:
        """Normalize LOG_LEVEL to upper case and check it is supported."""
        level = v.upper()
        if level not in _VALID_LOG_LEVELS:
            raise ValueError(
                f"LOG_LEVEL must be one of {', '.join(sorted(_VALID_LOG_LEVELS))}"
            )
        return level

    @property
    def tz(self) -> tzinfo | None:
        """Zone for month grouping, or ``None`` for the host local zone."""
        return ZoneInfo(self.timezone) if self.timezone else None

    @property
    def log_level_value(self) -> int:
        """Numeric ``logging`` level for :attr:`log_level`."""
        return logging.getLevelName(self.log_level)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}
