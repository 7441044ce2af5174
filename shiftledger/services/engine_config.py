from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import time
from typing import Any

from shiftledger.errors import ConfigurationError

DEFAULT_NIGHT_START = time(22, 0)
DEFAULT_NIGHT_END = time(5, 0)
DEFAULT_MIN_BREAK_MINUTES = 60
DEFAULT_DIURNAL_OVERTIME_RATE = 1.50
DEFAULT_NOCTURNAL_OVERTIME_RATE = 1.70
DEFAULT_NIGHT_DIFFERENTIAL_RATE = 0.20

REQUIRED_FIELDS = (
    "night_start",
    "night_end",
    "min_break_minutes",
    "diurnal_overtime_rate",
    "nocturnal_overtime_rate",
)

# Accept the camelCase names used by the company parameter screen.
_FIELD_ALIASES = {
    "nightStart": "night_start",
    "nightEnd": "night_end",
    "minBreakMinutes": "min_break_minutes",
    "diurnalOvertimeRate": "diurnal_overtime_rate",
    "nocturnalOvertimeRate": "nocturnal_overtime_rate",
    "nightDifferentialRate": "night_differential_rate",
}


@dataclass(frozen=True)
class NightWindow:
    start: time
    end: time

    @property
    def crosses_midnight(self) -> bool:
        return (self.end.hour, self.end.minute) < (self.start.hour, self.start.minute)


@dataclass(frozen=True)
class EngineConfig:
    night_start: time = DEFAULT_NIGHT_START
    night_end: time = DEFAULT_NIGHT_END
    min_break_minutes: int = DEFAULT_MIN_BREAK_MINUTES
    diurnal_overtime_rate: float = DEFAULT_DIURNAL_OVERTIME_RATE
    nocturnal_overtime_rate: float = DEFAULT_NOCTURNAL_OVERTIME_RATE
    night_differential_rate: float = DEFAULT_NIGHT_DIFFERENTIAL_RATE

    @property
    def night_window(self) -> NightWindow:
        return NightWindow(start=self.night_start, end=self.night_end)


def _coerce_time(name: str, value: Any) -> time:
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    if isinstance(value, str):
        parts = value.strip().split(":")
        if len(parts) in (2, 3) and all(part.isdigit() for part in parts):
            hour, minute = int(parts[0]), int(parts[1])
            if 0 <= hour <= 23 and 0 <= minute <= 59:
                return time(hour, minute)
    raise ConfigurationError(f"{name} must be a time of day (HH:MM)")


def _coerce_number(name: str, value: Any, *, minimum: float, maximum: float | None = None) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{name} must be a number")
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}")
    if maximum is not None and value > maximum:
        raise ConfigurationError(f"{name} must be <= {maximum}")
    return float(value)


def build_engine_config(raw: Mapping[str, Any]) -> EngineConfig:
    values = {_FIELD_ALIASES.get(key, key): value for key, value in raw.items()}
    missing = [name for name in REQUIRED_FIELDS if values.get(name) is None]
    if missing:
        raise ConfigurationError(f"Missing configuration fields: {', '.join(missing)}")

    night_start = _coerce_time("night_start", values["night_start"])
    night_end = _coerce_time("night_end", values["night_end"])
    if night_start == night_end:
        raise ConfigurationError("night_start and night_end must differ")

    # Optional; falls back to the default when absent.
    night_differential_rate = DEFAULT_NIGHT_DIFFERENTIAL_RATE
    if values.get("night_differential_rate") is not None:
        night_differential_rate = _coerce_number(
            "night_differential_rate",
            values["night_differential_rate"],
            minimum=0,
            maximum=1,
        )

    return EngineConfig(
        night_start=night_start,
        night_end=night_end,
        min_break_minutes=int(_coerce_number("min_break_minutes", values["min_break_minutes"], minimum=0)),
        diurnal_overtime_rate=_coerce_number("diurnal_overtime_rate", values["diurnal_overtime_rate"], minimum=1),
        nocturnal_overtime_rate=_coerce_number(
            "nocturnal_overtime_rate",
            values["nocturnal_overtime_rate"],
            minimum=1,
        ),
        night_differential_rate=night_differential_rate,
    )
