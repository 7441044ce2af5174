from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from shiftledger.errors import ConfigurationError, PatternNotFound


class SlotStatus(str, enum.Enum):
    WORK = "work"
    REST = "rest"


@dataclass(frozen=True)
class ShiftSlot:
    status: SlotStatus
    hours: float

    @property
    def minutes(self) -> int:
        return int(round(self.hours * 60))

    @property
    def is_work(self) -> bool:
        return self.status == SlotStatus.WORK


@dataclass(frozen=True)
class ShiftPattern:
    pattern_id: str
    label: str
    cycle: tuple[ShiftSlot, ...]
    aligned_to_weekday: bool = False

    @property
    def cycle_length(self) -> int:
        return len(self.cycle)

    @property
    def nominal_weekly_hours(self) -> float:
        # Informational only; never checked at runtime.
        work_hours = sum(slot.hours for slot in self.cycle if slot.is_work)
        return round(work_hours / self.cycle_length * 7, 2)


def _work(hours: float) -> tuple[str, float]:
    return ("work", hours)


_REST = ("rest", 0)

DEFAULT_PATTERN_DEFINITIONS: tuple[dict[str, Any], ...] = (
    {
        "pattern_id": "5x2",
        "label": "5x2 - five work days, two rest days",
        "cycle": [_work(8)] * 5 + [_REST] * 2,
    },
    {
        "pattern_id": "6x1",
        "label": "6x1 - six work days, one rest day",
        "cycle": [_work(8)] * 6 + [_REST],
    },
    {
        "pattern_id": "4x2",
        "label": "4x2 - four work days, two rest days",
        "cycle": [_work(8)] * 4 + [_REST] * 2,
    },
    {
        "pattern_id": "12x36",
        "label": "12x36 - 12h work / 36h rest",
        "cycle": [_work(12), _REST],
    },
    {
        "pattern_id": "24x48",
        "label": "24x48 - 24h work / 48h rest",
        "cycle": [_work(24), _REST, _REST],
    },
    {
        "pattern_id": "40h_8h_segsex",
        "label": "40h weekly - 8h/day Monday to Friday",
        "cycle": [_work(8)] * 5 + [_REST] * 2,
        "aligned_to_weekday": True,
    },
    {
        "pattern_id": "44h_8h_segsex_4h_sab",
        "label": "44h weekly - 8h/day Monday to Friday + 4h Saturday",
        "cycle": [_work(8)] * 5 + [_work(4), _REST],
        "aligned_to_weekday": True,
    },
    {
        "pattern_id": "36h_6h_seg_sab",
        "label": "36h weekly - 6h/day Monday to Saturday",
        "cycle": [_work(6)] * 6 + [_REST],
        "aligned_to_weekday": True,
    },
    {
        "pattern_id": "noturno_7h_segsex",
        "label": "Night shift - 7h/day Monday to Friday (22h to 5h)",
        "cycle": [_work(7)] * 5 + [_REST] * 2,
        "aligned_to_weekday": True,
    },
)


def _parse_slot(pattern_id: str, index: int, raw: Any) -> ShiftSlot:
    if isinstance(raw, ShiftSlot):
        status, hours = raw.status, raw.hours
    elif isinstance(raw, Mapping):
        status, hours = raw.get("status"), raw.get("hours")
    else:
        status, hours = raw

    try:
        slot_status = SlotStatus(status)
    except ValueError as exc:
        raise ConfigurationError(f"Pattern {pattern_id!r} slot {index}: unknown status {status!r}") from exc

    if not isinstance(hours, (int, float)) or isinstance(hours, bool):
        raise ConfigurationError(f"Pattern {pattern_id!r} slot {index}: hours must be a number")
    if hours < 0 or hours > 24:
        raise ConfigurationError(f"Pattern {pattern_id!r} slot {index}: hours must be within [0, 24]")
    if slot_status == SlotStatus.REST and hours != 0:
        raise ConfigurationError(f"Pattern {pattern_id!r} slot {index}: rest slot must have 0 hours")
    if slot_status == SlotStatus.WORK and hours <= 0:
        raise ConfigurationError(f"Pattern {pattern_id!r} slot {index}: work slot must have hours > 0")
    return ShiftSlot(status=slot_status, hours=float(hours))


def build_pattern(definition: Mapping[str, Any]) -> ShiftPattern:
    pattern_id = str(definition.get("pattern_id") or "").strip()
    if not pattern_id:
        raise ConfigurationError("Pattern definition is missing pattern_id")

    raw_cycle = list(definition.get("cycle") or [])
    if not raw_cycle:
        raise ConfigurationError(f"Pattern {pattern_id!r} has an empty cycle")

    aligned_to_weekday = bool(definition.get("aligned_to_weekday", False))
    if aligned_to_weekday and len(raw_cycle) != 7:
        raise ConfigurationError(f"Pattern {pattern_id!r} is weekday aligned and needs exactly 7 slots")

    cycle = tuple(_parse_slot(pattern_id, index, raw) for index, raw in enumerate(raw_cycle))
    return ShiftPattern(
        pattern_id=pattern_id,
        label=str(definition.get("label") or pattern_id),
        cycle=cycle,
        aligned_to_weekday=aligned_to_weekday,
    )


class ShiftPatternCatalog:
    """Read-only lookup of authored shift patterns.

    Definitions are validated once, when the catalog is built. Callers receive the
    catalog as a dependency so fixtures can replace it.
    """

    def __init__(self, patterns: Iterable[ShiftPattern]):
        by_id: dict[str, ShiftPattern] = {}
        for pattern in patterns:
            if pattern.pattern_id in by_id:
                raise ConfigurationError(f"Duplicate pattern id {pattern.pattern_id!r}")
            by_id[pattern.pattern_id] = pattern
        self._patterns = by_id

    @classmethod
    def from_definitions(cls, definitions: Sequence[Mapping[str, Any]]) -> ShiftPatternCatalog:
        return cls(build_pattern(item) for item in definitions)

    def lookup(self, pattern_id: str) -> ShiftPattern:
        pattern = self._patterns.get(pattern_id)
        if pattern is None:
            raise PatternNotFound(f"Shift pattern {pattern_id!r} not found")
        return pattern

    def __contains__(self, pattern_id: object) -> bool:
        return pattern_id in self._patterns

    def patterns(self) -> list[ShiftPattern]:
        return [self._patterns[key] for key in sorted(self._patterns)]


def default_catalog() -> ShiftPatternCatalog:
    return ShiftPatternCatalog.from_definitions(DEFAULT_PATTERN_DEFINITIONS)
