from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Union

from shiftledger.errors import DayError
from shiftledger.services.shift_patterns import ShiftPattern

ClockValue = Union[time, str, None]


@dataclass(frozen=True)
class ScheduleAssignment:
    employee_id: int
    pattern: ShiftPattern
    entry_time: time
    exit_time: time
    effective_from: date
    break_start: time | None = None
    break_end: time | None = None
    assignment_id: int | None = None

    @property
    def pattern_id(self) -> str:
        return self.pattern.pattern_id


@dataclass(frozen=True)
class ExpectedDay:
    day_date: date
    must_work: bool
    expected_entry: time | None
    expected_break_start: time | None
    expected_break_end: time | None
    expected_exit: time | None
    expected_minutes: int
    pattern_id: str
    cycle_index: int


@dataclass(frozen=True)
class PunchRecord:
    employee_id: int
    day_date: date
    entry: ClockValue = None
    break_start: ClockValue = None
    break_end: ClockValue = None
    exit: ClockValue = None
    notes: str | None = None
    exit_date: date | None = None
    punch_id: int | None = None

    @property
    def has_clock_times(self) -> bool:
        """True when entry or exit is set; a break alone does not make a record."""
        return not (_is_blank(self.entry) and _is_blank(self.exit))


def _is_blank(value: ClockValue) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


@dataclass(frozen=True)
class Recorded:
    punch: PunchRecord
    kind: str = "RECORDED"


@dataclass(frozen=True)
class Placeholder:
    kind: str = "PLACEHOLDER"


@dataclass(frozen=True)
class OvernightContinuation:
    source_date: date
    kind: str = "CONTINUATION"


Actual = Union[Recorded, Placeholder, OvernightContinuation]


@dataclass(frozen=True)
class LedgerDay:
    day_date: date
    expected: ExpectedDay
    actual: Actual
    occupied_by_overnight_predecessor: bool = False
    error: DayError | None = None

    @property
    def punch(self) -> PunchRecord | None:
        if isinstance(self.actual, Recorded):
            return self.actual.punch
        return None

    @property
    def is_editable(self) -> bool:
        return not isinstance(self.actual, OvernightContinuation)


@dataclass(frozen=True)
class LeaveDay:
    day_date: date
    paid: bool
    leave_type: str | None = None
