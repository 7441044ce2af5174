from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, time

from shiftledger.errors import MalformedPunch
from shiftledger.services.engine_config import EngineConfig, NightWindow
from shiftledger.services.ledger import (
    ClockValue,
    LeaveDay,
    LedgerDay,
    OvernightContinuation,
    PunchRecord,
)

MINUTES_PER_DAY = 24 * 60
MIN_BREAK_THRESHOLD_MINUTES = 6 * 60

Segment = tuple[int, int]


class DayStatus(str, enum.Enum):
    WORKED = "WORKED"
    REST = "REST"
    ABSENT = "ABSENT"
    PAID_LEAVE = "PAID_LEAVE"
    UNPAID_LEAVE = "UNPAID_LEAVE"
    INCOMPLETE = "INCOMPLETE"
    CONTINUATION = "CONTINUATION"


@dataclass(frozen=True)
class DayHours:
    day_date: date
    status: DayStatus
    worked_minutes: int
    night_minutes: int
    overtime_diurnal_minutes: int
    overtime_nocturnal_minutes: int
    expected_minutes: int
    flags: tuple[str, ...] = ()

    @property
    def overtime_minutes(self) -> int:
        return self.overtime_diurnal_minutes + self.overtime_nocturnal_minutes

    @property
    def is_absence(self) -> bool:
        return self.status == DayStatus.ABSENT

    @property
    def is_incomplete(self) -> bool:
        return "MISSING_IN" in self.flags or "MISSING_OUT" in self.flags


def clock_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def format_minutes(minutes: int) -> str:
    sign = "-" if minutes < 0 else ""
    hours, rest = divmod(abs(minutes), 60)
    return f"{sign}{hours:02d}:{rest:02d}"


def parse_clock(value: ClockValue, *, field_name: str = "time", day_date: date | None = None) -> time | None:
    if value is None:
        return None
    if isinstance(value, time):
        return value
    raw = value.strip()
    if not raw:
        return None

    parts = raw.split(":")
    if len(parts) not in (2, 3) or not all(part.isdigit() for part in parts):
        raise MalformedPunch(f"{field_name} {raw!r} is not a valid time", day_date=day_date)
    hour, minute = int(parts[0]), int(parts[1])
    second = int(parts[2]) if len(parts) == 3 else 0
    if hour > 23 or minute > 59 or second > 59:
        raise MalformedPunch(f"{field_name} {raw!r} is out of range", day_date=day_date)
    return time(hour, minute, second)


def is_overnight(entry: time, exit_time: time) -> bool:
    return clock_minutes(exit_time) < clock_minutes(entry)


def shift_span_minutes(
    entry: time,
    exit_time: time,
    *,
    exit_day_offset: int | None = None,
) -> int:
    """Minutes from entry to exit, placing an earlier exit on the next day.

    This is the only place overnight spans are normalised. ``exit_day_offset`` pins
    the checkout day explicitly; otherwise an exit earlier than the entry is read as
    next-day. A span of zero, or longer than 24h, is rejected.
    """
    start = clock_minutes(entry)
    end = clock_minutes(exit_time)
    if exit_day_offset is not None:
        end += exit_day_offset * MINUTES_PER_DAY
    elif end < start:
        end += MINUTES_PER_DAY

    span = end - start
    if span <= 0:
        raise MalformedPunch("exit must be after entry")
    if span > MINUTES_PER_DAY:
        raise MalformedPunch("shift spans more than 24 hours")
    return span


def punch_exit_day_offset(punch: PunchRecord) -> int | None:
    """0 or 1 for a punch with both ends, None when entry or exit is missing."""
    entry = parse_clock(punch.entry, field_name="entry", day_date=punch.day_date)
    exit_time = parse_clock(punch.exit, field_name="exit", day_date=punch.day_date)
    if entry is None or exit_time is None:
        return None
    if punch.exit_date is not None:
        offset = (punch.exit_date - punch.day_date).days
        if offset not in (0, 1):
            raise MalformedPunch("exit_date must be the punch date or the day after", day_date=punch.day_date)
        return offset
    return 1 if is_overnight(entry, exit_time) else 0


def punch_is_overnight(punch: PunchRecord) -> bool:
    return punch_exit_day_offset(punch) == 1


def _night_segments(window: NightWindow, low: int, high: int) -> list[Segment]:
    start = clock_minutes(window.start)
    end = clock_minutes(window.end)
    if end <= start:
        end += MINUTES_PER_DAY

    segments: list[Segment] = []
    first_day = low // MINUTES_PER_DAY - 1
    last_day = high // MINUTES_PER_DAY + 1
    for day in range(first_day, last_day + 1):
        offset = day * MINUTES_PER_DAY
        segments.append((offset + start, offset + end))
    return segments


def night_overlap_minutes(segments: list[Segment], window: NightWindow) -> int:
    if not segments:
        return 0
    low = min(item[0] for item in segments)
    high = max(item[1] for item in segments)
    total = 0
    for night_start, night_end in _night_segments(window, low, high):
        for seg_start, seg_end in segments:
            total += max(0, min(seg_end, night_end) - max(seg_start, night_start))
    return total


def _tail_segments(segments: list[Segment], minutes: int) -> list[Segment]:
    remaining = minutes
    tail: list[Segment] = []
    for seg_start, seg_end in reversed(segments):
        if remaining <= 0:
            break
        take = min(remaining, seg_end - seg_start)
        tail.append((seg_end - take, seg_end))
        remaining -= take
    return list(reversed(tail))


@dataclass(frozen=True)
class _PunchSpan:
    segments: list[Segment]
    gross_minutes: int
    break_minutes: int
    crosses_midnight: bool


def _punch_span(punch: PunchRecord, entry: time, exit_time: time) -> _PunchSpan:
    day_date = punch.day_date
    exit_offset = punch_exit_day_offset(punch)
    try:
        gross = shift_span_minutes(entry, exit_time, exit_day_offset=exit_offset)
    except MalformedPunch as exc:
        raise MalformedPunch(exc.message, day_date=day_date) from exc

    start = clock_minutes(entry)
    end = start + gross

    break_start = parse_clock(punch.break_start, field_name="break_start", day_date=day_date)
    break_end = parse_clock(punch.break_end, field_name="break_end", day_date=day_date)
    if (break_start is None) != (break_end is None):
        raise MalformedPunch("break needs both start and end", day_date=day_date)

    if break_start is None or break_end is None:
        return _PunchSpan(
            segments=[(start, end)],
            gross_minutes=gross,
            break_minutes=0,
            crosses_midnight=end > MINUTES_PER_DAY,
        )

    if clock_minutes(break_end) < clock_minutes(break_start):
        raise MalformedPunch("break_end is before break_start", day_date=day_date)

    break_from = clock_minutes(break_start)
    if break_from < start:
        break_from += MINUTES_PER_DAY
    break_to = break_from + clock_minutes(break_end) - clock_minutes(break_start)
    if break_from < start or break_to > end:
        raise MalformedPunch("break falls outside the worked span", day_date=day_date)

    segments = [item for item in ((start, break_from), (break_to, end)) if item[1] > item[0]]
    return _PunchSpan(
        segments=segments,
        gross_minutes=gross,
        break_minutes=break_to - break_from,
        crosses_midnight=end > MINUTES_PER_DAY,
    )


def validate_punch(punch: PunchRecord) -> None:
    """Raise MalformedPunch for anything compute_day_hours would reject."""
    day_date = punch.day_date
    entry = parse_clock(punch.entry, field_name="entry", day_date=day_date)
    exit_time = parse_clock(punch.exit, field_name="exit", day_date=day_date)
    parse_clock(punch.break_start, field_name="break_start", day_date=day_date)
    parse_clock(punch.break_end, field_name="break_end", day_date=day_date)
    if entry is not None and exit_time is not None:
        _punch_span(punch, entry, exit_time)
    elif punch.exit_date is not None and exit_time is None:
        raise MalformedPunch("exit_date requires an exit time", day_date=day_date)


def _idle_day(
    ledger_day: LedgerDay,
    *,
    leave: LeaveDay | None,
    flags: list[str],
) -> DayHours:
    expected = ledger_day.expected
    if not expected.must_work:
        status = DayStatus.REST
    elif leave is not None:
        status = DayStatus.PAID_LEAVE if leave.paid else DayStatus.UNPAID_LEAVE
        flags.append("LEAVE_DAY")
    else:
        status = DayStatus.ABSENT
    return DayHours(
        day_date=ledger_day.day_date,
        status=status,
        worked_minutes=0,
        night_minutes=0,
        overtime_diurnal_minutes=0,
        overtime_nocturnal_minutes=0,
        expected_minutes=expected.expected_minutes,
        flags=tuple(sorted(set(flags))),
    )


def compute_day_hours(
    ledger_day: LedgerDay,
    config: EngineConfig,
    *,
    leave: LeaveDay | None = None,
) -> DayHours:
    expected = ledger_day.expected
    if ledger_day.error is not None:
        raise MalformedPunch(ledger_day.error.message, day_date=ledger_day.day_date)

    if isinstance(ledger_day.actual, OvernightContinuation):
        return DayHours(
            day_date=ledger_day.day_date,
            status=DayStatus.CONTINUATION,
            worked_minutes=0,
            night_minutes=0,
            overtime_diurnal_minutes=0,
            overtime_nocturnal_minutes=0,
            expected_minutes=expected.expected_minutes,
            flags=("OVERNIGHT_CONTINUATION",),
        )

    punch = ledger_day.punch
    if punch is None or not punch.has_clock_times:
        return _idle_day(ledger_day, leave=leave, flags=[])

    day_date = ledger_day.day_date
    entry = parse_clock(punch.entry, field_name="entry", day_date=day_date)
    exit_time = parse_clock(punch.exit, field_name="exit", day_date=day_date)
    # Break fields are validated even when the day is incomplete.
    parse_clock(punch.break_start, field_name="break_start", day_date=day_date)
    parse_clock(punch.break_end, field_name="break_end", day_date=day_date)

    if entry is None or exit_time is None:
        flags = []
        if entry is None:
            flags.append("MISSING_IN")
        if exit_time is None:
            flags.append("MISSING_OUT")
        if expected.must_work:
            # Zero worked on a must-work day is an absence unless leave covers it.
            return _idle_day(ledger_day, leave=leave, flags=flags)
        return DayHours(
            day_date=day_date,
            status=DayStatus.INCOMPLETE,
            worked_minutes=0,
            night_minutes=0,
            overtime_diurnal_minutes=0,
            overtime_nocturnal_minutes=0,
            expected_minutes=expected.expected_minutes,
            flags=tuple(sorted(flags)),
        )

    span = _punch_span(punch, entry, exit_time)
    worked = span.gross_minutes - span.break_minutes

    flags: list[str] = []
    if span.crosses_midnight:
        flags.append("CROSS_MIDNIGHT")
    if span.gross_minutes > MIN_BREAK_THRESHOLD_MINUTES and span.break_minutes < config.min_break_minutes:
        flags.append("MIN_BREAK_NOT_MET")
    if worked <= 0:
        return _idle_day(ledger_day, leave=leave, flags=flags)

    window = config.night_window
    night_minutes = night_overlap_minutes(span.segments, window)
    overtime = max(0, worked - expected.expected_minutes)
    overtime_nocturnal = night_overlap_minutes(_tail_segments(span.segments, overtime), window)

    if not expected.must_work:
        flags.append("OFF_DAY_WORKED")
    elif worked < expected.expected_minutes:
        flags.append("UNDERWORKED")
    if leave is not None:
        flags.append("LEAVE_OVERRIDDEN_BY_WORK")

    return DayHours(
        day_date=day_date,
        status=DayStatus.WORKED,
        worked_minutes=worked,
        night_minutes=night_minutes,
        overtime_diurnal_minutes=overtime - overtime_nocturnal,
        overtime_nocturnal_minutes=overtime_nocturnal,
        expected_minutes=expected.expected_minutes,
        flags=tuple(sorted(set(flags))),
    )
