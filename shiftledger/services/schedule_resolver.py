from __future__ import annotations

from collections.abc import Iterator
from datetime import date, time, timedelta

from shiftledger.errors import InvalidRange, UndefinedSchedule
from shiftledger.services.hours_calc import clock_minutes
from shiftledger.services.ledger import ExpectedDay, ScheduleAssignment
from shiftledger.services.shift_patterns import ShiftSlot

_ONE_DAY = timedelta(days=1)


def iter_dates(start_date: date, end_date: date) -> Iterator[date]:
    """Yield every calendar date in [start_date, end_date], ascending.

    ``date`` arithmetic has no time-of-day component, so daylight-saving changes
    cannot shift a day.
    """
    if end_date < start_date:
        raise InvalidRange(f"end_date {end_date.isoformat()} is before start_date {start_date.isoformat()}")
    cursor = start_date
    while cursor <= end_date:
        yield cursor
        cursor += _ONE_DAY


def cycle_index_for(assignment: ScheduleAssignment, day_date: date) -> int:
    pattern = assignment.pattern
    offset_days = (day_date - assignment.effective_from).days
    if offset_days < 0:
        raise UndefinedSchedule(
            f"{day_date.isoformat()} is before the assignment start {assignment.effective_from.isoformat()}",
            day_date=day_date,
        )
    if pattern.aligned_to_weekday:
        return day_date.weekday()
    return offset_days % pattern.cycle_length


def _add_minutes(value: time, minutes: int) -> time:
    total = (clock_minutes(value) + minutes) % (24 * 60)
    return time(total // 60, total % 60)


def _is_short_slot(assignment: ScheduleAssignment, slot: ShiftSlot) -> bool:
    longest = max(item.minutes for item in assignment.pattern.cycle if item.is_work)
    return slot.minutes < longest


def _expected_work_day(
    assignment: ScheduleAssignment,
    slot: ShiftSlot,
    day_date: date,
    cycle_index: int,
) -> ExpectedDay:
    if _is_short_slot(assignment, slot):
        # Saturday half day and similar: no break, exit pulled in.
        return ExpectedDay(
            day_date=day_date,
            must_work=True,
            expected_entry=assignment.entry_time,
            expected_break_start=None,
            expected_break_end=None,
            expected_exit=_add_minutes(assignment.entry_time, slot.minutes),
            expected_minutes=slot.minutes,
            pattern_id=assignment.pattern_id,
            cycle_index=cycle_index,
        )
    return ExpectedDay(
        day_date=day_date,
        must_work=True,
        expected_entry=assignment.entry_time,
        expected_break_start=assignment.break_start,
        expected_break_end=assignment.break_end,
        expected_exit=assignment.exit_time,
        expected_minutes=slot.minutes,
        pattern_id=assignment.pattern_id,
        cycle_index=cycle_index,
    )


def resolve(assignment: ScheduleAssignment, day_date: date) -> ExpectedDay:
    cycle_index = cycle_index_for(assignment, day_date)
    slot = assignment.pattern.cycle[cycle_index]
    if slot.is_work:
        return _expected_work_day(assignment, slot, day_date, cycle_index)
    return ExpectedDay(
        day_date=day_date,
        must_work=False,
        expected_entry=None,
        expected_break_start=None,
        expected_break_end=None,
        expected_exit=None,
        expected_minutes=0,
        pattern_id=assignment.pattern_id,
        cycle_index=cycle_index,
    )


def resolve_range(
    assignment: ScheduleAssignment,
    start_date: date,
    end_date: date,
) -> list[ExpectedDay]:
    if end_date < start_date:
        raise InvalidRange(f"end_date {end_date.isoformat()} is before start_date {start_date.isoformat()}")
    if start_date < assignment.effective_from:
        raise UndefinedSchedule(
            f"{start_date.isoformat()} is before the assignment start {assignment.effective_from.isoformat()}",
            day_date=start_date,
        )
    return [resolve(assignment, day_date) for day_date in iter_dates(start_date, end_date)]

