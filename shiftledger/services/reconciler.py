from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta

from shiftledger.errors import DayError, MalformedPunch, UndefinedSchedule
from shiftledger.services.hours_calc import punch_is_overnight
from shiftledger.services.ledger import (
    LedgerDay,
    OvernightContinuation,
    Placeholder,
    PunchRecord,
    Recorded,
    ScheduleAssignment,
)
from shiftledger.services.schedule_resolver import iter_dates, resolve

_ONE_DAY = timedelta(days=1)


@dataclass
class ReconcileResult:
    days: list[LedgerDay] = field(default_factory=list)
    errors: list[DayError] = field(default_factory=list)

    def extend(self, other: ReconcileResult) -> None:
        self.days.extend(other.days)
        self.errors.extend(other.errors)


def _index_punches(
    employee_id: int,
    punches: Iterable[PunchRecord],
    *,
    first_day: date,
    last_day: date,
) -> tuple[dict[date, PunchRecord], list[DayError]]:
    by_day: dict[date, PunchRecord] = {}
    errors: list[DayError] = []
    for punch in punches:
        if punch.employee_id != employee_id:
            continue
        if punch.day_date < first_day or punch.day_date > last_day:
            continue
        # Rows without entry or exit are not records; they must not hide a placeholder
        # or an overnight continuation.
        if not punch.has_clock_times:
            continue
        if punch.day_date in by_day:
            errors.append(
                DayError(
                    day_date=punch.day_date,
                    code=MalformedPunch.code,
                    message="more than one punch recorded for this date; the first one is used",
                )
            )
            continue
        by_day[punch.day_date] = punch
    return by_day, errors


def _overnight_occupied_dates(
    punches_by_day: dict[date, PunchRecord],
    *,
    lookback_start: date,
    end_date: date,
) -> tuple[dict[date, date], dict[date, DayError]]:
    occupied: dict[date, date] = {}
    malformed: dict[date, DayError] = {}
    for day_date in iter_dates(lookback_start, end_date):
        punch = punches_by_day.get(day_date)
        if punch is None:
            continue
        try:
            overnight = punch_is_overnight(punch)
        except MalformedPunch as exc:
            malformed[day_date] = DayError.from_exception(day_date, exc)
            continue
        if overnight:
            occupied[day_date + _ONE_DAY] = day_date
    return occupied, malformed


def reconcile(
    employee_id: int,
    start_date: date,
    end_date: date,
    punches: Iterable[PunchRecord],
    assignment: ScheduleAssignment,
) -> ReconcileResult:
    """Merge the expected schedule with recorded punches, one LedgerDay per date.

    A punch whose exit lands on the next calendar day also governs that next day:
    when the next day has no punch of its own it surfaces as an overnight
    continuation instead of an editable placeholder. Per-day failures are collected
    in ``errors``; only an inverted range fails the whole call.
    """
    dates = list(iter_dates(start_date, end_date))
    lookback_start = start_date - _ONE_DAY

    punches_by_day, errors = _index_punches(
        employee_id,
        punches,
        first_day=lookback_start,
        last_day=end_date,
    )
    occupied, malformed = _overnight_occupied_dates(
        punches_by_day,
        lookback_start=lookback_start,
        end_date=end_date,
    )

    result = ReconcileResult(errors=[item for item in errors if item.day_date >= start_date])
    for day_date in dates:
        try:
            expected = resolve(assignment, day_date)
        except UndefinedSchedule as exc:
            result.errors.append(DayError.from_exception(day_date, exc))
            continue

        is_occupied = day_date in occupied
        punch = punches_by_day.get(day_date)
        if punch is not None:
            day_error = malformed.get(day_date)
            if day_error is not None:
                result.errors.append(day_error)
            actual = Recorded(punch=punch)
        elif is_occupied:
            day_error = None
            actual = OvernightContinuation(source_date=occupied[day_date])
        else:
            day_error = None
            actual = Placeholder()

        result.days.append(
            LedgerDay(
                day_date=day_date,
                expected=expected,
                actual=actual,
                occupied_by_overnight_predecessor=is_occupied,
                error=day_error,
            )
        )
    result.errors.sort(key=lambda item: item.day_date)
    return result


def assignment_for_day(
    assignments: Sequence[ScheduleAssignment],
    day_date: date,
) -> ScheduleAssignment | None:
    applicable = [item for item in assignments if item.effective_from <= day_date]
    if not applicable:
        return None
    return max(applicable, key=lambda item: (item.effective_from, item.assignment_id or 0))


def reconcile_with_history(
    employee_id: int,
    start_date: date,
    end_date: date,
    punches: Iterable[PunchRecord],
    assignments: Sequence[ScheduleAssignment],
) -> ReconcileResult:
    """Reconcile a range that may span one or more reassignments.

    Each date is resolved against the assignment in force on it, so earlier days keep
    the schedule they had before a reassignment.
    """
    punch_list = list(punches)
    result = ReconcileResult()
    segment_start: date | None = None
    segment_assignment: ScheduleAssignment | None = None

    def _flush(segment_end: date) -> None:
        if segment_start is None:
            return
        if segment_assignment is None:
            for day_date in iter_dates(segment_start, segment_end):
                result.errors.append(
                    DayError(
                        day_date=day_date,
                        code=UndefinedSchedule.code,
                        message="no schedule assignment in force on this date",
                    )
                )
            return
        result.extend(reconcile(employee_id, segment_start, segment_end, punch_list, segment_assignment))

    for day_date in iter_dates(start_date, end_date):
        current = assignment_for_day(assignments, day_date)
        if segment_start is not None and current is segment_assignment:
            continue
        if segment_start is not None:
            _flush(day_date - _ONE_DAY)
        segment_start = day_date
        segment_assignment = current
    _flush(end_date)
    result.errors.sort(key=lambda item: item.day_date)
    return result


def editable_days(days: Iterable[LedgerDay]) -> list[LedgerDay]:
    return [day for day in days if day.is_editable]
