from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date

from shiftledger.errors import DayError, TimesheetError
from shiftledger.services.engine_config import EngineConfig
from shiftledger.services.hours_calc import DayHours, DayStatus, compute_day_hours
from shiftledger.services.ledger import LeaveDay, LedgerDay


@dataclass(frozen=True)
class PeriodTotals:
    start_date: date | None
    end_date: date | None
    worked_minutes: int = 0
    expected_minutes: int = 0
    night_minutes: int = 0
    overtime_diurnal_minutes: int = 0
    overtime_nocturnal_minutes: int = 0
    weighted_overtime_minutes: int = 0
    night_differential_minutes: int = 0
    absences: int = 0
    paid_leave_days: int = 0
    unpaid_leave_days: int = 0
    days_worked: int = 0
    incomplete_days: int = 0
    errors: tuple[DayError, ...] = field(default_factory=tuple)

    @property
    def overtime_minutes(self) -> int:
        return self.overtime_diurnal_minutes + self.overtime_nocturnal_minutes


def leave_days_by_date(leave_days: Iterable[LeaveDay]) -> dict[date, LeaveDay]:
    by_day: dict[date, LeaveDay] = {}
    for item in leave_days:
        # First entry wins; storage orders leaves by start date.
        by_day.setdefault(item.day_date, item)
    return by_day


def compute_period_hours(
    ledger_days: Sequence[LedgerDay],
    config: EngineConfig,
    leave_days: Iterable[LeaveDay] = (),
) -> tuple[list[DayHours], list[DayError]]:
    leaves = leave_days_by_date(leave_days)
    hours: list[DayHours] = []
    errors: list[DayError] = []
    for ledger_day in ledger_days:
        try:
            hours.append(compute_day_hours(ledger_day, config, leave=leaves.get(ledger_day.day_date)))
        except TimesheetError as exc:
            errors.append(ledger_day.error or DayError.from_exception(ledger_day.day_date, exc))
    return hours, errors


def aggregate_period(
    ledger_days: Sequence[LedgerDay],
    day_hours: Iterable[DayHours],
    config: EngineConfig | None = None,
) -> PeriodTotals:
    """Sum per-day hours over whatever range the ledger covers.

    Ledger days without computed hours are reported in ``errors`` and skipped, so a
    single bad day never blocks the rest of the period.
    """
    hours_by_day = {item.day_date: item for item in day_hours}
    worked = expected = night = overtime_diurnal = overtime_nocturnal = 0
    absences = paid_leave = unpaid_leave = days_worked = incomplete = 0
    errors: list[DayError] = []

    for ledger_day in ledger_days:
        item = hours_by_day.get(ledger_day.day_date)
        if item is None:
            errors.append(
                ledger_day.error
                or DayError(
                    day_date=ledger_day.day_date,
                    code="MISSING_HOURS",
                    message="no hours were computed for this date",
                )
            )
            continue

        worked += item.worked_minutes
        expected += item.expected_minutes
        night += item.night_minutes
        overtime_diurnal += item.overtime_diurnal_minutes
        overtime_nocturnal += item.overtime_nocturnal_minutes
        if item.status == DayStatus.ABSENT:
            absences += 1
        elif item.status == DayStatus.PAID_LEAVE:
            paid_leave += 1
        elif item.status == DayStatus.UNPAID_LEAVE:
            unpaid_leave += 1
        if item.is_incomplete:
            incomplete += 1
        if item.worked_minutes > 0:
            days_worked += 1

    weighted = night_differential = 0
    if config is not None:
        weighted = int(
            round(
                overtime_diurnal * config.diurnal_overtime_rate
                + overtime_nocturnal * config.nocturnal_overtime_rate
            )
        )
        night_differential = int(round(night * config.night_differential_rate))

    return PeriodTotals(
        start_date=ledger_days[0].day_date if ledger_days else None,
        end_date=ledger_days[-1].day_date if ledger_days else None,
        worked_minutes=worked,
        expected_minutes=expected,
        night_minutes=night,
        overtime_diurnal_minutes=overtime_diurnal,
        overtime_nocturnal_minutes=overtime_nocturnal,
        weighted_overtime_minutes=weighted,
        night_differential_minutes=night_differential,
        absences=absences,
        paid_leave_days=paid_leave,
        unpaid_leave_days=unpaid_leave,
        days_worked=days_worked,
        incomplete_days=incomplete,
        errors=tuple(errors),
    )
