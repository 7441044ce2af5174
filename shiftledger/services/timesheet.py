from __future__ import annotations

import logging
from calendar import monthrange
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date, time

from sqlalchemy import select
from sqlalchemy.orm import Session

from shiftledger.errors import DayError, InvalidRange
from shiftledger.models import Employee
from shiftledger.schemas import (
    CompanyMonthlySummaryItem,
    CompanyMonthlySummaryResponse,
    DayErrorRead,
    DayHoursRead,
    EmployeeScheduleResponse,
    EmployeeTimesheetResponse,
    ExpectedDayRead,
    MonthlyEmployeeResponse,
    PeriodTotalsRead,
    TimesheetActualRead,
    TimesheetDay,
)
from shiftledger.services.assignments import list_assignments_for_range
from shiftledger.services.company_params import load_engine_config
from shiftledger.services.employees import ensure_employee_exists
from shiftledger.services.engine_config import EngineConfig
from shiftledger.services.hours_calc import DayHours
from shiftledger.services.leaves import fetch_leave_days
from shiftledger.services.ledger import (
    ClockValue,
    ExpectedDay,
    LeaveDay,
    LedgerDay,
    OvernightContinuation,
    PunchRecord,
    Recorded,
    ScheduleAssignment,
)
from shiftledger.services.period_totals import PeriodTotals, aggregate_period, compute_period_hours
from shiftledger.services.punches import fetch_punches
from shiftledger.services.reconciler import reconcile_with_history
from shiftledger.services.shift_patterns import ShiftPatternCatalog
from shiftledger.settings import get_settings

logger = logging.getLogger("shiftledger.timesheet")


@dataclass(frozen=True)
class EmployeePeriodInputs:
    employee_id: int
    start_date: date
    end_date: date
    assignments: list[ScheduleAssignment]
    punches: list[PunchRecord]
    leave_days: list[LeaveDay]


@dataclass(frozen=True)
class EmployeePeriodResult:
    employee_id: int
    start_date: date
    end_date: date
    days: list[LedgerDay]
    hours: dict[date, DayHours]
    totals: PeriodTotals
    errors: list[DayError]


def month_bounds(year: int, month: int) -> tuple[date, date]:
    days_in_month = monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, days_in_month)


def _check_range(start_date: date, end_date: date) -> None:
    if end_date < start_date:
        raise InvalidRange(f"end_date {end_date.isoformat()} is before start_date {start_date.isoformat()}")


def _merge_errors(*groups: Iterable[DayError]) -> list[DayError]:
    seen: set[DayError] = set()
    merged: list[DayError] = []
    for group in groups:
        for item in group:
            if item in seen:
                continue
            seen.add(item)
            merged.append(item)
    merged.sort(key=lambda item: item.day_date)
    return merged


def load_employee_inputs(
    db: Session,
    *,
    employee_id: int,
    start_date: date,
    end_date: date,
    catalog: ShiftPatternCatalog,
) -> EmployeePeriodInputs:
    return EmployeePeriodInputs(
        employee_id=employee_id,
        start_date=start_date,
        end_date=end_date,
        assignments=list_assignments_for_range(
            db,
            employee_id=employee_id,
            end_date=end_date,
            catalog=catalog,
        ),
        punches=fetch_punches(db, employee_id=employee_id, start_date=start_date, end_date=end_date),
        leave_days=fetch_leave_days(db, employee_id=employee_id, start_date=start_date, end_date=end_date),
    )


def compute_employee_period(inputs: EmployeePeriodInputs, config: EngineConfig) -> EmployeePeriodResult:
    """Reconcile, compute and aggregate one employee's range. Touches no session."""
    reconciled = reconcile_with_history(
        inputs.employee_id,
        inputs.start_date,
        inputs.end_date,
        inputs.punches,
        inputs.assignments,
    )
    hours, hours_errors = compute_period_hours(reconciled.days, config, inputs.leave_days)
    totals = aggregate_period(reconciled.days, hours, config)
    return EmployeePeriodResult(
        employee_id=inputs.employee_id,
        start_date=inputs.start_date,
        end_date=inputs.end_date,
        days=reconciled.days,
        hours={item.day_date: item for item in hours},
        totals=totals,
        errors=_merge_errors(reconciled.errors, hours_errors),
    )


def _clock_text(value: ClockValue) -> str | None:
    if value is None:
        return None
    if isinstance(value, time):
        return value.strftime("%H:%M")
    return value.strip() or None


def _expected_read(expected: ExpectedDay) -> ExpectedDayRead:
    return ExpectedDayRead(
        date=expected.day_date,
        must_work=expected.must_work,
        expected_entry=expected.expected_entry,
        expected_break_start=expected.expected_break_start,
        expected_break_end=expected.expected_break_end,
        expected_exit=expected.expected_exit,
        expected_minutes=expected.expected_minutes,
        pattern_id=expected.pattern_id,
        cycle_index=expected.cycle_index,
    )


def _actual_read(ledger_day: LedgerDay) -> TimesheetActualRead:
    actual = ledger_day.actual
    if isinstance(actual, Recorded):
        punch = actual.punch
        return TimesheetActualRead(
            kind="RECORDED",
            punch_id=punch.punch_id,
            entry=_clock_text(punch.entry),
            break_start=_clock_text(punch.break_start),
            break_end=_clock_text(punch.break_end),
            exit=_clock_text(punch.exit),
            exit_date=punch.exit_date,
            notes=punch.notes,
        )
    if isinstance(actual, OvernightContinuation):
        return TimesheetActualRead(kind="CONTINUATION", source_date=actual.source_date)
    return TimesheetActualRead(kind="PLACEHOLDER")


def _hours_read(item: DayHours) -> DayHoursRead:
    return DayHoursRead(
        status=item.status.value,
        worked_minutes=item.worked_minutes,
        night_minutes=item.night_minutes,
        overtime_diurnal_minutes=item.overtime_diurnal_minutes,
        overtime_nocturnal_minutes=item.overtime_nocturnal_minutes,
        overtime_minutes=item.overtime_minutes,
        expected_minutes=item.expected_minutes,
        flags=list(item.flags),
    )


def _error_read(item: DayError) -> DayErrorRead:
    return DayErrorRead(date=item.day_date, code=item.code, message=item.message)


def totals_read(totals: PeriodTotals) -> PeriodTotalsRead:
    return PeriodTotalsRead(
        start_date=totals.start_date,
        end_date=totals.end_date,
        worked_minutes=totals.worked_minutes,
        expected_minutes=totals.expected_minutes,
        night_minutes=totals.night_minutes,
        overtime_diurnal_minutes=totals.overtime_diurnal_minutes,
        overtime_nocturnal_minutes=totals.overtime_nocturnal_minutes,
        overtime_minutes=totals.overtime_minutes,
        weighted_overtime_minutes=totals.weighted_overtime_minutes,
        night_differential_minutes=totals.night_differential_minutes,
        absences=totals.absences,
        paid_leave_days=totals.paid_leave_days,
        unpaid_leave_days=totals.unpaid_leave_days,
        days_worked=totals.days_worked,
        incomplete_days=totals.incomplete_days,
    )


def _timesheet_days(result: EmployeePeriodResult) -> list[TimesheetDay]:
    first_error: dict[date, DayError] = {}
    for item in result.errors:
        first_error.setdefault(item.day_date, item)

    days: list[TimesheetDay] = []
    for ledger_day in result.days:
        hours = result.hours.get(ledger_day.day_date)
        error = ledger_day.error or first_error.get(ledger_day.day_date)
        days.append(
            TimesheetDay(
                date=ledger_day.day_date,
                expected=_expected_read(ledger_day.expected),
                actual=_actual_read(ledger_day),
                occupied_by_overnight_predecessor=ledger_day.occupied_by_overnight_predecessor,
                editable=ledger_day.is_editable,
                hours=_hours_read(hours) if hours is not None else None,
                error=_error_read(error) if error is not None else None,
            )
        )
    return days


def _log_result(event: str, result: EmployeePeriodResult) -> None:
    logger.info(
        event,
        extra={
            "employee_id": result.employee_id,
            "start_date": result.start_date,
            "end_date": result.end_date,
            "day_count": len(result.days),
            "error_count": len(result.errors),
            "worked_minutes": result.totals.worked_minutes,
        },
    )
    if result.errors:
        logger.warning(
            "timesheet_day_errors",
            extra={
                "employee_id": result.employee_id,
                "error_codes": sorted({item.code for item in result.errors}),
                "error_count": len(result.errors),
            },
        )


def _employee_period(
    db: Session,
    *,
    employee_id: int,
    start_date: date,
    end_date: date,
    catalog: ShiftPatternCatalog,
) -> EmployeePeriodResult:
    _check_range(start_date, end_date)
    ensure_employee_exists(db, employee_id)
    inputs = load_employee_inputs(
        db,
        employee_id=employee_id,
        start_date=start_date,
        end_date=end_date,
        catalog=catalog,
    )
    result = compute_employee_period(inputs, load_engine_config(db))
    _log_result("timesheet_built", result)
    return result


def build_employee_timesheet(
    db: Session,
    *,
    employee_id: int,
    start_date: date,
    end_date: date,
    catalog: ShiftPatternCatalog,
) -> EmployeeTimesheetResponse:
    result = _employee_period(
        db,
        employee_id=employee_id,
        start_date=start_date,
        end_date=end_date,
        catalog=catalog,
    )
    return EmployeeTimesheetResponse(
        employee_id=employee_id,
        start_date=start_date,
        end_date=end_date,
        days=_timesheet_days(result),
        totals=totals_read(result.totals),
        errors=[_error_read(item) for item in result.errors],
    )


def calculate_employee_monthly(
    db: Session,
    *,
    employee_id: int,
    year: int,
    month: int,
    catalog: ShiftPatternCatalog,
) -> MonthlyEmployeeResponse:
    start_date, end_date = month_bounds(year, month)
    result = _employee_period(
        db,
        employee_id=employee_id,
        start_date=start_date,
        end_date=end_date,
        catalog=catalog,
    )
    return MonthlyEmployeeResponse(
        employee_id=employee_id,
        year=year,
        month=month,
        start_date=start_date,
        end_date=end_date,
        days=_timesheet_days(result),
        totals=totals_read(result.totals),
        errors=[_error_read(item) for item in result.errors],
    )


def build_employee_schedule(
    db: Session,
    *,
    employee_id: int,
    start_date: date,
    end_date: date,
    catalog: ShiftPatternCatalog,
) -> EmployeeScheduleResponse:
    _check_range(start_date, end_date)
    ensure_employee_exists(db, employee_id)
    assignments = list_assignments_for_range(db, employee_id=employee_id, end_date=end_date, catalog=catalog)
    reconciled = reconcile_with_history(employee_id, start_date, end_date, [], assignments)
    return EmployeeScheduleResponse(
        employee_id=employee_id,
        start_date=start_date,
        end_date=end_date,
        days=[_expected_read(day.expected) for day in reconciled.days],
        errors=[_error_read(item) for item in reconciled.errors],
    )


def calculate_company_monthly_summary(
    db: Session,
    *,
    year: int,
    month: int,
    catalog: ShiftPatternCatalog,
    include_inactive: bool = False,
) -> CompanyMonthlySummaryResponse:
    start_date, end_date = month_bounds(year, month)
    employee_stmt = select(Employee).order_by(Employee.id.asc())
    if not include_inactive:
        employee_stmt = employee_stmt.where(Employee.is_active.is_(True))
    employees = list(db.scalars(employee_stmt).all())

    config = load_engine_config(db)
    # The session is not thread safe: fetch on this thread, compute in the pool.
    inputs = [
        load_employee_inputs(
            db,
            employee_id=employee.id,
            start_date=start_date,
            end_date=end_date,
            catalog=catalog,
        )
        for employee in employees
    ]
    max_workers = max(1, get_settings().report_max_workers)
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        results = list(pool.map(lambda item: compute_employee_period(item, config), inputs))

    summary: list[CompanyMonthlySummaryItem] = []
    for employee, result in zip(employees, results):
        summary.append(
            CompanyMonthlySummaryItem(
                employee_id=employee.id,
                full_name=employee.full_name,
                totals=totals_read(result.totals),
                error_count=len(result.errors),
            )
        )

    logger.info(
        "company_summary_built",
        extra={
            "year": year,
            "month": month,
            "employee_count": len(summary),
            "error_count": sum(item.error_count for item in summary),
        },
    )
    return CompanyMonthlySummaryResponse(year=year, month=month, employees=summary)
