from __future__ import annotations

from datetime import date, timedelta

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from shiftledger.errors import MalformedPunch
from shiftledger.models import ShiftAssignment
from shiftledger.schemas import ShiftAssignmentCreateRequest
from shiftledger.services.employees import ensure_employee_exists
from shiftledger.services.hours_calc import clock_minutes, validate_punch
from shiftledger.services.ledger import PunchRecord, ScheduleAssignment
from shiftledger.services.reconciler import assignment_for_day
from shiftledger.services.shift_patterns import ShiftPatternCatalog


def _validate_anchor(payload: ShiftAssignmentCreateRequest) -> None:
    # Entry equal to exit on the anchor means a full 24h shift.
    next_day = clock_minutes(payload.exit_time) <= clock_minutes(payload.entry_time)
    anchor = PunchRecord(
        employee_id=0,
        day_date=payload.effective_from,
        entry=payload.entry_time,
        break_start=payload.break_start,
        break_end=payload.break_end,
        exit=payload.exit_time,
        exit_date=payload.effective_from + timedelta(days=1) if next_day else None,
    )
    try:
        validate_punch(anchor)
    except MalformedPunch as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid shift anchor: {exc.message}",
        ) from exc


def to_schedule_assignment(row: ShiftAssignment, catalog: ShiftPatternCatalog) -> ScheduleAssignment:
    return ScheduleAssignment(
        employee_id=row.employee_id,
        pattern=catalog.lookup(row.pattern_id),
        entry_time=row.entry_time,
        exit_time=row.exit_time,
        effective_from=row.effective_from,
        break_start=row.break_start,
        break_end=row.break_end,
        assignment_id=row.id,
    )


def create_assignment(
    db: Session,
    *,
    employee_id: int,
    payload: ShiftAssignmentCreateRequest,
    catalog: ShiftPatternCatalog,
    created_by: str,
) -> ShiftAssignment:
    ensure_employee_exists(db, employee_id)
    catalog.lookup(payload.pattern_id)
    _validate_anchor(payload)

    latest_effective_from = db.scalar(
        select(func.max(ShiftAssignment.effective_from)).where(ShiftAssignment.employee_id == employee_id)
    )
    if latest_effective_from is not None and payload.effective_from <= latest_effective_from:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="effective_from must be after the latest assignment; assignments are superseded, not edited",
        )

    assignment = ShiftAssignment(
        employee_id=employee_id,
        pattern_id=payload.pattern_id,
        entry_time=payload.entry_time,
        break_start=payload.break_start,
        break_end=payload.break_end,
        exit_time=payload.exit_time,
        effective_from=payload.effective_from,
        note=payload.note,
        created_by=created_by,
    )
    db.add(assignment)
    db.commit()
    db.refresh(assignment)
    return assignment


def list_assignment_rows(db: Session, *, employee_id: int) -> list[ShiftAssignment]:
    return list(
        db.scalars(
            select(ShiftAssignment)
            .where(ShiftAssignment.employee_id == employee_id)
            .order_by(ShiftAssignment.effective_from.asc(), ShiftAssignment.id.asc())
        ).all()
    )


def list_assignments_for_range(
    db: Session,
    *,
    employee_id: int,
    end_date: date,
    catalog: ShiftPatternCatalog,
) -> list[ScheduleAssignment]:
    """Every assignment that can be in force on or before ``end_date``."""
    rows = db.scalars(
        select(ShiftAssignment)
        .where(
            ShiftAssignment.employee_id == employee_id,
            ShiftAssignment.effective_from <= end_date,
        )
        .order_by(ShiftAssignment.effective_from.asc(), ShiftAssignment.id.asc())
    ).all()
    return [to_schedule_assignment(row, catalog) for row in rows]


def fetch_active_assignment(
    db: Session,
    *,
    employee_id: int,
    as_of: date,
    catalog: ShiftPatternCatalog,
) -> ScheduleAssignment | None:
    assignments = list_assignments_for_range(db, employee_id=employee_id, end_date=as_of, catalog=catalog)
    return assignment_for_day(assignments, as_of)
