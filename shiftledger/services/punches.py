from __future__ import annotations

from datetime import date, timedelta

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from shiftledger.models import Punch
from shiftledger.schemas import PunchUpsertRequest
from shiftledger.services.employees import ensure_employee_exists
from shiftledger.services.hours_calc import parse_clock, validate_punch
from shiftledger.services.ledger import PunchRecord


def to_punch_record(row: Punch) -> PunchRecord:
    return PunchRecord(
        employee_id=row.employee_id,
        day_date=row.day_date,
        entry=row.entry,
        break_start=row.break_start,
        break_end=row.break_end,
        exit=row.exit,
        notes=row.notes,
        exit_date=row.exit_date,
        punch_id=row.id,
    )


def list_punch_rows(
    db: Session,
    *,
    employee_id: int,
    start_date: date,
    end_date: date,
) -> list[Punch]:
    return list(
        db.scalars(
            select(Punch)
            .where(
                Punch.employee_id == employee_id,
                Punch.day_date >= start_date,
                Punch.day_date <= end_date,
            )
            .order_by(Punch.day_date.asc(), Punch.id.asc())
        ).all()
    )


def fetch_punches(
    db: Session,
    *,
    employee_id: int,
    start_date: date,
    end_date: date,
) -> list[PunchRecord]:
    """Punches for [start_date - 1, end_date]; the extra day feeds overnight detection."""
    rows = list_punch_rows(
        db,
        employee_id=employee_id,
        start_date=start_date - timedelta(days=1),
        end_date=end_date,
    )
    return [to_punch_record(row) for row in rows]


def upsert_punch(
    db: Session,
    *,
    employee_id: int,
    day_date: date,
    payload: PunchUpsertRequest,
    updated_by: str,
) -> Punch:
    ensure_employee_exists(db, employee_id)

    record = PunchRecord(
        employee_id=employee_id,
        day_date=day_date,
        entry=payload.entry,
        break_start=payload.break_start,
        break_end=payload.break_end,
        exit=payload.exit,
        notes=payload.notes,
        exit_date=payload.exit_date,
    )
    validate_punch(record)

    values = {
        "entry": parse_clock(payload.entry, field_name="entry", day_date=day_date),
        "break_start": parse_clock(payload.break_start, field_name="break_start", day_date=day_date),
        "break_end": parse_clock(payload.break_end, field_name="break_end", day_date=day_date),
        "exit": parse_clock(payload.exit, field_name="exit", day_date=day_date),
        "exit_date": payload.exit_date,
        "notes": payload.notes,
        "justification": payload.justification,
        "updated_by": updated_by,
    }

    row = db.scalar(
        select(Punch).where(
            Punch.employee_id == employee_id,
            Punch.day_date == day_date,
        )
    )
    if row is None:
        row = Punch(employee_id=employee_id, day_date=day_date, **values)
        db.add(row)
    else:
        for key, value in values.items():
            setattr(row, key, value)

    db.commit()
    db.refresh(row)
    return row


def delete_punch(db: Session, *, employee_id: int, punch_id: int) -> date:
    row = db.get(Punch, punch_id)
    if row is None or row.employee_id != employee_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Punch not found")
    day_date = row.day_date
    db.delete(row)
    db.commit()
    return day_date
