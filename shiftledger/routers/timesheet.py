from __future__ import annotations

from datetime import date
from functools import lru_cache

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from shiftledger.audit import log_admin_change
from shiftledger.db import get_db
from shiftledger.schemas import (
    CompanyMonthlySummaryResponse,
    CompanyParametersRead,
    CompanyParametersUpsertRequest,
    EmployeeCreate,
    EmployeeRead,
    EmployeeScheduleResponse,
    EmployeeTimesheetResponse,
    LeaveCreateRequest,
    LeaveRead,
    MonthlyEmployeeResponse,
    PunchRead,
    PunchUpsertRequest,
    ShiftAssignmentCreateRequest,
    ShiftAssignmentRead,
    ShiftPatternRead,
    ShiftSlotRead,
)
from shiftledger.services.assignments import create_assignment, list_assignment_rows
from shiftledger.services.company_params import get_or_create_company_parameters, upsert_company_parameters
from shiftledger.services.employees import create_employee, ensure_employee_exists, list_employees
from shiftledger.services.leaves import create_leave, delete_leave, list_leaves
from shiftledger.services.punches import delete_punch, list_punch_rows, upsert_punch
from shiftledger.services.shift_patterns import ShiftPattern, ShiftPatternCatalog, default_catalog
from shiftledger.services.timesheet import (
    build_employee_schedule,
    build_employee_timesheet,
    calculate_company_monthly_summary,
    calculate_employee_monthly,
)

router = APIRouter(tags=["timesheet"])


@lru_cache
def get_pattern_catalog() -> ShiftPatternCatalog:
    return default_catalog()


def _actor(request: Request) -> str:
    return request.headers.get("x-actor-id", "admin")


def _pattern_read(pattern: ShiftPattern) -> ShiftPatternRead:
    return ShiftPatternRead(
        pattern_id=pattern.pattern_id,
        label=pattern.label,
        cycle=[ShiftSlotRead(status=slot.status.value, hours=slot.hours) for slot in pattern.cycle],
        cycle_length=pattern.cycle_length,
        aligned_to_weekday=pattern.aligned_to_weekday,
        nominal_weekly_hours=pattern.nominal_weekly_hours,
    )


@router.get("/api/patterns", response_model=list[ShiftPatternRead])
def list_patterns_endpoint(
    catalog: ShiftPatternCatalog = Depends(get_pattern_catalog),
) -> list[ShiftPatternRead]:
    return [_pattern_read(pattern) for pattern in catalog.patterns()]


@router.get("/api/patterns/{pattern_id}", response_model=ShiftPatternRead)
def get_pattern_endpoint(
    pattern_id: str,
    catalog: ShiftPatternCatalog = Depends(get_pattern_catalog),
) -> ShiftPatternRead:
    return _pattern_read(catalog.lookup(pattern_id))


@router.post("/api/employees", response_model=EmployeeRead, status_code=status.HTTP_201_CREATED)
def create_employee_endpoint(
    payload: EmployeeCreate,
    request: Request,
    db: Session = Depends(get_db),
) -> EmployeeRead:
    employee = create_employee(db, payload)
    log_admin_change(
        db,
        request,
        action="EMPLOYEE_CREATED",
        entity_type="employee",
        entity_id=employee.id,
        details={"full_name": employee.full_name},
    )
    return employee


@router.get("/api/employees", response_model=list[EmployeeRead])
def list_employees_endpoint(
    include_inactive: bool = Query(default=False),
    db: Session = Depends(get_db),
) -> list[EmployeeRead]:
    return list_employees(db, include_inactive=include_inactive)


@router.post(
    "/api/employees/{employee_id}/assignments",
    response_model=ShiftAssignmentRead,
    status_code=status.HTTP_201_CREATED,
)
def create_assignment_endpoint(
    employee_id: int,
    payload: ShiftAssignmentCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
    catalog: ShiftPatternCatalog = Depends(get_pattern_catalog),
) -> ShiftAssignmentRead:
    request.state.employee_id = employee_id
    assignment = create_assignment(
        db,
        employee_id=employee_id,
        payload=payload,
        catalog=catalog,
        created_by=_actor(request),
    )
    log_admin_change(
        db,
        request,
        action="SHIFT_ASSIGNMENT_CREATED",
        entity_type="shift_assignment",
        entity_id=assignment.id,
        details={
            "employee_id": employee_id,
            "pattern_id": assignment.pattern_id,
            "effective_from": assignment.effective_from.isoformat(),
        },
    )
    return assignment


@router.get("/api/employees/{employee_id}/assignments", response_model=list[ShiftAssignmentRead])
def list_assignments_endpoint(
    employee_id: int,
    db: Session = Depends(get_db),
) -> list[ShiftAssignmentRead]:
    ensure_employee_exists(db, employee_id)
    return list_assignment_rows(db, employee_id=employee_id)


@router.get("/api/employees/{employee_id}/schedule", response_model=EmployeeScheduleResponse)
def get_schedule_endpoint(
    employee_id: int,
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: Session = Depends(get_db),
    catalog: ShiftPatternCatalog = Depends(get_pattern_catalog),
) -> EmployeeScheduleResponse:
    return build_employee_schedule(
        db,
        employee_id=employee_id,
        start_date=start_date,
        end_date=end_date,
        catalog=catalog,
    )


@router.get("/api/employees/{employee_id}/punches", response_model=list[PunchRead])
def list_punches_endpoint(
    employee_id: int,
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: Session = Depends(get_db),
) -> list[PunchRead]:
    ensure_employee_exists(db, employee_id)
    return list_punch_rows(db, employee_id=employee_id, start_date=start_date, end_date=end_date)


@router.put("/api/employees/{employee_id}/punches/{day_date}", response_model=PunchRead)
def upsert_punch_endpoint(
    employee_id: int,
    day_date: date,
    payload: PunchUpsertRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> PunchRead:
    request.state.employee_id = employee_id
    punch = upsert_punch(
        db,
        employee_id=employee_id,
        day_date=day_date,
        payload=payload,
        updated_by=_actor(request),
    )
    log_admin_change(
        db,
        request,
        action="PUNCH_UPSERTED",
        entity_type="punch",
        entity_id=punch.id,
        details={"employee_id": employee_id, "day_date": day_date.isoformat()},
    )
    return punch


@router.delete(
    "/api/employees/{employee_id}/punches/{punch_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_punch_endpoint(
    employee_id: int,
    punch_id: int,
    request: Request,
    db: Session = Depends(get_db),
) -> None:
    request.state.employee_id = employee_id
    day_date = delete_punch(db, employee_id=employee_id, punch_id=punch_id)
    log_admin_change(
        db,
        request,
        action="PUNCH_DELETED",
        entity_type="punch",
        entity_id=punch_id,
        details={"employee_id": employee_id, "day_date": day_date.isoformat()},
    )


@router.post("/api/leaves", response_model=LeaveRead, status_code=status.HTTP_201_CREATED)
def create_leave_endpoint(
    payload: LeaveCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> LeaveRead:
    leave = create_leave(db, payload)
    log_admin_change(
        db,
        request,
        action="LEAVE_CREATED",
        entity_type="leave",
        entity_id=leave.id,
        details={"employee_id": leave.employee_id, "type": leave.type.value, "is_paid": leave.is_paid},
    )
    return leave


@router.get("/api/leaves", response_model=list[LeaveRead])
def list_leaves_endpoint(
    employee_id: int | None = Query(default=None, ge=1),
    year: int | None = Query(default=None, ge=1970),
    month: int | None = Query(default=None, ge=1, le=12),
    db: Session = Depends(get_db),
) -> list[LeaveRead]:
    return list_leaves(db, employee_id=employee_id, year=year, month=month)


@router.delete("/api/leaves/{leave_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_leave_endpoint(
    leave_id: int,
    request: Request,
    db: Session = Depends(get_db),
) -> None:
    delete_leave(db, leave_id)
    log_admin_change(
        db,
        request,
        action="LEAVE_DELETED",
        entity_type="leave",
        entity_id=leave_id,
    )


@router.get("/api/company-parameters", response_model=CompanyParametersRead)
def get_company_parameters_endpoint(db: Session = Depends(get_db)) -> CompanyParametersRead:
    return get_or_create_company_parameters(db)


@router.put("/api/company-parameters", response_model=CompanyParametersRead)
def upsert_company_parameters_endpoint(
    payload: CompanyParametersUpsertRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> CompanyParametersRead:
    params = upsert_company_parameters(db, payload)
    log_admin_change(
        db,
        request,
        action="COMPANY_PARAMETERS_UPDATED",
        entity_type="company_parameters",
        entity_id=params.id,
        details=payload.model_dump(mode="json"),
    )
    return params


@router.get("/api/employees/{employee_id}/timesheet", response_model=EmployeeTimesheetResponse)
def get_timesheet_endpoint(
    employee_id: int,
    request: Request,
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: Session = Depends(get_db),
    catalog: ShiftPatternCatalog = Depends(get_pattern_catalog),
) -> EmployeeTimesheetResponse:
    request.state.employee_id = employee_id
    return build_employee_timesheet(
        db,
        employee_id=employee_id,
        start_date=start_date,
        end_date=end_date,
        catalog=catalog,
    )


@router.get("/api/employees/{employee_id}/monthly", response_model=MonthlyEmployeeResponse)
def get_monthly_endpoint(
    employee_id: int,
    request: Request,
    year: int = Query(..., ge=1970),
    month: int = Query(..., ge=1, le=12),
    db: Session = Depends(get_db),
    catalog: ShiftPatternCatalog = Depends(get_pattern_catalog),
) -> MonthlyEmployeeResponse:
    request.state.employee_id = employee_id
    return calculate_employee_monthly(
        db,
        employee_id=employee_id,
        year=year,
        month=month,
        catalog=catalog,
    )


@router.get("/api/monthly/company-summary", response_model=CompanyMonthlySummaryResponse)
def get_company_summary_endpoint(
    year: int = Query(..., ge=1970),
    month: int = Query(..., ge=1, le=12),
    include_inactive: bool = Query(default=False),
    db: Session = Depends(get_db),
    catalog: ShiftPatternCatalog = Depends(get_pattern_catalog),
) -> CompanyMonthlySummaryResponse:
    return calculate_company_monthly_summary(
        db,
        year=year,
        month=month,
        catalog=catalog,
        include_inactive=include_inactive,
    )
