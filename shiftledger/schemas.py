from datetime import date, datetime, time
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from shiftledger.models import LeaveStatus, LeaveType

_CLOCK_PATTERN = r"^\d{2}:\d{2}(:\d{2})?$"


class ShiftSlotRead(BaseModel):
    status: Literal["work", "rest"]
    hours: float


class ShiftPatternRead(BaseModel):
    pattern_id: str
    label: str
    cycle: list[ShiftSlotRead]
    cycle_length: int
    aligned_to_weekday: bool
    nominal_weekly_hours: float


class EmployeeCreate(BaseModel):
    full_name: str = Field(min_length=1, max_length=255)
    role_title: str | None = Field(default=None, max_length=255)
    records_punches: bool = True
    is_active: bool = True


class EmployeeRead(BaseModel):
    id: int
    full_name: str
    role_title: str | None = None
    records_punches: bool
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class ShiftAssignmentCreateRequest(BaseModel):
    pattern_id: str = Field(min_length=1, max_length=64)
    entry_time: time
    break_start: time | None = None
    break_end: time | None = None
    exit_time: time
    effective_from: date
    note: str | None = Field(default=None, max_length=1000)

    @model_validator(mode="after")
    def _validate_break(self) -> "ShiftAssignmentCreateRequest":
        if (self.break_start is None) != (self.break_end is None):
            raise ValueError("break_start and break_end must be provided together")
        return self


class ShiftAssignmentRead(BaseModel):
    id: int
    employee_id: int
    pattern_id: str
    entry_time: time
    break_start: time | None
    break_end: time | None
    exit_time: time
    effective_from: date
    note: str | None
    created_by: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ExpectedDayRead(BaseModel):
    date: date
    must_work: bool
    expected_entry: time | None
    expected_break_start: time | None
    expected_break_end: time | None
    expected_exit: time | None
    expected_minutes: int
    pattern_id: str
    cycle_index: int


class DayErrorRead(BaseModel):
    date: date
    code: str
    message: str


class EmployeeScheduleResponse(BaseModel):
    employee_id: int
    start_date: date
    end_date: date
    days: list[ExpectedDayRead]
    errors: list[DayErrorRead] = Field(default_factory=list)


class PunchUpsertRequest(BaseModel):
    entry: str | None = Field(default=None, pattern=_CLOCK_PATTERN)
    break_start: str | None = Field(default=None, pattern=_CLOCK_PATTERN)
    break_end: str | None = Field(default=None, pattern=_CLOCK_PATTERN)
    exit: str | None = Field(default=None, pattern=_CLOCK_PATTERN)
    exit_date: date | None = None
    notes: str | None = Field(default=None, max_length=1000)
    justification: str | None = Field(default=None, max_length=1000)


class PunchRead(BaseModel):
    id: int
    employee_id: int
    day_date: date
    entry: time | None
    break_start: time | None
    break_end: time | None
    exit: time | None
    exit_date: date | None
    notes: str | None
    justification: str | None
    updated_by: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LeaveCreateRequest(BaseModel):
    employee_id: int
    start_date: date
    end_date: date
    type: LeaveType
    is_paid: bool | None = None
    status: LeaveStatus = LeaveStatus.APPROVED
    note: str | None = None


class LeaveRead(BaseModel):
    id: int
    employee_id: int
    start_date: date
    end_date: date
    type: LeaveType
    is_paid: bool
    status: LeaveStatus
    note: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CompanyParametersUpsertRequest(BaseModel):
    night_start: time = time(22, 0)
    night_end: time = time(5, 0)
    min_break_minutes: int = Field(default=60, ge=0, le=240)
    diurnal_overtime_rate: float = Field(default=1.5, ge=1, le=5)
    nocturnal_overtime_rate: float = Field(default=1.7, ge=1, le=5)
    night_differential_rate: float = Field(default=0.2, ge=0, le=1)

    @model_validator(mode="after")
    def _validate_window(self) -> "CompanyParametersUpsertRequest":
        if self.night_start == self.night_end:
            raise ValueError("night_start and night_end must differ")
        return self


class CompanyParametersRead(BaseModel):
    id: int
    name: str
    night_start: time
    night_end: time
    min_break_minutes: int
    diurnal_overtime_rate: float
    nocturnal_overtime_rate: float
    night_differential_rate: float
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TimesheetActualRead(BaseModel):
    kind: Literal["RECORDED", "PLACEHOLDER", "CONTINUATION"]
    punch_id: int | None = None
    entry: str | None = None
    break_start: str | None = None
    break_end: str | None = None
    exit: str | None = None
    exit_date: date | None = None
    notes: str | None = None
    source_date: date | None = None


class DayHoursRead(BaseModel):
    status: Literal["WORKED", "REST", "ABSENT", "PAID_LEAVE", "UNPAID_LEAVE", "INCOMPLETE", "CONTINUATION"]
    worked_minutes: int
    night_minutes: int
    overtime_diurnal_minutes: int
    overtime_nocturnal_minutes: int
    overtime_minutes: int
    expected_minutes: int
    flags: list[str] = Field(default_factory=list)


class TimesheetDay(BaseModel):
    date: date
    expected: ExpectedDayRead
    actual: TimesheetActualRead
    occupied_by_overnight_predecessor: bool
    editable: bool
    hours: DayHoursRead | None = None
    error: DayErrorRead | None = None


class PeriodTotalsRead(BaseModel):
    start_date: date | None
    end_date: date | None
    worked_minutes: int
    expected_minutes: int
    night_minutes: int
    overtime_diurnal_minutes: int
    overtime_nocturnal_minutes: int
    overtime_minutes: int
    weighted_overtime_minutes: int
    night_differential_minutes: int
    absences: int
    paid_leave_days: int
    unpaid_leave_days: int
    days_worked: int
    incomplete_days: int


class EmployeeTimesheetResponse(BaseModel):
    employee_id: int
    start_date: date
    end_date: date
    days: list[TimesheetDay]
    totals: PeriodTotalsRead
    errors: list[DayErrorRead] = Field(default_factory=list)


class MonthlyEmployeeResponse(EmployeeTimesheetResponse):
    year: int
    month: int


class CompanyMonthlySummaryItem(BaseModel):
    employee_id: int
    full_name: str
    totals: PeriodTotalsRead
    error_count: int


class CompanyMonthlySummaryResponse(BaseModel):
    year: int
    month: int
    employees: list[CompanyMonthlySummaryItem]
