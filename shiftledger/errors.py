from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class TimesheetError(Exception):
    code = "TIMESHEET_ERROR"
    status_code = 422

    def __init__(self, message: str, *, day_date: date | None = None):
        super().__init__(message)
        self.message = message
        self.day_date = day_date


class InvalidRange(TimesheetError):
    code = "INVALID_RANGE"


class UndefinedSchedule(TimesheetError):
    code = "UNDEFINED_SCHEDULE"


class MalformedPunch(TimesheetError):
    code = "MALFORMED_PUNCH"


class ConfigurationError(TimesheetError):
    code = "CONFIGURATION_ERROR"


class PatternNotFound(TimesheetError):
    code = "PATTERN_NOT_FOUND"
    status_code = 404


@dataclass(frozen=True)
class DayError:
    """A failure scoped to one calendar day of a range-oriented request."""

    day_date: date
    code: str
    message: str

    @classmethod
    def from_exception(cls, day_date: date, exc: TimesheetError) -> DayError:
        return cls(day_date=day_date, code=exc.code, message=exc.message)

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.day_date.isoformat(), "code": self.code, "message": self.message}


def get_request_id(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        return str(request_id)
    return "unknown"


def error_response(request: Request, *, status_code: int, code: str, message: str) -> JSONResponse:
    payload = {
        "error": {
            "code": code,
            "message": message,
            "request_id": get_request_id(request),
        }
    }
    return JSONResponse(status_code=status_code, content=payload)
