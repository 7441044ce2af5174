from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.engine.reflection import Inspector


@dataclass(frozen=True, slots=True)
class SchemaGuardResult:
    ok: bool
    checked_at_utc: datetime
    issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "checked_at_utc": self.checked_at_utc.isoformat(),
            "issues": list(self.issues),
            "warnings": list(self.warnings),
            "issue_count": len(self.issues),
            "warning_count": len(self.warnings),
        }


REQUIRED_TABLE_COLUMNS: dict[str, set[str]] = {
    "employees": {"id", "full_name", "is_active"},
    "shift_assignments": {"id", "employee_id", "pattern_id", "entry_time", "exit_time", "effective_from"},
    "punches": {"id", "employee_id", "day_date", "entry", "break_start", "break_end", "exit", "exit_date"},
    "leaves": {"id", "employee_id", "start_date", "end_date", "is_paid", "status"},
    "company_parameters": {"id", "night_start", "night_end", "min_break_minutes"},
    "alembic_version": {"version_num"},
}

# One punch per employee-day and one assignment per effective date; the ledger
# assumes both.
REQUIRED_UNIQUE_KEYS: dict[str, tuple[str, ...]] = {
    "punches": ("employee_id", "day_date"),
    "shift_assignments": ("employee_id", "effective_from"),
}

REQUIRED_ENUM_VALUES: dict[str, set[str]] = {
    "leave_status": {"APPROVED", "PENDING", "REJECTED"},
    "leave_type": {"VACATION", "SICK", "UNPAID"},
}


def _check_columns(inspector: Inspector, issues: list[str]) -> set[str]:
    readable: set[str] = set()
    for table_name, required_columns in REQUIRED_TABLE_COLUMNS.items():
        try:
            column_names = {str(item.get("name")) for item in inspector.get_columns(table_name)}
        except Exception as exc:  # pragma: no cover
            issues.append(f"TABLE_UNREADABLE:{table_name}:{exc.__class__.__name__}")
            continue
        readable.add(table_name)
        missing_columns = sorted(required_columns - column_names)
        if missing_columns:
            issues.append(f"MISSING_COLUMNS:{table_name}:{','.join(missing_columns)}")
    return readable


def _check_unique_keys(inspector: Inspector, readable: set[str], issues: list[str], warnings: list[str]) -> None:
    for table_name, columns in REQUIRED_UNIQUE_KEYS.items():
        if table_name not in readable:
            continue
        try:
            constraints = inspector.get_unique_constraints(table_name)
        except Exception as exc:  # pragma: no cover
            warnings.append(f"UNIQUE_INSPECTION_FAILED:{table_name}:{exc.__class__.__name__}")
            continue
        keys = {tuple(item.get("column_names") or ()) for item in constraints}
        if columns not in keys:
            issues.append(f"MISSING_UNIQUE:{table_name}:{','.join(columns)}")


def _check_enums(inspector: Inspector, issues: list[str], warnings: list[str]) -> None:
    try:
        enums = inspector.get_enums() or []
    except Exception as exc:  # pragma: no cover
        warnings.append(f"ENUM_INSPECTION_FAILED:{exc.__class__.__name__}")
        return

    labels_by_name = {
        str(item.get("name")): {str(label) for label in item.get("labels") or []}
        for item in enums
        if item.get("name")
    }
    for enum_name, required_values in REQUIRED_ENUM_VALUES.items():
        if enum_name not in labels_by_name:
            warnings.append(f"ENUM_NOT_FOUND:{enum_name}")
            continue
        missing_values = sorted(required_values - labels_by_name[enum_name])
        if missing_values:
            issues.append(f"MISSING_ENUM_VALUES:{enum_name}:{','.join(missing_values)}")


def _check_alembic_version(engine: Engine, issues: list[str]) -> None:
    try:
        with engine.connect() as connection:
            row = connection.execute(text("SELECT version_num FROM alembic_version LIMIT 1")).scalar()
    except Exception as exc:  # pragma: no cover
        issues.append(f"ALEMBIC_VERSION_CHECK_FAILED:{exc.__class__.__name__}")
        return
    if row is None or not str(row).strip():
        issues.append("ALEMBIC_VERSION_EMPTY")


def verify_runtime_schema(engine: Engine) -> SchemaGuardResult:
    """Check that the live database matches what the ledger services read and write."""
    issues: list[str] = []
    warnings: list[str] = []
    checked_at_utc = datetime.now(timezone.utc)
    inspector = inspect(engine)

    readable = _check_columns(inspector, issues)
    _check_unique_keys(inspector, readable, issues, warnings)
    _check_enums(inspector, issues, warnings)
    _check_alembic_version(engine, issues)

    return SchemaGuardResult(
        ok=not issues,
        checked_at_utc=checked_at_utc,
        issues=issues,
        warnings=warnings,
    )
