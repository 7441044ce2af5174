from __future__ import annotations

import unittest
from unittest.mock import patch

from shiftledger.services.schema_guard import verify_runtime_schema


class _FakeResult:
    def __init__(self, value):
        self._value = value

    def scalar(self):  # type: ignore[no-untyped-def]
        return self._value


class _FakeConnection:
    def __init__(self, version_value):
        self._version_value = version_value

    def __enter__(self):  # type: ignore[no-untyped-def]
        return self

    def __exit__(self, exc_type, exc, tb):  # type: ignore[no-untyped-def]
        return False

    def execute(self, _statement):  # type: ignore[no-untyped-def]
        return _FakeResult(self._version_value)


class _FakeEngine:
    def __init__(self, version_value):
        self._version_value = version_value

    def connect(self):  # type: ignore[no-untyped-def]
        return _FakeConnection(self._version_value)


_FULL_UNIQUE = {
    "punches": [["employee_id", "day_date"]],
    "shift_assignments": [["employee_id", "effective_from"]],
}


class _FakeInspector:
    def __init__(
        self,
        *,
        columns_by_table: dict[str, set[str]],
        enums: list[dict[str, object]],
        unique_by_table: dict[str, list[list[str]]] | None = None,
    ):
        self._columns_by_table = columns_by_table
        self._enums = enums
        self._unique_by_table = _FULL_UNIQUE if unique_by_table is None else unique_by_table

    def get_columns(self, table_name: str):  # type: ignore[no-untyped-def]
        columns = self._columns_by_table[table_name]
        return [{"name": item} for item in columns]

    def get_enums(self):  # type: ignore[no-untyped-def]
        return self._enums

    def get_unique_constraints(self, table_name: str):  # type: ignore[no-untyped-def]
        return [{"name": None, "column_names": columns} for columns in self._unique_by_table.get(table_name, [])]


_FULL_COLUMNS = {
    "employees": {"id", "full_name", "is_active", "records_punches"},
    "shift_assignments": {"id", "employee_id", "pattern_id", "entry_time", "exit_time", "effective_from"},
    "punches": {"id", "employee_id", "day_date", "entry", "break_start", "break_end", "exit", "exit_date"},
    "leaves": {"id", "employee_id", "start_date", "end_date", "is_paid", "status"},
    "company_parameters": {"id", "night_start", "night_end", "min_break_minutes"},
    "alembic_version": {"version_num"},
}


class SchemaGuardTests(unittest.TestCase):
    def test_verify_runtime_schema_ok_when_required_columns_exist(self) -> None:
        fake_inspector = _FakeInspector(
            columns_by_table=_FULL_COLUMNS,
            enums=[
                {"name": "leave_status", "labels": ["APPROVED", "PENDING", "REJECTED"]},
                {"name": "leave_type", "labels": ["VACATION", "SICK", "UNPAID", "EXCUSED"]},
            ],
        )
        fake_engine = _FakeEngine("0001_initial")

        with patch("shiftledger.services.schema_guard.inspect", return_value=fake_inspector):
            result = verify_runtime_schema(fake_engine)  # type: ignore[arg-type]

        self.assertTrue(result.ok)
        self.assertEqual(result.issues, [])
        self.assertEqual(result.warnings, [])

    def test_verify_runtime_schema_reports_missing_columns(self) -> None:
        columns = dict(_FULL_COLUMNS)
        columns["punches"] = {"id", "employee_id", "day_date", "entry", "exit"}
        columns["shift_assignments"] = {"id", "employee_id", "pattern_id"}
        fake_inspector = _FakeInspector(
            columns_by_table=columns,
            enums=[{"name": "leave_status", "labels": ["APPROVED"]}],
        )
        fake_engine = _FakeEngine("")

        with patch("shiftledger.services.schema_guard.inspect", return_value=fake_inspector):
            result = verify_runtime_schema(fake_engine)  # type: ignore[arg-type]

        self.assertFalse(result.ok)
        self.assertIn("MISSING_COLUMNS:punches:break_end,break_start,exit_date", result.issues)
        self.assertTrue(any(item.startswith("MISSING_COLUMNS:shift_assignments:") for item in result.issues))
        self.assertIn("MISSING_ENUM_VALUES:leave_status:PENDING,REJECTED", result.issues)
        self.assertIn("ENUM_NOT_FOUND:leave_type", result.warnings)
        self.assertIn("ALEMBIC_VERSION_EMPTY", result.issues)

    def test_verify_runtime_schema_reports_missing_unique_keys(self) -> None:
        fake_inspector = _FakeInspector(
            columns_by_table=_FULL_COLUMNS,
            enums=[
                {"name": "leave_status", "labels": ["APPROVED", "PENDING", "REJECTED"]},
                {"name": "leave_type", "labels": ["VACATION", "SICK", "UNPAID"]},
            ],
            unique_by_table={"shift_assignments": [["employee_id", "effective_from"]]},
        )

        with patch("shiftledger.services.schema_guard.inspect", return_value=fake_inspector):
            result = verify_runtime_schema(_FakeEngine("0001_initial"))  # type: ignore[arg-type]

        self.assertFalse(result.ok)
        self.assertEqual(result.issues, ["MISSING_UNIQUE:punches:employee_id,day_date"])

    def test_result_serializes_counts(self) -> None:
        fake_inspector = _FakeInspector(columns_by_table=_FULL_COLUMNS, enums=[])
        with patch("shiftledger.services.schema_guard.inspect", return_value=fake_inspector):
            result = verify_runtime_schema(_FakeEngine("0001_initial"))  # type: ignore[arg-type]

        payload = result.to_dict()
        self.assertTrue(payload["ok"])
        self.assertEqual(payload["issue_count"], 0)
        self.assertEqual(payload["warning_count"], 2)


if __name__ == "__main__":
    unittest.main()
