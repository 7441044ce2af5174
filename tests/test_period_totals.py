from __future__ import annotations

import unittest
from datetime import date, time

from shiftledger.services.engine_config import EngineConfig
from shiftledger.services.hours_calc import DayStatus
from shiftledger.services.ledger import (
    LeaveDay,
    OvernightContinuation,
    Placeholder,
    PunchRecord,
    ScheduleAssignment,
)
from shiftledger.services.period_totals import aggregate_period, compute_period_hours, leave_days_by_date
from shiftledger.services.reconciler import reconcile
from shiftledger.services.shift_patterns import default_catalog

CATALOG = default_catalog()
CONFIG = EngineConfig()


def _office_week() -> ScheduleAssignment:
    return ScheduleAssignment(
        employee_id=1,
        pattern=CATALOG.lookup("5x2"),
        entry_time=time(8, 0),
        exit_time=time(17, 0),
        effective_from=date(2024, 1, 1),
        break_start=time(12, 0),
        break_end=time(13, 0),
    )


def _night_12x36() -> ScheduleAssignment:
    return ScheduleAssignment(
        employee_id=1,
        pattern=CATALOG.lookup("12x36"),
        entry_time=time(19, 0),
        exit_time=time(7, 0),
        effective_from=date(2024, 1, 1),
    )


class PeriodTotalsTests(unittest.TestCase):
    def test_5x2_week_without_punches(self) -> None:
        result = reconcile(1, date(2024, 1, 1), date(2024, 1, 7), [], _office_week())
        self.assertEqual(len(result.days), 7)
        self.assertTrue(all(isinstance(day.actual, Placeholder) for day in result.days))
        self.assertEqual(sum(1 for day in result.days if day.expected.must_work), 5)

        hours, errors = compute_period_hours(result.days, CONFIG)
        totals = aggregate_period(result.days, hours, CONFIG)

        self.assertEqual(errors, [])
        self.assertEqual(totals.absences, 5)
        self.assertEqual(totals.worked_minutes, 0)
        self.assertEqual(totals.days_worked, 0)
        self.assertEqual(totals.expected_minutes, 5 * 480)
        self.assertEqual(sum(1 for item in hours if item.status == DayStatus.REST), 2)
        self.assertEqual(totals.start_date, date(2024, 1, 1))
        self.assertEqual(totals.end_date, date(2024, 1, 7))

    def test_12x36_night_shift(self) -> None:
        punches = [PunchRecord(employee_id=1, day_date=date(2024, 1, 1), entry="19:00", exit="07:00")]
        result = reconcile(1, date(2024, 1, 1), date(2024, 1, 2), punches, _night_12x36())

        self.assertIsInstance(result.days[1].actual, OvernightContinuation)
        self.assertFalse(any(isinstance(day.actual, Placeholder) for day in result.days))

        hours, errors = compute_period_hours(result.days, CONFIG)
        totals = aggregate_period(result.days, hours, CONFIG)

        self.assertEqual(errors, [])
        self.assertEqual(totals.worked_minutes, 720)
        self.assertEqual(totals.night_minutes, 420)
        self.assertEqual(totals.overtime_minutes, 0)
        self.assertEqual(totals.days_worked, 1)
        self.assertEqual(totals.absences, 0)

    def test_punches_without_clock_times_still_count_absences(self) -> None:
        punches = [
            PunchRecord(employee_id=1, day_date=date(2024, 1, 1), break_start="12:00", break_end="13:00"),
            PunchRecord(employee_id=1, day_date=date(2024, 1, 2), entry="08:00"),
        ]
        result = reconcile(1, date(2024, 1, 1), date(2024, 1, 2), punches, _office_week())
        hours, errors = compute_period_hours(result.days, CONFIG)
        totals = aggregate_period(result.days, hours, CONFIG)

        self.assertEqual(errors, [])
        self.assertEqual(totals.worked_minutes, 0)
        self.assertEqual(totals.absences, 2)
        self.assertEqual(totals.incomplete_days, 1)

    def test_leave_days_are_not_absences(self) -> None:
        result = reconcile(1, date(2024, 1, 1), date(2024, 1, 7), [], _office_week())
        leaves = [
            LeaveDay(day_date=date(2024, 1, 2), paid=True, leave_type="VACATION"),
            LeaveDay(day_date=date(2024, 1, 3), paid=False, leave_type="UNPAID"),
            LeaveDay(day_date=date(2024, 1, 6), paid=True, leave_type="VACATION"),
        ]
        hours, _ = compute_period_hours(result.days, CONFIG, leaves)
        totals = aggregate_period(result.days, hours, CONFIG)

        self.assertEqual(totals.absences, 3)
        self.assertEqual(totals.paid_leave_days, 1)
        self.assertEqual(totals.unpaid_leave_days, 1)

    def test_weighted_overtime_uses_company_rates(self) -> None:
        punches = [
            PunchRecord(employee_id=1, day_date=date(2024, 1, 1), entry="08:00", break_start="12:00", break_end="13:00", exit="19:00"),
            PunchRecord(employee_id=1, day_date=date(2024, 1, 2), entry="14:00", break_start="18:00", break_end="18:30", exit="23:30"),
        ]
        result = reconcile(1, date(2024, 1, 1), date(2024, 1, 2), punches, _office_week())
        hours, _ = compute_period_hours(result.days, CONFIG)
        totals = aggregate_period(result.days, hours, CONFIG)

        self.assertEqual(totals.overtime_diurnal_minutes, 120)
        self.assertEqual(totals.overtime_nocturnal_minutes, 60)
        self.assertEqual(totals.weighted_overtime_minutes, 180 + 102)
        self.assertEqual(aggregate_period(result.days, hours).weighted_overtime_minutes, 0)

    def test_night_differential_weights_night_minutes(self) -> None:
        punches = [
            PunchRecord(employee_id=1, day_date=date(2024, 1, 2), entry="14:00", break_start="18:00", break_end="18:30", exit="23:30"),
        ]
        result = reconcile(1, date(2024, 1, 2), date(2024, 1, 2), punches, _office_week())
        hours, _ = compute_period_hours(result.days, CONFIG)

        totals = aggregate_period(result.days, hours, CONFIG)
        self.assertEqual(totals.night_minutes, 90)
        self.assertEqual(totals.night_differential_minutes, 18)

        doubled = aggregate_period(result.days, hours, EngineConfig(night_differential_rate=0.5))
        self.assertEqual(doubled.night_differential_minutes, 45)
        self.assertEqual(aggregate_period(result.days, hours).night_differential_minutes, 0)

    def test_malformed_day_is_reported_and_skipped(self) -> None:
        punches = [PunchRecord(employee_id=1, day_date=date(2024, 1, 1), entry="08:00", exit="zz:00")]
        result = reconcile(1, date(2024, 1, 1), date(2024, 1, 5), punches, _office_week())
        hours, errors = compute_period_hours(result.days, CONFIG)
        totals = aggregate_period(result.days, hours, CONFIG)

        self.assertEqual(len(hours), 4)
        self.assertEqual([item.code for item in errors], ["MALFORMED_PUNCH"])
        self.assertEqual([item.day_date for item in totals.errors], [date(2024, 1, 1)])
        self.assertEqual(totals.absences, 4)

    def test_missing_hours_are_reported(self) -> None:
        result = reconcile(1, date(2024, 1, 1), date(2024, 1, 2), [], _office_week())
        totals = aggregate_period(result.days, [])
        self.assertEqual([item.code for item in totals.errors], ["MISSING_HOURS", "MISSING_HOURS"])
        self.assertEqual(totals.absences, 0)

    def test_empty_ledger(self) -> None:
        totals = aggregate_period([], [])
        self.assertIsNone(totals.start_date)
        self.assertIsNone(totals.end_date)
        self.assertEqual(totals.worked_minutes, 0)

    def test_first_leave_wins_for_a_date(self) -> None:
        by_date = leave_days_by_date(
            [
                LeaveDay(day_date=date(2024, 1, 2), paid=True),
                LeaveDay(day_date=date(2024, 1, 2), paid=False),
            ]
        )
        self.assertTrue(by_date[date(2024, 1, 2)].paid)


if __name__ == "__main__":
    unittest.main()
