from __future__ import annotations

import unittest
from datetime import date, time

from shiftledger.errors import MalformedPunch
from shiftledger.services.engine_config import EngineConfig
from shiftledger.services.hours_calc import (
    DayStatus,
    compute_day_hours,
    format_minutes,
    is_overnight,
    parse_clock,
    shift_span_minutes,
    validate_punch,
)
from shiftledger.services.ledger import (
    ExpectedDay,
    LeaveDay,
    LedgerDay,
    OvernightContinuation,
    Placeholder,
    PunchRecord,
    Recorded,
)

DAY = date(2024, 1, 1)
CONFIG = EngineConfig()


def _expected(*, must_work: bool = True, minutes: int = 480) -> ExpectedDay:
    return ExpectedDay(
        day_date=DAY,
        must_work=must_work,
        expected_entry=time(8, 0) if must_work else None,
        expected_break_start=None,
        expected_break_end=None,
        expected_exit=time(17, 0) if must_work else None,
        expected_minutes=minutes if must_work else 0,
        pattern_id="test",
        cycle_index=0,
    )


def _recorded_day(*, must_work: bool = True, minutes: int = 480, **punch_fields) -> LedgerDay:
    punch = PunchRecord(employee_id=1, day_date=DAY, **punch_fields)
    return LedgerDay(day_date=DAY, expected=_expected(must_work=must_work, minutes=minutes), actual=Recorded(punch))


def _placeholder_day(*, must_work: bool = True) -> LedgerDay:
    return LedgerDay(day_date=DAY, expected=_expected(must_work=must_work), actual=Placeholder())


class ClockHelperTests(unittest.TestCase):
    def test_overnight_span_22_to_06_is_eight_hours(self) -> None:
        self.assertTrue(is_overnight(time(22, 0), time(6, 0)))
        self.assertEqual(shift_span_minutes(time(22, 0), time(6, 0)), 480)

    def test_explicit_next_day_allows_full_day(self) -> None:
        self.assertEqual(shift_span_minutes(time(7, 0), time(7, 0), exit_day_offset=1), 1440)

    def test_zero_and_over_24h_spans_are_malformed(self) -> None:
        with self.assertRaises(MalformedPunch):
            shift_span_minutes(time(9, 0), time(9, 0))
        with self.assertRaises(MalformedPunch):
            shift_span_minutes(time(7, 0), time(8, 0), exit_day_offset=1)

    def test_parse_clock_formats(self) -> None:
        self.assertEqual(parse_clock("08:30"), time(8, 30))
        self.assertEqual(parse_clock("08:30:15"), time(8, 30, 15))
        self.assertIsNone(parse_clock("  "))
        self.assertIsNone(parse_clock(None))
        with self.assertRaises(MalformedPunch):
            parse_clock("8h30")
        with self.assertRaises(MalformedPunch):
            parse_clock("24:00")

    def test_format_minutes(self) -> None:
        self.assertEqual(format_minutes(0), "00:00")
        self.assertEqual(format_minutes(485), "08:05")
        self.assertEqual(format_minutes(-90), "-01:30")


class ComputeDayHoursTests(unittest.TestCase):
    def test_regular_day_with_break(self) -> None:
        hours = compute_day_hours(
            _recorded_day(entry="08:00", break_start="12:00", break_end="13:00", exit="17:00"),
            CONFIG,
        )
        self.assertEqual(hours.status, DayStatus.WORKED)
        self.assertEqual(hours.worked_minutes, 480)
        self.assertEqual(hours.night_minutes, 0)
        self.assertEqual(hours.overtime_minutes, 0)
        self.assertEqual(hours.flags, ())

    def test_overnight_punch_counts_eight_hours_and_night_minutes(self) -> None:
        hours = compute_day_hours(_recorded_day(entry="22:00", exit="06:00"), CONFIG)

        self.assertEqual(hours.worked_minutes, 480)
        self.assertEqual(hours.night_minutes, 420)
        self.assertEqual(hours.overtime_minutes, 0)
        self.assertIn("CROSS_MIDNIGHT", hours.flags)
        self.assertIn("MIN_BREAK_NOT_MET", hours.flags)

    def test_daytime_overtime_is_diurnal(self) -> None:
        hours = compute_day_hours(
            _recorded_day(entry="08:00", break_start="12:00", break_end="13:00", exit="19:00"),
            CONFIG,
        )
        self.assertEqual(hours.worked_minutes, 600)
        self.assertEqual(hours.overtime_diurnal_minutes, 120)
        self.assertEqual(hours.overtime_nocturnal_minutes, 0)

    def test_overtime_running_into_the_night_is_nocturnal(self) -> None:
        hours = compute_day_hours(
            _recorded_day(entry="14:00", break_start="18:00", break_end="18:30", exit="23:30"),
            CONFIG,
        )
        self.assertEqual(hours.worked_minutes, 540)
        self.assertEqual(hours.night_minutes, 90)
        self.assertEqual(hours.overtime_diurnal_minutes, 0)
        self.assertEqual(hours.overtime_nocturnal_minutes, 60)
        self.assertIn("MIN_BREAK_NOT_MET", hours.flags)
        self.assertNotIn("CROSS_MIDNIGHT", hours.flags)

    def test_overtime_split_between_day_and_night(self) -> None:
        hours = compute_day_hours(
            _recorded_day(entry="12:00", break_start="16:00", break_end="17:00", exit="23:00"),
            CONFIG,
        )
        # 600 worked, 120 over; the last 120 minutes are 21:00-23:00.
        self.assertEqual(hours.worked_minutes, 600)
        self.assertEqual(hours.overtime_diurnal_minutes, 60)
        self.assertEqual(hours.overtime_nocturnal_minutes, 60)

    def test_full_day_shift_with_explicit_exit_date(self) -> None:
        hours = compute_day_hours(
            _recorded_day(minutes=1440, entry="07:00", exit="07:00", exit_date=date(2024, 1, 2)),
            CONFIG,
        )
        self.assertEqual(hours.worked_minutes, 1440)
        self.assertEqual(hours.night_minutes, 420)
        self.assertEqual(hours.overtime_minutes, 0)

    def test_custom_night_window(self) -> None:
        config = EngineConfig(night_start=time(21, 0), night_end=time(6, 0))
        hours = compute_day_hours(_recorded_day(entry="22:00", exit="06:00"), config)
        self.assertEqual(hours.night_minutes, 480)

    def test_rest_day_without_punch_is_not_absence(self) -> None:
        hours = compute_day_hours(_placeholder_day(must_work=False), CONFIG)
        self.assertEqual(hours.status, DayStatus.REST)
        self.assertFalse(hours.is_absence)
        self.assertEqual(hours.worked_minutes, 0)
        self.assertEqual(hours.expected_minutes, 0)

    def test_must_work_day_without_punch_is_absence(self) -> None:
        hours = compute_day_hours(_placeholder_day(), CONFIG)
        self.assertEqual(hours.status, DayStatus.ABSENT)
        self.assertTrue(hours.is_absence)
        self.assertEqual(hours.expected_minutes, 480)

    def test_leave_replaces_absence(self) -> None:
        paid = compute_day_hours(_placeholder_day(), CONFIG, leave=LeaveDay(day_date=DAY, paid=True))
        unpaid = compute_day_hours(_placeholder_day(), CONFIG, leave=LeaveDay(day_date=DAY, paid=False))

        self.assertEqual(paid.status, DayStatus.PAID_LEAVE)
        self.assertFalse(paid.is_absence)
        self.assertEqual(paid.flags, ("LEAVE_DAY",))
        self.assertEqual(unpaid.status, DayStatus.UNPAID_LEAVE)

    def test_leave_on_rest_day_stays_rest(self) -> None:
        hours = compute_day_hours(_placeholder_day(must_work=False), CONFIG, leave=LeaveDay(day_date=DAY, paid=True))
        self.assertEqual(hours.status, DayStatus.REST)

    def test_work_on_leave_day_is_flagged(self) -> None:
        hours = compute_day_hours(
            _recorded_day(entry="08:00", break_start="12:00", break_end="13:00", exit="17:00"),
            CONFIG,
            leave=LeaveDay(day_date=DAY, paid=True),
        )
        self.assertEqual(hours.status, DayStatus.WORKED)
        self.assertIn("LEAVE_OVERRIDDEN_BY_WORK", hours.flags)

    def test_work_on_rest_day_is_all_overtime(self) -> None:
        hours = compute_day_hours(_recorded_day(must_work=False, entry="09:00", exit="13:00"), CONFIG)
        self.assertEqual(hours.worked_minutes, 240)
        self.assertEqual(hours.overtime_diurnal_minutes, 240)
        self.assertIn("OFF_DAY_WORKED", hours.flags)

    def test_short_day_is_flagged_underworked(self) -> None:
        hours = compute_day_hours(_recorded_day(entry="08:00", exit="12:00"), CONFIG)
        self.assertEqual(hours.worked_minutes, 240)
        self.assertEqual(hours.overtime_minutes, 0)
        self.assertIn("UNDERWORKED", hours.flags)

    def test_missing_exit_on_work_day_is_absence(self) -> None:
        hours = compute_day_hours(_recorded_day(entry="08:00"), CONFIG)
        self.assertEqual(hours.status, DayStatus.ABSENT)
        self.assertTrue(hours.is_absence)
        self.assertTrue(hours.is_incomplete)
        self.assertEqual(hours.worked_minutes, 0)
        self.assertEqual(hours.flags, ("MISSING_OUT",))

    def test_missing_entry_on_work_day_is_absence(self) -> None:
        hours = compute_day_hours(_recorded_day(exit="17:00"), CONFIG)
        self.assertEqual(hours.status, DayStatus.ABSENT)
        self.assertEqual(hours.flags, ("MISSING_IN",))

    def test_half_punch_on_leave_day_is_leave(self) -> None:
        leave = LeaveDay(day_date=DAY, paid=True, leave_type="SICK")
        hours = compute_day_hours(_recorded_day(entry="08:00"), CONFIG, leave=leave)
        self.assertEqual(hours.status, DayStatus.PAID_LEAVE)
        self.assertFalse(hours.is_absence)
        self.assertEqual(hours.flags, ("LEAVE_DAY", "MISSING_OUT"))

    def test_half_punch_on_rest_day_is_incomplete(self) -> None:
        hours = compute_day_hours(_recorded_day(must_work=False, entry="09:00"), CONFIG)
        self.assertEqual(hours.status, DayStatus.INCOMPLETE)
        self.assertFalse(hours.is_absence)
        self.assertEqual(hours.worked_minutes, 0)

    def test_break_only_punch_on_work_day_is_absence(self) -> None:
        hours = compute_day_hours(_recorded_day(break_start="12:00", break_end="13:00"), CONFIG)
        self.assertEqual(hours.status, DayStatus.ABSENT)
        self.assertFalse(hours.is_incomplete)

    def test_continuation_day_contributes_nothing(self) -> None:
        ledger_day = LedgerDay(
            day_date=DAY,
            expected=_expected(must_work=False),
            actual=OvernightContinuation(source_date=date(2023, 12, 31)),
            occupied_by_overnight_predecessor=True,
        )
        hours = compute_day_hours(ledger_day, CONFIG)
        self.assertEqual(hours.status, DayStatus.CONTINUATION)
        self.assertEqual(hours.worked_minutes, 0)
        self.assertFalse(hours.is_absence)


class MalformedPunchTests(unittest.TestCase):
    def _assert_malformed(self, **punch_fields) -> None:
        with self.assertRaises(MalformedPunch) as ctx:
            compute_day_hours(_recorded_day(**punch_fields), CONFIG)
        self.assertEqual(ctx.exception.day_date, DAY)
        with self.assertRaises(MalformedPunch):
            validate_punch(PunchRecord(employee_id=1, day_date=DAY, **punch_fields))

    def test_unparseable_time(self) -> None:
        self._assert_malformed(entry="25:00", exit="17:00")

    def test_break_with_one_end(self) -> None:
        self._assert_malformed(entry="08:00", break_start="12:00", exit="17:00")

    def test_break_end_before_break_start(self) -> None:
        self._assert_malformed(entry="08:00", break_start="13:00", break_end="12:00", exit="17:00")

    def test_break_outside_worked_span(self) -> None:
        self._assert_malformed(entry="08:00", break_start="13:00", break_end="14:00", exit="12:00")

    def test_entry_equal_to_exit(self) -> None:
        self._assert_malformed(entry="09:00", exit="09:00")

    def test_exit_date_too_far(self) -> None:
        self._assert_malformed(entry="08:00", exit="09:00", exit_date=date(2024, 1, 3))

    def test_span_over_24_hours(self) -> None:
        self._assert_malformed(entry="07:00", exit="08:00", exit_date=date(2024, 1, 2))

    def test_valid_punch_passes_validation(self) -> None:
        validate_punch(PunchRecord(employee_id=1, day_date=DAY, entry="22:00", exit="06:00"))
        validate_punch(PunchRecord(employee_id=1, day_date=DAY, entry="08:00"))


if __name__ == "__main__":
    unittest.main()
