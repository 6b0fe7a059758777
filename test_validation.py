"""
Tests for schedule, shift pattern and operating hours validation.
"""

import unittest
from datetime import date, timedelta

from entities import (
    Employee, ChemistryPair, LeaveRequest, LeaveStatus, ShiftPattern, ScheduleEntry,
    GenerationConstraints
)
from validation import (
    validate_schedule, validate_patterns, validate_daily_hours, validate_operating_hours_template
)

SUNDAY = date(2024, 1, 7)
MONDAY = date(2024, 1, 8)


class TestScheduleValidation(unittest.TestCase):

    def setUp(self):
        self.employees = [Employee(i, f"Employee {i}") for i in range(1, 4)]
        self.pattern = ShiftPattern(1, "Day", "09:00", "17:00", required_staff=1, days=[1])
        self.constraints = GenerationConstraints()

    def validate(self, entries, leaves=None, chemistry=None, start=MONDAY, end=MONDAY):
        return validate_schedule(entries, self.employees, leaves or [], chemistry or [],
                                 [self.pattern], self.constraints, start, end)

    def test_clean_schedule(self):
        result = self.validate([ScheduleEntry(1, MONDAY, "09:00", "17:00", shift_pattern_id=1)])
        self.assertTrue(result.is_valid)
        self.assertEqual(result.warnings, [])

    def test_work_during_leave(self):
        leaves = [LeaveRequest(1, 1, MONDAY, MONDAY, status=LeaveStatus.APPROVED)]
        result = self.validate([ScheduleEntry(1, MONDAY, "09:00", "17:00", shift_pattern_id=1)], leaves)
        self.assertFalse(result.is_valid)
        self.assertIn("leave", result.errors[0])

    def test_two_shifts_one_day(self):
        result = self.validate([
            ScheduleEntry(1, MONDAY, "06:00", "10:00", shift_pattern_id=1),
            ScheduleEntry(1, MONDAY, "18:00", "22:00"),
        ])
        self.assertFalse(result.is_valid)
        self.assertTrue(any("2 shifts" in e for e in result.errors))

    def test_conflict_pair_overlap(self):
        chemistry = [ChemistryPair(1, 2, 1), ChemistryPair(1, 3, 4)]
        result = self.validate([
            ScheduleEntry(1, MONDAY, "09:00", "17:00", shift_pattern_id=1),
            ScheduleEntry(2, MONDAY, "16:00", "22:00"),
            ScheduleEntry(3, MONDAY, "09:00", "17:00"),
        ], chemistry=chemistry)
        self.assertEqual(len(result.errors), 1)
        self.assertIn("Conflict pair", result.errors[0])

    def test_limits(self):
        self.employees.append(Employee(4, "Short rest"))
        entries = [ScheduleEntry(1, SUNDAY + timedelta(days=i), "09:00", "17:00") for i in range(7)]
        entries += [
            ScheduleEntry(4, SUNDAY, "14:00", "22:00"),
            ScheduleEntry(4, MONDAY, "06:00", "14:00"),
        ]
        result = self.validate(entries, start=SUNDAY, end=SUNDAY + timedelta(days=6))

        messages = " | ".join(result.errors)
        self.assertIn("consecutive days", messages)
        self.assertIn("in week of", messages)
        self.assertIn("rest", messages)
        self.assertEqual(len(result.errors), 3)

    def test_coverage_is_a_warning(self):
        result = self.validate([])
        self.assertTrue(result.is_valid)
        self.assertEqual(len(result.warnings), 1)
        self.assertIn("0 of 1", result.warnings[0])


class TestPatternValidation(unittest.TestCase):

    def test_valid_weekday_set(self):
        result = validate_patterns([
            {"name": "Early", "startTime": "06:00", "endTime": "14:00", "days": [1, 2, 3, 4, 5], "requiredStaff": 2},
            {"name": "Weekend", "startTime": "08:00", "endTime": "16:00", "daysOfWeek": [0, 6], "staffRequired": 1},
        ])
        self.assertTrue(result["isValid"])
        self.assertEqual(result["warnings"], [])
        self.assertEqual(len(result["coverageAnalysis"]), 7)
        self.assertEqual(result["coverageAnalysis"][1]["totalStaffRequired"], 2)

    def test_field_errors(self):
        result = validate_patterns([
            {"name": "No times", "days": [1]},
            {"name": "Bad days", "startTime": "06:00", "endTime": "14:00", "days": [7]},
            {"name": "Bad format", "startTime": "6am", "endTime": "14:00", "days": []},
        ], check_coverage=False)

        self.assertFalse(result["isValid"])
        fields = [(e["pattern"], e["field"]) for e in result["errors"]]
        self.assertIn(("No times", "time"), fields)
        self.assertIn(("Bad days", "days"), fields)
        self.assertIn(("Bad format", "time"), fields)
        self.assertIn(("Bad format", "days"), fields)

    def test_staff_beyond_workforce(self):
        result = validate_patterns(
            [{"name": "Big", "startTime": "06:00", "endTime": "14:00", "days": [1], "requiredStaff": 8}],
            check_coverage=False, available_employees=5)
        self.assertFalse(result["isValid"])
        self.assertEqual(result["errors"][0]["field"], "requiredStaff")

    def test_overlap_and_duration_warnings(self):
        result = validate_patterns([
            {"name": "Long", "startTime": "06:00", "endTime": "20:00", "days": [1, 2]},
            {"name": "Night", "startTime": "19:00", "endTime": "03:00", "days": [2]},
        ])
        self.assertTrue(result["isValid"])
        conflict = [w for w in result["warnings"] if w["field"] == "conflict"]
        self.assertEqual(len(conflict), 1)
        self.assertEqual(conflict[0]["commonDays"], [2])
        self.assertTrue(any("more than 12 hours" in w["message"] for w in result["warnings"]))
        self.assertEqual(len([w for w in result["warnings"] if w["field"] == "coverage"]), 5)

    def test_wrong_value_types_are_errors(self):
        result = validate_patterns([
            {"name": "Text staff", "startTime": "09:00", "endTime": "17:00", "requiredStaff": "2", "days": [1]},
            {"name": "Numeric time", "startTime": 900, "endTime": "17:00", "days": "1"},
            "not a pattern",
        ], available_employees=5)

        self.assertFalse(result["isValid"])
        fields = [(e["pattern"], e["field"]) for e in result["errors"]]
        self.assertIn(("Text staff", "requiredStaff"), fields)
        self.assertIn(("Numeric time", "time"), fields)
        self.assertIn(("Numeric time", "days"), fields)
        self.assertIn(("Pattern 3", "pattern"), fields)
        self.assertEqual(result["coverageAnalysis"][1]["totalStaffRequired"], 0)


class TestOperatingHoursValidation(unittest.TestCase):

    def weekday(self, dow, **extra):
        day = {"dayOfWeek": dow, "isOpen": True, "openTime": "09:00", "closeTime": "17:00", "minStaff": 2}
        day.update(extra)
        return day

    def test_valid_template_has_summary(self):
        template = {
            "templateName": "Office",
            "dailyHours": [self.weekday(d) for d in range(1, 6)] + [{"dayOfWeek": 0, "isOpen": False}],
        }
        result = validate_operating_hours_template(template)

        self.assertTrue(result["isValid"], result["errors"])
        self.assertEqual(result["summary"]["openDays"], 5)
        self.assertEqual(result["summary"]["totalWeeklyHours"], 40.0)
        self.assertEqual(result["summary"]["totalStaffRequirement"], 10)

    def test_name_required(self):
        result = validate_operating_hours_template({"dailyHours": [self.weekday(1)]})
        self.assertFalse(result["isValid"])
        self.assertEqual(result["errors"][0], "Template name is required")
        self.assertIsNone(result["summary"])

    def test_daily_errors(self):
        result = validate_daily_hours([
            self.weekday(1, breakStart="08:00", breakEnd="09:30"),
            self.weekday(1),
            self.weekday(2, minStaff=5, maxStaff=3),
            self.weekday(3, timeSlots=[{"hourSlot": 20, "requiredStaff": 1},
                                       {"hourSlot": 10, "requiredStaff": 2, "preferredStaff": 1}]),
        ])
        messages = " | ".join(result["errors"])

        self.assertFalse(result["valid"])
        self.assertIn("Break times must be within operating hours", messages)
        self.assertIn("Duplicate day of week", messages)
        self.assertIn("Minimum staff cannot be greater than maximum staff", messages)
        self.assertIn("outside operating hours", messages)
        self.assertIn("Preferred staff cannot be less than required staff", messages)

    def test_wrong_value_types_are_errors(self):
        result = validate_daily_hours([
            "monday",
            self.weekday(1, minStaff="2", maxStaff=None),
            self.weekday(2, timeSlots=[{"hourSlot": 10, "requiredStaff": "3", "preferredStaff": "4"},
                                       {"hourSlot": "11", "requiredStaff": 1},
                                       7]),
        ])
        messages = " | ".join(result["errors"])

        self.assertFalse(result["valid"])
        self.assertIn("Day 1: Daily hours entry must be an object", messages)
        self.assertIn("Day 2: Minimum staff must be a number", messages)
        self.assertIn("Required staff must be a number", messages)
        self.assertIn("Preferred staff must be a number", messages)
        self.assertIn("Hour slot must be between 0 and 23", messages)
        self.assertIn("Time slot must be an object", messages)

    def test_malformed_template(self):
        result = validate_operating_hours_template({"name": "Broken", "dailyHours": ["x", {"dayOfWeek": "1"}]})
        self.assertFalse(result["isValid"])
        self.assertIsNone(result["summary"])

        result = validate_operating_hours_template(["not", "a", "template"])
        self.assertEqual(result["errors"], ["Template must be an object"])

    def test_weekend_only_warning(self):
        result = validate_operating_hours_template({
            "name": "Market", "dailyHours": [self.weekday(0), self.weekday(6)],
        })
        self.assertTrue(result["isValid"])
        self.assertIn("Template only operates on weekends", result["warnings"])


if __name__ == "__main__":
    unittest.main()
