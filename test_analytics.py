"""
Tests for scoring, requirement forecasting, coverage and conflict checks.
"""

import unittest
from datetime import date, timedelta

from entities import (
    Ability, Employee, EmployeePreference, ChemistryPair, LeaveRequest, LeaveStatus,
    ShiftPattern, ScheduleEntry, GenerationConstraints, GenerationPriorities, OperatingHoursTemplate
)
from analytics import (
    calculate_employee_score, build_generation_summary, calculate_scheduling_metrics,
    detect_scheduling_conflicts, calculate_requirements, analyze_coverage, check_period,
    calculate_template_compliance, analyze_workload_distribution
)

SUNDAY = date(2024, 1, 7)
MONDAY = date(2024, 1, 8)
EVERY_DAY = [0, 1, 2, 3, 4, 5, 6]


def employees(count=3):
    return [Employee(i, f"Employee {i}", department="Front", ability=Ability(3, 3, 3, 3, 3))
            for i in range(1, count + 1)]


class TestEmployeeScore(unittest.TestCase):

    def setUp(self):
        self.pattern = ShiftPattern(1, "Day", "09:00", "17:00")
        self.employee = Employee(1, "Ann", ability=Ability(3, 3, 3, 3, 3),
                                 preference=EmployeePreference(prefer_days=["monday"]))

    def test_static_components(self):
        score, breakdown = calculate_employee_score(
            self.employee, MONDAY, self.pattern, GenerationPriorities(), GenerationConstraints(),
            days_scheduled=2, average_days=3, total_hours=10, include_dynamic=False)

        self.assertAlmostEqual(breakdown["ability"], 12.0)
        self.assertAlmostEqual(breakdown["preference"], 3.0)
        self.assertEqual(breakdown["fairness"], 0.0)
        self.assertEqual(breakdown["availability"], 0.0)
        self.assertAlmostEqual(score, 15.0)

    def test_dynamic_components(self):
        _, breakdown = calculate_employee_score(
            self.employee, SUNDAY, self.pattern, GenerationPriorities(), GenerationConstraints(),
            days_scheduled=2, average_days=3, total_hours=10)

        self.assertEqual(breakdown["preference"], 0.0)
        self.assertAlmostEqual(breakdown["fairness"], 2.0)
        self.assertAlmostEqual(breakdown["availability"], 4.0)

    def test_preferences_can_be_ignored(self):
        constraints = GenerationConstraints(respect_preferences=False)
        _, breakdown = calculate_employee_score(
            self.employee, MONDAY, self.pattern, GenerationPriorities(), constraints, include_dynamic=False)
        self.assertEqual(breakdown["preference"], 0.0)

    def test_score_never_negative(self):
        employee = Employee(2, "Bob", preference=EmployeePreference(avoid_days=["monday"]))
        score, _ = calculate_employee_score(
            employee, MONDAY, self.pattern, GenerationPriorities(), GenerationConstraints(),
            days_scheduled=10, average_days=0, total_hours=200)
        self.assertEqual(score, 0.0)


class TestSummariesAndMetrics(unittest.TestCase):

    def test_generation_summary(self):
        entries = [
            ScheduleEntry(1, SUNDAY, "09:00", "17:00", shift_pattern_id=1),
            ScheduleEntry(1, MONDAY, "09:00", "17:00", shift_pattern_id=1),
            ScheduleEntry(1, SUNDAY + timedelta(days=3), "09:00", "17:00", shift_pattern_id=1),
        ]
        result = build_generation_summary(entries, employees(2), SUNDAY, SUNDAY + timedelta(days=6), [], 1)

        self.assertEqual(result["summary"]["totalDays"], 7)
        self.assertEqual(result["summary"]["schedulesCreated"], 3)
        first, second = result["employeeSummary"]
        self.assertEqual(first["scheduledDays"], 3)
        self.assertEqual(first["totalHours"], 24.0)
        self.assertEqual(first["consecutiveDaysMax"], 2)
        self.assertEqual(second["scheduledDays"], 0)

    def test_scheduling_metrics(self):
        entries = [
            ScheduleEntry(1, MONDAY, "09:00", "17:00"),
            ScheduleEntry(2, MONDAY, "09:00", "17:00"),
            ScheduleEntry(3, MONDAY, "22:00", "06:00", shift_type="night"),
        ]
        result = calculate_scheduling_metrics(entries, employees(3), SUNDAY, SUNDAY + timedelta(days=6))
        metrics = result["metrics"]

        self.assertEqual(metrics["totalSchedules"], 3)
        self.assertEqual(metrics["employeesScheduled"], 3)
        self.assertEqual(metrics["totalHours"], 24.0)
        self.assertEqual(metrics["shiftTypeDistribution"], {"regular": 2, "night": 1})
        self.assertEqual(metrics["coverageDistribution"], {"2": 1, "1": 1})
        self.assertEqual(metrics["weeklyDistribution"][1], 3)
        self.assertEqual(metrics["timeSlotCoverage"][23], 1)
        self.assertEqual(metrics["timeSlotCoverage"][10], 2)
        self.assertAlmostEqual(metrics["utilizationRate"], 24.0 / 120.0)

    def test_workload_distribution(self):
        entries = [ScheduleEntry(1, SUNDAY + timedelta(days=i), "09:00", "17:00") for i in range(4)]
        entries.append(ScheduleEntry(2, MONDAY, "09:00", "17:00"))
        workload = analyze_workload_distribution(entries)
        self.assertEqual(workload["maxHours"], 32.0)
        self.assertEqual([w["employeeId"] for w in workload["overworked"]], [1])
        self.assertEqual([w["employeeId"] for w in workload["underutilized"]], [2])


class TestConflictDetection(unittest.TestCase):

    def test_overlap_only_without_constraints(self):
        entries = [
            ScheduleEntry(1, MONDAY, "09:00", "17:00"),
            ScheduleEntry(1, MONDAY, "16:00", "20:00"),
        ]
        conflicts = detect_scheduling_conflicts(entries, employees(1))
        self.assertEqual([c["type"] for c in conflicts], ["time_overlap"])
        self.assertEqual(conflicts[0]["severity"], "high")

    def test_limits_with_constraints(self):
        entries = [ScheduleEntry(1, SUNDAY + timedelta(days=i), "09:00", "17:00") for i in range(7)]
        entries += [
            ScheduleEntry(2, MONDAY, "14:00", "23:00"),
            ScheduleEntry(2, MONDAY + timedelta(days=1), "06:00", "14:00"),
        ]
        conflicts = detect_scheduling_conflicts(entries, employees(2), GenerationConstraints())
        types = sorted(c["type"] for c in conflicts)

        self.assertEqual(types, ["consecutive_days_exceeded", "insufficient_rest", "weekly_hours_exceeded"])
        rest = next(c for c in conflicts if c["type"] == "insufficient_rest")
        self.assertEqual(rest["actualRest"], 7.0)
        self.assertEqual(rest["employee"]["id"], 2)

    def test_check_period(self):
        leaves = [LeaveRequest(1, 3, MONDAY, MONDAY, status=LeaveStatus.APPROVED),
                  LeaveRequest(2, 1, MONDAY, MONDAY, status=LeaveStatus.PENDING)]
        entries = [
            ScheduleEntry(1, MONDAY, "09:00", "17:00", id=1),
            ScheduleEntry(1, MONDAY, "12:00", "20:00", id=2),
            ScheduleEntry(2, SUNDAY, "09:00", "17:00", id=3),
            ScheduleEntry(3, SUNDAY, "10:00", "14:00", id=4),
            ScheduleEntry(3, MONDAY, "06:00", "08:00", id=5),
        ]
        result = check_period(entries, leaves, [ChemistryPair(2, 3, 1)], employees(3))

        self.assertEqual(sorted(c["type"] for c in result["conflicts"]), ["chemistry_conflict", "time_overlap"])
        self.assertEqual(result["summary"]["totalLeaves"], 1)
        self.assertEqual(result["summary"]["employeesOnLeaveWithSchedules"], 1)
        self.assertEqual(result["employeesOnLeave"][0]["scheduleId"], 5)

    def test_check_period_night_shift_reaches_next_day(self):
        entries = [
            ScheduleEntry(1, SUNDAY, "22:00", "06:00", id=1),
            ScheduleEntry(2, MONDAY, "05:00", "13:00", id=2),
            ScheduleEntry(1, MONDAY, "04:00", "08:00", id=3),
            ScheduleEntry(2, MONDAY + timedelta(days=1), "05:00", "13:00", id=4),
        ]
        result = check_period(entries, [], [ChemistryPair(1, 2, 2)], employees(2))

        types = sorted((c["type"], c["date"]) for c in result["conflicts"])
        self.assertEqual(types, [
            ("chemistry_conflict", SUNDAY.isoformat()),
            ("chemistry_conflict", MONDAY.isoformat()),
            ("time_overlap", SUNDAY.isoformat()),
        ])


class TestRequirements(unittest.TestCase):

    def test_weekend_multiplier_rounds_up(self):
        pattern = ShiftPattern(1, "Day", "09:00", "17:00", required_staff=4, days=EVERY_DAY)
        result = calculate_requirements(SUNDAY, MONDAY, employees(5), [], [pattern])
        sunday, monday = result["dailyRequirements"]

        self.assertTrue(sunday["isWeekend"])
        self.assertEqual(sunday["shifts"][0]["staffRequired"], 5)
        self.assertEqual(monday["shifts"][0]["staffRequired"], 4)
        self.assertEqual(result["summary"]["peakRequirementDay"]["date"], SUNDAY.isoformat())

    def test_holiday_replaces_weekend_multiplier(self):
        pattern = ShiftPattern(1, "Day", "09:00", "17:00", required_staff=4, days=EVERY_DAY)
        result = calculate_requirements(SUNDAY, SUNDAY, employees(8), [], [pattern], holidays=[SUNDAY])
        self.assertEqual(result["dailyRequirements"][0]["shifts"][0]["staffRequired"], 6)

    def test_peak_hours_and_shortfall(self):
        patterns = [
            ShiftPattern(1, "Early", "06:00", "12:00", required_staff=2, days=EVERY_DAY),
            ShiftPattern(2, "Late", "12:00", "18:00", required_staff=2, days=EVERY_DAY),
        ]
        leaves = [LeaveRequest(1, 1, MONDAY, MONDAY, status=LeaveStatus.APPROVED)]
        peak = [{"start": "16:00", "end": "18:00", "additionalStaff": 1}]
        result = calculate_requirements(MONDAY, MONDAY, employees(3), leaves, patterns, peak_hours=peak)
        early, late = result["dailyRequirements"][0]["shifts"]

        self.assertEqual(early["staffRequired"], 2)
        self.assertEqual(late["staffRequired"], 3)
        self.assertEqual(late["staffAvailable"], 2)
        self.assertEqual(late["shortfall"], 1)
        self.assertEqual(result["summary"]["daysWithShortfall"], 1)

    def test_default_shift_without_patterns(self):
        result = calculate_requirements(MONDAY, MONDAY, employees(1), [], [], base_staff_required=3)
        shift = result["dailyRequirements"][0]["shifts"][0]
        self.assertEqual((shift["shift"], shift["staffRequired"], shift["shortfall"]), ("default", 3, 2))


class TestCoverage(unittest.TestCase):

    def test_gaps_in_business_hours(self):
        entries = [ScheduleEntry(1, MONDAY, "09:00", "13:00")]
        result = analyze_coverage(SUNDAY, MONDAY, entries, [], total_employees=4)

        self.assertEqual(result["overallStats"]["totalDays"], 1)
        monday = result["dailyCoverage"][0]
        self.assertEqual(len(monday["timeSlots"]), 18)
        self.assertEqual(monday["gapsCount"], 10)
        self.assertEqual(monday["status"], "optimal")
        self.assertEqual(result["overallStats"]["daysWithGaps"], 1)

    def test_weekends_included_on_request(self):
        leaves = [LeaveRequest(1, 2, SUNDAY, SUNDAY, status=LeaveStatus.APPROVED)]
        result = analyze_coverage(SUNDAY, MONDAY, [], leaves, total_employees=4, include_weekends=True)

        sunday = result["dailyCoverage"][0]
        self.assertEqual(result["overallStats"]["totalDays"], 2)
        self.assertEqual(sunday["status"], "understaffed")
        self.assertEqual(sunday["availableEmployees"], 3)
        types = {r["type"] for r in result["recommendations"]}
        self.assertIn("general_understaffing", types)
        self.assertIn("leave_impact", types)

    def test_template_compliance(self):
        template = OperatingHoursTemplate.from_dict({
            "templateName": "Shop",
            "dailyHours": [{"dayOfWeek": 1, "openTime": "09:00", "closeTime": "17:00", "minStaff": 2}],
        })
        entries = [ScheduleEntry(1, MONDAY, "09:00", "17:00")]
        compliance = calculate_template_compliance(entries, template, SUNDAY, MONDAY)

        self.assertEqual(len(compliance["dailyCompliance"]), 1)
        self.assertEqual(compliance["issuesFound"][0]["shortfall"], 1)
        self.assertEqual(compliance["overallCoverageRate"], 0.5)


if __name__ == "__main__":
    unittest.main()
