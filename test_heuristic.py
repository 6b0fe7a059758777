"""
Tests for the greedy schedule generator.

Each test builds a small workforce in memory and checks one rule of the
generated plan: coverage, leave, conflict pairs, rest, consecutive days,
weekly hours and the fill_gaps mode.
"""

import unittest
from collections import defaultdict
from datetime import date, timedelta

from entities import (
    Ability, Employee, EmployeePreference, ChemistryPair, LeaveRequest, LeaveStatus,
    ShiftPattern, ShiftRequirements, ScheduleEntry, GenerationConstraints, is_weekend
)
from heuristic import GreedyScheduler, generate_greedy_schedule

# Sunday to Saturday
WEEK_START = date(2024, 1, 7)
WEEK_END = date(2024, 1, 13)
EVERY_DAY = [0, 1, 2, 3, 4, 5, 6]


def make_employees(count, ability=(3, 3, 3, 3, 3)):
    return [
        Employee(i, f"Employee {i}", hire_date=date(2020, 1, 1), ability=Ability(*ability))
        for i in range(1, count + 1)
    ]


def day_pattern(required=2, days=None, requirements=None):
    return ShiftPattern(1, "Day", "09:00", "17:00", required_staff=required,
                        days=days or EVERY_DAY, requirements=requirements or ShiftRequirements())


def violations_of(tracker, category):
    return [v for v in tracker.violations if v.category == category]


class TestGreedyCoverage(unittest.TestCase):

    def test_fills_every_slot_with_enough_staff(self):
        entries, tracker = generate_greedy_schedule(
            make_employees(4), [day_pattern()], WEEK_START, WEEK_END)

        self.assertEqual(len(entries), 14)
        self.assertEqual(violations_of(tracker, "insufficient_staff"), [])

        per_day = defaultdict(set)
        for entry in entries:
            self.assertNotIn(entry.employee_id, per_day[entry.date], "double booked on one day")
            per_day[entry.date].add(entry.employee_id)
            self.assertEqual(entry.shift_pattern_id, 1)
            self.assertEqual(entry.shift_type, "regular")

    def test_fair_distribution_spreads_days(self):
        entries, _ = generate_greedy_schedule(
            make_employees(4), [day_pattern()], WEEK_START, WEEK_END)
        days = defaultdict(int)
        for entry in entries:
            days[entry.employee_id] += 1
        self.assertLessEqual(max(days.values()) - min(days.values()), 1)

    def test_shortage_is_recorded(self):
        entries, tracker = generate_greedy_schedule(
            make_employees(1), [day_pattern(required=2)], WEEK_START, WEEK_START)

        self.assertEqual(len(entries), 1)
        shortages = violations_of(tracker, "insufficient_staff")
        self.assertEqual(len(shortages), 1)
        self.assertEqual(shortages[0].required, 2)
        self.assertEqual(shortages[0].available, 1)
        self.assertEqual(shortages[0].severity, "high")

    def test_disabled_patterns_are_ignored(self):
        pattern = day_pattern()
        pattern.enabled = False
        entries, tracker = generate_greedy_schedule(make_employees(3), [pattern], WEEK_START, WEEK_END)
        self.assertEqual(entries, [])
        self.assertFalse(tracker.has_violations())

    def test_invalid_period_rejected(self):
        with self.assertRaises(ValueError):
            GreedyScheduler(make_employees(1), [day_pattern()], WEEK_END, WEEK_START)


class TestGreedyAvailability(unittest.TestCase):

    def test_approved_leave_blocks_scheduling(self):
        leave = LeaveRequest(1, 1, WEEK_START, WEEK_END, status=LeaveStatus.APPROVED)
        entries, _ = generate_greedy_schedule(
            make_employees(4), [day_pattern()], WEEK_START, WEEK_END, leaves=[leave])
        self.assertFalse(any(e.employee_id == 1 for e in entries))

    def test_pending_leave_does_not_block(self):
        leave = LeaveRequest(1, 1, WEEK_START, WEEK_END, status=LeaveStatus.PENDING)
        entries, _ = generate_greedy_schedule(
            make_employees(2), [day_pattern(required=2, days=[1])], WEEK_START, WEEK_END, leaves=[leave])
        self.assertIn(1, {e.employee_id for e in entries})

    def test_weekend_preference(self):
        employees = make_employees(4)
        employees[0].preference = EmployeePreference(can_work_weekends=False)
        entries, _ = generate_greedy_schedule(employees, [day_pattern()], WEEK_START, WEEK_END)
        self.assertFalse(any(e.employee_id == 1 and is_weekend(e.date) for e in entries))

    def test_unavailable_hours(self):
        employees = make_employees(3)
        employees[0].preference = EmployeePreference(unavailable_time_slots=[10])
        entries, _ = generate_greedy_schedule(employees, [day_pattern()], WEEK_START, WEEK_END)
        self.assertFalse(any(e.employee_id == 1 for e in entries))


class TestGreedyChemistry(unittest.TestCase):

    def test_conflict_pair_kept_apart(self):
        chemistry = [ChemistryPair(1, 2, 1)]
        entries, tracker = generate_greedy_schedule(
            make_employees(4), [day_pattern()], WEEK_START, WEEK_END, chemistry=chemistry)

        per_day = defaultdict(set)
        for entry in entries:
            per_day[entry.date].add(entry.employee_id)
        for d, staff in per_day.items():
            self.assertFalse({1, 2} <= staff, f"conflict pair together on {d}")
        self.assertEqual(violations_of(tracker, "chemistry_conflict_forced"), [])

    def test_conflict_pair_forced_when_no_alternative(self):
        chemistry = [ChemistryPair(1, 2, 2)]
        entries, tracker = generate_greedy_schedule(
            make_employees(2), [day_pattern()], WEEK_START, WEEK_START, chemistry=chemistry)

        self.assertEqual({e.employee_id for e in entries}, {1, 2})
        forced = violations_of(tracker, "chemistry_conflict_forced")
        self.assertEqual(len(forced), 1)
        self.assertEqual(forced[0].severity, "medium")

    def test_conflict_check_can_be_switched_off(self):
        chemistry = [ChemistryPair(1, 2, 1)]
        constraints = GenerationConstraints(avoid_poor_chemistry=False)
        entries, tracker = generate_greedy_schedule(
            make_employees(2), [day_pattern()], WEEK_START, WEEK_START,
            chemistry=chemistry, constraints=constraints)
        self.assertEqual(len(entries), 2)
        self.assertFalse(tracker.has_violations())


class TestGreedyLimits(unittest.TestCase):

    def test_weekly_hours_limit(self):
        constraints = GenerationConstraints(max_weekly_hours=16)
        entries, tracker = generate_greedy_schedule(
            make_employees(1), [day_pattern(required=1)], WEEK_START, WEEK_END, constraints=constraints)
        self.assertEqual(len(entries), 2)
        self.assertEqual(len(violations_of(tracker, "insufficient_staff")), 5)

    def test_consecutive_days_include_history(self):
        history = [
            ScheduleEntry(1, WEEK_START - timedelta(days=i), "09:00", "17:00")
            for i in range(1, 7)
        ]
        constraints = GenerationConstraints(max_weekly_hours=100)
        entries, _ = generate_greedy_schedule(
            make_employees(1), [day_pattern(required=1)], WEEK_START, WEEK_START + timedelta(days=1),
            constraints=constraints, existing_entries=history)

        self.assertEqual([e.date for e in entries], [WEEK_START + timedelta(days=1)])

    def test_personal_consecutive_limit(self):
        employees = make_employees(1)
        employees[0].preference = EmployeePreference(max_consecutive_days=3)
        constraints = GenerationConstraints(max_weekly_hours=100)
        entries, _ = generate_greedy_schedule(
            employees, [day_pattern(required=1)], WEEK_START, WEEK_END, constraints=constraints)

        dates = sorted(e.date for e in entries)
        self.assertEqual(dates[:3], [WEEK_START + timedelta(days=i) for i in range(3)])
        self.assertNotIn(WEEK_START + timedelta(days=3), dates)

    def test_rest_after_existing_late_shift(self):
        late = ScheduleEntry(1, WEEK_START - timedelta(days=1), "14:00", "23:00")
        early = ShiftPattern(1, "Early", "06:00", "14:00", required_staff=1, days=EVERY_DAY)
        entries, tracker = generate_greedy_schedule(
            make_employees(1), [early], WEEK_START, WEEK_START + timedelta(days=1), existing_entries=[late])

        self.assertEqual([e.date for e in entries], [WEEK_START + timedelta(days=1)])
        self.assertEqual(len(violations_of(tracker, "insufficient_staff")), 1)

    def test_rest_between_generated_shifts(self):
        late = ShiftPattern(1, "Late", "14:00", "22:00", required_staff=1, days=[0])
        early = ShiftPattern(2, "Early", "06:00", "14:00", required_staff=1, days=[1])
        entries, _ = generate_greedy_schedule(
            make_employees(1), [late, early], WEEK_START, WEEK_START + timedelta(days=1))
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0].shift_pattern_id, 1)


class TestGreedyRequirementsAndModes(unittest.TestCase):

    def test_rank_minimum_prefers_qualified(self):
        employees = make_employees(3, ability=(2, 2, 2, 2, 2))
        employees.append(Employee(4, "Senior", ability=Ability(5, 5, 5, 5, 5)))
        pattern = day_pattern(required=1, days=[1], requirements=ShiftRequirements(min_rank_s=1))
        entries, tracker = generate_greedy_schedule(employees, [pattern], WEEK_START, WEEK_END)

        self.assertEqual([e.employee_id for e in entries], [4])
        self.assertEqual(violations_of(tracker, "requirement_unmet"), [])

    def test_unmet_requirement_is_recorded(self):
        pattern = day_pattern(required=1, days=[1], requirements=ShiftRequirements(min_rank_a=1))
        entries, tracker = generate_greedy_schedule(
            make_employees(2, ability=(2, 2, 2, 2, 2)), [pattern], WEEK_START, WEEK_END)

        self.assertEqual(len(entries), 1)
        unmet = violations_of(tracker, "requirement_unmet")
        self.assertEqual(len(unmet), 1)
        self.assertIn("rank A", unmet[0].description)

    def test_fill_gaps_only_adds_missing_staff(self):
        monday = WEEK_START + timedelta(days=1)
        existing = [ScheduleEntry(1, monday, "09:00", "17:00", shift_pattern_id=1)]
        entries, _ = generate_greedy_schedule(
            make_employees(3), [day_pattern(required=2, days=[1])], WEEK_START, WEEK_END,
            existing_entries=existing, mode="fill_gaps")

        self.assertEqual(len(entries), 1)
        self.assertNotEqual(entries[0].employee_id, 1)

    def test_unknown_mode_rejected(self):
        with self.assertRaises(ValueError):
            GreedyScheduler(make_employees(1), [day_pattern()], WEEK_START, WEEK_END, mode="overwrite")


if __name__ == "__main__":
    unittest.main()
