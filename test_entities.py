"""
Tests for the scheduling data models and time helpers.
"""

import unittest
from datetime import date, timedelta

from entities import (
    Ability, Employee, EmployeePreference, ChemistryPair, ShiftPattern, ShiftRequirements,
    ScheduleEntry, ScheduleDraft, DraftItem, LeaveRequest, GenerationConstraints,
    OperatingHoursTemplate, calculate_rank, calculate_shift_hours, determine_shift_type,
    is_time_overlap, sunday_weekday, week_start, is_weekend, minutes_to_time
)


class TestTimeHelpers(unittest.TestCase):

    def test_overnight_shift_hours(self):
        self.assertEqual(calculate_shift_hours("22:00", "06:00"), 8.0)
        self.assertEqual(calculate_shift_hours("09:00", "17:30"), 8.5)

    def test_sunday_based_week(self):
        sunday = date(2024, 1, 7)
        self.assertEqual(sunday_weekday(sunday), 0)
        self.assertEqual(sunday_weekday(date(2024, 1, 13)), 6)
        self.assertEqual(week_start(date(2024, 1, 10)), sunday)
        self.assertEqual(week_start(sunday), sunday)
        self.assertTrue(is_weekend(date(2024, 1, 13)))
        self.assertFalse(is_weekend(date(2024, 1, 8)))

    def test_overlap_handles_overnight(self):
        self.assertTrue(is_time_overlap("22:00", "06:00", "23:00", "23:30"))
        self.assertFalse(is_time_overlap("06:00", "14:00", "14:00", "22:00"))

    def test_minutes_wrap(self):
        self.assertEqual(minutes_to_time(25 * 60 + 5), "01:05")

    def test_shift_type_classification(self):
        self.assertEqual(determine_shift_type("22:00", "06:00"), "night")
        self.assertEqual(determine_shift_type("06:00", "14:00"), "early")
        self.assertEqual(determine_shift_type("14:00", "22:00"), "late")
        self.assertEqual(determine_shift_type("09:00", "17:00"), "regular")


class TestAbilityAndRank(unittest.TestCase):

    def test_rank_boundaries(self):
        self.assertEqual(calculate_rank(25), "S")
        self.assertEqual(calculate_rank(23), "S")
        self.assertEqual(calculate_rank(22), "A")
        self.assertEqual(calculate_rank(20), "A")
        self.assertEqual(calculate_rank(19), "B")
        self.assertEqual(calculate_rank(16), "B")
        self.assertEqual(calculate_rank(15), "C")
        self.assertEqual(calculate_rank(11), "C")
        self.assertEqual(calculate_rank(10), "D")
        self.assertEqual(calculate_rank(5), "D")

    def test_ability_totals(self):
        ability = Ability(5, 5, 4, 4, 4)
        self.assertEqual(ability.total_score, 22)
        self.assertEqual(ability.rank, "A")
        data = ability.to_dict()
        self.assertEqual(data["totalScore"], 22)
        self.assertEqual(data["rank"], "A")

    def test_ability_out_of_range(self):
        with self.assertRaises(ValueError):
            Ability(6, 3, 3, 3, 3)
        with self.assertRaises(ValueError):
            Ability.from_dict({"workSkill": 0})

    def test_rank_at_least(self):
        emp = Employee(1, "A", ability=Ability(4, 4, 4, 4, 4))  # 20 -> A
        self.assertTrue(emp.rank_at_least("A"))
        self.assertTrue(emp.rank_at_least("C"))
        self.assertFalse(emp.rank_at_least("S"))
        self.assertFalse(Employee(2, "No ability").rank_at_least("D"))

    def test_years_of_service(self):
        emp = Employee(1, "A", hire_date=date(2020, 1, 1))
        self.assertAlmostEqual(emp.years_of_service(date(2024, 1, 1)), 4.0, places=2)
        self.assertEqual(Employee(2, "B").years_of_service(date(2024, 1, 1)), 0.0)

    def test_preference_from_dict_lowercases_days(self):
        pref = EmployeePreference.from_dict({"preferDays": ["Monday"], "canWorkWeekends": False})
        self.assertEqual(pref.prefer_days, ["monday"])
        self.assertFalse(pref.can_work_weekends)
        self.assertIsNone(pref.max_consecutive_days)


class TestChemistryPair(unittest.TestCase):

    def test_smaller_id_first(self):
        pair = ChemistryPair(7, 3, 2)
        self.assertEqual((pair.employee1_id, pair.employee2_id), (3, 7))
        self.assertTrue(pair.involves(7, 3))

    def test_conflict_threshold(self):
        self.assertTrue(ChemistryPair(1, 2, 2).is_conflict)
        self.assertFalse(ChemistryPair(1, 2, 3).is_conflict)

    def test_invalid_pairs(self):
        with self.assertRaises(ValueError):
            ChemistryPair(1, 1, 3)
        with self.assertRaises(ValueError):
            ChemistryPair(1, 2, 6)


class TestShiftPattern(unittest.TestCase):

    def test_from_dict_accepts_alternate_keys(self):
        pattern = ShiftPattern.from_dict({
            "name": "Late", "start": "14:00", "end": "22:00",
            "staffRequired": 3, "daysOfWeek": [0, 6],
            "requirements": {"minRankA": 1, "experienceLevels": {"5": 1, "2": 0}},
        })
        self.assertEqual(pattern.start_time, "14:00")
        self.assertEqual(pattern.required_staff, 3)
        self.assertEqual(pattern.days, [0, 6])
        self.assertEqual(pattern.requirements.rank_minimums(), {"A": 1})
        self.assertEqual(pattern.requirements.experience_levels, {5: 1})
        self.assertTrue(pattern.applies_on(date(2024, 1, 7)))
        self.assertFalse(pattern.applies_on(date(2024, 1, 8)))

    def test_invalid_time_rejected(self):
        with self.assertRaises(ValueError):
            ShiftPattern(None, "Broken", "25:00", "06:00")
        with self.assertRaises(ValueError):
            ShiftPattern(None, "No days", "06:00", "14:00", days=[])

    def test_night_shift_hours(self):
        night = ShiftPattern(1, "Night", "22:00", "02:00")
        self.assertTrue(night.is_night_shift)
        self.assertEqual(night.covered_hours(), [22, 23, 0, 1])
        self.assertEqual(night.duration_minutes, 240)

    def test_empty_requirements(self):
        self.assertTrue(ShiftRequirements().is_empty())
        self.assertFalse(ShiftRequirements(min_rank_s=1).is_empty())


class TestScheduleObjects(unittest.TestCase):

    def test_overnight_entry_overlaps_next_morning(self):
        night = ScheduleEntry(1, date(2024, 1, 8), "22:00", "06:00")
        morning = ScheduleEntry(1, date(2024, 1, 9), "05:00", "13:00")
        later = ScheduleEntry(1, date(2024, 1, 9), "06:00", "14:00")
        self.assertTrue(night.overlaps(morning))
        self.assertFalse(night.overlaps(later))

    def test_leave_created_at_is_utc(self):
        leave = LeaveRequest(1, 1, date(2024, 1, 8), date(2024, 1, 8))
        self.assertEqual(leave.created_at.utcoffset(), timedelta(0))

    def test_leave_ranges_are_inclusive(self):
        leave = LeaveRequest(1, 1, date(2024, 1, 8), date(2024, 1, 10))
        self.assertTrue(leave.overlaps_date(date(2024, 1, 10)))
        self.assertFalse(leave.overlaps_date(date(2024, 1, 11)))
        self.assertTrue(leave.overlaps_range(date(2024, 1, 10), date(2024, 1, 20)))

    def test_draft_versions(self):
        draft = ScheduleDraft(1, "Week 2", date(2024, 1, 7), date(2024, 1, 13), version="3.0.0")
        self.assertEqual(draft.major_version, 3)
        self.assertEqual(draft.next_version(), "4.0.0")
        self.assertNotIn("items", draft.to_dict(include_items=False))

    def test_draft_item_from_dict(self):
        item = DraftItem.from_dict({
            "employeeId": "4", "date": "2024-01-08", "startTime": "09:00", "endTime": "17:00"
        })
        self.assertEqual(item.employee_id, 4)
        self.assertEqual(item.date, date(2024, 1, 8))
        self.assertEqual(item.status, "planned")

    def test_constraints_from_dict_defaults(self):
        constraints = GenerationConstraints.from_dict({"maxWeeklyHours": 40})
        self.assertEqual(constraints.max_weekly_hours, 40.0)
        self.assertEqual(constraints.max_consecutive_days, 6)
        self.assertEqual(constraints.to_dict()["maxWeeklyHours"], 40.0)

    def test_template_required_staff(self):
        template = OperatingHoursTemplate.from_dict({
            "templateName": "Shop",
            "dailyHours": [{
                "dayOfWeek": 1, "openTime": "08:00", "closeTime": "18:00", "minStaff": 2,
                "timeSlots": [{"hourSlot": 12, "requiredStaff": 4}],
            }],
        })
        monday = template.get_day(1)
        self.assertEqual(template.name, "Shop")
        self.assertEqual(monday.required_staff_at(12), 4)
        self.assertEqual(monday.required_staff_at(9), 2)
        self.assertIsNone(template.get_day(0))


if __name__ == "__main__":
    unittest.main()
