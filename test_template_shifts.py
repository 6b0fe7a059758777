"""
Tests for deriving shift patterns from operating hours templates.
"""

import unittest

from entities import DailyHours, OperatingHoursTemplate, TimeSlot
from template_shifts import effective_daily_hours, shifts_for_day, template_to_patterns


def windows(shifts):
    return [(s["startTime"], s["endTime"], s["requiredStaff"]) for s in shifts]


class TestShiftsForDay(unittest.TestCase):

    def setUp(self):
        self.plain = DailyHours(1, open_time="08:00", close_time="20:00", min_staff=3)
        self.peak = DailyHours(1, open_time="08:00", close_time="20:00", min_staff=2, time_slots=[
            TimeSlot(12, 3, priority="high"),
            TimeSlot(13, 3, priority="high"),
        ])

    def test_closed_day_has_no_shifts(self):
        for level in ("basic", "standard", "advanced"):
            self.assertEqual(shifts_for_day(DailyHours(0, is_open=False), level), [])

    def test_basic_covers_opening_hours(self):
        self.assertEqual(windows(shifts_for_day(self.plain, "basic")), [("08:00", "20:00", 3)])
        self.assertEqual(windows(shifts_for_day(DailyHours(1), "basic")), [("09:00", "18:00", 1)])

    def test_standard_splits_at_midday(self):
        self.assertEqual(windows(shifts_for_day(self.plain, "standard")), [
            ("08:00", "14:00", 2),
            ("14:00", "20:00", 3),
        ])

    def test_standard_groups_time_slots(self):
        shifts = shifts_for_day(self.peak, "standard")
        self.assertEqual(windows(shifts), [
            ("08:00", "12:00", 2),
            ("12:00", "14:00", 3),
            ("14:00", "20:00", 2),
        ])
        self.assertEqual(shifts[1]["priority"], "high")

    def test_advanced_overlaps_without_slots(self):
        self.assertEqual(windows(shifts_for_day(self.plain, "advanced")), [
            ("08:00", "14:00", 3),
            ("11:00", "17:00", 3),
            ("14:00", "20:00", 3),
            ("17:00", "20:00", 3),
        ])

    def test_advanced_lengths_follow_priority(self):
        self.assertEqual(windows(shifts_for_day(self.peak, "advanced")), [
            ("08:00", "12:00", 2),
            ("12:00", "17:00", 3),
            ("17:00", "20:00", 2),
        ])

    def test_overnight_opening(self):
        night = DailyHours(5, open_time="20:00", close_time="04:00", min_staff=2)
        self.assertEqual(windows(shifts_for_day(night, "standard")), [
            ("20:00", "00:00", 2),
            ("00:00", "04:00", 2),
        ])

    def test_unknown_level(self):
        with self.assertRaises(ValueError):
            shifts_for_day(self.plain, "extreme")


class TestTemplateToPatterns(unittest.TestCase):

    def setUp(self):
        self.template = OperatingHoursTemplate(1, "Shop", daily_hours=[
            DailyHours(0, is_open=False),
            DailyHours(1, open_time="09:00", close_time="17:00", min_staff=2),
            DailyHours(2, open_time="09:00", close_time="17:00", min_staff=2),
            DailyHours(6, open_time="10:00", close_time="14:00", min_staff=1),
        ])

    def test_same_shift_on_several_days_is_one_pattern(self):
        patterns = template_to_patterns(self.template, "basic")
        self.assertEqual([(p.name, p.days, p.required_staff) for p in patterns], [
            ("Shop 09:00-17:00", [1, 2], 2),
            ("Shop 10:00-14:00", [6], 1),
        ])
        self.assertEqual([p.id for p in patterns], [-1, -2])

    def test_override_settings_apply_to_every_day(self):
        patterns = template_to_patterns(self.template, "basic",
                                        {"openTime": "07:00", "closeTime": "15:00", "minStaff": "4"})
        self.assertEqual(len(patterns), 1)
        self.assertEqual((patterns[0].start_time, patterns[0].end_time), ("07:00", "15:00"))
        self.assertEqual(patterns[0].days, [1, 2, 6])
        self.assertEqual(patterns[0].required_staff, 4)

    def test_invalid_overrides(self):
        with self.assertRaises(ValueError):
            effective_daily_hours(self.template.daily_hours[1], {"closeTime": "5pm"})
        with self.assertRaises(ValueError):
            template_to_patterns(self.template, "maximal")


if __name__ == "__main__":
    unittest.main()
