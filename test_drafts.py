"""
Tests for schedule drafts: lifecycle, activation and merging.
"""

import os
import tempfile
import unittest
from datetime import date, datetime

from db_init import Database, initialize_database
from entities import DraftItem, DraftStatus, ScheduleDraft
from drafts import (
    DraftError, DraftNotFoundError, create_draft, get_draft, list_drafts, delete_draft,
    duplicate_draft, update_draft_status, activate_draft, get_draft_stats,
    merge_drafts, preview_merge, resolve_merge
)

MONDAY = date(2024, 3, 4)
TUESDAY = date(2024, 3, 5)


def item(employee_id, day, start="09:00", end="17:00", **kwargs):
    return DraftItem(employee_id, day, start, end, **kwargs)


class TestResolveMerge(unittest.TestCase):
    """Conflict resolution on in-memory drafts"""

    def setUp(self):
        self.first = ScheduleDraft(1, "First", MONDAY, TUESDAY, items=[
            item(1, MONDAY, "06:00", "14:00", updated_at=datetime(2024, 1, 1)),
            item(2, MONDAY),
        ])
        self.second = ScheduleDraft(2, "Second", MONDAY, TUESDAY, items=[
            item(1, MONDAY, "14:00", "22:00", updated_at=datetime(2024, 2, 1)),
            item(3, TUESDAY),
        ])

    def test_priority_uses_draft_order(self):
        merged, conflicts = resolve_merge([self.first, self.second], {"conflictResolution": "priority"})
        self.assertEqual(len(conflicts), 1)
        self.assertEqual(conflicts[0]["employeeId"], 1)
        self.assertEqual(len(merged), 3)
        chosen = [i for i in merged if i.employee_id == 1]
        self.assertEqual(chosen[0].start_time, "06:00")

    def test_priority_order_option(self):
        merged, _ = resolve_merge([self.first, self.second],
                                  {"conflictResolution": "priority", "priorityOrder": [2, 1]})
        chosen = [i for i in merged if i.employee_id == 1]
        self.assertEqual(chosen[0].start_time, "14:00")

    def test_latest_wins(self):
        merged, _ = resolve_merge([self.first, self.second], {"conflictResolution": "latest"})
        chosen = [i for i in merged if i.employee_id == 1]
        self.assertEqual(chosen[0].start_time, "14:00")

    def test_combine_keeps_non_overlapping(self):
        merged, conflicts = resolve_merge([self.first, self.second], {"conflictResolution": "combine"})
        self.assertEqual(len(conflicts), 1)
        self.assertEqual(len([i for i in merged if i.employee_id == 1]), 2)

    def test_combine_falls_back_to_priority_on_overlap(self):
        self.second.items[0] = item(1, MONDAY, "10:00", "18:00")
        merged, _ = resolve_merge([self.first, self.second], {"conflictResolution": "combine"})
        chosen = [i for i in merged if i.employee_id == 1]
        self.assertEqual([i.start_time for i in chosen], ["06:00"])


class TestDraftStorage(unittest.TestCase):

    def setUp(self):
        fd, self.db_path = tempfile.mkstemp(suffix=".db")
        os.close(fd)
        initialize_database(self.db_path, with_sample_data=True)
        self.conn = Database(self.db_path).get_connection()

    def tearDown(self):
        self.conn.close()
        os.unlink(self.db_path)

    def make_draft(self, name="Week 10", items=None):
        items = items if items is not None else [item(1, MONDAY), item(2, TUESDAY)]
        return create_draft(self.conn, name, MONDAY, TUESDAY, items, created_by="tester")

    def test_create_and_get(self):
        draft = self.make_draft()
        loaded = get_draft(self.conn, draft.id)
        self.assertEqual(loaded.version, "1.0.0")
        self.assertEqual(loaded.status, DraftStatus.DRAFT)
        self.assertEqual(len(loaded.items), 2)
        self.assertEqual(loaded.items[0].date, MONDAY)
        self.assertEqual(len(list_drafts(self.conn, status="draft")), 1)

    def test_create_validation(self):
        with self.assertRaises(DraftError):
            create_draft(self.conn, " ", MONDAY, TUESDAY, [])
        with self.assertRaises(DraftError):
            create_draft(self.conn, "Backwards", TUESDAY, MONDAY, [])
        with self.assertRaises(DraftNotFoundError):
            get_draft(self.conn, 999)

    def test_duplicate_is_next_major_version(self):
        draft = self.make_draft()
        copy = duplicate_draft(self.conn, draft.id)
        self.assertEqual(copy.version, "2.0.0")
        self.assertEqual(copy.name, "Week 10 (Copy)")
        self.assertEqual(copy.based_on_draft_id, draft.id)
        self.assertEqual(len(copy.items), 2)

    def test_status_changes(self):
        draft = self.make_draft()
        archived = update_draft_status(self.conn, draft.id, "archived")
        self.assertEqual(archived.status, DraftStatus.ARCHIVED)
        self.assertIsNotNone(archived.archived_at)
        with self.assertRaises(DraftError):
            update_draft_status(self.conn, draft.id, "published")

    def test_activate_creates_schedules(self):
        draft = self.make_draft(items=[
            item(1, MONDAY), item(2, MONDAY), item(3, TUESDAY, status="excluded")
        ])
        self.conn.execute(
            "INSERT INTO Schedules (EmployeeId, Date, StartTime, EndTime) VALUES (4, ?, '06:00', '14:00')",
            (MONDAY.isoformat(),))
        self.conn.commit()

        created = activate_draft(self.conn, draft.id, replace_existing=True, user="manager")

        self.assertEqual(created, 2)
        rows = self.conn.execute("SELECT EmployeeId FROM Schedules ORDER BY EmployeeId").fetchall()
        self.assertEqual([r["EmployeeId"] for r in rows], [1, 2])
        activated = get_draft(self.conn, draft.id)
        self.assertEqual(activated.status, DraftStatus.ACTIVE)
        self.assertEqual(activated.approved_by, "manager")

        with self.assertRaises(DraftError):
            activate_draft(self.conn, draft.id)
        with self.assertRaises(DraftError):
            delete_draft(self.conn, draft.id)

    def test_delete_removes_items(self):
        draft = self.make_draft()
        delete_draft(self.conn, draft.id)
        with self.assertRaises(DraftNotFoundError):
            get_draft(self.conn, draft.id)
        count = self.conn.execute("SELECT COUNT(*) FROM ScheduleDraftItems").fetchone()[0]
        self.assertEqual(count, 0)

    def test_stats(self):
        self.make_draft()
        second = self.make_draft("Week 11", items=[item(5, MONDAY)])
        update_draft_status(self.conn, second.id, "reviewing")

        stats = get_draft_stats(self.conn)
        self.assertEqual(stats["totalDrafts"], 2)
        self.assertEqual(stats["totalItems"], 3)
        self.assertEqual(stats["byStatus"], {"draft": 1, "reviewing": 1})

    def test_merge_creates_new_draft(self):
        first = self.make_draft("A", items=[item(1, MONDAY, "06:00", "14:00"), item(2, MONDAY)])
        second = duplicate_draft(self.conn, first.id, name="B")
        self.conn.execute("UPDATE ScheduleDraftItems SET StartTime = '14:00', EndTime = '22:00' "
                          "WHERE DraftId = ? AND EmployeeId = 1", (second.id,))
        self.conn.commit()

        merged, conflicts, summary = merge_drafts(
            self.conn, [first.id, second.id], {"name": "Merged", "conflictResolution": "combine"}, "manager")

        self.assertEqual(merged.name, "Merged")
        self.assertEqual(merged.version, "3.0.0")
        self.assertEqual(len(conflicts), 2)
        # Employee 1 has two non-overlapping shifts, employee 2 the same one twice
        self.assertEqual(summary["totalItemsMerged"], 3)
        self.assertEqual(merged.metadata["mergeInfo"]["conflictsResolved"], 2)

    def test_preview_does_not_write(self):
        first = self.make_draft("A")
        second = self.make_draft("B", items=[item(1, MONDAY, "12:00", "20:00")])

        preview = preview_merge(self.conn, [first.id, second.id])

        self.assertTrue(preview["canMerge"])
        self.assertEqual(preview["summary"]["totalConflicts"], 1)
        conflict = preview["conflicts"][0]
        self.assertIsNotNone(conflict["employeeName"])
        self.assertTrue(all(i["hasTimeOverlap"] for i in conflict["conflictingItems"]))
        self.assertEqual(get_draft_stats(self.conn)["totalDrafts"], 2)

    def test_merge_needs_two_mergeable_drafts(self):
        first = self.make_draft("A")
        with self.assertRaises(DraftError):
            merge_drafts(self.conn, [first.id])

        second = self.make_draft("B")
        update_draft_status(self.conn, second.id, "archived")
        with self.assertRaises(DraftError):
            merge_drafts(self.conn, [first.id, second.id])
        with self.assertRaises(DraftError):
            preview_merge(self.conn, [first.id, 999])

    def test_merge_rejects_duplicate_ids(self):
        first = self.make_draft("A")
        with self.assertRaises(DraftError):
            merge_drafts(self.conn, [first.id, first.id])
        with self.assertRaises(DraftError):
            preview_merge(self.conn, [first.id, str(first.id)])
        self.assertEqual(get_draft_stats(self.conn)["totalDrafts"], 1)

    def test_latest_follows_most_recently_updated_draft(self):
        first = self.make_draft("A", items=[item(1, MONDAY, "06:00", "14:00")])
        second = self.make_draft("B", items=[item(1, MONDAY, "14:00", "22:00")])
        # Touching the older draft makes its shift the latest one
        update_draft_status(self.conn, first.id, "reviewing")

        merged, conflicts, _ = merge_drafts(
            self.conn, [first.id, second.id], {"conflictResolution": "latest"})

        self.assertEqual(len(conflicts), 1)
        self.assertEqual([i.start_time for i in merged.items], ["06:00"])


if __name__ == "__main__":
    unittest.main()
