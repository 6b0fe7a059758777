"""
Tests for the leave request workflow.
"""

import os
import tempfile
import unittest
from datetime import date, timedelta

from db_init import Database, initialize_database
from entities import LeaveStatus
from leaves import (
    LeaveError, LeaveNotFoundError, create_leave_request, approve_leave, reject_leave,
    get_leave, list_leaves
)


class TestLeaveWorkflow(unittest.TestCase):

    def setUp(self):
        fd, self.db_path = tempfile.mkstemp(suffix=".db")
        os.close(fd)
        initialize_database(self.db_path, with_sample_data=True)
        self.conn = Database(self.db_path).get_connection()

    def tearDown(self):
        self.conn.close()
        os.unlink(self.db_path)

    def add_shift(self, employee_id, day):
        self.conn.execute("""
            INSERT INTO Schedules (EmployeeId, Date, StartTime, EndTime)
            VALUES (?, ?, '09:00', '17:00')
        """, (employee_id, day.isoformat()))
        self.conn.commit()

    def test_new_request_is_pending(self):
        leave = create_leave_request(self.conn, 1, date(2024, 3, 4), date(2024, 3, 8), "annual", "Trip")
        self.assertEqual(leave.status, LeaveStatus.PENDING)
        self.assertEqual(leave.reason, "Trip")
        self.assertEqual(get_leave(self.conn, leave.id).employee_id, 1)

    def test_invalid_requests_rejected(self):
        with self.assertRaises(LeaveError):
            create_leave_request(self.conn, 1, date(2024, 3, 8), date(2024, 3, 4))
        with self.assertRaises(LeaveError):
            create_leave_request(self.conn, 999, date(2024, 3, 4), date(2024, 3, 8))
        with self.assertRaises(LeaveError):
            create_leave_request(self.conn, 1, date(2024, 3, 4), date(2024, 3, 8), "  ")

    def test_overlapping_request_rejected(self):
        create_leave_request(self.conn, 1, date(2024, 3, 4), date(2024, 3, 8))
        with self.assertRaises(LeaveError):
            create_leave_request(self.conn, 1, date(2024, 3, 8), date(2024, 3, 12))
        # Other employees are unaffected
        create_leave_request(self.conn, 2, date(2024, 3, 4), date(2024, 3, 8))

    def test_rejected_leave_frees_the_dates(self):
        first = create_leave_request(self.conn, 1, date(2024, 3, 4), date(2024, 3, 8))
        reject_leave(self.conn, first.id, "manager", "Busy week")
        second = create_leave_request(self.conn, 1, date(2024, 3, 4), date(2024, 3, 8))
        self.assertNotEqual(first.id, second.id)

    def test_approve_removes_shifts_inside_window(self):
        self.add_shift(1, date(2024, 3, 3))
        self.add_shift(1, date(2024, 3, 4))
        self.add_shift(1, date(2024, 3, 8))
        self.add_shift(2, date(2024, 3, 5))

        leave = create_leave_request(self.conn, 1, date(2024, 3, 4), date(2024, 3, 8))
        removed = approve_leave(self.conn, leave.id, "manager")

        self.assertEqual(removed, 2)
        remaining = self.conn.execute("SELECT EmployeeId, Date FROM Schedules ORDER BY Date").fetchall()
        self.assertEqual([(r["EmployeeId"], r["Date"]) for r in remaining],
                         [(1, "2024-03-03"), (2, "2024-03-05")])

        approved = get_leave(self.conn, leave.id)
        self.assertEqual(approved.status, LeaveStatus.APPROVED)
        self.assertEqual(approved.reviewed_by, "manager")
        self.assertEqual(approved.reviewed_at.utcoffset(), timedelta(0))

        audit = self.conn.execute(
            "SELECT * FROM AuditLogs WHERE EntityName = 'LeaveRequest' AND Action = 'Approve'"
        ).fetchall()
        self.assertEqual(len(audit), 1)
        self.assertEqual(audit[0]["EntityId"], str(leave.id))

    def test_review_only_once(self):
        leave = create_leave_request(self.conn, 3, date(2024, 3, 4), date(2024, 3, 4))
        approve_leave(self.conn, leave.id)
        with self.assertRaises(LeaveError):
            reject_leave(self.conn, leave.id)
        with self.assertRaises(LeaveError):
            approve_leave(self.conn, leave.id)

    def test_missing_leave(self):
        with self.assertRaises(LeaveNotFoundError):
            approve_leave(self.conn, 12345)

    def test_list_filters(self):
        first = create_leave_request(self.conn, 1, date(2024, 3, 4), date(2024, 3, 8))
        create_leave_request(self.conn, 2, date(2024, 4, 1), date(2024, 4, 2), "sick")
        approve_leave(self.conn, first.id)

        self.assertEqual([lv.id for lv in list_leaves(self.conn, status="approved")], [first.id])
        self.assertEqual(len(list_leaves(self.conn, employee_id=2)), 1)
        # Newest start date first
        self.assertEqual([lv.employee_id for lv in list_leaves(self.conn)], [2, 1])
        with self.assertRaises(ValueError):
            list_leaves(self.conn, status="unknown")


if __name__ == "__main__":
    unittest.main()
