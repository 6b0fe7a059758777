"""
Leave request workflow: create, review, list.

Approving a leave removes the employee's shifts inside the leave window.
"""

import json
import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from db_init import log_audit
from data_loader import row_to_leave
from entities import LeaveRequest, LeaveStatus

logger = logging.getLogger(__name__)


class LeaveError(ValueError):
    """Invalid leave request or review"""


class LeaveNotFoundError(LookupError):
    pass


def get_leave(conn, leave_id: int) -> LeaveRequest:
    row = conn.execute("SELECT * FROM LeaveRequests WHERE Id = ?", (leave_id,)).fetchone()
    if not row:
        raise LeaveNotFoundError(f"Leave request {leave_id} not found")
    return row_to_leave(row)


def list_leaves(conn, status: Optional[str] = None, employee_id: Optional[int] = None) -> List[LeaveRequest]:
    """List leave requests, newest start date first"""
    query = "SELECT * FROM LeaveRequests WHERE 1=1"
    params: list = []
    if status:
        query += " AND Status = ?"
        params.append(LeaveStatus(status).value)
    if employee_id is not None:
        query += " AND EmployeeId = ?"
        params.append(employee_id)
    query += " ORDER BY StartDate DESC, Id DESC"
    return [row_to_leave(row) for row in conn.execute(query, params).fetchall()]


def create_leave_request(
    conn,
    employee_id: int,
    start_date: date,
    end_date: date,
    leave_type: str = "annual",
    reason: Optional[str] = None
) -> LeaveRequest:
    """
    Create a pending leave request.

    Raises:
        LeaveError: start after end, unknown employee, empty type or
                    overlap with another pending/approved leave
    """
    if start_date > end_date:
        raise LeaveError("Start date must not be after end date")
    if not leave_type or not leave_type.strip():
        raise LeaveError("Leave type is required")

    employee = conn.execute("SELECT Id FROM Employees WHERE Id = ?", (employee_id,)).fetchone()
    if not employee:
        raise LeaveError(f"Employee {employee_id} not found")

    overlapping = conn.execute("""
        SELECT Id FROM LeaveRequests
        WHERE EmployeeId = ? AND Status != 'rejected'
          AND StartDate <= ? AND EndDate >= ?
    """, (employee_id, end_date.isoformat(), start_date.isoformat())).fetchone()
    if overlapping:
        raise LeaveError(f"Leave overlaps existing request {overlapping['Id']}")

    cursor = conn.execute("""
        INSERT INTO LeaveRequests (EmployeeId, Type, StartDate, EndDate, Reason, Status, CreatedAt)
        VALUES (?, ?, ?, ?, ?, 'pending', ?)
    """, (employee_id, leave_type, start_date.isoformat(), end_date.isoformat(), reason,
          datetime.now(timezone.utc).isoformat()))
    conn.commit()

    logger.info("Leave request %s created for employee %s (%s to %s)",
                cursor.lastrowid, employee_id, start_date, end_date)
    return get_leave(conn, cursor.lastrowid)


def _review(conn, leave_id: int, status: LeaveStatus, reviewed_by: Optional[str],
            comment: Optional[str]) -> LeaveRequest:
    leave = get_leave(conn, leave_id)
    if leave.status != LeaveStatus.PENDING:
        raise LeaveError(f"Leave request {leave_id} is already {leave.status.value}")

    conn.execute("""
        UPDATE LeaveRequests
        SET Status = ?, AdminComment = ?, ReviewedBy = ?, ReviewedAt = ?
        WHERE Id = ?
    """, (status.value, comment, reviewed_by, datetime.now(timezone.utc).isoformat(), leave_id))
    return leave


def approve_leave(conn, leave_id: int, reviewed_by: Optional[str] = None,
                  comment: Optional[str] = None) -> int:
    """
    Approve a pending leave and remove the employee's shifts inside it.

    Returns:
        Number of removed schedule entries
    """
    leave = _review(conn, leave_id, LeaveStatus.APPROVED, reviewed_by, comment)

    cursor = conn.execute("""
        DELETE FROM Schedules
        WHERE EmployeeId = ? AND Date >= ? AND Date <= ?
    """, (leave.employee_id, leave.start_date.isoformat(), leave.end_date.isoformat()))
    removed = cursor.rowcount

    log_audit(conn, "LeaveRequest", leave_id, "Approve",
              json.dumps({"employeeId": leave.employee_id, "removedSchedules": removed, "comment": comment}),
              reviewed_by)
    conn.commit()

    logger.info("Leave request %s approved, %d shifts removed", leave_id, removed)
    return removed


def reject_leave(conn, leave_id: int, reviewed_by: Optional[str] = None,
                 comment: Optional[str] = None) -> LeaveRequest:
    _review(conn, leave_id, LeaveStatus.REJECTED, reviewed_by, comment)
    log_audit(conn, "LeaveRequest", leave_id, "Reject", json.dumps({"comment": comment}), reviewed_by)
    conn.commit()

    logger.info("Leave request %s rejected", leave_id)
    return get_leave(conn, leave_id)
