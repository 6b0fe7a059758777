"""
Data loader for the workforce scheduler.
Generates sample data or loads employees, patterns, leaves and schedules from the database.
"""

import json
import sqlite3
from datetime import date, datetime, timedelta
from typing import List, Tuple, Optional

from entities import (
    Ability, EmployeePreference, Employee, ChemistryPair, LeaveRequest, LeaveStatus,
    ShiftPattern, ShiftRequirements, ScheduleEntry, OperatingHoursTemplate, DailyHours
)


def generate_sample_data(reference_date: Optional[date] = None) -> Tuple[
        List[Employee], List[ShiftPattern], List[LeaveRequest], List[ChemistryPair]]:
    """
    Generate sample data for testing the scheduler without a database.

    Returns:
        Tuple of (employees, patterns, approved_leaves, chemistry_pairs)
    """
    reference_date = reference_date or date.today()

    def hired(years: int) -> date:
        return reference_date - timedelta(days=int(years * 365.25))

    employees = [
        Employee(1, "Alice Carter", department="Front", position="Supervisor", hire_date=hired(10),
                 ability=Ability(5, 5, 5, 4, 5),
                 preference=EmployeePreference(prefer_days=["monday", "tuesday"], can_work_night_shifts=False)),
        Employee(2, "Ben Ortiz", department="Front", position="Senior Clerk", hire_date=hired(8),
                 ability=Ability(5, 4, 4, 4, 4),
                 preference=EmployeePreference(avoid_days=["sunday"])),
        Employee(3, "Chloe Nguyen", department="Front", position="Clerk", hire_date=hired(5),
                 ability=Ability(4, 3, 4, 4, 3),
                 preference=EmployeePreference(preferred_time_slots=[9, 10, 11])),
        Employee(4, "Daniel Kim", department="Front", position="Clerk", hire_date=hired(3),
                 ability=Ability(3, 3, 3, 4, 3),
                 preference=EmployeePreference(can_work_weekends=False)),
        Employee(5, "Eva Rossi", department="Front", position="Trainee", hire_date=hired(1),
                 ability=Ability(2, 1, 3, 3, 2)),
        Employee(6, "Farid Haddad", department="Back", position="Lead", hire_date=hired(11),
                 ability=Ability(5, 5, 4, 5, 4),
                 preference=EmployeePreference(prefer_days=["saturday", "sunday"])),
        Employee(7, "Grace Lee", department="Back", position="Operator", hire_date=hired(7),
                 ability=Ability(4, 4, 3, 3, 4),
                 preference=EmployeePreference(max_consecutive_days=4)),
        Employee(8, "Hugo Martin", department="Back", position="Operator", hire_date=hired(4),
                 ability=Ability(3, 3, 3, 3, 3),
                 preference=EmployeePreference(unavailable_time_slots=[6, 7])),
        Employee(9, "Ines Costa", department="Back", position="Operator", hire_date=hired(2),
                 ability=Ability(3, 2, 3, 2, 3),
                 preference=EmployeePreference(avoid_days=["friday"])),
        Employee(10, "Jonas Berg", department="Back", position="Trainee", hire_date=hired(0),
                 ability=Ability(2, 1, 2, 2, 2),
                 preference=EmployeePreference(can_work_night_shifts=False)),
    ]

    every_day = [0, 1, 2, 3, 4, 5, 6]
    patterns = [
        ShiftPattern(1, "Morning", "06:00", "14:00", required_staff=2, days=every_day, color="#10B981",
                     requirements=ShiftRequirements(min_rank_a=1)),
        ShiftPattern(2, "Evening", "14:00", "22:00", required_staff=2, days=every_day, color="#F59E0B",
                     requirements=ShiftRequirements(experience_levels={3: 1})),
        ShiftPattern(3, "Night", "22:00", "06:00", required_staff=1, days=[1, 2, 3, 4, 5], color="#6366F1"),
    ]

    leaves = [
        LeaveRequest(1, employee_id=3, start_date=reference_date + timedelta(days=2),
                     end_date=reference_date + timedelta(days=4), status=LeaveStatus.APPROVED),
        LeaveRequest(2, employee_id=7, start_date=reference_date + timedelta(days=8),
                     end_date=reference_date + timedelta(days=9), leave_type="sick",
                     status=LeaveStatus.APPROVED),
    ]

    chemistry = [
        ChemistryPair(3, 4, score=1, notes="Repeated disputes at the front desk"),
        ChemistryPair(1, 2, score=5),
    ]

    return employees, patterns, leaves, chemistry


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value.replace(" ", "T"))


def row_to_employee(row) -> Employee:
    """
    Build an Employee from a joined Employees/EmployeeAbilities/EmployeePreferences row.
    Ability and preference stay None when the employee has no row in those tables.
    """
    ability = None
    if row["WorkSkill"] is not None:
        ability = Ability(
            work_skill=row["WorkSkill"],
            experience=row["Experience"],
            customer_service=row["CustomerService"],
            flexibility=row["Flexibility"],
            team_chemistry=row["TeamChemistry"],
        )

    preference = None
    if row["CanWorkWeekends"] is not None:
        preference = EmployeePreference(
            prefer_days=json.loads(row["PreferDays"] or "[]"),
            avoid_days=json.loads(row["AvoidDays"] or "[]"),
            preferred_time_slots=json.loads(row["PreferredTimeSlots"] or "[]"),
            unavailable_time_slots=json.loads(row["UnavailableTimeSlots"] or "[]"),
            can_work_weekends=bool(row["CanWorkWeekends"]),
            can_work_night_shifts=bool(row["CanWorkNightShifts"]),
            max_consecutive_days=row["MaxConsecutiveDays"],
        )

    return Employee(
        id=row["Id"],
        name=row["Name"],
        email=row["Email"],
        department=row["Department"],
        position=row["Position"],
        hire_date=date.fromisoformat(row["HireDate"]) if row["HireDate"] else None,
        ability=ability,
        preference=preference,
    )


EMPLOYEE_SELECT = """
    SELECT e.Id, e.Name, e.Email, e.Department, e.Position, e.HireDate,
           a.WorkSkill, a.Experience, a.CustomerService, a.Flexibility, a.TeamChemistry,
           p.PreferDays, p.AvoidDays, p.PreferredTimeSlots, p.UnavailableTimeSlots,
           p.CanWorkWeekends, p.CanWorkNightShifts, p.MaxConsecutiveDays
    FROM Employees e
    LEFT JOIN EmployeeAbilities a ON a.EmployeeId = e.Id
    LEFT JOIN EmployeePreferences p ON p.EmployeeId = e.Id
"""


def row_to_pattern(row) -> ShiftPattern:
    return ShiftPattern(
        id=row["Id"],
        name=row["Name"],
        start_time=row["StartTime"],
        end_time=row["EndTime"],
        required_staff=row["RequiredStaff"],
        days=json.loads(row["Days"] or "[]"),
        color=row["Color"],
        enabled=bool(row["IsEnabled"]),
        requirements=ShiftRequirements.from_dict(json.loads(row["Requirements"] or "{}")),
    )


def row_to_leave(row) -> LeaveRequest:
    return LeaveRequest(
        id=row["Id"],
        employee_id=row["EmployeeId"],
        start_date=date.fromisoformat(row["StartDate"]),
        end_date=date.fromisoformat(row["EndDate"]),
        leave_type=row["Type"],
        reason=row["Reason"],
        status=LeaveStatus(row["Status"]),
        admin_comment=row["AdminComment"],
        reviewed_by=row["ReviewedBy"],
        reviewed_at=_parse_dt(row["ReviewedAt"]),
        created_at=_parse_dt(row["CreatedAt"]),
    )


def row_to_schedule(row) -> ScheduleEntry:
    return ScheduleEntry(
        id=row["Id"],
        employee_id=row["EmployeeId"],
        date=date.fromisoformat(row["Date"]),
        start_time=row["StartTime"],
        end_time=row["EndTime"],
        shift_type=row["ShiftType"],
        shift_pattern_id=row["ShiftPatternId"],
        status=row["Status"],
        notes=row["Notes"],
    )


def _connect(db_path: str):
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def load_from_database(db_path: str, department: Optional[str] = None,
                       employee_ids: Optional[List[int]] = None) -> Tuple[
        List[Employee], List[ShiftPattern], List[LeaveRequest], List[ChemistryPair]]:
    """
    Load scheduling data from SQLite database.

    Args:
        db_path: Path to the SQLite database file
        department: Only load active employees of this department
        employee_ids: Only load these employees

    Returns:
        Tuple of (employees, patterns, approved_leaves, chemistry_pairs).
        Patterns include disabled ones; leaves and chemistry are limited to the loaded employees.
    """
    conn = _connect(db_path)
    cursor = conn.cursor()

    query = EMPLOYEE_SELECT + " WHERE e.IsActive = 1"
    params: list = []
    if department:
        query += " AND e.Department = ?"
        params.append(department)
    if employee_ids:
        query += f" AND e.Id IN ({','.join('?' * len(employee_ids))})"
        params.extend(employee_ids)
    query += " ORDER BY e.Id"

    cursor.execute(query, params)
    employees = [row_to_employee(row) for row in cursor.fetchall()]
    loaded_ids = {emp.id for emp in employees}

    cursor.execute("SELECT * FROM ShiftPatterns ORDER BY Id")
    patterns = [row_to_pattern(row) for row in cursor.fetchall()]

    cursor.execute("SELECT * FROM LeaveRequests WHERE Status = 'approved' ORDER BY StartDate")
    leaves = [row_to_leave(row) for row in cursor.fetchall() if row["EmployeeId"] in loaded_ids]

    cursor.execute("SELECT Id, Employee1Id, Employee2Id, Score, Notes FROM EmployeeChemistry")
    chemistry = []
    for row in cursor.fetchall():
        if row["Employee1Id"] in loaded_ids and row["Employee2Id"] in loaded_ids:
            chemistry.append(ChemistryPair(
                employee1_id=row["Employee1Id"],
                employee2_id=row["Employee2Id"],
                score=row["Score"],
                notes=row["Notes"],
                id=row["Id"],
            ))

    conn.close()

    return employees, patterns, leaves, chemistry


def get_existing_schedules(db_path: str, start_date: date, end_date: date,
                           employee_ids: Optional[List[int]] = None) -> List[ScheduleEntry]:
    """
    Load existing schedule entries from database for a date range.

    Args:
        db_path: Path to the SQLite database file
        start_date: Start date of the range
        end_date: End date of the range
        employee_ids: Optional filter on employees

    Returns:
        List of existing schedule entries
    """
    conn = _connect(db_path)
    cursor = conn.cursor()

    query = "SELECT * FROM Schedules WHERE Date >= ? AND Date <= ?"
    params: list = [start_date.isoformat(), end_date.isoformat()]
    if employee_ids:
        query += f" AND EmployeeId IN ({','.join('?' * len(employee_ids))})"
        params.extend(employee_ids)
    query += " ORDER BY Date, StartTime"

    cursor.execute(query, params)
    entries = [row_to_schedule(row) for row in cursor.fetchall()]

    conn.close()

    return entries


def row_to_template(row) -> OperatingHoursTemplate:
    return OperatingHoursTemplate(
        id=row["Id"],
        name=row["Name"],
        description=row["Description"],
        is_default=bool(row["IsDefault"]),
        timezone=row["Timezone"],
        daily_hours=[DailyHours.from_dict(day) for day in json.loads(row["DailyHours"] or "[]")],
    )


def load_operating_hours_template(db_path: str,
                                  template_id: Optional[int] = None) -> Optional[OperatingHoursTemplate]:
    """Load a template by id, or the default template when no id is given"""
    conn = _connect(db_path)
    cursor = conn.cursor()

    if template_id is not None:
        cursor.execute("SELECT * FROM OperatingHoursTemplates WHERE Id = ?", (template_id,))
    else:
        cursor.execute("SELECT * FROM OperatingHoursTemplates ORDER BY IsDefault DESC, Id LIMIT 1")
    row = cursor.fetchone()
    conn.close()

    return row_to_template(row) if row else None


if __name__ == "__main__":
    employees, patterns, leaves, chemistry = generate_sample_data()

    print(f"Generated {len(employees)} employees, {len(patterns)} shift patterns")
    print(f"Generated {len(leaves)} approved leaves, {len(chemistry)} chemistry ratings")

    for emp in employees:
        print(f"  - {emp.name} ({emp.department}, rank {emp.rank})")
