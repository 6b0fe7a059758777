"""
Database initialization for the workforce scheduler.
Creates all necessary tables and initializes with sample data if needed.
"""

import sqlite3
import json
import sys
from datetime import datetime, timezone
from typing import Optional


class Database:
    """Database connection helper"""

    def __init__(self, db_path: str):
        self.db_path = db_path

    def get_connection(self):
        """Get database connection"""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn


def log_audit(conn, entity_name: str, entity_id, action: str, changes: Optional[str] = None,
              user_name: Optional[str] = None):
    """
    Log an audit entry to the AuditLogs table.

    Args:
        conn: Database connection (must be already opened)
        entity_name: Name of the entity (e.g., 'LeaveRequest', 'ScheduleDraft', 'Schedule')
        entity_id: ID of the entity being modified
        action: Action performed (e.g., 'Approve', 'Activate', 'Merge', 'Generate')
        changes: Optional JSON string with details of changes
        user_name: Optional name of the acting user

    Audit logging failures are reported but do not fail the main operation.
    """
    try:
        conn.execute("""
            INSERT INTO AuditLogs (Timestamp, UserName, EntityName, EntityId, Action, Changes)
            VALUES (?, ?, ?, ?, ?, ?)
        """, (
            datetime.now(timezone.utc).isoformat(),
            user_name,
            entity_name,
            str(entity_id),
            action,
            changes
        ))
    except sqlite3.Error as e:
        print(f"Warning: Failed to log audit entry: {e}", file=sys.stderr)


def create_database_schema(db_path: str = "scheduler.db"):
    """
    Create all database tables.

    Args:
        db_path: Path to SQLite database file
    """
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    # Employees table
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS Employees (
            Id INTEGER PRIMARY KEY AUTOINCREMENT,
            Name TEXT NOT NULL,
            Email TEXT,
            Department TEXT,
            Position TEXT,
            HireDate TEXT,
            IsActive INTEGER NOT NULL DEFAULT 1,
            CreatedAt TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """)

    # Ability scores (1-5 each), one row per employee
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS EmployeeAbilities (
            EmployeeId INTEGER PRIMARY KEY,
            WorkSkill INTEGER NOT NULL DEFAULT 3 CHECK (WorkSkill BETWEEN 1 AND 5),
            Experience INTEGER NOT NULL DEFAULT 3 CHECK (Experience BETWEEN 1 AND 5),
            CustomerService INTEGER NOT NULL DEFAULT 3 CHECK (CustomerService BETWEEN 1 AND 5),
            Flexibility INTEGER NOT NULL DEFAULT 3 CHECK (Flexibility BETWEEN 1 AND 5),
            TeamChemistry INTEGER NOT NULL DEFAULT 3 CHECK (TeamChemistry BETWEEN 1 AND 5),
            UpdatedAt TEXT,
            FOREIGN KEY (EmployeeId) REFERENCES Employees(Id) ON DELETE CASCADE
        )
    """)

    # Preferences; list columns hold JSON arrays
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS EmployeePreferences (
            EmployeeId INTEGER PRIMARY KEY,
            PreferDays TEXT NOT NULL DEFAULT '[]',
            AvoidDays TEXT NOT NULL DEFAULT '[]',
            PreferredTimeSlots TEXT NOT NULL DEFAULT '[]',
            UnavailableTimeSlots TEXT NOT NULL DEFAULT '[]',
            CanWorkWeekends INTEGER NOT NULL DEFAULT 1,
            CanWorkNightShifts INTEGER NOT NULL DEFAULT 1,
            MaxConsecutiveDays INTEGER,
            UpdatedAt TEXT,
            FOREIGN KEY (EmployeeId) REFERENCES Employees(Id) ON DELETE CASCADE
        )
    """)

    # Pairwise chemistry, smaller id first
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS EmployeeChemistry (
            Id INTEGER PRIMARY KEY AUTOINCREMENT,
            Employee1Id INTEGER NOT NULL,
            Employee2Id INTEGER NOT NULL,
            Score INTEGER NOT NULL CHECK (Score BETWEEN 1 AND 5),
            Notes TEXT,
            CreatedAt TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            CHECK (Employee1Id < Employee2Id),
            UNIQUE (Employee1Id, Employee2Id),
            FOREIGN KEY (Employee1Id) REFERENCES Employees(Id) ON DELETE CASCADE,
            FOREIGN KEY (Employee2Id) REFERENCES Employees(Id) ON DELETE CASCADE
        )
    """)

    # Leave requests
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS LeaveRequests (
            Id INTEGER PRIMARY KEY AUTOINCREMENT,
            EmployeeId INTEGER NOT NULL,
            Type TEXT NOT NULL DEFAULT 'annual',
            StartDate TEXT NOT NULL,
            EndDate TEXT NOT NULL,
            Reason TEXT,
            Status TEXT NOT NULL DEFAULT 'pending',
            AdminComment TEXT,
            ReviewedBy TEXT,
            ReviewedAt TEXT,
            CreatedAt TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (EmployeeId) REFERENCES Employees(Id) ON DELETE CASCADE
        )
    """)

    # Shift patterns; Days and Requirements are JSON
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS ShiftPatterns (
            Id INTEGER PRIMARY KEY AUTOINCREMENT,
            Name TEXT NOT NULL,
            StartTime TEXT NOT NULL,
            EndTime TEXT NOT NULL,
            RequiredStaff INTEGER NOT NULL DEFAULT 1,
            Days TEXT NOT NULL DEFAULT '[1,2,3,4,5]',
            Color TEXT NOT NULL DEFAULT '#3B82F6',
            IsEnabled INTEGER NOT NULL DEFAULT 1,
            Requirements TEXT NOT NULL DEFAULT '{}',
            CreatedAt TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            UpdatedAt TEXT
        )
    """)

    # Concrete shifts
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS Schedules (
            Id INTEGER PRIMARY KEY AUTOINCREMENT,
            EmployeeId INTEGER NOT NULL,
            ShiftPatternId INTEGER,
            Date TEXT NOT NULL,
            StartTime TEXT NOT NULL,
            EndTime TEXT NOT NULL,
            ShiftType TEXT NOT NULL DEFAULT 'regular',
            Status TEXT NOT NULL DEFAULT 'scheduled',
            Notes TEXT,
            CreatedAt TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            CreatedBy TEXT,
            FOREIGN KEY (EmployeeId) REFERENCES Employees(Id) ON DELETE CASCADE,
            FOREIGN KEY (ShiftPatternId) REFERENCES ShiftPatterns(Id)
        )
    """)

    # Schedule drafts
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS ScheduleDrafts (
            Id INTEGER PRIMARY KEY AUTOINCREMENT,
            Name TEXT NOT NULL,
            Description TEXT,
            Version TEXT NOT NULL DEFAULT '1.0.0',
            Status TEXT NOT NULL DEFAULT 'draft',
            PeriodStart TEXT NOT NULL,
            PeriodEnd TEXT NOT NULL,
            BasedOnDraftId INTEGER,
            Metadata TEXT NOT NULL DEFAULT '{}',
            Notes TEXT,
            CreatedBy TEXT,
            CreatedAt TEXT NOT NULL,
            UpdatedAt TEXT NOT NULL,
            ApprovedBy TEXT,
            ApprovedAt TEXT,
            ActivatedAt TEXT,
            ArchivedAt TEXT,
            FOREIGN KEY (BasedOnDraftId) REFERENCES ScheduleDrafts(Id) ON DELETE SET NULL
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS ScheduleDraftItems (
            Id INTEGER PRIMARY KEY AUTOINCREMENT,
            DraftId INTEGER NOT NULL,
            EmployeeId INTEGER NOT NULL,
            ShiftPatternId INTEGER,
            Date TEXT NOT NULL,
            StartTime TEXT NOT NULL,
            EndTime TEXT NOT NULL,
            ShiftType TEXT NOT NULL DEFAULT 'regular',
            Status TEXT NOT NULL DEFAULT 'planned',
            Priority TEXT NOT NULL DEFAULT 'normal',
            Notes TEXT,
            CreatedAt TEXT NOT NULL,
            UpdatedAt TEXT NOT NULL,
            FOREIGN KEY (DraftId) REFERENCES ScheduleDrafts(Id) ON DELETE CASCADE
        )
    """)

    # Operating hours templates; DailyHours is JSON
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS OperatingHoursTemplates (
            Id INTEGER PRIMARY KEY AUTOINCREMENT,
            Name TEXT NOT NULL,
            Description TEXT,
            IsDefault INTEGER NOT NULL DEFAULT 0,
            Timezone TEXT NOT NULL DEFAULT 'UTC',
            DailyHours TEXT NOT NULL DEFAULT '[]',
            CreatedAt TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            UpdatedAt TEXT
        )
    """)

    # Audit log
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS AuditLogs (
            Id INTEGER PRIMARY KEY AUTOINCREMENT,
            Timestamp TEXT NOT NULL,
            UserName TEXT,
            EntityName TEXT NOT NULL,
            EntityId TEXT NOT NULL,
            Action TEXT NOT NULL,
            Changes TEXT
        )
    """)

    # Indexes
    cursor.execute("CREATE INDEX IF NOT EXISTS IX_Schedules_Date ON Schedules(Date)")
    cursor.execute("CREATE INDEX IF NOT EXISTS IX_Schedules_EmployeeId_Date ON Schedules(EmployeeId, Date)")
    cursor.execute("CREATE INDEX IF NOT EXISTS IX_LeaveRequests_EmployeeId ON LeaveRequests(EmployeeId)")
    cursor.execute("CREATE INDEX IF NOT EXISTS IX_LeaveRequests_Dates ON LeaveRequests(StartDate, EndDate)")
    cursor.execute("CREATE INDEX IF NOT EXISTS IX_ScheduleDraftItems_DraftId ON ScheduleDraftItems(DraftId)")
    cursor.execute("CREATE INDEX IF NOT EXISTS IX_ScheduleDrafts_Status ON ScheduleDrafts(Status)")
    cursor.execute("CREATE INDEX IF NOT EXISTS IX_AuditLogs_Timestamp ON AuditLogs(Timestamp)")

    conn.commit()
    conn.close()

    print("✅ Database schema created successfully")


def initialize_sample_employees(db_path: str = "scheduler.db"):
    """
    Initialize a sample workforce with abilities and preferences.

    Ten employees across two departments, ranks S through D, one conflict pair.
    """
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    cursor.execute("SELECT COUNT(*) FROM Employees")
    if cursor.fetchone()[0] > 0:
        conn.close()
        print("ℹ️  Employees already present, skipping sample workforce")
        return

    # Format: (Name, Email, Department, Position, HireDate,
    #          (WorkSkill, Experience, CustomerService, Flexibility, TeamChemistry),
    #          preferences)
    employees = [
        ("Alice Carter", "alice.carter@example.com", "Front", "Supervisor", "2015-03-01",
         (5, 5, 5, 4, 5), {"preferDays": ["monday", "tuesday"], "canWorkNightShifts": False}),
        ("Ben Ortiz", "ben.ortiz@example.com", "Front", "Senior Clerk", "2017-06-15",
         (5, 4, 4, 4, 4), {"avoidDays": ["sunday"]}),
        ("Chloe Nguyen", "chloe.nguyen@example.com", "Front", "Clerk", "2019-09-01",
         (4, 3, 4, 4, 3), {"preferredTimeSlots": [9, 10, 11]}),
        ("Daniel Kim", "daniel.kim@example.com", "Front", "Clerk", "2021-01-10",
         (3, 3, 3, 4, 3), {"canWorkWeekends": False}),
        ("Eva Rossi", "eva.rossi@example.com", "Front", "Trainee", "2023-04-03",
         (2, 1, 3, 3, 2), {}),
        ("Farid Haddad", "farid.haddad@example.com", "Back", "Lead", "2014-11-20",
         (5, 5, 4, 5, 4), {"preferDays": ["saturday", "sunday"]}),
        ("Grace Lee", "grace.lee@example.com", "Back", "Operator", "2018-02-12",
         (4, 4, 3, 3, 4), {"maxConsecutiveDays": 4}),
        ("Hugo Martin", "hugo.martin@example.com", "Back", "Operator", "2020-07-07",
         (3, 3, 3, 3, 3), {"unavailableTimeSlots": [6, 7]}),
        ("Ines Costa", "ines.costa@example.com", "Back", "Operator", "2022-05-30",
         (3, 2, 3, 2, 3), {"avoidDays": ["friday"]}),
        ("Jonas Berg", "jonas.berg@example.com", "Back", "Trainee", "2024-01-08",
         (2, 1, 2, 2, 2), {"canWorkNightShifts": False}),
    ]

    now = datetime.now(timezone.utc).isoformat()
    for name, email, department, position, hire_date, scores, prefs in employees:
        cursor.execute("""
            INSERT INTO Employees (Name, Email, Department, Position, HireDate)
            VALUES (?, ?, ?, ?, ?)
        """, (name, email, department, position, hire_date))
        employee_id = cursor.lastrowid

        cursor.execute("""
            INSERT INTO EmployeeAbilities
            (EmployeeId, WorkSkill, Experience, CustomerService, Flexibility, TeamChemistry, UpdatedAt)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """, (employee_id, *scores, now))

        cursor.execute("""
            INSERT INTO EmployeePreferences
            (EmployeeId, PreferDays, AvoidDays, PreferredTimeSlots, UnavailableTimeSlots,
             CanWorkWeekends, CanWorkNightShifts, MaxConsecutiveDays, UpdatedAt)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            employee_id,
            json.dumps(prefs.get("preferDays", [])),
            json.dumps(prefs.get("avoidDays", [])),
            json.dumps(prefs.get("preferredTimeSlots", [])),
            json.dumps(prefs.get("unavailableTimeSlots", [])),
            1 if prefs.get("canWorkWeekends", True) else 0,
            1 if prefs.get("canWorkNightShifts", True) else 0,
            prefs.get("maxConsecutiveDays"),
            now
        ))

    # Chloe and Daniel do not work well together; Alice and Ben do
    cursor.execute("""
        INSERT OR IGNORE INTO EmployeeChemistry (Employee1Id, Employee2Id, Score, Notes)
        VALUES (3, 4, 1, 'Repeated disputes at the front desk')
    """)
    cursor.execute("""
        INSERT OR IGNORE INTO EmployeeChemistry (Employee1Id, Employee2Id, Score, Notes)
        VALUES (1, 2, 5, NULL)
    """)

    conn.commit()
    conn.close()
    print(f"✅ Sample workforce initialized: {len(employees)} employees, 1 conflict pair")


def initialize_shift_patterns(db_path: str = "scheduler.db"):
    """Initialize the standard morning, evening and night shift patterns"""
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    cursor.execute("SELECT COUNT(*) FROM ShiftPatterns")
    if cursor.fetchone()[0] > 0:
        conn.close()
        return

    patterns = [
        ("Morning", "06:00", "14:00", 2, [0, 1, 2, 3, 4, 5, 6], "#10B981", {"minRankA": 1}),
        ("Evening", "14:00", "22:00", 2, [0, 1, 2, 3, 4, 5, 6], "#F59E0B", {"experienceLevels": {"3": 1}}),
        ("Night", "22:00", "06:00", 1, [1, 2, 3, 4, 5], "#6366F1", {}),
    ]

    for name, start, end, required, days, color, requirements in patterns:
        cursor.execute("""
            INSERT INTO ShiftPatterns (Name, StartTime, EndTime, RequiredStaff, Days, Color, Requirements)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """, (name, start, end, required, json.dumps(days), color, json.dumps(requirements)))

    conn.commit()
    conn.close()
    print("✅ Standard shift patterns initialized (Morning, Evening, Night)")


def initialize_operating_hours(db_path: str = "scheduler.db"):
    """Initialize a default operating-hours template (Mon-Sat open, Sunday closed)"""
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    cursor.execute("SELECT COUNT(*) FROM OperatingHoursTemplates")
    if cursor.fetchone()[0] > 0:
        conn.close()
        return

    daily_hours = [{"dayOfWeek": 0, "isOpen": False}]
    for day in range(1, 6):
        daily_hours.append({
            "dayOfWeek": day,
            "isOpen": True,
            "openTime": "08:00",
            "closeTime": "20:00",
            "minStaff": 2,
            "maxStaff": 6,
            "timeSlots": [
                {"hourSlot": 12, "requiredStaff": 3, "priority": "high"},
                {"hourSlot": 13, "requiredStaff": 3, "priority": "high"},
            ],
        })
    daily_hours.append({
        "dayOfWeek": 6,
        "isOpen": True,
        "openTime": "09:00",
        "closeTime": "17:00",
        "minStaff": 2,
        "maxStaff": 4,
    })

    cursor.execute("""
        INSERT INTO OperatingHoursTemplates (Name, Description, IsDefault, DailyHours)
        VALUES (?, ?, 1, ?)
    """, ("Standard Week", "Weekday 08-20, Saturday 09-17", json.dumps(daily_hours)))

    conn.commit()
    conn.close()
    print("✅ Default operating hours template initialized")


def initialize_database(db_path: str = "scheduler.db", with_sample_data: bool = True):
    """
    Initialize complete database with schema and optional sample data.

    Args:
        db_path: Path to SQLite database file
        with_sample_data: Whether to include sample data
    """
    print(f"🔧 Initializing database: {db_path}")
    print("=" * 60)

    create_database_schema(db_path)

    if with_sample_data:
        initialize_sample_employees(db_path)
        initialize_shift_patterns(db_path)
        initialize_operating_hours(db_path)

    print("=" * 60)
    print("✅ Database initialization complete!")
    print()
    print("You can now start the server with:")
    print(f"  python main.py serve --db {db_path}")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description='Initialize scheduler database')
    parser.add_argument('db_path', nargs='?', default='scheduler.db',
                        help='Path to database file (default: scheduler.db)')
    parser.add_argument('--with-sample-data', '--sample-data', action='store_true',
                        help='Include sample workforce, shift patterns and operating hours')

    args = parser.parse_args()

    initialize_database(args.db_path, with_sample_data=args.with_sample_data)
