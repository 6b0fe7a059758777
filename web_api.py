"""
Flask Web API for the workforce scheduler.
Provides the REST endpoints used by the scheduling workflow.
"""

from flask import Flask, jsonify, request, send_file, make_response
from flask_cors import CORS
from datetime import datetime, date, timezone
from typing import Optional
import csv
import io
import json
import os

# PDF export dependencies
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import cm

from db_init import Database, log_audit
from data_loader import (
    EMPLOYEE_SELECT, row_to_employee, row_to_pattern,
    load_from_database, get_existing_schedules, load_operating_hours_template
)
from entities import (
    Ability, EmployeePreference, ChemistryPair, ShiftPattern, DraftItem, OperatingHoursTemplate,
    GenerationConstraints, GenerationPriorities, DAY_NAMES
)
from leaves import (
    create_leave_request, approve_leave, reject_leave, list_leaves, get_leave
)
from drafts import (
    create_draft, get_draft, list_drafts, delete_draft, get_draft_stats, update_draft_status,
    duplicate_draft, activate_draft, merge_drafts, preview_merge
)
from planner import generate_schedule
from validation import validate_patterns, validate_operating_hours_template
from analytics import (
    calculate_scheduling_metrics, detect_scheduling_conflicts, analyze_workload_distribution,
    calculate_template_compliance, generate_schedule_recommendations, calculate_requirements,
    analyze_coverage, check_period
)


def parse_date(value: Optional[str], field: str) -> date:
    """Parse an ISO date from request data, ValueError with the field name otherwise"""
    if not value:
        raise ValueError(f"{field} is required")
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValueError(f"{field} must be a date in YYYY-MM-DD format") from None


def parse_period(source) -> tuple:
    start = parse_date(source.get('startDate'), 'startDate')
    end = parse_date(source.get('endDate'), 'endDate')
    if start > end:
        raise ValueError('startDate must not be after endDate')
    return start, end


def create_app(db_path: str = "scheduler.db") -> Flask:
    """
    Create and configure Flask application.

    Args:
        db_path: Path to SQLite database

    Returns:
        Configured Flask app
    """
    app = Flask(__name__)

    app.config['SECRET_KEY'] = os.environ.get('FLASK_SECRET_KEY', 'dev-secret-key-change-in-production')
    app.config['SOLVER_TIME_LIMIT'] = int(os.environ.get('SOLVER_TIME_LIMIT', 30))
    app.config['SOLVER_WORKERS'] = int(os.environ.get('SOLVER_WORKERS', 8))
    app.config['DB_PATH'] = db_path

    CORS(app, supports_credentials=True)

    db = Database(db_path)

    def load_employee(conn, employee_id: int):
        row = conn.execute(EMPLOYEE_SELECT + " WHERE e.Id = ?", (employee_id,)).fetchone()
        return row_to_employee(row) if row else None

    # ============================================================================
    # EMPLOYEES
    # ============================================================================

    @app.route('/api/employees', methods=['GET'])
    def get_employees():
        """Get active employees with abilities and preferences"""
        conn = None
        try:
            conn = db.get_connection()
            query = EMPLOYEE_SELECT + " WHERE e.IsActive = 1"
            params: list = []
            department = request.args.get('department')
            if department:
                query += " AND e.Department = ?"
                params.append(department)
            query += " ORDER BY e.Name"
            employees = [row_to_employee(row).to_dict() for row in conn.execute(query, params).fetchall()]
            return jsonify(employees)
        except Exception as e:
            app.logger.error(f"Get employees error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    @app.route('/api/employees', methods=['POST'])
    def create_employee():
        """Create an employee, optionally with ability scores and preferences"""
        conn = None
        try:
            data = request.get_json() or {}
            name = (data.get('name') or '').strip()
            if not name:
                return jsonify({'error': 'name is required'}), 400

            hire_date = parse_date(data['hireDate'], 'hireDate') if data.get('hireDate') else None
            ability = Ability.from_dict(data['ability']) if data.get('ability') else None
            preference = EmployeePreference.from_dict(data['preferences']) if data.get('preferences') else None

            conn = db.get_connection()
            cursor = conn.execute("""
                INSERT INTO Employees (Name, Email, Department, Position, HireDate, CreatedAt)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (name, data.get('email'), data.get('department'), data.get('position'),
                  hire_date.isoformat() if hire_date else None, datetime.now(timezone.utc).isoformat()))
            employee_id = cursor.lastrowid

            if ability:
                save_ability(conn, employee_id, ability)
            if preference:
                save_preference(conn, employee_id, preference)

            log_audit(conn, 'Employee', employee_id, 'Create', json.dumps({'name': name}))
            conn.commit()
            return jsonify(load_employee(conn, employee_id).to_dict()), 201
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"Create employee error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    def save_ability(conn, employee_id: int, ability: Ability):
        conn.execute("""
            INSERT INTO EmployeeAbilities
                (EmployeeId, WorkSkill, Experience, CustomerService, Flexibility, TeamChemistry, UpdatedAt)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(EmployeeId) DO UPDATE SET
                WorkSkill = excluded.WorkSkill,
                Experience = excluded.Experience,
                CustomerService = excluded.CustomerService,
                Flexibility = excluded.Flexibility,
                TeamChemistry = excluded.TeamChemistry,
                UpdatedAt = excluded.UpdatedAt
        """, (employee_id, ability.work_skill, ability.experience, ability.customer_service,
              ability.flexibility, ability.team_chemistry, datetime.now(timezone.utc).isoformat()))

    def save_preference(conn, employee_id: int, preference: EmployeePreference):
        conn.execute("""
            INSERT INTO EmployeePreferences
                (EmployeeId, PreferDays, AvoidDays, PreferredTimeSlots, UnavailableTimeSlots,
                 CanWorkWeekends, CanWorkNightShifts, MaxConsecutiveDays, UpdatedAt)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(EmployeeId) DO UPDATE SET
                PreferDays = excluded.PreferDays,
                AvoidDays = excluded.AvoidDays,
                PreferredTimeSlots = excluded.PreferredTimeSlots,
                UnavailableTimeSlots = excluded.UnavailableTimeSlots,
                CanWorkWeekends = excluded.CanWorkWeekends,
                CanWorkNightShifts = excluded.CanWorkNightShifts,
                MaxConsecutiveDays = excluded.MaxConsecutiveDays,
                UpdatedAt = excluded.UpdatedAt
        """, (employee_id, json.dumps(preference.prefer_days), json.dumps(preference.avoid_days),
              json.dumps(preference.preferred_time_slots), json.dumps(preference.unavailable_time_slots),
              int(preference.can_work_weekends), int(preference.can_work_night_shifts),
              preference.max_consecutive_days, datetime.now(timezone.utc).isoformat()))

    @app.route('/api/employees/<int:id>/ability', methods=['PUT'])
    def update_ability(id):
        """Set ability scores; returns total score and rank"""
        conn = None
        try:
            ability = Ability.from_dict(request.get_json() or {})
            conn = db.get_connection()
            if not load_employee(conn, id):
                return jsonify({'error': 'Employee not found'}), 404

            save_ability(conn, id, ability)
            log_audit(conn, 'EmployeeAbility', id, 'Update', json.dumps(ability.to_dict()))
            conn.commit()
            return jsonify({'employeeId': id, **ability.to_dict()})
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"Update ability error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    @app.route('/api/employees/<int:id>/preferences', methods=['PUT'])
    def update_preferences(id):
        conn = None
        try:
            preference = EmployeePreference.from_dict(request.get_json() or {})
            unknown_days = [d for d in preference.prefer_days + preference.avoid_days if d not in DAY_NAMES]
            if unknown_days:
                return jsonify({'error': f"Unknown day names: {', '.join(unknown_days)}"}), 400
            hours = preference.preferred_time_slots + preference.unavailable_time_slots
            if any(h < 0 or h > 23 for h in hours):
                return jsonify({'error': 'Time slots must be hours between 0 and 23'}), 400

            conn = db.get_connection()
            if not load_employee(conn, id):
                return jsonify({'error': 'Employee not found'}), 404

            save_preference(conn, id, preference)
            conn.commit()
            return jsonify({'employeeId': id, **preference.to_dict()})
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"Update preferences error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    # ============================================================================
    # CHEMISTRY
    # ============================================================================

    @app.route('/api/chemistry', methods=['GET'])
    def get_chemistry():
        conn = None
        try:
            conn = db.get_connection()
            rows = conn.execute("""
                SELECT c.*, e1.Name AS Employee1Name, e2.Name AS Employee2Name
                FROM EmployeeChemistry c
                JOIN Employees e1 ON e1.Id = c.Employee1Id
                JOIN Employees e2 ON e2.Id = c.Employee2Id
                ORDER BY c.Score, c.Id
            """).fetchall()
            pairs = []
            for row in rows:
                pair = ChemistryPair(row['Employee1Id'], row['Employee2Id'], row['Score'], row['Notes'], row['Id'])
                data = pair.to_dict()
                data['employee1Name'] = row['Employee1Name']
                data['employee2Name'] = row['Employee2Name']
                pairs.append(data)
            return jsonify(pairs)
        except Exception as e:
            app.logger.error(f"Get chemistry error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    @app.route('/api/chemistry', methods=['POST'])
    def set_chemistry():
        """Create or update the chemistry rating of a pair"""
        conn = None
        try:
            data = request.get_json() or {}
            if data.get('employee1Id') is None or data.get('employee2Id') is None or data.get('score') is None:
                return jsonify({'error': 'employee1Id, employee2Id and score are required'}), 400
            pair = ChemistryPair(int(data['employee1Id']), int(data['employee2Id']),
                                 int(data['score']), data.get('notes'))

            conn = db.get_connection()
            for emp_id in (pair.employee1_id, pair.employee2_id):
                if not load_employee(conn, emp_id):
                    return jsonify({'error': f'Employee {emp_id} not found'}), 404

            conn.execute("""
                INSERT INTO EmployeeChemistry (Employee1Id, Employee2Id, Score, Notes, CreatedAt)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(Employee1Id, Employee2Id) DO UPDATE SET
                    Score = excluded.Score,
                    Notes = excluded.Notes
            """, (pair.employee1_id, pair.employee2_id, pair.score, pair.notes, datetime.now(timezone.utc).isoformat()))
            row = conn.execute("SELECT Id FROM EmployeeChemistry WHERE Employee1Id = ? AND Employee2Id = ?",
                               (pair.employee1_id, pair.employee2_id)).fetchone()
            pair.id = row['Id']
            log_audit(conn, 'EmployeeChemistry', pair.id, 'Update', json.dumps(pair.to_dict()))
            conn.commit()
            return jsonify(pair.to_dict()), 201
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"Set chemistry error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    # ============================================================================
    # LEAVE REQUESTS
    # ============================================================================

    @app.route('/api/leaves', methods=['GET'])
    def get_leaves():
        conn = None
        try:
            employee_id = request.args.get('employeeId', type=int)
            conn = db.get_connection()
            leaves = list_leaves(conn, request.args.get('status'), employee_id)
            return jsonify([leave.to_dict() for leave in leaves])
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"Get leaves error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    @app.route('/api/leaves', methods=['POST'])
    def post_leave():
        conn = None
        try:
            data = request.get_json() or {}
            if data.get('employeeId') is None:
                return jsonify({'error': 'employeeId is required'}), 400
            start, end = parse_date(data.get('startDate'), 'startDate'), parse_date(data.get('endDate'), 'endDate')
            conn = db.get_connection()
            leave = create_leave_request(conn, int(data['employeeId']), start, end,
                                         data.get('type', 'annual'), data.get('reason'))
            return jsonify(leave.to_dict()), 201
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"Create leave error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    @app.route('/api/leaves/<int:id>/approve', methods=['PUT'])
    def approve_leave_request(id):
        """Approve a leave; the employee's shifts in the leave window are removed"""
        conn = None
        try:
            data = request.get_json(silent=True) or {}
            conn = db.get_connection()
            removed = approve_leave(conn, id, data.get('reviewedBy'), data.get('comment'))
            return jsonify({
                'message': 'Leave request approved',
                'leave': get_leave(conn, id).to_dict(),
                'removedSchedules': removed
            })
        except LookupError as e:
            return jsonify({'error': str(e)}), 404
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"Approve leave error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    @app.route('/api/leaves/<int:id>/reject', methods=['PUT'])
    def reject_leave_request(id):
        conn = None
        try:
            data = request.get_json(silent=True) or {}
            conn = db.get_connection()
            leave = reject_leave(conn, id, data.get('reviewedBy'), data.get('comment'))
            return jsonify({'message': 'Leave request rejected', 'leave': leave.to_dict()})
        except LookupError as e:
            return jsonify({'error': str(e)}), 404
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"Reject leave error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    # ============================================================================
    # SHIFT PATTERNS
    # ============================================================================

    def save_pattern(conn, pattern: ShiftPattern) -> int:
        values = (pattern.name, pattern.start_time, pattern.end_time, pattern.required_staff,
                  json.dumps(pattern.days), pattern.color, int(pattern.enabled),
                  json.dumps(pattern.requirements.to_dict()), datetime.now(timezone.utc).isoformat())
        if pattern.id:
            cursor = conn.execute("""
                UPDATE ShiftPatterns
                SET Name = ?, StartTime = ?, EndTime = ?, RequiredStaff = ?, Days = ?, Color = ?,
                    IsEnabled = ?, Requirements = ?, UpdatedAt = ?
                WHERE Id = ?
            """, values + (pattern.id,))
            if cursor.rowcount == 0:
                raise LookupError(f'Shift pattern {pattern.id} not found')
            return pattern.id
        cursor = conn.execute("""
            INSERT INTO ShiftPatterns
                (Name, StartTime, EndTime, RequiredStaff, Days, Color, IsEnabled, Requirements, CreatedAt)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, values)
        return cursor.lastrowid

    @app.route('/api/shift-patterns', methods=['GET'])
    def get_shift_patterns():
        conn = None
        try:
            conn = db.get_connection()
            rows = conn.execute("SELECT * FROM ShiftPatterns ORDER BY StartTime, Id").fetchall()
            return jsonify([row_to_pattern(row).to_dict() for row in rows])
        except Exception as e:
            app.logger.error(f"Get shift patterns error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    @app.route('/api/shift-patterns', methods=['POST'])
    def create_shift_pattern():
        conn = None
        try:
            data = dict(request.get_json() or {})
            data.pop('id', None)
            pattern = ShiftPattern.from_dict(data)
            conn = db.get_connection()
            pattern.id = save_pattern(conn, pattern)
            log_audit(conn, 'ShiftPattern', pattern.id, 'Create', json.dumps(pattern.to_dict()))
            conn.commit()
            return jsonify(pattern.to_dict()), 201
        except (ValueError, TypeError) as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"Create shift pattern error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    @app.route('/api/shift-patterns/bulk', methods=['PUT'])
    def bulk_update_shift_patterns():
        """Create or update several patterns at once; deleteOthers removes unused patterns not listed"""
        conn = None
        try:
            data = request.get_json() or {}
            patterns = [ShiftPattern.from_dict(p) for p in data.get('patterns') or []]
            if not patterns:
                return jsonify({'error': 'patterns must be a non-empty array'}), 400

            conn = db.get_connection()
            for pattern in patterns:
                pattern.id = save_pattern(conn, pattern)

            deleted = 0
            if data.get('deleteOthers'):
                keep = [p.id for p in patterns]
                deleted = conn.execute(f"""
                    DELETE FROM ShiftPatterns
                    WHERE Id NOT IN ({','.join('?' * len(keep))})
                      AND Id NOT IN (SELECT DISTINCT ShiftPatternId FROM Schedules WHERE ShiftPatternId IS NOT NULL)
                """, keep).rowcount

            log_audit(conn, 'ShiftPattern', 'bulk', 'Update',
                      json.dumps({'updated': [p.id for p in patterns], 'deleted': deleted}))
            conn.commit()
            return jsonify({'patterns': [p.to_dict() for p in patterns], 'deleted': deleted})
        except LookupError as e:
            return jsonify({'error': str(e)}), 404
        except (ValueError, TypeError) as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"Bulk update shift patterns error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    @app.route('/api/shift-patterns/<int:id>', methods=['DELETE'])
    def delete_shift_pattern(id):
        conn = None
        try:
            conn = db.get_connection()
            if not conn.execute("SELECT Id FROM ShiftPatterns WHERE Id = ?", (id,)).fetchone():
                return jsonify({'error': 'Pattern not found'}), 404
            used = conn.execute("SELECT COUNT(*) FROM Schedules WHERE ShiftPatternId = ?", (id,)).fetchone()[0]
            if used:
                return jsonify({'error': 'Cannot delete pattern that is used in schedules'}), 400

            conn.execute("DELETE FROM ShiftPatterns WHERE Id = ?", (id,))
            log_audit(conn, 'ShiftPattern', id, 'Delete')
            conn.commit()
            return jsonify({'message': 'Pattern deleted successfully'})
        except Exception as e:
            app.logger.error(f"Delete shift pattern error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    @app.route('/api/shift-patterns/validate', methods=['POST'])
    def validate_shift_patterns():
        conn = None
        try:
            data = request.get_json() or {}
            patterns = data.get('patterns')
            if not isinstance(patterns, list):
                return jsonify({'error': 'patterns must be an array'}), 400

            conn = db.get_connection()
            available = conn.execute("SELECT COUNT(*) FROM Employees WHERE IsActive = 1").fetchone()[0]
            result = validate_patterns(
                patterns,
                check_conflicts=data.get('checkConflicts', True),
                check_coverage=data.get('checkCoverage', True),
                available_employees=available
            )
            return jsonify(result)
        except Exception as e:
            app.logger.error(f"Validate shift patterns error: {str(e)}")
            return jsonify({'error': f'Validation error: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    # ============================================================================
    # OPERATING HOURS
    # ============================================================================

    @app.route('/api/operating-hours', methods=['POST'])
    def create_operating_hours():
        conn = None
        try:
            data = request.get_json() or {}
            validation = validate_operating_hours_template(data)
            if not validation['isValid']:
                return jsonify({'error': 'Invalid operating hours template', **validation}), 400

            template = OperatingHoursTemplate.from_dict(data)
            conn = db.get_connection()
            if template.is_default:
                conn.execute("UPDATE OperatingHoursTemplates SET IsDefault = 0")
            cursor = conn.execute("""
                INSERT INTO OperatingHoursTemplates (Name, Description, IsDefault, Timezone, DailyHours, CreatedAt)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (template.name, template.description, int(template.is_default), template.timezone,
                  json.dumps([day.to_dict() for day in template.daily_hours]), datetime.now(timezone.utc).isoformat()))
            template.id = cursor.lastrowid
            log_audit(conn, 'OperatingHoursTemplate', template.id, 'Create', json.dumps({'name': template.name}))
            conn.commit()
            return jsonify({**template.to_dict(), 'warnings': validation['warnings'],
                            'summary': validation['summary']}), 201
        except (ValueError, KeyError, TypeError) as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"Create operating hours error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    @app.route('/api/operating-hours/<int:id>', methods=['GET'])
    def get_operating_hours(id):
        try:
            template = load_operating_hours_template(db_path, id)
            if not template:
                return jsonify({'error': 'Operating hours template not found'}), 404
            data = template.to_dict()
            validation = validate_operating_hours_template(data)
            data['summary'] = validation['summary']
            return jsonify(data)
        except Exception as e:
            app.logger.error(f"Get operating hours error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500

    @app.route('/api/operating-hours/validate', methods=['POST'])
    def validate_operating_hours():
        try:
            return jsonify(validate_operating_hours_template(request.get_json() or {}))
        except Exception as e:
            app.logger.error(f"Validate operating hours error: {str(e)}")
            return jsonify({'error': f'Validation error: {str(e)}'}), 500

    # ============================================================================
    # SCHEDULES
    # ============================================================================

    def fetch_schedule_rows(start: date, end: date, employee_id: Optional[int] = None):
        conn = db.get_connection()
        try:
            query = """
                SELECT s.*, e.Name AS EmployeeName, e.Department, p.Name AS PatternName
                FROM Schedules s
                JOIN Employees e ON e.Id = s.EmployeeId
                LEFT JOIN ShiftPatterns p ON p.Id = s.ShiftPatternId
                WHERE s.Date >= ? AND s.Date <= ?
            """
            params: list = [start.isoformat(), end.isoformat()]
            if employee_id is not None:
                query += " AND s.EmployeeId = ?"
                params.append(employee_id)
            query += " ORDER BY s.Date, s.StartTime, e.Name"
            return conn.execute(query, params).fetchall()
        finally:
            conn.close()

    @app.route('/api/schedules', methods=['GET'])
    def get_schedules():
        try:
            start, end = parse_period(request.args)
            rows = fetch_schedule_rows(start, end, request.args.get('employeeId', type=int))
            schedules = []
            for row in rows:
                schedules.append({
                    'id': row['Id'],
                    'employeeId': row['EmployeeId'],
                    'employeeName': row['EmployeeName'],
                    'department': row['Department'],
                    'date': row['Date'],
                    'startTime': row['StartTime'],
                    'endTime': row['EndTime'],
                    'shiftType': row['ShiftType'],
                    'shiftPatternId': row['ShiftPatternId'],
                    'shiftPattern': row['PatternName'],
                    'status': row['Status'],
                    'notes': row['Notes'],
                })
            return jsonify(schedules)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"Get schedules error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500

    @app.route('/api/schedules/generate', methods=['POST'])
    def generate():
        """
        Generate a schedule for a period.

        Request body:
            startDate, endDate (required)
            shiftPatterns: pattern definitions to use instead of the stored ones
            templateId: derive the shifts from an operating hours template
            optimizationLevel: basic | standard | advanced (with templateId)
            overrideSettings: openTime, closeTime, minStaff, ... for every template day
            patternIds, employeeIds, department
            constraints, priorities: camelCase settings
            mode: replace | append | fill_gaps
            strategy: optimal | greedy
            saveAsDraft, draftName, createdBy
        """
        try:
            data = request.get_json() or {}
            start, end = parse_period(data)
            patterns = None
            if data.get('shiftPatterns'):
                patterns = [ShiftPattern.from_dict(p) for p in data['shiftPatterns']]
            override_settings = data.get('overrideSettings') or {}
            if not isinstance(override_settings, dict):
                raise ValueError('overrideSettings must be an object')

            result = generate_schedule(
                db_path, start, end,
                patterns=patterns,
                pattern_ids=data.get('patternIds'),
                employee_ids=data.get('employeeIds'),
                department=data.get('department'),
                constraints=GenerationConstraints.from_dict(data.get('constraints')),
                priorities=GenerationPriorities.from_dict(data.get('priorities')),
                mode=data.get('mode', 'replace'),
                strategy=data.get('strategy', 'optimal'),
                save_as_draft=bool(data.get('saveAsDraft', False)),
                draft_name=data.get('draftName'),
                time_limit_seconds=int(data.get('timeLimitSeconds') or app.config['SOLVER_TIME_LIMIT']),
                num_workers=app.config['SOLVER_WORKERS'],
                created_by=data.get('createdBy'),
                template_id=data.get('templateId'),
                optimization_level=data.get('optimizationLevel') or 'standard',
                override_settings=override_settings
            )
            return jsonify(result), 201
        except (ValueError, TypeError) as e:
            return jsonify({'success': False, 'error': str(e)}), 400
        except LookupError as e:
            return jsonify({'success': False, 'error': str(e)}), 404
        except Exception as e:
            app.logger.error(f"Schedule generation error: {str(e)}")
            return jsonify({'success': False, 'error': f'Generation failed: {str(e)}'}), 500

    @app.route('/api/schedules/requirements', methods=['POST'])
    def schedule_requirements():
        """Staff needed per day and shift compared with the staff not on leave"""
        try:
            data = request.get_json() or {}
            start, end = parse_period(data)
            employees, patterns, leaves, _ = load_from_database(db_path, data.get('department'))
            if data.get('shiftPatterns'):
                patterns = [ShiftPattern.from_dict(p) for p in data['shiftPatterns']]
            holidays = [parse_date(h, 'holidays') for h in data.get('holidays') or []]

            result = calculate_requirements(
                start, end, employees, leaves, patterns,
                peak_hours=data.get('peakHours'),
                weekend_multiplier=float(data.get('weekendMultiplier', 1.2)),
                holiday_multiplier=float(data.get('holidayMultiplier', 1.5)),
                holidays=holidays,
                base_staff_required=int(data.get('baseStaffRequired', 2))
            )
            return jsonify(result)
        except (ValueError, TypeError, KeyError) as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"Requirements calculation error: {str(e)}")
            return jsonify({'error': f'Calculation failed: {str(e)}'}), 500

    @app.route('/api/schedules/check-period', methods=['GET'])
    def schedule_check_period():
        try:
            start, end = parse_period(request.args)
            employees, _, leaves, chemistry = load_from_database(db_path)
            entries = get_existing_schedules(db_path, start, end)
            leaves = [lv for lv in leaves if lv.overlaps_range(start, end)]
            return jsonify(check_period(entries, leaves, chemistry, employees))
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"Check period error: {str(e)}")
            return jsonify({'error': f'Check failed: {str(e)}'}), 500

    @app.route('/api/schedules/coverage-analysis', methods=['GET'])
    def schedule_coverage_analysis():
        try:
            start, end = parse_period(request.args)
            employees, _, leaves, _ = load_from_database(db_path, request.args.get('department'))
            entries = get_existing_schedules(db_path, start, end, [emp.id for emp in employees])
            result = analyze_coverage(
                start, end, entries, leaves, len(employees),
                min_staff_required=request.args.get('minStaffRequired', 1, type=int),
                business_hours=(request.args.get('businessHoursStart', '09:00'),
                                request.args.get('businessHoursEnd', '18:00')),
                include_weekends=request.args.get('includeWeekends', 'false').lower() == 'true'
            )
            return jsonify(result)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"Coverage analysis error: {str(e)}")
            return jsonify({'error': f'Analysis failed: {str(e)}'}), 500

    @app.route('/api/schedules/metrics', methods=['GET'])
    def schedule_metrics():
        """Metrics, conflicts, workload and recommendations for a period"""
        try:
            start, end = parse_period(request.args)
            employees, _, _, _ = load_from_database(db_path, request.args.get('department'))
            entries = get_existing_schedules(db_path, start, end, [emp.id for emp in employees])
            template = load_operating_hours_template(db_path, request.args.get('templateId', type=int))
            constraints = GenerationConstraints()

            conflicts = detect_scheduling_conflicts(entries, employees, constraints)
            result = calculate_scheduling_metrics(entries, employees, start, end)
            result['conflicts'] = conflicts
            result['workload'] = analyze_workload_distribution(entries)
            result['recommendations'] = generate_schedule_recommendations(
                entries, employees, conflicts, template, start, end)
            result['templateCompliance'] = (
                calculate_template_compliance(entries, template, start, end) if template else None
            )
            return jsonify(result)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"Schedule metrics error: {str(e)}")
            return jsonify({'error': f'Metrics failed: {str(e)}'}), 500

    @app.route('/api/schedules/export/csv', methods=['GET'])
    def export_schedule_csv():
        """Export schedule to CSV format"""
        start_date_str = request.args.get('startDate')
        end_date_str = request.args.get('endDate')

        try:
            start, end = parse_period(request.args)
            rows = fetch_schedule_rows(start, end)

            output = io.StringIO()
            writer = csv.writer(output)
            writer.writerow(['Date', 'Employee', 'Department', 'Start', 'End', 'Shift Type', 'Shift Pattern', 'Status'])
            for row in rows:
                writer.writerow([row['Date'], row['EmployeeName'], row['Department'] or '', row['StartTime'],
                                 row['EndTime'], row['ShiftType'], row['PatternName'] or '', row['Status']])

            response = make_response(output.getvalue())
            output.close()
            response.headers['Content-Type'] = 'text/csv; charset=utf-8'
            response.headers['Content-Disposition'] = \
                f'attachment; filename=schedule_{start_date_str}_to_{end_date_str}.csv'
            return response
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"CSV export error: {str(e)}")
            return jsonify({'error': f'Export error: {str(e)}'}), 500

    @app.route('/api/schedules/export/pdf', methods=['GET'])
    def export_schedule_pdf():
        """Export schedule to PDF format, one row per shift"""
        start_date_str = request.args.get('startDate')
        end_date_str = request.args.get('endDate')

        try:
            start, end = parse_period(request.args)
            rows = fetch_schedule_rows(start, end)

            buffer = io.BytesIO()
            doc = SimpleDocTemplate(buffer, pagesize=landscape(A4),
                                    leftMargin=1.5 * cm, rightMargin=1.5 * cm,
                                    topMargin=1.5 * cm, bottomMargin=1.5 * cm)
            styles = getSampleStyleSheet()
            elements = [
                Paragraph(f"Schedule {start.isoformat()} to {end.isoformat()}", styles['Title']),
                Spacer(1, 0.5 * cm),
            ]

            table_data = [['Date', 'Employee', 'Department', 'Start', 'End', 'Type', 'Pattern']]
            for row in rows:
                table_data.append([row['Date'], row['EmployeeName'], row['Department'] or '',
                                   row['StartTime'], row['EndTime'], row['ShiftType'], row['PatternName'] or ''])
            if len(table_data) == 1:
                table_data.append(['-', 'No shifts scheduled', '', '', '', '', ''])

            table = Table(table_data, repeatRows=1,
                          colWidths=[3 * cm, 5 * cm, 4 * cm, 2.5 * cm, 2.5 * cm, 3 * cm, 4 * cm])
            table.setStyle(TableStyle([
                ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#3B82F6')),
                ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
                ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
                ('FONTSIZE', (0, 0), (-1, -1), 9),
                ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
                ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
                ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
                ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#F3F4F6')]),
            ]))
            elements.append(table)
            doc.build(elements)

            buffer.seek(0)
            return send_file(
                buffer,
                mimetype='application/pdf',
                as_attachment=True,
                download_name=f'schedule_{start_date_str}_to_{end_date_str}.pdf'
            )
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"PDF export error: {str(e)}")
            return jsonify({'error': f'PDF export error: {str(e)}'}), 500

    # ============================================================================
    # DRAFTS
    # ============================================================================

    @app.route('/api/drafts', methods=['GET'])
    def get_drafts():
        conn = None
        try:
            conn = db.get_connection()
            drafts = list_drafts(conn, request.args.get('status'))
            return jsonify([d.to_dict(include_items=False) for d in drafts])
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"Get drafts error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    @app.route('/api/drafts', methods=['POST'])
    def post_draft():
        conn = None
        try:
            data = request.get_json() or {}
            start = parse_date(data.get('periodStart'), 'periodStart')
            end = parse_date(data.get('periodEnd'), 'periodEnd')
            items = [DraftItem.from_dict(item) for item in data.get('items') or []]

            conn = db.get_connection()
            draft = create_draft(
                conn, data.get('name'), start, end, items,
                description=data.get('description'),
                based_on_draft_id=data.get('basedOnDraftId'),
                metadata=data.get('metadata'),
                notes=data.get('notes'),
                created_by=data.get('createdBy')
            )
            return jsonify(draft.to_dict()), 201
        except LookupError as e:
            return jsonify({'error': str(e)}), 404
        except (ValueError, KeyError) as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"Create draft error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    @app.route('/api/drafts/stats', methods=['GET'])
    def draft_stats():
        conn = None
        try:
            conn = db.get_connection()
            return jsonify(get_draft_stats(conn))
        except Exception as e:
            app.logger.error(f"Draft stats error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    @app.route('/api/drafts/<int:id>', methods=['GET'])
    def get_draft_by_id(id):
        conn = None
        try:
            conn = db.get_connection()
            return jsonify(get_draft(conn, id).to_dict())
        except LookupError as e:
            return jsonify({'error': str(e)}), 404
        except Exception as e:
            app.logger.error(f"Get draft error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    @app.route('/api/drafts/<int:id>', methods=['DELETE'])
    def remove_draft(id):
        conn = None
        try:
            conn = db.get_connection()
            delete_draft(conn, id)
            return jsonify({'message': 'Schedule draft deleted successfully'})
        except LookupError as e:
            return jsonify({'error': str(e)}), 404
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"Delete draft error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    @app.route('/api/drafts/<int:id>/status', methods=['PUT'])
    def change_draft_status(id):
        conn = None
        try:
            data = request.get_json() or {}
            conn = db.get_connection()
            draft = update_draft_status(conn, id, data.get('status'), data.get('user'))
            return jsonify({'message': f'Schedule draft status updated to {draft.status.value}',
                            'data': draft.to_dict(include_items=False)})
        except LookupError as e:
            return jsonify({'error': str(e)}), 404
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"Update draft status error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    @app.route('/api/drafts/<int:id>/duplicate', methods=['POST'])
    def copy_draft(id):
        conn = None
        try:
            data = request.get_json(silent=True) or {}
            conn = db.get_connection()
            draft = duplicate_draft(conn, id, data.get('name'), data.get('description'), data.get('user'))
            return jsonify(draft.to_dict()), 201
        except LookupError as e:
            return jsonify({'error': str(e)}), 404
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"Duplicate draft error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    @app.route('/api/drafts/<int:id>/activate', methods=['POST'])
    def activate(id):
        conn = None
        try:
            data = request.get_json(silent=True) or {}
            conn = db.get_connection()
            created = activate_draft(conn, id, bool(data.get('replaceExisting', False)), data.get('user'))
            return jsonify({'message': 'Schedule draft activated successfully', 'schedulesCreated': created})
        except LookupError as e:
            return jsonify({'error': str(e)}), 404
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"Activate draft error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    @app.route('/api/drafts/merge', methods=['POST'])
    def merge():
        conn = None
        try:
            data = request.get_json() or {}
            conn = db.get_connection()
            draft, conflicts, summary = merge_drafts(
                conn, data.get('draftIds') or [], data.get('mergeOptions'), data.get('user'))
            return jsonify({
                'message': 'Schedule drafts merged successfully',
                'data': draft.to_dict(),
                'conflicts': conflicts,
                'summary': summary
            }), 201
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"Merge drafts error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    @app.route('/api/drafts/merge/preview', methods=['POST'])
    def merge_preview():
        conn = None
        try:
            data = request.get_json() or {}
            conn = db.get_connection()
            return jsonify(preview_merge(conn, data.get('draftIds') or [], data.get('mergeOptions')))
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"Merge preview error: {str(e)}")
            return jsonify({'error': f'Database error: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    # ============================================================================
    # AUDIT LOGS
    # ============================================================================

    @app.route('/api/auditlogs', methods=['GET'])
    def get_audit_logs():
        """Get audit logs with pagination and filters"""
        conn = None
        try:
            try:
                page = int(request.args.get('page', 1))
                page_size = int(request.args.get('pageSize', 50))
            except (ValueError, TypeError):
                return jsonify({'error': 'Invalid pagination parameters'}), 400

            if page < 1:
                page = 1
            if page_size < 1 or page_size > 100:
                page_size = min(max(page_size, 1), 100)

            where_clauses = []
            params = []
            if request.args.get('entityName'):
                where_clauses.append("EntityName = ?")
                params.append(request.args['entityName'])
            if request.args.get('action'):
                where_clauses.append("Action = ?")
                params.append(request.args['action'])
            if request.args.get('startDate'):
                where_clauses.append("DATE(Timestamp) >= ?")
                params.append(request.args['startDate'])
            if request.args.get('endDate'):
                where_clauses.append("DATE(Timestamp) <= ?")
                params.append(request.args['endDate'])
            where_sql = " AND ".join(where_clauses) if where_clauses else "1=1"

            conn = db.get_connection()
            cursor = conn.cursor()
            cursor.execute(f"SELECT COUNT(*) AS total FROM AuditLogs WHERE {where_sql}", params)
            total_count = cursor.fetchone()['total']

            total_pages = (total_count + page_size - 1) // page_size if total_count > 0 else 1
            offset = (page - 1) * page_size

            cursor.execute(f"""
                SELECT Id, Timestamp, UserName, EntityName, EntityId, Action, Changes
                FROM AuditLogs
                WHERE {where_sql}
                ORDER BY Timestamp DESC, Id DESC
                LIMIT ? OFFSET ?
            """, params + [page_size, offset])

            items = []
            for row in cursor.fetchall():
                items.append({
                    'id': row['Id'],
                    'timestamp': row['Timestamp'],
                    'userName': row['UserName'],
                    'entityName': row['EntityName'],
                    'entityId': row['EntityId'],
                    'action': row['Action'],
                    'changes': row['Changes']
                })

            return jsonify({
                'items': items,
                'page': page,
                'pageSize': page_size,
                'totalCount': total_count,
                'totalPages': total_pages,
                'hasPreviousPage': page > 1,
                'hasNextPage': page < total_pages
            })
        except Exception as e:
            app.logger.error(f"Get audit logs error: {str(e)}")
            return jsonify({'error': f'Error loading audit logs: {str(e)}'}), 500
        finally:
            if conn:
                conn.close()

    return app


if __name__ == "__main__":
    # Only enable debug in development (not in production)
    debug_mode = os.environ.get('FLASK_ENV') == 'development'
    app = create_app(os.environ.get('SCHEDULER_DB', 'scheduler.db'))
    app.run(debug=debug_mode, port=5000)
