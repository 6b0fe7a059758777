"""
Schedule generation workflow.

Loads employees, patterns, leaves and existing shifts, runs the CP-SAT
model (falling back to the greedy generator) or the greedy generator
directly, validates the result and stores it as schedules or as a draft.
"""

import json
import logging
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone
from typing import List, Dict, Tuple, Optional, Any

from db_init import Database, log_audit
from data_loader import load_from_database, get_existing_schedules, load_operating_hours_template
from entities import (
    Employee, ShiftPattern, LeaveRequest, ChemistryPair, ScheduleEntry, DraftItem,
    GenerationConstraints, GenerationPriorities, week_start
)
from model import GENERATION_MODES, create_scheduling_model
from solver import solve_schedule
from heuristic import generate_greedy_schedule
from violation_tracker import ViolationTracker
from validation import validate_schedule, ValidationResult
from analytics import (
    build_generation_summary, calculate_employee_satisfaction, generate_improvement_recommendations
)
from drafts import create_draft
from template_shifts import template_to_patterns

logger = logging.getLogger(__name__)

STRATEGIES = ("optimal", "greedy")


class GenerationError(ValueError):
    """Invalid generation request"""


def _match_template_shift(entry: ScheduleEntry, patterns: List[ShiftPattern]) -> ScheduleEntry:
    """Stored shift with the time window of a template shift counts toward that shift"""
    if entry.shift_pattern_id is not None:
        return entry
    for pattern in patterns:
        if (pattern.start_time, pattern.end_time) == (entry.start_time, entry.end_time) and pattern.applies_on(entry.date):
            return replace(entry, shift_pattern_id=pattern.id)
    return entry


def run_generation(
    employees: List[Employee],
    patterns: List[ShiftPattern],
    start_date: date,
    end_date: date,
    leaves: List[LeaveRequest],
    chemistry: List[ChemistryPair],
    constraints: GenerationConstraints,
    priorities: GenerationPriorities,
    existing_entries: List[ScheduleEntry] = None,
    mode: str = "replace",
    strategy: str = "optimal",
    time_limit_seconds: int = 30,
    num_workers: int = 8,
    reference_date: date = None
) -> Tuple[List[ScheduleEntry], ViolationTracker, str, Dict[str, Any]]:
    """
    Run the selected engine on in-memory data.

    Returns:
        Tuple of (entries, tracker, strategy_used, solver_statistics)
    """
    if strategy == "optimal":
        planning_model = create_scheduling_model(
            employees, patterns, start_date, end_date, leaves, chemistry,
            constraints, priorities, existing_entries, mode, reference_date
        )
        planning_model.print_model_statistics()
        result = solve_schedule(planning_model, time_limit_seconds, num_workers)
        if result:
            entries, tracker = result
            logger.info("CP-SAT created %d shifts", len(entries))
            return entries, tracker, "optimal", planning_model.solver_statistics

        logger.warning("CP-SAT found no solution for %s to %s, falling back to greedy", start_date, end_date)
        entries, tracker = generate_greedy_schedule(
            employees, patterns, start_date, end_date, leaves, chemistry,
            constraints, priorities, existing_entries, mode, reference_date
        )
        tracker.add_violation(
            "solver_fallback", "low",
            description="Optimizer found no solution within the time limit; greedy generation was used"
        )
        return entries, tracker, "greedy", planning_model.solver_statistics

    entries, tracker = generate_greedy_schedule(
        employees, patterns, start_date, end_date, leaves, chemistry,
        constraints, priorities, existing_entries, mode, reference_date
    )
    return entries, tracker, "greedy", {}


def validate_generation_request(start_date: date, end_date: date, mode: str, strategy: str,
                                patterns: List[ShiftPattern], employees: List[Employee]):
    if start_date > end_date:
        raise GenerationError("Start date must not be after end date")
    if mode not in GENERATION_MODES:
        raise GenerationError(f"Mode must be one of: {', '.join(GENERATION_MODES)}")
    if strategy not in STRATEGIES:
        raise GenerationError(f"Strategy must be one of: {', '.join(STRATEGIES)}")
    if not any(p.enabled for p in patterns):
        raise GenerationError("At least one enabled shift pattern is required")
    if not employees:
        raise GenerationError("No employees available for scheduling")


def build_result(
    entries: List[ScheduleEntry],
    tracker: ViolationTracker,
    employees: List[Employee],
    patterns: List[ShiftPattern],
    start_date: date,
    end_date: date,
    constraints: GenerationConstraints,
    priorities: GenerationPriorities,
    strategy_used: str,
    solver_statistics: Dict[str, Any],
    validation: Optional[ValidationResult] = None
) -> Dict[str, Any]:
    """JSON-ready generation result"""
    conflicts = tracker.to_dicts()
    patterns_used = len({e.shift_pattern_id for e in entries if e.shift_pattern_id is not None})
    summary = build_generation_summary(entries, employees, start_date, end_date, conflicts, patterns_used)
    names = {emp.id: emp.name for emp in employees}
    pattern_names = {p.id: p.name for p in patterns}

    schedules = []
    for entry in entries:
        data = entry.to_dict()
        data["employeeName"] = names.get(entry.employee_id)
        data["shiftPattern"] = pattern_names.get(entry.shift_pattern_id)
        schedules.append(data)

    return {
        "success": True,
        "message": f"Generated {len(entries)} shifts for {start_date.isoformat()} to {end_date.isoformat()}",
        "summary": summary["summary"],
        "schedules": schedules,
        "conflicts": conflicts,
        "conflictSummary": tracker.get_summary(),
        "employeeSummary": summary["employeeSummary"],
        "recommendations": generate_improvement_recommendations(conflicts, summary["employeeSummary"]),
        "satisfaction": calculate_employee_satisfaction(summary["employeeSummary"], constraints),
        "constraints": constraints.to_dict(),
        "priorities": priorities.to_dict(),
        "strategyUsed": strategy_used,
        "solverStatistics": solver_statistics,
        "validation": validation.to_dict() if validation else None,
        "draftId": None,
    }


def generate_schedule(
    db_path: str,
    start_date: date,
    end_date: date,
    patterns: Optional[List[ShiftPattern]] = None,
    pattern_ids: Optional[List[int]] = None,
    employee_ids: Optional[List[int]] = None,
    department: Optional[str] = None,
    constraints: Optional[GenerationConstraints] = None,
    priorities: Optional[GenerationPriorities] = None,
    mode: str = "replace",
    strategy: str = "optimal",
    save_as_draft: bool = False,
    draft_name: Optional[str] = None,
    time_limit_seconds: int = 30,
    num_workers: int = 8,
    created_by: Optional[str] = None,
    template_id: Optional[int] = None,
    optimization_level: str = "standard",
    override_settings: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Generate and store a schedule for a period.

    Args:
        db_path: Path to the SQLite database
        start_date, end_date: Planning period (inclusive)
        patterns: Shift patterns to use instead of the stored ones
        pattern_ids: Only use these stored patterns
        template_id: Derive the shifts from this operating hours template
                     instead, cut by optimization_level (basic, standard,
                     advanced) with override_settings applied to every day
        employee_ids, department: Restrict the employees to schedule
        mode: replace (drop existing shifts of the selected employees in the
              period), append (keep them) or fill_gaps (keep them and only
              fill missing positions)
        strategy: optimal (CP-SAT with greedy fallback) or greedy
        save_as_draft: Store the result as a new draft instead of schedules

    Raises:
        GenerationError: Invalid request
        LookupError: Unknown template
    """
    constraints = constraints or GenerationConstraints()
    priorities = priorities or GenerationPriorities()

    employees, stored_patterns, leaves, chemistry = load_from_database(db_path, department, employee_ids)
    if template_id is not None:
        template = load_operating_hours_template(db_path, int(template_id))
        if template is None:
            raise LookupError(f"Operating hours template {template_id} not found")
        try:
            patterns = template_to_patterns(template, optimization_level, override_settings)
        except ValueError as e:
            raise GenerationError(str(e))
    elif patterns is None:
        patterns = stored_patterns
        if pattern_ids:
            wanted = {int(pid) for pid in pattern_ids}
            patterns = [p for p in patterns if p.id in wanted]
    patterns = [p for p in patterns if p.enabled]

    validate_generation_request(start_date, end_date, mode, strategy, patterns, employees)

    selected_ids = [emp.id for emp in employees]
    stored_ids = {p.id for p in stored_patterns}

    def stored_pattern_id(entry):
        # Template shifts have no ShiftPatterns row
        return entry.shift_pattern_id if entry.shift_pattern_id in stored_ids else None

    # Weekly hours count every shift of the Sunday weeks touching the period
    history_start = min(start_date - timedelta(days=constraints.max_consecutive_days), week_start(start_date))
    history_end = max(end_date + timedelta(days=1), week_start(end_date) + timedelta(days=6))
    existing = get_existing_schedules(db_path, history_start, history_end, selected_ids)
    if mode == "replace":
        existing = [e for e in existing if not start_date <= e.date <= end_date]
    if template_id is not None:
        existing = [_match_template_shift(e, patterns) for e in existing]

    logger.info("Generating %s to %s for %d employees, %d patterns (mode=%s, strategy=%s)",
                start_date, end_date, len(employees), len(patterns), mode, strategy)

    entries, tracker, strategy_used, solver_statistics = run_generation(
        employees, patterns, start_date, end_date, leaves, chemistry, constraints, priorities,
        existing, mode, strategy, time_limit_seconds, num_workers, start_date
    )

    kept = [e for e in existing if week_start(start_date) <= e.date <= history_end]
    validation = validate_schedule(
        kept + entries, employees, leaves,
        chemistry if constraints.avoid_poor_chemistry else [],
        patterns, constraints, start_date, end_date
    )

    result = build_result(entries, tracker, employees, patterns, start_date, end_date,
                          constraints, priorities, strategy_used, solver_statistics, validation)
    for entry, data in zip(entries, result["schedules"]):
        data["shiftPatternId"] = stored_pattern_id(entry)

    conn = Database(db_path).get_connection()
    try:
        if save_as_draft:
            draft = create_draft(
                conn,
                name=draft_name or f"Generated {start_date.isoformat()} - {end_date.isoformat()}",
                period_start=start_date,
                period_end=end_date,
                items=[
                    DraftItem(
                        employee_id=e.employee_id, date=e.date, start_time=e.start_time,
                        end_time=e.end_time, shift_type=e.shift_type,
                        shift_pattern_id=stored_pattern_id(e), notes=e.notes
                    )
                    for e in entries
                ],
                metadata={
                    "generatedBy": strategy_used,
                    "mode": mode,
                    "templateId": template_id,
                    "constraints": constraints.to_dict(),
                    "priorities": priorities.to_dict(),
                    "summary": result["summary"],
                },
                created_by=created_by,
            )
            result["draftId"] = draft.id
        else:
            if mode == "replace" and selected_ids:
                placeholders = ",".join("?" * len(selected_ids))
                removed = conn.execute(
                    f"DELETE FROM Schedules WHERE Date >= ? AND Date <= ? AND EmployeeId IN ({placeholders})",
                    [start_date.isoformat(), end_date.isoformat()] + selected_ids
                ).rowcount
                logger.info("Replaced %d existing shifts", removed)

            now = datetime.now(timezone.utc).isoformat()
            for entry, data in zip(entries, result["schedules"]):
                cursor = conn.execute("""
                    INSERT INTO Schedules (EmployeeId, ShiftPatternId, Date, StartTime, EndTime,
                                           ShiftType, Status, Notes, CreatedAt, CreatedBy)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, (entry.employee_id, stored_pattern_id(entry), entry.date.isoformat(), entry.start_time,
                      entry.end_time, entry.shift_type, entry.status, entry.notes, now, created_by))
                entry.id = cursor.lastrowid
                data["id"] = entry.id

        log_audit(conn, "Schedule", f"{start_date.isoformat()}..{end_date.isoformat()}", "Generate",
                  json.dumps({
                      "mode": mode,
                      "strategy": strategy_used,
                      "schedulesCreated": len(entries),
                      "conflicts": len(result["conflicts"]),
                      "draftId": result["draftId"],
                      "templateId": template_id,
                  }), created_by)
        conn.commit()
    finally:
        conn.close()

    if result["draftId"]:
        result["message"] += f" (saved as draft {result['draftId']})"
    logger.info(result["message"])
    return result
