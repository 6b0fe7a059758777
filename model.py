"""
OR-Tools CP-SAT model builder for schedule generation.
Creates decision variables and orchestrates constraint addition.

Model structure:
- x[emp_id, date, pattern_id]: employee works this shift pattern on this date.
  Only created when the employee is statically eligible (no leave, no existing
  shift that day, weekend/night/unavailable-hour preferences, rest to existing shifts).
- shortfall[date, pattern_id]: unfilled positions, heavily penalized.
- req_short[date, pattern_id, key]: unmet rank/experience minimums (created by constraints).
"""

from ortools.sat.python import cp_model
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Tuple, Optional, Set

from entities import (
    Employee, ShiftPattern, LeaveRequest, LeaveStatus, ChemistryPair, ScheduleEntry,
    GenerationConstraints, GenerationPriorities, is_weekend, week_start
)
from analytics import calculate_employee_score

GENERATION_MODES = ("replace", "append", "fill_gaps")


def shift_interval(pattern: ShiftPattern, d: date) -> Tuple[datetime, datetime]:
    """Absolute start and end of a pattern worked on date d"""
    hours, minutes = pattern.start_time.split(":")
    start = datetime.combine(d, time(int(hours), int(minutes)))
    return start, start + timedelta(minutes=pattern.duration_minutes)


def static_ineligibility_reason(
    employee: Employee,
    d: date,
    pattern: ShiftPattern,
    leaves: List[LeaveRequest],
    existing_by_emp_date: Dict[Tuple[int, date], List[ScheduleEntry]],
    constraints: GenerationConstraints
) -> Optional[str]:
    """
    Check whether an employee can work a pattern on a date independent of
    any other assignment in the plan.

    Returns:
        None if eligible, otherwise a short reason
    """
    for leave in leaves:
        if leave.employee_id == employee.id and leave.overlaps_date(d):
            return "on_leave"

    if existing_by_emp_date.get((employee.id, d)):
        return "already_scheduled"

    pref = employee.preference
    if pref:
        if is_weekend(d) and not pref.can_work_weekends:
            return "no_weekends"
        if pattern.is_night_shift and not pref.can_work_night_shifts:
            return "no_night_shifts"
        if pref.unavailable_time_slots:
            unavailable = set(pref.unavailable_time_slots)
            if any(hour in unavailable for hour in pattern.covered_hours()):
                return "unavailable_hours"

    # Rest to already existing shifts on neighbouring days
    start, end = shift_interval(pattern, d)
    min_rest = timedelta(hours=constraints.min_rest_hours)
    for entry in existing_by_emp_date.get((employee.id, d - timedelta(days=1)), []):
        if start - entry.end_datetime < min_rest:
            return "insufficient_rest"
    for entry in existing_by_emp_date.get((employee.id, d + timedelta(days=1)), []):
        if entry.start_datetime - end < min_rest:
            return "insufficient_rest"

    return None


class SchedulingModel:
    """
    Builds and manages the OR-Tools CP-SAT model for schedule generation.
    """

    def __init__(
        self,
        employees: List[Employee],
        patterns: List[ShiftPattern],
        start_date: date,
        end_date: date,
        leaves: List[LeaveRequest] = None,
        chemistry: List[ChemistryPair] = None,
        constraints: GenerationConstraints = None,
        priorities: GenerationPriorities = None,
        existing_entries: List[ScheduleEntry] = None,
        mode: str = "replace",
        reference_date: date = None
    ):
        """
        Initialize the scheduling model.

        Args:
            employees: Employees that may be scheduled
            patterns: Shift patterns (disabled ones are ignored)
            start_date: Start date of planning period
            end_date: End date of planning period (inclusive)
            leaves: Leave requests; only approved ones block scheduling
            chemistry: Chemistry ratings between employees
            constraints: Generation limits (defaults if omitted)
            priorities: Scoring weights (defaults if omitted)
            existing_entries: Schedule entries that stay in place. May include
                              history before start_date for consecutive-day and
                              weekly-hour continuity.
            mode: replace, append or fill_gaps
            reference_date: Date used for seniority (defaults to start_date)
        """
        if start_date > end_date:
            raise ValueError("start_date must not be after end_date")
        if mode not in GENERATION_MODES:
            raise ValueError(f"Unknown generation mode: {mode}")

        self.model = cp_model.CpModel()
        self.employees = employees
        self.patterns = [p for p in patterns if p.enabled]
        self.start_date = start_date
        self.end_date = end_date
        self.leaves = [lv for lv in (leaves or []) if lv.status == LeaveStatus.APPROVED]
        self.chemistry = chemistry or []
        self.constraints = constraints or GenerationConstraints()
        self.priorities = priorities or GenerationPriorities()
        self.existing_entries = existing_entries or []
        self.mode = mode
        self.reference_date = reference_date or start_date

        self.dates: List[date] = []
        current = start_date
        while current <= end_date:
            self.dates.append(current)
            current += timedelta(days=1)

        self.existing_by_emp_date: Dict[Tuple[int, date], List[ScheduleEntry]] = {}
        for entry in self.existing_entries:
            self.existing_by_emp_date.setdefault((entry.employee_id, entry.date), []).append(entry)

        # Variables
        self.x: Dict[Tuple[int, date, int], cp_model.IntVar] = {}
        self.shortfall: Dict[Tuple[date, int], cp_model.IntVar] = {}
        self.req_short: Dict[Tuple[date, int, str], cp_model.IntVar] = {}
        self.required: Dict[Tuple[date, int], int] = {}
        self.score_coef: Dict[Tuple[int, date, int], int] = {}
        # Employees already covering a pattern slot (fill_gaps only)
        self.existing_assigned: Dict[Tuple[date, int], List[int]] = {}
        # Why candidates were excluded, for diagnostics
        self.ineligible: Dict[str, int] = {}
        # Filled in by solve_schedule
        self.solver_statistics: Dict = {}

        self._compute_required_staff()
        self._create_decision_variables()

    def _compute_required_staff(self):
        """Staff still needed per (date, pattern)"""
        for d in self.dates:
            for pattern in self.patterns:
                if not pattern.applies_on(d):
                    continue
                required = pattern.required_staff
                if self.mode == "fill_gaps":
                    assigned = [
                        e.employee_id for e in self.existing_entries
                        if e.date == d and e.shift_pattern_id == pattern.id
                    ]
                    self.existing_assigned[(d, pattern.id)] = assigned
                    required = max(0, required - len(assigned))
                self.required[(d, pattern.id)] = required

    def _create_decision_variables(self):
        """
        Create x for every statically eligible (employee, date, pattern)
        and one shortfall variable per pattern slot.
        """
        for (d, pattern_id), required in self.required.items():
            if required <= 0:
                continue
            pattern = self.get_pattern_by_id(pattern_id)

            self.shortfall[(d, pattern_id)] = self.model.NewIntVar(
                0, required, f"shortfall_{d}_p{pattern_id}")

            for emp in self.employees:
                reason = static_ineligibility_reason(
                    emp, d, pattern, self.leaves, self.existing_by_emp_date, self.constraints)
                if reason:
                    self.ineligible[reason] = self.ineligible.get(reason, 0) + 1
                    continue

                self.x[(emp.id, d, pattern_id)] = self.model.NewBoolVar(f"x_e{emp.id}_{d}_p{pattern_id}")

                score, _ = calculate_employee_score(
                    emp, d, pattern, self.priorities, self.constraints,
                    reference_date=self.reference_date, include_dynamic=False)
                self.score_coef[(emp.id, d, pattern_id)] = int(round(10 * score))

    def get_model(self) -> cp_model.CpModel:
        """Get the CP-SAT model"""
        return self.model

    def get_variables(self) -> Tuple[
        Dict[Tuple[int, date, int], cp_model.IntVar],
        Dict[Tuple[date, int], cp_model.IntVar],
        Dict[Tuple[date, int, str], cp_model.IntVar]
    ]:
        """
        Get all decision variables.

        Returns:
            Tuple of (x, shortfall, req_short)
        """
        return self.x, self.shortfall, self.req_short

    def get_employee_by_id(self, emp_id: int) -> Employee:
        """Get employee by ID"""
        for emp in self.employees:
            if emp.id == emp_id:
                return emp
        raise ValueError(f"Employee {emp_id} not found")

    def get_pattern_by_id(self, pattern_id: int) -> ShiftPattern:
        """Get shift pattern by ID"""
        for pattern in self.patterns:
            if pattern.id == pattern_id:
                return pattern
        raise ValueError(f"Shift pattern {pattern_id} not found")

    def history_days(self) -> Dict[int, Set[date]]:
        """Days already worked per employee according to existing entries"""
        worked: Dict[int, Set[date]] = {}
        for entry in self.existing_entries:
            worked.setdefault(entry.employee_id, set()).add(entry.date)
        return worked

    def existing_minutes_by_week(self) -> Dict[Tuple[int, date], int]:
        """Minutes already worked per (employee, week start) according to existing entries"""
        minutes: Dict[Tuple[int, date], int] = {}
        for entry in self.existing_entries:
            key = (entry.employee_id, week_start(entry.date))
            minutes[key] = minutes.get(key, 0) + int(round(entry.get_duration_hours() * 60))
        return minutes

    def print_model_statistics(self):
        """Print statistics about the model"""
        print("=" * 60)
        print("MODEL STATISTICS")
        print("=" * 60)
        print(f"Planning period: {self.start_date} to {self.end_date}")
        print(f"Number of days: {len(self.dates)}")
        print(f"Mode: {self.mode}")
        print(f"Number of employees: {len(self.employees)}")
        print(f"Number of shift patterns: {len(self.patterns)}")
        for pattern in self.patterns:
            print(f"  - {pattern.name}: {pattern.start_time}-{pattern.end_time}, "
                  f"{pattern.required_staff} staff")
        print(f"Approved leaves: {len(self.leaves)}")
        print(f"Existing entries: {len(self.existing_entries)}")
        print()
        print("Decision variables:")
        print(f"  - Assignment variables: {len(self.x)}")
        print(f"  - Shortfall variables: {len(self.shortfall)}")
        print(f"  - Positions to fill: {sum(self.required.values())}")
        if self.ineligible:
            excluded = ", ".join(f"{k}={v}" for k, v in sorted(self.ineligible.items()))
            print(f"  - Excluded candidates: {excluded}")
        print("=" * 60)


def create_scheduling_model(
    employees: List[Employee],
    patterns: List[ShiftPattern],
    start_date: date,
    end_date: date,
    leaves: List[LeaveRequest] = None,
    chemistry: List[ChemistryPair] = None,
    constraints: GenerationConstraints = None,
    priorities: GenerationPriorities = None,
    existing_entries: List[ScheduleEntry] = None,
    mode: str = "replace",
    reference_date: date = None
) -> SchedulingModel:
    """
    Factory function to create a scheduling model.

    Returns:
        SchedulingModel instance
    """
    return SchedulingModel(
        employees, patterns, start_date, end_date, leaves, chemistry,
        constraints, priorities, existing_entries, mode, reference_date
    )


if __name__ == "__main__":
    from data_loader import generate_sample_data

    employees, patterns, leaves, chemistry = generate_sample_data()

    start = date.today()
    end = start + timedelta(days=13)

    planning_model = create_scheduling_model(employees, patterns, start, end, leaves, chemistry)
    planning_model.print_model_statistics()

    print("\nModel created successfully!")
