"""
Solver for the schedule generation problem using OR-Tools CP-SAT.
Configures and runs the solver, returns solution.
"""

from ortools.sat.python import cp_model
from datetime import date, timedelta
from typing import List, Dict, Tuple, Optional, Any

from entities import ScheduleEntry, determine_shift_type
from model import SchedulingModel
from violation_tracker import ViolationTracker
from constraints import (
    add_coverage_constraints,
    add_one_shift_per_day_constraints,
    add_chemistry_constraints,
    add_requirement_constraints,
    add_consecutive_days_constraints,
    add_weekly_hours_constraints,
    add_rest_constraints,
    add_objective_terms
)


STATUS_NAMES = {
    cp_model.OPTIMAL: "OPTIMAL",
    cp_model.FEASIBLE: "FEASIBLE",
    cp_model.INFEASIBLE: "INFEASIBLE",
    cp_model.MODEL_INVALID: "MODEL_INVALID",
    cp_model.UNKNOWN: "UNKNOWN",
}


class SchedulingSolver:
    """
    Solver for the schedule generation problem.
    """

    def __init__(
        self,
        planning_model: SchedulingModel,
        time_limit_seconds: int = 30,
        num_workers: int = 8,
        log_search_progress: bool = False
    ):
        """
        Initialize the solver.

        Args:
            planning_model: The scheduling model
            time_limit_seconds: Maximum time for solver
            num_workers: Number of parallel workers for solver
            log_search_progress: Let CP-SAT print its search log
        """
        self.planning_model = planning_model
        self.time_limit_seconds = time_limit_seconds
        self.num_workers = num_workers
        self.log_search_progress = log_search_progress
        self.solution = None
        self.status = None

    def add_all_constraints(self):
        """
        Add all constraints to the model.
        """
        pm = self.planning_model
        model = pm.get_model()
        x, shortfall, req_short = pm.get_variables()
        constraints = pm.constraints

        print("Adding constraints...")

        # Hard constraints (must be satisfied)
        print("  - Coverage (required staff per shift, shortfall tracked)")
        add_coverage_constraints(model, x, shortfall, pm.required, pm.employees)

        print("  - One shift per employee per day")
        add_one_shift_per_day_constraints(model, x, pm.employees, pm.dates, pm.patterns)

        if constraints.avoid_poor_chemistry:
            print("  - Conflict pairs never on overlapping shifts")
            add_chemistry_constraints(model, x, pm.chemistry, pm.dates, pm.patterns, pm.existing_entries)

        print("  - Rank and experience minimums")
        add_requirement_constraints(
            model, x, req_short, pm.required, pm.employees, pm.patterns,
            pm.reference_date, pm.existing_assigned)

        print(f"  - Consecutive days (max {constraints.max_consecutive_days})")
        add_consecutive_days_constraints(
            model, x, pm.employees, pm.dates, pm.patterns, constraints, pm.history_days())

        print(f"  - Weekly hours (max {constraints.max_weekly_hours}h)")
        add_weekly_hours_constraints(
            model, x, pm.employees, pm.dates, pm.patterns, constraints, pm.existing_minutes_by_week())

        print(f"  - Rest between shifts (min {constraints.min_rest_hours}h)")
        add_rest_constraints(model, x, pm.employees, pm.dates, pm.patterns, constraints)

        # Soft constraints (optimization objectives)
        print("  - Objective (coverage, requirements, fairness, scores)")
        objective_terms = add_objective_terms(
            model, x, shortfall, req_short, pm.employees, pm.dates, constraints, pm.score_coef)

        if objective_terms:
            model.Minimize(sum(objective_terms))

        print("All constraints added successfully!")

    def solve(self) -> bool:
        """
        Solve the scheduling problem.

        Returns:
            True if a solution was found, False otherwise
        """
        model = self.planning_model.get_model()

        solver = cp_model.CpSolver()
        solver.parameters.max_time_in_seconds = self.time_limit_seconds
        solver.parameters.num_workers = self.num_workers
        solver.parameters.log_search_progress = self.log_search_progress

        print("\n" + "=" * 60)
        print("STARTING SOLVER")
        print("=" * 60)
        print(f"Time limit: {self.time_limit_seconds} seconds")
        print(f"Parallel workers: {self.num_workers}")
        print()

        self.status = solver.Solve(model)
        self.solution = solver

        print("\n" + "=" * 60)
        print("SOLVER RESULTS")
        print("=" * 60)

        if self.status == cp_model.OPTIMAL:
            print("✓ OPTIMAL solution found!")
        elif self.status == cp_model.FEASIBLE:
            print("✓ FEASIBLE solution found (not proven optimal)")
        elif self.status == cp_model.INFEASIBLE:
            print("✗ INFEASIBLE - No solution exists!")
            return False
        elif self.status == cp_model.MODEL_INVALID:
            print("✗ MODEL INVALID - Check constraints!")
            return False
        else:
            print(f"✗ No solution within time limit (status: {STATUS_NAMES.get(self.status, self.status)})")
            return False

        print("\nSolver statistics:")
        print(f"  - Wall time: {solver.WallTime():.2f} seconds")
        print(f"  - Branches: {solver.NumBranches()}")
        print(f"  - Conflicts: {solver.NumConflicts()}")
        print(f"  - Objective value: {solver.ObjectiveValue()}")

        print("=" * 60)

        return True

    def extract_solution(self) -> Tuple[List[ScheduleEntry], ViolationTracker]:
        """
        Extract schedule entries from the solution.

        Returns:
            Tuple of (entries, tracker) where the tracker holds unfilled
            positions and unmet requirements
        """
        tracker = ViolationTracker()
        if not self.solution or self.status not in [cp_model.OPTIMAL, cp_model.FEASIBLE]:
            return [], tracker

        pm = self.planning_model
        x, shortfall, req_short = pm.get_variables()

        entries = []
        for (emp_id, d, pattern_id), var in sorted(x.items(), key=lambda item: (item[0][1], item[0][2], item[0][0])):
            if self.solution.Value(var) == 1:
                pattern = pm.get_pattern_by_id(pattern_id)
                entries.append(ScheduleEntry(
                    employee_id=emp_id,
                    date=d,
                    start_time=pattern.start_time,
                    end_time=pattern.end_time,
                    shift_type=determine_shift_type(pattern.start_time, pattern.end_time),
                    shift_pattern_id=pattern.id,
                    status="scheduled",
                    notes=f"Auto-generated: {pattern.name}"
                ))

        for (d, pattern_id), var in sorted(shortfall.items()):
            missing = self.solution.Value(var)
            if missing > 0:
                pattern = pm.get_pattern_by_id(pattern_id)
                required = pm.required[(d, pattern_id)]
                tracker.add_violation(
                    "insufficient_staff", "high",
                    date=d, pattern_id=pattern_id, pattern_name=pattern.name,
                    required=required, available=required - missing,
                    description=f"{pattern.name} on {d.isoformat()} is short by {missing} staff"
                )

        for (d, pattern_id, key), var in sorted(req_short.items()):
            missing = self.solution.Value(var)
            if missing > 0:
                pattern = pm.get_pattern_by_id(pattern_id)
                tracker.add_violation(
                    "requirement_unmet", "medium",
                    date=d, pattern_id=pattern_id, pattern_name=pattern.name,
                    description=f"{pattern.name} on {d.isoformat()}: requirement {describe_requirement(key)} "
                                f"short by {missing}"
                )

        return entries, tracker

    def get_statistics(self) -> Dict[str, Any]:
        """
        Get solution statistics.

        Returns:
            Dictionary with statistics
        """
        if not self.solution:
            return {}

        solved = self.status in [cp_model.OPTIMAL, cp_model.FEASIBLE]
        return {
            "status": STATUS_NAMES.get(self.status, str(self.status)),
            "wall_time": self.solution.WallTime(),
            "branches": self.solution.NumBranches(),
            "conflicts": self.solution.NumConflicts(),
            "objective_value": self.solution.ObjectiveValue() if solved else None,
            "variables": len(self.planning_model.x),
        }


def describe_requirement(key: str) -> str:
    """Human readable form of a requirement key such as rank_A or exp_3"""
    kind, _, value = key.partition("_")
    if kind == "rank":
        return f"rank {value} or better"
    if kind == "exp":
        return f"{value}+ years of experience"
    return key


def solve_schedule(
    planning_model: SchedulingModel,
    time_limit_seconds: int = 30,
    num_workers: int = 8
) -> Optional[Tuple[List[ScheduleEntry], ViolationTracker]]:
    """
    Solve the scheduling problem.

    Args:
        planning_model: The scheduling model
        time_limit_seconds: Maximum time for solver
        num_workers: Number of parallel workers

    Returns:
        Tuple of (entries, tracker) if solution found, None otherwise
    """
    solver = SchedulingSolver(planning_model, time_limit_seconds, num_workers)
    solver.add_all_constraints()

    if solver.solve():
        entries, tracker = solver.extract_solution()
        planning_model.solver_statistics = solver.get_statistics()
        return entries, tracker
    return None


if __name__ == "__main__":
    from data_loader import generate_sample_data
    from model import create_scheduling_model

    print("Generating sample data...")
    employees, patterns, leaves, chemistry = generate_sample_data()

    start = date.today()
    end = start + timedelta(days=13)

    print("Creating model...")
    planning_model = create_scheduling_model(employees, patterns, start, end, leaves, chemistry)
    planning_model.print_model_statistics()

    print("\nSolving...")
    result = solve_schedule(planning_model, time_limit_seconds=30)

    if result:
        entries, tracker = result
        print("\n✓ Solution found!")
        print(f"  - Total shifts: {len(entries)}")
        print(f"  - {tracker.get_summary()['message']}")
    else:
        print("\n✗ No solution found!")
