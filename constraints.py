"""
OR-Tools CP-SAT constraints for schedule generation.
Implements all hard and soft rules as constraints.

Hard constraints are always satisfied by any returned solution. Coverage and
rank/experience minimums are hard equalities with slack variables, so the
model stays feasible when there are too few people; the slack is penalized
in the objective and reported as conflicts afterwards.
"""

from ortools.sat.python import cp_model
from datetime import date, timedelta
from typing import Dict, List, Set, Tuple

from entities import (
    Employee, ShiftPattern, ChemistryPair, ScheduleEntry, GenerationConstraints,
    week_start, time_to_minutes
)

# Objective weights
SHORTFALL_PENALTY = 10000
REQUIREMENT_PENALTY = 2000
FAIRNESS_PENALTY = 300

MINUTES_PER_DAY = 24 * 60


def _pattern_minutes(pattern: ShiftPattern, day_offset: int = 0) -> Tuple[int, int]:
    """Start and end of a pattern in minutes, relative to midnight of a reference day"""
    start = day_offset * MINUTES_PER_DAY + pattern.start_minutes
    return start, start + pattern.duration_minutes


def _intervals_overlap(a: Tuple[int, int], b: Tuple[int, int]) -> bool:
    return a[0] < b[1] and b[0] < a[1]


def add_coverage_constraints(
    model: cp_model.CpModel,
    x: Dict[Tuple[int, date, int], cp_model.IntVar],
    shortfall: Dict[Tuple[date, int], cp_model.IntVar],
    required: Dict[Tuple[date, int], int],
    employees: List[Employee]
):
    """
    HARD CONSTRAINT: Every pattern slot is filled or the gap is accounted for.

    Constraint: For each date d and pattern p with required > 0:
        Sum(x[e][d][p] for all e) + shortfall[d][p] == required[d][p]
    """
    for (d, pattern_id), req in required.items():
        if req <= 0:
            continue
        assigned = [
            x[(emp.id, d, pattern_id)] for emp in employees
            if (emp.id, d, pattern_id) in x
        ]
        model.Add(sum(assigned) + shortfall[(d, pattern_id)] == req)


def add_one_shift_per_day_constraints(
    model: cp_model.CpModel,
    x: Dict[Tuple[int, date, int], cp_model.IntVar],
    employees: List[Employee],
    dates: List[date],
    patterns: List[ShiftPattern]
):
    """
    HARD CONSTRAINT: An employee works at most one shift per day.
    """
    for emp in employees:
        for d in dates:
            day_vars = [x[(emp.id, d, p.id)] for p in patterns if (emp.id, d, p.id) in x]
            if len(day_vars) > 1:
                model.AddAtMostOne(day_vars)


def add_chemistry_constraints(
    model: cp_model.CpModel,
    x: Dict[Tuple[int, date, int], cp_model.IntVar],
    chemistry: List[ChemistryPair],
    dates: List[date],
    patterns: List[ShiftPattern],
    existing_entries: List[ScheduleEntry] = None
):
    """
    HARD CONSTRAINT: Conflict pairs never work overlapping shifts.

    Checks same-day overlaps and overnight shifts spilling into the next day.
    Existing entries of one partner block overlapping shifts for the other.
    """
    existing_entries = existing_entries or []
    conflict_pairs = [pair for pair in chemistry if pair.is_conflict]

    for pair in conflict_pairs:
        for first, second in ((pair.employee1_id, pair.employee2_id),
                              (pair.employee2_id, pair.employee1_id)):
            for d in dates:
                for p1 in patterns:
                    var1 = x.get((first, d, p1.id))
                    if var1 is None:
                        continue
                    interval1 = _pattern_minutes(p1)

                    # Partner on the same day or the following day
                    for offset in (0, 1):
                        other_day = d + timedelta(days=offset)
                        for p2 in patterns:
                            var2 = x.get((second, other_day, p2.id))
                            if var2 is None:
                                continue
                            # Same-day pairs are visited twice; add once
                            if offset == 0 and first > second:
                                continue
                            if _intervals_overlap(interval1, _pattern_minutes(p2, offset)):
                                model.Add(var1 + var2 <= 1)

                    # Partner's fixed shifts
                    for entry in existing_entries:
                        if entry.employee_id != second:
                            continue
                        offset = (entry.date - d).days
                        if abs(offset) > 1:
                            continue
                        entry_start = offset * MINUTES_PER_DAY + time_to_minutes(entry.start_time)
                        entry_end = entry_start + int(round(entry.get_duration_hours() * 60))
                        if _intervals_overlap(interval1, (entry_start, entry_end)):
                            model.Add(var1 == 0)


def add_requirement_constraints(
    model: cp_model.CpModel,
    x: Dict[Tuple[int, date, int], cp_model.IntVar],
    req_short: Dict[Tuple[date, int, str], cp_model.IntVar],
    required: Dict[Tuple[date, int], int],
    employees: List[Employee],
    patterns: List[ShiftPattern],
    reference_date: date,
    existing_assigned: Dict[Tuple[date, int], List[int]] = None
):
    """
    HARD CONSTRAINT (with slack): Rank and experience minimums per shift.

    Rank minimums are cumulative: an S-rank employee counts towards min_rank_a.
    Employees already covering the slot (fill_gaps) count towards the minimum.

    Constraint: For each slot and requirement key:
        Sum(x[e][d][p] for qualifying e) + req_short[d][p][key] >= minimum
    """
    existing_assigned = existing_assigned or {}
    by_id = {emp.id: emp for emp in employees}
    pattern_by_id = {p.id: p for p in patterns}

    for (d, pattern_id), req in required.items():
        pattern = pattern_by_id[pattern_id]
        if pattern.requirements.is_empty():
            continue
        already = [by_id[e] for e in existing_assigned.get((d, pattern_id), []) if e in by_id]

        checks = []
        for rank, minimum in pattern.requirements.rank_minimums().items():
            checks.append((f"rank_{rank}", minimum, lambda emp, r=rank: emp.rank_at_least(r)))
        for years, minimum in pattern.requirements.experience_levels.items():
            if minimum > 0:
                checks.append((
                    f"exp_{years}", minimum,
                    lambda emp, y=years: emp.years_of_service(reference_date) >= y
                ))

        for key, minimum, qualifies in checks:
            remaining = minimum - sum(1 for emp in already if qualifies(emp))
            if remaining <= 0:
                continue
            qualifying = [
                x[(emp.id, d, pattern_id)] for emp in employees
                if (emp.id, d, pattern_id) in x and qualifies(emp)
            ]
            slack = model.NewIntVar(0, remaining, f"req_short_{d}_p{pattern_id}_{key}")
            req_short[(d, pattern_id, key)] = slack
            model.Add(sum(qualifying) + slack >= remaining)


def add_consecutive_days_constraints(
    model: cp_model.CpModel,
    x: Dict[Tuple[int, date, int], cp_model.IntVar],
    employees: List[Employee],
    dates: List[date],
    patterns: List[ShiftPattern],
    constraints: GenerationConstraints,
    history_days: Dict[int, Set[date]] = None
):
    """
    HARD CONSTRAINT: Maximum consecutive working days.

    Every window of (max + 1) days has at most max worked days. Windows reach
    back before the planning period using days already worked (history).
    A stricter personal limit replaces the global one.
    """
    history_days = history_days or {}
    if not dates:
        return

    for emp in employees:
        limit = constraints.max_consecutive_days
        if emp.preference and emp.preference.max_consecutive_days:
            limit = min(limit, emp.preference.max_consecutive_days)
        if limit <= 0:
            continue
        worked_before = history_days.get(emp.id, set())

        first = dates[0] - timedelta(days=limit)
        window_starts = [first + timedelta(days=i) for i in range((dates[-1] - first).days - limit + 1)]

        for window_start in window_starts:
            window_vars = []
            fixed = 0
            for offset in range(limit + 1):
                d = window_start + timedelta(days=offset)
                day_vars = [x[(emp.id, d, p.id)] for p in patterns if (emp.id, d, p.id) in x]
                if day_vars:
                    window_vars.extend(day_vars)
                elif d in worked_before:
                    fixed += 1
            if window_vars:
                model.Add(sum(window_vars) <= max(0, limit - fixed))


def add_weekly_hours_constraints(
    model: cp_model.CpModel,
    x: Dict[Tuple[int, date, int], cp_model.IntVar],
    employees: List[Employee],
    dates: List[date],
    patterns: List[ShiftPattern],
    constraints: GenerationConstraints,
    existing_minutes: Dict[Tuple[int, date], int] = None
):
    """
    HARD CONSTRAINT: Maximum working hours per Sunday-Saturday week.

    Hours are scaled to integer minutes. Minutes already worked in the week
    (existing entries) are subtracted from the budget.
    """
    existing_minutes = existing_minutes or {}
    limit_minutes = int(round(constraints.max_weekly_hours * 60))

    weeks: Dict[date, List[date]] = {}
    for d in dates:
        weeks.setdefault(week_start(d), []).append(d)

    for emp in employees:
        for sunday, week_dates in weeks.items():
            terms = []
            for d in week_dates:
                for p in patterns:
                    var = x.get((emp.id, d, p.id))
                    if var is not None:
                        terms.append(p.duration_minutes * var)
            if terms:
                budget = max(0, limit_minutes - existing_minutes.get((emp.id, sunday), 0))
                model.Add(sum(terms) <= budget)


def add_rest_constraints(
    model: cp_model.CpModel,
    x: Dict[Tuple[int, date, int], cp_model.IntVar],
    employees: List[Employee],
    dates: List[date],
    patterns: List[ShiftPattern],
    constraints: GenerationConstraints
):
    """
    HARD CONSTRAINT: Minimum rest between shifts on consecutive days.

    For each pattern pair whose gap (end of day d shift to start of day d+1
    shift) is below min_rest_hours, both cannot be assigned.
    """
    min_rest = int(round(constraints.min_rest_hours * 60))

    forbidden = []
    for p1 in patterns:
        _, end1 = _pattern_minutes(p1)
        for p2 in patterns:
            start2, _ = _pattern_minutes(p2, 1)
            if start2 - end1 < min_rest:
                forbidden.append((p1.id, p2.id))

    for emp in employees:
        for d in dates[:-1]:
            next_day = d + timedelta(days=1)
            for p1_id, p2_id in forbidden:
                var1 = x.get((emp.id, d, p1_id))
                var2 = x.get((emp.id, next_day, p2_id))
                if var1 is not None and var2 is not None:
                    model.Add(var1 + var2 <= 1)


def add_objective_terms(
    model: cp_model.CpModel,
    x: Dict[Tuple[int, date, int], cp_model.IntVar],
    shortfall: Dict[Tuple[date, int], cp_model.IntVar],
    req_short: Dict[Tuple[date, int, str], cp_model.IntVar],
    employees: List[Employee],
    dates: List[date],
    constraints: GenerationConstraints,
    score_coef: Dict[Tuple[int, date, int], int]
) -> List:
    """
    SOFT CONSTRAINTS: Optimization objectives.

    Goals (in order of weight):
    - Fill every position (shortfall)
    - Meet rank/experience minimums (req_short)
    - Spread working days evenly (max days - min days)
    - Prefer high scoring candidates (ability, preferences, seniority)

    Returns list of objective terms to minimize.
    """
    objective_terms = []

    for var in shortfall.values():
        objective_terms.append(SHORTFALL_PENALTY * var)

    for var in req_short.values():
        objective_terms.append(REQUIREMENT_PENALTY * var)

    if constraints.fair_distribution:
        day_counts = []
        for emp in employees:
            emp_vars = [var for (emp_id, _, _), var in x.items() if emp_id == emp.id]
            if emp_vars:
                total = model.NewIntVar(0, len(dates), f"days_worked_{emp.id}")
                model.Add(total == sum(emp_vars))
                day_counts.append(total)

        if len(day_counts) > 1:
            max_days = model.NewIntVar(0, len(dates), "max_days")
            min_days = model.NewIntVar(0, len(dates), "min_days")
            model.AddMaxEquality(max_days, day_counts)
            model.AddMinEquality(min_days, day_counts)
            objective_terms.append(FAIRNESS_PENALTY * (max_days - min_days))

    for key, var in x.items():
        coef = score_coef.get(key, 0)
        if coef:
            objective_terms.append(-coef * var)

    return objective_terms
