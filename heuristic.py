"""
Greedy score-based schedule generator.

Walks the planning period day by day and fills every applicable shift
pattern with the best scoring eligible employees. Used as the "greedy"
strategy and as fallback when the CP-SAT model finds no solution.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Dict, Tuple, Optional, Set, Callable

from entities import (
    Employee, ShiftPattern, LeaveRequest, LeaveStatus, ChemistryPair, ScheduleEntry,
    GenerationConstraints, GenerationPriorities, determine_shift_type, week_start
)
from analytics import calculate_employee_score
from model import GENERATION_MODES, shift_interval, static_ineligibility_reason
from violation_tracker import ViolationTracker

logger = logging.getLogger(__name__)


@dataclass
class EmployeeStats:
    """Running totals for one employee while the plan is built"""
    days_scheduled: int = 0
    total_hours: float = 0.0
    worked_days: Set[date] = field(default_factory=set)
    week_hours: Dict[date, float] = field(default_factory=dict)
    intervals: List[Tuple[datetime, datetime]] = field(default_factory=list)

    def streak_before(self, d: date) -> int:
        """Consecutive worked days ending the day before d"""
        streak = 0
        current = d - timedelta(days=1)
        while current in self.worked_days:
            streak += 1
            current -= timedelta(days=1)
        return streak

    def record(self, d: date, start: datetime, end: datetime, hours: float, in_period: bool = True):
        self.worked_days.add(d)
        self.intervals.append((start, end))
        sunday = week_start(d)
        self.week_hours[sunday] = self.week_hours.get(sunday, 0.0) + hours
        if in_period:
            self.days_scheduled += 1
            self.total_hours += hours


class GreedyScheduler:
    """
    Day-by-day greedy generator.

    For every (date, pattern) slot:
    1. Rank and experience minimums are filled from the best qualifying candidates
    2. Remaining positions are filled by score, skipping conflict pairs
    3. If still short, conflict pairs are force-filled and recorded
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
        if start_date > end_date:
            raise ValueError("start_date must not be after end_date")
        if mode not in GENERATION_MODES:
            raise ValueError(f"Unknown generation mode: {mode}")

        self.employees = employees
        self.patterns = sorted((p for p in patterns if p.enabled), key=lambda p: (p.start_minutes, p.id or 0))
        self.start_date = start_date
        self.end_date = end_date
        self.leaves = [lv for lv in (leaves or []) if lv.status == LeaveStatus.APPROVED]
        self.constraints = constraints or GenerationConstraints()
        self.priorities = priorities or GenerationPriorities()
        self.existing_entries = existing_entries or []
        self.mode = mode
        self.reference_date = reference_date or start_date

        self.partners: Dict[int, Set[int]] = {}
        for pair in chemistry or []:
            if pair.is_conflict:
                self.partners.setdefault(pair.employee1_id, set()).add(pair.employee2_id)
                self.partners.setdefault(pair.employee2_id, set()).add(pair.employee1_id)

        self.existing_by_emp_date: Dict[Tuple[int, date], List[ScheduleEntry]] = {}
        self.stats: Dict[int, EmployeeStats] = {emp.id: EmployeeStats() for emp in employees}
        for entry in self.existing_entries:
            self.existing_by_emp_date.setdefault((entry.employee_id, entry.date), []).append(entry)
            stats = self.stats.get(entry.employee_id)
            if stats is not None:
                stats.record(entry.date, entry.start_datetime, entry.end_datetime,
                             entry.get_duration_hours(),
                             in_period=start_date <= entry.date <= end_date)

        self.entries: List[ScheduleEntry] = []
        self.tracker = ViolationTracker()

    def _personal_limit(self, employee: Employee) -> int:
        limit = self.constraints.max_consecutive_days
        if employee.preference and employee.preference.max_consecutive_days:
            limit = min(limit, employee.preference.max_consecutive_days)
        return limit

    def _ineligibility_reason(self, employee: Employee, d: date, pattern: ShiftPattern,
                              assigned_today: Set[int]) -> Optional[str]:
        if employee.id in assigned_today:
            return "already_assigned"

        reason = static_ineligibility_reason(
            employee, d, pattern, self.leaves, self.existing_by_emp_date, self.constraints)
        if reason:
            return reason

        stats = self.stats[employee.id]
        if stats.streak_before(d) >= self._personal_limit(employee):
            return "consecutive_days"

        hours = pattern.get_duration_hours()
        if stats.week_hours.get(week_start(d), 0.0) + hours > self.constraints.max_weekly_hours:
            return "weekly_hours"

        start, end = shift_interval(pattern, d)
        previous_ends = []
        for other_start, other_end in stats.intervals:
            if other_start < end and start < other_end:
                return "overlapping_shift"
            if other_end <= start:
                previous_ends.append(other_end)
        if previous_ends:
            rest = (start - max(previous_ends)).total_seconds() / 3600
            if rest < self.constraints.min_rest_hours:
                return "insufficient_rest"

        return None

    def _has_conflict_partner(self, employee: Employee, interval: Tuple[datetime, datetime],
                              selected: List[Employee]) -> bool:
        """True if a conflict partner works an overlapping shift (planned, existing or in this slot)"""
        partners = self.partners.get(employee.id)
        if not partners:
            return False
        start, end = interval
        for other in selected:
            if other.id in partners:
                return True
        for partner_id in partners:
            stats = self.stats.get(partner_id)
            if stats is None:
                continue
            for other_start, other_end in stats.intervals:
                if start < other_end and other_start < end:
                    return True
        return False

    def _requirement_checks(self, pattern: ShiftPattern) -> List[Tuple[str, int, Callable[[Employee], bool]]]:
        checks = []
        for rank, minimum in pattern.requirements.rank_minimums().items():
            checks.append((f"rank_{rank}", minimum, lambda emp, r=rank: emp.rank_at_least(r)))
        for years, minimum in pattern.requirements.experience_levels.items():
            if minimum > 0:
                checks.append((
                    f"exp_{years}", minimum,
                    lambda emp, y=years: emp.years_of_service(self.reference_date) >= y
                ))
        return checks

    def _fill_slot(self, d: date, pattern: ShiftPattern, assigned_today: Set[int]):
        required = pattern.required_staff
        already: List[Employee] = []
        if self.mode == "fill_gaps":
            by_id = {emp.id: emp for emp in self.employees}
            already = [
                by_id[e.employee_id] for e in self.existing_entries
                if e.date == d and e.shift_pattern_id == pattern.id and e.employee_id in by_id
            ]
            required = max(0, required - len(already))
        if required <= 0:
            return

        interval = shift_interval(pattern, d)
        average_days = (
            sum(s.days_scheduled for s in self.stats.values()) / len(self.stats) if self.stats else 0.0
        )

        candidates: List[Tuple[float, Employee]] = []
        for emp in self.employees:
            reason = self._ineligibility_reason(emp, d, pattern, assigned_today)
            if reason:
                logger.debug("%s not eligible for %s on %s: %s", emp.name, pattern.name, d, reason)
                continue
            stats = self.stats[emp.id]
            score, _ = calculate_employee_score(
                emp, d, pattern, self.priorities, self.constraints,
                days_scheduled=stats.days_scheduled,
                average_days=average_days,
                total_hours=stats.total_hours,
                reference_date=self.reference_date)
            candidates.append((score, emp))

        candidates.sort(key=lambda item: (-item[0], item[1].id))
        ranked = [emp for _, emp in candidates]
        avoid = self.constraints.avoid_poor_chemistry
        selected: List[Employee] = []

        def pick(emp: Employee) -> bool:
            if len(selected) >= required or emp in selected:
                return False
            if avoid and self._has_conflict_partner(emp, interval, selected):
                return False
            selected.append(emp)
            return True

        # 1. Rank and experience minimums
        checks = self._requirement_checks(pattern)
        for key, minimum, qualifies in checks:
            have = sum(1 for emp in already + selected if qualifies(emp))
            for emp in ranked:
                if have >= minimum:
                    break
                if qualifies(emp) and pick(emp):
                    have += 1

        # 2. Fill by score
        for emp in ranked:
            pick(emp)

        # 3. Force-fill despite conflict pairs
        if avoid and len(selected) < required:
            for emp in ranked:
                if len(selected) >= required:
                    break
                if emp in selected:
                    continue
                selected.append(emp)
                self.tracker.add_violation(
                    "chemistry_conflict_forced", "medium",
                    date=d, pattern_id=pattern.id, pattern_name=pattern.name,
                    employee_id=emp.id, employee_name=emp.name,
                    description=f"{emp.name} scheduled on {pattern.name} ({d.isoformat()}) "
                                f"together with a conflict partner"
                )
                logger.warning("Forced conflict pair on %s %s: %s", d, pattern.name, emp.name)

        if len(selected) < required:
            self.tracker.add_violation(
                "insufficient_staff", "high",
                date=d, pattern_id=pattern.id, pattern_name=pattern.name,
                required=required, available=len(selected),
                description=f"{pattern.name} on {d.isoformat()} is short by {required - len(selected)} staff"
            )

        for key, minimum, qualifies in checks:
            have = sum(1 for emp in already + selected if qualifies(emp))
            if have < minimum:
                label = f"rank {key[5:]} or better" if key.startswith("rank_") else f"{key[4:]}+ years of experience"
                self.tracker.add_violation(
                    "requirement_unmet", "medium",
                    date=d, pattern_id=pattern.id, pattern_name=pattern.name,
                    required=minimum, available=have,
                    description=f"{pattern.name} on {d.isoformat()}: requirement {label} short by {minimum - have}"
                )

        hours = pattern.get_duration_hours()
        for emp in selected:
            assigned_today.add(emp.id)
            self.stats[emp.id].record(d, interval[0], interval[1], hours)
            self.entries.append(ScheduleEntry(
                employee_id=emp.id,
                date=d,
                start_time=pattern.start_time,
                end_time=pattern.end_time,
                shift_type=determine_shift_type(pattern.start_time, pattern.end_time),
                shift_pattern_id=pattern.id,
                status="scheduled",
                notes=f"Auto-generated: {pattern.name}"
            ))

    def generate(self) -> Tuple[List[ScheduleEntry], ViolationTracker]:
        """
        Build the schedule.

        Returns:
            Tuple of (entries, tracker)
        """
        current = self.start_date
        while current <= self.end_date:
            assigned_today: Set[int] = set()
            for pattern in self.patterns:
                if pattern.applies_on(current):
                    self._fill_slot(current, pattern, assigned_today)
            current += timedelta(days=1)

        logger.info("Greedy generation created %d shifts with %d conflicts",
                    len(self.entries), len(self.tracker.violations))
        return self.entries, self.tracker


def generate_greedy_schedule(
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
) -> Tuple[List[ScheduleEntry], ViolationTracker]:
    """Convenience wrapper around GreedyScheduler"""
    scheduler = GreedyScheduler(
        employees, patterns, start_date, end_date, leaves, chemistry,
        constraints, priorities, existing_entries, mode, reference_date
    )
    return scheduler.generate()
