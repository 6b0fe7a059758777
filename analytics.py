"""
Scoring, summaries and analytics over schedule entries.

Everything here is pure: functions take entities and return JSON-ready
dictionaries (camelCase keys) for the web API and the CLI.
"""

import math
from collections import defaultdict
from datetime import date, timedelta
from typing import List, Dict, Tuple, Optional, Any, Iterable

from entities import (
    Employee, ShiftPattern, ScheduleEntry, LeaveRequest, LeaveStatus, ChemistryPair,
    GenerationConstraints, GenerationPriorities, OperatingHoursTemplate, DailyHours,
    DAY_NAMES, DISPLAY_DAY_NAMES, calculate_shift_hours, is_time_overlap,
    time_to_minutes, minutes_to_time, sunday_weekday, week_start, is_weekend
)

EXPECTED_WEEKLY_HOURS = 40
PRIORITY_RANK = {"high": 3, "medium": 2, "low": 1}


def _date_range(start: date, end: date) -> Iterable[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def _hours_covered(start_time: str, end_time: str) -> List[int]:
    """Clock hours touched by a shift, counted by whole start hours like the coverage charts"""
    start_hour = int(start_time.split(":")[0])
    end_hour = int(end_time.split(":")[0])
    stop = end_hour if end_hour > start_hour else end_hour + 24
    return [hour % 24 for hour in range(start_hour, stop)]


# ---------------------------------------------------------------------------
# Candidate scoring
# ---------------------------------------------------------------------------

def calculate_employee_score(
    employee: Employee,
    shift_date: date,
    pattern: ShiftPattern,
    priorities: GenerationPriorities,
    constraints: GenerationConstraints,
    days_scheduled: int = 0,
    average_days: float = 0.0,
    total_hours: float = 0.0,
    reference_date: Optional[date] = None,
    include_dynamic: bool = True
) -> Tuple[float, Dict[str, float]]:
    """
    Score how well an employee fits a shift.

    Components:
        ability      weighted ability score * abilityWeight * 10
        preference   +10 preferred day, -5 avoided day, +2 per preferred hour (times preferenceWeight)
        fairness     (average days - days scheduled) * 2
        seniority    years of service * seniorityWeight
        availability (50 - hours already scheduled) * availabilityWeight

    Fairness and availability depend on the plan built so far and are left
    out when include_dynamic is False (used for CP-SAT coefficients).

    Returns:
        Tuple of (score clamped at 0, breakdown per component)
    """
    breakdown = {
        "ability": 0.0,
        "preference": 0.0,
        "fairness": 0.0,
        "seniority": 0.0,
        "availability": 0.0,
    }

    if employee.ability:
        breakdown["ability"] = employee.ability.weighted_score * priorities.ability_weight * 10

    pref = employee.preference
    if constraints.respect_preferences and pref:
        day_name = DAY_NAMES[sunday_weekday(shift_date)]
        weight = priorities.preference_weight
        if day_name in pref.prefer_days:
            breakdown["preference"] += weight * 10
        if day_name in pref.avoid_days:
            breakdown["preference"] -= weight * 5
        if pref.preferred_time_slots:
            preferred = set(pref.preferred_time_slots)
            matches = sum(1 for hour in pattern.covered_hours() if hour in preferred)
            breakdown["preference"] += weight * 2 * matches

    breakdown["seniority"] = employee.years_of_service(reference_date or shift_date) * priorities.seniority_weight

    if include_dynamic:
        if constraints.fair_distribution:
            breakdown["fairness"] = (average_days - days_scheduled) * 2
        breakdown["availability"] = (50 - total_hours) * priorities.availability_weight

    score = max(0.0, sum(breakdown.values()))
    return score, breakdown


# ---------------------------------------------------------------------------
# Generation summary
# ---------------------------------------------------------------------------

def _max_streak(days: Iterable[date]) -> int:
    ordered = sorted(set(days))
    best = streak = 0
    previous = None
    for d in ordered:
        streak = streak + 1 if previous and (d - previous).days == 1 else 1
        best = max(best, streak)
        previous = d
    return best


def build_generation_summary(
    entries: List[ScheduleEntry],
    employees: List[Employee],
    start: date,
    end: date,
    conflicts: List[Dict[str, Any]],
    patterns_used: int
) -> Dict[str, Any]:
    """
    Summarize a generated schedule.

    Returns:
        {"summary": {...}, "employeeSummary": [...]}
    """
    total_days = (end - start).days + 1
    weeks = total_days / 7

    days_by_emp: Dict[int, List[date]] = defaultdict(list)
    hours_by_emp: Dict[int, float] = defaultdict(float)
    for entry in entries:
        days_by_emp[entry.employee_id].append(entry.date)
        hours_by_emp[entry.employee_id] += entry.get_duration_hours()

    employee_summary = []
    for emp in employees:
        days = days_by_emp.get(emp.id, [])
        scheduled_days = len(set(days))
        total_hours = hours_by_emp.get(emp.id, 0.0)
        employee_summary.append({
            "employeeId": emp.id,
            "name": emp.name,
            "department": emp.department,
            "scheduledDays": scheduled_days,
            "totalHours": round(total_hours, 2),
            "averageHoursPerWeek": round(total_hours / weeks, 2) if weeks else 0,
            "utilizationRate": scheduled_days / total_days if total_days else 0,
            "consecutiveDaysMax": _max_streak(days),
        })

    avg_utilization = (
        sum(e["utilizationRate"] for e in employee_summary) / len(employee_summary)
        if employee_summary else 0
    )

    return {
        "summary": {
            "totalDays": total_days,
            "schedulesCreated": len(entries),
            "conflictsFound": len(conflicts),
            "patternsUsed": patterns_used,
            "employeesInvolved": len(employees),
            "averageUtilization": avg_utilization,
            "utilizationPercentage": f"{avg_utilization * 100:.1f}%",
        },
        "employeeSummary": employee_summary,
    }


def calculate_employee_satisfaction(employee_summary: List[Dict[str, Any]],
                                    constraints: GenerationConstraints) -> float:
    """Estimated satisfaction (0-1) averaged over employees"""
    if not employee_summary:
        return 0.0

    total = 0.0
    for emp in employee_summary:
        satisfaction = 0.8
        rate = emp["utilizationRate"]
        if 0.3 < rate < 0.8:
            satisfaction += 0.1
        elif rate > 0.8:
            satisfaction -= 0.2
        if emp.get("consecutiveDaysMax", 0) > constraints.max_consecutive_days * 0.8:
            satisfaction -= 0.1
        total += max(0.0, min(1.0, satisfaction))

    return total / len(employee_summary)


def generate_improvement_recommendations(conflicts: List[Dict[str, Any]],
                                         employee_summary: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    recommendations = []

    understaffed = [c for c in conflicts if c.get("type") == "insufficient_staff"]
    if understaffed:
        recommendations.append({
            "type": "staffing",
            "priority": "high",
            "title": "Resolve understaffing",
            "message": f"{len(understaffed)} shifts are understaffed. Consider hiring or adjusting shift requirements.",
            "impact": "high",
            "effort": "high",
        })

    overworked = [e for e in employee_summary if e["utilizationRate"] > 0.8]
    if overworked:
        recommendations.append({
            "type": "workload_balance",
            "priority": "medium",
            "title": "Balance workload",
            "message": f"{len(overworked)} employees carry a very high workload. Consider redistributing shifts.",
            "affectedEmployees": [e["name"] for e in overworked],
            "impact": "medium",
            "effort": "medium",
        })

    low = [e for e in employee_summary if e["utilizationRate"] < 0.3]
    if employee_summary and len(low) > len(employee_summary) * 0.3:
        recommendations.append({
            "type": "template_optimization",
            "priority": "medium",
            "title": "Review staffing requirements",
            "message": "Many employees are rarely scheduled. Review the staffing requirements of the shift patterns.",
            "impact": "medium",
            "effort": "low",
        })

    return recommendations


# ---------------------------------------------------------------------------
# Metrics and conflict detection
# ---------------------------------------------------------------------------

def calculate_scheduling_metrics(entries: List[ScheduleEntry], employees: List[Employee],
                                 start: date, end: date) -> Dict[str, Any]:
    """
    Aggregate metrics over a set of schedule entries.

    Utilization is measured against a 40 hour week.
    """
    by_id = {emp.id: emp for emp in employees}
    period_days = (end - start).days + 1
    expected_hours = EXPECTED_WEEKLY_HOURS * (period_days / 7)

    metrics = {
        "totalSchedules": len(entries),
        "totalEmployees": len(employees),
        "employeesScheduled": 0,
        "totalHours": 0.0,
        "averageHoursPerEmployee": 0.0,
        "utilizationRate": 0.0,
        "coverageDistribution": {},
        "shiftTypeDistribution": {},
        "departmentDistribution": {},
        "timeSlotCoverage": [0] * 24,
        "weeklyDistribution": [0] * 7,
    }

    stats = {emp.id: {"scheduledDays": 0, "totalHours": 0.0, "shiftTypes": {}} for emp in employees}
    shift_groups: Dict[Tuple[date, str, str], int] = defaultdict(int)

    for entry in entries:
        stat = stats.get(entry.employee_id)
        if stat is None:
            continue
        hours = entry.get_duration_hours()
        stat["scheduledDays"] += 1
        stat["totalHours"] += hours
        metrics["totalHours"] += hours

        shift_type = entry.shift_type or "regular"
        stat["shiftTypes"][shift_type] = stat["shiftTypes"].get(shift_type, 0) + 1
        metrics["shiftTypeDistribution"][shift_type] = metrics["shiftTypeDistribution"].get(shift_type, 0) + 1

        for hour in _hours_covered(entry.start_time, entry.end_time):
            metrics["timeSlotCoverage"][hour] += 1

        metrics["weeklyDistribution"][sunday_weekday(entry.date)] += 1

        department = by_id[entry.employee_id].department or "Unknown"
        metrics["departmentDistribution"][department] = metrics["departmentDistribution"].get(department, 0) + 1

        shift_groups[(entry.date, entry.start_time, entry.end_time)] += 1

    for staff_count in shift_groups.values():
        key = str(staff_count)
        metrics["coverageDistribution"][key] = metrics["coverageDistribution"].get(key, 0) + 1

    metrics["employeesScheduled"] = sum(1 for s in stats.values() if s["scheduledDays"] > 0)
    if metrics["employeesScheduled"]:
        metrics["averageHoursPerEmployee"] = metrics["totalHours"] / metrics["employeesScheduled"]
    total_possible = len(employees) * expected_hours
    metrics["utilizationRate"] = metrics["totalHours"] / total_possible if total_possible else 0.0

    employee_stats = []
    for emp_id, stat in stats.items():
        employee_stats.append({
            "employeeId": emp_id,
            **stat,
            "averageHoursPerWeek": stat["totalHours"] / (period_days / 7),
            "utilizationRate": stat["totalHours"] / expected_hours if expected_hours else 0.0,
        })

    return {"metrics": metrics, "employeeStats": employee_stats}


def detect_scheduling_conflicts(entries: List[ScheduleEntry], employees: List[Employee],
                                constraints: Optional[GenerationConstraints] = None) -> List[Dict[str, Any]]:
    """
    Find rule violations in an existing schedule.

    Types: time_overlap (high), insufficient_rest (medium),
    weekly_hours_exceeded (high), consecutive_days_exceeded (medium)
    """
    by_id = {emp.id: emp for emp in employees}
    conflicts = []

    by_employee: Dict[int, List[ScheduleEntry]] = defaultdict(list)
    for entry in entries:
        by_employee[entry.employee_id].append(entry)

    for emp_id, emp_entries in by_employee.items():
        employee = by_id.get(emp_id)
        if employee is None:
            continue
        emp_ref = {"id": emp_id, "name": employee.name}
        emp_entries.sort(key=lambda e: e.start_datetime)

        for i, current in enumerate(emp_entries):
            for other in emp_entries[i + 1:]:
                if other.date == current.date and is_time_overlap(
                        current.start_time, current.end_time, other.start_time, other.end_time):
                    conflicts.append({
                        "type": "time_overlap",
                        "severity": "high",
                        "employee": emp_ref,
                        "date": current.date.isoformat(),
                        "schedules": [current.to_dict(), other.to_dict()],
                        "message": f"Time overlap on {current.date.isoformat()}",
                    })

        if constraints is None:
            continue

        for current, following in zip(emp_entries, emp_entries[1:]):
            if following.date == current.date:
                continue
            rest = (following.start_datetime - current.end_datetime).total_seconds() / 3600
            if rest < constraints.min_rest_hours:
                conflicts.append({
                    "type": "insufficient_rest",
                    "severity": "medium",
                    "employee": emp_ref,
                    "date": following.date.isoformat(),
                    "schedules": [current.to_dict(), following.to_dict()],
                    "actualRest": round(rest, 2),
                    "requiredRest": constraints.min_rest_hours,
                    "message": f"Only {rest:.1f} hours rest between shifts (minimum: {constraints.min_rest_hours})",
                })

        weekly: Dict[date, float] = defaultdict(float)
        for entry in emp_entries:
            weekly[week_start(entry.date)] += entry.get_duration_hours()
        for sunday, hours in sorted(weekly.items()):
            if hours > constraints.max_weekly_hours:
                conflicts.append({
                    "type": "weekly_hours_exceeded",
                    "severity": "high",
                    "employee": emp_ref,
                    "week": sunday.isoformat(),
                    "actualHours": round(hours, 2),
                    "maxHours": constraints.max_weekly_hours,
                    "message": f"Weekly hours ({hours:.1f}) exceed limit ({constraints.max_weekly_hours})",
                })

        worked = sorted({entry.date for entry in emp_entries})
        streak = 1
        for previous, current in zip(worked, worked[1:]):
            if (current - previous).days == 1:
                streak += 1
                if streak > constraints.max_consecutive_days:
                    conflicts.append({
                        "type": "consecutive_days_exceeded",
                        "severity": "medium",
                        "employee": emp_ref,
                        "date": current.isoformat(),
                        "consecutiveDays": streak,
                        "maxConsecutiveDays": constraints.max_consecutive_days,
                        "message": f"{streak} consecutive days exceed limit ({constraints.max_consecutive_days})",
                    })
            else:
                streak = 1

    return conflicts


# ---------------------------------------------------------------------------
# Operating hours coverage
# ---------------------------------------------------------------------------

def analyze_coverage_gaps(day_entries: List[ScheduleEntry], day_hours: DailyHours) -> Dict[str, Any]:
    """
    Compare hourly staffing of one day with its operating hours.

    A gap is an open hour with fewer staff than required; an hour is
    overstaffed above 1.5 times the requirement.
    """
    open_hour = int((day_hours.open_time or "09:00").split(":")[0])
    close_hour = int((day_hours.close_time or "18:00").split(":")[0])

    hourly = [0] * 24
    for entry in day_entries:
        for hour in _hours_covered(entry.start_time, entry.end_time):
            hourly[hour] += 1

    gaps = []
    overstaffed = []
    total_gap = 0
    for hour in range(open_hour, close_hour):
        required = day_hours.required_staff_at(hour)
        actual = hourly[hour]
        if actual < required:
            gaps.append({"hour": hour, "required": required, "actual": actual, "shortfall": required - actual})
            total_gap += required - actual
        elif actual > required * 1.5:
            overstaffed.append({"hour": hour, "required": required, "actual": actual, "excess": actual - required})

    operating_hours = close_hour - open_hour
    gap_severity = total_gap / operating_hours if operating_hours > 0 else 0
    return {
        "gaps": gaps,
        "overstaffed": overstaffed,
        "gapSeverity": gap_severity,
        "coverageRate": 1 - gap_severity if operating_hours > 0 else 1,
    }


def analyze_workload_distribution(entries: List[ScheduleEntry]) -> Dict[str, Any]:
    hours: Dict[int, float] = defaultdict(float)
    for entry in entries:
        hours[entry.employee_id] += entry.get_duration_hours()

    if not hours:
        return {"imbalance": 0, "overworked": [], "underutilized": []}

    values = list(hours.values())
    avg = sum(values) / len(values)
    max_hours = max(values)
    min_hours = min(values)

    return {
        "imbalance": (max_hours - min_hours) / avg if avg > 0 else 0,
        "avgHours": avg,
        "maxHours": max_hours,
        "minHours": min_hours,
        "overworked": [{"employeeId": e, "hours": h} for e, h in hours.items() if h > avg * 1.2],
        "underutilized": [{"employeeId": e, "hours": h} for e, h in hours.items() if h < avg * 0.8],
    }


def _entries_by_date(entries: List[ScheduleEntry]) -> Dict[date, List[ScheduleEntry]]:
    grouped: Dict[date, List[ScheduleEntry]] = defaultdict(list)
    for entry in entries:
        grouped[entry.date].append(entry)
    return grouped


def analyze_template_usage(entries: List[ScheduleEntry], template: OperatingHoursTemplate) -> Dict[str, Any]:
    """Share of scheduled open days whose hourly coverage reaches 80%"""
    total_days = 0
    compliant_days = 0
    issues = []

    for d, day_entries in sorted(_entries_by_date(entries).items()):
        day_hours = template.get_day(sunday_weekday(d))
        if not day_hours or not day_hours.is_open:
            continue
        total_days += 1
        coverage = analyze_coverage_gaps(day_entries, day_hours)
        if coverage["coverageRate"] >= 0.8:
            compliant_days += 1
        else:
            issues.append({
                "date": d.isoformat(),
                "coverageRate": coverage["coverageRate"],
                "gaps": len(coverage["gaps"]),
                "reason": "Insufficient coverage",
            })

    return {
        "complianceRate": compliant_days / total_days if total_days else 0,
        "compliantDays": compliant_days,
        "totalDays": total_days,
        "issues": issues,
    }


def calculate_template_compliance(entries: List[ScheduleEntry], template: OperatingHoursTemplate,
                                  start: date, end: date) -> Dict[str, Any]:
    """Day-by-day headcount against each open day's minimum staff"""
    compliance = {
        "templateId": template.id,
        "templateName": template.name,
        "dailyCompliance": [],
        "issuesFound": [],
        "overallCoverageRate": 0,
    }
    grouped = _entries_by_date(entries)
    total_coverage = 0.0
    total_days = 0

    for d in _date_range(start, end):
        day_hours = template.get_day(sunday_weekday(d))
        if not day_hours or not day_hours.is_open:
            continue
        required = day_hours.min_staff or 1
        actual = len(grouped.get(d, []))
        coverage_rate = 1 if actual >= required else actual / required
        total_coverage += coverage_rate
        total_days += 1

        compliance["dailyCompliance"].append({
            "date": d.isoformat(),
            "dayOfWeek": sunday_weekday(d),
            "required": required,
            "actual": actual,
            "coverageRate": coverage_rate,
            "status": "compliant" if actual >= required else "understaffed",
        })
        if actual < required:
            compliance["issuesFound"].append({
                "date": d.isoformat(),
                "type": "understaffed",
                "required": required,
                "actual": actual,
                "shortfall": required - actual,
            })

    compliance["overallCoverageRate"] = total_coverage / total_days if total_days else 0
    return compliance


def generate_schedule_recommendations(entries: List[ScheduleEntry], employees: List[Employee],
                                      conflicts: List[Dict[str, Any]],
                                      template: Optional[OperatingHoursTemplate],
                                      start: date, end: date) -> List[Dict[str, Any]]:
    """Recommendations from conflicts, utilization and template compliance, high priority first"""
    recommendations = []
    counts: Dict[str, int] = defaultdict(int)
    for conflict in conflicts:
        counts[conflict.get("type")] += 1

    if counts["time_overlap"]:
        recommendations.append({
            "type": "resolve_conflicts",
            "priority": "high",
            "title": "Resolve overlapping shifts",
            "message": f"{counts['time_overlap']} overlapping shifts found. Reschedule them.",
            "action": "reschedule_overlapping",
            "impact": "critical",
        })
    if counts["weekly_hours_exceeded"]:
        recommendations.append({
            "type": "reduce_hours",
            "priority": "high",
            "title": "Reduce weekly hours",
            "message": f"{counts['weekly_hours_exceeded']} weeks exceed the maximum weekly hours.",
            "action": "redistribute_hours",
            "impact": "high",
        })
    if counts["insufficient_rest"]:
        recommendations.append({
            "type": "improve_rest",
            "priority": "medium",
            "title": "Improve rest periods",
            "message": f"{counts['insufficient_rest']} shift transitions leave too little rest.",
            "action": "adjust_shift_timing",
            "impact": "medium",
        })

    utilization = calculate_scheduling_metrics(entries, employees, start, end)["metrics"]["utilizationRate"]
    if utilization < 0.7:
        recommendations.append({
            "type": "increase_utilization",
            "priority": "medium",
            "title": "Increase utilization",
            "message": f"Staff utilization is {utilization * 100:.1f}%. Add hours or reassign staff.",
            "currentRate": utilization,
            "targetRate": 0.8,
            "impact": "medium",
        })
    if utilization > 0.9:
        recommendations.append({
            "type": "prevent_burnout",
            "priority": "high",
            "title": "Prevent burnout",
            "message": f"Staff utilization is {utilization * 100:.1f}%. Consider hiring additional staff.",
            "currentRate": utilization,
            "targetRate": 0.85,
            "impact": "high",
        })

    if template:
        usage = analyze_template_usage(entries, template)
        if usage["complianceRate"] < 0.8:
            recommendations.append({
                "type": "improve_template_compliance",
                "priority": "medium",
                "title": "Improve operating hours compliance",
                "message": f"Operating hours compliance is {usage['complianceRate'] * 100:.1f}%.",
                "complianceRate": usage["complianceRate"],
                "issues": usage["issues"],
                "impact": "medium",
            })

    recommendations.sort(key=lambda r: PRIORITY_RANK.get(r["priority"], 0), reverse=True)
    return recommendations


# ---------------------------------------------------------------------------
# Staffing requirements and period analysis
# ---------------------------------------------------------------------------

def _on_leave(employee_id: int, d: date, leaves: List[LeaveRequest]) -> bool:
    return any(
        lv.employee_id == employee_id and lv.status == LeaveStatus.APPROVED and lv.overlaps_date(d)
        for lv in leaves
    )


def calculate_requirements(
    start: date,
    end: date,
    employees: List[Employee],
    leaves: List[LeaveRequest],
    patterns: List[ShiftPattern],
    peak_hours: Optional[List[Dict[str, Any]]] = None,
    weekend_multiplier: float = 1.2,
    holiday_multiplier: float = 1.5,
    holidays: Iterable[date] = (),
    base_staff_required: int = 2,
    default_hours: Tuple[str, str] = ("09:00", "18:00")
) -> Dict[str, Any]:
    """
    Staff needed per day and shift, compared with the staff not on leave.

    Multipliers round up; a holiday multiplier replaces the weekend one.
    Peak windows ({"start", "end", "additionalStaff"}) add staff to every
    shift they overlap.
    """
    peak_hours = peak_hours or []
    holidays = set(holidays)
    daily = []

    for d in _date_range(start, end):
        dow = sunday_weekday(d)
        weekend = is_weekend(d)
        holiday = d in holidays
        available = [emp for emp in employees if not _on_leave(emp.id, d, leaves)]

        def adjust(staff: int) -> int:
            if holiday:
                return math.ceil(staff * holiday_multiplier)
            if weekend:
                return math.ceil(staff * weekend_multiplier)
            return staff

        shifts = []
        day_patterns = [p for p in patterns if p.enabled and dow in p.days]
        if patterns:
            for pattern in day_patterns:
                needed = adjust(pattern.required_staff or base_staff_required)
                p_start = time_to_minutes(pattern.start_time)
                p_end = p_start + pattern.duration_minutes
                for peak in peak_hours:
                    if p_start < time_to_minutes(peak["end"]) and p_end > time_to_minutes(peak["start"]):
                        needed += int(peak.get("additionalStaff", 0))
                shifts.append((pattern.name, pattern.start_time, pattern.end_time, needed))
        else:
            shifts.append(("default", default_hours[0], default_hours[1], adjust(base_staff_required)))

        shift_rows = []
        for name, start_time, end_time, needed in shifts:
            shift_rows.append({
                "shift": name,
                "startTime": start_time,
                "endTime": end_time,
                "staffRequired": needed,
                "staffAvailable": len(available),
                "shortfall": max(0, needed - len(available)),
                "utilizationRate": needed / len(available) if available else 0,
            })

        daily.append({
            "date": d.isoformat(),
            "dayOfWeek": DISPLAY_DAY_NAMES[dow],
            "isWeekend": weekend,
            "isHoliday": holiday,
            "shifts": shift_rows,
            "totalStaffRequired": sum(s["staffRequired"] for s in shift_rows),
            "totalStaffAvailable": len(available),
            "criticalShortfall": any(s["shortfall"] > 0 for s in shift_rows),
        })

    peak_day = None
    for day in daily:
        if peak_day is None or day["totalStaffRequired"] > peak_day["totalStaffRequired"]:
            peak_day = day

    summary = {
        "totalDays": len(daily),
        "totalStaffHoursRequired": sum(
            s["staffRequired"] * calculate_shift_hours(s["startTime"], s["endTime"])
            for day in daily for s in day["shifts"]
        ),
        "averageUtilization": (
            sum(s["utilizationRate"] for day in daily for s in day["shifts"]) / len(daily)
            if daily else 0
        ),
        "daysWithShortfall": sum(1 for day in daily if day["criticalShortfall"]),
        "peakRequirementDay": peak_day,
    }

    return {"summary": summary, "dailyRequirements": daily}


def analyze_coverage(
    start: date,
    end: date,
    entries: List[ScheduleEntry],
    leaves: List[LeaveRequest],
    total_employees: int,
    min_staff_required: int = 1,
    business_hours: Tuple[str, str] = ("09:00", "18:00"),
    include_weekends: bool = False
) -> Dict[str, Any]:
    """
    Day-by-day coverage of business hours in 30 minute slots.
    """
    grouped = _entries_by_date(entries)
    business_start = time_to_minutes(business_hours[0])
    business_end = time_to_minutes(business_hours[1])

    daily = []
    overall = {
        "totalDays": 0,
        "daysWithGaps": 0,
        "daysOverstaffed": 0,
        "daysOptimal": 0,
        "averageStaffPerDay": 0.0,
        "peakStaffingDay": None,
        "lowestStaffingDay": None,
    }

    for d in _date_range(start, end):
        weekend = is_weekend(d)
        if weekend and not include_weekends:
            continue
        overall["totalDays"] += 1

        day_entries = grouped.get(d, [])
        on_leave = [lv for lv in leaves if lv.status == LeaveStatus.APPROVED and lv.overlaps_date(d)]

        slots = []
        for minute in range(business_start, business_end, 30):
            staff = 0
            for entry in day_entries:
                s = time_to_minutes(entry.start_time)
                e = time_to_minutes(entry.end_time)
                if e < s:
                    covered = minute >= s or minute < e
                else:
                    covered = s <= minute < e
                if covered:
                    staff += 1
            slots.append({
                "time": minutes_to_time(minute),
                "staffCount": staff,
                "requiredStaff": min_staff_required,
                "hasGap": staff < min_staff_required,
                "isOverstaffed": staff > min_staff_required * 1.5,
                "surplus": staff - min_staff_required,
            })

        total_staff = len(day_entries)
        available = total_employees - len(on_leave)
        gaps = sum(1 for s in slots if s["hasGap"])
        overstaffed = sum(1 for s in slots if s["isOverstaffed"])
        if total_staff < min_staff_required:
            status = "understaffed"
        elif total_staff > min_staff_required * 1.5:
            status = "overstaffed"
        else:
            status = "optimal"

        day = {
            "date": d.isoformat(),
            "dayOfWeek": DISPLAY_DAY_NAMES[sunday_weekday(d)],
            "isWeekend": weekend,
            "totalStaff": total_staff,
            "availableEmployees": available,
            "employeesOnLeave": len(on_leave),
            "requiredStaff": min_staff_required,
            "utilizationRate": total_staff / available if available > 0 else 0,
            "coverageRate": min(1, total_staff / min_staff_required) if min_staff_required > 0 else 1,
            "timeSlots": slots,
            "gapsCount": gaps,
            "overstaffedCount": overstaffed,
            "status": status,
        }
        daily.append(day)

        if gaps:
            overall["daysWithGaps"] += 1
        if overstaffed:
            overall["daysOverstaffed"] += 1
        if status == "optimal":
            overall["daysOptimal"] += 1
        overall["averageStaffPerDay"] += total_staff
        if overall["peakStaffingDay"] is None or total_staff > overall["peakStaffingDay"]["totalStaff"]:
            overall["peakStaffingDay"] = {"date": day["date"], "totalStaff": total_staff}
        if overall["lowestStaffingDay"] is None or total_staff < overall["lowestStaffingDay"]["totalStaff"]:
            overall["lowestStaffingDay"] = {"date": day["date"], "totalStaff": total_staff}

    if overall["totalDays"]:
        overall["averageStaffPerDay"] /= overall["totalDays"]

    recommendations = []

    recurring = []
    for dow in range(7):
        days_of_kind = [day for day in daily if sunday_weekday(date.fromisoformat(day["date"])) == dow]
        if not days_of_kind:
            continue
        gap_days = sum(1 for day in days_of_kind if day["gapsCount"] > 0)
        rate = gap_days / len(days_of_kind)
        if rate > 0.3:
            recurring.append({
                "dayOfWeek": dow,
                "dayName": DISPLAY_DAY_NAMES[dow],
                "totalDays": len(days_of_kind),
                "gapDays": gap_days,
                "gapRate": rate,
            })
    if recurring:
        recommendations.append({
            "type": "recurring_gaps",
            "priority": "high",
            "message": f"Recurring coverage gaps detected on: {', '.join(r['dayName'] for r in recurring)}",
            "data": recurring,
        })

    total_days = overall["totalDays"]
    if total_days and overall["daysWithGaps"] > total_days * 0.2:
        recommendations.append({
            "type": "general_understaffing",
            "priority": "high",
            "message": f"{overall['daysWithGaps'] / total_days * 100:.1f}% of days have coverage gaps. "
                       "Consider hiring more staff or adjusting requirements.",
        })
    if total_days and overall["daysOverstaffed"] > total_days * 0.3:
        recommendations.append({
            "type": "overstaffing",
            "priority": "medium",
            "message": f"{overall['daysOverstaffed'] / total_days * 100:.1f}% of days are overstaffed. "
                       "Consider redistributing staff or reducing requirements.",
        })

    high_leave = [day for day in daily if total_employees and day["employeesOnLeave"] >= total_employees * 0.25]
    if high_leave:
        recommendations.append({
            "type": "leave_impact",
            "priority": "medium",
            "message": f"{len(high_leave)} days with high leave impact (>25% of staff on leave). "
                       "Consider leave approval policies.",
            "affectedDates": [day["date"] for day in high_leave],
        })

    return {
        "overallStats": overall,
        "dailyCoverage": daily,
        "recommendations": recommendations,
        "parameters": {
            "minStaffRequired": min_staff_required,
            "businessHours": {"start": business_hours[0], "end": business_hours[1]},
            "includeWeekends": include_weekends,
            "totalEmployees": total_employees,
        },
    }


def check_period(entries: List[ScheduleEntry], leaves: List[LeaveRequest],
                 chemistry: List[ChemistryPair], employees: List[Employee]) -> Dict[str, Any]:
    """
    Look for problems in an existing period: double booked employees,
    conflict pairs on overlapping shifts, shifts during approved leave.
    """
    names = {emp.id: emp.name for emp in employees}
    conflict_pairs = [pair for pair in chemistry if pair.is_conflict]

    def ref(emp_id: int) -> Dict[str, Any]:
        return {"id": emp_id, "name": names.get(emp_id)}

    def shift_ref(entry: ScheduleEntry) -> Dict[str, Any]:
        return {"id": entry.id, "startTime": entry.start_time, "endTime": entry.end_time}

    # Overnight shifts reach into the next day, so neighbouring days are compared too
    ordered = sorted(entries, key=lambda e: (e.date, e.start_datetime))
    conflicts = []
    for i, first in enumerate(ordered):
        for second in ordered[i + 1:]:
            if (second.date - first.date).days > 1:
                break
            if not first.overlaps(second):
                continue
            if first.employee_id == second.employee_id:
                conflicts.append({
                    "type": "time_overlap",
                    "date": first.date.isoformat(),
                    "employees": [ref(first.employee_id)],
                    "schedules": [shift_ref(first), shift_ref(second)],
                })
                continue
            pair = next((p for p in conflict_pairs if p.involves(first.employee_id, second.employee_id)), None)
            if pair:
                conflicts.append({
                    "type": "chemistry_conflict",
                    "date": first.date.isoformat(),
                    "employees": [ref(first.employee_id), ref(second.employee_id)],
                    "chemistryScore": pair.score,
                    "schedules": [shift_ref(first), shift_ref(second)],
                })

    on_leave = []
    for leave in leaves:
        if leave.status != LeaveStatus.APPROVED:
            continue
        for entry in entries:
            if entry.employee_id == leave.employee_id and leave.overlaps_date(entry.date):
                on_leave.append({
                    "type": "employee_on_leave",
                    "employeeId": entry.employee_id,
                    "employeeName": names.get(entry.employee_id),
                    "scheduleId": entry.id,
                    "scheduleDate": entry.date.isoformat(),
                    "leaveType": leave.leave_type,
                    "leaveStart": leave.start_date.isoformat(),
                    "leaveEnd": leave.end_date.isoformat(),
                })

    return {
        "summary": {
            "totalSchedules": len(entries),
            "totalLeaves": len([lv for lv in leaves if lv.status == LeaveStatus.APPROVED]),
            "totalConflicts": len(conflicts),
            "employeesOnLeaveWithSchedules": len(on_leave),
        },
        "conflicts": conflicts,
        "employeesOnLeave": on_leave,
    }
