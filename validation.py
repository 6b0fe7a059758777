"""
Validation module for generated schedules, shift patterns and operating hours.
Validates all rules and constraints after solving.
"""

from datetime import date, timedelta
from typing import List, Dict, Tuple, Any, Optional
from collections import defaultdict

from entities import (
    Employee, ScheduleEntry, LeaveRequest, LeaveStatus, ChemistryPair, ShiftPattern,
    GenerationConstraints, DISPLAY_DAY_NAMES, TIME_FORMAT, time_to_minutes, week_start
)

SLOT_PRIORITIES = ["low", "normal", "high", "critical"]


class ValidationResult:
    """Result of validation with any errors found"""

    def __init__(self):
        self.is_valid = True
        self.errors: List[Any] = []
        self.warnings: List[Any] = []
        self.suggestions: List[Any] = []

    def add_error(self, message):
        """Add a hard rule violation"""
        self.is_valid = False
        self.errors.append(message)

    def add_warning(self, message):
        """Add a soft rule warning"""
        self.warnings.append(message)

    def add_suggestion(self, message):
        self.suggestions.append(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": self.errors,
            "warnings": self.warnings,
            "suggestions": self.suggestions,
        }

    def print_report(self):
        """Print validation report"""
        print("\n" + "=" * 60)
        print("VALIDATION REPORT")
        print("=" * 60)

        if self.is_valid and not self.warnings:
            print("✓ All validations passed!")
        else:
            if self.errors:
                print(f"\n✗ VIOLATIONS FOUND: {len(self.errors)}")
                for i, error in enumerate(self.errors, 1):
                    print(f"  {i}. {_message(error)}")

            if self.warnings:
                print(f"\n⚠ WARNINGS: {len(self.warnings)}")
                for i, warning in enumerate(self.warnings, 1):
                    print(f"  {i}. {_message(warning)}")

            if not self.errors:
                print("\n✓ No hard rule violations (warnings only)")

        if self.suggestions:
            print(f"\nSuggestions: {len(self.suggestions)}")
            for suggestion in self.suggestions:
                print(f"  - {_message(suggestion)}")

        print("=" * 60)


def _message(item) -> str:
    if isinstance(item, dict):
        return item.get("message", str(item))
    return str(item)


# ---------------------------------------------------------------------------
# Generated schedule audit
# ---------------------------------------------------------------------------

def validate_schedule(
    entries: List[ScheduleEntry],
    employees: List[Employee],
    leaves: List[LeaveRequest],
    chemistry: List[ChemistryPair],
    patterns: List[ShiftPattern],
    constraints: GenerationConstraints,
    start_date: date,
    end_date: date
) -> ValidationResult:
    """
    Validate a generated schedule against all rules.

    Args:
        entries: Schedule entries to check (new and kept ones)
        employees: List of employees
        leaves: Leave requests (only approved ones are checked)
        chemistry: Chemistry ratings
        patterns: Shift patterns, used for coverage warnings
        constraints: Generation limits
        start_date: Start date of planning period
        end_date: End date of planning period

    Returns:
        ValidationResult with any errors or warnings
    """
    result = ValidationResult()
    emp_dict = {emp.id: emp for emp in employees}

    entries_by_emp: Dict[int, List[ScheduleEntry]] = defaultdict(list)
    for entry in entries:
        entries_by_emp[entry.employee_id].append(entry)
    for emp_entries in entries_by_emp.values():
        emp_entries.sort(key=lambda e: e.start_datetime)

    validate_no_work_on_leave(result, entries, leaves, emp_dict)
    validate_one_shift_per_day(result, entries_by_emp, emp_dict)
    validate_conflict_pairs(result, entries_by_emp, chemistry, emp_dict)
    validate_consecutive_days(result, entries_by_emp, emp_dict, constraints)
    validate_weekly_hours(result, entries_by_emp, emp_dict, constraints)
    validate_rest_times(result, entries_by_emp, emp_dict, constraints)
    validate_coverage(result, entries, patterns, start_date, end_date)

    return result


def _name(emp_dict: Dict[int, Employee], emp_id: int) -> str:
    emp = emp_dict.get(emp_id)
    return f"{emp.name} (ID {emp_id})" if emp else f"Employee {emp_id}"


def validate_no_work_on_leave(
    result: ValidationResult,
    entries: List[ScheduleEntry],
    leaves: List[LeaveRequest],
    emp_dict: Dict[int, Employee]
):
    """Validate that employees don't work during approved leave"""
    approved = [lv for lv in leaves if lv.status == LeaveStatus.APPROVED]
    for entry in entries:
        for leave in approved:
            if leave.employee_id == entry.employee_id and leave.overlaps_date(entry.date):
                result.add_error(
                    f"{_name(emp_dict, entry.employee_id)} scheduled on {entry.date} "
                    f"but is on {leave.leave_type} leave"
                )


def validate_one_shift_per_day(
    result: ValidationResult,
    entries_by_emp: Dict[int, List[ScheduleEntry]],
    emp_dict: Dict[int, Employee]
):
    """Validate that each employee has at most one shift per day and no overlaps"""
    for emp_id, emp_entries in entries_by_emp.items():
        per_day: Dict[date, int] = defaultdict(int)
        for entry in emp_entries:
            per_day[entry.date] += 1
        for d, count in sorted(per_day.items()):
            if count > 1:
                result.add_error(f"{_name(emp_dict, emp_id)} has {count} shifts on {d}")

        for current, following in zip(emp_entries, emp_entries[1:]):
            if current.date != following.date and current.overlaps(following):
                result.add_error(
                    f"{_name(emp_dict, emp_id)} has overlapping shifts on {current.date} and {following.date}"
                )


def validate_conflict_pairs(
    result: ValidationResult,
    entries_by_emp: Dict[int, List[ScheduleEntry]],
    chemistry: List[ChemistryPair],
    emp_dict: Dict[int, Employee]
):
    """Validate that conflict pairs never work overlapping shifts"""
    for pair in chemistry:
        if not pair.is_conflict:
            continue
        for first in entries_by_emp.get(pair.employee1_id, []):
            for second in entries_by_emp.get(pair.employee2_id, []):
                if abs((first.date - second.date).days) <= 1 and first.overlaps(second):
                    result.add_error(
                        f"Conflict pair {_name(emp_dict, pair.employee1_id)} and "
                        f"{_name(emp_dict, pair.employee2_id)} work overlapping shifts on {first.date}"
                    )


def validate_consecutive_days(
    result: ValidationResult,
    entries_by_emp: Dict[int, List[ScheduleEntry]],
    emp_dict: Dict[int, Employee],
    constraints: GenerationConstraints
):
    """Validate max consecutive working days (personal limit if stricter)"""
    for emp_id, emp_entries in entries_by_emp.items():
        limit = constraints.max_consecutive_days
        emp = emp_dict.get(emp_id)
        if emp and emp.preference and emp.preference.max_consecutive_days:
            limit = min(limit, emp.preference.max_consecutive_days)

        worked = sorted({entry.date for entry in emp_entries})
        consecutive = 1
        for previous, current in zip(worked, worked[1:]):
            if (current - previous).days == 1:
                consecutive += 1
                if consecutive == limit + 1:
                    result.add_error(
                        f"{_name(emp_dict, emp_id)} works more than {limit} consecutive days (ends {current})"
                    )
            else:
                consecutive = 1


def validate_weekly_hours(
    result: ValidationResult,
    entries_by_emp: Dict[int, List[ScheduleEntry]],
    emp_dict: Dict[int, Employee],
    constraints: GenerationConstraints
):
    """Validate maximum hours per Sunday-Saturday week"""
    for emp_id, emp_entries in entries_by_emp.items():
        weekly: Dict[date, float] = defaultdict(float)
        for entry in emp_entries:
            weekly[week_start(entry.date)] += entry.get_duration_hours()
        for sunday, hours in sorted(weekly.items()):
            if hours > constraints.max_weekly_hours + 1e-6:
                result.add_error(
                    f"{_name(emp_dict, emp_id)} works {hours:.1f}h in week of {sunday} "
                    f"(max {constraints.max_weekly_hours}h)"
                )


def validate_rest_times(
    result: ValidationResult,
    entries_by_emp: Dict[int, List[ScheduleEntry]],
    emp_dict: Dict[int, Employee],
    constraints: GenerationConstraints
):
    """Validate minimum rest between shifts on different days"""
    for emp_id, emp_entries in entries_by_emp.items():
        for current, following in zip(emp_entries, emp_entries[1:]):
            if current.date == following.date:
                continue
            rest = (following.start_datetime - current.end_datetime).total_seconds() / 3600
            if 0 <= rest < constraints.min_rest_hours:
                result.add_error(
                    f"{_name(emp_dict, emp_id)} has only {rest:.1f}h rest between "
                    f"{current.date} and {following.date} (min {constraints.min_rest_hours}h)"
                )


def validate_coverage(
    result: ValidationResult,
    entries: List[ScheduleEntry],
    patterns: List[ShiftPattern],
    start_date: date,
    end_date: date
):
    """Warn about pattern slots with fewer staff than required"""
    staffed: Dict[Tuple[date, int], int] = defaultdict(int)
    for entry in entries:
        if entry.shift_pattern_id is not None:
            staffed[(entry.date, entry.shift_pattern_id)] += 1

    current = start_date
    while current <= end_date:
        for pattern in patterns:
            if not pattern.enabled or not pattern.applies_on(current):
                continue
            count = staffed.get((current, pattern.id), 0)
            if count < pattern.required_staff:
                result.add_warning(
                    f"{pattern.name} on {current} has {count} of {pattern.required_staff} required staff"
                )
        current += timedelta(days=1)


# ---------------------------------------------------------------------------
# Shift pattern validation
# ---------------------------------------------------------------------------

def _is_number(value) -> bool:
    """JSON number (bool is excluded although it subclasses int)"""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _pattern_days(pattern: Dict[str, Any]):
    days = pattern.get("days")
    if days is None:
        days = pattern.get("daysOfWeek")
    return days


def _day_list(pattern: Dict[str, Any]) -> List[int]:
    """Usable days of a pattern, empty when the field is malformed"""
    days = _pattern_days(pattern)
    if not isinstance(days, list):
        return []
    return [d for d in days if isinstance(d, int) and not isinstance(d, bool)]


def _pattern_staff(pattern: Dict[str, Any]):
    staff = pattern.get("requiredStaff")
    if staff is None:
        staff = pattern.get("staffRequired")
    return staff


def _staff_count(pattern: Dict[str, Any]) -> int:
    staff = _pattern_staff(pattern)
    return staff if _is_number(staff) else 0


def validate_patterns(
    patterns: List[Dict[str, Any]],
    check_conflicts: bool = True,
    check_coverage: bool = True,
    available_employees: Optional[int] = None
) -> Dict[str, Any]:
    """
    Validate raw shift pattern definitions (camelCase dictionaries).

    Errors make the set unusable, warnings point at likely mistakes and
    suggestions at questionable staffing.

    Returns:
        {"isValid", "errors", "warnings", "suggestions", "coverageAnalysis"}
    """
    result = ValidationResult()
    coverage_analysis = []

    for index, pattern in enumerate(patterns):
        if not isinstance(pattern, dict):
            result.add_error({"pattern": f"Pattern {index + 1}", "field": "pattern",
                              "message": "Pattern must be an object"})
            continue
        name = pattern.get("name") or f"Pattern {index + 1}"
        start = pattern.get("startTime")
        end = pattern.get("endTime")
        days = _pattern_days(pattern)
        staff = _pattern_staff(pattern)

        if not start or not end:
            result.add_error({"pattern": name, "field": "time",
                              "message": "Start time and end time are required"})
        elif not is_valid_time_format(start) or not is_valid_time_format(end):
            result.add_error({"pattern": name, "field": "time",
                              "message": "Times must use the HH:MM format"})
            start = end = None

        if not isinstance(days, list) or not days:
            result.add_error({"pattern": name, "field": "days",
                              "message": "Days of week must be a non-empty array"})
        else:
            if any(not isinstance(d, int) or isinstance(d, bool) or d < 0 or d > 6 for d in days):
                result.add_error({"pattern": name, "field": "days",
                                  "message": "Days of week must be numbers 0-6 (0=Sunday, 6=Saturday)"})
            if len(set(days)) == 7:
                result.add_suggestion({"pattern": name,
                                       "message": "Pattern covers all 7 days - consider if rest days are needed"})

        if staff is not None and (not isinstance(staff, int) or isinstance(staff, bool)):
            result.add_error({"pattern": name, "field": "requiredStaff",
                              "message": "Staff required must be a whole number"})
        elif staff is not None:
            if staff < 1 or staff > 50:
                result.add_warning({"pattern": name, "field": "requiredStaff",
                                    "message": "Staff required should be between 1 and 50"})
            if available_employees is not None and staff > available_employees:
                result.add_error({"pattern": name, "field": "requiredStaff",
                                  "message": f"Requires {staff} staff but only {available_employees} "
                                             f"employees are available"})

        if start and end:
            start_minutes = time_to_minutes(start)
            end_minutes = time_to_minutes(end)
            if start_minutes >= end_minutes and end_minutes != 0:
                result.add_warning({"pattern": name, "field": "time",
                                    "message": "End time should be after start time "
                                               "(or this might be an overnight shift)"})
            duration = end_minutes - start_minutes if end_minutes > start_minutes \
                else (1440 - start_minutes) + end_minutes
            if duration < 120:
                result.add_warning({"pattern": name, "field": "time",
                                    "message": "Shift duration is very short (less than 2 hours)"})
            elif duration > 720:
                result.add_warning({"pattern": name, "field": "time",
                                    "message": "Shift duration is very long (more than 12 hours)"})

    valid_patterns = [p for p in patterns if isinstance(p, dict)]
    if check_conflicts and len(valid_patterns) > 1:
        for i, first in enumerate(patterns):
            for j in range(i + 1, len(patterns)):
                second = patterns[j]
                if not isinstance(first, dict) or not isinstance(second, dict):
                    continue
                first_days = _day_list(first)
                second_days = _day_list(second)
                common = [d for d in first_days if d in second_days]
                if not common:
                    continue
                times = (first.get("startTime"), first.get("endTime"),
                         second.get("startTime"), second.get("endTime"))
                if not all(t and is_valid_time_format(t) for t in times):
                    continue
                if _same_day_overlap(*times):
                    result.add_warning({
                        "patterns": [first.get("name") or f"Pattern {i + 1}",
                                     second.get("name") or f"Pattern {j + 1}"],
                        "field": "conflict",
                        "message": f"Time overlap detected on days: {', '.join(str(d) for d in common)}",
                        "commonDays": common,
                    })

    if check_coverage:
        for dow in range(7):
            day_patterns = [p for p in valid_patterns if dow in _day_list(p)]
            if not day_patterns:
                result.add_warning({"field": "coverage", "message": f"No coverage for {DISPLAY_DAY_NAMES[dow]}",
                                    "dayOfWeek": dow, "dayName": DISPLAY_DAY_NAMES[dow]})
            coverage_analysis.append({
                "dayOfWeek": dow,
                "dayName": DISPLAY_DAY_NAMES[dow],
                "patternCount": len(day_patterns),
                "totalStaffRequired": sum(_staff_count(p) for p in day_patterns),
            })

        weekend = sum(day["totalStaffRequired"] for day in coverage_analysis if day["dayOfWeek"] in (0, 6)) / 2
        weekday = sum(day["totalStaffRequired"] for day in coverage_analysis if 0 < day["dayOfWeek"] < 6) / 5
        if weekend > weekday * 1.5:
            result.add_suggestion({"field": "coverage",
                                   "message": "Weekend staffing is significantly higher than weekday - "
                                              "consider if this is intentional"})

    data = result.to_dict()
    data["coverageAnalysis"] = coverage_analysis
    return data


def _same_day_overlap(start1: str, end1: str, start2: str, end2: str) -> bool:
    """Overlap of two pattern windows, overnight windows extend past midnight"""
    s1, e1 = time_to_minutes(start1), time_to_minutes(end1)
    s2, e2 = time_to_minutes(start2), time_to_minutes(end2)
    if e1 <= s1:
        e1 += 1440
    if e2 <= s2:
        e2 += 1440
    return s1 < e2 and s2 < e1


# ---------------------------------------------------------------------------
# Operating hours validation
# ---------------------------------------------------------------------------

def is_valid_time_format(value: Optional[str]) -> bool:
    """HH:MM check; a missing optional time is valid"""
    if value is None or value == "":
        return True
    if not isinstance(value, str):
        return False
    return bool(TIME_FORMAT.match(value))


def validate_time_range(start: Optional[str], end: Optional[str], allow_overnight: bool = True) -> Dict[str, Any]:
    if not start or not end or allow_overnight:
        return {"valid": True}
    if time_to_minutes(end) <= time_to_minutes(start):
        return {"valid": False, "error": "End time must be after start time"}
    return {"valid": True}


def validate_daily_hours(daily_hours) -> Dict[str, Any]:
    """
    Validate the per-day entries of an operating hours template.

    Returns:
        {"valid": bool, "errors": [str]}
    """
    if not isinstance(daily_hours, list):
        return {"valid": False, "errors": ["Daily hours must be an array"]}

    errors = []
    seen_days = set()

    for index, day in enumerate(daily_hours):
        prefix = f"Day {index + 1}"
        if not isinstance(day, dict):
            errors.append(f"{prefix}: Daily hours entry must be an object")
            continue
        dow = day.get("dayOfWeek")
        is_open = day.get("isOpen", True) is not False

        if not isinstance(dow, int) or isinstance(dow, bool) or dow < 0 or dow > 6:
            errors.append(f"{prefix}: Day of week must be between 0 (Sunday) and 6 (Saturday)")
        elif dow in seen_days:
            errors.append(f"{prefix}: Duplicate day of week {dow}")
        else:
            seen_days.add(dow)

        open_time = day.get("openTime")
        close_time = day.get("closeTime")
        if is_open:
            if not is_valid_time_format(open_time):
                errors.append(f"{prefix}: Invalid open time format")
            if not is_valid_time_format(close_time):
                errors.append(f"{prefix}: Invalid close time format")

            break_start = day.get("breakStart")
            break_end = day.get("breakEnd")
            if not is_valid_time_format(break_start):
                errors.append(f"{prefix}: Invalid break start time format")
            if not is_valid_time_format(break_end):
                errors.append(f"{prefix}: Invalid break end time format")

            times_ok = all(is_valid_time_format(t) for t in (open_time, close_time, break_start, break_end))
            if break_start and break_end and times_ok:
                if not validate_time_range(break_start, break_end, allow_overnight=False)["valid"]:
                    errors.append(f"{prefix}: Break end time must be after break start time")
                open_minutes = time_to_minutes(open_time or "00:00")
                close_minutes = time_to_minutes(close_time or "23:59")
                if time_to_minutes(break_start) < open_minutes or time_to_minutes(break_end) > close_minutes:
                    errors.append(f"{prefix}: Break times must be within operating hours")

        min_staff = day.get("minStaff")
        max_staff = day.get("maxStaff")
        if min_staff is not None and not _is_number(min_staff):
            errors.append(f"{prefix}: Minimum staff must be a number")
            min_staff = None
        elif min_staff is not None and (min_staff < 0 or min_staff > 100):
            errors.append(f"{prefix}: Minimum staff must be between 0 and 100")
        if max_staff is not None and not _is_number(max_staff):
            errors.append(f"{prefix}: Maximum staff must be a number")
            max_staff = None
        elif max_staff is not None and (max_staff < 1 or max_staff > 100):
            errors.append(f"{prefix}: Maximum staff must be between 1 and 100")
        if min_staff and max_staff and min_staff > max_staff:
            errors.append(f"{prefix}: Minimum staff cannot be greater than maximum staff")

        slots = day.get("timeSlots") or []
        if not isinstance(slots, list):
            errors.append(f"{prefix}: Time slots must be an array")
            slots = []

        seen_slots = set()
        for slot_index, slot in enumerate(slots):
            slot_prefix = f"{prefix}, Time Slot {slot_index + 1}"
            if not isinstance(slot, dict):
                errors.append(f"{slot_prefix}: Time slot must be an object")
                continue
            hour = slot.get("hourSlot")
            required = slot.get("requiredStaff", 0)

            if not isinstance(hour, int) or isinstance(hour, bool) or hour < 0 or hour > 23:
                errors.append(f"{slot_prefix}: Hour slot must be between 0 and 23")
                hour = None
            elif hour in seen_slots:
                errors.append(f"{slot_prefix}: Duplicate hour slot {hour}")
            else:
                seen_slots.add(hour)

            if not _is_number(required):
                errors.append(f"{slot_prefix}: Required staff must be a number")
                required = 0
            elif required < 0 or required > 50:
                errors.append(f"{slot_prefix}: Required staff must be between 0 and 50")
            for field_name, label in (("preferredStaff", "Preferred"), ("maxStaff", "Maximum")):
                value = slot.get(field_name)
                if value is None:
                    continue
                if not _is_number(value):
                    errors.append(f"{slot_prefix}: {label} staff must be a number")
                elif value < required:
                    errors.append(f"{slot_prefix}: {label} staff cannot be less than required staff")
            if slot.get("priority") and slot["priority"] not in SLOT_PRIORITIES:
                errors.append(f"{slot_prefix}: Priority must be low, normal, high, or critical")

            if (is_open and open_time and close_time and isinstance(hour, int)
                    and is_valid_time_format(open_time) and is_valid_time_format(close_time)):
                open_hour = int(open_time.split(":")[0])
                close_hour = int(close_time.split(":")[0])
                if hour < open_hour or hour >= close_hour:
                    errors.append(
                        f"{slot_prefix}: Hour slot {hour} is outside operating hours ({open_hour}-{close_hour})"
                    )

    return {"valid": not errors, "errors": errors}


def _operating_minutes(open_time: str, close_time: str) -> int:
    open_minutes = time_to_minutes(open_time)
    close_minutes = time_to_minutes(close_time)
    if close_minutes > open_minutes:
        return close_minutes - open_minutes
    return (1440 - open_minutes) + close_minutes


def _day_entries(template: Dict[str, Any]) -> List[Dict[str, Any]]:
    daily_hours = template.get("dailyHours")
    if not isinstance(daily_hours, list):
        return []
    return [day for day in daily_hours if isinstance(day, dict)]


def _open_days(template: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [day for day in _day_entries(template) if day.get("isOpen", True) is not False]


def validate_template_consistency(template: Dict[str, Any]) -> Dict[str, Any]:
    """Cross-field checks over a whole template"""
    errors = []
    warnings = []
    daily_hours = _day_entries(template)

    if not daily_hours:
        errors.append("Template must have at least one day defined")
        return {"valid": False, "errors": errors, "warnings": warnings}

    open_days = _open_days(template)
    if not open_days:
        warnings.append("All days are closed - template will not generate any schedules")

    for day in open_days:
        open_time, close_time = day.get("openTime"), day.get("closeTime")
        if open_time and close_time and is_valid_time_format(open_time) and is_valid_time_format(close_time):
            minutes = _operating_minutes(open_time, close_time)
            if minutes < 120:
                warnings.append(f"Day {day.get('dayOfWeek')}: Very short operating hours (less than 2 hours)")
            elif minutes > 720:
                warnings.append(f"Day {day.get('dayOfWeek')}: Very long operating hours (more than 12 hours)")

    has_slots = any(day.get("timeSlots") for day in daily_hours)
    has_basic = any(day.get("minStaff") or day.get("maxStaff") for day in daily_hours)
    if has_slots and has_basic:
        warnings.append("Template uses both time slots and basic staffing - time slots will take precedence")

    weekend_open = [day for day in open_days if day.get("dayOfWeek") in (0, 6)]
    weekday_open = [day for day in open_days if day.get("dayOfWeek") not in (0, 6)]
    if weekend_open and not weekday_open:
        warnings.append("Template only operates on weekends")

    return {"valid": not errors, "errors": errors, "warnings": warnings}


def calculate_weekly_operating_hours(daily_hours: List[Dict[str, Any]]) -> float:
    total = 0.0
    for day in daily_hours:
        open_time, close_time = day.get("openTime"), day.get("closeTime")
        if (day.get("isOpen", True) is not False and open_time and close_time
                and is_valid_time_format(open_time) and is_valid_time_format(close_time)):
            total += _operating_minutes(open_time, close_time) / 60
    return total


def generate_template_summary(template: Dict[str, Any]) -> Dict[str, Any]:
    open_days = _open_days(template)
    weekly_hours = calculate_weekly_operating_hours(_day_entries(template))

    total_staff = 0
    has_slots = False
    for day in _day_entries(template):
        slots = day.get("timeSlots") or []
        if slots:
            has_slots = True
            total_staff += sum(slot.get("requiredStaff", 0) for slot in slots)
        elif day.get("minStaff"):
            total_staff += day["minStaff"]

    return {
        "templateName": template.get("templateName") or template.get("name"),
        "description": template.get("description"),
        "openDays": len(open_days),
        "openDayNames": sorted(DISPLAY_DAY_NAMES[day["dayOfWeek"]] for day in open_days),
        "totalWeeklyHours": round(weekly_hours, 1),
        "averageDailyHours": round(weekly_hours / len(open_days), 1) if open_days else 0,
        "hasTimeSlots": has_slots,
        "totalStaffRequirement": total_staff,
        "averageStaffPerDay": round(total_staff / len(open_days), 1) if open_days else 0,
        "timezone": template.get("timezone") or "UTC",
        "isDefault": bool(template.get("isDefault", False)),
    }


def validate_operating_hours_template(template: Dict[str, Any]) -> Dict[str, Any]:
    """Run both the per-day and the consistency checks"""
    if not isinstance(template, dict):
        return {"isValid": False, "errors": ["Template must be an object"], "warnings": [], "summary": None}
    daily = validate_daily_hours(template.get("dailyHours"))
    consistency = validate_template_consistency(template)
    errors = daily["errors"] + consistency["errors"]
    if not (template.get("templateName") or template.get("name")):
        errors.insert(0, "Template name is required")
    return {
        "isValid": not errors,
        "errors": errors,
        "warnings": consistency["warnings"],
        "summary": generate_template_summary(template) if not errors else None,
    }
