"""
Shift patterns derived from an operating hours template.

Each open day of the template is cut into shifts according to the
optimization level:

    basic     one shift from opening to closing time
    standard  consecutive hours with the same staffing and priority form
              one shift; days without time slots are split at midday
    advanced  shifts start at the first uncovered hour and last 3 to 6
              hours depending on the slot priority; days without time
              slots get overlapping shifts of 4 to 8 hours

Identical shifts on several weekdays become one pattern. Derived patterns
carry negative ids since they are not stored in ShiftPatterns.
"""

import logging
import math
from dataclasses import replace
from typing import List, Dict, Tuple, Optional, Any

from entities import DailyHours, OperatingHoursTemplate, ShiftPattern, TIME_FORMAT

logger = logging.getLogger(__name__)

OPTIMIZATION_LEVELS = ("basic", "standard", "advanced")
PRIORITY_SHIFT_LENGTH = {"critical": 6, "high": 5, "low": 3}
DEFAULT_SHIFT_LENGTH = 4
DEFAULT_OPEN_TIME = "09:00"
DEFAULT_CLOSE_TIME = "18:00"

OVERRIDE_FIELDS = {
    "openTime": "open_time",
    "closeTime": "close_time",
    "breakStart": "break_start",
    "breakEnd": "break_end",
    "minStaff": "min_staff",
    "maxStaff": "max_staff",
}


def effective_daily_hours(day: DailyHours, override_settings: Optional[Dict[str, Any]] = None) -> DailyHours:
    """Day of a template with request level overrides applied"""
    changes = {}
    for key, attr in OVERRIDE_FIELDS.items():
        value = (override_settings or {}).get(key)
        if not value:
            continue
        if attr.endswith("_staff"):
            value = int(value)
        elif not (isinstance(value, str) and TIME_FORMAT.match(value)):
            raise ValueError(f"Override {key} must be in HH:MM format")
        changes[attr] = value
    return replace(day, **changes) if changes else day


def _clock(hour: int) -> str:
    return f"{hour % 24:02d}:00"


def _hour_bounds(day: DailyHours) -> Tuple[str, str, int, int]:
    """Opening and closing time with the hour grid they span; closing after midnight wraps"""
    open_time = day.open_time or DEFAULT_OPEN_TIME
    close_time = day.close_time or DEFAULT_CLOSE_TIME
    open_hour = int(open_time.split(":")[0])
    close_h, close_m = (int(part) for part in close_time.split(":"))
    close_hour = close_h + (1 if close_m else 0)
    if close_hour <= open_hour:
        close_hour += 24
    return open_time, close_time, open_hour, close_hour


def _slot_priority(day: DailyHours, hour: int) -> str:
    for slot in day.time_slots:
        if slot.hour_slot == hour % 24:
            return slot.priority or "normal"
    return "normal"


def shifts_for_day(day: DailyHours, optimization_level: str = "standard") -> List[Dict[str, Any]]:
    """
    Cut one day into shifts.

    Returns:
        List of dicts with startTime, endTime, requiredStaff and priority
    """
    if not day.is_open:
        return []

    open_time, close_time, open_hour, close_hour = _hour_bounds(day)
    min_staff = day.min_staff or 1

    def label(hour):
        if hour == open_hour:
            return open_time
        if hour == close_hour:
            return close_time
        return _clock(hour)

    def shift(start, end, required, priority="normal"):
        return {"startTime": label(start), "endTime": label(end),
                "requiredStaff": required, "priority": priority}

    if optimization_level == "basic":
        return [shift(open_hour, close_hour, min_staff)]

    if optimization_level == "standard":
        if not day.time_slots:
            mid_day = (open_hour + close_hour) // 2
            return [
                shift(open_hour, mid_day, math.ceil(min_staff * 0.6)),
                shift(mid_day, close_hour, min_staff),
            ]
        shifts = []
        start = open_hour
        for hour in range(open_hour + 1, close_hour + 1):
            current = (day.required_staff_at(start % 24), _slot_priority(day, start))
            if hour == close_hour or (day.required_staff_at(hour % 24), _slot_priority(day, hour)) != current:
                shifts.append(shift(start, hour, *current))
                start = hour
        return shifts

    if optimization_level == "advanced":
        shifts = []
        if not day.time_slots:
            length = max(4, min(8, (close_hour - open_hour) // 2))
            for hour in range(open_hour, close_hour, length // 2):
                end = min(hour + length, close_hour)
                if end - hour >= 3:
                    shifts.append(shift(hour, end, min_staff))
            return shifts
        hour = open_hour
        while hour < close_hour:
            priority = _slot_priority(day, hour)
            end = min(hour + PRIORITY_SHIFT_LENGTH.get(priority, DEFAULT_SHIFT_LENGTH), close_hour)
            required = max(day.required_staff_at(h % 24) for h in range(hour, end))
            shifts.append(shift(hour, end, required, priority))
            hour = end
        return shifts

    raise ValueError(f"Optimization level must be one of: {', '.join(OPTIMIZATION_LEVELS)}")


def template_to_patterns(template: OperatingHoursTemplate, optimization_level: str = "standard",
                         override_settings: Optional[Dict[str, Any]] = None) -> List[ShiftPattern]:
    """Shift patterns covering the open days of a template"""
    if optimization_level not in OPTIMIZATION_LEVELS:
        raise ValueError(f"Optimization level must be one of: {', '.join(OPTIMIZATION_LEVELS)}")

    grouped: Dict[Tuple[str, str, int, str], List[int]] = {}
    for day in template.daily_hours:
        effective = effective_daily_hours(day, override_settings)
        for shift in shifts_for_day(effective, optimization_level):
            if shift["requiredStaff"] <= 0:
                continue
            key = (shift["startTime"], shift["endTime"], shift["requiredStaff"], shift["priority"])
            grouped.setdefault(key, []).append(day.day_of_week)

    patterns = []
    for (start, end, required, priority), days in sorted(grouped.items(), key=lambda item: (item[0][0], item[0][1])):
        name = f"{template.name} {start}-{end}"
        if priority != "normal":
            name += f" ({priority})"
        patterns.append(ShiftPattern(
            id=-(len(patterns) + 1), name=name, start_time=start, end_time=end,
            required_staff=required, days=sorted(set(days))
        ))

    logger.info("Template %r (%s) gives %d shift patterns", template.name, optimization_level, len(patterns))
    return patterns
