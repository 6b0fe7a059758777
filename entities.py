"""
Data models for the workforce scheduling system.
Employees, abilities, leave requests, shift patterns, schedules and drafts as dataclasses.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, date, time, timedelta, timezone
from typing import Optional, List, Dict, Any
from enum import Enum


# Day-of-week numbering used everywhere: 0=Sunday .. 6=Saturday
DAY_NAMES = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]
DISPLAY_DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

TIME_FORMAT = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")

# Ranks from best to worst
RANK_ORDER = ["S", "A", "B", "C", "D"]

# Chemistry scores at or below this value make a pair a conflict pair
POOR_CHEMISTRY_THRESHOLD = 2

DEFAULT_PATTERN_COLOR = "#3B82F6"


def time_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight"""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM" (wraps past midnight)"""
    hours = (minutes // 60) % 24
    return f"{hours:02d}:{minutes % 60:02d}"


def calculate_shift_hours(start_time: str, end_time: str) -> float:
    """Duration of a shift in hours, handling overnight shifts"""
    start_minutes = time_to_minutes(start_time)
    end_minutes = time_to_minutes(end_time)

    # Overnight shift (or a full 24h shift when start == end)
    if end_minutes <= start_minutes:
        end_minutes += 24 * 60

    return (end_minutes - start_minutes) / 60.0


def is_time_overlap(start1: str, end1: str, start2: str, end2: str) -> bool:
    """Check if two same-day time ranges overlap (overnight ranges extend past midnight)"""
    s1 = time_to_minutes(start1)
    e1 = time_to_minutes(end1)
    s2 = time_to_minutes(start2)
    e2 = time_to_minutes(end2)

    if e1 <= s1:
        e1 += 1440
    if e2 <= s2:
        e2 += 1440

    return s1 < e2 and e1 > s2


def sunday_weekday(d: date) -> int:
    """Weekday number with Sunday=0 .. Saturday=6"""
    return d.isoweekday() % 7


def week_start(d: date) -> date:
    """Sunday that starts the week containing d"""
    return d - timedelta(days=sunday_weekday(d))


def is_weekend(d: date) -> bool:
    return sunday_weekday(d) in (0, 6)


def determine_shift_type(start_time: str, end_time: str) -> str:
    """Classify a shift as night, early, late or regular by its hours"""
    start_hour = int(start_time.split(":")[0])
    end_hour = int(end_time.split(":")[0])

    if start_hour >= 22 or end_hour <= 6:
        return "night"
    if start_hour <= 7:
        return "early"
    if end_hour >= 20:
        return "late"
    return "regular"


def calculate_rank(total_score: int) -> str:
    """
    Map a total ability score (5-25) to a rank.

    S: 23-25, A: 20-22, B: 16-19, C: 11-15, D: 5-10
    """
    if total_score >= 23:
        return "S"
    if total_score >= 20:
        return "A"
    if total_score >= 16:
        return "B"
    if total_score >= 11:
        return "C"
    return "D"


def _parse_date(value) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


@dataclass
class Ability:
    """Ability scores of an employee, each from 1 to 5"""
    work_skill: int = 3
    experience: int = 3
    customer_service: int = 3
    flexibility: int = 3
    team_chemistry: int = 3

    def __post_init__(self):
        for name in ("work_skill", "experience", "customer_service", "flexibility", "team_chemistry"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or not 1 <= value <= 5:
                raise ValueError(f"{name} must be an integer between 1 and 5, got {value!r}")

    @property
    def total_score(self) -> int:
        return (self.work_skill + self.experience + self.customer_service
                + self.flexibility + self.team_chemistry)

    @property
    def rank(self) -> str:
        return calculate_rank(self.total_score)

    @property
    def weighted_score(self) -> float:
        """Weighted average used for shift scoring (work skill counts most)"""
        return (
            self.work_skill * 3
            + self.experience * 2
            + self.customer_service * 2
            + self.flexibility
            + self.team_chemistry
        ) / 9

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Ability":
        return cls(
            work_skill=int(data.get("workSkill", 3)),
            experience=int(data.get("experience", 3)),
            customer_service=int(data.get("customerService", 3)),
            flexibility=int(data.get("flexibility", 3)),
            team_chemistry=int(data.get("teamChemistry", 3)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workSkill": self.work_skill,
            "experience": self.experience,
            "customerService": self.customer_service,
            "flexibility": self.flexibility,
            "teamChemistry": self.team_chemistry,
            "totalScore": self.total_score,
            "rank": self.rank,
        }


@dataclass
class EmployeePreference:
    """Scheduling preferences and availability restrictions of an employee"""
    prefer_days: List[str] = field(default_factory=list)  # lowercase day names
    avoid_days: List[str] = field(default_factory=list)
    preferred_time_slots: List[int] = field(default_factory=list)  # hours 0-23
    unavailable_time_slots: List[int] = field(default_factory=list)  # hours 0-23
    can_work_weekends: bool = True
    can_work_night_shifts: bool = True
    max_consecutive_days: Optional[int] = None  # stricter personal limit

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EmployeePreference":
        max_consecutive = data.get("maxConsecutiveDays")
        return cls(
            prefer_days=[d.lower() for d in data.get("preferDays") or []],
            avoid_days=[d.lower() for d in data.get("avoidDays") or []],
            preferred_time_slots=[int(h) for h in data.get("preferredTimeSlots") or []],
            unavailable_time_slots=[int(h) for h in data.get("unavailableTimeSlots") or []],
            can_work_weekends=bool(data.get("canWorkWeekends", True)),
            can_work_night_shifts=bool(data.get("canWorkNightShifts", True)),
            max_consecutive_days=int(max_consecutive) if max_consecutive else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "preferDays": self.prefer_days,
            "avoidDays": self.avoid_days,
            "preferredTimeSlots": self.preferred_time_slots,
            "unavailableTimeSlots": self.unavailable_time_slots,
            "canWorkWeekends": self.can_work_weekends,
            "canWorkNightShifts": self.can_work_night_shifts,
            "maxConsecutiveDays": self.max_consecutive_days,
        }


@dataclass
class Employee:
    """Represents an employee that can be scheduled"""
    id: int
    name: str
    email: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    hire_date: Optional[date] = None
    ability: Optional[Ability] = None
    preference: Optional[EmployeePreference] = None

    @property
    def rank(self) -> Optional[str]:
        return self.ability.rank if self.ability else None

    def rank_at_least(self, rank: str) -> bool:
        """True if the employee's rank is the given rank or better"""
        if self.rank is None:
            return False
        return RANK_ORDER.index(self.rank) <= RANK_ORDER.index(rank)

    def years_of_service(self, on: Optional[date] = None) -> float:
        """Years since hire date (0 if unknown)"""
        if not self.hire_date:
            return 0.0
        on = on or date.today()
        return max(0.0, (on - self.hire_date).days / 365.25)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "department": self.department,
            "position": self.position,
            "hireDate": self.hire_date.isoformat() if self.hire_date else None,
            "ability": self.ability.to_dict() if self.ability else None,
            "rank": self.rank,
            "preferences": self.preference.to_dict() if self.preference else None,
        }


@dataclass
class ChemistryPair:
    """
    Chemistry rating between two employees (1 = very poor, 5 = excellent).
    Pairs scoring POOR_CHEMISTRY_THRESHOLD or lower are conflict pairs and
    must not work overlapping shifts.
    """
    employee1_id: int
    employee2_id: int
    score: int
    notes: Optional[str] = None
    id: Optional[int] = None

    def __post_init__(self):
        if self.employee1_id == self.employee2_id:
            raise ValueError("A chemistry pair needs two different employees")
        if not 1 <= int(self.score) <= 5:
            raise ValueError(f"Chemistry score must be between 1 and 5, got {self.score!r}")
        # Stored with the smaller id first
        if self.employee1_id > self.employee2_id:
            self.employee1_id, self.employee2_id = self.employee2_id, self.employee1_id

    @property
    def is_conflict(self) -> bool:
        return self.score <= POOR_CHEMISTRY_THRESHOLD

    def involves(self, emp_a: int, emp_b: int) -> bool:
        return {emp_a, emp_b} == {self.employee1_id, self.employee2_id}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "employee1Id": self.employee1_id,
            "employee2Id": self.employee2_id,
            "score": self.score,
            "isConflict": self.is_conflict,
            "notes": self.notes,
        }


class LeaveStatus(Enum):
    """Review state of a leave request"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass
class LeaveRequest:
    """Represents a leave request of an employee (dates inclusive)"""
    id: Optional[int]
    employee_id: int
    start_date: date
    end_date: date
    leave_type: str = "annual"
    reason: Optional[str] = None
    status: LeaveStatus = LeaveStatus.PENDING
    admin_comment: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def overlaps_date(self, check_date: date) -> bool:
        """Check if leave covers the given date"""
        return self.start_date <= check_date <= self.end_date

    def overlaps_range(self, start: date, end: date) -> bool:
        return self.start_date <= end and self.end_date >= start

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "employeeId": self.employee_id,
            "type": self.leave_type,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "reason": self.reason,
            "status": self.status.value,
            "adminComment": self.admin_comment,
            "reviewedBy": self.reviewed_by,
            "reviewedAt": self.reviewed_at.isoformat() if self.reviewed_at else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class ShiftRequirements:
    """
    Staffing mix required on a shift.
    Rank minimums are cumulative: an S-rank employee also counts towards min_rank_a.
    experience_levels maps years of service to the number of staff needed with at least that many years.
    """
    min_rank_s: int = 0
    min_rank_a: int = 0
    min_rank_b: int = 0
    min_rank_c: int = 0
    experience_levels: Dict[int, int] = field(default_factory=dict)

    def rank_minimums(self) -> Dict[str, int]:
        """Non-zero rank minimums keyed by rank letter"""
        minimums = {
            "S": self.min_rank_s,
            "A": self.min_rank_a,
            "B": self.min_rank_b,
            "C": self.min_rank_c,
        }
        return {rank: count for rank, count in minimums.items() if count > 0}

    def is_empty(self) -> bool:
        return not self.rank_minimums() and not any(self.experience_levels.values())

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ShiftRequirements":
        data = data or {}
        levels = data.get("experienceLevels") or {}
        return cls(
            min_rank_s=int(data.get("minRankS", 0) or 0),
            min_rank_a=int(data.get("minRankA", 0) or 0),
            min_rank_b=int(data.get("minRankB", 0) or 0),
            min_rank_c=int(data.get("minRankC", 0) or 0),
            experience_levels={int(years): int(count) for years, count in levels.items() if int(count or 0) > 0},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "minRankS": self.min_rank_s,
            "minRankA": self.min_rank_a,
            "minRankB": self.min_rank_b,
            "minRankC": self.min_rank_c,
            "experienceLevels": {str(years): count for years, count in self.experience_levels.items()},
        }


@dataclass
class ShiftPattern:
    """Named shift time window used as a template for schedule generation"""
    id: Optional[int]
    name: str
    start_time: str  # Format: "HH:MM"
    end_time: str  # Format: "HH:MM"
    required_staff: int = 1
    days: List[int] = field(default_factory=lambda: [1, 2, 3, 4, 5])  # 0=Sunday .. 6=Saturday
    color: str = DEFAULT_PATTERN_COLOR
    enabled: bool = True
    requirements: ShiftRequirements = field(default_factory=ShiftRequirements)

    def __post_init__(self):
        for value in (self.start_time, self.end_time):
            if not value or not TIME_FORMAT.match(value):
                raise ValueError(f"Invalid time format {value!r} in pattern {self.name!r} (expected HH:MM)")
        if not self.days or any(d < 0 or d > 6 for d in self.days):
            raise ValueError(f"Pattern {self.name!r} days must be a non-empty list of 0-6")
        if self.required_staff < 0:
            raise ValueError(f"Pattern {self.name!r} required staff cannot be negative")

    def applies_on(self, d: date) -> bool:
        """Check if this pattern runs on the given date"""
        return sunday_weekday(d) in self.days

    def get_duration_hours(self) -> float:
        return calculate_shift_hours(self.start_time, self.end_time)

    @property
    def duration_minutes(self) -> int:
        return int(round(self.get_duration_hours() * 60))

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def is_night_shift(self) -> bool:
        start_hour = int(self.start_time.split(":")[0])
        return start_hour >= 22 or start_hour < 6

    def covered_hours(self) -> List[int]:
        """Clock hours (0-23) touched by this shift"""
        hours = []
        minute = self.start_minutes
        end = minute + self.duration_minutes
        while minute < end:
            hours.append((minute // 60) % 24)
            minute = (minute // 60 + 1) * 60
        return hours

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ShiftPattern":
        days = data.get("days")
        if days is None:
            days = data.get("daysOfWeek", [1, 2, 3, 4, 5])
        required = data.get("requiredStaff", data.get("staffRequired", 1))
        return cls(
            id=data.get("id"),
            name=data.get("name") or "unnamed",
            start_time=data.get("startTime") or data.get("start"),
            end_time=data.get("endTime") or data.get("end"),
            required_staff=int(required if required is not None else 1),
            days=[int(d) for d in days],
            color=data.get("color") or DEFAULT_PATTERN_COLOR,
            enabled=data.get("enabled", True) is not False,
            requirements=ShiftRequirements.from_dict(data.get("requirements")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "duration": self.duration_minutes,
            "requiredStaff": self.required_staff,
            "days": self.days,
            "color": self.color,
            "enabled": self.enabled,
            "requirements": self.requirements.to_dict(),
        }


@dataclass
class ScheduleEntry:
    """A concrete shift worked by an employee on a date"""
    employee_id: int
    date: date
    start_time: str
    end_time: str
    shift_type: str = "regular"
    shift_pattern_id: Optional[int] = None
    status: str = "scheduled"
    notes: Optional[str] = None
    id: Optional[int] = None

    def get_duration_hours(self) -> float:
        return calculate_shift_hours(self.start_time, self.end_time)

    @property
    def start_datetime(self) -> datetime:
        hours, minutes = self.start_time.split(":")
        return datetime.combine(self.date, time(int(hours), int(minutes)))

    @property
    def end_datetime(self) -> datetime:
        return self.start_datetime + timedelta(hours=self.get_duration_hours())

    def overlaps(self, other: "ScheduleEntry") -> bool:
        """Check if two entries overlap in absolute time (overnight aware)"""
        return self.start_datetime < other.end_datetime and other.start_datetime < self.end_datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "employeeId": self.employee_id,
            "date": self.date.isoformat(),
            "startTime": self.start_time,
            "endTime": self.end_time,
            "shiftType": self.shift_type,
            "shiftPatternId": self.shift_pattern_id,
            "status": self.status,
            "notes": self.notes,
        }


@dataclass
class GenerationConstraints:
    """Hard limits and switches for schedule generation"""
    max_consecutive_days: int = 6
    min_rest_hours: float = 10
    max_weekly_hours: float = 45
    respect_preferences: bool = True
    avoid_poor_chemistry: bool = True
    fair_distribution: bool = True

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "GenerationConstraints":
        data = data or {}
        defaults = cls()
        return cls(
            max_consecutive_days=int(data.get("maxConsecutiveDays", defaults.max_consecutive_days)),
            min_rest_hours=float(data.get("minRestHours", defaults.min_rest_hours)),
            max_weekly_hours=float(data.get("maxWeeklyHours", defaults.max_weekly_hours)),
            respect_preferences=bool(data.get("respectPreferences", defaults.respect_preferences)),
            avoid_poor_chemistry=bool(data.get("avoidPoorChemistry", defaults.avoid_poor_chemistry)),
            fair_distribution=bool(data.get("fairDistribution", defaults.fair_distribution)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "maxConsecutiveDays": self.max_consecutive_days,
            "minRestHours": self.min_rest_hours,
            "maxWeeklyHours": self.max_weekly_hours,
            "respectPreferences": self.respect_preferences,
            "avoidPoorChemistry": self.avoid_poor_chemistry,
            "fairDistribution": self.fair_distribution,
        }


@dataclass
class GenerationPriorities:
    """Weights of the scoring components used to rank candidates"""
    seniority_weight: float = 0.2
    ability_weight: float = 0.4
    preference_weight: float = 0.3
    availability_weight: float = 0.1

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "GenerationPriorities":
        data = data or {}
        defaults = cls()
        return cls(
            seniority_weight=float(data.get("seniorityWeight", defaults.seniority_weight)),
            ability_weight=float(data.get("abilityWeight", defaults.ability_weight)),
            preference_weight=float(data.get("preferenceWeight", defaults.preference_weight)),
            availability_weight=float(data.get("availabilityWeight", defaults.availability_weight)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seniorityWeight": self.seniority_weight,
            "abilityWeight": self.ability_weight,
            "preferenceWeight": self.preference_weight,
            "availabilityWeight": self.availability_weight,
        }


class DraftStatus(Enum):
    """Lifecycle of a schedule draft"""
    DRAFT = "draft"
    REVIEWING = "reviewing"
    ACTIVE = "active"
    ARCHIVED = "archived"


@dataclass
class DraftItem:
    """One planned shift inside a schedule draft"""
    employee_id: int
    date: date
    start_time: str
    end_time: str
    shift_type: str = "regular"
    shift_pattern_id: Optional[int] = None
    status: str = "planned"  # planned, confirmed, excluded
    priority: str = "normal"
    notes: Optional[str] = None
    id: Optional[int] = None
    draft_id: Optional[int] = None
    updated_at: Optional[datetime] = None

    def overlaps(self, other: "DraftItem") -> bool:
        return is_time_overlap(self.start_time, self.end_time, other.start_time, other.end_time)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DraftItem":
        updated_at = data.get("updatedAt")
        return cls(
            employee_id=int(data["employeeId"]),
            date=_parse_date(data["date"]),
            start_time=data["startTime"],
            end_time=data["endTime"],
            shift_type=data.get("shiftType") or "regular",
            shift_pattern_id=data.get("shiftPatternId"),
            status=data.get("status") or "planned",
            priority=data.get("priority") or "normal",
            notes=data.get("notes"),
            id=data.get("id"),
            updated_at=datetime.fromisoformat(updated_at) if updated_at else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "draftId": self.draft_id,
            "employeeId": self.employee_id,
            "date": self.date.isoformat(),
            "startTime": self.start_time,
            "endTime": self.end_time,
            "shiftType": self.shift_type,
            "shiftPatternId": self.shift_pattern_id,
            "status": self.status,
            "priority": self.priority,
            "notes": self.notes,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass
class ScheduleDraft:
    """A candidate schedule awaiting activation"""
    id: Optional[int]
    name: str
    period_start: date
    period_end: date
    version: str = "1.0.0"
    status: DraftStatus = DraftStatus.DRAFT
    description: Optional[str] = None
    based_on_draft_id: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    notes: Optional[str] = None
    items: List[DraftItem] = field(default_factory=list)
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    activated_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None

    @property
    def major_version(self) -> int:
        return int(self.version.split(".")[0])

    def next_version(self) -> str:
        return f"{self.major_version + 1}.0.0"

    def to_dict(self, include_items: bool = True) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "version": self.version,
            "status": self.status.value,
            "periodStart": self.period_start.isoformat(),
            "periodEnd": self.period_end.isoformat(),
            "basedOnDraftId": self.based_on_draft_id,
            "metadata": self.metadata,
            "notes": self.notes,
            "createdBy": self.created_by,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
            "approvedBy": self.approved_by,
            "approvedAt": self.approved_at.isoformat() if self.approved_at else None,
            "activatedAt": self.activated_at.isoformat() if self.activated_at else None,
            "archivedAt": self.archived_at.isoformat() if self.archived_at else None,
            "itemCount": len(self.items),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


@dataclass
class TimeSlot:
    """Staffing requirement for a single clock hour"""
    hour_slot: int
    required_staff: int
    preferred_staff: Optional[int] = None
    max_staff: Optional[int] = None
    priority: str = "normal"  # low, normal, high, critical


@dataclass
class DailyHours:
    """Operating hours and staffing of one weekday"""
    day_of_week: int
    is_open: bool = True
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    break_start: Optional[str] = None
    break_end: Optional[str] = None
    min_staff: Optional[int] = None
    max_staff: Optional[int] = None
    time_slots: List[TimeSlot] = field(default_factory=list)

    def required_staff_at(self, hour: int) -> int:
        """Time slot requirement wins over basic staffing, default 1"""
        for slot in self.time_slots:
            if slot.hour_slot == hour:
                return slot.required_staff
        return self.min_staff or 1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DailyHours":
        return cls(
            day_of_week=int(data["dayOfWeek"]),
            is_open=data.get("isOpen", True) is not False,
            open_time=data.get("openTime"),
            close_time=data.get("closeTime"),
            break_start=data.get("breakStart"),
            break_end=data.get("breakEnd"),
            min_staff=data.get("minStaff"),
            max_staff=data.get("maxStaff"),
            time_slots=[
                TimeSlot(
                    hour_slot=int(slot["hourSlot"]),
                    required_staff=int(slot.get("requiredStaff", 1)),
                    preferred_staff=slot.get("preferredStaff"),
                    max_staff=slot.get("maxStaff"),
                    priority=slot.get("priority") or "normal",
                )
                for slot in data.get("timeSlots") or []
            ],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dayOfWeek": self.day_of_week,
            "isOpen": self.is_open,
            "openTime": self.open_time,
            "closeTime": self.close_time,
            "breakStart": self.break_start,
            "breakEnd": self.break_end,
            "minStaff": self.min_staff,
            "maxStaff": self.max_staff,
            "timeSlots": [
                {
                    "hourSlot": slot.hour_slot,
                    "requiredStaff": slot.required_staff,
                    "preferredStaff": slot.preferred_staff,
                    "maxStaff": slot.max_staff,
                    "priority": slot.priority,
                }
                for slot in self.time_slots
            ],
        }


@dataclass
class OperatingHoursTemplate:
    """Weekly operating hours template"""
    id: Optional[int]
    name: str
    daily_hours: List[DailyHours] = field(default_factory=list)
    description: Optional[str] = None
    is_default: bool = False
    timezone: str = "UTC"

    def get_day(self, day_of_week: int) -> Optional[DailyHours]:
        for day in self.daily_hours:
            if day.day_of_week == day_of_week:
                return day
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OperatingHoursTemplate":
        return cls(
            id=data.get("id"),
            name=data.get("templateName") or data.get("name") or "Template",
            daily_hours=[DailyHours.from_dict(day) for day in data.get("dailyHours") or []],
            description=data.get("description"),
            is_default=bool(data.get("isDefault", False)),
            timezone=data.get("timezone") or "UTC",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "templateName": self.name,
            "description": self.description,
            "isDefault": self.is_default,
            "timezone": self.timezone,
            "dailyHours": [day.to_dict() for day in self.daily_hours],
        }
