"""
Violation Tracker for schedule generation

Records every place where generation could not honour a requirement:
understaffed shifts, unmet rank/experience minimums, forced conflict pairs,
solver fallbacks. Provides JSON-ready conflicts and a summary for review.
"""

from datetime import date
from typing import List, Dict, Any, Optional
from dataclasses import dataclass


@dataclass
class Violation:
    """Represents a single generation conflict"""
    category: str  # "insufficient_staff", "requirement_unmet", "chemistry_conflict_forced", ...
    severity: str  # "low", "medium", "high"
    date: Optional[date] = None
    pattern_id: Optional[int] = None
    pattern_name: Optional[str] = None
    employee_id: Optional[int] = None
    employee_name: Optional[str] = None
    description: str = ""
    required: Optional[int] = None
    available: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.category,
            "severity": self.severity,
            "date": self.date.isoformat() if self.date else None,
            "shiftPatternId": self.pattern_id,
            "shiftPattern": self.pattern_name,
            "employeeId": self.employee_id,
            "employeeName": self.employee_name,
            "message": self.description,
            "required": self.required,
            "available": self.available,
        }


SEVERITY_ORDER = {"high": 0, "medium": 1, "low": 2}


class ViolationTracker:
    """
    Tracks conflicts found while generating a schedule.

    Usage:
        tracker = ViolationTracker()
        tracker.add_violation("insufficient_staff", "high", date=d, pattern_name="Morning",
                              required=3, available=1, description="...")
        summary = tracker.get_summary()
    """

    def __init__(self):
        self.violations: List[Violation] = []

    def add_violation(
        self,
        category: str,
        severity: str,
        date: Optional[date] = None,
        pattern_id: Optional[int] = None,
        pattern_name: Optional[str] = None,
        employee_id: Optional[int] = None,
        employee_name: Optional[str] = None,
        description: str = "",
        required: Optional[int] = None,
        available: Optional[int] = None
    ):
        """Add a violation to the tracker"""
        self.violations.append(Violation(
            category=category,
            severity=severity,
            date=date,
            pattern_id=pattern_id,
            pattern_name=pattern_name,
            employee_id=employee_id,
            employee_name=employee_name,
            description=description,
            required=required,
            available=available
        ))

    def extend(self, other: "ViolationTracker"):
        self.violations.extend(other.violations)

    def get_violations(self, category: Optional[str] = None) -> List[Violation]:
        """Get recorded violations, optionally of one category"""
        if category is None:
            return self.violations
        return [v for v in self.violations if v.category == category]

    def to_dicts(self) -> List[Dict[str, Any]]:
        """Conflicts as dictionaries, most severe first, then by date"""
        ordered = sorted(
            self.violations,
            key=lambda v: (SEVERITY_ORDER.get(v.severity, 3), v.date or date.min)
        )
        return [v.to_dict() for v in ordered]

    def get_summary(self) -> Dict[str, Any]:
        """
        Generate a summary of all violations.

        Returns:
            Dictionary with counts per severity and category plus a message
        """
        if not self.violations:
            return {
                "total": 0,
                "by_severity": {},
                "by_category": {},
                "message": "✅ All requirements satisfied. No conflicts."
            }

        by_severity: Dict[str, int] = {}
        by_category: Dict[str, int] = {}
        for v in self.violations:
            by_severity[v.severity] = by_severity.get(v.severity, 0) + 1
            by_category[v.category] = by_category.get(v.category, 0) + 1

        message_parts = []
        if by_severity.get("high"):
            message_parts.append(f"⚠️ {by_severity['high']} high severity conflicts")
        if by_severity.get("medium"):
            message_parts.append(f"⚠️ {by_severity['medium']} medium severity conflicts - manual review recommended")
        if by_severity.get("low"):
            message_parts.append(f"ℹ️ {by_severity['low']} notes")

        return {
            "total": len(self.violations),
            "by_severity": by_severity,
            "by_category": by_category,
            "message": " | ".join(message_parts)
        }

    def has_critical_violations(self) -> bool:
        """Check if there are any high severity violations"""
        return any(v.severity == "high" for v in self.violations)

    def has_violations(self) -> bool:
        return len(self.violations) > 0
