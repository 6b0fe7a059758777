"""
Schedule drafts: candidate schedules that can be reviewed, duplicated,
merged and finally activated into the Schedules table.
"""

import json
import logging
from datetime import date, datetime, timezone
from typing import List, Dict, Tuple, Optional, Any

from db_init import log_audit
from entities import DraftItem, DraftStatus, ScheduleDraft

logger = logging.getLogger(__name__)

DEFAULT_MERGE_OPTIONS = {
    "name": "Merged Schedule Draft",
    "description": "Merged from multiple schedule drafts",
    "conflictResolution": "priority",  # priority, latest, combine
    "priorityOrder": [],
    "preserveMetadata": True,
}

MERGEABLE_STATUSES = (DraftStatus.DRAFT, DraftStatus.REVIEWING)


class DraftError(ValueError):
    """Invalid draft operation"""


class DraftNotFoundError(LookupError):
    pass


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def row_to_item(row) -> DraftItem:
    return DraftItem(
        id=row["Id"],
        draft_id=row["DraftId"],
        employee_id=row["EmployeeId"],
        shift_pattern_id=row["ShiftPatternId"],
        date=date.fromisoformat(row["Date"]),
        start_time=row["StartTime"],
        end_time=row["EndTime"],
        shift_type=row["ShiftType"],
        status=row["Status"],
        priority=row["Priority"],
        notes=row["Notes"],
        updated_at=_dt(row["UpdatedAt"]),
    )


def row_to_draft(row, items: Optional[List[DraftItem]] = None) -> ScheduleDraft:
    return ScheduleDraft(
        id=row["Id"],
        name=row["Name"],
        description=row["Description"],
        version=row["Version"],
        status=DraftStatus(row["Status"]),
        period_start=date.fromisoformat(row["PeriodStart"]),
        period_end=date.fromisoformat(row["PeriodEnd"]),
        based_on_draft_id=row["BasedOnDraftId"],
        metadata=json.loads(row["Metadata"] or "{}"),
        notes=row["Notes"],
        items=items or [],
        created_by=row["CreatedBy"],
        created_at=_dt(row["CreatedAt"]),
        updated_at=_dt(row["UpdatedAt"]),
        approved_by=row["ApprovedBy"],
        approved_at=_dt(row["ApprovedAt"]),
        activated_at=_dt(row["ActivatedAt"]),
        archived_at=_dt(row["ArchivedAt"]),
    )


def _insert_items(conn, draft_id: int, items: List[DraftItem]):
    now = _now()
    conn.executemany("""
        INSERT INTO ScheduleDraftItems
            (DraftId, EmployeeId, ShiftPatternId, Date, StartTime, EndTime,
             ShiftType, Status, Priority, Notes, CreatedAt, UpdatedAt)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
    """, [
        (draft_id, item.employee_id, item.shift_pattern_id, item.date.isoformat(),
         item.start_time, item.end_time, item.shift_type or "regular",
         item.status or "planned", item.priority or "normal", item.notes, now, now)
        for item in items
    ])


def get_draft(conn, draft_id: int, include_items: bool = True) -> ScheduleDraft:
    row = conn.execute("SELECT * FROM ScheduleDrafts WHERE Id = ?", (draft_id,)).fetchone()
    if not row:
        raise DraftNotFoundError(f"Schedule draft {draft_id} not found")

    items = []
    if include_items:
        items = [row_to_item(r) for r in conn.execute(
            "SELECT * FROM ScheduleDraftItems WHERE DraftId = ? ORDER BY Date, StartTime, EmployeeId",
            (draft_id,)
        ).fetchall()]
    return row_to_draft(row, items)


def list_drafts(conn, status: Optional[str] = None) -> List[ScheduleDraft]:
    """List drafts (newest first) with their items"""
    query = "SELECT Id FROM ScheduleDrafts"
    params: list = []
    if status:
        query += " WHERE Status = ?"
        params.append(DraftStatus(status).value)
    query += " ORDER BY CreatedAt DESC, Id DESC"
    return [get_draft(conn, row["Id"]) for row in conn.execute(query, params).fetchall()]


def create_draft(
    conn,
    name: str,
    period_start: date,
    period_end: date,
    items: List[DraftItem],
    description: Optional[str] = None,
    based_on_draft_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None,
    notes: Optional[str] = None,
    created_by: Optional[str] = None,
    version: Optional[str] = None
) -> ScheduleDraft:
    """
    Create a draft with its items.

    The version is 1.0.0 unless the draft is based on another draft, in
    which case it is the parent's next major version.
    """
    if not name or not name.strip():
        raise DraftError("Draft name is required")
    if period_start > period_end:
        raise DraftError("Period start must not be after period end")

    if version is None:
        version = "1.0.0"
        if based_on_draft_id is not None:
            version = get_draft(conn, based_on_draft_id, include_items=False).next_version()

    now = _now()
    cursor = conn.execute("""
        INSERT INTO ScheduleDrafts
            (Name, Description, Version, Status, PeriodStart, PeriodEnd, BasedOnDraftId,
             Metadata, Notes, CreatedBy, CreatedAt, UpdatedAt)
        VALUES (?, ?, ?, 'draft', ?, ?, ?, ?, ?, ?, ?, ?)
    """, (name, description, version, period_start.isoformat(), period_end.isoformat(),
          based_on_draft_id, json.dumps(metadata or {}), notes, created_by, now, now))
    draft_id = cursor.lastrowid
    _insert_items(conn, draft_id, items)
    conn.commit()

    logger.info("Draft %s '%s' v%s created with %d items", draft_id, name, version, len(items))
    return get_draft(conn, draft_id)


def delete_draft(conn, draft_id: int):
    draft = get_draft(conn, draft_id, include_items=False)
    if draft.status == DraftStatus.ACTIVE:
        raise DraftError("Cannot delete an active draft")
    conn.execute("DELETE FROM ScheduleDrafts WHERE Id = ?", (draft_id,))
    conn.commit()
    logger.info("Draft %s deleted", draft_id)


def get_draft_stats(conn) -> Dict[str, Any]:
    by_status = {
        row["Status"]: row["Count"]
        for row in conn.execute("SELECT Status, COUNT(*) AS Count FROM ScheduleDrafts GROUP BY Status")
    }
    total_items = conn.execute("SELECT COUNT(*) FROM ScheduleDraftItems").fetchone()[0]
    return {
        "totalDrafts": sum(by_status.values()),
        "totalItems": total_items,
        "byStatus": by_status,
    }


def update_draft_status(conn, draft_id: int, status: str, user: Optional[str] = None) -> ScheduleDraft:
    """Change the status; active stamps approval and activation, archived stamps archivedAt"""
    try:
        new_status = DraftStatus(status)
    except ValueError:
        raise DraftError(
            "Invalid status. Must be one of: " + ", ".join(s.value for s in DraftStatus)
        ) from None

    get_draft(conn, draft_id, include_items=False)
    now = _now()
    if new_status == DraftStatus.ACTIVE:
        conn.execute("""
            UPDATE ScheduleDrafts
            SET Status = ?, ApprovedBy = ?, ApprovedAt = ?, ActivatedAt = ?, UpdatedAt = ?
            WHERE Id = ?
        """, (new_status.value, user, now, now, now, draft_id))
    elif new_status == DraftStatus.ARCHIVED:
        conn.execute("UPDATE ScheduleDrafts SET Status = ?, ArchivedAt = ?, UpdatedAt = ? WHERE Id = ?",
                     (new_status.value, now, now, draft_id))
    else:
        conn.execute("UPDATE ScheduleDrafts SET Status = ?, UpdatedAt = ? WHERE Id = ?",
                     (new_status.value, now, draft_id))
    conn.commit()

    logger.info("Draft %s status changed to %s", draft_id, new_status.value)
    return get_draft(conn, draft_id)


def duplicate_draft(conn, draft_id: int, name: Optional[str] = None,
                    description: Optional[str] = None, user: Optional[str] = None) -> ScheduleDraft:
    """Copy a draft and its items as the next major version"""
    original = get_draft(conn, draft_id)
    return create_draft(
        conn,
        name=name or f"{original.name} (Copy)",
        period_start=original.period_start,
        period_end=original.period_end,
        items=original.items,
        description=description or original.description,
        based_on_draft_id=original.id,
        metadata=original.metadata,
        notes=original.notes,
        created_by=user,
    )


def activate_draft(conn, draft_id: int, replace_existing: bool = False, user: Optional[str] = None) -> int:
    """
    Turn a draft into real schedule entries.

    Args:
        replace_existing: Delete all Schedules rows in the draft period first

    Returns:
        Number of schedule entries created
    """
    draft = get_draft(conn, draft_id)
    if draft.status == DraftStatus.ACTIVE:
        raise DraftError("Draft is already active")

    if replace_existing:
        removed = conn.execute("DELETE FROM Schedules WHERE Date >= ? AND Date <= ?",
                               (draft.period_start.isoformat(), draft.period_end.isoformat())).rowcount
        logger.info("Removed %d existing shifts for %s to %s", removed, draft.period_start, draft.period_end)

    items = [item for item in draft.items if item.status != "excluded"]
    conn.executemany("""
        INSERT INTO Schedules (EmployeeId, ShiftPatternId, Date, StartTime, EndTime, ShiftType,
                               Status, Notes, CreatedAt, CreatedBy)
        VALUES (?, ?, ?, ?, ?, ?, 'scheduled', ?, ?, ?)
    """, [
        (item.employee_id, item.shift_pattern_id, item.date.isoformat(), item.start_time,
         item.end_time, item.shift_type, item.notes, _now(), user)
        for item in items
    ])

    now = _now()
    conn.execute("""
        UPDATE ScheduleDrafts
        SET Status = 'active', ApprovedBy = ?, ApprovedAt = ?, ActivatedAt = ?, UpdatedAt = ?
        WHERE Id = ?
    """, (user, now, now, now, draft_id))
    log_audit(conn, "ScheduleDraft", draft_id, "Activate",
              json.dumps({"schedulesCreated": len(items), "replaceExisting": replace_existing}), user)
    conn.commit()

    logger.info("Draft %s activated: %d shifts created", draft_id, len(items))
    return len(items)


# ---------------------------------------------------------------------------
# Merging
# ---------------------------------------------------------------------------

def _any_overlap(items: List[DraftItem]) -> bool:
    for i, first in enumerate(items):
        for second in items[i + 1:]:
            if first.overlaps(second):
                return True
    return False


def _updated_key(item: DraftItem, draft: ScheduleDraft) -> float:
    """Latest change of an item or of the draft holding it"""
    stamps = [v.timestamp() for v in (item.updated_at, draft.updated_at) if v]
    return max(stamps) if stamps else float("-inf")


def _group_items(drafts: List[ScheduleDraft], priority_order: List[int]):
    """Items keyed by (employee, date) with (draft, rank) where lower rank wins"""
    grouped: Dict[Tuple[int, date], List[Tuple[DraftItem, ScheduleDraft, int]]] = {}
    for index, draft in enumerate(drafts):
        rank = priority_order.index(draft.id) if draft.id in priority_order else index
        for item in draft.items:
            grouped.setdefault((item.employee_id, item.date), []).append((item, draft, rank))
    return grouped


def resolve_merge(drafts: List[ScheduleDraft],
                  options: Optional[Dict[str, Any]] = None) -> Tuple[List[DraftItem], List[Dict[str, Any]]]:
    """
    Combine the items of several drafts.

    Items for the same employee and date are conflicts, resolved by
    options["conflictResolution"]:
        priority  lowest index in priorityOrder, else the draft's position
        latest    most recently updated item
        combine   keep all if none overlap in time, else priority
        other     first item

    Returns:
        Tuple of (merged_items, conflicts)
    """
    options = {**DEFAULT_MERGE_OPTIONS, **(options or {})}
    resolution = options.get("conflictResolution")
    priority_order = [int(i) for i in options.get("priorityOrder") or []]

    merged: List[DraftItem] = []
    conflicts: List[Dict[str, Any]] = []

    for (employee_id, d), candidates in _group_items(drafts, priority_order).items():
        if len(candidates) == 1:
            merged.append(candidates[0][0])
            continue

        conflicts.append({
            "employeeId": employee_id,
            "date": d.isoformat(),
            "conflictingItems": [
                {
                    "draftId": draft.id,
                    "draftName": draft.name,
                    "startTime": item.start_time,
                    "endTime": item.end_time,
                    "shiftType": item.shift_type,
                    "priority": item.priority,
                }
                for item, draft, _ in candidates
            ],
        })

        by_priority = min(candidates, key=lambda c: c[2])[0]
        if resolution == "priority":
            merged.append(by_priority)
        elif resolution == "latest":
            merged.append(max(candidates, key=lambda c: _updated_key(c[0], c[1]))[0])
        elif resolution == "combine":
            items = [c[0] for c in candidates]
            if _any_overlap(items):
                merged.append(by_priority)
            else:
                merged.extend(items)
        else:
            merged.append(candidates[0][0])

    return merged, conflicts


def _load_mergeable(conn, draft_ids: List[int]) -> List[ScheduleDraft]:
    if not draft_ids or len(draft_ids) < 2:
        raise DraftError("At least 2 drafts are required for merging")
    draft_ids = [int(draft_id) for draft_id in draft_ids]
    if len(set(draft_ids)) != len(draft_ids):
        raise DraftError("A draft cannot be merged with itself")

    drafts = []
    for draft_id in draft_ids:
        try:
            draft = get_draft(conn, draft_id)
        except DraftNotFoundError:
            raise DraftError(f"Draft {draft_id} not found or cannot be merged") from None
        if draft.status not in MERGEABLE_STATUSES:
            raise DraftError(f"Draft {draft_id} is {draft.status.value} and cannot be merged")
        drafts.append(draft)
    return drafts


def merge_drafts(conn, draft_ids: List[int], options: Optional[Dict[str, Any]] = None,
                 user: Optional[str] = None) -> Tuple[ScheduleDraft, List[Dict[str, Any]], Dict[str, Any]]:
    """
    Merge drafts into a new draft.

    Returns:
        Tuple of (merged draft, conflicts, summary)
    """
    options = {**DEFAULT_MERGE_OPTIONS, **(options or {})}
    drafts = _load_mergeable(conn, draft_ids)
    merged_items, conflicts = resolve_merge(drafts, options)

    period_start = min(d.period_start for d in drafts)
    period_end = max(d.period_end for d in drafts)
    version = f"{max(d.major_version for d in drafts) + 1}.0.0"

    metadata: Dict[str, Any] = {}
    if options.get("preserveMetadata"):
        for draft in drafts:
            metadata.update(draft.metadata or {})
    metadata["mergeInfo"] = {
        "sourceDrafts": [{"id": d.id, "name": d.name, "version": d.version} for d in drafts],
        "mergeOptions": options,
        "conflictsResolved": len(conflicts),
        "mergedAt": _now(),
    }

    merged = create_draft(
        conn,
        name=options.get("name") or DEFAULT_MERGE_OPTIONS["name"],
        period_start=period_start,
        period_end=period_end,
        items=merged_items,
        description=options.get("description"),
        metadata=metadata,
        notes=f"Merged from {len(drafts)} drafts: {', '.join(d.name for d in drafts)}",
        created_by=user,
        version=version,
    )
    log_audit(conn, "ScheduleDraft", merged.id, "Merge",
              json.dumps({"sourceDrafts": [d.id for d in drafts], "conflicts": len(conflicts)}), user)
    conn.commit()

    summary = {
        "totalSourceDrafts": len(drafts),
        "totalItemsMerged": len(merged_items),
        "conflictsResolved": len(conflicts),
        "periodStart": period_start.isoformat(),
        "periodEnd": period_end.isoformat(),
    }
    logger.info("Merged drafts %s into draft %s (%d conflicts)",
                [d.id for d in drafts], merged.id, len(conflicts))
    return merged, conflicts, summary


def preview_merge(conn, draft_ids: List[int], options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Conflicts and resulting period of a merge without writing anything"""
    drafts = _load_mergeable(conn, draft_ids)
    names = {
        row["Id"]: row["Name"]
        for row in conn.execute("SELECT Id, Name FROM Employees").fetchall()
    }

    conflicts = []
    for (employee_id, d), candidates in _group_items(drafts, []).items():
        if len(candidates) < 2:
            continue
        conflicting = []
        for item, draft, _ in candidates:
            overlap = any(
                other_draft.id != draft.id and item.overlaps(other)
                for other, other_draft, _ in candidates
            )
            conflicting.append({
                "draftId": draft.id,
                "draftName": draft.name,
                "startTime": item.start_time,
                "endTime": item.end_time,
                "shiftType": item.shift_type,
                "hasTimeOverlap": overlap,
            })
        conflicts.append({
            "employeeId": employee_id,
            "employeeName": names.get(employee_id),
            "date": d.isoformat(),
            "conflictingItems": conflicting,
        })

    merged_items, _ = resolve_merge(drafts, options)
    return {
        "conflicts": conflicts,
        "summary": {
            "totalDrafts": len(drafts),
            "totalItems": sum(len(d.items) for d in drafts),
            "totalConflicts": len(conflicts),
            "resultingItems": len(merged_items),
            "draftSummary": [
                {
                    "id": d.id,
                    "name": d.name,
                    "itemCount": len(d.items),
                    "periodStart": d.period_start.isoformat(),
                    "periodEnd": d.period_end.isoformat(),
                }
                for d in drafts
            ],
        },
        "periodStart": min(d.period_start for d in drafts).isoformat(),
        "periodEnd": max(d.period_end for d in drafts).isoformat(),
        "canMerge": True,
    }
