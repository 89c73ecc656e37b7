"""
Workload aggregation: score totals and counts per team member.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from .schema import AppDocument, DeadlineStatus, utc_now


@dataclass
class WorkloadEntry:
    """One member's share of the board."""
    member_id: str
    member_name: str
    active_count: int = 0
    active_score: float = 0
    completed_count: int = 0
    completed_score: float = 0
    overdue_count: int = 0
    due_soon_count: int = 0

    @property
    def total_score(self) -> float:
        return self.active_score + self.completed_score

    def to_dict(self) -> Dict[str, Any]:
        return {
            "memberId": self.member_id,
            "memberName": self.member_name,
            "activeCount": self.active_count,
            "activeScore": self.active_score,
            "completedCount": self.completed_count,
            "completedScore": self.completed_score,
            "overdueCount": self.overdue_count,
            "dueSoonCount": self.due_soon_count,
            "totalScore": self.total_score,
        }


def compute_workload(
    document: AppDocument,
    now: Optional[datetime] = None,
    due_soon_days: int = 3,
) -> List[WorkloadEntry]:
    """Sum active and completed scores per member, in member display order. Read-only."""
    now = now or utc_now()
    entries = {
        m.id: WorkloadEntry(member_id=m.id, member_name=m.name)
        for m in document.members_by_order()
    }

    for task in document.tasks:
        entry = entries.get(task.assigned_to)
        if entry is None:
            continue
        entry.active_count += 1
        entry.active_score += task.score
        status = task.deadline_status(now, due_soon_days)
        if status == DeadlineStatus.OVERDUE:
            entry.overdue_count += 1
        elif status == DeadlineStatus.DUE_SOON:
            entry.due_soon_count += 1

    for task in document.completed_tasks:
        entry = entries.get(task.assigned_to)
        if entry is None:
            continue
        entry.completed_count += 1
        entry.completed_score += task.score

    return list(entries.values())


def team_totals(entries: List[WorkloadEntry]) -> Dict[str, Any]:
    """Board-wide totals over a workload report."""
    return {
        "activeCount": sum(e.active_count for e in entries),
        "activeScore": sum(e.active_score for e in entries),
        "completedCount": sum(e.completed_count for e in entries),
        "completedScore": sum(e.completed_score for e in entries),
        "overdueCount": sum(e.overdue_count for e in entries),
        "dueSoonCount": sum(e.due_soon_count for e in entries),
    }
