"""
Team board schema and task state machine.

Task lifecycle:
  Active ⇄ Completed, either → deleted

The whole board is one AppDocument; it is also the JSON wire format
(camelCase keys, ISO-8601 timestamps).
"""
import math
from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional, List, Dict, Any

from .errors import ValidationError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """ISO-8601 UTC with millisecond precision and a Z suffix."""
    if value is None:
        return None
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string (Z suffix and bare dates accepted) into an aware datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f"Invalid timestamp: {value!r}")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def validate_title(title: Any) -> str:
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("title is required")
    return title.strip()


def validate_name(name: Any) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name is required")
    return name.strip()


def coerce_score(score: Any) -> float:
    """Scores are positive numbers; integral values stay ints so they serialize as 5, not 5.0."""
    if score is None or score == "" or isinstance(score, bool):
        raise ValidationError("score is required")
    try:
        number = float(score)
    except (TypeError, ValueError):
        raise ValidationError(f"score must be a number, got {score!r}")
    if not math.isfinite(number):
        raise ValidationError(f"score must be a finite number, got {score!r}")
    if number <= 0:
        raise ValidationError("score must be greater than 0")
    return int(number) if number.is_integer() else number


def coerce_index(value: Any, name: str = "priority") -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer, got {value!r}")


class TaskStatus(Enum):
    """Valid task states."""
    ACTIVE = "active"          # On the board, ordered by priority
    COMPLETED = "completed"    # In the member's history

    @classmethod
    def from_str(cls, value: Any, default: "TaskStatus" = None) -> "TaskStatus":
        try:
            return cls[value.upper()]
        except (KeyError, AttributeError):
            return default or cls.ACTIVE


class DeadlineStatus(Enum):
    """How an active task's deadline relates to now."""
    OVERDUE = "overdue"
    DUE_SOON = "due_soon"
    ON_TRACK = "on_track"


ALLOWED_TRANSITIONS = {
    TaskStatus.ACTIVE: [TaskStatus.COMPLETED],
    TaskStatus.COMPLETED: [TaskStatus.ACTIVE],
}


@dataclass
class TeamMember:
    """A person tasks can be assigned to."""

    id: str
    name: str
    order: int = 0                 # Display position (0 = first)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "order": self.order,
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_order: int = 0) -> "TeamMember":
        """Deserialize; members saved before ordering existed take their list position."""
        now = utc_now()
        order = data.get("order")
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            order=coerce_index(order, "order") if order is not None else default_order,
            created_at=parse_timestamp(data.get("createdAt")) or now,
            updated_at=parse_timestamp(data.get("updatedAt")) or now,
        )


@dataclass
class Task:
    """A unit of work with a score, owned by one team member."""

    id: str
    title: str
    score: float
    assigned_to: str               # TeamMember.id
    priority: int = 0              # Position in the assignee's list (0 = highest)
    deadline: Optional[datetime] = None
    status: TaskStatus = TaskStatus.ACTIVE
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    completed_at: Optional[datetime] = None

    def transition_to(self, new_status: TaskStatus, now: Optional[datetime] = None) -> bool:
        """Attempt a status transition. Returns True if successful."""
        if new_status not in ALLOWED_TRANSITIONS.get(self.status, []):
            return False

        now = now or utc_now()
        self.status = new_status
        self.completed_at = now if new_status == TaskStatus.COMPLETED else None
        self.updated_at = now
        return True

    def deadline_status(
        self, now: Optional[datetime] = None, due_soon_days: int = 3
    ) -> Optional[DeadlineStatus]:
        """Overdue / due soon / on track, or None when there is no deadline."""
        if self.deadline is None:
            return None
        now = now or utc_now()
        if self.deadline < now:
            return DeadlineStatus.OVERDUE
        if self.deadline <= now + timedelta(days=due_soon_days):
            return DeadlineStatus.DUE_SOON
        return DeadlineStatus.ON_TRACK

    def was_overdue(self) -> bool:
        """For completed tasks: whether the deadline had passed at completion."""
        if self.deadline is None:
            return False
        finished = self.completed_at or self.updated_at
        return self.deadline < finished

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "title": self.title,
            "score": self.score,
            "deadline": format_timestamp(self.deadline),
            "assignedTo": self.assigned_to,
            "priority": self.priority,
            "status": self.status.value,
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
        }
        if self.completed_at is not None:
            data["completedAt"] = format_timestamp(self.completed_at)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_status: TaskStatus = TaskStatus.ACTIVE) -> "Task":
        """Deserialize from dict. Older documents may lack status and completedAt."""
        now = utc_now()
        status = TaskStatus.from_str(data.get("status"), default_status)

        score = data.get("score")
        try:
            score = coerce_score(score)
        except ValidationError:
            score = score if isinstance(score, (int, float)) and math.isfinite(score) else 0

        priority = data.get("priority")
        return cls(
            id=str(data.get("id", "")),
            title=data.get("title", ""),
            score=score,
            assigned_to=data.get("assignedTo", ""),
            priority=coerce_index(priority) if priority is not None else 0,
            deadline=parse_timestamp(data.get("deadline")),
            status=status,
            created_at=parse_timestamp(data.get("createdAt")) or now,
            updated_at=parse_timestamp(data.get("updatedAt")) or now,
            completed_at=parse_timestamp(data.get("completedAt")),
        )


@dataclass
class AppDocument:
    """The whole board: members, active tasks, completed tasks."""

    team_members: List[TeamMember] = field(default_factory=list)
    tasks: List[Task] = field(default_factory=list)             # active only
    completed_tasks: List[Task] = field(default_factory=list)
    last_updated: datetime = field(default_factory=utc_now)

    # ── Lookups ──────────────────────────────────────────────

    def find_member(self, member_id: str) -> Optional[TeamMember]:
        return next((m for m in self.team_members if m.id == member_id), None)

    def find_task(self, task_id: str) -> Optional[Task]:
        return next((t for t in self.tasks if t.id == task_id), None)

    def find_completed_task(self, task_id: str) -> Optional[Task]:
        return next((t for t in self.completed_tasks if t.id == task_id), None)

    def members_by_order(self) -> List[TeamMember]:
        return sorted(self.team_members, key=lambda m: m.order)

    def tasks_for(self, member_id: str) -> List[Task]:
        """Active tasks of one member, highest priority first."""
        return sorted(
            (t for t in self.tasks if t.assigned_to == member_id),
            key=lambda t: t.priority,
        )

    def completed_tasks_for(self, member_id: str) -> List[Task]:
        """Completed tasks of one member, most recently completed first."""
        return sorted(
            (t for t in self.completed_tasks if t.assigned_to == member_id),
            key=lambda t: t.completed_at or t.updated_at,
            reverse=True,
        )

    # ── Integrity ────────────────────────────────────────────

    def integrity_issues(self, strict: bool = False) -> List[str]:
        """
        Return a list of invariant violations (empty when consistent).

        Priority gaps left behind by deleted tasks are tolerated unless
        strict=True; duplicate priorities are always reported.
        """
        issues = []

        member_ids = [m.id for m in self.team_members]
        if len(set(member_ids)) != len(member_ids):
            issues.append("Duplicate team member ids")
        orders = sorted(m.order for m in self.team_members)
        if orders != list(range(len(orders))):
            issues.append(f"Team member order is not 0..{len(orders) - 1}: {orders}")

        active_ids = [t.id for t in self.tasks]
        completed_ids = [t.id for t in self.completed_tasks]
        if len(set(active_ids)) != len(active_ids):
            issues.append("Duplicate active task ids")
        if len(set(completed_ids)) != len(completed_ids):
            issues.append("Duplicate completed task ids")
        for task_id in sorted(set(active_ids) & set(completed_ids)):
            issues.append(f"Task {task_id} is both active and completed")

        known = set(member_ids)
        for task in self.tasks + self.completed_tasks:
            if task.assigned_to not in known:
                issues.append(f"Task {task.id} is assigned to unknown member {task.assigned_to!r}")

        for member_id in member_ids:
            priorities = [t.priority for t in self.tasks_for(member_id)]
            if len(set(priorities)) != len(priorities):
                issues.append(f"Duplicate priorities for {member_id}: {priorities}")
            elif strict and priorities != list(range(len(priorities))):
                issues.append(f"Priorities for {member_id} are not dense: {priorities}")

        return issues

    # ── Serialization ────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "teamMembers": [m.to_dict() for m in self.team_members],
            "tasks": [t.to_dict() for t in self.tasks],
            "completedTasks": [t.to_dict() for t in self.completed_tasks],
            "lastUpdated": format_timestamp(self.last_updated),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppDocument":
        """Deserialize, defaulting fields older documents do not carry."""
        if not isinstance(data, dict):
            raise ValidationError("Document must be a JSON object")
        members = data.get("teamMembers") or []
        tasks = data.get("tasks") or []
        completed = data.get("completedTasks") or []
        if not all(isinstance(v, list) for v in (members, tasks, completed)):
            raise ValidationError("teamMembers, tasks and completedTasks must be lists")
        if not all(isinstance(entry, dict) for entry in members + tasks + completed):
            raise ValidationError("teamMembers, tasks and completedTasks entries must be objects")

        doc = cls(
            team_members=[TeamMember.from_dict(m, default_order=i) for i, m in enumerate(members)],
            tasks=[Task.from_dict(t, TaskStatus.ACTIVE) for t in tasks],
            completed_tasks=[Task.from_dict(t, TaskStatus.COMPLETED) for t in completed],
            last_updated=parse_timestamp(data.get("lastUpdated")) or utc_now(),
        )
        # The list a task sits in is authoritative for its status
        for task in doc.tasks:
            task.status = TaskStatus.ACTIVE
        for task in doc.completed_tasks:
            task.status = TaskStatus.COMPLETED
        return doc
