"""
Team board store.

Wraps one AppDocument for the duration of a request and applies the
board's mutations to it: add/update/delete, reorder, complete/restore.
Callers load the document, build a store around it, call one operation
and save `store.document`.

Unknown ids are reported as a failure value (None/False/0) with nothing
mutated. Invalid input raises ValidationError, and a task naming a missing
assignee raises NotFoundError, before anything is mutated.
"""
import logging
import time
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from .errors import NotFoundError, ValidationError
from .ordering import renumber, splice
from .schema import (
    AppDocument,
    Task,
    TaskStatus,
    TeamMember,
    coerce_index,
    coerce_score,
    parse_timestamp,
    utc_now,
    validate_name,
    validate_title,
)
from .workload import WorkloadEntry, compute_workload

logger = logging.getLogger(__name__)

UPDATABLE_TASK_FIELDS = ("title", "score", "deadline", "assignedTo", "priority")


def make_id(prefix: str) -> str:
    """Generate a sortable unique id (ms-precision timestamp + random hex)."""
    ts = int(time.time() * 1000)
    rand = uuid.uuid4().hex[:9]
    return f"{prefix}-{ts}-{rand}"


class TaskBoardStore:
    """Mutations and views over a single board document."""

    def __init__(self, document: AppDocument, clock: Callable[[], datetime] = utc_now):
        self.document = document
        self._clock = clock

    def _new_id(self, prefix: str) -> str:
        taken = {m.id for m in self.document.team_members}
        taken.update(t.id for t in self.document.tasks + self.document.completed_tasks)
        new_id = make_id(prefix)
        while new_id in taken:
            new_id = make_id(prefix)
        return new_id

    def _require_member(self, member_id: Any) -> TeamMember:
        if not member_id:
            raise ValidationError("assignedTo is required")
        member = self.document.find_member(member_id)
        if member is None:
            raise NotFoundError(f"Team member {member_id} not found")
        return member

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Team members
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def add_team_member(self, name: str, order: Optional[int] = None) -> TeamMember:
        """Add a member at the end of the list, or at `order` if given."""
        name = validate_name(name)
        index = coerce_index(order, "order") if order is not None else None

        now = self._clock()
        member = TeamMember(
            id=self._new_id("member"),
            name=name,
            order=len(self.document.team_members),
            created_at=now,
            updated_at=now,
        )
        ordered = self.document.members_by_order()
        if index is None:
            index = len(ordered)
        ordered = splice(ordered, member, index)
        renumber(ordered, "order", now)
        self.document.team_members.append(member)

        logger.info(f"Added team member {member.id} ({member.name}) at position {member.order}")
        return member

    def update_team_member(self, member_id: str, name: str) -> Optional[TeamMember]:
        """Rename a member. Returns None if the member does not exist."""
        name = validate_name(name)
        member = self.document.find_member(member_id)
        if member is None:
            logger.warning(f"Cannot rename unknown team member {member_id}")
            return None
        member.name = name
        member.updated_at = self._clock()
        return member

    def delete_team_member(self, member_id: str) -> bool:
        """Remove a member together with all of its active and completed tasks."""
        member = self.document.find_member(member_id)
        if member is None:
            logger.warning(f"Cannot delete unknown team member {member_id}")
            return False

        doc = self.document
        doc.team_members = [m for m in doc.team_members if m.id != member_id]
        before = len(doc.tasks) + len(doc.completed_tasks)
        doc.tasks = [t for t in doc.tasks if t.assigned_to != member_id]
        doc.completed_tasks = [t for t in doc.completed_tasks if t.assigned_to != member_id]
        removed = before - len(doc.tasks) - len(doc.completed_tasks)
        renumber(doc.members_by_order(), "order", self._clock())

        logger.info(f"Deleted team member {member_id} and {removed} task(s)")
        return True

    def reorder_team_member(self, member_id: str, new_order: int) -> bool:
        """Move a member to `new_order` (clamped) and renumber everyone 0..N-1."""
        new_order = coerce_index(new_order, "newOrder")
        member = self.document.find_member(member_id)
        if member is None:
            logger.warning(f"Cannot reorder unknown team member {member_id}")
            return False

        ordered = splice(self.document.members_by_order(), member, new_order)
        changed = renumber(ordered, "order", self._clock())
        logger.info(f"Moved team member {member_id} to position {member.order} ({len(changed)} changed)")
        return True

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Active tasks
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def add_task(
        self,
        title: str,
        score: Any,
        assigned_to: str,
        deadline: Any = None,
        priority: Optional[int] = None,
    ) -> Task:
        """
        Create an active task.

        Without `priority` the task goes to the end of the assignee's list;
        with it, the task is spliced in at that position. Either way the
        assignee's priorities end up 0..K-1.

        Raises:
            ValidationError: title/score/assignedTo missing or invalid.
            NotFoundError: assignedTo does not name an existing member.
        """
        title = validate_title(title)
        score = coerce_score(score)
        self._require_member(assigned_to)
        deadline = parse_timestamp(deadline)
        index = coerce_index(priority) if priority is not None else None

        now = self._clock()
        task = Task(
            id=self._new_id("task"),
            title=title,
            score=score,
            assigned_to=assigned_to,
            deadline=deadline,
            created_at=now,
            updated_at=now,
        )
        siblings = self.document.tasks_for(assigned_to)
        if index is None:
            index = len(siblings)
        renumber(splice(siblings, task, index), "priority", now)
        self.document.tasks.append(task)

        logger.info(f"Added task {task.id} for {assigned_to} at priority {task.priority}")
        return task

    def update_task(self, task_id: str, changes: Dict[str, Any]) -> Optional[Task]:
        """
        Edit an active task in place.

        `changes` uses wire field names (title, score, deadline, assignedTo,
        priority); other keys are ignored. A null/empty deadline clears it.
        Changing assignee or priority goes through the same move as
        reorder_task. Returns None if the task is not active.
        """
        task = self.document.find_task(task_id)
        if task is None:
            logger.warning(f"Cannot update unknown task {task_id}")
            return None

        # Validate everything before touching the task
        updates: Dict[str, Any] = {}
        if "title" in changes:
            updates["title"] = validate_title(changes["title"])
        if "score" in changes:
            updates["score"] = coerce_score(changes["score"])
        if "deadline" in changes:
            updates["deadline"] = parse_timestamp(changes["deadline"])
        new_assignee = task.assigned_to
        if changes.get("assignedTo") is not None:
            new_assignee = self._require_member(changes["assignedTo"]).id
        new_priority = None
        if changes.get("priority") is not None:
            new_priority = coerce_index(changes["priority"])

        now = self._clock()
        touched = False
        for attr, value in updates.items():
            if getattr(task, attr) != value:
                setattr(task, attr, value)
                touched = True

        if new_assignee != task.assigned_to or new_priority is not None:
            if new_priority is None:
                new_priority = len(self.document.tasks_for(new_assignee))
            self._move_task(task, new_assignee, new_priority, now)
        if touched:
            task.updated_at = now

        logger.info(f"Updated task {task_id}: {sorted(k for k in changes if k in UPDATABLE_TASK_FIELDS)}")
        return task

    def delete_task(self, task_id: str) -> bool:
        """
        Remove an active task.

        Siblings are not renumbered; the gap is harmless because views
        sort by priority, and the next move or completion closes it.
        """
        task = self.document.find_task(task_id)
        if task is None:
            logger.warning(f"Cannot delete unknown task {task_id}")
            return False
        self.document.tasks = [t for t in self.document.tasks if t.id != task_id]
        logger.info(f"Deleted task {task_id}")
        return True

    def reorder_task(self, task_id: str, new_assigned_to: str, new_priority: int) -> bool:
        """
        Move an active task to position `new_priority` in `new_assigned_to`'s list.

        The destination list is the assignee's other active tasks sorted by
        priority, with the task spliced in at the clamped index and everything
        renumbered 0..K-1. When the assignee changes, the source list is
        closed up as well.
        """
        new_priority = coerce_index(new_priority)
        task = self.document.find_task(task_id)
        if task is None:
            logger.warning(f"Cannot reorder unknown task {task_id}")
            return False
        if self.document.find_member(new_assigned_to) is None:
            logger.warning(f"Cannot move task {task_id} to unknown member {new_assigned_to}")
            return False

        self._move_task(task, new_assigned_to, new_priority, self._clock())
        logger.info(f"Moved task {task_id} to {new_assigned_to} at priority {task.priority}")
        return True

    def _move_task(self, task: Task, new_assigned_to: str, index: int, now: datetime) -> None:
        source = task.assigned_to
        destination = [t for t in self.document.tasks_for(new_assigned_to) if t is not task]
        ordered = splice(destination, task, index)

        if source != new_assigned_to:
            task.assigned_to = new_assigned_to
            task.updated_at = now
            renumber([t for t in self.document.tasks_for(source) if t is not task], "priority", now)
        renumber(ordered, "priority", now)

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Lifecycle
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def complete_task(self, task_id: str) -> Optional[Task]:
        """Move an active task to the history and close the gap it leaves."""
        task = self.document.find_task(task_id)
        if task is None:
            logger.warning(f"Cannot complete unknown task {task_id}")
            return None

        now = self._clock()
        if not task.transition_to(TaskStatus.COMPLETED, now):
            return None
        doc = self.document
        doc.tasks = [t for t in doc.tasks if t.id != task_id]
        doc.completed_tasks.append(task)
        renumber(doc.tasks_for(task.assigned_to), "priority", now)

        logger.info(f"Completed task {task_id} ({task.assigned_to})")
        return task

    def restore_task(self, task_id: str) -> Optional[Task]:
        """Put a completed task back at the end of its assignee's active list."""
        task = self.document.find_completed_task(task_id)
        if task is None:
            logger.warning(f"Cannot restore unknown completed task {task_id}")
            return None

        siblings = self.document.tasks_for(task.assigned_to)
        new_priority = max((t.priority for t in siblings), default=-1) + 1
        if not task.transition_to(TaskStatus.ACTIVE, self._clock()):
            return None
        task.priority = new_priority
        doc = self.document
        doc.completed_tasks = [t for t in doc.completed_tasks if t.id != task_id]
        doc.tasks.append(task)

        logger.info(f"Restored task {task_id} to {task.assigned_to} at priority {new_priority}")
        return task

    def delete_completed_task(self, task_id: str) -> bool:
        if self.document.find_completed_task(task_id) is None:
            logger.warning(f"Cannot delete unknown completed task {task_id}")
            return False
        self.document.completed_tasks = [t for t in self.document.completed_tasks if t.id != task_id]
        logger.info(f"Deleted completed task {task_id}")
        return True

    def clear_completed_tasks_for_member(self, member_id: str) -> int:
        """Delete a member's whole history. Returns the number of tasks removed."""
        doc = self.document
        kept = [t for t in doc.completed_tasks if t.assigned_to != member_id]
        removed = len(doc.completed_tasks) - len(kept)
        doc.completed_tasks = kept
        logger.info(f"Cleared {removed} completed task(s) for {member_id}")
        return removed

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Views
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def tasks_for_member(self, member_id: str) -> Optional[List[Task]]:
        if self.document.find_member(member_id) is None:
            return None
        return self.document.tasks_for(member_id)

    def completed_tasks_for_member(self, member_id: str) -> Optional[List[Task]]:
        if self.document.find_member(member_id) is None:
            return None
        return self.document.completed_tasks_for(member_id)

    def compute_workload(self, due_soon_days: int = 3) -> List[WorkloadEntry]:
        return compute_workload(self.document, now=self._clock(), due_soon_days=due_soon_days)
