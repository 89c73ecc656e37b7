"""Shared test fixtures for team board tests."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Ensure the repo root (teamboard/, board_server.py) is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from teamboard.schema import AppDocument, Task, TaskStatus, TeamMember

T0 = datetime(2025, 6, 2, 9, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Deterministic clock; each call returns the current time, advance() moves it."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def make_task(task_id, assigned_to, priority, title=None, score=5, **kwargs) -> Task:
    return Task(
        id=task_id,
        title=title or task_id,
        score=score,
        assigned_to=assigned_to,
        priority=priority,
        created_at=T0,
        updated_at=T0,
        **kwargs,
    )


def make_completed(task_id, assigned_to, priority=0, score=5, completed_at=T0, **kwargs) -> Task:
    return make_task(
        task_id, assigned_to, priority, score=score,
        status=TaskStatus.COMPLETED, completed_at=completed_at, **kwargs,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def board():
    """Two members; m1 has A(0), B(1), C(2); m2 has D(0), E(1)."""
    return AppDocument(
        team_members=[
            TeamMember(id="m1", name="Ada", order=0, created_at=T0, updated_at=T0),
            TeamMember(id="m2", name="Linus", order=1, created_at=T0, updated_at=T0),
        ],
        tasks=[
            make_task("A", "m1", 0, score=3),
            make_task("B", "m1", 1, score=5),
            make_task("C", "m1", 2, score=8),
            make_task("D", "m2", 0, score=2),
            make_task("E", "m2", 1, score=13),
        ],
        last_updated=T0,
    )
