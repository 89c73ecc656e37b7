"""Tests for workload aggregation."""
from datetime import timedelta

from conftest import T0, make_completed, make_task
from teamboard.schema import TeamMember
from teamboard.store import TaskBoardStore
from teamboard.workload import compute_workload, team_totals


def test_workload_sums_active_and_completed(board):
    board.completed_tasks = [make_completed("Z", "m1", score=4), make_completed("Y", "m2", score=1)]
    entries = compute_workload(board, now=T0)

    ada, linus = entries
    assert (ada.member_id, ada.active_count, ada.active_score) == ("m1", 3, 16)
    assert (ada.completed_count, ada.completed_score, ada.total_score) == (1, 4, 20)
    assert (linus.active_count, linus.active_score, linus.completed_score) == (2, 15, 1)


def test_workload_follows_member_order(board):
    board.team_members[0].order, board.team_members[1].order = 1, 0
    assert [e.member_id for e in compute_workload(board, now=T0)] == ["m2", "m1"]


def test_workload_includes_idle_members(board):
    board.team_members.append(TeamMember(id="m3", name="Grace", order=2))
    idle = compute_workload(board, now=T0)[-1]
    assert idle.to_dict() == {
        "memberId": "m3",
        "memberName": "Grace",
        "activeCount": 0,
        "activeScore": 0,
        "completedCount": 0,
        "completedScore": 0,
        "overdueCount": 0,
        "dueSoonCount": 0,
        "totalScore": 0,
    }


def test_workload_deadline_counts(board):
    board.tasks.append(make_task("late", "m1", 3, deadline=T0 - timedelta(days=1)))
    board.tasks.append(make_task("soon", "m1", 4, deadline=T0 + timedelta(days=2)))
    board.tasks.append(make_task("later", "m1", 5, deadline=T0 + timedelta(days=10)))

    ada = compute_workload(board, now=T0, due_soon_days=3)[0]
    assert (ada.overdue_count, ada.due_soon_count) == (1, 1)

    ada = compute_workload(board, now=T0, due_soon_days=14)[0]
    assert (ada.overdue_count, ada.due_soon_count) == (1, 2)


def test_workload_is_read_only(board):
    before = board.to_dict()
    compute_workload(board, now=T0)
    assert board.to_dict() == before


def test_store_workload_and_totals(board, clock):
    store = TaskBoardStore(board, clock=clock)
    store.complete_task("E")
    entries = store.compute_workload()
    totals = team_totals(entries)
    assert totals["activeCount"] == 4
    assert totals["activeScore"] == 18
    assert totals["completedCount"] == 1
    assert totals["completedScore"] == 13
