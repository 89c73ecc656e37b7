#!/usr/bin/env python3
"""
Quick verification that the team board works end-to-end.
"""
import sys
import tempfile
from pathlib import Path

from teamboard.storage import JsonFileStorage
from teamboard.store import TaskBoardStore


def main(data_file=None) -> int:
    data_file = data_file or str(Path(tempfile.gettempdir()) / "teamboard_verify.json")
    Path(data_file).unlink(missing_ok=True)

    print("=" * 60)
    print("Team Board Verification")
    print("=" * 60)

    print("\n[1/6] Creating demo board...")
    storage = JsonFileStorage(data_file, seed_demo_data=True)
    store = TaskBoardStore(storage.load())
    print(f"✅ {len(store.document.team_members)} members, {len(store.document.tasks)} tasks")

    print("\n[2/6] Adding a task for John...")
    task = store.add_task(title="Review pull requests", score=2, assigned_to="john-doe")
    storage.save(store.document)
    print(f"✅ {task.id} at priority {task.priority}")

    print("\n[3/6] Moving it to the top of John's list...")
    store = TaskBoardStore(storage.load())
    store.reorder_task(task.id, "john-doe", 0)
    storage.save(store.document)
    order = [t.title for t in store.document.tasks_for("john-doe")]
    print(f"   → {order}")

    print("\n[4/6] Completing and restoring it...")
    store = TaskBoardStore(storage.load())
    store.complete_task(task.id)
    print(f"   → completed, {len(store.document.completed_tasks)} in history")
    restored = store.restore_task(task.id)
    storage.save(store.document)
    print(f"   → restored at priority {restored.priority}")

    print("\n[5/6] Workload...")
    for entry in store.compute_workload():
        print(f"   {entry.member_name:<8} {entry.active_count} task(s) • {entry.active_score} points")

    print("\n[6/6] Checking invariants...")
    issues = TaskBoardStore(storage.load()).document.integrity_issues(strict=True)
    if issues:
        for issue in issues:
            print(f"❌ {issue}")
        return 1

    print("\n" + "=" * 60)
    print("✅ ALL CHECKS PASSED")
    print("=" * 60)
    print(f"Test data file: {data_file}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1] if len(sys.argv) > 1 else None))
