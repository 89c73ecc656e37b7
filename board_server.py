#!/usr/bin/env python3
"""
Team Board Server
-----------------
JSON API over the team board document. Every mutating request loads the
document, applies one store operation and writes the document back.

Usage:
    python board_server.py --port 3001 --data ./data/data.json

API:
    GET    /api/health                               → { status, dataFile }
    GET    /api/data                                 → whole document
    PUT    /api/data                                 → replace whole document
    POST   /api/tasks                                → create task (201)
    PUT    /api/tasks/<id>                           → update task
    DELETE /api/tasks/<id>                           → delete task (204)
    PUT    /api/tasks/reorder                        → { taskId, assignedTo, newPriority }
    POST   /api/tasks/<id>/complete                  → complete task
    POST   /api/completed-tasks/<id>/restore         → restore task
    DELETE /api/completed-tasks/<id>                 → delete completed task (204)
    GET    /api/team-members/<id>/tasks              → active tasks by priority
    GET    /api/team-members/<id>/completed-tasks    → history, newest first
    DELETE /api/team-members/<id>/completed-tasks    → { deleted }
    POST   /api/team-members                         → add member (201)
    PUT    /api/team-members/<id>                    → rename member
    DELETE /api/team-members/<id>                    → delete member + tasks (204)
    PUT    /api/team-members/reorder                 → { memberId, newOrder }
    GET    /api/workload                             → per-member workload + totals
"""

import logging
import os
import sys

from flask import Flask, jsonify, request

from teamboard.config import Config
from teamboard.errors import NotFoundError, PersistenceError, ValidationError
from teamboard.schema import AppDocument
from teamboard.storage import JsonFileStorage, open_storage
from teamboard.store import TaskBoardStore
from teamboard.workload import team_totals

logger = logging.getLogger("board_server")

app = Flask(__name__)


# ── Config ───────────────────────────────────────────────────────────────────

def get_config() -> Config:
    cfg = app.config.get("BOARD_CONFIG")
    if cfg is None:
        cfg = Config.load()
        app.config["BOARD_CONFIG"] = cfg
    return cfg


def get_storage() -> JsonFileStorage:
    return open_storage(get_config())


def load_store() -> TaskBoardStore:
    return TaskBoardStore(get_storage().load())


def save_store(store: TaskBoardStore) -> AppDocument:
    return get_storage().save(store.document)


def request_data() -> dict:
    data = request.get_json(force=True, silent=True)
    return data if isinstance(data, dict) else {}


def not_found(message: str):
    return jsonify({"error": message}), 404


# ── Errors ───────────────────────────────────────────────────────────────────

@app.errorhandler(ValidationError)
def handle_validation_error(e):
    return jsonify({"error": str(e)}), 400


@app.errorhandler(NotFoundError)
def handle_not_found(e):
    return jsonify({"error": str(e)}), 404


@app.errorhandler(PersistenceError)
def handle_persistence_error(e):
    logger.error(f"Persistence failure: {e}")
    return jsonify({"error": str(e)}), 500


# ── Document ─────────────────────────────────────────────────────────────────

@app.route("/api/health")
def health():
    return jsonify({"status": "ok", "dataFile": get_config().data_file})


@app.route("/api/data", methods=["GET"])
def api_get_data():
    return jsonify(get_storage().load().to_dict())


@app.route("/api/data", methods=["PUT"])
def api_put_data():
    """Replace the whole document. Structurally inconsistent documents are rejected."""
    document = AppDocument.from_dict(request.get_json(force=True, silent=True))
    issues = document.integrity_issues()
    if issues:
        return jsonify({"error": "Invalid document", "issues": issues}), 400
    saved = get_storage().save(document)
    return jsonify(saved.to_dict())


# ── Tasks ────────────────────────────────────────────────────────────────────

@app.route("/api/tasks", methods=["POST"])
def api_create_task():
    data = request_data()
    store = load_store()
    task = store.add_task(
        title=data.get("title"),
        score=data.get("score"),
        assigned_to=data.get("assignedTo"),
        deadline=data.get("deadline"),
        priority=data.get("priority"),
    )
    save_store(store)
    return jsonify(task.to_dict()), 201


@app.route("/api/tasks/reorder", methods=["PUT"])
def api_reorder_task():
    data = request_data()
    task_id = data.get("taskId")
    if not task_id or not data.get("assignedTo") or data.get("newPriority") is None:
        raise ValidationError("taskId, assignedTo and newPriority are required")

    store = load_store()
    if not store.reorder_task(task_id, data["assignedTo"], data["newPriority"]):
        return not_found("Task not found")
    save_store(store)
    return jsonify({"message": "Tasks reordered successfully",
                    "tasks": [t.to_dict() for t in store.document.tasks_for(data["assignedTo"])]})


@app.route("/api/tasks/<task_id>", methods=["PUT"])
def api_update_task(task_id):
    store = load_store()
    task = store.update_task(task_id, request_data())
    if task is None:
        return not_found("Task not found")
    save_store(store)
    return jsonify(task.to_dict())


@app.route("/api/tasks/<task_id>", methods=["DELETE"])
def api_delete_task(task_id):
    store = load_store()
    if not store.delete_task(task_id):
        return not_found("Task not found")
    save_store(store)
    return "", 204


@app.route("/api/tasks/<task_id>/complete", methods=["POST"])
def api_complete_task(task_id):
    store = load_store()
    task = store.complete_task(task_id)
    if task is None:
        return not_found("Task not found")
    save_store(store)
    return jsonify(task.to_dict())


@app.route("/api/completed-tasks/<task_id>/restore", methods=["POST"])
def api_restore_task(task_id):
    store = load_store()
    task = store.restore_task(task_id)
    if task is None:
        return not_found("Completed task not found")
    save_store(store)
    return jsonify(task.to_dict())


@app.route("/api/completed-tasks/<task_id>", methods=["DELETE"])
def api_delete_completed_task(task_id):
    store = load_store()
    if not store.delete_completed_task(task_id):
        return not_found("Completed task not found")
    save_store(store)
    return "", 204


# ── Team members ─────────────────────────────────────────────────────────────

@app.route("/api/team-members", methods=["POST"])
def api_add_member():
    data = request_data()
    store = load_store()
    member = store.add_team_member(data.get("name"), order=data.get("order"))
    save_store(store)
    return jsonify(member.to_dict()), 201


@app.route("/api/team-members/reorder", methods=["PUT"])
def api_reorder_member():
    data = request_data()
    if not data.get("memberId") or data.get("newOrder") is None:
        raise ValidationError("memberId and newOrder are required")

    store = load_store()
    if not store.reorder_team_member(data["memberId"], data["newOrder"]):
        return not_found("Team member not found")
    save_store(store)
    return jsonify({"message": "Team member reordered successfully",
                    "teamMembers": [m.to_dict() for m in store.document.members_by_order()]})


@app.route("/api/team-members/<member_id>", methods=["PUT"])
def api_update_member(member_id):
    store = load_store()
    member = store.update_team_member(member_id, request_data().get("name"))
    if member is None:
        return not_found("Team member not found")
    save_store(store)
    return jsonify(member.to_dict())


@app.route("/api/team-members/<member_id>", methods=["DELETE"])
def api_delete_member(member_id):
    store = load_store()
    if not store.delete_team_member(member_id):
        return not_found("Team member not found")
    save_store(store)
    return "", 204


@app.route("/api/team-members/<member_id>/tasks", methods=["GET"])
def api_member_tasks(member_id):
    tasks = load_store().tasks_for_member(member_id)
    if tasks is None:
        return not_found("Team member not found")
    return jsonify({"tasks": [t.to_dict() for t in tasks], "count": len(tasks)})


@app.route("/api/team-members/<member_id>/completed-tasks", methods=["GET"])
def api_member_completed_tasks(member_id):
    tasks = load_store().completed_tasks_for_member(member_id)
    if tasks is None:
        return not_found("Team member not found")
    return jsonify({
        "tasks": [dict(t.to_dict(), wasOverdue=t.was_overdue()) for t in tasks],
        "count": len(tasks),
        "totalScore": sum(t.score for t in tasks),
    })


@app.route("/api/team-members/<member_id>/completed-tasks", methods=["DELETE"])
def api_clear_completed_tasks(member_id):
    store = load_store()
    if store.document.find_member(member_id) is None:
        return not_found("Team member not found")
    deleted = store.clear_completed_tasks_for_member(member_id)
    save_store(store)
    return jsonify({"deleted": deleted})


# ── Workload ─────────────────────────────────────────────────────────────────

@app.route("/api/workload")
def api_workload():
    entries = load_store().compute_workload(due_soon_days=get_config().due_soon_days)
    return jsonify({
        "members": [e.to_dict() for e in entries],
        "totals": team_totals(entries),
    })


# ── Main ─────────────────────────────────────────────────────────────────────

def main(argv=None):
    import argparse

    parser = argparse.ArgumentParser(description="Team Board Server")
    parser.add_argument("--config", help="Path to teamboard.yaml")
    parser.add_argument("--host", help="Bind address (use 0.0.0.0 to expose on network)")
    parser.add_argument("--port", type=int)
    parser.add_argument("--data", help="Path to data.json (overrides TEAMBOARD_DATA env var)")
    args = parser.parse_args(argv)

    if args.data:
        os.environ["TEAMBOARD_DATA"] = args.data
    cfg = Config.load(args.config)
    if args.host:
        cfg.host = args.host
    if args.port:
        cfg.port = args.port
    app.config["BOARD_CONFIG"] = cfg

    logging.basicConfig(
        level=getattr(logging, str(cfg.log_level).upper(), logging.INFO),
        format="%(asctime)s [teamboard] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    open_storage(cfg).ensure_exists()
    logger.info(f"Team board API running on http://{cfg.host}:{cfg.port}")
    logger.info(f"Data file: {cfg.data_file}")
    app.run(host=cfg.host, port=cfg.port, debug=False, threaded=False)


if __name__ == "__main__":
    main()
