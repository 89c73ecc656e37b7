"""
Tests for persistence: JSON file storage, remote storage, configuration.
"""
import json
from unittest.mock import MagicMock, patch

import pytest
import requests
import yaml

from conftest import T0
from teamboard.config import Config
from teamboard.errors import PersistenceError
from teamboard.remote import RemoteStorage, open_remote_storage
from teamboard.schema import AppDocument
from teamboard.storage import JsonFileStorage, default_document, open_storage
from teamboard.store import TaskBoardStore
import verify_board


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# JSON file storage
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_missing_file_is_seeded_with_demo_board(tmp_path):
    path = tmp_path / "data" / "data.json"
    doc = JsonFileStorage(str(path)).load()

    assert path.exists()
    assert [m.name for m in doc.members_by_order()] == ["John", "Doe", "Felix"]
    assert [t.title for t in doc.tasks_for("john-doe")] == ["Setup project repository", "Write unit tests"]
    assert doc.find_task("task-2").deadline is not None
    assert doc.integrity_issues(strict=True) == []


def test_missing_file_without_seed_is_empty(tmp_path):
    doc = JsonFileStorage(str(tmp_path / "data.json"), seed_demo_data=False).load()
    assert doc.team_members == [] and doc.tasks == [] and doc.completed_tasks == []


def test_save_stamps_last_updated_and_round_trips(tmp_path, board):
    storage = JsonFileStorage(str(tmp_path / "data.json"))
    saved = storage.save(board)
    assert saved.last_updated > T0

    raw = json.loads((tmp_path / "data.json").read_text())
    assert set(raw) == {"teamMembers", "tasks", "completedTasks", "lastUpdated"}
    assert storage.load().to_dict() == saved.to_dict()


def test_last_write_wins(tmp_path):
    storage = JsonFileStorage(str(tmp_path / "data.json"))
    first = TaskBoardStore(storage.load())
    second = TaskBoardStore(storage.load())

    first.add_team_member("Grace")
    storage.save(first.document)
    second.add_team_member("Linus")
    storage.save(second.document)

    names = [m.name for m in storage.load().team_members]
    assert "Linus" in names and "Grace" not in names


def test_corrupt_file_raises_persistence_error(tmp_path):
    path = tmp_path / "data.json"
    path.write_text("{not json")
    with pytest.raises(PersistenceError):
        JsonFileStorage(str(path)).load()


def test_invalid_document_raises_persistence_error(tmp_path):
    path = tmp_path / "data.json"
    path.write_text(json.dumps({"teamMembers": "nope"}))
    with pytest.raises(PersistenceError):
        JsonFileStorage(str(path)).load()


def test_non_object_entries_raise_persistence_error(tmp_path):
    path = tmp_path / "data.json"
    path.write_text(json.dumps({"teamMembers": ["x"], "tasks": [42]}))
    with pytest.raises(PersistenceError):
        JsonFileStorage(str(path)).load()


def test_unwritable_path_raises_persistence_error(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("")
    storage = JsonFileStorage(str(blocker / "data.json"))
    with pytest.raises(PersistenceError):
        storage.save(AppDocument())


def test_open_storage_from_config(tmp_path):
    cfg = Config(data_file=str(tmp_path / "d.json"), seed_demo_data=False)
    storage = open_storage(cfg)
    assert storage.path == tmp_path / "d.json"
    assert storage.seed_demo_data is False


def test_verify_script_passes(tmp_path, capsys):
    assert verify_board.main(str(tmp_path / "verify.json")) == 0
    assert "ALL CHECKS PASSED" in capsys.readouterr().out


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Remote storage
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def _response(payload, status=200):
    r = MagicMock()
    r.json.return_value = payload
    r.status_code = status
    if status >= 400:
        r.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return r


def test_remote_load(board):
    with patch("teamboard.remote.requests.get", return_value=_response(board.to_dict())) as get:
        doc = RemoteStorage("http://board:3001/", timeout=2).load()
    get.assert_called_once_with("http://board:3001/api/data", timeout=2)
    assert doc.to_dict() == board.to_dict()


def test_remote_save_puts_whole_document(board):
    storage = RemoteStorage("http://board:3001")
    with patch("teamboard.remote.requests.put", return_value=_response(board.to_dict())) as put:
        saved = storage.save(board)
    assert put.call_args.kwargs["json"] == board.to_dict()
    assert storage.cache is saved


def test_remote_load_failure_raises():
    with patch("teamboard.remote.requests.get", side_effect=requests.ConnectionError("refused")):
        with pytest.raises(PersistenceError):
            RemoteStorage("http://board:3001").load()


def test_remote_load_falls_back_to_demo_board():
    storage = RemoteStorage("http://board:3001", fallback_to_default=True)
    with patch("teamboard.remote.requests.get", side_effect=requests.Timeout("slow")):
        doc = storage.load()
    assert [m.id for m in doc.team_members] == [m.id for m in default_document().team_members]


def test_remote_save_http_error_raises(board):
    with patch("teamboard.remote.requests.put", return_value=_response({"error": "x"}, status=500)):
        with pytest.raises(PersistenceError):
            RemoteStorage("http://board:3001").save(board)


def test_open_remote_storage_requires_url():
    with pytest.raises(PersistenceError):
        open_remote_storage(Config())
    storage = open_remote_storage(Config(remote_url="http://board:3001", remote_timeout=1.5))
    assert storage.timeout == 1.5


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Config
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_config_defaults_when_file_missing(tmp_path, monkeypatch):
    monkeypatch.delenv("TEAMBOARD_DATA", raising=False)
    cfg = Config.load(str(tmp_path / "missing.yaml"))
    assert cfg.port == 3001
    assert cfg.seed_demo_data is True
    assert cfg.data_file.endswith("teamboard/data.json")
    assert "~" not in cfg.data_file


def test_config_from_yaml_ignores_unknown_keys(tmp_path, monkeypatch):
    monkeypatch.delenv("TEAMBOARD_DATA", raising=False)
    path = tmp_path / "teamboard.yaml"
    path.write_text(yaml.safe_dump({
        "data_file": str(tmp_path / "board.json"),
        "port": 8080,
        "due_soon_days": 5,
        "colour_scheme": "dark",
    }))
    cfg = Config.load(str(path))
    assert (cfg.data_file, cfg.port, cfg.due_soon_days) == (str(tmp_path / "board.json"), 8080, 5)


def test_config_env_overrides(tmp_path, monkeypatch):
    path = tmp_path / "teamboard.yaml"
    path.write_text(yaml.safe_dump({"port": 9000}))
    monkeypatch.setenv("TEAMBOARD_CONFIG", str(path))
    monkeypatch.setenv("TEAMBOARD_DATA", str(tmp_path / "env.json"))
    cfg = Config.load()
    assert cfg.port == 9000
    assert cfg.data_file == str(tmp_path / "env.json")


def test_config_bad_yaml_falls_back(tmp_path, monkeypatch):
    monkeypatch.delenv("TEAMBOARD_DATA", raising=False)
    path = tmp_path / "teamboard.yaml"
    path.write_text("port: [unclosed")
    assert Config.load(str(path)).port == 3001
