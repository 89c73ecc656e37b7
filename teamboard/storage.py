"""
Team board document storage (JSON file).

The board is persisted as one JSON document, rewritten in full on every
save. There is no locking: concurrent writers get last-write-wins.
"""
import json
import logging
from datetime import timedelta
from pathlib import Path

from .errors import PersistenceError, ValidationError
from .schema import AppDocument, Task, TeamMember, utc_now

logger = logging.getLogger(__name__)


def default_document() -> AppDocument:
    """The demo board created on first start: three members, four tasks."""
    now = utc_now()
    members = [
        TeamMember(id="john-doe", name="John", order=0, created_at=now, updated_at=now),
        TeamMember(id="jane-doe", name="Doe", order=1, created_at=now, updated_at=now),
        TeamMember(id="felix-smith", name="Felix", order=2, created_at=now, updated_at=now),
    ]
    tasks = [
        Task(id="task-1", title="Setup project repository", score=5,
             assigned_to="john-doe", priority=0, created_at=now, updated_at=now),
        Task(id="task-2", title="Design user interface mockups", score=8,
             assigned_to="jane-doe", priority=0, deadline=now + timedelta(days=7),
             created_at=now, updated_at=now),
        Task(id="task-3", title="Implement authentication system", score=13,
             assigned_to="felix-smith", priority=0, created_at=now, updated_at=now),
        Task(id="task-4", title="Write unit tests", score=3,
             assigned_to="john-doe", priority=1, created_at=now, updated_at=now),
    ]
    return AppDocument(team_members=members, tasks=tasks, last_updated=now)


class JsonFileStorage:
    """Reads and writes the board document at a single path."""

    def __init__(self, path: str, seed_demo_data: bool = True):
        self.path = Path(path)
        self.seed_demo_data = seed_demo_data

    def ensure_exists(self) -> None:
        """Create the data file (demo or empty board) if it is missing."""
        if self.path.exists():
            return
        document = default_document() if self.seed_demo_data else AppDocument()
        logger.info(f"Creating board document at {self.path}")
        self.save(document)

    def load(self) -> AppDocument:
        """
        Read the document, creating it first if needed.

        Raises:
            PersistenceError: file unreadable or not a valid board document.
        """
        self.ensure_exists()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            return AppDocument.from_dict(raw)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.error(f"Error reading board document {self.path}: {e}")
            raise PersistenceError(f"Failed to read {self.path}: {e}") from e

    def save(self, document: AppDocument) -> AppDocument:
        """Stamp lastUpdated and overwrite the file. Returns the saved document."""
        document.last_updated = utc_now()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(document.to_dict(), indent=2) + "\n", encoding="utf-8"
            )
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Error writing board document {self.path}: {e}")
            raise PersistenceError(f"Failed to write {self.path}: {e}") from e
        return document


def open_storage(config) -> JsonFileStorage:
    """Build file storage from a Config."""
    return JsonFileStorage(config.data_file, seed_demo_data=config.seed_demo_data)
