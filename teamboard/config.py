# Team board — configuration
# Override paths and endpoints via teamboard.yaml, env vars, or CLI args.

import os
import yaml
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

CONFIG_PATH = Path(__file__).parent / "teamboard.yaml"


@dataclass
class Config:
    """Runtime configuration for the board server and storage adapters."""

    # Storage
    data_file: str = "~/.local/share/teamboard/data.json"
    seed_demo_data: bool = True    # Create the demo board when data_file is missing

    # Server
    host: str = "127.0.0.1"
    port: int = 3001
    log_level: str = "INFO"

    # Display
    due_soon_days: int = 3

    # Remote storage for library callers (open_remote_storage); the server
    # itself always uses data_file
    remote_url: Optional[str] = None
    remote_timeout: float = 5.0

    def resolve_paths(self):
        """Apply TEAMBOARD_DATA and expand ~."""
        env_data = os.environ.get("TEAMBOARD_DATA")
        if env_data:
            self.data_file = env_data
        self.data_file = str(Path(self.data_file).expanduser())

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        """Load config from YAML file, falling back to defaults."""
        if path:
            cfg_path = Path(path)
        elif os.environ.get("TEAMBOARD_CONFIG"):
            cfg_path = Path(os.environ["TEAMBOARD_CONFIG"])
        else:
            cfg_path = CONFIG_PATH
        if cfg_path.exists():
            try:
                with open(cfg_path, "r") as f:
                    data = yaml.safe_load(f) or {}
                cfg = cls(**{k: v for k, v in data.items() if hasattr(cls, k)})
            except (OSError, yaml.YAMLError, TypeError, AttributeError):
                cfg = cls()
        else:
            cfg = cls()
        cfg.resolve_paths()
        return cfg
