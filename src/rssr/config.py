"""Environment-driven settings and the feed configuration file."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = "~/.config/rssr"
CONFIG_FILE_NAME = "urls.yaml"
DEFAULT_DB_PATH = "rssr.db"
CHECKPOINT_DB_PATH = "rssr_checkpoints.db"
DEFAULT_API_KEY = "localhost"
DEFAULT_POLL_INTERVAL = 900  # 15 minutes
DEFAULT_MODEL = "claude-sonnet-4-5-20250929"

EXAMPLE_CONFIG_FILE = """\
# This file is written in YAML format.
# Each feed must be organized under a category.
# Feeds under an empty category are refreshed but not listed by category.
# Use two spaces for indentation (no tabs).
#
# Example (uncomment lines below to use):
#python:
#  - https://blog.python.org/feeds/posts/default
#  - https://realpython.com/atom.xml
"""


@dataclass
class Settings:
    """Runtime settings for rssr."""

    config_path: Path
    db_path: str = DEFAULT_DB_PATH
    checkpoint_path: str = CHECKPOINT_DB_PATH
    sync_url: str = ""
    api_key: str = DEFAULT_API_KEY
    poll_interval: int = DEFAULT_POLL_INTERVAL
    model: str = DEFAULT_MODEL

    @classmethod
    def from_env(cls) -> "Settings":
        config_dir = Path(os.environ.get("RSSR_CONFIG_DIR", DEFAULT_CONFIG_DIR)).expanduser()
        return cls(
            config_path=config_dir / CONFIG_FILE_NAME,
            db_path=os.environ.get("RSSR_DB_PATH", DEFAULT_DB_PATH),
            checkpoint_path=os.environ.get("RSSR_CHECKPOINT_PATH", CHECKPOINT_DB_PATH),
            sync_url=os.environ.get("RSSR_SYNC_URL", ""),
            api_key=os.environ.get("RSSR_API_KEY", DEFAULT_API_KEY),
            poll_interval=int(os.environ.get("RSSR_POLL_INTERVAL", DEFAULT_POLL_INTERVAL)),
            model=os.environ.get("RSSR_MODEL", DEFAULT_MODEL),
        )


def ensure_config_file(path: Path) -> bool:
    """Write the commented example configuration if ``path`` does not exist.

    Returns True when a file was created.
    """
    if path.exists():
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(EXAMPLE_CONFIG_FILE, encoding="utf-8")
    logger.info("Created example feed configuration at %s", path)
    return True


def read_config(path: Path) -> str:
    """Read the feed configuration; a missing file reads as empty."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""
