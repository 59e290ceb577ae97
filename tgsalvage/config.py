"""Configuration - single source of truth."""
import logging
import os
from pathlib import Path
from dataclasses import dataclass
from enum import Enum

from dotenv import find_dotenv, load_dotenv

from .errors import ConfigError

log = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
DEFAULT_BACKUP_DIR = "media_backup"


class MediaKind(Enum):
    DOCUMENT = "document"
    PHOTO = "photo"


@dataclass
class Config:
    """App configuration."""
    api_id: int = 0
    api_hash: str = ""
    channel: int | str | None = None
    backup_dir: str = DEFAULT_BACKUP_DIR
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, dotenv_path: str | Path | None = None) -> "Config":
        """Read config from the environment, after loading ``.env`` if present."""
        if not load_dotenv(dotenv_path or find_dotenv(usecwd=True)):
            log.debug("No .env file loaded, relying on process environment")
        return cls(
            api_id=parse_int(os.getenv("API_ID", "0") or "0", "API_ID"),
            api_hash=os.getenv("API_HASH", ""),
            channel=parse_channel(os.getenv("CHANNEL_ID", "")),
            backup_dir=os.getenv("BACKUP_DIR", "") or DEFAULT_BACKUP_DIR,
            log_level=os.getenv("LOG_LEVEL", "") or "INFO",
        )

    def require_credentials(self) -> None:
        if not self.api_id:
            raise ConfigError("API_ID is not set. Put it in .env or run: tgsalvage login")
        if not self.api_hash:
            raise ConfigError("API_HASH is not set. Put it in .env or run: tgsalvage login")


@dataclass
class ScanOptions:
    """Scan options."""
    base_dir: Path = Path(DEFAULT_BACKUP_DIR)
    page_size: int = MAX_PAGE_SIZE
    limit: int | None = None
    dry_run: bool = False

    def __post_init__(self):
        self.base_dir = Path(self.base_dir)
        self.page_size = max(1, min(self.page_size, MAX_PAGE_SIZE))


def parse_int(value: str, name: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"Invalid {name} {value!r} (must be an integer)") from None


def parse_channel(value: str) -> int | str | None:
    """Numeric ids become ints, anything else is kept as a username."""
    value = value.strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return value


def parse_log_level(name: str) -> int:
    """Map a level name to a ``logging`` level, falling back to INFO."""
    level = logging.getLevelName(name.strip().upper())
    if isinstance(level, int):
        return level
    log.warning(f"Invalid LOG_LEVEL {name!r}, using INFO")
    return logging.INFO


# Paths
def config_dir() -> Path:
    path = Path.home() / ".config" / "tgsalvage"
    path.mkdir(parents=True, exist_ok=True)
    return path

def session_path() -> Path:
    return config_dir() / "session"

def credentials_path() -> Path:
    return config_dir() / "credentials.json"
