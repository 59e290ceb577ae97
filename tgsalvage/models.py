"""Data models - pure data, no logic."""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from .config import MediaKind


@dataclass(frozen=True)
class ResourceDescriptor:
    """Something the Telegram client can download, plus a name for it."""
    location: Any
    filename: str
    kind: MediaKind
    media_id: int
    dc_id: int | None = None
    size: int = 0


@dataclass(frozen=True)
class Destination:
    """Where a message's media goes on disk."""
    path: Path
    exists: bool
    subdir: str
    leaf: str


class SaveStatus(Enum):
    SAVED = "saved"
    PLANNED = "planned"
    EXISTS = "exists"
    UNSUPPORTED = "unsupported"
    FAILED = "failed"


@dataclass
class SaveOutcome:
    """Result for one deleted message that carried media."""
    message_id: int
    event_id: int
    status: SaveStatus
    path: Path | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is not SaveStatus.FAILED
