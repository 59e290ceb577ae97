"""Error taxonomy for the deletion-log backup."""
from __future__ import annotations

from pathlib import Path


class SalvageError(Exception):
    """Base error. Carries the message id when one is known."""

    def __init__(self, message: str, *, message_id: int | None = None) -> None:
        super().__init__(message)
        self.message_id = message_id


class UnsupportedMedia(SalvageError):
    """Media kind we do not download. A skip signal, not a failure."""


class InvalidMedia(SalvageError):
    """Empty or malformed document/photo payload."""


class NoResolvableSize(InvalidMedia):
    """Photo carries no size that can be fetched from the server."""


class TransferFailure(SalvageError):
    """The file download failed."""

    def __init__(self, message: str, *, path: Path | None = None, message_id: int | None = None) -> None:
        super().__init__(message, message_id=message_id)
        self.path = path


class DirectoryCreationFailure(SalvageError):
    """A backup directory could not be created."""

    def __init__(self, path: Path, cause: OSError, *, fatal: bool = False) -> None:
        super().__init__(f"Cannot create directory {path}: {cause}")
        self.path = path
        self.fatal = fatal


class ChannelAccessError(SalvageError):
    """The configured channel cannot be resolved or read."""


class ConfigError(SalvageError):
    """Missing or invalid configuration."""
