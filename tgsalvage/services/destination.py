"""Destination paths and skip-if-already-saved checks."""
import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path

from telethon.tl.types import PeerChannel, PeerChat, PeerUser

from ..errors import DirectoryCreationFailure
from ..models import Destination
from .sanitize import sanitize

log = logging.getLogger(__name__)

UNKNOWN_SENDER = "unknown_sender"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
INDEX_NAME = ".tgsalvage-index.json"


class OwnerIndex:
    """Which message each saved file belongs to, kept as JSON in the base dir."""

    def __init__(self, base_dir: Path, logger: logging.Logger | None = None):
        self._path = base_dir / INDEX_NAME
        self._log = logger or log
        self._owners: dict[str, int] | None = None

    def owner(self, key: str) -> int | None:
        return self._load().get(key)

    def record(self, key: str, message_id: int) -> None:
        owners = self._load()
        if owners.get(key) == message_id:
            return
        owners[key] = message_id
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps(owners, indent=0, sort_keys=True))
        tmp.replace(self._path)

    def _load(self) -> dict[str, int]:
        if self._owners is None:
            self._owners = {}
            if self._path.is_file():
                try:
                    data = json.loads(self._path.read_text())
                    self._owners = {str(k): int(v) for k, v in data.items()}
                except (OSError, ValueError, AttributeError) as e:
                    self._log.warning(f"Ignoring unreadable index {self._path}: {e}")
        return self._owners


class DestinationResolver:
    """Map a deleted message to ``<base>/<sender>/<YYYYMMDD_HHMMSS>_<name>``.

    The path depends on the sender (or peer), the message date and the file
    name. Every saved file is recorded in an index with the id of the
    message it came from. When that path is owned by another message, in
    this run or an earlier one, the leaf becomes
    ``<YYYYMMDD_HHMMSS>_<messageID>_<name>``. That way a message is only
    reported as already saved when the file on disk is its own.

    With ``create_dirs=False`` nothing is created on disk (dry runs).
    """

    def __init__(self, base_dir: Path | str, logger: logging.Logger | None = None, create_dirs: bool = True):
        self._base = Path(base_dir)
        self._log = logger or log
        self._create = create_dirs
        self._claims: dict[Path, int] = {}
        self._index = OwnerIndex(self._base, self._log)

    def ensure_base(self) -> Path:
        """Create the base directory. Failure here is fatal for the run."""
        if not self._create:
            return self._base
        try:
            self._base.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryCreationFailure(self._base, e, fatal=True) from e
        return self._base

    def resolve(self, message, filename: str) -> Destination:
        """Compute the path for ``message`` and whether its file is already on disk."""
        if not filename:
            filename = f"{message.id}_{time.time_ns()}.dat"
            self._log.warning(f"Generated fallback filename {filename} (msg {message.id})")

        subdir = self.subdir_for(message)
        directory = self._base / subdir
        if self._create:
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise DirectoryCreationFailure(directory, e) from e

        stamp = message_timestamp(message).strftime(TIMESTAMP_FORMAT)
        leaf = f"{stamp}_{sanitize(filename)}"
        path = directory / leaf

        owner = self._owner(path)
        if owner is None:
            self._claims[path] = message.id
        elif owner != message.id:
            leaf = f"{stamp}_{sanitize(f'{message.id}_{filename}')}"
            path = directory / leaf
            self._claims.setdefault(path, message.id)
            self._log.debug(f"{subdir}/{leaf}: plain name belongs to msg {owner} (msg {message.id})")

        return Destination(path=path, exists=path.is_file(), subdir=subdir, leaf=leaf)

    def mark_saved(self, dest: Destination, message_id: int) -> None:
        """Record ``message_id`` as the owner of the file just written at ``dest``."""
        if not self._create:
            return
        try:
            self._index.record(self._key(dest.path), message_id)
        except OSError as e:
            self._log.warning(f"Could not record owner of {dest.path}: {e}")

    def _owner(self, path: Path) -> int | None:
        if path in self._claims:
            return self._claims[path]
        owner = self._index.owner(self._key(path))
        if owner is None and path.is_file():
            # Saved before the index existed: it cannot be told apart.
            self._log.debug(f"{path} has no recorded owner")
        return owner

    def _key(self, path: Path) -> str:
        return path.relative_to(self._base).as_posix()

    def subdir_for(self, message) -> str:
        """Sender id, else the peer user, else ``chat_<id>``/``channel_<id>``."""
        sender = getattr(message, "from_id", None)
        if isinstance(sender, PeerUser):
            return str(sender.user_id)

        peer = getattr(message, "peer_id", None)
        if isinstance(peer, PeerUser):
            return str(peer.user_id)
        if isinstance(peer, PeerChat):
            return f"chat_{peer.chat_id}"
        if isinstance(peer, PeerChannel):
            return f"channel_{peer.channel_id}"

        self._log.warning(f"Could not determine sender or peer for msg {message.id}")
        return UNKNOWN_SENDER


def message_timestamp(message) -> datetime:
    """Message date as an aware UTC datetime. Accepts epoch seconds too."""
    date = message.date
    if isinstance(date, datetime):
        if date.tzinfo is None:
            return date.replace(tzinfo=timezone.utc)
        return date.astimezone(timezone.utc)
    return datetime.fromtimestamp(int(date or 0), tz=timezone.utc)


def resolve(base_dir: Path | str, message, filename: str) -> Destination:
    """One-off resolve without a shared resolver."""
    return DestinationResolver(base_dir).resolve(message, filename)
