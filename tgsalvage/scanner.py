"""Scanner - walks the admin log and saves media of deleted messages."""
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Callable

from telethon.tl.types import ChannelAdminLogEventActionDeleteMessage, Message, MessageService

from .config import ScanOptions
from .errors import TransferFailure, UnsupportedMedia
from .models import Destination, ResourceDescriptor, SaveOutcome, SaveStatus
from .services.destination import DestinationResolver
from .services.locator import locate

log = logging.getLogger(__name__)


@dataclass
class ScanStats:
    """Scan statistics."""
    pages: int = 0
    events: int = 0
    deletions: int = 0
    service: int = 0
    no_media: int = 0
    saved: int = 0
    planned: int = 0
    existing: int = 0
    unsupported: int = 0
    failed: int = 0


@dataclass
class ScanCallbacks:
    """Progress callbacks."""
    on_page: Callable[[int, int], None] | None = None
    on_start: Callable[[ResourceDescriptor, Destination], None] | None = None
    on_saved: Callable[[SaveOutcome], None] | None = None
    on_skip: Callable[[SaveOutcome], None] | None = None
    on_error: Callable[[SaveOutcome], None] | None = None
    on_progress: Callable[[int, int], None] | None = None


class Scanner:
    """Replay a channel's deletion log and back up the media it references.

    Pages are requested newest first, ``max_id`` being the id of the last
    event seen. The cursor moves before an event is processed, so a message
    that fails never stalls the scan. An empty page ends it.

    ``tg_client`` needs two coroutines: ``fetch_deletions(channel, max_id,
    limit)`` returning a list of admin log events, and ``download(resource,
    path, progress_cb)`` writing the file.
    """

    def __init__(
        self,
        tg_client,
        channel,
        options: ScanOptions,
        callbacks: ScanCallbacks | None = None,
        logger: logging.Logger | None = None,
    ):
        self._tg = tg_client
        self._channel = channel
        self._options = options
        self._cb = callbacks or ScanCallbacks()
        self._log = logger or log
        self._resolver = DestinationResolver(
            options.base_dir, logger=self._log, create_dirs=not options.dry_run
        )
        self.cursor = 0
        self.stats = ScanStats()

    async def run(self) -> ScanStats:
        """Run the scan to the end of the log."""
        async for _ in self.scan():
            pass
        self._log.info(
            f"Finished admin log: {self.stats.saved} saved, {self.stats.existing} already present, "
            f"{self.stats.unsupported} unsupported, {self.stats.failed} failed"
        )
        return self.stats

    async def scan(self) -> AsyncIterator[SaveOutcome]:
        """Yield one outcome per deleted message that carried media."""
        self._resolver.ensure_base()
        processed = 0

        self._log.info("Fetching admin log for deleted messages...")
        while True:
            self._log.debug(f"Requesting admin log page (max_id={self.cursor})")
            events = await self._tg.fetch_deletions(
                self._channel, max_id=self.cursor, limit=self._options.page_size
            )
            self.stats.pages += 1
            if not events:
                self._log.info("Reached end of admin log")
                return
            self._notify("on_page", self.stats.pages, len(events))

            found_media = False
            for event in events:
                self.cursor = event.id
                self.stats.events += 1

                message = self._deleted_message(event)
                if message is None:
                    continue
                found_media = True

                outcome = await self._save(event.id, message)
                self._count(outcome)
                yield outcome

                processed += 1
                if self._options.limit and processed >= self._options.limit:
                    self._log.info(f"Stopping after {processed} messages (limit)")
                    return

            if not found_media:
                self._log.debug(f"Page {self.stats.pages} had no deleted messages with media")

    def _deleted_message(self, event) -> Message | None:
        """The deleted message if it is a candidate for download."""
        action = event.action
        if not isinstance(action, ChannelAdminLogEventActionDeleteMessage):
            self._log.debug(f"Skipping non-delete admin log event {type(action).__name__}")
            return None
        self.stats.deletions += 1

        message = action.message
        if isinstance(message, MessageService):
            self.stats.service += 1
            self._log.debug(f"Skipping deleted service message {message.id}")
            return None
        if not isinstance(message, Message):
            self._log.debug(f"Skipping deleted {type(message).__name__} in event {event.id}")
            return None
        if message.media is None:
            self.stats.no_media += 1
            self._log.debug(f"Deleted message {message.id} has no media")
            return None

        self._log.info(f"Found deleted message {message.id} with media ({message.date})")
        return message

    async def _save(self, event_id: int, message: Message) -> SaveOutcome:
        """Locate, resolve and fetch one message's media. Failures end up in the outcome."""
        outcome = SaveOutcome(message_id=message.id, event_id=event_id, status=SaveStatus.FAILED)
        try:
            resource = locate(message.media, message_id=message.id, logger=self._log)
            dest = self._resolver.resolve(message, resource.filename)
            outcome.path = dest.path

            if dest.exists:
                self._log.info(f"File already exists, skipping: {dest.path} (msg {message.id})")
                self._resolver.mark_saved(dest, message.id)
                outcome.status = SaveStatus.EXISTS
                self._notify("on_skip", outcome)
                return outcome

            if self._options.dry_run:
                self._log.info(f"Would download {dest.path} (msg {message.id})")
                outcome.status = SaveStatus.PLANNED
                self._notify("on_skip", outcome)
                return outcome

            self._notify("on_start", resource, dest)
            await self._fetch(resource, dest, message.id)
            self._resolver.mark_saved(dest, message.id)
        except UnsupportedMedia as e:
            outcome.status = SaveStatus.UNSUPPORTED
            outcome.error = str(e)
            self._notify("on_skip", outcome)
            return outcome
        except Exception as e:
            outcome.error = str(e)
            self._log.warning(f"Failed to save media of msg {message.id}: {e}")
            self._notify("on_error", outcome)
            return outcome

        outcome.status = SaveStatus.SAVED
        self._log.info(f"Saved {dest.path} (msg {message.id})")
        self._notify("on_saved", outcome)
        return outcome

    async def _fetch(self, resource: ResourceDescriptor, dest: Destination, message_id: int) -> None:
        self._log.info(f"Downloading {resource.filename} to {dest.path} (msg {message_id})")
        progress_cb = None
        if self._cb.on_progress:
            progress_cb = lambda c, t: self._notify("on_progress", c, t)
        try:
            await self._tg.download(resource, dest.path, progress_cb)
        except Exception as e:
            # Partial file.
            dest.path.unlink(missing_ok=True)
            raise TransferFailure(
                f"Download failed for {dest.leaf} (msg {message_id}): {e}",
                path=dest.path,
                message_id=message_id,
            ) from e

    def _count(self, outcome: SaveOutcome) -> None:
        field = {
            SaveStatus.SAVED: "saved",
            SaveStatus.PLANNED: "planned",
            SaveStatus.EXISTS: "existing",
            SaveStatus.UNSUPPORTED: "unsupported",
            SaveStatus.FAILED: "failed",
        }[outcome.status]
        setattr(self.stats, field, getattr(self.stats, field) + 1)

    def _notify(self, event: str, *args):
        """Call callback if set."""
        cb = getattr(self._cb, event, None)
        if cb:
            try:
                cb(*args)
            except Exception as e:
                self._log.debug(f"Callback {event} failed: {e}")
