"""Telegram client - connect, read the admin log, download files."""
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable

from telethon import TelegramClient as Telethon
from telethon import utils
from telethon.errors import ChannelInvalidError, ChannelPrivateError, PeerIdInvalidError
from telethon.tl.functions.channels import GetAdminLogRequest, GetChannelsRequest
from telethon.tl.types import (
    Channel,
    ChannelAdminLogEventsFilter,
    ChannelForbidden,
    InputChannel,
    PeerChannel,
)

from ..config import session_path
from ..errors import ChannelAccessError
from ..models import ResourceDescriptor

log = logging.getLogger(__name__)


class TelegramClient:
    """Telegram operations: connect, admin log pages, download."""

    def __init__(self, api_id: int, api_hash: str, session: str | Path | None = None):
        self._client = Telethon(str(session or session_path()), api_id, api_hash)

    async def start(self) -> bool:
        """Start client, return True if authorized."""
        await self._client.connect()
        return await self._client.is_user_authorized()

    async def login(self, phone: str, code_cb: Callable, password_cb: Callable) -> bool:
        """Interactive login."""
        await self._client.start(phone=phone, code_callback=code_cb, password=password_cb)
        return await self._client.is_user_authorized()

    async def logout(self) -> None:
        """Logout and disconnect."""
        await self._client.log_out()

    async def close(self) -> None:
        """Close connection."""
        await self._client.disconnect()

    async def get_channel(self, channel: int | str) -> InputChannel:
        """Resolve a channel id (plain or ``-100`` marked) or username."""
        if isinstance(channel, str):
            try:
                entity = await self._client.get_entity(channel)
            except (ValueError, ChannelPrivateError) as e:
                raise ChannelAccessError(f"Cannot resolve channel {channel!r}: {e}") from e
        else:
            entity = await self._channel_by_id(channel)

        if isinstance(entity, ChannelForbidden):
            until = ""
            if entity.until_date:
                until = f" until {entity.until_date:%Y-%m-%d %H:%M:%S}"
            raise ChannelAccessError(f"Access to channel {entity.id} ({entity.title}) is forbidden{until}")
        if not isinstance(entity, Channel):
            raise ChannelAccessError(
                f"{channel} is a {type(entity).__name__}, not a channel or supergroup. "
                "Only channels have an admin log."
            )

        log.info(f"Found channel {entity.title!r} (id {entity.id})")
        return InputChannel(entity.id, entity.access_hash)

    async def _channel_by_id(self, channel_id: int):
        if channel_id < 0:
            channel_id, _ = utils.resolve_id(channel_id)

        try:
            return await self._client.get_entity(PeerChannel(channel_id))
        except ValueError:
            log.debug(f"Channel {channel_id} not in session cache, asking the server")

        try:
            result = await self._client(GetChannelsRequest([InputChannel(channel_id, 0)]))
        except (ChannelInvalidError, ChannelPrivateError, PeerIdInvalidError) as e:
            raise ChannelAccessError(
                f"Failed to get channel {channel_id}: {e}. Check CHANNEL_ID and that "
                "this account is a member (or admin) of the channel."
            ) from e
        if not result.chats:
            raise ChannelAccessError(f"No channel found for id {channel_id}")
        return result.chats[0]

    async def fetch_deletions(self, channel: InputChannel, max_id: int = 0, limit: int = 100) -> list:
        """One page of "delete message" admin log events, newest first."""
        result = await self._client(GetAdminLogRequest(
            channel=channel,
            q="",
            max_id=max_id,
            min_id=0,
            limit=limit,
            events_filter=ChannelAdminLogEventsFilter(delete=True),
        ))
        log.debug(
            f"Fetched admin log page: {len(result.events)} events, "
            f"{len(result.users)} users, {len(result.chats)} chats"
        )
        return list(result.events)

    async def download(
        self,
        resource: ResourceDescriptor,
        path: Path,
        progress_cb: Callable[[int, int], None] | None = None,
    ) -> Path:
        """Download ``resource`` straight to ``path``."""
        started = datetime.now()
        await self._client.download_file(
            resource.location,
            file=str(path),
            file_size=resource.size or None,
            dc_id=resource.dc_id,
            progress_callback=progress_cb,
        )
        log.debug(f"Downloaded {path.name} in {(datetime.now() - started).total_seconds():.1f}s")
        return path
