"""Matrix transport adapter.

Implements the core TransportPort on top of a mautrix ``Client``. The client
is built and owned by the app layer; this adapter only subscribes and sends.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from mautrix.client import Client, InternalEventType
from mautrix.types import (
    EventID,
    EventType,
    FilterID,
    Format,
    InReplyTo,
    MessageType,
    RelatesTo,
    RoomID,
    TextMessageEventContent,
    UserID,
)

from adapters.matrix_mapper import event_from_matrix
from core.models import OutboundReply
from core.ports import JOIN_EVENT, MESSAGE_EVENT

LOGGER = logging.getLogger(__name__)


class MatrixTransport:
    """Thin mautrix wrapper that satisfies the TransportPort contract."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def subscribe(self, kind: str, handler: Callable[..., Awaitable[None]]) -> None:
        if kind == MESSAGE_EVENT:

            async def _on_message(evt) -> None:
                await handler(str(evt.room_id), event_from_matrix(evt))

            self._client.add_event_handler(EventType.ROOM_MESSAGE, _on_message)
        elif kind == JOIN_EVENT:

            async def _on_join(evt) -> None:
                # JOIN fires for every member; only our own membership counts.
                if str(evt.state_key) != await self.get_self_id():
                    return
                await handler(str(evt.room_id))

            self._client.add_event_handler(InternalEventType.JOIN, _on_join)
        else:
            raise ValueError(f"Unsupported event kind: {kind}")

    async def get_self_id(self) -> str:
        whoami = await self._client.whoami()
        return str(whoami.user_id)

    async def send_message(self, room_id: str, reply: OutboundReply) -> None:
        content = TextMessageEventContent(
            msgtype=MessageType(f"m.{reply.msgtype}"),
            body=reply.body,
            format=Format.HTML,
            formatted_body=reply.formatted_body,
        )
        content.relates_to = RelatesTo(
            in_reply_to=InReplyTo(event_id=EventID(reply.related_event_id))
        )
        await self._client.send_message(RoomID(room_id), content)

    async def send_markup_text(self, room_id: str, html: str) -> None:
        await self._client.send_text(RoomID(room_id), html, html=html)

    async def send_plain_text(self, room_id: str, text: str) -> None:
        await self._client.send_text(RoomID(room_id), text)


# Snapshot filter for the startup invite scan: only rooms.invite matters.
_INVITE_SCAN_FILTER = FilterID(
    '{"presence":{"not_types":["*"]},'
    '"account_data":{"not_types":["*"]},'
    '"room":{"state":{"not_types":["*"]},'
    '"timeline":{"limit":0},'
    '"ephemeral":{"not_types":["*"]}}}'
)


async def ensure_own_id(client: Client) -> str:
    """Fill in ``client.mxid`` from whoami when no user id was configured.

    The syncer matches invites against ``mxid``; an empty one drops them all.
    """

    if not client.mxid:
        whoami = await client.whoami()
        client.mxid = UserID(str(whoami.user_id))
    return str(client.mxid)


async def _join(client: Client, room_id: str) -> None:
    try:
        await client.join_room_by_id(RoomID(room_id))
    except Exception:
        LOGGER.exception("Failed to join room %s", room_id)


async def accept_pending_invites(client: Client) -> int:
    """Join rooms whose invites arrived while the bot was offline.

    ``ignore_initial_sync`` skips the first sync, so those invites never reach
    the INVITE handler. Returns the number of rooms found.
    """

    try:
        raw = await client.sync(timeout=0, filter_id=_INVITE_SCAN_FILTER)
    except Exception:
        LOGGER.exception("Startup invite scan failed")
        return 0

    invited = raw.get("rooms", {}).get("invite", {}) if isinstance(raw, dict) else {}
    if invited:
        LOGGER.info("Found %s pending invite(s) at startup", len(invited))
    for room_id in invited:
        await _join(client, room_id)
    return len(invited)


def setup_autojoin(client: Client) -> None:
    """Join every room the bot is invited to, including invites left pending.

    Requires ``client.mxid`` to be set (see ``ensure_own_id``).
    """

    scanned = False

    async def _on_invite(evt) -> None:
        if str(evt.state_key) != str(client.mxid):
            return
        LOGGER.info("Accepting invite from %s to %s", evt.sender, evt.room_id)
        await _join(client, str(evt.room_id))

    async def _on_first_sync(*_args, **_kwargs) -> None:
        nonlocal scanned
        if scanned:
            return
        scanned = True
        await accept_pending_invites(client)

    client.add_event_handler(InternalEventType.INVITE, _on_invite)
    client.add_event_handler(InternalEventType.SYNC_SUCCESSFUL, _on_first_sync)
