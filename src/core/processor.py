"""Core event orchestration pipeline.

This module is integration-agnostic. It only relies on ports for the chat
transport and link resolution, enabling other transports or resolvers
without changes here.

Message events go through a strict order:
1) Resolve the bot's own id and filter the event
2) Short-circuit empty bodies with a fixed notice
3) Resolve links in the body
4) Apply the spam guard
5) Render the reply and send it as a notice, or stay silent

Every delivered event runs as its own task. Nothing orders tasks against
each other, even within one room, and every await is an interleaving point.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Optional

from core import spam_guard
from core.message_filter import should_process
from core.models import InboundEvent, OutboundReply
from core.onboarding import InviteOnboarding
from core.ports import JOIN_EVENT, MESSAGE_EVENT, ResolverPort, TransportPort
from core.reply_formatting import render

LOGGER = logging.getLogger(__name__)

EMPTY_MESSAGE_REPLY = "Something strange happened - the message is empty!"


def build_reply(room_id: str, event: InboundEvent, message: str) -> OutboundReply:
    """Wrap a rendered message as a notice replying to ``event``."""

    return OutboundReply(
        room_id=room_id,
        related_event_id=event.event_id,
        body=message,
        formatted_body=message,
    )


class EventOrchestrator:
    """Coordinates filtering, resolution, spam limiting, rendering and sends."""

    def __init__(
        self,
        transport: TransportPort,
        resolver: ResolverPort,
        onboarding: Optional[InviteOnboarding] = None,
    ) -> None:
        self._transport = transport
        self._resolver = resolver
        self._onboarding = onboarding or InviteOnboarding(transport)
        self._tasks: set[asyncio.Task] = set()

    def attach(self) -> None:
        """Subscribe to message and join events on the transport."""

        self._transport.subscribe(MESSAGE_EVENT, self._dispatch_message)
        self._transport.subscribe(JOIN_EVENT, self._dispatch_join)
        LOGGER.info("Started Matrix bot.")

    async def on_message(self, room_id: str, event: InboundEvent) -> None:
        """Process one message event. Errors propagate to the caller."""

        # Identity is looked up per event so the check never uses a stale id.
        self_id = await self._transport.get_self_id()
        if not should_process(event, self_id):
            LOGGER.debug("Ignoring event %s in %s", event.event_id, room_id)
            return

        message = await self._build_message(event)
        if message is None:
            return

        await self._transport.send_message(room_id, build_reply(room_id, event, message))
        LOGGER.info("Replied to %s in %s", event.event_id, room_id)

    async def on_invite(self, room_id: str) -> None:
        await self._onboarding.on_invite(room_id)

    async def wait_idle(self) -> None:
        """Wait for every in-flight event task to finish."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _build_message(self, event: InboundEvent) -> Optional[str]:
        body = event.content.body if event.content else None
        if not body:
            return EMPTY_MESSAGE_REPLY

        result = await self._resolver.resolve(body)
        guarded = spam_guard.apply(result)
        if guarded.warning:
            LOGGER.info(
                "Spam guard triggered for %s (%s lines)", event.event_id, result.total_lines
            )
        return render(guarded.items, guarded.warning)

    async def _dispatch_message(self, room_id: str, event: InboundEvent) -> None:
        self._spawn(self.on_message(room_id, event), f"message {event.event_id}")

    async def _dispatch_join(self, room_id: str) -> None:
        self._spawn(self.on_invite(room_id), f"join {room_id}")

    def _spawn(self, work: Awaitable[None], label: str) -> None:
        task = asyncio.ensure_future(self._guarded(work, label))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _guarded(self, work: Awaitable[None], label: str) -> None:
        # A failure only drops the event it belongs to; no retry.
        try:
            await work
        except Exception:
            LOGGER.exception("Error while handling %s", label)
