"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for the chat transport and the link
resolver so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Protocol

from core.models import InboundEvent, OutboundReply, ResolutionResult

MESSAGE_EVENT = "message"
JOIN_EVENT = "join"

MessageHandler = Callable[[str, InboundEvent], Awaitable[None]]
JoinHandler = Callable[[str], Awaitable[None]]


class TransportPort(Protocol):
    """Chat transport operations required by the core pipeline."""

    def subscribe(self, kind: str, handler: Callable[..., Awaitable[None]]) -> None:
        ...

    async def get_self_id(self) -> str:
        ...

    async def send_message(self, room_id: str, reply: OutboundReply) -> None:
        ...

    async def send_markup_text(self, room_id: str, html: str) -> None:
        ...

    async def send_plain_text(self, room_id: str, text: str) -> None:
        ...


class ResolverPort(Protocol):
    """Link resolution required by the core pipeline."""

    async def resolve(self, body: str) -> ResolutionResult:
        ...
