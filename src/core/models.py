"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

TEXT_MSGTYPE = "text"
NOTICE_MSGTYPE = "notice"


@dataclass(frozen=True)
class MessageContent:
    """Body of a room message as seen by the core."""

    msgtype: str
    body: Optional[str]


@dataclass(frozen=True)
class InboundEvent:
    """Minimal room event used by the core processing pipeline.

    ``content`` is None for redacted or content-less events.
    """

    room_id: str
    event_id: str
    sender_id: str
    content: Optional[MessageContent]


@dataclass(frozen=True)
class LineDatum:
    """One resolved source excerpt and its file-type tag."""

    to_display: str
    extension: str


@dataclass(frozen=True)
class ResolutionResult:
    """Resolver output. ``total_lines`` counts source lines, not items."""

    items: tuple[LineDatum, ...]
    total_lines: int

    @classmethod
    def empty(cls) -> "ResolutionResult":
        return cls(items=(), total_lines=0)


@dataclass(frozen=True)
class GuardedItems:
    """Spam guard output: either items to render or a warning to send."""

    items: tuple[LineDatum, ...]
    warning: Optional[str]


@dataclass(frozen=True)
class OutboundReply:
    """A notice sent in reply to an inbound event."""

    room_id: str
    related_event_id: str
    body: str
    formatted_body: str
    msgtype: str = NOTICE_MSGTYPE
