"""Inbound event filtering (core domain)."""

from __future__ import annotations

from core.models import TEXT_MSGTYPE, InboundEvent


def should_process(event: InboundEvent, self_id: str) -> bool:
    """Return True when the event is a text message from someone else.

    Rules short-circuit in order: missing content (redacted), non-text
    msgtype, then the bot's own messages.
    """

    if event.content is None:
        return False
    if event.content.msgtype != TEXT_MSGTYPE:
        return False
    # Replying to ourselves would loop forever.
    if event.sender_id == self_id:
        return False
    return True
