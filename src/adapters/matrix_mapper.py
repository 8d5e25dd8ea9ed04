"""Matrix-to-core event mapping adapter.

This keeps mautrix-specific details out of the core pipeline.
"""

from __future__ import annotations

from typing import Any, Optional

from mautrix.types import MessageType

from core.models import InboundEvent, MessageContent

_MATRIX_PREFIX = "m."


def core_msgtype(matrix_msgtype: Any) -> Optional[str]:
    """Translate ``m.text``/``m.notice``/... into the core's bare names.

    Anything that is not a msgtype string (e.g. the placeholder mautrix hands
    back for a missing key) maps to None.
    """

    if isinstance(matrix_msgtype, MessageType):
        raw = str(matrix_msgtype.value)
    elif isinstance(matrix_msgtype, str):
        raw = matrix_msgtype
    else:
        return None
    if not raw:
        return None
    if raw.startswith(_MATRIX_PREFIX):
        return raw[len(_MATRIX_PREFIX):]
    return raw


def _is_redacted(evt: Any) -> bool:
    unsigned = getattr(evt, "unsigned", None)
    return unsigned is not None and getattr(unsigned, "redacted_because", None) is not None


def _content_from_event(evt: Any) -> Optional[MessageContent]:
    content = getattr(evt, "content", None)
    if content is None or _is_redacted(evt):
        return None
    # Redacted m.room.message events arrive with their keys stripped.
    msgtype = core_msgtype(getattr(content, "msgtype", None))
    if msgtype is None:
        return None
    body = getattr(content, "body", None)
    return MessageContent(msgtype=msgtype, body=body if isinstance(body, str) else None)


def event_from_matrix(evt: Any) -> InboundEvent:
    """Build a core InboundEvent from a mautrix MessageEvent."""

    return InboundEvent(
        room_id=str(evt.room_id),
        event_id=str(evt.event_id),
        sender_id=str(evt.sender),
        content=_content_from_event(evt),
    )
