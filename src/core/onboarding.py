"""Welcome sequence sent after the bot joins a room."""

from __future__ import annotations

import logging

from core.ports import TransportPort

LOGGER = logging.getLogger(__name__)

WELCOME_HTML = "Thanks for adding me to your group! ❤️"

USAGE_TEXT = (
    "lineglass runs automatically, without need for commands or configuration! "
    "Just send a GitHub (or GitLab) link that mentions one or more lines and the bot "
    "will automatically respond.\n\n"
    "There are a few commands you can use, although they are not necessary for the bot "
    "to work. To get a list, type `/help`\n\n"
    "If you want to support us, just convince your friends to add the bot to their "
    "group chat!\n\n"
    "Have fun!"
)


class InviteOnboarding:
    """Sends the fixed two-message welcome: markup first, then plain text."""

    def __init__(self, transport: TransportPort) -> None:
        self._transport = transport

    async def on_invite(self, room_id: str) -> None:
        await self._transport.send_markup_text(room_id, WELCOME_HTML)
        await self._transport.send_plain_text(room_id, USAGE_TEXT)
        LOGGER.info("Sent welcome messages to %s", room_id)
