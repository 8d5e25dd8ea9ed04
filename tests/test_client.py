from __future__ import annotations

import asyncio

from adapters.matrix_transport import ensure_own_id, setup_autojoin
from client import build_client, build_state_store
from core.config import TransportConfig

BOT_ID = "@bot:example.org"
ROOM = "!r:example.org"


class DummyWhoami:
    user_id = BOT_ID


def _invite_sync() -> dict:
    return {
        "rooms": {
            "invite": {
                ROOM: {
                    "invite_state": {
                        "events": [
                            {
                                "type": "m.room.member",
                                "state_key": BOT_ID,
                                "sender": "@alice:example.org",
                                "content": {"membership": "invite"},
                            }
                        ]
                    }
                }
            }
        }
    }


def test_invite_reaches_autojoin_without_configured_user_id(tmp_path) -> None:
    config = TransportConfig(
        homeserver="https://matrix.example.org",
        access_token="token",
        state_path=str(tmp_path / "state.json"),
        user_id=None,
    )
    joined: list[str] = []

    async def fake_whoami() -> DummyWhoami:
        return DummyWhoami()

    async def fake_join(room_id) -> None:
        joined.append(str(room_id))

    async def scenario() -> None:
        client = build_client(config, build_state_store(config))
        client.whoami = fake_whoami
        client.join_room_by_id = fake_join
        try:
            await ensure_own_id(client)
            setup_autojoin(client)
            tasks = client.handle_sync(_invite_sync()) or []
            await asyncio.gather(*tasks)
            # Membership dispatch schedules the INVITE handler as a follow-up task.
            for _ in range(10):
                await asyncio.sleep(0)
        finally:
            await client.api.session.close()

    asyncio.run(scenario())

    assert joined == [ROOM]
