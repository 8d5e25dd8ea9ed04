"""Matrix client factory for lineglass.

We explicitly manage the client's lifecycle (state store open/close, sync
start/stop) so it is obvious when the session is created and when it ends.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from mautrix.client import Client
from mautrix.client.dispatcher import MembershipEventDispatcher
from mautrix.client.state_store import FileStateStore
from mautrix.types import UserID

from core.config import TransportConfig


def load_transport_config(state_path: str) -> TransportConfig:
    """Read Matrix credentials from environment variables.

    We read MATRIX_TOKEN/MATRIX_HOMESERVER via python-dotenv to keep secrets
    out of the repo.
    """

    load_dotenv()

    token = os.getenv("MATRIX_TOKEN")
    homeserver = os.getenv("MATRIX_HOMESERVER")

    # Fail fast on missing credentials instead of an opaque 401 from sync.
    if not token or not homeserver:
        raise RuntimeError("Missing MATRIX_TOKEN or MATRIX_HOMESERVER in environment")

    return TransportConfig(
        homeserver=homeserver,
        access_token=token,
        state_path=state_path,
        user_id=os.getenv("MATRIX_USER_ID") or None,
    )


def build_state_store(config: TransportConfig) -> FileStateStore:
    """Create the JSON-backed room/join state store. Call ``open()`` before use."""

    return FileStateStore(config.state_path, binary=False)


def build_client(config: TransportConfig, state_store: FileStateStore) -> Client:
    """Create a mautrix client that emits JOIN/INVITE membership events."""

    logging.getLogger(__name__).info("Initializing Matrix client for %s", config.homeserver)

    client = Client(
        mxid=UserID(config.user_id or ""),
        base_url=config.homeserver,
        token=config.access_token,
        state_store=state_store,
    )
    # Translate m.room.member events into InternalEventType.JOIN/INVITE.
    client.add_dispatcher(MembershipEventDispatcher)
    # Skip the backlog from the first sync so old messages are not answered again.
    client.ignore_initial_sync = True
    return client
