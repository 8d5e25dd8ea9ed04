"""Application entry point for the lineglass bot."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from dotenv import load_dotenv

import settings
from adapters.http_resolver import HttpResolver
from adapters.matrix_transport import MatrixTransport, ensure_own_id, setup_autojoin
from client import build_client, build_state_store, load_transport_config
from core.config import ResolverConfig
from core.onboarding import InviteOnboarding
from core.processor import EventOrchestrator

NAME = "LINEGLASS"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


class _RedactingFormatter(logging.Formatter):
    """Masks access tokens in every formatted record."""

    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        # Longest first so a token containing another is masked whole.
        self._secrets = sorted({secret for secret in secrets if secret}, key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _secrets_to_redact(redact_cfg: dict) -> list[str]:
    if not redact_cfg.get("enabled", False):
        return []
    return [os.getenv(name, "") for name in redact_cfg.get("patterns", [])]


def _log_file_handler(file_cfg: dict) -> RotatingFileHandler:
    path = settings.project_path(file_cfg.get("path", "logs/lineglass.log"))
    os.makedirs(os.path.dirname(path), exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
        backupCount=int(file_cfg.get("backup_count", 5)),
        encoding="utf-8",
    )


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    # Token values live in .env, so load it before collecting them.
    load_dotenv()

    handlers: list[logging.Handler] = []
    if config.get("console", True):
        handlers.append(logging.StreamHandler())
    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        handlers.append(_log_file_handler(file_cfg))
    if not handlers:
        return

    formatter = _RedactingFormatter(
        _secrets_to_redact(config.get("redact", {})), fmt=LOG_FORMAT, datefmt=LOG_DATEFMT
    )
    for handler in handlers:
        handler.setFormatter(formatter)

    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)
    logging.basicConfig(level=level, handlers=handlers)


def _resolver_config() -> ResolverConfig:
    if not settings.RESOLVER_URL:
        raise RuntimeError("resolver.url is required in config.json")
    return ResolverConfig(
        url=settings.RESOLVER_URL,
        timeout_seconds=settings.RESOLVER_TIMEOUT_SECONDS,
        token=os.getenv("RESOLVER_TOKEN") or None,
    )


async def _serve() -> None:
    logger = logging.getLogger(__name__)

    transport_config = load_transport_config(settings.STATE_PATH)
    resolver = HttpResolver(_resolver_config())

    # The state store is opened before the first sync and flushed on shutdown.
    state_store = build_state_store(transport_config)
    await state_store.open()
    client = build_client(transport_config, state_store)

    # Invites are matched against client.mxid, so it must be known before syncing.
    own_id = await ensure_own_id(client)

    transport = MatrixTransport(client)
    orchestrator = EventOrchestrator(
        transport=transport,
        resolver=resolver,
        onboarding=InviteOnboarding(transport),
    )
    orchestrator.attach()

    if settings.AUTOJOIN:
        setup_autojoin(client)
        logger.info("Auto-join enabled")

    try:
        logger.info("Client connected. Listening for room events as %s", own_id)
        await client.start(filter_data=None)
    finally:
        client.stop()
        await orchestrator.wait_idle()
        await resolver.close()
        await client.api.session.close()
        await state_store.close()
        logger.info("Shut down cleanly")


def _run() -> None:
    _print_banner()
    _configure_logging()
    logging.getLogger(__name__).info("Starting lineglass")
    asyncio.run(_serve())


async def _print_whoami() -> None:
    transport_config = load_transport_config(settings.STATE_PATH)
    state_store = build_state_store(transport_config)
    client = build_client(transport_config, state_store)
    try:
        print(await MatrixTransport(client).get_self_id())
    finally:
        await client.api.session.close()


def _whoami() -> None:
    _print_banner()
    asyncio.run(_print_whoami())


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="lineglass")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the bot")
    subparsers.add_parser("whoami", help="Print the Matrix user id behind MATRIX_TOKEN")

    args = parser.parse_args(argv)
    if args.command == "whoami":
        _whoami()
        return
    _run()


if __name__ == "__main__":
    main()
