"""HTTP link-resolution adapter.

Implements the core ResolverPort by delegating message bodies to the Core
service over HTTP. Core request and response shapes:

    POST <url>  {"message": "<body>"}
    200         {"msgList": [{"toDisplay": "...", "extension": "py"}], "totalLines": 3}
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import aiohttp

from core.config import ResolverConfig
from core.errors import ResolverError
from core.models import LineDatum, ResolutionResult

LOGGER = logging.getLogger(__name__)


def parse_resolution(payload: Any) -> ResolutionResult:
    """Validate a Core response and convert it to a ResolutionResult."""

    if not isinstance(payload, dict):
        raise ResolverError("Resolver payload must be a JSON object")

    raw_items = payload.get("msgList") or []
    if not isinstance(raw_items, list):
        raise ResolverError("Resolver payload 'msgList' must be a list")

    items = []
    for raw in raw_items:
        if not isinstance(raw, dict) or not isinstance(raw.get("toDisplay"), str):
            raise ResolverError(f"Malformed line data: {raw!r}")
        items.append(
            LineDatum(to_display=raw["toDisplay"], extension=str(raw.get("extension") or ""))
        )

    total_lines = payload.get("totalLines", 0)
    if isinstance(total_lines, bool) or not isinstance(total_lines, int) or total_lines < 0:
        raise ResolverError(f"Invalid totalLines: {total_lines!r}")

    return ResolutionResult(items=tuple(items), total_lines=total_lines)


class HttpResolver:
    """Resolver adapter that posts message bodies to the Core service."""

    def __init__(
        self, config: ResolverConfig, session: Optional[aiohttp.ClientSession] = None
    ) -> None:
        self._config = config
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._config.timeout_seconds)
            )
        return self._session

    def _headers(self) -> dict[str, str]:
        if not self._config.token:
            return {}
        return {"Authorization": f"Bearer {self._config.token}"}

    async def resolve(self, body: str) -> ResolutionResult:
        """Send one message body to Core and parse the returned line data."""

        session = self._get_session()
        try:
            async with session.post(
                self._config.url, json={"message": body}, headers=self._headers()
            ) as resp:
                if resp.status >= 400:
                    detail = await resp.text()
                    raise ResolverError(f"Resolver error {resp.status}: {detail}")
                payload = await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise ResolverError(f"Resolver request failed: {e}") from e

        result = parse_resolution(payload)
        LOGGER.debug(
            "Resolved %s excerpts (%s lines)", len(result.items), result.total_lines
        )
        return result

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None
