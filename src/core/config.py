"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TransportConfig:
    """Matrix connection settings consumed by the client factory."""

    homeserver: str
    access_token: str
    state_path: str
    user_id: Optional[str] = None


@dataclass(frozen=True)
class ResolverConfig:
    """Settings for the HTTP link-resolution adapter."""

    url: str
    timeout_seconds: float = 10.0
    token: Optional[str] = None
