"""Static configuration for lineglass.

All user-editable settings (state file, auto-join, resolver, logging) live in
a single JSON file for quick edits without touching Python. Secrets stay in
the environment (see client.py).
"""

import json
import os

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.environ.get("LINEGLASS_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def project_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Join state is owned by the Matrix client; we only choose where it lives.
_matrix = _CONFIG.get("matrix", {})
STATE_PATH = project_path(_matrix.get("state_path", "lineglass-matrix.json"))
AUTOJOIN = bool(_matrix.get("autojoin", True))

# Core link-resolution service.
_resolver = _CONFIG.get("resolver", {})
RESOLVER_URL = _resolver.get("url")
RESOLVER_TIMEOUT_SECONDS = float(_resolver.get("timeout_seconds", 10))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
