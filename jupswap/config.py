"""Configuration loader for jupswap.

Loads config/swap.yaml and applies environment overrides. The private key
is NOT part of settings: it is read by the CLI and handed to the keychain.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel

from jupswap.clients.jupiter import JUPITER_API_URL
from jupswap.clients.rpc import MAINNET_RPC_URL
from jupswap.confirmation import DEFAULT_TIMEOUT_MS

WORKSPACE = Path(__file__).resolve().parent.parent
CONFIG_DIR = WORKSPACE / "config"
CONFIG_PATH = CONFIG_DIR / "swap.yaml"

PRIVATE_KEY_ENV = "PRIVATE_KEY"

# env var -> settings field
ENV_OVERRIDES = {
    "JUPITER_API_URL": "quote_api_url",
    "SOLANA_RPC_URL": "rpc_url",
}


class SwapSettings(BaseModel):
    """Endpoints and fixed run parameters."""

    quote_api_url: str = JUPITER_API_URL
    rpc_url: str = MAINNET_RPC_URL
    http_timeout_seconds: float = 10.0
    confirm_timeout_ms: int = DEFAULT_TIMEOUT_MS
    skip_preflight: bool = True
    max_retries: int = 2


def load_swap_config(path: Path | None = None) -> dict[str, Any]:
    """Load config/swap.yaml."""
    path = path or CONFIG_PATH
    if not path.exists():
        return {}
    return yaml.safe_load(path.read_text()) or {}


def load_settings(
    path: Path | None = None,
    environ: dict[str, str] | None = None,
) -> SwapSettings:
    """YAML defaults, then environment overrides."""
    data = load_swap_config(path)
    env = os.environ if environ is None else environ
    for var, field in ENV_OVERRIDES.items():
        value = env.get(var, "")
        if value:
            data[field] = value
    return SwapSettings(**data)
