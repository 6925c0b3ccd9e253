"""
Runtime configuration loaded from the environment.

A local .env file is read first so API keys and RPC endpoints do not
have to be exported in the shell.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from dotenv import find_dotenv, load_dotenv

from .chain_client import RPC_URLS
from .errors import ErrorKind, ScanError


DEFAULT_API_DELAY_MS = 1000
DEFAULT_CHAIN = "ethereum"
DEFAULT_ASSET_LIMIT = 50
DEFAULT_MAX_TOKENS_FOR_HOLDERS = 1000


@dataclass
class ScanConfig:
    """Settings shared by the scanner commands."""

    opensea_api_key: Optional[str] = None
    api_delay_ms: int = DEFAULT_API_DELAY_MS  # Pause between metadata batches
    rpc_urls: Dict[str, str] = field(default_factory=lambda: dict(RPC_URLS))
    default_chain: str = DEFAULT_CHAIN
    default_limit: int = DEFAULT_ASSET_LIMIT
    max_tokens_for_holders: int = DEFAULT_MAX_TOKENS_FOR_HOLDERS

    @property
    def batch_pause(self) -> float:
        """Inter-batch pause in seconds."""
        return self.api_delay_ms / 1000.0


def _int_setting(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ScanError(ErrorKind.VALIDATION, f"{name} must be an integer, got {raw!r}")
    if value < 0:
        raise ScanError(ErrorKind.VALIDATION, f"{name} must not be negative, got {value}")
    return value


def load_config(env: Optional[Mapping[str, str]] = None) -> ScanConfig:
    """
    Build a ScanConfig from environment variables.

    Args:
        env: Mapping to read instead of os.environ (no .env loading then)

    Returns:
        ScanConfig with defaults for anything unset

    Raises:
        ScanError: VALIDATION for malformed numeric settings
    """
    if env is None:
        load_dotenv(find_dotenv(usecwd=True))
        env = os.environ

    rpc_urls = dict(RPC_URLS)
    for chain, variable in (("ethereum", "ETHEREUM_RPC_URL"), ("polygon", "POLYGON_RPC_URL")):
        if env.get(variable):
            rpc_urls[chain] = env[variable]

    return ScanConfig(
        opensea_api_key=env.get("OPENSEA_API_KEY") or None,
        api_delay_ms=_int_setting(env, "API_DELAY_MS", DEFAULT_API_DELAY_MS),
        rpc_urls=rpc_urls,
        default_chain=env.get("DEFAULT_CHAIN") or DEFAULT_CHAIN,
    )
