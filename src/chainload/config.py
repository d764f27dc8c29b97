"""
Run configuration.

Values come from the process environment (optionally populated from a
.env file through python-dotenv) and are overridden by explicit CLI
options.  Everything is validated up front so a malformed credential,
URL or address fails before any network traffic.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse

from dotenv import load_dotenv
from eth_utils import is_address, to_checksum_address

from .errors import ConfigurationError
from .node.abi import load_abi

# ---- Defaults (Polygon Amoy testnet) ----
DEFAULT_CHAIN_ID = 80002
DEFAULT_COUNT = 20
DEFAULT_DELAY_SECONDS = 2.0
DEFAULT_RECEIPT_TIMEOUT = 120.0
DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_BALANCE_FLOOR_ETHER = "0.1"
DEFAULT_RECEIVER = "0xf04e175ab8b608ba3e464d5f9d1db020d20fd115"
DEFAULT_AMOUNT_ETHER = "0.0001"
DEFAULT_MESSAGE_PREFIX = "Load Test"
DEFAULT_KEYWORD = "test"
CALL_METHOD = "addEntry"
COUNT_METHOD = "getEntryCount"

RPC_URL_VARS = ("RPC_URL", "ALCHEMY_API_URL")


def load_env(env_file: Optional[Path] = None) -> None:
    """Load a .env file into the environment without overriding it."""
    path = env_file or Path.cwd() / ".env"
    if path.exists():
        load_dotenv(path, override=False)


def validate_rpc_url(url: Optional[str]) -> str:
    if not url:
        raise ConfigurationError(
            "RPC URL not set. Pass --rpc-url or set RPC_URL in the environment."
        )
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationError(f"RPC URL must be http(s)://host[...]: {url!r}")
    return url


def validate_address(value: Optional[str], what: str = "address") -> str:
    if not value:
        raise ConfigurationError(f"{what} not set")
    if not is_address(value):
        raise ConfigurationError(f"Invalid {what}: {value!r}")
    return to_checksum_address(value)


def resolve_rpc_url(explicit: Optional[str] = None) -> str:
    if explicit:
        return validate_rpc_url(explicit)
    for name in RPC_URL_VARS:
        value = os.environ.get(name)
        if value:
            return validate_rpc_url(value)
    return validate_rpc_url(None)


def resolve_chain_id(explicit: Optional[int] = None) -> int:
    if explicit is not None:
        chain_id = explicit
    else:
        raw = os.environ.get("CHAIN_ID", str(DEFAULT_CHAIN_ID))
        try:
            chain_id = int(raw, 0)
        except ValueError as exc:
            raise ConfigurationError(f"CHAIN_ID must be an integer: {raw!r}") from exc
    if chain_id <= 0:
        raise ConfigurationError(f"CHAIN_ID must be positive: {chain_id}")
    return chain_id


@dataclass(frozen=True)
class EndpointTarget:
    """Where the load goes. Immutable for the run."""

    rpc_url: str
    contract_address: str
    chain_id: int
    abi: list[dict[str, Any]] = field(default_factory=lambda: load_abi(None), compare=False)

    @classmethod
    def build(
        cls,
        rpc_url: Optional[str] = None,
        contract_address: Optional[str] = None,
        chain_id: Optional[int] = None,
        abi_path: Optional[str] = None,
    ) -> "EndpointTarget":
        return cls(
            rpc_url=resolve_rpc_url(rpc_url),
            contract_address=validate_address(
                contract_address or os.environ.get("CONTRACT_ADDRESS"),
                "contract address (CONTRACT_ADDRESS)",
            ),
            chain_id=resolve_chain_id(chain_id),
            abi=load_abi(abi_path or os.environ.get("CHAINLOAD_ABI") or None),
        )


@dataclass(frozen=True)
class CallArguments:
    """Arguments for each ``addEntry`` call; the message carries the attempt index."""

    receiver: str = DEFAULT_RECEIVER
    amount: int = 100_000_000_000_000  # 0.0001 ether
    message_prefix: str = DEFAULT_MESSAGE_PREFIX
    keyword: str = DEFAULT_KEYWORD

    def for_attempt(self, index: int) -> list:
        receiver = to_checksum_address(self.receiver)
        return [receiver, self.amount, f"{self.message_prefix} {index}", self.keyword]
