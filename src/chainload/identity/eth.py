"""
ECDSA / secp256k1 signer identity for chainload.

The harness signs every load-test call locally with a single key and
submits the raw transaction itself, so the node never holds the key.

Keys are read from the PRIVATE_KEY environment variable, optionally
populated from a .env file.  They are never embedded in source.

Dependencies: eth-account (no full web3.py needed)
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from eth_account import Account
from eth_account.signers.local import LocalAccount

from ..errors import ConfigurationError

_KEY_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


def load_private_key(env_path: Optional[Path] = None) -> str:
    """
    Load the signing key from the environment.

    Args:
        env_path: Optional .env file loaded before reading the environment.
                  Values already in the environment take precedence.

    Returns:
        0x-prefixed hex private key

    Raises:
        ConfigurationError: If PRIVATE_KEY is missing or malformed
    """
    if env_path is not None and env_path.exists():
        load_dotenv(env_path, override=False)

    private_key = os.environ.get("PRIVATE_KEY", "").strip()
    if not private_key:
        raise ConfigurationError("PRIVATE_KEY not set. Export it or add it to your .env file.")

    # Ensure 0x prefix
    if not private_key.startswith("0x"):
        private_key = "0x" + private_key

    if not _KEY_RE.match(private_key):
        raise ConfigurationError("PRIVATE_KEY must be 32 bytes of hex (64 characters)")

    return private_key


def get_account(private_key: Optional[str] = None) -> LocalAccount:
    """
    Get an eth-account LocalAccount from a private key.

    Args:
        private_key: 0x-prefixed hex private key.
                     If None, loads from the environment.
    """
    if private_key is None:
        private_key = load_private_key()
    try:
        return Account.from_key(private_key)
    except (ValueError, TypeError) as exc:
        raise ConfigurationError(f"Invalid private key: {exc}") from exc


def get_address(private_key: Optional[str] = None) -> str:
    """Checksummed address for a private key."""
    return get_account(private_key).address


@dataclass(frozen=True)
class SignerIdentity:
    """A private key and the address derived from it.

    One identity owns one nonce sequence; two concurrent runs must not
    share it.
    """

    address: str
    _account: LocalAccount = field(repr=False, compare=False)

    @classmethod
    def from_key(cls, private_key: str) -> "SignerIdentity":
        account = get_account(private_key)
        return cls(address=account.address, _account=account)

    def sign(self, tx: dict[str, Any]) -> str:
        """Sign ``tx`` and return the raw transaction as 0x-prefixed hex."""
        signed = self._account.sign_transaction(tx)
        return "0x" + bytes(signed.raw_transaction).hex()
