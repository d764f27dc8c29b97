"""
ABI handling for the load-test target contract.

Loads ABIs from Hardhat or Foundry build artifacts (or a bare ABI JSON
file), encodes calldata with eth-abi, lists callable method signatures for
operator diagnostics, and decodes revert data returned by the node.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional, Union

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import keccak

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

# Entry-log contract exercised by the harness.
ENTRY_CONTRACT_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "addEntry",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "receiver", "type": "address"},
            {"name": "amount", "type": "uint256"},
            {"name": "message", "type": "string"},
            {"name": "keyword", "type": "string"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "getEntryCount",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]

ERROR_STRING_SELECTOR = bytes.fromhex("08c379a0")  # Error(string)
PANIC_SELECTOR = bytes.fromhex("4e487b71")  # Panic(uint256)


@lru_cache(maxsize=16)
def _load_abi_file(path: Path) -> tuple[dict[str, Any], ...]:
    try:
        with path.open("r", encoding="utf-8") as f:
            artifact = json.load(f)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"ABI not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"ABI file is not valid JSON: {path}: {exc}") from exc

    # Hardhat and Foundry artifacts both carry the ABI under "abi".
    abi = artifact.get("abi") if isinstance(artifact, dict) else artifact
    if not isinstance(abi, list):
        raise ConfigurationError(f"No ABI array in {path}")
    return tuple(abi)


def load_abi(path: Optional[Union[str, Path]] = None) -> list[dict[str, Any]]:
    """
    Load a contract ABI.

    Args:
        path: Artifact or ABI JSON file. If None, the built-in entry
              contract ABI is returned.

    Raises:
        ConfigurationError: If the file is missing or carries no ABI
    """
    if path is None:
        return list(ENTRY_CONTRACT_ABI)
    return list(_load_abi_file(Path(path).expanduser().resolve()))


def _canonical_type(param: dict[str, Any]) -> str:
    kind = param["type"]
    if kind.startswith("tuple"):
        inner = ",".join(_canonical_type(c) for c in param.get("components", []))
        return f"({inner}){kind[len('tuple'):]}"
    return kind


def _entry_signature(entry: dict[str, Any]) -> str:
    types = ",".join(_canonical_type(p) for p in entry.get("inputs", []))
    return f"{entry['name']}({types})"


def find_function(abi: list[dict[str, Any]], function_name: str) -> dict[str, Any]:
    for entry in abi:
        if entry.get("type") == "function" and entry.get("name") == function_name:
            return entry
    raise ConfigurationError(f"Function {function_name} not found in ABI")


def function_signatures(abi: list[dict[str, Any]]) -> list[str]:
    """Callable method signatures, e.g. ``addEntry(address,uint256,string,string)``."""
    return [_entry_signature(e) for e in abi if e.get("type") == "function"]


def selector(signature: str) -> bytes:
    # NOTE: Keccak-256 != SHA3-256 (NIST). Never use hashlib.sha3_256 here.
    return keccak(text=signature)[:4]


def encode_call(abi: list[dict[str, Any]], function_name: str, args: list) -> str:
    """ABI-encode a function call to 0x-prefixed hex calldata."""
    func = find_function(abi, function_name)
    input_types = [_canonical_type(p) for p in func.get("inputs", [])]
    if len(input_types) != len(args):
        raise ConfigurationError(
            f"{function_name} takes {len(input_types)} arguments, got {len(args)}"
        )

    try:
        encoded_args = encode(input_types, args) if args else b""
    except (EncodingError, ValueError) as exc:
        raise ConfigurationError(
            f"Cannot encode {_entry_signature(func)} arguments: {exc}"
        ) from exc
    return "0x" + selector(_entry_signature(func)).hex() + encoded_args.hex()


def decode_result(abi: list[dict[str, Any]], function_name: str, data: str) -> Any:
    """Decode eth_call return data; a single output is unwrapped."""
    func = find_function(abi, function_name)
    output_types = [_canonical_type(p) for p in func.get("outputs", [])]
    if not output_types:
        return None

    try:
        decoded = decode(output_types, _hex_bytes(data))
    except (DecodingError, ValueError) as exc:
        raise ConfigurationError(
            f"Cannot decode {function_name} result {data!r}: {exc}"
        ) from exc
    if len(decoded) == 1:
        return decoded[0]
    return decoded


def _hex_bytes(data: str) -> bytes:
    return bytes.fromhex(data[2:] if data.startswith("0x") else data)


# ---------------------------------------------------------------------------
# Revert reasons
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ErrorMessage:
    message: str
    kind: str = "error"

    def describe(self) -> str:
        return self.message


@dataclass(frozen=True)
class PanicCode:
    code: int
    kind: str = "panic"

    def describe(self) -> str:
        return f"Panic(0x{self.code:02x})"


@dataclass(frozen=True)
class CustomError:
    name: str
    args: tuple
    kind: str = "custom"

    def describe(self) -> str:
        return f"{self.name}({', '.join(repr(a) for a in self.args)})"


@dataclass(frozen=True)
class Undecodable:
    raw: str
    detail: str
    kind: str = "undecodable"

    def describe(self) -> str:
        return f"undecodable revert ({self.detail})"


RevertReason = Union[ErrorMessage, PanicCode, CustomError, Undecodable]


def extract_revert_data(error_data: Any) -> Optional[str]:
    """Pull hex revert data out of the shapes nodes put in ``error.data``.

    Geth-style nodes return a bare hex string; others nest it as
    ``{"data": "0x..."}`` or ``{"originalError": {"data": ...}}``.
    """
    if isinstance(error_data, str):
        return error_data if error_data.startswith("0x") else None
    if isinstance(error_data, dict):
        for key in ("data", "originalError", "result"):
            if key in error_data:
                found = extract_revert_data(error_data[key])
                if found:
                    return found
    return None


def decode_revert(
    error_data: Any, abi: Optional[list[dict[str, Any]]] = None
) -> RevertReason:
    """Decode node-supplied revert data. Never raises."""
    raw = extract_revert_data(error_data)
    if raw is None:
        return Undecodable(raw=repr(error_data), detail="no revert data")

    try:
        payload = _hex_bytes(raw)
    except ValueError:
        return Undecodable(raw=raw, detail="not hex")

    if len(payload) < 4:
        return Undecodable(raw=raw, detail="empty revert")

    head, body = payload[:4], payload[4:]
    try:
        if head == ERROR_STRING_SELECTOR:
            (message,) = decode(["string"], body)
            return ErrorMessage(message=message)
        if head == PANIC_SELECTOR:
            (code,) = decode(["uint256"], body)
            return PanicCode(code=code)
        for entry in abi or []:
            if entry.get("type") != "error":
                continue
            if selector(_entry_signature(entry)) == head:
                types = [_canonical_type(p) for p in entry.get("inputs", [])]
                return CustomError(name=entry["name"], args=tuple(decode(types, body)))
    except (DecodingError, ValueError, OverflowError) as exc:
        logger.debug("Revert payload %s failed to decode: %s", raw, exc)
        return Undecodable(raw=raw, detail=f"malformed payload: {exc}")

    return Undecodable(raw=raw, detail=f"unknown selector 0x{head.hex()}")
