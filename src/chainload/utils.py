from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Union

from eth_utils import from_wei, to_wei

Number = Union[int, float, str, Decimal]


def utc_now_rfc3339() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def gwei(amount: Number) -> int:
    return int(to_wei(Decimal(str(amount)), "gwei"))


def ether(amount: Number) -> int:
    return int(to_wei(Decimal(str(amount)), "ether"))


def format_gwei(wei: int) -> str:
    return f"{from_wei(wei, 'gwei'):f}".rstrip("0").rstrip(".") or "0"


def format_ether(wei: int, places: int = 6) -> str:
    return f"{from_wei(wei, 'ether'):.{places}f}"


def hex_to_int(value: str | int | None) -> int:
    """Decode a JSON-RPC quantity; ``None`` and ``"0x"`` decode to zero."""
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    if value in ("", "0x"):
        return 0
    return int(value, 16)
