"""
JSON-RPC client for a single EVM node endpoint.

Lightweight alternative to web3.py: uses httpx for HTTP and leaves ABI
encoding to the caller.  Covers exactly what the load harness needs:
balance, code, gas estimation, nonce lookup, raw transaction submission
and receipt polling.
"""

from __future__ import annotations

import itertools
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx

from ..errors import (
    ConnectivityError,
    EstimationError,
    ReceiptTimeoutError,
    RevertedExecution,
    RpcError,
    SubmissionError,
)
from ..utils import hex_to_int

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class Receipt:
    tx_hash: str
    status: int
    gas_used: int
    block_number: int

    @property
    def succeeded(self) -> bool:
        return self.status == 1

    def raise_for_status(self) -> None:
        if not self.succeeded:
            raise RevertedExecution(self.tx_hash)

    @classmethod
    def from_rpc(cls, payload: dict[str, Any]) -> "Receipt":
        return cls(
            tx_hash=payload.get("transactionHash", ""),
            status=hex_to_int(payload.get("status")),
            gas_used=hex_to_int(payload.get("gasUsed")),
            block_number=hex_to_int(payload.get("blockNumber")),
        )


def has_code(code: Optional[str]) -> bool:
    """``eth_getCode`` result check; ``0x`` means nothing is deployed."""
    return bool(code) and code not in ("0x", "0x0")


class RpcClient:
    """
    Session over one JSON-RPC endpoint.

    Args:
        rpc_url: Node URL (http or https)
        timeout: Per-request transport timeout in seconds
        transport: Optional httpx transport (tests pass a MockTransport)
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self._http = httpx.Client(timeout=timeout, transport=transport)
        self._ids = itertools.count(1)

    def __enter__(self) -> "RpcClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def request(self, method: str, params: list) -> Any:
        """
        Make a JSON-RPC call.

        Returns:
            Result field from the RPC response

        Raises:
            ConnectivityError: Transport failure, HTTP error status or non-JSON body
            RpcError: The node returned an error object
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._ids),
        }

        try:
            response = self._http.post(self.rpc_url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            raise ConnectivityError(
                f"{method}: HTTP {exc.response.status_code} from {self.rpc_url}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ConnectivityError(f"{method}: {exc.__class__.__name__}: {exc}") from exc
        except ValueError as exc:
            raise ConnectivityError(f"{method}: response is not JSON") from exc

        if not isinstance(data, dict):
            raise ConnectivityError(f"{method}: unexpected response {data!r}")

        error = data.get("error")
        if error is not None:
            if isinstance(error, dict):
                raise RpcError(
                    str(error.get("message", error)),
                    code=error.get("code"),
                    data=error.get("data"),
                )
            raise RpcError(str(error))

        return data.get("result")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_balance(self, address: str) -> int:
        """Balance in wei."""
        return hex_to_int(self.request("eth_getBalance", [address, "latest"]))

    def get_code(self, address: str) -> str:
        """Deployed bytecode; ``"0x"`` when no contract exists."""
        return self.request("eth_getCode", [address, "latest"]) or "0x"

    def get_chain_id(self) -> int:
        return hex_to_int(self.request("eth_chainId", []))

    def get_pending_nonce(self, address: str) -> int:
        """Next usable nonce, counting transactions the node has not mined yet."""
        return hex_to_int(self.request("eth_getTransactionCount", [address, "pending"]))

    def call(self, call: dict[str, Any], block: str | int = "latest") -> str:
        tag = hex(block) if isinstance(block, int) else block
        return self.request("eth_call", [call, tag]) or "0x"

    def estimate_gas(self, call: dict[str, Any]) -> int:
        """
        Estimate gas for a call.

        Raises:
            EstimationError: With the node's revert/estimation message verbatim
        """
        try:
            return hex_to_int(self.request("eth_estimateGas", [call]))
        except RpcError as exc:
            raise EstimationError(exc.message, code=exc.code, data=exc.data) from exc

    def trace_transaction(self, tx_hash: str) -> Any:
        """debug_traceTransaction; most public nodes refuse it."""
        return self.request("debug_traceTransaction", [tx_hash])

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def submit(self, raw_tx: str) -> str:
        """
        Send a signed raw transaction.

        Returns:
            Transaction hash (0x-prefixed hex)

        Raises:
            SubmissionError: The node rejected the transaction
        """
        try:
            tx_hash = self.request("eth_sendRawTransaction", [raw_tx])
        except RpcError as exc:
            raise SubmissionError(exc.message, code=exc.code, data=exc.data) from exc
        if not tx_hash:
            raise SubmissionError("eth_sendRawTransaction returned no hash")
        return tx_hash

    def get_receipt(self, tx_hash: str) -> Optional[Receipt]:
        payload = self.request("eth_getTransactionReceipt", [tx_hash])
        if payload is None:
            return None
        return Receipt.from_rpc(payload)

    def await_receipt(
        self,
        tx_hash: str,
        poll_interval: float = 2.0,
        timeout: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> Receipt:
        """
        Block until the node reports a receipt for ``tx_hash``.

        Args:
            tx_hash: Transaction hash
            poll_interval: Seconds between polls
            timeout: Ceiling in seconds; None waits indefinitely

        Raises:
            ReceiptTimeoutError: If timeout is set and expires first
            ConnectivityError: If polling fails at the transport level
        """
        start = clock()
        while True:
            receipt = self.get_receipt(tx_hash)
            if receipt is not None:
                return receipt
            if timeout is not None and clock() - start >= timeout:
                raise ReceiptTimeoutError(tx_hash, timeout)
            logger.debug("No receipt yet for %s", tx_hash)
            sleep(poll_interval)
