"""Shared fixtures: a scripted in-memory node and a fixed signing key."""

from __future__ import annotations

import logging
import os
from typing import Any, Optional
from unittest.mock import patch

import pytest
from eth_utils import to_checksum_address

from chainload.config import EndpointTarget
from chainload.errors import EstimationError, ReceiptTimeoutError, RpcError, SubmissionError
from chainload.identity.eth import SignerIdentity
from chainload.node.rpc import Receipt

TEST_PRIVATE_KEY = "0x" + "11" * 32
CONTRACT = to_checksum_address("0x" + "ab" * 20)
RPC_URL = "http://node.test:8545"


class FakeNode:
    """Stands in for RpcClient.

    ``receipts`` is consumed one entry per accepted submission as
    ``(status, gas_used)``; ``submit_errors`` maps the 1-based submission
    number to the exception to raise instead of accepting it.
    """

    def __init__(self) -> None:
        self.balance = 10**18
        self.code = "0x6080604052"
        self.chain_id = 80002
        self.start_nonce = 7
        self.estimate = 90_000
        self.estimate_error: Optional[EstimationError] = None
        self.submit_errors: dict[int, Exception] = {}
        self.receipt_errors: dict[int, Exception] = {}
        self.receipts: list[tuple[int, int]] = []
        self.default_gas = 21_000
        self.call_result = "0x"
        self.call_error: Optional[Exception] = None
        self.submitted: list[str] = []
        self.accepted: list[str] = []
        self.estimates = 0
        self.calls: list[tuple[dict[str, Any], Any]] = []
        self.closed = False

    def __enter__(self) -> "FakeNode":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self.closed = True

    def get_balance(self, address: str) -> int:
        return self.balance

    def get_code(self, address: str) -> str:
        return self.code

    def get_chain_id(self) -> int:
        return self.chain_id

    def get_pending_nonce(self, address: str) -> int:
        return self.start_nonce + len(self.accepted)

    def estimate_gas(self, call: dict[str, Any]) -> int:
        self.estimates += 1
        if self.estimate_error is not None:
            raise self.estimate_error
        return self.estimate

    def call(self, call: dict[str, Any], block: Any = "latest") -> str:
        self.calls.append((call, block))
        if self.call_error is not None:
            raise self.call_error
        return self.call_result

    def trace_transaction(self, tx_hash: str) -> Any:
        raise RpcError("the method debug_traceTransaction does not exist", code=-32601)

    def submit(self, raw_tx: str) -> str:
        self.submitted.append(raw_tx)
        number = len(self.submitted)
        if number in self.submit_errors:
            raise self.submit_errors[number]
        self.accepted.append(raw_tx)
        return "0x" + f"{number:064x}"

    def await_receipt(self, tx_hash: str, poll_interval: float = 2.0, timeout: Optional[float] = None) -> Receipt:
        number = int(tx_hash, 16)
        if number in self.receipt_errors:
            raise self.receipt_errors[number]
        position = len(self.accepted) - 1
        if position < len(self.receipts):
            status, gas_used = self.receipts[position]
        else:
            status, gas_used = 1, self.default_gas
        return Receipt(tx_hash=tx_hash, status=status, gas_used=gas_used, block_number=100 + number)


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """The CLI reconfigures the root logger against the runner's streams."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture()
def fake_node() -> FakeNode:
    return FakeNode()


@pytest.fixture()
def target() -> EndpointTarget:
    return EndpointTarget(rpc_url=RPC_URL, contract_address=CONTRACT, chain_id=80002)


@pytest.fixture()
def signer() -> SignerIdentity:
    return SignerIdentity.from_key(TEST_PRIVATE_KEY)


@pytest.fixture()
def harness_env():
    """Environment a CLI run needs, isolated from the developer's shell."""
    env = {
        "PRIVATE_KEY": TEST_PRIVATE_KEY,
        "RPC_URL": RPC_URL,
        "CONTRACT_ADDRESS": CONTRACT,
        "CHAIN_ID": "80002",
    }
    with patch.dict(os.environ, env, clear=False):
        os.environ.pop("CHAINLOAD_ABI", None)
        yield env


@pytest.fixture()
def submission_error():
    def make(message: str = "replacement transaction underpriced", data: Any = None) -> SubmissionError:
        return SubmissionError(message, code=-32000, data=data)

    return make


@pytest.fixture()
def receipt_timeout():
    def make(tx_hash: str = "0x01", timeout: float = 120.0) -> ReceiptTimeoutError:
        return ReceiptTimeoutError(tx_hash, timeout)

    return make
