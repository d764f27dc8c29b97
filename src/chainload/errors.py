"""
Error taxonomy for chainload.

Every class carries an ``exit_code`` so the CLI can map an unrecovered
fault onto a distinct process exit status.  Inside the submission loop
these errors are caught and recorded as outcomes; only preflight and
configuration failures ever reach the top level.
"""

from __future__ import annotations

from typing import Any, Optional


class HarnessError(RuntimeError):
    exit_code: int = 1


class ConfigurationError(HarnessError):
    """Malformed credential, URL, address or fee setting."""

    exit_code = 2


class ConnectivityError(HarnessError):
    """The node could not be reached or answered with garbage."""

    exit_code = 3


class RpcError(HarnessError):
    """The node answered with a JSON-RPC error object."""

    exit_code = 3

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data


class EstimationError(RpcError):
    exit_code = 4


class SubmissionError(RpcError):
    exit_code = 5


class ReceiptTimeoutError(HarnessError):
    exit_code = 3

    def __init__(self, tx_hash: str, timeout: float) -> None:
        super().__init__(f"Transaction {tx_hash} not confirmed within {timeout:g}s")
        self.tx_hash = tx_hash
        self.timeout = timeout


class RevertedExecution(HarnessError):
    """A transaction was mined but the contract reverted it."""

    exit_code = 6

    def __init__(self, tx_hash: str, reason: str = "") -> None:
        detail = f": {reason}" if reason else ""
        super().__init__(f"Transaction {tx_hash} reverted{detail}")
        self.tx_hash = tx_hash
        self.reason = reason


class PreflightError(HarnessError):
    exit_code = 7


class ContractNotDeployedError(PreflightError):
    def __init__(self, address: str) -> None:
        super().__init__(f"Contract not found at {address}")
        self.address = address


def _with_methods(headline: str, signatures: list[str]) -> str:
    methods = ", ".join(signatures) if signatures else "(unable to read ABI)"
    return f"{headline}\nContract methods: {methods}"


class PreflightEstimationError(PreflightError):
    def __init__(self, node_message: str, signatures: list[str]) -> None:
        super().__init__(_with_methods(f"Contract test call failed: {node_message}", signatures))
        self.node_message = node_message
        self.signatures = signatures


class CallEncodingError(PreflightError):
    """The configured ABI cannot express the load-test call."""

    def __init__(self, detail: str, signatures: list[str]) -> None:
        super().__init__(_with_methods(f"Contract test call could not be built: {detail}", signatures))
        self.detail = detail
        self.signatures = signatures


__all__ = [
    "CallEncodingError",
    "ConfigurationError",
    "ConnectivityError",
    "ContractNotDeployedError",
    "EstimationError",
    "HarnessError",
    "PreflightError",
    "PreflightEstimationError",
    "ReceiptTimeoutError",
    "RevertedExecution",
    "RpcError",
    "SubmissionError",
]
