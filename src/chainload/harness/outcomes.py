from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from ..node.abi import RevertReason
from .fees import FeeParameters


@dataclass(frozen=True)
class CallAttempt:
    index: int
    nonce: int
    fees: FeeParameters
    submitted_at: str


@dataclass(frozen=True)
class Confirmed:
    tx_hash: str
    gas_used: int
    kind: str = "confirmed"


@dataclass(frozen=True)
class Reverted:
    tx_hash: str
    gas_used: int
    reason: Optional[RevertReason] = None
    kind: str = "reverted"


@dataclass(frozen=True)
class SubmissionFailed:
    reason: str
    tx_hash: Optional[str] = None
    revert: Optional[RevertReason] = None
    kind: str = "submission_failed"


@dataclass(frozen=True)
class EstimationFailed:
    reason: str
    kind: str = "estimation_failed"


CallOutcome = Union[Confirmed, Reverted, SubmissionFailed, EstimationFailed]


@dataclass(frozen=True)
class AttemptRecord:
    attempt: CallAttempt
    outcome: CallOutcome


def describe(outcome: CallOutcome) -> str:
    if isinstance(outcome, Confirmed):
        return f"{outcome.tx_hash} ({outcome.gas_used} gas used)"
    if isinstance(outcome, Reverted):
        why = outcome.reason.describe() if outcome.reason is not None else "unknown reason"
        return f"{outcome.tx_hash} reverted: {why}"
    if isinstance(outcome, SubmissionFailed):
        suffix = f" [{outcome.revert.describe()}]" if outcome.revert is not None else ""
        return f"submission failed: {outcome.reason}{suffix}"
    return f"estimation failed: {outcome.reason}"
