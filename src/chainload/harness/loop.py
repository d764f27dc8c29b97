"""
Submission loop.

Each attempt moves ``Pending -> Submitted -> Confirmed | Reverted``, or
ends early as ``SubmissionFailed`` / ``EstimationFailed``.  Attempts are
strictly sequential: one is submitted and awaited before the next nonce is
allocated.  Every per-attempt failure is caught, logged with the attempt
index and folded into the report; the loop itself only stops when the
count is reached or cancellation is requested.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..errors import (
    ConnectivityError,
    EstimationError,
    ReceiptTimeoutError,
    RpcError,
    SubmissionError,
)
from ..identity.eth import SignerIdentity
from ..node.abi import RevertReason, Undecodable, decode_revert
from ..node.rpc import Receipt
from ..utils import utc_now_rfc3339
from .calls import CallBuilder
from .fees import FeeParameters
from .metrics import FinalReport, RunReport, finalize, fold
from .nonces import NonceAllocator
from .outcomes import (
    AttemptRecord,
    CallAttempt,
    CallOutcome,
    Confirmed,
    EstimationFailed,
    Reverted,
    SubmissionFailed,
    describe,
)
from .pacing import FixedDelay, Pacer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoopSettings:
    poll_interval: float = 2.0
    # None waits for a receipt indefinitely
    receipt_timeout: Optional[float] = 120.0
    estimate_each: bool = False
    trace_reverts: bool = False


@dataclass(frozen=True)
class RunResult:
    final: FinalReport
    records: list[AttemptRecord] = field(default_factory=list)
    nonce_drift: Optional[int] = None
    cancelled: bool = False

    @property
    def nonces(self) -> list[int]:
        return [r.attempt.nonce for r in self.records]


class SubmissionLoop:
    def __init__(
        self,
        client,
        signer: SignerIdentity,
        calls: CallBuilder,
        fees: FeeParameters,
        allocator: NonceAllocator,
        settings: LoopSettings = LoopSettings(),
        pacer: Optional[Pacer] = None,
        cancel: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
        on_outcome: Optional[Callable[[AttemptRecord], None]] = None,
    ) -> None:
        self.client = client
        self.signer = signer
        self.calls = calls
        self.fees = fees
        self.allocator = allocator
        self.settings = settings
        self.pacer = pacer if pacer is not None else FixedDelay(2.0)
        self.cancel = cancel or threading.Event()
        self.clock = clock
        self.on_outcome = on_outcome

    def run(self, count: int) -> RunResult:
        if count < 0:
            raise ValueError(f"Count must not be negative: {count}")

        report = RunReport.empty()
        records: list[AttemptRecord] = []
        cancelled = False
        start = self.clock()

        for index in range(1, count + 1):
            if self.cancel.is_set():
                logger.warning("Cancelled before transaction %d; stopping", index)
                cancelled = True
                break

            attempt = CallAttempt(
                index=index,
                nonce=self.allocator.allocate(),
                fees=self.fees,
                submitted_at=utc_now_rfc3339(),
            )
            logger.info("Preparing transaction %d (nonce %d)", index, attempt.nonce)

            outcome = self._attempt(attempt)
            record = AttemptRecord(attempt=attempt, outcome=outcome)
            records.append(record)
            report = fold(report, outcome)

            if isinstance(outcome, Confirmed):
                logger.info("Tx %d: %s", index, describe(outcome))
            else:
                logger.error("Tx %d failed: %s", index, describe(outcome))

            if self.on_outcome is not None:
                self.on_outcome(record)

            if index < count and not self.cancel.is_set():
                self.pacer.wait(outcome)

        duration = self.clock() - start
        final = finalize(report, duration)
        return RunResult(
            final=final,
            records=records,
            nonce_drift=self._drift(),
            cancelled=cancelled,
        )

    # ------------------------------------------------------------------

    def _attempt(self, attempt: CallAttempt) -> CallOutcome:
        index = attempt.index

        if self.settings.estimate_each:
            try:
                self.client.estimate_gas(self.calls.call(index))
            except EstimationError as exc:
                return EstimationFailed(reason=exc.message)
            except ConnectivityError as exc:
                return EstimationFailed(reason=str(exc))

        tx = self.calls.transaction(index, attempt.nonce, attempt.fees)
        try:
            raw_tx = self.signer.sign(tx)
        except (ValueError, TypeError) as exc:
            return SubmissionFailed(reason=f"signing failed: {exc}")

        try:
            tx_hash = self.client.submit(raw_tx)
        except SubmissionError as exc:
            revert = decode_revert(exc.data, self.calls.target.abi) if exc.data is not None else None
            return SubmissionFailed(reason=exc.message, revert=revert)
        except (ConnectivityError, RpcError) as exc:
            return SubmissionFailed(reason=str(exc))

        logger.info("Transaction sent: %s, waiting for confirmation", tx_hash)

        try:
            receipt = self.client.await_receipt(
                tx_hash,
                poll_interval=self.settings.poll_interval,
                timeout=self.settings.receipt_timeout,
            )
        except ReceiptTimeoutError as exc:
            return SubmissionFailed(reason=str(exc), tx_hash=tx_hash)
        except (ConnectivityError, RpcError) as exc:
            return SubmissionFailed(reason=f"receipt polling failed: {exc}", tx_hash=tx_hash)

        if not receipt.succeeded:
            return Reverted(
                tx_hash=tx_hash,
                gas_used=receipt.gas_used,
                reason=self._explain_revert(index, receipt),
            )
        return Confirmed(tx_hash=tx_hash, gas_used=receipt.gas_used)

    def _explain_revert(self, index: int, receipt: Receipt) -> RevertReason:
        """Replay the reverted call at its block to recover the reason.

        Best effort: any failure is logged and reported as undecodable.
        """
        call = self.calls.call(index)
        try:
            self.client.call(call, block=receipt.block_number)
        except RpcError as exc:
            reason = decode_revert(exc.data, self.calls.target.abi)
            if isinstance(reason, Undecodable) and exc.message:
                reason = Undecodable(raw=reason.raw, detail=exc.message)
        except ConnectivityError as exc:
            logger.warning("Tx %d: could not replay reverted call: %s", index, exc)
            reason = Undecodable(raw="", detail=f"replay failed: {exc}")
        else:
            # The replay succeeded, so state changed between mining and replay.
            reason = Undecodable(raw="", detail="replay did not revert")

        if isinstance(reason, Undecodable):
            logger.info("Tx %d: could not decode revert reason (%s)", index, reason.detail)

        if self.settings.trace_reverts:
            try:
                trace = self.client.trace_transaction(receipt.tx_hash)
                logger.debug("Tx %d trace: %s", index, trace)
            except (RpcError, ConnectivityError) as exc:
                logger.info("Tx %d: trace not available: %s", index, exc)

        return reason

    def _drift(self) -> Optional[int]:
        if not self.allocator.issued:
            return None
        try:
            pending = self.client.get_pending_nonce(self.signer.address)
        except (ConnectivityError, RpcError) as exc:
            logger.warning("Could not read pending nonce after run: %s", exc)
            return None
        return self.allocator.check_drift(pending)
