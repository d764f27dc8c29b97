"""Submission loop tests against the in-memory fake node."""

from __future__ import annotations

import threading

import pytest
from eth_abi import encode

from chainload.errors import ConnectivityError, EstimationError, RpcError
from chainload.harness.calls import CallBuilder
from chainload.harness.fees import fee_parameters
from chainload.harness.loop import LoopSettings, SubmissionLoop
from chainload.harness.nonces import NonceAllocator
from chainload.harness.outcomes import (
    Confirmed,
    EstimationFailed,
    Reverted,
    SubmissionFailed,
)
from chainload.harness.pacing import FixedDelay
from chainload.node.abi import ErrorMessage, Undecodable


def make_loop(fake_node, target, signer, settings=LoopSettings(), clock=None, **kwargs) -> SubmissionLoop:
    sleeps: list[float] = []
    kwargs.setdefault("pacer", FixedDelay(2.0, sleep=sleeps.append))
    loop = SubmissionLoop(
        fake_node,
        signer,
        CallBuilder(target=target, sender=signer.address),
        fee_parameters(target.chain_id),
        NonceAllocator.from_node(fake_node, signer.address),
        settings=settings,
        clock=clock or iter([0.0, 10.0]).__next__,
        **kwargs,
    )
    loop.sleeps = sleeps
    return loop


class TestScenarios:
    """End-to-end runs over scripted node behaviour."""

    def test_happy_path(self, fake_node, target, signer) -> None:
        fake_node.receipts = [(1, 21000)] * 3
        result = make_loop(fake_node, target, signer).run(3)

        report = result.final.report
        assert report.attempted == 3
        assert report.success_count == 3
        assert report.total_gas_used == 63000
        assert result.final.average_gas == 21000
        assert result.final.throughput == pytest.approx(0.3)
        assert all(isinstance(r.outcome, Confirmed) for r in result.records)

    def test_mixed_outcomes(self, fake_node, target, signer, submission_error) -> None:
        fake_node.submit_errors = {2: submission_error(), 4: submission_error()}
        fake_node.receipts = [(1, 30000)] * 3
        result = make_loop(fake_node, target, signer).run(5)

        report = result.final.report
        assert report.attempted == 5
        assert report.success_count == 3
        assert report.total_gas_used == 90000
        assert report.submission_failed == 2
        assert report.success_count == report.attempted - report.failed_count
        kinds = [r.outcome.kind for r in result.records]
        assert kinds == ["confirmed", "submission_failed", "confirmed", "submission_failed", "confirmed"]
        assert result.records[1].outcome.reason == "replacement transaction underpriced"

    def test_zero_attempts(self, fake_node, target, signer) -> None:
        result = make_loop(fake_node, target, signer).run(0)

        assert result.final.report.attempted == 0
        assert result.final.average_gas == 0
        assert result.final.throughput == 0
        assert fake_node.submitted == []
        assert result.nonce_drift is None


class TestNonces:
    """Nonce allocation across a run."""

    def test_nonces_increase_by_one(self, fake_node, target, signer, submission_error) -> None:
        fake_node.submit_errors = {3: submission_error("nonce too low")}
        result = make_loop(fake_node, target, signer).run(6)

        assert result.nonces == [7, 8, 9, 10, 11, 12]
        assert len(set(result.nonces)) == len(result.nonces)

    def test_failed_submission_shows_as_drift(self, fake_node, target, signer, submission_error) -> None:
        fake_node.submit_errors = {2: submission_error(), 4: submission_error()}
        result = make_loop(fake_node, target, signer).run(5)

        # Two nonces were allocated locally but never reached the node.
        assert result.nonce_drift == -2

    def test_no_drift_on_clean_run(self, fake_node, target, signer) -> None:
        result = make_loop(fake_node, target, signer).run(4)
        assert result.nonce_drift == 0


class TestFailureClassification:
    """Every failure becomes an outcome; nothing escapes the loop."""

    def test_connectivity_error_on_submit(self, fake_node, target, signer) -> None:
        fake_node.submit_errors = {1: ConnectivityError("eth_sendRawTransaction: ConnectError")}
        result = make_loop(fake_node, target, signer).run(2)

        first = result.records[0].outcome
        assert isinstance(first, SubmissionFailed)
        assert "ConnectError" in first.reason
        assert isinstance(result.records[1].outcome, Confirmed)

    def test_receipt_timeout_records_submission_failed(self, fake_node, target, signer, receipt_timeout) -> None:
        fake_node.receipt_errors = {1: receipt_timeout("0x" + f"{1:064x}", 5.0)}
        result = make_loop(fake_node, target, signer).run(2)

        first = result.records[0].outcome
        assert isinstance(first, SubmissionFailed)
        assert first.tx_hash == "0x" + f"{1:064x}"
        assert "not confirmed within 5s" in first.reason
        assert result.final.report.success_count == 1

    def test_transport_failure_while_awaiting(self, fake_node, target, signer) -> None:
        fake_node.receipt_errors = {2: ConnectivityError("eth_getTransactionReceipt: ReadTimeout")}
        result = make_loop(fake_node, target, signer).run(3)

        outcome = result.records[1].outcome
        assert isinstance(outcome, SubmissionFailed)
        assert outcome.reason.startswith("receipt polling failed")
        assert result.final.report.success_count == 2

    def test_reverted_receipt_decodes_reason(self, fake_node, target, signer) -> None:
        revert_data = "0x08c379a0" + encode(["string"], ["Amount too large"]).hex()
        fake_node.receipts = [(0, 45000)]
        fake_node.call_error = RpcError("execution reverted: Amount too large", code=3, data=revert_data)
        result = make_loop(fake_node, target, signer).run(1)

        outcome = result.records[0].outcome
        assert isinstance(outcome, Reverted)
        assert outcome.reason == ErrorMessage("Amount too large")
        assert result.final.report.reverted == 1
        assert result.final.report.total_gas_used == 0
        # Replayed at the receipt's block
        assert fake_node.calls[0][1] == 101

    def test_reverted_without_data_is_undecodable(self, fake_node, target, signer) -> None:
        fake_node.receipts = [(0, 45000)]
        fake_node.call_error = RpcError("execution reverted")
        result = make_loop(fake_node, target, signer).run(1)

        reason = result.records[0].outcome.reason
        assert isinstance(reason, Undecodable)
        assert reason.detail == "execution reverted"

    def test_revert_replay_transport_failure_is_swallowed(self, fake_node, target, signer) -> None:
        fake_node.receipts = [(0, 45000)]
        fake_node.call_error = ConnectivityError("eth_call: ConnectError")
        result = make_loop(
            fake_node, target, signer, settings=LoopSettings(trace_reverts=True)
        ).run(1)

        reason = result.records[0].outcome.reason
        assert isinstance(reason, Undecodable)
        assert "replay failed" in reason.detail

    def test_submission_error_revert_data_decoded(self, fake_node, target, signer, submission_error) -> None:
        revert_data = "0x08c379a0" + encode(["string"], ["Paused"]).hex()
        fake_node.submit_errors = {1: submission_error("execution reverted: Paused", data=revert_data)}
        result = make_loop(fake_node, target, signer).run(1)

        outcome = result.records[0].outcome
        assert isinstance(outcome, SubmissionFailed)
        assert outcome.revert == ErrorMessage("Paused")

    def test_estimate_each_failure(self, fake_node, target, signer) -> None:
        fake_node.estimate_error = EstimationError("execution reverted: Invalid receiver")
        settings = LoopSettings(estimate_each=True)
        result = make_loop(fake_node, target, signer, settings=settings).run(3)

        assert all(isinstance(r.outcome, EstimationFailed) for r in result.records)
        assert result.records[0].outcome.reason == "execution reverted: Invalid receiver"
        assert result.final.report.estimation_failed == 3
        assert fake_node.submitted == []


class TestPacingAndCancellation:
    """Delay between attempts and cooperative cancellation."""

    def test_delay_between_attempts_only(self, fake_node, target, signer) -> None:
        loop = make_loop(fake_node, target, signer)
        loop.run(4)
        assert loop.sleeps == [2.0, 2.0, 2.0]

    def test_cancel_stops_after_in_flight_attempt(self, fake_node, target, signer) -> None:
        cancel = threading.Event()
        loop = make_loop(
            fake_node,
            target,
            signer,
            cancel=cancel,
            on_outcome=lambda record: cancel.set(),
        )
        result = loop.run(5)

        assert result.cancelled is True
        assert len(result.records) == 1
        assert len(fake_node.submitted) == 1
        assert loop.sleeps == []

    def test_negative_count_rejected(self, fake_node, target, signer) -> None:
        with pytest.raises(ValueError):
            make_loop(fake_node, target, signer).run(-1)


class TestSignedTransactions:
    """What actually goes over the wire."""

    def test_raw_transactions_are_typed_eip1559(self, fake_node, target, signer) -> None:
        make_loop(fake_node, target, signer).run(2)

        assert len(fake_node.submitted) == 2
        assert all(raw.startswith("0x02") for raw in fake_node.submitted)
        assert fake_node.submitted[0] != fake_node.submitted[1]
