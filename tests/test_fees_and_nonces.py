"""Unit tests for the fee policy, nonce allocator and pacing strategies."""

from __future__ import annotations

import pytest

from chainload.errors import ConfigurationError
from chainload.harness.fees import (
    DEFAULT_GAS_LIMIT,
    chain_minimum_priority_fee,
    fee_parameters,
)
from chainload.harness.nonces import NonceAllocator
from chainload.harness.outcomes import Confirmed, SubmissionFailed
from chainload.harness.pacing import AdaptiveBackoff, FixedDelay
from chainload.utils import gwei


class TestFeePolicy:
    def test_defaults(self) -> None:
        fees = fee_parameters(80002)
        assert fees.priority_fee == gwei(30)
        assert fees.max_fee == gwei(50)
        assert fees.gas_limit == DEFAULT_GAS_LIMIT

    def test_tx_fields(self) -> None:
        fields = fee_parameters(1, priority_fee=gwei(2), max_fee=gwei(3), gas_limit=60000).as_tx_fields()
        assert fields == {"maxPriorityFeePerGas": gwei(2), "maxFeePerGas": gwei(3), "gas": 60000}

    def test_priority_raised_to_chain_minimum(self) -> None:
        fees = fee_parameters(80002, priority_fee=gwei(1), max_fee=gwei(50))
        assert fees.priority_fee == chain_minimum_priority_fee(80002) == gwei(25)

    def test_unknown_chain_has_no_minimum(self) -> None:
        assert fee_parameters(31337, priority_fee=0, max_fee=gwei(1)).priority_fee == 0

    def test_max_below_priority_fails_fast(self) -> None:
        with pytest.raises(ConfigurationError, match="below priority fee"):
            fee_parameters(1, priority_fee=gwei(30), max_fee=gwei(20))

    def test_max_below_chain_minimum_fails_fast(self) -> None:
        # The raised priority fee must still fit under the max fee.
        with pytest.raises(ConfigurationError):
            fee_parameters(137, priority_fee=gwei(1), max_fee=gwei(10))

    def test_gas_limit_must_be_positive(self) -> None:
        with pytest.raises(ConfigurationError):
            fee_parameters(1, gas_limit=0)


class _Node:
    def __init__(self, pending: int) -> None:
        self.pending = pending
        self.queries = 0

    def get_pending_nonce(self, address: str) -> int:
        self.queries += 1
        return self.pending


class TestNonceAllocator:
    def test_sequence(self) -> None:
        allocator = NonceAllocator(5)
        assert [allocator.allocate() for _ in range(4)] == [5, 6, 7, 8]
        assert allocator.issued == (5, 6, 7, 8)
        assert allocator.next_nonce == 9

    def test_from_node_queries_once(self) -> None:
        node = _Node(42)
        allocator = NonceAllocator.from_node(node, "0x" + "00" * 20)
        for _ in range(10):
            allocator.allocate()
        assert node.queries == 1
        assert allocator.issued[0] == 42
        assert allocator.issued[-1] == 51

    def test_drift(self) -> None:
        allocator = NonceAllocator(0)
        for _ in range(3):
            allocator.allocate()
        assert allocator.check_drift(3) == 0
        assert allocator.check_drift(2) == -1
        assert allocator.check_drift(5) == 2

    def test_negative_start_rejected(self) -> None:
        with pytest.raises(ValueError):
            NonceAllocator(-1)


class TestPacing:
    def test_fixed_delay(self) -> None:
        sleeps: list[float] = []
        pacer = FixedDelay(1.5, sleep=sleeps.append)
        pacer.wait(Confirmed(tx_hash="0x01", gas_used=1))
        pacer.wait(SubmissionFailed(reason="x"))
        assert sleeps == [1.5, 1.5]

    def test_zero_delay_does_not_sleep(self) -> None:
        sleeps: list[float] = []
        FixedDelay(0, sleep=sleeps.append).wait(Confirmed(tx_hash="0x01", gas_used=1))
        assert sleeps == []

    def test_backoff_grows_and_resets(self) -> None:
        sleeps: list[float] = []
        pacer = AdaptiveBackoff(base=1.0, maximum=5.0, sleep=sleeps.append)
        failure = SubmissionFailed(reason="x")
        for _ in range(4):
            pacer.wait(failure)
        pacer.wait(Confirmed(tx_hash="0x01", gas_used=1))
        assert sleeps == [2.0, 4.0, 5.0, 5.0, 1.0]

    def test_backoff_from_zero_base(self) -> None:
        sleeps: list[float] = []
        pacer = AdaptiveBackoff(base=0.0, maximum=3.0, sleep=sleeps.append)
        for _ in range(3):
            pacer.wait(SubmissionFailed(reason="x"))
        pacer.wait(Confirmed(tx_hash="0x01", gas_used=1))
        assert sleeps == [1.0, 2.0, 3.0]

    def test_backoff_validation(self) -> None:
        with pytest.raises(ValueError):
            AdaptiveBackoff(base=3.0, maximum=1.0)
