"""
Local nonce allocation.

The node's pending nonce is read once at run start.  After that every
attempt takes the next value of a local counter, whether or not the
previous attempt has been confirmed, so the harness never hands out the
same nonce twice.  The node is consulted again only once the run is over
to detect drift.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class NonceAllocator:
    def __init__(self, start: int) -> None:
        if start < 0:
            raise ValueError(f"Nonce must not be negative: {start}")
        self._next = start
        self._issued: list[int] = []

    @classmethod
    def from_node(cls, client, address: str) -> "NonceAllocator":
        start = client.get_pending_nonce(address)
        logger.info("Starting nonce for %s: %d", address, start)
        return cls(start)

    @property
    def next_nonce(self) -> int:
        return self._next

    @property
    def issued(self) -> tuple[int, ...]:
        return tuple(self._issued)

    def allocate(self) -> int:
        nonce = self._next
        self._next += 1
        self._issued.append(nonce)
        return nonce

    def check_drift(self, pending_nonce: int) -> int:
        """Difference between the node's pending nonce and the local counter.

        Negative: some allocated nonces never reached the mempool (rejected
        submissions leave a gap that stalls later ones).  Positive: something
        else sent from this account during the run.
        """
        drift = pending_nonce - self._next
        if drift:
            logger.warning(
                "Nonce drift: node pending nonce %d, local counter %d (%+d)",
                pending_nonce,
                self._next,
                drift,
            )
        return drift
