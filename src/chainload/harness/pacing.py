"""
Pacing between attempts.

The loop calls ``wait(outcome)`` after each attempt except the last.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Protocol

from .outcomes import CallOutcome, Confirmed

logger = logging.getLogger(__name__)


class Pacer(Protocol):
    def wait(self, outcome: CallOutcome) -> None:
        ...


class FixedDelay:
    def __init__(self, seconds: float, sleep: Callable[[float], None] = time.sleep) -> None:
        if seconds < 0:
            raise ValueError("Delay must not be negative")
        self.seconds = seconds
        self._sleep = sleep

    def wait(self, outcome: CallOutcome) -> None:
        if self.seconds:
            logger.debug("Waiting %.2fs before next transaction", self.seconds)
            self._sleep(self.seconds)


class AdaptiveBackoff:
    """Grow the delay after every non-confirmed outcome, reset on success."""

    def __init__(
        self,
        base: float,
        maximum: float,
        factor: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if base < 0 or maximum < base or factor < 1:
            raise ValueError("Backoff needs 0 <= base <= maximum and factor >= 1")
        self.base = base
        self.maximum = maximum
        self.factor = factor
        self.current = base
        self._sleep = sleep

    def wait(self, outcome: CallOutcome) -> None:
        if isinstance(outcome, Confirmed):
            self.current = self.base
        else:
            # A zero base still backs off, starting from one second.
            grown = max(self.current, self.base) * self.factor or 1.0
            self.current = min(self.maximum, grown)
            logger.info("Backing off: next delay %.2fs", self.current)
        if self.current:
            self._sleep(self.current)
