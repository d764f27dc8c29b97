"""
Static EIP-1559 fee policy.

Fees are fixed for the whole run; there is no reaction to mempool
conditions.  The only chain-specific knowledge is the minimum priority fee
some networks enforce (Polygon rejects tips under 25 gwei as underpriced).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..errors import ConfigurationError
from ..utils import format_gwei, gwei

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY_FEE = gwei(30)
DEFAULT_MAX_FEE = gwei(50)
DEFAULT_GAS_LIMIT = 500_000

CHAIN_MIN_PRIORITY_FEE: dict[int, int] = {
    137: gwei(25),  # Polygon PoS
    80002: gwei(25),  # Polygon Amoy
}


@dataclass(frozen=True)
class FeeParameters:
    priority_fee: int
    max_fee: int
    gas_limit: int

    def as_tx_fields(self) -> dict[str, int]:
        return {
            "maxPriorityFeePerGas": self.priority_fee,
            "maxFeePerGas": self.max_fee,
            "gas": self.gas_limit,
        }


def chain_minimum_priority_fee(chain_id: int) -> int:
    return CHAIN_MIN_PRIORITY_FEE.get(chain_id, 0)


def fee_parameters(
    chain_id: int,
    priority_fee: int = DEFAULT_PRIORITY_FEE,
    max_fee: int = DEFAULT_MAX_FEE,
    gas_limit: int = DEFAULT_GAS_LIMIT,
) -> FeeParameters:
    """
    Compute the fee parameters used for every call of a run.

    A priority fee under the chain minimum is raised to the minimum.

    Raises:
        ConfigurationError: If max fee < priority fee, or the gas limit
                            is not positive
    """
    if gas_limit <= 0:
        raise ConfigurationError(f"Gas limit must be positive, got {gas_limit}")
    if priority_fee < 0 or max_fee < 0:
        raise ConfigurationError("Fees must not be negative")

    minimum = chain_minimum_priority_fee(chain_id)
    if priority_fee < minimum:
        logger.warning(
            "Priority fee %s gwei is below the chain %d minimum, using %s gwei",
            format_gwei(priority_fee),
            chain_id,
            format_gwei(minimum),
        )
        priority_fee = minimum

    if max_fee < priority_fee:
        raise ConfigurationError(
            f"Max fee {format_gwei(max_fee)} gwei is below priority fee "
            f"{format_gwei(priority_fee)} gwei; the node would reject every call"
        )

    return FeeParameters(priority_fee=priority_fee, max_fee=max_fee, gas_limit=gas_limit)
