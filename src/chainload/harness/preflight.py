"""
Preflight checks, run once before the first attempt.

1. Balance below the floor: warning only, the operator may accept a
   partial run.
2. Node chain id differs from the configured one: warning only.
3. No code at the contract address: hard stop.
4. Dry-run gas estimate of the first call: hard stop if the call cannot be
   encoded against the ABI or the estimate fails, with the contract's
   method signatures (and the node's message) so a mismatched ABI or
   argument list is easy to spot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..config import EndpointTarget
from ..errors import (
    CallEncodingError,
    ConfigurationError,
    ContractNotDeployedError,
    EstimationError,
    PreflightEstimationError,
)
from ..node.abi import function_signatures
from ..node.rpc import has_code
from ..utils import format_ether
from .calls import CallBuilder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreflightResult:
    balance: int
    low_balance: bool
    chain_id_matches: bool
    code_size: int
    estimated_gas: int


def run_preflight(
    client,
    target: EndpointTarget,
    address: str,
    calls: CallBuilder,
    balance_floor: int,
) -> PreflightResult:
    """
    Verify funding, chain, deployed code and a dry-run estimate.

    Raises:
        ContractNotDeployedError: If there is no code at the contract address
        CallEncodingError: If the first call cannot be encoded against the ABI
        PreflightEstimationError: If the dry-run estimate fails
        ConnectivityError: If the node cannot be reached
    """
    balance = client.get_balance(address)
    logger.info("Wallet balance: %s", format_ether(balance))
    low_balance = balance < balance_floor
    if low_balance:
        logger.warning(
            "Low balance (%s < %s) may cause transaction failures",
            format_ether(balance),
            format_ether(balance_floor),
        )

    node_chain_id = client.get_chain_id()
    chain_id_matches = node_chain_id == target.chain_id
    if not chain_id_matches:
        logger.warning(
            "Node reports chain id %d but the run is configured for %d; "
            "signed transactions will be rejected",
            node_chain_id,
            target.chain_id,
        )

    code = client.get_code(target.contract_address)
    if not has_code(code):
        logger.error("Contract not found at %s", target.contract_address)
        raise ContractNotDeployedError(target.contract_address)
    code_size = (len(code) - 2) // 2
    logger.info("Contract verified at %s (%d bytes)", target.contract_address, code_size)

    try:
        dry_run_call = calls.call(1)
    except ConfigurationError as exc:
        logger.error("Contract test call could not be built: %s", exc)
        raise CallEncodingError(str(exc), _contract_methods(target.abi)) from exc

    try:
        estimated = client.estimate_gas(dry_run_call)
    except EstimationError as exc:
        logger.error("Contract test call failed: %s", exc.message)
        raise PreflightEstimationError(exc.message, _contract_methods(target.abi)) from exc

    logger.info("Contract method call successful, estimated gas: %d", estimated)
    return PreflightResult(
        balance=balance,
        low_balance=low_balance,
        chain_id_matches=chain_id_matches,
        code_size=code_size,
        estimated_gas=estimated,
    )


def _contract_methods(abi) -> list[str]:
    try:
        return function_signatures(abi)
    except (KeyError, TypeError) as exc:
        logger.error("Error analyzing contract: %s", exc)
        return []

