"""
Preflight - Check a target without sending anything.

Runs the same checks `chainload run` performs before its first call:
funding, chain id, deployed code and a dry-run gas estimate.
"""

from __future__ import annotations

from typing import Optional

import click

from ..config import DEFAULT_BALANCE_FLOOR_ETHER, CallArguments
from ..errors import HarnessError
from ..harness.calls import CallBuilder
from ..harness.preflight import run_preflight
from ..identity.eth import SignerIdentity, load_private_key
from ..node.rpc import RpcClient
from ..utils import format_ether
from .common import build_target, fail, parse_ether, target_options


@click.command()
@target_options
@click.option(
    "--balance-floor",
    default=DEFAULT_BALANCE_FLOOR_ETHER,
    help="Warn when the wallet holds less than this (native units)",
)
def preflight(
    rpc_url: Optional[str],
    contract_address: Optional[str],
    chain_id: Optional[int],
    abi_path: Optional[str],
    balance_floor: str,
) -> None:
    """Check funding, deployed code and a dry-run estimate."""
    target = build_target(rpc_url, contract_address, chain_id, abi_path)

    try:
        signer = SignerIdentity.from_key(load_private_key())
    except HarnessError as exc:
        fail(exc)

    floor = parse_ether(balance_floor, "--balance-floor")
    calls = CallBuilder(target=target, sender=signer.address, arguments=CallArguments())

    with RpcClient(target.rpc_url) as client:
        try:
            result = run_preflight(client, target, signer.address, calls, floor)
        except HarnessError as exc:
            fail(exc)

    click.echo(f"  Wallet:        {signer.address}")
    balance_line = f"  Balance:       {format_ether(result.balance)}"
    if result.low_balance:
        click.secho(balance_line + "  (below floor)", fg="yellow")
    else:
        click.echo(balance_line)
    if not result.chain_id_matches:
        click.secho(f"  Chain ID:      node differs from configured {target.chain_id}", fg="yellow")
    click.echo(f"  Contract:      {target.contract_address} ({result.code_size} bytes)")
    click.echo(f"  Estimated gas: {result.estimated_gas}")
    click.secho("Preflight passed.", fg="green")
