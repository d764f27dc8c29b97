"""
Entries - Read how many entries the contract holds.

Handy before and after a run: the difference should match the number of
confirmed calls.
"""

from __future__ import annotations

from typing import Optional

import click

from ..config import COUNT_METHOD
from ..errors import HarnessError
from ..node.abi import decode_result, encode_call
from ..node.rpc import RpcClient
from .common import build_target, fail, target_options


def read_entry_count(client, target) -> int:
    data = client.call(
        {"to": target.contract_address, "data": encode_call(target.abi, COUNT_METHOD, [])}
    )
    if data in ("", "0x"):
        return 0
    return int(decode_result(target.abi, COUNT_METHOD, data))


@click.command()
@target_options
def entries(
    rpc_url: Optional[str],
    contract_address: Optional[str],
    chain_id: Optional[int],
    abi_path: Optional[str],
) -> None:
    """Show the contract's entry count."""
    target = build_target(rpc_url, contract_address, chain_id, abi_path)

    with RpcClient(target.rpc_url) as client:
        try:
            count = read_entry_count(client, target)
        except HarnessError as exc:
            fail(exc)

    click.echo(f"Entries: {count}")
