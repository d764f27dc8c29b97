from __future__ import annotations

import sys
from typing import Callable, NoReturn, Optional

import click

from ..config import EndpointTarget
from ..errors import HarnessError
from ..utils import ether


class ChainIdType(click.ParamType):
    """Integer chain id written in decimal or 0x-prefixed hex."""

    name = "chain_id"

    def convert(self, value, param, ctx):
        if isinstance(value, int):
            return value
        try:
            return int(value, 0)
        except ValueError:
            self.fail(f"{value!r} is not a decimal or 0x-hex integer", param, ctx)


CHAIN_ID = ChainIdType()


def target_options(func: Callable) -> Callable:
    """Options shared by every command that talks to the contract."""
    options = [
        click.option("--rpc-url", envvar="RPC_URL", default=None, help="Node JSON-RPC URL"),
        click.option(
            "--contract",
            "contract_address",
            envvar="CONTRACT_ADDRESS",
            default=None,
            help="Target contract address",
        ),
        click.option(
            "--chain-id",
            type=CHAIN_ID,
            default=None,
            help="Chain ID, decimal or 0x-hex (default: $CHAIN_ID or 80002)",
        ),
        click.option(
            "--abi",
            "abi_path",
            envvar="CHAINLOAD_ABI",
            default=None,
            help="Hardhat/Foundry artifact or ABI JSON (default: built-in)",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_target(
    rpc_url: Optional[str],
    contract_address: Optional[str],
    chain_id: Optional[int],
    abi_path: Optional[str],
) -> EndpointTarget:
    try:
        return EndpointTarget.build(
            rpc_url=rpc_url,
            contract_address=contract_address,
            chain_id=chain_id,
            abi_path=abi_path,
        )
    except HarnessError as exc:
        fail(exc)


def fail(exc: HarnessError) -> NoReturn:
    click.secho(f"ERROR: {exc}", fg="red", err=True)
    sys.exit(exc.exit_code)


def parse_ether(value: str, option: str) -> int:
    """Parse a native-token amount such as ``0.1`` into wei."""
    try:
        amount = ether(value)
    except (ArithmeticError, ValueError) as exc:
        raise click.BadParameter(f"not a valid amount: {value!r}", param_hint=option) from exc
    if amount < 0:
        raise click.BadParameter("must not be negative", param_hint=option)
    return amount
