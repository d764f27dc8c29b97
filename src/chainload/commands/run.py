"""
Run - Drive a load test against the entry contract.

Flow:
1. Resolve target, signing key and fee parameters (fail fast on bad config)
2. Preflight: balance, chain id, deployed code, dry-run estimate
3. Read the pending nonce once
4. Submit N calls sequentially, awaiting each receipt
5. Print attempted / success / TPS / average gas

Per-call failures are part of the measurement and never change the exit
status; only configuration and preflight faults exit non-zero.
"""

from __future__ import annotations

import json
import signal
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

import click

from ..config import (
    DEFAULT_AMOUNT_ETHER,
    DEFAULT_BALANCE_FLOOR_ETHER,
    DEFAULT_COUNT,
    DEFAULT_DELAY_SECONDS,
    DEFAULT_KEYWORD,
    DEFAULT_MESSAGE_PREFIX,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_RECEIPT_TIMEOUT,
    DEFAULT_RECEIVER,
    CallArguments,
    validate_address,
)
from ..errors import HarnessError
from ..harness.calls import CallBuilder
from ..harness.fees import DEFAULT_GAS_LIMIT, fee_parameters
from ..harness.loop import LoopSettings, SubmissionLoop
from ..harness.metrics import format_report
from ..harness.nonces import NonceAllocator
from ..harness.pacing import AdaptiveBackoff, FixedDelay
from ..harness.preflight import run_preflight
from ..identity.eth import SignerIdentity, load_private_key
from ..node.rpc import RpcClient
from ..utils import format_gwei, gwei
from .common import build_target, fail, parse_ether, target_options


@click.command()
@target_options
@click.option("--count", "-n", default=DEFAULT_COUNT, type=click.IntRange(min=0), help="Number of calls")
@click.option(
    "--delay",
    default=DEFAULT_DELAY_SECONDS,
    type=click.FloatRange(min=0),
    help="Seconds between calls",
)
@click.option(
    "--backoff-max",
    default=None,
    type=click.FloatRange(min=0),
    help="Back off after failures, up to this many seconds",
)
@click.option(
    "--receipt-timeout",
    default=DEFAULT_RECEIPT_TIMEOUT,
    type=click.FloatRange(min=0),
    help="Give up on a receipt after N seconds (0 = wait forever)",
)
@click.option("--poll-interval", default=DEFAULT_POLL_INTERVAL, type=click.FloatRange(min=0.05))
@click.option("--priority-fee-gwei", default=30.0, type=click.FloatRange(min=0), help="maxPriorityFeePerGas")
@click.option("--max-fee-gwei", default=50.0, type=click.FloatRange(min=0), help="maxFeePerGas")
@click.option("--gas-limit", default=DEFAULT_GAS_LIMIT, type=int, help="Gas limit per call")
@click.option(
    "--balance-floor",
    default=DEFAULT_BALANCE_FLOOR_ETHER,
    help="Warn when the wallet holds less than this (native units)",
)
@click.option("--receiver", default=DEFAULT_RECEIVER, help="addEntry receiver argument")
@click.option("--amount", "amount_ether", default=DEFAULT_AMOUNT_ETHER, help="addEntry amount (native units)")
@click.option("--message-prefix", default=DEFAULT_MESSAGE_PREFIX, help="addEntry message prefix")
@click.option("--keyword", default=DEFAULT_KEYWORD, help="addEntry keyword argument")
@click.option("--estimate-each", is_flag=True, help="Estimate gas before every call")
@click.option("--trace-reverts", is_flag=True, help="Fetch debug traces for reverted calls")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
def run(
    rpc_url: Optional[str],
    contract_address: Optional[str],
    chain_id: Optional[int],
    abi_path: Optional[str],
    count: int,
    delay: float,
    backoff_max: Optional[float],
    receipt_timeout: float,
    poll_interval: float,
    priority_fee_gwei: float,
    max_fee_gwei: float,
    gas_limit: int,
    balance_floor: str,
    receiver: str,
    amount_ether: str,
    message_prefix: str,
    keyword: str,
    estimate_each: bool,
    trace_reverts: bool,
    as_json: bool,
) -> None:
    """
    Send COUNT addEntry calls and report throughput and gas.

    Calls are sent one at a time from your wallet; each receipt is awaited
    before the next nonce is used.
    """
    target = build_target(rpc_url, contract_address, chain_id, abi_path)

    try:
        signer = SignerIdentity.from_key(load_private_key())
        fees = fee_parameters(
            target.chain_id,
            priority_fee=gwei(priority_fee_gwei),
            max_fee=gwei(max_fee_gwei),
            gas_limit=gas_limit,
        )
        arguments = CallArguments(
            receiver=validate_address(receiver, "receiver"),
            amount=parse_ether(amount_ether, "--amount"),
            message_prefix=message_prefix,
            keyword=keyword,
        )
        floor = parse_ether(balance_floor, "--balance-floor")
    except HarnessError as exc:
        fail(exc)

    if backoff_max is not None:
        pacer = AdaptiveBackoff(base=delay, maximum=max(delay, backoff_max))
    else:
        pacer = FixedDelay(delay)

    settings = LoopSettings(
        poll_interval=poll_interval,
        receipt_timeout=receipt_timeout or None,
        estimate_each=estimate_each,
        trace_reverts=trace_reverts,
    )

    calls = CallBuilder(target=target, sender=signer.address, arguments=arguments)

    with RpcClient(target.rpc_url) as client:
        try:
            run_preflight(client, target, signer.address, calls, floor)
            allocator = NonceAllocator.from_node(client, signer.address)
        except HarnessError as exc:
            fail(exc)

        if not as_json:
            click.echo(f"Sending {count} transactions to {target.contract_address} (chain {target.chain_id})")
            click.echo(f"  maxPriorityFeePerGas: {format_gwei(fees.priority_fee)} gwei")
            click.echo(f"  maxFeePerGas:         {format_gwei(fees.max_fee)} gwei")
            click.echo(f"  gasLimit:             {fees.gas_limit}")

        cancel = threading.Event()
        loop = SubmissionLoop(
            client,
            signer,
            calls,
            fees,
            allocator,
            settings=settings,
            pacer=pacer,
            cancel=cancel,
        )
        with _cancel_on_interrupt(cancel):
            result = loop.run(count)

    if as_json:
        payload = result.final.to_dict()
        payload["nonce_drift"] = result.nonce_drift
        payload["cancelled"] = result.cancelled
        click.echo(json.dumps(payload, indent=2))
        return

    click.echo("")
    for line in format_report(result.final):
        click.echo(line)
    if result.cancelled:
        click.secho("  (run cancelled before all calls were sent)", fg="yellow")
    if result.nonce_drift:
        click.secho(f"  Nonce drift after run: {result.nonce_drift:+d}", fg="yellow")


@contextmanager
def _cancel_on_interrupt(cancel: threading.Event) -> Iterator[None]:
    """First Ctrl-C lets the in-flight call finish and stops the run; the second aborts."""

    def handle(signum, frame) -> None:
        if cancel.is_set():
            raise KeyboardInterrupt
        click.secho("Interrupt: finishing the current call, then stopping.", fg="yellow", err=True)
        cancel.set()

    if threading.current_thread() is not threading.main_thread():
        yield
        return

    previous = signal.signal(signal.SIGINT, handle)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)
