"""
chainload CLI

Command-line interface for the chainload contract load-testing harness.

Configuration comes from the environment (optionally a .env file):
RPC_URL, PRIVATE_KEY, CONTRACT_ADDRESS, CHAIN_ID, CHAINLOAD_ABI.
Command-line options override it.

Commands:
  run        - Send N calls and report throughput / gas
  preflight  - Check funding, deployed code and a dry-run estimate
  entries    - Read the contract's entry count
  whoami     - Show the signing address
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from .config import load_env
from .errors import HarnessError
from .identity.eth import get_address, load_private_key


# ============ Constants ============

VERSION = "0.3.0"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def configure_logging(verbosity: int) -> None:
    level = logging.DEBUG if verbosity > 0 else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
    # Per-request chatter from httpx is only useful when debugging.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbosity > 1 else logging.WARNING)


# ============ Main CLI Group ============


@click.group(invoke_without_command=True)
@click.version_option(version=VERSION, prog_name="chainload")
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Load configuration from this .env file (default: ./.env)",
)
@click.option("-v", "--verbose", count=True, help="More logging (-vv includes HTTP requests)")
@click.pass_context
def cli(ctx: click.Context, env_file: Optional[Path], verbose: int) -> None:
    """chainload - contract throughput load testing over JSON-RPC."""
    configure_logging(verbose)
    load_env(env_file)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ============ Top-level Commands ============

from .commands.run import run
from .commands.preflight import preflight
from .commands.entries import entries

cli.add_command(run)
cli.add_command(preflight)
cli.add_command(entries)


# ============ Identity ============


@cli.command()
def whoami() -> None:
    """Show the signing address."""
    try:
        address = get_address(load_private_key())
    except HarnessError as exc:
        click.echo(f"No signing key: {exc}")
        sys.exit(exc.exit_code)
    click.echo(f"Address: {address}")


# ============ Entry Points ============


def main() -> None:
    """chainload CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
