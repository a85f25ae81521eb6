"""
Vigie CLI.

Usage:
    vigie watch <tx_hash> [--config CONFIG] [--rpc-url URL] [--ws-url URL]
                          [--confirmations N]
    vigie config [--config CONFIG]
"""

import asyncio
import sys

import click
import yaml

from vigie.config.settings import VigieConfig, load_config
from vigie.domain.exceptions import VigieException


def _settings(config, **overrides) -> VigieConfig:
    """Load config file and apply command line overrides."""
    settings = load_config(config)
    updates = {key: value for key, value in overrides.items() if value is not None}
    if updates:
        settings = VigieConfig(
            **{**settings.model_dump(exclude={"polling_interval"}), **updates}
        )
    return settings


@click.group()
def cli():
    """Vigie - Transaction Confirmation Watcher."""


@cli.command()
@click.argument("tx_hash")
@click.option("--config", "-c", default=None, help="Config file")
@click.option("--rpc-url", default=None, help="HTTP JSON-RPC endpoint")
@click.option("--ws-url", default=None, help="WebSocket JSON-RPC endpoint")
@click.option(
    "--confirmations",
    "-n",
    type=click.IntRange(min=1),
    default=None,
    help="Confirmation threshold",
)
def watch(tx_hash, config, rpc_url, ws_url, confirmations):
    """Watch a mined transaction until it is confirmed."""
    from vigie.cli.watch import watch_transaction

    settings = _settings(
        config,
        rpc_url=rpc_url,
        ws_url=ws_url,
        transaction_confirmation_blocks=confirmations,
    )

    click.echo(
        f"Watching {tx_hash} "
        f"({settings.transaction_confirmation_blocks} confirmations)..."
    )
    try:
        status = asyncio.run(watch_transaction(settings, tx_hash, echo=click.echo))
    except VigieException as e:
        click.echo(f"Watch failed: {e.message}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("Watch cancelled", err=True)
        sys.exit(130)

    click.echo(f"Watch finished: {status.value}")


@cli.command(name="config")
@click.option("--config", "-c", default=None, help="Config file")
def show_config(config):
    """Print the effective configuration."""
    settings = load_config(config)
    click.echo(yaml.safe_dump(settings.model_dump(mode="json"), sort_keys=False))


def main():
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
