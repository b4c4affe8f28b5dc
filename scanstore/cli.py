"""CLI entry point: scanstore.

Subcommands:
    scanstore -c config.yml list-packages             # Identifiers with stored results
    scanstore -c config.yml show Maven:org:lib:1.0    # Stored results for one identifier
"""

from __future__ import annotations

import sys

import click

from scanstore.config import load_configuration
from scanstore.core.logging import setup_logging
from scanstore.exceptions import ConfigurationError, ScanStoreError, StorageError
from scanstore.model import Identifier
from scanstore.serialization import container_to_yaml
from scanstore.storage import storage


def _configure_storage(config_path: str | None) -> None:
    if config_path is None:
        storage.reset()
        return
    try:
        storage.configure_from(load_configuration(config_path))
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)
    except (ScanStoreError, ValueError) as e:
        click.echo(f"Error: could not set up storage from {config_path}: {e}", err=True)
        sys.exit(1)


@click.group()
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    envvar="SCANSTORE_CONFIG",
    default=None,
    help="Storage configuration file (YAML)",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """scanstore: inspect the scan results storage."""
    try:
        setup_logging("DEBUG" if verbose else None)
    except ValueError as e:
        raise click.UsageError(str(e)) from e
    ctx.obj = {"config_path": config_path}


@main.command("list-packages")
@click.pass_context
def list_packages(ctx: click.Context) -> None:
    """List the identifiers that have stored scan results."""
    _configure_storage(ctx.obj["config_path"])
    try:
        packages = storage.list_packages()
    except StorageError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    finally:
        storage.backend.close()

    for id in packages:
        click.echo(id.to_coordinates())


@main.command("show")
@click.argument("coordinates")
@click.pass_context
def show(ctx: click.Context, coordinates: str) -> None:
    """Print the stored scan results for COORDINATES (type:namespace:name:version)."""
    _configure_storage(ctx.obj["config_path"])
    try:
        container = storage.read(Identifier.from_coordinates(coordinates))
    finally:
        storage.backend.close()

    if container.is_empty():
        click.echo(f"No stored scan results for {coordinates}.", err=True)
    else:
        click.echo(container_to_yaml(container), nl=False)

    stats = storage.stats
    click.echo(f"Reads: {stats.num_reads}, hits: {stats.num_hits}", err=True)
