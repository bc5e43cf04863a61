#!/usr/bin/python3

from itertools import groupby
from pathlib import Path

import click

from wallet_infra.config import Configurator
from wallet_infra.options import (
    config_bucket_option,
    config_filepath_option,
    config_store_from_options,
    environment_option,
)
from wallet_infra.registry import read_registry


def _display_section(title: str, section: dict) -> None:
    click.secho(f"    {title}", fg="yellow")
    for index, (name, address) in enumerate(section.items(), start=1):
        click.secho(f"        {index}. {name} {address}", fg="cyan")


def _display_registry(registry_filepath: Path) -> None:
    entries = read_registry(filepath=registry_filepath)
    click.secho(f"\nRegistry {registry_filepath}", fg="green")
    for chain_id, chain_entries in groupby(entries, key=lambda e: e.chain_id):
        click.secho(f"    Chain {chain_id}", fg="yellow")
        for index, entry in enumerate(chain_entries, start=1):
            click.secho(
                f"        {index}. {entry.name} {entry.address} (block {entry.block_number})",
                fg="cyan",
            )


@click.command(name="list-contracts")
@environment_option
@config_filepath_option
@config_bucket_option
@click.option(
    "--registry-filepath",
    "-r",
    help="Also list the entries of a registry artifact.",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    required=False,
)
def cli(environment, config_filepath, config_bucket, registry_filepath):
    """List the contract addresses of an environment."""
    store = config_store_from_options(environment, config_filepath, config_bucket)
    config = Configurator(store).config

    click.secho(f"\n{environment.capitalize()} Environment", fg="green")
    _display_section("Contracts", config["contracts"])
    _display_section("Modules", config["modules"])
    if config.get("git_commit"):
        click.secho(f"    Commit {config['git_commit']}", fg="yellow")

    if registry_filepath:
        _display_registry(registry_filepath)


if __name__ == "__main__":
    cli()
