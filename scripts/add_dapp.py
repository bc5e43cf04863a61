#!/usr/bin/python3
from pathlib import Path

import click
from ape import networks
from ape.cli import ConnectedProviderCommand, account_option, network_option

from wallet_infra.config import Configurator
from wallet_infra.constants import DEFAULT_REGISTRY_ID, MULTISIG_WALLET
from wallet_infra.multisig import MultisigExecutor
from wallet_infra.options import (
    auto_option,
    config_bucket_option,
    config_filepath_option,
    config_store_from_options,
    environment_option,
)
from wallet_infra.params import Transactor
from wallet_infra.registry import contracts_from_registry
from wallet_infra.types import ChecksumAddress
from wallet_infra.utils import check_plugins, get_contract_container


@click.command(cls=ConnectedProviderCommand, name="add-dapp")
@network_option(required=True)
@account_option()
@environment_option
@config_filepath_option
@config_bucket_option
@click.option(
    "--dapp",
    "-d",
    help="Address of the dapp wallets will be allowed to call.",
    type=ChecksumAddress(),
    required=True,
)
@click.option(
    "--filter",
    "-f",
    "filter_address",
    help="Address of the filter guarding the dapp; the zero address allows any call.",
    type=ChecksumAddress(),
    required=True,
)
@click.option(
    "--registry-id",
    help="Registry of the DappRegistry to add the dapp to.",
    type=int,
    default=DEFAULT_REGISTRY_ID,
    show_default=True,
)
@click.option(
    "--registry-filepath",
    help="Registry artifact to read the DappRegistry from instead of the configuration.",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    required=False,
)
@click.option(
    "--direct",
    help="Send from the account instead of through the multisig.",
    is_flag=True,
)
@auto_option
def cli(
    network,
    account,
    environment,
    config_filepath,
    config_bucket,
    dapp,
    filter_address,
    registry_id,
    registry_filepath,
    direct,
    auto,
):
    """Register a dapp and its filter in the DappRegistry."""
    check_plugins()
    click.echo(f"Connected to {network.name} network.")

    store = config_store_from_options(environment, config_filepath, config_bucket)
    config = Configurator(store).config

    if registry_filepath:
        chain_id = networks.active_provider.chain_id
        deployments = contracts_from_registry(filepath=registry_filepath, chain_id=chain_id)
        try:
            dapp_registry = deployments["DappRegistry"]
        except KeyError:
            raise ValueError(f"DappRegistry not found in {registry_filepath} for chain {chain_id}")
    else:
        dapp_registry_address = config["contracts"].get("DappRegistry")
        if not dapp_registry_address:
            raise ValueError(f"No DappRegistry address in the {environment} configuration.")
        dapp_registry = get_contract_container("DappRegistry").at(dapp_registry_address)

    transactor = Transactor(account=account, autosign=auto)
    if direct:
        transactor.transact(dapp_registry.addDapp, registry_id, dapp, filter_address)
        return

    multisig = get_contract_container(MULTISIG_WALLET).at(config["contracts"][MULTISIG_WALLET])
    executor = MultisigExecutor(
        multisig=multisig, transactor=transactor, autosign=config["multisig"]["autosign"]
    )
    executor.execute_call(dapp_registry, "addDapp", [registry_id, dapp, filter_address])


if __name__ == "__main__":
    cli()
