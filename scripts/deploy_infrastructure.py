#!/usr/bin/python3

import click
from ape.cli import ConnectedProviderCommand, account_option, network_option

from wallet_infra.config import Configurator
from wallet_infra.infrastructure import run
from wallet_infra.options import (
    auto_option,
    config_bucket_option,
    config_filepath_option,
    config_store_from_options,
    environment_option,
)
from wallet_infra.params import Deployer
from wallet_infra.storage import AbiUploader, abi_store_from_config
from wallet_infra.utils import get_artifact_filepath


@click.command(cls=ConnectedProviderCommand, name="deploy-infrastructure")
@network_option(required=True)
@account_option()
@environment_option
@config_filepath_option
@config_bucket_option
@click.option(
    "--verify",
    help="Publish the infrastructure contracts to the block explorer.",
    is_flag=True,
)
@auto_option
def cli(network, account, environment, config_filepath, config_bucket, verify, auto):
    """
    Deploy the wallet infrastructure (BaseWallet, WalletFactory, DappRegistry,
    MultiCallHelper, TokenRegistry), register the dapp filters and hand
    ownership over to the multisig.

    ape run deploy_infrastructure --network ethereum:mainnet:infura -e prod --verify
    """
    click.echo(f"Connected to {network.name} network.")

    store = config_store_from_options(environment, config_filepath, config_bucket)
    configurator = Configurator(store)
    config = configurator.config

    deployer = Deployer(
        chain_id=configurator.chain_id,
        environment=environment,
        registry_filepath=get_artifact_filepath(config),
        verify=verify,
        account=account,
        autosign=auto,
    )
    abi_uploader = AbiUploader(abi_store_from_config(config, environment))

    infrastructure = run(
        deployer=deployer,
        configurator=configurator,
        abi_uploader=abi_uploader,
        environment=environment,
    )

    click.secho("\nInfrastructure deployed", fg="green")
    for name, instance in infrastructure.items():
        click.secho(f"    {name} {instance.address}", fg="cyan")


if __name__ == "__main__":
    cli()
