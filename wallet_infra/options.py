from pathlib import Path

import click

from wallet_infra.constants import CONFIG_DIR, SUPPORTED_ENVIRONMENTS
from wallet_infra.storage import ConfigStore, LocalConfigStore, S3ConfigStore

environment_option = click.option(
    "--environment",
    "-e",
    help="Wallet platform environment",
    type=click.Choice(SUPPORTED_ENVIRONMENTS),
    required=True,
)

config_filepath_option = click.option(
    "--config-filepath",
    "-c",
    help="Local configuration file; defaults to the environment's file in the config directory",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    required=False,
)

config_bucket_option = click.option(
    "--config-bucket",
    help="S3 bucket holding the configuration under <environment>/backend/config.json",
    type=str,
    required=False,
)

auto_option = click.option(
    "--auto",
    help="Automatically sign transactions.",
    is_flag=True,
)


def config_store_from_options(
    environment: str, config_filepath: Path, config_bucket: str
) -> ConfigStore:
    if config_filepath and config_bucket:
        raise click.BadOptionUsage(
            option_name="--config-bucket",
            message="Provide either '--config-filepath' or '--config-bucket', not both.",
        )
    if config_bucket:
        return S3ConfigStore(bucket=config_bucket, key=f"{environment}/backend/config.json")
    return LocalConfigStore(path=config_filepath or CONFIG_DIR / f"{environment}.yml")
