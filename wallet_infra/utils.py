import itertools
import json
import os
import subprocess
from pathlib import Path
from typing import Dict, Iterable, Iterator, List

import yaml
from ape import networks, project
from ape.contracts import ContractContainer, ContractInstance
from eth_utils import keccak

from wallet_infra.constants import ARTIFACTS_DIR, LOCAL_NETWORKS


def _load_yaml(filepath: Path) -> dict:
    """Loads a YAML file."""
    with open(filepath, "r") as file:
        return yaml.safe_load(file)


def _load_json(filepath: Path) -> dict:
    """Loads a JSON file."""
    with open(filepath, "r") as file:
        return json.load(file)


def is_local_network() -> bool:
    return networks.provider.network.name in LOCAL_NETWORKS


def get_artifact_filepath(config: Dict) -> Path:
    """Returns the filepath of the registry artifact file."""
    artifact_config = config.get("artifacts", {})
    artifact_dir = Path(artifact_config.get("dir", ARTIFACTS_DIR))
    filename = artifact_config.get("filename")
    if not filename:
        raise ValueError("artifact filename is not set in configuration.")
    return artifact_dir / filename


def _any_envvar_set(envvars: Iterable[str]) -> bool:
    return any(os.environ.get(envvar) for envvar in envvars)


def check_etherscan_plugin() -> None:
    """Source verification needs the explorer API key of the connected ecosystem."""
    if is_local_network():
        return
    try:
        from ape_etherscan.utils import API_KEY_ENV_KEY_MAP
    except ImportError:
        raise ImportError("ape-etherscan is required to verify the infrastructure contracts.")
    envvar = API_KEY_ENV_KEY_MAP.get(networks.provider.network.ecosystem.name)
    if not envvar or not _any_envvar_set([envvar]):
        raise ValueError(f"{envvar or 'Explorer API key'} is not set.")


def check_infura_plugin() -> None:
    """Connecting through Infura needs one of its API key variables."""
    if is_local_network() or networks.provider.name != "infura":
        return
    try:
        from ape_infura.provider import _API_KEY_ENVIRONMENT_VARIABLE_NAMES
    except ImportError:
        raise ImportError("ape-infura is required to connect through Infura.")
    if not _any_envvar_set(_API_KEY_ENVIRONMENT_VARIABLE_NAMES):
        raise ValueError(
            f"Set one of {', '.join(_API_KEY_ENVIRONMENT_VARIABLE_NAMES)} to use Infura."
        )


def check_plugins(verify: bool = False) -> None:
    print("Checking plugins...")
    if verify:
        check_etherscan_plugin()
    check_infura_plugin()


def verify_contracts(contracts: List[ContractInstance]) -> None:
    """Publishes the sources of deployed contracts to the network's explorer."""
    explorer = networks.provider.network.explorer
    if explorer is None:
        raise ValueError(f"No explorer configured for {networks.provider.network.name}.")
    for instance in contracts:
        print(f"(i) Publishing {instance.contract_type.name} at {instance.address}...")
        explorer.publish_contract(instance.address)


def _dependency_projects() -> Iterator:
    for dependency_name, dependency_versions in project.dependencies.items():
        if len(dependency_versions) > 1:
            raise ValueError(
                f"Ambiguous {dependency_name} dependency: {', '.join(dependency_versions)}"
            )
        yield from dependency_versions.values()


def get_contract_container(contract: str) -> ContractContainer:
    """Looks a contract up in the project first, then in its dependencies."""
    for source in itertools.chain([project], _dependency_projects()):
        container = getattr(source, contract, None)
        if container is not None:
            return container
    raise ValueError(f"No contract found with name '{contract}'.")


def runtime_code_hash(container: ContractContainer) -> bytes:
    """keccak256 of a contract's deployed (runtime) bytecode."""
    runtime_bytecode = container.contract_type.runtime_bytecode
    if runtime_bytecode is None or not runtime_bytecode.bytecode:
        raise ValueError(f"No runtime bytecode for {container.contract_type.name}.")
    return keccak(hexstr=runtime_bytecode.bytecode)


def get_git_hash(cwd: Path = None) -> str:
    """Returns the commit hash of the checked out revision."""
    result = subprocess.run(
        ["git", "rev-parse", "HEAD"], cwd=cwd, capture_output=True, text=True, check=True
    )
    return result.stdout.strip()
