from typing import Any, Dict

from eth_utils import is_address, to_checksum_address

from wallet_infra.constants import MULTISIG_WALLET, WALLET_DETECTOR
from wallet_infra.storage import ConfigStore

REQUIRED_CONTRACTS = [WALLET_DETECTOR, MULTISIG_WALLET]
REQUIRED_MODULES = ["GuardianStorage", "TransferStorage", "TokenRegistry"]


def _require(section: Dict[str, Any], key: str, path: str) -> Any:
    if not isinstance(section, dict) or section.get(key) is None:
        raise ValueError(f"{path}.{key} is not set in configuration.")
    return section[key]


def _checksum(value: Any, path: str) -> str:
    if not isinstance(value, str) or not is_address(value):
        raise ValueError(f"{path} is not a valid address: {value}")
    return to_checksum_address(value)


def _checksum_section(section: Dict[str, Any], keys, path: str) -> None:
    for key in keys:
        section[key] = _checksum(_require(section, key, path), f"{path}.{key}")


def validate_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Checks that every section the infrastructure deployment relies on is present,
    and normalizes addresses to their checksum form.
    """
    if not isinstance(config, dict):
        raise ValueError("Malformed configuration; expected a mapping.")

    deployment = _require(config, "deployment", "config")
    deployment["chain_id"] = int(_require(deployment, "chain_id", "deployment"))

    contracts = _require(config, "contracts", "config")
    _checksum_section(contracts, REQUIRED_CONTRACTS, "contracts")

    modules = _require(config, "modules", "config")
    _checksum_section(modules, REQUIRED_MODULES, "modules")

    backend = _require(config, "backend", "config")
    _checksum_section(backend, ["refund_collector"], "backend")
    accounts = backend.get("accounts") or list()
    if not isinstance(accounts, list):
        raise ValueError("backend.accounts must be a list of addresses.")
    backend["accounts"] = [_checksum(a, "backend.accounts") for a in accounts]

    multisig = config.setdefault("multisig", dict())
    if not isinstance(multisig.setdefault("autosign", False), bool):
        raise ValueError("multisig.autosign must be a boolean.")

    settings = _require(config, "settings", "config")
    timelock_period = _require(settings, "timelock_period", "settings")
    if isinstance(timelock_period, bool) or not isinstance(timelock_period, int):
        raise ValueError(f"settings.timelock_period must be an integer: {timelock_period}")
    if timelock_period < 0:
        raise ValueError(f"settings.timelock_period cannot be negative: {timelock_period}")

    _require(config, "defi", "config")
    return config


class Configurator:
    """Holds the deployment configuration of an environment and writes it back when done."""

    def __init__(self, store: ConfigStore):
        self.store = store
        print(f"Loading configuration from {store}...")
        self._config = validate_config(store.load())

    @property
    def config(self) -> Dict[str, Any]:
        return self._config

    @property
    def chain_id(self) -> int:
        return self._config["deployment"]["chain_id"]

    def update_infrastructure_addresses(self, addresses: Dict[str, str]) -> None:
        contracts = self._config["contracts"]
        for name, address in addresses.items():
            contracts[name] = _checksum(address, f"contracts.{name}")

    def update_git_hash(self, git_hash: str) -> None:
        self._config["git_commit"] = git_hash

    def save(self) -> None:
        validate_config(self._config)
        self.store.save(self._config)
        print(f"(i) Configuration saved to {self.store}")
