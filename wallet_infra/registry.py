import json
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, NamedTuple

from ape.contracts import ContractInstance
from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address
from eth_typing import ABI

from wallet_infra.utils import _load_json, get_contract_container

ChainId = int
ContractName = str


STANDARD_REGISTRY_JSON_FORMAT = {"indent": 4, "separators": (",", ": ")}
ARTIFACT_FIELDS = ("address", "abi", "tx_hash", "block_number", "deployer")


class RegistryEntry(NamedTuple):
    """Represents a single deployed contract in a registry artifact."""

    chain_id: ChainId
    name: ContractName
    address: ChecksumAddress
    abi: ABI
    tx_hash: str
    block_number: int
    deployer: str


def _get_abi(contract_instance: ContractInstance) -> ABI:
    return [
        entry.model_dump(mode="json", by_alias=True, exclude_none=True)
        for entry in contract_instance.contract_type.abi
    ]


def _sort_abi(abi: ABI) -> ABI:
    """Sorts ABI entries so that artifacts are stable across compilations."""
    return sorted(abi, key=lambda d: (d["type"], d.get("name", "")))


def _get_entry(contract_instance: ContractInstance) -> RegistryEntry:
    receipt = contract_instance.receipt
    return RegistryEntry(
        chain_id=receipt.chain_id,
        name=contract_instance.contract_type.name,
        address=to_checksum_address(contract_instance.address),
        abi=_get_abi(contract_instance),
        tx_hash=receipt.txn_hash,
        block_number=receipt.block_number,
        deployer=receipt.transaction.sender,
    )


def _entry_document(entry: RegistryEntry) -> Dict:
    return {
        "address": entry.address,
        "abi": _sort_abi(entry.abi),
        "tx_hash": entry.tx_hash,
        "block_number": int(entry.block_number),
        "deployer": entry.deployer,
    }


def read_registry(filepath: Path) -> List[RegistryEntry]:
    """Returns the entries of every chain in a registry artifact."""
    return [
        RegistryEntry(
            chain_id=int(chain_id),
            name=contract_name,
            **{field: document[field] for field in ARTIFACT_FIELDS},
        )
        for chain_id, contracts in _load_json(filepath).items()
        for contract_name, document in contracts.items()
    ]


def write_registry(entries: List[RegistryEntry], filepath: Path) -> Path:
    """
    Writes the entries to a registry artifact, adding their chains to an existing one.
    A chain already present is never overwritten; the entries then go to a
    sibling `.unmerged.json` file and its path is returned.
    """
    if not entries:
        print("No entries provided.")
        return filepath

    data = defaultdict(dict)
    for entry in sorted(entries, key=lambda entry: (entry.chain_id, entry.name)):
        data[str(entry.chain_id)][entry.name] = _entry_document(entry)

    filepath.parent.mkdir(parents=True, exist_ok=True)
    existing_data = _load_json(filepath) if filepath.exists() else dict()
    if existing_data.keys() & data.keys():
        filepath = filepath.with_suffix(".unmerged.json")
        print(f"Chain already present in the registry; writing {filepath} instead.")
    else:
        data = {**existing_data, **data}
        print(f"Writing registry to {filepath}.")

    with open(filepath, "w") as file:
        json.dump(data, file, **STANDARD_REGISTRY_JSON_FORMAT)
    return filepath


def registry_from_ape_deployments(
    deployments: List[ContractInstance], output_filepath: Path
) -> Path:
    """Creates a registry artifact from ape deployments."""
    entries = [_get_entry(instance) for instance in deployments]
    output_filepath = write_registry(entries=entries, filepath=output_filepath)
    print(f"(i) Registry written to {output_filepath}!")
    return output_filepath


def contracts_from_registry(filepath: Path, chain_id: ChainId) -> Dict[str, ContractInstance]:
    """Contract instances of one chain of a registry artifact, by contract name."""
    return {
        entry.name: get_contract_container(entry.name).at(entry.address)
        for entry in read_registry(filepath=filepath)
        if entry.chain_id == chain_id
    }
