import json
from unittest.mock import MagicMock

from wallet_infra.registry import (
    RegistryEntry,
    contracts_from_registry,
    read_registry,
    registry_from_ape_deployments,
    write_registry,
)

ABI = [
    {"type": "function", "name": "changeOwner"},
    {"type": "event", "name": "OwnerChanged"},
    {"type": "function", "name": "addManager"},
]


def _entry(chain_id, name, address="0x6000000000000000000000000000000000000001"):
    return RegistryEntry(
        chain_id=chain_id,
        name=name,
        address=address,
        abi=list(ABI),
        tx_hash="0xabc",
        block_number=12,
        deployer="0x3000000000000000000000000000000000000002",
    )


def test_entries_sorted_by_chain_and_name(tmp_path):
    filepath = tmp_path / "registry.json"
    entries = [_entry(5, "WalletFactory"), _entry(1, "TokenRegistry"), _entry(1, "BaseWallet")]
    write_registry(entries, filepath)

    data = json.loads(filepath.read_text())
    assert list(data) == ["1", "5"]
    assert list(data["1"]) == ["BaseWallet", "TokenRegistry"]
    assert [e["name"] for e in data["1"]["BaseWallet"]["abi"]] == [
        "OwnerChanged",
        "addManager",
        "changeOwner",
    ]
    assert [(e.chain_id, e.name) for e in read_registry(filepath)] == [
        (1, "BaseWallet"),
        (1, "TokenRegistry"),
        (5, "WalletFactory"),
    ]


def test_new_chain_merged_into_existing_registry(tmp_path):
    filepath = tmp_path / "registry.json"
    write_registry([_entry(1, "DappRegistry")], filepath)

    output = write_registry([_entry(5, "DappRegistry")], filepath)

    assert output == filepath
    assert set(json.loads(filepath.read_text())) == {"1", "5"}


def test_existing_chain_never_overwritten(tmp_path):
    filepath = tmp_path / "registry.json"
    write_registry([_entry(1, "DappRegistry")], filepath)
    original = filepath.read_text()

    output = write_registry([_entry(1, "DappRegistry", address="0x" + "7" * 40)], filepath)

    assert output == tmp_path / "registry.unmerged.json"
    assert filepath.read_text() == original
    assert json.loads(output.read_text())["1"]["DappRegistry"]["address"] == "0x" + "7" * 40


def test_registry_from_ape_deployments(tmp_path):
    abi_entry = MagicMock()
    abi_entry.model_dump.return_value = {"type": "function", "name": "addDapp"}
    instance = MagicMock()
    instance.contract_type.name = "DappRegistry"
    instance.contract_type.abi = [abi_entry]
    instance.address = "0x6000000000000000000000000000000000000001"
    instance.receipt.chain_id = 1
    instance.receipt.txn_hash = "0xabc"
    instance.receipt.block_number = 100
    instance.receipt.transaction.sender = "0x3000000000000000000000000000000000000002"

    output = registry_from_ape_deployments([instance], tmp_path / "registry.json")

    (entry,) = read_registry(output)
    assert entry == RegistryEntry(
        chain_id=1,
        name="DappRegistry",
        address="0x6000000000000000000000000000000000000001",
        abi=[{"type": "function", "name": "addDapp"}],
        tx_hash="0xabc",
        block_number=100,
        deployer="0x3000000000000000000000000000000000000002",
    )


def test_contracts_from_registry(tmp_path, monkeypatch):
    filepath = tmp_path / "registry.json"
    write_registry([_entry(1, "DappRegistry"), _entry(5, "TokenRegistry")], filepath)
    container = MagicMock()
    monkeypatch.setattr("wallet_infra.registry.get_contract_container", lambda name: container)

    deployments = contracts_from_registry(filepath, chain_id=1)

    assert list(deployments) == ["DappRegistry"]
    container.at.assert_called_once_with("0x6000000000000000000000000000000000000001")
