import io
import json
from unittest.mock import MagicMock

import pytest

from wallet_infra.storage import (
    AbiUploader,
    LocalAbiStore,
    LocalConfigStore,
    S3AbiStore,
    S3ConfigStore,
    abi_store_from_config,
)

ABI = [
    {"type": "function", "name": "owner", "inputs": [], "outputs": []},
    {"type": "constructor", "inputs": []},
    {"type": "function", "name": "addDapp", "inputs": [], "outputs": []},
]


def test_local_config_store_keeps_key_order(tmp_path, config):
    store = LocalConfigStore(path=tmp_path / "staging.yml")

    store.save(config)
    loaded = store.load()

    assert loaded == config
    assert list(loaded) == list(config)
    assert (tmp_path / "staging.yml").read_text().startswith("deployment:")


def test_local_config_store_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        LocalConfigStore(path=tmp_path / "missing.yml").load()


def test_s3_config_store(config):
    client = MagicMock()
    client.get_object.return_value = {"Body": io.BytesIO(json.dumps(config).encode())}
    store = S3ConfigStore(bucket="wallet-staging", client=client)

    assert store.load() == config
    client.get_object.assert_called_once_with(Bucket="wallet-staging", Key="backend/config.json")

    store.save(config)
    kwargs = client.put_object.call_args.kwargs
    assert kwargs["Bucket"] == "wallet-staging"
    assert kwargs["Key"] == "backend/config.json"
    assert json.loads(kwargs["Body"]) == config
    assert str(store) == "s3://wallet-staging/backend/config.json"


def test_local_abi_store_sorts_entries(tmp_path):
    store = LocalAbiStore(root=tmp_path)

    location = store.put("contracts", "DappRegistry", ABI)

    written = json.loads((tmp_path / "contracts" / "DappRegistry.json").read_text())
    assert location == str(tmp_path / "contracts" / "DappRegistry.json")
    assert [(e["type"], e.get("name")) for e in written] == [
        ("constructor", None),
        ("function", "addDapp"),
        ("function", "owner"),
    ]


@pytest.mark.parametrize(
    "prefix,key",
    [
        ("prod", "prod/contracts/WalletFactory.json"),
        ("/prod/", "prod/contracts/WalletFactory.json"),
        ("", "contracts/WalletFactory.json"),
    ],
)
def test_s3_abi_store_keys(prefix, key):
    client = MagicMock()
    store = S3AbiStore(bucket="wallet-abis", prefix=prefix, client=client)

    location = store.put("contracts", "WalletFactory", ABI)

    assert location == f"s3://wallet-abis/{key}"
    assert client.put_object.call_args.kwargs["Key"] == key


def test_abi_store_from_config(tmp_path):
    s3_store = abi_store_from_config({"abi_storage": {"bucket": "wallet-abis"}}, "prod")
    assert s3_store == S3AbiStore(bucket="wallet-abis", prefix="prod")

    local_store = abi_store_from_config({"abi_storage": {"dir": str(tmp_path)}}, "development")
    assert local_store == LocalAbiStore(root=tmp_path)

    default_store = abi_store_from_config({}, "development")
    assert isinstance(default_store, LocalAbiStore)
    assert default_store.root.name == "development"


def test_abi_uploader_uses_contract_name(tmp_path):
    entry = MagicMock()
    entry.model_dump.return_value = ABI[0]
    instance = MagicMock()
    instance.contract_type.name = "TokenRegistry"
    instance.contract_type.abi = [entry]

    location = AbiUploader(LocalAbiStore(root=tmp_path)).upload(instance, "contracts")

    assert location.endswith("contracts/TokenRegistry.json")
    assert json.loads((tmp_path / "contracts" / "TokenRegistry.json").read_text()) == [ABI[0]]
