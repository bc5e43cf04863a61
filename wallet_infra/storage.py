import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

import boto3
import yaml
from ape.contracts import ContractInstance
from eth_typing import ABI

from wallet_infra.constants import ABI_DIR
from wallet_infra.registry import STANDARD_REGISTRY_JSON_FORMAT, _get_abi, _sort_abi
from wallet_infra.utils import _load_yaml

#
# Configuration stores
#


class ConfigStore(Protocol):
    def load(self) -> Dict[str, Any]:
        ...

    def save(self, config: Dict[str, Any]) -> None:
        ...


@dataclass(frozen=True)
class LocalConfigStore:
    path: Path

    def load(self) -> Dict[str, Any]:
        if not self.path.exists():
            raise FileNotFoundError(f"No configuration found at {self.path}")
        return _load_yaml(self.path) or dict()

    def save(self, config: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as file:
            yaml.safe_dump(config, file, sort_keys=False, default_flow_style=False)

    def __str__(self) -> str:
        return str(self.path)


@dataclass(frozen=True)
class S3ConfigStore:
    bucket: str
    key: str = "backend/config.json"
    client: Optional[Any] = None

    def _client(self):
        return self.client or boto3.client("s3")

    def load(self) -> Dict[str, Any]:
        response = self._client().get_object(Bucket=self.bucket, Key=self.key)
        return json.loads(response["Body"].read())

    def save(self, config: Dict[str, Any]) -> None:
        body = json.dumps(config, **STANDARD_REGISTRY_JSON_FORMAT)
        self._client().put_object(
            Bucket=self.bucket,
            Key=self.key,
            Body=body.encode("utf-8"),
            ContentType="application/json",
        )

    def __str__(self) -> str:
        return f"s3://{self.bucket}/{self.key}"


#
# ABI stores
#


class AbiStore(Protocol):
    def put(self, folder: str, name: str, abi: ABI) -> str:
        ...


def _abi_document(abi: ABI) -> bytes:
    return json.dumps(_sort_abi(abi), **STANDARD_REGISTRY_JSON_FORMAT).encode("utf-8")


@dataclass(frozen=True)
class LocalAbiStore:
    root: Path

    def put(self, folder: str, name: str, abi: ABI) -> str:
        target = self.root / folder / f"{name}.json"
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(_abi_document(abi))
        return str(target)


@dataclass(frozen=True)
class S3AbiStore:
    bucket: str
    prefix: str = ""
    client: Optional[Any] = None

    def _client(self):
        return self.client or boto3.client("s3")

    def _key(self, folder: str, name: str) -> str:
        base = f"{folder.strip('/')}/{name}.json"
        prefix = self.prefix.strip("/")
        if not prefix:
            return base
        return f"{prefix}/{base}"

    def put(self, folder: str, name: str, abi: ABI) -> str:
        key = self._key(folder, name)
        self._client().put_object(
            Bucket=self.bucket,
            Key=key,
            Body=_abi_document(abi),
            ContentType="application/json",
        )
        return f"s3://{self.bucket}/{key}"


def abi_store_from_config(config: Dict[str, Any], environment: str) -> AbiStore:
    """S3 when an ABI bucket is configured, otherwise a local directory per environment."""
    storage_config = config.get("abi_storage") or dict()
    bucket = storage_config.get("bucket")
    if bucket:
        return S3AbiStore(bucket=bucket, prefix=storage_config.get("prefix", environment))
    root = Path(storage_config.get("dir", ABI_DIR / environment))
    return LocalAbiStore(root=root)


class AbiUploader:
    """Publishes the ABI of deployed contracts to an ABI store."""

    def __init__(self, store: AbiStore):
        self.store = store

    def upload(self, instance: ContractInstance, folder: str) -> str:
        name = instance.contract_type.name
        location = self.store.put(folder=folder, name=name, abi=_get_abi(instance))
        print(f"(i) Uploaded {name} ABI to {location}")
        return location
