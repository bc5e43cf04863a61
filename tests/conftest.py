import copy
import itertools
from unittest.mock import MagicMock

import pytest
from eth_account import Account
from eth_utils import to_checksum_address

from wallet_infra.config import Configurator

# Common constants
MULTISIG = "0x1000000000000000000000000000000000000002"
REFUND_COLLECTOR = "0x3000000000000000000000000000000000000001"
BACKEND_ACCOUNT = "0x3000000000000000000000000000000000000002"
TOKEN_TRANSFER_PROXY = "0x5000000000000000000000000000000000000001"
DAI_JOIN = "0x5000000000000000000000000000000000000002"
VAT = "0x5000000000000000000000000000000000000003"

CONFIG = {
    "deployment": {"chain_id": 1337},
    "artifacts": {"filename": "test-infrastructure.json"},
    "contracts": {
        "ArgentWalletDetector": "0x1000000000000000000000000000000000000001",
        "MultiSigWallet": MULTISIG,
    },
    "modules": {
        "GuardianStorage": "0x2000000000000000000000000000000000000001",
        "TransferStorage": "0x2000000000000000000000000000000000000002",
        "TokenRegistry": "0x2000000000000000000000000000000000000003",
    },
    "backend": {"refund_collector": REFUND_COLLECTOR, "accounts": [BACKEND_ACCOUNT]},
    "multisig": {"autosign": True},
    "settings": {"timelock_period": 604800},
    "defi": {
        "weth": "0x4000000000000000000000000000000000000001",
        "compound": {
            "markets": {
                "0x4000000000000000000000000000000000000002": (
                    "0x4000000000000000000000000000000000000003"
                )
            }
        },
        "paraswap": {
            "contract": "0x4000000000000000000000000000000000000004",
            "uniswap_proxy": "0x4000000000000000000000000000000000000005",
            "uniswap_forks": [
                {
                    "factory": "0x4000000000000000000000000000000000000006",
                    "init_code": "0x96e8ac4277198ff8b6f785478aa9a39f"
                    "403cb768dd02cbee326c3e7da348845f",
                }
            ],
            "authorised_exchanges": {"Uniswap": "0x4000000000000000000000000000000000000007"},
        },
        "aave": {
            "contract": "0x4000000000000000000000000000000000000008",
            "lending_pool": "0x4000000000000000000000000000000000000009",
            "lending_pool_core": "0x400000000000000000000000000000000000000a",
            "a_tokens": ["0x400000000000000000000000000000000000000b"],
        },
        "balancer": {"pools": ["0x400000000000000000000000000000000000000c"]},
        "yearn": {
            "pools": ["0x400000000000000000000000000000000000000d"],
            "weth_pools": ["0x400000000000000000000000000000000000000e"],
        },
        "lido": {
            "contract": "0x400000000000000000000000000000000000000f",
            "steth_curve_pool": "0x4000000000000000000000000000000000000010",
        },
        "maker": {
            "pot": "0x4000000000000000000000000000000000000011",
            "migration": "0x4000000000000000000000000000000000000012",
        },
        "uniswap": {
            "factory_v2": "0x4000000000000000000000000000000000000013",
            "init_code_v2": "0x96e8ac4277198ff8b6f785478aa9a39f"
            "403cb768dd02cbee326c3e7da348845f",
            "unizap": "0x4000000000000000000000000000000000000014",
        },
    },
}


class MemoryConfigStore:
    def __init__(self, config):
        self.config = config
        self.saved = None

    def load(self):
        return copy.deepcopy(self.config)

    def save(self, config):
        self.saved = copy.deepcopy(config)

    def __str__(self):
        return "memory"


class FakeSignature:
    def __init__(self, signed_message):
        self.signed_message = signed_message

    def encode_rsv(self):
        return bytes(self.signed_message.signature)


class FakeSigner:
    """Signs like an ape account, backed by a local eth_account key."""

    def __init__(self, local_account):
        self.local_account = local_account
        self.address = local_account.address

    def sign_message(self, message):
        return FakeSignature(self.local_account.sign_message(message))


def make_instance(name, address):
    instance = MagicMock(name=name)
    instance.address = address
    instance.contract_type.name = name
    return instance


class FakeProject:
    """Stands in for the ape project: contract containers by name."""

    def __init__(self):
        self._addresses = (
            to_checksum_address(f"0x{n:040x}") for n in itertools.count(0xA000)
        )
        self.containers = dict()

    def next_address(self):
        return next(self._addresses)

    def at(self, name, address):
        instance = make_instance(name, address)
        if name == "IAugustusSwapper":
            instance.getTokenTransferProxy.return_value = TOKEN_TRANSFER_PROXY
        if name == "ScdMcdMigration":
            instance.daiJoin.return_value = DAI_JOIN
            instance.vat.return_value = VAT
        return instance

    def get_contract_container(self, name):
        if name not in self.containers:
            container = MagicMock(name=f"{name}Container")
            container.contract_type.name = name
            container.contract_type.runtime_bytecode.bytecode = "0x6080604052"
            container.at.side_effect = lambda address, _name=name: self.at(_name, address)
            self.containers[name] = container
        return self.containers[name]


# Fixtures
@pytest.fixture
def config():
    return copy.deepcopy(CONFIG)


@pytest.fixture
def config_store(config):
    return MemoryConfigStore(config)


@pytest.fixture
def configurator(config_store):
    return Configurator(config_store)


@pytest.fixture
def fake_project(monkeypatch):
    fake = FakeProject()
    for module in ("wallet_infra.infrastructure", "wallet_infra.integrations"):
        monkeypatch.setattr(f"{module}.get_contract_container", fake.get_contract_container)
    return fake


@pytest.fixture
def deployer(fake_project):
    deployer = MagicMock(name="deployer")
    deployer.deploy.side_effect = lambda container, *args: make_instance(
        container.contract_type.name, fake_project.next_address()
    )
    return deployer


@pytest.fixture
def owners():
    return [Account.create() for _ in range(3)]
