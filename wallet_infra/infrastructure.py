from typing import Dict, List, Optional

from ape.contracts import ContractInstance

from wallet_infra.config import Configurator
from wallet_infra.constants import (
    ABI_FOLDER,
    DEFAULT_REGISTRY_ID,
    INFRASTRUCTURE_CONTRACTS,
    INITIAL_TIMELOCK,
    MULTISIG_WALLET,
    WALLET_DETECTOR,
)
from wallet_infra.integrations import FilterRegistrar, register_filters
from wallet_infra.multisig import MultisigExecutor
from wallet_infra.params import Deployer
from wallet_infra.storage import AbiUploader
from wallet_infra.utils import get_contract_container, get_git_hash, runtime_code_hash


def deploy_wallet_implementation(
    deployer: Deployer, executor: MultisigExecutor, wallet_detector: ContractInstance
) -> ContractInstance:
    """Deploys the wallet implementation and whitelists it in the wallet detector."""
    base_wallet = deployer.deploy(get_contract_container("BaseWallet"))

    print("Adding wallet code")
    proxy_code_hash = runtime_code_hash(get_contract_container("Proxy"))
    executor.execute_call(wallet_detector, "addCode", [proxy_code_hash])

    print("Adding wallet implementation")
    executor.execute_call(wallet_detector, "addImplementation", [base_wallet.address])
    return base_wallet


def deploy_infrastructure(
    deployer: Deployer, config: Dict, base_wallet: ContractInstance
) -> Dict[str, ContractInstance]:
    modules = config["modules"]

    wallet_factory = deployer.deploy(
        get_contract_container("WalletFactory"),
        base_wallet.address,
        modules["GuardianStorage"],
        config["backend"]["refund_collector"],
    )
    dapp_registry = deployer.deploy(get_contract_container("DappRegistry"), INITIAL_TIMELOCK)
    multicall_helper = deployer.deploy(
        get_contract_container("MultiCallHelper"),
        modules["TransferStorage"],
        dapp_registry.address,
    )
    token_registry = deployer.deploy(get_contract_container("TokenRegistry"))

    return {
        "BaseWallet": base_wallet,
        "WalletFactory": wallet_factory,
        "DappRegistry": dapp_registry,
        "MultiCallHelper": multicall_helper,
        "TokenRegistry": token_registry,
    }


def set_timelock(deployer: Deployer, dapp_registry: ContractInstance, timelock_period: int) -> None:
    print(f"Setting Timelock to {timelock_period}")
    deployer.transact(dapp_registry.requestTimelockChange, timelock_period)
    deployer.transact(dapp_registry.confirmTimelockChange)
    print("Timelock changed.")


def set_managers(
    deployer: Deployer, infrastructure: Dict[str, ContractInstance], accounts: List[str]
) -> None:
    for account in accounts:
        for name in ("WalletFactory", "TokenRegistry"):
            print(f"Setting {account} as the manager of the {name}")
            deployer.transact(infrastructure[name].addManager, account)


def transfer_ownership(
    deployer: Deployer, infrastructure: Dict[str, ContractInstance], multisig_address: str
) -> None:
    print("Setting the MultiSig as the owner of WalletFactory")
    deployer.transact(infrastructure["WalletFactory"].changeOwner, multisig_address)

    print("Setting the MultiSig as the owner of TokenRegistry")
    deployer.transact(infrastructure["TokenRegistry"].changeOwner, multisig_address)

    print("Setting the MultiSig as the owner of default registry")
    deployer.transact(
        infrastructure["DappRegistry"].changeOwner, DEFAULT_REGISTRY_ID, multisig_address
    )


def publish(
    configurator: Configurator,
    abi_uploader: AbiUploader,
    infrastructure: Dict[str, ContractInstance],
    git_hash: str,
) -> None:
    """Records the new addresses and commit in the configuration, then uploads ABIs."""
    configurator.update_infrastructure_addresses(
        {name: infrastructure[name].address for name in INFRASTRUCTURE_CONTRACTS}
    )
    configurator.update_git_hash(git_hash)

    print("Saving new config")
    configurator.save()

    print("Uploading ABIs")
    for name in INFRASTRUCTURE_CONTRACTS:
        abi_uploader.upload(infrastructure[name], ABI_FOLDER)


def run(
    deployer: Deployer,
    configurator: Configurator,
    abi_uploader: AbiUploader,
    environment: str,
    git_hash: Optional[str] = None,
) -> Dict[str, ContractInstance]:
    """Deploys and wires the wallet infrastructure of an environment."""
    # before any transaction
    git_hash = git_hash or get_git_hash()
    config = configurator.config
    contracts = config["contracts"]

    wallet_detector = get_contract_container(WALLET_DETECTOR).at(contracts[WALLET_DETECTOR])
    multisig = get_contract_container(MULTISIG_WALLET).at(contracts[MULTISIG_WALLET])
    executor = MultisigExecutor(
        multisig=multisig, transactor=deployer, autosign=config["multisig"]["autosign"]
    )

    base_wallet = deploy_wallet_implementation(deployer, executor, wallet_detector)
    infrastructure = deploy_infrastructure(deployer, config, base_wallet)

    registrar = FilterRegistrar(deployer=deployer, infrastructure=infrastructure)
    register_filters(registrar, config, environment)
    set_timelock(deployer, infrastructure["DappRegistry"], config["settings"]["timelock_period"])

    set_managers(deployer, infrastructure, config["backend"]["accounts"])
    transfer_ownership(deployer, infrastructure, contracts[MULTISIG_WALLET])

    deployer.finalize(deployments=[infrastructure[name] for name in INFRASTRUCTURE_CONTRACTS])
    publish(configurator, abi_uploader, infrastructure, git_hash)
    return infrastructure
