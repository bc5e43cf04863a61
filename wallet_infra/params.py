import typing
from collections import OrderedDict
from pathlib import Path
from typing import Any, List

from ape import networks
from ape.api import AccountAPI, ReceiptAPI
from ape.cli.choices import select_account
from ape.contracts.base import ContractContainer, ContractInstance, ContractTransactionHandler
from ethpm_types import MethodABI
from web3.auto import w3

from wallet_infra.confirm import _confirm_deployment, _continue
from wallet_infra.registry import registry_from_ape_deployments
from wallet_infra.utils import _load_json, check_plugins, is_local_network, verify_contracts


def _name_args(abi: MethodABI, args: typing.Sequence[Any]) -> typing.Optional[typing.Dict]:
    """Names the arguments after the ABI inputs, or None when they do not encode against it."""
    if len(abi.inputs) != len(args):
        return None
    if not all(w3.is_encodable(abi_input.type, arg) for abi_input, arg in zip(abi.inputs, args)):
        return None
    return {abi_input.name: arg for abi_input, arg in zip(abi.inputs, args)}


def _validate_method_args(
    method_abis: List[MethodABI], args: typing.Sequence[Any]
) -> typing.Dict[str, Any]:
    """Returns the arguments named after the first overload they encode against."""
    if not method_abis:
        raise ValueError("No method abis provided for validation of args")
    for abi in method_abis:
        named_args = _name_args(abi, args)
        if named_args is not None:
            return named_args
    raise ValueError(
        f"No '{method_abis[0].name}' overload accepts {len(args)} arg(s) of the given type(s)"
    )


def _validate_chain_id(chain_id: int) -> None:
    network_chain_id = networks.provider.network.chain_id
    if chain_id != network_chain_id and not is_local_network():
        raise ValueError(
            f"chain_id in configuration ({chain_id}) does not match "
            f"chain_id of current network ({network_chain_id})."
        )


def _validate_registry(registry_filepath: Path, chain_id: int) -> None:
    """Checks that the infrastructure has not already been published for this chain."""
    if not registry_filepath.exists():
        return
    registry_chain_ids = map(int, _load_json(registry_filepath).keys())
    if chain_id in registry_chain_ids:
        raise ValueError(
            f"Deployment is already published for chain_id {chain_id} in {registry_filepath}."
        )


def _describe_transaction(method: ContractTransactionHandler, named_args: typing.Dict) -> str:
    contract = method.contract
    target = f"{contract.contract_type.name}[{contract.address[:10]}].{method}"
    if not named_args:
        return f"\nTransacting {target} with no arguments"
    arguments = "".join(f"\n\t{name}={value}" for name, value in named_args.items())
    return f"\nTransacting {target} with arguments:{arguments}"


class Transactor:
    """Sends contract transactions from an ape account, describing each one first."""

    def __init__(self, account: typing.Optional[AccountAPI] = None, autosign: bool = False):
        self._account = select_account() if account is None else account
        self._autosign = autosign
        self._account.set_autosign(autosign)
        if autosign:
            print("WARNING: Transactions will be signed without confirmation.")

    def get_account(self) -> AccountAPI:
        return self._account

    def transact(self, method: ContractTransactionHandler, *args) -> ReceiptAPI:
        named_args = _validate_method_args(method_abis=method.abis, args=args)
        print(_describe_transaction(method, named_args))
        if not self._autosign:
            _continue()
        return method(*args, sender=self._account)


class Deployer(Transactor):
    """
    Represents an ape account plus validated/annotated contract deployments
    for the infrastructure of one environment.
    """

    class InvalidConstructorArguments(ValueError):
        """Raised when constructor arguments do not match the constructor ABI"""

    def __init__(
        self,
        chain_id: int,
        environment: str,
        registry_filepath: Path,
        verify: bool,
        account: typing.Optional[AccountAPI] = None,
        autosign: bool = False,
    ):
        super().__init__(account, autosign)

        check_plugins(verify=verify)
        _validate_chain_id(chain_id)
        _validate_registry(registry_filepath, chain_id)
        self.chain_id = chain_id
        self.environment = environment
        self.registry_filepath = registry_filepath
        self.verify = verify
        self._print_deployment_info()

        if not self._autosign:
            # Confirms the start of the deployment.
            _continue()

    def _get_kwargs(self) -> typing.Dict[str, Any]:
        """Returns the deployment kwargs."""
        return {"publish": self.verify}

    @classmethod
    def _resolve_constructor_args(
        cls, container: ContractContainer, args: typing.Sequence[Any]
    ) -> OrderedDict:
        """Names positional constructor arguments after the constructor ABI inputs."""
        contract_name = container.contract_type.name
        abi_inputs = container.constructor.abi.inputs
        if len(args) != len(abi_inputs):
            raise cls.InvalidConstructorArguments(
                f"Constructor arguments length mismatch - "
                f"{contract_name} ABI requires {len(abi_inputs)}, Got {len(args)}."
            )

        resolved_params = OrderedDict()
        for position, (abi_input, value) in enumerate(zip(abi_inputs, args)):
            if not w3.is_encodable(abi_input.type, value):
                raise cls.InvalidConstructorArguments(
                    f"{contract_name} constructor argument '{abi_input.name}' at position "
                    f"{position} has a value '{value}' whose type does not match "
                    f"expected ABI type '{abi_input.type}'"
                )
            resolved_params[abi_input.name or f"arg{position}"] = value
        return resolved_params

    def deploy(self, container: ContractContainer, *args) -> ContractInstance:
        contract_name = container.contract_type.name
        resolved_params = self._resolve_constructor_args(container, args)
        if not self._autosign:
            _confirm_deployment(contract_name, resolved_params)

        instance = self.get_account().deploy(container, *args, **self._get_kwargs())
        print(f"Deployed {contract_name} at {instance.address}")
        return instance

    def finalize(self, deployments: List[ContractInstance]) -> None:
        """
        Publishes the deployments to the registry artifact and optionally to block explorers.
        """
        registry_from_ape_deployments(
            deployments=deployments,
            output_filepath=self.registry_filepath,
        )
        if self.verify:
            verify_contracts(contracts=deployments)

    def _print_deployment_info(self):
        print(
            f"Account: {self.get_account().address}",
            f"Environment: {self.environment}",
            f"Registry: {self.registry_filepath}",
            f"Verify: {self.verify}",
            f"Ecosystem: {networks.provider.network.ecosystem.name}",
            f"Network: {networks.provider.network.name}",
            f"Chain ID: {networks.provider.network.chain_id}",
            f"Gas Price: {networks.provider.gas_price}",
            sep="\n",
        )
