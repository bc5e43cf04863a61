from typing import Any, Mapping

from ape.utils import ZERO_ADDRESS


def _abort() -> None:
    print("Aborting deployment!")
    exit(-1)


def _ask(question: str) -> None:
    """Aborts the run when the operator answers 'n'."""
    if input(f"{question} Y/N? ").lower().strip() == "n":
        _abort()


def _continue() -> None:
    _ask("Continue")


def _confirm_deployment(contract_name: str, arguments: Mapping[str, Any]) -> None:
    """Shows the named constructor arguments of a contract and asks to deploy it."""
    if arguments:
        print(f"\nConstructor parameters for {contract_name}")
        print("\n".join(f"\t{name}={value}" for name, value in arguments.items()))
    else:
        print(f"\n(i) No constructor parameters for {contract_name}")
    _ask(f"Deploy {contract_name}")

    zero_address_arguments = [name for name, value in arguments.items() if value == ZERO_ADDRESS]
    if zero_address_arguments:
        _ask(f"Zero address passed as {', '.join(zero_address_arguments)}; continue")
