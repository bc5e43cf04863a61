from typing import Any, List, Sequence, Tuple

import click
from ape.contracts import ContractInstance
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import to_checksum_address
from hexbytes import HexBytes
from web3 import Web3

from wallet_infra.params import Transactor

SIGNATURE_LENGTH = 65


def sign_hash(wallet: str, to: str, value: int, data: bytes, nonce: int) -> HexBytes:
    """The hash owners sign to approve `execute(to, value, data)` on the multisig."""
    return HexBytes(
        Web3.solidity_keccak(
            ["bytes1", "bytes1", "address", "address", "uint256", "bytes", "uint256"],
            [
                b"\x19",
                b"\x00",
                to_checksum_address(wallet),
                to_checksum_address(to),
                value,
                bytes(HexBytes(data)),
                nonce,
            ],
        )
    )


def recover_signer(message_hash: bytes, signature: bytes) -> str:
    message = encode_defunct(primitive=bytes(message_hash))
    return Account.recover_message(message, signature=bytes(signature))


class MultisigExecutor:
    """
    Executes calls through the multisig wallet owning the platform contracts.

    Owners sign the personal message of `sign_hash`; the collected signatures
    are submitted in ascending signer order in a single `execute` transaction.
    """

    class SignatureError(ValueError):
        """Raised when the collected signatures cannot satisfy the multisig"""

    def __init__(self, multisig: ContractInstance, transactor: Transactor, autosign: bool = False):
        self.multisig = multisig
        self.transactor = transactor
        self.autosign = autosign

    def _own_signature(self, message_hash: bytes) -> bytes:
        message = encode_defunct(primitive=bytes(message_hash))
        signature = self.transactor.get_account().sign_message(message)
        if signature is None:
            raise self.SignatureError("Signing of the multisig hash was declined.")
        return bytes(signature.encode_rsv())

    def _prompt_signature(self, index: int, threshold: int) -> bytes:
        value = click.prompt(f"Signature {index}/{threshold}", type=str)
        signature = HexBytes(value.strip())
        if len(signature) != SIGNATURE_LENGTH:
            raise self.SignatureError(
                f"Expected a {SIGNATURE_LENGTH}-byte signature, got {len(signature)} bytes."
            )
        return bytes(signature)

    def _collect_signatures(self, message_hash: bytes, threshold: int) -> List[bytes]:
        signatures = list()
        if self.autosign:
            signatures.append(self._own_signature(message_hash))
        while len(signatures) < threshold:
            signatures.append(self._prompt_signature(len(signatures) + 1, threshold))
        return signatures

    @classmethod
    def _normalize_v(cls, signature: bytes) -> bytes:
        """Returns the signature with the recovery id `v` as 27 or 28, as `ecrecover` expects."""
        v = signature[-1]
        if v < 27:
            v += 27
        if v not in (27, 28):
            raise cls.SignatureError(f"Invalid signature recovery id {signature[-1]}.")
        return bytes(signature[:-1]) + bytes([v])

    def pack_signatures(
        self, message_hash: bytes, signatures: Sequence[bytes], threshold: int
    ) -> bytes:
        """Checks the signers and concatenates the signatures in ascending signer order."""
        if len(signatures) < threshold:
            raise self.SignatureError(
                f"Multisig requires {threshold} signature(s), got {len(signatures)}."
            )

        signed: List[Tuple[str, bytes]] = list()
        for signature in map(self._normalize_v, signatures):
            signer = recover_signer(message_hash, signature)
            if any(signer == s for s, _ in signed):
                raise self.SignatureError(f"Duplicate signature from {signer}.")
            if not self.multisig.isOwner(signer):
                raise self.SignatureError(f"{signer} is not an owner of the multisig.")
            signed.append((signer, signature))

        signed.sort(key=lambda item: int(item[0], 16))
        return b"".join(signature for _, signature in signed)

    def execute_call(self, contract: ContractInstance, method_name: str, args: Sequence[Any]):
        method = getattr(contract, method_name)
        data = HexBytes(method.encode_input(*args))
        nonce = self.multisig.nonce()
        threshold = self.multisig.threshold()
        message_hash = sign_hash(self.multisig.address, contract.address, 0, data, nonce)

        print(
            f"\nMultisig call {contract.contract_type.name}.{method_name} "
            f"(nonce={nonce}, threshold={threshold})"
        )
        print(f"Multisig hash: {Web3.to_hex(message_hash)}")

        signatures = self._collect_signatures(message_hash, threshold)
        packed_signatures = self.pack_signatures(message_hash, signatures, threshold)
        return self.transactor.transact(
            self.multisig.execute, contract.address, 0, bytes(data), packed_signatures
        )
