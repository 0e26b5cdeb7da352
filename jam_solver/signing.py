"""EIP-712 typed-data signing for maker orders.

The adapter only depends on the TypedDataSigner protocol. LocalAccountSigner
is the in-process implementation backed by eth-account; remote signers (HSM,
maker RFQ endpoint) plug in behind the same protocol.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import structlog
from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_account.signers.local import LocalAccount

from jam_solver.errors import SigningFailure
from jam_solver.models.types import normalize_address

logger = structlog.get_logger()


@runtime_checkable
class TypedDataSigner(Protocol):
    """A capability that signs EIP-712 typed data on behalf of one address."""

    @property
    def address(self) -> str:
        """Address the signatures recover to."""
        ...

    def sign_typed_data(
        self,
        domain: dict[str, Any],
        types: dict[str, list[dict[str, str]]],
        message: dict[str, Any],
    ) -> bytes:
        """Sign typed data.

        Args:
            domain: EIP-712 domain fields
            types: Struct type definitions, without EIP712Domain
            message: Values of the primary type

        Returns:
            65-byte signature (r, s, v)

        Raises:
            SigningFailure: If the signer rejects the request or is unavailable
        """
        ...


class LocalAccountSigner:
    """Sign with a private key held in process."""

    def __init__(self, account: LocalAccount) -> None:
        self._account = account

    @classmethod
    def from_key(cls, private_key: str | bytes) -> LocalAccountSigner:
        """Create a signer from a hex or raw private key.

        Raises:
            SigningFailure: If the key is malformed
        """
        try:
            account = Account.from_key(private_key)
        except Exception as err:
            # never include the key in the error
            raise SigningFailure("Invalid maker private key") from err
        return cls(account)

    @property
    def address(self) -> str:
        return normalize_address(self._account.address)

    def sign_typed_data(
        self,
        domain: dict[str, Any],
        types: dict[str, list[dict[str, str]]],
        message: dict[str, Any],
    ) -> bytes:
        try:
            signed = self._account.sign_typed_data(
                domain_data=domain,
                message_types=types,
                message_data=message,
            )
        except Exception as err:
            logger.warning("typed_data_signing_failed", signer=self.address, error=str(err))
            raise SigningFailure(f"Could not sign typed data: {err}") from err
        return bytes(signed.signature)


def recover_typed_data_signer(
    domain: dict[str, Any],
    types: dict[str, list[dict[str, str]]],
    message: dict[str, Any],
    signature: bytes,
) -> str:
    """Recover the address that produced a typed-data signature.

    Returns:
        Lowercase signer address
    """
    signable = encode_typed_data(domain, types, message)
    return normalize_address(Account.recover_message(signable, signature=signature))


__all__ = [
    "LocalAccountSigner",
    "TypedDataSigner",
    "recover_typed_data_signer",
]
