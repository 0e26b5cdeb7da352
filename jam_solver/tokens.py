"""Native-asset metadata.

JAM orders use a sentinel address for the chain's native asset. Bebop only
settles ERC-20s, so the sentinel is swapped for the chain's wrapped native
token and flagged NATIVE in the order commands.
"""

from __future__ import annotations

from typing import Protocol

from jam_solver.constants import NATIVE_TOKEN, WRAPPED_NATIVE_TOKENS
from jam_solver.errors import UnsupportedToken
from jam_solver.models.types import is_valid_address, normalize_address


class NativeTokenResolver(Protocol):
    """Resolves the native sentinel and its wrapped substitute."""

    def is_native(self, token: str) -> bool:
        """True if `token` is the native-asset sentinel."""
        ...

    def wrapped_native(self) -> str:
        """Wrapped-asset address substituted for the sentinel.

        Raises:
            UnsupportedToken: If no wrapped asset is known
        """
        ...


class ChainTokens:
    """Native token metadata for one chain.

    Args:
        chain_id: Chain to resolve the wrapped native token for
        native_token: Sentinel used for the native asset
        wrapped_tokens: Chain ID -> wrapped native token (defaults to the built-in table)
    """

    def __init__(
        self,
        chain_id: int,
        native_token: str = NATIVE_TOKEN,
        wrapped_tokens: dict[int, str] | None = None,
    ) -> None:
        self.chain_id = chain_id
        self.native_token = normalize_address(native_token)
        self._wrapped_tokens = WRAPPED_NATIVE_TOKENS if wrapped_tokens is None else wrapped_tokens

    def is_native(self, token: str) -> bool:
        return normalize_address(token) == self.native_token

    def wrapped_native(self) -> str:
        wrapped = self._wrapped_tokens.get(self.chain_id)
        if wrapped is None:
            raise UnsupportedToken(f"No wrapped native token configured for chain {self.chain_id}")
        if not is_valid_address(wrapped) or normalize_address(wrapped) == self.native_token:
            raise UnsupportedToken(
                f"Invalid wrapped native token for chain {self.chain_id}: {wrapped}"
            )
        return normalize_address(wrapped)
