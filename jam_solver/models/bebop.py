"""Pydantic models for Bebop settlement orders.

Field names follow the EIP-712 `Partial` type declared by BebopSettlement,
so the typed-data message can be produced without renaming.
"""

from enum import IntEnum
from typing import Any

from pydantic import BaseModel, Field, model_validator

from jam_solver.models.types import Address, Uint256

# EIP-712 type of a single-maker Bebop order. Field order is part of the type hash.
PARTIAL_ORDER_TYPES: dict[str, list[dict[str, str]]] = {
    "Partial": [
        {"name": "expiry", "type": "uint256"},
        {"name": "taker_address", "type": "address"},
        {"name": "maker_address", "type": "address"},
        {"name": "maker_nonce", "type": "uint256"},
        {"name": "taker_tokens", "type": "address[]"},
        {"name": "maker_tokens", "type": "address[]"},
        {"name": "taker_amounts", "type": "uint256[]"},
        {"name": "maker_amounts", "type": "uint256[]"},
        {"name": "receiver", "type": "address"},
        {"name": "commands", "type": "bytes"},
    ]
}


class TokenCommand(IntEnum):
    """Per-token handling flag, serialized as one byte of `commands`."""

    ERC20 = 0x00
    NATIVE = 0x01  # wrapped on the way in, unwrapped on the way out


def commands_to_bytes(commands: list[TokenCommand]) -> bytes:
    """Serialize typed commands into Bebop's byte-flag wire format."""
    return bytes(int(command) for command in commands)


def commands_from_bytes(data: bytes) -> list[TokenCommand]:
    """Parse Bebop's byte-flag wire format.

    Raises:
        ValueError: If a byte is not a known command
    """
    return [TokenCommand(b) for b in data]


class VenueDomain(BaseModel):
    """EIP-712 signing domain of the venue.

    `verifying_contract` doubles as the settlement address: it is both the
    approval spender and the target of the settlement call.
    """

    name: str
    version: str
    chain_id: int = Field(alias="chainId", gt=0)
    verifying_contract: Address = Field(alias="verifyingContract")

    model_config = {"populate_by_name": True, "frozen": True}

    @property
    def settlement_address(self) -> str:
        return self.verifying_contract

    def to_typed_data(self) -> dict[str, Any]:
        """Domain dict in the shape EIP-712 encoders expect."""
        return {
            "name": self.name,
            "version": self.version,
            "chainId": self.chain_id,
            "verifyingContract": self.verifying_contract,
        }


class PartialOrder(BaseModel):
    """A single-maker Bebop order, the payload the maker signs.

    Never mutated once built; any change invalidates the maker signature.
    """

    expiry: int = Field(gt=0, description="Unix timestamp after which the order is void.")
    taker_address: Address
    maker_address: Address
    maker_nonce: Uint256
    taker_tokens: list[Address]
    maker_tokens: list[Address]
    taker_amounts: list[Uint256]
    maker_amounts: list[Uint256]
    receiver: Address
    commands: list[TokenCommand]

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_lengths(self) -> "PartialOrder":
        if len(self.taker_tokens) != len(self.taker_amounts):
            raise ValueError("taker_tokens and taker_amounts must have the same length")
        if len(self.maker_tokens) != len(self.maker_amounts):
            raise ValueError("maker_tokens and maker_amounts must have the same length")
        if len(self.commands) != len(self.maker_tokens) + len(self.taker_tokens):
            raise ValueError("commands must hold one flag per maker token and taker token")
        return self

    @property
    def commands_bytes(self) -> bytes:
        return commands_to_bytes(self.commands)

    @property
    def maker_commands(self) -> list[TokenCommand]:
        return self.commands[: len(self.maker_tokens)]

    @property
    def taker_commands(self) -> list[TokenCommand]:
        return self.commands[len(self.maker_tokens) :]

    def to_typed_data(self) -> dict[str, Any]:
        """Message dict matching PARTIAL_ORDER_TYPES."""
        return {
            "expiry": self.expiry,
            "taker_address": self.taker_address,
            "maker_address": self.maker_address,
            "maker_nonce": self.maker_nonce,
            "taker_tokens": list(self.taker_tokens),
            "maker_tokens": list(self.maker_tokens),
            "taker_amounts": list(self.taker_amounts),
            "maker_amounts": list(self.maker_amounts),
            "receiver": self.receiver,
            "commands": self.commands_bytes,
        }


class SignedOrder(BaseModel):
    """A PartialOrder together with the maker's signature over it."""

    order: PartialOrder
    domain: VenueDomain
    signature: bytes

    model_config = {"frozen": True}


class AggregateOrder(BaseModel):
    """Batch view of one or more maker orders, as taken by SettleAggregateOrder.

    Per-maker fields are lists with one entry per maker.
    """

    expiry: int
    taker_address: Address
    maker_addresses: list[Address]
    maker_nonces: list[Uint256]
    taker_tokens: list[list[Address]]
    maker_tokens: list[list[Address]]
    taker_amounts: list[list[Uint256]]
    maker_amounts: list[list[Uint256]]
    receiver: Address
    commands: bytes

    model_config = {"frozen": True}

    @classmethod
    def from_partial(cls, order: PartialOrder) -> "AggregateOrder":
        """Wrap a single-maker order into a one-maker aggregate."""
        return cls(
            expiry=order.expiry,
            taker_address=order.taker_address,
            maker_addresses=[order.maker_address],
            maker_nonces=[order.maker_nonce],
            taker_tokens=[list(order.taker_tokens)],
            maker_tokens=[list(order.maker_tokens)],
            taker_amounts=[list(order.taker_amounts)],
            maker_amounts=[list(order.maker_amounts)],
            receiver=order.receiver,
            commands=order.commands_bytes,
        )

    @property
    def maker_count(self) -> int:
        return len(self.maker_addresses)
