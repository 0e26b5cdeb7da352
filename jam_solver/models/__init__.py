"""Data models for JAM orders and Bebop settlement."""

from jam_solver.models.bebop import (
    PARTIAL_ORDER_TYPES,
    AggregateOrder,
    PartialOrder,
    SignedOrder,
    TokenCommand,
    VenueDomain,
    commands_from_bytes,
    commands_to_bytes,
)
from jam_solver.models.jam import JamInteraction, JamOrder
from jam_solver.models.types import (
    UINT256_MAX,
    Address,
    Uint256,
    is_valid_address,
    normalize_address,
)

__all__ = [
    # JAM
    "JamOrder",
    "JamInteraction",
    # Bebop
    "PARTIAL_ORDER_TYPES",
    "AggregateOrder",
    "PartialOrder",
    "SignedOrder",
    "TokenCommand",
    "VenueDomain",
    "commands_from_bytes",
    "commands_to_bytes",
    # Types
    "UINT256_MAX",
    "Address",
    "Uint256",
    "is_valid_address",
    "normalize_address",
]
