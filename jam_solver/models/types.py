"""Shared type definitions for JAM and Bebop models."""

import re
from typing import Annotated, Any

from pydantic import AfterValidator, BeforeValidator, Field

# Maximum uint256 value
UINT256_MAX = 2**256 - 1

ADDRESS_PATTERN = re.compile(r"0x[a-fA-F0-9]{40}")


def validate_uint256(value: Any) -> int:
    """Validate that a value fits in a uint256.

    Args:
        value: Value to validate (int or decimal string)

    Returns:
        The value as a Python int

    Raises:
        ValueError: If value is not a non-negative integer within uint256 range
    """
    if isinstance(value, bool):
        raise ValueError("Uint256 cannot be a boolean")

    if isinstance(value, str):
        try:
            value = int(value, 0)
        except ValueError as err:
            raise ValueError(f"Uint256 must be an integer string: '{value}'") from err

    if not isinstance(value, int):
        raise ValueError(f"Uint256 must be string or int, got {type(value).__name__}")

    if value < 0:
        raise ValueError(f"Uint256 cannot be negative: {value}")
    if value > UINT256_MAX:
        raise ValueError(f"Uint256 overflow: {value} > 2^256-1")

    return value


def normalize_address(address: str, *, validate: bool = False) -> str:
    """Normalize an Ethereum address to lowercase.

    Args:
        address: An Ethereum address (with or without 0x prefix)
        validate: If True, raises ValueError for invalid addresses.

    Returns:
        Lowercase address with 0x prefix

    Raises:
        ValueError: If validate=True and address is not a valid Ethereum address
    """
    addr = address.lower()
    if not addr.startswith("0x"):
        addr = "0x" + addr

    if validate and not is_valid_address(addr):
        raise ValueError(f"Invalid address: {address}")

    return addr


def is_valid_address(address: str) -> bool:
    """Check if a string is a valid Ethereum address (0x + 40 hex chars)."""
    if not isinstance(address, str):
        return False
    return ADDRESS_PATTERN.fullmatch(address) is not None


def address_to_bytes(address: str) -> bytes:
    """Convert a hex address to its 20 raw bytes for ABI encoding."""
    return bytes.fromhex(normalize_address(address, validate=True)[2:])


# Ethereum address, stored lowercase
Address = Annotated[
    str,
    Field(pattern=r"^0x[a-fA-F0-9]{40}$"),
    AfterValidator(normalize_address),
]

# 256-bit unsigned integer (accepts int or decimal/hex string)
Uint256 = Annotated[
    int,
    BeforeValidator(validate_uint256),
    Field(description="256-bit unsigned integer"),
]
