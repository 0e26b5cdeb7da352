"""Calldata encoding for ERC-20 approvals and BebopSettlement."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from eth_abi import decode, encode  # type: ignore[attr-defined]
from eth_utils import function_signature_to_4byte_selector

from jam_solver.models.bebop import AggregateOrder, TokenCommand, commands_from_bytes
from jam_solver.models.types import address_to_bytes, normalize_address

# approve(address,uint256)
APPROVE_SELECTOR = bytes.fromhex("095ea7b3")

# AggregateOrder struct as laid out by BebopSettlement
AGGREGATE_ORDER_ABI_TYPE = (
    "(uint256,address,address[],uint256[],address[][],address[][],uint256[][],uint256[][],address,bytes)"
)
# Signature { SignatureType signatureType; bytes signatureBytes; }
SIGNATURE_ABI_TYPE = "(uint8,bytes)"
# MakerSignatures { Signature signature; bool usingPermit2; }
MAKER_SIGNATURES_ABI_TYPE = f"({SIGNATURE_ABI_TYPE},bool)[]"

SETTLE_AGGREGATE_ORDER_SIGNATURE = (
    f"SettleAggregateOrder({AGGREGATE_ORDER_ABI_TYPE},{SIGNATURE_ABI_TYPE},{MAKER_SIGNATURES_ABI_TYPE})"
)
SETTLE_AGGREGATE_ORDER_SELECTOR = function_signature_to_4byte_selector(
    SETTLE_AGGREGATE_ORDER_SIGNATURE
)


class SignatureType(IntEnum):
    """BebopSettlement.SignatureType."""

    EIP712 = 0
    EIP1271 = 1
    ETHSIGN = 2


@dataclass(frozen=True)
class VenueSignature:
    """A signature in the shape BebopSettlement takes it."""

    signature_type: SignatureType
    signature_bytes: bytes
    using_permit2: bool = False

    @classmethod
    def empty(cls) -> VenueSignature:
        """Placeholder taker signature; the JAM flow authorizes the taker itself."""
        return cls(signature_type=SignatureType.EIP712, signature_bytes=b"")

    @classmethod
    def from_maker(cls, signature: bytes) -> VenueSignature:
        """An EIP-712 maker signature, not routed through Permit2."""
        return cls(signature_type=SignatureType.EIP712, signature_bytes=signature)


@dataclass(frozen=True)
class DecodedSettlement:
    """Arguments recovered from SettleAggregateOrder calldata."""

    order: AggregateOrder
    taker_signature: VenueSignature
    maker_signatures: list[VenueSignature]
    commands: list[TokenCommand]


def encode_approve(spender: str, amount: int) -> bytes:
    """Encode ERC20.approve(spender, amount).

    Args:
        spender: Address allowed to pull the tokens
        amount: Allowance in token base units

    Returns:
        Calldata bytes (selector + arguments)
    """
    return APPROVE_SELECTOR + encode(["address", "uint256"], [address_to_bytes(spender), amount])


def decode_approve(calldata: bytes) -> tuple[str, int]:
    """Decode ERC20.approve calldata into (spender, amount).

    Raises:
        ValueError: If the selector is not approve
    """
    if calldata[:4] != APPROVE_SELECTOR:
        raise ValueError(f"Not an approve call: selector 0x{calldata[:4].hex()}")
    spender, amount = decode(["address", "uint256"], calldata[4:])
    return normalize_address(spender), amount


def _aggregate_order_tuple(order: AggregateOrder) -> tuple:
    return (
        order.expiry,
        address_to_bytes(order.taker_address),
        [address_to_bytes(maker) for maker in order.maker_addresses],
        list(order.maker_nonces),
        [[address_to_bytes(token) for token in tokens] for tokens in order.taker_tokens],
        [[address_to_bytes(token) for token in tokens] for tokens in order.maker_tokens],
        [list(amounts) for amounts in order.taker_amounts],
        [list(amounts) for amounts in order.maker_amounts],
        address_to_bytes(order.receiver),
        order.commands,
    )


def encode_settle_aggregate_order(
    order: AggregateOrder,
    taker_signature: VenueSignature,
    maker_signatures: list[VenueSignature],
) -> bytes:
    """Encode BebopSettlement.SettleAggregateOrder.

    Args:
        order: The aggregate order being settled
        taker_signature: Taker authorization (empty placeholder in the JAM flow)
        maker_signatures: One signature per maker, in maker order

    Returns:
        Calldata bytes (selector + arguments)

    Raises:
        ValueError: If the number of maker signatures does not match the makers
    """
    if len(maker_signatures) != order.maker_count:
        raise ValueError(
            f"Expected {order.maker_count} maker signatures, got {len(maker_signatures)}"
        )

    encoded_params = encode(
        [AGGREGATE_ORDER_ABI_TYPE, SIGNATURE_ABI_TYPE, MAKER_SIGNATURES_ABI_TYPE],
        [
            _aggregate_order_tuple(order),
            (int(taker_signature.signature_type), taker_signature.signature_bytes),
            [
                ((int(sig.signature_type), sig.signature_bytes), sig.using_permit2)
                for sig in maker_signatures
            ],
        ],
    )
    return SETTLE_AGGREGATE_ORDER_SELECTOR + encoded_params


def decode_settle_aggregate_order(calldata: bytes) -> DecodedSettlement:
    """Decode SettleAggregateOrder calldata.

    Raises:
        ValueError: If the selector is not SettleAggregateOrder
    """
    if calldata[:4] != SETTLE_AGGREGATE_ORDER_SELECTOR:
        raise ValueError(f"Not a SettleAggregateOrder call: selector 0x{calldata[:4].hex()}")

    raw_order, raw_taker_sig, raw_maker_sigs = decode(
        [AGGREGATE_ORDER_ABI_TYPE, SIGNATURE_ABI_TYPE, MAKER_SIGNATURES_ABI_TYPE],
        calldata[4:],
    )
    (
        expiry,
        taker_address,
        maker_addresses,
        maker_nonces,
        taker_tokens,
        maker_tokens,
        taker_amounts,
        maker_amounts,
        receiver,
        commands,
    ) = raw_order

    order = AggregateOrder(
        expiry=expiry,
        taker_address=taker_address,
        maker_addresses=list(maker_addresses),
        maker_nonces=list(maker_nonces),
        taker_tokens=[list(tokens) for tokens in taker_tokens],
        maker_tokens=[list(tokens) for tokens in maker_tokens],
        taker_amounts=[list(amounts) for amounts in taker_amounts],
        maker_amounts=[list(amounts) for amounts in maker_amounts],
        receiver=receiver,
        commands=commands,
    )
    taker_signature = VenueSignature(
        signature_type=SignatureType(raw_taker_sig[0]),
        signature_bytes=raw_taker_sig[1],
    )
    maker_signatures = [
        VenueSignature(
            signature_type=SignatureType(sig[0]),
            signature_bytes=sig[1],
            using_permit2=permit2,
        )
        for sig, permit2 in raw_maker_sigs
    ]
    return DecodedSettlement(
        order=order,
        taker_signature=taker_signature,
        maker_signatures=maker_signatures,
        commands=commands_from_bytes(commands),
    )


__all__ = [
    "APPROVE_SELECTOR",
    "SETTLE_AGGREGATE_ORDER_SELECTOR",
    "SETTLE_AGGREGATE_ORDER_SIGNATURE",
    "DecodedSettlement",
    "SignatureType",
    "VenueSignature",
    "decode_approve",
    "decode_settle_aggregate_order",
    "encode_approve",
    "encode_settle_aggregate_order",
]
