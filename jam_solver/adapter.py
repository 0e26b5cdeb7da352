"""Adapt JAM orders into signed Bebop orders and solver calls.

The adapter is a pure transformation: it never sends transactions. Every
state-changing step, approvals included, comes back as a JamInteraction for
the submission layer to execute in order.

Pipeline:
    normalize tokens -> build PartialOrder -> sign -> approvals -> settlement call
"""

from __future__ import annotations

import random
import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from jam_solver.config import DEFAULT_ADAPTER_CONFIG, AdapterConfig
from jam_solver.encoding import (
    VenueSignature,
    encode_approve,
    encode_settle_aggregate_order,
)
from jam_solver.errors import InvariantViolation, SigningFailure
from jam_solver.models.bebop import (
    PARTIAL_ORDER_TYPES,
    AggregateOrder,
    PartialOrder,
    SignedOrder,
    TokenCommand,
    VenueDomain,
)
from jam_solver.models.jam import JamInteraction, JamOrder
from jam_solver.models.types import UINT256_MAX, is_valid_address, normalize_address
from jam_solver.signing import TypedDataSigner
from jam_solver.tokens import ChainTokens, NativeTokenResolver

logger = structlog.get_logger()

# r (32) + s (32) + v (1)
ECDSA_SIGNATURE_LENGTH = 65


@dataclass(frozen=True)
class SettlementPlan:
    """Everything produced for one settlement attempt.

    Attributes:
        signed_order: The maker-signed Bebop order
        maker_approvals: approve(venue, maker_amount) per maker token. These run
            from the maker's account, not the solver's, so they are not part of `calls`.
        calls: Taker-token approvals followed by the settlement call, in execution order
    """

    signed_order: SignedOrder
    maker_approvals: list[JamInteraction]
    calls: list[JamInteraction]

    @property
    def taker_approvals(self) -> list[JamInteraction]:
        return self.calls[:-1]

    @property
    def settlement_call(self) -> JamInteraction:
        return self.calls[-1]


class OrderAdapter:
    """Turns a JAM order into Bebop solver calls.

    Args:
        config: Solver excess, expiry horizon and nonce space
        tokens: Native token resolver. If None, one is built per call from the
            venue's chain ID.
        rng: Random source for maker nonces. Inject a seeded instance for
            deterministic builds.
        clock: Returns the current unix time in seconds
    """

    def __init__(
        self,
        config: AdapterConfig = DEFAULT_ADAPTER_CONFIG,
        tokens: NativeTokenResolver | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        self._tokens = tokens
        self._rng = rng if rng is not None else random.Random()
        self._clock = clock

    def build_settlement_calls(
        self,
        order: JamOrder,
        venue_domain: VenueDomain,
        taker_address: str,
        maker_signer: TypedDataSigner,
        receiver_override: str | None = None,
    ) -> list[JamInteraction]:
        """Build the ordered solver calls that settle `order` on Bebop.

        Returns:
            One approval per sell token, then the settlement call

        Raises:
            InvariantViolation: Malformed order or addresses
            UnsupportedToken: Native sentinel cannot be substituted
            SigningFailure: Maker signing failed; no calls are returned
        """
        return self.build_plan(
            order,
            venue_domain,
            taker_address,
            maker_signer,
            receiver_override=receiver_override,
        ).calls

    def build_plan(
        self,
        order: JamOrder,
        venue_domain: VenueDomain,
        taker_address: str,
        maker_signer: TypedDataSigner,
        receiver_override: str | None = None,
    ) -> SettlementPlan:
        """Build, sign and encode a Bebop settlement for `order`.

        Same as build_settlement_calls, but also returns the signed order and
        the maker-side approvals.
        """
        partial = self.build_partial_order(
            order,
            venue_domain,
            taker_address,
            maker_signer.address,
            receiver_override=receiver_override,
        )
        signed = self.sign_order(partial, venue_domain, maker_signer)

        spender = venue_domain.settlement_address
        maker_approvals = self._approval_calls(partial.maker_tokens, partial.maker_amounts, spender)
        taker_approvals = self._approval_calls(partial.taker_tokens, partial.taker_amounts, spender)
        calls = [*taker_approvals, self._settlement_call(signed)]

        logger.info(
            "solver_calls_built",
            maker=partial.maker_address,
            taker=partial.taker_address,
            maker_nonce=partial.maker_nonce,
            expiry=partial.expiry,
            call_count=len(calls),
            maker_approval_count=len(maker_approvals),
        )
        return SettlementPlan(signed_order=signed, maker_approvals=maker_approvals, calls=calls)

    def build_partial_order(
        self,
        order: JamOrder,
        venue_domain: VenueDomain,
        taker_address: str,
        maker_address: str,
        receiver_override: str | None = None,
    ) -> PartialOrder:
        """Reshape a JAM order into an unsigned Bebop PartialOrder.

        Maker (buy side) flags come first in `commands`, then taker (sell side)
        flags. Bebop reads them in that order.
        """
        self._check_lengths(order)
        taker = self._checked_address("taker_address", taker_address)
        maker = self._checked_address("maker_address", maker_address)
        receiver = (
            self._checked_address("receiver", receiver_override)
            if receiver_override is not None
            else taker
        )

        resolver = self._resolver(venue_domain)
        maker_tokens, maker_commands = self._normalize_tokens(order.buy_tokens, resolver)
        taker_tokens, taker_commands = self._normalize_tokens(order.sell_tokens, resolver)

        maker_amounts = [self._with_excess(amount) for amount in order.buy_amounts]
        taker_amounts = list(order.sell_amounts)

        partial = PartialOrder(
            expiry=int(self._clock()) + self.config.expiry_horizon,
            taker_address=taker,
            maker_address=maker,
            maker_nonce=self._rng.randrange(1, self.config.nonce_space),
            taker_tokens=taker_tokens,
            maker_tokens=maker_tokens,
            taker_amounts=taker_amounts,
            maker_amounts=maker_amounts,
            receiver=receiver,
            commands=[*maker_commands, *taker_commands],
        )
        logger.debug(
            "bebop_order_built",
            maker_nonce=partial.maker_nonce,
            commands=partial.commands_bytes.hex(),
            receiver=partial.receiver,
        )
        return partial

    def sign_order(
        self,
        order: PartialOrder,
        venue_domain: VenueDomain,
        maker_signer: TypedDataSigner,
    ) -> SignedOrder:
        """Have the maker sign `order` under the venue's EIP-712 domain.

        Raises:
            InvariantViolation: The order has already expired
            SigningFailure: The signer failed or returned a malformed signature
        """
        now = self._clock()
        if order.expiry <= now:
            raise InvariantViolation(f"Order expiry {order.expiry} is not after now ({int(now)})")

        try:
            signature = maker_signer.sign_typed_data(
                venue_domain.to_typed_data(),
                PARTIAL_ORDER_TYPES,
                order.to_typed_data(),
            )
        except SigningFailure:
            logger.warning("bebop_signing_failed", maker=order.maker_address)
            raise
        except Exception as err:
            logger.warning("bebop_signing_failed", maker=order.maker_address, error=str(err))
            raise SigningFailure(f"Maker signer raised: {err}") from err

        if not isinstance(signature, bytes) or len(signature) != ECDSA_SIGNATURE_LENGTH:
            raise SigningFailure("Maker signer returned a malformed signature")

        logger.debug("bebop_order_signed", maker=order.maker_address, maker_nonce=order.maker_nonce)
        return SignedOrder(order=order, domain=venue_domain, signature=signature)

    def _resolver(self, venue_domain: VenueDomain) -> NativeTokenResolver:
        if self._tokens is not None:
            return self._tokens
        return ChainTokens(venue_domain.chain_id, native_token=self.config.native_token)

    @staticmethod
    def _check_lengths(order: JamOrder) -> None:
        if len(order.sell_tokens) != len(order.sell_amounts):
            raise InvariantViolation(
                f"sell_tokens ({len(order.sell_tokens)}) and sell_amounts "
                f"({len(order.sell_amounts)}) lengths differ"
            )
        if len(order.buy_tokens) != len(order.buy_amounts):
            raise InvariantViolation(
                f"buy_tokens ({len(order.buy_tokens)}) and buy_amounts "
                f"({len(order.buy_amounts)}) lengths differ"
            )

    @staticmethod
    def _checked_address(name: str, address: str) -> str:
        if not is_valid_address(address):
            raise InvariantViolation(f"Invalid {name}: {address}")
        return normalize_address(address)

    @staticmethod
    def _normalize_tokens(
        tokens: list[str],
        resolver: NativeTokenResolver,
    ) -> tuple[list[str], list[TokenCommand]]:
        normalized: list[str] = []
        commands: list[TokenCommand] = []
        for token in tokens:
            if resolver.is_native(token):
                normalized.append(resolver.wrapped_native())
                commands.append(TokenCommand.NATIVE)
            else:
                normalized.append(normalize_address(token))
                commands.append(TokenCommand.ERC20)
        return normalized, commands

    def _with_excess(self, amount: int) -> int:
        inflated = amount + self.config.solver_excess
        if inflated > UINT256_MAX:
            raise InvariantViolation(f"Buy amount {amount} overflows uint256 with solver excess")
        return inflated

    @staticmethod
    def _approval_calls(
        tokens: list[str],
        amounts: list[int],
        spender: str,
    ) -> list[JamInteraction]:
        return [
            JamInteraction(result=True, to=token, data=encode_approve(spender, amount), value=0)
            for token, amount in zip(tokens, amounts, strict=True)
        ]

    @staticmethod
    def _settlement_call(signed: SignedOrder) -> JamInteraction:
        aggregate = AggregateOrder.from_partial(signed.order)
        data = encode_settle_aggregate_order(
            aggregate,
            VenueSignature.empty(),
            [VenueSignature.from_maker(signed.signature)],
        )
        return JamInteraction(
            result=True,
            to=signed.domain.settlement_address,
            data=data,
            value=0,
        )


__all__ = ["OrderAdapter", "SettlementPlan"]
