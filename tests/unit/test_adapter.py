"""Tests for the JAM -> Bebop order adapter."""

import random

import pytest

from jam_solver.adapter import OrderAdapter
from jam_solver.config import AdapterConfig
from jam_solver.encoding import decode_approve, decode_settle_aggregate_order
from jam_solver.errors import InvariantViolation, SigningFailure, UnsupportedToken
from jam_solver.models.bebop import PARTIAL_ORDER_TYPES, TokenCommand
from jam_solver.models.jam import JamOrder
from jam_solver.models.types import UINT256_MAX
from jam_solver.signing import recover_typed_data_signer
from jam_solver.tokens import ChainTokens
from tests.helpers import (
    BEBOP,
    DAI,
    NATIVE,
    NOW,
    RECEIVER,
    TAKER,
    USDC,
    WBTC,
    WETH,
    StubSigner,
    make_jam_order,
    make_venue_domain,
    rejecting_signer,
)


class TestSettlementCallsScenario:
    """Selling USDC for native ETH through Bebop."""

    def test_usdc_for_native(self, adapter, venue_domain, maker_signer):
        """One USDC approval, then the settlement call with WETH substituted."""
        order = make_jam_order(
            sell_tokens=[USDC], sell_amounts=[1000], buy_tokens=[NATIVE], buy_amounts=[1]
        )

        calls = adapter.build_settlement_calls(order, venue_domain, TAKER, maker_signer)

        assert len(calls) == 2

        approval = calls[0]
        assert approval.to == USDC
        assert approval.value == 0
        assert approval.result is True
        assert decode_approve(approval.data) == (BEBOP, 1000)

        settlement = calls[1]
        assert settlement.to == BEBOP
        assert settlement.value == 0
        decoded = decode_settle_aggregate_order(settlement.data)
        assert decoded.order.maker_tokens == [[WETH]]
        assert decoded.order.maker_amounts == [[1001]]
        assert decoded.order.taker_tokens == [[USDC]]
        assert decoded.order.taker_amounts == [[1000]]
        # maker flag first, then taker flag
        assert decoded.order.commands == bytes([0x01, 0x00])

    def test_settlement_embeds_maker_signature(self, adapter, venue_domain, maker_signer):
        """The maker signature goes in makerSigs; the taker signature is an empty placeholder."""
        plan = adapter.build_plan(make_jam_order(), venue_domain, TAKER, maker_signer)

        decoded = decode_settle_aggregate_order(plan.settlement_call.data)
        assert decoded.taker_signature.signature_bytes == b""
        assert len(decoded.maker_signatures) == 1
        assert decoded.maker_signatures[0].signature_bytes == plan.signed_order.signature
        assert decoded.maker_signatures[0].using_permit2 is False

    def test_aggregate_order_wraps_single_maker(self, adapter, venue_domain, maker_signer):
        """Single-maker fields become one-element lists."""
        plan = adapter.build_plan(make_jam_order(), venue_domain, TAKER, maker_signer)
        partial = plan.signed_order.order

        decoded = decode_settle_aggregate_order(plan.settlement_call.data).order
        assert decoded.maker_addresses == [maker_signer.address]
        assert decoded.maker_nonces == [partial.maker_nonce]
        assert decoded.expiry == partial.expiry
        assert decoded.taker_address == TAKER


class TestCallSequencing:
    """Approvals must come before the settlement call."""

    @pytest.mark.parametrize("sell_count", [0, 1, 3])
    def test_one_approval_per_sell_token(self, adapter, venue_domain, sell_count):
        sell_tokens = [USDC, DAI, WBTC][:sell_count]
        order = make_jam_order(
            sell_tokens=sell_tokens,
            sell_amounts=[100 * (i + 1) for i in range(sell_count)],
        )

        calls = adapter.build_settlement_calls(order, venue_domain, TAKER, StubSigner())

        assert len(calls) == sell_count + 1

    def test_settlement_call_is_last(self, adapter, venue_domain):
        order = make_jam_order(sell_tokens=[USDC, DAI], sell_amounts=[5, 7])

        calls = adapter.build_settlement_calls(order, venue_domain, TAKER, StubSigner())

        assert calls[-1].to == BEBOP
        decode_settle_aggregate_order(calls[-1].data)
        for call in calls[:-1]:
            decode_approve(call.data)

    def test_taker_approvals_use_exact_sell_amounts(self, adapter, venue_domain):
        order = make_jam_order(sell_tokens=[USDC, DAI], sell_amounts=[5, 7])

        plan = adapter.build_plan(order, venue_domain, TAKER, StubSigner())

        assert [call.to for call in plan.taker_approvals] == [USDC, DAI]
        assert [decode_approve(call.data) for call in plan.taker_approvals] == [
            (BEBOP, 5),
            (BEBOP, 7),
        ]


class TestMakerApprovals:
    """Maker approvals are returned as data, never executed."""

    def test_maker_approvals_not_in_solver_calls(self, adapter, venue_domain):
        order = make_jam_order(buy_tokens=[WETH, DAI], buy_amounts=[1, 2])

        plan = adapter.build_plan(order, venue_domain, TAKER, StubSigner())

        assert len(plan.maker_approvals) == 2
        assert len(plan.calls) == len(order.sell_tokens) + 1

    def test_maker_approval_uses_amount_not_token_address(self, adapter, venue_domain):
        """The allowance is the maker amount. Approving int(token address) would be a bug."""
        order = make_jam_order(buy_tokens=[DAI], buy_amounts=[500])

        plan = adapter.build_plan(order, venue_domain, TAKER, StubSigner())

        spender, amount = decode_approve(plan.maker_approvals[0].data)
        assert plan.maker_approvals[0].to == DAI
        assert spender == BEBOP
        assert amount == 500 + adapter.config.solver_excess
        assert amount != int(DAI, 16)

    def test_maker_approval_for_native_targets_wrapped_token(self, adapter, venue_domain):
        order = make_jam_order(buy_tokens=[NATIVE], buy_amounts=[10])

        plan = adapter.build_plan(order, venue_domain, TAKER, StubSigner())

        assert plan.maker_approvals[0].to == WETH


class TestTokenNormalization:
    """Native sentinel substitution and command flags."""

    def test_native_buy_token_becomes_wrapped(self, adapter, venue_domain, maker_signer):
        order = make_jam_order(buy_tokens=[DAI, NATIVE], buy_amounts=[1, 2])

        partial = adapter.build_partial_order(order, venue_domain, TAKER, maker_signer.address)

        assert partial.maker_tokens == [DAI, WETH]
        assert partial.maker_commands == [TokenCommand.ERC20, TokenCommand.NATIVE]

    def test_native_sell_token_becomes_wrapped(self, adapter, venue_domain, maker_signer):
        order = make_jam_order(sell_tokens=[NATIVE], sell_amounts=[10])

        partial = adapter.build_partial_order(order, venue_domain, TAKER, maker_signer.address)

        assert partial.taker_tokens == [WETH]
        assert partial.taker_commands == [TokenCommand.NATIVE]

    def test_commands_are_maker_flags_then_taker_flags(self, adapter, venue_domain):
        order = make_jam_order(
            sell_tokens=[NATIVE, USDC],
            sell_amounts=[1, 2],
            buy_tokens=[DAI, WBTC, NATIVE],
            buy_amounts=[3, 4, 5],
        )

        partial = adapter.build_partial_order(order, venue_domain, TAKER, RECEIVER)

        assert partial.commands_bytes == bytes([0x00, 0x00, 0x01, 0x01, 0x00])
        assert len(partial.commands) == len(partial.maker_tokens) + len(partial.taker_tokens)

    def test_mixed_case_sentinel_is_recognized(self, adapter, venue_domain):
        order = make_jam_order(
            buy_tokens=["0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"], buy_amounts=[1]
        )

        partial = adapter.build_partial_order(order, venue_domain, TAKER, RECEIVER)

        assert partial.maker_tokens == [WETH]

    def test_wrapped_token_follows_chain(self, adapter):
        polygon = make_venue_domain(chain_id=137)
        order = make_jam_order(buy_tokens=[NATIVE], buy_amounts=[1])

        partial = adapter.build_partial_order(order, polygon, TAKER, RECEIVER)

        assert partial.maker_tokens == ["0x0d500b1d8e8ef31e21c99d1db9a6444d3adf1270"]

    def test_unknown_chain_native_raises(self, adapter):
        order = make_jam_order(buy_tokens=[NATIVE], buy_amounts=[1])

        with pytest.raises(UnsupportedToken):
            adapter.build_partial_order(order, make_venue_domain(chain_id=999_999), TAKER, RECEIVER)

    def test_unknown_chain_without_native_is_fine(self, adapter):
        """Only the native substitution needs the chain's wrapped token."""
        order = make_jam_order(buy_tokens=[DAI], buy_amounts=[1])

        partial = adapter.build_partial_order(
            order, make_venue_domain(chain_id=999_999), TAKER, RECEIVER
        )

        assert partial.maker_tokens == [DAI]

    def test_injected_resolver_is_used(self, clock, venue_domain):
        custom_wrapped = "0x4444444444444444444444444444444444444444"
        tokens = ChainTokens(1, wrapped_tokens={1: custom_wrapped})
        adapter = OrderAdapter(tokens=tokens, rng=random.Random(0), clock=clock)
        order = make_jam_order(buy_tokens=[NATIVE], buy_amounts=[1])

        partial = adapter.build_partial_order(order, venue_domain, TAKER, RECEIVER)

        assert partial.maker_tokens == [custom_wrapped]


class TestAmounts:
    """Solver excess on the maker side only."""

    def test_maker_amounts_include_excess(self, adapter, venue_domain):
        order = make_jam_order(buy_tokens=[WETH, DAI], buy_amounts=[10**18, 0])

        partial = adapter.build_partial_order(order, venue_domain, TAKER, RECEIVER)

        assert partial.maker_amounts == [10**18 + 1000, 1000]

    def test_taker_amounts_unchanged(self, adapter, venue_domain):
        order = make_jam_order(sell_tokens=[USDC, DAI], sell_amounts=[123, 456])

        partial = adapter.build_partial_order(order, venue_domain, TAKER, RECEIVER)

        assert partial.taker_amounts == [123, 456]

    def test_custom_excess(self, clock, venue_domain):
        adapter = OrderAdapter(config=AdapterConfig(solver_excess=7), clock=clock)
        order = make_jam_order(buy_amounts=[100])

        partial = adapter.build_partial_order(order, venue_domain, TAKER, RECEIVER)

        assert partial.maker_amounts == [107]

    def test_excess_overflow_raises(self, adapter, venue_domain):
        order = make_jam_order(buy_amounts=[UINT256_MAX])

        with pytest.raises(InvariantViolation, match="overflows"):
            adapter.build_partial_order(order, venue_domain, TAKER, RECEIVER)


class TestMetadata:
    """Expiry, nonce and receiver."""

    def test_expiry_is_now_plus_horizon(self, adapter, venue_domain):
        partial = adapter.build_partial_order(make_jam_order(), venue_domain, TAKER, RECEIVER)

        assert partial.expiry == NOW + adapter.config.expiry_horizon

    def test_receiver_defaults_to_taker(self, adapter, venue_domain, maker_signer):
        calls = adapter.build_settlement_calls(make_jam_order(), venue_domain, TAKER, maker_signer)

        assert decode_settle_aggregate_order(calls[-1].data).order.receiver == TAKER

    def test_receiver_override(self, adapter, venue_domain, maker_signer):
        calls = adapter.build_settlement_calls(
            make_jam_order(), venue_domain, TAKER, maker_signer, receiver_override=RECEIVER
        )

        decoded = decode_settle_aggregate_order(calls[-1].data).order
        assert decoded.receiver == RECEIVER
        assert decoded.taker_address == TAKER

    def test_maker_address_comes_from_signer(self, adapter, venue_domain, maker_signer):
        plan = adapter.build_plan(make_jam_order(), venue_domain, TAKER, maker_signer)

        assert plan.signed_order.order.maker_address == maker_signer.address

    def test_seeded_rng_is_deterministic(self, clock, venue_domain):
        order = make_jam_order()
        first = OrderAdapter(rng=random.Random(99), clock=clock)
        second = OrderAdapter(rng=random.Random(99), clock=clock)

        nonce_a = first.build_partial_order(order, venue_domain, TAKER, RECEIVER).maker_nonce
        nonce_b = second.build_partial_order(order, venue_domain, TAKER, RECEIVER).maker_nonce

        assert nonce_a == nonce_b

    def test_nonces_vary_across_builds(self, venue_domain):
        """Randomness sanity check, not a uniqueness guarantee."""
        adapter = OrderAdapter()
        order = make_jam_order()

        nonces = {
            adapter.build_partial_order(order, venue_domain, TAKER, RECEIVER).maker_nonce
            for _ in range(10_000)
        }

        assert len(nonces) > 1

    def test_nonce_within_space(self, clock, venue_domain):
        adapter = OrderAdapter(config=AdapterConfig(nonce_space=3), rng=random.Random(5), clock=clock)

        for _ in range(50):
            nonce = adapter.build_partial_order(
                make_jam_order(), venue_domain, TAKER, RECEIVER
            ).maker_nonce
            assert 1 <= nonce < 3


class TestSigning:
    """Maker signature over the Bebop order."""

    def test_signature_recovers_to_maker(self, adapter, venue_domain, maker_signer):
        plan = adapter.build_plan(make_jam_order(), venue_domain, TAKER, maker_signer)
        signed = plan.signed_order

        recovered = recover_typed_data_signer(
            venue_domain.to_typed_data(),
            PARTIAL_ORDER_TYPES,
            signed.order.to_typed_data(),
            signed.signature,
        )

        assert recovered == maker_signer.address

    def test_mutating_order_invalidates_signature(self, adapter, venue_domain, maker_signer):
        signed = adapter.build_plan(make_jam_order(), venue_domain, TAKER, maker_signer).signed_order
        tampered = signed.order.model_copy(update={"maker_amounts": [1]})

        recovered = recover_typed_data_signer(
            venue_domain.to_typed_data(),
            PARTIAL_ORDER_TYPES,
            tampered.to_typed_data(),
            signed.signature,
        )

        assert recovered != maker_signer.address

    def test_other_domain_invalidates_signature(self, adapter, venue_domain, maker_signer):
        signed = adapter.build_plan(make_jam_order(), venue_domain, TAKER, maker_signer).signed_order

        recovered = recover_typed_data_signer(
            make_venue_domain(chain_id=137).to_typed_data(),
            PARTIAL_ORDER_TYPES,
            signed.order.to_typed_data(),
            signed.signature,
        )

        assert recovered != maker_signer.address

    def test_signer_receives_domain_and_types(self, adapter, venue_domain):
        signer = StubSigner()

        adapter.build_settlement_calls(make_jam_order(), venue_domain, TAKER, signer)

        assert len(signer.calls) == 1
        request = signer.calls[0]
        assert request["domain"]["verifyingContract"] == BEBOP
        assert request["domain"]["name"] == "BebopSettlement"
        assert request["types"] == PARTIAL_ORDER_TYPES
        assert request["message"]["commands"] == bytes([0x00, 0x00])

    def test_signing_failure_aborts(self, adapter, venue_domain):
        with pytest.raises(SigningFailure):
            adapter.build_settlement_calls(make_jam_order(), venue_domain, TAKER, rejecting_signer())

    def test_unexpected_signer_error_becomes_signing_failure(self, adapter, venue_domain):
        signer = StubSigner(error=ConnectionError("signer offline"))

        with pytest.raises(SigningFailure, match="signer offline"):
            adapter.build_settlement_calls(make_jam_order(), venue_domain, TAKER, signer)

    def test_malformed_signature_rejected(self, adapter, venue_domain):
        signer = StubSigner(signature=b"\x00" * 10)

        with pytest.raises(SigningFailure, match="malformed"):
            adapter.build_settlement_calls(make_jam_order(), venue_domain, TAKER, signer)

    def test_expired_order_not_signed(self, adapter, clock, venue_domain):
        partial = adapter.build_partial_order(make_jam_order(), venue_domain, TAKER, RECEIVER)
        clock.now = partial.expiry
        signer = StubSigner()

        with pytest.raises(InvariantViolation, match="expiry"):
            adapter.sign_order(partial, venue_domain, signer)
        assert signer.calls == []


class TestInputValidation:
    """Caller contract errors."""

    def test_sell_length_mismatch(self, adapter, venue_domain):
        order = JamOrder(sellTokens=[USDC, DAI], sellAmounts=[1], buyTokens=[WETH], buyAmounts=[1])

        with pytest.raises(InvariantViolation, match="sell_tokens"):
            adapter.build_settlement_calls(order, venue_domain, TAKER, StubSigner())

    def test_buy_length_mismatch(self, adapter, venue_domain):
        order = JamOrder(sellTokens=[USDC], sellAmounts=[1], buyTokens=[WETH], buyAmounts=[1, 2])

        with pytest.raises(InvariantViolation, match="buy_tokens"):
            adapter.build_settlement_calls(order, venue_domain, TAKER, StubSigner())

    def test_length_mismatch_never_reaches_signer(self, adapter, venue_domain):
        order = JamOrder(sellTokens=[USDC], sellAmounts=[], buyTokens=[WETH], buyAmounts=[1])
        signer = StubSigner()

        with pytest.raises(InvariantViolation):
            adapter.build_settlement_calls(order, venue_domain, TAKER, signer)
        assert signer.calls == []

    def test_invalid_taker_address(self, adapter, venue_domain):
        with pytest.raises(InvariantViolation, match="taker_address"):
            adapter.build_settlement_calls(make_jam_order(), venue_domain, "0x1234", StubSigner())

    def test_invalid_receiver(self, adapter, venue_domain):
        with pytest.raises(InvariantViolation, match="receiver"):
            adapter.build_settlement_calls(
                make_jam_order(), venue_domain, TAKER, StubSigner(), receiver_override="nope"
            )

    @pytest.mark.parametrize("address", ["0x" + "a" * 39 + " ", "0x_" + "a" * 39])
    def test_address_with_int_literal_syntax_rejected(self, adapter, venue_domain, address):
        """Whitespace and digit separators parse as hex ints but are not addresses."""
        with pytest.raises(InvariantViolation, match="taker_address"):
            adapter.build_settlement_calls(make_jam_order(), venue_domain, address, StubSigner())

        with pytest.raises(InvariantViolation, match="receiver"):
            adapter.build_settlement_calls(
                make_jam_order(), venue_domain, TAKER, StubSigner(), receiver_override=address
            )
