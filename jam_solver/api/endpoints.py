"""API endpoints for the JAM solver."""

import asyncio
import os
from functools import lru_cache

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from jam_solver.adapter import OrderAdapter
from jam_solver.config import AdapterConfig
from jam_solver.constants import (
    BEBOP_DOMAIN_NAME,
    BEBOP_DOMAIN_VERSION,
    BEBOP_SETTLEMENT,
    NETWORK_CHAIN_IDS,
)
from jam_solver.errors import InvariantViolation, SigningFailure, UnsupportedToken
from jam_solver.models.bebop import VenueDomain
from jam_solver.models.jam import JamInteraction, JamOrder
from jam_solver.models.types import Address
from jam_solver.signing import LocalAccountSigner, TypedDataSigner

logger = structlog.get_logger()

router = APIRouter()

# Bebop settlement contract the maker signs for
# Configurable via environment variable BEBOP_SETTLEMENT_ADDRESS
SETTLEMENT_ADDRESS = os.environ.get("BEBOP_SETTLEMENT_ADDRESS", BEBOP_SETTLEMENT)


class SolverCallsRequest(BaseModel):
    """A JAM order to be settled through Bebop."""

    order: JamOrder
    taker_address: Address = Field(alias="takerAddress")
    receiver: Address | None = Field(
        default=None,
        description="Where settlement proceeds go. Defaults to the taker.",
    )

    model_config = {"populate_by_name": True}


class InteractionResponse(BaseModel):
    """A JamInteraction with hex calldata."""

    result: bool
    to: str
    data: str
    value: str


class SolverCallsResponse(BaseModel):
    """Signed Bebop order plus the calls that settle it."""

    calls: list[InteractionResponse] = Field(
        description="Taker approvals followed by the settlement call, in execution order.",
    )
    maker_approvals: list[InteractionResponse] = Field(
        alias="makerApprovals",
        description="Approvals the maker account must have executed before settlement.",
    )
    order: dict[str, object] = Field(description="The signed Bebop order.")
    signature: str

    model_config = {"populate_by_name": True}


def _interaction_response(interaction: JamInteraction) -> InteractionResponse:
    return InteractionResponse.model_validate(interaction.to_json())


@lru_cache(maxsize=1)
def _default_adapter() -> OrderAdapter:
    return OrderAdapter(config=AdapterConfig.from_env())


@lru_cache(maxsize=1)
def _default_signer() -> TypedDataSigner | None:
    private_key = os.environ.get("BEBOP_MAKER_PRIVATE_KEY")
    if not private_key:
        logger.info("maker_signer_disabled", reason="BEBOP_MAKER_PRIVATE_KEY not set")
        return None
    try:
        signer = LocalAccountSigner.from_key(private_key)
    except SigningFailure:
        logger.error("maker_signer_disabled", reason="BEBOP_MAKER_PRIVATE_KEY is malformed")
        return None
    logger.info("maker_signer_enabled", maker=signer.address)
    return signer


def get_adapter() -> OrderAdapter:
    """Dependency provider for the order adapter.

    Override this in tests to inject a deterministic adapter:
        app.dependency_overrides[get_adapter] = lambda: adapter
    """
    return _default_adapter()


def get_signer() -> TypedDataSigner | None:
    """Dependency provider for the maker signer. None when no key is configured."""
    return _default_signer()


def get_settlement_address() -> str:
    """Dependency provider for the Bebop settlement contract address."""
    return SETTLEMENT_ADDRESS


@router.post(
    "/{network}/bebop/solver-calls",
    response_model=SolverCallsResponse,
    response_model_by_alias=True,
)
async def solver_calls(
    network: str,
    request: SolverCallsRequest,
    adapter: OrderAdapter = Depends(get_adapter),
    signer: TypedDataSigner | None = Depends(get_signer),
    settlement_address: str = Depends(get_settlement_address),
) -> SolverCallsResponse:
    """Sign a Bebop order for a JAM order and return the solver calls.

    Error Handling:
        - Invalid request schema: 422 (Pydantic)
        - Unknown network: 404
        - No maker signer configured: 503
        - Malformed order (length mismatch, overflow): 422
        - Native token cannot be wrapped on this network: 400
        - Signing failed: 502
    """
    logger.info(
        "received_jam_order",
        network=network,
        taker=request.taker_address,
        sell_tokens=len(request.order.sell_tokens),
        buy_tokens=len(request.order.buy_tokens),
    )

    chain_id = NETWORK_CHAIN_IDS.get(network)
    if chain_id is None:
        logger.warning(
            "unsupported_network",
            network=network,
            supported_networks=list(NETWORK_CHAIN_IDS),
        )
        raise HTTPException(status_code=404, detail=f"Unsupported network: {network}")

    if signer is None:
        raise HTTPException(status_code=503, detail="Maker signer not configured")

    venue_domain = VenueDomain(
        name=BEBOP_DOMAIN_NAME,
        version=BEBOP_DOMAIN_VERSION,
        chain_id=chain_id,
        verifying_contract=settlement_address,
    )

    loop = asyncio.get_event_loop()
    try:
        plan = await loop.run_in_executor(
            None,
            lambda: adapter.build_plan(
                request.order,
                venue_domain,
                request.taker_address,
                signer,
                receiver_override=request.receiver,
            ),
        )
    except InvariantViolation as err:
        raise HTTPException(status_code=422, detail=str(err)) from err
    except UnsupportedToken as err:
        raise HTTPException(status_code=400, detail=str(err)) from err
    except SigningFailure as err:
        logger.error("maker_signing_failed", network=network, error=str(err))
        raise HTTPException(status_code=502, detail="Maker signing failed") from err

    signed = plan.signed_order
    logger.info(
        "returning_solver_calls",
        network=network,
        maker_nonce=signed.order.maker_nonce,
        call_count=len(plan.calls),
    )

    return SolverCallsResponse(
        calls=[_interaction_response(call) for call in plan.calls],
        maker_approvals=[_interaction_response(call) for call in plan.maker_approvals],
        order=signed.order.model_dump(mode="json"),
        signature="0x" + signed.signature.hex(),
    )
