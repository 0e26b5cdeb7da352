"""Pydantic models for JAM orders and solver interactions.

A JAM order is venue-agnostic: the taker sells `sell_tokens` and expects
`buy_tokens` back. Solvers answer with a list of interactions that the JAM
settlement contract executes in order.
"""

from pydantic import BaseModel, Field

from jam_solver.models.types import Address, Uint256


class JamOrder(BaseModel):
    """The venue-agnostic order a solver is asked to fill.

    Token and amount lists correspond positionally. Length mismatches are
    accepted here and rejected by the adapter with InvariantViolation.
    """

    sell_tokens: list[Address] = Field(alias="sellTokens")
    sell_amounts: list[Uint256] = Field(alias="sellAmounts")
    buy_tokens: list[Address] = Field(alias="buyTokens")
    buy_amounts: list[Uint256] = Field(alias="buyAmounts")

    model_config = {"populate_by_name": True, "frozen": True}


class JamInteraction(BaseModel):
    """A call the solver contract executes during settlement.

    `result` records whether the solver expects the call to succeed; it is
    used for verification downstream and is not enforced on-chain here.
    """

    result: bool = True
    to: Address = Field(description="Contract address to call.")
    data: bytes = Field(description="Encoded function call.")
    value: Uint256 = Field(default=0, description="Native value sent with the call.")

    model_config = {"frozen": True}

    @property
    def data_hex(self) -> str:
        """Calldata as a 0x-prefixed hex string."""
        return "0x" + self.data.hex()

    def to_json(self) -> dict[str, object]:
        """Serialize with hex calldata and a decimal string value."""
        return {
            "result": self.result,
            "to": self.to,
            "data": self.data_hex,
            "value": str(self.value),
        }
