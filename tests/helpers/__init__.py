"""Test helpers module for shared test utilities.

- constants: Token, account and contract addresses
- factories: Order/domain factories and stub collaborators
"""

from tests.helpers.constants import (
    BEBOP,
    DAI,
    MAKER_PRIVATE_KEY,
    NATIVE,
    NOW,
    RECEIVER,
    TAKER,
    USDC,
    WBTC,
    WETH,
)
from tests.helpers.factories import (
    FixedClock,
    StubSigner,
    make_jam_order,
    make_venue_domain,
    rejecting_signer,
)

__all__ = [
    # Constants
    "WETH",
    "USDC",
    "DAI",
    "WBTC",
    "NATIVE",
    "BEBOP",
    "TAKER",
    "RECEIVER",
    "MAKER_PRIVATE_KEY",
    "NOW",
    # Factories
    "FixedClock",
    "StubSigner",
    "make_jam_order",
    "make_venue_domain",
    "rejecting_signer",
]
