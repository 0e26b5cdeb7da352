"""Pytest configuration and fixtures."""

import random

import pytest

from jam_solver.adapter import OrderAdapter
from jam_solver.models.bebop import VenueDomain
from jam_solver.signing import LocalAccountSigner
from tests.helpers import MAKER_PRIVATE_KEY, NOW, FixedClock, make_venue_domain


@pytest.fixture
def clock() -> FixedClock:
    """A clock frozen at NOW."""
    return FixedClock(NOW)


@pytest.fixture
def adapter(clock: FixedClock) -> OrderAdapter:
    """Adapter with a seeded nonce source and frozen clock."""
    return OrderAdapter(rng=random.Random(1234), clock=clock)


@pytest.fixture
def maker_signer() -> LocalAccountSigner:
    """In-process signer for a throwaway maker key."""
    return LocalAccountSigner.from_key(MAKER_PRIVATE_KEY)


@pytest.fixture
def venue_domain() -> VenueDomain:
    """BebopSettlement domain on mainnet."""
    return make_venue_domain()
