"""Pytest configuration and fixtures."""

import pytest

from cpamm.amm.engine import AMMEngine
from cpamm.ledger import InMemoryTokenLedger
from tests.helpers import ALICE, BOB, TOKEN_A, TOKEN_B, FixedClock, fund, make_engine, seed_pool


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def ledger() -> InMemoryTokenLedger:
    return InMemoryTokenLedger()


@pytest.fixture
def engine(ledger: InMemoryTokenLedger, clock: FixedClock) -> AMMEngine:
    """Engine with no pairs."""
    return make_engine(ledger=ledger, clock=clock)


@pytest.fixture
def seeded_engine(engine: AMMEngine) -> AMMEngine:
    """Engine with one pair: ALICE deposited 1000 TOKEN_A and 4000 TOKEN_B (2000 shares).

    BOB holds 10_000 of each token, approved for pool custody.
    """
    seed_pool(engine, TOKEN_A, TOKEN_B, 1000, 4000, provider=ALICE)
    fund(engine, BOB, {TOKEN_A: 10_000, TOKEN_B: 10_000})
    return engine
