"""Test helpers: shared constants and factories."""

from tests.helpers.constants import (
    ALICE,
    BOB,
    CAROL,
    CUSTODY,
    DEADLINE,
    NOW,
    TOKEN_A,
    TOKEN_B,
    TOKEN_C,
)
from tests.helpers.factories import FixedClock, fund, make_engine, seed_pool

__all__ = [
    "ALICE",
    "BOB",
    "CAROL",
    "CUSTODY",
    "DEADLINE",
    "NOW",
    "TOKEN_A",
    "TOKEN_B",
    "TOKEN_C",
    "FixedClock",
    "fund",
    "make_engine",
    "seed_pool",
]
