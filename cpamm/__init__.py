"""Constant-product AMM pool engine."""

from cpamm.amm import AMMEngine, Pair
from cpamm.ledger import InMemoryTokenLedger, TokenLedger
from cpamm.pools import PairRegistry, canonical_key

__version__ = "0.1.0"
__all__ = [
    "AMMEngine",
    "Pair",
    "PairRegistry",
    "canonical_key",
    "TokenLedger",
    "InMemoryTokenLedger",
    "__version__",
]
