"""Constant-product AMM: pair records, pool math and the engine."""

from cpamm.amm.constant_product import ConstantProduct, constant_product
from cpamm.amm.engine import AMMEngine
from cpamm.amm.pair import Pair
from cpamm.amm.results import AddLiquidityResult, RemoveLiquidityResult, SwapResult

__all__ = [
    "AMMEngine",
    "Pair",
    # Math
    "ConstantProduct",
    "constant_product",
    # Results
    "AddLiquidityResult",
    "RemoveLiquidityResult",
    "SwapResult",
]
