"""Return values of pool engine operations."""

from dataclasses import dataclass


@dataclass(frozen=True)
class AddLiquidityResult:
    """Amounts actually deposited and shares minted."""

    amount_a: int
    amount_b: int
    shares: int


@dataclass(frozen=True)
class RemoveLiquidityResult:
    """Amounts actually withdrawn for the burned shares."""

    amount_a: int
    amount_b: int
    shares: int


@dataclass(frozen=True)
class SwapResult:
    """Result of executing a swap through a pair."""

    amount_in: int
    amount_out: int
    asset_in: str
    asset_out: str
    pair_key: str

    @property
    def amounts(self) -> list[int]:
        """[amount_in, amount_out], in path order."""
        return [self.amount_in, self.amount_out]
