"""Constant-product pool math.

Pools hold two reserves x and y and keep x * y = k across swaps, with a 0.3%
fee on input amounts that is retained by the pool. All functions work on raw
integers in smallest units and round down, in the pool's favour.
"""

from __future__ import annotations

from cpamm.constants import FEE_DENOMINATOR, FEE_NUMERATOR
from cpamm.errors import (
    EmptyReserves,
    InsufficientAmount,
    InsufficientLiquidity,
    InsufficientOutputAmount,
)
from cpamm.safe_int import S


class ConstantProduct:
    """Pricing and share math for constant-product pools.

    Formula: amount_out = (amount_in * 997 * reserve_out) / (reserve_in * 1000 + amount_in * 997)

    The 997/1000 factor accounts for the 0.3% fee.
    """

    def get_amount_out(self, amount_in: int, reserve_in: int, reserve_out: int) -> int:
        """Calculate exact-input swap output.

        Args:
            amount_in: Input token amount
            reserve_in: Reserve of input token in pool
            reserve_out: Reserve of output token in pool

        Returns:
            Output token amount, strictly below reserve_out when reserve_out > 0

        Raises:
            InsufficientAmount: If amount_in is negative
            EmptyReserves: If reserve_in is not positive or reserve_out is negative
        """
        if amount_in < 0:
            raise InsufficientAmount(f"Negative input amount: {amount_in}")
        if reserve_in <= 0 or reserve_out < 0:
            raise EmptyReserves(f"Invalid reserves: in={reserve_in}, out={reserve_out}")
        if amount_in == 0:
            return 0

        amount_in_with_fee = S(amount_in) * S(FEE_NUMERATOR)
        numerator = amount_in_with_fee * S(reserve_out)
        denominator = S(reserve_in) * S(FEE_DENOMINATOR) + amount_in_with_fee

        return (numerator // denominator).value

    def get_amount_in(self, amount_out: int, reserve_in: int, reserve_out: int) -> int:
        """Calculate required input for a desired output.

        Formula: amount_in = (res_in * out * 1000) / ((res_out - out) * 997) + 1

        Args:
            amount_out: Desired output token amount
            reserve_in: Reserve of input token in pool
            reserve_out: Reserve of output token in pool

        Returns:
            Smallest input that yields at least amount_out

        Raises:
            InsufficientOutputAmount: If amount_out is not positive
            EmptyReserves: If either reserve is not positive
            InsufficientLiquidity: If amount_out would drain the output reserve
        """
        if amount_out <= 0:
            raise InsufficientOutputAmount(f"Output amount must be positive: {amount_out}")
        if reserve_in <= 0 or reserve_out <= 0:
            raise EmptyReserves(f"Reserves must be positive: in={reserve_in}, out={reserve_out}")
        if amount_out >= reserve_out:
            raise InsufficientLiquidity(
                f"Requested {amount_out} but output reserve is {reserve_out}"
            )

        numerator = S(reserve_in) * S(amount_out) * S(FEE_DENOMINATOR)
        denominator = (S(reserve_out) - S(amount_out)) * S(FEE_NUMERATOR)

        return ((numerator // denominator) + S(1)).value

    def quote(self, amount_a: int, reserve_a: int, reserve_b: int) -> int:
        """Amount of B worth amount_a of A at the current reserve ratio (no fee).

        Raises:
            InsufficientAmount: If amount_a is not positive
            EmptyReserves: If either reserve is not positive
        """
        if amount_a <= 0:
            raise InsufficientAmount(f"Amount must be positive: {amount_a}")
        if reserve_a <= 0 or reserve_b <= 0:
            raise EmptyReserves(f"Reserves must be positive: a={reserve_a}, b={reserve_b}")
        return (S(amount_a) * S(reserve_b) // S(reserve_a)).value

    def initial_shares(self, amount_a: int, amount_b: int) -> int:
        """Shares minted by the first deposit: floor(sqrt(amount_a * amount_b))."""
        return (S(amount_a) * S(amount_b)).sqrt().value

    def proportional_shares(
        self,
        amount_a: int,
        amount_b: int,
        reserve_a: int,
        reserve_b: int,
        total_shares: int,
    ) -> int:
        """Shares minted by a deposit into a funded pool.

        Takes the lesser of the two proportional claims, so a deposit off the
        current ratio is never rewarded for the excess side.
        """
        share_a = S(amount_a) * S(total_shares) // S(reserve_a)
        share_b = S(amount_b) * S(total_shares) // S(reserve_b)
        return share_a.min(share_b).value

    def burn_amounts(
        self,
        shares: int,
        reserve_a: int,
        reserve_b: int,
        total_shares: int,
    ) -> tuple[int, int]:
        """Amounts of each reserve owed for burning shares (floor on each side)."""
        amount_a = S(shares) * S(reserve_a) // S(total_shares)
        amount_b = S(shares) * S(reserve_b) // S(total_shares)
        return amount_a.value, amount_b.value


# Singleton instance
constant_product = ConstantProduct()


__all__ = [
    "ConstantProduct",
    "constant_product",
]
