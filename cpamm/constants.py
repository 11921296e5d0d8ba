"""Protocol constants for the constant-product pool engine."""

# Swap fee of 0.3%: input is multiplied by FEE_NUMERATOR / FEE_DENOMINATOR.
# The fee stays in the pool, so k = reserve_in * reserve_out grows on every swap.
FEE_NUMERATOR = 997
FEE_DENOMINATOR = 1000

# Fixed-point scale used by get_price to express a reserve ratio as an integer
PRICE_SCALE = 10**18

# Default identity holding pool custody on the token ledger
DEFAULT_CUSTODY_ADDRESS = "0x00000000000000000000000000000000000a4400"
