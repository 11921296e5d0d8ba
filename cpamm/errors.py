"""AMM error classes.

Every failed precondition maps to exactly one error type. Errors propagate to
the caller unchanged and are never retried. Each class carries a stable
``code`` that the HTTP layer reports alongside the message.
"""

from typing import ClassVar


class AMMError(Exception):
    """Base error for pool engine operations."""

    code: ClassVar[str] = "AMM_ERROR"


class Expired(AMMError):
    """Deadline has already passed."""

    code = "EXPIRED"


class IdenticalAssets(AMMError):
    """Both sides of a pair are the same asset."""

    code = "IDENTICAL_ASSETS"


class ZeroAddress(AMMError):
    """An asset or identity is null (missing or the zero address)."""

    code = "ZERO_ADDRESS"


class InsufficientAmount(AMMError):
    """An input amount is zero or negative."""

    code = "INSUFFICIENT_AMOUNT"


class InsufficientMinAmount(AMMError):
    """A desired amount is below the caller's own minimum."""

    code = "INSUFFICIENT_MIN_AMOUNT"


class InsufficientAAmount(AMMError):
    """Optimal deposit of asset A falls outside the caller's bounds."""

    code = "INSUFFICIENT_A_AMOUNT"


class InsufficientBAmount(AMMError):
    """Optimal deposit of asset B is below the caller's minimum."""

    code = "INSUFFICIENT_B_AMOUNT"


class PairNotFound(AMMError):
    """The asset pair has never received liquidity."""

    code = "PAIR_NOT_FOUND"


class InsufficientShareBalance(AMMError):
    """Provider holds fewer shares than it asked to burn."""

    code = "INSUFFICIENT_SHARE_BALANCE"


class InsufficientOutputAmount(AMMError):
    """Output is zero or below the caller's minimum (slippage guard)."""

    code = "INSUFFICIENT_OUTPUT_AMOUNT"


class ExcessiveInputAmount(AMMError):
    """Required input exceeds the caller's maximum (slippage guard)."""

    code = "EXCESSIVE_INPUT_AMOUNT"


class InvalidPath(AMMError):
    """Swap path is not exactly [asset_in, asset_out]."""

    code = "INVALID_PATH"


class EmptyReserves(AMMError):
    """Pricing formula called with a non-positive reserve."""

    code = "EMPTY_RESERVES"


class EmptyPool(AMMError):
    """Price requested from a pool whose base reserve is zero."""

    code = "EMPTY_POOL"


class InsufficientLiquidity(AMMError):
    """Requested output would drain the output reserve."""

    code = "INSUFFICIENT_LIQUIDITY"


class InsufficientLiquidityMinted(AMMError):
    """Deposit is too small to mint a single share."""

    code = "INSUFFICIENT_LIQUIDITY_MINTED"
