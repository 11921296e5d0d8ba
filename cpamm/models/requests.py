"""Pydantic models for the HTTP request and response bodies.

Amounts are Uint256 decimal strings on the wire and plain ints inside the
engine. Field names are camelCase in JSON and snake_case in Python.
"""

from pydantic import BaseModel, Field

from cpamm.models.types import Address, Uint256


class _CamelModel(BaseModel):
    model_config = {"populate_by_name": True}


class AddLiquidityRequest(_CamelModel):
    """Deposit into a pair (creates it on first deposit)."""

    sender: Address = Field(description="Identity funding the deposit")
    asset_a: Address = Field(alias="assetA")
    asset_b: Address = Field(alias="assetB")
    amount_a_desired: Uint256 = Field(alias="amountADesired")
    amount_b_desired: Uint256 = Field(alias="amountBDesired")
    amount_a_min: Uint256 = Field(default="0", alias="amountAMin")
    amount_b_min: Uint256 = Field(default="0", alias="amountBMin")
    recipient: Address = Field(description="Identity credited with the shares")
    deadline: int = Field(description="Unix time after which the request is rejected")


class AddLiquidityResponse(_CamelModel):
    amount_a: Uint256 = Field(alias="amountA")
    amount_b: Uint256 = Field(alias="amountB")
    shares: Uint256


class RemoveLiquidityRequest(_CamelModel):
    """Burn shares and withdraw both assets."""

    sender: Address = Field(description="Identity whose shares are burned")
    asset_a: Address = Field(alias="assetA")
    asset_b: Address = Field(alias="assetB")
    shares: Uint256
    amount_a_min: Uint256 = Field(default="0", alias="amountAMin")
    amount_b_min: Uint256 = Field(default="0", alias="amountBMin")
    recipient: Address
    deadline: int


class RemoveLiquidityResponse(_CamelModel):
    amount_a: Uint256 = Field(alias="amountA")
    amount_b: Uint256 = Field(alias="amountB")


class SwapExactInRequest(_CamelModel):
    sender: Address
    amount_in: Uint256 = Field(alias="amountIn")
    amount_out_min: Uint256 = Field(default="0", alias="amountOutMin")
    path: list[Address] = Field(description="[assetIn, assetOut]")
    recipient: Address
    deadline: int


class SwapExactOutRequest(_CamelModel):
    sender: Address
    amount_out: Uint256 = Field(alias="amountOut")
    amount_in_max: Uint256 = Field(alias="amountInMax")
    path: list[Address] = Field(description="[assetIn, assetOut]")
    recipient: Address
    deadline: int


class SwapResponse(_CamelModel):
    amounts: list[Uint256] = Field(description="[amountIn, amountOut]")


class AmountOutRequest(_CamelModel):
    amount_in: Uint256 = Field(alias="amountIn")
    reserve_in: Uint256 = Field(alias="reserveIn")
    reserve_out: Uint256 = Field(alias="reserveOut")


class AmountOutResponse(_CamelModel):
    amount_out: Uint256 = Field(alias="amountOut")


class PriceResponse(_CamelModel):
    price: Uint256 = Field(description="reserve(assetB) * scale / reserve(assetA)")
    scale: Uint256


class PairResponse(_CamelModel):
    key: str
    asset_low: Address = Field(alias="assetLow")
    asset_high: Address = Field(alias="assetHigh")
    reserve_low: Uint256 = Field(alias="reserveLow")
    reserve_high: Uint256 = Field(alias="reserveHigh")
    total_shares: Uint256 = Field(alias="totalShares")


class MintRequest(_CamelModel):
    """Credit test balances on the in-memory ledger."""

    asset: Address
    owner: Address
    amount: Uint256


class ApproveRequest(_CamelModel):
    asset: Address
    owner: Address
    spender: Address | None = Field(
        default=None, description="Defaults to the pool custody identity"
    )
    amount: Uint256


class BalanceResponse(_CamelModel):
    asset: Address
    owner: Address
    balance: Uint256
