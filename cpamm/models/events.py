"""Pydantic models for notifications emitted by the pool engine.

Events are emitted only after an operation has fully succeeded, including its
ledger transfers.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, Discriminator, Field

from cpamm.models.types import Address


class LiquidityAdded(BaseModel):
    """A provider deposited both assets and received shares."""

    kind: Literal["liquidityAdded"] = "liquidityAdded"
    provider: Address
    asset_a: Address = Field(alias="assetA")
    asset_b: Address = Field(alias="assetB")
    amount_a: int = Field(alias="amountA", ge=0)
    amount_b: int = Field(alias="amountB", ge=0)
    shares: int = Field(ge=0)

    model_config = {"populate_by_name": True}


class LiquidityRemoved(BaseModel):
    """A provider burned shares and withdrew both assets."""

    kind: Literal["liquidityRemoved"] = "liquidityRemoved"
    provider: Address
    asset_a: Address = Field(alias="assetA")
    asset_b: Address = Field(alias="assetB")
    amount_a: int = Field(alias="amountA", ge=0)
    amount_b: int = Field(alias="amountB", ge=0)
    shares: int = Field(ge=0)

    model_config = {"populate_by_name": True}


class TokensSwapped(BaseModel):
    """A trader exchanged one asset for the other."""

    kind: Literal["tokensSwapped"] = "tokensSwapped"
    sender: Address
    asset_in: Address = Field(alias="assetIn")
    asset_out: Address = Field(alias="assetOut")
    amount_in: int = Field(alias="amountIn", ge=0)
    amount_out: int = Field(alias="amountOut", ge=0)

    model_config = {"populate_by_name": True}


PoolEvent = Annotated[
    LiquidityAdded | LiquidityRemoved | TokensSwapped,
    Discriminator("kind"),
]
