"""Pydantic models for pool events and HTTP payloads."""

from cpamm.models.events import LiquidityAdded, LiquidityRemoved, PoolEvent, TokensSwapped
from cpamm.models.types import ZERO_ADDRESS, Address, Uint256, normalize_address

__all__ = [
    # Types
    "Address",
    "Uint256",
    "ZERO_ADDRESS",
    "normalize_address",
    # Events
    "LiquidityAdded",
    "LiquidityRemoved",
    "TokensSwapped",
    "PoolEvent",
]
