"""Pair registry package."""

from .registry import PairRegistry, canonical_key, sort_assets

__all__ = [
    "PairRegistry",
    "canonical_key",
    "sort_assets",
]
