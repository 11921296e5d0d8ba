"""Pair registry: one canonical Pair per unordered asset pair.

Pairs are keyed by a content hash of the ordered address pair, so
canonical_key(a, b) == canonical_key(b, a). A Pair is created only by
get_or_create (add-liquidity path); every other lookup goes through
get_existing and never creates pools implicitly.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterator

import structlog
from eth_abi import encode  # type: ignore[attr-defined]

from cpamm.amm.pair import Pair
from cpamm.errors import IdenticalAssets, PairNotFound
from cpamm.models.types import normalize_address

logger = structlog.get_logger()


def sort_assets(asset_x: str, asset_y: str) -> tuple[str, str]:
    """Normalize and order two assets (smaller address first).

    Raises:
        IdenticalAssets: If both addresses are the same asset
    """
    x_norm = normalize_address(asset_x)
    y_norm = normalize_address(asset_y)
    if x_norm == y_norm:
        raise IdenticalAssets(f"Pair needs two distinct assets, got {x_norm} twice")
    # Compare as bytes (same as comparing lowercase hex of equal length)
    if bytes.fromhex(x_norm[2:]) > bytes.fromhex(y_norm[2:]):
        return y_norm, x_norm
    return x_norm, y_norm


def canonical_key(asset_x: str, asset_y: str) -> str:
    """Derive the order-independent key of an asset pair.

    SHA-256 over the ABI encoding of (asset_low, asset_high).

    Raises:
        IdenticalAssets: If both addresses are the same asset
    """
    low, high = sort_assets(asset_x, asset_y)
    preimage = encode(["address", "address"], [bytes.fromhex(low[2:]), bytes.fromhex(high[2:])])
    return "0x" + hashlib.sha256(preimage).hexdigest()


class PairRegistry:
    """Registry of constant-product pairs keyed by canonical pair key."""

    def __init__(self) -> None:
        self._pairs: dict[str, Pair] = {}

    def __len__(self) -> int:
        return len(self._pairs)

    def __contains__(self, key: object) -> bool:
        return key in self._pairs

    def pairs(self) -> Iterator[Pair]:
        """Iterate over all pairs ever created."""
        return iter(list(self._pairs.values()))

    def get_or_create(self, asset_x: str, asset_y: str) -> Pair:
        """Return the pair for two assets, inserting a zero-reserve one if absent.

        Raises:
            IdenticalAssets: If both addresses are the same asset
        """
        key = canonical_key(asset_x, asset_y)
        pair = self._pairs.get(key)
        if pair is None:
            low, high = sort_assets(asset_x, asset_y)
            pair = Pair(key=key, asset_low=low, asset_high=high)
            self._pairs[key] = pair
            logger.debug("pair_created", pair=key[:10], asset_low=low[-8:], asset_high=high[-8:])
        return pair

    def get_existing(self, asset_x: str, asset_y: str) -> Pair:
        """Return the pair for two assets.

        Raises:
            IdenticalAssets: If both addresses are the same asset
            PairNotFound: If the pair has never been created
        """
        key = canonical_key(asset_x, asset_y)
        pair = self._pairs.get(key)
        if pair is None:
            raise PairNotFound(
                f"No pair for {normalize_address(asset_x)} / {normalize_address(asset_y)}"
            )
        return pair

    def discard(self, pair: Pair) -> None:
        """Forget a pair that was created inside an operation that failed."""
        self._pairs.pop(pair.key, None)
