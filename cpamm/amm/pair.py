"""Pair record for one constant-product pool."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from cpamm.errors import InsufficientShareBalance
from cpamm.models.types import normalize_address


@dataclass
class Pair:
    """One liquidity pool for an unordered asset pair.

    Assets are stored canonically (asset_low < asset_high by normalized
    address) so lookups are independent of argument order. Reserves are in
    smallest units.
    """

    key: str
    asset_low: str
    asset_high: str
    reserve_low: int = 0
    reserve_high: int = 0
    total_shares: int = 0
    # Provider -> share balance. Balances never go negative.
    shares_by_owner: dict[str, int] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        """True for an uninitialized (or fully withdrawn) pool."""
        return self.total_shares == 0

    @property
    def k(self) -> int:
        """Constant-product invariant reserve_low * reserve_high."""
        return self.reserve_low * self.reserve_high

    def _is_low(self, asset: str) -> bool:
        asset_norm = normalize_address(asset)
        if asset_norm == self.asset_low:
            return True
        elif asset_norm == self.asset_high:
            return False
        else:
            raise ValueError(f"Asset {asset} not in pair")

    def get_reserves(self, asset_in: str) -> tuple[int, int]:
        """Get reserves ordered as (reserve_of(asset_in), reserve_of(other))."""
        if self._is_low(asset_in):
            return self.reserve_low, self.reserve_high
        return self.reserve_high, self.reserve_low

    def set_reserves(self, asset_in: str, reserve_in: int, reserve_out: int) -> None:
        """Set reserves given in (asset_in, other) order."""
        if reserve_in < 0 or reserve_out < 0:
            raise ValueError(f"Negative reserve: {reserve_in}, {reserve_out}")
        if self._is_low(asset_in):
            self.reserve_low, self.reserve_high = reserve_in, reserve_out
        else:
            self.reserve_high, self.reserve_low = reserve_in, reserve_out

    def get_asset_out(self, asset_in: str) -> str:
        """Get the other asset of the pair."""
        return self.asset_high if self._is_low(asset_in) else self.asset_low

    def share_balance_of(self, owner: str) -> int:
        return self.shares_by_owner.get(normalize_address(owner), 0)

    def mint_shares(self, owner: str, shares: int) -> None:
        owner_norm = normalize_address(owner)
        self.shares_by_owner[owner_norm] = self.shares_by_owner.get(owner_norm, 0) + shares
        self.total_shares += shares

    def burn_shares(self, owner: str, shares: int) -> None:
        """Burn shares from owner.

        Raises:
            InsufficientShareBalance: If owner holds fewer than shares
        """
        owner_norm = normalize_address(owner)
        balance = self.shares_by_owner.get(owner_norm, 0)
        if balance < shares:
            raise InsufficientShareBalance(
                f"{owner_norm} holds {balance} shares, cannot burn {shares}"
            )
        remaining = balance - shares
        if remaining:
            self.shares_by_owner[owner_norm] = remaining
        else:
            del self.shares_by_owner[owner_norm]
        self.total_shares -= shares

    def snapshot(self) -> Pair:
        """Detached copy used to roll back a failed operation."""
        return replace(self, shares_by_owner=dict(self.shares_by_owner))

    def restore(self, snapshot: Pair) -> None:
        """Restore mutable state from a snapshot taken earlier."""
        self.reserve_low = snapshot.reserve_low
        self.reserve_high = snapshot.reserve_high
        self.total_shares = snapshot.total_shares
        self.shares_by_owner = dict(snapshot.shares_by_owner)
