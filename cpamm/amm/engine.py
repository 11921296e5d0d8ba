"""Pool engine: liquidity provision and swaps against constant-product pairs.

Every mutating operation is atomic and serialized behind one engine-wide
lock. Within an operation:
1. Preconditions are checked in a fixed order (the first failure wins)
2. Amounts and shares are computed from the current reserves
3. The Pair is mutated
4. Ledger transfers are issued (pulls into custody, then pushes out)
5. The event is emitted

A failure in step 3 or 4 restores the Pair snapshot and reverses any transfer
that already went through, so no partial effect survives.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager

import structlog

from cpamm.amm.constant_product import constant_product
from cpamm.amm.pair import Pair
from cpamm.amm.results import AddLiquidityResult, RemoveLiquidityResult, SwapResult
from cpamm.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from cpamm.errors import (
    EmptyPool,
    ExcessiveInputAmount,
    Expired,
    IdenticalAssets,
    InsufficientAAmount,
    InsufficientAmount,
    InsufficientBAmount,
    InsufficientLiquidity,
    InsufficientLiquidityMinted,
    InsufficientMinAmount,
    InsufficientOutputAmount,
    InsufficientShareBalance,
    InvalidPath,
    PairNotFound,
    ZeroAddress,
)
from cpamm.ledger import TokenLedger
from cpamm.models.events import LiquidityAdded, LiquidityRemoved, PoolEvent, TokensSwapped
from cpamm.models.types import is_null_identity, normalize_address
from cpamm.pools.registry import PairRegistry, canonical_key
from cpamm.safe_int import S

logger = structlog.get_logger()

EventSubscriber = Callable[[PoolEvent], None]


class _Transfers:
    """Ledger transfers issued by one operation, with their reversals."""

    def __init__(self, ledger: TokenLedger, custody: str) -> None:
        self._ledger = ledger
        self._custody = custody
        # (asset, current holder, original holder, amount)
        self._done: list[tuple[str, str, str, int]] = []

    def pull(self, asset: str, owner: str, amount: int) -> None:
        """Move amount from owner into pool custody (custody is the spender)."""
        self._ledger.transfer_from(asset, owner, self._custody, self._custody, amount)
        self._done.append((asset, self._custody, owner, amount))

    def push(self, asset: str, recipient: str, amount: int) -> None:
        """Move amount out of pool custody to recipient."""
        self._ledger.transfer(asset, self._custody, recipient, amount)
        self._done.append((asset, recipient, self._custody, amount))

    def reverse(self) -> None:
        """Undo completed transfers, newest first. A failed reversal is logged and skipped."""
        for asset, holder, original, amount in reversed(self._done):
            try:
                self._ledger.transfer(asset, holder, original, amount)
            except Exception:
                logger.exception(
                    "transfer_reversal_failed",
                    asset=asset[-8:],
                    holder=holder[-8:],
                    original=original[-8:],
                    amount=amount,
                )
        self._done.clear()


class AMMEngine:
    """Constant-product market maker over a PairRegistry and a TokenLedger.

    Args:
        ledger: Token ledger that holds balances and allowances
        registry: Pair registry (default: a fresh empty one)
        config: Engine configuration (custody identity, price scale)
        clock: Returns the current unix time in seconds; deadlines are
            compared against it once, at operation entry
    """

    def __init__(
        self,
        ledger: TokenLedger,
        registry: PairRegistry | None = None,
        config: EngineConfig = DEFAULT_ENGINE_CONFIG,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ledger = ledger
        self.registry = registry if registry is not None else PairRegistry()
        self.config = config
        self._clock = clock
        self._lock = threading.RLock()
        self._subscribers: list[EventSubscriber] = []
        self.events: list[PoolEvent] = []

    @property
    def custody_address(self) -> str:
        return normalize_address(self.config.custody_address)

    # --- Events ---

    def subscribe(self, callback: EventSubscriber) -> None:
        """Register a callback invoked with every emitted event."""
        self._subscribers.append(callback)

    def _emit(self, event: PoolEvent) -> None:
        self.events.append(event)
        for callback in self._subscribers:
            try:
                callback(event)
            except Exception:
                # The operation has committed; a broken listener must not undo it
                logger.exception("event_subscriber_failed", event_kind=event.kind)

    # --- Precondition helpers ---

    def _check_deadline(self, deadline: int) -> None:
        now = self._clock()
        if deadline < now:
            raise Expired(f"Deadline {deadline} passed (now {int(now)})")

    @staticmethod
    def _check_assets(asset_a: str | None, asset_b: str | None) -> tuple[str, str]:
        norm_a = normalize_address(asset_a) if asset_a else None
        norm_b = normalize_address(asset_b) if asset_b else None
        if norm_a == norm_b:
            raise IdenticalAssets(f"Pair needs two distinct assets, got {norm_a} twice")
        if norm_a is None or norm_b is None or is_null_identity(norm_a) or is_null_identity(norm_b):
            raise ZeroAddress("Asset address must not be null")
        return normalize_address(norm_a, validate=True), normalize_address(norm_b, validate=True)

    @staticmethod
    def _check_identity(address: str | None, role: str) -> str:
        if address is None or is_null_identity(address):
            raise ZeroAddress(f"{role} must not be null")
        return normalize_address(address, validate=True)

    @contextmanager
    def _atomic(self, pair: Pair, *, created: bool = False) -> Iterator[_Transfers]:
        """Run a mutation plus its transfers as one all-or-nothing step."""
        snapshot = pair.snapshot()
        transfers = _Transfers(self.ledger, self.custody_address)
        try:
            yield transfers
        except Exception as err:
            pair.restore(snapshot)
            if created:
                self.registry.discard(pair)
            logger.warning(
                "operation_rolled_back",
                pair=pair.key[:10],
                error=type(err).__name__,
                detail=str(err),
            )
            transfers.reverse()
            raise

    # --- Liquidity ---

    def add_liquidity(
        self,
        sender: str,
        asset_a: str,
        asset_b: str,
        amount_a_desired: int,
        amount_b_desired: int,
        amount_a_min: int,
        amount_b_min: int,
        recipient: str,
        deadline: int,
    ) -> AddLiquidityResult:
        """Deposit both assets of a pair and mint shares to recipient.

        The first deposit into a pair sets its price and mints
        floor(sqrt(amount_a * amount_b)) shares. Later deposits are trimmed to
        the current reserve ratio and mint the lesser proportional claim.

        Args:
            sender: Identity whose ledger balances fund the deposit
            asset_a: First asset (any order)
            asset_b: Second asset
            amount_a_desired: Most of asset_a the caller is willing to deposit
            amount_b_desired: Most of asset_b the caller is willing to deposit
            amount_a_min: Least of asset_a the caller accepts depositing
            amount_b_min: Least of asset_b the caller accepts depositing
            recipient: Identity credited with the minted shares
            deadline: Unix time after which the call is rejected

        Returns:
            AddLiquidityResult with the amounts deposited and shares minted

        Raises:
            Expired, IdenticalAssets, ZeroAddress, InsufficientAmount,
            InsufficientMinAmount, InsufficientAAmount, InsufficientBAmount,
            InsufficientLiquidityMinted, or a LedgerError from the transfers
        """
        with self._lock:
            self._check_deadline(deadline)
            asset_a, asset_b = self._check_assets(asset_a, asset_b)
            recipient = self._check_identity(recipient, "Recipient")
            if amount_a_desired <= 0 or amount_b_desired <= 0:
                raise InsufficientAmount(
                    f"Desired amounts must be positive: {amount_a_desired}, {amount_b_desired}"
                )
            if amount_a_desired < amount_a_min or amount_b_desired < amount_b_min:
                raise InsufficientMinAmount(
                    f"Desired amounts ({amount_a_desired}, {amount_b_desired}) below "
                    f"minimums ({amount_a_min}, {amount_b_min})"
                )
            sender = self._check_identity(sender, "Sender")

            created = canonical_key(asset_a, asset_b) not in self.registry
            pair = self.registry.get_or_create(asset_a, asset_b)

            with self._atomic(pair, created=created) as transfers:
                reserve_a, reserve_b = pair.get_reserves(asset_a)
                amount_a, amount_b = self._deposit_amounts(
                    pair,
                    reserve_a,
                    reserve_b,
                    amount_a_desired,
                    amount_b_desired,
                    amount_a_min,
                    amount_b_min,
                )
                if pair.is_empty:
                    shares = constant_product.initial_shares(amount_a, amount_b)
                else:
                    shares = constant_product.proportional_shares(
                        amount_a, amount_b, reserve_a, reserve_b, pair.total_shares
                    )
                if shares <= 0:
                    raise InsufficientLiquidityMinted(
                        f"Deposit ({amount_a}, {amount_b}) mints no shares"
                    )

                pair.set_reserves(asset_a, reserve_a + amount_a, reserve_b + amount_b)
                pair.mint_shares(recipient, shares)

                transfers.pull(asset_a, sender, amount_a)
                transfers.pull(asset_b, sender, amount_b)

            logger.info(
                "liquidity_added",
                pair=pair.key[:10],
                provider=sender[-8:],
                amount_a=amount_a,
                amount_b=amount_b,
                shares=shares,
                total_shares=pair.total_shares,
            )
            self._emit(
                LiquidityAdded(
                    provider=sender,
                    asset_a=asset_a,
                    asset_b=asset_b,
                    amount_a=amount_a,
                    amount_b=amount_b,
                    shares=shares,
                )
            )
        return AddLiquidityResult(amount_a=amount_a, amount_b=amount_b, shares=shares)

    @staticmethod
    def _deposit_amounts(
        pair: Pair,
        reserve_a: int,
        reserve_b: int,
        amount_a_desired: int,
        amount_b_desired: int,
        amount_a_min: int,
        amount_b_min: int,
    ) -> tuple[int, int]:
        """Trim desired amounts to the pool ratio.

        The B side is always tried first; only if the ratio-matching B exceeds
        amount_b_desired is A trimmed instead.
        """
        if pair.is_empty:
            return amount_a_desired, amount_b_desired

        optimal_b = constant_product.quote(amount_a_desired, reserve_a, reserve_b)
        if optimal_b <= amount_b_desired:
            if optimal_b < amount_b_min:
                raise InsufficientBAmount(f"Optimal B {optimal_b} below minimum {amount_b_min}")
            return amount_a_desired, optimal_b

        optimal_a = constant_product.quote(amount_b_desired, reserve_b, reserve_a)
        if optimal_a > amount_a_desired or optimal_a < amount_a_min:
            raise InsufficientAAmount(
                f"Optimal A {optimal_a} outside [{amount_a_min}, {amount_a_desired}]"
            )
        return optimal_a, amount_b_desired

    def remove_liquidity(
        self,
        sender: str,
        asset_a: str,
        asset_b: str,
        shares_to_burn: int,
        amount_a_min: int,
        amount_b_min: int,
        recipient: str,
        deadline: int,
    ) -> RemoveLiquidityResult:
        """Burn sender's shares and pay the proportional reserves to recipient.

        Raises:
            Expired, IdenticalAssets, ZeroAddress, InsufficientAmount,
            PairNotFound, InsufficientShareBalance, InsufficientOutputAmount,
            or a LedgerError from the transfers
        """
        with self._lock:
            self._check_deadline(deadline)
            asset_a, asset_b = self._check_assets(asset_a, asset_b)
            recipient = self._check_identity(recipient, "Recipient")
            if shares_to_burn <= 0:
                raise InsufficientAmount(f"Shares to burn must be positive: {shares_to_burn}")
            sender = self._check_identity(sender, "Sender")

            pair = self.registry.get_existing(asset_a, asset_b)
            balance = pair.share_balance_of(sender)
            if balance < shares_to_burn:
                raise InsufficientShareBalance(
                    f"{sender} holds {balance} shares, cannot burn {shares_to_burn}"
                )

            reserve_a, reserve_b = pair.get_reserves(asset_a)
            amount_a, amount_b = constant_product.burn_amounts(
                shares_to_burn, reserve_a, reserve_b, pair.total_shares
            )
            if amount_a < amount_a_min or amount_b < amount_b_min:
                raise InsufficientOutputAmount(
                    f"Withdrawal ({amount_a}, {amount_b}) below minimums "
                    f"({amount_a_min}, {amount_b_min})"
                )

            with self._atomic(pair) as transfers:
                pair.set_reserves(
                    asset_a,
                    (S(reserve_a) - S(amount_a)).value,
                    (S(reserve_b) - S(amount_b)).value,
                )
                pair.burn_shares(sender, shares_to_burn)

                transfers.push(asset_a, recipient, amount_a)
                transfers.push(asset_b, recipient, amount_b)

            logger.info(
                "liquidity_removed",
                pair=pair.key[:10],
                provider=sender[-8:],
                amount_a=amount_a,
                amount_b=amount_b,
                shares=shares_to_burn,
                total_shares=pair.total_shares,
            )
            self._emit(
                LiquidityRemoved(
                    provider=sender,
                    asset_a=asset_a,
                    asset_b=asset_b,
                    amount_a=amount_a,
                    amount_b=amount_b,
                    shares=shares_to_burn,
                )
            )
        return RemoveLiquidityResult(amount_a=amount_a, amount_b=amount_b, shares=shares_to_burn)

    # --- Swaps ---

    def _resolve_swap(
        self,
        amount: int,
        path: Sequence[str],
        recipient: str,
        deadline: int,
    ) -> tuple[Pair, str, str, str]:
        """Shared swap preconditions. Returns (pair, asset_in, asset_out, recipient)."""
        self._check_deadline(deadline)
        if len(path) != 2:
            raise InvalidPath(f"Path must be [asset_in, asset_out], got {len(path)} assets")
        if amount <= 0:
            raise InsufficientAmount(f"Swap amount must be positive: {amount}")
        recipient = self._check_identity(recipient, "Recipient")
        asset_in, asset_out = self._check_assets(path[0], path[1])
        pair = self.registry.get_existing(asset_in, asset_out)
        return pair, asset_in, asset_out, recipient

    def _execute_swap(
        self,
        pair: Pair,
        sender: str,
        asset_in: str,
        asset_out: str,
        amount_in: int,
        amount_out: int,
        recipient: str,
    ) -> SwapResult:
        reserve_in, reserve_out = pair.get_reserves(asset_in)
        if amount_out >= reserve_out:
            raise InsufficientLiquidity(
                f"Output {amount_out} would drain reserve {reserve_out}"
            )

        with self._atomic(pair) as transfers:
            pair.set_reserves(
                asset_in,
                reserve_in + amount_in,
                (S(reserve_out) - S(amount_out)).value,
            )

            transfers.pull(asset_in, sender, amount_in)
            transfers.push(asset_out, recipient, amount_out)

        logger.info(
            "swap_executed",
            pair=pair.key[:10],
            sender=sender[-8:],
            asset_in=asset_in[-8:],
            asset_out=asset_out[-8:],
            amount_in=amount_in,
            amount_out=amount_out,
        )
        self._emit(
            TokensSwapped(
                sender=sender,
                asset_in=asset_in,
                asset_out=asset_out,
                amount_in=amount_in,
                amount_out=amount_out,
            )
        )
        return SwapResult(
            amount_in=amount_in,
            amount_out=amount_out,
            asset_in=asset_in,
            asset_out=asset_out,
            pair_key=pair.key,
        )

    def swap_exact_tokens_for_tokens(
        self,
        sender: str,
        amount_in: int,
        amount_out_min: int,
        path: Sequence[str],
        recipient: str,
        deadline: int,
    ) -> SwapResult:
        """Swap an exact input amount for as much output as the pool gives.

        Raises:
            Expired, InvalidPath, InsufficientAmount, ZeroAddress,
            IdenticalAssets, PairNotFound, EmptyReserves,
            InsufficientOutputAmount, or a LedgerError from the transfers
        """
        with self._lock:
            pair, asset_in, asset_out, recipient = self._resolve_swap(
                amount_in, path, recipient, deadline
            )
            sender = self._check_identity(sender, "Sender")

            reserve_in, reserve_out = pair.get_reserves(asset_in)
            amount_out = constant_product.get_amount_out(amount_in, reserve_in, reserve_out)
            if amount_out < amount_out_min:
                raise InsufficientOutputAmount(
                    f"Output {amount_out} below minimum {amount_out_min}"
                )

            return self._execute_swap(
                pair, sender, asset_in, asset_out, amount_in, amount_out, recipient
            )

    def swap_tokens_for_exact_tokens(
        self,
        sender: str,
        amount_out: int,
        amount_in_max: int,
        path: Sequence[str],
        recipient: str,
        deadline: int,
    ) -> SwapResult:
        """Swap as little input as needed to receive an exact output amount.

        Raises:
            Expired, InvalidPath, InsufficientAmount, ZeroAddress,
            IdenticalAssets, PairNotFound, EmptyReserves,
            InsufficientLiquidity, ExcessiveInputAmount, or a LedgerError
        """
        with self._lock:
            pair, asset_in, asset_out, recipient = self._resolve_swap(
                amount_out, path, recipient, deadline
            )
            sender = self._check_identity(sender, "Sender")

            reserve_in, reserve_out = pair.get_reserves(asset_in)
            amount_in = constant_product.get_amount_in(amount_out, reserve_in, reserve_out)
            if amount_in > amount_in_max:
                raise ExcessiveInputAmount(f"Input {amount_in} above maximum {amount_in_max}")

            return self._execute_swap(
                pair, sender, asset_in, asset_out, amount_in, amount_out, recipient
            )

    # --- Queries ---

    def get_price(self, asset_a: str, asset_b: str) -> int:
        """Price of one unit of asset_a in asset_b, scaled by config.price_scale.

        Raises:
            PairNotFound: If the pair has never received liquidity
            EmptyPool: If the asset_a reserve is zero
        """
        with self._lock:
            pair = self.registry.get_existing(asset_a, asset_b)
            reserve_a, reserve_b = pair.get_reserves(asset_a)
        if reserve_a == 0:
            raise EmptyPool(f"Pair {pair.key[:10]} has no {normalize_address(asset_a)} reserve")
        return (S(reserve_b) * S(self.config.price_scale) // S(reserve_a)).value

    def get_amount_out(self, amount_in: int, reserve_in: int, reserve_out: int) -> int:
        return constant_product.get_amount_out(amount_in, reserve_in, reserve_out)

    def get_amount_in(self, amount_out: int, reserve_in: int, reserve_out: int) -> int:
        return constant_product.get_amount_in(amount_out, reserve_in, reserve_out)

    def quote(self, amount_a: int, reserve_a: int, reserve_b: int) -> int:
        return constant_product.quote(amount_a, reserve_a, reserve_b)

    def get_pair(self, asset_a: str, asset_b: str) -> Pair:
        """Snapshot of the pair for two assets.

        Raises:
            PairNotFound: If the pair has never received liquidity
        """
        with self._lock:
            return self.registry.get_existing(asset_a, asset_b).snapshot()

    def get_reserves(self, asset_a: str, asset_b: str) -> tuple[int, int]:
        """Reserves ordered as (reserve_of(asset_a), reserve_of(asset_b))."""
        with self._lock:
            return self.registry.get_existing(asset_a, asset_b).get_reserves(asset_a)

    def share_balance_of(self, asset_a: str, asset_b: str, owner: str) -> int:
        """Shares held by owner in a pair; zero for pairs that do not exist."""
        with self._lock:
            try:
                pair = self.registry.get_existing(asset_a, asset_b)
            except PairNotFound:
                return 0
            return pair.share_balance_of(owner)

    def total_shares(self, asset_a: str, asset_b: str) -> int:
        with self._lock:
            try:
                pair = self.registry.get_existing(asset_a, asset_b)
            except PairNotFound:
                return 0
            return pair.total_shares
