"""Token ledger interface and an in-memory implementation.

The pool engine never owns balances. It asks a TokenLedger to pull deposits
from providers/traders into pool custody and to push withdrawals and swap
outputs out of custody. Any implementation satisfying TokenLedger can be
plugged in; InMemoryTokenLedger backs tests and the HTTP service.
"""

from __future__ import annotations

import threading
from collections import defaultdict
from typing import ClassVar, Protocol, runtime_checkable

import structlog

from cpamm.models.types import normalize_address

logger = structlog.get_logger()


class LedgerError(Exception):
    """Base error for token ledger transfers."""

    code: ClassVar[str] = "LEDGER_ERROR"


class InsufficientFunds(LedgerError):
    """Sender balance is below the transfer amount."""

    code = "INSUFFICIENT_FUNDS"


class InsufficientAllowance(LedgerError):
    """Spender allowance is below the transfer amount."""

    code = "INSUFFICIENT_ALLOWANCE"


@runtime_checkable
class TokenLedger(Protocol):
    """Protocol for fungible-token ledgers consumed by the engine."""

    def transfer(self, asset: str, sender: str, recipient: str, amount: int) -> None:
        """Move amount of asset from sender to recipient.

        Raises:
            InsufficientFunds: If sender's balance is too low
        """
        ...

    def transfer_from(
        self,
        asset: str,
        owner: str,
        spender: str,
        recipient: str,
        amount: int,
    ) -> None:
        """Move amount of asset from owner to recipient on spender's allowance.

        Raises:
            InsufficientAllowance: If owner has not approved spender for amount
            InsufficientFunds: If owner's balance is too low
        """
        ...


class InMemoryTokenLedger:
    """Dictionary-backed ledger with balances and allowances per asset."""

    def __init__(self) -> None:
        # asset -> owner -> balance
        self._balances: dict[str, dict[str, int]] = defaultdict(dict)
        # (asset, owner, spender) -> allowance
        self._allowances: dict[tuple[str, str, str], int] = {}
        self._lock = threading.Lock()

    def balance_of(self, asset: str, owner: str) -> int:
        return self._balances[normalize_address(asset)].get(normalize_address(owner), 0)

    def allowance(self, asset: str, owner: str, spender: str) -> int:
        key = (normalize_address(asset), normalize_address(owner), normalize_address(spender))
        return self._allowances.get(key, 0)

    def mint(self, asset: str, owner: str, amount: int) -> None:
        """Credit new units of asset to owner."""
        if amount < 0:
            raise ValueError(f"Cannot mint negative amount: {amount}")
        with self._lock:
            balances = self._balances[normalize_address(asset)]
            owner_norm = normalize_address(owner)
            balances[owner_norm] = balances.get(owner_norm, 0) + amount

    def approve(self, asset: str, owner: str, spender: str, amount: int) -> None:
        """Set spender's allowance over owner's asset balance."""
        if amount < 0:
            raise ValueError(f"Cannot approve negative amount: {amount}")
        key = (normalize_address(asset), normalize_address(owner), normalize_address(spender))
        with self._lock:
            self._allowances[key] = amount

    def transfer(self, asset: str, sender: str, recipient: str, amount: int) -> None:
        with self._lock:
            self._move(normalize_address(asset), sender, recipient, amount)

    def transfer_from(
        self,
        asset: str,
        owner: str,
        spender: str,
        recipient: str,
        amount: int,
    ) -> None:
        asset_norm = normalize_address(asset)
        key = (asset_norm, normalize_address(owner), normalize_address(spender))
        with self._lock:
            allowed = self._allowances.get(key, 0)
            if allowed < amount:
                raise InsufficientAllowance(
                    f"{key[2]} may spend {allowed} of {key[1]}'s {asset_norm}, needs {amount}"
                )
            self._move(asset_norm, owner, recipient, amount)
            self._allowances[key] = allowed - amount

    def _move(self, asset: str, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Cannot transfer negative amount: {amount}")
        balances = self._balances[asset]
        sender_norm = normalize_address(sender)
        recipient_norm = normalize_address(recipient)
        balance = balances.get(sender_norm, 0)
        if balance < amount:
            raise InsufficientFunds(f"{sender_norm} holds {balance} of {asset}, needs {amount}")
        balances[sender_norm] = balance - amount
        balances[recipient_norm] = balances.get(recipient_norm, 0) + amount
        logger.debug(
            "ledger_transfer",
            asset=asset[-8:],
            sender=sender_norm[-8:],
            recipient=recipient_norm[-8:],
            amount=amount,
        )
