# -*- coding: utf-8 -*-
"""
ERC-20 style fungible token engine
==================================

The public operation surface of the ledger. It validates inputs, checks
preconditions against current state, applies at most one group of writes
and emits at most one event per call.

Highlights
----------
- Explicit `caller` parameter on every mutating call (no ambient sender).
- Fixed supply: credited in full to the deployer at construction, never
  minted or burned afterwards.
- Events delivered to an injected sink:
    - Transfer { from, to, value }   (from is None only at construction)
    - Approval { owner, spender, value }
- Checked math (no silent wrap); every precondition is checked before the
  first write, and each call's writes run inside one storage batch.

Public interface
----------------
# construction
TransferEngine.new(caller, initial_supply, *, storage=None, sink=None) -> TransferEngine
TransferEngine.attach(storage, *, sink=None) -> TransferEngine

# views (pure)
total_supply() -> int
balance_of(account) -> int
allowance(owner, spender) -> int

# state-changing (explicit caller; raise on failure, return None on success)
transfer(caller, to, value)
approve(caller, spender, value)
transfer_from(caller, from_, to, value)

Notes
-----
- `approve` overwrites. If an owner lowers a grant from N to M while the
  spender races a `transfer_from`, the spender can spend N and then M. This
  is the long-standing ERC-20 approve race and it is kept as-is; there are no
  increase/decrease helpers. Owners who care should approve 0 first and
  check `allowance` before granting the new amount.
- Failures raise `InsufficientBalance` / `InsufficientAllowance` (see
  token_ledger.errors). A raised call leaves storage untouched and emits
  nothing.
"""

from __future__ import annotations

from typing import Any, Optional

from .allowances import AllowanceRegistry
from .config import load_config
from .errors import (InsufficientAllowance, InsufficientBalance,
                     InvariantViolation, NotInitialized, TokenError)
from .events import Approval, Event, EventLog, EventSink, Transfer
from .ledger import Ledger
from .logging import get_logger
from .storage import MemoryBackend, StorageBackend
from .types import AccountId, Balance, require_account, require_amount

log = get_logger(__name__)


class TransferEngine:
    def __init__(
        self,
        storage: StorageBackend,
        sink: EventSink,
        *,
        balance_max: Optional[int] = None,
        account_width: Optional[int] = None,
    ) -> None:
        cfg = load_config()
        self.balance_max = cfg.balance_max if balance_max is None else balance_max
        self.account_width = cfg.account_id_bytes if account_width is None else account_width
        self.storage = storage
        self.sink = sink
        self.ledger = Ledger(storage, balance_max=self.balance_max)
        self.allowances = AllowanceRegistry(storage, balance_max=self.balance_max)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def new(
        cls,
        caller: AccountId,
        initial_supply: Balance,
        *,
        storage: Optional[StorageBackend] = None,
        sink: Optional[EventSink] = None,
        **kwargs: Any,
    ) -> "TransferEngine":
        """
        Deploy a token: fix the total supply, credit all of it to `caller`
        and emit Transfer(from=None, to=caller).
        """
        engine = cls(
            storage if storage is not None else MemoryBackend(),
            sink if sink is not None else EventLog(),
            **kwargs,
        )
        engine._check_account(caller)
        engine._check_amount(initial_supply)
        with engine.storage.batch():
            engine.ledger.initialize(caller, initial_supply)
        engine._emit(Transfer(from_=None, to=bytes(caller), value=initial_supply))
        log.info("token_deployed", deployer=bytes(caller), supply=initial_supply)
        return engine

    @classmethod
    def attach(
        cls,
        storage: StorageBackend,
        *,
        sink: Optional[EventSink] = None,
        **kwargs: Any,
    ) -> "TransferEngine":
        """Re-open a deployment that already lives in `storage`."""
        engine = cls(storage, sink if sink is not None else EventLog(), **kwargs)
        if not engine.ledger.is_initialized():
            raise NotInitialized()
        return engine

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def total_supply(self) -> Balance:
        return self.ledger.total_supply()

    def balance_of(self, account: AccountId) -> Balance:
        self._check_account(account)
        return self.ledger.balance_of(account)

    def allowance(self, owner: AccountId, spender: AccountId) -> Balance:
        self._check_account(owner)
        self._check_account(spender)
        return self.allowances.allowance_of(owner, spender)

    # ------------------------------------------------------------------
    # Mutations (explicit caller)
    # ------------------------------------------------------------------

    def transfer(self, caller: AccountId, to: AccountId, value: Balance) -> None:
        self._check_account(caller)
        self._check_account(to)
        self._check_amount(value)
        try:
            event = self._transfer_from_to(caller, to, value)
        except TokenError as exc:
            log.debug("transfer_rejected", caller=bytes(caller), to=bytes(to), value=value, code=exc.code)
            raise
        self._emit(event)
        log.debug("transfer_ok", caller=bytes(caller), to=bytes(to), value=value)

    def approve(self, caller: AccountId, spender: AccountId, value: Balance) -> None:
        """
        Let `spender` move up to `value` of the caller's tokens.

        Replaces any earlier grant outright (see the module notes on the
        approve race).
        """
        self._check_account(caller)
        self._check_account(spender)
        self._check_amount(value)
        with self.storage.batch():
            self.allowances.set_allowance(caller, spender, value)
        self._emit(Approval(owner=bytes(caller), spender=bytes(spender), value=value))
        log.debug("approve_ok", owner=bytes(caller), spender=bytes(spender), value=value)

    def transfer_from(self, caller: AccountId, from_: AccountId, to: AccountId, value: Balance) -> None:
        """
        Spender (`caller`) moves `value` from `from_` to `to` using its allowance.

        The allowance is decreased only after the balance movement succeeded.
        """
        self._check_account(caller)
        self._check_account(from_)
        self._check_account(to)
        self._check_amount(value)
        try:
            event = self._delegated_transfer(caller, from_, to, value)
        except TokenError as exc:
            log.debug(
                "transfer_from_rejected",
                spender=bytes(caller),
                owner=bytes(from_),
                to=bytes(to),
                value=value,
                code=exc.code,
            )
            raise
        self._emit(event)
        log.debug("transfer_from_ok", spender=bytes(caller), owner=bytes(from_), to=bytes(to), value=value)

    # ------------------------------------------------------------------
    # Audit
    # ------------------------------------------------------------------

    def check_conservation(self) -> Balance:
        """Raise InvariantViolation unless the balances sum to the total supply."""
        held = sum(v for _, v in self.ledger.holders())
        supply = self.total_supply()
        if held != supply:
            log.error("conservation_broken", held=held, supply=supply)
            raise InvariantViolation("balances do not sum to total supply", held=held, supply=supply)
        return held

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _transfer_from_to(self, from_: AccountId, to: AccountId, value: Balance) -> Transfer:
        from_balance = self.ledger.balance_of(from_)
        if from_balance < value:
            raise InsufficientBalance(from_, from_balance, value)
        with self.storage.batch():
            self.ledger.debit(from_, value)
            self.ledger.credit(to, value)
        return Transfer(from_=bytes(from_), to=bytes(to), value=value)

    def _delegated_transfer(self, caller: AccountId, from_: AccountId, to: AccountId, value: Balance) -> Transfer:
        current = self.allowances.allowance_of(from_, caller)
        if current < value:
            raise InsufficientAllowance(from_, caller, current, value)
        with self.storage.batch():
            event = self._transfer_from_to(from_, to, value)
            self.allowances.decrease_allowance(from_, caller, value)
        return event

    def _emit(self, event: Event) -> None:
        self.sink.emit(event)

    def _check_account(self, account: AccountId) -> None:
        require_account(account, width=self.account_width)

    def _check_amount(self, value: Balance) -> None:
        require_amount(value, max_value=self.balance_max)


__all__ = ["TransferEngine"]
