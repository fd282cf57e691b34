# -*- coding: utf-8 -*-
"""
token_ledger.ledger
===================

Account balances plus the immutable total supply.

The ledger owns two things in storage: the `tok:bal:` mapping and the
`tok:meta:total` scalar. It knows nothing about allowances or events. Every
mutator checks before it writes, so a raised error means nothing changed.
"""

from __future__ import annotations

from typing import Iterator, Optional, Tuple

from .errors import AlreadyInitialized, InsufficientBalance
from .safe_uint import U128_MAX, checked_add, checked_sub, decode_uint, encode_uint
from .storage import BAL_PREFIX, K_TOTAL, StorageBackend, UintMap, key_balance
from .types import AccountId, Balance


class Ledger:
    def __init__(self, storage: StorageBackend, *, balance_max: int = U128_MAX) -> None:
        self._storage = storage
        self._balances = UintMap(storage, BAL_PREFIX)
        self.balance_max = balance_max

    # ---------------------------------------------------------------- supply

    def is_initialized(self) -> bool:
        return self._storage.exists(K_TOTAL)

    def total_supply(self) -> Balance:
        raw: Optional[bytes] = self._storage.get(K_TOTAL)
        return decode_uint(raw) if raw else 0

    def initialize(self, owner: AccountId, supply: Balance) -> None:
        """Fix the total supply and credit all of it to `owner`. One shot."""
        if self.is_initialized():
            raise AlreadyInitialized()
        self._storage.set(K_TOTAL, encode_uint(supply))
        self._balances.insert(key_balance(owner), supply)

    # -------------------------------------------------------------- balances

    def balance_of(self, account: AccountId) -> Balance:
        return self._balances.get(key_balance(account))

    def credit(self, account: AccountId, amount: Balance) -> None:
        """Add `amount`. Raises BalanceOverflow rather than wrapping."""
        key = key_balance(account)
        new = checked_add(self._balances.get(key), amount, max_value=self.balance_max)
        self._balances.insert(key, new)

    def debit(self, account: AccountId, amount: Balance) -> None:
        key = key_balance(account)
        current = self._balances.get(key)
        if current < amount:
            raise InsufficientBalance(account, current, amount)
        self._balances.insert(key, checked_sub(current, amount, max_value=self.balance_max))

    def holders(self) -> Iterator[Tuple[AccountId, Balance]]:
        """(account, balance) for every account ever written, zero balances included."""
        for key, value in self._balances.items():
            yield key[len(BAL_PREFIX):], value


__all__ = ["Ledger"]
