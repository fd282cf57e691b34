"""
token_ledger.allowances: (owner, spender) -> remaining delegated amount.

Independent of the ledger: an allowance may exceed the owner's balance, and
nothing here checks balances.
"""

from __future__ import annotations

from typing import Iterator, Tuple

from .errors import InsufficientAllowance
from .safe_uint import U128_MAX, checked_sub
from .storage import ALLOW_PREFIX, StorageBackend, UintMap, key_allow, split_allow_key
from .types import AccountId, Balance


class AllowanceRegistry:
    def __init__(self, storage: StorageBackend, *, balance_max: int = U128_MAX) -> None:
        self._allowances = UintMap(storage, ALLOW_PREFIX)
        self.balance_max = balance_max

    def allowance_of(self, owner: AccountId, spender: AccountId) -> Balance:
        return self._allowances.get(key_allow(owner, spender))

    def set_allowance(self, owner: AccountId, spender: AccountId, value: Balance) -> None:
        # Replaces the previous grant; never adds to it.
        self._allowances.insert(key_allow(owner, spender), value)

    def decrease_allowance(self, owner: AccountId, spender: AccountId, amount: Balance) -> None:
        key = key_allow(owner, spender)
        current = self._allowances.get(key)
        if current < amount:
            raise InsufficientAllowance(owner, spender, current, amount)
        self._allowances.insert(key, checked_sub(current, amount, max_value=self.balance_max))

    def grants(self, width: int) -> Iterator[Tuple[AccountId, AccountId, Balance]]:
        """(owner, spender, value) for every stored pair."""
        for key, value in self._allowances.items():
            owner, spender = split_allow_key(key, width)
            yield owner, spender, value


__all__ = ["AllowanceRegistry"]
