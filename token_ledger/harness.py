"""
token_ledger.harness: who is calling, resolved outside the engine.

The engine takes the invoking account as an explicit argument. Something
still has to decide what that argument is for each call; in a node that is
the transaction sender, in tests and the CLI it is this module.

- `default_accounts()` returns six well-known development accounts
  (alice..frank), each 32 bytes filled with 0x01..0x06.
- `resolve_account()` turns a dev-account name or a hex string into bytes.
- `Session` carries a *current caller* and exposes the contract-level call
  shapes (`transfer(to, value)`, `approve(spender, value)`, ...), forwarding
  the current caller to the engine on every call.

Usage:
    accts = default_accounts()
    s = Session.deploy(100, caller=accts.alice)
    s.approve(accts.bob, 10)
    s.set_caller(accts.bob)
    s.transfer_from(accts.alice, accts.frank, 10)
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterator, Optional, Tuple

from .engine import TransferEngine
from .errors import InvalidAccount
from .events import EventSink
from .storage import StorageBackend
from .types import AccountId, AccountLike, Balance, account_id, to_hex

DEV_ACCOUNT_NAMES: Tuple[str, ...] = ("alice", "bob", "charlie", "django", "eve", "frank")


@dataclass(frozen=True)
class DefaultAccounts:
    alice: AccountId
    bob: AccountId
    charlie: AccountId
    django: AccountId
    eve: AccountId
    frank: AccountId

    def items(self) -> Iterator[Tuple[str, AccountId]]:
        return iter(asdict(self).items())

    def to_dict(self) -> Dict[str, str]:
        return {name: to_hex(acct) for name, acct in self.items()}


def default_accounts(width: int = 32) -> DefaultAccounts:
    return DefaultAccounts(*(bytes([i + 1]) * width for i in range(len(DEV_ACCOUNT_NAMES))))


def resolve_account(value: AccountLike, *, width: int = 32) -> AccountId:
    """Map 'alice'..'frank' (case-insensitive) or hex/bytes to an AccountId."""
    if isinstance(value, str) and value.strip().lower() in DEV_ACCOUNT_NAMES:
        return getattr(default_accounts(width), value.strip().lower())
    return account_id(value, width=width)


class Session:
    """A caller-bound handle on a TransferEngine."""

    def __init__(self, engine: TransferEngine, caller: AccountId) -> None:
        self.engine = engine
        self._caller: Optional[AccountId] = None
        self.set_caller(caller)

    @classmethod
    def deploy(
        cls,
        initial_supply: Balance,
        *,
        caller: AccountId,
        storage: Optional[StorageBackend] = None,
        sink: Optional[EventSink] = None,
        **kwargs: Any,
    ) -> "Session":
        engine = TransferEngine.new(caller, initial_supply, storage=storage, sink=sink, **kwargs)
        return cls(engine, caller)

    @property
    def caller(self) -> AccountId:
        if self._caller is None:
            raise InvalidAccount("no caller set")
        return self._caller

    def set_caller(self, caller: AccountId) -> None:
        self._caller = account_id(caller, width=self.engine.account_width)

    # reads
    def total_supply(self) -> Balance:
        return self.engine.total_supply()

    def balance_of(self, account: AccountId) -> Balance:
        return self.engine.balance_of(account)

    def allowance(self, owner: AccountId, spender: AccountId) -> Balance:
        return self.engine.allowance(owner, spender)

    # writes, on behalf of the current caller
    def transfer(self, to: AccountId, value: Balance) -> None:
        self.engine.transfer(self.caller, to, value)

    def approve(self, spender: AccountId, value: Balance) -> None:
        self.engine.approve(self.caller, spender, value)

    def transfer_from(self, from_: AccountId, to: AccountId, value: Balance) -> None:
        self.engine.transfer_from(self.caller, from_, to, value)


__all__ = [
    "DEV_ACCOUNT_NAMES",
    "DefaultAccounts",
    "default_accounts",
    "resolve_account",
    "Session",
]
