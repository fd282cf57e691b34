"""
token_ledger: fixed-supply fungible token ledger with delegated spending.

Public façade:

- TransferEngine: deploy/attach a token and run transfer / approve /
  transfer_from against it (caller passed explicitly).
- Session, default_accounts: caller-bound handle and dev accounts for tests
  and local use.
- MemoryBackend / SQLiteBackend: storage collaborators.
- EventLog / SQLiteEventLog: event sinks; Transfer / Approval: events.
- TokenError and subclasses: typed failures.
"""

from __future__ import annotations

from .engine import TransferEngine
from .errors import (AlreadyInitialized, BalanceOverflow, InsufficientAllowance,
                     InsufficientBalance, InvalidAccount, InvalidAmount,
                     InvariantViolation, NotInitialized, TokenError)
from .events import Approval, EventLog, Transfer
from .harness import Session, default_accounts, resolve_account
from .sqlite_store import SQLiteBackend, SQLiteEventLog
from .storage import MemoryBackend
from .version import __version__


def version() -> str:
    """Return the token_ledger version string."""
    return __version__


__all__ = [
    "__version__",
    "version",
    "TransferEngine",
    "Session",
    "default_accounts",
    "resolve_account",
    "MemoryBackend",
    "SQLiteBackend",
    "SQLiteEventLog",
    "EventLog",
    "Transfer",
    "Approval",
    "TokenError",
    "InsufficientBalance",
    "InsufficientAllowance",
    "BalanceOverflow",
    "InvalidAccount",
    "InvalidAmount",
    "AlreadyInitialized",
    "NotInitialized",
    "InvariantViolation",
]
