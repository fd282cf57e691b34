"""
Shared pytest fixtures:
- Clean configuration per test (no leaked TOKEN_LEDGER_* env, fresh cache)
- Development accounts (alice..frank)
- A freshly deployed engine (supply 100, deployed by alice) with an
  inspectable event log, and a caller-bound session over it
- A SQLite backend in the per-test temp directory
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

import pytest

from token_ledger.config import load_config
from token_ledger.engine import TransferEngine
from token_ledger.events import EventLog
from token_ledger.harness import DefaultAccounts, Session, default_accounts
from token_ledger.sqlite_store import SQLiteBackend

INITIAL_SUPPLY = 100


@pytest.fixture(autouse=True)
def _clean_config(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in list(os.environ):
        if name.startswith("TOKEN_LEDGER_") or name in ("LOG_LEVEL", "LOG_FORMAT"):
            monkeypatch.delenv(name, raising=False)
    load_config.cache_clear()
    yield
    load_config.cache_clear()


@pytest.fixture
def accounts() -> DefaultAccounts:
    return default_accounts()


@pytest.fixture
def events() -> EventLog:
    return EventLog()


@pytest.fixture
def engine(accounts: DefaultAccounts, events: EventLog) -> TransferEngine:
    return TransferEngine.new(accounts.alice, INITIAL_SUPPLY, sink=events)


@pytest.fixture
def session(engine: TransferEngine, accounts: DefaultAccounts) -> Session:
    return Session(engine, accounts.alice)


@pytest.fixture
def sqlite_backend(tmp_path: Path) -> Iterator[SQLiteBackend]:
    backend = SQLiteBackend(tmp_path / "state.db")
    try:
        yield backend
    finally:
        backend.close()
