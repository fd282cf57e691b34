from __future__ import annotations

import pytest

from token_ledger.errors import (InsufficientAllowance, InsufficientBalance,
                                 InvalidAccount)
from token_ledger.events import Transfer
from token_ledger.harness import (DEV_ACCOUNT_NAMES, Session,
                                  default_accounts, resolve_account)


def test_default_accounts_are_fixed_patterns():
    accts = default_accounts()
    assert accts.alice == b"\x01" * 32
    assert accts.frank == b"\x06" * 32
    assert [name for name, _ in accts.items()] == list(DEV_ACCOUNT_NAMES)
    assert accts.to_dict()["bob"] == "0x" + "02" * 32


def test_resolve_account_names_and_hex():
    accts = default_accounts()
    assert resolve_account("Charlie") == accts.charlie
    assert resolve_account("0x" + "05" * 32) == accts.eve
    assert resolve_account("alice", width=20) == b"\x01" * 20
    with pytest.raises(InvalidAccount):
        resolve_account("mallory")


def test_session_uses_current_caller(session, accounts):
    session.transfer(accounts.bob, 10)
    assert session.balance_of(accounts.alice) == 90
    assert session.balance_of(accounts.bob) == 10

    session.set_caller(accounts.bob)
    session.transfer(accounts.charlie, 4)
    assert session.balance_of(accounts.bob) == 6
    assert session.balance_of(accounts.charlie) == 4
    assert session.total_supply() == 100


def test_session_delegated_flow(session, accounts):
    # bob fails to move alice's tokens before any approval
    session.set_caller(accounts.bob)
    with pytest.raises(InsufficientAllowance):
        session.transfer_from(accounts.alice, accounts.frank, 10)

    session.set_caller(accounts.alice)
    session.approve(accounts.bob, 10)

    session.set_caller(accounts.bob)
    session.transfer_from(accounts.alice, accounts.frank, 10)
    assert session.balance_of(accounts.frank) == 10
    assert session.allowance(accounts.alice, accounts.bob) == 0


def test_session_deploy(accounts):
    s = Session.deploy(50, caller=accounts.django)
    assert s.caller == accounts.django
    assert s.balance_of(accounts.django) == 50
    assert s.engine.sink.events == (Transfer(from_=None, to=accounts.django, value=50),)
    with pytest.raises(InsufficientBalance):
        s.transfer(accounts.eve, 51)


def test_session_rejects_bad_caller(session):
    with pytest.raises(InvalidAccount):
        session.set_caller(b"\x01")
