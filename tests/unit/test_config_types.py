"""
Configuration loading plus the small validation helpers (account ids,
amounts, checked arithmetic) everything else builds on.
"""
from __future__ import annotations

from pathlib import Path

import pytest

from token_ledger.config import LedgerConfig, load_config
from token_ledger.engine import TransferEngine
from token_ledger.errors import (ArithmeticUnderflow, BalanceOverflow,
                                 ConfigError, InvalidAccount, InvalidAmount,
                                 TokenError, TokenErrorCode)
from token_ledger.safe_uint import (U128_MAX, checked_add, checked_sub,
                                    decode_uint, encode_uint)
from token_ledger.types import (account_id, require_account, require_amount,
                                to_hex)

# ----------------------------------------------------------------- config


def test_defaults():
    cfg = load_config()
    assert cfg.balance_bits == 128
    assert cfg.balance_max == U128_MAX
    assert cfg.account_id_bytes == 32
    assert cfg.state_path == Path("token-ledger.db")
    assert cfg.log_level == "WARNING"
    assert cfg.as_dict()["balance_max"] == U128_MAX


def test_env_overrides_and_clamping(monkeypatch):
    monkeypatch.setenv("TOKEN_LEDGER_BALANCE_BITS", "999")
    monkeypatch.setenv("TOKEN_LEDGER_ACCOUNT_BYTES", "20")
    monkeypatch.setenv("TOKEN_LEDGER_STATE", "/tmp/x.db")
    monkeypatch.setenv("TOKEN_LEDGER_LOG_LEVEL", "debug")
    load_config.cache_clear()
    cfg = load_config()
    assert cfg.balance_bits == 256
    assert cfg.account_id_bytes == 20
    assert cfg.state_path == Path("/tmp/x.db")
    assert cfg.log_level == "DEBUG"


def test_garbage_int_falls_back_to_default(monkeypatch):
    monkeypatch.setenv("TOKEN_LEDGER_BALANCE_BITS", "lots")
    load_config.cache_clear()
    assert load_config().balance_bits == 128


def test_invalid_direct_config():
    with pytest.raises(ConfigError):
        LedgerConfig(balance_bits=4)
    with pytest.raises(ConfigError):
        LedgerConfig(log_format="xml")


def test_engine_follows_configured_widths(monkeypatch):
    monkeypatch.setenv("TOKEN_LEDGER_BALANCE_BITS", "16")
    monkeypatch.setenv("TOKEN_LEDGER_ACCOUNT_BYTES", "20")
    load_config.cache_clear()
    owner = b"\x01" * 20
    with pytest.raises(InvalidAmount):
        TransferEngine.new(owner, 1 << 16)
    engine = TransferEngine.new(owner, (1 << 16) - 1)
    with pytest.raises(InvalidAccount):
        engine.balance_of(b"\x01" * 32)


# ------------------------------------------------------------------ types


def test_account_id_coercion():
    raw = b"\xab" * 32
    assert account_id(raw) == raw
    assert account_id(bytearray(raw)) == raw
    assert account_id("0x" + "ab" * 32, width=32) == raw
    assert account_id("AB" * 32) == raw
    assert to_hex(raw) == "0x" + "ab" * 32


@pytest.mark.parametrize("bad", ["0xabc", "zz", 42, None, b""])
def test_account_id_rejects(bad):
    with pytest.raises(InvalidAccount):
        account_id(bad)


def test_require_account_width():
    require_account(b"\x01" * 32, width=32)
    with pytest.raises(InvalidAccount):
        require_account(b"\x01" * 33, width=32)


def test_require_amount_bounds():
    require_amount(0, max_value=10)
    require_amount(10, max_value=10)
    for bad in (-1, 11, False, 2.0):
        with pytest.raises(InvalidAmount):
            require_amount(bad, max_value=10)


# -------------------------------------------------------------- safe_uint


def test_checked_arithmetic():
    assert checked_add(1, 2) == 3
    assert checked_add(U128_MAX - 1, 1) == U128_MAX
    with pytest.raises(BalanceOverflow):
        checked_add(U128_MAX, 1)
    assert checked_sub(5, 5) == 0
    with pytest.raises(ArithmeticUnderflow):
        checked_sub(4, 5)
    with pytest.raises(InvalidAmount):
        checked_add(-1, 1)


def test_uint_codec():
    assert encode_uint(1) == b"\x00" * 31 + b"\x01"
    assert decode_uint(encode_uint(U128_MAX)) == U128_MAX
    assert decode_uint(b"") == 0


# ----------------------------------------------------------------- errors


def test_error_to_dict_hexes_accounts():
    err = TokenError(TokenErrorCode.INSUFFICIENT_BALANCE, "x", {"account": b"\x01\x02"})
    assert err.code == "TOKEN/INSUFFICIENT_BALANCE"
    assert err.to_dict() == {
        "code": "TOKEN/INSUFFICIENT_BALANCE",
        "message": "x",
        "data": {"account": "0x0102"},
    }
    assert str(err) == "TOKEN/INSUFFICIENT_BALANCE: x"
