"""
token_ledger.types: AccountId / Balance aliases and their validators.

Accounts are raw `bytes` of a fixed width (32 by default). Hex strings (with
or without "0x") are accepted by `account_id()` at the edges (CLI, harness)
and normalized to bytes; the engine itself only ever sees bytes.

Balances are plain Python ints constrained to [0, balance_max].
"""

from __future__ import annotations

from typing import Any, Optional, Union

from .errors import InvalidAccount, InvalidAmount

AccountId = bytes
Balance = int

AccountLike = Union[bytes, bytearray, memoryview, str]


def _strip_0x(s: str) -> str:
    return s[2:] if s.startswith(("0x", "0X")) else s


def to_hex(b: Union[bytes, bytearray, memoryview]) -> str:
    """Encode bytes as 0x-prefixed lowercase hex."""
    return "0x" + bytes(b).hex()


def account_id(value: AccountLike, *, width: Optional[int] = None) -> AccountId:
    """
    Coerce `value` to an AccountId.
    - If str, interpret as hex (with or without '0x'); odd-length hex is rejected.
    - If a bytes-like object, copy to immutable bytes.
    When `width` is given the result must be exactly that many bytes.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        out = bytes(value)
    elif isinstance(value, str):
        h = _strip_0x(value.strip())
        if len(h) % 2 != 0:
            raise InvalidAccount("hex account id must have even length", value=value)
        try:
            out = bytes.fromhex(h)
        except ValueError as e:
            raise InvalidAccount("invalid hex account id", value=value) from e
    else:
        raise InvalidAccount("account id must be bytes or hex", py_type=type(value).__name__)
    require_account(out, width=width)
    return out


def require_account(addr: Any, *, width: Optional[int] = None) -> None:
    """Ensure `addr` is non-empty bytes, and exactly `width` long if given."""
    if not isinstance(addr, (bytes, bytearray)) or len(addr) == 0:
        raise InvalidAccount(py_type=type(addr).__name__)
    if width is not None and len(addr) != width:
        raise InvalidAccount("account id has wrong width", expected=width, got=len(addr))


def require_amount(n: Any, *, max_value: int) -> None:
    """Ensure `n` is an integer amount in [0, max_value]. Booleans are rejected."""
    if isinstance(n, bool) or not isinstance(n, int):
        raise InvalidAmount("amount must be int", py_type=type(n).__name__)
    if n < 0 or n > max_value:
        raise InvalidAmount("amount out of range", amount=n, max=max_value)


__all__ = [
    "AccountId",
    "Balance",
    "AccountLike",
    "account_id",
    "to_hex",
    "require_account",
    "require_amount",
]
