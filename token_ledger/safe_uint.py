"""
token_ledger.safe_uint
======================

Checked unsigned-integer helpers for balances and allowances.

- Integer-only, never floats.
- "Checked" semantics: raise on overflow/underflow instead of wrapping.
- The upper bound is passed in explicitly so the same helpers serve any
  configured balance width (128 bits by default).
"""

from __future__ import annotations

from typing import Final

from .errors import ArithmeticUnderflow, BalanceOverflow, InvalidAmount

U128_MAX: Final[int] = (1 << 128) - 1


def require_uint(*xs: int, max_value: int = U128_MAX) -> None:
    """Raise InvalidAmount if any x is outside [0, max_value]."""
    for x in xs:
        if x < 0 or x > max_value:
            raise InvalidAmount("operand out of range", operand=x, max=max_value)


def checked_add(x: int, y: int, *, max_value: int = U128_MAX) -> int:
    """Checked add: raise BalanceOverflow if x + y > max_value."""
    require_uint(x, y, max_value=max_value)
    s = x + y
    if s > max_value:
        raise BalanceOverflow(lhs=x, rhs=y, max=max_value)
    return s


def checked_sub(x: int, y: int, *, max_value: int = U128_MAX) -> int:
    """Checked sub: raise ArithmeticUnderflow if y > x."""
    require_uint(x, y, max_value=max_value)
    if y > x:
        raise ArithmeticUnderflow(lhs=x, rhs=y)
    return x - y


def encode_uint(n: int, width: int = 32) -> bytes:
    """Fixed-width big-endian encoding used for stored amounts."""
    return int(n).to_bytes(width, "big", signed=False)


def decode_uint(raw: bytes) -> int:
    return int.from_bytes(raw, "big", signed=False) if raw else 0


__all__ = [
    "U128_MAX",
    "require_uint",
    "checked_add",
    "checked_sub",
    "encode_uint",
    "decode_uint",
]
