"""
token_ledger.errors
-------------------

A small, consistent error system for the token ledger.

Design goals
------------
- One root `TokenError` with a machine-friendly `code` and optional `data`.
- Concrete subclasses for the two domain failures (insufficient balance,
  insufficient allowance) plus input validation, lifecycle misuse, checked
  arithmetic guards and storage/config problems.
- Safe JSON representation (`to_dict`) suitable for logs and the CLI.

Only the two domain errors are expected during normal operation. Everything
else indicates bad input or a broken invariant.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping


class TokenErrorCode(str, Enum):
    # Domain
    INSUFFICIENT_BALANCE = "TOKEN/INSUFFICIENT_BALANCE"
    INSUFFICIENT_ALLOWANCE = "TOKEN/INSUFFICIENT_ALLOWANCE"

    # Arithmetic guards
    OVERFLOW = "TOKEN/OVERFLOW"
    UNDERFLOW = "TOKEN/UNDERFLOW"

    # Inputs
    BAD_ACCOUNT = "TOKEN/BAD_ACCOUNT"
    BAD_AMOUNT = "TOKEN/BAD_AMOUNT"

    # Lifecycle
    ALREADY_INIT = "TOKEN/ALREADY_INIT"
    NOT_INIT = "TOKEN/NOT_INIT"
    INVARIANT = "TOKEN/INVARIANT"

    # Plumbing
    STORAGE = "TOKEN/STORAGE"
    CONFIG = "TOKEN/CONFIG"


def _coerce_json(v: Any) -> Any:
    if isinstance(v, (bytes, bytearray, memoryview)):
        return "0x" + bytes(v).hex()
    if isinstance(v, Enum):
        return v.value
    if isinstance(v, Mapping):
        return {str(k): _coerce_json(x) for k, x in v.items()}
    if isinstance(v, (list, tuple)):
        return [_coerce_json(x) for x in v]
    return v


@dataclass(eq=False)
class TokenError(Exception):
    """
    Root error for the token ledger.

    Attributes
    ----------
    code: str
        Machine-stable error code (see TokenErrorCode).
    message: str
        Human hint suitable for logs.
    data: dict
        Machine data (accounts, amounts). JSON-serializable after `to_dict`.
    """

    code: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if isinstance(self.code, TokenErrorCode):
            self.code = self.code.value
        super().__init__(f"{self.code}: {self.message}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "data": _coerce_json(self.data),
        }

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class InsufficientBalance(TokenError):
    def __init__(self, account: bytes, balance: int, requested: int) -> None:
        super().__init__(
            code=TokenErrorCode.INSUFFICIENT_BALANCE,
            message="balance too low",
            data={"account": account, "balance": balance, "requested": requested},
        )


class InsufficientAllowance(TokenError):
    def __init__(self, owner: bytes, spender: bytes, allowance: int, requested: int) -> None:
        super().__init__(
            code=TokenErrorCode.INSUFFICIENT_ALLOWANCE,
            message="allowance too low",
            data={
                "owner": owner,
                "spender": spender,
                "allowance": allowance,
                "requested": requested,
            },
        )


class BalanceOverflow(TokenError):
    def __init__(self, message: str = "result exceeds balance range", **data: Any) -> None:
        super().__init__(code=TokenErrorCode.OVERFLOW, message=message, data=dict(data))


class ArithmeticUnderflow(TokenError):
    def __init__(self, message: str = "result below zero", **data: Any) -> None:
        super().__init__(code=TokenErrorCode.UNDERFLOW, message=message, data=dict(data))


class InvalidAccount(TokenError):
    def __init__(self, message: str = "invalid account id", **data: Any) -> None:
        super().__init__(code=TokenErrorCode.BAD_ACCOUNT, message=message, data=dict(data))


class InvalidAmount(TokenError):
    def __init__(self, message: str = "invalid amount", **data: Any) -> None:
        super().__init__(code=TokenErrorCode.BAD_AMOUNT, message=message, data=dict(data))


class AlreadyInitialized(TokenError):
    def __init__(self) -> None:
        super().__init__(code=TokenErrorCode.ALREADY_INIT, message="token already deployed")


class NotInitialized(TokenError):
    def __init__(self) -> None:
        super().__init__(code=TokenErrorCode.NOT_INIT, message="no token deployed in this storage")


class InvariantViolation(TokenError):
    def __init__(self, message: str, **data: Any) -> None:
        super().__init__(code=TokenErrorCode.INVARIANT, message=message, data=dict(data))


class StorageError(TokenError):
    def __init__(self, message: str, **data: Any) -> None:
        super().__init__(code=TokenErrorCode.STORAGE, message=message, data=dict(data))


class ConfigError(TokenError):
    def __init__(self, message: str = "invalid configuration", **data: Any) -> None:
        super().__init__(code=TokenErrorCode.CONFIG, message=message, data=dict(data))


__all__ = [
    "TokenErrorCode",
    "TokenError",
    "InsufficientBalance",
    "InsufficientAllowance",
    "BalanceOverflow",
    "ArithmeticUnderflow",
    "InvalidAccount",
    "InvalidAmount",
    "AlreadyInitialized",
    "NotInitialized",
    "InvariantViolation",
    "StorageError",
    "ConfigError",
]
