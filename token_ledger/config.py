"""
token_ledger.config: numeric widths, state location and logging knobs.

This module centralizes configuration for the ledger. It has NO third-party
deps and is safe to import very early.

Configuration precedence:
  1) Environment variables (TOKEN_LEDGER_*, then the generic LOG_* names)
  2) Hardcoded safe defaults below

Key env vars:
  - TOKEN_LEDGER_BALANCE_BITS   (int)   default: 128   (clamped to 8..256)
  - TOKEN_LEDGER_ACCOUNT_BYTES  (int)   default: 32    (clamped to 1..64)
  - TOKEN_LEDGER_STATE          (path)  default: ./token-ledger.db
  - TOKEN_LEDGER_LOG_LEVEL      (str)   default: WARNING  (falls back to LOG_LEVEL)
  - TOKEN_LEDGER_LOG_FORMAT     (str)   default: console  (falls back to LOG_FORMAT)

Usage:
    from token_ledger.config import load_config
    CFG = load_config()
    CFG.balance_max
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import ConfigError

DEFAULT_BALANCE_BITS = 128
DEFAULT_ACCOUNT_BYTES = 32
DEFAULT_STATE_FILE = "token-ledger.db"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_LOG_FORMATS = ("console", "json")


# ----------------------------- helpers ---------------------------------------


def _env_int(name: str, default: int, *, min_v: int, max_v: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        v = int(raw, 0)
    except ValueError:
        return default
    if v < min_v:
        return min_v
    if v > max_v:
        return max_v
    return v


def _env_str(*names: str, default: str) -> str:
    for name in names:
        raw = os.getenv(name)
        if raw:
            return raw.strip()
    return default


# ------------------------------- config --------------------------------------


@dataclass(frozen=True)
class LedgerConfig:
    balance_bits: int = DEFAULT_BALANCE_BITS
    account_id_bytes: int = DEFAULT_ACCOUNT_BYTES
    state_path: Path = Path(DEFAULT_STATE_FILE)
    log_level: str = "WARNING"
    log_format: str = "console"

    def __post_init__(self) -> None:
        if not 8 <= self.balance_bits <= 256:
            raise ConfigError("balance_bits out of range", balance_bits=self.balance_bits)
        if not 1 <= self.account_id_bytes <= 64:
            raise ConfigError("account_id_bytes out of range", account_id_bytes=self.account_id_bytes)
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ConfigError("unknown log level", log_level=self.log_level)
        if self.log_format.lower() not in _LOG_FORMATS:
            raise ConfigError("unknown log format", log_format=self.log_format)
        object.__setattr__(self, "log_level", self.log_level.upper())
        object.__setattr__(self, "log_format", self.log_format.lower())
        object.__setattr__(self, "state_path", Path(self.state_path))

    @property
    def balance_max(self) -> int:
        return (1 << self.balance_bits) - 1

    def as_dict(self) -> Dict[str, Any]:
        return {
            "balance_bits": self.balance_bits,
            "balance_max": self.balance_max,
            "account_id_bytes": self.account_id_bytes,
            "state_path": str(self.state_path),
            "log_level": self.log_level,
            "log_format": self.log_format,
        }


@lru_cache(maxsize=1)
def load_config() -> LedgerConfig:
    """
    Build and cache a LedgerConfig from environment + safe defaults.

    Tests that tweak the environment should call `load_config.cache_clear()`.
    """
    state_raw: Optional[str] = os.getenv("TOKEN_LEDGER_STATE")
    return LedgerConfig(
        balance_bits=_env_int("TOKEN_LEDGER_BALANCE_BITS", DEFAULT_BALANCE_BITS, min_v=8, max_v=256),
        account_id_bytes=_env_int("TOKEN_LEDGER_ACCOUNT_BYTES", DEFAULT_ACCOUNT_BYTES, min_v=1, max_v=64),
        state_path=Path(state_raw).expanduser() if state_raw else Path(DEFAULT_STATE_FILE),
        log_level=_env_str("TOKEN_LEDGER_LOG_LEVEL", "LOG_LEVEL", default="WARNING"),
        log_format=_env_str("TOKEN_LEDGER_LOG_FORMAT", "LOG_FORMAT", default="console"),
    )


__all__ = ["LedgerConfig", "load_config", "DEFAULT_BALANCE_BITS", "DEFAULT_ACCOUNT_BYTES"]
