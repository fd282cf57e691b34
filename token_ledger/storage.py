"""
token_ledger.storage: key/value storage collaborator and typed mapping views.

The ledger never talks to a database directly. It needs a byte-keyed store
with get / overwrite semantics, and a way to group the writes of a single
operation so they land together. This module defines that contract and ships
the in-process backend used for tests and local runs.

Backend API
-----------
- get(key: bytes) -> Optional[bytes]      # None when absent, never raises
- set(key: bytes, value: bytes) -> None   # insert or overwrite
- delete(key: bytes) -> None              # no-op when absent
- exists(key: bytes) -> bool
- iter_prefix(prefix: bytes) -> Iterator[(key, value)]  # lexicographic
- batch() -> ContextManager               # all-or-nothing group of writes

Key layout
----------
    tok:meta:total                          -> total supply (u256 BE)
    tok:bal:   || <account>                 -> balance      (u256 BE)
    tok:allow: || <owner> || b"|" || <spender> -> allowance (u256 BE)

Defaults
--------
`UintMap.get(key)` returns 0 for an absent key. The zero default is part of
the mapping contract: "never written" and "written as zero" are
indistinguishable to callers, and no read ever fails for a missing entry.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import (ContextManager, Dict, Iterator, Optional, Protocol,
                    Tuple, runtime_checkable)

from .errors import StorageError
from .safe_uint import decode_uint, encode_uint

MAX_KEY_BYTES = 256
MAX_VALUE_BYTES = 64 * 1024
UINT_WIDTH = 32

BAL_PREFIX = b"tok:bal:"
ALLOW_PREFIX = b"tok:allow:"
ALLOW_SEP = b"|"
K_TOTAL = b"tok:meta:total"


# ---------------------------- Backend API ---------------------------- #


@runtime_checkable
class StorageBackend(Protocol):
    """Minimal backend interface for ledger storage."""

    def get(self, key: bytes) -> Optional[bytes]: ...
    def set(self, key: bytes, value: bytes) -> None: ...
    def delete(self, key: bytes) -> None: ...
    def exists(self, key: bytes) -> bool: ...
    def iter_prefix(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]: ...
    def batch(self) -> ContextManager[object]: ...


def check_key(key: bytes) -> bytes:
    if not isinstance(key, (bytes, bytearray)):
        raise StorageError("storage key must be bytes", py_type=type(key).__name__)
    if len(key) == 0:
        raise StorageError("storage key must be non-empty")
    if len(key) > MAX_KEY_BYTES:
        raise StorageError("storage key too long", len=len(key), max=MAX_KEY_BYTES)
    return bytes(key)


def check_value(value: bytes) -> bytes:
    if not isinstance(value, (bytes, bytearray)):
        raise StorageError("storage value must be bytes", py_type=type(value).__name__)
    if len(value) > MAX_VALUE_BYTES:
        raise StorageError("storage value too large", len=len(value), max=MAX_VALUE_BYTES)
    return bytes(value)


class MemoryBackend:
    """
    Thread-safe in-memory backend for local runs and tests.

    `batch()` keeps an undo journal of the first prior value of every key
    written inside the block and replays it if the block raises. A batch
    opened inside another batch joins the outer one.
    """

    def __init__(self) -> None:
        self._store: Dict[bytes, bytes] = {}
        self._lock = threading.RLock()
        self._journal: Optional[Dict[bytes, Optional[bytes]]] = None

    def get(self, key: bytes) -> Optional[bytes]:
        k = check_key(key)
        with self._lock:
            return self._store.get(k)

    def set(self, key: bytes, value: bytes) -> None:
        k = check_key(key)
        v = check_value(value)
        with self._lock:
            self._remember(k)
            self._store[k] = v

    def delete(self, key: bytes) -> None:
        k = check_key(key)
        with self._lock:
            self._remember(k)
            self._store.pop(k, None)

    def exists(self, key: bytes) -> bool:
        k = check_key(key)
        with self._lock:
            return k in self._store

    def iter_prefix(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        with self._lock:
            snapshot = sorted((k, v) for k, v in self._store.items() if k.startswith(prefix))
        return iter(snapshot)

    @contextmanager
    def batch(self) -> Iterator["MemoryBackend"]:
        with self._lock:
            if self._journal is not None:
                yield self
                return
            self._journal = {}
            try:
                yield self
            except BaseException:
                for k, old in self._journal.items():
                    if old is None:
                        self._store.pop(k, None)
                    else:
                        self._store[k] = old
                raise
            finally:
                self._journal = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def _remember(self, key: bytes) -> None:
        if self._journal is not None and key not in self._journal:
            self._journal[key] = self._store.get(key)


# ----------------------------- Key layout ----------------------------- #


def key_balance(account: bytes) -> bytes:
    """Canonical balance key for an account."""
    return BAL_PREFIX + bytes(account)


def key_allow(owner: bytes, spender: bytes) -> bytes:
    """Canonical allowance key for (owner, spender)."""
    return ALLOW_PREFIX + bytes(owner) + ALLOW_SEP + bytes(spender)


def split_allow_key(key: bytes, width: int) -> Tuple[bytes, bytes]:
    """Inverse of key_allow for fixed-width account ids."""
    body = key[len(ALLOW_PREFIX):]
    owner, sep, spender = body[:width], body[width:width + 1], body[width + 1:]
    if sep != ALLOW_SEP or len(spender) != width:
        raise StorageError("malformed allowance key", key=key)
    return owner, spender


# --------------------------- Typed views --------------------------- #


class UintMap:
    """
    View of a backend as a mapping from full keys to unsigned ints.

    Values are stored as 32-byte big-endian words. `get` returns `default`
    (0) when the key was never written.
    """

    __slots__ = ("_backend", "_prefix")

    def __init__(self, backend: StorageBackend, prefix: bytes) -> None:
        self._backend = backend
        self._prefix = prefix

    @property
    def prefix(self) -> bytes:
        return self._prefix

    def get(self, key: bytes, default: int = 0) -> int:
        raw = self._backend.get(key)
        if raw is None:
            return default
        return decode_uint(raw)

    def insert(self, key: bytes, value: int) -> None:
        self._backend.set(key, encode_uint(value, UINT_WIDTH))

    def items(self) -> Iterator[Tuple[bytes, int]]:
        for k, raw in self._backend.iter_prefix(self._prefix):
            yield k, decode_uint(raw)


__all__ = [
    "StorageBackend",
    "MemoryBackend",
    "UintMap",
    "check_key",
    "check_value",
    "key_balance",
    "key_allow",
    "split_allow_key",
    "BAL_PREFIX",
    "ALLOW_PREFIX",
    "K_TOTAL",
    "MAX_KEY_BYTES",
    "MAX_VALUE_BYTES",
]
