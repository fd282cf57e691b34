from __future__ import annotations

"""
SQLite-backed ledger storage and event log
==========================================

A small embedded store for running the ledger across processes (the CLI keeps
one state file per deployment).

- Table kv(k BLOB PRIMARY KEY, v BLOB NOT NULL) backs `SQLiteBackend`.
- Table events(seq INTEGER PRIMARY KEY, doc TEXT NOT NULL) backs
  `SQLiteEventLog`; each row is the canonical receipt JSON of one event.
- Keys/values are raw bytes; ordering is lexicographic (memcmp).
- The connection runs in autocommit mode; `batch()` wraps a block in
  BEGIN IMMEDIATE ... COMMIT and rolls back if the block raises.
"""

import json
import os
import sqlite3
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from .errors import StorageError
from .events import Event, decode_event, encode_event
from .storage import check_key, check_value

PathLike = Union[str, "os.PathLike[str]"]

DEFAULT_PRAGMAS = {
    "journal_mode": "WAL",
    "synchronous": "NORMAL",
    "temp_store": "MEMORY",
    "foreign_keys": "OFF",
}


def _apply_pragmas(conn: sqlite3.Connection, pragmas: Optional[dict] = None) -> None:
    p = dict(DEFAULT_PRAGMAS)
    if pragmas:
        p.update(pragmas)
    cur = conn.cursor()
    for name in ("journal_mode", "synchronous", "temp_store", "foreign_keys"):
        cur.execute("PRAGMA %s=%s" % (name, p[name]))
    cur.close()


def _migrate(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS kv (
            k BLOB PRIMARY KEY,
            v BLOB NOT NULL
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS events (
            seq INTEGER PRIMARY KEY AUTOINCREMENT,
            doc TEXT NOT NULL
        )
        """
    )


def _prefix_hi(prefix: bytes) -> Optional[bytes]:
    """
    Smallest byte string strictly greater than every key starting with
    `prefix`, or None if the prefix is all 0xFF.

    Example: b"ab\\x01" -> b"ab\\x02"; b"\\xff\\xff" -> None
    """
    if not prefix:
        return None
    p = bytearray(prefix)
    for i in range(len(p) - 1, -1, -1):
        if p[i] != 0xFF:
            p[i] += 1
            del p[i + 1:]
            return bytes(p)
    return None


def open_connection(path: PathLike, *, pragmas: Optional[dict] = None) -> sqlite3.Connection:
    """Open (or create) the state database at `path` and apply the schema."""
    try:
        conn = sqlite3.connect(
            str(path),
            isolation_level=None,      # autocommit; we explicitly BEGIN for batches
            check_same_thread=False,
        )
        if str(path) != ":memory:":
            _apply_pragmas(conn, pragmas)
        _migrate(conn)
    except sqlite3.Error as exc:
        raise StorageError("cannot open state database", path=str(path), reason=str(exc)) from exc
    return conn


class SQLiteBackend:
    """SQLite implementation of the `StorageBackend` protocol."""

    __slots__ = ("_conn", "_in_batch")

    def __init__(self, conn_or_path: Union[sqlite3.Connection, PathLike], *, pragmas: Optional[dict] = None) -> None:
        if isinstance(conn_or_path, sqlite3.Connection):
            self._conn = conn_or_path
            _migrate(self._conn)
        else:
            self._conn = open_connection(conn_or_path, pragmas=pragmas)
        self._in_batch = False

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def get(self, key: bytes) -> Optional[bytes]:
        cur = self._conn.execute("SELECT v FROM kv WHERE k = ?", (check_key(key),))
        row = cur.fetchone()
        cur.close()
        return bytes(row[0]) if row is not None else None

    def set(self, key: bytes, value: bytes) -> None:
        self._conn.execute(
            "INSERT INTO kv(k, v) VALUES(?, ?) ON CONFLICT(k) DO UPDATE SET v=excluded.v",
            (check_key(key), check_value(value)),
        )

    def delete(self, key: bytes) -> None:
        self._conn.execute("DELETE FROM kv WHERE k = ?", (check_key(key),))

    def exists(self, key: bytes) -> bool:
        cur = self._conn.execute("SELECT 1 FROM kv WHERE k = ? LIMIT 1", (check_key(key),))
        row = cur.fetchone()
        cur.close()
        return row is not None

    def iter_prefix(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        hi = _prefix_hi(prefix)
        if hi is not None:
            sql = "SELECT k, v FROM kv WHERE k >= ? AND k < ? ORDER BY k"
            args: Tuple[Any, ...] = (prefix, hi)
        else:
            sql = "SELECT k, v FROM kv WHERE substr(k, 1, ?) = ? ORDER BY k"
            args = (len(prefix), prefix)
        rows = self._conn.execute(sql, args).fetchall()
        for k, v in rows:
            yield bytes(k), bytes(v)

    @contextmanager
    def batch(self) -> Iterator["SQLiteBackend"]:
        if self._in_batch:
            yield self
            return
        self._conn.execute("BEGIN IMMEDIATE")
        self._in_batch = True
        try:
            yield self
        except BaseException:
            self._conn.execute("ROLLBACK")
            raise
        else:
            self._conn.execute("COMMIT")
        finally:
            self._in_batch = False

    def close(self) -> None:
        self._conn.close()


class SQLiteEventLog:
    """Persistent event sink sharing the state database connection."""

    __slots__ = ("_conn",)

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        _migrate(self._conn)

    def emit(self, event: Event) -> None:
        doc = json.dumps(encode_event(event), sort_keys=True, separators=(",", ":"))
        self._conn.execute("INSERT INTO events(doc) VALUES(?)", (doc,))

    def receipts(self) -> List[Dict[str, Any]]:
        rows = self._conn.execute("SELECT doc FROM events ORDER BY seq").fetchall()
        return [json.loads(r[0]) for r in rows]

    @property
    def events(self) -> Tuple[Event, ...]:
        return tuple(decode_event(d) for d in self.receipts())

    def __len__(self) -> int:
        (n,) = self._conn.execute("SELECT COUNT(*) FROM events").fetchone()
        return int(n)


__all__ = ["SQLiteBackend", "SQLiteEventLog", "open_connection"]
