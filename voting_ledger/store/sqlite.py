"""
SQLite-backed store for the voting ledger.

- One `kv(key TEXT PRIMARY KEY, value BLOB)` table; keys compare with SQLite's
  BINARY collation, i.e. lexicographically over their UTF-8 bytes.
- Sets sane PRAGMAs for a small service workload (WAL, busy_timeout).
- compare_and_swap runs inside `BEGIN IMMEDIATE`, so two processes sharing the
  file cannot both observe the same unvoted record and both write it.

Path resolution: explicit argument, else LedgerConfig.sqlite_path
(VOTING_LEDGER_SQLITE_PATH).
"""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from ..config import LedgerConfig, load_config
from ..errors import StoreError
from .api import Entry, RangeIterator, check_key, check_value, key_fits

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key   TEXT PRIMARY KEY,
    value BLOB NOT NULL
);
"""

_SCAN_BATCH = 64


def _configure_connection(conn: sqlite3.Connection) -> None:
    # WAL for concurrent readers; NORMAL is a good latency/durability tradeoff
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA busy_timeout=5000;")


class SQLiteStore:
    def __init__(
        self,
        path: Union[str, Path, None] = None,
        *,
        config: Optional[LedgerConfig] = None,
    ) -> None:
        cfg = config or load_config()
        self._max_key = cfg.max_key_bytes
        self._max_value = cfg.max_value_bytes
        self.path = Path(path) if path is not None else cfg.sqlite_path
        self._lock = threading.RLock()
        try:
            if str(self.path) != ":memory:":
                self.path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(
                str(self.path),
                check_same_thread=False,  # guarded by self._lock
                isolation_level=None,     # autocommit; explicit transactions below
            )
            _configure_connection(self._conn)
            self._conn.executescript(SCHEMA)
        except (sqlite3.Error, OSError) as e:
            raise StoreError.wrap("open", e, path=str(self.path)) from e

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Explicit write transaction; commits on success, rolls back on exception.
        """
        with self._lock:
            self._conn.execute("BEGIN IMMEDIATE;")
            try:
                yield self._conn
                self._conn.execute("COMMIT;")
            except BaseException:
                self._conn.execute("ROLLBACK;")
                raise

    def get(self, key: str) -> bytes:
        if not key_fits(key, max_bytes=self._max_key):
            return b""
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT value FROM kv WHERE key = ?;", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreError.wrap("get", e, key=key) from e
        return bytes(row[0]) if row is not None else b""

    def put(self, key: str, value: bytes) -> None:
        check_key(key, max_bytes=self._max_key)
        check_value(value, max_bytes=self._max_value)
        try:
            with self._lock:
                self._conn.execute(
                    "INSERT OR REPLACE INTO kv(key, value) VALUES (?, ?);",
                    (key, bytes(value)),
                )
        except sqlite3.Error as e:
            raise StoreError.wrap("put", e, key=key) from e

    def compare_and_swap(self, key: str, expected: bytes, value: bytes) -> bool:
        check_key(key, max_bytes=self._max_key)
        check_value(value, max_bytes=self._max_value)
        try:
            with self._transaction() as db:
                row = db.execute("SELECT value FROM kv WHERE key = ?;", (key,)).fetchone()
                current = bytes(row[0]) if row is not None else b""
                if current != bytes(expected):
                    return False
                db.execute(
                    "INSERT OR REPLACE INTO kv(key, value) VALUES (?, ?);",
                    (key, bytes(value)),
                )
                return True
        except sqlite3.Error as e:
            raise StoreError.wrap("compare_and_swap", e, key=key) from e

    def scan(self, start: str, end: str) -> RangeIterator:
        try:
            with self._lock:
                cur = self._conn.execute(
                    "SELECT key, value FROM kv WHERE key >= ? AND key < ? ORDER BY key;",
                    (start, end),
                )
        except sqlite3.Error as e:
            raise StoreError.wrap("scan", e, start=start, end=end) from e

        def _entries() -> Iterator[Entry]:
            while True:
                try:
                    with self._lock:
                        rows = cur.fetchmany(_SCAN_BATCH)
                except sqlite3.Error as e:
                    raise StoreError.wrap("scan", e, start=start, end=end) from e
                if not rows:
                    return
                for k, v in rows:
                    yield str(k), bytes(v)

        return RangeIterator(_entries(), on_close=cur.close)

    def close(self) -> None:
        with self._lock:
            try:
                self._conn.close()
            except sqlite3.Error as e:
                raise StoreError.wrap("close", e, path=str(self.path)) from e


__all__ = ["SQLiteStore"]
