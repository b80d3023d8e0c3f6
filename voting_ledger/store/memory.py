"""
voting_ledger.store.memory: thread-safe in-process backend.

Default backend for local runs and tests. Keys are kept in a dict; range scans
take a sorted snapshot of the matching keys when opened, and read each value
as the iterator advances.
"""

from __future__ import annotations

import threading
from typing import Dict, Iterator, List, Optional

from ..config import LedgerConfig, load_config
from .api import Entry, RangeIterator, check_key, check_value, key_fits


class MemoryStore:
    """Thread-safe in-memory backend for local runs and tests."""

    def __init__(self, config: Optional[LedgerConfig] = None) -> None:
        cfg = config or load_config()
        self._max_key = cfg.max_key_bytes
        self._max_value = cfg.max_value_bytes
        self._store: Dict[str, bytes] = {}
        self._lock = threading.RLock()
        self.open_scans = 0

    def get(self, key: str) -> bytes:
        # A key the caps forbid was never written.
        if not key_fits(key, max_bytes=self._max_key):
            return b""
        with self._lock:
            return self._store.get(key, b"")

    def put(self, key: str, value: bytes) -> None:
        check_key(key, max_bytes=self._max_key)
        check_value(value, max_bytes=self._max_value)
        with self._lock:
            self._store[key] = bytes(value)

    def compare_and_swap(self, key: str, expected: bytes, value: bytes) -> bool:
        check_key(key, max_bytes=self._max_key)
        check_value(value, max_bytes=self._max_value)
        with self._lock:
            if self._store.get(key, b"") != bytes(expected):
                return False
            self._store[key] = bytes(value)
            return True

    def scan(self, start: str, end: str) -> RangeIterator:
        with self._lock:
            keys: List[str] = sorted(k for k in self._store if start <= k < end)
            self.open_scans += 1

        def _entries() -> Iterator[Entry]:
            for k in keys:
                with self._lock:
                    if k not in self._store:
                        continue
                    v = self._store[k]
                yield k, v

        return RangeIterator(_entries(), on_close=self._scan_closed)

    def _scan_closed(self) -> None:
        with self._lock:
            self.open_scans -= 1

    def keys(self) -> List[str]:
        with self._lock:
            return sorted(self._store)

    def close(self) -> None:
        pass


__all__ = ["MemoryStore"]
