"""
Store backends for the voting ledger.

    from voting_ledger.store import open_store
    store = open_store()            # backend chosen by VOTING_LEDGER_STORE
"""

from __future__ import annotations

from typing import Optional

from ..config import LedgerConfig, load_config
from .api import KVStore, RangeIterator
from .memory import MemoryStore
from .sqlite import SQLiteStore


def open_store(config: Optional[LedgerConfig] = None) -> KVStore:
    """Open the backend selected by `config.store_backend`."""
    cfg = config or load_config()
    if cfg.store_backend == "sqlite":
        return SQLiteStore(cfg.sqlite_path, config=cfg)
    return MemoryStore(cfg)


__all__ = ["KVStore", "RangeIterator", "MemoryStore", "SQLiteStore", "open_store"]
