from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest
import structlog

from voting_ledger.config import LedgerConfig, load_config
from voting_ledger.contract import init_ledger
from voting_ledger.store import MemoryStore, SQLiteStore


# ----------------------------
# Environment & config
# ----------------------------
@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Every test starts from the default config (memory store, reset policy)."""
    for name in (
        "VOTING_LEDGER_STORE",
        "VOTING_LEDGER_SQLITE_PATH",
        "VOTING_LEDGER_SEED_POLICY",
        "VOTING_LEDGER_MAX_KEY_BYTES",
        "VOTING_LEDGER_MAX_VALUE_BYTES",
    ):
        monkeypatch.delenv(name, raising=False)
    load_config.cache_clear()
    yield
    load_config.cache_clear()


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    """The CLI and gateway reconfigure logging; undo it after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        lg = logging.getLogger(name)
        lg.handlers = []
        lg.propagate = True
        lg.setLevel(logging.NOTSET)
    structlog.reset_defaults()


@pytest.fixture
def cfg() -> LedgerConfig:
    return load_config()


# ----------------------------
# Stores
# ----------------------------
@pytest.fixture
def memory_store(cfg: LedgerConfig) -> MemoryStore:
    return MemoryStore(cfg)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "ledger" / "ledger.db"


@pytest.fixture
def sqlite_store(db_path: Path, cfg: LedgerConfig) -> Iterator[SQLiteStore]:
    s = SQLiteStore(db_path, config=cfg)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture(params=["memory", "sqlite"])
def store(request: pytest.FixtureRequest):
    """Run the test once per backend."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def seeded(store):
    init_ledger(store)
    return store
