"""
voting_ledger.config: store selection, seed policy and byte caps.

This module centralizes configuration for the ledger core. It has NO
third-party deps and is safe to import very early.

Configuration precedence:
  1) Environment variables (VOTING_LEDGER_*)
  2) Hardcoded safe defaults below

Key env vars:
  - VOTING_LEDGER_STORE            (str)    default: memory    (memory | sqlite)
  - VOTING_LEDGER_SQLITE_PATH      (path)   default: ./.voting-ledger/ledger.db
  - VOTING_LEDGER_SEED_POLICY      (str)    default: reset     (reset | bootstrap)
  - VOTING_LEDGER_MAX_KEY_BYTES    (int)    default: 64
  - VOTING_LEDGER_MAX_VALUE_BYTES  (int)    default: 131_072   (128 KiB)

Usage:
    from voting_ledger.config import load_config
    CFG = load_config()
    if CFG.seed_policy == "bootstrap": ...
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict
import os

STORE_BACKENDS = ("memory", "sqlite")
SEED_POLICIES = ("reset", "bootstrap")


# ----------------------------- helpers ---------------------------------------


def _env_choice(name: str, default: str, choices: tuple) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    val = raw.strip().lower()
    return val if val in choices else default


def _env_int(name: str, default: int, *, min_v: int, max_v: int) -> int:
    raw = os.getenv(name)
    if raw is None:
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


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if not raw:
        return default
    return Path(raw).expanduser()


# ------------------------------- config --------------------------------------


@dataclass(frozen=True)
class LedgerConfig:
    # Backend selection
    store_backend: str
    sqlite_path: Path

    # initLedger behaviour on an already-populated store
    seed_policy: str

    # Byte caps enforced by the store backends
    max_key_bytes: int
    max_value_bytes: int

    def with_overrides(self, **changes: Any) -> "LedgerConfig":
        return replace(self, **changes)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "store_backend": self.store_backend,
            "sqlite_path": str(self.sqlite_path),
            "seed_policy": self.seed_policy,
            "max_key_bytes": self.max_key_bytes,
            "max_value_bytes": self.max_value_bytes,
        }


@lru_cache(maxsize=1)
def load_config() -> LedgerConfig:
    """
    Build and cache a LedgerConfig from environment + safe defaults.
    """
    return LedgerConfig(
        store_backend=_env_choice("VOTING_LEDGER_STORE", "memory", STORE_BACKENDS),
        sqlite_path=_env_path(
            "VOTING_LEDGER_SQLITE_PATH", Path("./.voting-ledger/ledger.db")
        ),
        seed_policy=_env_choice("VOTING_LEDGER_SEED_POLICY", "reset", SEED_POLICIES),
        max_key_bytes=_env_int("VOTING_LEDGER_MAX_KEY_BYTES", 64, min_v=8, max_v=1024),
        max_value_bytes=_env_int(
            "VOTING_LEDGER_MAX_VALUE_BYTES", 131_072, min_v=256, max_v=8_388_608
        ),
    )


__all__ = ["LedgerConfig", "load_config", "STORE_BACKENDS", "SEED_POLICIES"]
