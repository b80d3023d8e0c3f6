"""voting_ledger.version: semantic version & optional git-describe suffix.

Resolution order (first match wins):
- VOTING_LEDGER_VERSION env var (exact value)
- installed package metadata for 'voting-ledger'
- BASE_VERSION + '+' + PEP 440 form of `git describe` (or GIT_DESCRIBE)
- BASE_VERSION + '+dev'
"""

from __future__ import annotations

import os
import re
import subprocess
from functools import lru_cache
from importlib import metadata as importlib_metadata
from pathlib import Path
from typing import Optional

BASE_VERSION = "0.1.0"

DIST_NAME = "voting-ledger"


def _pep440_local(s: str) -> str:
    """
    Convert a git-describe-style string into a safe PEP 440 local version.
    Example: 'v0.1.0-3-gabc1234-dirty' -> '0.1.0.3.gabc1234.dirty'
    """
    s = s.strip()
    s = s[1:] if s.startswith("v") else s
    s = s.replace("-", ".")
    s = re.sub(r"[^A-Za-z0-9_.]+", ".", s)
    s = re.sub(r"\.+", ".", s).strip(".")
    return s


@lru_cache(maxsize=1)
def git_describe(cwd: Optional[Path] = None) -> Optional[str]:
    """Return `git describe --tags --dirty --always` output, or None on failure."""
    try:
        out = subprocess.run(
            ["git", "describe", "--tags", "--dirty", "--always"],
            cwd=cwd or Path(__file__).resolve().parent,
            capture_output=True,
            text=True,
            check=False,
            timeout=1.5,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    if out.returncode != 0:
        return None
    return out.stdout.strip() or None


def _pkg_metadata_version() -> Optional[str]:
    try:
        v = importlib_metadata.version(DIST_NAME)
    except importlib_metadata.PackageNotFoundError:
        return None
    return v if v and v != "0.0.0" else None


@lru_cache(maxsize=1)
def compute_version() -> str:
    env = os.getenv("VOTING_LEDGER_VERSION")
    if env:
        return env

    meta_v = _pkg_metadata_version()
    if meta_v:
        return meta_v

    desc = os.getenv("GIT_DESCRIBE") or git_describe()
    if desc:
        return f"{BASE_VERSION}+{_pep440_local(desc)}"

    return f"{BASE_VERSION}+dev"


__version__ = compute_version()

__all__ = ["__version__", "BASE_VERSION", "git_describe", "compute_version"]
