"""
Voting ledger: single-use voter records over a range-scanned key/value store.

This module exposes a small, stable façade:

- __version__: semantic version (optionally with a git describe suffix)
- invoke(store, function, args) -> Response
    Dispatch one of initLedger / queryVoter / queryAllVotes / doVoting.
- open_store(config=None) -> KVStore
    Open the backend selected by VOTING_LEDGER_STORE.
- VoterRecord, UNVOTED
    The record model.

Prefer importing submodules directly for specific concerns:
``voting_ledger.contract``, ``voting_ledger.store``, ``voting_ledger.gateway``.
"""

from __future__ import annotations

from .contract import invoke
from .errors import (
    AlreadySeededError,
    AlreadyVotedError,
    ArgumentCountError,
    LedgerError,
    RecordFormatError,
    RecordNotFoundError,
    StoreError,
    UnknownOperationError,
)
from .record import UNVOTED, VoterRecord
from .response import Response
from .store import open_store
from .version import __version__

__all__ = [
    "__version__",
    "invoke",
    "open_store",
    "Response",
    "VoterRecord",
    "UNVOTED",
    "LedgerError",
    "ArgumentCountError",
    "UnknownOperationError",
    "RecordFormatError",
    "AlreadyVotedError",
    "RecordNotFoundError",
    "AlreadySeededError",
    "StoreError",
]
