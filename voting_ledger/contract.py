"""
voting_ledger.contract: the four ledger operations and their dispatcher.

Functions (host-facing names in parentheses):
- init_ledger(store)              (initLedger)    -> b""
- query_voter(store, key)         (queryVoter)    -> raw record bytes, b"" if unset
- query_all_votes(store)          (queryAllVotes) -> JSON array of {"Key", "Record"}
- do_voting(store, key, value)    (doVoting)      -> b""

Every operation is stateless: it reconstructs what it needs from the store on
each call. Operations raise LedgerError subclasses; :func:`invoke` is the only
place they are turned into a Response.
"""

from __future__ import annotations

import json
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from .config import LedgerConfig, load_config
from .errors import (
    AlreadySeededError,
    AlreadyVotedError,
    ArgumentCountError,
    LedgerError,
    RecordNotFoundError,
    UnknownOperationError,
)
from .logging import get_logger
from .record import UNVOTED, VoterRecord
from .response import Response
from .store.api import KVStore, guarded

log = get_logger(__name__)

# ---- key layout ------------------------------------------------------------

KEY_PREFIX = "VOTER"
# Half-open scan bound: VOTER0 (inclusive) .. VOTER999 (exclusive).
SCAN_START = "VOTER0"
SCAN_END = "VOTER999"

SEED_VOTERS: Sequence[VoterRecord] = (
    VoterRecord("PIN", "100", UNVOTED, "12345", "Homero Simpson"),
    VoterRecord("PIN", "120", UNVOTED, "67890", "Peter Griffin"),
    VoterRecord("PIN", "200", UNVOTED, "654321", "Jhon Smith"),
    VoterRecord("PIN", "1000", UNVOTED, "098765", "Chaparron Bonaparte"),
    VoterRecord("PIN", "50", UNVOTED, "A23421", "Sun Wukong"),
    VoterRecord("PIN", "80", UNVOTED, "98765", "Seiya Shiryu"),
    VoterRecord("PIN", "250", UNVOTED, "765890", "Ned Flanders"),
    VoterRecord("PIN", "40", UNVOTED, "777888", "Carlos Donoso"),
    VoterRecord("PIN", "5", UNVOTED, "877899", "Ramon Valdes"),
    VoterRecord("PIN", "500", UNVOTED, "131313", "Roberto Gomez"),
)


def voter_key(index: int) -> str:
    return f"{KEY_PREFIX}{index}"


def _require_args(args: Sequence[str], expected: int) -> None:
    if len(args) != expected:
        raise ArgumentCountError.expecting(expected, len(args))


# ---- operations --------------------------------------------------------------


def init_ledger(store: KVStore, *, config: Optional[LedgerConfig] = None) -> bytes:
    """
    Write the fixed ten-voter dataset to VOTER0..VOTER9.

    Under the default "reset" policy existing records are overwritten, cast
    votes included. Under "bootstrap" the call fails if any seed key is
    already populated. Records written before a store failure stay written.
    """
    cfg = config or load_config()
    keys = [voter_key(i) for i in range(len(SEED_VOTERS))]

    if cfg.seed_policy == "bootstrap":
        seeded = [k for k in keys if store.get(k)]
        if seeded:
            raise AlreadySeededError(
                "Ledger already initialised", context={"keys": seeded}
            )

    for key, voter in zip(keys, SEED_VOTERS):
        store.put(key, voter.to_bytes())
        log.info("voter_seeded", key=key, owner_id=voter.owner_id)

    return b""


def query_voter(store: KVStore, key: str) -> bytes:
    """Return the stored bytes for `key` verbatim (b"" when unset)."""
    return store.get(key)


def query_all_votes(store: KVStore) -> bytes:
    """
    Scan VOTER0..VOTER999 and return a JSON array of {"Key", "Record"} entries
    in key order. Each stored value is decoded and re-encoded, so a corrupt
    record raises RecordFormatError instead of producing a broken array.
    """
    results: List[Dict[str, object]] = []
    with store.scan(SCAN_START, SCAN_END) as entries:
        for key, raw in entries:
            record = VoterRecord.from_bytes(raw)
            results.append({"Key": key, "Record": record.to_dict()})

    log.debug("query_all_votes", count=len(results))
    return json.dumps(results, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def do_voting(store: KVStore, key: str, value: str) -> bytes:
    """
    Cast `value` as the vote of the voter stored at `key`.

    The write is a compare-and-swap against the bytes that were read, so two
    concurrent calls cannot both move the same record off the sentinel.
    """
    while True:
        raw = store.get(key)
        if not raw:
            raise RecordNotFoundError(f"Voter {key} does not exist", context={"key": key})

        current = VoterRecord.from_bytes(raw)
        if current.has_voted:
            log.info("vote_rejected", key=key)
            raise AlreadyVotedError(
                "Already voted before!, you can only vote once", context={"key": key}
            )

        if store.compare_and_swap(key, raw, current.cast(value).to_bytes()):
            log.info("vote_accepted", key=key)
            return b""
        # Lost the race; re-read and re-check.
        log.info("vote_cas_conflict", key=key)


# ---- dispatch ----------------------------------------------------------------

Handler = Callable[[KVStore, Sequence[str]], bytes]


def _init_ledger(store: KVStore, args: Sequence[str]) -> bytes:
    _require_args(args, 0)
    return init_ledger(store)


def _query_voter(store: KVStore, args: Sequence[str]) -> bytes:
    _require_args(args, 1)
    return query_voter(store, args[0])


def _query_all_votes(store: KVStore, args: Sequence[str]) -> bytes:
    _require_args(args, 0)
    return query_all_votes(store)


def _do_voting(store: KVStore, args: Sequence[str]) -> bytes:
    _require_args(args, 2)
    return do_voting(store, args[0], args[1])


OPERATIONS: Mapping[str, Handler] = {
    "queryVoter": _query_voter,
    "initLedger": _init_ledger,
    "queryAllVotes": _query_all_votes,
    "doVoting": _do_voting,
}


def _string_args(args: Optional[Sequence[str]]) -> List[str]:
    if args is None:
        return []
    try:
        return [str(a) for a in args]
    except TypeError as e:
        raise ArgumentCountError(
            "Arguments must be a sequence of strings",
            context={"type": type(args).__name__},
        ) from e


def invoke(
    store: KVStore, function: str, args: Optional[Sequence[str]] = ()
) -> Response:
    """
    Route `function` to its operation and wrap the outcome in a Response.

    `store` may be any host handle shaped like KVStore; whatever it raises is
    reported as StoreError.
    """
    handler = OPERATIONS.get(function)
    try:
        if handler is None:
            raise UnknownOperationError(
                "Invalid Smart Contract function name.", context={"function": function}
            )
        payload = handler(guarded(store), _string_args(args))
    except LedgerError as err:
        log.warning("invoke_failed", function=function, code=err.code, error=err.message)
        return Response.failure(err)
    return Response.success(payload)


__all__ = [
    "KEY_PREFIX",
    "SCAN_START",
    "SCAN_END",
    "SEED_VOTERS",
    "OPERATIONS",
    "voter_key",
    "init_ledger",
    "query_voter",
    "query_all_votes",
    "do_voting",
    "invoke",
]
