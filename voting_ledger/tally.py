"""
Vote tally over the queryAllVotes payload.

The ledger itself never aggregates; hosts that chart results (the gateway's
/graph route, the CLI's `tally` command) feed the scan output through here.
"""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple, Union

from .errors import RecordFormatError
from .record import VoterRecord


@dataclass(frozen=True)
class Tally:
    total: int = 0
    pending: int = 0
    votes: Dict[str, int] = field(default_factory=dict)

    @property
    def cast(self) -> int:
        return self.total - self.pending

    def ranking(self) -> List[Tuple[str, int]]:
        """(value, count) pairs, highest count first, ties by value."""
        return sorted(self.votes.items(), key=lambda kv: (-kv[1], kv[0]))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "pending": self.pending,
            "cast": self.cast,
            "votes": dict(self.ranking()),
        }


def tally(scan_payload: Union[bytes, str, List[Dict[str, Any]]]) -> Tally:
    """
    Count cast votes per value in a queryAllVotes payload (bytes, text or the
    already-decoded list).
    """
    if isinstance(scan_payload, (bytes, bytearray, str)):
        try:
            entries = json.loads(scan_payload or "[]")
        except ValueError as e:
            raise RecordFormatError(f"scan payload is not valid JSON: {e}") from e
    else:
        entries = scan_payload
    if not isinstance(entries, list):
        raise RecordFormatError("scan payload must be a JSON array")

    counts: Counter = Counter()
    pending = 0
    for entry in entries:
        if not isinstance(entry, dict):
            raise RecordFormatError("scan entry must be an object")
        record = VoterRecord.from_dict(entry.get("Record") or {})
        if record.has_voted:
            counts[record.vote] += 1
        else:
            pending += 1

    return Tally(total=len(entries), pending=pending, votes=dict(counts))


__all__ = ["Tally", "tally"]
