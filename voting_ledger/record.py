"""
voting_ledger.record: the VoterRecord shape and its wire encoding.

A record is stored as a compact JSON object with five string fields:

    {"security":"PIN","factor":"100","vote":"SINVOTAR","ownerid":"12345","ownerdesc":"Homero Simpson"}

Decoding is lenient in the same places the ledger has always been lenient:
field names match case-insensitively, unknown fields are ignored and missing
fields read as "". Anything that is not a JSON object of strings is a
RecordFormatError.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping

from .errors import AlreadyVotedError, RecordFormatError

# Vote value of a record that has not voted yet.
UNVOTED = "SINVOTAR"

# attribute name -> wire name, in wire order
WIRE_FIELDS: Dict[str, str] = {
    "security": "security",
    "factor": "factor",
    "vote": "vote",
    "owner_id": "ownerid",
    "owner_desc": "ownerdesc",
}


@dataclass(frozen=True)
class VoterRecord:
    security: str = ""
    factor: str = ""
    vote: str = ""
    owner_id: str = ""
    owner_desc: str = ""

    @property
    def has_voted(self) -> bool:
        return self.vote != UNVOTED

    def cast(self, value: str) -> "VoterRecord":
        """Return a copy carrying `value` as its vote; a record only votes once."""
        if self.has_voted:
            raise AlreadyVotedError(
                "Already voted before!, you can only vote once",
                context={"owner_id": self.owner_id},
            )
        return replace(self, vote=str(value))

    # ---- encoding --------------------------------------------------------

    def to_dict(self) -> Dict[str, str]:
        return {wire: getattr(self, attr) for attr, wire in WIRE_FIELDS.items()}

    def to_bytes(self) -> bytes:
        return json.dumps(
            self.to_dict(), separators=(",", ":"), ensure_ascii=False
        ).encode("utf-8")

    @classmethod
    def from_dict(cls, obj: Mapping[str, Any]) -> "VoterRecord":
        if not isinstance(obj, Mapping):
            raise RecordFormatError(
                "record must be a JSON object",
                context={"type": type(obj).__name__},
            )
        lowered = {str(k).lower(): v for k, v in obj.items()}
        values: Dict[str, str] = {}
        for attr, wire in WIRE_FIELDS.items():
            v = lowered.get(wire, "")
            if v is None:
                v = ""
            if not isinstance(v, str):
                raise RecordFormatError(
                    f"record field {wire!r} must be a string",
                    context={"field": wire, "type": type(v).__name__},
                )
            values[attr] = v
        return cls(**values)

    @classmethod
    def from_bytes(cls, raw: bytes) -> "VoterRecord":
        try:
            obj = json.loads(bytes(raw).decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise RecordFormatError(
                f"record is not valid JSON: {e}", context={"size": len(raw)}
            ) from e
        return cls.from_dict(obj)


__all__ = ["VoterRecord", "UNVOTED", "WIRE_FIELDS"]
