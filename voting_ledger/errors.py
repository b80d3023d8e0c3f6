from __future__ import annotations

"""
Error kinds raised by the voting ledger.

Every error carries:

    code     short machine-readable code string (stable across releases)
    message  human-readable message
    context  optional extra fields for debugging / gateway wiring

Supported call patterns:

    ArgumentCountError("Incorrect number of arguments. Expecting 1")
    StoreError("get failed", context={"key": "VOTER0"})

The dispatcher in :mod:`voting_ledger.contract` turns any LedgerError into an
error Response; the gateway turns it into problem+json.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


@dataclass(eq=False)
class LedgerError(Exception):
    """
    Structured error used by the ledger operations and store backends.

    Attributes:
        code: short machine-readable code string
        message: human-readable message
        context: optional extra fields for debugging
    """

    code: str
    message: str
    context: Dict[str, Any]

    default_code = "ledger_error"

    def __init__(
        self,
        message: str = "",
        *,
        code: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        message = str(message)
        super().__init__(message)

        object.__setattr__(self, "code", str(code) if code else self.default_code)
        object.__setattr__(self, "message", message)
        object.__setattr__(self, "context", dict(context or {}))

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": dict(self.context),
        }


class ArgumentCountError(LedgerError):
    """Wrong number of arguments for an operation."""

    default_code = "argument_count"

    @classmethod
    def expecting(cls, expected: int, got: int) -> "ArgumentCountError":
        return cls(
            f"Incorrect number of arguments. Expecting {expected}",
            context={"expected": expected, "got": got},
        )


class UnknownOperationError(LedgerError):
    default_code = "unknown_operation"


class RecordFormatError(LedgerError):
    """Stored bytes could not be decoded into a VoterRecord."""

    default_code = "record_format"


class AlreadyVotedError(LedgerError):
    default_code = "already_voted"


class RecordNotFoundError(LedgerError):
    default_code = "record_not_found"


class AlreadySeededError(LedgerError):
    default_code = "already_seeded"


class StoreError(LedgerError):
    """Wraps any failure of the underlying get / put / scan primitives."""

    default_code = "store_error"

    @classmethod
    def wrap(cls, op: str, err: BaseException, **context: Any) -> "StoreError":
        return cls(
            f"store {op} failed: {err}",
            context={"op": op, "exc_type": err.__class__.__name__, **context},
        )


__all__ = [
    "LedgerError",
    "ArgumentCountError",
    "UnknownOperationError",
    "RecordFormatError",
    "AlreadyVotedError",
    "RecordNotFoundError",
    "AlreadySeededError",
    "StoreError",
]
