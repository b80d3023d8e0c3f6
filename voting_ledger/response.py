from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import LedgerError

OK = 200
ERROR = 500


@dataclass(frozen=True)
class Response:
    """
    Tagged result handed back to the host for one invocation.

    Success carries an optional byte payload; an error carries the message and
    the LedgerError that produced it.
    """

    status: int
    payload: bytes = b""
    message: str = ""
    error: Optional[LedgerError] = None

    @classmethod
    def success(cls, payload: Optional[bytes] = None) -> "Response":
        return cls(status=OK, payload=bytes(payload or b""))

    @classmethod
    def failure(cls, err: LedgerError) -> "Response":
        return cls(status=ERROR, message=err.message, error=err)

    @property
    def ok(self) -> bool:
        return self.status == OK

    @property
    def code(self) -> Optional[str]:
        return self.error.code if self.error is not None else None

    def raise_for_error(self) -> "Response":
        """Re-raise the LedgerError of an error response; return self otherwise."""
        if self.error is not None:
            raise self.error
        return self

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"status": self.status, "ok": self.ok}
        if self.ok:
            out["payload"] = self.payload.decode("utf-8", errors="replace")
        else:
            out["error"] = self.error.to_dict() if self.error is not None else {"message": self.message}
        return out


__all__ = ["Response", "OK", "ERROR"]
