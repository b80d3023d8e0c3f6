from __future__ import annotations

"""
LedgerError → RFC7807 "problem+json" mapping for FastAPI.

- Ledger errors keep their machine code and context:
    {"type", "title", "status", "detail", "instance", "code", "context"}
- Unhandled exceptions become a 500 without leaking the stack trace; the trace
  is logged instead.
"""

from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..errors import LedgerError
from ..logging import get_logger

PROBLEM_CT = "application/problem+json"

log = get_logger(__name__)

STATUS_BY_CODE: Dict[str, int] = {
    "argument_count": 400,
    "unknown_operation": 404,
    "record_not_found": 404,
    "already_voted": 409,
    "already_seeded": 409,
    "record_format": 422,
    "store_error": 503,
}

TITLES: Dict[int, str] = {
    400: "Bad Request",
    404: "Not Found",
    409: "Conflict",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


def status_for(err: LedgerError) -> int:
    return STATUS_BY_CODE.get(err.code, 500)


def _problem(
    request: Request,
    *,
    status: int,
    detail: str,
    code: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "type": "about:blank",
        "title": TITLES.get(status, "Error"),
        "status": status,
        "detail": detail,
        "instance": str(request.url.path),
    }
    if code:
        body["code"] = code
    if context:
        body["context"] = context
    return body


async def _handle_ledger_error(request: Request, exc: LedgerError) -> JSONResponse:
    status = status_for(exc)
    body = _problem(request, status=status, detail=exc.message, code=exc.code, context=exc.context)
    if status >= 500:
        log.error("ledger_error", code=exc.code, path=body["instance"], detail=exc.message)
    else:
        log.warning("ledger_error", code=exc.code, path=body["instance"], detail=exc.message)
    return JSONResponse(status_code=status, content=body, media_type=PROBLEM_CT)


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    body = _problem(request, status=500, detail="An unexpected error occurred.")
    log.exception("unhandled_exception", path=body["instance"])
    return JSONResponse(status_code=500, content=body, media_type=PROBLEM_CT)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LedgerError, _handle_ledger_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _handle_unexpected_error)


__all__ = ["install_error_handlers", "status_for", "STATUS_BY_CODE", "PROBLEM_CT"]
