from __future__ import annotations

import sys
import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request

from ...version import __version__, git_describe

router = APIRouter(tags=["health"])

_PROCESS_START = time.time()


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _uptime_seconds() -> float:
    return max(0.0, time.time() - _PROCESS_START)


def _version_blob() -> Dict[str, Any]:
    return {
        "service": "voting-ledger",
        "version": __version__,
        "git": git_describe(),
        "python": {
            "version": "{}.{}.{}".format(*sys.version_info[:3]),
            "impl": sys.implementation.name,
        },
        "started_at": datetime.fromtimestamp(_PROCESS_START, tz=timezone.utc).isoformat(),
        "now": _utcnow_iso(),
        "uptime_seconds": round(_uptime_seconds(), 3),
    }


@router.get("/healthz", summary="Liveness probe", response_model=None)
def healthz(request: Request) -> Dict[str, Any]:
    """
    Liveness probe: 200 while the process is serving requests; reports the
    store backend in use.
    """
    store = getattr(request.app.state, "store", None)
    return {
        "status": "ok",
        "store": type(store).__name__ if store is not None else None,
        **_version_blob(),
    }


@router.get("/version", summary="Service version", response_model=None)
def version() -> Dict[str, Any]:
    return _version_blob()


def get_router() -> APIRouter:
    return router
