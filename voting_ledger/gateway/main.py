"""
Uvicorn launcher for the voting gateway.

Usage:
  python -m voting_ledger.gateway.main [--host 0.0.0.0] [--port 8080] [--reload]

Flags default to the HOST / PORT / LOG_LEVEL settings.
"""

from __future__ import annotations

import argparse
from typing import Optional

import uvicorn

from ..logging import setup_logging
from .config import get_settings


def serve(host: str, port: int, *, reload: bool = False, log_level: Optional[str] = None) -> None:
    settings = get_settings()
    level = (log_level or settings.log_level).upper()
    setup_logging(level=level, log_format=settings.log_format)
    # Factory import string so --reload re-creates the app (and its store) per process.
    uvicorn.run(
        "voting_ledger.gateway.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=level.lower(),
        log_config=None,
    )


def main(argv: Optional[list[str]] = None) -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Run the voting ledger gateway (uvicorn)")
    parser.add_argument("--host", default=settings.host, help="Bind address (default: %(default)s)")
    parser.add_argument("--port", type=int, default=settings.port, help="Port (default: %(default)s)")
    parser.add_argument("--reload", action="store_true", help="Enable autoreload (dev only)")
    parser.add_argument("--log-level", default=settings.log_level, help="Log level (default: %(default)s)")
    args = parser.parse_args(argv)
    serve(args.host, args.port, reload=args.reload, log_level=args.log_level)


if __name__ == "__main__":
    main()
