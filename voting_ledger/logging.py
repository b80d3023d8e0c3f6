from __future__ import annotations

"""
Structured logging setup for the voting ledger.

This module configures **structlog** + the stdlib ``logging`` package so that:
- Ledger, gateway and library logs (uvicorn included) share one renderer.
- Events are JSON by default, or a pretty console renderer in dev.
- Context variables bound via structlog.contextvars are merged into each event.

Quick start
-----------
    from voting_ledger.logging import setup_logging, get_logger

    setup_logging()                 # call once on process start
    log = get_logger(__name__)
    log.info("vote_accepted", key="VOTER0")

Environment
-----------
- LOG_LEVEL: one of DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_FORMAT: "json" (default) or "console"
"""

import logging
import os
from typing import Any, Dict, Iterable, Optional

import structlog
from structlog.contextvars import merge_contextvars
from structlog.processors import JSONRenderer

SERVICE_NAME = "voting-ledger"


def _base_processors(service_name: str) -> Iterable:
    yield structlog.stdlib.add_log_level
    yield structlog.processors.TimeStamper(fmt="iso", utc=True)
    yield merge_contextvars
    yield structlog.processors.StackInfoRenderer()
    yield structlog.processors.format_exc_info
    yield structlog.processors.UnicodeDecoder()

    def _ensure_service(_: logging.Logger, __: str, ev: Dict[str, Any]) -> Dict[str, Any]:
        ev.setdefault("service", service_name)
        return ev

    yield _ensure_service


def setup_logging(
    *,
    service_name: str = SERVICE_NAME,
    level: Optional[str | int] = None,
    log_format: Optional[str] = None,
) -> None:
    """
    Configure structlog + stdlib logging. Safe to call more than once; the
    last call wins.
    """
    level = level or os.getenv("LOG_LEVEL", "").upper() or "INFO"
    log_format = (log_format or os.getenv("LOG_FORMAT", "") or "json").lower()

    processors = list(_base_processors(service_name))

    if log_format == "console":
        renderer = structlog.dev.ConsoleRenderer(colors=False, sort_keys=False)
    else:
        renderer = JSONRenderer(sort_keys=True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            *processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                *processors,
            ],
        )
    )

    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        lg = logging.getLogger(name)
        lg.handlers = [handler]
        lg.propagate = False
        lg.setLevel(level)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    Return a lazy structlog logger named after `name`.

    Resolution happens per call, so module-level loggers pick up a later
    setup_logging().
    """
    if name:
        return structlog.get_logger(name)
    return structlog.get_logger()


__all__ = ["setup_logging", "get_logger"]
