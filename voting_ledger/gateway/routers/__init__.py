"""
Routers package: aggregates the gateway's HTTP routes.

Usage (from app factory):
    from voting_ledger.gateway.routers import build_router
    app.include_router(build_router())
"""

from __future__ import annotations

from fastapi import APIRouter

from .health import router as health_router
from .ledger import router as ledger_router


def build_router() -> APIRouter:
    root = APIRouter()
    root.include_router(health_router)
    root.include_router(ledger_router)
    return root


__all__ = ["build_router"]
