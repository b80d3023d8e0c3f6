"""
Voting ledger HTTP gateway
==========================

Thin FastAPI host exposing the ledger operations over HTTP.

- ``build_app()``: convenience creator for a configured FastAPI app
"""

from __future__ import annotations

__all__ = ["build_app"]


def build_app():
    """
    Create and return a configured FastAPI application.

    Importing lazily keeps `import voting_ledger.gateway` free of FastAPI.
    """
    from .app import create_app

    return create_app()
