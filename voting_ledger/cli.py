"""
Admin CLI for the voting ledger.

Commands:
  - init            : seed VOTER0..VOTER9 (initLedger)
  - query KEY       : print the raw record stored at KEY (queryVoter)
  - query-all       : print every record as a JSON array (queryAllVotes)
  - vote KEY VALUE  : cast a vote (doVoting)
  - tally           : print the vote tally
  - invoke FN ARGS  : dispatch any function name with string arguments
  - serve           : run the HTTP gateway

The store is chosen by VOTING_LEDGER_STORE; `--store` / `--db` override it.
Exit code is 0 on success and 1 on any ledger error.

Usage:
  python -m voting_ledger.cli <command> [options]
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import typer

from .config import STORE_BACKENDS, LedgerConfig, load_config
from .contract import invoke
from .logging import get_logger, setup_logging
from .response import Response
from .store import open_store
from .store.api import KVStore
from .tally import tally as tally_votes

app = typer.Typer(add_completion=False, help="Voting ledger admin CLI")
log = get_logger(__name__)


@dataclass
class AppCtx:
    cfg: LedgerConfig
    store: Optional[KVStore] = None


_ctx: Optional[AppCtx] = None


def _ctx_or_init() -> AppCtx:
    global _ctx
    if _ctx is None:
        _ctx = AppCtx(cfg=load_config())
    return _ctx


def _store() -> KVStore:
    ctx = _ctx_or_init()
    if ctx.store is None:
        ctx.store = open_store(ctx.cfg)
    return ctx.store


def _close_store() -> None:
    if _ctx is not None and _ctx.store is not None:
        _ctx.store.close()
        _ctx.store = None


def _finish(res: Response, *, quiet: bool = False) -> Response:
    if not res.ok:
        typer.echo(f"error [{res.code}]: {res.message}", err=True)
        raise typer.Exit(code=1)
    if res.payload and not quiet:
        typer.echo(res.payload.decode("utf-8", errors="replace"))
    return res


def _run(function: str, args: Optional[List[str]] = None, *, quiet: bool = False) -> Response:
    return _finish(invoke(_store(), function, args or []), quiet=quiet)


@app.callback()
def main(
    ctx: typer.Context,
    store: Optional[str] = typer.Option(
        None, "--store", "-s", help=f"Store backend ({' | '.join(STORE_BACKENDS)})"
    ),
    db: Optional[Path] = typer.Option(None, "--db", help="SQLite file (implies --store sqlite)"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level"),
):
    """
    Shared options for all subcommands.
    """
    global _ctx
    setup_logging(level=log_level.upper(), log_format="console")
    cfg = load_config()
    if db is not None:
        cfg = cfg.with_overrides(store_backend="sqlite", sqlite_path=db)
    elif store is not None:
        if store not in STORE_BACKENDS:
            raise typer.BadParameter(f"unknown store {store!r}", param_hint="--store")
        cfg = cfg.with_overrides(store_backend=store)
    _ctx = AppCtx(cfg=cfg)
    ctx.call_on_close(_close_store)


@app.command("init")
def init():
    """Seed the ten fixed voters."""
    _run("initLedger")
    typer.echo("Ledger initialised.")


@app.command("query")
def query(key: str = typer.Argument(..., help="Voter key, e.g. VOTER0")):
    """Print the raw record stored at KEY (nothing if unset)."""
    _run("queryVoter", [key])


@app.command("query-all")
def query_all(pretty: bool = typer.Option(False, "--pretty", help="Indent the JSON output")):
    """Print all voter records as a JSON array."""
    res = _run("queryAllVotes", quiet=pretty)
    if pretty:
        typer.echo(json.dumps(json.loads(res.payload), indent=2, ensure_ascii=False))


@app.command("vote")
def vote(
    key: str = typer.Argument(..., help="Voter key, e.g. VOTER0"),
    value: str = typer.Argument(..., help="Vote value"),
):
    """Cast VALUE as the vote of KEY (once per voter)."""
    _run("doVoting", [key, value])
    typer.echo(f"Vote accepted for {key}.")


@app.command("tally")
def tally():
    """Print the vote tally."""
    res = _run("queryAllVotes", quiet=True)
    result = tally_votes(res.payload)
    typer.echo(f"total={result.total} cast={result.cast} pending={result.pending}")
    for value, count in result.ranking():
        typer.echo(f"{value:>24}: {count}")


@app.command("invoke")
def invoke_cmd(
    function: str = typer.Argument(..., help="Function name"),
    args: Optional[List[str]] = typer.Argument(None, help="String arguments"),
):
    """Dispatch FUNCTION with ARGS exactly as a host would."""
    _run(function, list(args or []))


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Enable autoreload (dev only)"),
):
    """Run the HTTP gateway."""
    from .gateway.config import get_settings
    from .gateway.main import serve as serve_gateway

    cfg = _ctx_or_init().cfg
    # The gateway opens its own store from the environment.
    os.environ["VOTING_LEDGER_STORE"] = cfg.store_backend
    os.environ["VOTING_LEDGER_SQLITE_PATH"] = str(cfg.sqlite_path)
    load_config.cache_clear()

    settings = get_settings()
    log.info("serve", host=host or settings.host, port=port or settings.port)
    serve_gateway(host or settings.host, port or settings.port, reload=reload)


def _entry():
    # Allow: python -m voting_ledger.cli
    app()


if __name__ == "__main__":
    _entry()
