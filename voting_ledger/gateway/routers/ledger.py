from __future__ import annotations

"""
Ledger Router

Endpoints:
  - GET  /query                  : queryAllVotes, JSON array of {"Key", "Record"}
  - GET  /graph                  : vote tally over the full scan
  - GET  /votar/{voter_id}/{vote}: doVoting
  - GET  /voters/{key}           : queryVoter, raw record (empty body if unset)
  - POST /init-ledger            : initLedger
  - POST /invoke                 : generic dispatch {"function", "args"}

Every route goes through voting_ledger.contract.invoke; error Responses are
re-raised so the installed handlers render them as problem+json.
"""

import logging
from typing import Sequence

from fastapi import APIRouter, Depends, Path, Request
from fastapi.responses import Response as HttpResponse

from ...contract import invoke
from ...store.api import KVStore
from ...tally import tally
from ..models import InvokeRequest, InvokeResult, TallyOut, VoteResult

log = logging.getLogger(__name__)

router = APIRouter(tags=["ledger"])


def get_store(request: Request) -> KVStore:
    return request.app.state.store


def _run(store: KVStore, function: str, args: Sequence[str] = ()) -> bytes:
    return invoke(store, function, list(args)).raise_for_error().payload


@router.get("/query", summary="All voter records in key order")
def query_all(store: KVStore = Depends(get_store)) -> HttpResponse:
    payload = _run(store, "queryAllVotes")
    return HttpResponse(content=payload, media_type="application/json")


@router.get("/graph", summary="Vote tally", response_model=TallyOut)
def graph(store: KVStore = Depends(get_store)) -> TallyOut:
    result = tally(_run(store, "queryAllVotes"))
    return TallyOut(**result.to_dict())


@router.get("/votar/{voter_id}/{vote}", summary="Cast a vote", response_model=VoteResult)
def cast_vote(
    voter_id: str = Path(..., description="Voter key, e.g. VOTER0"),
    vote: str = Path(..., description="Vote value"),
    store: KVStore = Depends(get_store),
) -> VoteResult:
    log.info("vote request id=%s vote=%s", voter_id, vote)
    _run(store, "doVoting", [voter_id, vote])
    return VoteResult(key=voter_id, vote=vote)


@router.get("/voters/{key}", summary="Raw voter record")
def query_voter(
    key: str = Path(..., description="Voter key, e.g. VOTER0"),
    store: KVStore = Depends(get_store),
) -> HttpResponse:
    payload = _run(store, "queryVoter", [key])
    return HttpResponse(content=payload, media_type="application/json")


@router.post("/init-ledger", summary="Seed the fixed voter dataset", response_model=InvokeResult)
def init_ledger(store: KVStore = Depends(get_store)) -> InvokeResult:
    _run(store, "initLedger")
    return InvokeResult(function="initLedger")


@router.post("/invoke", summary="Dispatch any ledger function", response_model=InvokeResult)
def invoke_function(req: InvokeRequest, store: KVStore = Depends(get_store)) -> InvokeResult:
    payload = _run(store, req.function, req.args)
    return InvokeResult(function=req.function, payload=payload.decode("utf-8", errors="replace"))


def get_router() -> APIRouter:
    return router
