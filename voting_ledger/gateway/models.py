from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field


class InvokeRequest(BaseModel):
    function: str = Field(..., description="Ledger function name, e.g. doVoting")
    args: List[str] = Field(default_factory=list, description="Ordered string arguments")


class InvokeResult(BaseModel):
    ok: bool = True
    function: str
    payload: str = ""


class VoteResult(BaseModel):
    ok: bool = True
    key: str
    vote: str


class TallyOut(BaseModel):
    total: int
    pending: int
    cast: int
    votes: Dict[str, int]


__all__ = ["InvokeRequest", "InvokeResult", "VoteResult", "TallyOut"]
