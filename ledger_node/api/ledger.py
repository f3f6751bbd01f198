"""
API: /ledger

Thin HTTP surface over LedgerExecutor. All ledger logic lives in
ledger_runtime; this module only validates request shape and maps ledger
error codes to HTTP status codes.
"""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..executor import LedgerExecutor, Response
from ..ledger_runtime.errors import LedgerError

router = APIRouter(prefix="/ledger", tags=["ledger"])

_STATUS_BY_CODE: Dict[str, int] = {
    "invalid_argument": 400,
    "unknown_operation": 400,
    "not_found": 404,
    "insufficient_balance": 409,
    "serialization_error": 422,
    "store_error": 503,
}


class InitRequest(BaseModel):
    args: List[str] = Field(default_factory=list)


class CallRequest(BaseModel):
    function: str = Field(..., description="operation name, e.g. transfer")
    args: List[str] = Field(default_factory=list)


def get_executor(request: Request) -> LedgerExecutor:
    return request.app.state.executor


def _status_for(code: str) -> int:
    return _STATUS_BY_CODE.get(code, 500)


def _reply(resp: Response) -> JSONResponse:
    body = resp.to_dict()
    if resp.ok:
        return JSONResponse(body)
    return JSONResponse(body, status_code=_status_for(str(body.get("error", ""))))


# -------------------------------------------------------------------
# Endpoints
# -------------------------------------------------------------------


@router.get("/health")
def ledger_health(ex: LedgerExecutor = Depends(get_executor)) -> Dict[str, Any]:
    return {"ok": True, "store": type(ex.store).__name__}


@router.post("/init")
def ledger_init(req: InitRequest, ex: LedgerExecutor = Depends(get_executor)) -> JSONResponse:
    return _reply(ex.init(req.args))


@router.post("/invoke")
def ledger_invoke(req: CallRequest, ex: LedgerExecutor = Depends(get_executor)) -> JSONResponse:
    return _reply(ex.invoke(req.function, req.args))


@router.post("/query")
def ledger_query(req: CallRequest, ex: LedgerExecutor = Depends(get_executor)) -> JSONResponse:
    return _reply(ex.query(req.function, req.args))


@router.get("/accounts/{name}")
def ledger_account(name: str, ex: LedgerExecutor = Depends(get_executor)) -> JSONResponse:
    try:
        return JSONResponse(ex.account(name))
    except LedgerError as e:
        return JSONResponse(e.to_payload(), status_code=_status_for(e.code))
