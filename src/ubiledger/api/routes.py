from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request, Response

from ubiledger.api.errors import ApiError
from ubiledger.api.schemas import TxSubmitRequest
from ubiledger.runtime.metrics import format_prometheus, metrics_enabled

router = APIRouter()

Json = Dict[str, Any]


def _executor(request: Request):
    ex = getattr(request.app.state, "executor", None)
    if ex is None:
        raise ApiError.internal("not_ready", "executor not attached to app.state", {})
    return ex


def _int_param(v: Any, default: int, *, lo: int, hi: int) -> int:
    try:
        n = int(v) if v is not None else int(default)
    except (TypeError, ValueError):
        n = int(default)
    return max(lo, min(hi, n))


@router.get("/health")
def health(request: Request) -> Json:
    ex = getattr(request.app.state, "executor", None)
    return {"ok": True, "ready": ex is not None}


@router.get("/currencies/{code}")
def currency_get(code: str, request: Request) -> Json:
    view = _executor(request).view()
    st = view.get_stats(code)
    return {
        "ok": True,
        "symbol": str(view.symbol(code)),
        "supply": str(view.get_supply(code)),
        "max_supply": str(view.get_max_supply(code)),
        "issuer": str(st.get("issuer") or ""),
    }


@router.get("/accounts/{owner}/balances/{code}")
def balance_get(owner: str, code: str, request: Request) -> Json:
    view = _executor(request).view()
    rec = view.get_account(owner, code)
    return {
        "ok": True,
        "owner": owner,
        "balance": str(view.get_balance(owner, code)),
        "last_claim_day": int(rec.get("last_claim_day", 0)),
    }


@router.get("/receipts")
def receipts_list(request: Request, limit: int = 50) -> Json:
    n = _int_param(limit, 50, lo=1, hi=500)
    return {"ok": True, "receipts": _executor(request).receipts(limit=n)}


@router.post("/tx")
def tx_submit(body: TxSubmitRequest, request: Request) -> Json:
    """Apply a tx envelope.

    The declared signer/cosigners become the authority context as-is, so this
    endpoint is only served when the deployment allows unsigned txs (dev,
    testnet, or behind a gateway that already verified signatures).
    """
    ex = _executor(request)
    if not bool(getattr(ex.config, "allow_unsigned_txs", False)):
        raise ApiError.forbidden("unsigned_txs_disabled", "tx submission requires allow_unsigned_txs", {})

    result = ex.submit(body.model_dump())
    return {"ok": True, "result": result}


@router.get("/metrics")
def metrics() -> Response:
    """Prometheus-style metrics. Enable with UBI_METRICS_ENABLED=1."""
    if not metrics_enabled():
        return Response(status_code=404, content="not_found\n", media_type="text/plain")
    return Response(content=format_prometheus(), media_type="text/plain")
