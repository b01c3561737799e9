from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from ubiledger.runtime.errors import ApplyError


@dataclass(frozen=True, slots=True)
class ApiError(Exception):
    status_code: int
    code: str
    message: str
    details: Dict[str, Any]

    @staticmethod
    def bad_request(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(400, code, message, details or {})

    @staticmethod
    def forbidden(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(403, code, message, details or {})

    @staticmethod
    def not_found(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(404, code, message, details or {})

    @staticmethod
    def internal(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(500, code, message, details or {})


_APPLY_STATUS = {
    "not_found": 404,
    "unauthorized": 403,
    "already_exists": 409,
    "balance_not_zero": 409,
    "claim_pending": 409,
}


def _error_body(code: str, message: str, details: Any) -> Dict[str, Any]:
    return {"ok": False, "error": {"code": code, "message": message, "details": details or {}}}


async def api_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, ApiError)
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.code, exc.message, exc.details))


async def apply_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, ApplyError)
    status = _APPLY_STATUS.get(exc.code, 400)
    return JSONResponse(status_code=status, content=_error_body(exc.code, exc.reason, exc.details))
