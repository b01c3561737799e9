from __future__ import annotations

import os
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

DEFAULT_MAX_REQUEST_BYTES = 64_000

# Only tx submission carries a body; reads are never limited.
_BODY_METHODS = {"POST", "PUT", "PATCH"}


def max_request_bytes() -> int:
    raw = (os.environ.get("UBI_MAX_REQUEST_BYTES") or "").strip()
    try:
        return int(raw) if raw else DEFAULT_MAX_REQUEST_BYTES
    except ValueError:
        return DEFAULT_MAX_REQUEST_BYTES


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject tx bodies larger than UBI_MAX_REQUEST_BYTES with 413."""

    def __init__(self, app, *, max_bytes: Optional[int] = None) -> None:
        super().__init__(app)
        self._max_bytes = int(max_bytes) if max_bytes is not None else max_request_bytes()

    def _too_large(self, size: int) -> JSONResponse:
        return JSONResponse(
            status_code=413,
            content={
                "ok": False,
                "error": {
                    "code": "tx_too_large",
                    "message": "Request body too large",
                    "details": {"bytes": size, "max_bytes": self._max_bytes},
                },
            },
        )

    async def dispatch(self, request: Request, call_next):
        if (request.method or "").upper() not in _BODY_METHODS:
            return await call_next(request)

        declared = request.headers.get("content-length") or ""
        if declared.isdecimal() and int(declared) > self._max_bytes:
            return self._too_large(int(declared))

        # Chunked uploads carry no Content-Length.
        body = await request.body()
        if len(body) > self._max_bytes:
            return self._too_large(len(body))

        return await call_next(request)
