# src/ubiledger/api/structured_logging.py
from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ubiledger.runtime.ledger_logging import log_event

log = logging.getLogger("ubiledger.http")


class RequestLogMiddleware(BaseHTTPMiddleware):
    """One JSON line per HTTP request, tagged with an x-request-id.

    The id is taken from the caller when present so it can be matched with the
    executor's tx_applied / tx_rejected lines.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        started = time.monotonic()
        fields = {"request_id": request_id, "method": request.method, "path": request.url.path}

        try:
            response = await call_next(request)
        except Exception as e:
            log_event(log, "http_request_failed", error=type(e).__name__, **fields)
            raise

        response.headers["x-request-id"] = request_id
        log_event(
            log,
            "http_request",
            status=int(response.status_code),
            duration_ms=int((time.monotonic() - started) * 1000),
            **fields,
        )
        return response
