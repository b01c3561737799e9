from __future__ import annotations

import os

from fastapi import FastAPI

from ubiledger.api.errors import ApiError, api_error_handler, apply_error_handler
from ubiledger.api.routes import router
from ubiledger.api.security import RequestSizeLimitMiddleware
from ubiledger.api.structured_logging import RequestLogMiddleware
from ubiledger.runtime.errors import ApplyError
from ubiledger.runtime.executor import LedgerExecutor


def build_executor() -> LedgerExecutor:
    """Build a LedgerExecutor for the API runtime.

    Exists so tests can monkeypatch `ubiledger.api.app.build_executor`.
    """
    return LedgerExecutor.from_env()


def create_app(*, boot_runtime: bool = True) -> FastAPI:
    """Create the FastAPI application.

    boot_runtime:
      - True (default): load ledger config + attach executor
      - False: keep lightweight for unit tests
    """
    mode = os.environ.get("UBI_MODE", "prod").strip().lower()

    # Disable docs in production.
    if mode == "prod":
        app = FastAPI(title="UBI Ledger API", docs_url=None, redoc_url=None, openapi_url=None)
    else:
        app = FastAPI(title="UBI Ledger API")

    app.state.executor = build_executor() if boot_runtime else None

    # Size limiter first to fail fast; request logging wraps everything.
    app.add_middleware(RequestSizeLimitMiddleware)
    app.add_middleware(RequestLogMiddleware)

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(ApplyError, apply_error_handler)

    app.include_router(router, prefix="/v1")

    return app
