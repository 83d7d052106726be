from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from storyshelf.services.query_errors import QueryCancelled, QueryStoreError, QueryValidationError

_LOG = logging.getLogger("storyshelf.http")

# Non-standard, used by nginx for "client closed request".
CLIENT_CLOSED_REQUEST = 499


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(QueryValidationError)
    async def _query_validation_error(request: Request, exc: QueryValidationError):
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc), "errors": [e.as_dict() for e in exc.errors]},
        )

    @app.exception_handler(QueryStoreError)
    async def _query_store_error(request: Request, exc: QueryStoreError):
        _LOG.warning("store_unavailable path=%s error=%s", request.url.path, exc)
        return JSONResponse(
            status_code=503,
            content={"detail": "Data store is temporarily unavailable", "code": exc.code},
        )

    @app.exception_handler(QueryCancelled)
    async def _query_cancelled(request: Request, exc: QueryCancelled):
        return JSONResponse(status_code=CLIENT_CLOSED_REQUEST, content={"detail": str(exc), "code": exc.code})
