"""Translation of catalog errors into HTTP responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from src.services.catalog.errors import (
    DeleteError,
    ReadError,
    StoreError,
    UploadError,
    ValidationError,
    WriteError,
)

logger = logging.getLogger(__name__)


def validation_failed(error: ValidationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=error.to_dict(),
    )


def write_failed(error: WriteError) -> HTTPException:
    status_code = (
        status.HTTP_404_NOT_FOUND if error.not_found else status.HTTP_502_BAD_GATEWAY
    )
    return HTTPException(status_code=status_code, detail=error.to_dict())


def read_failed(error: ReadError) -> HTTPException:
    status_code = (
        status.HTTP_404_NOT_FOUND
        if error.not_found
        else status.HTTP_503_SERVICE_UNAVAILABLE
    )
    return HTTPException(status_code=status_code, detail=str(error))


def upload_failed(error: UploadError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail={
            "message": str(error),
            "results": [result.model_dump() for result in error.results],
        },
    )


def delete_failed(error: DeleteError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(error))


async def _store_unavailable(request: Request, exc: Exception) -> JSONResponse:
    logger.warning("Store unavailable for %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Storage is unavailable"},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Answer 503 for store failures that no route translated itself."""

    app.add_exception_handler(StoreError, _store_unavailable)
