from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from portfolio.domain.errors import (
    BatchSaveError,
    InvalidCredentials,
    NotFoundError,
    PersistenceError,
    PortfolioError,
    Unauthorized,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Starlette renamed the 422 constant; the number is stable
HTTP_422_UNPROCESSABLE = 422


def status_for(exc: PortfolioError) -> int:
    if isinstance(exc, InvalidCredentials):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, Unauthorized):
        return status.HTTP_403_FORBIDDEN if exc.authenticated else status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, ValidationError):
        return HTTP_422_UNPROCESSABLE
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, PersistenceError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def portfolio_error_handler(request: Request, exc: PortfolioError) -> JSONResponse:
    code = status_for(exc)
    content: dict = {"detail": str(exc)}
    if isinstance(exc, BatchSaveError):
        content["succeeded"] = exc.succeeded
        content["failed"] = exc.failed
        content["unknown"] = exc.unknown
    headers = None
    if code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected (%d): %s", request.method, request.url.path, code, exc)
    return JSONResponse(status_code=code, content=content, headers=headers)


def add_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PortfolioError, portfolio_error_handler)
