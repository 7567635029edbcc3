"""Render every handled failure as ``{"error": message}``."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from practice_orgs.services.errors import DomainError

logger = logging.getLogger(__name__)


async def _domain_error(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Domain error on %s %s: %s", request.method, request.url.path, exc)
    else:
        logger.info(
            "%s %s rejected with %d: %s",
            request.method,
            request.url.path,
            exc.status_code,
            type(exc).__name__,
        )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Malformed request on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=400, content={"error": "Dados inválidos"})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, _domain_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _http_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error)  # type: ignore[arg-type]
