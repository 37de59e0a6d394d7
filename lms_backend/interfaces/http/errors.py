"""Единая точка преобразования ошибок в HTTP-ответы.

Наружу не уходят ни трейсы, ни пути на сервере (кроме development-режима
для 500).
"""
import traceback

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ...config import settings
from ...domain.errors import AppError, Unauthenticated, ValidationError

logger = structlog.get_logger()

_LOCATION_PREFIXES = {"body", "query", "path", "header"}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    body: dict = {"detail": exc.message}
    if isinstance(exc, ValidationError):
        body["errors"] = [{"field": name, "message": msg} for name, msg in exc.errors.items()]
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    logger.info("request_failed", path=request.url.path, status_code=exc.status_code,
                error=type(exc).__name__)
    return JSONResponse(status_code=exc.status_code, content=body, headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in _LOCATION_PREFIXES]
        errors.append({"field": ".".join(loc) or "request", "message": err.get("msg", "Invalid value")})
    return JSONResponse(status_code=400, content={"detail": "Validation failed", "errors": errors})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_error", path=request.url.path, method=request.method, exc_info=exc)
    body: dict = {"detail": "Internal server error"}
    if settings.is_development:
        body["message"] = str(exc)
        body["stack"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return JSONResponse(status_code=500, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
