import time
import logging
from pathlib import Path

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from .domain.errors import PayloadTooLarge
from .infrastructure.db import engine, Base
from .infrastructure import models  # noqa: F401  регистрирует таблицы в Base.metadata
from .infrastructure.metrics import (
    metrics_endpoint,
    http_requests_total,
    http_request_duration_seconds
)
from .infrastructure.storage import ensure_directory
from .interfaces.http.errors import register_exception_handlers
from .interfaces.http.ratelimit import limiter
from .interfaces.http.routers import auth as auth_router
from .interfaces.http.routers import announcements as announcements_router
from .interfaces.http.routers import resources as resources_router
from .config import settings

# Настройка структурированного логирования
log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.make_filtering_bound_logger(log_level),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}

app = FastAPI(title="LMS Backend", version="0.1.0")
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

UPLOAD_PATH = "/api/resources/upload"


def body_limit_for(request: Request) -> int | None:
    if request.url.path == UPLOAD_PATH:
        return settings.MAX_UPLOAD_BYTES + settings.MULTIPART_OVERHEAD_BYTES
    if request.headers.get("content-type", "").startswith("application/json"):
        return settings.MAX_JSON_BODY_BYTES
    return None


# Тело отклоняется по Content-Length до чтения, раньше аутентификации и разбора формы
@app.middleware("http")
async def limit_body_size(request: Request, call_next):
    limit = body_limit_for(request)
    declared = request.headers.get("content-length")
    if limit is not None and declared is not None:
        try:
            size = int(declared)
        except ValueError:
            return JSONResponse(status_code=400, content={"detail": "Invalid Content-Length header"})
        if size > limit:
            logger.info("request_body_rejected", path=request.url.path, content_length=size, limit=limit)
            error = PayloadTooLarge(f"Request body exceeds the {limit} byte limit")
            return JSONResponse(status_code=error.status_code, content={"detail": error.message})
    return await call_next(request)


# Добавляем middleware для правильной кодировки, заголовков безопасности и метрик
@app.middleware("http")
async def observe_request(request: Request, call_next):
    start_time = time.time()
    method = request.method

    response = await call_next(request)

    if response.headers.get("content-type", "").startswith("application/json"):
        response.headers["content-type"] = "application/json; charset=utf-8"
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)

    # шаблон маршрута вместо сырого пути, чтобы id не раздували метки
    route = request.scope.get("route")
    path = getattr(route, "path", request.url.path)

    # Метрики
    duration = time.time() - start_time
    status_code = response.status_code
    http_requests_total.labels(method=method, endpoint=path, status=status_code).inc()
    http_request_duration_seconds.labels(method=method, endpoint=path).observe(duration)

    # Логирование
    logger.info(
        "http_request",
        method=method,
        path=request.url.path,
        status_code=status_code,
        duration_ms=round(duration * 1000, 2)
    )

    return response


@app.on_event("startup")
def on_startup():
    logger.info("Starting LMS backend", version="0.1.0", environment=settings.ENVIRONMENT)
    Base.metadata.create_all(bind=engine)
    ensure_directory(Path(settings.UPLOAD_DIR))

    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    logger.info("Database connection established")


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/metrics")
def metrics():
    """Prometheus metrics endpoint"""
    return metrics_endpoint()


app.include_router(auth_router.router)
app.include_router(announcements_router.router)
app.include_router(resources_router.router)
