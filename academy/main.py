import time
import logging
import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from sqlalchemy import text

from .config import settings
from .domain.errors import (
    AuthenticationRequired, InvalidInput, InvalidTransition, ModuleLocked, RecordNotFound,
    RemoteReadError, RemoteWriteError,
)
from .infrastructure.db import engine
from .infrastructure.models import Base
from .infrastructure.metrics import (
    metrics_endpoint,
    http_requests_total,
    http_request_duration_seconds
)
from .interfaces.http.routers import (
    auth as auth_router,
    checks as checks_router,
    exercises as exercises_router,
    learning_state as learning_state_router,
    notes as notes_router,
    profile as profile_router,
    progress as progress_router,
    tutor as tutor_router,
)

log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.make_filtering_bound_logger(log_level),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

app = FastAPI(title="AgentCore Academy Service", version="0.1.0")

app.state.limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.middleware("http")
async def observe_requests(request: Request, call_next):
    start_time = time.time()
    method = request.method
    path = request.url.path

    response = await call_next(request)

    if response.headers.get("content-type", "").startswith("application/json"):
        response.headers["content-type"] = "application/json; charset=utf-8"

    duration = time.time() - start_time
    status_code = response.status_code
    route = request.scope.get("route")
    endpoint = getattr(route, "path", path)
    http_requests_total.labels(method=method, endpoint=endpoint, status=status_code).inc()
    http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)

    logger.info(
        "http_request",
        method=method,
        path=path,
        status_code=status_code,
        duration_ms=round(duration * 1000, 2)
    )
    return response


def _error(status_code: int):
    async def handler(request: Request, exc: Exception):
        logger.warning("request_failed", path=request.url.path, error_type=type(exc).__name__,
                       error=str(exc), status_code=status_code)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})
    return handler

app.add_exception_handler(AuthenticationRequired, _error(401))
app.add_exception_handler(RecordNotFound, _error(404))
app.add_exception_handler(InvalidTransition, _error(409))
app.add_exception_handler(RemoteReadError, _error(503))
app.add_exception_handler(RemoteWriteError, _error(503))
app.add_exception_handler(InvalidInput, _error(400))
app.add_exception_handler(ModuleLocked, _error(403))


@app.on_event("startup")
def on_startup():
    logger.info("Starting academy service", version="0.1.0")
    Base.metadata.create_all(bind=engine)

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
app.include_router(profile_router.router)
app.include_router(progress_router.router)
app.include_router(checks_router.router)
app.include_router(notes_router.router)
app.include_router(learning_state_router.router)
app.include_router(exercises_router.router)
app.include_router(tutor_router.router)
