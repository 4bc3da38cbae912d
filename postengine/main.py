"""
PostEngine API - application assembly.

Wires logging, tracing, CORS, the request middleware, error envelope
handlers and routes onto one FastAPI instance.
"""

import time
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from prometheus_client import generate_latest

from postengine.api.errors import register_error_handlers
from postengine.api.routes import router
from postengine.config import settings
from postengine.db.session import close_engines
from postengine.observability import get_logger, log_context, metrics, setup_logging, setup_tracing
from postengine.observability.tracing import instrument_fastapi

# Logging must be configured before the first logger is bound
setup_logging()
logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Log startup settings; dispose the database engine on shutdown."""
    logger.info(
        "postengine_starting",
        version=settings.api_version,
        model=settings.openai_model,
        trial_allotment=settings.trial_allotment,
        generation_cost=settings.generation_cost,
        tracing=settings.tracing_enabled,
    )
    try:
        yield
    finally:
        await close_engines()
        logger.info("postengine_stopped")


app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description=settings.api_description,
    lifespan=lifespan,
)
register_error_handlers(app)

setup_tracing()
instrument_fastapi(app)

# Browser client sends the anonymous cookie cross-origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", REQUEST_ID_HEADER],
)


@app.middleware("http")
async def request_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Bind a request id to every log line and record HTTP metrics."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    path = request.url.path
    started = time.perf_counter()
    in_progress = metrics.http_requests_in_progress.labels(endpoint=path, method=request.method)
    in_progress.inc()

    with log_context(request_id=request_id):
        try:
            response = await call_next(request)
        except Exception as e:
            elapsed = time.perf_counter() - started
            metrics.record_http_request(path, request.method, 500, elapsed)
            metrics.record_error(type(e).__name__, "http_request")
            logger.error("request_failed", method=request.method, path=path, exc_info=True)
            raise
        finally:
            in_progress.dec()

        elapsed = time.perf_counter() - started
        metrics.record_http_request(path, request.method, response.status_code, elapsed)
        logger.info(
            "request_handled",
            method=request.method,
            path=path,
            status_code=response.status_code,
            duration_seconds=round(elapsed, 4),
        )

    response.headers[REQUEST_ID_HEADER] = request_id
    return response


app.include_router(router)


@app.get("/")
async def root() -> dict[str, str]:
    """Service banner."""
    return {"service": settings.api_title, "version": settings.api_version, "status": "running"}


async def prometheus_metrics() -> Response:
    """Prometheus text exposition."""
    return PlainTextResponse(generate_latest())


if settings.metrics_enabled:
    app.add_api_route("/metrics", prometheus_metrics, methods=["GET"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "postengine.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )
