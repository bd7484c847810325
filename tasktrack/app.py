from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tasktrack.api.error_handling import register_exception_handlers
from tasktrack.api.routes import router
from tasktrack.config import get_settings
from tasktrack.logging import clear_request_context, get_logger, set_correlation_id

logger = get_logger(__name__)

__version__ = "0.1.0"

_settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the runtime (and seed the admin account) before serving requests."""
    from tasktrack.service.runtime import get_runtime

    runtime = get_runtime()
    logger.info("startup_complete", app_name=runtime.settings.app_name)
    yield
    logger.info("shutdown_complete")


app = FastAPI(title="tasktrack", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
    max_age=3600,
)


@app.middleware("http")
async def add_correlation_id(request, call_next):
    """Tag each request with a correlation ID.

    Taken from the client's ``X-Request-ID`` header when present, otherwise
    generated; echoed back in the response header and attached to every log
    entry emitted while handling the request.
    """
    clear_request_context()
    client_request_id = request.headers.get("X-Request-ID")
    correlation_id = set_correlation_id(client_request_id)
    response = await call_next(request)
    response.headers["X-Request-ID"] = correlation_id
    return response


register_exception_handlers(app)
app.include_router(router)


@app.get("/healthz")
async def healthz() -> dict:
    return {"status": "ok", "version": __version__}
