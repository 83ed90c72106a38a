"""
Entry Point
"""

import asyncio
import secrets
from contextlib import asynccontextmanager
from time import perf_counter

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI, Request
from fastmcp import FastMCP
from fastmcp.server.auth.providers.debug import DebugTokenVerifier
from ulid import ULID

from fileguard.api.guardian import router as guardian_router
from fileguard.context.guardian import server as guardian_server
from fileguard.core.config import settings
from fileguard.core.log import logger
from fileguard.core.report_store import ReportStore
from fileguard.schema.status import HealthCheckResponse, IndexResponse
from fileguard.worker.broker import broker as taskiq_broker

exec_id = ULID()
start_time = perf_counter()

verifier = DebugTokenVerifier(
    validate=lambda token: secrets.compare_digest(token, settings.APP_AUTH_KEY),
    client_id="mcp-client",
    scopes=["read", "write"],
)

mcp_server = FastMCP(
    "FileGuard",
    version=settings.PROJECT_VERSION,
    auth=verifier,
)


def _health() -> HealthCheckResponse:
    return HealthCheckResponse(
        status="OK",
        version=settings.PROJECT_VERSION,
        uptime=perf_counter() - start_time,
        exec_id=exec_id,
        target_root=settings.TARGET_ROOT,
        dist_version=settings.DIST_VERSION,
    )


@mcp_server.resource("resource://health_check")
async def get_health() -> str:
    """Provides platform information"""
    return _health().model_dump_json()


# Mount Full MCP Contexts
mcp_server.mount(guardian_server, namespace="fileguard")
mcp_app = mcp_server.http_app(path="/mcp")


# Combine lifespan
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan for FastMCP application"""
    async with mcp_app.lifespan(app):
        logger.info(f"Starting up {settings.PROJECT_NAME} v{settings.PROJECT_VERSION}")
        logger.info(f"Debug mode: {settings.DEBUG}")
        logger.info(f"Listening on: {settings.APP_HOST}:{settings.APP_PORT} - Workers: {settings.APP_WORKERS}")
        logger.info(f"Watching {settings.TARGET_ROOT} against {settings.DIST_VERSION}/{settings.DIST_LOCALE}")
        logger.info(f"Exec ID: {exec_id}")

        if not taskiq_broker.is_worker_process:
            await taskiq_broker.startup()
            logger.info("Taskiq broker started (client mode)")

        app.state.report_store = ReportStore()

        try:
            yield
        finally:
            logger.info(f"Shutting down {settings.PROJECT_NAME}...")
            await app.state.report_store.close()
            if not taskiq_broker.is_worker_process:
                await taskiq_broker.shutdown()
            await asyncio.sleep(1)  # Failsafe delay


app = FastAPI(
    lifespan=lifespan,
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    docs_url="/docs",
    redoc_url=None,
)

app.add_middleware(
    CorrelationIdMiddleware,
    generator=lambda: str(ULID()),
    validator=None,
)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    """Log method, path, status, and duration for every HTTP request."""
    t0 = perf_counter()
    response = await call_next(request)
    duration_ms = (perf_counter() - t0) * 1000
    if request.url.path not in ("/favicon.ico", "/health"):
        logger.info(
            f"{request.method} {request.url.path} "
            f"status={response.status_code} "
            f"duration={duration_ms:.1f}ms"
        )
    return response


app.include_router(guardian_router)
app.mount("/app", mcp_app)


@app.get(
    "/health",
    include_in_schema=False,
)
async def health() -> HealthCheckResponse:
    """Health check endpoint"""
    return _health()


@app.get(
    "/",
    include_in_schema=False,
)
async def index() -> IndexResponse:
    return IndexResponse()
