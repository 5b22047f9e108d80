from contextlib import asynccontextmanager
import time

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
import structlog

from qa_service.ai_providers.gateway import build_gateway
from qa_service.api.v1.api import api_router
from qa_service.core.config import settings
from qa_service.core.database import db_factory, init_db
from qa_service.core.logging_config import configure_logging
from qa_service.middleware.request_id import RequestIdMiddleware
from qa_service.services.orchestrator import build_orchestrator

configure_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and wire the orchestrator on startup; release the engine on shutdown."""
    await init_db()
    gateway = await build_gateway(settings)
    if not gateway.is_configured:
        logger.info("AI gateway not configured; plans and analyses use their fallbacks")
    app.state.orchestrator = build_orchestrator(settings, db_factory.session_factory, gateway)
    logger.info("Service ready", functions_base_url=settings.FUNCTIONS_BASE_URL, environment=settings.APP_ENV)
    try:
        yield
    finally:
        await db_factory.dispose()
        logger.info("Application shutdown completed.")


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=settings.CORS_METHODS,
    allow_headers=settings.CORS_HEADERS,
    max_age=settings.CORS_MAX_AGE,
)
app.add_middleware(RequestIdMiddleware)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(
            "Request failed",
            method=request.method,
            path=request.url.path,
            error=str(e),
            exception_type=type(e).__name__,
        )
        raise

    logger.info(
        "Request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        process_time_ms=round((time.time() - start_time) * 1000, 2),
    )
    return response


@app.options("/{full_path:path}", include_in_schema=False)
async def preflight(full_path: str) -> Response:
    """Answer bare OPTIONS requests (no preflight headers) with the CORS headers."""
    return Response(
        status_code=200,
        headers={
            "Access-Control-Allow-Origin": ", ".join(settings.CORS_ORIGINS) or "*",
            "Access-Control-Allow-Headers": ", ".join(settings.CORS_HEADERS),
            "Access-Control-Allow-Methods": ", ".join(settings.CORS_METHODS),
        },
    )


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": settings.APP_NAME}


app.include_router(api_router)
