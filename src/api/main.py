"""FastAPI application for the YouTube knowledge base.

Provides video, category, graph, chat and monitoring endpoints over the
knowledge pipeline services.
"""

import os
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.knowledge_pipeline.config import get_config
from src.knowledge_pipeline.errors import KnowledgeBaseError, NoTranscript
from src.utils.logging import get_logger

from .deps import AppServices
from .monitoring import MonitoringState
from .routers import categories, chat, graph, monitoring, videos

logger = get_logger(__name__)

# Check if we're in production
is_production = os.getenv("ENVIRONMENT") == "production"

if not is_production:
    # Development: prioritize .env file
    project_root = Path(__file__).resolve().parent.parent.parent
    dotenv_path = project_root / ".env"
    load_dotenv(dotenv_path, override=True)
else:
    # Production: use cloud platform env vars only
    load_dotenv()


# ==============================================================================
# Lifespan Management
# ==============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for the FastAPI application.

    Builds the pipeline services unless they were injected, and releases the
    completion provider's network resources on shutdown.
    """
    logger.info("application_startup_started")

    try:
        if getattr(app.state, "services", None) is None:
            app.state.services = AppServices.from_config(get_config())

        logger.info(
            "application_startup_completed",
            llm_provider=app.state.services.pipeline.provider.name,
        )

    except Exception:
        logger.exception("application_startup_failed")
        raise

    yield  # Application runs here

    # Shutdown: Clean up resources
    logger.info("application_shutdown_started")
    await app.state.services.pipeline.close()
    logger.info("application_shutdown_completed")


# ==============================================================================
# Error handling
# ==============================================================================


def _error_response(request: Request, status_code: int, error: str, message: str, details=None):
    request.app.state.monitoring.errors.record(
        status_code,
        request.method,
        request.url.path,
        message,
        details,
    )
    body = {"error": error, "message": message}
    if details:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


async def knowledge_base_error_handler(request: Request, exc: KnowledgeBaseError) -> JSONResponse:
    """Map pipeline errors to their HTTP status and record them."""
    error = "Failed to get transcript" if isinstance(exc, NoTranscript) else exc.message

    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "request_failed",
        method=request.method,
        path=request.url.path,
        status_code=exc.status_code,
        error_type=type(exc).__name__,
        error=exc.message,
    )
    return _error_response(request, exc.status_code, error, exc.message, exc.details)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies and parameters as invalid input."""
    errors = [
        {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", "")}
        for error in exc.errors()
    ]
    logger.warning("request_invalid", method=request.method, path=request.url.path, errors=len(errors))
    return _error_response(request, 400, "Invalid input", "Request validation failed", {"errors": errors})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "request_unhandled_error",
        method=request.method,
        path=request.url.path,
        error_type=type(exc).__name__,
    )
    return _error_response(request, 500, "Internal Server Error", str(exc))


# ==============================================================================
# FastAPI Application Setup
# ==============================================================================


def create_app(services: AppServices | None = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        services: Pre-built services. If None, they are built from the
            environment when the application starts.

    Returns:
        Configured FastAPI application.
    """
    config = services.config if services is not None else get_config()

    app = FastAPI(
        title="YouTube Knowledge Base API",
        description="Summarize, categorize and query YouTube video transcripts",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.services = services
    app.state.monitoring = MonitoringState.create(
        slow_threshold_ms=config.slow_request_ms,
        error_log_size=config.error_log_size,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def track_performance(request: Request, call_next):
        """Record the response time and status of every request."""
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            request.app.state.monitoring.performance.record(
                request.method,
                request.url.path,
                duration_ms,
                status_code,
            )
            logger.info(
                "request_completed",
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_ms=round(duration_ms),
            )

    app.add_exception_handler(KnowledgeBaseError, knowledge_base_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(videos.router)
    app.include_router(categories.router)
    app.include_router(graph.router)
    app.include_router(chat.router)
    app.include_router(monitoring.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint.

        Returns:
            Health status and timestamp.
        """
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "services": {
                "pipeline": app.state.services is not None,
            },
        }

    return app


app = create_app()
