"""
Proposal Relay - FastAPI Application Entry Point.

Receives proposals from the form wizard and relays them to the
automation webhooks that generate the proposal PDF and follow-up email:
- Parallel dispatch to the proposal and email webhooks
- Local backup of every submission
- One normalized response whatever the webhooks did

Run with:
    uvicorn proposal_relay.main:app --reload --port 8000
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from proposal_relay.core.config import get_settings, resolve_backup_dir
from proposal_relay.core.errors import ProposalRelayError, RateLimitError, ValidationError
from proposal_relay.api.routes import router as submission_router, health_router


# ===========================================
# Logging Configuration
# ===========================================

def setup_logging():
    """Configure application logging."""
    settings = get_settings()

    # Create formatter
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return logging.getLogger(__name__)


logger = setup_logging()


# ===========================================
# Application Lifespan
# ===========================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    logger.info("=" * 50)
    logger.info("Proposal Relay Starting Up")
    logger.info("=" * 50)
    logger.info(f"Environment: {'Development' if settings.DEBUG else 'Production'}")
    logger.info(f"Backup directory: {resolve_backup_dir(settings)}")
    logger.info(
        f"Rate limit: {settings.RATE_LIMIT_MAX_REQUESTS} requests / "
        f"{settings.RATE_LIMIT_WINDOW_SECONDS:g}s"
    )

    # Verify critical settings
    if not settings.PROPOSAL_WEBHOOK_URL:
        logger.warning("Proposal webhook URL not configured - submissions will only be backed up!")

    if not settings.EMAIL_WEBHOOK_URL:
        logger.warning("Email webhook URL not configured - email previews will use the template")

    if not settings.API_KEY:
        logger.warning("API key not configured - request gate is open!")

    logger.info("Startup complete - ready to accept proposals")

    yield

    # Shutdown
    logger.info("Proposal Relay shutting down...")


# ===========================================
# Error Handlers
# ===========================================

async def relay_error_handler(request: Request, exc: ProposalRelayError) -> JSONResponse:
    """Map gate and validation errors to their status codes."""
    content = {"success": False, "message": exc.message}
    headers = {}

    if isinstance(exc, ValidationError):
        content["errors"] = exc.errors
    if isinstance(exc, RateLimitError) and exc.retry_after:
        headers["Retry-After"] = str(exc.retry_after)

    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "message": str(exc) if get_settings().DEBUG else "An error occurred"
        }
    )


# ===========================================
# FastAPI Application
# ===========================================

def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Proposal Relay",
        description="""
        Relays proposal form submissions to automation webhooks.

        ## Endpoints

        - `POST /api/submit-proposal` - Submit a proposal
          (`?emailOnly=true` for the email preview only, `?format=pdf` to stream the PDF)
        - `GET /health` - Health check
        """,
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    origins = [settings.SITE_URL.rstrip("/")] if settings.SITE_URL else []
    origins += settings.allowed_origins

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "Retry-After"],
    )

    app.add_exception_handler(ProposalRelayError, relay_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # Include routers
    app.include_router(submission_router)
    app.include_router(health_router)

    return app


# Create app instance
app = create_app()


# ===========================================
# Root Endpoint
# ===========================================

@app.get("/", tags=["root"])
async def root():
    """Root endpoint with API information."""
    return JSONResponse({
        "service": "Proposal Relay",
        "version": "1.0.0",
        "status": "running",
        "endpoints": {
            "submit": "POST /api/submit-proposal",
            "health": "GET /health",
            "docs": "GET /docs"
        }
    })


# ===========================================
# Main Entry Point
# ===========================================

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "proposal_relay.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
