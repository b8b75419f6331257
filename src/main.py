"""
FastAPI application entry point.

This module creates and configures the local SurfCoach API that the
presentation layer talks to. Using an application factory pattern
(create_app function) because:
- Easier to test with different configurations
- Explicit about initialization order

For local development:
    uvicorn src.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api.routes import account, analysis, health
from .config.settings import get_settings

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Logs startup configuration and reports invalid settings early.
    """
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    logger.info(
        "SurfCoach API starting",
        extra={
            "version": settings.api_version,
            "capture_backend": settings.capture_backend,
            "backend_url": settings.backend_url,
        }
    )

    problems = settings.validate_required_fields()
    if problems:
        logger.error(
            "Invalid configuration",
            extra={"problems": problems}
        )

    yield

    logger.info("SurfCoach API shutting down")


def create_app() -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=__version__,
        description="""
        Local API of the SurfCoach AI client.

        ## Workflow

        1. **Select a video**: `POST /api/v1/analysis/video`
        2. **Start the analysis**: `POST /api/v1/analysis/start`
           - Frames are sampled locally and sent to the AI coach
        3. **Poll progress**: `GET /api/v1/analysis/status`
           - Step i of 4, then the score, level and feedback
        4. **Start over**: `POST /api/v1/analysis/reset`

        Account, stats, progress and subscription endpoints live under
        `/api/v1/account`.
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(
        analysis.router,
        prefix="/api/v1/analysis",
        tags=["Analysis"],
    )

    app.include_router(
        account.router,
        prefix="/api/v1/account",
        tags=["Account"],
    )

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "message": "SurfCoach AI",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
        }

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """
        Catch-all exception handler.

        Logs the full error and returns a generic message.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal error. Please try again."
            }
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "src.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
