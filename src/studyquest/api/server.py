"""FastAPI application setup"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from studyquest.api.models import ErrorResponse
from studyquest.api.routes import router
from studyquest.api.metrics_routes import router as metrics_router
from studyquest.api.middleware import setup_cors, setup_rate_limiting
from studyquest.config import LOG_LEVEL, validate_config
from studyquest.db.connection import db
from studyquest.observability.metrics import init_metrics
from studyquest.observability.metrics_middleware import setup_metrics_middleware
from studyquest.observability.sentry_config import init_sentry
from studyquest.services.container import init_container, reset_container

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL)
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for FastAPI application"""
    # Startup
    logger.info("Starting API server...")
    validate_config()
    init_sentry()
    init_metrics()
    await db.init_pool()
    logger.info("Database pool initialized")
    init_container()

    yield

    # Shutdown
    logger.info("Shutting down API server...")
    reset_container()
    await db.close_pool()
    logger.info("Database pool closed")


def create_api_application() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="StudyQuest API",
        description="Study tracking with streaks, levels and achievements",
        version="1.0.0",
        lifespan=lifespan
    )

    # Setup middleware
    setup_cors(app)
    setup_rate_limiting(app)
    setup_metrics_middleware(app)

    # Include routes
    app.include_router(router)
    app.include_router(metrics_router)

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        body = ErrorResponse(error="Internal server error", detail=str(exc))
        return JSONResponse(
            status_code=500,
            content=body.model_dump(mode="json")
        )

    logger.info("FastAPI application created")

    return app


app = create_api_application()


def run() -> None:
    """Console entry point: serve the API with uvicorn"""
    import os
    import uvicorn

    uvicorn.run(
        "studyquest.api.server:app",
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", "8080")),
    )


if __name__ == "__main__":
    run()
