"""Reclamos Push API - Main Application Module.

This module initializes the FastAPI application with proper configuration,
middleware, routing, and lifecycle management for the claim push
notification service.
"""

import logging
import sys
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

# Add the project root to Python path if running directly
if __name__ == "__main__":
    project_root = Path(__file__).parent.parent
    sys.path.insert(0, str(project_root))

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import ConfigValidator, settings
from app.database import AsyncSessionLocal, engine
from models import Base

logger = logging.getLogger(__name__)


def setup_logging():
    """Configure root logging from settings."""
    logging.basicConfig(
        level=settings.log_level.value,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Manage application lifecycle events."""
    # Startup
    logger.info(f"🚀 Starting {settings.app_name}...")

    # Development mode: Auto-create tables if they don't exist
    # Production: Use Alembic migrations (alembic upgrade head)
    if settings.is_development:
        logger.info("📝 Development mode: Creating/updating database tables...")
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("✅ Database tables created/verified")
    else:
        logger.info("🏭 Use 'alembic upgrade head' to manage database schema")

    if settings.is_production:
        # Missing credentials abort startup
        ConfigValidator.validate_required_settings(settings)

    if not settings.has_vapid_keys:
        logger.warning("⚠️ VAPID keys not configured: push deliveries will be rejected")
    if not settings.webhook_secret:
        logger.warning("⚠️ WEBHOOK_SECRET not configured: webhook calls will be rejected")

    yield

    # Shutdown
    logger.info(f"🛑 Shutting down {settings.app_name}...")
    await engine.dispose()
    logger.info("✅ Database connections closed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    setup_logging()

    app = FastAPI(
        title=settings.app_name,
        description="Web Push notifications for field-service claims",
        version=settings.version,
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # Add middleware
    setup_middleware(app)

    # Add exception handlers
    setup_exception_handlers(app)

    # Include routers
    setup_routers(app)

    return app


def setup_middleware(app: FastAPI):
    """Configure application middleware."""
    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request ID middleware
    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


def error_response(
    request: Request,
    status_code: int,
    message: str,
    error_code: str,
    details=None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "status": "error",
            "message": message,
            "error_code": error_code,
            "details": details,
            "timestamp": datetime.utcnow().isoformat(),
            "request_id": getattr(request.state, "request_id", None),
        },
        headers=headers,
    )


def setup_exception_handlers(app: FastAPI):
    """Configure global exception handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # Handle custom exceptions that have structured detail
        if isinstance(exc.detail, dict) and "message" in exc.detail:
            message = exc.detail["message"]
            error_code = exc.detail.get("error_code", "HTTP_ERROR")
            details = exc.detail.get("details")
        else:
            message = str(exc.detail) if exc.detail else "An error occurred"
            error_code = "HTTP_ERROR"
            details = None

        return error_response(
            request,
            exc.status_code,
            message,
            error_code,
            details,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        # Convert errors to JSON-serializable format
        errors = []
        for error in exc.errors():
            error_dict = {
                "loc": list(error.get("loc", [])),
                "msg": str(error.get("msg", "Validation error")),
                "type": error.get("type", "value_error"),
            }
            # Handle custom input if present
            if "input" in error:
                error_dict["input"] = str(error["input"])
            errors.append(error_dict)

        # Malformed bodies are client errors (400), matching ValidationError
        return error_response(request, 400, "Invalid payload", "VALIDATION_ERROR", errors)

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError):
        # Driver errors carry the useful text on .orig
        cause = getattr(exc, "orig", None)
        message = str(cause) if cause is not None else str(exc)
        logger.error(f"❌ Database error on {request.url.path}: {str(exc)}")
        return error_response(request, 500, message or "Database error", "DATABASE_ERROR")


def setup_routers(app: FastAPI):
    """Configure application routers."""
    # Import routers
    from app.domains.push.controller import router as push_router
    from app.domains.webhook.controller import router as webhook_router

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Service health including database connectivity."""
        db_status = "healthy"
        try:
            async with AsyncSessionLocal() as db:
                await db.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error(f"Health check database error: {str(e)}")
            db_status = "unhealthy"

        return {
            "status": "healthy" if db_status == "healthy" else "degraded",
            "version": settings.version,
            "commit": settings.commit_short,
            "environment": settings.environment,
            "timestamp": datetime.utcnow().isoformat(),
            "services": {
                "database": db_status,
                "push": "configured" if settings.has_vapid_keys else "not_configured",
                "webhook": "configured" if settings.webhook_secret else "not_configured",
            },
        }

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.version,
            "description": "Web Push notifications for field-service claims",
            "docs_url": "/docs" if settings.is_development else None,
            "features": ConfigValidator.get_feature_status(settings),
        }

    # Include domain routers
    app.include_router(push_router)
    app.include_router(webhook_router)


# Create the application instance
app = create_app()


def main():
    """Entry point for running the application directly."""
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level=settings.log_level.value.lower(),
    )


if __name__ == "__main__":
    main()
