"""
Application entry point. FastAPI app with middleware, routers and error handlers.
Run: uvicorn main:app --host 0.0.0.0 --port 8000
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.routes import health_router, staff_router, users_router
from core.config import get_settings
from core.errors import register_error_handlers
from core.middleware import (
    RateLimitMiddleware,
    RequestTimingMiddleware,
    SecureHeadersMiddleware,
)
from utils.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info(
        "startup",
        extra={
            "app": settings.APP_NAME,
            "env": settings.ENVIRONMENT,
            "log_level": settings.LOG_LEVEL,
        },
    )
    yield
    logger.info("shutdown", extra={"app": settings.APP_NAME})


def create_app() -> FastAPI:
    """Factory for FastAPI app. Enables testing with overrides."""
    settings = get_settings()
    app = FastAPI(
        title=settings.APP_NAME,
        description="Matchmaking platform admin API",
        version="1.0.0",
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
        lifespan=lifespan,
    )

    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(SecureHeadersMiddleware)
    app.add_middleware(RateLimitMiddleware)

    app.include_router(health_router)
    app.include_router(users_router)
    app.include_router(staff_router)

    register_error_handlers(app)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    s = get_settings()
    uvicorn.run(
        "main:app",
        host=s.HOST,
        port=s.PORT,
        reload=s.ENVIRONMENT == "development",
        log_level=s.LOG_LEVEL.lower(),
    )
