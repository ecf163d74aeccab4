"""Leave Manager — FastAPI Application Factory."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from leave_manager.common.cache import NullCache, RedisCache
from leave_manager.common.clock import Clock
from leave_manager.common.exceptions import register_exception_handlers
from leave_manager.common.rate_limit import limiter
from leave_manager.config import Settings, settings as default_settings
from leave_manager.database import build_engine, build_session_factory, create_tables
from leave_manager.employees.router import router as employees_router
from leave_manager.leave.router import router as leaves_router
from leave_manager.logging_config import configure_logging

logger = logging.getLogger(__name__)


def _build_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Acquire the database engine and cache client; release them on shutdown."""
        configure_logging(settings.LOG_LEVEL)

        engine = build_engine(settings)
        if settings.AUTO_CREATE_TABLES:
            await create_tables(engine)
        app.state.engine = engine
        app.state.session_factory = build_session_factory(engine)
        app.state.cache = (
            RedisCache.from_url(settings.REDIS_URL) if settings.CACHE_ENABLED else NullCache()
        )
        logger.info("Leave manager started (environment=%s)", settings.ENVIRONMENT)

        yield

        await app.state.cache.close()
        await engine.dispose()
        logger.info("Leave manager stopped")

    return lifespan


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or default_settings

    app = FastAPI(
        title="Leave Manager",
        description="Employee leave applications, HR approvals and leave balances",
        version="1.0.0",
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=_build_lifespan(settings),
    )
    app.state.clock = Clock()

    # Exception handlers (RFC 7807)
    register_exception_handlers(app)

    # Rate limiting (slowapi)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check (no auth)
    @app.get("/api/v1/health", tags=["system"])
    async def health_check():
        return {
            "status": "healthy",
            "version": "1.0.0",
            "environment": settings.ENVIRONMENT,
            "timestamp": app.state.clock.now().isoformat(),
        }

    # Register routers
    app.include_router(employees_router, prefix="/api/v1/employees", tags=["employees"])
    app.include_router(leaves_router, prefix="/api/v1/leaves", tags=["leaves"])

    return app


app = create_app()
