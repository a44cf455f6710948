"""FastAPI application: main entry point."""

import structlog
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from registry.config import get_settings
from registry.infrastructure.database import engine, Base
from registry.core.logging import configure_logging
from registry.core.middleware import setup_middleware
from registry.core.exceptions import (
    AppError,
    app_error_handler,
    global_exception_handler,
    validation_exception_handler,
)

# Import all models so SQLAlchemy knows about them
from registry.domain.models.user import User  # noqa: F401
from registry.domain.models.certificate import Certificate  # noqa: F401
from registry.domain.models.payment import Payment  # noqa: F401
from registry.domain.models.system_limits import SystemLimits  # noqa: F401
from registry.domain.models.activity import Activity  # noqa: F401

# Import routers
from registry.interfaces.api.auth import router as auth_router
from registry.interfaces.api.users import router as users_router
from registry.interfaces.api.certificates import router as certificates_router
from registry.interfaces.api.payments import router as payments_router
from registry.interfaces.api.analytics import router as analytics_router
from registry.interfaces.api.health import router as health_router
from registry.interfaces.api.uploads import router as uploads_router
from registry.interfaces.api.activity import router as activity_router
from registry.interfaces.api.maintenance import router as maintenance_router

settings = get_settings()

# Configure logging immediately
configure_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    logger.info("Starting Member Registry...", env=settings.environment, platform=settings.platform)

    # Create DB tables (no migrations yet)
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    from registry.infrastructure.storage.factory import get_file_storage
    logger.info("Storage ready", **get_file_storage().get_storage_info())

    if settings.ENABLE_SCHEDULER:
        from registry.scheduler.jobs import start_scheduler
        start_scheduler()

    yield

    if settings.ENABLE_SCHEDULER:
        from registry.scheduler.jobs import stop_scheduler
        stop_scheduler()
    logger.info("Member Registry stopped")


app = FastAPI(
    title="Member Registry",
    description="API Backend: members, certificates, verification and capacity payments",
    version="1.0.0",
    lifespan=lifespan,
)

# Setup Middleware (Correlation ID, Logging)
setup_middleware(app)

# Exception Handling
app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# CORS is added last so it wraps everything else
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

# Include routers
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(certificates_router)
app.include_router(payments_router)
app.include_router(analytics_router)
app.include_router(health_router)
app.include_router(uploads_router)
app.include_router(activity_router)
app.include_router(maintenance_router)


@app.get("/")
def root():
    return {
        "name": "Member Registry",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
    }
