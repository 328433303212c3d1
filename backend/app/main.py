"""LocalPro Backend API - FastAPI application."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from localpro import __version__
from localpro.storage import InMemoryStorage

from .config import get_settings
from .database import get_storage
from .logging_config import get_logger, setup_logging
from .rate_limit import limiter
from .routes import admin_router, agency_router, cart_router, jobs_router, notifications_router

logger = get_logger("localpro.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings = get_settings()
    setup_logging(settings.log_level)
    logger.info(f"Starting LocalPro API (debug={settings.debug}, storage={settings.storage_backend})")
    yield
    logger.info("Shutting down LocalPro API")


app = FastAPI(
    title="LocalPro API",
    description="Local services marketplace: job board, bookings and partner supplies",
    version=__version__,
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(jobs_router)
app.include_router(cart_router)
app.include_router(notifications_router)
app.include_router(agency_router)
app.include_router(admin_router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "service": "localpro-backend",
        "version": __version__,
        "status": "ok",
    }


@app.get("/health")
async def health():
    """Detailed health check with an actual storage round trip."""
    settings = get_settings()
    db_status = "disconnected"
    try:
        storage = get_storage(settings)
        if not isinstance(storage, InMemoryStorage):
            storage.db.table("jobs").select("id").limit(1).execute()
        db_status = "connected"
    except Exception as e:
        db_status = f"error: {str(e)[:50]}"

    overall_status = "healthy" if db_status == "connected" else "degraded"

    return {
        "status": overall_status,
        "storage": settings.storage_backend,
        "database": db_status,
    }
