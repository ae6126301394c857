"""
Event RSVP API - Main Application Entry Point

Invitation-only event registration:
- Single-use invitation redemption with confirm-or-waitlist admission
- Seat counter guarded by an atomic conditional update (no overbooking across replicas)
- Best-effort notifications and spreadsheet sync dispatched after commit
- Structured logging with request correlation, Prometheus metrics
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import get_settings
from app.core.logging import setup_logging, get_logger
from app.core.metrics import metrics_endpoint
from app.api.router import api_router
from app.api.middleware import RequestLoggingMiddleware
from app.api.exception_handlers import register_exception_handlers
from app.db.session import get_engine
from app.infrastructure.redis_client import get_redis, close_redis, get_redis_status
from app.services.collaborator_factory import get_dispatcher

settings = get_settings()

SHUTDOWN_DRAIN_SECONDS = 10.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Submission rate limiting disabled")

    yield

    # Let in-flight notifications finish before the loop goes away
    dispatcher = get_dispatcher()
    if dispatcher.pending:
        logger.info("draining_side_effects", pending=dispatcher.pending)
        await dispatcher.drain(timeout=SHUTDOWN_DRAIN_SECONDS)

    await close_redis()
    await get_engine().dispose()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Invitation-only event registration with capacity-safe admission and waitlisting",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Custom middleware
app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)

# Routes
app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "redis": await get_redis_status(),
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
