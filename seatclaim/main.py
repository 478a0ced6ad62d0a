"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.exceptions import RedisError

from seatclaim.api.v1.router import router as v1_router
from seatclaim.config import get_settings
from seatclaim.database import close_db, get_session_factory, init_db
from seatclaim.exception_handlers import register_exception_handlers
from seatclaim.redis_client import close_redis, get_redis
from seatclaim.services.expiry import ExpiryScheduler
from seatclaim.tasks import background_tasks

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info("Starting Seat Claim API...")

    await init_db()
    logger.info("Database ready")

    redis_client = await get_redis()
    try:
        await redis_client.ping()
        logger.info("Redis connection established")
    except RedisError as e:
        logger.warning(f"Redis unavailable, sweep will run without a lease: {e}")

    session_factory = get_session_factory()
    app.state.expiry_scheduler = ExpiryScheduler(session_factory)

    await background_tasks.start(session_factory)

    yield

    # Shutdown
    logger.info("Shutting down Seat Claim API...")

    await app.state.expiry_scheduler.stop()
    await background_tasks.stop()

    await close_redis()
    logger.info("Redis connection closed")

    await close_db()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""
## Seat Claim API

Seat reservations and tickets for events.

- **Reservations**: time-boxed holds on one seat, released automatically on expiry
- **Tickets**: confirmed claims that can be cancelled, transferred, refunded and checked in
- **Exclusivity**: a seat never has two live claims, enforced by the database
- **Expiry**: per-hold timers plus a periodic sweep under a Redis lease

### Authentication
Private endpoints require the `X-User-ID` header; `X-User-Role`
(`attendee`, `organizer`, `staff`, `admin`) defaults to `attendee`.

### Workflow
1. Check the seat map for free seats
2. Reserve a seat
3. Pay for the reservation
4. Confirm the reservation to receive a ticket
5. Check the ticket in at the gate
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API routers
    app.include_router(v1_router, prefix="/api")

    # Health check endpoint
    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": settings.APP_VERSION,
            "api_versions": ["v1"],
        }

    register_exception_handlers(app)

    return app


# Create application instance
app = create_app()


def run():
    """Run the application with uvicorn."""
    uvicorn.run(
        "seatclaim.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    run()
