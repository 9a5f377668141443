import asyncio
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from booking.api.routes import appointments, providers
from booking.core.config import _ENV_FILE, settings
from booking.core.db import init_db
from booking.core.errors import BookingError
from booking.services.event_service import LoggingEventPublisher
from booking.services.lock_service import InMemoryLockManager

if os.getenv("ENV") != "production":
    logging.basicConfig(level=logging.DEBUG)
else:
    logging.basicConfig(
        level=logging.INFO,
        format='{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}',
    )
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Loading .env from: %s (exists: %s)", _ENV_FILE, _ENV_FILE.exists())
    if settings.auto_create_tables:
        await init_db()
    # Background: drop expired lock records so the table stays bounded
    task = asyncio.create_task(
        app.state.lock_manager.run_reaper(settings.lock_reaper_interval_seconds)
    )
    logger.info(
        "Lock manager ready (ttl %.1fs, reaper every %.0fs)",
        settings.lock_ttl_seconds,
        settings.lock_reaper_interval_seconds,
    )
    yield
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


app = FastAPI(
    title="Provider Booking API",
    description="Provider schedules, slot availability and double-booking-safe appointments",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)
app.state.lock_manager = InMemoryLockManager()
app.state.event_publisher = LoggingEventPublisher()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

app.include_router(providers.router, prefix="/api/v1")
app.include_router(appointments.router, prefix="/api/v1")


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"message": exc.message, "code": exc.code}},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"error": {"message": "An internal server error occurred.", "code": "INTERNAL_SERVER_ERROR"}},
    )


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}
