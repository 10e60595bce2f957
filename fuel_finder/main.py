"""
Point d'entree FastAPI / FastAPI entry point.
NSW Fuel Finder - prix des carburants a proximite et tendances / nearby fuel prices and trends.
"""

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from fuel_finder.api import api_router
from fuel_finder.config import settings
from fuel_finder.database import async_session, engine, init_db, log_history_count
from fuel_finder.rate_limit import limiter
from fuel_finder.services.fuel_api_client import FuelApiClient, FuelApiConfig
from fuel_finder.services.sync_scheduler import ScheduleConfig, SyncScheduler
from fuel_finder.services.sync_service import build_sync_service
from fuel_finder.services.sync_worker import SyncWorker

logger = logging.getLogger("fuel_finder")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialisation et fermeture / Startup and shutdown."""
    # Creer les tables au demarrage / Create tables on startup
    await init_db()
    await log_history_count()

    feed_client = None
    worker = None
    worker_task = None
    if settings.SYNC_ENABLED:
        feed_client = FuelApiClient(FuelApiConfig.from_settings(settings))
        service = build_sync_service(feed_client, engine, async_session, settings)
        worker = SyncWorker(service, SyncScheduler(ScheduleConfig.from_settings(settings)))
        worker_task = asyncio.create_task(worker.run(), name="fuel-data-sync")
    else:
        logger.info("Fuel data sync disabled (SYNC_ENABLED=false)")
    app.state.sync_worker = worker

    yield

    # Arret : interrompre l'attente du worker / Shutdown: interrupt the worker's wait
    if worker is not None:
        worker.stop()
        await worker_task
    if feed_client is not None:
        await feed_client.aclose()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Prix des carburants NSW / NSW fuel prices, nearby search and trends",
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS : consultation en lecture seule / CORS: read-only consumption
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type", "X-Requested-With"],
)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Ajoute un X-Request-ID unique a chaque requete / Add unique X-Request-ID to each request."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request.state.request_id = request_id
        response: Response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


app.add_middleware(RequestIDMiddleware)


# Routes API
app.include_router(api_router)


# Sante de l'API / API health check
@app.get("/api/")
async def api_health():
    """Health check (accessible en dev et prod)."""
    return {"app": settings.APP_NAME, "version": settings.APP_VERSION, "status": "running"}


@app.get("/")
async def root():
    """Health check (racine)."""
    return {"app": settings.APP_NAME, "version": settings.APP_VERSION, "status": "running"}


# Logging JSON structure en production / Structured JSON logging in production
if not settings.DEBUG:
    import json

    class JSONFormatter(logging.Formatter):
        def format(self, record):
            log_entry = {
                "timestamp": self.formatTime(record),
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage(),
            }
            if record.exc_info and record.exc_info[0]:
                log_entry["exception"] = self.formatException(record.exc_info)
            return json.dumps(log_entry)

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    logging.root.handlers = [handler]
    logging.root.setLevel(logging.INFO)
