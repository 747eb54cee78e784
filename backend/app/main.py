import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.auth.revocation import close_redis
from app.config import settings
from app.database import engine
from app.middleware.exceptions import register_exception_handlers
from app.routers import admin, auth, companies, documents, health, loads
from app.routers.fleet import drivers_router, trailers_router, trucks_router

logger = logging.getLogger("freightlink")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan: release Redis and the DB pool on shutdown."""
    logger.info("FreightLink API starting (%s)", settings.environment)
    try:
        yield
    finally:
        await close_redis()
        await engine.dispose()
        logger.info("FreightLink API stopped")


app = FastAPI(
    title="FreightLink",
    description="Logistics marketplace: suppliers post loads, transporters haul them",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
# Public
app.include_router(health.router)
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])

# Authenticated
app.include_router(companies.router, prefix="/api/companies", tags=["companies"])
app.include_router(drivers_router, prefix="/api/drivers", tags=["fleet"])
app.include_router(trucks_router, prefix="/api/trucks", tags=["fleet"])
app.include_router(trailers_router, prefix="/api/trailers", tags=["fleet"])
app.include_router(documents.router, prefix="/api/documents", tags=["documents"])
app.include_router(loads.router, prefix="/api/loads", tags=["loads"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
