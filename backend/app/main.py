"""FastAPI application: manual reconciliation trigger and the policy viewer."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1 import error_logs, reconciliation, shipments
from app.core.config import settings
from app.core.logging import get_logger, setup_logging
from app.db.session import engine

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging("DEBUG" if settings.APP_ENV == "development" else "INFO")
    logger = get_logger("startup")
    logger.info(
        "API starting",
        env=settings.APP_ENV,
        variant=str(settings.RECONCILIATION_VARIANT),
        schedule=f"{settings.RECONCILIATION_SCHEDULE_HOUR:02d}:{settings.RECONCILIATION_SCHEDULE_MINUTE:02d}",
        timezone=settings.RECONCILIATION_TIMEZONE,
    )
    yield
    await engine.dispose()
    logger.info("API stopped")


def _cors_origins() -> list[str]:
    return [origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()]


app = FastAPI(
    title="Shipment Insurance Reconciliation API",
    description="Daily shipment insurance reconciliation: manual trigger and policy viewer",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT"],
    allow_headers=["*"],
)

for router in (reconciliation.router, shipments.router, error_logs.router):
    app.include_router(router, prefix=API_PREFIX)


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    return {"status": "ok", "env": settings.APP_ENV}
