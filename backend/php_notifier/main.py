"""Main FastAPI application for the PHP version notifier."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
import logging
from fastapi.responses import RedirectResponse

from php_notifier.core.db import init_db, bootstrap_db, new_session
from php_notifier.core.logging import setup_logging
from php_notifier.core.scheduler import get_scheduler, schedule_jobs_on_startup
from php_notifier.api import health, settings, php


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    setup_logging()
    logger = logging.getLogger(__name__)
    init_db()
    bootstrap_db()

    scheduler = get_scheduler()
    # Restore the email job from stored settings before starting the scheduler
    db = new_session()
    try:
        schedule_jobs_on_startup(scheduler, db)
    finally:
        db.close()
    scheduler.start()
    logger.info("APScheduler started")

    yield

    scheduler.shutdown()
    logger.info("APScheduler shutdown")


app = FastAPI(
    title="PHP Notifier API",
    description="Emails administrators about the PHP version status on a schedule",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# Mount health endpoints unversioned for infra probes (/health, /ready)
app.include_router(health.router)

app.include_router(settings.router, prefix="/api/v1")
app.include_router(php.router, prefix="/api/v1")


@app.get("/")
async def root() -> RedirectResponse:
    """Redirect root to Swagger UI."""
    return RedirectResponse(url="/api/docs")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8080)
