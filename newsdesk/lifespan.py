# newsdesk/lifespan.py
from contextlib import asynccontextmanager
import os

from fastapi import FastAPI

from .logging_setup import get_logger
from .scheduler import add_jobs, start_scheduler, shutdown_scheduler
from .store import API_KEY_KEY

logger = get_logger("newsdesk.lifespan")

SCHEDULER_ENABLED = os.getenv("SCHEDULER_ENABLED", "1") not in ("0", "false", "False")

@asynccontextmanager
async def lifespan(app: FastAPI):
    services = app.state.services
    logger.info("APP_STARTUP", extra={"scheduler": SCHEDULER_ENABLED})
    services.store.init_db()

    # a key saved through PUT /prefs/api-key outlives restarts; the environment wins when set
    stored_key = services.store.get_setting(API_KEY_KEY)
    if stored_key and not services.generation.is_configured():
        services.generation.reconfigure(stored_key)

    if SCHEDULER_ENABLED and not getattr(app.state, "scheduler_started", False):
        add_jobs(services)
        start_scheduler()
        app.state.scheduler_started = True

    yield

    logger.info("APP_SHUTDOWN")
    if getattr(app.state, "scheduler_started", False):
        shutdown_scheduler(wait=False)
        app.state.scheduler_started = False
