# newsdesk/scheduler.py
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED
import pytz

from .config import TIMEZONE, MORNING_INGEST_HOUR, EVENING_INGEST_HOUR, SWEEP_INTERVAL_MINUTES
from .services import Services
from .workflow import run_refresh, sweep_old_news
from .logging_setup import get_logger

logger = get_logger("newsdesk.scheduler")
scheduler = BackgroundScheduler()

def _job_listener(event):
    if event.exception:
        logger.error(
            "JOB_ERROR",
            exc_info=event.exception,
            extra={"handled": False, "job_id": event.job_id, "run_time": str(event.scheduled_run_time)}
        )
    else:
        logger.info(
            "JOB_OK",
            extra={"job_id": event.job_id, "run_time": str(event.scheduled_run_time)}
        )

def add_jobs(services: Services):
    tz = pytz.timezone(TIMEZONE)
    hours = f"{MORNING_INGEST_HOUR},{EVENING_INGEST_HOUR}"
    scheduler.add_job(
        run_refresh, CronTrigger(hour=hours, minute=0, timezone=tz),
        args=[services.store, services.orchestrator], id="refresh_news", replace_existing=True,
    )
    scheduler.add_job(
        sweep_old_news, IntervalTrigger(minutes=SWEEP_INTERVAL_MINUTES, timezone=tz),
        args=[services.store], id="sweep_old_news", replace_existing=True,
    )
    scheduler.add_listener(_job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)
    logger.info(f"Jobs registered: refresh_news at {hours} h, sweep every {SWEEP_INTERVAL_MINUTES} min ({TIMEZONE})")

def start_scheduler():
    if not scheduler.running:
        scheduler.start()
        logger.info("APScheduler started")

def shutdown_scheduler(wait: bool = False):
    if scheduler.running:
        scheduler.shutdown(wait=wait)
        logger.info("APScheduler stopped")
