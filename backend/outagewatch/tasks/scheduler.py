"""APScheduler setup for connecting to the store at startup, retrying with backoff."""

import logging
from datetime import datetime, timedelta, timezone

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.exc import OperationalError

from outagewatch.config import settings
from outagewatch.database import init_db

logger = logging.getLogger(__name__)

_scheduler: BackgroundScheduler | None = None


def backoff_seconds(attempt: int) -> float:
    """Delay before retry number `attempt` (1-based), doubling up to the cap."""
    delay = settings.db_connect_retry_seconds * 2 ** (attempt - 1)
    return min(delay, settings.db_connect_max_backoff_seconds)


def _schedule_connect(attempt: int, delay: float):
    _scheduler.add_job(
        _run_connect,
        "date",
        run_date=datetime.now(timezone.utc) + timedelta(seconds=delay),
        args=[attempt],
        id="db_connect",
        name="Database connection",
        replace_existing=True,
    )


def _run_connect(attempt: int):
    try:
        init_db()
    except OperationalError as e:
        max_attempts = settings.db_connect_max_attempts
        if max_attempts and attempt + 1 >= max_attempts:
            logger.error("Database unreachable after %d attempts, giving up: %s", attempt + 1, e)
            return
        delay = backoff_seconds(attempt + 1)
        logger.warning("Database connection failed (attempt %d), retrying in %.0fs: %s", attempt + 1, delay, e)
        if _scheduler is not None:
            _schedule_connect(attempt + 1, delay)
        return
    logger.info("Database connected")


def start_scheduler():
    global _scheduler
    _scheduler = BackgroundScheduler(timezone=timezone.utc)
    _scheduler.start()
    _schedule_connect(0, 0)
    logger.info("Scheduler started: connecting to database")


def stop_scheduler():
    global _scheduler
    if _scheduler:
        _scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
        _scheduler = None
