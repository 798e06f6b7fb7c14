import logging
import traceback

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlmodel import Session

from config import settings
from db import engine
from reminders import dispatch_reminders
from slack_client import get_chat

logger = logging.getLogger(__name__)


def run_scheduled_dispatch():
    """Scheduled entry point for the reminder dispatch."""
    try:
        with Session(engine) as session:
            dispatch_reminders(session, get_chat())
    except Exception as e:
        # Keep the scheduler alive; the next slot will try again
        logger.error(f"Scheduled reminder dispatch failed: {str(e)}")
        logger.error(traceback.format_exc())


def setup_scheduler() -> BackgroundScheduler:
    """Register one weekday cron job per configured reminder time and start the scheduler."""
    scheduler = BackgroundScheduler(timezone=settings.org_tz)

    for hour, minute in settings.reminder_times:
        scheduler.add_job(
            run_scheduled_dispatch,
            CronTrigger(day_of_week=settings.REMINDER_DAYS, hour=hour, minute=minute, timezone=settings.org_tz),
            id=f"timesheet_reminders_{hour:02d}{minute:02d}",
            replace_existing=True,
        )
        logger.info(f"Scheduled timesheet reminders at {hour:02d}:{minute:02d} ({settings.ORG_TIMEZONE})")

    scheduler.start()
    logger.info("Scheduler started")
    return scheduler
