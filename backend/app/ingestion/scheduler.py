"""
Scheduler — builds the Celery Beat schedule for the reconciliation job.
"""

from celery.schedules import crontab

from app.core.config import settings

DAILY_TASK = "app.tasks.reconciliation_tasks.run_daily_reconciliation"


def build_beat_schedule(hour: int | None = None, minute: int | None = None) -> dict:
    """
    Beat schedule with one daily reconciliation entry.

    Hour/minute are wall-clock in the Celery ``timezone`` (see celeryconfig),
    which is the reconciliation timezone.
    """
    hour = settings.RECONCILIATION_SCHEDULE_HOUR if hour is None else hour
    minute = settings.RECONCILIATION_SCHEDULE_MINUTE if minute is None else minute

    return {
        "reconciliation-daily": {
            "task": DAILY_TASK,
            "schedule": crontab(hour=hour, minute=minute),
            "options": {"queue": "reconciliation"},
        },
    }
