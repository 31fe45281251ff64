"""
Celery application for the reconciliation worker and beat.

    celery -A app.tasks worker -Q reconciliation
    celery -A app.tasks beat
"""

from celery import Celery
from celery.signals import setup_logging as celery_setup_logging

from app.core.config import settings
from app.core.logging import setup_logging

celery_app = Celery("reconciliation")
celery_app.config_from_object("celeryconfig")
celery_app.autodiscover_tasks(["app.tasks.reconciliation_tasks"])


@celery_setup_logging.connect
def _configure_worker_logging(**kwargs) -> None:
    # Keeps Celery from installing its own root handlers over structlog
    setup_logging("DEBUG" if settings.APP_ENV == "development" else "INFO")
