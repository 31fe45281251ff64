"""
Celery configuration for the reconciliation worker and beat.

Loaded by `celery_app.config_from_object("celeryconfig")` in app/tasks/__init__.py.
Broker/result-backend URLs, schedule and timezone come from app settings,
which read environment variables and default to localhost for local dev.
"""

from app.core.config import settings
from app.ingestion.scheduler import build_beat_schedule

# ═══════════════════════════════════════════════════════════
#  Broker & Result Backend
# ═══════════════════════════════════════════════════════════

broker_url = settings.CELERY_BROKER_URL
result_backend = settings.CELERY_RESULT_BACKEND

# ═══════════════════════════════════════════════════════════
#  Serialization: JSON only (no pickle)
# ═══════════════════════════════════════════════════════════

task_serializer = "json"
result_serializer = "json"
accept_content = ["json"]

# ═══════════════════════════════════════════════════════════
#  Timezone: beat fires at local wall-clock time
# ═══════════════════════════════════════════════════════════

timezone = settings.RECONCILIATION_TIMEZONE
enable_utc = True

# ═══════════════════════════════════════════════════════════
#  Task Execution
# ═══════════════════════════════════════════════════════════

# Acknowledge tasks AFTER they complete.  A run lost with its worker is not
# redelivered: submissions already made would be sent to the partner again.
task_acks_late = True
task_reject_on_worker_lost = False

# One run at a time per worker process
worker_prefetch_multiplier = 1

# A paced run over a few hundred shipments takes a while; the run lock
# TTL matches the hard limit
task_time_limit = settings.RUN_LOCK_TIMEOUT_SECONDS
task_soft_time_limit = task_time_limit - 60

# The next scheduled run is the retry
task_max_retries = 0

# ═══════════════════════════════════════════════════════════
#  Result Expiry: auto-clean after 24h
# ═══════════════════════════════════════════════════════════

result_expires = 86400

# ═══════════════════════════════════════════════════════════
#  Worker Settings
# ═══════════════════════════════════════════════════════════

worker_max_tasks_per_child = 50
worker_send_task_events = False
task_send_sent_event = False

# ═══════════════════════════════════════════════════════════
#  Task Routes
# ═══════════════════════════════════════════════════════════
#   celery -A app.tasks worker -Q reconciliation
#   celery -A app.tasks beat

task_routes = {
    "app.tasks.reconciliation_tasks.*": {"queue": "reconciliation"},
}

task_default_queue = "reconciliation"

# ═══════════════════════════════════════════════════════════
#  Beat Schedule
# ═══════════════════════════════════════════════════════════

beat_schedule = build_beat_schedule()
