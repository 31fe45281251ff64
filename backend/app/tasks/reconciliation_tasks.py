"""
Celery tasks — daily shipment reconciliation.

Wires the ReconciliationEngine into the Celery task system.  Each task
builds a fresh DB engine (asyncio.run() gives every task its own event
loop) and disposes it afterwards.
"""

import asyncio

import structlog

from app.core.config import settings
from app.core.constants import FlowType, RunStatus
from app.core.logging import setup_logging
from app.db.session import make_session_factory
from app.pipeline.engine import ReconciliationEngine
from app.pipeline.errors import RunInProgressError
from app.pipeline.services import build_services
from app.tasks import celery_app

logger = structlog.get_logger("tasks.reconciliation")


async def _run(target_date: str | None, flow_type: str) -> dict:
    session_factory, engine = make_session_factory()
    try:
        reconciliation = ReconciliationEngine(build_services(session_factory))
        result = await reconciliation.run(target_date=target_date, flow_type=flow_type)
        return result.to_dict()
    finally:
        await engine.dispose()


def _execute(task_log, target_date: str | None, flow_type: str) -> dict:
    """Run once; report failures as a result instead of crashing the worker."""
    try:
        result = asyncio.run(_run(target_date, flow_type))
    except RunInProgressError as exc:
        task_log.warning("Reconciliation already running, skipped", error=str(exc))
        return {"status": "SKIPPED", "error": str(exc)}
    except Exception as exc:
        # Already logged to the error table and alerted by the engine
        task_log.error("Reconciliation task failed", error=str(exc), error_type=type(exc).__name__)
        return {"status": RunStatus.FAILED, "error": str(exc)}

    task_log.info(
        "Reconciliation task finished",
        execution_date=result["execution_date"],
        processed=result["processed"],
        succeeded=result["succeeded"],
        duration_ms=result["duration_ms"],
    )
    return result


@celery_app.task(bind=True, name="app.tasks.reconciliation_tasks.run_daily_reconciliation")
def run_daily_reconciliation(self):
    """Scheduled run for yesterday (reconciliation timezone)."""
    setup_logging()
    task_log = logger.bind(task_id=self.request.id, trigger="schedule")
    task_log.info("Daily reconciliation started")
    return _execute(task_log, None, FlowType.TWO_PHASE)


@celery_app.task(bind=True, name="app.tasks.reconciliation_tasks.run_reconciliation_for_date")
def run_reconciliation_for_date(self, target_date: str | None = None, flow_type: str | None = None):
    """Manual run for a given DD-MM-YYYY / YYYY-MM-DD date."""
    setup_logging()
    flow_type = flow_type or settings.MANUAL_RUN_FLOW
    task_log = logger.bind(task_id=self.request.id, trigger="manual", target_date=target_date, flow_type=flow_type)
    task_log.info("Manual reconciliation started")
    return _execute(task_log, target_date, flow_type)
