"""
Run record persistence — one reconciliation_runs row per execution.

Called by the engine when a run starts and when it ends.  Best effort:
a failure here is logged and never changes the outcome of the run.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.constants import RunStatus
from app.core.logging import get_logger
from app.db.models.reconciliation_run import ReconciliationRun
from app.pipeline.context import ReconciliationContext

logger = get_logger(__name__)


async def record_run_started(
    session_factory: async_sessionmaker[AsyncSession],
    ctx: ReconciliationContext,
    started_at: datetime,
) -> None:
    """Insert the RUNNING row."""
    try:
        async with session_factory() as session:
            async with session.begin():
                session.add(ReconciliationRun(
                    id=uuid.UUID(ctx.execution_id),
                    job_name=ctx.job_name,
                    flow_type=str(ctx.flow_type),
                    variant=str(ctx.variant),
                    target_date=ctx.target_date,
                    status=RunStatus.RUNNING,
                    state=str(ctx.state),
                    started_at=started_at,
                ))
    except Exception as exc:
        logger.error(
            "Failed to record run start (non-fatal)",
            execution_id=ctx.execution_id,
            error=str(exc),
        )


async def record_run_finished(
    session_factory: async_sessionmaker[AsyncSession],
    ctx: ReconciliationContext,
    status: str,
    completed_at: datetime,
    duration_ms: int,
    error_message: str | None = None,
    summary: dict[str, Any] | None = None,
) -> None:
    """Update the row with final counters; create it if the start write was lost."""
    try:
        async with session_factory() as session:
            async with session.begin():
                run = await session.get(ReconciliationRun, uuid.UUID(ctx.execution_id))
                if run is None:
                    run = ReconciliationRun(
                        id=uuid.UUID(ctx.execution_id),
                        job_name=ctx.job_name,
                        flow_type=str(ctx.flow_type),
                        variant=str(ctx.variant),
                        target_date=ctx.target_date,
                    )
                    session.add(run)

                run.status = status
                run.state = str(ctx.state)
                run.total_listed = len(ctx.shipment_ids)
                run.valid_found = len(ctx.valid)
                run.processed = ctx.processed
                run.succeeded = ctx.succeeded
                run.failed = len(ctx.processing_errors)
                run.skipped = ctx.skipped
                run.completed_at = completed_at
                run.duration_ms = duration_ms
                run.error_message = error_message
                run.settings_snapshot = ctx.settings.describe() if ctx.settings else {}
                run.summary = summary or ctx.to_summary_dict()

        logger.info(
            "Run record saved",
            execution_id=ctx.execution_id,
            status=status,
            state=str(ctx.state),
        )
    except Exception as exc:
        logger.error(
            "Failed to record run result (non-fatal)",
            execution_id=ctx.execution_id,
            error=str(exc),
        )
