"""
ReconciliationEngine — the orchestrator that runs steps sequentially.

Responsibilities:
    - Hold the run lock (one run at a time)
    - Resolve the step sequence via FlowResolver
    - Execute each step with timing, logging and state transitions
    - On a systemic failure: error log entry, failure alert, ABORTED, re-raise
    - Write the run record (best effort)
    - Return a complete ReconciliationResult
"""

from __future__ import annotations

import contextlib
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any

import structlog

from app.core.constants import ErrorCategory, FlowType, RunState, RunStatus, StepStatus
from app.notifications.notifier import FailureAlert
from app.pipeline import db_persist
from app.pipeline.context import ReconciliationContext, StepResult
from app.pipeline.dates import normalize_execution_date
from app.pipeline.errors import PipelineError
from app.pipeline.flow_resolver import FlowResolver
from app.pipeline.services import ReconciliationServices
from app.pipeline.step import PipelineStep


@dataclass
class ReconciliationResult:
    """Final outcome of a reconciliation run."""

    execution_id: str
    execution_date: str
    status: str                     # RunStatus value
    state: str                      # RunState value
    flow_type: str
    total_listed: int = 0
    valid_found: int = 0
    processed: int = 0
    succeeded: int = 0
    skipped: int = 0
    success_rate: float = 0.0
    successes: list[dict[str, str]] = field(default_factory=list)
    errors: list[tuple[str, str]] = field(default_factory=list)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    total_duration_ms: int = 0
    step_results: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_context(
        cls,
        ctx: ReconciliationContext,
        status: str,
        started_at: datetime,
        completed_at: datetime,
    ) -> "ReconciliationResult":
        return cls(
            execution_id=ctx.execution_id,
            execution_date=ctx.target_date,
            status=status,
            state=str(ctx.state),
            flow_type=str(ctx.flow_type),
            total_listed=len(ctx.shipment_ids),
            valid_found=len(ctx.valid),
            processed=ctx.processed,
            succeeded=ctx.succeeded,
            skipped=ctx.skipped,
            success_rate=round(ctx.success_rate, 2),
            successes=[s.to_dict() for s in ctx.successes],
            errors=ctx.combined_errors,
            started_at=started_at,
            completed_at=completed_at,
            total_duration_ms=int((completed_at - started_at).total_seconds() * 1000),
            step_results=[sr.to_dict() for sr in ctx.step_results],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "execution_id": self.execution_id,
            "execution_date": self.execution_date,
            "status": self.status,
            "state": self.state,
            "flow_type": self.flow_type,
            "total_listed": self.total_listed,
            "valid_found": self.valid_found,
            "processed": self.processed,
            "succeeded": self.succeeded,
            "skipped": self.skipped,
            "success_rate": self.success_rate,
            "successes": self.successes,
            "errors": [{"shipment_id": awb, "reason": reason} for awb, reason in self.errors],
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_ms": self.total_duration_ms,
        }


class ReconciliationEngine:
    """
    Runs the reconciliation flow against a ReconciliationContext.

    Usage::

        engine = ReconciliationEngine(build_services(session_factory))
        result = await engine.run()                       # yesterday
        result = await engine.run(target_date="05-03-2025")

    A systemic failure is logged, alerted and re-raised; per-shipment
    failures end up in ``result.errors``.
    """

    def __init__(
        self,
        services: ReconciliationServices,
        flow_resolver: FlowResolver | None = None,
    ) -> None:
        self.services = services
        self.flow_resolver = flow_resolver or FlowResolver()
        self.logger = structlog.get_logger("pipeline.engine")

    async def run(
        self,
        target_date: str | date | None = None,
        flow_type: FlowType | str = FlowType.TWO_PHASE,
    ) -> ReconciliationResult:
        """
        Full reconciliation run for ``target_date`` (default: yesterday).

        Raises:
            ValueError: target_date is not a recognisable date.
            RunInProgressError: another run holds the lock.
            PipelineError / Exception: systemic failure, after alerting.
        """
        ctx = ReconciliationContext(
            job_name=self.services.job_name,
            target_date=normalize_execution_date(target_date, self.services.today()),
            flow_type=FlowType(flow_type),
            variant=self.services.variant,
        )

        lock = self.services.lock or contextlib.nullcontext()
        async with lock:
            return await self._run_locked(ctx)

    async def _run_locked(self, ctx: ReconciliationContext) -> ReconciliationResult:
        started_at = datetime.now(timezone.utc)
        log = self.logger.bind(
            execution_id=ctx.execution_id,
            target_date=ctx.target_date,
            flow_type=str(ctx.flow_type),
            variant=str(ctx.variant),
        )
        log.info("Reconciliation started")

        if self.services.session_factory is not None:
            await db_persist.record_run_started(self.services.session_factory, ctx, started_at)

        try:
            steps = self.flow_resolver.resolve(ctx.flow_type, self.services)
            await self.run_steps(ctx, steps)
        except Exception as exc:
            await self._handle_systemic_failure(ctx, exc, started_at, log)
            raise

        ctx.transition(RunState.DONE)
        completed_at = datetime.now(timezone.utc)
        result = ReconciliationResult.from_context(ctx, RunStatus.COMPLETED, started_at, completed_at)

        if self.services.session_factory is not None:
            await db_persist.record_run_finished(
                self.services.session_factory,
                ctx,
                status=RunStatus.COMPLETED,
                completed_at=completed_at,
                duration_ms=result.total_duration_ms,
            )

        log.info(
            "Reconciliation finished",
            total_listed=result.total_listed,
            valid_found=result.valid_found,
            processed=result.processed,
            succeeded=result.succeeded,
            skipped=result.skipped,
            duration_ms=result.total_duration_ms,
        )
        return result

    async def run_steps(
        self,
        ctx: ReconciliationContext,
        steps: list[PipelineStep],
    ) -> None:
        """
        Execute an ordered list of steps against a context.

        The first step that raises stops the run; its exception propagates
        after the step's rollback hook has run.
        """
        log = self.logger.bind(execution_id=ctx.execution_id, total_steps=len(steps))

        for index, step in enumerate(steps):
            step_number = index + 1
            step_log = log.bind(
                step_name=step.name,
                step_index=step_number,
                step_description=step.description,
            )

            await self.services.renew_lock()
            if step.state is not None:
                ctx.transition(step.state)

            step_log.info(f"Step {step_number}/{len(steps)}: {step.description}")
            started_at = datetime.now(timezone.utc)

            try:
                result = await step.execute(ctx)
            except Exception as exc:
                completed_at = datetime.now(timezone.utc)
                ctx.step_results.append(StepResult(
                    step_name=step.name,
                    status=StepStatus.FAILED,
                    started_at=started_at,
                    completed_at=completed_at,
                    duration_ms=int((completed_at - started_at).total_seconds() * 1000),
                    error=str(exc),
                ))
                step_log.error("Step failed, run stopping", error=str(exc))

                if isinstance(exc, PipelineError) and exc.step_name is None:
                    exc.step_name = step.name

                try:
                    await step.rollback(ctx)
                except Exception as rollback_exc:
                    step_log.warning("Rollback failed", error=str(rollback_exc))
                raise

            ctx.step_results.append(result)
            step_log.info(
                "Step completed",
                duration_ms=result.duration_ms,
                metadata=result.metadata,
            )

    # ─── Systemic failure ──────────────────────────────

    async def _handle_systemic_failure(
        self,
        ctx: ReconciliationContext,
        exc: Exception,
        started_at: datetime,
        log: structlog.BoundLogger,
    ) -> None:
        """One error-log entry and one alert per aborted run; never raises."""
        failed_in = str(ctx.state)
        ctx.transition(RunState.ABORTED)

        if isinstance(exc, PipelineError):
            category = exc.error_category
            step_name = exc.step_name
            details = dict(exc.details)
        else:
            category = ErrorCategory.CRON_FAILURE
            step_name = None
            details = {"exception_type": type(exc).__name__}

        details.update({
            "execution_id": ctx.execution_id,
            "step": step_name,
            "state": failed_in,
        })
        message = str(exc) or type(exc).__name__

        log.error("Reconciliation aborted", error=message, category=str(category), step=step_name)

        services = self.services
        try:
            await services.result_store.append_error(
                category,
                message,
                details=details,
                execution_date=ctx.target_date,
            )
        except Exception as log_exc:
            log.error("Failed to write error log entry", error=str(log_exc))

        try:
            email_settings = ctx.settings.email if ctx.settings else await services.settings_provider.load_email_settings()
        except Exception as settings_exc:
            email_settings = None
            log.warning("No e-mail settings for failure alert", error=str(settings_exc))

        if email_settings is not None:
            alert = FailureAlert(
                job_name=ctx.job_name,
                error_type=str(category),
                error_message=message,
                execution_date=ctx.target_date,
                total_shipments=len(ctx.shipment_ids),
                processed_shipments=ctx.processed,
                failed_shipments=len(ctx.processing_errors),
                details={"step": step_name, "state": failed_in},
                specific_errors=ctx.combined_errors,
            )
            try:
                await services.notifier.send_failure_alert(alert, email_settings)
            except Exception as alert_exc:
                log.error("Failed to send failure alert", error=str(alert_exc))

        if services.session_factory is not None:
            completed_at = datetime.now(timezone.utc)
            await db_persist.record_run_finished(
                services.session_factory,
                ctx,
                status=RunStatus.FAILED,
                completed_at=completed_at,
                duration_ms=int((completed_at - started_at).total_seconds() * 1000),
                error_message=message,
            )
