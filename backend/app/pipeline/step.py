"""
PipelineStep — abstract base class for all reconciliation steps.

The engine calls execute() and records timing, logging, state and
errors automatically.  Steps only need to implement the business logic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from app.core.constants import RunState, StepStatus
from app.pipeline.context import ReconciliationContext, StepResult

if TYPE_CHECKING:
    from app.pipeline.services import ReconciliationServices


class PipelineStep(ABC):
    """
    One stage of a reconciliation run.

    Required on subclasses:
        - name (str)          : unique identifier, e.g. "list_shipments"
        - description (str)   : human-readable label for logs
        - execute(ctx)        : the actual business logic

    Optional attribute:
        - state               : run state entered when the step starts

    Optional hooks:
        - rollback(ctx)       : cleanup on failure

    A step raises a PipelineError subclass for a systemic failure; the
    engine aborts the run.  Per-shipment problems are recorded on the
    context and never raised.
    """

    name: str = "unnamed_step"
    description: str = "No description"
    state: RunState | None = None

    def __init__(self, services: "ReconciliationServices") -> None:
        self.services = services

    @abstractmethod
    async def execute(self, ctx: ReconciliationContext) -> StepResult:
        """Run the step's logic.  Must return a StepResult."""
        ...

    async def rollback(self, ctx: ReconciliationContext) -> None:
        """Optional cleanup when this step fails."""
        pass

    # ─── Helpers available to all steps ────────────────

    async def _pause(self, seconds: float) -> None:
        """Rate-limit pause between partner calls; keeps the run lock alive."""
        if seconds > 0:
            await self.services.sleep(seconds)
        await self.services.renew_lock()

    def _success(
        self,
        started_at: datetime,
        metadata: dict[str, Any] | None = None,
    ) -> StepResult:
        """Build a successful StepResult with timing."""
        now = datetime.now(timezone.utc)
        duration_ms = int((now - started_at).total_seconds() * 1000)
        return StepResult(
            step_name=self.name,
            status=StepStatus.COMPLETED,
            started_at=started_at,
            completed_at=now,
            duration_ms=duration_ms,
            metadata=metadata or {},
        )

    def _now(self) -> datetime:
        """UTC-aware now."""
        return datetime.now(timezone.utc)
