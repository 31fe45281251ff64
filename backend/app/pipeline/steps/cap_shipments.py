"""
CapShipmentsStep — keeps the first ``max_shipments`` valid shipments.

Order is the listing order, so the same listing always yields the same
work list.  The remainder is counted as skipped.
"""

from __future__ import annotations

from app.core.constants import RunState
from app.core.logging import get_logger
from app.pipeline.context import ReconciliationContext, StepResult
from app.pipeline.step import PipelineStep

logger = get_logger(__name__)


class CapShipmentsStep(PipelineStep):
    name = "cap_shipments"
    description = "Limit valid shipments to the configured maximum"
    state = RunState.CAPPING

    async def execute(self, ctx: ReconciliationContext) -> StepResult:
        started_at = self._now()
        cap = ctx.settings.max_shipments

        ctx.to_process = ctx.valid[:cap]
        ctx.skipped = len(ctx.valid) - len(ctx.to_process)

        if ctx.skipped:
            logger.info(
                "Valid shipments over the cap were skipped",
                execution_id=ctx.execution_id,
                cap=cap,
                skipped=ctx.skipped,
            )

        return self._success(
            started_at,
            metadata={"cap": cap, "to_process": len(ctx.to_process), "skipped": ctx.skipped},
        )
