"""
SinglePassStep — legacy ad hoc flow.

Caps the RAW listing to ``max_shipments`` first, then validates and
insures each shipment in one pass.  Valid shipments beyond the first N
listed are never looked at; no summary e-mail is sent.
"""

from __future__ import annotations

from app.core.constants import RunState
from app.core.logging import get_logger
from app.pipeline.context import ReconciliationContext, StepResult
from app.pipeline.step import PipelineStep
from app.pipeline.steps.process_shipments import process_one
from app.pipeline.steps.validate_shipments import validate_one

logger = get_logger(__name__)


class SinglePassStep(PipelineStep):
    name = "single_pass"
    description = "Validate and insure the first N listed shipments"
    state = RunState.PROCESSING

    async def execute(self, ctx: ReconciliationContext) -> StepResult:
        started_at = self._now()
        cap = ctx.settings.max_shipments

        batch = ctx.shipment_ids[:cap]
        ctx.skipped = len(ctx.shipment_ids) - len(batch)

        for awb in batch:
            verdict = await validate_one(self, ctx, awb)
            ctx.record_verdict(verdict)
            if verdict.valid:
                ctx.to_process.append(verdict)
                await process_one(self, ctx, verdict)

        ctx.success_rate = (ctx.succeeded / ctx.processed) * 100 if ctx.processed else 0.0

        return self._success(
            started_at,
            metadata={
                "cap": cap,
                "examined": len(batch),
                "valid": len(ctx.valid),
                "processed": ctx.processed,
                "succeeded": ctx.succeeded,
            },
        )
