"""
SummarizeStep — success rate and the daily summary e-mail.

success rate = succeeded / processed (0 when nothing was processed).
At or above the threshold the summary goes out; below it nothing is
sent (a poor day is visible in the run record and logs).
"""

from __future__ import annotations

from app.core.constants import RunState
from app.core.logging import get_logger
from app.notifications.notifier import SummaryStats
from app.pipeline.context import ReconciliationContext, StepResult
from app.pipeline.step import PipelineStep

logger = get_logger(__name__)


def summary_stats(ctx: ReconciliationContext) -> SummaryStats:
    return SummaryStats(
        execution_date=ctx.target_date,
        total_listed=len(ctx.shipment_ids),
        valid_found=len(ctx.valid),
        processed=ctx.processed,
        succeeded=ctx.succeeded,
        failed_validation=len(ctx.invalid),
        failed_processing=len(ctx.processing_errors),
        skipped=ctx.skipped,
    )


class SummarizeStep(PipelineStep):
    name = "summarize"
    description = "Compute success rate and send the daily summary"
    state = RunState.SUMMARIZING

    async def execute(self, ctx: ReconciliationContext) -> StepResult:
        started_at = self._now()

        stats = summary_stats(ctx)
        ctx.success_rate = stats.success_rate

        if stats.processed and stats.success_rate >= self.services.success_threshold:
            ctx.summary_sent = await self.services.notifier.send_summary(stats, ctx.settings.email)
        else:
            logger.info(
                "Success rate below threshold, summary not sent",
                execution_id=ctx.execution_id,
                success_rate=round(stats.success_rate, 2),
                threshold=self.services.success_threshold,
            )

        return self._success(
            started_at,
            metadata={"success_rate": round(stats.success_rate, 2), "summary_sent": ctx.summary_sent},
        )
