"""
ListShipmentsStep — fetches the AWBs shipped on the target date.

fromdate and todate are both the target date.  A failed listing aborts
the run (api_error); an empty listing is a normal, quiet day.
"""

from __future__ import annotations

from app.core.constants import RunState
from app.core.logging import get_logger
from app.pipeline.context import ReconciliationContext, StepResult
from app.pipeline.step import PipelineStep

logger = get_logger(__name__)


class ListShipmentsStep(PipelineStep):
    """Populate ctx.shipment_ids in listing order."""

    name = "list_shipments"
    description = "List shipments for the target date"
    state = RunState.LISTING

    async def execute(self, ctx: ReconciliationContext) -> StepResult:
        started_at = self._now()

        awbs = await self.services.shipment_source.list_shipments(ctx.target_date, ctx.target_date)

        # Listing order is kept; a repeated AWB is only handled once
        ctx.shipment_ids = list(dict.fromkeys(awbs))

        if not ctx.shipment_ids:
            logger.info("No shipments found for date", target_date=ctx.target_date)
        else:
            await self._pause(self.services.lookup_pacing)

        return self._success(
            started_at,
            metadata={
                "target_date": ctx.target_date,
                "listed": len(awbs),
                "unique": len(ctx.shipment_ids),
            },
        )
