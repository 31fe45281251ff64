"""
ValidateShipmentsStep — business rules over every listed shipment.

For each AWB, in listing order and one at a time:
    fetch detail → pause → fetch customer → pause → validate.

The pause follows every lookup, failed or not.
A lookup that blows up rejects that shipment with ``lookup_failed``;
the rest of the run carries on.
"""

from __future__ import annotations

from app.core.constants import RejectionReason, RunState
from app.core.logging import get_logger
from app.pipeline.context import ReconciliationContext, StepResult
from app.pipeline.models import ValidationVerdict
from app.pipeline.step import PipelineStep

logger = get_logger(__name__)


class ValidateShipmentsStep(PipelineStep):
    """Split ctx.shipment_ids into ctx.valid / ctx.invalid."""

    name = "validate_shipments"
    description = "Fetch details and apply business rules"
    state = RunState.VALIDATING

    async def execute(self, ctx: ReconciliationContext) -> StepResult:
        started_at = self._now()

        for awb in ctx.shipment_ids:
            verdict = await validate_one(self, ctx, awb)
            ctx.record_verdict(verdict)

        logger.info(
            "Validation finished",
            execution_id=ctx.execution_id,
            valid=len(ctx.valid),
            invalid=len(ctx.invalid),
        )

        reasons: dict[str, int] = {}
        for verdict in ctx.invalid:
            reasons[str(verdict.reason)] = reasons.get(str(verdict.reason), 0) + 1

        return self._success(
            started_at,
            metadata={"valid": len(ctx.valid), "invalid": len(ctx.invalid), "reasons": reasons},
        )


async def validate_one(step: PipelineStep, ctx: ReconciliationContext, awb: str) -> ValidationVerdict:
    """Look up and validate one shipment; never raises."""
    services = step.services
    log = logger.bind(execution_id=ctx.execution_id, awb=awb)

    try:
        shipment = await _paced_lookup(step, services.shipment_source.get_detail(awb))
        customer = await _paced_lookup(step, services.shipment_source.get_customer(shipment.customer_id))

        verdict = services.validator.validate(shipment, customer, ctx.settings)
    except Exception as exc:
        log.warning("Shipment lookup failed", error=str(exc))
        return ValidationVerdict(
            shipment_id=awb,
            valid=False,
            reason=RejectionReason.LOOKUP_FAILED,
            message=f"Lookup failed: {exc}",
        )

    if verdict.valid:
        log.info("Shipment valid")
    else:
        log.info("Shipment rejected", reason=str(verdict.reason), message=verdict.message)
    return verdict


async def _paced_lookup(step: PipelineStep, call):
    try:
        return await call
    finally:
        await step._pause(step.services.lookup_pacing)
