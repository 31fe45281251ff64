"""
ProcessShipmentsStep — insure the capped shipments one by one.

Per shipment: map → submit → (on success) upsert, then pause.  Every
failure stays with its shipment and lands in ctx.processing_errors.  A
failed upsert is also written to the error log as a database_error.
"""

from __future__ import annotations

from app.core.constants import ErrorCategory, RunState
from app.core.logging import get_logger
from app.pipeline.context import ReconciliationContext, ShipmentSuccess, StepResult
from app.pipeline.errors import PersistenceError, UnderwritingError
from app.pipeline.models import ValidationVerdict
from app.pipeline.step import PipelineStep

logger = get_logger(__name__)


class ProcessShipmentsStep(PipelineStep):
    """Submit ctx.to_process to the underwriting partner."""

    name = "process_shipments"
    description = "Submit shipments for insurance and save policies"
    state = RunState.PROCESSING

    async def execute(self, ctx: ReconciliationContext) -> StepResult:
        started_at = self._now()

        for verdict in ctx.to_process:
            await process_one(self, ctx, verdict)

        logger.info(
            "Processing finished",
            execution_id=ctx.execution_id,
            processed=ctx.processed,
            succeeded=ctx.succeeded,
            failed=len(ctx.processing_errors),
        )

        return self._success(
            started_at,
            metadata={
                "processed": ctx.processed,
                "succeeded": ctx.succeeded,
                "failed": len(ctx.processing_errors),
            },
        )


async def process_one(step: PipelineStep, ctx: ReconciliationContext, verdict: ValidationVerdict) -> bool:
    """
    Insure one accepted shipment.  Returns True on success; never raises
    for shipment-level problems.
    """
    services = step.services
    awb = verdict.shipment_id
    shipment = verdict.shipment
    customer = verdict.customer
    log = logger.bind(execution_id=ctx.execution_id, awb=awb)

    try:
        try:
            payload = services.payload_builder.build(shipment, customer)
            result = await services.underwriting_client.submit(payload)
        except UnderwritingError as exc:
            log.warning("Underwriting submission failed", error=str(exc))
            ctx.add_processing_error(awb, str(exc))
            return False
        except ValueError as exc:
            log.warning("Payload could not be built", error=str(exc))
            ctx.add_processing_error(awb, f"Invalid shipment data: {exc}")
            return False

        if not result.is_success:
            log.warning("Underwriting did not issue a policy", status=result.status, policy_id=result.policy_id)
            ctx.add_processing_error(
                awb, f"Underwriting returned status '{result.status}' without a policy",
            )
            return False

        try:
            await services.result_store.upsert(
                awb,
                customer.company_name if customer else None,
                shipment.destination_country,
                result,
            )
        except PersistenceError as exc:
            log.error("Failed to save shipment record", policy_id=result.policy_id, error=str(exc))
            ctx.add_processing_error(awb, f"Failed to save policy {result.policy_id}: {exc}")
            await _log_persistence_failure(services, ctx, awb, result.policy_id, exc)
            return False

        ctx.successes.append(ShipmentSuccess(shipment_id=awb, policy_id=result.policy_id))
        log.info("Shipment insured", policy_id=result.policy_id)
        return True

    finally:
        ctx.processed += 1
        await step._pause(services.submission_pacing)


async def _log_persistence_failure(services, ctx, awb, policy_id, exc) -> None:
    try:
        await services.result_store.append_error(
            ErrorCategory.DATABASE_ERROR,
            f"Failed to save shipment record: {exc}",
            details={"execution_id": ctx.execution_id, "policy_id": policy_id},
            execution_date=ctx.target_date,
            shipment_id=awb,
        )
    except PersistenceError as log_exc:
        logger.error("Failed to write error log entry", awb=awb, error=str(log_exc))
