"""
Reconciliation endpoints — manual trigger.

The run executes inline and returns its summary; long backfills should
go through the Celery task ``run_reconciliation_for_date`` instead.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import get_reconciliation_engine
from app.api.schemas.reconciliation import RunRequest, RunResponse
from app.core.config import settings
from app.core.constants import ErrorCategory
from app.core.logging import get_logger
from app.pipeline.dates import parse_execution_date
from app.pipeline.engine import ReconciliationEngine
from app.pipeline.errors import PipelineError, RunInProgressError

logger = get_logger(__name__)

router = APIRouter(prefix="/reconciliation", tags=["Reconciliation"])


@router.post("/run", response_model=RunResponse)
async def run_reconciliation(
    body: RunRequest | None = None,
    engine: ReconciliationEngine = Depends(get_reconciliation_engine),
) -> dict:
    """Run the reconciliation for ``date`` (default: yesterday)."""
    body = body or RunRequest()
    flow_type = body.flow_type or settings.MANUAL_RUN_FLOW

    if body.date:
        try:
            parse_execution_date(body.date)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from None

    try:
        result = await engine.run(target_date=body.date, flow_type=flow_type)
    except RunInProgressError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from None
    except PipelineError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": str(exc),
                "error_type": str(exc.error_category),
                "step": exc.step_name,
            },
        ) from None
    except Exception as exc:
        logger.error("Manual reconciliation failed", error=str(exc), error_type=type(exc).__name__)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": str(exc), "error_type": str(ErrorCategory.CRON_FAILURE), "step": None},
        ) from None

    return result.to_dict()
