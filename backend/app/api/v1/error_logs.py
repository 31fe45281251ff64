"""Error log viewer."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db
from app.api.schemas.reconciliation import ErrorLogListResponse
from app.core.constants import ErrorCategory
from app.repositories import error_logs as error_log_repository

router = APIRouter(prefix="/error-logs", tags=["Error Logs"])


@router.get("", response_model=ErrorLogListResponse)
async def list_error_logs(
    from_date: date | None = None,
    to_date: date | None = None,
    error_type: ErrorCategory | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Error-log entries, newest first."""
    entries = await error_log_repository.list_errors(
        db,
        from_date=from_date,
        to_date=to_date,
        error_type=error_type,
        limit=limit,
    )
    return {"data": entries, "total": len(entries)}
