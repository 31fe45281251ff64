"""
Error log repository — append-only access to reconciliation_error_logs.

Repository rules:
- Pure data-access logic only
- Every function receives AsyncSession explicitly
- Functions flush, but never commit
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.error_log import ErrorLog


async def append_error(
    db: AsyncSession,
    *,
    job_name: str,
    error_type: str,
    error_message: str,
    error_details: dict[str, Any] | None = None,
    execution_date: str | None = None,
    shipment_id: str | None = None,
) -> ErrorLog:
    """Add one error entry."""
    entry = ErrorLog(
        job_name=job_name,
        error_type=error_type,
        error_message=error_message,
        error_details=error_details or {},
        execution_date=execution_date,
        shipment_id=shipment_id,
    )
    db.add(entry)
    await db.flush()
    return entry


async def list_errors(
    db: AsyncSession,
    *,
    from_date: date | None = None,
    to_date: date | None = None,
    error_type: str | None = None,
    limit: int = 100,
) -> list[ErrorLog]:
    """Entries newest first, filtered by creation day (inclusive) and category."""
    stmt = select(ErrorLog).order_by(ErrorLog.created_at.desc(), ErrorLog.id.desc())

    if from_date is not None:
        stmt = stmt.where(ErrorLog.created_at >= datetime.combine(from_date, time.min, tzinfo=timezone.utc))
    if to_date is not None:
        next_day = datetime.combine(to_date + timedelta(days=1), time.min, tzinfo=timezone.utc)
        stmt = stmt.where(ErrorLog.created_at < next_day)
    if error_type:
        stmt = stmt.where(ErrorLog.error_type == error_type)

    result = await db.execute(stmt.limit(limit))
    return list(result.scalars().all())
