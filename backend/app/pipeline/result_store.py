"""
ResultStore — durable outcomes of a reconciliation run.

Each call opens its own session and commits it, so one failed write
never poisons the next.  Database errors surface as PersistenceError.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.core.constants import ErrorCategory
from app.core.logging import get_logger
from app.pipeline.errors import PersistenceError
from app.pipeline.models import UnderwritingResult
from app.repositories import error_logs as error_log_repository
from app.repositories import shipments as shipment_repository

logger = get_logger(__name__)


class SqlResultStore:
    """Shipment upserts and error-log appends over SQLAlchemy."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        job_name: str | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.job_name = job_name or settings.RECONCILIATION_JOB_NAME

    async def upsert(
        self,
        shipment_id: str,
        supplier_name: str | None,
        destination: str | None,
        result: UnderwritingResult,
    ) -> None:
        """Record a successful submission; idempotent by shipment id."""
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    await shipment_repository.upsert_shipment(
                        session,
                        shipment_id=shipment_id,
                        supplier_name=supplier_name,
                        destination_country=destination,
                        policy_id=result.policy_id or "",
                        amount=result.amount,
                        currency=result.currency,
                        document_url=result.document_url,
                    )
        except SQLAlchemyError as exc:
            raise PersistenceError(
                f"Failed to save shipment {shipment_id}: {exc}",
                details={"shipment_id": shipment_id, "policy_id": result.policy_id},
            ) from exc

        logger.info("Shipment record saved", awb=shipment_id, policy_id=result.policy_id)

    async def append_error(
        self,
        category: ErrorCategory | str,
        message: str,
        details: dict[str, Any] | None = None,
        execution_date: str | None = None,
        shipment_id: str | None = None,
    ) -> None:
        """Append one entry to the error log."""
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    await error_log_repository.append_error(
                        session,
                        job_name=self.job_name,
                        error_type=str(category),
                        error_message=message,
                        error_details=details,
                        execution_date=execution_date,
                        shipment_id=shipment_id,
                    )
        except SQLAlchemyError as exc:
            raise PersistenceError(
                f"Failed to write error log entry: {exc}",
                details={"category": str(category), "shipment_id": shipment_id},
            ) from exc
