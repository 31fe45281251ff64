"""
ReconciliationServices — everything a run talks to, wired explicitly.

The engine and its steps receive this object instead of reaching for
module-level clients, so tests swap in fakes by construction.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.core.constants import PipelineVariant
from app.ingestion.shipment_source import LogisticsShipmentSource
from app.notifications.notifier import Notifier
from app.pipeline.dates import today_in
from app.pipeline.locking import LocalRunLock, RedisRunLock
from app.pipeline.result_store import SqlResultStore
from app.repositories.settings import SqlSettingsProvider
from app.submission.payload_builder import PayloadBuilder, get_payload_builder
from app.submission.underwriting_client import UnderwritingClient
from app.validation.business_rules import ShipmentValidator, get_validator


@dataclass
class ReconciliationServices:
    settings_provider: Any
    shipment_source: Any
    underwriting_client: Any
    result_store: Any
    notifier: Any
    validator: ShipmentValidator
    payload_builder: PayloadBuilder
    job_name: str = field(default_factory=lambda: settings.RECONCILIATION_JOB_NAME)
    variant: PipelineVariant = PipelineVariant.CIP_WINDOW
    lookup_pacing: float = 0.5
    submission_pacing: float = 1.0
    success_threshold: float = 80.0
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    today: Callable[[], date] = today_in
    lock: Any = None
    session_factory: async_sessionmaker[AsyncSession] | None = None   # run records

    async def renew_lock(self) -> None:
        if self.lock is not None:
            await self.lock.renew()


def build_services(
    session_factory: async_sessionmaker[AsyncSession],
    variant: PipelineVariant | None = None,
    distributed_lock: bool = True,
) -> ReconciliationServices:
    """Production wiring from app settings."""
    variant = PipelineVariant(variant or settings.RECONCILIATION_VARIANT)
    return ReconciliationServices(
        settings_provider=SqlSettingsProvider(session_factory, variant=variant),
        shipment_source=LogisticsShipmentSource(),
        underwriting_client=UnderwritingClient(),
        result_store=SqlResultStore(session_factory),
        notifier=Notifier(),
        validator=get_validator(variant),
        payload_builder=get_payload_builder(variant),
        job_name=settings.RECONCILIATION_JOB_NAME,
        variant=variant,
        lookup_pacing=settings.LOOKUP_PACING_SECONDS,
        submission_pacing=settings.SUBMISSION_PACING_SECONDS,
        success_threshold=settings.SUCCESS_SUMMARY_THRESHOLD,
        lock=RedisRunLock() if distributed_lock else LocalRunLock(),
        session_factory=session_factory,
    )
