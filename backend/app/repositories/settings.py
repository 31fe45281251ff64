"""
Settings repository + provider.

Repository rules:
- Pure data-access logic only
- Every function receives AsyncSession explicitly
- Functions flush, but never commit

``SqlSettingsProvider`` sits on top and turns the latest row into an
immutable ``SettingsSnapshot`` for one pipeline run.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.exc import SQLAlchemyError

from app.core.constants import PipelineVariant
from app.core.logging import get_logger
from app.db.models.reconciliation_settings import ReconciliationSettings
from app.pipeline.errors import SettingsInvalidError, SettingsNotFoundError
from app.pipeline.models import EmailSettings, SettingsSnapshot

logger = get_logger(__name__)


async def get_latest_settings(db: AsyncSession) -> ReconciliationSettings | None:
    """Most recently created settings row."""
    stmt = (
        select(ReconciliationSettings)
        .order_by(ReconciliationSettings.created_at.desc(), ReconciliationSettings.id.desc())
        .limit(1)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def create_settings(db: AsyncSession, **fields: object) -> ReconciliationSettings:
    """Insert a settings row (seed scripts and tests; the pipeline never writes)."""
    row = ReconciliationSettings(**fields)
    db.add(row)
    await db.flush()
    return row


def split_list(value: str | None) -> list[str]:
    """Comma-separated text → trimmed, non-empty entries."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def email_settings_from_row(row: ReconciliationSettings) -> EmailSettings:
    return EmailSettings(
        enabled=bool(row.email_enabled),
        recipients=tuple(split_list(row.admin_emails)),
    )


def snapshot_from_row(
    row: ReconciliationSettings,
    variant: PipelineVariant = PipelineVariant.CIP_WINDOW,
) -> SettingsSnapshot:
    """
    Build and check a snapshot.

    Raises:
        SettingsInvalidError: rate ≤ 0, negative cap, e-mail enabled without
            recipients, or a CIP-window deployment without a CIP time.
    """
    rate = Decimal(row.usd_to_inr_rate) if row.usd_to_inr_rate is not None else Decimal("0")
    email = email_settings_from_row(row)
    problems: list[str] = []

    if rate <= 0:
        problems.append(f"usd_to_inr_rate must be positive (got {rate})")
    if row.max_shipments is None or row.max_shipments < 0:
        problems.append(f"max_shipments must be >= 0 (got {row.max_shipments})")
    if email.enabled and not email.recipients:
        problems.append("email is enabled but no admin_emails are configured")
    if row.cutoff_time is None:
        problems.append("cutoff_time is not set")
    if variant == PipelineVariant.CIP_WINDOW and row.cip_time is None:
        problems.append("cip_time is required for the CIP window rules")

    if problems:
        raise SettingsInvalidError(
            "Invalid reconciliation settings: " + "; ".join(problems),
            step_name="load_settings",
            details={"settings_id": row.id, "problems": problems},
        )

    return SettingsSnapshot(
        suppliers=tuple(split_list(row.supplier_names)),
        countries=frozenset(c.upper() for c in split_list(row.destination_countries)),
        cutoff_time=row.cutoff_time,
        cip_time=row.cip_time,
        min_value_usd=Decimal(row.min_value_usd or 0),
        usd_to_inr_rate=rate,
        max_shipments=row.max_shipments,
        email=email,
    )


class SqlSettingsProvider:
    """Reads the active settings through its own short-lived session."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        variant: PipelineVariant = PipelineVariant.CIP_WINDOW,
    ) -> None:
        self.session_factory = session_factory
        self.variant = variant

    async def _latest(self) -> ReconciliationSettings:
        try:
            async with self.session_factory() as session:
                row = await get_latest_settings(session)
        except SQLAlchemyError as exc:
            raise SettingsNotFoundError(
                f"Failed to read reconciliation settings: {exc}",
                step_name="load_settings",
            ) from exc

        if row is None:
            raise SettingsNotFoundError(
                "No reconciliation settings found",
                step_name="load_settings",
            )
        return row

    async def load(self) -> SettingsSnapshot:
        """
        Snapshot of the latest settings row.

        Raises:
            SettingsNotFoundError: no row, or the database is unreachable.
            SettingsInvalidError: the row breaks an invariant.
        """
        row = await self._latest()
        snapshot = snapshot_from_row(row, self.variant)
        logger.info("Reconciliation settings loaded", settings_id=row.id, **snapshot.describe())
        return snapshot

    async def load_email_settings(self) -> EmailSettings:
        """Just the notification part; used when a full snapshot is unavailable."""
        return email_settings_from_row(await self._latest())
