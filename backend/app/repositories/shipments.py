"""
Shipment record repository — data access for reconciliation_shipments.

Repository rules:
- Pure data-access logic only
- Every function receives AsyncSession explicitly
- Functions flush, but never commit
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.base import utcnow
from app.db.models.shipment_record import ShipmentRecord

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


async def upsert_shipment(
    db: AsyncSession,
    *,
    shipment_id: str,
    supplier_name: str | None,
    destination_country: str | None,
    policy_id: str,
    amount: Decimal | None,
    currency: str,
    document_url: str | None = None,
) -> None:
    """
    Insert or update by shipment_id (last write wins).

    ``created_at`` is kept from the first insert; ``document_url`` is
    overwritten with whatever the latest submission returned.
    """
    dialect = db.get_bind().dialect.name
    try:
        insert = _UPSERT_DIALECTS[dialect]
    except KeyError:
        raise NotImplementedError(f"Upsert not supported for dialect '{dialect}'") from None

    now = utcnow()
    values = {
        "shipment_id": shipment_id,
        "supplier_name": supplier_name,
        "destination_country": destination_country,
        "policy_id": policy_id,
        "amount": amount,
        "currency": currency,
        "document_url": document_url,
        "updated_at": now,
    }
    stmt = insert(ShipmentRecord).values(created_at=now, **values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[ShipmentRecord.shipment_id],
        set_={key: stmt.excluded[key] for key in values if key != "shipment_id"},
    )
    await db.execute(stmt)
    await db.flush()


async def get_shipment(db: AsyncSession, shipment_id: str) -> ShipmentRecord | None:
    """Fetch one record by AWB."""
    stmt = select(ShipmentRecord).where(ShipmentRecord.shipment_id == shipment_id)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def list_shipments(
    db: AsyncSession,
    *,
    from_date: date | None = None,
    to_date: date | None = None,
    supplier_name: str | None = None,
    offset: int = 0,
    limit: int | None = None,
) -> list[ShipmentRecord]:
    """
    Records newest first, optionally filtered by creation date (inclusive,
    whole days, UTC) and exact supplier name (surrounding spaces ignored).
    """
    stmt = select(ShipmentRecord).order_by(ShipmentRecord.created_at.desc(), ShipmentRecord.id.desc())

    if from_date is not None:
        stmt = stmt.where(ShipmentRecord.created_at >= _day_start(from_date))
    if to_date is not None:
        stmt = stmt.where(ShipmentRecord.created_at < _day_start(to_date + timedelta(days=1)))
    if supplier_name:
        stmt = stmt.where(func.trim(ShipmentRecord.supplier_name) == supplier_name.strip())

    stmt = stmt.offset(offset)
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def update_document_url(db: AsyncSession, policy_id: str, document_url: str) -> int:
    """Attach a policy document URL. Returns the number of rows updated."""
    stmt = (
        update(ShipmentRecord)
        .where(ShipmentRecord.policy_id == policy_id)
        .values(document_url=document_url, updated_at=utcnow())
    )
    result = await db.execute(stmt)
    await db.flush()
    return result.rowcount or 0


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)
