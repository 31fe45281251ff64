"""
Insured shipment viewer — read-only queries plus policy document attach.
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db
from app.api.schemas.reconciliation import (
    DocumentUrlUpdate,
    ShipmentListResponse,
    ShipmentRecordResponse,
)
from app.repositories import shipments as shipment_repository

router = APIRouter(prefix="/shipments", tags=["Shipments"])


@router.get("", response_model=ShipmentListResponse)
async def list_shipments(
    from_date: date | None = Query(default=None, description="Created on or after (YYYY-MM-DD)"),
    to_date: date | None = Query(default=None, description="Created on or before (YYYY-MM-DD)"),
    supplier_name: str | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Insured shipments, newest first."""
    if from_date and to_date and from_date > to_date:
        raise HTTPException(status_code=422, detail="from_date must not be after to_date")

    records = await shipment_repository.list_shipments(
        db,
        from_date=from_date,
        to_date=to_date,
        supplier_name=supplier_name,
        offset=offset,
        limit=limit,
    )
    return {"data": records, "total": len(records)}


@router.get("/{shipment_id}", response_model=ShipmentRecordResponse)
async def get_shipment(shipment_id: str, db: AsyncSession = Depends(get_db)):
    """One insured shipment by AWB."""
    record = await shipment_repository.get_shipment(db, shipment_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Shipment not found")
    return record


@router.put("/document-url")
async def update_document_url(body: DocumentUrlUpdate, db: AsyncSession = Depends(get_db)) -> dict:
    """Attach the policy document URL to the record(s) with ``policy_id``."""
    updated = await shipment_repository.update_document_url(db, body.policy_id, body.document_url)
    if updated == 0:
        raise HTTPException(status_code=404, detail="No shipment found for policy")
    return {"policy_id": body.policy_id, "updated": updated}
