"""Reconciliation trigger and viewer request/response schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.core.constants import FlowType


class RunRequest(BaseModel):
    """Manual trigger payload; an empty body means yesterday."""

    date: str | None = Field(default=None, description="DD-MM-YYYY or YYYY-MM-DD")
    flow_type: FlowType | None = None


class RunErrorItem(BaseModel):
    shipment_id: str
    reason: str


class RunResponse(BaseModel):
    """Summary of a finished run."""

    execution_id: str
    execution_date: str
    status: str
    state: str
    flow_type: str
    total_listed: int
    valid_found: int
    processed: int
    succeeded: int
    skipped: int
    success_rate: float
    successes: list[dict[str, str]]
    errors: list[RunErrorItem]
    started_at: str | None
    completed_at: str | None
    duration_ms: int


class ShipmentRecordResponse(BaseModel):
    """One insured shipment."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    shipment_id: str
    supplier_name: str | None
    destination_country: str | None
    policy_id: str
    amount: Decimal | None
    currency: str
    document_url: str | None
    created_at: datetime
    updated_at: datetime


class ShipmentListResponse(BaseModel):
    data: list[ShipmentRecordResponse]
    total: int


class DocumentUrlUpdate(BaseModel):
    """Attach the policy document to every record carrying ``policy_id``."""

    policy_id: str = Field(..., min_length=1, max_length=128)
    document_url: str = Field(..., min_length=1)


class ErrorLogResponse(BaseModel):
    """One error-log entry."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    job_name: str
    error_type: str
    error_message: str
    error_details: dict[str, Any]
    execution_date: str | None
    shipment_id: str | None
    created_at: datetime


class ErrorLogListResponse(BaseModel):
    data: list[ErrorLogResponse]
    total: int
