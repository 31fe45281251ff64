"""API schema package."""

from app.api.schemas.reconciliation import (
    DocumentUrlUpdate,
    ErrorLogListResponse,
    ErrorLogResponse,
    RunRequest,
    RunResponse,
    ShipmentListResponse,
    ShipmentRecordResponse,
)

__all__ = [
    "DocumentUrlUpdate",
    "ErrorLogListResponse",
    "ErrorLogResponse",
    "RunRequest",
    "RunResponse",
    "ShipmentListResponse",
    "ShipmentRecordResponse",
]
