"""
ErrorLog — append-only log of systemic and persistence failures.

Validation rejections are never written here.
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base, JSONType, utcnow


class ErrorLog(Base):
    __tablename__ = "reconciliation_error_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    job_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    error_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)  # ErrorCategory
    error_message: Mapped[str] = mapped_column(Text, nullable=False)
    error_details: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)
    execution_date: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)  # DD-MM-YYYY
    shipment_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )

    def __repr__(self) -> str:
        return f"<ErrorLog {self.id} {self.error_type} job={self.job_name}>"
