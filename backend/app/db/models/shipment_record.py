"""
ShipmentRecord — one row per insured shipment, keyed by AWB.

Upserted after every successful underwriting submission; the pipeline
never deletes rows.  ``document_url`` is attached later by the viewer.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base, TimestampMixin


class ShipmentRecord(TimestampMixin, Base):
    __tablename__ = "reconciliation_shipments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    shipment_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)

    supplier_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    destination_country: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)

    # Underwriting outcome
    policy_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    currency: Mapped[str] = mapped_column(String(8), nullable=False)
    document_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<ShipmentRecord {self.shipment_id} policy={self.policy_id}>"
