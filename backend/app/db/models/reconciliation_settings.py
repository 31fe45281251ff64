"""
ReconciliationSettings — business configuration rows.

Rows are written by the admin tooling; the pipeline only reads the most
recently created one.  List-valued columns are comma-separated text.
"""

from datetime import time
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, Integer, Numeric, Text, Time
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base, TimestampMixin


class ReconciliationSettings(TimestampMixin, Base):
    __tablename__ = "reconciliation_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Allow-lists (comma separated)
    supplier_names: Mapped[str] = mapped_column(Text, nullable=False, default="")
    destination_countries: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Pickup window
    cutoff_time: Mapped[time] = mapped_column(Time, nullable=False)
    cip_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)

    # Value threshold / conversion
    min_value_usd: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    usd_to_inr_rate: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False, default=Decimal("1"))

    max_shipments: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Notifications
    admin_emails: Mapped[str] = mapped_column(Text, nullable=False, default="")
    email_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<ReconciliationSettings id={self.id} max={self.max_shipments} email={self.email_enabled}>"
