"""
Reconciliation tables.

    reconciliation_settings     operator-edited run configuration (latest row wins)
    reconciliation_shipments    one row per AWB, upserted on every attempt
    reconciliation_error_logs   append-only failure log
    reconciliation_runs         one row per orchestrator execution

Every model is imported here so ``Base.metadata`` is complete for Alembic.
"""

from app.db.models.base import Base
from app.db.models.error_log import ErrorLog
from app.db.models.reconciliation_run import ReconciliationRun
from app.db.models.reconciliation_settings import ReconciliationSettings
from app.db.models.shipment_record import ShipmentRecord

__all__ = [
    "Base",
    "ErrorLog",
    "ReconciliationRun",
    "ReconciliationSettings",
    "ShipmentRecord",
]
