"""
ReconciliationRun — one row per pipeline execution.

Tracks flow, target date, state reached, counters and timing so runs can
be audited without the logs.
"""

from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, String, Text, Uuid

from app.db.models.base import Base, JSONType, generate_uuid, utcnow


class ReconciliationRun(Base):
    """One row per reconciliation execution."""

    __tablename__ = "reconciliation_runs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=generate_uuid)

    # ── Job ──────────────────────────────────
    job_name = Column(String(100), nullable=False, index=True)
    flow_type = Column(String(50), nullable=False)
    variant = Column(String(50), nullable=False)
    target_date = Column(String(10), nullable=True, index=True)  # DD-MM-YYYY

    # ── Status / Progress ────────────────────
    status = Column(String(50), nullable=False, default="RUNNING", index=True)
    state = Column(String(50), nullable=False, default="IDLE")

    # ── Counters ─────────────────────────────
    total_listed = Column(Integer, default=0)
    valid_found = Column(Integer, default=0)
    processed = Column(Integer, default=0)
    succeeded = Column(Integer, default=0)
    failed = Column(Integer, default=0)
    skipped = Column(Integer, default=0)

    # ── Timing (UTC) ─────────────────────────
    started_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    duration_ms = Column(Integer, nullable=True)

    # ── Error ─────────────────────────────────
    error_message = Column(Text, nullable=True)

    # ── Snapshots ─────────────────────────────
    settings_snapshot = Column(JSONType, default=dict)
    summary = Column(JSONType, default=dict)

    # ── Audit timestamps ─────────────────────
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<ReconciliationRun {self.id} date={self.target_date} status={self.status} state={self.state}>"
