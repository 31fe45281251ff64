"""
ReconciliationContext — mutable state object carried through every step.

This is the single source of truth for a reconciliation run.  Each step
reads from and writes to the context.  The engine turns the final
context into a ReconciliationResult and the run record.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.core.constants import FlowType, PipelineVariant, RunState
from app.pipeline.models import SettingsSnapshot, ValidationVerdict


# ═══════════════════════════════════════════════════════════
#  StepResult
# ═══════════════════════════════════════════════════════════

@dataclass
class StepResult:
    """Outcome of a single pipeline step execution."""

    step_name: str
    status: str                     # StepStatus value
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int = 0
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialise for JSON storage."""
        return {
            "step_name": self.step_name,
            "status": self.status,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_ms": self.duration_ms,
            "error": self.error,
            "metadata": self.metadata,
        }


@dataclass
class ShipmentSuccess:
    """A shipment that was insured and saved."""

    shipment_id: str
    policy_id: str

    def to_dict(self) -> dict[str, str]:
        return {"shipment_id": self.shipment_id, "policy_id": self.policy_id}


# ═══════════════════════════════════════════════════════════
#  ReconciliationContext
# ═══════════════════════════════════════════════════════════

@dataclass
class ReconciliationContext:
    """
    Carries all state between pipeline steps.

    Populated progressively: settings, then the listed AWBs, then
    verdicts, then the capped work list, then outcomes.
    """

    # ─── Identity (set at init) ────────────────────────
    job_name: str
    target_date: str                    # DD-MM-YYYY
    flow_type: FlowType = FlowType.TWO_PHASE
    variant: PipelineVariant = PipelineVariant.CIP_WINDOW
    execution_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    # ─── State machine ─────────────────────────────────
    state: RunState = RunState.IDLE
    state_history: list[RunState] = field(default_factory=lambda: [RunState.IDLE])

    # ─── Loaded by load_settings ───────────────────────
    settings: SettingsSnapshot | None = None

    # ─── Listing ───────────────────────────────────────
    shipment_ids: list[str] = field(default_factory=list)

    # ─── Validation ────────────────────────────────────
    valid: list[ValidationVerdict] = field(default_factory=list)
    invalid: list[ValidationVerdict] = field(default_factory=list)

    # ─── Capping ───────────────────────────────────────
    to_process: list[ValidationVerdict] = field(default_factory=list)
    skipped: int = 0

    # ─── Processing ────────────────────────────────────
    processed: int = 0
    successes: list[ShipmentSuccess] = field(default_factory=list)
    processing_errors: list[tuple[str, str]] = field(default_factory=list)

    # ─── Summary ───────────────────────────────────────
    success_rate: float = 0.0
    summary_sent: bool = False

    # ─── Execution tracking ────────────────────────────
    step_results: list[StepResult] = field(default_factory=list)

    # ─── State helpers ─────────────────────────────────

    def transition(self, state: RunState) -> None:
        """Move the run to ``state`` and remember the path taken."""
        self.state = state
        self.state_history.append(state)

    # ─── Outcome helpers ───────────────────────────────

    def record_verdict(self, verdict: ValidationVerdict) -> None:
        (self.valid if verdict.valid else self.invalid).append(verdict)

    def add_processing_error(self, shipment_id: str, reason: str) -> None:
        self.processing_errors.append((shipment_id, reason))

    @property
    def succeeded(self) -> int:
        return len(self.successes)

    @property
    def combined_errors(self) -> list[tuple[str, str]]:
        """Validation rejections first, then processing failures."""
        rejections = [(v.shipment_id, str(v.reason)) for v in self.invalid]
        return rejections + list(self.processing_errors)

    def to_summary_dict(self) -> dict[str, Any]:
        """Compact summary for logging / DB storage."""
        return {
            "execution_id": self.execution_id,
            "job_name": self.job_name,
            "target_date": self.target_date,
            "flow_type": str(self.flow_type),
            "variant": str(self.variant),
            "state": str(self.state),
            "state_history": [str(s) for s in self.state_history],
            "total_listed": len(self.shipment_ids),
            "valid_found": len(self.valid),
            "invalid": len(self.invalid),
            "rejections": {
                v.shipment_id: str(v.reason) for v in self.invalid
            },
            "processed": self.processed,
            "succeeded": self.succeeded,
            "failed": len(self.processing_errors),
            "skipped": self.skipped,
            "success_rate": round(self.success_rate, 2),
            "summary_sent": self.summary_sent,
            "steps_completed": len(self.step_results),
            "processing_errors": [
                {"shipment_id": awb, "reason": reason} for awb, reason in self.processing_errors
            ],
        }
