"""
Reconciliation pipeline — step-based daily shipment insurance run.

The engine (``app.pipeline.engine``) walks an ordered list of steps
resolved by ``app.pipeline.flow_resolver`` over a shared
ReconciliationContext, with per-step logging, error handling and a run
record for auditing.
"""

from app.pipeline.context import ReconciliationContext, StepResult
from app.pipeline.step import PipelineStep

__all__ = ["ReconciliationContext", "PipelineStep", "StepResult"]
