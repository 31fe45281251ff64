"""
FlowResolver — maps a flow type to an ordered step sequence.

    TWO_PHASE    load → list → validate all → cap → process → summarize
    SINGLE_PASS  load → list → cap raw listing + validate/process in one pass

To add a flow:
    1. Write its steps in steps/
    2. Register a builder in FLOW_REGISTRY below
"""

from __future__ import annotations

from typing import Callable

from app.core.constants import FlowType
from app.core.logging import get_logger
from app.pipeline.errors import FlowResolutionError
from app.pipeline.services import ReconciliationServices
from app.pipeline.step import PipelineStep
from app.pipeline.steps.cap_shipments import CapShipmentsStep
from app.pipeline.steps.list_shipments import ListShipmentsStep
from app.pipeline.steps.load_settings import LoadSettingsStep
from app.pipeline.steps.process_shipments import ProcessShipmentsStep
from app.pipeline.steps.single_pass import SinglePassStep
from app.pipeline.steps.summarize import SummarizeStep
from app.pipeline.steps.validate_shipments import ValidateShipmentsStep

logger = get_logger(__name__)

FlowBuilder = Callable[[ReconciliationServices], list[PipelineStep]]


def _two_phase_flow(services: ReconciliationServices) -> list[PipelineStep]:
    """Validate everything first, then insure the first N valid."""
    return [
        LoadSettingsStep(services),
        ListShipmentsStep(services),
        ValidateShipmentsStep(services),
        CapShipmentsStep(services),
        ProcessShipmentsStep(services),
        SummarizeStep(services),
    ]


def _single_pass_flow(services: ReconciliationServices) -> list[PipelineStep]:
    """Cap the raw listing, then validate and insure item by item."""
    return [
        LoadSettingsStep(services),
        ListShipmentsStep(services),
        SinglePassStep(services),
    ]


# ═══════════════════════════════════════════════════════════
#  Flow Registry
# ═══════════════════════════════════════════════════════════

FLOW_REGISTRY: dict[str, FlowBuilder] = {
    FlowType.TWO_PHASE: _two_phase_flow,
    FlowType.SINGLE_PASS: _single_pass_flow,
}


class FlowResolver:
    """Resolves a flow type to an ordered list of pipeline steps."""

    def __init__(self, registry: dict[str, FlowBuilder] | None = None) -> None:
        self.registry = registry or FLOW_REGISTRY

    def resolve(self, flow_type: str, services: ReconciliationServices) -> list[PipelineStep]:
        """
        Raises:
            FlowResolutionError: unknown flow type.
        """
        builder = self.registry.get(str(flow_type))
        if builder is None:
            raise FlowResolutionError(
                f"No flow registered for '{flow_type}'",
                step_name="flow_resolution",
                details={"available": self.list_available_flows()},
            )

        logger.info("Flow resolved", flow_type=str(flow_type))
        return builder(services)

    def list_available_flows(self) -> list[str]:
        """Return all registered flow keys."""
        return [str(key) for key in self.registry]
