"""
LoadSettingsStep — reads the business settings snapshot for this run.

Missing or invalid settings abort the run (database_error).
"""

from __future__ import annotations

from app.core.constants import RunState
from app.core.logging import get_logger
from app.pipeline.context import ReconciliationContext, StepResult
from app.pipeline.step import PipelineStep

logger = get_logger(__name__)


class LoadSettingsStep(PipelineStep):
    """Load the latest settings row into ctx.settings."""

    name = "load_settings"
    description = "Load reconciliation settings"

    async def execute(self, ctx: ReconciliationContext) -> StepResult:
        started_at = self._now()

        ctx.settings = await self.services.settings_provider.load()
        ctx.transition(RunState.SETTINGS_LOADED)

        return self._success(started_at, metadata=ctx.settings.describe())
