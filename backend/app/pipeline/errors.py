"""
Domain-specific exception hierarchy for the reconciliation pipeline.

Only systemic failures are raised: listing, settings, database and
alerting problems that abort the whole run.  Per-shipment problems are
recorded on the context instead.

Every error carries the execution id and step name for log binding, and
an ``error_category`` that becomes ``error_type`` in the error log.
"""

from __future__ import annotations

from app.core.constants import ErrorCategory


class PipelineError(Exception):
    """Base exception for all pipeline errors."""

    error_category: ErrorCategory = ErrorCategory.CRON_FAILURE

    def __init__(
        self,
        message: str,
        *,
        execution_id: str | None = None,
        step_name: str | None = None,
        details: dict | None = None,
    ) -> None:
        self.execution_id = execution_id
        self.step_name = step_name
        self.details = details or {}
        super().__init__(message)


class FlowResolutionError(PipelineError):
    """Could not resolve the step sequence for a flow type."""
    pass


class RunInProgressError(PipelineError):
    """Another reconciliation run holds the run lock."""
    pass


# ─── Settings ──────────────────────────────────────────

class SettingsNotFoundError(PipelineError):
    """No reconciliation settings row exists."""

    error_category = ErrorCategory.DATABASE_ERROR


class SettingsInvalidError(PipelineError):
    """The settings row violates an invariant (rate, cap, recipients)."""

    error_category = ErrorCategory.DATABASE_ERROR


# ─── External systems ──────────────────────────────────

class ShipmentSourceError(PipelineError):
    """The logistics platform call failed."""

    error_category = ErrorCategory.API_ERROR

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        **kwargs,
    ) -> None:
        self.status_code = status_code
        super().__init__(message, **kwargs)


class UnderwritingError(PipelineError):
    """Base for underwriting partner failures."""

    error_category = ErrorCategory.API_ERROR


class UnderwritingNetworkError(UnderwritingError):
    """Transport-level failure (timeout, connection refused, DNS ...)."""
    pass


class UnderwritingPartnerError(UnderwritingError):
    """The partner answered with an error status or an unreadable body."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        response_body: str | None = None,
        **kwargs,
    ) -> None:
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message, **kwargs)


# ─── Persistence ───────────────────────────────────────

class PersistenceError(PipelineError):
    """A database write failed."""

    error_category = ErrorCategory.DATABASE_ERROR
