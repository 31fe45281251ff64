"""Shared constants and enums used across the application."""

from enum import StrEnum


class PipelineVariant(StrEnum):
    """Rule-set generation used to validate and map shipments."""

    CIP_WINDOW = "CIP_WINDOW"           # cutoff→CIP pickup window, static carrier
    CUTOFF_VALUE = "CUTOFF_VALUE"       # cutoff only + service/value rules, carrier table


class FlowType(StrEnum):
    """Step sequence used by the reconciliation engine."""

    TWO_PHASE = "TWO_PHASE"
    SINGLE_PASS = "SINGLE_PASS"


class RunStatus(StrEnum):
    """Overall status of a reconciliation run."""

    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class RunState(StrEnum):
    """Position of a run in the reconciliation state machine."""

    IDLE = "IDLE"
    SETTINGS_LOADED = "SETTINGS_LOADED"
    LISTING = "LISTING"
    VALIDATING = "VALIDATING"
    CAPPING = "CAPPING"
    PROCESSING = "PROCESSING"
    SUMMARIZING = "SUMMARIZING"
    DONE = "DONE"
    ABORTED = "ABORTED"


class StepStatus(StrEnum):
    """Status of an individual pipeline step."""

    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class RejectionReason(StrEnum):
    """Why a shipment did not qualify for insurance."""

    DESTINATION_NOT_ALLOWED = "destination_not_allowed"
    SERVICE_UNSUPPORTED = "service_unsupported"
    PICKUP_TIME_OUT_OF_WINDOW = "pickup_time_out_of_window"
    VALUE_BELOW_THRESHOLD = "value_below_threshold"
    SUPPLIER_NOT_ALLOWED = "supplier_not_allowed"
    LOOKUP_FAILED = "lookup_failed"


class ErrorCategory(StrEnum):
    """Categories stored in the durable error log."""

    DATABASE_ERROR = "database_error"
    API_ERROR = "api_error"
    CRON_FAILURE = "cron_failure"


class UnderwritingStatus(StrEnum):
    """Status values returned by the underwriting partner."""

    SUCCESS = "success"
    FAILED = "failed"


class TransportMode(StrEnum):
    """Transport modes accepted by the underwriting partner."""

    AIR = "air"


REGISTERED_ADDRESS_LABEL = "Registered Address"
