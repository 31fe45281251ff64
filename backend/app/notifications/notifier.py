"""
Notifier — administrator e-mails for run summaries and failures.

Delivery is best effort: a mail problem is logged and never changes the
outcome of a run.  Nothing is sent when e-mail is disabled or there are
no recipients.
"""

from __future__ import annotations

import asyncio
import smtplib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.message import EmailMessage
from html import escape

from app.core.config import settings
from app.core.logging import get_logger
from app.pipeline.models import EmailSettings

logger = get_logger(__name__)

# How many per-shipment errors to list in the HTML / text bodies
HTML_ERROR_LIMIT = 10
TEXT_ERROR_LIMIT = 5


@dataclass
class SummaryStats:
    """Counters for the daily summary e-mail."""

    execution_date: str
    total_listed: int = 0
    valid_found: int = 0
    processed: int = 0
    succeeded: int = 0
    failed_validation: int = 0
    failed_processing: int = 0
    skipped: int = 0

    @property
    def success_rate(self) -> float:
        return (self.succeeded / self.processed) * 100 if self.processed else 0.0


@dataclass
class FailureAlert:
    """Context for a systemic failure e-mail."""

    job_name: str
    error_type: str
    error_message: str
    execution_date: str
    total_shipments: int = 0
    processed_shipments: int = 0
    failed_shipments: int = 0
    details: dict = field(default_factory=dict)
    specific_errors: list[tuple[str, str]] = field(default_factory=list)


class Notifier:
    """Sends summary and failure e-mails over SMTP."""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        encryption: str | None = None,
        from_address: str | None = None,
    ) -> None:
        self.host = host if host is not None else settings.MAIL_HOST
        self.port = port or settings.MAIL_PORT
        self.username = username if username is not None else settings.MAIL_USERNAME
        self.password = password if password is not None else settings.MAIL_PASSWORD
        self.encryption = (encryption or settings.MAIL_ENCRYPTION).lower()
        self.from_address = from_address or settings.MAIL_FROM_ADDRESS or self.username

    # ─── Public API ────────────────────────────────────

    async def send_summary(self, stats: SummaryStats, email_settings: EmailSettings) -> bool:
        """Daily summary. Returns True when a message was handed to SMTP."""
        subject = f"Daily Shipment Insurance Summary - {stats.execution_date}"
        return await self._send(
            subject,
            _summary_text(stats),
            _summary_html(stats),
            email_settings,
            kind="summary",
        )

    async def send_failure_alert(self, alert: FailureAlert, email_settings: EmailSettings) -> bool:
        """Systemic failure alert. Returns True when a message was handed to SMTP."""
        subject = f"Reconciliation Job Failure Alert - {alert.job_name} ({alert.execution_date})"
        return await self._send(
            subject,
            _failure_text(alert),
            _failure_html(alert),
            email_settings,
            kind="failure_alert",
        )

    # ─── Delivery ──────────────────────────────────────

    async def _send(
        self,
        subject: str,
        text_body: str,
        html_body: str,
        email_settings: EmailSettings,
        kind: str,
    ) -> bool:
        log = logger.bind(kind=kind, recipients=len(email_settings.recipients))

        if not email_settings.enabled:
            log.info("E-mail disabled, skipping notification")
            return False
        if not email_settings.recipients:
            log.warning("No recipients configured, skipping notification")
            return False

        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.from_address
        message["To"] = ", ".join(email_settings.recipients)
        message.set_content(text_body)
        message.add_alternative(html_body, subtype="html")

        try:
            await self._deliver(message)
        except (OSError, smtplib.SMTPException) as exc:
            log.error("Failed to send notification", error=str(exc))
            return False

        log.info("Notification sent", subject=subject)
        return True

    async def _deliver(self, message: EmailMessage) -> None:
        await asyncio.to_thread(self._deliver_sync, message)

    def _deliver_sync(self, message: EmailMessage) -> None:
        if not self.host:
            raise smtplib.SMTPException("MAIL_HOST is not configured")

        if self.encryption == "ssl":
            smtp = smtplib.SMTP_SSL(self.host, self.port, timeout=30)
        else:
            smtp = smtplib.SMTP(self.host, self.port, timeout=30)

        with smtp:
            if self.encryption == "tls":
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password)
            smtp.send_message(message)


# ═══════════════════════════════════════════════════════════
#  Message bodies
# ═══════════════════════════════════════════════════════════

def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def _summary_text(stats: SummaryStats) -> str:
    return "\n".join([
        f"Daily shipment insurance summary for {stats.execution_date}",
        "",
        f"Total shipments listed:   {stats.total_listed}",
        f"Valid shipments:          {stats.valid_found}",
        f"Processed:                {stats.processed}",
        f"Succeeded:                {stats.succeeded}",
        f"Skipped (over cap):       {stats.skipped}",
        f"Failed validation:        {stats.failed_validation}",
        f"Failed processing:        {stats.failed_processing}",
        f"Success rate:             {stats.success_rate:.1f}%",
        "",
        f"Generated at {_timestamp()}",
    ])


def _summary_html(stats: SummaryStats) -> str:
    rows = [
        ("Total shipments listed", stats.total_listed),
        ("Valid shipments", stats.valid_found),
        ("Processed", stats.processed),
        ("Succeeded", stats.succeeded),
        ("Skipped (over cap)", stats.skipped),
        ("Failed validation", stats.failed_validation),
        ("Failed processing", stats.failed_processing),
        ("Success rate", f"{stats.success_rate:.1f}%"),
    ]
    table = "".join(f"<tr><td>{escape(label)}</td><td><b>{value}</b></td></tr>" for label, value in rows)
    return (
        "<html><body style=\"font-family: Arial, sans-serif; color: #333;\">"
        f"<h2 style=\"color: #198754;\">Daily Shipment Insurance Summary</h2>"
        f"<p>Execution date: <b>{escape(stats.execution_date)}</b></p>"
        f"<table cellpadding=\"6\">{table}</table>"
        f"<p style=\"color: #6c757d; font-size: 0.9em;\">Generated at {_timestamp()}</p>"
        "</body></html>"
    )


def _failure_text(alert: FailureAlert) -> str:
    lines = [
        f"Reconciliation job '{alert.job_name}' failed for {alert.execution_date}",
        "",
        f"Error type:     {alert.error_type}",
        f"Error message:  {alert.error_message}",
        "",
        f"Total shipments:      {alert.total_shipments}",
        f"Processed shipments:  {alert.processed_shipments}",
        f"Failed shipments:     {alert.failed_shipments}",
    ]
    if alert.specific_errors:
        lines += ["", "Errors:"]
        lines += [f"- AWB {awb}: {reason}" for awb, reason in alert.specific_errors[:TEXT_ERROR_LIMIT]]
    if alert.details:
        lines += ["", "Details:"]
        lines += [f"  {key}: {value}" for key, value in alert.details.items()]
    lines += ["", f"Generated at {_timestamp()}"]
    return "\n".join(lines)


def _failure_html(alert: FailureAlert) -> str:
    errors = ""
    if alert.specific_errors:
        items = "".join(
            f"<li><b>AWB {escape(awb)}</b>: {escape(reason)}</li>"
            for awb, reason in alert.specific_errors[:HTML_ERROR_LIMIT]
        )
        errors = f"<h3>Errors</h3><ul>{items}</ul>"

    details = ""
    if alert.details:
        items = "".join(
            f"<li>{escape(str(key))}: {escape(str(value))}</li>" for key, value in alert.details.items()
        )
        details = f"<h3>Details</h3><ul>{items}</ul>"

    return (
        "<html><body style=\"font-family: Arial, sans-serif; color: #333;\">"
        "<h2 style=\"color: #dc3545;\">Reconciliation Job Failure</h2>"
        f"<p>Job <b>{escape(alert.job_name)}</b> failed for <b>{escape(alert.execution_date)}</b>.</p>"
        f"<p>Error type: <b>{escape(alert.error_type)}</b><br>{escape(alert.error_message)}</p>"
        "<table cellpadding=\"6\">"
        f"<tr><td>Total shipments</td><td><b>{alert.total_shipments}</b></td></tr>"
        f"<tr><td>Processed shipments</td><td><b>{alert.processed_shipments}</b></td></tr>"
        f"<tr><td>Failed shipments</td><td><b>{alert.failed_shipments}</b></td></tr>"
        "</table>"
        f"{errors}{details}"
        f"<p style=\"color: #6c757d; font-size: 0.9em;\">Generated at {_timestamp()}</p>"
        "</body></html>"
    )
