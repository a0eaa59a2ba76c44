"""Notifications fired after request and delegation state transitions.

Delivery is fire-and-forget: a failed notification is logged and never
surfaces to the caller or rolls back the transition that triggered it.
"""

import asyncio
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Protocol

from app.config import Settings, settings
from app.logging_config import get_logger

logger = get_logger(__name__)


class NotificationEvent:
    """Event names passed to Notifier.notify()."""

    REQUEST_CREATED = "request_created"
    REQUEST_APPROVED = "request_approved"
    REQUEST_REJECTED = "request_rejected"
    REQUEST_CANCELLED = "request_cancelled"
    DELEGATION_CREATED = "delegation_created"
    DELEGATION_CANCELLED = "delegation_cancelled"


class Notifier(Protocol):
    """Notification sink."""

    async def notify(self, event: str, payload: dict[str, Any]) -> None:
        ...


def render_email(event: str, payload: dict[str, Any]) -> tuple[str, str]:
    """Build (subject, body) for an event.

    Raises:
        KeyError: Unknown event or missing payload field
    """
    if event == NotificationEvent.REQUEST_CREATED:
        return (
            f"New Approval Request: {payload['title']}",
            f"You have a new approval request from {payload['requester_name']}.\n\n"
            f"Title: {payload['title']}\n"
            f"Priority: {payload['priority']}\n"
            f"Type: {payload['request_type']}\n\n"
            "Please log in to review.",
        )
    if event == NotificationEvent.REQUEST_APPROVED:
        return (
            "Request Approved",
            f'Your request "{payload["title"]}" has been approved by {payload["reviewer_name"]}.',
        )
    if event == NotificationEvent.REQUEST_REJECTED:
        return (
            "Request Rejected",
            f'Your request "{payload["title"]}" has been rejected by {payload["reviewer_name"]}.\n\n'
            f"Reason: {payload['reason']}",
        )
    if event == NotificationEvent.REQUEST_CANCELLED:
        return (
            f"Request Cancelled: {payload['title']}",
            f'The request "{payload["title"]}" from {payload["requester_name"]} '
            "has been cancelled and no longer needs your review.",
        )
    if event == NotificationEvent.DELEGATION_CREATED:
        return (
            "New Delegation Assignment",
            f"{payload['delegator_name']} has delegated their approval authority to you.\n\n"
            f"Period: {payload['start_date']} to {payload['end_date']}\n"
            f"Reason: {payload['reason']}\n\n"
            "You can now approve requests on their behalf during this period.",
        )
    if event == NotificationEvent.DELEGATION_CANCELLED:
        return (
            "Delegation Cancelled",
            f"The delegation from {payload['delegator_name']} has been cancelled.\n\n"
            "You no longer have approval authority on their behalf.",
        )
    raise KeyError(f"Unknown notification event: {event}")


class LoggingNotifier:
    """Notifier that only logs. Used when email delivery is disabled."""

    async def notify(self, event: str, payload: dict[str, Any]) -> None:
        logger.info("notification_logged", notification_event=event, to=payload.get("to"))


class EmailNotifier:
    """Sends notifications as plain-text email over SMTP."""

    def __init__(self, config: Settings = settings):
        self.config = config

    def _send(self, to_email: str, subject: str, body: str) -> None:
        msg = MIMEMultipart()
        sender = self.config.smtp_user or "no-reply@localhost"
        msg["From"] = f"{self.config.email_from} <{sender}>"
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.attach(MIMEText(body, "plain"))

        with smtplib.SMTP(
            self.config.smtp_host, self.config.smtp_port, timeout=self.config.smtp_timeout
        ) as server:
            server.ehlo()
            if self.config.smtp_use_tls:
                server.starttls()
                server.ehlo()
            if self.config.smtp_user and self.config.smtp_password:
                server.login(self.config.smtp_user, self.config.smtp_password)
            server.send_message(msg)

    async def notify(self, event: str, payload: dict[str, Any]) -> None:
        to_email = payload.get("to")
        if not to_email:
            logger.warning("notification_without_recipient", notification_event=event)
            return
        try:
            subject, body = render_email(event, payload)
            await asyncio.to_thread(self._send, to_email, subject, body)
            logger.info("email_sent", notification_event=event, to=to_email)
        except Exception as e:
            logger.error(
                "email_send_failed",
                notification_event=event,
                to=to_email,
                error=str(e),
            )


async def safe_notify(notifier: Notifier | None, event: str, payload: dict[str, Any]) -> None:
    """Deliver a notification, logging and swallowing any failure."""
    if notifier is None:
        return
    try:
        await notifier.notify(event, payload)
    except Exception as e:
        logger.error(
            "notification_failed",
            notification_event=event,
            error=str(e),
            exc_info=True,
        )


def build_notifier(config: Settings = settings) -> Notifier:
    """Notifier for the configured environment."""
    if config.email_enabled:
        return EmailNotifier(config)
    return LoggingNotifier()
