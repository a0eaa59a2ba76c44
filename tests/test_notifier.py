"""Tests for notification rendering and delivery."""

from unittest.mock import MagicMock, patch

import pytest

from app.config import Settings
from app.core.notifier import (
    EmailNotifier,
    LoggingNotifier,
    NotificationEvent,
    build_notifier,
    render_email,
    safe_notify,
)


def test_render_request_rejected():
    subject, body = render_email(
        NotificationEvent.REQUEST_REJECTED,
        {"title": "New laptop", "reviewer_name": "Sam Okafor", "reason": "Over budget"},
    )

    assert subject == "Request Rejected"
    assert "New laptop" in body
    assert "Sam Okafor" in body
    assert "Reason: Over budget" in body


def test_render_delegation_created():
    subject, body = render_email(
        NotificationEvent.DELEGATION_CREATED,
        {
            "delegator_name": "Maria Lopez",
            "start_date": "2026-02-01",
            "end_date": "2026-02-10",
            "reason": "Annual leave",
        },
    )

    assert subject == "New Delegation Assignment"
    assert "Period: 2026-02-01 to 2026-02-10" in body


def test_render_unknown_event():
    with pytest.raises(KeyError):
        render_email("request_exploded", {})


def test_build_notifier_follows_settings():
    assert isinstance(build_notifier(Settings(email_enabled=False)), LoggingNotifier)
    assert isinstance(build_notifier(Settings(email_enabled=True)), EmailNotifier)


@pytest.mark.asyncio
async def test_safe_notify_swallows_failures():
    class Exploding:
        async def notify(self, event, payload):
            raise RuntimeError("smtp down")

    await safe_notify(Exploding(), NotificationEvent.REQUEST_CREATED, {"to": "a@example.com"})


@pytest.mark.asyncio
async def test_safe_notify_without_notifier():
    await safe_notify(None, NotificationEvent.REQUEST_CREATED, {})


@pytest.mark.asyncio
async def test_email_notifier_sends_over_smtp():
    config = Settings(
        email_enabled=True,
        smtp_host="smtp.test",
        smtp_port=2525,
        smtp_user="bot@example.com",
        smtp_password="secret",
        smtp_use_tls=True,
    )
    smtp = MagicMock()

    with patch("app.core.notifier.smtplib.SMTP") as smtp_cls:
        smtp_cls.return_value.__enter__.return_value = smtp
        await EmailNotifier(config).notify(
            NotificationEvent.REQUEST_APPROVED,
            {"to": "lee@example.com", "title": "New laptop", "reviewer_name": "Maria Lopez"},
        )

    smtp_cls.assert_called_once_with("smtp.test", 2525, timeout=config.smtp_timeout)
    smtp.starttls.assert_called_once()
    smtp.login.assert_called_once_with("bot@example.com", "secret")
    message = smtp.send_message.call_args.args[0]
    assert message["To"] == "lee@example.com"
    assert message["Subject"] == "Request Approved"


@pytest.mark.asyncio
async def test_email_notifier_logs_send_failure():
    config = Settings(email_enabled=True, smtp_host="smtp.test")

    with patch("app.core.notifier.smtplib.SMTP", side_effect=OSError("connection refused")):
        await EmailNotifier(config).notify(
            NotificationEvent.REQUEST_APPROVED,
            {"to": "lee@example.com", "title": "New laptop", "reviewer_name": "Maria Lopez"},
        )
