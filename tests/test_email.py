"""Unit tests for the SendGrid email transport."""

from __future__ import annotations

import types

import pytest

from quest_notify.config import Settings
from quest_notify.infrastructure.transports import MulticastPayload
from quest_notify.infrastructure.transports import email as email_module


@pytest.fixture
def settings() -> Settings:
    return Settings(
        secret_key="test",
        sendgrid_api_key="SG.test",
        sendgrid_sender="noreply@example.com",
    )


def test_send_email_without_configuration() -> None:
    """When SendGrid settings are missing the helper reports the channel unavailable."""

    response = email_module.send_email(
        "Subject", "<p>Body</p>", "parent@example.com", settings=Settings(secret_key="test")
    )

    assert response.success is False
    assert response.error_code == "transport-unavailable"


def test_send_email_success(monkeypatch: pytest.MonkeyPatch, settings: Settings) -> None:
    sent = []

    class _Client:
        def __init__(self, api_key: str) -> None:
            self.api_key = api_key

        def send(self, message):
            sent.append(message)
            return types.SimpleNamespace(status_code=202, body=None)

    monkeypatch.setattr(email_module, "SendGridAPIClient", _Client)

    response = email_module.send_email(
        "Weekly Report", "<h2>Weekly Report</h2>", "parent@example.com", settings=settings
    )

    assert response.success is True
    assert len(sent) == 1


def test_send_email_bad_request_is_an_invalid_recipient(
    monkeypatch: pytest.MonkeyPatch, settings: Settings
) -> None:
    class _Client:
        def __init__(self, api_key: str) -> None:
            pass

        def send(self, message):
            return types.SimpleNamespace(
                status_code=400,
                body=b'{"errors": [{"message": "Does not contain a valid address."}]}',
            )

    monkeypatch.setattr(email_module, "SendGridAPIClient", _Client)

    response = email_module.send_email("Hi", "<p>Hi</p>", "nope", settings=settings)

    assert response.success is False
    assert response.error_code == email_module.INVALID_RECIPIENT
    assert response.error_message == "Does not contain a valid address."


def test_render_email_html_escapes_content() -> None:
    html = email_module.render_email_html(
        MulticastPayload(title="Level <5>", body="Tom & Mia", data={})
    )

    assert html == "<h2>Level &lt;5&gt;</h2><p>Tom &amp; Mia</p>"


@pytest.mark.anyio
async def test_transport_sends_one_email_per_address(
    monkeypatch: pytest.MonkeyPatch, settings: Settings
) -> None:
    recipients = []

    def _fake_send(subject, html_content, recipient, *, settings=None):
        recipients.append(recipient)
        return email_module.SendResponse(success=recipient != "bad@example.com")

    monkeypatch.setattr(email_module, "send_email", _fake_send)
    transport = email_module.SendGridEmailTransport(settings)

    response = await transport.send_multicast(
        ["a@example.com", "bad@example.com"],
        MulticastPayload(title="Weekly Report", body="", data={}),
    )

    assert recipients == ["a@example.com", "bad@example.com"]
    assert response.success_count == 1
    assert response.failure_count == 1
