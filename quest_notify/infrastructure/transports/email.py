"""Email channel delivered through SendGrid."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from functools import partial
from html import escape
from typing import Any

from anyio import to_thread
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from quest_notify.config import Settings, get_settings

from .base import MulticastPayload, MulticastResponse, MulticastTransport, SendResponse
from .null import TRANSPORT_UNAVAILABLE

logger = logging.getLogger(__name__)

INVALID_RECIPIENT = "email/invalid-recipient"
SEND_FAILED = "email/send-failed"


def _extract_sendgrid_error_details(body: Any) -> str | None:
    """Return a human readable description for a SendGrid error payload."""

    if body in (None, ""):
        return None

    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return None

    if isinstance(body, str):
        body = body.strip()
        if not body:
            return None
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            return body
    else:
        parsed = body

    if isinstance(parsed, dict):
        messages = [
            str(item["message"])
            for item in parsed.get("errors") or []
            if isinstance(item, dict) and item.get("message")
        ]
        if messages:
            return "; ".join(messages)
        try:
            return json.dumps(parsed)
        except (TypeError, ValueError):
            return None

    return str(parsed)


def _failure_from_status(status_code: Any, details: str | None) -> SendResponse:
    code = INVALID_RECIPIENT if status_code == 400 else SEND_FAILED
    return SendResponse(success=False, error_code=code, error_message=details)


def render_email_html(payload: MulticastPayload) -> str:
    """Return the HTML body used for notification emails."""

    parts = [f"<h2>{escape(payload.title)}</h2>"]
    if payload.body:
        parts.append(f"<p>{escape(payload.body)}</p>")
    return "".join(parts)


def send_email(
    subject: str,
    html_content: str,
    recipient: str,
    *,
    settings: Settings | None = None,
) -> SendResponse:
    """Send one email using the configured SendGrid credentials."""

    settings = settings or get_settings()
    if not (settings.sendgrid_api_key and settings.sendgrid_sender):
        logger.info("SendGrid configuration incomplete; skipping email delivery")
        return SendResponse(success=False, error_code=TRANSPORT_UNAVAILABLE)

    message = Mail(
        from_email=settings.sendgrid_sender,
        to_emails=recipient,
        subject=subject,
        html_content=html_content,
    )

    try:
        client = SendGridAPIClient(settings.sendgrid_api_key)
        response = client.send(message)
    except Exception as exc:  # pragma: no cover - network failures depend on environment
        status_code = getattr(exc, "status_code", None)
        details = _extract_sendgrid_error_details(getattr(exc, "body", None))
        logger.error(
            "SendGrid API request failed with status %s: %s", status_code, details or exc
        )
        return _failure_from_status(status_code, details or str(exc))

    status_code = getattr(response, "status_code", None)
    if not isinstance(status_code, int) or not 200 <= status_code < 300:
        details = _extract_sendgrid_error_details(getattr(response, "body", None))
        logger.error("SendGrid API responded with status %s: %s", status_code, details)
        return _failure_from_status(status_code, details)

    return SendResponse(success=True)


class SendGridEmailTransport(MulticastTransport):
    """Send one email per registered address; each address is a token."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings

    async def send_multicast(
        self, tokens: Sequence[str], payload: MulticastPayload
    ) -> MulticastResponse:
        settings = self._settings or get_settings()
        html_content = render_email_html(payload)
        responses: list[SendResponse] = []
        for recipient in tokens:
            response = await to_thread.run_sync(
                partial(send_email, payload.title, html_content, recipient, settings=settings)
            )
            responses.append(response)
        return MulticastResponse(responses)


__all__ = [
    "SendGridEmailTransport",
    "send_email",
    "render_email_html",
    "INVALID_RECIPIENT",
    "SEND_FAILED",
]
