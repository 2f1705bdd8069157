"""Outbound channel transports."""

from .base import MulticastPayload, MulticastResponse, MulticastTransport, SendResponse
from .email import SendGridEmailTransport, send_email
from .null import TRANSPORT_UNAVAILABLE, NullTransport

__all__ = [
    "MulticastPayload",
    "MulticastResponse",
    "MulticastTransport",
    "SendResponse",
    "SendGridEmailTransport",
    "send_email",
    "NullTransport",
    "TRANSPORT_UNAVAILABLE",
]
