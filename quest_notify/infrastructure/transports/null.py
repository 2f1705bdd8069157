"""Transport used for channels without a configured provider."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .base import MulticastPayload, MulticastResponse, MulticastTransport, SendResponse

logger = logging.getLogger(__name__)

TRANSPORT_UNAVAILABLE = "transport-unavailable"


class NullTransport(MulticastTransport):
    """Report every token as undeliverable without contacting any provider."""

    def __init__(self, channel: str) -> None:
        self.channel = channel

    async def send_multicast(
        self, tokens: Sequence[str], payload: MulticastPayload
    ) -> MulticastResponse:
        logger.info(
            "No %s provider configured; dropping %s deliveries of '%s'",
            self.channel,
            len(tokens),
            payload.title,
        )
        return MulticastResponse(
            [SendResponse(success=False, error_code=TRANSPORT_UNAVAILABLE) for _ in tokens]
        )


__all__ = ["NullTransport", "TRANSPORT_UNAVAILABLE"]
