"""Contracts shared by every outbound delivery transport."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class MulticastPayload:
    """What every addressed token receives."""

    title: str
    body: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SendResponse:
    """Outcome of delivering to a single token."""

    success: bool
    error_code: str | None = None
    error_message: str | None = None


@dataclass(frozen=True)
class MulticastResponse:
    """Per-token outcomes, indexed one to one with the tokens sent."""

    responses: list[SendResponse]

    @property
    def success_count(self) -> int:
        return sum(1 for response in self.responses if response.success)

    @property
    def failure_count(self) -> int:
        return len(self.responses) - self.success_count


class MulticastTransport(ABC):
    """A channel provider able to address many tokens in one call."""

    @abstractmethod
    async def send_multicast(
        self, tokens: Sequence[str], payload: MulticastPayload
    ) -> MulticastResponse:
        """Deliver ``payload`` to ``tokens`` and report one response per token."""


__all__ = ["MulticastPayload", "SendResponse", "MulticastResponse", "MulticastTransport"]
