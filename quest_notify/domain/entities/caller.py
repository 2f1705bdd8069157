"""Domain entity describing the authenticated caller of a manual action."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Caller:
    """Identity extracted from a verified access token."""

    uid: str
    family_id: str | None = None
    role: str | None = None


__all__ = ["Caller"]
