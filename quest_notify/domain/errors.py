"""Exceptions raised by the notification domain."""

from __future__ import annotations

from collections.abc import Iterable


class NotificationError(Exception):
    """Base class for every notification domain error."""


class ValidationError(NotificationError, ValueError):
    """Malformed preference or event data detected at configuration time."""

    def __init__(self, errors: Iterable[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid data")


class InvalidTransitionError(NotificationError, ValueError):
    """A notification status change that the lifecycle does not allow."""

    def __init__(self, notification_id: str | None, current: str, target: str) -> None:
        self.notification_id = notification_id
        self.current = current
        self.target = target
        super().__init__(
            f"Notification {notification_id} cannot move from {current} to {target}"
        )


class StaleVersionError(NotificationError, ValueError):
    """A conditional write found a newer version than the one it was based on."""

    def __init__(self, owner_id: str, notification_type: str, expected_version: int) -> None:
        self.owner_id = owner_id
        self.notification_type = notification_type
        self.expected_version = expected_version
        super().__init__(
            f"Preference {notification_type} for {owner_id} changed since version {expected_version}"
        )


class DeliveryError(NotificationError):
    """Per-token transport failure. Recorded on the notification, never propagated."""

    def __init__(self, token: str, code: str | None, message: str | None = None) -> None:
        self.token = token
        self.code = code or "unknown"
        super().__init__(message or f"Delivery to token failed with {self.code}")


class TokenInvalidError(DeliveryError):
    """Delivery failure proving the token is permanently unusable."""


class CallerError(NotificationError):
    """Unauthenticated caller or invalid target on a manual send."""

    def __init__(self, message: str, *, unauthenticated: bool = False) -> None:
        self.unauthenticated = unauthenticated
        super().__init__(message)


__all__ = [
    "NotificationError",
    "ValidationError",
    "InvalidTransitionError",
    "StaleVersionError",
    "DeliveryError",
    "TokenInvalidError",
    "CallerError",
]
