"""Preference store: provisioning, lookup, updates and ``last_sent`` bookkeeping."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import replace
from datetime import datetime
from typing import Any

from quest_notify.domain.entities import (
    Channel,
    Frequency,
    NotificationPreference,
    NotificationType,
    Priority,
)
from quest_notify.domain.errors import StaleVersionError
from quest_notify.domain.repositories import PreferenceRepository
from quest_notify.utils import ensure_app_timezone, now_in_app_timezone

from .defaults import DefaultPreferenceTable, PreferenceDefaults
from .validators import ensure_valid_preference_data

logger = logging.getLogger(__name__)

MAX_RECORD_ATTEMPTS = 5


class PreferenceStore:
    """Durable per-(owner, type) settings, provisioned from an injected defaults table."""

    def __init__(
        self,
        repository: PreferenceRepository,
        defaults: DefaultPreferenceTable,
    ) -> None:
        self._repository = repository
        self._defaults = defaults

    @property
    def defaults(self) -> DefaultPreferenceTable:
        return self._defaults

    def get(
        self, owner_id: str, notification_type: NotificationType
    ) -> NotificationPreference | None:
        return self._repository.get(owner_id, NotificationType(notification_type))

    def list(self, owner_id: str) -> Sequence[NotificationPreference]:
        return self._repository.list_for_owner(owner_id)

    def list_for_family(
        self, family_id: str, notification_type: NotificationType
    ) -> Sequence[NotificationPreference]:
        return self._repository.list_for_family(family_id, NotificationType(notification_type))

    def initialize_owner_preferences(
        self, user_id: str, family_id: str | None = None
    ) -> list[NotificationPreference]:
        """Create the default preference of every type the member does not have yet."""

        if not user_id:
            raise ValueError("User ID is required")
        return self._initialize(owner_id=user_id, user_id=user_id, family_id=family_id)

    def initialize_family_preferences(self, family_id: str) -> list[NotificationPreference]:
        """Create the family-wide defaults used by role-targeted notifications."""

        if not family_id:
            raise ValueError("Family ID is required")
        return self._initialize(owner_id=family_id, user_id=None, family_id=family_id)

    def _initialize(
        self, *, owner_id: str, user_id: str | None, family_id: str | None
    ) -> list[NotificationPreference]:
        created: list[NotificationPreference] = []
        now = now_in_app_timezone()
        for notification_type, defaults in self._defaults.items():
            if self._repository.get(owner_id, notification_type) is not None:
                continue
            preference = _build_preference(
                notification_type, defaults, user_id=user_id, family_id=family_id, now=now
            )
            created.append(self._repository.create(preference))

        if created:
            logger.info(
                "Initialized %s notification preferences for %s", len(created), owner_id
            )
        return created

    def update_preference(
        self,
        owner_id: str,
        notification_type: NotificationType,
        updates: Mapping[str, Any],
    ) -> NotificationPreference:
        """Apply ``updates`` to an existing preference after validating them.

        The write is conditional on the version read, so a concurrent
        ``record_sent`` is never overwritten; a lost race re-reads and retries.

        Raises :class:`ValidationError` listing every invalid field,
        ``ValueError`` when the preference does not exist and
        :class:`StaleVersionError` when every attempt lost its race.
        """

        ensure_valid_preference_data(updates, partial=True)
        notification_type = NotificationType(notification_type)

        changes: dict[str, Any] = dict(updates)
        if "channels" in changes:
            changes["channels"] = [Channel(channel) for channel in changes["channels"]]
        if changes.get("frequency") is not None:
            changes["frequency"] = Frequency(changes["frequency"])
        if changes.get("priority") is not None:
            changes["priority"] = Priority(str(changes["priority"]).lower())

        attempt = 0
        while True:
            attempt += 1
            current = self._repository.get(owner_id, notification_type)
            if current is None:
                raise ValueError("Notification preference not found")
            updated = replace(current, **changes, updated_at=now_in_app_timezone())
            try:
                return self._repository.update(updated)
            except StaleVersionError:
                if attempt >= MAX_RECORD_ATTEMPTS:
                    raise
                logger.debug(
                    "Preference %s/%s changed concurrently; retrying update",
                    owner_id,
                    notification_type.value,
                )

    def record_sent(
        self,
        owner_id: str,
        notification_type: NotificationType,
        sent_at: datetime,
    ) -> bool:
        """Store ``sent_at`` as the preference's ``last_sent`` without losing concurrent updates.

        The write is conditional on the version read; a lost race re-reads and
        retries. A newer ``last_sent`` written by a concurrent sender is kept.
        """

        notification_type = NotificationType(notification_type)
        sent_at = ensure_app_timezone(sent_at)
        for _ in range(MAX_RECORD_ATTEMPTS):
            current = self._repository.get(owner_id, notification_type)
            if current is None:
                return False
            if current.last_sent is not None and ensure_app_timezone(current.last_sent) >= sent_at:
                return True
            if self._repository.compare_and_set_last_sent(
                owner_id,
                notification_type,
                expected_version=current.version,
                last_sent=sent_at,
            ):
                return True

        logger.warning(
            "Gave up recording last_sent for %s/%s after %s attempts",
            owner_id,
            notification_type.value,
            MAX_RECORD_ATTEMPTS,
        )
        return False


def _build_preference(
    notification_type: NotificationType,
    defaults: PreferenceDefaults,
    *,
    user_id: str | None,
    family_id: str | None,
    now: datetime,
) -> NotificationPreference:
    return NotificationPreference(
        id=None,
        type=notification_type,
        user_id=user_id,
        family_id=family_id,
        enabled=defaults.enabled,
        channels=list(defaults.channels),
        frequency=defaults.frequency,
        priority=defaults.priority,
        quiet_hours=defaults.quiet_hours,
        advance_hours=defaults.advance_hours,
        scheduled_hour=defaults.scheduled_hour,
        scheduled_day=defaults.scheduled_day,
        last_sent=None,
        version=0,
        created_at=now,
        updated_at=now,
    )


__all__ = ["PreferenceStore", "MAX_RECORD_ATTEMPTS"]
