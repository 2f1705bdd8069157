"""Fan due notifications out to their recipients' tokens and record the outcome."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from functools import partial
from typing import Any, TypeVar

import anyio
from anyio import to_thread

from quest_notify.domain.entities import (
    Channel,
    Notification,
    recipient_roles,
)
from quest_notify.domain.errors import DeliveryError, TokenInvalidError
from quest_notify.domain.repositories import DeviceTokenRepository, NotificationRepository
from quest_notify.infrastructure.notifications import NotificationPublisher
from quest_notify.infrastructure.transports import (
    TRANSPORT_UNAVAILABLE,
    MulticastPayload,
    MulticastResponse,
    MulticastTransport,
)
from quest_notify.utils import now_in_app_timezone

from .preferences import PreferenceStore
from .scheduler import get_pending

logger = logging.getLogger(__name__)

T = TypeVar("T")

INVALID_TOKEN_CODES = frozenset(
    {"invalid-registration-token", "registration-token-not-registered"}
)
TRANSPORT_ERROR = "transport-error"


class DeliveryOutcome(str, Enum):
    DELIVERED = "delivered"
    FAILED = "failed"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass
class DeliveryResult:
    """What happened to one notification during a dispatch pass."""

    notification_id: str
    outcome: DeliveryOutcome
    success_count: int = 0
    failures: list[DeliveryError] = field(default_factory=list)
    deactivated_tokens: int = 0
    reason: str | None = None


@dataclass
class DispatchReport:
    delivered: int = 0
    failed: int = 0
    skipped: int = 0
    errors: int = 0
    results: list[DeliveryResult] = field(default_factory=list)

    def record(self, result: DeliveryResult) -> None:
        self.results.append(result)
        if result.outcome is DeliveryOutcome.DELIVERED:
            self.delivered += 1
        elif result.outcome is DeliveryOutcome.FAILED:
            self.failed += 1
        elif result.outcome is DeliveryOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.errors += 1


def classify_failure(token: str, code: str | None, message: str | None = None) -> DeliveryError:
    """Wrap a per-token failure, distinguishing tokens that are permanently invalid."""

    bare_code = (code or "").split("/", 1)[-1]
    if bare_code in INVALID_TOKEN_CODES:
        return TokenInvalidError(token, code, message)
    return DeliveryError(token, code, message)


def _failures_from_response(
    tokens: list[str], response: MulticastResponse
) -> list[DeliveryError]:
    failures: list[DeliveryError] = []
    for token, result in zip(tokens, response.responses):
        if not result.success:
            failures.append(classify_failure(token, result.error_code, result.error_message))
    return failures


def _failure_reason(failures: list[DeliveryError]) -> str:
    codes = sorted({failure.code for failure in failures})
    if not codes:
        return "No channel accepted the notification"
    return "All deliveries failed: " + ", ".join(codes)


class DeliveryDispatcher:
    """Deliver due notifications through their channels.

    Each notification is claimed with a conditional ``pending -> sent`` update
    before any transport is called, so concurrent passes never deliver the same
    record twice. Failures stay within the notification that caused them.
    """

    def __init__(
        self,
        notifications: NotificationRepository,
        tokens: DeviceTokenRepository,
        transports: Mapping[Channel, MulticastTransport],
        *,
        in_app: NotificationPublisher | None = None,
        preferences: PreferenceStore | None = None,
        concurrency: int = 8,
        clock: Callable[[], datetime] = now_in_app_timezone,
    ) -> None:
        self._notifications = notifications
        self._tokens = tokens
        self._transports = dict(transports)
        self._in_app = in_app
        self._preferences = preferences
        self._concurrency = max(1, concurrency)
        self._clock = clock
        self._store_lock: anyio.Lock | None = None

    async def dispatch(self, notification: Notification) -> DeliveryResult:
        targets = await self._run_store(self._resolve_targets, notification)
        wants_in_app = Channel.IN_APP in notification.channels
        if not wants_in_app and not any(targets.values()):
            logger.info(
                "No active tokens for notification %s (%s); skipping",
                notification.id,
                notification.type.value,
            )
            return DeliveryResult(notification.id, DeliveryOutcome.SKIPPED, reason="no-tokens")

        claimed = await self._run_store(
            self._notifications.claim_for_delivery, notification.id, self._clock()
        )
        if claimed is None:
            logger.info("Notification %s is no longer pending; skipping", notification.id)
            return DeliveryResult(notification.id, DeliveryOutcome.SKIPPED, reason="not-pending")

        success_count = 0
        failures: list[DeliveryError] = []
        if wants_in_app:
            success_count += 1
            await self._publish_in_app(claimed)

        payload = MulticastPayload(
            title=claimed.title,
            body=claimed.message,
            data={**claimed.data, "notification_id": claimed.id, "type": claimed.type.value},
        )
        for channel, tokens in targets.items():
            if not tokens:
                continue
            sent, channel_failures = await self._send(channel, tokens, payload)
            success_count += sent
            failures.extend(channel_failures)

        finished_at = self._clock()
        if success_count:
            claimed.mark_delivered(finished_at)
            outcome = DeliveryOutcome.DELIVERED
        else:
            claimed.mark_failed(_failure_reason(failures), finished_at)
            outcome = DeliveryOutcome.FAILED
        await self._run_store(self._notifications.update, claimed)
        logger.info(
            "Notification %s %s: %s successful, %s failed",
            claimed.id,
            outcome.value,
            success_count,
            len(failures),
        )

        if outcome is DeliveryOutcome.DELIVERED:
            await self._run_store(self._record_sent, claimed, finished_at)
        deactivated = await self._run_store(self._cleanup_tokens, failures, finished_at)

        return DeliveryResult(
            claimed.id,
            outcome,
            success_count=success_count,
            failures=failures,
            deactivated_tokens=deactivated,
            reason=claimed.failure_reason,
        )

    async def dispatch_many(self, notifications: Iterable[Notification]) -> DispatchReport:
        """Dispatch a batch concurrently, one task per notification."""

        report = DispatchReport()
        unique: dict[str, Notification] = {}
        for notification in notifications:
            unique.setdefault(notification.id, notification)
        if not unique:
            return report

        limiter = anyio.CapacityLimiter(self._concurrency)

        async def _run(notification: Notification) -> None:
            async with limiter:
                try:
                    result = await self.dispatch(notification)
                except Exception:
                    logger.exception("Unexpected error dispatching notification %s", notification.id)
                    result = DeliveryResult(notification.id, DeliveryOutcome.ERROR)
            report.record(result)

        async with anyio.create_task_group() as task_group:
            for notification in unique.values():
                task_group.start_soon(_run, notification)

        logger.info(
            "Dispatch pass finished: %s delivered, %s failed, %s skipped, %s errors",
            report.delivered,
            report.failed,
            report.skipped,
            report.errors,
        )
        return report

    async def dispatch_pending(self, now: datetime | None = None) -> DispatchReport:
        """Dispatch every stored notification due at ``now``."""

        now = now or self._clock()
        pending = await self._run_store(self._notifications.list_pending)
        return await self.dispatch_many(get_pending(pending, now))

    async def _run_store(self, func: Callable[..., T], *args: Any) -> T:
        """Run a blocking repository call in a worker thread, one call at a time.

        The repositories share one session, which must never be used by two
        threads at once.
        """

        if self._store_lock is None:
            self._store_lock = anyio.Lock()
        async with self._store_lock:
            return await to_thread.run_sync(partial(func, *args))

    def _resolve_targets(self, notification: Notification) -> dict[Channel, list[str]]:
        targets: dict[Channel, list[str]] = {}
        for channel in notification.channels:
            if channel is Channel.IN_APP:
                continue
            if notification.user_id:
                tokens = self._tokens.list_active_for_user(notification.user_id, channel)
            elif notification.family_id:
                tokens = self._tokens.list_active_for_family(
                    notification.family_id,
                    channel,
                    roles=recipient_roles(notification.recipient_role),
                )
            else:
                tokens = []
            targets[channel] = list(dict.fromkeys(token.token for token in tokens if token.active))
        return targets

    async def _send(
        self, channel: Channel, tokens: list[str], payload: MulticastPayload
    ) -> tuple[int, list[DeliveryError]]:
        transport = self._transports.get(channel)
        if transport is None:
            logger.warning("No transport registered for channel %s", channel.value)
            return 0, [DeliveryError(token, TRANSPORT_UNAVAILABLE) for token in tokens]

        try:
            response = await transport.send_multicast(tokens, payload)
        except Exception as exc:
            logger.exception("Transport for channel %s failed", channel.value)
            return 0, [DeliveryError(token, TRANSPORT_ERROR, str(exc)) for token in tokens]

        failures = _failures_from_response(tokens, response)
        for failure in failures:
            logger.warning(
                "Delivery over %s failed with %s for token %s...",
                channel.value,
                failure.code,
                failure.token[:8],
            )
        return response.success_count, failures

    async def _publish_in_app(self, notification: Notification) -> None:
        if self._in_app is None:
            return
        try:
            await self._in_app.publish(notification)
        except Exception:
            logger.exception("Realtime publish failed for notification %s", notification.id)

    def _record_sent(self, notification: Notification, sent_at: datetime) -> None:
        if self._preferences is None:
            return
        owner_id = notification.user_id or notification.family_id
        if not owner_id:
            return
        try:
            self._preferences.record_sent(owner_id, notification.type, sent_at)
        except Exception:
            logger.exception("Failed to record last_sent for %s/%s", owner_id, notification.type.value)

    def _cleanup_tokens(self, failures: list[DeliveryError], now: datetime) -> int:
        invalid = list(
            dict.fromkeys(
                failure.token for failure in failures if isinstance(failure, TokenInvalidError)
            )
        )
        if not invalid:
            return 0
        try:
            deactivated = self._tokens.deactivate(invalid, now)
        except Exception:
            logger.exception("Failed to deactivate %s invalid device tokens", len(invalid))
            return 0
        logger.info("Deactivated %s invalid device tokens", deactivated)
        return deactivated


__all__ = [
    "DeliveryDispatcher",
    "DeliveryOutcome",
    "DeliveryResult",
    "DispatchReport",
    "INVALID_TOKEN_CODES",
    "classify_failure",
]
