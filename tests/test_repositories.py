"""Integration tests for the SQLAlchemy repositories."""

from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

import pytest
from fakes import make_preference, push_token

from quest_notify.application.use_cases.notifications import (
    PreferenceStore,
    default_preference_table,
)
from quest_notify.domain.entities import (
    Channel,
    Frequency,
    Notification,
    NotificationStatus,
    NotificationType,
    Priority,
    ReminderLogEntry,
)
from quest_notify.domain.errors import StaleVersionError
from quest_notify.infrastructure import database
from quest_notify.infrastructure.repositories import (
    DeviceTokenRepository,
    NotificationRepository,
    PreferenceRepository,
    ReminderLogRepository,
)


@pytest.fixture
def session():
    """Yield a session bound to a freshly created schema."""

    database.Base.metadata.drop_all(bind=database.engine, checkfirst=True)
    database.initialize_database()
    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _notification(notification_id: str, noon, **overrides) -> Notification:
    values = {
        "id": notification_id,
        "type": NotificationType.LEVEL_UP,
        "title": "Level Up!",
        "message": "Level 4",
        "user_id": "child-1",
        "family_id": "fam-1",
        "data": {"new_level": 4},
        "channels": [Channel.IN_APP, Channel.PUSH],
        "priority": Priority.HIGH,
        "created_at": noon,
    }
    values.update(overrides)
    return Notification(**values)


def test_preference_round_trip_and_unique_owner_type(session, noon) -> None:
    repository = PreferenceRepository(session)

    created = repository.create(make_preference(NotificationType.LEVEL_UP, created_at=noon))

    loaded = repository.get("child-1", NotificationType.LEVEL_UP)
    assert loaded.id == created.id
    assert loaded.channels == [Channel.IN_APP, Channel.PUSH]
    assert loaded.version == 0
    assert [p.user_id for p in repository.list_for_family("fam-1", NotificationType.LEVEL_UP)] == [
        "child-1"
    ]


def test_compare_and_set_last_sent_checks_the_version(session, noon) -> None:
    repository = PreferenceRepository(session)
    repository.create(make_preference(NotificationType.LEVEL_UP))

    assert repository.compare_and_set_last_sent(
        "child-1", NotificationType.LEVEL_UP, expected_version=0, last_sent=noon
    )
    assert not repository.compare_and_set_last_sent(
        "child-1",
        NotificationType.LEVEL_UP,
        expected_version=0,
        last_sent=noon + timedelta(hours=1),
    )

    loaded = repository.get("child-1", NotificationType.LEVEL_UP)
    assert loaded.last_sent == noon
    assert loaded.version == 1


def test_preference_update_requires_current_version_and_skips_last_sent(session, noon) -> None:
    repository = PreferenceRepository(session)
    created = repository.create(make_preference(NotificationType.LEVEL_UP))

    updated = repository.update(replace(created, enabled=False, last_sent=noon))

    assert updated.enabled is False
    assert updated.last_sent is None
    assert updated.version == 1
    with pytest.raises(StaleVersionError):
        repository.update(replace(created, frequency=Frequency.DAILY))
    with pytest.raises(ValueError, match="not found"):
        repository.update(replace(created, user_id="child-9"))
    assert repository.get("child-1", NotificationType.LEVEL_UP).frequency is Frequency.IMMEDIATE


def test_preference_update_keeps_last_sent_from_another_session(session, noon) -> None:
    PreferenceRepository(session).create(make_preference(NotificationType.LEVEL_UP))
    other_session = database.SessionLocal()
    try:
        repository = PreferenceRepository(session)
        store = PreferenceStore(repository, default_preference_table())
        other_store = PreferenceStore(
            PreferenceRepository(other_session), default_preference_table()
        )
        plain_update = repository.update
        versions = []

        def update_after_a_send(preference):
            versions.append(preference.version)
            if len(versions) == 1:
                other_store.record_sent("child-1", NotificationType.LEVEL_UP, noon)
            return plain_update(preference)

        repository.update = update_after_a_send
        updated = store.update_preference(
            "child-1", NotificationType.LEVEL_UP, {"enabled": False}
        )
    finally:
        other_session.close()

    assert versions == [0, 1]
    assert updated.enabled is False
    assert updated.last_sent == noon
    assert PreferenceRepository(session).get("child-1", NotificationType.LEVEL_UP).version == 2


def test_claim_for_delivery_happens_once(session, noon) -> None:
    repository = NotificationRepository(session)
    repository.create(_notification("n-1", noon))

    claimed = repository.claim_for_delivery("n-1", noon)

    assert claimed.status is NotificationStatus.SENT
    assert claimed.sent_at == noon
    assert claimed.data == {"new_level": 4}
    assert repository.claim_for_delivery("n-1", noon) is None
    assert repository.cancel_pending("n-1", noon) is None


def test_expired_notification_cannot_be_claimed_or_cancelled(session, noon) -> None:
    repository = NotificationRepository(session)
    repository.create(_notification("n-1", noon, expires_at=noon - timedelta(minutes=5)))

    assert repository.claim_for_delivery("n-1", noon) is None
    assert repository.cancel_pending("n-1", noon) is None
    assert repository.get("n-1").status is NotificationStatus.PENDING


def test_list_queries(session, noon) -> None:
    repository = NotificationRepository(session)
    repository.create(_notification("old", noon - timedelta(days=2)))
    repository.create(_notification("new", noon))
    repository.create(_notification("other", noon, user_id="child-2", family_id="fam-2"))
    repository.claim_for_delivery("other", noon)

    assert [n.id for n in repository.list_for_user("child-1")] == ["new", "old"]
    assert [n.id for n in repository.list_pending()] == ["old", "new"]
    assert [
        n.id
        for n in repository.list_created_between(noon - timedelta(hours=1), noon, family_id="fam-1")
    ] == ["new"]


def test_device_tokens_filter_and_deactivate(session, noon) -> None:
    repository = DeviceTokenRepository(session)
    repository.save(push_token("child-token", "child-1"))
    repository.save(push_token("parent-token", "parent-1", role="parent"))
    repository.save(push_token("admin-token", "parent-2", role="admin"))

    parents = repository.list_active_for_family("fam-1", Channel.PUSH, roles=("admin", "parent"))
    assert sorted(t.token for t in parents) == ["admin-token", "parent-token"]

    assert repository.deactivate([], noon) == 0
    assert repository.deactivate(["parent-token", "parent-token", "unknown"], noon) == 1
    assert repository.deactivate(["parent-token"], noon) == 0
    assert repository.get("parent-token").active is False
    assert repository.list_active_for_user("parent-1", Channel.PUSH) == []


def test_saving_a_token_again_moves_it_to_the_new_owner(session) -> None:
    repository = DeviceTokenRepository(session)
    repository.save(push_token("shared", "child-1"))

    repository.save(push_token("shared", "child-2"))

    assert repository.get("shared").user_id == "child-2"
    assert repository.list_active_for_user("child-1", Channel.PUSH) == []


def test_reminder_log_claim_is_exclusive(session, noon) -> None:
    repository = ReminderLogRepository(session)
    entry = ReminderLogEntry(
        key="quest-1_urgent_2024-01-15",
        subject_id="quest-1",
        kind="quest_reminder",
        sub_type="urgent",
        assigned_to=["child-1"],
        sent_at=noon,
    )

    assert repository.claim(entry) is True
    assert repository.claim(entry) is False
    assert repository.get(entry.key).assigned_to == ["child-1"]

    repository.release(entry.key)
    assert repository.get(entry.key) is None
    assert repository.claim(entry) is True
