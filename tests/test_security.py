"""Tests for caller token helpers."""

from __future__ import annotations

from datetime import timedelta

import pytest

from quest_notify.infrastructure.security import caller_from_token, create_access_token


def test_caller_round_trip() -> None:
    token = create_access_token("parent-1", family_id="fam-1", role="parent")

    caller = caller_from_token(token)

    assert caller.uid == "parent-1"
    assert caller.family_id == "fam-1"
    assert caller.role == "parent"


def test_expired_or_tampered_token_is_rejected() -> None:
    expired = create_access_token("child-1", expires_delta=timedelta(minutes=-1))

    with pytest.raises(ValueError):
        caller_from_token(expired)
    with pytest.raises(ValueError):
        caller_from_token(create_access_token("child-1") + "x")
