"""Endpoints to provision and tune notification preferences."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from quest_notify.application.use_cases.notifications import PreferenceStore
from quest_notify.domain.entities import Caller, NotificationType
from quest_notify.domain.errors import ValidationError
from quest_notify.interfaces.api.dependencies import (
    get_current_caller,
    get_preference_store,
    require_parent,
)
from quest_notify.interfaces.api.routes_helpers import preference_to_schema, raise_http_error
from quest_notify.interfaces.api.schemas import PreferenceRead, PreferenceUpdate

router = APIRouter(prefix="/preferences", tags=["preferences"])


@router.get("/", response_model=list[PreferenceRead])
def list_preferences(
    caller: Caller = Depends(get_current_caller),
    store: PreferenceStore = Depends(get_preference_store),
) -> list[PreferenceRead]:
    return [preference_to_schema(preference) for preference in store.list(caller.uid)]


@router.post(
    "/initialize", response_model=list[PreferenceRead], status_code=status.HTTP_201_CREATED
)
def initialize_preferences(
    caller: Caller = Depends(get_current_caller),
    store: PreferenceStore = Depends(get_preference_store),
) -> list[PreferenceRead]:
    """Create the caller's missing preferences from the defaults table."""

    try:
        created = store.initialize_owner_preferences(caller.uid, caller.family_id)
    except ValueError as exc:
        raise_http_error(exc)
    return [preference_to_schema(preference) for preference in created]


@router.get("/family", response_model=list[PreferenceRead])
def list_family_preferences(
    caller: Caller = Depends(require_parent),
    store: PreferenceStore = Depends(get_preference_store),
) -> list[PreferenceRead]:
    return [preference_to_schema(preference) for preference in store.list(caller.family_id)]


@router.post(
    "/family/initialize",
    response_model=list[PreferenceRead],
    status_code=status.HTTP_201_CREATED,
)
def initialize_family_preferences(
    caller: Caller = Depends(require_parent),
    store: PreferenceStore = Depends(get_preference_store),
) -> list[PreferenceRead]:
    """Create the family-wide preferences used for notifications addressed to parents."""

    try:
        created = store.initialize_family_preferences(caller.family_id)
    except ValueError as exc:
        raise_http_error(exc)
    return [preference_to_schema(preference) for preference in created]


@router.patch("/family/{notification_type}", response_model=PreferenceRead)
def update_family_preference(
    notification_type: NotificationType,
    payload: PreferenceUpdate,
    caller: Caller = Depends(require_parent),
    store: PreferenceStore = Depends(get_preference_store),
) -> PreferenceRead:
    try:
        preference = store.update_preference(
            caller.family_id, notification_type, payload.model_dump(exclude_none=True)
        )
    except (ValidationError, ValueError) as exc:
        raise_http_error(exc)
    return preference_to_schema(preference)


@router.patch("/{notification_type}", response_model=PreferenceRead)
def update_preference(
    notification_type: NotificationType,
    payload: PreferenceUpdate,
    caller: Caller = Depends(get_current_caller),
    store: PreferenceStore = Depends(get_preference_store),
) -> PreferenceRead:
    """Update the caller's preference for one notification type."""

    try:
        preference = store.update_preference(
            caller.uid, notification_type, payload.model_dump(exclude_none=True)
        )
    except (ValidationError, ValueError) as exc:
        raise_http_error(exc)
    return preference_to_schema(preference)
