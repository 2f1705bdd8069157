"""Endpoints to register delivery addresses of the caller's devices."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from quest_notify.domain.entities import ROLE_CHILD, Caller, Channel, DeviceToken
from quest_notify.infrastructure.database import get_db
from quest_notify.infrastructure.repositories import DeviceTokenRepository
from quest_notify.interfaces.api.dependencies import get_current_caller
from quest_notify.interfaces.api.schemas import DeviceTokenRead, DeviceTokenRegister

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/device-tokens", tags=["device-tokens"])


def _to_schema(device_token: DeviceToken) -> DeviceTokenRead:
    return DeviceTokenRead(
        token=device_token.token,
        user_id=device_token.user_id,
        family_id=device_token.family_id,
        user_role=device_token.user_role,
        channel=device_token.channel.value,
        active=device_token.active,
        created_at=device_token.created_at,
        updated_at=device_token.updated_at,
    )


@router.post("/", response_model=DeviceTokenRead, status_code=status.HTTP_201_CREATED)
def register_device_token(
    payload: DeviceTokenRegister,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
) -> DeviceTokenRead:
    """Register (or re-activate) a token for the caller; it replaces any previous owner."""

    try:
        channel = Channel(payload.channel)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Unsupported channel"
        ) from exc
    if channel is Channel.IN_APP:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="In-app delivery does not use device tokens",
        )

    saved = DeviceTokenRepository(db).save(
        DeviceToken(
            token=payload.token,
            user_id=caller.uid,
            family_id=caller.family_id,
            user_role=caller.role or ROLE_CHILD,
            channel=channel,
            active=True,
        )
    )
    logger.info("Registered %s token for user %s", channel.value, caller.uid)
    return _to_schema(saved)
