"""FastAPI dependency utilities."""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from quest_notify.application.use_cases.notifications import (
    DeliveryDispatcher,
    NotificationService,
    PreferenceStore,
    default_preference_table,
)
from quest_notify.config import get_settings
from quest_notify.domain.entities import PARENT_ROLES, Caller, Channel
from quest_notify.infrastructure.database import get_db
from quest_notify.infrastructure.notifications import notification_publisher
from quest_notify.infrastructure.repositories import (
    DeviceTokenRepository,
    NotificationRepository,
    PreferenceRepository,
)
from quest_notify.infrastructure.security import caller_from_token
from quest_notify.infrastructure.transports import NullTransport, SendGridEmailTransport

bearer_scheme = HTTPBearer(auto_error=False)


def resolve_caller(token: str) -> Caller:
    """Resolve the authenticated caller for the provided token."""

    try:
        return caller_from_token(token)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


def get_optional_caller(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Caller | None:
    """Return the caller when a bearer token is present; ``None`` otherwise."""

    if credentials is None:
        return None
    return resolve_caller(credentials.credentials)


def get_current_caller(caller: Caller | None = Depends(get_optional_caller)) -> Caller:
    if caller is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return caller


def require_parent(caller: Caller = Depends(get_current_caller)) -> Caller:
    """Ensure the caller is a parent (or administrator) of a family."""

    if caller.role not in PARENT_ROLES or not caller.family_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized")
    return caller


def get_preference_store(db: Session = Depends(get_db)) -> PreferenceStore:
    return PreferenceStore(PreferenceRepository(db), default_preference_table())


def build_notification_service(db: Session) -> NotificationService:
    """Wire the notification service against ``db`` with the configured transports."""

    settings = get_settings()
    notifications = NotificationRepository(db)
    preferences = PreferenceStore(PreferenceRepository(db), default_preference_table())
    dispatcher = DeliveryDispatcher(
        notifications,
        DeviceTokenRepository(db),
        {
            Channel.PUSH: NullTransport(Channel.PUSH.value),
            Channel.SMS: NullTransport(Channel.SMS.value),
            Channel.EMAIL: SendGridEmailTransport(settings),
        },
        in_app=notification_publisher,
        preferences=preferences,
        concurrency=settings.dispatch_concurrency,
    )
    return NotificationService(
        preferences=preferences,
        notifications=notifications,
        dispatcher=dispatcher,
    )


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    return build_notification_service(db)
