"""Notification endpoints for the current user."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.api.v1.auth import get_current_user, get_discepto
from app.schemas.notification import NotificationView
from app.services.discepto import DisceptoHandle
from app.services.users import UserHandle

router = APIRouter()


@router.get("", response_model=list[NotificationView])
def list_notifications(
    discepto: Annotated[DisceptoHandle, Depends(get_discepto)],
    user: Annotated[UserHandle, Depends(get_current_user)],
) -> list[NotificationView]:
    """Newest first."""
    return discepto.list_notifications(user)


@router.delete("/{notif_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notif_id: int,
    discepto: Annotated[DisceptoHandle, Depends(get_discepto)],
    user: Annotated[UserHandle, Depends(get_current_user)],
) -> None:
    discepto.delete_notification(user, notif_id)
