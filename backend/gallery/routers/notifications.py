from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies.auth import get_current_user, get_optional_user
from ..dependencies.services import get_notifications
from ..schemas.api import NotificationOut
from ..schemas.records import UserRecord
from ..services.notifications import Notification, NotificationChannel

router = APIRouter(prefix="/v1/notifications", tags=["notifications"])


def _to_out(n: Notification) -> NotificationOut:
    return NotificationOut(id=n.id, level=n.level, message=n.message, user_id=n.user_id, created_at=n.created_at)


@router.get("", response_model=List[NotificationOut])
def list_notifications(
    user: Optional[UserRecord] = Depends(get_optional_user),
    channel: NotificationChannel = Depends(get_notifications),
):
    return [_to_out(n) for n in channel.pending(user.id if user else None)]


@router.delete("/{notification_id}", status_code=204)
def dismiss_notification(
    notification_id: str,
    user: UserRecord = Depends(get_current_user),
    channel: NotificationChannel = Depends(get_notifications),
):
    if not channel.dismiss(notification_id, user.id):
        raise HTTPException(status_code=404, detail="Notification not found")
