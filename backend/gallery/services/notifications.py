"""
Transient, dismissable notifications surfaced to users (toast equivalent).

Permission and persistence failures land here; they are also logged.
"""
import logging
import threading
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Deque, List, Optional, Set

logger = logging.getLogger(__name__)

LEVEL_INFO = "info"
LEVEL_SUCCESS = "success"
LEVEL_ERROR = "error"


@dataclass
class Notification:
    level: str
    message: str
    user_id: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=datetime.utcnow)
    # Users who hid this broadcast
    dismissed_by: Set[str] = field(default_factory=set)


class NotificationChannel:
    """Bounded in-memory queue of notifications, newest last."""

    def __init__(self, max_items: int = 200):
        self._lock = threading.Lock()
        self._items: Deque[Notification] = deque(maxlen=max_items)

    def publish(self, message: str, level: str = LEVEL_INFO, user_id: Optional[str] = None) -> Notification:
        notification = Notification(level=level, message=message, user_id=user_id)
        with self._lock:
            self._items.append(notification)
        log = logger.warning if level == LEVEL_ERROR else logger.info
        log("Notification for %s [%s]: %s", user_id or "all", level, message)
        return notification

    def error(self, message: str, user_id: Optional[str] = None) -> Notification:
        return self.publish(message, level=LEVEL_ERROR, user_id=user_id)

    def pending(self, user_id: Optional[str] = None) -> List[Notification]:
        """Notifications addressed to user_id plus broadcasts it has not dismissed."""
        with self._lock:
            return [
                n for n in self._items
                if n.user_id == user_id or (n.user_id is None and user_id not in n.dismissed_by)
            ]

    def dismiss(self, notification_id: str, user_id: Optional[str]) -> bool:
        """
        Dismiss a notification for one user.

        A personal notification is removed outright. A broadcast is only hidden
        for this user; everyone else still sees it.
        """
        if not user_id:
            return False
        with self._lock:
            for n in list(self._items):
                if n.id != notification_id:
                    continue
                if n.user_id == user_id:
                    self._items.remove(n)
                    return True
                if n.user_id is None and user_id not in n.dismissed_by:
                    n.dismissed_by.add(user_id)
                    return True
        return False
