"""Notification sink: send, list and delete user notifications."""

import logging

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.core.database import transaction
from app.models import Notification
from app.schemas.notification import NotificationCreate, NotificationView

logger = logging.getLogger(__name__)


class NotificationService:
    """Stateless apart from the session it writes through; scope handles receive it as a dependency."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def send(self, notif: NotificationCreate, to_user_id: int) -> None:
        with transaction(self.db):
            self.db.add(
                Notification(
                    user_id=to_user_id,
                    notif_type=notif.notif_type,
                    title=notif.title,
                    text=notif.text,
                    action_url=notif.action_url,
                )
            )
            self.db.flush()
        logger.debug("Sent %s notification to user %s", notif.notif_type, to_user_id)

    def list(self, user_id: int) -> list[NotificationView]:
        stmt = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.id.desc())
        )
        return [NotificationView.model_validate(n) for n in self.db.execute(stmt).scalars()]

    def delete(self, user_id: int, notif_id: int) -> None:
        with transaction(self.db):
            self.db.execute(
                delete(Notification).where(
                    Notification.user_id == user_id,
                    Notification.id == notif_id,
                )
            )
