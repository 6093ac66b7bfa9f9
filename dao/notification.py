from typing import List, Optional
from sqlalchemy.exc import SQLAlchemyError
from configs import db
from db.models.notification import Notification, NotificationType
from db.models.user import User, UserRole
from utils.errors import NotFoundError


def notify(
    recipient_id: int,
    message: str,
    type_: NotificationType,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
) -> Notification:
    """Add a notification to the current session; the caller commits."""
    n = Notification(
        recipient_id=recipient_id,
        message=message,
        type=type_,
        related_entity_type=entity_type,
        related_entity_id=entity_id,
    )
    db.session.add(n)
    return n


def notify_admins(
    message: str,
    type_: NotificationType,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
) -> List[Notification]:
    admins = User.query.filter_by(role=UserRole.ADMIN, is_active=True).all()
    return [notify(a.id, message, type_, entity_type, entity_id) for a in admins]


def list_notifications(user, unread_only: bool = False) -> List[Notification]:
    q = Notification.query.filter_by(recipient_id=user.id)
    if unread_only:
        q = q.filter_by(is_read=False)
    return q.order_by(Notification.id.desc()).all()


def mark_read(user, notification_id: int) -> Notification:
    n = Notification.query.filter_by(id=notification_id, recipient_id=user.id).first()
    if not n:
        raise NotFoundError("Notification not found.")
    n.is_read = True
    _commit()
    return n


def _commit():
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
