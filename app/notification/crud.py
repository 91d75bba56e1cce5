from sqlalchemy.orm import Session
from typing import List, Optional
from .models import Notification
import logging

logger = logging.getLogger(__name__)

def add_notification(db: Session, user_id: int, title: str, message: str,
                     type: str = "system", related_id: Optional[str] = None) -> Notification:
    """
    Stage a notification in the current transaction. The caller commits.
    """
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=type,
        related_id=related_id,
    )
    db.add(notification)
    return notification

def get_notifications(db: Session, user_id: int, limit: int = 50) -> List[Notification]:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )

def get_unread_count(db: Session, user_id: int) -> int:
    return db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.is_read == False
    ).count()

def mark_read(db: Session, user_id: int, notification_id: int) -> Optional[Notification]:
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == user_id
    ).first()
    if not notification:
        return None
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification

def mark_all_read(db: Session, user_id: int) -> int:
    try:
        updated = db.query(Notification).filter(
            Notification.user_id == user_id,
            Notification.is_read == False
        ).update({"is_read": True}, synchronize_session=False)
        db.commit()
        return updated
    except Exception as e:
        db.rollback()
        logger.error(f"Error marking notifications read for user {user_id}: {str(e)}")
        raise

def delete_notification(db: Session, user_id: int, notification_id: int) -> bool:
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == user_id
    ).first()
    if not notification:
        return False
    db.delete(notification)
    db.commit()
    return True
