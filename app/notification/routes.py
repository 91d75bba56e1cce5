from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List
from ..core.database import get_db
from ..core.auth import get_current_user
from ..user.models import User
from .schemas import NotificationResponse, UnreadCount
from . import crud

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])

@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return crud.get_notifications(db, current_user.user_id, limit)

@router.get("/unread-count", response_model=UnreadCount)
async def unread_count(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"count": crud.get_unread_count(db, current_user.user_id)}

@router.put("/mark-all-read", response_model=dict)
async def mark_all_notifications_read(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    updated = crud.mark_all_read(db, current_user.user_id)
    return {"message": "All notifications marked as read", "updated": updated}

@router.put("/{notification_id}/mark-read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    notification = crud.mark_read(db, current_user.user_id, notification_id)
    if not notification:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return notification

@router.delete("/{notification_id}", response_model=dict)
async def delete_notification(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if not crud.delete_notification(db, current_user.user_id, notification_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return {"message": "Notification deleted"}
