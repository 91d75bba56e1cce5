from fastapi import APIRouter, Depends, HTTPException, status, Query, Response
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
from ..core.database import get_db
from ..core.auth import get_current_user
from ..core.invalidation_helpers import invalidate_dashboard_cache
from ..auth.authentication import get_current_user_with_permissions
from ..user.models import User
from .schemas import BookingCreate, BookingUpdate, BookingResponse, TrackingEventCreate, TrackingEventResponse
from . import crud
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])

def _affected_users(user: User) -> List[int]:
    return [user.user_id, user.parent_user_id]

@router.get("", response_model=List[BookingResponse])
async def list_bookings(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return crud.get_user_bookings(db, current_user)

@router.get("/recent", response_model=List[BookingResponse])
async def recent_bookings(
    limit: int = Query(5, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return crud.get_user_bookings(db, current_user, limit=limit)

@router.get("/daily-list")
async def daily_booking_list(
    day: Optional[date] = Query(None, alias="date"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    CSV of the bookings created on one day (today by default).
    """
    day = day or date.today()
    content = crud.daily_list_csv(crud.get_daily_bookings(db, current_user, day))
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="bookings-{day.isoformat()}.csv"'},
    )

@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking: BookingCreate,
    current_user: User = Depends(get_current_user_with_permissions(["create_bookings"])),
    db: Session = Depends(get_db)
):
    db_booking = crud.create_booking(db, current_user, booking)
    await invalidate_dashboard_cache(_affected_users(current_user))
    return db_booking

@router.get("/{booking_pk}", response_model=BookingResponse)
async def get_booking(booking_pk: int, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return crud.get_booking_for_user(db, booking_pk, current_user)

@router.put("/{booking_pk}", response_model=BookingResponse)
async def update_booking(
    booking_pk: int,
    booking_update: BookingUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    booking = crud.get_booking_for_user(db, booking_pk, current_user)
    owner_id = booking.user_id
    updated = crud.update_booking(db, booking, booking_update)
    await invalidate_dashboard_cache([owner_id, current_user.user_id, current_user.parent_user_id])
    return updated

@router.get("/{booking_pk}/tracking", response_model=List[TrackingEventResponse])
async def get_tracking(booking_pk: int, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    booking = crud.get_booking_for_user(db, booking_pk, current_user)
    return crud.get_tracking_events(db, booking)

@router.post("/{booking_pk}/tracking", response_model=TrackingEventResponse, status_code=status.HTTP_201_CREATED)
async def add_tracking(
    booking_pk: int,
    event: TrackingEventCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    booking = crud.get_booking_for_user(db, booking_pk, current_user)
    created = crud.add_tracking_event(db, booking, event.status, event.location, event.description)
    if created is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Tracking event '{event.status}' already recorded for this booking"
        )
    return created
