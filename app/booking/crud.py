from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException, status
from typing import List, Optional
from datetime import datetime, date, timedelta
import csv
import io
import random
import string
import time
from .models import Booking, TrackingEvent
from .schemas import BookingCreate, BookingUpdate
from ..user.models import User
from ..user.crud import get_network_user_ids, get_fleet_owner_id
from ..user.subscription import ensure_can_create_bookings
from ..vehicle.models import Vehicle
from ..notification.crud import add_notification
import logging

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    "booked": "Your booking has been confirmed and is being processed",
    "picked": "Your shipment has been picked up and is on the way",
    "in_transit": "Your shipment is in transit to the destination",
    "delivered": "Your shipment has been delivered successfully",
    "cancelled": "Your booking has been cancelled",
}

DAILY_LIST_HEADER = ["Booking ID", "Sender", "Receiver", "Pickup City", "Delivery City", "Amount", "Status", "Date"]

def generate_booking_id() -> str:
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=5))
    return f"BK{int(time.time() * 1000)}{suffix}"

def generate_tracking_number() -> str:
    return f"TRK{int(time.time() * 1000)}{random.randint(1000, 9999)}"

def get_bookings_for_users(db: Session, user_ids: List[int], limit: Optional[int] = None) -> List[Booking]:
    query = db.query(Booking).filter(Booking.user_id.in_(user_ids)).order_by(Booking.created_at.desc(), Booking.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()

def get_user_bookings(db: Session, user: User, limit: Optional[int] = None) -> List[Booking]:
    """
    Bookings visible to the user: its own and those of its office accounts,
    newest first.
    """
    return get_bookings_for_users(db, get_network_user_ids(db, user), limit)

def get_booking_for_user(db: Session, booking_pk: int, user: User) -> Booking:
    """
    Fetch a booking the user may see: the creator, the creator's parent
    account, or an admin.

    Raises:
        HTTPException: 404 when missing or not visible
    """
    booking = db.query(Booking).filter(Booking.id == booking_pk).first()
    if not booking:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    if user.role == "admin" or booking.user_id == user.user_id:
        return booking
    owner = db.query(User).filter(User.user_id == booking.user_id).first()
    if owner and owner.parent_user_id == user.user_id:
        return booking
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")

def _stage_tracking_event(db: Session, booking: Booking, status_value: str,
                          location: Optional[str] = None, description: Optional[str] = None) -> Optional[TrackingEvent]:
    existing = db.query(TrackingEvent).filter(
        TrackingEvent.booking_id == booking.id,
        TrackingEvent.status == status_value
    ).first()
    if existing:
        return None
    event = TrackingEvent(
        booking_id=booking.id,
        status=status_value,
        location=location,
        description=description or STATUS_MESSAGES.get(status_value),
    )
    db.add(event)
    return event

def _fleet_vehicle(db: Session, owner: User, vehicle_id: int) -> Vehicle:
    vehicle = db.query(Vehicle).filter(
        Vehicle.id == vehicle_id,
        Vehicle.user_id == get_fleet_owner_id(owner)
    ).first()
    if not vehicle:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Vehicle not found in your fleet")
    return vehicle

def create_booking(db: Session, user: User, booking_data: BookingCreate) -> Booking:
    """
    Function: create_booking

    1. Summary:
    Create a shipment booking for the user.

    2. Purpose:
    Applies the trial gate, checks that a referenced vehicle belongs to the
    fleet the user operates, generates the public booking id and tracking
    number, records the initial `booked` tracking event and notifies the
    user and, for office accounts, the parent account. Everything commits
    in one transaction.

    3. Parameters:
    - db (Session): Database session
    - user (User): Creator
    - booking_data (BookingCreate): Validated booking payload

    4. Returns:
    - Booking: The persisted booking
    """
    ensure_can_create_bookings(db, user)

    try:
        data = booking_data.model_dump()
        if data.get("vehicle_id") is not None:
            vehicle = _fleet_vehicle(db, user, data["vehicle_id"])
            if not data.get("vehicle_type"):
                data["vehicle_type"] = vehicle.vehicle_type

        booking = Booking(
            **data,
            user_id=user.user_id,
            booking_id=generate_booking_id(),
            tracking_number=generate_tracking_number(),
            status="booked",
            payment_date=datetime.now() if data["payment_status"] == "paid" else None,
        )
        db.add(booking)
        db.flush()

        _stage_tracking_event(db, booking, "booked", location=booking.pickup_city)
        add_notification(
            db, user.user_id,
            title="Booking Created",
            message=f"Booking {booking.booking_id} from {booking.pickup_city} to {booking.delivery_city} has been created",
            type="booking",
            related_id=booking.booking_id,
        )
        if user.role == "office" and user.parent_user_id:
            add_notification(
                db, user.parent_user_id,
                title="New Agent Booking",
                message=f"Agent {user.full_name or user.email} created booking {booking.booking_id} worth {float(booking.total_amount or 0):.2f}",
                type="agent",
                related_id=booking.booking_id,
            )

        db.commit()
        db.refresh(booking)
        logger.info(f"Created booking {booking.booking_id} for user {user.user_id}")
        return booking
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating booking for user {user.user_id}: {str(e)}")
        raise

def update_booking(db: Session, booking: Booking, booking_data: BookingUpdate) -> Booking:
    """
    Apply a partial update. Null fields are left unchanged. A new vehicle
    must belong to the fleet of the booking's creator. A status change
    records a tracking event and notifies the creator; a payment status
    change notifies as well.
    """
    try:
        update_data = booking_data.model_dump(exclude_unset=True, exclude_none=True)
        if "vehicle_id" in update_data and update_data["vehicle_id"] != booking.vehicle_id:
            owner = db.query(User).filter(User.user_id == booking.user_id).first()
            _fleet_vehicle(db, owner, update_data["vehicle_id"])
        old_status = booking.status
        old_payment_status = booking.payment_status

        for key, value in update_data.items():
            setattr(booking, key, value)

        if booking.payment_status == "paid" and old_payment_status != "paid" and not booking.payment_date:
            booking.payment_date = datetime.now()

        if "status" in update_data and update_data["status"] != old_status:
            _stage_tracking_event(db, booking, booking.status)
            add_notification(
                db, booking.user_id,
                title=f"Booking {booking.status.replace('_', ' ').title()}",
                message=f"{STATUS_MESSAGES.get(booking.status, 'Booking status updated')} ({booking.booking_id})",
                type="booking",
                related_id=booking.booking_id,
            )

        if "payment_status" in update_data and update_data["payment_status"] != old_payment_status:
            add_notification(
                db, booking.user_id,
                title="Payment Updated",
                message=f"Payment status for booking {booking.booking_id} is now {booking.payment_status}",
                type="payment",
                related_id=booking.booking_id,
            )

        db.commit()
        db.refresh(booking)
        return booking
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating booking {booking.booking_id}: {str(e)}")
        raise

def get_tracking_events(db: Session, booking: Booking) -> List[TrackingEvent]:
    return (
        db.query(TrackingEvent)
        .filter(TrackingEvent.booking_id == booking.id)
        .order_by(TrackingEvent.timestamp, TrackingEvent.id)
        .all()
    )

def add_tracking_event(db: Session, booking: Booking, status_value: str,
                       location: Optional[str] = None, description: Optional[str] = None) -> Optional[TrackingEvent]:
    """
    Record a tracking event. Returns None when the booking already has an
    event for that status.
    """
    try:
        event = _stage_tracking_event(db, booking, status_value, location, description)
        if event is None:
            return None
        db.commit()
        db.refresh(event)
        return event
    except IntegrityError:
        # Lost a race with a concurrent insert of the same status
        db.rollback()
        return None
    except Exception as e:
        db.rollback()
        logger.error(f"Error adding tracking event to booking {booking.booking_id}: {str(e)}")
        raise

def get_daily_bookings(db: Session, user: User, day: date) -> List[Booking]:
    start = datetime.combine(day, datetime.min.time())
    end = start + timedelta(days=1)
    return (
        db.query(Booking)
        .filter(
            Booking.user_id.in_(get_network_user_ids(db, user)),
            Booking.created_at >= start,
            Booking.created_at < end,
        )
        .order_by(Booking.created_at)
        .all()
    )

def daily_list_csv(bookings: List[Booking]) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(DAILY_LIST_HEADER)
    for booking in bookings:
        writer.writerow([
            booking.booking_id,
            booking.sender_name,
            booking.receiver_name,
            booking.pickup_city,
            booking.delivery_city,
            f"{float(booking.total_amount or 0):.2f}",
            booking.status,
            booking.created_at.strftime("%Y-%m-%d %H:%M") if booking.created_at else "",
        ])
    return output.getvalue()
