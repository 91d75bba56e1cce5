from .models import Booking, TrackingEvent
from .schemas import BookingCreate, BookingUpdate, BookingResponse

# Export crud functions
from .crud import (
    create_booking,
    update_booking,
    get_user_bookings,
    get_bookings_for_users,
    get_booking_for_user,
    add_tracking_event,
    get_tracking_events,
)

# Router last to avoid a circular import
from .routes import router
