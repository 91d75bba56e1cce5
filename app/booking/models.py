from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL, Float, UniqueConstraint
from datetime import datetime
from ..core.database import Base

class Booking(Base):
    __tablename__ = "bookings"
    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(String(40), unique=True, nullable=False, index=True)
    tracking_number = Column(String(40), unique=True, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=True)
    # FTL, LTL, part_load
    booking_type = Column(String(20), nullable=False, default="FTL")

    pickup_address = Column(Text, nullable=False)
    pickup_city = Column(String(100), nullable=False, index=True)
    pickup_pincode = Column(String(10))
    pickup_datetime = Column(DateTime)
    delivery_address = Column(Text, nullable=False)
    delivery_city = Column(String(100), nullable=False)
    delivery_pincode = Column(String(10))
    delivery_datetime = Column(DateTime)

    sender_name = Column(String(150), nullable=False)
    sender_phone = Column(String(20), nullable=False)
    sender_email = Column(String(100))
    receiver_name = Column(String(150), nullable=False)
    receiver_phone = Column(String(20), nullable=False)
    receiver_email = Column(String(100))

    weight = Column(Float, default=0)
    distance = Column(Float, default=0)
    item_count = Column(Integer, default=1)
    cargo_description = Column(Text)
    vehicle_type = Column(String(50))

    base_rate = Column(DECIMAL(12, 2), default=0)
    handling_charges = Column(DECIMAL(12, 2), default=0)
    gst_amount = Column(DECIMAL(12, 2), default=0)
    total_amount = Column(DECIMAL(12, 2), default=0)

    # cash, online, pending, free
    payment_method = Column(String(20), default="pending")
    # paid, pending, failed, free
    payment_status = Column(String(20), default="pending")
    paid_amount = Column(DECIMAL(12, 2), default=0)
    transaction_id = Column(String(100))
    payment_notes = Column(Text)
    payment_date = Column(DateTime)

    # booked, picked, in_transit, delivered, cancelled
    status = Column(String(20), default="booked", nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.now, index=True)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

class TrackingEvent(Base):
    __tablename__ = "tracking_events"
    __table_args__ = (UniqueConstraint("booking_id", "status", name="uq_tracking_booking_status"),)
    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False)
    location = Column(String(150))
    description = Column(Text)
    timestamp = Column(DateTime, default=datetime.now)
