from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Literal
from datetime import datetime

BookingType = Literal["FTL", "LTL", "part_load"]
BookingStatus = Literal["booked", "picked", "in_transit", "delivered", "cancelled"]
PaymentMethod = Literal["cash", "online", "pending", "free"]
PaymentStatus = Literal["paid", "pending", "failed", "free"]

class BookingBase(BaseModel):
    booking_type: BookingType = "FTL"
    vehicle_id: Optional[int] = None
    pickup_address: str = Field(min_length=1)
    pickup_city: str = Field(min_length=1)
    pickup_pincode: Optional[str] = None
    pickup_datetime: Optional[datetime] = None
    delivery_address: str = Field(min_length=1)
    delivery_city: str = Field(min_length=1)
    delivery_pincode: Optional[str] = None
    delivery_datetime: Optional[datetime] = None
    sender_name: str = Field(min_length=1)
    sender_phone: str = Field(min_length=1)
    sender_email: Optional[EmailStr] = None
    receiver_name: str = Field(min_length=1)
    receiver_phone: str = Field(min_length=1)
    receiver_email: Optional[EmailStr] = None
    weight: float = Field(default=0, ge=0)
    distance: float = Field(default=0, ge=0)
    item_count: int = Field(default=1, ge=1)
    cargo_description: Optional[str] = None
    vehicle_type: Optional[str] = None
    base_rate: float = Field(default=0, ge=0)
    handling_charges: float = Field(default=0, ge=0)
    gst_amount: float = Field(default=0, ge=0)
    total_amount: float = Field(default=0, ge=0)
    payment_method: PaymentMethod = "pending"
    payment_status: PaymentStatus = "pending"
    paid_amount: float = Field(default=0, ge=0)
    transaction_id: Optional[str] = None
    payment_notes: Optional[str] = None

class BookingCreate(BookingBase):
    pass

class BookingUpdate(BaseModel):
    vehicle_id: Optional[int] = None
    pickup_address: Optional[str] = None
    pickup_city: Optional[str] = None
    pickup_datetime: Optional[datetime] = None
    delivery_address: Optional[str] = None
    delivery_city: Optional[str] = None
    delivery_datetime: Optional[datetime] = None
    receiver_name: Optional[str] = None
    receiver_phone: Optional[str] = None
    receiver_email: Optional[EmailStr] = None
    cargo_description: Optional[str] = None
    base_rate: Optional[float] = Field(default=None, ge=0)
    handling_charges: Optional[float] = Field(default=None, ge=0)
    gst_amount: Optional[float] = Field(default=None, ge=0)
    total_amount: Optional[float] = Field(default=None, ge=0)
    payment_method: Optional[PaymentMethod] = None
    payment_status: Optional[PaymentStatus] = None
    paid_amount: Optional[float] = Field(default=None, ge=0)
    transaction_id: Optional[str] = None
    payment_notes: Optional[str] = None
    status: Optional[BookingStatus] = None

class BookingResponse(BookingBase):
    id: int
    booking_id: str
    tracking_number: Optional[str] = None
    user_id: int
    status: str
    payment_date: Optional[datetime] = None
    sender_email: Optional[str] = None
    receiver_email: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class TrackingEventCreate(BaseModel):
    status: BookingStatus
    location: Optional[str] = None
    description: Optional[str] = None

class TrackingEventResponse(BaseModel):
    id: int
    booking_id: int
    status: str
    location: Optional[str] = None
    description: Optional[str] = None
    timestamp: datetime

    class Config:
        from_attributes = True
