from pydantic import BaseModel, Field
from typing import Optional, Literal
from datetime import datetime

VehicleStatus = Literal["available", "in_transit", "maintenance"]

class VehicleBase(BaseModel):
    registration_number: str = Field(min_length=1, max_length=30)
    vehicle_type: str
    capacity: Optional[float] = Field(default=None, ge=0)
    driver_name: Optional[str] = None
    driver_phone: Optional[str] = None
    driver_license: Optional[str] = None
    status: VehicleStatus = "available"
    current_location: Optional[str] = None

class VehicleCreate(VehicleBase):
    pass

class VehicleUpdate(BaseModel):
    registration_number: Optional[str] = Field(default=None, min_length=1, max_length=30)
    vehicle_type: Optional[str] = None
    capacity: Optional[float] = Field(default=None, ge=0)
    driver_name: Optional[str] = None
    driver_phone: Optional[str] = None
    driver_license: Optional[str] = None
    status: Optional[VehicleStatus] = None
    current_location: Optional[str] = None

class VehicleResponse(VehicleBase):
    id: int
    user_id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
