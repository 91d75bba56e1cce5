from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime

class OfficeAccountCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    first_name: str = Field(min_length=1)
    last_name: Optional[str] = None
    office_name: str = Field(min_length=1)
    phone: Optional[str] = None
    city: Optional[str] = None
    commission_rate: float = Field(default=5.0, ge=0, le=100)

class OfficeAccountUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    office_name: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    commission_rate: Optional[float] = Field(default=None, ge=0, le=100)
    status: Optional[str] = Field(default=None, pattern="^(active|inactive)$")

class PasswordReset(BaseModel):
    new_password: str = Field(min_length=6)

class OfficeAccountResponse(BaseModel):
    user_id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    office_name: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    role: str
    status: str
    commission_rate: Optional[float] = None
    parent_user_id: Optional[int] = None
    subscription_status: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
