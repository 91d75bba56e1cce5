from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Literal, Any
from ..user.schemas import SubscriptionPlan, SubscriptionStatus
from ..booking.schemas import BookingStatus

class BasicInfoUpdate(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: EmailStr
    office_name: Optional[str] = None

class PasswordResetRequest(BaseModel):
    new_password: str

class CommissionUpdate(BaseModel):
    # Range and type are checked in crud so that a bad value is a 400
    commission_rate: Optional[Any] = None

class TrialExtension(BaseModel):
    days: Optional[int] = None

class SubscriptionUpdate(BaseModel):
    subscription_plan: Optional[SubscriptionPlan] = None
    subscription_status: Optional[SubscriptionStatus] = None

class EnterpriseDecision(BaseModel):
    action: Literal["approve", "reject"]
    commission_rate: Optional[float] = Field(default=None, ge=0, le=100)

class BookingStatusUpdate(BaseModel):
    status: BookingStatus

class UserStats(BaseModel):
    totalUsers: int
    activeUsers: int
    totalBookings: int
    totalRevenue: str
    monthlyRevenue: str
    monthlyGrowth: int
