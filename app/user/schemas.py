from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Literal, List
from datetime import datetime

SelfServiceRole = Literal["transporter", "distributor", "warehouse"]
UserRole = Literal["transporter", "distributor", "warehouse", "admin", "office"]
SubscriptionPlan = Literal["trial", "starter", "professional", "enterprise"]
SubscriptionStatus = Literal["trial", "active", "expired", "cancelled"]
PaidPlan = Literal["starter", "professional", "enterprise"]

class Token(BaseModel):
    access_token: str
    token_type: str

class UserBase(BaseModel):
    email: EmailStr
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    company_name: Optional[str] = None
    city: Optional[str] = None

class UserCreate(UserBase):
    password: str
    role: SelfServiceRole = "transporter"

class AdminUserCreate(UserBase):
    password: str
    role: UserRole = "transporter"
    subscription_plan: SubscriptionPlan = "trial"
    subscription_status: SubscriptionStatus = "trial"
    commission_rate: Optional[float] = Field(default=None, ge=0, le=100)

class UserUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    company_name: Optional[str] = None
    office_name: Optional[str] = None
    city: Optional[str] = None
    current_password: Optional[str] = None
    new_password: Optional[str] = Field(default=None, min_length=6)

class Login(BaseModel):
    username_or_email: str
    password: str

class User(UserBase):
    user_id: int
    role: str
    status: str
    office_name: Optional[str] = None
    subscription_plan: Optional[str] = None
    subscription_status: Optional[str] = None
    trial_start_date: Optional[datetime] = None
    trial_end_date: Optional[datetime] = None
    commission_rate: Optional[float] = None
    is_free_access: Optional[bool] = None
    parent_user_id: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class SubscriptionSummary(BaseModel):
    plan: Optional[str] = None
    status: Optional[str] = None
    trialEndDate: Optional[datetime] = None
    trialDaysRemaining: int
    isTrialExpired: bool
    canCreateBookings: bool
    isFreeAccess: bool = False

class PlanBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    price: float = Field(..., ge=0)
    duration: int = Field(default=1, ge=1)
    features: List[str] = []
    max_bookings: Optional[int] = Field(default=None, ge=0)
    max_vehicles: Optional[int] = Field(default=None, ge=0)
    max_agents: Optional[int] = Field(default=None, ge=0)
    is_active: bool = True
    is_popular: bool = False
    discount_percentage: int = Field(default=0, ge=0, le=100)
    sort_order: int = 0

class PlanCreate(PlanBase):
    code: PaidPlan

class PlanUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    duration: Optional[int] = Field(default=None, ge=1)
    features: Optional[List[str]] = None
    max_bookings: Optional[int] = Field(default=None, ge=0)
    max_vehicles: Optional[int] = Field(default=None, ge=0)
    max_agents: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None
    is_popular: Optional[bool] = None
    discount_percentage: Optional[int] = Field(default=None, ge=0, le=100)
    sort_order: Optional[int] = None

class PlanResponse(PlanBase):
    id: int
    code: str
    features: Optional[List[str]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class SubscriptionRequest(BaseModel):
    plan: PaidPlan
    payment_method: Optional[str] = Field(default=None, max_length=50)
    payment_id: Optional[str] = Field(default=None, max_length=100)

class SubscriptionRecord(BaseModel):
    id: int
    plan_id: Optional[int] = None
    plan_type: str
    status: str
    start_date: datetime
    end_date: datetime
    amount: float
    payment_method: Optional[str] = None
    payment_id: Optional[str] = None

    class Config:
        from_attributes = True

class SubscriptionResult(BaseModel):
    message: str
    pendingApproval: bool = False
    subscription: Optional[SubscriptionRecord] = None
    status: SubscriptionSummary
