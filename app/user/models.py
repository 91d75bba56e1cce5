from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL, Boolean, JSON
from datetime import datetime
from ..core.database import Base

class User(Base):
    __tablename__ = "users"
    user_id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=True)
    password = Column(String(255), nullable=False)
    email = Column(String(100), unique=True, nullable=False, index=True)
    first_name = Column(String(100))
    last_name = Column(String(100))
    phone = Column(String(20))
    company_name = Column(String(150))
    office_name = Column(String(150))
    city = Column(String(100))
    # transporter, distributor, warehouse, admin, office
    role = Column(String(20), default="transporter", nullable=False)
    # active, inactive, blocked
    status = Column(String(20), default="active", nullable=False)

    subscription_plan = Column(String(20), default="trial")
    subscription_status = Column(String(20), default="trial")
    subscription_start_date = Column(DateTime)
    trial_start_date = Column(DateTime)
    trial_end_date = Column(DateTime)
    is_free_access = Column(Boolean, default=False)

    commission_rate = Column(DECIMAL(5, 2), default=0)
    billing_percentage = Column(DECIMAL(5, 2))
    enterprise_approval_status = Column(String(20))
    approved_by = Column(Integer, ForeignKey("users.user_id"), nullable=True)
    approved_at = Column(DateTime)

    # Office accounts (agents) point at the account that created them
    parent_user_id = Column(Integer, ForeignKey("users.user_id"), nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in [self.first_name, self.last_name] if part).strip()

    @property
    def is_office_account(self) -> bool:
        return self.role == "office"

class PricingPlan(Base):
    __tablename__ = "subscription_plans"
    id = Column(Integer, primary_key=True, index=True)
    # starter, professional, enterprise
    code = Column(String(20), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    price = Column(DECIMAL(10, 2), nullable=False)
    duration = Column(Integer, default=1, nullable=False)  # months
    features = Column(JSON, default=list)
    # NULL limits mean unlimited
    max_bookings = Column(Integer, nullable=True)
    max_vehicles = Column(Integer, nullable=True)
    max_agents = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=True)
    is_popular = Column(Boolean, default=False)
    discount_percentage = Column(Integer, default=0)
    sort_order = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

class Subscription(Base):
    __tablename__ = "subscriptions"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    plan_id = Column(Integer, ForeignKey("subscription_plans.id"), nullable=True)
    plan_type = Column(String(20), nullable=False)
    # active, cancelled, expired
    status = Column(String(20), default="active", nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    amount = Column(DECIMAL(10, 2), nullable=False)
    payment_method = Column(String(50))
    payment_id = Column(String(100))
    created_at = Column(DateTime, default=datetime.now)
