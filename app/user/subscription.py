"""
Trial and subscription state of an account, plus the commission rules
applied to booking value.

A user moves between `trial`, `active`, `expired` and `cancelled`. The trial
window ends at `trial_end_date` when one is stored, otherwise
TRIAL_PERIOD_DAYS after the trial started.
"""

import math
import calendar
from datetime import datetime, timedelta
from typing import Optional
from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from .models import User, PricingPlan, Subscription
from .plans import get_plan_by_code
from ..core.config import TRIAL_PERIOD_DAYS, DEFAULT_COMMISSION_RATE, DEFAULT_PLAN_PRICES
import logging

logger = logging.getLogger(__name__)

def trial_end(user: User, now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now()
    if user.trial_end_date:
        return user.trial_end_date
    start = user.trial_start_date or user.created_at
    if start:
        return start + timedelta(days=TRIAL_PERIOD_DAYS)
    return now + timedelta(days=TRIAL_PERIOD_DAYS)

def trial_days_remaining(user: User, now: Optional[datetime] = None) -> int:
    now = now or datetime.now()
    seconds_left = (trial_end(user, now) - now).total_seconds()
    return max(0, math.ceil(seconds_left / 86400))

def is_trial_expired(user: User, now: Optional[datetime] = None) -> bool:
    now = now or datetime.now()
    return user.subscription_status == "trial" and now > trial_end(user, now)

def can_create_bookings(user: User, now: Optional[datetime] = None) -> bool:
    if user.status == "blocked":
        return False
    if user.is_free_access:
        return True
    if user.subscription_status == "active":
        return True
    return user.subscription_status == "trial" and not is_trial_expired(user, now)

def ensure_can_create_bookings(db: Session, user: User) -> None:
    """
    Refuse booking creation for an expired trial, including the trial of the
    parent account when the caller is an office account.

    Raises:
        HTTPException: 403 with code TRIAL_EXPIRED or PARENT_TRIAL_EXPIRED
    """
    now = datetime.now()
    if is_trial_expired(user, now):
        logger.info(f"Booking refused for user {user.user_id}: trial expired")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "message": "Trial expired",
                "code": "TRIAL_EXPIRED",
                "description": f"Your {TRIAL_PERIOD_DAYS}-day trial has expired. Please upgrade to continue.",
            },
        )

    if user.role == "office" and user.parent_user_id:
        parent = db.query(User).filter(User.user_id == user.parent_user_id).first()
        if parent and is_trial_expired(parent, now):
            logger.info(f"Booking refused for agent {user.user_id}: parent trial expired")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "message": "Parent account trial expired",
                    "code": "PARENT_TRIAL_EXPIRED",
                },
            )

def effective_commission_rate(user: User) -> float:
    rate = float(user.commission_rate or 0)
    return rate if rate > 0 else DEFAULT_COMMISSION_RATE

def commission_amount(amount: float, rate: float) -> int:
    return math.ceil(amount * rate / 100)

def subscription_revenue(user: User, prices: Optional[dict] = None) -> float:
    """Monthly price of an active plan, read from `prices` (plan code to price) when given."""
    if user.subscription_status != "active" or not user.subscription_plan:
        return 0
    prices = DEFAULT_PLAN_PRICES if prices is None else prices
    # Older accounts carry the short code
    plan = "professional" if user.subscription_plan == "pro" else user.subscription_plan
    return prices.get(plan, 0)

def revenue_source(subscription: float, commission: float) -> str:
    if subscription > 0 and commission > 0:
        return "both"
    if commission > 0:
        return "commission"
    return "subscription"

def add_months(value: datetime, months: int) -> datetime:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)

def next_renewal_date(user: User) -> Optional[datetime]:
    if user.subscription_status != "active" or user.subscription_plan in (None, "trial"):
        return None
    start = user.subscription_start_date or user.created_at
    if not start:
        return None
    return add_months(start, 1)

def subscription_summary(user: User) -> dict:
    now = datetime.now()
    return {
        "plan": user.subscription_plan,
        "status": user.subscription_status,
        "trialEndDate": trial_end(user, now),
        "trialDaysRemaining": trial_days_remaining(user, now),
        "isTrialExpired": is_trial_expired(user, now),
        "canCreateBookings": can_create_bookings(user, now),
        "isFreeAccess": bool(user.is_free_access),
    }

def start_subscription(
    db: Session,
    user: User,
    plan: PricingPlan,
    payment_method: Optional[str] = None,
    payment_id: Optional[str] = None,
    now: Optional[datetime] = None
) -> Subscription:
    """
    Stage a new active subscription period for `user` on `plan` and move the
    account onto it. Any running period is closed as cancelled. The caller
    commits.
    """
    now = now or datetime.now()
    db.query(Subscription).filter(
        Subscription.user_id == user.user_id,
        Subscription.status == "active"
    ).update({"status": "cancelled"}, synchronize_session=False)
    record = Subscription(
        user_id=user.user_id,
        plan_id=plan.id,
        plan_type=plan.code,
        status="active",
        start_date=now,
        end_date=add_months(now, plan.duration or 1),
        amount=plan.price,
        payment_method=payment_method,
        payment_id=payment_id,
    )
    db.add(record)
    user.subscription_plan = plan.code
    user.subscription_status = "active"
    user.subscription_start_date = now
    return record

def subscribe(
    db: Session,
    user: User,
    plan_code: str,
    payment_method: Optional[str] = None,
    payment_id: Optional[str] = None
) -> Optional[Subscription]:
    """
    Function: subscribe

    1. Summary:
    Self-service upgrade to a paid plan.

    2. Purpose:
    Starter and professional start immediately with a new subscription
    period. Enterprise only records a pending request; the account keeps
    its current plan until an admin approves it.

    3. Parameters:
    - db (Session): Database session
    - user (User): The account upgrading
    - plan_code (str): Catalogue code of the plan
    - payment_method, payment_id (str): Stored on the subscription record

    4. Returns:
    - Subscription: The new period, or None for an enterprise request

    5. Raises:
    - HTTPException: 403 for office accounts, 400 for an unavailable plan,
      the current plan or an enterprise request already pending
    """
    if user.role == "office":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Office accounts use the subscription of their parent account"
        )
    plan = get_plan_by_code(db, plan_code)
    if not plan or not plan.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Plan is not available")
    if user.subscription_status == "active" and user.subscription_plan == plan.code:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Already subscribed to this plan")

    try:
        if plan.code == "enterprise":
            if user.enterprise_approval_status == "pending":
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Enterprise request is already pending"
                )
            user.enterprise_approval_status = "pending"
            user.approved_by = None
            user.approved_at = None
            record = None
        else:
            record = start_subscription(db, user, plan, payment_method, payment_id)
        db.commit()
        db.refresh(user)
        if record:
            db.refresh(record)
        logger.info(f"User {user.user_id} subscribed to {plan.code}")
        return record
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error subscribing user {user.user_id} to {plan_code}: {str(e)}")
        raise

def cancel_subscription(db: Session, user: User) -> User:
    if user.subscription_status != "active" or user.subscription_plan in (None, "trial"):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active subscription found")
    try:
        db.query(Subscription).filter(
            Subscription.user_id == user.user_id,
            Subscription.status == "active"
        ).update({"status": "cancelled"}, synchronize_session=False)
        user.subscription_status = "cancelled"
        db.commit()
        db.refresh(user)
        logger.info(f"User {user.user_id} cancelled the {user.subscription_plan} plan")
        return user
    except Exception as e:
        db.rollback()
        logger.error(f"Error cancelling subscription of user {user.user_id}: {str(e)}")
        raise
