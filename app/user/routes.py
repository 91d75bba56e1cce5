from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from ..core.database import get_db
from ..core.auth import get_current_user
from ..core.security import verify_password
from ..core.invalidation_helpers import invalidate_specific_cache, invalidate_dashboard_cache
from .models import User
from .schemas import (
    UserUpdate, User as UserSchema, SubscriptionSummary,
    PlanResponse, SubscriptionRequest, SubscriptionRecord, SubscriptionResult,
)
from .crud import update_user
from .subscription import subscription_summary, subscribe, cancel_subscription
from .plans import get_plans
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["User"])
subscription_router = APIRouter(prefix="/api", tags=["Subscription"])

@router.get("/profile", response_model=UserSchema)
async def get_profile(current_user: User = Depends(get_current_user)):
    return current_user

@router.put("/profile", response_model=UserSchema)
async def update_profile(
    user_update: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Update the caller's own profile. Changing the password requires the
    current password.
    """
    update_data = user_update.model_dump(exclude_unset=True, exclude_none=True)
    current_password = update_data.pop("current_password", None)
    new_password = update_data.pop("new_password", None)

    if new_password:
        if not current_password or not verify_password(current_password, current_user.password):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Current password is incorrect"
            )
        update_data["password"] = new_password

    updated = update_user(db, current_user.user_id, update_data)
    await invalidate_specific_cache([f"user_info:{current_user.user_id}"])
    logger.info(f"User {current_user.user_id} updated profile fields: {list(update_data.keys())}")
    return updated

@router.get("/subscription", response_model=SubscriptionSummary)
async def get_subscription(current_user: User = Depends(get_current_user)):
    return subscription_summary(current_user)

@subscription_router.get("/subscription-plans", response_model=List[PlanResponse])
async def list_subscription_plans(db: Session = Depends(get_db)):
    return get_plans(db, active_only=True)

@subscription_router.post("/subscription", response_model=SubscriptionResult, status_code=status.HTTP_201_CREATED)
async def upgrade_subscription(
    request: SubscriptionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    record = subscribe(db, current_user, request.plan, request.payment_method, request.payment_id)
    await invalidate_dashboard_cache([current_user.user_id])
    if record is None:
        message = "Enterprise request submitted and awaiting admin approval"
    else:
        message = f"Subscribed to the {record.plan_type} plan"
    return {
        "message": message,
        "pendingApproval": record is None,
        "subscription": SubscriptionRecord.model_validate(record) if record else None,
        "status": subscription_summary(current_user),
    }

@subscription_router.post("/subscription/cancel", response_model=SubscriptionSummary)
async def cancel_current_subscription(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    user = cancel_subscription(db, current_user)
    await invalidate_dashboard_cache([user.user_id])
    return subscription_summary(user)
