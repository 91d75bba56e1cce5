from fastapi import APIRouter, Depends, HTTPException, status, Query, Response
from sqlalchemy.orm import Session
from typing import List, Dict, Any
import json
import logging
from ..core.database import get_db
from ..core.auth import get_current_user
from ..core.cache import get_cache, set_cache
from ..core.invalidation_helpers import invalidate_dashboard_cache
from ..user.models import User
from ..user.schemas import AdminUserCreate, User as UserSchema, PlanCreate, PlanUpdate, PlanResponse
from ..user import plans
from ..user.crud import create_user, delete_user, get_user_by_email, get_user_by_username
from ..booking.schemas import BookingResponse, BookingUpdate
from ..booking.crud import update_booking
from ..booking.models import Booking
from ..vehicle.schemas import VehicleResponse
from .schemas import (
    BasicInfoUpdate, PasswordResetRequest, CommissionUpdate, TrialExtension,
    SubscriptionUpdate, EnterpriseDecision, BookingStatusUpdate, UserStats
)
from . import crud

router = APIRouter(prefix="/api/admin", tags=["Admin"])

logger = logging.getLogger(__name__)

def check_admin(user: User):
    if user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admin users can access this endpoint"
        )

# User management

@router.get("/users", response_model=List[Dict[str, Any]])
async def get_all_users(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Every account with trial state, booking totals and the revenue it brings
    to the platform.
    """
    check_admin(current_user)
    return crud.get_users_with_revenue(db)

@router.post("/users", response_model=UserSchema, status_code=status.HTTP_201_CREATED)
async def create_admin_user(
    user: AdminUserCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)
    if user.username and get_user_by_username(db, user.username):
        raise HTTPException(status_code=400, detail="Username already registered")
    if get_user_by_email(db, user.email):
        raise HTTPException(status_code=400, detail="Email already registered")
    if len(user.password) < 6:
        raise HTTPException(status_code=400, detail="Password must be at least 6 characters")

    new_user = create_user(db, user)
    await invalidate_dashboard_cache()
    logger.info(f"User {new_user.user_id} created by admin {current_user.user_id}")
    return new_user

@router.get("/user-stats", response_model=UserStats)
async def get_user_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)

    cache_key = "admin:user_stats"
    cached_data = await get_cache(cache_key)
    if cached_data:
        return json.loads(cached_data)

    result = crud.get_user_stats(db)
    await set_cache(cache_key, json.dumps(result), 300)
    return result

@router.get("/enterprise-requests", response_model=List[UserSchema])
async def get_enterprise_requests(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)
    return crud.get_enterprise_requests(db)

@router.get("/users/{user_id}", response_model=Dict[str, Any])
async def get_user_by_id(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)
    user = crud.get_user_or_404(db, user_id)
    return crud.user_to_dict(user)

@router.patch("/users/{user_id}/basic-info", response_model=Dict[str, Any])
async def update_basic_info(
    user_id: int,
    data: BasicInfoUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)
    user = crud.get_user_or_404(db, user_id)
    updated = crud.update_basic_info(db, user, data)
    await invalidate_dashboard_cache([user_id])
    return crud.user_to_dict(updated)

@router.patch("/users/{user_id}/reset-password", response_model=Dict[str, Any])
async def reset_user_password(
    user_id: int,
    data: PasswordResetRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)
    user = crud.get_user_or_404(db, user_id)
    crud.reset_password(db, user, data.new_password)
    logger.info(f"Password of user {user_id} reset by admin {current_user.user_id}")
    return {"message": "Password reset successfully"}

@router.patch("/users/{user_id}/commission", response_model=Dict[str, Any])
async def update_commission(
    user_id: int,
    data: CommissionUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)
    user = crud.get_user_or_404(db, user_id)
    updated = crud.set_commission_rate(db, user, data.commission_rate)
    await invalidate_dashboard_cache([user_id])
    return {"message": "Commission rate updated successfully", "user": crud.user_to_dict(updated)}

@router.patch("/users/{user_id}/extend-trial", response_model=Dict[str, Any])
async def extend_trial(
    user_id: int,
    data: TrialExtension,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)
    user = crud.get_user_or_404(db, user_id)
    new_end = crud.extend_trial(db, user, data.days)
    await invalidate_dashboard_cache([user_id])
    return {
        "message": f"Trial extended by {data.days} days successfully",
        "newTrialEndDate": new_end.isoformat(),
        "user": user.email,
    }

@router.patch("/users/{user_id}/enable-free-account", response_model=Dict[str, Any])
async def enable_free_account(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)
    user = crud.get_user_or_404(db, user_id)
    free_until = crud.enable_free_account(db, user)
    await invalidate_dashboard_cache([user_id])
    return {
        "message": "Free unlimited account enabled successfully",
        "freeTrialEndDate": free_until.isoformat(),
        "user": user.email,
        "plan": "enterprise",
    }

@router.put("/users/{user_id}/subscription", response_model=Dict[str, Any])
async def update_subscription(
    user_id: int,
    data: SubscriptionUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)
    user = crud.get_user_or_404(db, user_id)
    updated = crud.update_subscription(db, user, data)
    await invalidate_dashboard_cache([user_id])
    return crud.user_to_dict(updated)

@router.post("/users/{user_id}/block", response_model=Dict[str, Any])
async def block_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)
    user = crud.get_user_or_404(db, user_id)
    updated = crud.set_blocked(db, user, True)
    await invalidate_dashboard_cache([user_id])
    logger.info(f"User {user_id} blocked by admin {current_user.user_id}")
    return crud.user_to_dict(updated)

@router.post("/users/{user_id}/unblock", response_model=Dict[str, Any])
async def unblock_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)
    user = crud.get_user_or_404(db, user_id)
    updated = crud.set_blocked(db, user, False)
    await invalidate_dashboard_cache([user_id])
    return crud.user_to_dict(updated)

@router.patch("/users/{user_id}/approve-enterprise", response_model=Dict[str, Any])
async def approve_enterprise(
    user_id: int,
    decision: EnterpriseDecision,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)
    user = crud.get_user_or_404(db, user_id)
    updated = crud.decide_enterprise(db, current_user, user, decision)
    await invalidate_dashboard_cache([user_id])
    return {
        "message": f"Enterprise plan {decision.action}d successfully",
        "user": crud.user_to_dict(updated),
    }

@router.get("/users/{user_id}/analytics", response_model=Dict[str, Any])
async def get_user_analytics(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)
    user = crud.get_user_or_404(db, user_id)
    return crud.get_user_analytics(db, user)

@router.get("/users/{user_id}/office-accounts", response_model=List[Dict[str, Any]])
async def get_user_office_accounts(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)
    user = crud.get_user_or_404(db, user_id)
    return crud.get_user_office_accounts(db, user)

@router.get("/users/{user_id}/detailed-analytics", response_model=Dict[str, Any])
async def get_user_detailed_analytics(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)
    user = crud.get_user_or_404(db, user_id)
    return crud.get_user_detailed_analytics(db, user)

@router.delete("/users/{user_id}", response_model=Dict[str, Any])
async def delete_user_admin(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Delete an account together with its office accounts and everything they
    own. Admin accounts cannot be deleted.
    """
    check_admin(current_user)
    user = crud.get_user_or_404(db, user_id)
    if user.role == "admin":
        raise HTTPException(status_code=400, detail="Admin accounts cannot be deleted")

    delete_user(db, user_id)
    await invalidate_dashboard_cache([user_id])
    logger.info(f"User {user_id} deleted by admin {current_user.user_id}, cache updated")
    return {"message": "User deleted successfully"}

# Platform analytics

@router.get("/analytics", response_model=Dict[str, Any])
async def get_platform_analytics(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)

    cache_key = "admin:analytics"
    cached_data = await get_cache(cache_key)
    if cached_data:
        logger.info("Returning admin analytics from cache")
        return json.loads(cached_data)

    result = crud.get_platform_analytics(db)
    await set_cache(cache_key, json.dumps(result), 60)
    return result

@router.get("/comprehensive-analytics", response_model=Dict[str, Any])
async def get_comprehensive_analytics(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)
    return crud.get_comprehensive_analytics(db)

@router.get("/reports", response_model=Dict[str, Any])
async def get_reports(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)

    cache_key = "admin:reports"
    cached_data = await get_cache(cache_key)
    if cached_data:
        return json.loads(cached_data)

    result = crud.get_admin_reports(db)
    await set_cache(cache_key, json.dumps(result, default=str), 90)
    return result

@router.get("/export/{report_type}")
async def export_report(
    report_type: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)
    return Response(
        content=crud.export_report(db, report_type),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{report_type}-report.csv"'},
    )

# Bookings and fleet

@router.get("/bookings", response_model=List[BookingResponse])
async def get_all_bookings(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)
    return crud.get_all_bookings(db, skip, limit)

@router.patch("/bookings/{booking_pk}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_pk: int,
    data: BookingStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)
    booking = db.query(Booking).filter(Booking.id == booking_pk).first()
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")

    owner_id = booking.user_id
    updated = update_booking(db, booking, BookingUpdate(status=data.status))
    owner = db.query(User).filter(User.user_id == owner_id).first()
    await invalidate_dashboard_cache([owner_id, owner.parent_user_id if owner else None])
    return updated

@router.get("/vehicles", response_model=List[VehicleResponse])
async def get_all_vehicles(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)
    return crud.get_all_vehicles(db)

# Subscription plans

@router.get("/subscription-plans", response_model=List[PlanResponse])
async def list_subscription_plans(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)
    return plans.get_plans(db)

@router.get("/subscription-plans/stats", response_model=Dict[str, Any])
async def get_subscription_plan_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)
    return plans.get_plan_stats(db)

@router.post("/subscription-plans", response_model=PlanResponse, status_code=status.HTTP_201_CREATED)
async def create_subscription_plan(
    plan: PlanCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)
    db_plan = plans.create_plan(db, plan)
    await invalidate_dashboard_cache()
    return db_plan

@router.put("/subscription-plans/{plan_id}", response_model=PlanResponse)
async def update_subscription_plan(
    plan_id: int,
    plan: PlanUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Edit a plan. A new price applies to revenue figures straight away, so
    admin views are dropped from the cache.
    """
    check_admin(current_user)
    db_plan = plans.update_plan(db, plan_id, plan)
    await invalidate_dashboard_cache()
    logger.info(f"Plan {plan_id} updated by admin {current_user.user_id}")
    return db_plan

@router.delete("/subscription-plans/{plan_id}", response_model=Dict[str, Any])
async def delete_subscription_plan(
    plan_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    check_admin(current_user)
    plans.delete_plan(db, plan_id)
    await invalidate_dashboard_cache()
    return {"message": "Plan deleted successfully"}

@router.post("/dashboard/invalidate-cache", response_model=Dict[str, Any])
async def invalidate_cache(current_user: User = Depends(get_current_user)):
    check_admin(current_user)
    success = await invalidate_dashboard_cache()
    return {"success": success, "message": "Dashboard cache invalidated" if success else "Cache invalidation failed"}
