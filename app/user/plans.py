"""
Subscription plan catalogue: the plans accounts can buy, their prices and
limits. The admin console edits it; the defaults are seeded the first time
the catalogue is read.
"""

import math
from sqlalchemy.orm import Session
from sqlalchemy import func
from fastapi import HTTPException, status
from typing import List, Optional, Dict
from .models import User, PricingPlan, Subscription
from .schemas import PlanCreate, PlanUpdate
from ..core.config import DEFAULT_PLAN_PRICES
import logging

logger = logging.getLogger(__name__)

DEFAULT_PLANS = [
    {
        "code": "starter",
        "name": "Starter",
        "description": "For small transport businesses getting started",
        "features": ["Up to 100 bookings per month", "5 vehicles", "Basic reports", "Email support"],
        "max_bookings": 100,
        "max_vehicles": 5,
        "max_agents": 1,
        "sort_order": 1,
    },
    {
        "code": "professional",
        "name": "Professional",
        "description": "For growing fleets with branch offices",
        "features": ["Unlimited bookings", "25 vehicles", "Office accounts", "Advanced analytics", "Priority support"],
        "max_bookings": None,
        "max_vehicles": 25,
        "max_agents": 10,
        "is_popular": True,
        "sort_order": 2,
    },
    {
        "code": "enterprise",
        "name": "Enterprise",
        "description": "For large networks, activated after admin approval",
        "features": ["Unlimited bookings", "Unlimited vehicles", "Unlimited office accounts", "Dedicated account manager"],
        "max_bookings": None,
        "max_vehicles": None,
        "max_agents": None,
        "sort_order": 3,
    },
]

def _plans_query(db: Session, active_only: bool):
    query = db.query(PricingPlan)
    if active_only:
        query = query.filter(PricingPlan.is_active == True)
    return query.order_by(PricingPlan.sort_order, PricingPlan.id)

def get_plans(db: Session, active_only: bool = False) -> List[PricingPlan]:
    if db.query(PricingPlan.id).first():
        return _plans_query(db, active_only).all()
    try:
        for plan in DEFAULT_PLANS:
            db.add(PricingPlan(price=DEFAULT_PLAN_PRICES[plan["code"]], **plan))
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error seeding subscription plans: {str(e)}")
        raise
    return _plans_query(db, active_only).all()

def get_plan(db: Session, plan_id: int) -> PricingPlan:
    plan = db.query(PricingPlan).filter(PricingPlan.id == plan_id).first()
    if not plan:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Plan not found")
    return plan

def get_plan_by_code(db: Session, code: str) -> Optional[PricingPlan]:
    get_plans(db)
    return db.query(PricingPlan).filter(PricingPlan.code == code).first()

def get_plan_prices(db: Session) -> Dict[str, float]:
    """Plan code to monthly price, taken from the catalogue."""
    return {plan.code: float(plan.price) for plan in get_plans(db)}

def create_plan(db: Session, plan: PlanCreate) -> PricingPlan:
    get_plans(db)
    if db.query(PricingPlan).filter(PricingPlan.code == plan.code).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"A plan with code '{plan.code}' already exists"
        )
    try:
        db_plan = PricingPlan(**plan.model_dump())
        db.add(db_plan)
        db.commit()
        db.refresh(db_plan)
        logger.info(f"Created subscription plan {db_plan.id} ({db_plan.code})")
        return db_plan
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating subscription plan {plan.code}: {str(e)}")
        raise

def update_plan(db: Session, plan_id: int, plan: PlanUpdate) -> PricingPlan:
    db_plan = get_plan(db, plan_id)
    update_data = plan.model_dump(exclude_unset=True, exclude_none=True)
    try:
        for field, value in update_data.items():
            setattr(db_plan, field, value)
        db.commit()
        db.refresh(db_plan)
        logger.info(f"Updated subscription plan {plan_id}: {list(update_data.keys())}")
        return db_plan
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating subscription plan {plan_id}: {str(e)}")
        raise

def delete_plan(db: Session, plan_id: int) -> bool:
    """
    Delete a plan nobody is actively subscribed to. Past subscription
    records keep their plan type and amount but lose the link to the plan.
    """
    db_plan = get_plan(db, plan_id)
    subscribers = db.query(func.count(User.user_id)).filter(
        User.subscription_plan == db_plan.code,
        User.subscription_status == "active"
    ).scalar()
    if subscribers:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Plan has {subscribers} active subscriber(s) and cannot be deleted"
        )
    try:
        db.query(Subscription).filter(Subscription.plan_id == plan_id).update(
            {"plan_id": None}, synchronize_session=False
        )
        db.delete(db_plan)
        db.commit()
        logger.info(f"Deleted subscription plan {plan_id}")
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting subscription plan {plan_id}: {str(e)}")
        raise

def get_plan_stats(db: Session) -> dict:
    plans = get_plans(db)
    active = [plan for plan in plans if plan.is_active]
    total_subscriptions = db.query(func.count(Subscription.id)).scalar() or 0
    average = sum(float(plan.price) for plan in active) / len(active) if active else 0
    return {
        "totalPlans": len(plans),
        "activePlans": len(active),
        "totalSubscriptions": total_subscriptions,
        "averagePrice": math.ceil(average),
    }
