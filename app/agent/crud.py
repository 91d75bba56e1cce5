from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from typing import List, Dict, Any, Optional
from datetime import datetime, timedelta
import math
from ..user.models import User
from ..user.crud import get_user_by_email, create_user, update_user, get_office_accounts
from ..user.subscription import effective_commission_rate, commission_amount
from ..booking.models import Booking
from ..booking.crud import get_bookings_for_users
from ..analytics.aggregations import total_amount, month_start, top_routes, booking_amount
from .schemas import OfficeAccountCreate, OfficeAccountUpdate
import logging

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = ("booked", "picked", "in_transit")

def create_office_account(db: Session, parent: User, account: OfficeAccountCreate) -> User:
    """
    Create an agent (office) account under `parent`. Agents start active and
    carry their own commission rate.
    """
    if parent.role == "office":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Office accounts cannot create office accounts")
    if get_user_by_email(db, account.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    data = account.model_dump()
    data.update({
        "role": "office",
        "parent_user_id": parent.user_id,
        "subscription_plan": "trial",
        "subscription_status": "active",
    })
    office = create_user(db, data)
    logger.info(f"User {parent.user_id} created office account {office.user_id} with commission {office.commission_rate}")
    return office

def get_owned_office_account(db: Session, parent: User, office_id: int) -> User:
    office = db.query(User).filter(
        User.user_id == office_id,
        User.role == "office",
        User.parent_user_id == parent.user_id
    ).first()
    if not office:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Office account not found")
    return office

def office_account_stats(db: Session, office: User, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.now()
    bookings = get_bookings_for_users(db, [office.user_id])
    current_month = month_start(now)
    monthly = [b for b in bookings if b.created_at and b.created_at >= current_month]
    monthly_revenue = total_amount(monthly)
    rate = effective_commission_rate(office)
    return {
        "totalBookings": len(bookings),
        "totalRevenue": math.ceil(total_amount(bookings)),
        "monthlyRevenue": math.ceil(monthly_revenue),
        "monthlyCommission": commission_amount(monthly_revenue, rate),
        "activeShipments": sum(1 for b in bookings if b.status in ACTIVE_STATUSES),
    }

def list_office_accounts(db: Session, parent: User) -> List[Dict[str, Any]]:
    accounts = []
    for office in get_office_accounts(db, parent.user_id):
        accounts.append({
            "user_id": office.user_id,
            "email": office.email,
            "first_name": office.first_name,
            "last_name": office.last_name,
            "office_name": office.office_name,
            "phone": office.phone,
            "city": office.city,
            "status": office.status,
            "commission_rate": float(office.commission_rate or 0),
            "created_at": office.created_at,
            **office_account_stats(db, office),
        })
    return accounts

def update_office_account(db: Session, parent: User, office_id: int, account: OfficeAccountUpdate) -> User:
    get_owned_office_account(db, parent, office_id)
    return update_user(db, office_id, account)

def reset_office_password(db: Session, parent: User, office_id: int, new_password: str) -> User:
    get_owned_office_account(db, parent, office_id)
    return update_user(db, office_id, {"password": new_password})

def delete_office_account(db: Session, parent: User, office_id: int) -> bool:
    """
    Remove an office account. Its bookings stay with the parent account.
    """
    office = get_owned_office_account(db, parent, office_id)
    try:
        from ..notification.models import Notification

        db.query(Booking).filter(Booking.user_id == office.user_id).update(
            {"user_id": parent.user_id}, synchronize_session=False
        )
        db.query(Notification).filter(Notification.user_id == office.user_id).delete(synchronize_session=False)
        db.delete(office)
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting office account {office_id}: {str(e)}")
        raise

def get_agent_analytics(db: Session, agent: User, start: Optional[datetime] = None,
                        end: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Function: get_agent_analytics

    1. Summary:
    Performance of one agent over a date range.

    2. Purpose:
    Defaults to the last 30 days. Commission uses the agent's own rate,
    falling back to the platform default. Customers are identified by the
    receiver's email, or phone when no email was given.

    3. Parameters:
    - db (Session): Database session
    - agent (User): Office account
    - start, end (datetime): Inclusive range on booking creation time

    4. Returns:
    - dict: totals, bookingsByDate, topRoutes, serviceDistribution and
      customerMetrics
    """
    end = end or datetime.now()
    start = start or end - timedelta(days=30)

    bookings = (
        db.query(Booking)
        .filter(Booking.user_id == agent.user_id, Booking.created_at >= start, Booking.created_at <= end)
        .order_by(Booking.created_at.desc())
        .all()
    )
    rate = effective_commission_rate(agent)
    revenue = math.ceil(total_amount(bookings))
    days = max(1, math.ceil((end - start).total_seconds() / 86400))

    by_date: Dict[str, Dict[str, float]] = {}
    for booking in bookings:
        day = booking.created_at.date().isoformat()
        entry = by_date.setdefault(day, {"bookings": 0, "revenue": 0.0})
        entry["bookings"] += 1
        entry["revenue"] += booking_amount(booking)

    service: Dict[str, Dict[str, float]] = {}
    customers: Dict[str, int] = {}
    for booking in bookings:
        entry = service.setdefault(booking.booking_type or "FTL", {"count": 0, "revenue": 0.0})
        entry["count"] += 1
        entry["revenue"] += booking_amount(booking)
        customer = booking.receiver_email or booking.receiver_phone
        customers[customer] = customers.get(customer, 0) + 1

    return {
        "totalBookings": len(bookings),
        "totalRevenue": revenue,
        "totalCommission": commission_amount(revenue, rate),
        "commissionRate": rate,
        "avgBookingsPerDay": len(bookings) / days,
        "bookingsByDate": [
            {
                "date": day,
                "bookings": int(entry["bookings"]),
                "revenue": math.ceil(entry["revenue"]),
                "commission": commission_amount(entry["revenue"], rate),
            }
            for day, entry in sorted(by_date.items())
        ],
        "topRoutes": [
            {"from": r["from"], "to": r["to"], "bookings": r["count"], "revenue": r["revenue"]}
            for r in top_routes(bookings, limit=5, by="count")
        ],
        "serviceDistribution": [
            {"type": service_type, "count": int(entry["count"]), "revenue": math.ceil(entry["revenue"])}
            for service_type, entry in service.items()
        ],
        "customerMetrics": {
            "totalCustomers": len(customers),
            "repeatCustomers": sum(1 for count in customers.values() if count > 1),
            "avgOrderValue": math.ceil(revenue / len(bookings)) if bookings else 0,
        },
    }
