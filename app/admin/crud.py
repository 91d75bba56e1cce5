import csv
import io
import math
from datetime import datetime, timedelta
from typing import List, Dict, Any, Optional
from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from ..user.models import User
from ..user.crud import get_user, get_user_by_email, get_office_accounts, update_user
from ..user.subscription import (
    trial_end, trial_days_remaining, is_trial_expired, can_create_bookings,
    effective_commission_rate, commission_amount, subscription_revenue,
    revenue_source, next_renewal_date, add_months, start_subscription,
)
from ..user.plans import get_plan_prices, get_plan_by_code
from ..booking.models import Booking
from ..booking.crud import get_bookings_for_users
from ..vehicle.models import Vehicle
from ..analytics.aggregations import (
    total_amount, month_start, in_month, monthly_series, top_routes,
    distribution, status_label, count_by, monthly_growth, completion_rate,
)
from .schemas import BasicInfoUpdate, SubscriptionUpdate, EnterpriseDecision
import logging

logger = logging.getLogger(__name__)

FREE_ACCESS_YEARS = 10
MAX_TRIAL_EXTENSION_DAYS = 365

def get_user_or_404(db: Session, user_id: int) -> User:
    user = get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user

def user_to_dict(user: User) -> Dict[str, Any]:
    return {
        "user_id": user.user_id,
        "username": user.username,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "full_name": user.full_name,
        "phone": user.phone,
        "company_name": user.company_name,
        "office_name": user.office_name,
        "city": user.city,
        "role": user.role,
        "status": user.status,
        "subscription_plan": user.subscription_plan,
        "subscription_status": user.subscription_status,
        "trial_start_date": user.trial_start_date,
        "trial_end_date": user.trial_end_date,
        "is_free_access": bool(user.is_free_access),
        "commission_rate": float(user.commission_rate or 0),
        "billing_percentage": float(user.billing_percentage) if user.billing_percentage is not None else None,
        "enterprise_approval_status": user.enterprise_approval_status,
        "parent_user_id": user.parent_user_id,
        "created_at": user.created_at,
    }

# Users

def get_users_with_revenue(db: Session, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """
    Function: get_users_with_revenue

    1. Summary:
    Every account with its trial state and the platform revenue it brings.

    2. Purpose:
    Commission revenue is the user's own rate applied to the total of the
    bookings they created; users without a rate bring none. Subscription
    revenue is the plan price for active subscriptions.

    3. Parameters:
    - db (Session): Database session
    - now (datetime): Reference time for trial figures

    4. Returns:
    - List[dict]: Users, newest first
    """
    now = now or datetime.now()
    users = db.query(User).order_by(User.created_at.desc(), User.user_id.desc()).all()
    prices = get_plan_prices(db)
    result = []
    for user in users:
        bookings = get_bookings_for_users(db, [user.user_id])
        booking_total = math.ceil(total_amount(bookings))
        rate = float(user.commission_rate or 0)
        commission = commission_amount(booking_total, rate) if rate else 0
        subscription = subscription_revenue(user, prices)
        result.append({
            **user_to_dict(user),
            "trialDaysRemaining": trial_days_remaining(user, now),
            "isTrialExpired": is_trial_expired(user, now),
            "canCreateBookings": can_create_bookings(user, now),
            "agentCount": len(get_office_accounts(db, user.user_id)),
            "bookingCount": len(bookings),
            "totalBookingAmount": booking_total,
            "subscriptionRevenue": subscription,
            "commissionRevenue": commission,
            "revenueSource": revenue_source(subscription, commission),
            "nextRenewalDate": next_renewal_date(user),
        })
    return result

def update_basic_info(db: Session, user: User, data: BasicInfoUpdate) -> User:
    existing = get_user_by_email(db, data.email)
    if existing and existing.user_id != user.user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")
    return update_user(db, user.user_id, data)

def reset_password(db: Session, user: User, new_password: str) -> User:
    if not new_password or len(new_password) < 6:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Password must be at least 6 characters")
    return update_user(db, user.user_id, {"password": new_password})

def get_user_stats(db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Platform headline numbers. Admin and office accounts are not counted as
    users.
    """
    now = now or datetime.now()
    regular_users = db.query(User).filter(User.role.notin_(["admin", "office"])).all()
    bookings = db.query(Booking).all()
    current_month = month_start(now)
    monthly = [b for b in bookings if b.created_at and b.created_at >= current_month]
    return {
        "totalUsers": len(regular_users),
        "activeUsers": sum(1 for u in regular_users if u.status == "active"),
        "totalBookings": len(bookings),
        "totalRevenue": str(math.ceil(total_amount(bookings))),
        "monthlyRevenue": str(math.ceil(total_amount(monthly))),
        "monthlyGrowth": monthly_growth(bookings, now),
    }

def set_commission_rate(db: Session, user: User, rate) -> User:
    if isinstance(rate, bool) or not isinstance(rate, (int, float)) or rate < 0 or rate > 100:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid commission rate. Must be between 0 and 100."
        )
    if user.role == "office":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Commission cannot be set for office accounts")
    return update_user(db, user.user_id, {"commission_rate": rate})

def extend_trial(db: Session, user: User, days: int, now: Optional[datetime] = None) -> datetime:
    """
    Push the trial end out by `days`. An already expired trial restarts from
    now.
    """
    if days is None or days <= 0 or days > MAX_TRIAL_EXTENSION_DAYS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Days must be between 1 and 365")
    now = now or datetime.now()
    base = max(trial_end(user, now), now)
    new_end = base + timedelta(days=days)
    update_user(db, user.user_id, {
        "trial_end_date": new_end,
        "subscription_status": "trial",
        "subscription_plan": "trial",
    })
    logger.info(f"Extended trial of user {user.user_id} by {days} days until {new_end.isoformat()}")
    return new_end

def enable_free_account(db: Session, user: User) -> datetime:
    now = datetime.now()
    free_until = add_months(now, 12 * FREE_ACCESS_YEARS)
    update_user(db, user.user_id, {
        "trial_end_date": free_until,
        "subscription_status": "active",
        "subscription_plan": "enterprise",
        "enterprise_approval_status": "approved",
        "is_free_access": True,
    })
    logger.info(f"Enabled free access for user {user.user_id} until {free_until.isoformat()}")
    return free_until

def update_subscription(db: Session, user: User, data: SubscriptionUpdate) -> User:
    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    if update_data.get("subscription_status") == "active" and user.subscription_status != "active":
        update_data["subscription_start_date"] = datetime.now()
    # An admin-assigned enterprise plan needs no separate approval
    if update_data.get("subscription_plan") == "enterprise":
        update_data["enterprise_approval_status"] = "approved"
    return update_user(db, user.user_id, update_data)

def set_blocked(db: Session, user: User, blocked: bool) -> User:
    if blocked and user.role == "admin":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Admin accounts cannot be blocked")
    return update_user(db, user.user_id, {"status": "blocked" if blocked else "active"})

def get_enterprise_requests(db: Session) -> List[User]:
    return db.query(User).filter(
        User.role != "admin",
        User.enterprise_approval_status == "pending"
    ).order_by(User.created_at.desc()).all()

def decide_enterprise(db: Session, admin: User, user: User, decision: EnterpriseDecision) -> User:
    """
    Approve or reject an enterprise request. Approval starts an enterprise
    subscription period; rejection leaves the account on its current plan.
    """
    if user.enterprise_approval_status != "pending" and user.subscription_plan != "enterprise":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User does not have enterprise plan")
    updates = {
        "enterprise_approval_status": "approved" if decision.action == "approve" else "rejected",
        "approved_by": admin.user_id,
        "approved_at": datetime.now(),
    }
    if decision.action == "approve":
        plan = get_plan_by_code(db, "enterprise")
        if plan:
            start_subscription(db, user, plan)
        updates["subscription_plan"] = "enterprise"
        updates["subscription_status"] = "active"
        if decision.commission_rate is not None:
            updates["commission_rate"] = decision.commission_rate
    return update_user(db, user.user_id, updates)

# Per-user analytics

def _network_bookings(db: Session, user: User) -> List[Booking]:
    ids = [user.user_id] + [office.user_id for office in get_office_accounts(db, user.user_id)]
    return get_bookings_for_users(db, ids)

def get_user_analytics(db: Session, user: User) -> Dict[str, Any]:
    """
    Totals over the user's own and their office accounts' bookings.
    Commission uses the user's rate, or the platform default.
    """
    bookings = _network_bookings(db, user)
    revenue = math.ceil(total_amount(bookings))
    rate = effective_commission_rate(user)
    return {
        "totalBookings": len(bookings),
        "totalRevenue": str(revenue),
        "activeShipments": sum(
            1 for b in bookings
            if b.user_id == user.user_id and b.status in ("in_transit", "picked")
        ),
        "monthlyCommission": commission_amount(revenue, rate),
        "commissionRate": str(math.ceil(rate)),
    }

def get_user_office_accounts(db: Session, user: User) -> List[Dict[str, Any]]:
    accounts = []
    for office in get_office_accounts(db, user.user_id):
        bookings = get_bookings_for_users(db, [office.user_id])
        revenue = math.ceil(total_amount(bookings))
        accounts.append({
            **user_to_dict(office),
            "bookingCount": len(bookings),
            "revenue": str(revenue),
            "commission": commission_amount(revenue, effective_commission_rate(office)),
        })
    return accounts

def get_user_detailed_analytics(db: Session, user: User) -> Dict[str, Any]:
    bookings = _network_bookings(db, user)
    revenue = math.ceil(total_amount(bookings))
    completion = completion_rate(bookings)
    return {
        "chartData": {
            "last6Months": monthly_series(bookings, 6),
            "popularRoutes": [
                {"route": r["route"], "count": r["count"]}
                for r in top_routes(bookings, limit=5, by="count")
            ],
        },
        "recentBookings": [
            {
                "id": b.id,
                "bookingId": b.booking_id,
                "bookingType": b.booking_type,
                "status": b.status,
                "totalAmount": float(b.total_amount or 0),
                "pickupCity": b.pickup_city,
                "deliveryCity": b.delivery_city,
                "createdAt": b.created_at,
            }
            for b in bookings[:10]
        ],
        "performanceMetrics": {
            "totalBookings": len(bookings),
            "totalRevenue": str(revenue),
            "avgOrderValue": str(math.ceil(revenue / len(bookings)) if bookings else 0),
            "completionRate": str(math.ceil(completion)),
            "customerSatisfaction": str(math.ceil(min(completion + 10, 100))),
        },
    }

# Platform analytics

def get_platform_analytics(db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.now()
    users = db.query(User).all()
    bookings = db.query(Booking).all()
    recent = [b for b in bookings if b.created_at and b.created_at > now - timedelta(days=30)]
    return {
        "revenue": math.ceil(total_amount(bookings)),
        "bookings": len(bookings),
        "users": len(users),
        "vehicles": db.query(Vehicle).count(),
        "activeUsers": sum(1 for u in users if u.subscription_status == "active"),
        "completedBookings": sum(1 for b in bookings if b.status == "delivered"),
        "pendingBookings": sum(1 for b in bookings if b.status == "booked"),
        "revenue30Days": math.ceil(total_amount(recent)),
        "bookings30Days": len(recent),
    }

def _platform_commission(bookings: List[Booking], rates: Dict[int, float]) -> float:
    # Bookings of users without a rate of their own bring no commission
    return sum(
        float(b.total_amount or 0) * rates[b.user_id] / 100
        for b in bookings
        if rates.get(b.user_id)
    )

def get_comprehensive_analytics(db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Function: get_comprehensive_analytics

    1. Summary:
    Platform revenue and booking performance for the admin console.

    2. Purpose:
    Platform revenue is commission on booking value plus subscription fees
    of active accounts. Monthly platform revenue counts that month's
    commission plus the current subscription fees.

    3. Parameters:
    - db (Session): Database session
    - now (datetime): Reference time

    4. Returns:
    - dict: Revenue figures, growth, status counts, top routes, monthly
      trends and service performance
    """
    now = now or datetime.now()
    users = db.query(User).all()
    bookings = db.query(Booking).all()
    vehicles = db.query(Vehicle).all()
    rates = {u.user_id: float(u.commission_rate or 0) for u in users}

    this_month = month_start(now)
    last_month = add_months(this_month, -1)
    this_month_bookings = [b for b in bookings if b.created_at and b.created_at >= this_month]
    last_month_bookings = [b for b in bookings if in_month(b, last_month)]

    commission = _platform_commission(bookings, rates)
    prices = get_plan_prices(db)
    subscriptions = sum(subscription_revenue(u, prices) for u in users)
    this_month_commission = _platform_commission(this_month_bookings, rates)
    last_month_commission = _platform_commission(last_month_bookings, rates)
    this_month_revenue = math.ceil(this_month_commission + subscriptions)
    last_month_revenue = math.ceil(last_month_commission + subscriptions)

    bookings_value = math.ceil(total_amount(bookings))
    status_counts = count_by(bookings, lambda b: b.status or "unknown")
    total = len(bookings)

    revenue_growth = 0.0
    if last_month_revenue > 0:
        revenue_growth = (this_month_revenue - last_month_revenue) / last_month_revenue * 100
    booking_growth = 0
    if this_month_bookings and last_month_bookings:
        booking_growth = math.ceil(
            (len(this_month_bookings) - len(last_month_bookings)) / len(last_month_bookings) * 100
        )

    return {
        "totalRevenue": math.ceil(commission + subscriptions),
        "thisMonthRevenue": this_month_revenue,
        "lastMonthRevenue": last_month_revenue,
        "revenueBreakdown": {
            "commissionRevenue": math.ceil(commission),
            "subscriptionRevenue": math.ceil(subscriptions),
            "thisMonthCommission": math.ceil(this_month_commission),
            "lastMonthCommission": math.ceil(last_month_commission),
            "totalBookingsValue": bookings_value,
            "thisMonthBookingsValue": math.ceil(total_amount(this_month_bookings)),
            "lastMonthBookingsValue": math.ceil(total_amount(last_month_bookings)),
        },
        "revenueGrowth": revenue_growth,
        "bookingGrowth": booking_growth,
        "totalBookings": total,
        "thisMonthBookings": len(this_month_bookings),
        "totalUsers": len(users),
        "totalVehicles": len(vehicles),
        "completionRate": math.ceil(status_counts.get("delivered", 0) / total * 100) if total else 0,
        "avgOrderValue": math.ceil(bookings_value / total) if total else 0,
        "cancellationRate": math.ceil(status_counts.get("cancelled", 0) / total * 100) if total else 0,
        "bookingStatusCounts": status_counts,
        "vehicleStatusCounts": count_by(vehicles, lambda v: v.status or "unknown"),
        "topRoutes": [
            {"route": r["route"], "count": r["count"], "revenue": r["revenue"]}
            for r in top_routes(bookings, limit=10, by="revenue")
        ],
        "monthlyTrends": monthly_series(bookings, 6, now, with_year=True),
        "servicePerformance": [
            {**entry, "percentage": math.ceil(entry["count"] / total * 100)}
            for entry in distribution(bookings, key=lambda b: b.booking_type or "FTL")
        ],
        "activeUsers": sum(1 for u in users if u.subscription_status == "active"),
        "pendingBookings": status_counts.get("booked", 0),
        "inTransitBookings": status_counts.get("in_transit", 0),
        "deliveredBookings": status_counts.get("delivered", 0),
    }

def get_admin_reports(db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.now()
    users = {u.user_id: u for u in db.query(User).all()}
    bookings = db.query(Booking).all()
    vehicles = db.query(Vehicle).all()

    vehicle_counts = count_by(vehicles, lambda v: v.vehicle_type or "Unknown")
    vehicle_distribution = [
        {
            "type": vehicle_type,
            "count": count,
            "revenue": math.ceil(total_amount(b for b in bookings if b.vehicle_type == vehicle_type)),
        }
        for vehicle_type, count in vehicle_counts.items()
    ]

    customers: Dict[int, Dict[str, Any]] = {}
    for booking in bookings:
        customer = users.get(booking.user_id)
        if not customer or customer.role == "admin":
            continue
        entry = customers.setdefault(customer.user_id, {
            "name": customer.full_name,
            "email": customer.email,
            "bookings": 0,
            "revenue": 0.0,
        })
        entry["bookings"] += 1
        entry["revenue"] += float(booking.total_amount or 0)
    top_customers = sorted(
        ({**entry, "revenue": math.ceil(entry["revenue"])} for entry in customers.values()),
        key=lambda entry: entry["revenue"],
        reverse=True,
    )[:10]

    revenue = math.ceil(total_amount(bookings))
    total = len(bookings)
    return {
        "monthlyData": monthly_series(bookings, 6, now),
        "statusDistribution": distribution(bookings, key=lambda b: b.status or "pending", label=status_label),
        "vehicleDistribution": vehicle_distribution,
        "topCustomers": top_customers,
        "topRoutes": [
            {"from": r["from"], "to": r["to"], "count": r["count"], "revenue": r["revenue"]}
            for r in top_routes(bookings, limit=10, by="revenue")
        ],
        "metrics": {
            "totalRevenue": revenue,
            "totalBookings": total,
            "totalVehicles": len(vehicles),
            "activeCustomers": sum(
                1 for u in users.values() if u.role != "admin" and u.subscription_status == "active"
            ),
            "completionRate": math.ceil(completion_rate(bookings)),
            "avgOrderValue": math.ceil(revenue / total) if total else 0,
        },
    }

def export_report(db: Session, report_type: str) -> str:
    """
    Function: export_report

    1. Summary:
    Render one of the admin CSV exports.

    2. Purpose:
    `users` lists non-admin accounts, `bookings` lists every booking and
    `revenue` holds headline metrics. Any other type yields a single
    "No data available" line.

    3. Parameters:
    - db (Session): Database session
    - report_type (str): users, bookings or revenue

    4. Returns:
    - str: CSV text
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")

    if report_type == "users":
        writer.writerow(["ID", "Name", "Email", "Plan", "Status", "Billing%", "Created"])
        for user in db.query(User).filter(User.role != "admin").order_by(User.user_id).all():
            writer.writerow([
                user.user_id,
                user.full_name,
                user.email,
                user.subscription_plan,
                user.subscription_status,
                user.billing_percentage if user.billing_percentage is not None else "N/A",
                user.created_at.isoformat() if user.created_at else "",
            ])
    elif report_type == "bookings":
        writer.writerow(["ID", "Customer", "Route", "Amount", "Status", "Date"])
        for booking in db.query(Booking).order_by(Booking.created_at.desc(), Booking.id.desc()).all():
            writer.writerow([
                booking.booking_id,
                booking.sender_name,
                f"{booking.pickup_city} → {booking.delivery_city}",
                booking.total_amount,
                booking.status,
                booking.created_at.isoformat() if booking.created_at else "",
            ])
    elif report_type == "revenue":
        analytics = get_platform_analytics(db)
        bookings = db.query(Booking).all()
        writer.writerow(["Metric", "Value"])
        writer.writerow(["Total Revenue", analytics["revenue"]])
        writer.writerow(["Active Users", analytics["activeUsers"]])
        writer.writerow(["Monthly Growth", f"{monthly_growth(bookings)}%"])
    else:
        buffer.write("No data available for this report type\n")

    return buffer.getvalue()

def get_all_bookings(db: Session, skip: int = 0, limit: int = 100) -> List[Booking]:
    return (
        db.query(Booking)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )

def get_all_vehicles(db: Session) -> List[Vehicle]:
    return db.query(Vehicle).order_by(Vehicle.id).all()
