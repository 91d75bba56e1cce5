import math
from datetime import datetime
from typing import Dict, Any
from sqlalchemy.orm import Session
from ..booking.models import Booking
from ..booking.crud import get_user_bookings
from ..vehicle.models import Vehicle
from ..user.models import User
from ..user.crud import get_office_accounts, get_fleet_owner_id
from .aggregations import (
    total_amount, top_routes, monthly_growth, monthly_series, distribution, status_label,
)

ACTIVE_SHIPMENT_STATUSES = ("booked", "in_transit")

def get_dashboard_stats(db: Session, user: User) -> Dict[str, Any]:
    """
    Headline numbers for the dashboard. Office accounts count their own
    bookings against the parent's fleet; everyone else counts their own and
    their office accounts' bookings against their own fleet.
    """
    bookings = get_user_bookings(db, user)
    available_vehicles = db.query(Vehicle).filter(
        Vehicle.user_id == get_fleet_owner_id(user),
        Vehicle.status == "available"
    ).count()

    return {
        "totalBookings": len(bookings),
        "activeShipments": sum(1 for b in bookings if b.status in ACTIVE_SHIPMENT_STATUSES),
        "revenue": str(math.ceil(total_amount(bookings))),
        "availableVehicles": available_vehicles,
    }

def get_user_analytics(db: Session, user: User) -> Dict[str, Any]:
    bookings = get_user_bookings(db, user)
    return {
        "revenue": math.ceil(total_amount(bookings)),
        "activeAgents": len(get_office_accounts(db, user.user_id)),
        "totalBookings": len(bookings),
        "topRoutes": [
            {"from": r["from"], "to": r["to"], "count": r["count"]}
            for r in top_routes(bookings, limit=5, by="count")
        ],
        "monthlyGrowth": monthly_growth(bookings),
    }

def get_reports_data(db: Session, user: User) -> Dict[str, Any]:
    bookings = get_user_bookings(db, user)
    return {
        "monthlyData": monthly_series(bookings, 12, with_revenue=False),
        "vehicleDistribution": distribution(bookings, key=lambda b: b.vehicle_type or "Standard Vehicle"),
        "statusDistribution": distribution(bookings, key=lambda b: b.status or "pending", label=status_label),
        "totalRevenue": total_amount(bookings),
        "totalBookings": len(bookings),
        "generatedAt": datetime.now().isoformat(),
    }
