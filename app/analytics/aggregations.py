"""
Aggregations over booking rows shared by the user, agent and admin
analytics views. Amounts are summed as floats and rounded up only when a
figure is reported.
"""

import math
from collections import OrderedDict
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Any
from ..user.subscription import add_months

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

def booking_amount(booking) -> float:
    return float(booking.total_amount or 0)

def total_amount(bookings: Iterable) -> float:
    return sum(booking_amount(b) for b in bookings)

def month_start(value: datetime) -> datetime:
    return value.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

def in_month(booking, start: datetime) -> bool:
    end = add_months(start, 1)
    return booking.created_at is not None and start <= booking.created_at < end

def monthly_series(bookings: List, months: int, now: Optional[datetime] = None,
                   with_year: bool = False, with_revenue: bool = True) -> List[Dict[str, Any]]:
    """
    One entry per calendar month, oldest first, ending with the current
    month.
    """
    now = now or datetime.now()
    current = month_start(now)
    series = []
    for offset in range(months - 1, -1, -1):
        start = add_months(current, -offset)
        month_bookings = [b for b in bookings if in_month(b, start)]
        label = MONTH_NAMES[start.month - 1]
        if with_year:
            label = f"{label} {start.year}"
        entry = {"month": label, "bookings": len(month_bookings)}
        if with_revenue:
            entry["revenue"] = math.ceil(total_amount(month_bookings))
        series.append(entry)
    return series

def route_stats(bookings: Iterable) -> Dict[str, Dict[str, Any]]:
    stats: Dict[str, Dict[str, Any]] = OrderedDict()
    for booking in bookings:
        origin = booking.pickup_city or "Unknown"
        destination = booking.delivery_city or "Unknown"
        key = f"{origin} → {destination}"
        entry = stats.setdefault(key, {"route": key, "from": origin, "to": destination, "count": 0, "revenue": 0.0})
        entry["count"] += 1
        entry["revenue"] += booking_amount(booking)
    return stats

def top_routes(bookings: Iterable, limit: int = 5, by: str = "count") -> List[Dict[str, Any]]:
    routes = [
        {**entry, "revenue": math.ceil(entry["revenue"])}
        for entry in route_stats(bookings).values()
    ]
    routes.sort(key=lambda entry: entry[by], reverse=True)
    return routes[:limit]

def distribution(bookings: Iterable, key: Callable[[Any], str],
                 label: Optional[Callable[[str], str]] = None) -> List[Dict[str, Any]]:
    groups: Dict[str, Dict[str, Any]] = OrderedDict()
    for booking in bookings:
        group = key(booking)
        entry = groups.setdefault(group, {"count": 0, "revenue": 0.0})
        entry["count"] += 1
        entry["revenue"] += booking_amount(booking)
    return [
        {"type": label(group) if label else group, "count": entry["count"], "revenue": math.ceil(entry["revenue"])}
        for group, entry in groups.items()
    ]

def status_label(status: str) -> str:
    return status[:1].upper() + status[1:].replace("_", " ")

def count_by(items: Iterable, key: Callable[[Any], str]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for item in items:
        value = key(item)
        counts[value] = counts.get(value, 0) + 1
    return counts

def monthly_growth(bookings: List, now: Optional[datetime] = None) -> int:
    """
    Percent change in booking count, current month against the previous
    one. 100 when the previous month had none and the current has some.
    """
    now = now or datetime.now()
    current = month_start(now)
    previous = add_months(current, -1)
    current_count = sum(1 for b in bookings if b.created_at and b.created_at >= current)
    previous_count = sum(1 for b in bookings if in_month(b, previous))
    if previous_count > 0:
        return round((current_count - previous_count) / previous_count * 100)
    return 100 if current_count > 0 else 0

def completion_rate(bookings: List) -> float:
    if not bookings:
        return 0.0
    return sum(1 for b in bookings if b.status == "delivered") / len(bookings) * 100
