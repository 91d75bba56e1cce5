from datetime import datetime
from types import SimpleNamespace
from .conftest import auth_headers, booking_payload
from ..analytics.aggregations import (
    monthly_growth, monthly_series, top_routes, distribution, status_label, completion_rate,
)

def booking(amount, created_at, origin="Mumbai", destination="Pune", status="booked", vehicle_type=None):
    return SimpleNamespace(
        total_amount=amount, created_at=created_at, pickup_city=origin,
        delivery_city=destination, status=status, vehicle_type=vehicle_type,
    )

NOW = datetime(2024, 3, 15, 12, 0)

def test_monthly_growth():
    previous = [booking(100, datetime(2024, 2, 10)) for _ in range(4)]
    current = [booking(100, datetime(2024, 3, 2)) for _ in range(5)]
    assert monthly_growth(previous + current, now=NOW) == 25
    assert monthly_growth(current, now=NOW) == 100
    assert monthly_growth([], now=NOW) == 0
    assert monthly_growth(previous, now=NOW) == -100

def test_monthly_series_spans_year_boundary():
    rows = [booking(100.2, datetime(2023, 12, 31, 23)), booking(50, datetime(2024, 1, 1))]
    series = monthly_series(rows, 4, now=NOW, with_year=True)
    assert [entry["month"] for entry in series] == ["Dec 2023", "Jan 2024", "Feb 2024", "Mar 2024"]
    assert series[0] == {"month": "Dec 2023", "bookings": 1, "revenue": 101}
    assert series[1]["bookings"] == 1
    assert series[3]["revenue"] == 0

def test_top_routes_by_count_and_revenue():
    rows = [
        booking(100, NOW),
        booking(100, NOW),
        booking(900, NOW, destination="Nashik"),
        booking(10, NOW, origin=None, destination=None),
    ]
    by_count = top_routes(rows, limit=2)
    assert [(r["from"], r["to"], r["count"]) for r in by_count] == [("Mumbai", "Pune", 2), ("Mumbai", "Nashik", 1)]
    assert top_routes(rows, limit=1, by="revenue")[0]["route"] == "Mumbai → Nashik"
    assert top_routes(rows)[-1]["route"] == "Unknown → Unknown"

def test_distribution_and_labels():
    rows = [booking(10.5, NOW, status="in_transit"), booking(20, NOW, status="in_transit"), booking(5, NOW)]
    result = distribution(rows, key=lambda b: b.status, label=status_label)
    assert result == [
        {"type": "In transit", "count": 2, "revenue": 31},
        {"type": "Booked", "count": 1, "revenue": 5},
    ]
    assert completion_rate([]) == 0.0
    assert completion_rate([booking(1, NOW, status="delivered"), booking(1, NOW)]) == 50.0

def test_dashboard_stats_include_office_bookings(client, transporter, office_user):
    headers = auth_headers(transporter)
    client.post("/api/bookings", json=booking_payload(), headers=headers)
    client.post("/api/bookings", json=booking_payload(total_amount=500.5), headers=headers)
    client.post("/api/bookings", json=booking_payload(total_amount=2000), headers=auth_headers(office_user))
    client.post("/api/vehicles", json={"registration_number": "MH01XY0001", "vehicle_type": "Truck"}, headers=headers)

    stats = client.get("/api/dashboard/stats", headers=headers).json()
    assert stats == {"totalBookings": 3, "activeShipments": 3, "revenue": "3501", "availableVehicles": 1}

    agent_stats = client.get("/api/dashboard/stats", headers=auth_headers(office_user)).json()
    assert agent_stats["totalBookings"] == 1
    assert agent_stats["availableVehicles"] == 1

def test_user_analytics(client, transporter, office_user):
    headers = auth_headers(transporter)
    client.post("/api/bookings", json=booking_payload(), headers=headers)
    client.post("/api/bookings", json=booking_payload(delivery_city="Nashik", total_amount=250), headers=headers)
    client.post("/api/bookings", json=booking_payload(), headers=headers)

    analytics = client.get("/api/analytics", headers=headers).json()
    assert analytics["revenue"] == 2250
    assert analytics["activeAgents"] == 1
    assert analytics["totalBookings"] == 3
    assert analytics["monthlyGrowth"] == 100
    assert analytics["topRoutes"][0] == {"from": "Mumbai", "to": "Pune", "count": 2}

def test_reports_data(client, transporter):
    headers = auth_headers(transporter)
    client.post("/api/bookings", json=booking_payload(), headers=headers)
    client.post("/api/bookings", json=booking_payload(vehicle_type="Container", total_amount=400), headers=headers)

    report = client.get("/api/reports/data", headers=headers).json()
    assert len(report["monthlyData"]) == 12
    assert report["monthlyData"][-1]["bookings"] == 2
    assert "revenue" not in report["monthlyData"][-1]
    assert {entry["type"] for entry in report["vehicleDistribution"]} == {"Standard Vehicle", "Container"}
    assert report["statusDistribution"] == [{"type": "Booked", "count": 2, "revenue": 1400}]
    assert report["totalRevenue"] == 1400
    assert report["totalBookings"] == 2
