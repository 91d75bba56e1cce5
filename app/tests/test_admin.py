from datetime import datetime
from .conftest import auth_headers, booking_payload

def book(client, user, **overrides):
    return client.post("/api/bookings", json=booking_payload(**overrides), headers=auth_headers(user)).json()

def test_admin_endpoints_reject_other_roles(client, transporter):
    headers = auth_headers(transporter)
    assert client.get("/api/admin/users", headers=headers).status_code == 403
    assert client.get("/api/admin/analytics", headers=headers).status_code == 403
    assert client.post("/api/admin/dashboard/invalidate-cache", headers=headers).status_code == 403

def test_users_list_with_revenue(client, admin_user, transporter, office_user):
    admin = auth_headers(admin_user)
    client.patch(f"/api/admin/users/{transporter.user_id}/commission", json={"commission_rate": 10}, headers=admin)
    book(client, transporter, total_amount=1000.4)

    users = {u["user_id"]: u for u in client.get("/api/admin/users", headers=admin).json()}
    row = users[transporter.user_id]
    assert row["agentCount"] == 1
    assert row["bookingCount"] == 1
    assert row["totalBookingAmount"] == 1001
    assert row["commissionRevenue"] == 101
    assert row["subscriptionRevenue"] == 0
    assert row["revenueSource"] == "commission"
    assert row["canCreateBookings"] is True
    assert row["trialDaysRemaining"] == 14
    assert users[admin_user.user_id]["subscriptionRevenue"] == 2999

def test_commission_validation(client, admin_user, transporter, office_user):
    admin = auth_headers(admin_user)
    url = f"/api/admin/users/{transporter.user_id}/commission"
    assert client.patch(url, json={"commission_rate": "abc"}, headers=admin).status_code == 400
    assert client.patch(url, json={"commission_rate": 150}, headers=admin).status_code == 400
    assert client.patch(url, json={}, headers=admin).status_code == 400
    office_url = f"/api/admin/users/{office_user.user_id}/commission"
    assert client.patch(office_url, json={"commission_rate": 5}, headers=admin).status_code == 400

    response = client.patch(url, json={"commission_rate": 7.5}, headers=admin)
    assert response.status_code == 200
    assert response.json()["user"]["commission_rate"] == 7.5

def test_extend_trial(client, admin_user, transporter):
    admin = auth_headers(admin_user)
    url = f"/api/admin/users/{transporter.user_id}/extend-trial"
    assert client.patch(url, json={"days": 0}, headers=admin).status_code == 400
    assert client.patch(url, json={"days": 400}, headers=admin).status_code == 400

    response = client.patch(url, json={"days": 10}, headers=admin)
    assert response.status_code == 200
    new_end = datetime.fromisoformat(response.json()["newTrialEndDate"])
    assert 23 <= (new_end - datetime.now()).days <= 24

def test_enable_free_account(client, admin_user, transporter):
    admin = auth_headers(admin_user)
    response = client.patch(f"/api/admin/users/{transporter.user_id}/enable-free-account", headers=admin)
    assert response.json()["plan"] == "enterprise"
    assert datetime.fromisoformat(response.json()["freeTrialEndDate"]).year >= datetime.now().year + 9

    user = client.get(f"/api/admin/users/{transporter.user_id}", headers=admin).json()
    assert user["is_free_access"] is True
    assert user["subscription_status"] == "active"
    assert user["enterprise_approval_status"] == "approved"
    assert client.get("/api/admin/enterprise-requests", headers=admin).json() == []

def test_admin_assigned_enterprise_plan_is_not_a_request(client, admin_user, transporter):
    admin = auth_headers(admin_user)
    body = {"subscription_plan": "enterprise", "subscription_status": "active"}
    response = client.put(f"/api/admin/users/{transporter.user_id}/subscription", json=body, headers=admin)
    assert response.status_code == 200
    assert client.get("/api/admin/enterprise-requests", headers=admin).json() == []

def test_block_and_unblock(client, admin_user, transporter):
    admin = auth_headers(admin_user)
    blocked = client.post(f"/api/admin/users/{transporter.user_id}/block", headers=admin)
    assert blocked.json()["status"] == "blocked"
    unblocked = client.post(f"/api/admin/users/{transporter.user_id}/unblock", headers=admin)
    assert unblocked.json()["status"] == "active"
    assert client.post(f"/api/admin/users/{admin_user.user_id}/block", headers=admin).status_code == 400

def test_enterprise_requests_and_approval(client, admin_user, transporter, make_user):
    admin = auth_headers(admin_user)
    applicant = make_user()
    requested = client.post("/api/subscription", json={"plan": "enterprise"}, headers=auth_headers(applicant))
    assert requested.status_code == 201
    assert requested.json()["pendingApproval"] is True

    requests = client.get("/api/admin/enterprise-requests", headers=admin).json()
    assert [u["user_id"] for u in requests] == [applicant.user_id]

    url = f"/api/admin/users/{applicant.user_id}/approve-enterprise"
    response = client.patch(url, json={"action": "approve", "commission_rate": 3}, headers=admin)
    user = response.json()["user"]
    assert user["enterprise_approval_status"] == "approved"
    assert user["subscription_plan"] == "enterprise"
    assert user["subscription_status"] == "active"
    assert user["commission_rate"] == 3.0
    assert client.get("/api/admin/enterprise-requests", headers=admin).json() == []

    not_enterprise = f"/api/admin/users/{transporter.user_id}/approve-enterprise"
    assert client.patch(not_enterprise, json={"action": "approve"}, headers=admin).status_code == 400

def test_rejected_enterprise_request_keeps_current_plan(client, admin_user, make_user):
    admin = auth_headers(admin_user)
    applicant = make_user()
    headers = auth_headers(applicant)
    client.post("/api/subscription", json={"plan": "starter"}, headers=headers)
    client.post("/api/subscription", json={"plan": "enterprise"}, headers=headers)

    url = f"/api/admin/users/{applicant.user_id}/approve-enterprise"
    user = client.patch(url, json={"action": "reject"}, headers=admin).json()["user"]
    assert user["enterprise_approval_status"] == "rejected"
    assert user["subscription_plan"] == "starter"
    assert user["subscription_status"] == "active"
    assert client.get("/api/admin/enterprise-requests", headers=admin).json() == []

def test_delete_user_cascades_to_office_accounts(client, admin_user, transporter, office_user):
    admin = auth_headers(admin_user)
    book(client, office_user)
    assert client.delete(f"/api/admin/users/{admin_user.user_id}", headers=admin).status_code == 400

    assert client.delete(f"/api/admin/users/{transporter.user_id}", headers=admin).status_code == 200
    assert client.get(f"/api/admin/users/{transporter.user_id}", headers=admin).status_code == 404
    assert client.get(f"/api/admin/users/{office_user.user_id}", headers=admin).status_code == 404
    assert client.get("/api/admin/bookings", headers=admin).json() == []

def test_user_stats(client, admin_user, transporter, office_user):
    book(client, transporter)
    stats = client.get("/api/admin/user-stats", headers=auth_headers(admin_user)).json()
    assert stats == {
        "totalUsers": 1,
        "activeUsers": 1,
        "totalBookings": 1,
        "totalRevenue": "1000",
        "monthlyRevenue": "1000",
        "monthlyGrowth": 100,
    }

def test_user_office_accounts_and_analytics(client, admin_user, transporter, office_user):
    admin = auth_headers(admin_user)
    book(client, office_user)
    book(client, transporter, total_amount=500)

    offices = client.get(f"/api/admin/users/{transporter.user_id}/office-accounts", headers=admin).json()
    assert len(offices) == 1
    assert offices[0]["bookingCount"] == 1
    assert offices[0]["revenue"] == "1000"
    assert offices[0]["commission"] == 50

    analytics = client.get(f"/api/admin/users/{transporter.user_id}/analytics", headers=admin).json()
    assert analytics["totalBookings"] == 2
    assert analytics["totalRevenue"] == "1500"
    assert analytics["monthlyCommission"] == 75
    assert analytics["commissionRate"] == "5"

    detailed = client.get(f"/api/admin/users/{transporter.user_id}/detailed-analytics", headers=admin).json()
    assert len(detailed["chartData"]["last6Months"]) == 6
    assert detailed["chartData"]["popularRoutes"] == [{"route": "Mumbai → Pune", "count": 2}]
    assert detailed["performanceMetrics"]["avgOrderValue"] == "750"
    assert detailed["performanceMetrics"]["completionRate"] == "0"
    assert detailed["performanceMetrics"]["customerSatisfaction"] == "10"

def test_platform_analytics_is_cached(client, admin_user, transporter, fake_redis):
    admin = auth_headers(admin_user)
    book(client, transporter)
    first = client.get("/api/admin/analytics", headers=admin).json()
    assert first["bookings"] == 1
    assert first["revenue"] == 1000
    assert "admin:analytics" in fake_redis.store

    # New bookings clear the admin keys
    book(client, transporter)
    assert "admin:analytics" not in fake_redis.store
    assert client.get("/api/admin/analytics", headers=admin).json()["bookings"] == 2

def test_comprehensive_analytics(client, admin_user, transporter):
    admin = auth_headers(admin_user)
    client.patch(f"/api/admin/users/{transporter.user_id}/commission", json={"commission_rate": 10}, headers=admin)
    book(client, transporter, total_amount=2000)
    book(client, transporter, booking_type="LTL", delivery_city="Nashik")

    result = client.get("/api/admin/comprehensive-analytics", headers=admin).json()
    assert result["revenueBreakdown"]["commissionRevenue"] == 300
    assert result["revenueBreakdown"]["subscriptionRevenue"] == 2999
    assert result["totalRevenue"] == 3299
    assert result["totalBookings"] == 2
    assert result["bookingStatusCounts"] == {"booked": 2}
    assert result["topRoutes"][0]["route"] == "Mumbai → Pune"
    assert {s["type"]: s["percentage"] for s in result["servicePerformance"]} == {"FTL": 50, "LTL": 50}

def test_exports(client, admin_user, transporter):
    admin = auth_headers(admin_user)
    book(client, transporter)

    users_csv = client.get("/api/admin/export/users", headers=admin)
    assert users_csv.headers["content-type"].startswith("text/csv")
    lines = users_csv.text.strip().split("\n")
    assert lines[0] == "ID,Name,Email,Plan,Status,Billing%,Created"
    assert len(lines) == 2

    bookings_csv = client.get("/api/admin/export/bookings", headers=admin).text
    assert bookings_csv.startswith("ID,Customer,Route,Amount,Status,Date\n")
    assert "Mumbai → Pune" in bookings_csv

    revenue_csv = client.get("/api/admin/export/revenue", headers=admin).text
    assert "Total Revenue,1000" in revenue_csv

    assert client.get("/api/admin/export/other", headers=admin).text == "No data available for this report type\n"

def test_admin_updates_booking_status(client, admin_user, transporter):
    booking_pk = book(client, transporter)["id"]
    admin = auth_headers(admin_user)
    response = client.patch(f"/api/admin/bookings/{booking_pk}/status", json={"status": "delivered"}, headers=admin)
    assert response.status_code == 200
    assert response.json()["status"] == "delivered"
    assert client.patch("/api/admin/bookings/9999/status", json={"status": "delivered"}, headers=admin).status_code == 404

    events = client.get(f"/api/bookings/{booking_pk}/tracking", headers=auth_headers(transporter)).json()
    assert [e["status"] for e in events] == ["booked", "delivered"]

def test_admin_reports(client, admin_user, transporter):
    vehicle = client.post(
        "/api/vehicles",
        json={"registration_number": "MH04TR7777", "vehicle_type": "Truck"},
        headers=auth_headers(transporter),
    ).json()
    book(client, transporter, vehicle_id=vehicle["id"])

    report = client.get("/api/admin/reports", headers=auth_headers(admin_user)).json()
    assert len(report["monthlyData"]) == 6
    assert report["vehicleDistribution"] == [{"type": "Truck", "count": 1, "revenue": 1000}]
    assert report["topCustomers"] == [
        {"name": "Ravi Transport", "email": transporter.email, "bookings": 1, "revenue": 1000}
    ]
    assert report["topRoutes"][0] == {"from": "Mumbai", "to": "Pune", "count": 1, "revenue": 1000}
    assert report["metrics"]["totalVehicles"] == 1
    assert report["metrics"]["avgOrderValue"] == 1000
