from .conftest import auth_headers

def plan_body(**overrides):
    body = {
        "code": "starter",
        "name": "Starter Plus",
        "price": 399,
        "features": ["Email support"],
        "max_vehicles": 5,
    }
    body.update(overrides)
    return body

def test_public_plan_list_is_seeded_and_ordered(client):
    plans = client.get("/api/subscription-plans").json()
    assert [p["code"] for p in plans] == ["starter", "professional", "enterprise"]
    assert [p["price"] for p in plans] == [299, 999, 2999]
    assert plans[2]["max_vehicles"] is None

def test_plan_management_is_admin_only(client, transporter):
    headers = auth_headers(transporter)
    assert client.get("/api/admin/subscription-plans", headers=headers).status_code == 403
    assert client.get("/api/admin/subscription-plans/stats", headers=headers).status_code == 403
    assert client.post("/api/admin/subscription-plans", json=plan_body(), headers=headers).status_code == 403

def test_plan_create_update_delete(client, admin_user):
    admin = auth_headers(admin_user)
    plans = client.get("/api/admin/subscription-plans", headers=admin).json()
    starter = next(p for p in plans if p["code"] == "starter")

    duplicate = client.post("/api/admin/subscription-plans", json=plan_body(), headers=admin)
    assert duplicate.status_code == 400

    assert client.delete(f"/api/admin/subscription-plans/{starter['id']}", headers=admin).status_code == 200
    created = client.post("/api/admin/subscription-plans", json=plan_body(), headers=admin)
    assert created.status_code == 201
    plan_id = created.json()["id"]

    updated = client.put(
        f"/api/admin/subscription-plans/{plan_id}",
        json={"price": 449, "is_popular": True, "description": None},
        headers=admin,
    ).json()
    assert updated["price"] == 449
    assert updated["is_popular"] is True
    assert updated["name"] == "Starter Plus"

    missing = client.put("/api/admin/subscription-plans/9999", json={"price": 1}, headers=admin)
    assert missing.status_code == 404

def test_inactive_plans_are_hidden_and_not_purchasable(client, admin_user, transporter):
    admin = auth_headers(admin_user)
    plans = client.get("/api/admin/subscription-plans", headers=admin).json()
    starter = next(p for p in plans if p["code"] == "starter")
    client.put(f"/api/admin/subscription-plans/{starter['id']}", json={"is_active": False}, headers=admin)

    public = client.get("/api/subscription-plans").json()
    assert "starter" not in [p["code"] for p in public]
    response = client.post("/api/subscription", json={"plan": "starter"}, headers=auth_headers(transporter))
    assert response.status_code == 400

def test_plan_with_active_subscribers_cannot_be_deleted(client, admin_user, transporter):
    admin = auth_headers(admin_user)
    client.post("/api/subscription", json={"plan": "professional"}, headers=auth_headers(transporter))
    plans = client.get("/api/admin/subscription-plans", headers=admin).json()
    professional = next(p for p in plans if p["code"] == "professional")
    response = client.delete(f"/api/admin/subscription-plans/{professional['id']}", headers=admin)
    assert response.status_code == 400

def test_plan_stats(client, admin_user, transporter):
    admin = auth_headers(admin_user)
    client.post("/api/subscription", json={"plan": "starter"}, headers=auth_headers(transporter))
    plans = client.get("/api/admin/subscription-plans", headers=admin).json()
    enterprise = next(p for p in plans if p["code"] == "enterprise")
    client.put(f"/api/admin/subscription-plans/{enterprise['id']}", json={"is_active": False}, headers=admin)

    stats = client.get("/api/admin/subscription-plans/stats", headers=admin).json()
    assert stats == {
        "totalPlans": 3,
        "activePlans": 2,
        "totalSubscriptions": 1,
        "averagePrice": 649,
    }

def test_price_change_reaches_revenue_figures(client, admin_user, transporter):
    admin = auth_headers(admin_user)
    client.post("/api/subscription", json={"plan": "starter"}, headers=auth_headers(transporter))
    users = {u["user_id"]: u for u in client.get("/api/admin/users", headers=admin).json()}
    assert users[transporter.user_id]["subscriptionRevenue"] == 299

    plans = client.get("/api/admin/subscription-plans", headers=admin).json()
    starter = next(p for p in plans if p["code"] == "starter")
    client.put(f"/api/admin/subscription-plans/{starter['id']}", json={"price": 349}, headers=admin)

    users = {u["user_id"]: u for u in client.get("/api/admin/users", headers=admin).json()}
    assert users[transporter.user_id]["subscriptionRevenue"] == 349

def test_self_service_upgrade(client, transporter):
    headers = auth_headers(transporter)
    response = client.post(
        "/api/subscription",
        json={"plan": "professional", "payment_method": "upi", "payment_id": "pay_001"},
        headers=headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["pendingApproval"] is False
    assert body["subscription"]["plan_type"] == "professional"
    assert body["subscription"]["status"] == "active"
    assert body["subscription"]["amount"] == 999
    assert body["subscription"]["payment_id"] == "pay_001"
    assert body["status"]["plan"] == "professional"
    assert body["status"]["status"] == "active"
    assert body["status"]["canCreateBookings"] is True

    again = client.post("/api/subscription", json={"plan": "professional"}, headers=headers)
    assert again.status_code == 400

    summary = client.get("/api/user/subscription", headers=headers).json()
    assert summary["plan"] == "professional"

def test_upgrade_rejects_unknown_plan_and_office_accounts(client, transporter, office_user):
    unknown = client.post("/api/subscription", json={"plan": "platinum"}, headers=auth_headers(transporter))
    assert unknown.status_code == 422
    office = client.post("/api/subscription", json={"plan": "starter"}, headers=auth_headers(office_user))
    assert office.status_code == 403

def test_enterprise_request_is_pending_until_approved(client, transporter):
    headers = auth_headers(transporter)
    body = client.post("/api/subscription", json={"plan": "enterprise"}, headers=headers).json()
    assert body["pendingApproval"] is True
    assert body["subscription"] is None
    assert body["status"]["plan"] == "trial"

    again = client.post("/api/subscription", json={"plan": "enterprise"}, headers=headers)
    assert again.status_code == 400

def test_cancel_subscription(client, transporter):
    headers = auth_headers(transporter)
    missing = client.post("/api/subscription/cancel", headers=headers)
    assert missing.status_code == 404
    assert missing.json()["detail"] == "No active subscription found"

    client.post("/api/subscription", json={"plan": "starter"}, headers=headers)
    cancelled = client.post("/api/subscription/cancel", headers=headers)
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"
    assert cancelled.json()["plan"] == "starter"
    assert client.post("/api/subscription/cancel", headers=headers).status_code == 404
