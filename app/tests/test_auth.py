from .conftest import auth_headers

def register(client, **overrides):
    payload = {
        "email": "new@courierhub.in",
        "username": "newtransporter",
        "password": "secret123",
        "first_name": "New",
        "last_name": "Transporter",
        "role": "transporter",
    }
    payload.update(overrides)
    return client.post("/api/auth/register", json=payload)

def test_register_starts_trial(client):
    response = register(client)
    assert response.status_code == 201
    data = response.json()
    assert data["token"]
    assert data["trial_end_date"] is not None

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['token']}"})
    assert me.status_code == 200
    subscription = me.json()["subscription"]
    assert subscription["status"] == "trial"
    assert subscription["canCreateBookings"] is True
    assert 13 <= subscription["trialDaysRemaining"] <= 14

def test_register_rejects_duplicates_and_short_passwords(client):
    assert register(client).status_code == 201
    assert register(client, username="other").status_code == 400
    assert register(client, email="other@courierhub.in").status_code == 400
    assert register(client, email="short@courierhub.in", username="short", password="123").status_code == 400

def test_register_cannot_pick_admin_role(client):
    assert register(client, role="admin").status_code == 422

def test_login_with_email_or_username(client):
    register(client)
    by_email = client.post("/api/auth/login", json={"username_or_email": "new@courierhub.in", "password": "secret123"})
    assert by_email.status_code == 200
    assert by_email.json()["role"] == "transporter"

    by_username = client.post("/api/auth/login", json={"username_or_email": "newtransporter", "password": "secret123"})
    assert by_username.status_code == 200

    wrong = client.post("/api/auth/login", json={"username_or_email": "newtransporter", "password": "nope"})
    assert wrong.status_code == 401

def test_token_endpoint_accepts_form_login(client, transporter):
    response = client.post("/api/auth/token", data={"username": transporter.email, "password": "secret123"})
    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"

def test_blocked_user_cannot_log_in_or_use_token(client, make_user, db):
    user = make_user()
    user.status = "blocked"
    db.commit()
    headers = auth_headers(user)
    login = client.post("/api/auth/login", json={"username_or_email": user.email, "password": "secret123"})
    assert login.status_code == 403
    assert client.get("/api/auth/me", headers=headers).status_code == 403

def test_invalid_token_is_rejected(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401

def test_me_is_cached_and_cleared_on_logout(client, transporter, fake_redis):
    headers = auth_headers(transporter)
    assert client.get("/api/auth/me", headers=headers).status_code == 200
    assert f"user_info:{transporter.user_id}" in fake_redis.store

    assert client.post("/api/auth/logout", headers=headers).status_code == 200
    assert f"user_info:{transporter.user_id}" not in fake_redis.store

def test_profile_update_requires_current_password(client, transporter):
    headers = auth_headers(transporter)
    response = client.put("/api/user/profile", json={"city": "Nagpur", "new_password": "another1"}, headers=headers)
    assert response.status_code == 400

    response = client.put(
        "/api/user/profile",
        json={"city": "Nagpur", "current_password": "secret123", "new_password": "another1"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["city"] == "Nagpur"

    login = client.post("/api/auth/login", json={"username_or_email": transporter.email, "password": "another1"})
    assert login.status_code == 200

def test_subscription_summary(client, transporter):
    response = client.get("/api/user/subscription", headers=auth_headers(transporter))
    assert response.status_code == 200
    assert response.json()["plan"] == "trial"
    assert response.json()["isTrialExpired"] is False
