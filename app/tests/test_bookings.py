from datetime import datetime, timedelta
from .conftest import auth_headers, booking_payload
from ..booking.models import Booking

def create(client, user, **overrides):
    return client.post("/api/bookings", json=booking_payload(**overrides), headers=auth_headers(user))

def test_create_booking_records_event_and_notification(client, transporter):
    response = create(client, transporter)
    assert response.status_code == 201
    booking = response.json()
    assert booking["status"] == "booked"
    assert booking["booking_id"].startswith("BK")
    assert booking["tracking_number"].startswith("TRK")

    headers = auth_headers(transporter)
    events = client.get(f"/api/bookings/{booking['id']}/tracking", headers=headers).json()
    assert [event["status"] for event in events] == ["booked"]

    notifications = client.get("/api/notifications", headers=headers).json()
    assert notifications[0]["type"] == "booking"
    assert booking["booking_id"] in notifications[0]["message"]

def test_expired_trial_cannot_book(client, transporter, db):
    transporter.trial_end_date = datetime.now() - timedelta(days=1)
    db.commit()
    response = create(client, transporter)
    assert response.status_code == 403
    assert response.json()["detail"]["code"] == "TRIAL_EXPIRED"

def test_agent_blocked_by_parent_trial(client, transporter, office_user, db):
    transporter.trial_end_date = datetime.now() - timedelta(days=1)
    db.commit()
    response = create(client, office_user)
    assert response.status_code == 403
    assert response.json()["detail"]["code"] == "PARENT_TRIAL_EXPIRED"

def test_agent_booking_notifies_parent_and_is_visible_to_parent(client, transporter, office_user):
    response = create(client, office_user, total_amount=2500)
    assert response.status_code == 201
    booking_pk = response.json()["id"]

    parent_headers = auth_headers(transporter)
    listed = client.get("/api/bookings", headers=parent_headers).json()
    assert [b["id"] for b in listed] == [booking_pk]
    assert client.get(f"/api/bookings/{booking_pk}", headers=parent_headers).status_code == 200

    notifications = client.get("/api/notifications", headers=parent_headers).json()
    assert any(n["type"] == "agent" for n in notifications)

def test_other_users_cannot_see_booking(client, transporter, make_user):
    booking_pk = create(client, transporter).json()["id"]
    stranger = make_user()
    assert client.get(f"/api/bookings/{booking_pk}", headers=auth_headers(stranger)).status_code == 404

def test_vehicle_must_belong_to_fleet(client, transporter, make_user):
    other = make_user()
    vehicle = client.post(
        "/api/vehicles",
        json={"registration_number": "MH12AB1234", "vehicle_type": "Truck"},
        headers=auth_headers(other),
    ).json()
    response = create(client, transporter, vehicle_id=vehicle["id"])
    assert response.status_code == 400

def test_agent_can_use_parent_vehicle(client, transporter, office_user):
    vehicle = client.post(
        "/api/vehicles",
        json={"registration_number": "MH12AB9999", "vehicle_type": "Container"},
        headers=auth_headers(transporter),
    ).json()
    response = create(client, office_user, vehicle_id=vehicle["id"])
    assert response.status_code == 201
    assert response.json()["vehicle_type"] == "Container"

def test_status_update_adds_tracking_event_once(client, transporter):
    headers = auth_headers(transporter)
    booking_pk = create(client, transporter).json()["id"]

    updated = client.put(f"/api/bookings/{booking_pk}", json={"status": "in_transit"}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["status"] == "in_transit"

    duplicate = client.post(f"/api/bookings/{booking_pk}/tracking", json={"status": "in_transit"}, headers=headers)
    assert duplicate.status_code == 409

    added = client.post(
        f"/api/bookings/{booking_pk}/tracking",
        json={"status": "delivered", "location": "Pune"},
        headers=headers,
    )
    assert added.status_code == 201
    statuses = [e["status"] for e in client.get(f"/api/bookings/{booking_pk}/tracking", headers=headers).json()]
    assert statuses == ["booked", "in_transit", "delivered"]

def test_marking_paid_sets_payment_date(client, transporter):
    headers = auth_headers(transporter)
    booking_pk = create(client, transporter).json()["id"]
    response = client.put(
        f"/api/bookings/{booking_pk}",
        json={"payment_status": "paid", "payment_method": "online", "paid_amount": 1000},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["payment_date"] is not None

def test_invalid_payload_is_rejected(client, transporter):
    assert create(client, transporter, pickup_city="").status_code == 422
    assert create(client, transporter, total_amount=-5).status_code == 422
    assert create(client, transporter, booking_type="express").status_code == 422

def test_recent_and_daily_list(client, transporter, db):
    headers = auth_headers(transporter)
    for city in ["Nashik", "Surat", "Indore"]:
        create(client, transporter, delivery_city=city)
    old = db.query(Booking).filter(Booking.delivery_city == "Nashik").first()
    old.created_at = datetime.now() - timedelta(days=3)
    db.commit()

    recent = client.get("/api/bookings/recent?limit=2", headers=headers).json()
    assert len(recent) == 2

    csv_response = client.get("/api/bookings/daily-list", headers=headers)
    assert csv_response.status_code == 200
    assert csv_response.headers["content-type"].startswith("text/csv")
    lines = csv_response.text.strip().splitlines()
    assert lines[0].startswith("Booking ID,Sender,Receiver")
    assert len(lines) == 3
    assert "Nashik" not in csv_response.text

def test_office_account_lacks_vehicle_permission(client, office_user):
    response = client.post(
        "/api/vehicles",
        json={"registration_number": "MH01ZZ0001", "vehicle_type": "Truck"},
        headers=auth_headers(office_user),
    )
    assert response.status_code == 403

def test_null_fields_leave_booking_unchanged(client, transporter):
    headers = auth_headers(transporter)
    booking_pk = create(client, transporter).json()["id"]
    response = client.put(f"/api/bookings/{booking_pk}", json={"status": None, "total_amount": None}, headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "booked"
    assert response.json()["total_amount"] == 1000

def test_update_cannot_attach_foreign_vehicle(client, transporter, make_user):
    other = make_user()
    foreign = client.post(
        "/api/vehicles",
        json={"registration_number": "KA01CD4321", "vehicle_type": "Truck"},
        headers=auth_headers(other),
    ).json()
    own = client.post(
        "/api/vehicles",
        json={"registration_number": "MH12EF5678", "vehicle_type": "Tempo"},
        headers=auth_headers(transporter),
    ).json()
    headers = auth_headers(transporter)
    booking_pk = create(client, transporter).json()["id"]

    refused = client.put(f"/api/bookings/{booking_pk}", json={"vehicle_id": foreign["id"]}, headers=headers)
    assert refused.status_code == 400
    assert client.get(f"/api/bookings/{booking_pk}", headers=headers).json()["vehicle_id"] is None

    accepted = client.put(f"/api/bookings/{booking_pk}", json={"vehicle_id": own["id"]}, headers=headers)
    assert accepted.status_code == 200
    assert accepted.json()["vehicle_id"] == own["id"]

def test_agent_booking_can_take_parent_vehicle_on_update(client, transporter, office_user):
    vehicle = client.post(
        "/api/vehicles",
        json={"registration_number": "MH14GH2468", "vehicle_type": "Container"},
        headers=auth_headers(transporter),
    ).json()
    booking_pk = create(client, office_user).json()["id"]
    response = client.put(f"/api/bookings/{booking_pk}", json={"vehicle_id": vehicle["id"]}, headers=auth_headers(office_user))
    assert response.status_code == 200
