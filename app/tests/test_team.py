from .conftest import auth_headers

def member(**overrides):
    data = {
        "name": "Priya Sharma",
        "email": "priya@courierhub.in",
        "role": "Fleet Coordinator",
        "department": "Fleet Management",
        "location": "Mumbai",
        "salary": "₹68,000",
    }
    data.update(overrides)
    return data

def test_member_lifecycle(client, transporter):
    headers = auth_headers(transporter)
    created = client.post("/api/team/members", json=member(), headers=headers)
    assert created.status_code == 201
    body = created.json()
    assert body["status"] == "active"
    assert body["join_date"] is not None

    updated = client.put(f"/api/team/members/{body['id']}", json={"status": "inactive"}, headers=headers)
    assert updated.json()["status"] == "inactive"

    assert client.delete(f"/api/team/members/{body['id']}", headers=headers).status_code == 200
    assert client.get("/api/team/members", headers=headers).json() == []

def test_member_requires_name_email_role(client, transporter):
    headers = auth_headers(transporter)
    assert client.post("/api/team/members", json=member(name=""), headers=headers).status_code == 422
    assert client.post("/api/team/members", json=member(email="not-an-email"), headers=headers).status_code == 422
    assert client.post("/api/team/members", json=member(department="Marketing"), headers=headers).status_code == 400

def test_member_search_and_department_filter(client, transporter):
    headers = auth_headers(transporter)
    client.post("/api/team/members", json=member(), headers=headers)
    client.post("/api/team/members", json=member(
        name="Amit Singh", email="amit@courierhub.in", role="Warehouse Supervisor", department="Warehouse"
    ), headers=headers)

    def names(query):
        return [m["name"] for m in client.get(f"/api/team/members{query}", headers=headers).json()]

    assert names("?department=All") == ["Priya Sharma", "Amit Singh"]
    assert names("?department=Warehouse") == ["Amit Singh"]
    assert names("?search=FLEET") == ["Priya Sharma"]
    assert names("?search=amit@") == ["Amit Singh"]
    assert names("?search=nobody") == []

def test_teams_are_private_to_owner(client, transporter, make_user):
    client.post("/api/team/members", json=member(), headers=auth_headers(transporter))
    assert client.get("/api/team/members", headers=auth_headers(make_user())).json() == []

def test_roles_are_seeded_and_validated(client, transporter):
    headers = auth_headers(transporter)
    roles = client.get("/api/team/roles", headers=headers).json()
    assert len(roles) == 6
    assert {r["department"] for r in roles} == set(client.get("/api/team/departments", headers=headers).json())

    bad = client.post("/api/team/roles", json={
        "name": "Night Supervisor", "description": "Runs the night shift", "permissions": ["launch_rockets"],
    }, headers=headers)
    assert bad.status_code == 400

    good = client.post("/api/team/roles", json={
        "name": "Night Supervisor", "description": "Runs the night shift",
        "department": "Operations", "permissions": ["view_bookings", "update_status"],
    }, headers=headers)
    assert good.status_code == 201
    assert good.json()["permissions"] == ["view_bookings", "update_status"]

    missing_description = client.post("/api/team/roles", json={"name": "Helper", "description": ""}, headers=headers)
    assert missing_description.status_code == 422

def test_role_in_use_cannot_be_deleted(client, transporter):
    headers = auth_headers(transporter)
    roles = {r["name"]: r["id"] for r in client.get("/api/team/roles", headers=headers).json()}
    client.post("/api/team/members", json=member(role="Driver", department="Transportation"), headers=headers)

    assert client.delete(f"/api/team/roles/{roles['Driver']}", headers=headers).status_code == 400
    assert client.delete(f"/api/team/roles/{roles['Accounts Manager']}", headers=headers).status_code == 200

def test_permissions_catalogue_and_stats(client, transporter):
    headers = auth_headers(transporter)
    permissions = client.get("/api/team/permissions", headers=headers).json()
    assert "view_all_bookings" in permissions
    assert len(permissions) == 21

    client.post("/api/team/members", json=member(), headers=headers)
    second = client.post("/api/team/members", json=member(
        name="Kavita Joshi", email="kavita@courierhub.in", role="Accounts Manager", department="Finance"
    ), headers=headers).json()
    client.put(f"/api/team/members/{second['id']}", json={"status": "inactive"}, headers=headers)
    client.get("/api/team/roles", headers=headers)

    stats = client.get("/api/team/stats", headers=headers).json()
    assert stats == {"totalMembers": 2, "activeMembers": 1, "departments": 2, "roles": 6}

def test_office_account_cannot_manage_team(client, office_user):
    assert client.get("/api/team/members", headers=auth_headers(office_user)).status_code == 403

def test_member_status_and_role_level_are_enumerated(client, transporter):
    headers = auth_headers(transporter)
    created = client.post("/api/team/members", json=member(), headers=headers).json()
    assert client.put(f"/api/team/members/{created['id']}", json={"status": "on_leave"}, headers=headers).status_code == 422

    role = {"name": "Dispatcher", "description": "Plans daily dispatch", "level": "Expert"}
    assert client.post("/api/team/roles", json=role, headers=headers).status_code == 422
    role["level"] = "Senior"
    assert client.post("/api/team/roles", json=role, headers=headers).status_code == 201

def test_search_wildcards_match_literally(client, transporter):
    headers = auth_headers(transporter)
    client.post("/api/team/members", json=member(), headers=headers)
    client.post("/api/team/members", json=member(
        name="Rahul 100% Verma", email="rahul@courierhub.in", role="Driver", department="Transportation"
    ), headers=headers)

    def names(query):
        return [m["name"] for m in client.get("/api/team/members", params={"search": query}, headers=headers).json()]

    assert names("%") == ["Rahul 100% Verma"]
    assert names("_") == []
    assert names("priya") == ["Priya Sharma"]

def test_renamed_role_stays_protected(client, transporter):
    headers = auth_headers(transporter)
    roles = {r["name"]: r["id"] for r in client.get("/api/team/roles", headers=headers).json()}
    created = client.post("/api/team/members", json=member(role="Driver", department="Transportation"), headers=headers).json()

    renamed = client.put(f"/api/team/roles/{roles['Driver']}", json={"name": "Senior Driver"}, headers=headers)
    assert renamed.status_code == 200
    members = client.get("/api/team/members", headers=headers).json()
    assert [m["role"] for m in members if m["id"] == created["id"]] == ["Senior Driver"]

    assert client.delete(f"/api/team/roles/{roles['Driver']}", headers=headers).status_code == 400
