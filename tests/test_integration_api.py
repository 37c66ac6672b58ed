"""
End-to-end HTTP tests through the Flask test client: envelope shape,
authentication, role checks and the rental flow.
"""

CAR = {
    "make": "Honda",
    "model": "Civic",
    "year": 2021,
    "color": "Blue",
    "dailyRate": 60,
    "mileage": 5000,
    "licensePlate": "civ123",
}


def _register(client, username, role=None):
    body = {"username": username, "email": f"{username}@example.com", "password": "Secret123"}
    if role:
        body["role"] = role
    resp = client.post("/api/auth/register", json=body)
    assert resp.status_code == 201
    return resp.get_json()["data"]["token"]


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


def test_health(client):
    resp = client.get("/health")
    body = resp.get_json()
    assert resp.status_code == 200
    assert body["success"] is True
    assert body["data"]["timestamp"].endswith("Z")


def test_unknown_route(client):
    resp = client.get("/api/nowhere")
    assert resp.status_code == 404
    assert resp.get_json() == {"success": False, "message": "Route not found"}


def test_register_then_login(client):
    resp = client.post("/api/auth/register", json={
        "username": "carol", "email": "Carol@Example.com", "password": "Secret123",
    })
    data = resp.get_json()["data"]
    assert data["user"]["email"] == "carol@example.com"
    assert data["user"]["role"] == "user"
    assert "passwordHash" not in data["user"]

    resp = client.post("/api/auth/login", json={"email": "carol@example.com", "password": "Secret123"})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["token"]

    resp = client.post("/api/auth/login", json={"email": "carol@example.com", "password": "nope"})
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Invalid email or password"


def test_register_validation_and_duplicates(client):
    resp = client.post("/api/auth/register", json={"username": "x", "email": "bad", "password": "1"})
    body = resp.get_json()
    assert resp.status_code == 400
    assert body["success"] is False
    assert {e["field"] for e in body["errors"]} == {"username", "email", "password"}

    _register(client, "carol")
    resp = client.post("/api/auth/register", json={
        "username": "carol", "email": "other@example.com", "password": "Secret123",
    })
    assert resp.status_code == 400
    assert "already exists" in resp.get_json()["message"]


def test_non_object_body_is_rejected(client):
    resp = client.post("/api/auth/login", json=["not", "an", "object"])
    assert resp.status_code == 400


def test_missing_and_bad_tokens(client):
    resp = client.get("/api/rentals")
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "No token provided"

    resp = client.get("/api/rentals", headers=_bearer("garbage"))
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Invalid token"


def test_car_writes_are_admin_only(client, make_user, auth_header):
    customer = auth_header(make_user("carol"))
    resp = client.post("/api/cars", json=CAR, headers=customer)
    assert resp.status_code == 403
    assert resp.get_json()["message"] == "Admin access required"

    admin = auth_header(make_user("boss", "admin"))
    resp = client.post("/api/cars", json=CAR, headers=admin)
    assert resp.status_code == 201
    car = resp.get_json()["data"]["car"]
    assert car["licensePlate"] == "CIV123"

    resp = client.put(f"/api/cars/{car['id']}", json={"color": "Red"}, headers=admin)
    assert resp.get_json()["data"]["car"]["color"] == "Red"

    resp = client.delete(f"/api/cars/{car['id']}", headers=admin)
    assert resp.get_json()["data"]["deletedRentals"] == 0
    assert client.delete(f"/api/cars/{car['id']}", headers=admin).status_code == 404


def test_car_listing_is_public(client, make_car):
    make_car(plate="AAA111")
    resp = client.get("/api/cars")
    body = resp.get_json()
    assert resp.status_code == 200
    assert body["data"]["count"] == 1

    resp = client.get("/api/cars?startDate=2030-02-01&endDate=2030-01-01")
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "End date must be after start date"


def test_rental_flow_over_http(client, store, make_car, make_user, auth_header):
    admin = make_user("boss", "admin")
    carol = make_user("carol")
    vid = make_car(daily_rate=50.0)

    resp = client.post("/api/rentals", json={
        "vehicleId": vid, "startDate": "2030-05-01", "endDate": "2030-05-03",
    }, headers=auth_header(carol))
    assert resp.status_code == 201
    rental = resp.get_json()["data"]["rental"]
    assert rental["status"] == "pending"
    assert rental["totalCost"] == 100.0
    assert rental["vehicle"]["id"] == vid

    # admin sees it, with requester details on request
    resp = client.get("/api/rentals?expand=requester", headers=auth_header(admin))
    rows = resp.get_json()["data"]["rentals"]
    assert rows[0]["requester"]["username"] == "carol"
    assert "vehicle" not in rows[0]

    resp = client.get("/api/rentals?expand=owner", headers=auth_header(admin))
    assert resp.status_code == 400

    # the admin approves; the requester's notification appears
    resp = client.put(f"/api/rentals/{rental['id']}", json={"status": "approved"}, headers=auth_header(admin))
    assert resp.get_json()["data"]["rental"]["status"] == "approved"

    resp = client.get("/api/notifications", headers=auth_header(carol))
    notes = resp.get_json()["data"]["notifications"]
    assert notes[0]["title"] == "Your rental request has been approved"
    assert notes[0]["isOpened"] is False

    # an overlapping request for the same car is a conflict
    resp = client.post("/api/rentals", json={
        "vehicleId": vid, "startDate": "2030-05-03", "endDate": "2030-05-04", "status": "approved",
    }, headers=auth_header(admin))
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Car is already rented for this period"

    # the window listing now reports the car as rented
    resp = client.get("/api/cars?startDate=2030-05-02&endDate=2030-05-06")
    assert resp.get_json()["data"]["cars"][0]["status"] == "rented"
    resp = client.get(f"/api/cars/{vid}/availability")
    assert len(resp.get_json()["data"]["booked"]) == 1

    # the requester cancels
    resp = client.put(f"/api/rentals/{rental['id']}", json={"notes": "x"}, headers=auth_header(carol))
    assert resp.status_code == 403
    resp = client.put(f"/api/rentals/{rental['id']}", json={"status": "cancelled"}, headers=auth_header(carol))
    assert resp.status_code == 200
    assert resp.get_json()["data"]["rental"]["status"] == "cancelled"

    # only admins delete
    assert client.delete(f"/api/rentals/{rental['id']}", headers=auth_header(carol)).status_code == 403
    assert client.delete(f"/api/rentals/{rental['id']}", headers=auth_header(admin)).status_code == 200
    assert store.rentals.count() == 0


def test_stranger_cannot_touch_a_rental(client, make_car, make_user, auth_header):
    carol, dave = make_user("carol"), make_user("dave")
    resp = client.post("/api/rentals", json={
        "vehicleId": make_car(), "startDate": "2030-05-01", "endDate": "2030-05-03",
    }, headers=auth_header(carol))
    rid = resp.get_json()["data"]["rental"]["id"]

    resp = client.put(f"/api/rentals/{rid}", json={"status": "cancelled"}, headers=auth_header(dave))
    assert resp.status_code == 403
    assert client.get("/api/rentals", headers=auth_header(dave)).get_json()["data"]["count"] == 0


def test_notification_endpoints(client, make_user, auth_header):
    admin = make_user("boss", "admin")
    _register(client, "carol")
    _register(client, "dave")
    headers = auth_header(admin)

    notes = client.get("/api/notifications", headers=headers).get_json()["data"]["notifications"]
    assert len(notes) == 2

    resp = client.patch(f"/api/notifications/{notes[0]['id']}/read", headers=headers)
    assert resp.get_json()["data"]["notification"]["isOpened"] is True

    assert client.delete(f"/api/notifications/{notes[1]['id']}", headers=headers).status_code == 200
    assert client.delete(f"/api/notifications/{notes[1]['id']}", headers=headers).status_code == 404

    resp = client.delete("/api/notifications", headers=headers)
    assert resp.get_json()["data"]["count"] == 1


def test_users_list_counts_rentals(client, make_car, make_user, auth_header):
    admin = make_user("boss", "admin")
    carol = make_user("carol")
    client.post("/api/rentals", json={
        "vehicleId": make_car(), "startDate": "2030-05-01", "endDate": "2030-05-03",
    }, headers=auth_header(carol))

    assert client.get("/api/users", headers=auth_header(carol)).status_code == 403
    resp = client.get("/api/users", headers=auth_header(admin))
    users = resp.get_json()["data"]["users"]
    assert [u["username"] for u in users] == ["carol"]
    assert users[0]["rentalCount"] == 1
