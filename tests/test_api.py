from conftest import future_slot
from domain.chat import get_or_create_room
from models.audit_log import AuditLog


def _register(client, path="/auth/register", **extra):
    data = {
        "email": "jo@example.com",
        "password": "long-enough-pw",
        "first_name": "Jo",
        "last_name": "Park",
        "phone_number": "5550001111",
    }
    data.update(extra)
    return client.post(path, json=data)


def _post(login, user, path, body):
    c, headers = login(user)
    return c.post(path, json=body, headers=headers)


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json()["database"] == "online"
    assert resp.headers["X-Content-Type-Options"] == "nosniff"


def test_register_login_me(client):
    assert _register(client).status_code == 201

    resp = client.post("/auth/login", json={"email": "JO@example.com", "password": "long-enough-pw"})
    assert resp.status_code == 200
    token = resp.get_json()["token"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"}).get_json()
    assert me["email"] == "jo@example.com"
    assert me["roles"] == ["CUSTOMER"]
    assert me["provider_id"] is None


def test_register_provider_creates_profile(client):
    resp = _register(client, "/auth/register/provider", business_name="Jo's Suds", service_area="Austin, TX")
    assert resp.status_code == 201
    assert resp.get_json()["provider"]["business_name"] == "Jo's Suds"


def test_register_rejects_bad_input_and_duplicates(client):
    resp = _register(client, password="short", phone_number="123")
    assert resp.status_code == 400
    assert len(resp.get_json()["details"]) == 2

    assert _register(client).status_code == 201
    assert _register(client).status_code == 409


def test_wrong_password(client, customer):
    resp = client.post("/auth/login", json={"email": customer.email, "password": "nope"})
    assert resp.status_code == 401
    assert AuditLog.query.filter_by(action="LOGIN_FAIL").count() == 1


def test_anonymous_requests_are_rejected(client):
    assert client.get("/bookings/me").status_code == 401
    assert client.get("/vehicles").status_code == 401


def test_logout_revokes_bearer_token(login, customer):
    c, headers = login(customer)
    assert c.post("/auth/logout", headers=headers).status_code == 200
    assert c.get("/auth/me", headers=headers).status_code == 401


def test_cookie_auth_requires_csrf_header(login, customer):
    c, _ = login(customer)
    vehicle = {"make": "Ford", "model": "F-150", "year": "2020", "category": "truck"}

    assert c.post("/vehicles", json=vehicle).status_code == 403

    csrf = c.get_cookie("csrf_token").value
    resp = c.post("/vehicles", json=vehicle, headers={"X-CSRF-Token": csrf})
    assert resp.status_code == 201
    assert resp.get_json()["is_default"] is True


def test_quote(login, customer, service, add_ons):
    resp = _post(login, customer, "/bookings/quote", {"service_id": service.id, "add_on_ids": [a.id for a in add_ons]})
    assert resp.status_code == 200
    assert resp.get_json()["total"] == "65.49"


def test_booking_lifecycle_over_http(login, customer, provider_user, booking_payload):
    customer_client, customer_headers = login(customer)
    provider_client, provider_headers = login(provider_user)

    resp = customer_client.post("/bookings", json=booking_payload(), headers=customer_headers)
    assert resp.status_code == 201
    booking = resp.get_json()
    assert booking["status"] == "pending"
    assert booking["total_price"] == "49.99"

    listed = provider_client.get("/bookings/provider", headers=provider_headers).get_json()
    assert [b["id"] for b in listed] == [booking["id"]]
    assert listed[0]["customer"]["first_name"] == "Sam"

    # customers cannot drive the status
    resp = customer_client.post(f"/bookings/{booking['id']}/status", json={"status": "confirmed"}, headers=customer_headers)
    assert resp.status_code == 403

    resp = provider_client.post(f"/bookings/{booking['id']}/status", json={"status": "completed"}, headers=provider_headers)
    assert resp.status_code == 409
    assert "Cannot move booking" in resp.get_json()["error"]

    resp = provider_client.post(f"/bookings/{booking['id']}/status", json={"status": "confirmed"}, headers=provider_headers)
    assert resp.status_code == 200
    assert resp.get_json()["allowed_next_statuses"] == ["cancelled", "in_progress"]

    unread = customer_client.get("/notifications/unread-count", headers=customer_headers).get_json()
    assert unread["count"] == 1

    resp = customer_client.post(f"/bookings/{booking['id']}/cancel", headers=customer_headers)
    assert resp.get_json()["status"] == "cancelled"


def test_invalid_booking_returns_details(login, customer, booking_payload):
    resp = _post(login, customer, "/bookings", booking_payload(location="x", scheduled_date="not a date"))
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["error"] == "Invalid booking"
    assert "Invalid date format" in body["details"]


def test_strangers_cannot_see_a_booking(login, make_user, make_booking):
    booking = make_booking()
    c, headers = login(make_user())
    assert c.get(f"/bookings/{booking.id}", headers=headers).status_code == 404


def test_review_over_http(login, customer, provider, make_booking):
    booking = make_booking(status="completed")
    c, headers = login(customer)

    resp = c.post("/reviews", json={"booking_id": booking.id, "rating": 4, "comment": "Spotless"}, headers=headers)
    assert resp.status_code == 201

    resp = c.post("/reviews", json={"booking_id": booking.id, "rating": 4}, headers=headers)
    assert resp.status_code == 409

    body = c.get(f"/providers/{provider.id}", headers=headers).get_json()
    assert body["rating"] == "4.00"
    assert body["review_count"] == 1


def test_chat_over_http(login, customer, provider_user, make_booking):
    booking = make_booking()
    customer_client, customer_headers = login(customer)
    provider_client, provider_headers = login(provider_user)

    room = customer_client.post(f"/bookings/{booking.id}/chat", headers=customer_headers).get_json()
    same = provider_client.post(f"/bookings/{booking.id}/chat", headers=provider_headers).get_json()
    assert room["id"] == same["id"]

    first = customer_client.post(
        f"/chat/rooms/{room['id']}/messages", json={"message": "Gate code is 1234"}, headers=customer_headers
    ).get_json()
    assert first["sender_role"] == "customer"

    reply = provider_client.post(
        f"/chat/rooms/{room['id']}/messages", json={"message": "Thanks!"}, headers=provider_headers
    ).get_json()

    polled = customer_client.get(
        f"/chat/rooms/{room['id']}/messages?after_id={first['id']}", headers=customer_headers
    ).get_json()
    assert [m["id"] for m in polled] == [reply["id"]]

    rooms = provider_client.get("/chat/rooms", headers=provider_headers).get_json()
    assert rooms[0]["unread_count"] == 1

    marked = provider_client.post(f"/chat/rooms/{room['id']}/read", headers=provider_headers).get_json()
    assert marked["marked"] == 1


def test_outsiders_cannot_read_a_chat(login, make_user, make_booking):
    booking = make_booking()
    room = get_or_create_room(booking.id)

    c, headers = login(make_user())
    assert c.get(f"/chat/rooms/{room.id}/messages", headers=headers).status_code == 403


def test_nearby_providers_endpoint(login, customer, provider):
    c, headers = login(customer)
    assert c.get("/providers/nearby", headers=headers).status_code == 400

    resp = c.get("/providers/nearby?lat=40.7130&lng=-74.0050", headers=headers)
    body = resp.get_json()
    assert [p["id"] for p in body] == [provider.id]
    assert body[0]["distance_label"].endswith(" m")


def test_time_slots_endpoint(login, customer, provider, make_booking):
    c, headers = login(customer)
    start = future_slot(hour=14)
    make_booking(scheduled_date=start.isoformat())

    resp = c.get(f"/providers/{provider.id}/time-slots?date={start.date().isoformat()}", headers=headers)
    slots = {s["label"]: s["available"] for s in resp.get_json()["slots"]}
    assert slots["2:00 PM"] is False

    assert c.get(f"/providers/{provider.id}/time-slots?date=tomorrow", headers=headers).status_code == 400


def test_provider_schedule_over_http(login, customer, provider_user, provider):
    provider_client, provider_headers = login(provider_user)
    customer_client, customer_headers = login(customer)
    day = future_slot(days=3).date()
    weekday = (day.weekday() + 1) % 7

    resp = provider_client.put("/providers/me/availability", headers=provider_headers, json=[
        {"day_of_week": weekday, "start_time": "09:00", "end_time": "10:00"},
    ])
    assert resp.status_code == 200
    assert resp.get_json()[0]["start_time"] == "09:00"

    resp = provider_client.post("/providers/me/blocked-times", headers=provider_headers, json={
        "start_date": f"{day.isoformat()}T09:30:00",
        "end_date": f"{day.isoformat()}T12:00:00",
        "reason": "Supply run",
    })
    assert resp.status_code == 201
    blocked_id = resp.get_json()["id"]

    resp = customer_client.get(f"/providers/{provider.id}/time-slots?date={day.isoformat()}", headers=customer_headers)
    assert [(s["label"], s["available"]) for s in resp.get_json()["slots"]] == [("9:00 AM", True), ("9:30 AM", False)]

    assert customer_client.get(f"/providers/{provider.id}/availability", headers=customer_headers).status_code == 200
    assert customer_client.post("/providers/me/blocked-times", headers=customer_headers, json={}).status_code == 403
    assert provider_client.put("/providers/me/availability", headers=provider_headers, json={}).status_code == 400

    resp = provider_client.delete(f"/providers/me/blocked-times/{blocked_id}", headers=provider_headers)
    assert resp.status_code == 200
    assert provider_client.get("/providers/me/blocked-times", headers=provider_headers).get_json() == []
