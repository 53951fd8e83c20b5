import jwt

TEST_SECRET = "campushub-test-secret-0123456789abcdef"

EVENT_FIELDS = {
    "title": "Fest",
    "description": None,
    "date": "2025-05-01",
    "time": "10:00",
    "location": "Hall A",
    "imageUrl": None,
    "videoUrl": None,
}


def _signup(client, email="riya@x.com", password="secret1"):
    return client.post("/user/signup", json={"email": email, "password": password})


def test_signup_returns_token_and_sends_welcome(client, credentials, transport):
    response = _signup(client)

    assert response.status_code == 201
    body = response.get_json()
    assert body["success"] is True
    assert body["msg"] == "User signed up successfully"
    assert body["user"]["username"] == "riya"

    claims = jwt.decode(body["token"], TEST_SECRET, algorithms=["HS256"])
    assert claims["id"] == body["user"]["id"]
    assert claims["role"] == "student"

    assert transport.sent[0]["to"] == ["riya@x.com"]
    assert transport.sent[0]["subject"] == "Welcome to CampusHub!"


def test_signup_duplicate_email(client, credentials):
    _signup(client)
    response = _signup(client, email="RIYA@x.com")

    assert response.status_code == 400
    assert response.get_json() == {"success": False, "msg": "User already exists"}


def test_same_email_can_be_user_and_admin(client, credentials):
    assert _signup(client).status_code == 201
    response = client.post("/admin/signup", json={"email": "riya@x.com", "password": "secret1"})

    assert response.status_code == 201


def test_signup_invalid_input(client, credentials):
    response = _signup(client, email="bad", password="1")

    assert response.status_code == 400
    body = response.get_json()
    assert body["msg"] == "Invalid input"
    assert len(body["errors"]) == 2


def test_signup_without_json_body(client, credentials):
    response = client.post("/user/signup", data="email=a", content_type="text/plain")

    assert response.status_code == 400
    assert response.get_json()["msg"] == "Invalid input"


def test_signin(client, credentials):
    _signup(client)

    response = client.post("/user/signin", json={"email": "riya@x.com", "password": "secret1"})

    assert response.status_code == 200
    body = response.get_json()
    assert body["msg"] == "User logged in successfully"
    assert body["user"] == {"id": 1, "username": "riya", "email": "riya@x.com"}


def test_signin_wrong_password(client, credentials):
    _signup(client)

    response = client.post("/user/signin", json={"email": "riya@x.com", "password": "wrong-pass"})

    assert response.status_code == 400
    assert response.get_json()["msg"] == "Invalid credentials"


def test_signin_unknown_email(client, credentials):
    response = client.post("/user/signin", json={"email": "ghost@x.com", "password": "secret1"})

    assert response.status_code == 400
    assert response.get_json()["msg"] == "Invalid credentials"


def test_profile_excludes_password(client, credentials):
    token = _signup(client).get_json()["token"]

    response = client.get("/user/profile", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    user = response.get_json()["user"]
    assert user["email"] == "riya@x.com"
    assert "password_hash" not in user
    assert "password" not in user


def test_profile_missing_token(client):
    response = client.get("/user/profile")

    assert response.status_code == 401
    assert response.get_json() == {"success": False, "msg": "Access denied"}


def test_profile_invalid_token(client):
    response = client.get("/user/profile", headers={"Authorization": "Bearer invalid.token.here"})

    assert response.status_code == 400
    assert response.get_json()["msg"] == "Invalid token"


def test_profile_unknown_user(client, credentials, bearer):
    response = client.get("/user/profile", headers=bearer(404, "ghost@x.com"))

    assert response.status_code == 404
    assert response.get_json()["msg"] == "User not found"


def test_list_events_is_public(client, mocker):
    mocker.patch(
        "campushub.events_service.catalog.list_events",
        return_value=[{"id": 1, "title": "Fest"}],
    )

    response = client.get("/user/events")

    assert response.status_code == 200
    assert response.get_json() == {"success": True, "events": [{"id": 1, "title": "Fest"}]}


def test_register_event_then_duplicate(client, events_backend, transport):
    event = events_backend.create_event(99, EVENT_FIELDS)
    token = _signup(client).get_json()["token"]
    headers = {"Authorization": f"Bearer {token}"}

    first = client.post(f"/user/register-event/{event['id']}", headers=headers)
    second = client.post(f"/user/register-event/{event['id']}", headers=headers)

    assert first.status_code == 200
    assert first.get_json() == {"success": True, "msg": "Registered successfully!"}
    assert second.status_code == 400
    assert second.get_json()["msg"] == "Already registered"
    assert len(events_backend.registrations) == 1
    assert transport.sent[-1]["subject"] == "You're Registered: Fest!"


def test_register_unknown_event(client, events_backend):
    token = _signup(client).get_json()["token"]

    response = client.post("/user/register-event/999", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 404
    assert response.get_json()["msg"] == "Event not found"
    assert events_backend.registrations == []


def test_register_unknown_user(client, events_backend, bearer):
    event = events_backend.create_event(99, EVENT_FIELDS)

    response = client.post(f"/user/register-event/{event['id']}", headers=bearer(404, "ghost@x.com"))

    assert response.status_code == 404
    assert response.get_json()["msg"] == "User not found"


def test_register_requires_token(client, events_backend):
    response = client.post("/user/register-event/1")

    assert response.status_code == 401


def test_profile_rejects_organizer_token_with_same_id(client, credentials, bearer):
    user = _signup(client).get_json()["user"]

    response = client.get("/user/profile", headers=bearer(user["id"], "org@x.com", "admin"))

    assert response.status_code == 403
    assert response.get_json() == {"success": False, "msg": "Access denied"}


def test_register_rejects_organizer_token_with_same_id(client, events_backend, bearer):
    event = events_backend.create_event(99, EVENT_FIELDS)
    user = _signup(client).get_json()["user"]

    response = client.post(
        f"/user/register-event/{event['id']}",
        headers=bearer(user["id"], "org@x.com", "admin"),
    )

    assert response.status_code == 403
    assert events_backend.registrations == []


def test_register_succeeds_when_event_lookup_for_email_fails(client, events_backend, transport, mocker):
    event = events_backend.create_event(99, EVENT_FIELDS)
    token = _signup(client).get_json()["token"]
    mocker.patch("campushub.events_service.catalog.get_event", side_effect=RuntimeError("db down"))

    response = client.post(f"/user/register-event/{event['id']}", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.get_json()["msg"] == "Registered successfully!"
    assert len(events_backend.registrations) == 1
    assert [m["subject"] for m in transport.sent] == ["Welcome to CampusHub!"]
