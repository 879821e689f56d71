from .conftest import create_account, event_names, registered


def test_register_producer(client):
    headers, address = create_account(client)
    resp = client.post(
        "/api/identity/register",
        json={"username": "alice", "email": "alice@farm.test", "role": "producer"},
        headers=headers,
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["role"] == "producer"
    assert data["username"] == "alice"
    assert data["registered_at"] is not None
    assert "UserRegistered" in event_names()

    public = client.get(f"/api/identity/{address}", headers=headers).json()
    assert public["role"] == "producer"


def test_register_twice_fails(client):
    headers, address = registered(client, "inspector")
    resp = client.post(
        "/api/identity/register",
        json={"username": "again", "email": "again@farm.test", "role": "producer"},
        headers=headers,
    )
    assert resp.status_code == 409
    assert resp.json()["code"] == "AlreadyRegistered"
    assert client.get("/api/identity/me", headers=headers).json()["role"] == "inspector"


def test_register_requires_username_and_email(client):
    headers, _ = create_account(client)
    resp = client.post(
        "/api/identity/register",
        json={"username": "   ", "email": "bob@farm.test", "role": "producer"},
        headers=headers,
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "InvalidInput"

    resp = client.post(
        "/api/identity/register",
        json={"username": "bob", "email": "", "role": "producer"},
        headers=headers,
    )
    assert resp.json()["code"] == "InvalidInput"
    assert client.get("/api/identity/me", headers=headers).json()["role"] == "unregistered"
    assert "UserRegistered" not in event_names()


def test_register_rejects_unknown_role(client):
    headers, _ = create_account(client)
    resp = client.post(
        "/api/identity/register",
        json={"username": "carol", "email": "carol@farm.test", "role": "owner"},
        headers=headers,
    )
    assert resp.status_code == 422


def test_unknown_account_not_found(client):
    headers, _ = create_account(client)
    resp = client.get("/api/identity/0x" + "0" * 40, headers=headers)
    assert resp.status_code == 404
