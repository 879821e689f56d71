import re

from .conftest import bearer, create_account


def test_create_account_and_login(client):
    resp = client.post("/api/auth/accounts", json={"password": "secret"})
    assert resp.status_code == 200
    data = resp.json()
    assert re.fullmatch(r"0x[0-9a-f]{40}", data["address"])
    assert data["token_type"] == "bearer"

    login = client.post("/api/auth/login", json={"address": data["address"].upper(), "password": "secret"})
    assert login.status_code == 200
    me = client.get("/api/identity/me", headers=bearer(login.json()["access_token"]))
    assert me.status_code == 200
    assert me.json()["address"] == data["address"]
    assert me.json()["role"] == "unregistered"
    assert me.json()["is_owner"] is False


def test_login_rejects_wrong_password(client):
    _, address = create_account(client)
    resp = client.post("/api/auth/login", json={"address": address, "password": "not-it"})
    assert resp.status_code == 401


def test_short_password_rejected(client):
    resp = client.post("/api/auth/accounts", json={"password": "abc"})
    assert resp.status_code == 422


def test_protected_route_requires_token(client):
    assert client.get("/api/identity/me").status_code == 401
    resp = client.get("/api/identity/me", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401


def test_owner_login(client, owner):
    headers, address = owner
    me = client.get("/api/identity/me", headers=headers).json()
    assert me["address"] == address
    assert me["is_owner"] is True
