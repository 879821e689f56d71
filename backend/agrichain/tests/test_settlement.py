from agrichain.config import (
    INSPECTION_DESK_ADDRESS,
    OPERATION_CENTER_ADDRESS,
    SETTLEMENT_INITIAL_SUPPLY,
    SETTLEMENT_TOKEN_SYMBOL,
)

from .conftest import balance, create_account, event_names, transfer


def test_system_accounts(client):
    headers, _ = create_account(client)
    data = client.get("/api/settlement/system-accounts", headers=headers).json()
    assert data == {
        "operation_center": OPERATION_CENTER_ADDRESS,
        "inspection_desk": INSPECTION_DESK_ADDRESS,
        "symbol": SETTLEMENT_TOKEN_SYMBOL,
    }


def test_owner_holds_initial_supply(client, owner):
    owner_headers, owner_address = owner
    data = client.get(f"/api/settlement/balances/{owner_address}", headers=owner_headers).json()
    assert data["amount"] == SETTLEMENT_INITIAL_SUPPLY
    assert data["symbol"] == SETTLEMENT_TOKEN_SYMBOL


def test_transfer_moves_balance(client, owner):
    owner_headers, owner_address = owner
    headers, address = create_account(client)

    data = transfer(client, owner_headers, address, 40)
    assert data["amount"] == SETTLEMENT_INITIAL_SUPPLY - 40
    assert balance(client, headers, address) == 40
    assert event_names() == ["TokenTransferred"]

    resp = client.post("/api/settlement/transfers", json={"to_address": owner_address, "amount": 41}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["code"] == "NotSufficientBalance"
    assert balance(client, headers, address) == 40


def test_approve_sets_allowance(client):
    headers, address = create_account(client)
    resp = client.post(
        "/api/settlement/approvals",
        json={"spender_address": INSPECTION_DESK_ADDRESS.upper(), "amount": 15},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["spender_address"] == INSPECTION_DESK_ADDRESS

    allowance = client.get(f"/api/settlement/allowances/{address}/{INSPECTION_DESK_ADDRESS}", headers=headers).json()
    assert allowance["amount"] == 15

    client.post(
        "/api/settlement/approvals",
        json={"spender_address": INSPECTION_DESK_ADDRESS, "amount": 3},
        headers=headers,
    )
    allowance = client.get(f"/api/settlement/allowances/{address}/{INSPECTION_DESK_ADDRESS}", headers=headers).json()
    assert allowance["amount"] == 3
    assert "Approval" in event_names()
