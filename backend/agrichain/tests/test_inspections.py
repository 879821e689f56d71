from agrichain.config import INSPECTION_DESK_ADDRESS, INSPECTOR_FEE, OPERATION_CENTER_ADDRESS

from .conftest import (
    balance,
    dao_member,
    event_names,
    open_proposal,
    passed_proposal,
    registered,
    staked_inspector,
)


def assign(client, headers, index, amount):
    return client.post(
        f"/api/inspections/proposals/{index}/assign",
        json={"guaranteed_amount": amount},
        headers=headers,
    )


def test_assign_requires_passed_proposal(client, owner, ledger_clock):
    owner_headers, _ = owner
    member_headers, _ = dao_member(client, owner_headers)
    producer_headers, producer = registered(client, "producer")
    index = open_proposal(client, member_headers, producer_headers, producer)
    inspector_headers, _ = staked_inspector(client, owner_headers, stake=20)

    resp = assign(client, inspector_headers, index, 20)
    assert resp.status_code == 400
    assert resp.json()["code"] == "ProposalDidntPass"


def test_assign_requires_inspector_role(client, owner, ledger_clock):
    owner_headers, _ = owner
    index, _ = passed_proposal(client, owner_headers, ledger_clock)
    producer_headers, _ = registered(client, "producer")
    resp = assign(client, producer_headers, index, 0)
    assert resp.status_code == 403
    assert resp.json()["code"] == "InsufficientRole"


def test_assign_locks_stake(client, owner, ledger_clock):
    owner_headers, _ = owner
    index, _ = passed_proposal(client, owner_headers, ledger_clock)
    treasury_before = balance(client, owner_headers, OPERATION_CENTER_ADDRESS)
    inspector_headers, inspector = staked_inspector(client, owner_headers, stake=20, funds=100)

    resp = assign(client, inspector_headers, index, 20)
    assert resp.status_code == 200
    assert resp.json()["inspector_address"] == inspector

    assert balance(client, owner_headers, inspector) == 80
    assert balance(client, owner_headers, OPERATION_CENTER_ADDRESS) == treasury_before + 20
    guarantee = client.get(f"/api/governance/guarantees/{inspector}/{index}", headers=owner_headers).json()
    assert guarantee["amount"] == 20
    assert guarantee["status"] == "locked"
    allowance = client.get(
        f"/api/settlement/allowances/{inspector}/{INSPECTION_DESK_ADDRESS}", headers=owner_headers
    ).json()
    assert allowance["amount"] == 0
    assert "ProcessInspectionAccepted" in event_names()

    other_headers, _ = staked_inspector(client, owner_headers, stake=20)
    resp = assign(client, other_headers, index, 20)
    assert resp.status_code == 409
    assert resp.json()["code"] == "InspectorAlreadyAssigned"


def test_assign_without_allowance_rolls_back(client, owner, ledger_clock):
    owner_headers, _ = owner
    index, _ = passed_proposal(client, owner_headers, ledger_clock)
    inspector_headers, inspector = staked_inspector(client, owner_headers, stake=5, funds=100)

    resp = assign(client, inspector_headers, index, 20)
    assert resp.status_code == 400
    assert resp.json()["code"] == "InsufficientAllowance"

    proposal = client.get(f"/api/governance/proposals/{index}", headers=owner_headers).json()
    assert proposal["inspector_address"] is None
    guarantee = client.get(f"/api/governance/guarantees/{inspector}/{index}", headers=owner_headers).json()
    assert guarantee["amount"] == 0
    assert guarantee["status"] is None
    assert balance(client, owner_headers, inspector) == 100


def test_assign_without_funds(client, owner, ledger_clock):
    owner_headers, _ = owner
    index, _ = passed_proposal(client, owner_headers, ledger_clock)
    inspector_headers, _ = staked_inspector(client, owner_headers, stake=50, funds=10)

    resp = assign(client, inspector_headers, index, 50)
    assert resp.json()["code"] == "NotSufficientBalance"


def test_approve_refunds_stake_with_fee(client, owner, ledger_clock):
    owner_headers, _ = owner
    index, _ = passed_proposal(client, owner_headers, ledger_clock)
    inspector_headers, inspector = staked_inspector(client, owner_headers, stake=20, funds=100)
    assign(client, inspector_headers, index, 20)
    other_headers, _ = registered(client, "inspector")

    resp = client.post(f"/api/inspections/proposals/{index}/approve", headers=other_headers)
    assert resp.status_code == 403
    assert resp.json()["code"] == "YouAreNotTheInspectorOfThisProposal"

    resp = client.post(f"/api/inspections/proposals/{index}/approve", headers=inspector_headers)
    assert resp.status_code == 200
    assert resp.json()["passed_inspection"] is True
    assert resp.json()["inspection_finalized"] is True
    assert balance(client, owner_headers, inspector) == 100 + INSPECTOR_FEE
    guarantee = client.get(f"/api/governance/guarantees/{inspector}/{index}", headers=owner_headers).json()
    assert guarantee["status"] == "refunded"
    assert "InspectionFinalized" in event_names()

    again = client.post(f"/api/inspections/proposals/{index}/approve", headers=inspector_headers)
    assert again.status_code == 409
    assert again.json()["code"] == "InspectionAlreadyFinalized"
    assert balance(client, owner_headers, inspector) == 100 + INSPECTOR_FEE


def test_reject_forfeits_stake(client, owner, ledger_clock):
    owner_headers, _ = owner
    index, _ = passed_proposal(client, owner_headers, ledger_clock)
    inspector_headers, inspector = staked_inspector(client, owner_headers, stake=20, funds=100)
    assign(client, inspector_headers, index, 20)
    treasury = balance(client, owner_headers, OPERATION_CENTER_ADDRESS)

    resp = client.post(f"/api/inspections/proposals/{index}/reject", headers=inspector_headers)
    assert resp.status_code == 200
    assert resp.json()["passed_inspection"] is False
    assert resp.json()["inspection_finalized"] is True
    assert balance(client, owner_headers, inspector) == 80
    assert balance(client, owner_headers, OPERATION_CENTER_ADDRESS) == treasury
    guarantee = client.get(f"/api/governance/guarantees/{inspector}/{index}", headers=owner_headers).json()
    assert guarantee["status"] == "forfeited"

    resp = client.post(f"/api/inspections/proposals/{index}/approve", headers=inspector_headers)
    assert resp.json()["code"] == "InspectionAlreadyFinalized"


def test_approve_unassigned_proposal(client, owner, ledger_clock):
    owner_headers, _ = owner
    index, _ = passed_proposal(client, owner_headers, ledger_clock)
    inspector_headers, _ = registered(client, "inspector")
    resp = client.post(f"/api/inspections/proposals/{index}/approve", headers=inspector_headers)
    assert resp.status_code == 403
    assert resp.json()["code"] == "YouAreNotTheInspectorOfThisProposal"
