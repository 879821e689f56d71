import os
os.environ["TESTING"] = "1"
os.environ.setdefault("SECRET_KEY", "test-secret")
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[2]))

from agrichain import bootstrap, clock, pubsub
from agrichain.config import INSPECTION_DESK_ADDRESS, OPERATION_CENTER_ADDRESS, VOTING_PERIOD_SECONDS
from agrichain.main import app
from agrichain.database import Base, get_db

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False, "timeout": 30},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

OPERATOR_PASSWORD = "operator-secret"
START_TIME = 1_700_000_000


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def fresh_ledger():
    # every test starts from an empty ledger: counters at 0, no treasury funds
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    pubsub.EVENT_OUTBOX.clear()
    yield


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


class FrozenClock:
    def __init__(self, now: int):
        self.now = now

    def advance(self, seconds: int) -> None:
        self.now += seconds

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def ledger_clock(monkeypatch):
    frozen = FrozenClock(START_TIME)
    monkeypatch.setattr(clock, "timestamp", frozen)
    return frozen


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def create_account(client, password: str = "secret"):
    resp = client.post("/api/auth/accounts", json={"password": password})
    assert resp.status_code == 200, resp.text
    data = resp.json()
    return bearer(data["access_token"]), data["address"]


def registered(client, role: str, username: str | None = None):
    """Create an account and register it with ``role``; returns (headers, address)."""

    headers, address = create_account(client)
    resp = client.post(
        "/api/identity/register",
        json={
            "username": username or f"{role}-{address[2:8]}",
            "email": f"{address[2:10]}@farm.test",
            "role": role,
        },
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    return headers, address


@pytest.fixture
def owner(client):
    db = TestingSessionLocal()
    try:
        address = bootstrap.ensure_operator(db, OPERATOR_PASSWORD).address
    finally:
        db.close()
    resp = client.post("/api/auth/login", json={"address": address, "password": OPERATOR_PASSWORD})
    assert resp.status_code == 200, resp.text
    return bearer(resp.json()["access_token"]), address


def transfer(client, headers, to_address: str, amount: int):
    resp = client.post("/api/settlement/transfers", json={"to_address": to_address, "amount": amount}, headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()


def balance(client, headers, address: str) -> int:
    return client.get(f"/api/settlement/balances/{address}", headers=headers).json()["amount"]


def fund_treasury(client, owner_headers, amount: int) -> None:
    transfer(client, owner_headers, OPERATION_CENTER_ADDRESS, amount)


def dao_member(client, owner_headers, username: str | None = None):
    headers, address = registered(client, "inspector", username)
    resp = client.post("/api/governance/members", json={"address": address}, headers=owner_headers)
    assert resp.status_code == 200, resp.text
    return headers, address


def open_proposal(client, member_headers, producer_headers, producer_address: str, protocol_id: int = 1) -> int:
    resp = client.post(f"/api/certification/protocols/{protocol_id}", headers=producer_headers)
    assert resp.status_code == 200, resp.text
    resp = client.post(
        "/api/governance/proposals",
        json={
            "description": "Advance credit for organic tomato protocol",
            "protocol_id": protocol_id,
            "producer_address": producer_address,
        },
        headers=member_headers,
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["index"]


def passed_proposal(client, owner_headers, ledger_clock, credit_amount: int = 10):
    """Run a proposal through a winning vote and execution; returns (index, producer_address)."""

    member_headers, _ = dao_member(client, owner_headers)
    producer_headers, producer_address = registered(client, "producer")
    fund_treasury(client, owner_headers, 1_000)
    index = open_proposal(client, member_headers, producer_headers, producer_address)
    resp = client.post(f"/api/governance/proposals/{index}/votes", json={"support": True}, headers=member_headers)
    assert resp.status_code == 200, resp.text
    ledger_clock.advance(VOTING_PERIOD_SECONDS + 1)
    resp = client.post(
        f"/api/governance/proposals/{index}/execute",
        json={"credit_amount": credit_amount},
        headers=member_headers,
    )
    assert resp.status_code == 200, resp.text
    return index, producer_address


def staked_inspector(client, owner_headers, stake: int, funds: int = 100):
    """Register an inspector holding ``funds`` who approved the inspection desk for ``stake``."""

    headers, address = registered(client, "inspector")
    transfer(client, owner_headers, address, funds)
    resp = client.post(
        "/api/settlement/approvals",
        json={"spender_address": INSPECTION_DESK_ADDRESS, "amount": stake},
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    return headers, address


def event_names() -> list[str]:
    return [event["name"] for event in pubsub.EVENT_OUTBOX]
