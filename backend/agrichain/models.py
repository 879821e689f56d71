import uuid
import sqlalchemy as sa
from sqlalchemy import (
    Column,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    JSON,
    Integer,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from .database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Account(Base):
    __tablename__ = "accounts"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    address = Column(String(42), unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=False)
    # purpose: closed role tag; "unregistered" until identity registration
    role = Column(String, nullable=False, default="unregistered")
    username = Column(String)
    email = Column(String)
    is_owner = Column(Boolean, default=False, nullable=False)
    registered_at = Column(DateTime)
    created_at = Column(DateTime, default=_utcnow)


class SequenceCounter(Base):
    __tablename__ = "sequence_counters"
    name = Column(String, primary_key=True)
    value = Column(Integer, nullable=False, default=0)


class HarvestLot(Base):
    __tablename__ = "harvest_lots"
    id = Column(Integer, primary_key=True, autoincrement=False)
    producer_address = Column(String(42), nullable=False, index=True)
    name = Column(String, nullable=False)
    units_per_token = Column(Integer, nullable=False)
    total_units = Column(Integer, nullable=False)
    certified = Column(Boolean, default=False, nullable=False)
    certified_by = Column(String(42))
    certified_at = Column(DateTime)
    created_at = Column(DateTime, default=_utcnow)

    balances = relationship(
        "LotBalance", back_populates="lot", cascade="all, delete-orphan"
    )


class LotBalance(Base):
    __tablename__ = "lot_balances"
    lot_id = Column(Integer, ForeignKey("harvest_lots.id", ondelete="CASCADE"), primary_key=True)
    holder_address = Column(String(42), primary_key=True)
    units = Column(Integer, nullable=False, default=0)

    lot = relationship("HarvestLot", back_populates="balances")


class CertificationRequest(Base):
    __tablename__ = "certification_requests"
    lot_id = Column(Integer, ForeignKey("harvest_lots.id", ondelete="CASCADE"), primary_key=True)
    producer_address = Column(String(42), nullable=False)
    inspector_address = Column(String(42))
    requested_at = Column(DateTime, default=_utcnow)
    accepted_at = Column(DateTime)


class ProtocolRequest(Base):
    __tablename__ = "protocol_requests"
    producer_address = Column(String(42), primary_key=True)
    protocol_id = Column(Integer, primary_key=True, autoincrement=False)
    requested = Column(Boolean, default=False, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


class DaoMember(Base):
    __tablename__ = "dao_members"
    address = Column(String(42), primary_key=True)
    added_at = Column(DateTime, default=_utcnow)


class Proposal(Base):
    __tablename__ = "proposals"
    index = Column(Integer, primary_key=True, autoincrement=False)
    description = Column(Text, nullable=False)
    protocol_id = Column(Integer, nullable=False)
    producer_address = Column(String(42), nullable=False, index=True)
    created_by = Column(String(42), nullable=False)
    for_votes = Column(Integer, nullable=False, default=0)
    against_votes = Column(Integer, nullable=False, default=0)
    # purpose: ledger timestamp (epoch seconds) after which voting closes
    deadline = Column(Integer, nullable=False)
    executed = Column(Boolean, nullable=False, default=False)
    passed_voting = Column(Boolean, nullable=False, default=False)
    passed_inspection = Column(Boolean, nullable=False, default=False)
    inspection_finalized = Column(Boolean, nullable=False, default=False)
    inspector_address = Column(String(42))
    credited_amount = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=_utcnow)

    votes = relationship(
        "ProposalVote", back_populates="proposal", cascade="all, delete-orphan"
    )


class ProposalVote(Base):
    __tablename__ = "proposal_votes"
    proposal_index = Column(Integer, ForeignKey("proposals.index", ondelete="CASCADE"), primary_key=True)
    voter_address = Column(String(42), primary_key=True)
    support = Column(Boolean, nullable=False)
    cast_at = Column(DateTime, default=_utcnow)

    proposal = relationship("Proposal", back_populates="votes")


class CreditedBalance(Base):
    __tablename__ = "credited_balances"
    producer_address = Column(String(42), primary_key=True)
    amount = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


class InspectorGuarantee(Base):
    __tablename__ = "inspector_guarantees"
    inspector_address = Column(String(42), primary_key=True)
    proposal_index = Column(Integer, ForeignKey("proposals.index", ondelete="CASCADE"), primary_key=True)
    amount = Column(Integer, nullable=False, default=0)
    # locked -> refunded | forfeited
    status = Column(String, nullable=False, default="locked")
    locked_at = Column(DateTime, default=_utcnow)
    settled_at = Column(DateTime)


class SettlementBalance(Base):
    __tablename__ = "settlement_balances"
    address = Column(String(42), primary_key=True)
    amount = Column(Integer, nullable=False, default=0)


class SettlementAllowance(Base):
    __tablename__ = "settlement_allowances"
    owner_address = Column(String(42), primary_key=True)
    spender_address = Column(String(42), primary_key=True)
    amount = Column(Integer, nullable=False, default=0)


class LedgerEvent(Base):
    __tablename__ = "ledger_events"
    sequence = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, index=True)
    payload = Column(JSON, default=dict)
    actor_address = Column(String(42))
    created_at = Column(DateTime, default=_utcnow)

    __table_args__ = ({"sqlite_autoincrement": True},)


class AuditLog(Base):
    __tablename__ = "audit_logs"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    account_id = Column(UUID(as_uuid=True), ForeignKey("accounts.id"))
    action = Column(String, nullable=False)
    target_type = Column(String)
    target_id = Column(String)
    details = Column(JSON, default=dict)
    created_at = Column(DateTime, default=_utcnow)

    account = relationship("Account")


sa.Index("ix_audit_logs_account_created", AuditLog.account_id, AuditLog.created_at)
