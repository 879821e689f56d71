"""Operation center: DAO membership, proposals, credits and inspection stakes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from .. import clock, counters, models
from ..config import OPERATION_CENTER_ADDRESS, PRODUCER_FEE_PERCENTAGE, VOTING_PERIOD_SECONDS
from ..errors import (
    DeadlineExceeded,
    DeadlineHasNotExceeded,
    InspectionAlreadyFinalized,
    InspectorAlreadyAssigned,
    ProposalAlreadyExecuted,
    ProposalDidntPass,
    ProposalDoesNotExist,
    ThisProtocolNotRequestedByThisProducer,
    YouAreNotTheInspectorOfThisProposal,
    YouHaveAlreadyVoted,
)
from ..eventlog import record_event
from ..rbac import Role, require_address_role, require_dao_member, require_owner
from . import certification, settlement

# purpose: DAO governance over producer protocols and the settlement-token treasury
# status: active
# depends_on: agrichain.services.certification (protocol flags), agrichain.services.settlement

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PurchaseSettlement:
    """Outcome of reconciling a sale against a producer's advance credit."""

    producer_address: str
    total_price: int
    fee_amount: int
    producer_share: int
    credited_before: int
    credited_after: int
    transferred: int


def treasury_address() -> str:
    return OPERATION_CENTER_ADDRESS


# membership


def add_member(db: Session, owner: models.Account, address: str) -> models.DaoMember:
    require_owner(owner)
    require_address_role(db, address, Role.INSPECTOR)
    member = db.get(models.DaoMember, address)
    if member is None:
        member = models.DaoMember(address=address)
        db.add(member)
        db.flush()
    record_event(db, "NewMemberAdded", {"member": address}, actor_address=owner.address)
    return member


def remove_member(db: Session, owner: models.Account, address: str) -> None:
    require_owner(owner)
    member = db.get(models.DaoMember, address)
    if member is not None:
        db.delete(member)
        db.flush()
    record_event(db, "MemberRemoved", {"member": address}, actor_address=owner.address)


# proposals


def get_proposal(db: Session, index: int, *, lock: bool = False) -> models.Proposal:
    query = db.query(models.Proposal).filter(models.Proposal.index == index)
    if lock:
        query = query.with_for_update()
    proposal = query.one_or_none()
    if proposal is None:
        raise ProposalDoesNotExist(f"proposal {index} does not exist")
    return proposal


def list_proposals(db: Session, *, producer_address: str | None = None) -> list[models.Proposal]:
    query = db.query(models.Proposal)
    if producer_address:
        query = query.filter(models.Proposal.producer_address == producer_address)
    return query.order_by(models.Proposal.index.asc()).all()


def proposal_counter(db: Session) -> int:
    return counters.current_value(db, counters.PROPOSAL_COUNTER)


def create_proposal(
    db: Session,
    member: models.Account,
    *,
    description: str,
    protocol_id: int,
    producer_address: str,
) -> models.Proposal:
    require_dao_member(db, member)
    # the flag is validated here and only cleared by a passing execution
    if not certification.is_protocol_requested(db, producer_address, protocol_id):
        raise ThisProtocolNotRequestedByThisProducer()

    index = counters.take_next(db, counters.PROPOSAL_COUNTER)
    proposal = models.Proposal(
        index=index,
        description=description,
        protocol_id=protocol_id,
        producer_address=producer_address,
        created_by=member.address,
        for_votes=0,
        against_votes=0,
        deadline=clock.timestamp() + VOTING_PERIOD_SECONDS,
    )
    db.add(proposal)
    db.flush()
    record_event(
        db,
        "NewProposal",
        {"index": index, "producer": producer_address, "protocol_id": protocol_id},
        actor_address=member.address,
    )
    return proposal


def vote(db: Session, member: models.Account, index: int, support: bool) -> models.Proposal:
    require_dao_member(db, member)
    proposal = get_proposal(db, index, lock=True)
    if clock.timestamp() > proposal.deadline:
        raise DeadlineExceeded()
    if db.get(models.ProposalVote, (index, member.address)) is not None:
        raise YouHaveAlreadyVoted()

    db.add(models.ProposalVote(proposal_index=index, voter_address=member.address, support=support))
    if support:
        proposal.for_votes += 1
    else:
        proposal.against_votes += 1
    db.flush()
    record_event(
        db,
        "ProposalVoted",
        {"index": index, "voter": member.address, "support": support},
        actor_address=member.address,
    )
    return proposal


def execute_proposal(
    db: Session, member: models.Account, index: int, credit_amount: int
) -> models.Proposal:
    """Close a passing proposal and pay the producer's advance credit.

    Single-shot: the executed flag guards every later call.
    """

    require_dao_member(db, member)
    proposal = get_proposal(db, index, lock=True)
    if clock.timestamp() <= proposal.deadline:
        raise DeadlineHasNotExceeded()
    if proposal.executed:
        raise ProposalAlreadyExecuted()
    if proposal.for_votes <= proposal.against_votes:
        raise ProposalDidntPass()

    proposal.executed = True
    proposal.passed_voting = True
    proposal.credited_amount = credit_amount
    certification.set_protocol_requested(db, proposal.producer_address, proposal.protocol_id, False)
    record_event(db, "ProposalExecuted", {"index": index}, actor_address=member.address)
    _credit_producer(db, proposal.producer_address, credit_amount)
    db.flush()
    logger.info("Proposal %s executed, credited %s to %s", index, credit_amount, proposal.producer_address)
    return proposal


def _credited_row(db: Session, producer_address: str) -> models.CreditedBalance:
    row = (
        db.query(models.CreditedBalance)
        .filter(models.CreditedBalance.producer_address == producer_address)
        .with_for_update()
        .one_or_none()
    )
    if row is None:
        row = models.CreditedBalance(producer_address=producer_address, amount=0)
        db.add(row)
        db.flush()
    return row


def _credit_producer(db: Session, producer_address: str, amount: int) -> None:
    row = _credited_row(db, producer_address)
    row.amount += amount
    settlement.transfer(db, treasury_address(), producer_address, amount)


def credited_balance(db: Session, producer_address: str) -> int:
    row = db.get(models.CreditedBalance, producer_address)
    return row.amount if row else 0


def handle_purchase(db: Session, producer_address: str, total_price: int) -> PurchaseSettlement:
    """Reconcile a completed sale against the producer's advance credit.

    The producer's share is the price minus the producer fee. Shares covered
    by the credit only reduce it; the uncovered remainder is paid out.
    """

    fee_amount = (PRODUCER_FEE_PERCENTAGE * total_price) // 100
    share = total_price - fee_amount
    row = _credited_row(db, producer_address)
    before = row.amount
    transferred = 0
    if share <= before:
        row.amount = before - share
    else:
        transferred = share - before
        row.amount = 0
        settlement.transfer(db, treasury_address(), producer_address, transferred)
    db.flush()
    record_event(
        db,
        "PurchaseSettled",
        {
            "producer": producer_address,
            "total_price": total_price,
            "producer_share": share,
            "transferred": transferred,
        },
    )
    return PurchaseSettlement(
        producer_address=producer_address,
        total_price=total_price,
        fee_amount=fee_amount,
        producer_share=share,
        credited_before=before,
        credited_after=row.amount,
        transferred=transferred,
    )


# inspection stakes


def assign_inspector_to_proposal(
    db: Session,
    index: int,
    inspector_address: str,
    guaranteed_amount: int,
    *,
    spender: str,
) -> models.Proposal:
    """Assign the inspector and lock their stake in the treasury.

    ``spender`` is the account holding the inspector's allowance.
    """

    require_address_role(db, inspector_address, Role.INSPECTOR)
    proposal = get_proposal(db, index, lock=True)
    if not proposal.passed_voting:
        raise ProposalDidntPass()
    if proposal.inspector_address:
        raise InspectorAlreadyAssigned()

    proposal.inspector_address = inspector_address
    guarantee = db.get(models.InspectorGuarantee, (inspector_address, index))
    if guarantee is None:
        guarantee = models.InspectorGuarantee(inspector_address=inspector_address, proposal_index=index)
        db.add(guarantee)
    guarantee.amount = guaranteed_amount
    guarantee.status = "locked"
    settlement.transfer_from(db, spender, inspector_address, treasury_address(), guaranteed_amount)
    db.flush()
    return proposal


def guaranteed_amount(db: Session, inspector_address: str, index: int) -> models.InspectorGuarantee | None:
    return db.get(models.InspectorGuarantee, (inspector_address, index))


def set_passed_inspection(
    db: Session,
    inspector_address: str,
    index: int,
    passed: bool,
    fee: int,
) -> models.Proposal:
    """Record the inspection outcome; a pass refunds the stake plus ``fee``.

    A failed inspection leaves the stake in the treasury.
    """

    proposal = get_proposal(db, index, lock=True)
    if not proposal.inspector_address or proposal.inspector_address != inspector_address:
        raise YouAreNotTheInspectorOfThisProposal()
    if proposal.inspection_finalized:
        raise InspectionAlreadyFinalized()

    proposal.passed_inspection = passed
    proposal.inspection_finalized = True
    guarantee = db.get(models.InspectorGuarantee, (inspector_address, index))
    stake = guarantee.amount if guarantee else 0
    if guarantee is not None:
        guarantee.status = "refunded" if passed else "forfeited"
        guarantee.settled_at = datetime.now(timezone.utc)
    if passed:
        settlement.transfer(db, treasury_address(), inspector_address, stake + fee)
    db.flush()
    record_event(
        db,
        "InspectionFinalized",
        {"index": index, "inspector": inspector_address, "passed": passed, "stake": stake},
        actor_address=inspector_address,
    )
    return proposal


def withdraw(db: Session, owner: models.Account, amount: int) -> None:
    require_owner(owner)
    settlement.transfer(db, treasury_address(), owner.address, amount)
