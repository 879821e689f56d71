from __future__ import annotations

from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from .. import audit, models, schemas
from ..auth import get_current_user
from ..database import get_db
from ..config import SETTLEMENT_TOKEN_SYMBOL
from ..rbac import is_dao_member, require_owner
from ..services import governance, settlement
from ..unit_of_work import commit

router = APIRouter(prefix="/api/governance", tags=["governance"])


@router.post("/members", response_model=schemas.MembershipOut)
def add_member(
    data: schemas.MemberAdd,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: models.Account = Depends(get_current_user),
):
    governance.add_member(db, user, data.address)
    audit.log_action(db, user.id, "add_dao_member", "account", data.address)
    commit(db, background_tasks)
    return schemas.MembershipOut(address=data.address, is_member=True)


@router.delete("/members/{address}", response_model=schemas.MembershipOut)
def remove_member(
    address: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: models.Account = Depends(get_current_user),
):
    target = address.lower()
    governance.remove_member(db, user, target)
    audit.log_action(db, user.id, "remove_dao_member", "account", target)
    commit(db, background_tasks)
    return schemas.MembershipOut(address=target, is_member=False)


@router.get("/members/{address}", response_model=schemas.MembershipOut)
def read_membership(
    address: str,
    db: Session = Depends(get_db),
    user: models.Account = Depends(get_current_user),
):
    target = address.lower()
    return schemas.MembershipOut(address=target, is_member=is_dao_member(db, target))


@router.post("/proposals", response_model=schemas.ProposalOut)
def create_proposal(
    data: schemas.ProposalCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: models.Account = Depends(get_current_user),
):
    proposal = governance.create_proposal(
        db,
        user,
        description=data.description,
        protocol_id=data.protocol_id,
        producer_address=data.producer_address,
    )
    audit.log_action(db, user.id, "create_proposal", "proposal", proposal.index)
    commit(db, background_tasks)
    db.refresh(proposal)
    return proposal


@router.get("/proposals", response_model=List[schemas.ProposalOut])
def list_proposals(
    producer_address: str | None = None,
    db: Session = Depends(get_db),
    user: models.Account = Depends(get_current_user),
):
    return governance.list_proposals(
        db, producer_address=producer_address.lower() if producer_address else None
    )


@router.get("/proposals/counter", response_model=schemas.CounterOut)
def proposal_counter(db: Session = Depends(get_db), user: models.Account = Depends(get_current_user)):
    return schemas.CounterOut(value=governance.proposal_counter(db))


@router.get("/proposals/{index}", response_model=schemas.ProposalOut)
def read_proposal(
    index: int,
    db: Session = Depends(get_db),
    user: models.Account = Depends(get_current_user),
):
    return governance.get_proposal(db, index)


@router.post("/proposals/{index}/votes", response_model=schemas.ProposalOut)
def vote(
    index: int,
    data: schemas.VoteIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: models.Account = Depends(get_current_user),
):
    proposal = governance.vote(db, user, index, data.support)
    audit.log_action(db, user.id, "vote", "proposal", index, {"support": data.support})
    commit(db, background_tasks)
    db.refresh(proposal)
    return proposal


@router.post("/proposals/{index}/execute", response_model=schemas.ProposalOut)
def execute_proposal(
    index: int,
    data: schemas.ExecuteIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: models.Account = Depends(get_current_user),
):
    proposal = governance.execute_proposal(db, user, index, data.credit_amount)
    audit.log_action(db, user.id, "execute_proposal", "proposal", index, {"credit_amount": data.credit_amount})
    commit(db, background_tasks)
    db.refresh(proposal)
    return proposal


@router.get("/credits/{producer_address}", response_model=schemas.CreditedBalanceOut)
def read_credited_balance(
    producer_address: str,
    db: Session = Depends(get_db),
    user: models.Account = Depends(get_current_user),
):
    producer = producer_address.lower()
    return schemas.CreditedBalanceOut(
        producer_address=producer, amount=governance.credited_balance(db, producer)
    )


@router.get("/guarantees/{inspector_address}/{index}", response_model=schemas.GuaranteeOut)
def read_guarantee(
    inspector_address: str,
    index: int,
    db: Session = Depends(get_db),
    user: models.Account = Depends(get_current_user),
):
    inspector = inspector_address.lower()
    guarantee = governance.guaranteed_amount(db, inspector, index)
    return schemas.GuaranteeOut(
        inspector_address=inspector,
        proposal_index=index,
        amount=guarantee.amount if guarantee else 0,
        status=guarantee.status if guarantee else None,
    )


@router.post("/purchases", response_model=schemas.PurchaseSettlementOut)
def settle_purchase(
    data: schemas.PurchaseIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: models.Account = Depends(get_current_user),
):
    # marketplace settlements are posted by the operator account
    require_owner(user)
    outcome = governance.handle_purchase(db, data.producer_address, data.total_price)
    audit.log_action(
        db, user.id, "settle_purchase", "account", data.producer_address, {"total_price": data.total_price}
    )
    commit(db, background_tasks)
    return schemas.PurchaseSettlementOut(
        producer_address=outcome.producer_address,
        total_price=outcome.total_price,
        fee_amount=outcome.fee_amount,
        producer_share=outcome.producer_share,
        credited_before=outcome.credited_before,
        credited_after=outcome.credited_after,
        transferred=outcome.transferred,
    )


@router.post("/withdrawals", response_model=schemas.BalanceOut)
def withdraw(
    data: schemas.AmountIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: models.Account = Depends(get_current_user),
):
    governance.withdraw(db, user, data.amount)
    audit.log_action(db, user.id, "withdraw", "account", user.address, {"amount": data.amount})
    commit(db, background_tasks)
    return schemas.BalanceOut(
        address=governance.treasury_address(),
        amount=settlement.balance_of(db, governance.treasury_address()),
        symbol=SETTLEMENT_TOKEN_SYMBOL,
    )
