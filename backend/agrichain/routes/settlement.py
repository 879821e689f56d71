from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from .. import audit, models, schemas
from ..auth import get_current_user
from ..config import SETTLEMENT_TOKEN_SYMBOL
from ..database import get_db
from ..services import governance, inspection, settlement
from ..unit_of_work import commit

router = APIRouter(prefix="/api/settlement", tags=["settlement"])


@router.get("/system-accounts", response_model=schemas.SystemAccountsOut)
def system_accounts(user: models.Account = Depends(get_current_user)):
    return schemas.SystemAccountsOut(
        operation_center=governance.treasury_address(),
        inspection_desk=inspection.desk_address(),
        symbol=SETTLEMENT_TOKEN_SYMBOL,
    )


@router.get("/balances/{address}", response_model=schemas.BalanceOut)
def read_balance(
    address: str,
    db: Session = Depends(get_db),
    user: models.Account = Depends(get_current_user),
):
    holder = address.lower()
    return schemas.BalanceOut(
        address=holder, amount=settlement.balance_of(db, holder), symbol=SETTLEMENT_TOKEN_SYMBOL
    )


@router.post("/transfers", response_model=schemas.BalanceOut)
def transfer(
    data: schemas.TransferIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: models.Account = Depends(get_current_user),
):
    settlement.transfer(db, user.address, data.to_address, data.amount)
    audit.log_action(db, user.id, "transfer", "account", data.to_address, {"amount": data.amount})
    commit(db, background_tasks)
    return schemas.BalanceOut(
        address=user.address,
        amount=settlement.balance_of(db, user.address),
        symbol=SETTLEMENT_TOKEN_SYMBOL,
    )


@router.post("/approvals", response_model=schemas.AllowanceOut)
def approve(
    data: schemas.ApprovalIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: models.Account = Depends(get_current_user),
):
    settlement.approve(db, user.address, data.spender_address, data.amount)
    audit.log_action(db, user.id, "approve", "account", data.spender_address, {"amount": data.amount})
    commit(db, background_tasks)
    return schemas.AllowanceOut(
        owner_address=user.address,
        spender_address=data.spender_address,
        amount=settlement.allowance(db, user.address, data.spender_address),
    )


@router.get("/allowances/{owner_address}/{spender_address}", response_model=schemas.AllowanceOut)
def read_allowance(
    owner_address: str,
    spender_address: str,
    db: Session = Depends(get_db),
    user: models.Account = Depends(get_current_user),
):
    owner, spender = owner_address.lower(), spender_address.lower()
    return schemas.AllowanceOut(
        owner_address=owner, spender_address=spender, amount=settlement.allowance(db, owner, spender)
    )
