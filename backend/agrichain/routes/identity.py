from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from .. import audit, models, schemas
from ..auth import get_current_user
from ..rbac import Role
from ..services import identity
from ..unit_of_work import commit

router = APIRouter(prefix="/api/identity", tags=["identity"])


@router.post("/register", response_model=schemas.AccountOut)
def register(
    data: schemas.RegistrationIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: models.Account = Depends(get_current_user),
):
    account = identity.register(
        db,
        current_user,
        username=data.username,
        email=data.email,
        role=Role(data.role),
    )
    audit.log_action(db, account.id, "register", "account", account.address, {"role": account.role})
    commit(db, background_tasks)
    db.refresh(account)
    return account


@router.get("/me", response_model=schemas.AccountOut)
def read_profile(current_user: models.Account = Depends(get_current_user)):
    return current_user


@router.get("/{address}", response_model=schemas.AccountOut)
def read_account(
    address: str,
    db: Session = Depends(get_db),
    current_user: models.Account = Depends(get_current_user),
):
    account = identity.get_account(db, address)
    if account is None:
        raise HTTPException(status_code=404, detail="Account not found")
    return account
