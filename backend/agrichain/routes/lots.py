from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth import get_current_user
from .. import audit, models, schemas
from ..services import harvest_ledger
from ..unit_of_work import commit

router = APIRouter(prefix="/api/lots", tags=["lots"])


@router.post("", response_model=schemas.LotOut)
def mint_lot(
    data: schemas.LotCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    lot = harvest_ledger.mint_lot(
        db,
        user,
        total_units=data.total_units,
        name=data.name,
        units_per_token=data.units_per_token,
    )
    audit.log_action(db, user.id, "mint_lot", "harvest_lot", lot.id, {"total_units": lot.total_units})
    commit(db, background_tasks)
    db.refresh(lot)
    return lot


@router.get("/counter", response_model=schemas.CounterOut)
def lot_counter(db: Session = Depends(get_db), user=Depends(get_current_user)):
    return schemas.CounterOut(value=harvest_ledger.lot_counter(db))


@router.get("/{lot_id}", response_model=schemas.LotOut)
def read_lot(lot_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    return harvest_ledger.require_lot(db, lot_id)


@router.get("/{lot_id}/metadata", response_model=schemas.LotMetadata)
def read_lot_metadata(lot_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    return harvest_ledger.build_metadata(harvest_ledger.require_lot(db, lot_id))


@router.get("/{lot_id}/balances/{address}", response_model=schemas.LotBalanceOut)
def read_balance(
    lot_id: int,
    address: str,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    holder = address.lower()
    return schemas.LotBalanceOut(
        lot_id=lot_id,
        holder_address=holder,
        units=harvest_ledger.balance_of(db, holder, lot_id),
    )


@router.post("/{lot_id}/burn", response_model=schemas.LotBalanceOut)
def burn_lot(
    lot_id: int,
    data: schemas.LotBurn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    remaining = harvest_ledger.burn_lot(db, user, lot_id, data.amount)
    audit.log_action(db, user.id, "burn_lot", "harvest_lot", lot_id, {"amount": data.amount})
    commit(db, background_tasks)
    return schemas.LotBalanceOut(lot_id=lot_id, holder_address=user.address, units=remaining)
