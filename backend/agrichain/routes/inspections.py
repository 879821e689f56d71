from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from .. import audit, models, schemas
from ..auth import get_current_user
from ..database import get_db
from ..services import inspection
from ..unit_of_work import commit

router = APIRouter(prefix="/api/inspections", tags=["inspections"])


@router.post("/proposals/{index}/assign", response_model=schemas.ProposalOut)
def assign_to_proposal(
    index: int,
    data: schemas.AssignInspectorIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: models.Account = Depends(get_current_user),
):
    proposal = inspection.assign_to_proposal(db, user, index, data.guaranteed_amount)
    audit.log_action(
        db, user.id, "assign_inspector", "proposal", index, {"guaranteed_amount": data.guaranteed_amount}
    )
    commit(db, background_tasks)
    db.refresh(proposal)
    return proposal


@router.post("/proposals/{index}/approve", response_model=schemas.ProposalOut)
def approve_process_inspection(
    index: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: models.Account = Depends(get_current_user),
):
    proposal = inspection.approve_process_inspection(db, user, index)
    audit.log_action(db, user.id, "approve_process_inspection", "proposal", index)
    commit(db, background_tasks)
    db.refresh(proposal)
    return proposal


@router.post("/proposals/{index}/reject", response_model=schemas.ProposalOut)
def reject_process_inspection(
    index: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: models.Account = Depends(get_current_user),
):
    proposal = inspection.reject_process_inspection(db, user, index)
    audit.log_action(db, user.id, "reject_process_inspection", "proposal", index)
    commit(db, background_tasks)
    db.refresh(proposal)
    return proposal
