from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth import get_current_user
from .. import audit, schemas
from ..errors import InspectionRequestNotFound
from ..services import certification
from ..unit_of_work import commit

router = APIRouter(prefix="/api/certification", tags=["certification"])


@router.post("/requests/{lot_id}", response_model=schemas.CertificationRequestOut)
def request_certification(
    lot_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    request = certification.request_certification(db, user, lot_id)
    audit.log_action(db, user.id, "request_certification", "harvest_lot", lot_id)
    commit(db, background_tasks)
    db.refresh(request)
    return request


@router.get("/requests/{lot_id}", response_model=schemas.CertificationRequestOut)
def read_request(lot_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    request = certification.get_request(db, lot_id)
    if request is None:
        raise InspectionRequestNotFound(f"no certification request for lot {lot_id}")
    return request


@router.post("/requests/{lot_id}/accept", response_model=schemas.CertificationRequestOut)
def accept_request(
    lot_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    request = certification.accept_request(db, user, lot_id)
    audit.log_action(db, user.id, "accept_certification_request", "harvest_lot", lot_id)
    commit(db, background_tasks)
    db.refresh(request)
    return request


@router.post("/requests/{lot_id}/approve", response_model=schemas.LotOut)
def approve_certification(
    lot_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    lot = certification.approve(db, user, lot_id)
    audit.log_action(db, user.id, "approve_certification", "harvest_lot", lot_id)
    commit(db, background_tasks)
    db.refresh(lot)
    return lot


@router.post("/requests/{lot_id}/reject")
def reject_certification(
    lot_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    certification.reject(db, user, lot_id)
    audit.log_action(db, user.id, "reject_certification", "harvest_lot", lot_id)
    commit(db, background_tasks)
    return {"lot_id": lot_id, "status": "rejected"}


@router.post("/protocols/{protocol_id}", response_model=schemas.ProtocolRequestOut)
def request_protocol(
    protocol_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    row = certification.request_protocol(db, user, protocol_id)
    audit.log_action(db, user.id, "request_protocol", "protocol", protocol_id)
    commit(db, background_tasks)
    return schemas.ProtocolRequestOut(
        producer_address=row.producer_address, protocol_id=row.protocol_id, requested=row.requested
    )


@router.get("/protocols/{producer_address}/{protocol_id}", response_model=schemas.ProtocolRequestOut)
def read_protocol_request(
    producer_address: str,
    protocol_id: int,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    producer = producer_address.lower()
    return schemas.ProtocolRequestOut(
        producer_address=producer,
        protocol_id=protocol_id,
        requested=certification.is_protocol_requested(db, producer, protocol_id),
    )
