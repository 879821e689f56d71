from datetime import datetime
from sqlalchemy.orm import Session
from fastapi import APIRouter, Depends
from ..database import get_db
from ..auth import get_current_user
from .. import models, schemas, audit

router = APIRouter(prefix="/api/audit", tags=["audit"])


@router.get("/", response_model=list[schemas.AuditLogOut])
def list_logs(
    db: Session = Depends(get_db),
    current_user: models.Account = Depends(get_current_user),
):
    return (
        db.query(models.AuditLog)
        .filter(models.AuditLog.account_id == current_user.id)
        .order_by(models.AuditLog.created_at.desc())
        .all()
    )


@router.get("/report", response_model=list[schemas.AuditReportItem])
def audit_report(
    start: datetime,
    end: datetime,
    db: Session = Depends(get_db),
    current_user: models.Account = Depends(get_current_user),
):
    return audit.generate_report(db, start, end, current_user.id)
