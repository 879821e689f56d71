from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import eventlog, models, schemas
from ..auth import get_current_user
from ..database import get_db

router = APIRouter(prefix="/api/events", tags=["events"])


@router.get("", response_model=list[schemas.LedgerEventOut])
def list_events(
    name: str | None = None,
    after: int | None = None,
    limit: int = Query(200, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: models.Account = Depends(get_current_user),
):
    return eventlog.list_events(db, name=name, after=after, limit=limit)
