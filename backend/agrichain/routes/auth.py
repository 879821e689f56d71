from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..database import get_db
from .. import models, schemas, audit
from ..auth import create_access_token, generate_address, get_password_hash, verify_password
from ..config import testing

limiter = Limiter(key_func=get_remote_address)

def rate_limit(limit: str):
    if testing():
        def wrapper(func):
            return func
        return wrapper
    return limiter.limit(limit)

router = APIRouter(prefix="/api/auth", tags=["auth"])

@router.post("/accounts", response_model=schemas.AccountCreated)
@rate_limit("5/minute")
async def create_account(request: Request, data: schemas.AccountCreate, db: Session = Depends(get_db)):
    account = models.Account(
        address=generate_address(),
        hashed_password=get_password_hash(data.password),
    )
    db.add(account)
    db.flush()
    audit.log_action(db, account.id, "create_account", "account", account.address)
    db.commit()
    db.refresh(account)
    token = create_access_token({"sub": account.address})
    return schemas.AccountCreated(address=account.address, access_token=token)


@router.post("/login", response_model=schemas.Token)
@rate_limit("10/minute")
async def login(request: Request, data: schemas.LoginRequest, db: Session = Depends(get_db)):
    account = db.query(models.Account).filter(models.Account.address == data.address).first()
    if not account or not verify_password(data.password, account.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    audit.log_action(db, account.id, "login", "account", account.address)
    db.commit()
    token = create_access_token({"sub": account.address})
    return schemas.Token(access_token=token)
