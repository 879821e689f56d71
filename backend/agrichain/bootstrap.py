"""Provisioning of the operation center owner."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from . import models
from .auth import generate_address, get_password_hash
from .config import SETTLEMENT_INITIAL_SUPPLY
from .services import settlement

logger = logging.getLogger(__name__)


def ensure_operator(
    db: Session,
    password: str,
    *,
    initial_supply: int = SETTLEMENT_INITIAL_SUPPLY,
) -> models.Account:
    """Return the owner account, creating it with the initial token supply if absent."""

    owner = db.query(models.Account).filter(models.Account.is_owner.is_(True)).first()
    if owner is not None:
        return owner
    owner = models.Account(
        address=generate_address(),
        hashed_password=get_password_hash(password),
        is_owner=True,
    )
    db.add(owner)
    db.flush()
    settlement.credit_supply(db, owner.address, initial_supply)
    db.commit()
    db.refresh(owner)
    logger.info("Provisioned operation center owner %s", owner.address)
    return owner
