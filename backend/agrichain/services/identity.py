"""Identity registry: one-shot role registration per account."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from .. import models
from ..errors import AlreadyRegistered, InvalidInput
from ..eventlog import record_event
from ..rbac import Role

# purpose: bind an address to a Producer or Inspector role and profile exactly once
# status: active

logger = logging.getLogger(__name__)


def register(
    db: Session,
    account: models.Account,
    *,
    username: str,
    email: str,
    role: Role,
) -> models.Account:
    """Register the caller's profile and role.

    Registration is permanent: there is no update or deregistration path.
    """

    if account.role != Role.UNREGISTERED.value:
        raise AlreadyRegistered()
    if not username or not username.strip() or not email or not email.strip():
        raise InvalidInput("username and email are required")
    if role is Role.UNREGISTERED:
        raise InvalidInput("role must be producer or inspector")

    account.username = username.strip()
    account.email = email.strip()
    account.role = role.value
    account.registered_at = datetime.now(timezone.utc)
    db.add(account)
    db.flush()
    record_event(
        db,
        "UserRegistered",
        {
            "address": account.address,
            "username": account.username,
            "email": account.email,
            "role": account.role,
        },
        actor_address=account.address,
    )
    logger.info("Registered %s as %s", account.address, account.role)
    return account


def get_account(db: Session, address: str) -> models.Account | None:
    return db.query(models.Account).filter(models.Account.address == address.lower()).first()
