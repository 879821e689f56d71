from __future__ import annotations

from enum import Enum

from sqlalchemy.orm import Session

from . import models
from .errors import InsufficientRole, NotOwner, YouAreNotMemberOfDao

# purpose: centralize capability gates shared by every ledger component
# status: active


class Role(str, Enum):
    """Closed set of account roles; assigned once at registration."""

    UNREGISTERED = "unregistered"
    PRODUCER = "producer"
    INSPECTOR = "inspector"


def role_of(db: Session, address: str) -> Role:
    """Return the registered role of ``address`` (unknown addresses are unregistered)."""

    account = db.query(models.Account).filter(models.Account.address == address).first()
    if account is None:
        return Role.UNREGISTERED
    return Role(account.role)


def has_role(db: Session, address: str, role: Role) -> bool:
    return role_of(db, address) is role


def require_role(account: models.Account, role: Role) -> None:
    if account.role != role.value:
        raise InsufficientRole(f"{role.value} role required")


def require_address_role(db: Session, address: str, role: Role) -> None:
    """Gate on a role held by an address other than the caller."""

    if not has_role(db, address, role):
        raise InsufficientRole(f"{address} is not a registered {role.value}")


def require_owner(account: models.Account) -> None:
    if not account.is_owner:
        raise NotOwner("operation center owner required")


def is_dao_member(db: Session, address: str) -> bool:
    return db.get(models.DaoMember, address) is not None


def require_dao_member(db: Session, account: models.Account) -> None:
    if not is_dao_member(db, account.address):
        raise YouAreNotMemberOfDao()
