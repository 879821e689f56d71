"""Settlement-token bookkeeping (balances and allowances)."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from .. import models
from ..errors import InsufficientAllowance, InvalidParameters, NotSufficientBalance
from ..eventlog import record_event

# purpose: fungible settlement token used for credits, stakes, fees and withdrawals
# status: active
# depends_on: agrichain.models.SettlementBalance, agrichain.models.SettlementAllowance

logger = logging.getLogger(__name__)


def _balance_row(db: Session, address: str, *, lock: bool = False) -> models.SettlementBalance:
    query = db.query(models.SettlementBalance).filter(models.SettlementBalance.address == address)
    if lock:
        query = query.with_for_update()
    row = query.one_or_none()
    if row is None:
        row = models.SettlementBalance(address=address, amount=0)
        db.add(row)
        db.flush()
    return row


def _allowance_row(db: Session, owner: str, spender: str, *, lock: bool = False) -> models.SettlementAllowance:
    query = db.query(models.SettlementAllowance).filter(
        models.SettlementAllowance.owner_address == owner,
        models.SettlementAllowance.spender_address == spender,
    )
    if lock:
        query = query.with_for_update()
    row = query.one_or_none()
    if row is None:
        row = models.SettlementAllowance(owner_address=owner, spender_address=spender, amount=0)
        db.add(row)
        db.flush()
    return row


def balance_of(db: Session, address: str) -> int:
    row = db.get(models.SettlementBalance, address)
    return row.amount if row else 0


def allowance(db: Session, owner: str, spender: str) -> int:
    row = db.get(models.SettlementAllowance, (owner, spender))
    return row.amount if row else 0


def credit_supply(db: Session, address: str, amount: int) -> None:
    """Credit newly issued supply; only used when provisioning the owner."""

    if amount < 0:
        raise InvalidParameters("supply must be non-negative")
    row = _balance_row(db, address, lock=True)
    row.amount += amount
    db.flush()


def transfer(db: Session, sender: str, recipient: str, amount: int) -> None:
    """Move ``amount`` from ``sender`` to ``recipient`` and emit TokenTransferred."""

    if amount < 0:
        raise InvalidParameters("amount must be non-negative")
    source = _balance_row(db, sender, lock=True)
    if source.amount < amount:
        logger.warning("Rejected transfer of %s from %s: balance %s", amount, sender, source.amount)
        raise NotSufficientBalance(f"{sender} holds {source.amount}, needs {amount}")
    target = _balance_row(db, recipient, lock=True)
    source.amount -= amount
    target.amount += amount
    db.flush()
    record_event(
        db,
        "TokenTransferred",
        {"from": sender, "to": recipient, "amount": amount},
        actor_address=sender,
    )


def approve(db: Session, owner: str, spender: str, amount: int) -> models.SettlementAllowance:
    if amount < 0:
        raise InvalidParameters("amount must be non-negative")
    row = _allowance_row(db, owner, spender, lock=True)
    row.amount = amount
    db.flush()
    record_event(
        db,
        "Approval",
        {"owner": owner, "spender": spender, "amount": amount},
        actor_address=owner,
    )
    return row


def transfer_from(db: Session, spender: str, owner: str, recipient: str, amount: int) -> None:
    """Spend ``owner``'s allowance granted to ``spender``."""

    row = _allowance_row(db, owner, spender, lock=True)
    if row.amount < amount:
        logger.warning(
            "Rejected transfer_from of %s by %s on %s: allowance %s", amount, spender, owner, row.amount
        )
        raise InsufficientAllowance(f"{spender} may spend {row.amount} of {owner}, needs {amount}")
    transfer(db, owner, recipient, amount)
    row.amount -= amount
    db.flush()
