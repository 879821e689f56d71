"""Harvest ledger: semi-fungible lot tokens and their metadata."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from .. import counters, models, schemas
from ..errors import InvalidParameters, NotEnoughToken, TokenDoesNotExist
from ..eventlog import record_event
from ..rbac import Role, require_role

# purpose: mint and burn harvest lots, own the certification flag
# status: active
# depends_on: agrichain.rbac (producer gate), agrichain.counters (lot ids)

logger = logging.getLogger(__name__)


def mint_lot(
    db: Session,
    producer: models.Account,
    *,
    total_units: int,
    name: str,
    units_per_token: int,
) -> models.HarvestLot:
    """Mint a new lot and credit every unit to the producer."""

    require_role(producer, Role.PRODUCER)
    if not total_units or not units_per_token or not name or not name.strip():
        raise InvalidParameters("total_units, name and units_per_token must be non-zero")

    lot_id = counters.take_next(db, counters.LOT_COUNTER)
    lot = models.HarvestLot(
        id=lot_id,
        producer_address=producer.address,
        name=name.strip(),
        units_per_token=units_per_token,
        total_units=total_units,
        certified=False,
    )
    db.add(lot)
    db.add(models.LotBalance(lot_id=lot_id, holder_address=producer.address, units=total_units))
    db.flush()
    record_event(
        db,
        "CreatedLot",
        {
            "producer": producer.address,
            "lot_id": lot_id,
            "total_units": total_units,
            "name": lot.name,
            "units_per_token": units_per_token,
        },
        actor_address=producer.address,
    )
    logger.info("Minted lot %s (%s x %s) for %s", lot_id, total_units, lot.name, producer.address)
    return lot


def burn_lot(db: Session, producer: models.Account, lot_id: int, amount: int) -> int:
    """Burn ``amount`` units from the producer's balance; return the remaining balance."""

    require_role(producer, Role.PRODUCER)
    row = (
        db.query(models.LotBalance)
        .filter(
            models.LotBalance.lot_id == lot_id,
            models.LotBalance.holder_address == producer.address,
        )
        .with_for_update()
        .one_or_none()
    )
    held = row.units if row else 0
    if held < amount:
        raise NotEnoughToken(f"holds {held} of lot {lot_id}, cannot burn {amount}")
    remaining = held - amount
    if row is not None:
        if remaining == 0:
            db.delete(row)
        else:
            row.units = remaining
    db.flush()
    record_event(
        db,
        "LotBurned",
        {"holder": producer.address, "lot_id": lot_id, "amount": amount},
        actor_address=producer.address,
    )
    return remaining


def get_lot(db: Session, lot_id: int, *, lock: bool = False) -> models.HarvestLot | None:
    query = db.query(models.HarvestLot).filter(models.HarvestLot.id == lot_id)
    if lock:
        query = query.with_for_update()
    return query.one_or_none()


def require_lot(db: Session, lot_id: int) -> models.HarvestLot:
    lot = get_lot(db, lot_id)
    if lot is None:
        raise TokenDoesNotExist(f"lot {lot_id} does not exist")
    return lot


def balance_of(db: Session, holder: str, lot_id: int) -> int:
    row = db.get(models.LotBalance, (lot_id, holder))
    return row.units if row else 0


def lot_counter(db: Session) -> int:
    return counters.current_value(db, counters.LOT_COUNTER)


def mark_certified(db: Session, lot_id: int, inspector_address: str) -> models.HarvestLot:
    """Flip the lot's certification flag; the flag never flips back."""

    lot = get_lot(db, lot_id, lock=True)
    if lot is None:
        raise TokenDoesNotExist(f"lot {lot_id} does not exist")
    if not lot.certified:
        lot.certified = True
        lot.certified_by = inspector_address
        lot.certified_at = datetime.now(timezone.utc)
        db.flush()
    return lot


def build_metadata(lot: models.HarvestLot) -> schemas.LotMetadata:
    """Render the lot's public metadata document."""

    status = "certified" if lot.certified else "uncertified"
    return schemas.LotMetadata(
        name=lot.name,
        description=f"Harvest lot #{lot.id}: {lot.name}, {lot.units_per_token} units per token ({status})",
        units_per_token=lot.units_per_token,
        certified=lot.certified,
        attributes=[
            {"trait_type": "producer", "value": lot.producer_address},
            {"trait_type": "total_units", "value": lot.total_units},
            {"trait_type": "certified", "value": lot.certified},
        ],
    )
