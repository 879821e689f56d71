"""Certification workflow for harvest lots and producer protocol requests.

A lot moves through ``requested -> accepted -> approved | rejected``. Both
terminal transitions delete the request so the lot id is free for a later
request; only approval touches the lot's certification flag.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from .. import models
from ..errors import (
    CertificationRequestAlreadyAccepted,
    InspectionRequestNotFound,
    LotAlreadyCertified,
    TokenDoesNotExist,
    YouDidntAcceptAnyRequestWithThisTokenId,
)
from ..eventlog import record_event
from ..rbac import Role, require_role
from . import harvest_ledger

# purpose: own certification requests and protocol-request flags
# status: active
# depends_on: agrichain.services.harvest_ledger (lot existence, certification flag)

logger = logging.getLogger(__name__)


def _request(db: Session, lot_id: int, *, lock: bool = False) -> models.CertificationRequest | None:
    query = db.query(models.CertificationRequest).filter(models.CertificationRequest.lot_id == lot_id)
    if lock:
        query = query.with_for_update()
    return query.one_or_none()


def get_request(db: Session, lot_id: int) -> models.CertificationRequest | None:
    return _request(db, lot_id)


def request_certification(
    db: Session, producer: models.Account, lot_id: int
) -> models.CertificationRequest:
    require_role(producer, Role.PRODUCER)
    lot = harvest_ledger.get_lot(db, lot_id)
    if lot is None or harvest_ledger.balance_of(db, producer.address, lot_id) < 1:
        raise TokenDoesNotExist(f"lot {lot_id} does not exist for {producer.address}")
    if lot.certified:
        raise LotAlreadyCertified(f"lot {lot_id} is already certified")

    request = _request(db, lot_id, lock=True)
    if request is not None and request.inspector_address:
        raise CertificationRequestAlreadyAccepted(f"lot {lot_id} is under inspection")
    if request is None:
        request = models.CertificationRequest(lot_id=lot_id, producer_address=producer.address)
        db.add(request)
    else:
        # an unaccepted request is replaced by the newer one
        request.producer_address = producer.address
        request.requested_at = datetime.now(timezone.utc)
    db.flush()
    record_event(
        db,
        "CertificationRequested",
        {"lot_id": lot_id, "producer": producer.address},
        actor_address=producer.address,
    )
    return request


def accept_request(
    db: Session, inspector: models.Account, lot_id: int
) -> models.CertificationRequest:
    require_role(inspector, Role.INSPECTOR)
    request = _request(db, lot_id, lock=True)
    if request is None:
        raise InspectionRequestNotFound(f"no certification request for lot {lot_id}")
    request.inspector_address = inspector.address
    request.accepted_at = datetime.now(timezone.utc)
    db.flush()
    record_event(
        db,
        "CertificationRequestAccepted",
        {"lot_id": lot_id, "inspector": inspector.address},
        actor_address=inspector.address,
    )
    return request


def _accepted_by(db: Session, inspector: models.Account, lot_id: int) -> models.CertificationRequest:
    require_role(inspector, Role.INSPECTOR)
    request = _request(db, lot_id, lock=True)
    if request is None or request.inspector_address != inspector.address:
        raise YouDidntAcceptAnyRequestWithThisTokenId()
    return request


def approve(db: Session, inspector: models.Account, lot_id: int) -> models.HarvestLot:
    request = _accepted_by(db, inspector, lot_id)
    lot = harvest_ledger.mark_certified(db, lot_id, inspector.address)
    db.delete(request)
    db.flush()
    record_event(
        db,
        "CertificationApproved",
        {"lot_id": lot_id, "inspector": inspector.address},
        actor_address=inspector.address,
    )
    logger.info("Lot %s certified by %s", lot_id, inspector.address)
    return lot


def reject(db: Session, inspector: models.Account, lot_id: int) -> None:
    request = _accepted_by(db, inspector, lot_id)
    db.delete(request)
    db.flush()
    record_event(
        db,
        "CertificationRejected",
        {"lot_id": lot_id, "inspector": inspector.address},
        actor_address=inspector.address,
    )


def request_protocol(db: Session, producer: models.Account, protocol_id: int) -> models.ProtocolRequest:
    require_role(producer, Role.PRODUCER)
    row = set_protocol_requested(db, producer.address, protocol_id, True)
    record_event(
        db,
        "ProtocolRequested",
        {"protocol_id": protocol_id, "producer": producer.address},
        actor_address=producer.address,
    )
    return row


def is_protocol_requested(db: Session, producer_address: str, protocol_id: int) -> bool:
    row = db.get(models.ProtocolRequest, (producer_address, protocol_id))
    return bool(row and row.requested)


def set_protocol_requested(
    db: Session, producer_address: str, protocol_id: int, requested: bool
) -> models.ProtocolRequest:
    """Set the (producer, protocol) flag; governance clears it on execution."""

    row = (
        db.query(models.ProtocolRequest)
        .filter(
            models.ProtocolRequest.producer_address == producer_address,
            models.ProtocolRequest.protocol_id == protocol_id,
        )
        .with_for_update()
        .one_or_none()
    )
    if row is None:
        row = models.ProtocolRequest(
            producer_address=producer_address, protocol_id=protocol_id, requested=requested
        )
        db.add(row)
    else:
        row.requested = requested
    db.flush()
    return row
