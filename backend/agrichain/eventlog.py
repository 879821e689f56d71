"""Utilities for recording ledger events."""

from __future__ import annotations

from typing import Any

from prometheus_client import Counter
from sqlalchemy.orm import Session

from . import models

# purpose: persist observer-facing events inside the emitting operation's transaction
# inputs: SQLAlchemy session, event name, identifier payload, acting address
# outputs: LedgerEvent rows plus a per-session buffer drained after commit for pub/sub
# status: active

LEDGER_EVENTS = Counter("ledger_events_total", "Committed ledger events", ["name"])

_PENDING_KEY = "pending_ledger_events"


def record_event(
    db: Session,
    name: str,
    payload: dict[str, Any],
    actor_address: str | None = None,
) -> models.LedgerEvent:
    """Persist a ledger event; it is only visible if the unit of work commits."""

    event = models.LedgerEvent(
        name=name,
        payload=payload if isinstance(payload, dict) else {},
        actor_address=actor_address,
    )
    db.add(event)
    db.flush()
    db.info.setdefault(_PENDING_KEY, []).append(event)
    return event


def pop_committed(db: Session) -> list[dict[str, Any]]:
    """Serialise and forget the events recorded since the last drain.

    Call only after a successful commit.
    """

    pending: list[models.LedgerEvent] = db.info.pop(_PENDING_KEY, [])
    serialised = []
    for event in pending:
        LEDGER_EVENTS.labels(event.name).inc()
        serialised.append(
            {
                "sequence": event.sequence,
                "name": event.name,
                "payload": event.payload or {},
                "actor_address": event.actor_address,
                "created_at": event.created_at,
            }
        )
    return serialised


def list_events(
    db: Session,
    *,
    name: str | None = None,
    after: int | None = None,
    limit: int = 200,
) -> list[models.LedgerEvent]:
    query = db.query(models.LedgerEvent)
    if name:
        query = query.filter(models.LedgerEvent.name == name)
    if after is not None:
        query = query.filter(models.LedgerEvent.sequence > after)
    return query.order_by(models.LedgerEvent.sequence.asc()).limit(limit).all()
