"""Monotonic sequence generators backing lot ids and proposal indexes."""

from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.orm import Session

from . import models

# purpose: transaction-scoped counters; an id is only consumed if the unit of work commits
# status: active

LOT_COUNTER = "harvest_lots"
PROPOSAL_COUNTER = "proposals"
COUNTERS = (LOT_COUNTER, PROPOSAL_COUNTER)


@event.listens_for(models.SequenceCounter.__table__, "after_create")
def _seed_counters(target, connection, **kw):
    # rows exist before the first take_next, so FOR UPDATE always has a row to lock
    connection.execute(target.insert(), [{"name": name, "value": 0} for name in COUNTERS])


def _row(db: Session, name: str) -> models.SequenceCounter:
    row = (
        db.query(models.SequenceCounter)
        .filter(models.SequenceCounter.name == name)
        .with_for_update()
        .one_or_none()
    )
    if row is None:
        row = models.SequenceCounter(name=name, value=0)
        db.add(row)
        db.flush()
    return row


def current_value(db: Session, name: str) -> int:
    row = db.get(models.SequenceCounter, name)
    return row.value if row else 0


def take_next(db: Session, name: str) -> int:
    """Return the counter's current value and advance it by one."""

    row = _row(db, name)
    value = row.value
    row.value = value + 1
    db.flush()
    return value
