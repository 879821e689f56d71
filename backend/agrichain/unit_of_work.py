"""Commit helper shared by routers."""

from __future__ import annotations

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from . import eventlog, pubsub


def commit(db: Session, background_tasks: BackgroundTasks | None = None) -> None:
    """Commit the request's unit of work, then queue its events for pub/sub."""

    db.commit()
    events = eventlog.pop_committed(db)
    if background_tasks is not None and events:
        background_tasks.add_task(pubsub.publish_ledger_events, events)
