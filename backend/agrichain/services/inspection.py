"""Inspector-facing entry points for process inspections."""

from __future__ import annotations

from sqlalchemy.orm import Session

from .. import models
from ..config import INSPECTION_DESK_ADDRESS, INSPECTOR_FEE
from ..eventlog import record_event
from ..rbac import Role, require_role
from . import governance

# purpose: keep role checks for inspection assignment on the inspector side
# status: active
# depends_on: agrichain.services.governance


def desk_address() -> str:
    """Spender address inspectors approve before staking a guarantee."""

    return INSPECTION_DESK_ADDRESS


def assign_to_proposal(
    db: Session, inspector: models.Account, index: int, guaranteed_amount: int
) -> models.Proposal:
    require_role(inspector, Role.INSPECTOR)
    proposal = governance.assign_inspector_to_proposal(
        db, index, inspector.address, guaranteed_amount, spender=desk_address()
    )
    record_event(
        db,
        "ProcessInspectionAccepted",
        {"index": index, "inspector": inspector.address, "guaranteed_amount": guaranteed_amount},
        actor_address=inspector.address,
    )
    return proposal


def approve_process_inspection(db: Session, inspector: models.Account, index: int) -> models.Proposal:
    require_role(inspector, Role.INSPECTOR)
    return governance.set_passed_inspection(db, inspector.address, index, True, INSPECTOR_FEE)


def reject_process_inspection(db: Session, inspector: models.Account, index: int) -> models.Proposal:
    require_role(inspector, Role.INSPECTOR)
    return governance.set_passed_inspection(db, inspector.address, index, False, 0)
