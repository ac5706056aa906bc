"""
Project Ledger Endpoints Module

Time entries, milestones and payments of a project. Each request loads the
project, applies one aggregate operation (which recomputes the totals) and
stores the whole project back with a version check.
"""
from typing import Any

import structlog
from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.api import deps
from app.core.exceptions import ForbiddenError
from app.db.session import get_db
from app.models.project import Project
from app.models.user import User
from app.schemas.project import (
    MilestoneCreate, MilestoneUpdate, PaymentCreate, PaymentUpdate,
    TimeEntryCreate, TimeEntryUpdate,
)
from app.services import projects as store

router = APIRouter()
logger = structlog.get_logger(__name__)


def _ensure_can_log_time(project: Project, user: User) -> None:
    # Team leads may only touch time on projects they hold
    if not user.is_privileged and project.team_lead_id != user.id:
        raise ForbiddenError("You can only log time on projects assigned to you")


# === Time entries ===

@router.post("/{project_id}/time-entries")
def add_time_entry(
    project_id: str,
    entry_in: TimeEntryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin_or_teamlead),
) -> Any:
    """Log hours on an hourly project; actual hours and totals are recomputed."""
    aggregate = store.load_for_update(db, project_id)
    _ensure_can_log_time(aggregate.project, current_user)
    entry = aggregate.add_time_entry(entry_in.model_dump(mode="json"), current_user)
    project = store.save(db, aggregate)
    logger.info("time_entry_added", project_id=project_id, entry_id=entry.id, hours=entry.hours)
    return {
        "success": True,
        "message": "Time entry added successfully",
        "time_entry": entry.model_dump(mode="json"),
        "project": store.view(project),
    }


@router.put("/{project_id}/time-entries/{entry_id}")
def update_time_entry(
    project_id: str,
    entry_id: str,
    entry_in: TimeEntryUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin_or_teamlead),
) -> Any:
    aggregate = store.load_for_update(db, project_id)
    _ensure_can_log_time(aggregate.project, current_user)
    entry = aggregate.update_time_entry(
        entry_id, entry_in.model_dump(mode="json", exclude_unset=True), current_user
    )
    project = store.save(db, aggregate)
    return {
        "success": True,
        "message": "Time entry updated successfully",
        "time_entry": entry.model_dump(mode="json"),
        "project": store.view(project),
    }


@router.delete("/{project_id}/time-entries/{entry_id}")
def delete_time_entry(
    project_id: str,
    entry_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin_or_teamlead),
) -> Any:
    aggregate = store.load_for_update(db, project_id)
    _ensure_can_log_time(aggregate.project, current_user)
    aggregate.delete_time_entry(entry_id, current_user)
    project = store.save(db, aggregate)
    logger.info("time_entry_deleted", project_id=project_id, entry_id=entry_id)
    return {"success": True, "message": "Time entry deleted successfully", "project": store.view(project)}


# === Milestones ===

@router.post("/{project_id}/milestones", status_code=201)
def add_milestone(
    project_id: str,
    milestone_in: MilestoneCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin),
) -> Any:
    """Add a milestone to a milestone project; its amount is added to the total."""
    aggregate = store.load_for_update(db, project_id)
    milestone = aggregate.add_milestone(milestone_in.model_dump(mode="json"), current_user)
    project = store.save(db, aggregate)
    logger.info("milestone_added", project_id=project_id, milestone_id=milestone.id, amount=milestone.amount)
    return {
        "success": True,
        "message": "Milestone added successfully",
        "milestone": milestone.model_dump(mode="json"),
        "project": store.view(project),
    }


@router.put("/{project_id}/milestones/{milestone_id}")
def update_milestone(
    project_id: str,
    milestone_id: str,
    milestone_in: MilestoneUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin),
) -> Any:
    aggregate = store.load_for_update(db, project_id)
    milestone = aggregate.update_milestone(
        milestone_id, milestone_in.model_dump(mode="json", exclude_unset=True), current_user
    )
    project = store.save(db, aggregate)
    return {
        "success": True,
        "message": "Milestone updated successfully",
        "milestone": milestone.model_dump(mode="json"),
        "project": store.view(project),
    }


@router.delete("/{project_id}/milestones/{milestone_id}")
def delete_milestone(
    project_id: str,
    milestone_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin),
) -> Any:
    aggregate = store.load_for_update(db, project_id)
    aggregate.delete_milestone(milestone_id, current_user)
    project = store.save(db, aggregate)
    logger.info("milestone_deleted", project_id=project_id, milestone_id=milestone_id)
    return {"success": True, "message": "Milestone deleted successfully", "project": store.view(project)}


@router.post("/{project_id}/milestones/{milestone_id}/payments")
def add_milestone_payment(
    project_id: str,
    milestone_id: str,
    payment_in: PaymentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin),
) -> Any:
    """Record a payment against a milestone; a full payment completes the milestone."""
    data = payment_in.model_dump(mode="json")
    data["milestone_id"] = milestone_id
    aggregate = store.load_for_update(db, project_id)
    payment = aggregate.add_payment(data, current_user)
    project = store.save(db, aggregate)
    logger.info("payment_added", project_id=project_id, payment_id=payment.id,
                amount=payment.amount, milestone_id=milestone_id)
    return {
        "success": True,
        "message": "Milestone payment added",
        "payment": payment.model_dump(mode="json"),
        "project": store.view(project),
    }


# === Payments ===

@router.post("/{project_id}/payments")
def add_payment(
    project_id: str,
    payment_in: PaymentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin),
) -> Any:
    """Record a payment; paid and pending amounts are recomputed."""
    aggregate = store.load_for_update(db, project_id)
    payment = aggregate.add_payment(payment_in.model_dump(mode="json"), current_user)
    project = store.save(db, aggregate)
    logger.info("payment_added", project_id=project_id, payment_id=payment.id, amount=payment.amount)
    return {
        "success": True,
        "message": "Payment added successfully",
        "payment": payment.model_dump(mode="json"),
        "project": store.view(project),
    }


@router.put("/{project_id}/payments/{payment_id}")
def update_payment(
    project_id: str,
    payment_id: str,
    payment_in: PaymentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin),
) -> Any:
    aggregate = store.load_for_update(db, project_id)
    payment = aggregate.update_payment(
        payment_id, payment_in.model_dump(mode="json", exclude_unset=True), current_user
    )
    project = store.save(db, aggregate)
    return {
        "success": True,
        "message": "Payment updated successfully",
        "payment": payment.model_dump(mode="json"),
        "project": store.view(project),
    }


@router.delete("/{project_id}/payments/{payment_id}")
def delete_payment(
    project_id: str,
    payment_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin),
) -> Any:
    aggregate = store.load_for_update(db, project_id)
    payment = aggregate.delete_payment(payment_id, current_user)
    project = store.save(db, aggregate)
    logger.info("payment_deleted", project_id=project_id, payment_id=payment_id, amount=payment.amount)
    return {"success": True, "message": "Payment deleted successfully", "project": store.view(project)}
