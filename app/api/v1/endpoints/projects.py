"""
Project Endpoints Module

This module provides CRUD endpoints for projects plus team lead assignment,
staffing, client status and recalculation routes. Money and hours are
changed through the ledger endpoints; every write goes through the project
aggregate and is stored with a version check.
"""
from datetime import datetime
from typing import Any

import structlog
from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from app.api import deps
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.db.session import get_db
from app.models.project_details import ProjectDetails
from app.models.user import User, UserRole
from app.schemas.project import (
    ClientStatusUpdate, EmployeesAssign, ProjectCreate, ProjectDetailsCreate,
    ProjectDetailsUpdate, ProjectUpdate, TeamLeadAssign,
)
from app.services import projects as store
from app.services.aggregate import new_project

router = APIRouter()
logger = structlog.get_logger(__name__)


def _details_for(db: Session, project_id: str):
    return db.exec(select(ProjectDetails).where(ProjectDetails.project_id == project_id)).first()


@router.post("", status_code=201)
def create_project(
    project_in: ProjectCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin),
) -> Any:
    """
    Create a new project.

    Fixed projects start with total and pending equal to the fixed amount;
    hourly and milestone projects start at zero unless initial milestones
    are supplied.
    """
    project = new_project(project_in.model_dump(mode="json"), current_user)
    project = store.add(db, project)
    logger.info(
        "project_created",
        project_id=project.id,
        category=project.category,
        created_by=current_user.id,
    )
    return {"success": True, "message": "Project created successfully", "project": store.view(project)}


@router.get("")
def list_projects(
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin_or_teamlead),
) -> Any:
    """Retrieve all projects, newest first, with their details records."""
    projects = store.list_projects(db)
    details = db.exec(select(ProjectDetails)).all()
    return {
        "success": True,
        "count": len(projects),
        "projects": [store.view(project) for project in projects],
        "project_details": [item.model_dump() for item in details],
    }


@router.get("/{project_id}")
def read_project(
    project_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin_or_teamlead),
) -> Any:
    project = store.get_project(db, project_id)
    details = _details_for(db, project_id)
    return {
        "success": True,
        "project": store.view(project),
        "project_details": details.model_dump() if details else None,
    }


@router.put("/{project_id}")
def update_project(
    project_id: str,
    project_in: ProjectUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin),
) -> Any:
    """
    Update project fields.

    Editing pricing inputs recomputes the totals. The category cannot be
    changed. If ``version`` is sent it must match the stored version.
    """
    changes = project_in.model_dump(mode="json", exclude_unset=True)
    expected_version = changes.pop("version", None)

    aggregate = store.load_for_update(db, project_id)
    aggregate.update_fields(changes, current_user)
    project = store.save(db, aggregate, expected_version=expected_version)
    return {"success": True, "message": "Project updated successfully", "project": store.view(project)}


@router.delete("/{project_id}")
def delete_project(
    project_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin),
) -> Any:
    """Delete a project, its details record and the groups organised around it."""
    store.delete(db, project_id)
    logger.info("project_deleted", project_id=project_id, deleted_by=current_user.id)
    return {"success": True, "message": "Project deleted successfully"}


@router.put("/{project_id}/recalculate")
def recalculate_project(
    project_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin),
) -> Any:
    """Recompute every derived total from the child collections."""
    aggregate = store.load_for_update(db, project_id)
    before = (aggregate.project.total_amount, aggregate.project.paid_amount,
              aggregate.project.pending_amount, aggregate.project.actual_hours)
    totals = aggregate.recalculate(current_user)
    project = store.save(db, aggregate)
    if before != (totals.total_amount, totals.paid_amount, totals.pending_amount, totals.actual_hours):
        logger.warning("project_totals_repaired", project_id=project_id, before=before)
    return {
        "success": True,
        "message": "Project totals recalculated successfully",
        "project": store.view(project, include={
            "id", "total_amount", "paid_amount", "pending_amount", "actual_hours", "version",
        }),
    }


@router.patch("/{project_id}/client-status")
def update_client_status(
    project_id: str,
    status_in: ClientStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin_or_teamlead),
) -> Any:
    aggregate = store.load_for_update(db, project_id)
    aggregate.set_client_status(status_in.client_status, current_user)
    project = store.save(db, aggregate)
    return {"success": True, "message": "Client status updated successfully", "project": store.view(project)}


@router.put("/{project_id}/teamlead")
def assign_team_lead(
    project_id: str,
    assign_in: TeamLeadAssign,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin),
) -> Any:
    """Assign a team lead directly, bypassing the pick workflow."""
    team_lead = db.get(User, assign_in.team_lead)
    if not team_lead:
        raise NotFoundError("User", assign_in.team_lead)
    if not team_lead.has_role(UserRole.TEAMLEAD):
        raise ValidationError("Team lead must be a user with the teamlead role")

    aggregate = store.load_for_update(db, project_id)
    aggregate.assign_team_lead(team_lead.id, current_user)
    project = store.save(db, aggregate)
    logger.info("team_lead_assigned", project_id=project_id, team_lead_id=team_lead.id)
    return {"success": True, "message": "Team Lead assigned successfully", "project": store.view(project)}


@router.put("/{project_id}/employees")
def assign_employees(
    project_id: str,
    assign_in: EmployeesAssign,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin_or_teamlead),
) -> Any:
    """
    Replace the project's employee list; every id must be an existing employee.

    Team leads may only staff the project they currently hold.
    """
    for employee_id in assign_in.employees:
        employee = db.get(User, employee_id)
        if not employee:
            raise NotFoundError("User", employee_id)
        if not employee.has_role(UserRole.EMPLOYEE):
            raise ValidationError(f"User {employee_id} is not an employee")

    aggregate = store.load_for_update(db, project_id)
    aggregate.assign_employees(assign_in.employees, current_user)
    project = store.save(db, aggregate)
    logger.info("employees_assigned", project_id=project_id, employees=project.employees,
                assigned_by=current_user.id)
    return {"success": True, "message": "Employees assigned successfully", "project": store.view(project)}


@router.delete("/{project_id}/employees/{employee_id}")
def remove_employee(
    project_id: str,
    employee_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin_or_teamlead),
) -> Any:
    aggregate = store.load_for_update(db, project_id)
    aggregate.remove_employee(employee_id, current_user)
    project = store.save(db, aggregate)
    logger.info("employee_removed", project_id=project_id, employee_id=employee_id,
                removed_by=current_user.id)
    return {"success": True, "message": "Employee removed from project", "project": store.view(project)}


# === Project details ===

@router.post("/{project_id}/details", status_code=201)
def add_project_details(
    project_id: str,
    details_in: ProjectDetailsCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin),
) -> Any:
    store.get_project(db, project_id)
    if _details_for(db, project_id):
        raise ConflictError("Project details already exist. Use update instead.")

    details = ProjectDetails(project_id=project_id, **details_in.model_dump(exclude_none=True))
    db.add(details)
    db.commit()
    db.refresh(details)
    return {"success": True, "message": "Project details added successfully", "project_details": details.model_dump()}


@router.get("/{project_id}/details")
def read_project_details(
    project_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin_or_teamlead),
) -> Any:
    details = _details_for(db, project_id)
    if not details:
        raise NotFoundError("Project details", project_id)
    return {"success": True, "project_details": details.model_dump()}


@router.put("/details/{detail_id}")
def update_project_details(
    detail_id: str,
    details_in: ProjectDetailsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin),
) -> Any:
    details = db.get(ProjectDetails, detail_id)
    if not details:
        raise NotFoundError("Project details", detail_id)

    for field, value in details_in.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(details, field, value)
    details.updated_at = datetime.utcnow().isoformat()

    db.add(details)
    db.commit()
    db.refresh(details)
    return {"success": True, "message": "Project details updated successfully", "project_details": details.model_dump()}


@router.delete("/details/{detail_id}")
def delete_project_details(
    detail_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin),
) -> Any:
    details = db.get(ProjectDetails, detail_id)
    if not details:
        raise NotFoundError("Project details", detail_id)
    db.delete(details)
    db.commit()
    return {"success": True, "message": "Project details deleted successfully"}
