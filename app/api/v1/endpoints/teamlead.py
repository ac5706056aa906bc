"""
Team Lead Endpoints Module

Discovery, pick and release of projects by team leads, plus the restricted
"my projects" view shared with employees. Financial fields are never returned
from these routes.
"""
from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from app.api import deps
from app.core.config import settings
from app.db.session import get_db
from app.models.project import (
    ACTIVE_STATUSES, Project, ProjectCategory, ProjectPriority, ProjectStatus,
)
from app.models.user import User, UserRole
from app.schemas.project import ReleaseRequest
from app.services import projects as store

router = APIRouter()
logger = structlog.get_logger(__name__)

# Fields returned to the team lead right after a successful pick
PICKED_FIELDS = store.SAFE_LISTING_FIELDS | {"team_lead_id", "employees", "version"}


def _matches_search(project: Project, search: str) -> bool:
    needle = search.lower()
    return any(
        needle in (value or "").lower()
        for value in (project.project_name, project.client_name, project.description)
    )


@router.get("/projects/available")
def list_available_projects(
    status: Optional[ProjectStatus] = None,
    priority: Optional[ProjectPriority] = None,
    category: Optional[ProjectCategory] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_teamlead),
) -> Any:
    """
    List projects a team lead can pick: visible, unclaimed and in an active status.

    Only non-financial listing fields are returned.
    """
    statement = select(Project).where(
        Project.visible_to_team_leads == True,  # noqa: E712
        Project.team_lead_id.is_(None),
        Project.status.in_([s.value for s in ACTIVE_STATUSES]),
    )
    if status is not None:
        statement = statement.where(Project.status == status.value)
    if priority is not None:
        statement = statement.where(Project.priority == priority.value)
    if category is not None:
        statement = statement.where(Project.category == category.value)

    projects = db.exec(statement.order_by(Project.created_at.desc())).all()
    if search:
        projects = [project for project in projects if _matches_search(project, search)]

    return {
        "success": True,
        "count": len(projects),
        "projects": [store.view(project, include=store.SAFE_LISTING_FIELDS) for project in projects],
    }


@router.get("/projects/mine")
def list_my_projects(
    status: Optional[ProjectStatus] = None,
    priority: Optional[ProjectPriority] = None,
    category: Optional[ProjectCategory] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_teamlead_or_employee),
) -> Any:
    """
    Projects led by the caller (team leads) or staffed with the caller (employees),
    with per-status counts.
    """
    statement = select(Project)
    if status is not None:
        statement = statement.where(Project.status == status.value)
    if priority is not None:
        statement = statement.where(Project.priority == priority.value)
    if category is not None:
        statement = statement.where(Project.category == category.value)

    projects = db.exec(statement.order_by(Project.updated_at.desc())).all()
    if current_user.has_role(UserRole.TEAMLEAD):
        projects = [project for project in projects if project.team_lead_id == current_user.id]
    else:
        # employees is a JSON array, so membership is checked in Python
        projects = [project for project in projects if current_user.id in (project.employees or [])]

    def count(project_status: ProjectStatus) -> int:
        return sum(1 for project in projects if project.status == project_status.value)

    stats = {
        "total": len(projects),
        "pending": count(ProjectStatus.PENDING),
        "in_progress": count(ProjectStatus.IN_PROGRESS),
        "completed": count(ProjectStatus.COMPLETED),
        "on_hold": count(ProjectStatus.ON_HOLD),
    }
    return {
        "success": True,
        "count": len(projects),
        "stats": stats,
        "projects": [store.view(project, exclude=store.FINANCIAL_FIELDS) for project in projects],
    }


@router.put("/projects/{project_id}/pick")
def pick_project(
    project_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_teamlead),
) -> Any:
    """
    Claim an unassigned project.

    The stored row must still be unclaimed and at the version that was read,
    so only one of several simultaneous picks can succeed.
    """
    aggregate = store.load_for_update(db, project_id)
    active_count = store.count_active_projects(db, current_user.id)
    aggregate.pick(current_user, active_count=active_count, limit=settings.MAX_CONCURRENT_PROJECTS)
    project = store.save(db, aggregate, require_unclaimed=True)
    logger.info("project_picked", project_id=project_id, team_lead_id=current_user.id)
    return {
        "success": True,
        "message": "Project picked successfully",
        "project": store.view(project, include=PICKED_FIELDS),
        "team_lead": {"id": current_user.id, "name": current_user.name, "email": current_user.email},
    }


@router.put("/projects/{project_id}/release")
def release_project(
    project_id: str,
    release_in: Optional[ReleaseRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_teamlead),
) -> Any:
    """Give a held project back to the pool; its employees are unassigned."""
    aggregate = store.load_for_update(db, project_id)
    aggregate.release(current_user)
    project = store.save(db, aggregate)
    logger.info(
        "project_released",
        project_id=project_id,
        team_lead_id=current_user.id,
        reason=release_in.reason if release_in else None,
    )
    return {
        "success": True,
        "message": "Project released successfully. It's now available for other team leads to pick.",
        "project": store.view(project, include={"id", "project_name", "status", "employees", "team_lead_id"}),
    }
