"""
Employee Endpoints Module

Read-only view of the projects an employee is staffed on. Financial fields
are stripped before the projects are returned.
"""
from typing import Any

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from app.api import deps
from app.core.exceptions import NotFoundError
from app.db.session import get_db
from app.models.project import Project
from app.models.user import User
from app.services import projects as store

router = APIRouter()


@router.get("/projects/assigned")
def list_assigned_projects(
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_employee),
) -> Any:
    """
    Projects the calling employee is staffed on, without financial data.
    """
    projects = [
        project
        for project in db.exec(select(Project).order_by(Project.created_at.desc())).all()
        if current_user.id in (project.employees or [])
    ]
    if not projects:
        raise NotFoundError("Assigned projects")
    return {
        "success": True,
        "count": len(projects),
        "projects": [store.view(project, exclude=store.FINANCIAL_FIELDS) for project in projects],
    }
