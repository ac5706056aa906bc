"""
Project Group Endpoints Module

CRUD endpoints for project groups. Groups are flat side records: each is
organised around a main project and lists its member project ids.
"""
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from app.api import deps
from app.core.exceptions import ConflictError, NotFoundError
from app.db.session import get_db
from app.models.project_group import ProjectGroup
from app.models.user import User
from app.schemas.project import ProjectGroupCreate, ProjectGroupUpdate
from app.services import projects as store

router = APIRouter()


@router.get("")
def read_project_groups(
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin_or_teamlead),
) -> Any:
    groups = db.exec(select(ProjectGroup).order_by(ProjectGroup.created_at.desc())).all()
    return {"success": True, "count": len(groups), "project_groups": [group.model_dump() for group in groups]}


@router.post("", status_code=201)
def create_project_group(
    group_in: ProjectGroupCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin),
) -> Any:
    """
    Create a group around a main project.

    Raises:
        ConflictError: If the group code is already taken
        NotFoundError: If the main project doesn't exist
    """
    if db.exec(select(ProjectGroup).where(ProjectGroup.group_id == group_in.group_id)).first():
        raise ConflictError("A project group with this id already exists")
    store.get_project(db, group_in.main_project_id)

    data = group_in.model_dump(mode="json")
    group = ProjectGroup(**data, created_by=current_user.id)
    db.add(group)
    db.commit()
    db.refresh(group)
    return {"success": True, "message": "Project group created successfully", "project_group": group.model_dump()}


@router.put("/{group_id}")
def update_project_group(
    group_id: str,
    group_in: ProjectGroupUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin),
) -> Any:
    group = db.get(ProjectGroup, group_id)
    if not group:
        raise NotFoundError("Project group", group_id)

    update_data = group_in.model_dump(mode="json", exclude_unset=True)
    if update_data.get("main_project_id"):
        store.get_project(db, update_data["main_project_id"])
    for field, value in update_data.items():
        if value is not None:
            setattr(group, field, value)
    group.updated_at = datetime.utcnow().isoformat()

    db.add(group)
    db.commit()
    db.refresh(group)
    return {"success": True, "message": "Project group updated successfully", "project_group": group.model_dump()}


@router.delete("/{group_id}")
def delete_project_group(
    group_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin),
) -> Any:
    group = db.get(ProjectGroup, group_id)
    if not group:
        raise NotFoundError("Project group", group_id)
    db.delete(group)
    db.commit()
    return {"success": True, "message": "Project group deleted successfully"}
