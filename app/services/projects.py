"""
Project persistence.

Projects are loaded detached from the session and written back with a
compare-and-swap on ``version``:

    UPDATE projects SET ..., version = :loaded + 1
    WHERE id = :id AND version = :loaded

so two requests that read the same version cannot both win. The loser gets a
ConflictError and nothing it changed is stored.
"""
from datetime import datetime
from typing import List, Optional

import structlog
from sqlalchemy import func, update
from sqlmodel import Session, select

from app.core.exceptions import ConflictError, NotFoundError
from app.models.project import ACTIVE_STATUSES, Project
from app.models.project_details import ProjectDetails
from app.models.project_group import ProjectGroup
from app.services.aggregate import ProjectAggregate

logger = structlog.get_logger(__name__)

# Columns never rewritten by a save
_FROZEN_COLUMNS = {"id", "created_at", "created_by", "category", "version"}

# Financial fields hidden from team leads and employees
FINANCIAL_FIELDS = {
    "fixed_amount", "hourly_rate", "estimated_hours", "budget",
    "total_amount", "paid_amount", "pending_amount", "payments",
}

# Fields a team lead may see on a project that is still up for grabs
SAFE_LISTING_FIELDS = {
    "id", "project_name", "description", "deadline", "client_name", "status",
    "category", "priority", "created_by", "created_at", "updated_at",
}


def get_project(db: Session, project_id: str) -> Project:
    project = db.get(Project, project_id)
    if not project:
        raise NotFoundError("Project", project_id)
    return project


def load_for_update(db: Session, project_id: str) -> ProjectAggregate:
    """
    Read a project and detach it so that in-memory edits are never flushed
    by the ORM; only ``save`` writes it back.
    """
    project = get_project(db, project_id)
    db.expunge(project)
    return ProjectAggregate(project)


def save(
    db: Session,
    aggregate: ProjectAggregate,
    *,
    expected_version: Optional[int] = None,
    require_unclaimed: bool = False,
) -> Project:
    """
    Persist the whole aggregate if nobody else wrote the row since it was read.

    Args:
        db: Database session
        aggregate: Aggregate returned by ``load_for_update`` and then mutated
        expected_version: Version the caller saw; defaults to the loaded one
        require_unclaimed: Also require ``team_lead_id IS NULL`` in the stored row

    Returns:
        Project: The freshly stored row

    Raises:
        ConflictError: The row changed (or was claimed) in the meantime
    """
    project = aggregate.project
    expected = aggregate.loaded_version if expected_version is None else expected_version

    values = project.model_dump(mode="json", exclude=_FROZEN_COLUMNS)
    values["updated_at"] = datetime.utcnow().isoformat()
    values["version"] = expected + 1

    statement = update(Project).where(Project.id == project.id, Project.version == expected)
    if require_unclaimed:
        statement = statement.where(Project.team_lead_id.is_(None))

    result = db.connection().execute(statement.values(**values))
    if result.rowcount != 1:
        db.rollback()
        logger.warning("version_conflict", project_id=project.id, expected_version=expected)
        raise ConflictError("Project was modified by another request, reload it and try again")

    db.commit()
    return get_project(db, project.id)


def add(db: Session, project: Project) -> Project:
    db.add(project)
    db.commit()
    db.refresh(project)
    return project


def delete(db: Session, project_id: str) -> Project:
    """
    Delete a project together with its details record and the groups built
    around it; other groups just lose it from their member list.
    """
    project = get_project(db, project_id)
    details = db.exec(select(ProjectDetails).where(ProjectDetails.project_id == project_id)).first()
    if details:
        db.delete(details)

    for group in db.exec(select(ProjectGroup)).all():
        if group.main_project_id == project_id:
            db.delete(group)
        elif project_id in (group.projects or []):
            group.projects = [member for member in group.projects if member != project_id]
            db.add(group)

    # Referencing rows must be gone before the project row
    db.flush()
    db.delete(project)
    db.commit()
    return project


def user_references(db: Session, user_id: str) -> List[str]:
    """Describe the rows that still point at ``user_id``."""
    references = []
    for project in db.exec(select(Project)).all():
        if project.team_lead_id == user_id:
            references.append(f"team lead of project {project.id}")
        if user_id in (project.created_by, project.updated_by):
            references.append(f"author of project {project.id}")
        if user_id in (project.employees or []):
            references.append(f"staffed on project {project.id}")
    groups = db.exec(select(ProjectGroup).where(ProjectGroup.created_by == user_id)).all()
    references.extend(f"author of project group {group.id}" for group in groups)
    return references


def count_active_projects(db: Session, team_lead_id: str) -> int:
    statement = select(func.count(Project.id)).where(
        Project.team_lead_id == team_lead_id,
        Project.status.in_([status.value for status in ACTIVE_STATUSES]),
    )
    return db.exec(statement).one()


def view(project: Project, include: Optional[set] = None, exclude: Optional[set] = None) -> dict:
    """Serialize a project, optionally restricted to a subset of fields."""
    return project.model_dump(mode="json", include=include, exclude=exclude)


def list_projects(db: Session) -> List[Project]:
    return db.exec(select(Project).order_by(Project.created_at.desc())).all()
