"""
Project Group Model Module

Flat grouping of projects sold to one client under one pricing umbrella.
"""
from typing import List, Optional
from sqlmodel import SQLModel, Field, JSON, Column, AutoString
import uuid

from datetime import datetime

from app.models.project import ProjectCategory


class ProjectGroup(SQLModel, table=True):
    """
    Attributes:
        id: Unique identifier (UUID)
        group_id: Human-facing unique group code
        main_project_id: Project the group is organised around
        projects: JSON array of member project ids
        pricing_model: Pricing plan shared by the group
        total_value: Agreed value of the whole group
        client_name: Client the group is sold to
    """
    __tablename__ = "project_groups"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    group_id: str = Field(unique=True, index=True, nullable=False)
    main_project_id: str = Field(foreign_key="projects.id", nullable=False)
    projects: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    pricing_model: ProjectCategory = Field(default=ProjectCategory.FIXED, sa_type=AutoString)
    total_value: float = 0
    client_name: str = Field(nullable=False)

    created_by: Optional[str] = Field(default=None, foreign_key="users.id")
    created_at: Optional[str] = Field(default_factory=lambda: datetime.utcnow().isoformat())
    updated_at: Optional[str] = Field(default_factory=lambda: datetime.utcnow().isoformat())
