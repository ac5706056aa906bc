"""
Project Details Model Module

Descriptive side table attached 1:1 to a project. It carries no invariants of
its own and is removed together with its project.
"""
from typing import Optional
from sqlmodel import SQLModel, Field
import uuid

from datetime import datetime


class ProjectDetails(SQLModel, table=True):
    """
    Extra descriptive metadata for a project.

    Attributes:
        id: Unique identifier (UUID)
        project_id: Owning project; at most one details record per project
        description: Long-form description (required)
        total_price: Quoted price, informational only
        on_board_date: ISO date the client was on-boarded
        profile: Sales profile the project came through
        project_platform: Marketplace or channel
    """
    __tablename__ = "project_details"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    project_id: str = Field(foreign_key="projects.id", unique=True, index=True, nullable=False)

    description: str = Field(nullable=False)
    total_price: Optional[float] = None
    on_board_date: Optional[str] = None
    profile: Optional[str] = None
    project_platform: Optional[str] = None

    created_at: Optional[str] = Field(default_factory=lambda: datetime.utcnow().isoformat())
    updated_at: Optional[str] = Field(default_factory=lambda: datetime.utcnow().isoformat())
