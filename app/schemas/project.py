"""
Request bodies for the project endpoints.

Only fields an API caller may set appear here; derived totals, child
collections and audit fields are never accepted from the client.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field

from app.models.project import (
    ClientStatus, MilestoneStatus, PaymentMethod, PaymentSchedule,
    ProjectCategory, ProjectPriority, ProjectStatus, TaskType,
)


# === Child records ===

class TimeEntryCreate(BaseModel):
    date: Optional[datetime] = None
    hours: float = Field(gt=0)
    description: str = Field(min_length=1)
    task_type: TaskType = TaskType.DEVELOPMENT


class TimeEntryUpdate(BaseModel):
    date: Optional[datetime] = None
    hours: Optional[float] = Field(default=None, gt=0)
    description: Optional[str] = Field(default=None, min_length=1)
    task_type: Optional[TaskType] = None
    approved: Optional[bool] = None


class MilestoneCreate(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    amount: float = Field(gt=0)
    due_date: datetime
    deliverables: Optional[str] = None


class MilestoneUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    amount: Optional[float] = Field(default=None, gt=0)
    due_date: Optional[datetime] = None
    deliverables: Optional[str] = None
    status: Optional[MilestoneStatus] = None
    order: Optional[int] = None


class PaymentCreate(BaseModel):
    amount: float = Field(gt=0)
    payment_date: Optional[datetime] = None
    payment_method: PaymentMethod = PaymentMethod.BANK_TRANSFER
    transaction_id: Optional[str] = None
    notes: Optional[str] = None
    milestone_id: Optional[str] = None


class PaymentUpdate(BaseModel):
    amount: Optional[float] = Field(default=None, gt=0)
    payment_date: Optional[datetime] = None
    payment_method: Optional[PaymentMethod] = None
    transaction_id: Optional[str] = None
    notes: Optional[str] = None


# === Project ===

class ProjectBase(BaseModel):
    description: Optional[str] = None
    deadline: Optional[str] = None
    client_email: Optional[EmailStr] = None
    client_phone: Optional[str] = None
    project_platform: Optional[str] = None
    profile: Optional[str] = None
    budget: Optional[float] = Field(default=None, ge=0)
    timeline: Optional[str] = None
    technologies: Optional[List[str]] = None
    scope_policy: Optional[str] = None
    estimated_hours: Optional[float] = Field(default=None, ge=0)


class ProjectCreate(ProjectBase):
    project_name: str = Field(min_length=1, max_length=200)
    client_name: str = Field(min_length=1, max_length=200)
    category: ProjectCategory
    priority: ProjectPriority = ProjectPriority.MEDIUM
    payment_schedule: PaymentSchedule = PaymentSchedule.UPFRONT
    fixed_amount: Optional[float] = None
    hourly_rate: Optional[float] = None
    milestones: List[MilestoneCreate] = []
    visible_to_team_leads: bool = True


class ProjectUpdate(ProjectBase):
    project_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    client_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    # Accepted only so that a change can be rejected explicitly
    category: Optional[ProjectCategory] = None
    priority: Optional[ProjectPriority] = None
    payment_schedule: Optional[PaymentSchedule] = None
    status: Optional[ProjectStatus] = None
    fixed_amount: Optional[float] = None
    hourly_rate: Optional[float] = None
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    visible_to_team_leads: Optional[bool] = None
    # Version the client last read; a mismatch is rejected with 409
    version: Optional[int] = None


class ClientStatusUpdate(BaseModel):
    client_status: ClientStatus


class TeamLeadAssign(BaseModel):
    team_lead: str


class EmployeesAssign(BaseModel):
    employees: List[str]


class ReleaseRequest(BaseModel):
    reason: Optional[str] = None


# === Side tables ===

class ProjectDetailsCreate(BaseModel):
    description: str = Field(min_length=1)
    total_price: Optional[float] = None
    on_board_date: Optional[str] = None
    profile: Optional[str] = None
    project_platform: Optional[str] = None


class ProjectDetailsUpdate(BaseModel):
    description: Optional[str] = Field(default=None, min_length=1)
    total_price: Optional[float] = None
    on_board_date: Optional[str] = None
    profile: Optional[str] = None
    project_platform: Optional[str] = None


class ProjectGroupCreate(BaseModel):
    group_id: str = Field(min_length=1)
    main_project_id: str
    projects: List[str] = []
    pricing_model: ProjectCategory = ProjectCategory.FIXED
    total_value: float = 0
    client_name: str = Field(min_length=1)


class ProjectGroupUpdate(BaseModel):
    main_project_id: Optional[str] = None
    projects: Optional[List[str]] = None
    pricing_model: Optional[ProjectCategory] = None
    total_value: Optional[float] = None
    client_name: Optional[str] = Field(default=None, min_length=1)
