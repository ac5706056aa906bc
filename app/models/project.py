"""
Project Model Module

This module defines the Project aggregate root together with the records it
exclusively owns (time entries, milestones and payments) and the enumerations
used by its pricing and assignment fields.

Child records are embedded in the project row as JSON arrays, so a project and
its children are always read and written as one unit.
"""
from enum import Enum
from typing import List, Optional
from sqlmodel import SQLModel, Field, JSON, Column, AutoString
import uuid

from datetime import datetime


class ProjectCategory(str, Enum):
    """Pricing plan; decides which formula produces total_amount."""
    FIXED = "fixed"
    HOURLY = "hourly"
    MILESTONE = "milestone"


class ProjectStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    IN_PROGRESS = "in-progress"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ARCHIVED = "archived"


# Statuses in which a project can be picked and counts toward a team lead's cap
ACTIVE_STATUSES = (ProjectStatus.PENDING, ProjectStatus.ACTIVE, ProjectStatus.IN_PROGRESS)

# Statuses in which a project can no longer be released
TERMINAL_STATUSES = (ProjectStatus.COMPLETED, ProjectStatus.CANCELLED)


class ProjectPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class PaymentSchedule(str, Enum):
    UPFRONT = "upfront"
    FIFTY_FIFTY = "50-50"
    MILESTONE = "milestone"


class ClientStatus(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    REVIEW = "review"
    AWAY = "away"


class TaskType(str, Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    DESIGN = "design"
    MEETING = "meeting"
    RESEARCH = "research"
    DOCUMENTATION = "documentation"
    BUG_FIXING = "bug-fixing"
    DEPLOYMENT = "deployment"


class MilestoneStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank-transfer"
    CREDIT_CARD = "credit-card"
    PAYPAL = "paypal"
    STRIPE = "stripe"
    OTHER = "other"


class ChildRecord(SQLModel):
    """Base for records owned by a project; ids are unique within the project."""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)


class TimeEntry(ChildRecord):
    """Hours logged against an hourly project."""
    date: datetime = Field(default_factory=datetime.utcnow)
    hours: float = Field(gt=0)
    description: str = Field(min_length=1)
    task_type: TaskType = TaskType.DEVELOPMENT
    approved: bool = False
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    added_by: str
    added_at: datetime = Field(default_factory=datetime.utcnow)


class Milestone(ChildRecord):
    """A billable deliverable of a milestone project."""
    title: str = Field(min_length=1)
    description: Optional[str] = None
    amount: float = Field(gt=0)
    due_date: datetime
    deliverables: Optional[str] = None
    status: MilestoneStatus = MilestoneStatus.PENDING
    completed_date: Optional[datetime] = None
    completed_by: Optional[str] = None
    order: int = 0


class Payment(ChildRecord):
    """Money received for a project, optionally earmarked for a milestone."""
    amount: float = Field(gt=0)
    payment_date: datetime = Field(default_factory=datetime.utcnow)
    payment_method: PaymentMethod = PaymentMethod.BANK_TRANSFER
    transaction_id: Optional[str] = None
    notes: Optional[str] = None
    milestone_id: Optional[str] = None
    added_by: str
    added_at: datetime = Field(default_factory=datetime.utcnow)


class Project(SQLModel, table=True):
    """
    Project aggregate root.

    The derived fields (total_amount, paid_amount, pending_amount, actual_hours)
    are only ever written by app.services.aggregate, which recomputes them from
    the child collections after every change. ``version`` is bumped by every
    successful write and is the key of the compare-and-swap in
    app.services.projects.

    Attributes:
        id: Unique identifier (UUID)
        project_name / client_name: Required descriptive fields
        category: Pricing plan, fixed at creation
        fixed_amount / hourly_rate / estimated_hours: Pricing inputs
        time_entries / milestones / payments: JSON arrays of child records
        team_lead_id: Team lead currently holding the project (None = unclaimed)
        employees: JSON array of user ids staffed on the project
        visible_to_team_leads: Whether team leads may pick the project
    """
    __tablename__ = "projects"

    # Primary key - auto-generated UUID for global uniqueness
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)

    # Descriptive information
    project_name: str = Field(nullable=False, max_length=200)
    description: Optional[str] = None
    deadline: Optional[str] = None  # ISO date
    client_name: str = Field(nullable=False, max_length=200)
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    client_status: Optional[ClientStatus] = Field(default=None, sa_type=AutoString)
    project_platform: Optional[str] = None
    profile: Optional[str] = None
    budget: Optional[float] = None
    timeline: Optional[str] = None
    technologies: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    progress: int = 0

    # Workflow
    status: ProjectStatus = Field(default=ProjectStatus.PENDING, sa_type=AutoString)
    priority: ProjectPriority = Field(default=ProjectPriority.MEDIUM, sa_type=AutoString)

    # Pricing inputs
    category: ProjectCategory = Field(sa_type=AutoString, nullable=False)
    fixed_amount: float = 0
    payment_schedule: PaymentSchedule = Field(default=PaymentSchedule.UPFRONT, sa_type=AutoString)
    scope_policy: Optional[str] = None
    hourly_rate: float = 0
    estimated_hours: float = 0

    # Derived totals
    actual_hours: float = 0
    total_amount: float = 0
    paid_amount: float = 0
    pending_amount: float = 0

    # Owned child collections
    time_entries: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    milestones: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    payments: List[dict] = Field(default_factory=list, sa_column=Column(JSON))

    # Assignment
    team_lead_id: Optional[str] = Field(default=None, foreign_key="users.id", index=True)
    employees: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    visible_to_team_leads: bool = True

    # Audit
    created_by: Optional[str] = Field(default=None, foreign_key="users.id")
    updated_by: Optional[str] = Field(default=None, foreign_key="users.id")
    created_at: Optional[str] = Field(default_factory=lambda: datetime.utcnow().isoformat())
    updated_at: Optional[str] = Field(default_factory=lambda: datetime.utcnow().isoformat())

    # Optimistic concurrency token
    version: int = Field(default=1, nullable=False)
