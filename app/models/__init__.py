from .user import User, UserRole
from .project import (
    Project, ProjectCategory, ProjectStatus, ProjectPriority, PaymentSchedule,
    ClientStatus, TaskType, MilestoneStatus, PaymentMethod,
    TimeEntry, Milestone, Payment, ACTIVE_STATUSES, TERMINAL_STATUSES,
)
from .project_details import ProjectDetails
from .project_group import ProjectGroup

__all__ = [
    "User", "UserRole",
    "Project", "ProjectCategory", "ProjectStatus", "ProjectPriority",
    "PaymentSchedule", "ClientStatus", "TaskType", "MilestoneStatus", "PaymentMethod",
    "TimeEntry", "Milestone", "Payment", "ACTIVE_STATUSES", "TERMINAL_STATUSES",
    "ProjectDetails",
    "ProjectGroup",
]
