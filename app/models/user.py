"""
User Model Module

This module defines the User model and UserRole enumeration for authentication
and authorization throughout the application.
"""
from enum import Enum
from typing import List, Optional
from sqlmodel import SQLModel, Field, JSON, Column
import uuid
from datetime import datetime


class UserRole(str, Enum):
    """
    Enumeration of user roles defining permission levels in the system.

    - ADMIN: Creates projects and users, manages money and staffing
    - TEAMLEAD: Picks up unassigned projects, logs time, staffs employees
    - EMPLOYEE: Works on projects a team lead staffed them on (default role)

    Permission checks throughout the API use these roles to control access to
    resources and operations.
    """
    ADMIN = "admin"
    TEAMLEAD = "teamlead"
    EMPLOYEE = "employee"


class User(SQLModel, table=True):
    """
    User model representing authenticated users in the system.

    Users are identified by UUID and authenticated via email/password. The roles
    field determines their permission level throughout the application.

    Attributes:
        id: Unique identifier (UUID) automatically generated for each user
        name: Display name
        email: User's email address, used for authentication (required, unique, indexed)
        password: Hashed password for authentication
        roles: List of UserRole values assigned to this user (default: [EMPLOYEE])
        phone: Contact phone number
        designation: Job title shown in staffing lists
        is_active: Inactive users cannot log in
        last_login: ISO timestamp of the last successful login
        created_at: ISO timestamp when the user account was created
    """
    __tablename__ = "users"

    # Primary key - auto-generated UUID for global uniqueness
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)

    # Authentication fields
    email: str = Field(unique=True, index=True, nullable=False)
    password: Optional[str] = None  # Hashed password

    # Profile information
    name: str = Field(nullable=False, max_length=50)
    phone: Optional[str] = None
    designation: Optional[str] = "Employee"

    # Authorization - stored as JSON array in database
    roles: List[UserRole] = Field(default=[UserRole.EMPLOYEE], sa_column=Column(JSON))

    is_active: bool = True
    last_login: Optional[str] = None

    # Audit timestamp
    created_at: Optional[str] = Field(default_factory=lambda: datetime.utcnow().isoformat())

    def has_role(self, role: UserRole) -> bool:
        # Roles read back from the JSON column are plain strings; str-Enum compares equal
        return role in self.roles

    @property
    def is_privileged(self) -> bool:
        """Helper to check if user has admin-level roles."""
        return self.has_role(UserRole.ADMIN)
