"""
User Management Endpoints Module

This module provides CRUD endpoints for user management. All endpoints require
administrative privileges except for the /me endpoints which allow users to
manage their own profile.
"""
from typing import Any, Optional
from fastapi import APIRouter, Depends
from sqlmodel import Session, select

import structlog

from app.api import deps
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.security import get_password_hash
from app.db.session import get_db
from app.models.user import User, UserRole
from app.schemas.user import UserCreate, UserRead, UserSelfUpdate, UserUpdate
from app.services import projects as store

router = APIRouter()
logger = structlog.get_logger(__name__)


def _read(user: User) -> dict:
    return UserRead.model_validate(user).model_dump()


@router.get("")
def read_users(
    db: Session = Depends(get_db),
    skip: int = 0,
    limit: int = 100,
    role: Optional[UserRole] = None,
    current_user: User = Depends(deps.require_admin),
) -> Any:
    """
    Retrieve a paginated list of users, optionally filtered by role.

    Only administrators can access this endpoint.
    """
    users = db.exec(select(User).offset(skip).limit(limit)).all()
    if role is not None:
        users = [user for user in users if user.has_role(role)]
    return {"success": True, "count": len(users), "users": [_read(user) for user in users]}


@router.post("", status_code=201)
def create_user(
    *,
    db: Session = Depends(get_db),
    user_in: UserCreate,
    current_user: User = Depends(deps.require_admin),
) -> Any:
    """
    Create a new user.

    Only administrators can create users. Passwords are automatically hashed.

    Raises:
        ConflictError: If a user with this email already exists
    """
    email = user_in.email.lower()
    if db.exec(select(User).where(User.email == email)).first():
        raise ConflictError("A user with this email already exists")

    db_user = User(
        email=email,
        password=get_password_hash(user_in.password),
        name=user_in.name,
        roles=[role.value for role in (user_in.roles or [UserRole.EMPLOYEE])],
        phone=user_in.phone,
        designation=user_in.designation or "Employee",
        is_active=True if user_in.is_active is None else user_in.is_active,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info("user_created", user_id=db_user.id, created_by=current_user.id)
    return {"success": True, "message": "User created successfully", "user": _read(db_user)}


@router.get("/me")
def read_user_me(
    current_user: User = Depends(deps.get_current_active_user),
) -> Any:
    """Get the current authenticated user's profile."""
    return {"success": True, "user": _read(current_user)}


@router.put("/me")
def update_user_me(
    *,
    db: Session = Depends(get_db),
    user_in: UserSelfUpdate,
    current_user: User = Depends(deps.get_current_active_user),
) -> Any:
    """
    Update the current user's own profile.

    Users may change their name, phone and password; roles and activation
    are managed by administrators.
    """
    update_data = user_in.model_dump(exclude_unset=True)
    if update_data.get("password"):
        update_data["password"] = get_password_hash(update_data["password"])

    for field, value in update_data.items():
        if value is not None:
            setattr(current_user, field, value)

    db.add(current_user)
    db.commit()
    db.refresh(current_user)
    return {"success": True, "message": "Profile updated successfully", "user": _read(current_user)}


@router.get("/{user_id}")
def read_user_by_id(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.require_admin),
) -> Any:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User", user_id)
    return {"success": True, "user": _read(user)}


@router.put("/{user_id}")
def update_user(
    *,
    db: Session = Depends(get_db),
    user_id: str,
    user_in: UserUpdate,
    current_user: User = Depends(deps.require_admin),
) -> Any:
    """
    Update any user's profile, including roles, activation and password.

    Raises:
        NotFoundError: If the user doesn't exist
        ConflictError: If the new email belongs to another user
    """
    db_user = db.get(User, user_id)
    if not db_user:
        raise NotFoundError("User", user_id)

    # Get update data, excluding unset fields
    update_data = user_in.model_dump(exclude_unset=True)

    if update_data.get("email"):
        update_data["email"] = update_data["email"].lower()
        other = db.exec(select(User).where(User.email == update_data["email"])).first()
        if other and other.id != db_user.id:
            raise ConflictError("A user with this email already exists")
    if "password" in update_data:
        if not update_data["password"]:
            raise ValidationError("Password cannot be empty")
        update_data["password"] = get_password_hash(update_data["password"])
    if update_data.get("roles") is not None:
        update_data["roles"] = [UserRole(role).value for role in update_data["roles"]]

    for field, value in update_data.items():
        if value is not None:
            setattr(db_user, field, value)

    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return {"success": True, "message": "User updated successfully", "user": _read(db_user)}


@router.delete("/{user_id}")
def delete_user(
    *,
    db: Session = Depends(get_db),
    user_id: str,
    current_user: User = Depends(deps.require_admin),
) -> Any:
    """
    Delete a user. Administrators cannot delete themselves.

    Raises:
        NotFoundError: If the user doesn't exist
        ValidationError: If trying to delete yourself
        ConflictError: If projects or groups still reference the user
    """
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User", user_id)

    if user.id == current_user.id:
        raise ValidationError("Users cannot delete themselves")

    references = store.user_references(db, user_id)
    if references:
        raise ConflictError(
            "User is still referenced by projects; deactivate the account instead",
            details={"references": references},
        )

    db.delete(user)
    db.commit()
    logger.info("user_deleted", user_id=user_id, deleted_by=current_user.id)
    return {"success": True, "message": "User deleted successfully"}
