"""
API Dependencies Module

This module provides FastAPI dependency functions for authentication and authorization.
It implements a dual authentication strategy supporting both bearer tokens (for API clients)
and HTTP-only cookies (for browser clients). The resolved User is the acting principal
that every endpoint passes on to the project aggregate.
"""
from typing import List, Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from pydantic import ValidationError
from sqlmodel import Session, select

from app.core.config import settings
from app.db.session import get_db
from app.models.user import User, UserRole
from app.schemas.auth import TokenData

# Configure OAuth2 scheme to use the login endpoint
# auto_error=False allows us to check cookies as a fallback
reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/auth/login",
    auto_error=False  # Don't raise error immediately if Authorization header is missing
)


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    token: Optional[str] = Depends(reusable_oauth2)
) -> User:
    """
    Dependency that retrieves and validates the current authenticated user.

    The function first checks for a bearer token in the Authorization header.
    If not found, it falls back to checking the access_token cookie.

    Raises:
        HTTPException 401: If no valid authentication token is provided,
            the token is invalid, or the user no longer exists
    """
    # Try Authorization header first, then fall back to cookie
    if not token:
        token = request.cookies.get("access_token")
        # Cookie format is "Bearer <token>", so we need to extract the token
        if token and token.startswith("Bearer "):
            token = token[len("Bearer "):]

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, no token provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Decode and validate the JWT token
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
        )
        token_data = TokenData(email=payload.get("sub"))  # Extract email from token
    except (JWTError, ValidationError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, invalid or expired token",
        )

    user = db.exec(select(User).where(User.email == token_data.email)).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, user not found",
        )
    return user


def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """
    Dependency that requires an authenticated, active user.

    Raises:
        HTTPException 403: If the account has been deactivated
    """
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This account has been deactivated",
        )
    return current_user


class RoleChecker:
    """
    Dependency factory for checking user roles.

    Usage: Depends(RoleChecker([UserRole.ADMIN, UserRole.TEAMLEAD]))
    """
    def __init__(self, allowed_roles: List[UserRole]):
        self.allowed_roles = allowed_roles

    def __call__(self, current_user: User = Depends(get_current_active_user)) -> User:
        # Check if user has at least one of the allowed roles
        if not any(current_user.has_role(role) for role in self.allowed_roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Forbidden: Insufficient permissions",
            )
        return current_user


require_admin = RoleChecker([UserRole.ADMIN])
require_admin_or_teamlead = RoleChecker([UserRole.ADMIN, UserRole.TEAMLEAD])
require_teamlead = RoleChecker([UserRole.TEAMLEAD])
require_teamlead_or_employee = RoleChecker([UserRole.TEAMLEAD, UserRole.EMPLOYEE])
require_employee = RoleChecker([UserRole.EMPLOYEE])
