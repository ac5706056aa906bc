"""
Authentication Endpoints Module

This module provides login and logout. Accounts are created by administrators
through the user endpoints; there is no self-registration. The system supports
both JWT bearer token authentication and HTTP-only cookie-based authentication
for browser clients.
"""
from datetime import datetime, timedelta

import structlog
from fastapi import APIRouter, Depends, HTTPException, status, Response
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel import Session, select

from app.core.config import settings
from app.core.security import verify_password, create_access_token
from app.db.session import get_db
from app.models.user import User
from app.schemas.auth import Token

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.post("/login", response_model=Token)
def login(response: Response, db: Session = Depends(get_db), form_data: OAuth2PasswordRequestForm = Depends()):
    """
    Authenticate a user and issue an access token.

    Validates the user's credentials and returns a JWT access token. The token is also
    set as an HTTP-only cookie for browser clients.

    Note: OAuth2PasswordRequestForm uses 'username' field, but we treat it as email.

    Raises:
        HTTPException 401: If credentials are invalid
        HTTPException 403: If the account has been deactivated
    """
    # Look up user by email (form_data.username contains the email)
    user = db.exec(select(User).where(User.email == form_data.username.lower())).first()

    if not user or not verify_password(form_data.password, user.password):
        logger.info("login_failed", email=form_data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="This account has been deactivated")

    access_token = create_access_token(
        subject=user.email,
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )

    user.last_login = datetime.utcnow().isoformat()
    db.add(user)
    db.commit()
    logger.info("login_succeeded", user_id=user.id)

    # httponly=True prevents JavaScript access to the cookie
    # samesite="lax" provides CSRF protection while allowing normal navigation
    response.set_cookie(
        key="access_token",
        value=f"Bearer {access_token}",
        httponly=True,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,  # Convert minutes to seconds
        samesite="lax"
    )

    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/logout")
def logout(response: Response):
    """
    Log out the current user by clearing their authentication cookie.

    API clients can simply discard their token.
    """
    response.delete_cookie("access_token")
    return {"success": True, "message": "Logged out"}
