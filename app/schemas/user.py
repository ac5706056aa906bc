from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from app.models.user import UserRole

# Shared properties
class UserBase(BaseModel):
    email: Optional[EmailStr] = None
    name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    roles: Optional[List[UserRole]] = None
    phone: Optional[str] = None
    designation: Optional[str] = None
    is_active: Optional[bool] = None

# Properties to receive via API on creation
class UserCreate(UserBase):
    email: EmailStr
    name: str = Field(min_length=2, max_length=50)
    password: str = Field(min_length=6)

# Properties to receive via API on update
class UserUpdate(UserBase):
    password: Optional[str] = Field(default=None, min_length=6)

# Properties a user may change on their own profile
class UserSelfUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    phone: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=6)

# Properties to return to client
class UserRead(BaseModel):
    id: str
    email: str
    name: str
    roles: List[UserRole] = []
    phone: Optional[str] = None
    designation: Optional[str] = None
    is_active: bool = True
    last_login: Optional[str] = None
    created_at: Optional[str] = None

    class Config:
        from_attributes = True
