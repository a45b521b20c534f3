from pydantic import BaseModel, EmailStr, ConfigDict, Field
from datetime import datetime
from typing import Literal, Optional

from teamflow.models.enums import Role, UserStatus

class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1)
    password: str = Field(min_length=6)
    role: Literal["employee", "pm"] = "employee"  # hr seulement via un hr
    department: Optional[str] = None

class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    role: str
    department: Optional[str]
    status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class UserAdminUpdate(BaseModel):
    """Modifs réservées aux hr (validation de compte, rôle, département)"""
    status: Optional[UserStatus] = None
    role: Optional[Role] = None
    department: Optional[str] = None

    model_config = ConfigDict(use_enum_values=True)

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"

class RefreshRequest(BaseModel):
    refresh_token: str
