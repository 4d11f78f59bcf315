# backend/teamauth/api/schemas.py

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------- REQUEST BODIES ----------
# Fields are optional so missing values get the route's own message instead of a 422.

class SignupIn(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class VerifyEmailIn(BaseModel):
    code: Optional[str] = None


class LoginIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordIn(BaseModel):
    email: Optional[str] = None


class ResetPasswordIn(BaseModel):
    password: Optional[str] = None


class PasswordChangeIn(BaseModel):
    currentPassword: Optional[str] = None
    newPassword: Optional[str] = None


class ProfileUpdateIn(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None


class ApiKeysIn(BaseModel):
    apiKeys: Optional[Dict[str, Optional[str]]] = None


class PermissionsIn(BaseModel):
    role: Optional[str] = None
    department: Optional[str] = None


# ---------- RESPONSES ----------

class UserOut(BaseModel):
    """Public view of a user. Never carries the password hash, tokens or API keys."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: str
    department: Optional[str] = None
    profilePic: Optional[str] = Field(default=None, validation_alias="profile_pic")
    isVerified: bool = Field(default=False, validation_alias="is_verified")
    lastActive: Optional[datetime] = Field(default=None, validation_alias="last_active")
    createdAt: Optional[datetime] = Field(default=None, validation_alias="created_at")


class UserWithCountOut(UserOut):
    gptCount: int = 0


class LoginOut(BaseModel):
    success: bool = True
    message: str = "Login successful"
    accessToken: str
    user: UserOut


class UserPageOut(BaseModel):
    success: bool = True
    users: List[UserWithCountOut]
    total: int
    page: int
    limit: int


def user_out(user) -> UserOut:
    return UserOut.model_validate(user)
