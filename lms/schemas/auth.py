"""
Pydantic models for auth request validation.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, EmailStr


class RegisterRequest(BaseModel):
    """Request body for user registration."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    role: str = Field(default="student", description="student | educator")


class LoginRequest(BaseModel):
    """Request body for user login."""
    email: EmailStr
    password: str = Field(..., min_length=1)


class UpdateProfileRequest(BaseModel):
    """Request body for updating the caller's own profile."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=2, max_length=50)
    avatar: Optional[str] = Field(None, max_length=500)
    bio: Optional[str] = Field(None, max_length=500)


class ChangePasswordRequest(BaseModel):
    """Request body for changing the caller's password."""
    currentPassword: str = Field(..., min_length=1)
    newPassword: str = Field(..., min_length=1, max_length=128)
